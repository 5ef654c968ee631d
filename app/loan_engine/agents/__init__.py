"""Agents module for the loan underwriting pipeline."""

from .kyc import verify_kyc
from .salary import verify_salary
from .underwriting import UnderwritingEngine, underwrite
from .documents import classify_document, build_document_set, extract_document_data
from .orchestrator import LoanPipeline

__all__ = [
    "verify_kyc",
    "verify_salary",
    "UnderwritingEngine",
    "underwrite",
    "classify_document",
    "build_document_set",
    "extract_document_data",
    "LoanPipeline",
]
