"""Document Agent: document-type detection and mock data extraction.

Detection is heuristic (filename first, then keywords in any text supplied by
an upstream OCR step). Extraction returns canned data; no vision model is
called.
"""

import logging
import re
from pathlib import PurePath
from typing import Optional

from ..config import EXTRACTION_DELAY, simulate_latency
from ..models import (
    DocumentClassification,
    DocumentSet,
    DocumentType,
    ExtractedDocument,
    ExtractionResult,
)
from .kyc import is_valid_pan

logger = logging.getLogger(__name__)

# "pan" goes last: it also occurs inside words like "company"
FILENAME_KEYWORDS = [
    (DocumentType.AADHAR, ("aadhar", "aadhaar")),
    (DocumentType.SALARY_SLIP, ("salary", "payslip")),
    (DocumentType.PAN, ("pan",)),
]

PAN_TEXT_KEYWORDS = ("income tax", "permanent account number")
PAN_TOKEN = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]")
AADHAR_TEXT_KEYWORDS = ("aadhaar", "aadhar", "government of india")
AADHAR_TOKEN = re.compile(r"\d{4}\s?\d{4}\s?\d{4}")
SALARY_TEXT_KEYWORDS = (
    "salary", "payslip", "pay slip", "earnings", "deductions", "gross pay", "net pay",
)

# Bytes sniffed by the mock extractor when deciding what kind of document it got
EXTRACTION_SNIFF_BYTES = 500
EXTRACTION_SNIFF_KEYWORDS = ("salary", "payslip", "earnings", "deductions", "gross")

MOCK_EXTRACTED_DATA = {
    "salary_slip": ExtractedDocument(
        name="Abheek Sehgal",
        employer="Tech Corp India",
        monthly_salary=45000,
        pan="ABCDE1234F",
        address="Delhi",
        document_type="SALARY_SLIP",
    ),
    "kyc_document": ExtractedDocument(
        name="Abheek Sehgal",
        pan="ABCDE1234F",
        address="Delhi",
        document_type="KYC_DOCUMENT",
    ),
}

DOCUMENT_SLOTS = {
    DocumentType.PAN: "pan_card",
    DocumentType.AADHAR: "aadhar_card",
    DocumentType.SALARY_SLIP: "salary_slip",
}


def _type_from_filename(filename: Optional[str]) -> Optional[DocumentType]:
    if not filename:
        return None
    name = PurePath(filename).name.lower()
    for document_type, keywords in FILENAME_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return document_type
    return None


def _type_from_text(text: Optional[str]) -> Optional[DocumentType]:
    if not text:
        return None
    lowered = text.lower()
    if any(k in lowered for k in PAN_TEXT_KEYWORDS):
        return DocumentType.PAN
    if any(k in lowered for k in AADHAR_TEXT_KEYWORDS):
        return DocumentType.AADHAR
    if any(k in lowered for k in SALARY_TEXT_KEYWORDS):
        return DocumentType.SALARY_SLIP
    # Bare identifiers only decide when no keyword matched; payslips carry PANs too
    if PAN_TOKEN.search(text):
        return DocumentType.PAN
    if AADHAR_TOKEN.search(text):
        return DocumentType.AADHAR
    return None


def classify_document(filename: Optional[str], text: Optional[str] = None) -> DocumentClassification:
    """
    Identify an uploaded document as a PAN card, Aadhar card or salary slip.

    Args:
        filename: Name the document was uploaded under
        text: Text recognized in the document, if any

    Returns:
        DocumentClassification; source says which signal decided the type
    """
    document_type = _type_from_filename(filename)
    if document_type is not None:
        source = "filename"
    else:
        document_type = _type_from_text(text)
        source = "content" if document_type is not None else "none"

    if document_type is None:
        document_type = DocumentType.OTHER
        logger.info("Could not identify document type for %s", filename)
    else:
        logger.info("Detected %s from %s for %s", document_type.value, source, filename)

    return DocumentClassification(filename=filename, document_type=document_type, source=source)


def build_document_set(uploads: dict[str, Optional[str]]) -> DocumentSet:
    """Classify each upload (filename -> recognized text) into a DocumentSet."""
    slots = {}
    for filename, text in uploads.items():
        classification = classify_document(filename, text)
        slot = DOCUMENT_SLOTS.get(classification.document_type)
        if slot and slot not in slots:
            slots[slot] = filename
    return DocumentSet(**slots)


def looks_like_salary_slip(content: bytes) -> bool:
    head = content[:EXTRACTION_SNIFF_BYTES].decode("utf-8", errors="ignore").lower()
    return any(keyword in head for keyword in EXTRACTION_SNIFF_KEYWORDS)


async def extract_document_data(content: bytes, mime_type: Optional[str] = None) -> ExtractionResult:
    """
    Extract applicant fields from an uploaded document (mocked).

    Args:
        content: Raw uploaded bytes
        mime_type: MIME type reported by the upload

    Returns:
        ExtractionResult with canned salary-slip or KYC data
    """
    try:
        await simulate_latency(EXTRACTION_DELAY)
        key = "salary_slip" if looks_like_salary_slip(content) else "kyc_document"
        data = MOCK_EXTRACTED_DATA[key].model_copy()
    except Exception as e:
        logger.exception("Document extraction error")
        return ExtractionResult(success=False, error="Failed to extract document data", details=str(e))

    logger.info("Extracted %s data (%s)", data.document_type, mime_type or "unknown type")
    return ExtractionResult(success=True, data=data, confidence=0.95)


def validate_extracted_data(data: ExtractedDocument) -> tuple[bool, list[str]]:
    """Sanity-check extracted fields. Returns (is_valid, errors)."""
    errors = []

    if data.pan and not is_valid_pan(data.pan):
        errors.append("Invalid PAN format")

    if data.monthly_salary is not None and data.monthly_salary < 0:
        errors.append("Invalid salary amount")

    if not data.name or len(data.name) < 3:
        errors.append("Invalid name")

    return len(errors) == 0, errors
