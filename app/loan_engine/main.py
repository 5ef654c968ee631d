"""FastAPI backend for the loan underwriting pipeline."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, File, HTTPException, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import Field

from .agents.documents import classify_document, extract_document_data, validate_extracted_data
from .agents.kyc import verify_kyc
from .agents.orchestrator import LoanPipeline
from .agents.salary import verify_salary
from .config import REQUEST_TIMEOUT_SECONDS, configure_logging
from .models import (
    ApplicantRecord,
    CamelModel,
    DocumentClassification,
    DocumentSet,
    ExtractionResult,
    KYCResult,
    PipelineResult,
    SalaryClaim,
    SalaryResult,
    SanctionRecord,
    UnderwritingRequest,
    UnderwritingResult,
    SAMPLE_APPLICANT,
    SAMPLE_DOCUMENTS,
)
from .sanction_letter import SanctionLetterService

logger = logging.getLogger(__name__)


# Request schemas
class KYCRequest(CamelModel):
    applicant: ApplicantRecord
    documents: DocumentSet = Field(default_factory=DocumentSet)


class SalaryRequest(CamelModel):
    claim: SalaryClaim
    requested_loan_amount: Optional[float] = 0


class EligibilityRequest(CamelModel):
    applicant: ApplicantRecord
    documents: DocumentSet = Field(default_factory=DocumentSet)
    city: Optional[str] = None


class SalaryVerificationRequest(EligibilityRequest):
    claim: SalaryClaim


class ClassifyRequest(CamelModel):
    filename: str
    text: Optional[str] = None


_pipeline = LoanPipeline()
_letters = SanctionLetterService()


def get_pipeline() -> LoanPipeline:
    return _pipeline


def get_letter_service() -> SanctionLetterService:
    return _letters


async def with_timeout(coro):
    """Bound a pipeline call by REQUEST_TIMEOUT_SECONDS."""
    try:
        return await asyncio.wait_for(coro, timeout=REQUEST_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.error("Request timed out after %ss", REQUEST_TIMEOUT_SECONDS)
        raise HTTPException(status_code=504, detail="Loan pipeline timed out")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Loan underwriting API starting")
    yield
    logger.info("Loan underwriting API shutting down")


# Create FastAPI app
app = FastAPI(
    title="Loan Underwriting API",
    description="KYC, salary verification and underwriting agents for personal loans",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for demo purposes
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Loan Underwriting API"}


@app.get("/sample-application")
async def get_sample_application():
    """Return the sample applicant and documents."""
    return {
        "applicant": SAMPLE_APPLICANT.model_dump(by_alias=True),
        "documents": SAMPLE_DOCUMENTS.model_dump(by_alias=True),
    }


@app.post("/kyc/verify", response_model=KYCResult)
async def kyc_endpoint(request: KYCRequest) -> KYCResult:
    return await with_timeout(verify_kyc(request.applicant, request.documents))


@app.post("/salary/verify", response_model=SalaryResult)
async def salary_endpoint(
    request: SalaryRequest,
    pipeline: LoanPipeline = Depends(get_pipeline),
) -> SalaryResult:
    return await with_timeout(
        verify_salary(request.claim, request.requested_loan_amount, pipeline.directory)
    )


@app.post("/underwrite", response_model=UnderwritingResult)
async def underwrite_endpoint(
    request: UnderwritingRequest,
    pipeline: LoanPipeline = Depends(get_pipeline),
) -> UnderwritingResult:
    return await with_timeout(pipeline.engine.decide(request))


@app.post("/loan/eligibility", response_model=PipelineResult)
async def eligibility_endpoint(
    request: EligibilityRequest,
    pipeline: LoanPipeline = Depends(get_pipeline),
) -> PipelineResult:
    """
    Check eligibility before any salary evidence: KYC, then underwriting.

    Large requests come back PENDING with requiresSalarySlip set.
    """
    return await with_timeout(
        pipeline.check_eligibility(request.applicant, request.documents, request.city)
    )


@app.post("/loan/salary-verification", response_model=PipelineResult)
async def salary_verification_endpoint(
    request: SalaryVerificationRequest,
    pipeline: LoanPipeline = Depends(get_pipeline),
) -> PipelineResult:
    """Verify the salary claim and re-run underwriting with it."""
    return await with_timeout(
        pipeline.verify_salary_and_underwrite(
            request.applicant, request.documents, request.claim, request.city,
        )
    )


@app.post("/documents/classify", response_model=DocumentClassification)
async def classify_endpoint(request: ClassifyRequest) -> DocumentClassification:
    return classify_document(request.filename, request.text)


@app.post("/documents/extract", response_model=ExtractionResult)
async def extract_endpoint(document: UploadFile = File(...)) -> ExtractionResult:
    """Extract applicant fields from an uploaded salary slip or KYC document."""
    content = await document.read()
    if not content:
        raise HTTPException(status_code=400, detail="No document uploaded")

    logger.info("Document extraction request: %s", document.filename)
    result = await with_timeout(extract_document_data(content, document.content_type))
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    _, errors = validate_extracted_data(result.data)
    return result.model_copy(update={"validation_errors": errors})


@app.get("/sanction/{sanction_id}", response_model=SanctionRecord)
async def get_sanction(
    sanction_id: str,
    pipeline: LoanPipeline = Depends(get_pipeline),
) -> SanctionRecord:
    record = pipeline.get_sanction_record(sanction_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Sanction not found")
    return record


@app.get("/sanction-letter/{sanction_id}")
async def download_sanction_letter(
    sanction_id: str,
    pipeline: LoanPipeline = Depends(get_pipeline),
    letters: SanctionLetterService = Depends(get_letter_service),
) -> Response:
    """Download the PDF sanction letter for an approved loan."""
    record = pipeline.get_sanction_record(sanction_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Sanction letter not found")

    content = await asyncio.to_thread(letters.get_or_render, sanction_id, record)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=Sanction-Letter-{sanction_id}.pdf"},
    )


@app.get("/agent-trace")
async def agent_trace() -> dict[str, Any]:
    """Describe the multi-agent workflow."""
    return LoanPipeline.agent_trace()
