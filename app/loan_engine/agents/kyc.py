"""KYC Agent: identity-document checks, confidence scoring and a derived credit score."""

import logging
import re
from typing import Any, Union

from ..models import (
    ApplicantRecord,
    CreditCategory,
    DocumentSet,
    DocumentsProvided,
    KYCExtractedData,
    KYCResult,
    KYCStatus,
    RiskLevel,
)
from ..tools.calculations import credit_category, format_inr, risk_level_for_score

logger = logging.getLogger(__name__)

PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$", re.IGNORECASE)
AADHAR_PATTERN = re.compile(r"^\d{12}$")

MIN_CONFIDENCE = 0.6
MIN_KYC_CREDIT_SCORE = 650
MIN_MONTHLY_INCOME = 15000
DEFAULT_MONTHLY_INCOME = 30000
MIN_NAME_LENGTH = 3
MIN_ADDRESS_LENGTH = 5

# Confidence penalties
PAN_MISSING_PENALTY = 0.3
PAN_INVALID_PENALTY = 0.2
AADHAR_MISSING_PENALTY = 0.2
AADHAR_INVALID_PENALTY = 0.2
NAME_PENALTY = 0.1
ADDRESS_PENALTY = 0.1
INCOME_BELOW_MIN_PENALTY = 0.2
SALARY_SLIP_MISSING_PENALTY = 0.1


def is_valid_pan(pan: str | None) -> bool:
    return bool(pan) and PAN_PATTERN.match(pan.strip()) is not None


def is_valid_aadhar(aadhar: str | None) -> bool:
    if not aadhar:
        return False
    return AADHAR_PATTERN.match(re.sub(r"\s", "", aadhar)) is not None


def base_credit_score(monthly_income: float) -> int:
    """Credit score baseline from resolved monthly income."""
    if monthly_income >= 50000:
        return 780
    if monthly_income >= 30000:
        return 720
    if monthly_income >= 20000:
        return 680
    return 620


def _failed_result(reason: str, documents: DocumentSet | None = None, error: str | None = None) -> KYCResult:
    provided = DocumentsProvided()
    if documents is not None:
        provided = DocumentsProvided(
            pan=documents.has_pan,
            aadhar=documents.has_aadhar,
            salary=documents.has_salary_slip,
        )
    return KYCResult(
        status=KYCStatus.FAILED,
        confidence=0.0,
        reasons=[reason],
        credit_score=0,
        credit_category=CreditCategory.POOR,
        risk_level=RiskLevel.HIGH,
        extracted_data=KYCExtractedData(documents_provided=provided),
        error=error,
    )


def score_kyc(applicant: ApplicantRecord, documents: DocumentSet) -> KYCResult:
    """
    Run the KYC checks for one applicant.

    Confidence starts at 1.0 and loses a fixed penalty for every missing or
    malformed item. The credit score is derived from resolved monthly income,
    the loan-to-income ratio and which documents were supplied.

    Args:
        applicant: Identity fields claimed by the applicant
        documents: Which documents were uploaded

    Returns:
        KYCResult; status is VERIFIED only when confidence >= 0.6 and
        credit score >= 650
    """
    if not documents.has_pan and not documents.has_aadhar:
        return _failed_result(
            "No identity documents uploaded. Please upload PAN or Aadhar card.",
            documents,
        )

    reasons = []
    confidence = 1.0

    # PAN
    if documents.has_pan:
        reasons.append("PAN card document uploaded")
        if is_valid_pan(applicant.pan):
            reasons.append(f"PAN format valid: {applicant.pan.strip().upper()}")
        else:
            reasons.append("PAN format invalid")
            confidence -= PAN_INVALID_PENALTY
    else:
        reasons.append("PAN card not uploaded")
        confidence -= PAN_MISSING_PENALTY

    # Aadhar
    if documents.has_aadhar:
        reasons.append("Aadhar card document uploaded")
        if is_valid_aadhar(applicant.aadhar):
            reasons.append("Aadhar format valid (12 digits)")
        else:
            reasons.append("Aadhar format invalid")
            confidence -= AADHAR_INVALID_PENALTY
    else:
        reasons.append("Aadhar card not uploaded")
        confidence -= AADHAR_MISSING_PENALTY

    if applicant.name and len(applicant.name) >= MIN_NAME_LENGTH:
        reasons.append("Name provided")
    else:
        reasons.append("Name too short")
        confidence -= NAME_PENALTY

    if applicant.address and len(applicant.address) >= MIN_ADDRESS_LENGTH:
        reasons.append("Address provided")
    else:
        reasons.append("Address incomplete")
        confidence -= ADDRESS_PENALTY

    # Income: the claim if there is one, otherwise the default estimate
    monthly_income = applicant.monthly_income or DEFAULT_MONTHLY_INCOME
    if documents.has_salary_slip:
        reasons.append("Salary slip uploaded for income verification")
        if applicant.monthly_income and applicant.monthly_income >= MIN_MONTHLY_INCOME:
            reasons.append(f"Monthly income: ₹{format_inr(monthly_income)}")
        else:
            reasons.append(f"Monthly income below minimum (₹{format_inr(MIN_MONTHLY_INCOME)})")
            confidence -= INCOME_BELOW_MIN_PENALTY
    else:
        reasons.append("Salary slip not uploaded (using estimated income)")
        confidence -= SALARY_SLIP_MISSING_PENALTY

    # Credit score
    credit_score = base_credit_score(monthly_income)
    loan_amount = applicant.loan_amount or 0
    loan_to_income = loan_amount / (monthly_income * 12)
    if loan_to_income > 5:
        credit_score -= 50
        reasons.append("Loan amount high relative to income")
    elif loan_to_income > 3:
        credit_score -= 20

    if documents.has_pan and documents.has_aadhar:
        credit_score += 20
        reasons.append("Both identity documents provided")
    if documents.has_salary_slip:
        credit_score += 10

    credit_score = max(300, min(900, credit_score))
    category = credit_category(credit_score)
    reasons.append(f"Credit score: {credit_score} ({category.value})")

    # Penalties are multiples of 0.1; rounding keeps float drift off the threshold
    confidence = round(max(0.0, min(1.0, confidence)), 2)

    verified = confidence >= MIN_CONFIDENCE and credit_score >= MIN_KYC_CREDIT_SCORE
    if verified:
        reasons.append("All checks passed - Application verified")
    else:
        if confidence < MIN_CONFIDENCE:
            reasons.append("Insufficient document verification confidence")
        if credit_score < MIN_KYC_CREDIT_SCORE:
            reasons.append(f"Credit score below minimum threshold ({MIN_KYC_CREDIT_SCORE})")

    return KYCResult(
        status=KYCStatus.VERIFIED if verified else KYCStatus.FAILED,
        confidence=confidence,
        reasons=reasons,
        credit_score=credit_score,
        credit_category=category,
        risk_level=risk_level_for_score(credit_score),
        extracted_data=KYCExtractedData(
            monthly_income=monthly_income,
            documents_provided=DocumentsProvided(
                pan=documents.has_pan,
                aadhar=documents.has_aadhar,
                salary=documents.has_salary_slip,
            ),
        ),
    )


async def verify_kyc(
    applicant: Union[ApplicantRecord, dict[str, Any]],
    documents: Union[DocumentSet, dict[str, Any]],
) -> KYCResult:
    """
    Run the KYC Agent. Never raises: internal errors come back as a FAILED result.

    Args:
        applicant: ApplicantRecord (or its dict form)
        documents: DocumentSet (or its dict form)

    Returns:
        KYCResult
    """
    logger.info("Starting KYC verification")
    try:
        if not isinstance(applicant, ApplicantRecord):
            applicant = ApplicantRecord.model_validate(applicant)
        if not isinstance(documents, DocumentSet):
            documents = DocumentSet.model_validate(documents)

        result = score_kyc(applicant, documents)
    except Exception as e:
        logger.exception("KYC verification error")
        return _failed_result(f"System error during verification: {e}", error=str(e))

    logger.info(
        "KYC result: %s (confidence %.0f%%, credit score %d)",
        result.status.value, result.confidence * 100, result.credit_score,
    )
    return result
