"""Salary Verification Agent: minimum salary, employer and debt-to-income checks."""

import logging
from typing import Any, Optional, Union

from ..config import SALARY_CHECK_DELAY, simulate_latency
from ..models import RiskLevel, SalaryClaim, SalaryDetails, SalaryResult, SalaryStatus
from ..tools.calculations import (
    MAX_EMI_TO_INCOME,
    REFERENCE_ANNUAL_RATE,
    REFERENCE_TENURE_MONTHS,
    compute_dti,
    compute_emi,
    compute_max_principal,
    format_inr,
)
from ..tools.employers import EmployerDirectory

logger = logging.getLogger(__name__)

MINIMUM_SALARY = 15000
RECOMMENDED_SALARY = 25000
MAX_DTI_PERCENT = 50
ELEVATED_DTI_PERCENT = 40


class _Assessment:
    """Running status for one verification; severity can only get worse."""

    def __init__(self):
        self.status = SalaryStatus.VERIFIED
        self.risk_level = RiskLevel.LOW
        self.issues: list[str] = []

    def flag(self, issue: str, status: SalaryStatus, risk_level: Optional[RiskLevel] = None) -> None:
        self.issues.append(issue)
        self.status = self.status.worsen(status)
        if risk_level is not None:
            self.risk_level = self.risk_level.worsen(risk_level)


def check_salary_consistency(
    monthly_salary: Optional[float],
    employer: Optional[str],
    directory: EmployerDirectory,
) -> Optional[str]:
    """Compare a salary against the employer's industry band.

    Returns:
        A reason string when the salary falls outside the band, else None
    """
    info = directory.lookup(employer)
    if info is None or monthly_salary is None:
        return None

    band = directory.salary_range(info.industry)
    if band is None:
        return None

    low, high = band
    if monthly_salary < low:
        return f"Salary below expected range for {info.industry} industry"
    if monthly_salary > high:
        return f"Salary above expected range for {info.industry} industry (needs verification)"
    return None


def assess_salary(
    claim: SalaryClaim,
    requested_loan_amount: Optional[float],
    directory: EmployerDirectory,
) -> SalaryResult:
    monthly_salary = claim.monthly_salary
    employer = claim.employer
    assessment = _Assessment()

    # Step 1: minimum salary
    if not monthly_salary or monthly_salary < MINIMUM_SALARY:
        assessment.flag(
            f"Salary below minimum requirement (₹{format_inr(MINIMUM_SALARY)})",
            SalaryStatus.FAILED, RiskLevel.HIGH,
        )
    elif monthly_salary < RECOMMENDED_SALARY:
        assessment.flag("Salary below recommended threshold", SalaryStatus.FLAGGED, RiskLevel.MEDIUM)

    # Step 2: employer
    employer_info = directory.lookup(employer)
    if not employer:
        assessment.flag("Employer information missing", SalaryStatus.FLAGGED, RiskLevel.MEDIUM)
    elif employer_info is None:
        assessment.flag("Employer not found in database", SalaryStatus.FLAGGED, RiskLevel.MEDIUM)
    elif not employer_info.verified:
        assessment.flag("Employer not verified", SalaryStatus.FLAGGED, RiskLevel.MEDIUM)

    # Step 3: debt-to-income at reference terms
    dti_percent = None
    max_eligible_loan = None
    if monthly_salary and requested_loan_amount:
        required_emi = compute_emi(requested_loan_amount, REFERENCE_ANNUAL_RATE, REFERENCE_TENURE_MONTHS)
        dti_percent = compute_dti(required_emi, monthly_salary)["dti_percent"]
        max_eligible_loan = compute_max_principal(
            monthly_salary * MAX_EMI_TO_INCOME, REFERENCE_ANNUAL_RATE, REFERENCE_TENURE_MONTHS,
        )

        if dti_percent > MAX_DTI_PERCENT:
            assessment.flag(
                f"Debt-to-income ratio too high ({dti_percent:.1f}%)",
                SalaryStatus.FAILED, RiskLevel.HIGH,
            )
        elif dti_percent > ELEVATED_DTI_PERCENT:
            assessment.flag(
                f"Debt-to-income ratio elevated ({dti_percent:.1f}%)",
                SalaryStatus.FLAGGED, RiskLevel.MEDIUM,
            )

    # Step 4: industry salary band
    inconsistency = check_salary_consistency(monthly_salary, employer, directory)
    if inconsistency:
        assessment.flag(inconsistency, SalaryStatus.FLAGGED)

    reasons = assessment.issues or ["All salary verification checks passed"]

    return SalaryResult(
        status=assessment.status,
        risk_level=assessment.risk_level,
        reasons=reasons,
        details=SalaryDetails(
            monthly_salary=monthly_salary,
            employer=employer,
            employer_verified=bool(employer_info and employer_info.verified),
            debt_to_income_ratio=f"{dti_percent:.2f}" if dti_percent is not None else None,
            max_eligible_loan=round(max_eligible_loan) if max_eligible_loan is not None else None,
            minimum_salary_met=bool(monthly_salary) and monthly_salary >= MINIMUM_SALARY,
        ),
    )


async def verify_salary(
    claim: Union[SalaryClaim, dict[str, Any]],
    requested_loan_amount: Optional[float] = 0,
    directory: Optional[EmployerDirectory] = None,
) -> SalaryResult:
    """
    Run the Salary Verification Agent.

    Each check can only move the status from VERIFIED towards FAILED. No
    document is read; the agent works on the numeric claim alone.

    Args:
        claim: Monthly salary and employer claimed by the applicant
        requested_loan_amount: Loan being requested; 0/None skips the DTI check
        directory: Employer directory to resolve the employer against

    Returns:
        SalaryResult. Internal errors come back as a FAILED result.
    """
    logger.info("Starting salary verification")
    directory = directory if directory is not None else EmployerDirectory()
    try:
        if not isinstance(claim, SalaryClaim):
            claim = SalaryClaim.model_validate(claim)
        await simulate_latency(SALARY_CHECK_DELAY)
        result = assess_salary(claim, requested_loan_amount, directory)
    except Exception as e:
        logger.exception("Salary verification error")
        monthly_salary = claim.monthly_salary if isinstance(claim, SalaryClaim) else None
        return SalaryResult(
            status=SalaryStatus.FAILED,
            risk_level=RiskLevel.HIGH,
            reasons=[f"Internal verification error: {e}"],
            details=SalaryDetails(monthly_salary=monthly_salary),
            error=str(e),
        )

    logger.info("Salary verification: %s (risk %s)", result.status.value, result.risk_level.value)
    return result
