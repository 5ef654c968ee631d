"""Underwriting Agent: final APPROVED / PENDING / REJECTED decision."""

import logging
import random
from typing import Any, Optional, Union

from ..config import CREDIT_SCORE_SEED, SANCTION_URL_PREFIX, UNDERWRITING_DELAY, simulate_latency
from ..models import (
    Decision,
    KYCStatus,
    SalaryStatus,
    SanctionRecord,
    UnderwritingRequest,
    UnderwritingResult,
)
from ..tools.calculations import (
    MAX_EMI_TO_INCOME,
    calculate_max_loan,
    compute_emi,
    credit_multiplier,
    format_inr,
    interest_rate_for_score,
    validate_positive_number,
)
from ..tools.employers import estimate_salary
from ..tools.sanctions import InMemorySanctionStore, SanctionStore, generate_sanction_id

logger = logging.getLogger(__name__)

MIN_CREDIT_SCORE = 700
CONSERVATIVE_MULTIPLIER = 0.5

# Mock bureau range, only used when no KYC score is available at all
MOCK_SCORE_LOW = 650
MOCK_SCORE_HIGH = 850


def calculate_pre_approved_limit(
    monthly_salary: float,
    credit_score: int,
    multiplier: Optional[float] = None,
) -> float:
    """Pre-approved limit = monthly salary x 12 x multiplier."""
    if multiplier is None:
        multiplier = credit_multiplier(credit_score)
    return monthly_salary * 12 * multiplier


class UnderwritingEngine:
    """
    Combines KYC and salary results with the loan terms into a decision.

    The decision starts at APPROVED and each later check can only downgrade
    it (APPROVED -> PENDING -> REJECTED). Approved decisions are written to
    the injected sanction store.
    """

    def __init__(
        self,
        sanction_store: Optional[SanctionStore] = None,
        rng: Optional[random.Random] = None,
        sanction_url_prefix: str = SANCTION_URL_PREFIX,
    ):
        self.sanction_store = sanction_store if sanction_store is not None else InMemorySanctionStore()
        self.rng = rng or random.Random(CREDIT_SCORE_SEED)
        self.sanction_url_prefix = sanction_url_prefix.rstrip("/")

    def resolve_credit_score(self, request: UnderwritingRequest) -> int:
        """The KYC score is canonical; the mock bureau score is a last resort."""
        if request.kyc_result is not None:
            return request.kyc_result.credit_score
        return self.rng.randrange(MOCK_SCORE_LOW, MOCK_SCORE_HIGH)

    async def decide(self, request: Union[UnderwritingRequest, dict[str, Any]]) -> UnderwritingResult:
        """
        Run the Underwriting Agent. Never raises: internal errors come back
        as a REJECTED result.

        Args:
            request: UnderwritingRequest (or its dict form)

        Returns:
            UnderwritingResult
        """
        try:
            if not isinstance(request, UnderwritingRequest):
                request = UnderwritingRequest.model_validate(request)
            logger.info(
                "Underwriting: analyzing application (amount %s, tenure %s)",
                request.loan_amount, request.tenure_months,
            )
            await simulate_latency(UNDERWRITING_DELAY)
            result = self._decide(request)
        except Exception as e:
            logger.exception("Underwriting error")
            return UnderwritingResult(
                decision=Decision.REJECTED,
                reasons=[f"Internal underwriting error: {e}"],
                error=str(e),
            )

        logger.info(
            "Underwriting decision: %s (credit score %s, limit %s)",
            result.decision.value, result.credit_score, result.pre_approved_limit,
        )
        return result

    def _decide(self, request: UnderwritingRequest) -> UnderwritingResult:
        validate_positive_number(request.loan_amount, "loan_amount")
        validate_positive_number(request.tenure_months, "tenure_months")

        loan_amount = request.loan_amount
        kyc_result = request.kyc_result
        salary_result = request.salary_result
        salary_verified = salary_result is not None and salary_result.status == SalaryStatus.VERIFIED

        reasons = []
        decision = Decision.APPROVED
        requires_salary_slip = False

        # Step 1-2: credit score gate
        credit_score = self.resolve_credit_score(request)
        if credit_score < MIN_CREDIT_SCORE:
            reasons.append(f"Credit score too low ({credit_score} < {MIN_CREDIT_SCORE})")
            return UnderwritingResult(
                decision=Decision.REJECTED,
                reasons=reasons,
                credit_score=credit_score,
                pre_approved_limit=0,
            )

        # Step 3: pre-approved limit
        if salary_verified:
            monthly_salary = salary_result.details.monthly_salary
            pre_approved_limit = calculate_pre_approved_limit(monthly_salary, credit_score)
            reasons.append(
                f"Pre-approved limit calculated from verified salary: ₹{format_inr(monthly_salary)}"
            )
        else:
            monthly_salary = estimate_salary(request.city)
            pre_approved_limit = calculate_pre_approved_limit(
                monthly_salary, credit_score, CONSERVATIVE_MULTIPLIER,
            )
            reasons.append("Pre-approved limit estimated (salary slip not provided)")

        # Step 4: requested amount against the limit
        if loan_amount <= pre_approved_limit:
            reasons.append(f"Loan amount within pre-approved limit (₹{format_inr(pre_approved_limit)})")
        elif loan_amount <= pre_approved_limit * 2:
            if salary_verified:
                max_eligible = salary_result.details.max_eligible_loan
                if max_eligible is None:
                    max_eligible = calculate_max_loan(monthly_salary)
                if loan_amount <= max_eligible:
                    reasons.append("Approved based on verified salary slip")
                else:
                    decision = decision.worsen(Decision.REJECTED)
                    reasons.append(
                        f"Requested amount exceeds maximum eligible (₹{format_inr(max_eligible)})"
                    )
            else:
                decision = decision.worsen(Decision.PENDING)
                requires_salary_slip = True
                reasons.append("Salary slip required for this loan amount")
        else:
            over = (loan_amount / pre_approved_limit - 1) * 100
            decision = decision.worsen(Decision.REJECTED)
            reasons.append(f"Requested amount significantly exceeds eligibility ({over:.0f}% over limit)")

        # Step 5: KYC failure overrides everything before it
        if kyc_result is not None and kyc_result.status == KYCStatus.FAILED:
            decision = decision.worsen(Decision.REJECTED)
            reasons.append("KYC verification failed")
            reasons.extend(kyc_result.reasons)

        # Step 6: affordability
        interest_rate = interest_rate_for_score(credit_score)
        emi = compute_emi(loan_amount, interest_rate, request.tenure_months)
        max_allowed_emi = monthly_salary * MAX_EMI_TO_INCOME
        if decision == Decision.APPROVED and emi > max_allowed_emi:
            decision = decision.worsen(Decision.REJECTED)
            reasons.append(
                f"EMI (₹{format_inr(emi)}) exceeds 50% of monthly income (₹{format_inr(max_allowed_emi)})"
            )

        # Step 7: sanction
        sanction_id = None
        sanction_url = None
        if decision == Decision.APPROVED:
            sanction_id = generate_sanction_id()
            sanction_url = f"{self.sanction_url_prefix}/{sanction_id}"
            self.sanction_store.put(sanction_id, SanctionRecord(
                full_name=request.full_name,
                mobile=request.mobile,
                loan_amount=loan_amount,
                tenure_months=request.tenure_months,
                emi=emi,
                interest_rate=interest_rate,
                credit_score=credit_score,
            ))
            logger.info("Sanction %s issued", sanction_id)

        return UnderwritingResult(
            decision=decision,
            reasons=reasons,
            credit_score=credit_score,
            pre_approved_limit=round(pre_approved_limit),
            emi=round(emi) if decision == Decision.APPROVED else None,
            max_allowed_emi=round(max_allowed_emi),
            interest_rate=interest_rate,
            sanction_id=sanction_id,
            sanction_url=sanction_url,
            requires_salary_slip=requires_salary_slip,
        )


async def underwrite(
    loan_amount: float,
    tenure_months: int,
    kyc_result=None,
    salary_result=None,
    mobile: Optional[str] = None,
    full_name: Optional[str] = None,
    city: Optional[str] = None,
    engine: Optional[UnderwritingEngine] = None,
) -> UnderwritingResult:
    """Functional entry point for a single underwriting decision."""
    engine = engine if engine is not None else UnderwritingEngine()
    return await engine.decide({
        "loan_amount": loan_amount,
        "tenure_months": tenure_months,
        "kyc_result": kyc_result,
        "salary_result": salary_result,
        "mobile": mobile,
        "full_name": full_name,
        "city": city,
    })
