"""Deterministic calculation tools for loan verification and underwriting."""

from ..models import CreditCategory, RiskLevel, ToolExecutionError, ValidationError

# Reference terms used to size a salary claim against a requested loan
REFERENCE_ANNUAL_RATE = 10.0  # percent
REFERENCE_TENURE_MONTHS = 36
MAX_EMI_TO_INCOME = 0.5


def validate_positive_number(value: float, field_name: str) -> None:
    """Validate that a number is positive and non-zero for division."""
    if value is None:
        raise ValidationError(field_name, "Value cannot be None")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field_name, f"Expected number, got {type(value).__name__}")
    if value != value:
        raise ValidationError(field_name, "Value cannot be NaN")
    if value <= 0:
        raise ValidationError(field_name, f"Value must be positive, got {value}")


def validate_non_negative_number(value: float, field_name: str) -> None:
    if value is None:
        raise ValidationError(field_name, "Value cannot be None")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field_name, f"Expected number, got {type(value).__name__}")
    if value != value or value < 0:
        raise ValidationError(field_name, f"Value must be non-negative, got {value}")


def _monthly_rate(annual_rate_percent: float) -> float:
    return annual_rate_percent / 12 / 100


def compute_emi(principal: float, annual_rate_percent: float, tenure_months: int) -> float:
    """Calculate the equated monthly installment of an amortizing loan.

    EMI = P * r * (1 + r)^n / ((1 + r)^n - 1), with r the monthly rate.

    Args:
        principal: Loan principal
        annual_rate_percent: Annual interest rate as a percentage (10.5 means 10.5%)
        tenure_months: Number of monthly installments

    Returns:
        Unrounded EMI

    Raises:
        ValidationError: If any argument is missing or out of range
        ToolExecutionError: If calculation fails
    """
    try:
        validate_non_negative_number(principal, "principal")
        validate_positive_number(annual_rate_percent, "annual_rate_percent")
        validate_positive_number(tenure_months, "tenure_months")

        r = _monthly_rate(annual_rate_percent)
        growth = (1 + r) ** tenure_months
        return principal * r * growth / (growth - 1)
    except ValidationError:
        raise
    except Exception as e:
        raise ToolExecutionError("compute_emi", str(e))


def compute_max_principal(max_emi: float, annual_rate_percent: float, tenure_months: int) -> float:
    """Invert the EMI formula: the largest principal whose EMI equals max_emi.

    P = EMI * ((1 + r)^n - 1) / (r * (1 + r)^n)
    """
    try:
        validate_non_negative_number(max_emi, "max_emi")
        validate_positive_number(annual_rate_percent, "annual_rate_percent")
        validate_positive_number(tenure_months, "tenure_months")

        r = _monthly_rate(annual_rate_percent)
        growth = (1 + r) ** tenure_months
        return max_emi * (growth - 1) / (r * growth)
    except ValidationError:
        raise
    except Exception as e:
        raise ToolExecutionError("compute_max_principal", str(e))


def compute_dti(monthly_emi: float, monthly_income: float) -> dict:
    """Calculate debt-to-income ratio for a single monthly obligation.

    Args:
        monthly_emi: Monthly installment the applicant would owe
        monthly_income: Monthly income

    Returns:
        Dictionary with dti_ratio and dti_percent (unrounded)

    Raises:
        ValidationError: If income is zero or negative
        ToolExecutionError: If calculation fails
    """
    try:
        # Validate income to prevent division by zero
        validate_positive_number(monthly_income, "monthly_income")
        validate_non_negative_number(monthly_emi, "monthly_emi")

        ratio = monthly_emi / monthly_income
        return {
            "dti_ratio": ratio,
            "dti_percent": 100 * ratio,
        }
    except ValidationError:
        raise
    except Exception as e:
        raise ToolExecutionError("compute_dti", str(e))


def calculate_max_loan(
    monthly_salary: float,
    tenure_months: int = REFERENCE_TENURE_MONTHS,
    annual_rate_percent: float = REFERENCE_ANNUAL_RATE,
) -> int:
    """Largest loan whose EMI stays within half of the monthly salary."""
    max_emi = monthly_salary * MAX_EMI_TO_INCOME
    return round(compute_max_principal(max_emi, annual_rate_percent, tenure_months))


def credit_multiplier(credit_score: int) -> float:
    """Share of annual salary that can be pre-approved for a credit score."""
    if credit_score >= 800:
        return 0.8
    if credit_score >= 750:
        return 0.7
    if credit_score >= 700:
        return 0.6
    return 0.5


def interest_rate_for_score(credit_score: int) -> float:
    """Annual interest rate (percent) offered for a credit score."""
    if credit_score >= 800:
        return 8.5
    if credit_score >= 750:
        return 9.5
    if credit_score >= 700:
        return 10.5
    return 11.5


def credit_category(credit_score: int) -> CreditCategory:
    if credit_score >= 750:
        return CreditCategory.EXCELLENT
    if credit_score >= 700:
        return CreditCategory.GOOD
    if credit_score >= 650:
        return CreditCategory.FAIR
    return CreditCategory.POOR


def risk_level_for_score(credit_score: int) -> RiskLevel:
    if credit_score >= 700:
        return RiskLevel.LOW
    if credit_score >= 650:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def format_inr(amount: float) -> str:
    """Format an amount with Indian digit grouping, e.g. 1234567 -> '12,34,567'."""
    negative = amount < 0
    digits = str(round(abs(amount)))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"-{digits}" if negative else digits
