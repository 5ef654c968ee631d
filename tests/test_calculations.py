import pytest

from app.loan_engine.models import CreditCategory, RiskLevel, ToolExecutionError, ValidationError
from app.loan_engine.tools.calculations import (
    calculate_max_loan,
    compute_dti,
    compute_emi,
    compute_max_principal,
    credit_category,
    credit_multiplier,
    format_inr,
    interest_rate_for_score,
    risk_level_for_score,
    validate_positive_number,
)


def test_compute_emi_matches_amortization_formula():
    r = 10.5 / 12 / 100
    growth = (1 + r) ** 36
    expected = 300000 * r * growth / (growth - 1)

    assert compute_emi(300000, 10.5, 36) == pytest.approx(expected)
    assert 9700 < compute_emi(300000, 10.5, 36) < 9800


def test_emi_total_repayment_exceeds_principal():
    emi = compute_emi(100000, 12, 12)
    assert emi * 12 > 100000


@pytest.mark.parametrize("principal,rate,tenure", [
    (50000, 8.5, 12),
    (300000, 10.5, 36),
    (1234567, 11.5, 60),
    (1, 9.5, 1),
])
def test_max_principal_inverts_emi(principal, rate, tenure):
    emi = compute_emi(principal, rate, tenure)
    assert compute_max_principal(emi, rate, tenure) == pytest.approx(principal, rel=1e-9)


def test_zero_principal_has_zero_emi():
    assert compute_emi(0, 10, 36) == 0


@pytest.mark.parametrize("args,field", [
    ((100000, 10, 0), "tenure_months"),
    ((100000, 0, 36), "annual_rate_percent"),
    ((-1, 10, 36), "principal"),
    ((None, 10, 36), "principal"),
    ((float("nan"), 10, 36), "principal"),
])
def test_compute_emi_rejects_invalid_input(args, field):
    with pytest.raises(ValidationError) as exc:
        compute_emi(*args)
    assert exc.value.field == field


def test_compute_emi_wraps_unexpected_errors():
    with pytest.raises(ToolExecutionError):
        compute_emi(100000, 10, 10 ** 6)


def test_compute_dti():
    result = compute_dti(9000, 30000)
    assert result["dti_ratio"] == pytest.approx(0.3)
    assert result["dti_percent"] == pytest.approx(30.0)


def test_compute_dti_requires_positive_income():
    with pytest.raises(ValidationError):
        compute_dti(9000, 0)


def test_validate_positive_number_rejects_strings_and_bools():
    with pytest.raises(ValidationError):
        validate_positive_number("100", "amount")
    with pytest.raises(ValidationError):
        validate_positive_number(True, "amount")


def test_calculate_max_loan_keeps_emi_at_half_salary():
    max_loan = calculate_max_loan(45000)
    assert compute_emi(max_loan, 10, 36) == pytest.approx(22500, abs=1)


@pytest.mark.parametrize("score,multiplier,rate", [
    (850, 0.8, 8.5),
    (800, 0.8, 8.5),
    (799, 0.7, 9.5),
    (750, 0.7, 9.5),
    (749, 0.6, 10.5),
    (700, 0.6, 10.5),
    (699, 0.5, 11.5),
])
def test_score_tiers(score, multiplier, rate):
    assert credit_multiplier(score) == multiplier
    assert interest_rate_for_score(score) == rate


@pytest.mark.parametrize("score,category,risk", [
    (780, CreditCategory.EXCELLENT, RiskLevel.LOW),
    (750, CreditCategory.EXCELLENT, RiskLevel.LOW),
    (720, CreditCategory.GOOD, RiskLevel.LOW),
    (680, CreditCategory.FAIR, RiskLevel.MEDIUM),
    (650, CreditCategory.FAIR, RiskLevel.MEDIUM),
    (620, CreditCategory.POOR, RiskLevel.HIGH),
    (0, CreditCategory.POOR, RiskLevel.HIGH),
])
def test_category_and_risk(score, category, risk):
    assert credit_category(score) == category
    assert risk_level_for_score(score) == risk


@pytest.mark.parametrize("amount,expected", [
    (0, "0"),
    (999, "999"),
    (15000, "15,000"),
    (300000, "3,00,000"),
    (12345678, "1,23,45,678"),
    (9750.4, "9,750"),
])
def test_format_inr(amount, expected):
    assert format_inr(amount) == expected
