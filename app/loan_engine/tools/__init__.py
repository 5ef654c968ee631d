# Tools module
from .calculations import (
    compute_emi,
    compute_max_principal,
    compute_dti,
    calculate_max_loan,
    credit_multiplier,
    interest_rate_for_score,
    format_inr,
)
from .employers import EmployerDirectory, estimate_salary
from .sanctions import InMemorySanctionStore, SanctionStore, generate_sanction_id

__all__ = [
    "compute_emi",
    "compute_max_principal",
    "compute_dti",
    "calculate_max_loan",
    "credit_multiplier",
    "interest_rate_for_score",
    "format_inr",
    "EmployerDirectory",
    "estimate_salary",
    "InMemorySanctionStore",
    "SanctionStore",
    "generate_sanction_id",
]
