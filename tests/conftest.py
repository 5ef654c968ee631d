import random

import pytest
from fastapi.testclient import TestClient

from app.loan_engine.agents.orchestrator import LoanPipeline
from app.loan_engine.agents.underwriting import UnderwritingEngine
from app.loan_engine.main import app, get_letter_service, get_pipeline
from app.loan_engine.models import (
    ApplicantRecord,
    CreditCategory,
    DocumentSet,
    KYCResult,
    KYCStatus,
    RiskLevel,
    SalaryDetails,
    SalaryResult,
    SalaryStatus,
)
from app.loan_engine.sanction_letter import SanctionLetterService
from app.loan_engine.tools.calculations import calculate_max_loan
from app.loan_engine.tools.employers import EmployerDirectory
from app.loan_engine.tools.sanctions import InMemorySanctionStore


@pytest.fixture
def directory():
    return EmployerDirectory()


@pytest.fixture
def sanction_store():
    return InMemorySanctionStore()


@pytest.fixture
def engine(sanction_store):
    return UnderwritingEngine(sanction_store, rng=random.Random(42))


@pytest.fixture
def pipeline(directory, engine):
    return LoanPipeline(directory=directory, engine=engine)


@pytest.fixture
def applicant():
    return ApplicantRecord(
        name="Abheek Sehgal",
        pan="ABCDE1234F",
        aadhar="1234 5678 9012",
        address="Connaught Place, Delhi",
        loan_amount=300000,
        tenure_months=36,
        mobile="9876543210",
    )


@pytest.fixture
def both_ids():
    return DocumentSet(pan_card="uploads/pan.jpg", aadhar_card="uploads/aadhar.jpg")


def make_kyc(credit_score=740, status=KYCStatus.VERIFIED, reasons=None):
    return KYCResult(
        status=status,
        confidence=0.9,
        reasons=reasons or ["All checks passed - Application verified"],
        credit_score=credit_score,
        credit_category=CreditCategory.GOOD,
        risk_level=RiskLevel.LOW,
    )


def make_salary(monthly_salary=45000, status=SalaryStatus.VERIFIED, max_eligible_loan=None):
    if max_eligible_loan is None:
        max_eligible_loan = calculate_max_loan(monthly_salary)
    return SalaryResult(
        status=status,
        risk_level=RiskLevel.LOW,
        reasons=["All salary verification checks passed"],
        details=SalaryDetails(
            monthly_salary=monthly_salary,
            employer="Tech Corp India",
            employer_verified=True,
            max_eligible_loan=max_eligible_loan,
            minimum_salary_met=True,
        ),
    )


@pytest.fixture
def kyc_factory():
    return make_kyc


@pytest.fixture
def salary_factory():
    return make_salary


@pytest.fixture
def client(pipeline, tmp_path):
    letters = SanctionLetterService(tmp_path / "letters")
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_letter_service] = lambda: letters

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
