import asyncio

import pytest

from app.loan_engine.agents.orchestrator import LoanPipeline
from app.loan_engine.models import (
    Decision,
    DocumentSet,
    KYCStatus,
    SalaryClaim,
    SalaryStatus,
)
from app.loan_engine.tools.employers import EmployerDirectory


@pytest.mark.asyncio
async def test_eligibility_without_salary_evidence_is_pending(pipeline, applicant, both_ids):
    result = await pipeline.check_eligibility(applicant, both_ids)

    assert result.kyc.status == KYCStatus.VERIFIED
    assert result.kyc.credit_score == 740
    assert result.salary is None
    assert result.underwriting.decision == Decision.PENDING
    assert result.underwriting.requires_salary_slip is True


@pytest.mark.asyncio
async def test_verified_salary_leads_to_sanction(pipeline, applicant, both_ids):
    claim = SalaryClaim(monthly_salary=45000, employer="Tech Corp India")

    result = await pipeline.verify_salary_and_underwrite(applicant, both_ids, claim)

    assert result.salary.status == SalaryStatus.VERIFIED
    assert result.kyc.extracted_data.monthly_income == 45000
    assert result.underwriting.decision == Decision.APPROVED

    record = pipeline.get_sanction_record(result.underwriting.sanction_id)
    assert record is not None
    assert record.full_name == applicant.name
    assert record.mobile == applicant.mobile
    assert record.tenure_months == 36


@pytest.mark.asyncio
async def test_missing_documents_are_rejected(pipeline, applicant):
    result = await pipeline.run(applicant, DocumentSet())

    assert result.kyc.status == KYCStatus.FAILED
    assert result.underwriting.decision == Decision.REJECTED
    assert result.underwriting.credit_score == 0


@pytest.mark.asyncio
async def test_missing_tenure_is_rejected(pipeline, applicant, both_ids):
    applicant = applicant.model_copy(update={"tenure_months": None})

    result = await pipeline.run(applicant, both_ids)

    assert result.underwriting.decision == Decision.REJECTED
    assert result.underwriting.error is not None


@pytest.mark.asyncio
async def test_concurrent_applicants_get_distinct_sanctions(pipeline, applicant, both_ids):
    claim = SalaryClaim(monthly_salary=45000, employer="Infosys Limited")
    applicants = [
        applicant.model_copy(update={"mobile": f"98765432{i:02d}"}) for i in range(10)
    ]

    results = await asyncio.gather(*(
        pipeline.verify_salary_and_underwrite(a, both_ids, claim) for a in applicants
    ))

    sanction_ids = {r.underwriting.sanction_id for r in results}
    assert len(sanction_ids) == 10
    assert len(pipeline.sanction_store) == 10
    assert {pipeline.get_sanction_record(r.underwriting.sanction_id).mobile for r in results} == {
        a.mobile for a in applicants
    }


def test_pipelines_do_not_share_state():
    first, second = LoanPipeline(), LoanPipeline()
    first.directory.upsert("HDFC Bank", {"verified": True, "industry": "Finance", "size": "Large", "credit_rating": "AA"})

    assert second.directory.lookup("HDFC Bank") is None
    assert first.sanction_store is not second.sanction_store


def test_agent_trace():
    trace = LoanPipeline.agent_trace()

    assert trace["total_steps"] == len(trace["agents"]) == 4
    assert [a["step"] for a in trace["agents"]] == [1, 2, 3, 4]
    assert trace["agents"][2]["criteria"]["min_credit_score"] == 700


@pytest.mark.asyncio
async def test_empty_directory_is_kept(applicant, both_ids):
    empty = EmployerDirectory(employers={})
    pipeline = LoanPipeline(directory=empty)
    claim = SalaryClaim(monthly_salary=45000, employer="Tech Corp India")

    result = await pipeline.verify_salary_and_underwrite(applicant, both_ids, claim)

    assert pipeline.directory is empty
    assert result.salary.status == SalaryStatus.FLAGGED
    assert "Employer not found in database" in result.salary.reasons
    assert result.underwriting.decision == Decision.PENDING
