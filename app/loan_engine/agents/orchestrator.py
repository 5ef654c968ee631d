"""Orchestrator that runs the KYC, Salary and Underwriting agents in order."""

import logging
from typing import Any, Optional

from ..models import (
    ApplicantRecord,
    DocumentSet,
    PipelineResult,
    SalaryClaim,
    SanctionRecord,
    UnderwritingRequest,
)
from ..tools.employers import EmployerDirectory
from ..tools.sanctions import InMemorySanctionStore, SanctionStore
from .kyc import verify_kyc
from .salary import MINIMUM_SALARY, verify_salary
from .underwriting import MIN_CREDIT_SCORE, UnderwritingEngine

logger = logging.getLogger(__name__)


AGENT_TRACE = [
    {
        "agent": "Sales Agent",
        "step": 1,
        "description": "Collects customer information and loan requirements",
        "actions": [
            "Gather personal details",
            "Capture loan amount and tenure",
            "Initial eligibility screening",
        ],
    },
    {
        "agent": "Verification Agent",
        "step": 2,
        "description": "Verifies customer identity and documents",
        "actions": [
            "KYC document presence and format checks",
            "Document type detection",
            "Salary and employer verification",
        ],
        "sub_agents": ["Document Agent", "KYC Agent", "Salary Verification Agent"],
    },
    {
        "agent": "Underwriting Agent",
        "step": 3,
        "description": "Makes final loan approval decision",
        "actions": [
            "Credit score evaluation",
            "Calculate pre-approved limit",
            "Debt-to-income ratio analysis",
            "Final approval/rejection decision",
        ],
        "criteria": {
            "min_credit_score": MIN_CREDIT_SCORE,
            "max_dti": "50%",
            "min_monthly_salary": MINIMUM_SALARY,
        },
    },
    {
        "agent": "Sanction Agent",
        "step": 4,
        "description": "Issues the sanction record and letter for approved loans",
        "actions": [
            "Generate unique sanction ID",
            "Store sanction details",
            "Render PDF sanction letter",
        ],
    },
]


class LoanPipeline:
    """
    Wires the agents to shared collaborators: the employer directory, the
    sanction store and the underwriting engine.

    Within one applicant the stages are sequential because each consumes the
    previous one's result. Separate applicants share no mutable state apart
    from the sanction store, so their pipelines can run concurrently.
    """

    def __init__(
        self,
        directory: Optional[EmployerDirectory] = None,
        sanction_store: Optional[SanctionStore] = None,
        engine: Optional[UnderwritingEngine] = None,
    ):
        self.directory = directory if directory is not None else EmployerDirectory()
        if engine is None:
            engine = UnderwritingEngine(
                sanction_store if sanction_store is not None else InMemorySanctionStore()
            )
        self.engine = engine
        self.sanction_store = engine.sanction_store

    async def run(
        self,
        applicant: ApplicantRecord,
        documents: DocumentSet,
        claim: Optional[SalaryClaim] = None,
        city: Optional[str] = None,
    ) -> PipelineResult:
        """
        Run KYC, then salary verification when a claim is given, then underwriting.

        Args:
            applicant: Applicant identity fields and requested loan
            documents: Uploaded document flags
            claim: Salary claim to verify, if any
            city: Applicant city for the salary estimate

        Returns:
            PipelineResult with every stage's result
        """
        logger.info("Pipeline started for %s", applicant.mobile or "unknown applicant")

        salary_result = None
        if claim is not None:
            salary_result = await verify_salary(claim, applicant.loan_amount, self.directory)
            if applicant.monthly_income is None and claim.monthly_salary is not None:
                applicant = applicant.model_copy(update={"monthly_income": claim.monthly_salary})

        kyc_result = await verify_kyc(applicant, documents)

        underwriting_result = await self.engine.decide(UnderwritingRequest(
            loan_amount=applicant.loan_amount,
            tenure_months=applicant.tenure_months or 0,
            kyc_result=kyc_result,
            salary_result=salary_result,
            mobile=applicant.mobile,
            full_name=applicant.name,
            city=city,
        ))

        logger.info("Pipeline finished: %s", underwriting_result.decision.value)
        return PipelineResult(kyc=kyc_result, salary=salary_result, underwriting=underwriting_result)

    async def check_eligibility(
        self,
        applicant: ApplicantRecord,
        documents: DocumentSet,
        city: Optional[str] = None,
    ) -> PipelineResult:
        """KYC followed by underwriting, with no salary evidence yet."""
        return await self.run(applicant, documents, claim=None, city=city)

    async def verify_salary_and_underwrite(
        self,
        applicant: ApplicantRecord,
        documents: DocumentSet,
        claim: SalaryClaim,
        city: Optional[str] = None,
    ) -> PipelineResult:
        """Salary verification, KYC, then underwriting with the salary result."""
        return await self.run(applicant, documents, claim=claim, city=city)

    def get_sanction_record(self, sanction_id: str) -> Optional[SanctionRecord]:
        return self.sanction_store.get(sanction_id)

    @staticmethod
    def agent_trace() -> dict[str, Any]:
        return {
            "workflow": "Multi-Agent Loan Approval System",
            "total_steps": len(AGENT_TRACE),
            "agents": AGENT_TRACE,
        }
