"""Data models for the loan underwriting pipeline."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AgentError(Exception):
    """Base exception for agent errors."""
    pass


class ToolExecutionError(AgentError):
    """Error during tool execution."""
    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' failed: {message}")


class ValidationError(AgentError):
    """Error during argument validation."""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for '{field}': {message}")


class SanctionStoreError(AgentError):
    """Error writing to the sanction record store."""
    def __init__(self, sanction_id: str, message: str):
        self.sanction_id = sanction_id
        super().__init__(f"Sanction '{sanction_id}': {message}")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _OrderedEnum(str, Enum):
    """String enum whose members are ordered by declaration, least severe first."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def worsen(self, other):
        """Return the more severe of the two values. Never improves."""
        return other if other.rank > self.rank else self


class SalaryStatus(_OrderedEnum):
    VERIFIED = "VERIFIED"
    FLAGGED = "FLAGGED"
    FAILED = "FAILED"


class Decision(_OrderedEnum):
    APPROVED = "APPROVED"
    PENDING = "PENDING"
    REJECTED = "REJECTED"


class RiskLevel(_OrderedEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class KYCStatus(str, Enum):
    VERIFIED = "VERIFIED"
    FAILED = "FAILED"


class CreditCategory(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class DocumentType(str, Enum):
    PAN = "pan"
    AADHAR = "aadhar"
    SALARY_SLIP = "salary-slip"
    OTHER = "other"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )


# ---- inputs ----

class ApplicantRecord(CamelModel):
    """Applicant identity fields and the loan being requested."""
    name: Optional[str] = None
    pan: Optional[str] = None
    aadhar: Optional[str] = None
    address: Optional[str] = None
    loan_amount: float = 0
    tenure_months: Optional[int] = None
    mobile: Optional[str] = None
    monthly_income: Optional[float] = None
    employer: Optional[str] = None


class DocumentSet(CamelModel):
    """Which identity/income documents were uploaded (a flag or a stored path)."""
    pan_card: Optional[Union[bool, str]] = None
    aadhar_card: Optional[Union[bool, str]] = None
    salary_slip: Optional[Union[bool, str]] = None

    @property
    def has_pan(self) -> bool:
        return bool(self.pan_card)

    @property
    def has_aadhar(self) -> bool:
        return bool(self.aadhar_card)

    @property
    def has_salary_slip(self) -> bool:
        return bool(self.salary_slip)


class SalaryClaim(CamelModel):
    monthly_salary: Optional[float] = None
    employer: Optional[str] = None


class EmployerInfo(CamelModel):
    verified: bool
    industry: str
    size: str
    credit_rating: str
    added_at: Optional[str] = None


# ---- agent results ----

class DocumentsProvided(CamelModel):
    pan: bool = False
    aadhar: bool = False
    salary: bool = False


class KYCExtractedData(CamelModel):
    monthly_income: Optional[float] = None
    documents_provided: DocumentsProvided = Field(default_factory=DocumentsProvided)


class KYCResult(CamelModel):
    """Results from the KYC Agent."""
    status: KYCStatus
    confidence: float = Field(ge=0.0, le=1.0)
    reasons: list[str]
    credit_score: int
    credit_category: CreditCategory
    risk_level: RiskLevel
    extracted_data: KYCExtractedData = Field(default_factory=KYCExtractedData)
    verified_at: str = Field(default_factory=utc_now_iso)
    error: Optional[str] = None


class SalaryDetails(CamelModel):
    monthly_salary: Optional[float] = None
    employer: Optional[str] = None
    employer_verified: bool = False
    debt_to_income_ratio: Optional[str] = None
    max_eligible_loan: Optional[int] = None
    minimum_salary_met: bool = False


class SalaryResult(CamelModel):
    """Results from the Salary Verification Agent."""
    status: SalaryStatus
    risk_level: RiskLevel
    reasons: list[str]
    details: SalaryDetails = Field(default_factory=SalaryDetails)
    error: Optional[str] = None


class UnderwritingRequest(CamelModel):
    """Everything the Underwriting Agent needs for one decision."""
    loan_amount: float
    tenure_months: int
    kyc_result: Optional[KYCResult] = None
    salary_result: Optional[SalaryResult] = None
    mobile: Optional[str] = None
    full_name: Optional[str] = None
    city: Optional[str] = None


class UnderwritingResult(CamelModel):
    """Final decision from the Underwriting Agent."""
    decision: Decision
    reasons: list[str]
    credit_score: Optional[int] = None
    pre_approved_limit: int = 0
    emi: Optional[int] = None
    max_allowed_emi: Optional[int] = None
    interest_rate: Optional[float] = None
    sanction_id: Optional[str] = None
    sanction_url: Optional[str] = None
    requires_salary_slip: bool = False
    error: Optional[str] = None


class SanctionRecord(CamelModel):
    """Snapshot of an approved loan, kept for sanction-letter rendering."""
    model_config = ConfigDict(frozen=True)

    full_name: Optional[str] = None
    mobile: Optional[str] = None
    loan_amount: float
    tenure_months: int
    emi: float
    interest_rate: float
    credit_score: int
    approved_at: str = Field(default_factory=utc_now_iso)


# ---- documents ----

class DocumentClassification(CamelModel):
    filename: Optional[str] = None
    document_type: DocumentType
    source: str  # "filename", "content" or "none"


class ExtractedDocument(CamelModel):
    name: Optional[str] = None
    employer: Optional[str] = None
    monthly_salary: Optional[float] = None
    pan: Optional[str] = None
    address: Optional[str] = None
    document_type: str


class ExtractionResult(CamelModel):
    success: bool
    data: Optional[ExtractedDocument] = None
    confidence: Optional[float] = None
    error: Optional[str] = None
    details: Optional[str] = None
    validation_errors: list[str] = Field(default_factory=list)


# ---- pipeline ----

class PipelineResult(CamelModel):
    kyc: KYCResult
    salary: Optional[SalaryResult] = None
    underwriting: UnderwritingResult


# Sample applicant with both identity documents and no salary slip,
# which leaves a 3 lakh request pending on salary evidence.
SAMPLE_APPLICANT = ApplicantRecord(
    name="Abheek Sehgal",
    pan="ABCDE1234F",
    aadhar="1234 5678 9012",
    address="Connaught Place, Delhi",
    loan_amount=300000,
    tenure_months=36,
    mobile="9876543210",
)

SAMPLE_DOCUMENTS = DocumentSet(
    pan_card="uploads/pan_card.jpg",
    aadhar_card="uploads/aadhar_card.jpg",
)
