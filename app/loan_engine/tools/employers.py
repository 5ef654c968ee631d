"""Employer directory and salary reference tables (mocked, static data)."""

from typing import Optional

from ..models import EmployerInfo, utc_now_iso

# Mock employer database - stands in for a real employer verification service
DEFAULT_EMPLOYERS = {
    "Tech Corp India": {"verified": True, "industry": "IT", "size": "Large", "credit_rating": "A"},
    "Infosys Limited": {"verified": True, "industry": "IT", "size": "Large", "credit_rating": "A+"},
    "TCS": {"verified": True, "industry": "IT", "size": "Large", "credit_rating": "A+"},
    "Wipro": {"verified": True, "industry": "IT", "size": "Large", "credit_rating": "A"},
    "Small Startup Pvt Ltd": {"verified": False, "industry": "IT", "size": "Small", "credit_rating": "B"},
}

# Expected monthly salary band per industry
INDUSTRY_SALARY_RANGES = {
    "IT": (25000, 200000),
    "Finance": (30000, 150000),
    "Manufacturing": (15000, 100000),
    "Retail": (12000, 60000),
}

# City-based monthly salary estimates, used when no salary slip is verified
CITY_SALARY_ESTIMATES = {
    "Delhi": 40000,
    "Mumbai": 45000,
    "Bangalore": 42000,
    "Hyderabad": 38000,
    "Chennai": 36000,
    "Pune": 38000,
}
DEFAULT_SALARY_ESTIMATE = 30000


class EmployerDirectory:
    """Lookup of employer name -> EmployerInfo.

    Each instance owns its own table, so callers (and tests) can inject a
    directory seeded with whatever fixtures they need.
    """

    def __init__(
        self,
        employers: Optional[dict] = None,
        salary_ranges: Optional[dict] = None,
    ):
        source = DEFAULT_EMPLOYERS if employers is None else employers
        self._employers: dict[str, EmployerInfo] = {
            name: info if isinstance(info, EmployerInfo) else EmployerInfo(**info)
            for name, info in source.items()
        }
        self.salary_ranges = dict(INDUSTRY_SALARY_RANGES if salary_ranges is None else salary_ranges)

    def lookup(self, employer_name: Optional[str]) -> Optional[EmployerInfo]:
        """Return the employer's record, or None when unknown."""
        if not employer_name:
            return None
        return self._employers.get(employer_name)

    def upsert(self, employer_name: str, info: dict) -> EmployerInfo:
        """Add or replace an employer. Seeding/testing only."""
        record = EmployerInfo(**{**info, "added_at": utc_now_iso()})
        self._employers[employer_name] = record
        return record

    def salary_range(self, industry: str) -> Optional[tuple]:
        return self.salary_ranges.get(industry)

    def __contains__(self, employer_name: str) -> bool:
        return employer_name in self._employers

    def __len__(self) -> int:
        return len(self._employers)


def estimate_salary(city: Optional[str] = None) -> int:
    """Estimate a monthly salary from the applicant's city."""
    if not city:
        return DEFAULT_SALARY_ESTIMATE
    return CITY_SALARY_ESTIMATES.get(city.strip().title(), DEFAULT_SALARY_ESTIMATE)
