"""
Companies House provider.

Queries the Companies House public data API when COMPANIES_HOUSE_API_KEY is
set; otherwise serves a small reference dataset.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import httpx
import logging

from passport.config import settings
from passport.schemas.lookups import (
    CompaniesPayload, CompaniesRequest, Company, CompanyAddress, CompanyFiling, CompanyOfficer
)
from passport.services.http_client import ExternalApiClient
from passport.services.providers.base import LookupProvider

logger = logging.getLogger(__name__)


class CompaniesProvider(LookupProvider):
    """Company profiles related to a property's address."""

    name = "companies"
    ttl = 7 * 24 * 60 * 60

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.client = None
        if api_key:
            # Companies House uses the key as the basic-auth username with an empty password
            self.client = ExternalApiClient(
                provider="Companies House",
                base_url=settings.companies_house_api_url,
                auth=httpx.BasicAuth(api_key, ""),
                transport=transport,
            )

    def cache_key(self, request: CompaniesRequest) -> str:
        return f"companies:{request.identifier}:{request.limit}"

    async def fetch(self, request: CompaniesRequest) -> Dict:
        if self.client is None:
            logger.warning("Companies House API key not configured, returning sample data")
            companies = sample_companies(request.postcode)
            total = len(companies)
        elif request.company_number:
            company = await self._fetch_company(request.company_number)
            companies = [company] if company else []
            total = len(companies)
        else:
            companies, total = await self._search(request.company_name or request.postcode or "", request.limit)

        payload = CompaniesPayload(
            companies=companies[:request.limit],
            total=total,
            last_updated=datetime.now(timezone.utc),
        )
        logger.info(
            "Companies data fetched",
            extra={"companies_count": len(payload.companies), "total_available": total}
        )
        return payload.model_dump(mode="json", by_alias=True)

    async def _fetch_company(self, company_number: str) -> Optional[Company]:
        profile = await self.client.get_json(f"/company/{company_number}", allow_not_found=True)
        if profile is None:
            return None

        officers = await self.client.get_json(f"/company/{company_number}/officers", allow_not_found=True) or {}
        filings = await self.client.get_json(
            f"/company/{company_number}/filing-history", params={"items_per_page": 10}, allow_not_found=True
        ) or {}

        return Company(
            company_number=profile.get("company_number", company_number),
            company_name=profile.get("company_name", ""),
            status=profile.get("company_status", ""),
            type=profile.get("type", ""),
            date_of_creation=profile.get("date_of_creation"),
            registered_office_address=_address(profile.get("registered_office_address") or {}),
            sic_codes=profile.get("sic_codes") or [],
            officers=[_officer(item) for item in officers.get("items", [])],
            filing_history=[_filing(item) for item in filings.get("items", [])],
        )

    async def _search(self, query: str, limit: int) -> tuple:
        data = await self.client.get_json(
            "/search/companies", params={"q": query, "items_per_page": limit}
        ) or {}
        companies = [
            Company(
                company_number=item.get("company_number", ""),
                company_name=item.get("title", ""),
                status=item.get("company_status", ""),
                type=item.get("company_type", ""),
                date_of_creation=item.get("date_of_creation"),
                registered_office_address=_address(item.get("address") or {}),
            )
            for item in data.get("items", [])
        ]
        return companies, data.get("total_results", len(companies))


def _address(data: Dict[str, Any]) -> CompanyAddress:
    return CompanyAddress(
        address_line1=data.get("address_line_1") or data.get("premises") or "",
        address_line2=data.get("address_line_2"),
        locality=data.get("locality"),
        postal_code=data.get("postal_code"),
        country=data.get("country"),
    )


def _officer(data: Dict[str, Any]) -> CompanyOfficer:
    return CompanyOfficer(
        name=data.get("name", ""),
        officer_role=data.get("officer_role", ""),
        appointed_on=data.get("appointed_on"),
        resigned_on=data.get("resigned_on"),
        nationality=data.get("nationality"),
        occupation=data.get("occupation"),
        date_of_birth=data.get("date_of_birth"),
        country_of_residence=data.get("country_of_residence"),
    )


def _filing(data: Dict[str, Any]) -> CompanyFiling:
    return CompanyFiling(
        filing_id=data.get("transaction_id", ""),
        filing_type=data.get("type", ""),
        filing_date=data.get("date", ""),
        description=data.get("description", ""),
        category=data.get("category"),
        subcategory=data.get("subcategory"),
        pages=data.get("pages"),
    )


def sample_companies(postcode: Optional[str]) -> List[Company]:
    """Reference companies registered at the caller's postcode."""
    postal_code = postcode or "EX1 1AB"
    return [
        Company(
            company_number="12345678",
            company_name="Example Property Management Ltd",
            status="Active",
            type="Private Limited Company",
            date_of_creation="2020-01-15",
            registered_office_address=CompanyAddress(
                address_line1="123 Business Street",
                address_line2="Suite 100",
                locality="Business District",
                postal_code=postal_code,
                country="England",
            ),
            sic_codes=["68310", "68201"],
            officers=[
                CompanyOfficer(
                    name="John Smith",
                    officer_role="Director",
                    appointed_on="2020-01-15",
                    nationality="British",
                    occupation="Property Manager",
                    date_of_birth={"month": 6, "year": 1985},
                    country_of_residence="England",
                ),
                CompanyOfficer(
                    name="Jane Doe",
                    officer_role="Company Secretary",
                    appointed_on="2020-01-15",
                    nationality="British",
                    occupation="Secretary",
                    date_of_birth={"month": 3, "year": 1990},
                    country_of_residence="England",
                ),
            ],
            filing_history=[
                CompanyFiling(
                    filing_id="filing1",
                    filing_type="Confirmation Statement",
                    filing_date="2023-01-15",
                    description="Confirmation statement made on 15/01/23 with no updates",
                    category="Annual Return",
                    subcategory="Confirmation Statement",
                    pages=1,
                ),
                CompanyFiling(
                    filing_id="filing2",
                    filing_type="Annual Return",
                    filing_date="2022-01-15",
                    description="Annual return made up to 15/01/22",
                    category="Annual Return",
                    pages=2,
                ),
            ],
        ),
        Company(
            company_number="87654321",
            company_name="Local Development Company Ltd",
            status="Active",
            type="Private Limited Company",
            date_of_creation="2018-06-20",
            registered_office_address=CompanyAddress(
                address_line1="456 Development Road",
                locality="Industrial Estate",
                postal_code=postal_code,
                country="England",
            ),
            sic_codes=["41100", "41201"],
            officers=[
                CompanyOfficer(
                    name="Robert Johnson",
                    officer_role="Director",
                    appointed_on="2018-06-20",
                    nationality="British",
                    occupation="Developer",
                    date_of_birth={"month": 9, "year": 1975},
                    country_of_residence="England",
                ),
            ],
            filing_history=[
                CompanyFiling(
                    filing_id="filing3",
                    filing_type="Confirmation Statement",
                    filing_date="2023-06-20",
                    description="Confirmation statement made on 20/06/23 with updates",
                    category="Annual Return",
                    subcategory="Confirmation Statement",
                    pages=1,
                ),
            ],
        ),
    ]
