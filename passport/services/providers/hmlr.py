"""
HM Land Registry title provider.
"""

from typing import Any, Dict, Optional
import httpx
import logging

from passport.config import settings
from passport.schemas.lookups import (
    HMLRCharge, HMLRData, HMLRRequest, HMLRRestriction, HMLRTransaction
)
from passport.services.cache import CacheManager
from passport.services.http_client import ExternalApiClient
from passport.services.providers.base import LookupProvider
from passport.utils.exceptions import ExternalAPIError

logger = logging.getLogger(__name__)


class HMLRProvider(LookupProvider):
    """
    Title register and price-paid data for a property.

    With HMLR_API_KEY configured, the title is fetched by number or found by
    postcode search; without it a reference title is returned.
    """

    name = "hmlr"
    ttl = 2 * 60 * 60

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.client = None
        if api_key:
            self.client = ExternalApiClient(
                provider="HMLR",
                base_url=settings.hmlr_api_base_url,
                headers={"Authorization": f"Bearer {api_key}"},
                transport=transport,
            )

    def cache_key(self, request: HMLRRequest) -> str:
        return CacheManager.generate_cache_key("hmlr", request.model_dump(by_alias=True))

    async def fetch(self, request: HMLRRequest) -> Dict:
        if self.client is None:
            logger.warning("HMLR API key not configured, returning sample data")
            data = sample_title(request)
        elif request.title_number:
            data = await self._fetch_by_title_number(request.title_number)
        else:
            data = await self._search_by_postcode(request)

        logger.info("HMLR data fetched", extra={"title_number": data.title_number, "tenure": data.tenure})
        return data.model_dump(mode="json", by_alias=True)

    async def _fetch_by_title_number(self, title_number: str) -> HMLRData:
        response = await self.client.get_json(f"/title/{title_number}")
        if not response or not response.get("title"):
            raise ExternalAPIError("HMLR", "No title data found for the specified title number")
        return _title(response["title"])

    async def _search_by_postcode(self, request: HMLRRequest) -> HMLRData:
        params = {"postcode": request.postcode.replace(" ", "").upper()}
        if request.address:
            params["address"] = request.address

        response = await self.client.get_json("/search", params=params)
        results = (response or {}).get("results") or []
        if not results:
            raise ExternalAPIError("HMLR", "No HMLR data found for the specified property")

        # First result is the most relevant match
        return await self._fetch_by_title_number(results[0]["titleNumber"])


def _to_float(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    return float(value)


def _title(title: Dict[str, Any]) -> HMLRData:
    """Map an upstream title record; `newBuild` arrives as "Y"/"N"."""
    transactions = title.get("transactions")
    charges = title.get("charges")
    restrictions = title.get("restrictions")

    return HMLRData(
        title_number=title.get("titleNumber") or "",
        address=title.get("address") or "",
        postcode=title.get("postcode") or "",
        tenure=title.get("tenure") or "Freehold",
        price_paid=_to_float(title.get("pricePaid")),
        price_paid_date=title.get("pricePaidDate") or None,
        property_type=title.get("propertyType") or "",
        new_build=title.get("newBuild") == "Y",
        estate_type=title.get("estateType") or "",
        saon=title.get("saon") or None,
        paon=title.get("paon") or None,
        street=title.get("street") or None,
        locality=title.get("locality") or None,
        town=title.get("town") or None,
        district=title.get("district") or None,
        county=title.get("county") or None,
        ppd_category_type=title.get("ppdCategoryType") or "",
        record_status=title.get("recordStatus") or "",
        transactions=[
            HMLRTransaction(
                price=_to_float(t.get("price")) or 0,
                date=t.get("date", ""),
                category=t.get("category"),
                new_build=t.get("newBuild") == "Y",
                estate_type=t.get("estateType"),
                ppd_category_type=t.get("ppdCategoryType"),
                record_status=t.get("recordStatus"),
            )
            for t in transactions
        ] if transactions else None,
        charges=[
            HMLRCharge(
                charge_number=c.get("chargeNumber"),
                charge_type=c.get("chargeType"),
                charge_description=c.get("chargeDescription"),
                charge_date=c.get("chargeDate"),
                charge_amount=_to_float(c.get("chargeAmount")),
                charge_holder=c.get("chargeHolder"),
            )
            for c in charges
        ] if charges else None,
        restrictions=[
            HMLRRestriction(
                restriction_type=r.get("restrictionType"),
                restriction_description=r.get("restrictionDescription"),
                restriction_date=r.get("restrictionDate"),
                restriction_holder=r.get("restrictionHolder") or None,
            )
            for r in restrictions
        ] if restrictions else None,
    )


def sample_title(request: HMLRRequest) -> HMLRData:
    """Reference freehold title at the requested postcode."""
    return HMLRData(
        title_number=request.title_number or "DN123456",
        address=request.address or f"1 Example Street, Exeter, {request.postcode}",
        postcode=request.postcode,
        tenure="Freehold",
        price_paid=285000,
        price_paid_date="2019-07-12",
        property_type="Semi-Detached",
        new_build=False,
        estate_type="Freehold",
        paon="1",
        street="Example Street",
        town="Exeter",
        district="Exeter",
        county="Devon",
        ppd_category_type="A",
        record_status="A",
        transactions=[
            HMLRTransaction(price=285000, date="2019-07-12", category="A", estate_type="Freehold"),
            HMLRTransaction(price=210000, date="2012-03-30", category="A", estate_type="Freehold"),
        ],
        charges=[],
        restrictions=[],
    )
