"""
Flood risk provider backed by the Environment Agency flood APIs.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import asyncio
import httpx
import logging
import math

from passport.config import settings
from passport.schemas.lookups import FloodRequest, FloodRiskLevel, FloodRiskReport, FloodRiskSources
from passport.services.cache import CacheManager
from passport.services.http_client import ExternalApiClient
from passport.services.providers.base import LookupProvider
from passport.services.providers.postcodes import PostcodesProvider
from passport.utils.exceptions import ExternalAPIError

logger = logging.getLogger(__name__)

# level: (description, probability, impact)
RISK_LEVELS = {
    "Very Low": ("Minimal flood risk", "1 in 1000 years", "Minimal impact"),
    "Low": ("Low flood risk", "1 in 100 years", "Low impact"),
    "Medium": ("Moderate flood risk", "1 in 30 years", "Moderate impact"),
    "High": ("High flood risk", "1 in 10 years", "High impact"),
    "Very High": ("Very high flood risk", "1 in 3 years", "Severe impact"),
}

MITIGATION = {
    "Very Low": ["Monitor weather conditions"],
    "Low": ["Monitor weather conditions", "Check flood warnings"],
    "Medium": ["Monitor weather conditions", "Check flood warnings", "Prepare emergency kit"],
    "High": [
        "Monitor weather conditions", "Check flood warnings", "Prepare emergency kit",
        "Consider flood insurance",
    ],
    "Very High": [
        "Monitor weather conditions", "Check flood warnings", "Prepare emergency kit",
        "Flood insurance essential", "Consider property protection measures",
    ],
}

# Source path and the level assumed when that source cannot be read
RISK_SOURCES = {
    "surface_water": ("/flood-risk/surface-water", ("Low", 2)),
    "rivers_and_sea": ("/flood-risk/river-sea", ("Low", 2)),
    "groundwater": ("/flood-risk/groundwater", ("Low", 2)),
    "reservoirs": ("/flood-risk/reservoir", ("Very Low", 1)),
}


class FloodProvider(LookupProvider):
    """
    Flood risk assessment for a location.

    Each of the four risk sources is queried independently; a source that
    fails falls back to its default level instead of failing the report.
    """

    name = "flood"
    ttl = 7 * 24 * 60 * 60

    def __init__(
        self,
        postcodes: PostcodesProvider,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.postcodes = postcodes
        self.client = ExternalApiClient(
            provider="Flood",
            base_url=settings.flood_api_url,
            headers={"Authorization": f"Bearer {api_key}"} if api_key else None,
            transport=transport,
        )

    def cache_key(self, request: FloodRequest) -> str:
        fields = {"uprn": request.uprn, "postcode": request.postcode}
        if request.latitude is not None and request.longitude is not None:
            fields["lat"] = f"{request.latitude:.4f}"
            fields["lng"] = f"{request.longitude:.4f}"
        return CacheManager.generate_cache_key("flood", fields)

    async def fetch(self, request: FloodRequest) -> Dict:
        """
        Build the flood risk report for a request.

        Raises:
            NotFoundError: If no coordinates were given and the postcode is unknown
        """
        latitude, longitude = await self._coordinates(request)
        params = {"lat": latitude, "lng": longitude}

        names = list(RISK_SOURCES)
        levels = await asyncio.gather(*(self._risk(name, params) for name in names))
        sources = dict(zip(names, levels))
        warnings, floods = await asyncio.gather(
            self._listing("/flood-warnings", "warnings", params),
            self._listing("/historical-floods", "floods", params),
        )

        report = FloodRiskReport(
            address=request.address or "",
            postcode=request.postcode,
            uprn=request.uprn,
            flood_risk=FloodRiskSources(**sources),
            risk_level=overall_level(levels),
            risk_score=overall_score(levels),
            last_updated=datetime.now(timezone.utc),
            warnings=warnings,
            historical_floods=floods,
        )
        logger.info(
            "Flood risk assessed",
            extra={"risk_level": report.risk_level, "risk_score": report.risk_score}
        )
        return report.model_dump(mode="json", by_alias=True)

    async def _coordinates(self, request: FloodRequest) -> Tuple[float, float]:
        if request.latitude is not None and request.longitude is not None:
            return request.latitude, request.longitude
        result = await self.postcodes.lookup(request.postcode)
        return result["latitude"], result["longitude"]

    async def _risk(self, source: str, params: Dict[str, Any]) -> FloodRiskLevel:
        path, (default_level, default_score) = RISK_SOURCES[source]
        try:
            data = await self.client.get_json(path, params=params)
        except ExternalAPIError as e:
            logger.warning(f"Flood risk source {source} unavailable, using default: {e}")
            return risk_level(default_level, default_score)
        return parse_risk(data or {})

    async def _listing(self, path: str, field: str, params: Dict[str, Any]) -> List[Dict]:
        try:
            data = await self.client.get_json(path, params=params)
        except ExternalAPIError as e:
            logger.warning(f"Flood listing {path} unavailable: {e}")
            return []
        items = (data or {}).get(field)
        return items if isinstance(items, list) else []


def normalize_level(value: Any) -> str:
    text = str(value or "").strip().lower()
    for needle, level in (
        ("very high", "Very High"),
        ("high", "High"),
        ("medium", "Medium"),
        ("very low", "Very Low"),
        ("low", "Low"),
    ):
        if needle in text:
            return level
    return "Very Low"


def risk_level(level: str, score: int) -> FloodRiskLevel:
    description, probability, impact = RISK_LEVELS[level]
    return FloodRiskLevel(
        level=level,
        score=score,
        description=description,
        probability=probability,
        impact=impact,
        mitigation=MITIGATION[level],
    )


def parse_risk(data: Dict[str, Any]) -> FloodRiskLevel:
    """One source's risk, filling anything the response omits from the level tables."""
    level = normalize_level(data.get("riskLevel") or data.get("level") or "Low")
    try:
        score = int(data.get("riskScore") or data.get("score") or 2)
    except (TypeError, ValueError):
        score = 2
    defaults = risk_level(level, max(1, min(10, score)))
    return FloodRiskLevel(
        level=level,
        score=defaults.score,
        description=data.get("description") or defaults.description,
        probability=data.get("probability") or defaults.probability,
        impact=data.get("impact") or defaults.impact,
        mitigation=data.get("mitigation") or defaults.mitigation,
    )


def overall_level(levels: List[FloodRiskLevel]) -> str:
    """Worst source decides the overall level."""
    worst = max(level.score for level in levels)
    if worst >= 9:
        return "Very High"
    if worst >= 7:
        return "High"
    if worst >= 5:
        return "Medium"
    if worst >= 3:
        return "Low"
    return "Very Low"


def overall_score(levels: List[FloodRiskLevel]) -> int:
    """Mean source score, halves rounded up."""
    mean = sum(level.score for level in levels) / len(levels)
    return math.floor(mean + 0.5)
