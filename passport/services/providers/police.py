"""
Crime statistics provider.
"""

from typing import Dict
import logging

from passport.schemas.lookups import CrimeCategory, CrimeComparison, CrimeStats, PoliceRequest
from passport.services.providers.base import LookupProvider

logger = logging.getLogger(__name__)

# Reference area figures for the sample dataset: (category, count, percentage)
SAMPLE_CATEGORIES = [
    ("Anti-social behaviour", 12, 26.7),
    ("Violence and sexual offences", 8, 17.8),
    ("Vehicle crime", 6, 13.3),
    ("Criminal damage and arson", 5, 11.1),
    ("Burglary", 4, 8.9),
    ("Other theft", 4, 8.9),
    ("Public order", 3, 6.7),
    ("Drugs", 2, 4.4),
    ("Robbery", 1, 2.2),
]


class PoliceProvider(LookupProvider):
    """
    Street-level crime summary for the area around a property.

    Serves a fixed reference dataset; the area and period echo the request.
    """

    name = "police"
    ttl = 7 * 24 * 60 * 60

    def cache_key(self, request: PoliceRequest) -> str:
        return f"police:{request.identifier}:{request.date or 'current'}:{request.months}"

    async def fetch(self, request: PoliceRequest) -> Dict:
        categories = [
            CrimeCategory(category=category, count=count, percentage=percentage)
            for category, count, percentage in SAMPLE_CATEGORIES
        ]
        stats = CrimeStats(
            area=request.postcode or "EX1 1AB",
            period=request.date or "2024-01",
            total_crimes=sum(category.count for category in categories),
            crimes_by_category=categories,
            crime_rate=2.3,
            comparison=CrimeComparison(
                national_average=3.1,
                local_authority_average=2.8,
                percentile=25,
            ),
        )

        logger.info(
            "Crime data fetched",
            extra={"total_crimes": stats.total_crimes, "categories": len(categories)}
        )
        return stats.model_dump(mode="json", by_alias=True)
