"""
Base class for third-party data providers served through the lookup pipeline.
"""

from typing import Any, Optional


class LookupProvider:
    """
    A source of property data.

    Subclasses set `name` and `ttl` and implement `cache_key` and `fetch`.
    `fetch` returns a JSON-ready payload (already dumped with camelCase
    aliases) so cached values and fresh values serialise identically.
    """

    name: str = ""
    ttl: int = 3600

    def ttl_for(self, request: Any) -> int:
        return self.ttl

    def cache_key(self, request: Any) -> str:
        raise NotImplementedError

    async def fetch(self, request: Any) -> Optional[Any]:
        raise NotImplementedError
