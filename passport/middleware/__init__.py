"""
Middleware package for the Property Passport API.
Provides the request context stage that wraps every endpoint.
"""

from .request_context import RequestContextMiddleware, get_client_ip

__all__ = [
    "RequestContextMiddleware",
    "get_client_ip",
]
