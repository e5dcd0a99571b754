"""
Domain layer for the Proxy Service.

Holds the forwarding request/outcome types, the response resolver that ties
the cache to the upstream client, the static route table and the aggregate
views built on top of upstream payloads.
"""

from .models import (
    CachedHit,
    ForwardOutcome,
    ForwardRequest,
    InternalFault,
    MalformedUpstreamBody,
    ProxyResponse,
    Timeout,
    TransportFailure,
    UpstreamError,
    UpstreamOutcomeError,
    UpstreamSuccess,
)
from .resolver import ResponseResolver
from .routes import ROUTE_TABLE, ROUTES_BY_NAME, ProxyRoute

__all__ = [
    "CachedHit",
    "ForwardOutcome",
    "ForwardRequest",
    "InternalFault",
    "MalformedUpstreamBody",
    "ProxyResponse",
    "ProxyRoute",
    "ROUTE_TABLE",
    "ROUTES_BY_NAME",
    "ResponseResolver",
    "Timeout",
    "TransportFailure",
    "UpstreamError",
    "UpstreamOutcomeError",
    "UpstreamSuccess",
]
