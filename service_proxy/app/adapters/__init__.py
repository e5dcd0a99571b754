"""
Adapters package for the Proxy Service.

Contains the HTTP client for the upstream API. The adapter encapsulates:

- Base URL and credential headers
- The retry policy for transport failures
- Mapping of responses onto forwarding outcomes

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .upstream_client import UpstreamClient, is_transport_error

__all__ = [
    "UpstreamClient",
    "is_transport_error",
]
