"""
Forwarding request and outcome types.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


FORWARD_METHODS = ("GET", "POST")


@dataclass(frozen=True)
class ForwardRequest:
    """One logical call to the upstream.

    ``upstream_path`` is already tag-normalized and carries its query string.
    A missing ``cache_key`` means the request is never cached.
    """

    method: str
    upstream_path: str
    body: Optional[Any] = None
    cache_key: Optional[str] = None

    def __post_init__(self):
        method = self.method.upper()
        if method not in FORWARD_METHODS:
            raise ValueError(f"Unsupported forward method: {self.method}")
        if method == "GET" and self.body is not None:
            raise ValueError("GET requests cannot carry a body")
        if not self.upstream_path.startswith("/"):
            raise ValueError("upstream_path must start with '/'")
        object.__setattr__(self, "method", method)

    @property
    def cacheable(self) -> bool:
        return self.cache_key is not None and self.method == "GET"


def is_success(status: int) -> bool:
    return 200 <= status < 300


@dataclass(frozen=True)
class CachedHit:
    status: int
    body: Any
    kind = "cached_hit"


@dataclass(frozen=True)
class UpstreamSuccess:
    status: int
    body: Any
    kind = "success"


@dataclass(frozen=True)
class UpstreamError:
    """Upstream answered with a non-2xx status."""

    status: int
    body: Any
    retry_after: Optional[str] = None
    kind = "upstream_error"

    @property
    def rate_limited(self) -> bool:
        return self.status == 429


@dataclass(frozen=True)
class Timeout:
    message: str
    attempts: int
    kind = "timeout"


@dataclass(frozen=True)
class TransportFailure:
    message: str
    attempts: int
    kind = "transport_failure"


@dataclass(frozen=True)
class MalformedUpstreamBody:
    """Upstream body was not JSON; forwarded as ``{"raw": text}``."""

    status: int
    raw_text: str
    kind = "malformed_body"

    @property
    def body(self) -> Dict[str, str]:
        return {"raw": self.raw_text}


@dataclass(frozen=True)
class InternalFault:
    message: str
    kind = "internal_fault"


UpstreamOutcome = Union[UpstreamSuccess, UpstreamError, Timeout, TransportFailure, MalformedUpstreamBody]

ForwardOutcome = Union[
    CachedHit,
    UpstreamSuccess,
    UpstreamError,
    Timeout,
    TransportFailure,
    MalformedUpstreamBody,
    InternalFault,
]


@dataclass
class ProxyResponse:
    """Client-facing status, JSON body and extra headers."""

    status_code: int
    body: Any
    headers: Dict[str, str] = field(default_factory=dict)


class UpstreamOutcomeError(Exception):
    """Raised when a caller needs a JSON body but the outcome is not a success."""

    def __init__(self, outcome: ForwardOutcome):
        self.outcome = outcome
        super().__init__(f"Upstream outcome {outcome.kind} is not a success")
