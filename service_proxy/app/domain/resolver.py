"""
Response resolution: cache lookup, upstream call, cache population and the
mapping of every outcome onto a client response.
"""

from typing import Any, Dict, Optional, TYPE_CHECKING

from shared.errors import InternalFaultError, UpstreamTimeoutError, UpstreamUnreachableError
from shared.logging import get_logger
from ..caching.store import CachedValue, CacheStore
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
    is_success,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.upstream_client import UpstreamClient
    from shared.metrics import MetricsCollector


class ResponseResolver:
    """Resolve forward requests against the cache and the upstream.

    ``resolve`` never raises: every path ends in exactly one outcome. Only
    2xx GET responses with a cache key are written to the cache, plus 429
    responses when ``cache_rate_limited`` is enabled.
    """

    def __init__(
        self,
        upstream: "UpstreamClient",
        cache: CacheStore,
        *,
        cache_ttl: float = 30.0,
        cache_rate_limited: bool = False,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.upstream = upstream
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.cache_rate_limited = cache_rate_limited
        self.metrics = metrics
        self.logger = get_logger("proxy.resolver")

    async def resolve(self, request: ForwardRequest) -> ForwardOutcome:
        try:
            if request.cacheable:
                cached = await self.cache.get(request.cache_key)
                if self.metrics:
                    self.metrics.record_cache_lookup(hit=cached is not None)
                if cached is not None:
                    self.logger.debug("Cache hit", cache_key=request.cache_key)
                    return CachedHit(status=cached.status, body=cached.body)

            outcome = await self.upstream.send(
                request.method,
                self.upstream.url_for(request.upstream_path),
                body=request.body,
            )

            if request.cacheable and self._should_cache(outcome):
                await self.cache.set(
                    request.cache_key,
                    CachedValue(outcome.status, outcome.body),
                    self.cache_ttl,
                )

            return outcome

        except Exception as e:
            self.logger.error(
                "Unexpected error resolving request",
                method=request.method,
                path=request.upstream_path,
                error=str(e),
                exc_info=True
            )
            if self.metrics:
                self.metrics.record_error("resolver_fault")
            return InternalFault(message=str(e) or e.__class__.__name__)

    def _should_cache(self, outcome: ForwardOutcome) -> bool:
        if isinstance(outcome, UpstreamSuccess):
            return True
        if isinstance(outcome, UpstreamError) and outcome.rate_limited:
            return self.cache_rate_limited
        return False

    async def forward(self, request: ForwardRequest, request_id: Optional[str] = None) -> ProxyResponse:
        """Resolve and map to a client response in one step."""
        outcome = await self.resolve(request)
        return self.to_response(outcome, request_id)

    async def fetch_json(self, request: ForwardRequest) -> Any:
        """Return the JSON body of a successful outcome.

        Any other outcome is raised as UpstreamOutcomeError so the caller's
        error handler can relay it like a direct forward.
        """
        outcome = await self.resolve(request)
        if isinstance(outcome, (CachedHit, UpstreamSuccess)) and is_success(outcome.status):
            return outcome.body
        raise UpstreamOutcomeError(outcome)

    def to_response(self, outcome: ForwardOutcome, request_id: Optional[str] = None) -> ProxyResponse:
        """Map an outcome to the client status, body and headers."""
        if isinstance(outcome, (CachedHit, UpstreamSuccess)):
            cache_state = "HIT" if isinstance(outcome, CachedHit) else "MISS"
            if is_success(outcome.status):
                return ProxyResponse(outcome.status, outcome.body, {"X-Cache": cache_state})
            # Cached rate-limit responses
            return self._relay_error(outcome.status, outcome.body, None, request_id, {"X-Cache": cache_state})

        if isinstance(outcome, UpstreamError):
            return self._relay_error(outcome.status, outcome.body, outcome.retry_after, request_id, {})

        if isinstance(outcome, MalformedUpstreamBody):
            if is_success(outcome.status):
                return ProxyResponse(outcome.status, outcome.body)
            return self._relay_error(outcome.status, outcome.body, None, request_id, {})

        if isinstance(outcome, Timeout):
            error = UpstreamTimeoutError(details={"attempts": outcome.attempts})
        elif isinstance(outcome, TransportFailure):
            error = UpstreamUnreachableError(details={"attempts": outcome.attempts})
        else:
            error = InternalFaultError()

        return ProxyResponse(error.status_code, error.to_response(request_id).to_content())

    def _relay_error(self, status: int, body: Any, retry_after: Optional[str],
                     request_id: Optional[str], headers: Dict[str, str]) -> ProxyResponse:
        """Forward an upstream error verbatim, adding only diagnostic keys."""
        if retry_after is None and isinstance(body, dict) and status == 429:
            retry_after = body.get("retryAfter")

        if isinstance(body, dict):
            body = dict(body)
            if request_id is not None:
                body.setdefault("requestId", request_id)
            if status == 429 and retry_after is not None:
                body.setdefault("retryAfter", retry_after)

        if retry_after is not None:
            headers = {**headers, "Retry-After": str(retry_after)}

        return ProxyResponse(status, body, headers)
