"""
Upstream API client for the proxy.
"""

import asyncio
import json
import time
from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig, RetryError, RetryPolicy
from ..domain.models import (
    MalformedUpstreamBody,
    Timeout,
    TransportFailure,
    UpstreamError,
    UpstreamOutcome,
    UpstreamSuccess,
    is_success,
)


def _reject_constant(name: str) -> Any:
    """NaN and Infinity are not JSON; treat them as a parse failure."""
    raise ValueError(f"Invalid JSON constant: {name}")


def is_transport_error(exc: BaseException) -> bool:
    """Connection errors and timeouts are retryable; HTTP statuses never reach here."""
    return isinstance(exc, httpx.TransportError)


class UpstreamClient:
    """Client for the single upstream REST API.

    Every call carries the bearer token and ``Accept: application/json``.
    Transport failures are retried by ``retry_policy``; HTTP error statuses
    are returned as outcomes, never raised or retried.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 6.0,
        retry_policy: Optional[RetryPolicy] = None,
        user_agent: str = "coc-dashboard-proxy/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self._token = token
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy(
            RetryConfig(), retryable=is_transport_error, name="upstream"
        )
        self.user_agent = user_agent
        self.metrics = metrics
        self.logger = get_logger("proxy.upstream_client")

        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def __repr__(self) -> str:
        return f"UpstreamClient(base_url={self.base_url!r}, timeout={self.timeout})"

    def url_for(self, path: str) -> str:
        """Fully qualified upstream URL for an already normalized path."""
        if not path.startswith('/'):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=False,
            )
        return self._client

    def _build_headers(self, has_body: bool, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }
        if has_body:
            headers["Content-Type"] = "application/json"
        if extra:
            # Caller headers never override the credential
            headers.update({k: v for k, v in extra.items() if k.lower() != "authorization"})
        return headers

    async def _attempt(self, method: str, url: str, headers: Dict[str, str],
                       content: Optional[bytes], timeout: float) -> httpx.Response:
        """One bounded attempt; the hard deadline also covers slow bodies."""
        client = self._get_client()
        try:
            return await asyncio.wait_for(
                client.request(method, url, headers=headers, content=content, timeout=timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise httpx.TimeoutException(
                f"No response from upstream within {timeout:.3f}s"
            ) from exc

    async def send(
        self,
        method: str,
        url: str,
        *,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> UpstreamOutcome:
        """Call the upstream and normalize the result into an outcome."""
        method = method.upper()
        attempt_timeout = self.timeout if timeout is None else timeout
        content = json.dumps(body).encode("utf-8") if body is not None else None
        request_headers = self._build_headers(content is not None, headers)

        def _on_retry(attempt: int, exc: Exception) -> None:
            if self.metrics:
                self.metrics.record_upstream_retry(method)

        start_time = time.time()
        try:
            response = await self.retry_policy.run(
                self._attempt, method, url, request_headers, content, attempt_timeout,
                on_retry=_on_retry,
            )
        except RetryError as exc:
            outcome = self._failure_outcome(exc)
        else:
            outcome = self._to_outcome(response)

        duration = time.time() - start_time
        if self.metrics:
            self.metrics.record_upstream_request(method, outcome.kind, duration)

        self.logger.info(
            "Upstream call finished",
            method=method,
            url=url,
            outcome=outcome.kind,
            status=getattr(outcome, "status", None),
            duration_ms=round(duration * 1000, 2)
        )
        return outcome

    def _failure_outcome(self, exc: RetryError) -> UpstreamOutcome:
        last = exc.last_exception
        message = str(last) or last.__class__.__name__
        if isinstance(last, httpx.TimeoutException):
            return Timeout(message=message, attempts=exc.attempts)
        return TransportFailure(message=message, attempts=exc.attempts)

    def _to_outcome(self, response: httpx.Response) -> UpstreamOutcome:
        text = response.text
        try:
            payload = json.loads(text, parse_constant=_reject_constant)
        except ValueError:
            self.logger.warning(
                "Upstream body is not JSON",
                status=response.status_code,
                length=len(text)
            )
            return MalformedUpstreamBody(status=response.status_code, raw_text=text)

        if is_success(response.status_code):
            return UpstreamSuccess(status=response.status_code, body=payload)

        return UpstreamError(
            status=response.status_code,
            body=payload,
            retry_after=response.headers.get("Retry-After"),
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
