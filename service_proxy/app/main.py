"""
Caching reverse proxy for the Clash of Clans API.
"""

from typing import Any, Dict, Optional

import httpx
from fastapi import Body, Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService, get_request_id
from shared.config import ProxyConfig, get_config
from shared.retry import RetryConfig, RetryPolicy
from .adapters.upstream_client import UpstreamClient, is_transport_error
from .caching import CacheStore, create_cache_store
from .domain.clan_stats import summarize_clan, summarize_donations
from .domain.models import ForwardRequest, ProxyResponse, UpstreamOutcomeError
from .domain.resolver import ResponseResolver
from .domain.routes import ROUTE_TABLE, ROUTES_BY_NAME, ProxyRoute
from .tags import normalize_tag, validate_tag


class ProxyService(BaseService):
    """Proxy service implementation."""

    def __init__(
        self,
        config: Optional[ProxyConfig] = None,
        *,
        cache_store: Optional[CacheStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or get_config()
        super().__init__(config.service_name, config)

        retry_policy = RetryPolicy(
            RetryConfig(
                max_attempts=config.retry_attempts,
                base_delay=config.retry_base_delay,
                max_delay=config.retry_max_delay,
                backoff_strategy="linear",
            ),
            retryable=is_transport_error,
            name="upstream",
        )
        self.upstream_client = UpstreamClient(
            config.upstream_base_url,
            config.api_token,
            timeout=config.timeout_seconds,
            retry_policy=retry_policy,
            user_agent=config.user_agent,
            transport=transport,
            metrics=self.metrics,
        )
        self.cache_store = cache_store or create_cache_store(config)
        self.resolver = ResponseResolver(
            self.upstream_client,
            self.cache_store,
            cache_ttl=config.cache_ttl,
            cache_rate_limited=config.cache_rate_limited,
            metrics=self.metrics,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.upstream_client.close()
            await self.cache_store.close()

        self._setup_exception_handlers()
        self._setup_proxy_routes()
        self._setup_aggregate_routes()
        if config.allow_raw_proxy:
            self._setup_raw_proxy_route()

        self.logger.info(
            "Proxy configured",
            upstream=config.upstream_base_url,
            cache_backend=config.cache_backend,
            cache_ttl=config.cache_ttl,
            retry_attempts=config.retry_attempts,
            raw_proxy=config.allow_raw_proxy,
        )

        # Expose service instance via app state for introspection/testing
        self.app.state.proxy_service = self

    def _render(self, response: ProxyResponse) -> JSONResponse:
        return JSONResponse(
            status_code=response.status_code,
            content=response.body,
            headers=response.headers,
        )

    def _normalized_tag(self, raw: str) -> str:
        validate_tag(raw, strict=self.config.strict_tag_validation)
        return normalize_tag(raw)

    def _setup_exception_handlers(self):

        @self.app.exception_handler(UpstreamOutcomeError)
        async def upstream_outcome_handler(request: Request, exc: UpstreamOutcomeError):
            """Relay a failed sub-request of an aggregate endpoint."""
            return self._render(self.resolver.to_response(exc.outcome, get_request_id(request)))

    def _setup_proxy_routes(self):
        """Register passthrough routes from the route table."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": self.service_name,
                "message": "Clash Access Layer - caching proxy",
                "version": "1.0.0",
                "routes": [route.path for route in ROUTE_TABLE],
            }

        for route in ROUTE_TABLE:
            self._register_route(route)

    def _register_route(self, route: ProxyRoute):
        if route.method == "POST":
            async def post_endpoint(request: Request, tag: str, payload: Any = Body(...)):
                forward = route.build_request(self._normalized_tag(tag), body=payload)
                return self._render(await self.resolver.forward(forward, get_request_id(request)))

            endpoint = post_endpoint
        elif route.takes_tag:
            async def tag_endpoint(request: Request, tag: str):
                forward = route.build_request(self._normalized_tag(tag), request.query_params)
                return self._render(await self.resolver.forward(forward, get_request_id(request)))

            endpoint = tag_endpoint
        else:
            async def query_endpoint(request: Request):
                forward = route.build_request(params=request.query_params)
                return self._render(await self.resolver.forward(forward, get_request_id(request)))

            endpoint = query_endpoint

        self.app.add_api_route(route.path, endpoint, methods=[route.method], name=route.name)

    def _setup_aggregate_routes(self):
        """Routes that combine several upstream payloads."""

        @self.app.get("/clan/{tag}/stats")
        async def clan_stats(request: Request, tag: str):
            """Trophy statistics for a clan's members."""
            normalized = self._normalized_tag(tag)
            clan = await self.resolver.fetch_json(ROUTES_BY_NAME["clan"].build_request(normalized))
            members = await self.resolver.fetch_json(ROUTES_BY_NAME["clan_members"].build_request(normalized))

            summary: Dict[str, Any] = summarize_clan(clan if isinstance(clan, dict) else {}, members)
            summary["requestId"] = get_request_id(request)
            return summary

        @self.app.get("/clan/{tag}/donations")
        async def clan_donations(request: Request, tag: str):
            """Donation leaderboard for a clan."""
            normalized = self._normalized_tag(tag)
            members = await self.resolver.fetch_json(ROUTES_BY_NAME["clan_members"].build_request(normalized))

            summary: Dict[str, Any] = summarize_donations(members)
            summary["requestId"] = get_request_id(request)
            return summary

    def _setup_raw_proxy_route(self):
        """Debug passthrough for arbitrary upstream GET paths."""

        @self.app.get("/raw/{path:path}")
        async def raw_proxy(request: Request, path: str):
            upstream_path = path if path.startswith("/") else f"/{path}"
            if request.url.query:
                upstream_path = f"{upstream_path}?{request.url.query}"
            forward = ForwardRequest("GET", upstream_path, cache_key=f"raw:{upstream_path}")
            return self._render(await self.resolver.forward(forward, get_request_id(request)))

    async def _check_dependencies(self) -> Dict[str, str]:
        return {"cache": "ok" if await self.cache_store.ping() else "error"}


def create_app(
    config: Optional[ProxyConfig] = None,
    *,
    cache_store: Optional[CacheStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
):
    """Create FastAPI application."""
    service = ProxyService(config, cache_store=cache_store, transport=transport)
    return service.app


def main():
    """Console entry point."""
    service = ProxyService()
    service.run()


if __name__ == "__main__":
    main()
