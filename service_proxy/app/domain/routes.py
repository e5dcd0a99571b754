"""
Static route table: inbound path → upstream path and cache key templates.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple
from urllib.parse import urlencode

from .models import ForwardRequest


@dataclass(frozen=True)
class ProxyRoute:
    """A passthrough route.

    Templates use ``{tag}`` for the normalized tag and ``{query}`` for the
    filtered, encoded query string.
    """

    name: str
    path: str
    upstream_template: str
    cache_key_template: Optional[str] = None
    method: str = "GET"
    query_params: Tuple[str, ...] = ()

    @property
    def takes_tag(self) -> bool:
        return "{tag}" in self.path

    def build_query(self, params: Mapping[str, str]) -> str:
        """Keep only allowed, non-empty params, in declaration order."""
        return urlencode([(name, params[name]) for name in self.query_params if params.get(name)])

    def build_request(self, tag: str = "", params: Optional[Mapping[str, str]] = None,
                      body=None) -> ForwardRequest:
        query = self.build_query(params or {})
        upstream_path = self.upstream_template.format(tag=tag, query=query).rstrip("?")
        cache_key = None
        if self.cache_key_template is not None:
            cache_key = self.cache_key_template.format(tag=tag, query=query)
        return ForwardRequest(
            method=self.method,
            upstream_path=upstream_path,
            body=body,
            cache_key=cache_key,
        )


ROUTE_TABLE: Tuple[ProxyRoute, ...] = (
    ProxyRoute(
        name="search_clans",
        path="/search/clans",
        upstream_template="/clans?{query}",
        cache_key_template="search:clans:{query}",
        query_params=("name", "limit"),
    ),
    ProxyRoute("clan", "/clan/{tag}", "/clans/{tag}", "clan:{tag}"),
    ProxyRoute("clan_members", "/clan/{tag}/members", "/clans/{tag}/members", "clan:{tag}:members"),
    ProxyRoute("clan_warlog", "/clan/{tag}/warlog", "/clans/{tag}/warlog", "clan:{tag}:warlog"),
    ProxyRoute("clan_currentwar", "/clan/{tag}/currentwar", "/clans/{tag}/currentwar", "clan:{tag}:currentwar"),
    ProxyRoute("player", "/player/{tag}", "/players/{tag}", "player:{tag}"),
    ProxyRoute("player_verify_token", "/player/{tag}/verifytoken", "/players/{tag}/verifytoken", method="POST"),
)

ROUTES_BY_NAME = {route.name: route for route in ROUTE_TABLE}
