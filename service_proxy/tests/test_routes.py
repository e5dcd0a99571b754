"""
Unit tests for the static route table.
"""

import pytest

from service_proxy.app.domain.routes import ROUTE_TABLE, ROUTES_BY_NAME, ProxyRoute


def test_route_names_are_unique():
    assert len(ROUTES_BY_NAME) == len(ROUTE_TABLE)


@pytest.mark.parametrize(
    "name, upstream_path, cache_key",
    [
        ("clan", "/clans/%23ABC", "clan:%23ABC"),
        ("clan_members", "/clans/%23ABC/members", "clan:%23ABC:members"),
        ("clan_warlog", "/clans/%23ABC/warlog", "clan:%23ABC:warlog"),
        ("clan_currentwar", "/clans/%23ABC/currentwar", "clan:%23ABC:currentwar"),
        ("player", "/players/%23ABC", "player:%23ABC"),
    ],
)
def test_tag_routes(name, upstream_path, cache_key):
    request = ROUTES_BY_NAME[name].build_request("%23ABC")

    assert request.method == "GET"
    assert request.upstream_path == upstream_path
    assert request.cache_key == cache_key


def test_search_filters_query_params():
    route = ROUTES_BY_NAME["search_clans"]
    request = route.build_request(params={"limit": "5", "name": "war bros", "evil": "1", "after": "x"})

    assert request.upstream_path == "/clans?name=war+bros&limit=5"
    assert request.cache_key == "search:clans:name=war+bros&limit=5"


def test_search_drops_empty_params():
    request = ROUTES_BY_NAME["search_clans"].build_request(params={"name": "", "limit": "10"})

    assert request.upstream_path == "/clans?limit=10"


def test_post_route_has_no_cache_key():
    route = ROUTES_BY_NAME["player_verify_token"]
    request = route.build_request("%232PP", body={"token": "abc"})

    assert route.takes_tag
    assert request.method == "POST"
    assert request.body == {"token": "abc"}
    assert request.cache_key is None
    assert not request.cacheable


def test_custom_route():
    route = ProxyRoute("league", "/league/{tag}", "/leagues/{tag}")

    request = route.build_request("29000022")

    assert request.upstream_path == "/leagues/29000022"
    assert request.cache_key is None
