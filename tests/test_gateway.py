"""Tests for the HTTP game gateway."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx

from royale_fleet.gateway import ApiResult, GatewayFactory
from royale_fleet.models import Action

BASE_URL = "https://game.test/api"


def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> GatewayFactory:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return GatewayFactory(base_url=BASE_URL, client=client)


class TestEnvelopeParsing:
    """Responses are converted to tagged results."""

    def test_success_envelope(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True, "data": [{"id": "g1"}]})

        result = _factory(handler).for_key("k").list_games("waiting")

        assert result.success is True
        assert result.data_list() == [{"id": "g1"}]

    def test_error_envelope_carries_code_and_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={
                    "success": False,
                    "error": {"code": "TOO_MANY_AGENTS_PER_IP", "message": "Too many agents from this IP"},
                },
            )

        result = _factory(handler).for_key("k").register_agent("g1", "me")

        assert result.success is False
        assert result.code == "TOO_MANY_AGENTS_PER_IP"
        assert result.message == "Too many agents from this IP"
        assert result.transport_error is False

    def test_non_json_body_is_a_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>bad gateway</html>")

        result = _factory(handler).for_key("k").get_game("g1")

        assert result.success is False
        assert "502" in (result.message or "")

    def test_transport_error_is_a_failure_not_an_exception(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = _factory(handler).for_key("k").get_account()

        assert result.success is False
        assert result.transport_error is True

    def test_data_accessors_tolerate_wrong_shapes(self) -> None:
        assert ApiResult.ok([1, 2]).data_dict() == {}
        assert ApiResult.ok({"a": 1}).data_list() == []
        assert ApiResult.failure("x").data_dict() == {}


class TestGameGatewayRequests:
    """Requests carry the credential and the expected paths and bodies."""

    def test_requests_use_api_key_header_and_paths(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": {}})

        gateway = _factory(handler).for_key("mr_live_abc")
        gateway.get_account()
        gateway.get_game_state("g1")
        gateway.get_agent_state("g1", "a1")
        gateway.list_games("running")

        assert all(request.headers["X-API-Key"] == "mr_live_abc" for request in seen)
        assert [request.url.path for request in seen] == [
            "/api/accounts/me",
            "/api/games/g1/state",
            "/api/games/g1/agents/a1/state",
            "/api/games",
        ]
        assert seen[-1].url.params["status"] == "running"

    def test_submit_action_sends_action_and_thought(self) -> None:
        bodies: list[dict[str, object]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "data": None})

        gateway = _factory(handler).for_key("k")
        result = gateway.submit_action(
            "g1",
            "a1",
            Action.move("r2"),
            thought={"reasoning": "zone closing", "plannedAction": "move"},
        )

        assert result.success is True
        assert bodies == [
            {
                "action": {"type": "move", "regionId": "r2"},
                "thought": {"reasoning": "zone closing", "plannedAction": "move"},
            }
        ]

    def test_create_game_and_wallet_bodies(self) -> None:
        captured: list[tuple[str, str, dict[str, object]]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"success": True, "data": {"id": "new"}})

        gateway = _factory(handler).for_key("k")
        created = gateway.create_game({"hostName": "me's Arena", "mapSize": "massive", "entryType": "free"})
        gateway.put_wallet("0xabc")

        assert created.data_dict() == {"id": "new"}
        assert captured[0] == (
            "POST",
            "/api/games",
            {"hostName": "me's Arena", "mapSize": "massive", "entryType": "free"},
        )
        assert captured[1] == ("PUT", "/api/accounts/wallet", {"wallet_address": "0xabc"})


class TestAccountCreation:
    """Unauthenticated account creation."""

    def test_creates_account_without_api_key(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": {"name": "me", "apiKey": "mr_live_x"}})

        result = _factory(handler).create_account("me", "0xabc")

        assert result.data_dict()["apiKey"] == "mr_live_x"
        assert "X-API-Key" not in seen[0].headers
        assert json.loads(seen[0].content) == {"name": "me", "wallet_address": "0xabc"}

    def test_forbidden_maps_to_ip_limit_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"success": False, "error": {"message": "Forbidden"}})

        result = _factory(handler).create_account("me", "0xabc")

        assert result.success is False
        assert "IP limit" in (result.message or "")
