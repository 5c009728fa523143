"""HTTP gateway to the remote game service.

Every call returns an :class:`ApiResult`; transport failures, undecodable
bodies and malformed envelopes are reported as failed results rather than
raised, so callers never handle transport exceptions.

Example:
    >>> factory = GatewayFactory(base_url="https://cdn.moltyroyale.com/api")
    >>> gateway = factory.for_key("mr_live_...")
    >>> result = gateway.list_games("waiting")
    >>> if result.success:
    ...     print(len(result.data))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from royale_fleet.models.actions import Action

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://cdn.moltyroyale.com/api"
NETWORK_ERROR_MESSAGE = "Network error"


@dataclass(frozen=True)
class ApiResult:
    """Tagged success/failure result of one remote call."""

    success: bool
    data: Any = None
    code: str | None = None
    message: str | None = None
    transport_error: bool = False

    @classmethod
    def ok(cls, data: Any = None) -> ApiResult:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        message: str,
        code: str | None = None,
        *,
        transport_error: bool = False,
    ) -> ApiResult:
        return cls(success=False, code=code, message=message, transport_error=transport_error)

    def data_dict(self) -> dict[str, Any]:
        """Payload as a dict, empty when absent or not an object."""
        return self.data if isinstance(self.data, dict) else {}

    def data_list(self) -> list[Any]:
        """Payload as a list, empty when absent or not an array."""
        return self.data if isinstance(self.data, list) else []


def _parse_envelope(response: httpx.Response) -> ApiResult:
    """Convert a `{success, data, error}` envelope into an ApiResult."""
    try:
        payload = response.json()
    except ValueError:
        return ApiResult.failure(f"HTTP {response.status_code}: response was not JSON")

    if not isinstance(payload, dict):
        return ApiResult.failure(f"HTTP {response.status_code}: unexpected response shape")

    if payload.get("success"):
        return ApiResult.ok(payload.get("data"))

    error = payload.get("error")
    if not isinstance(error, dict):
        error = {"message": str(error)} if error else {}
    message = error.get("message") or payload.get("message") or f"HTTP {response.status_code}"
    code = error.get("code")
    return ApiResult.failure(str(message), code=str(code) if code else None)


class GameGateway:
    """Remote game API bound to one account credential."""

    def __init__(
        self,
        api_key: str,
        *,
        client: httpx.Client,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        self._api_key = api_key
        self._client = client
        self._base_url = base_url.rstrip("/")

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> ApiResult:
        try:
            response = self._client.request(
                method,
                f"{self._base_url}{path}",
                headers={"X-API-Key": self._api_key},
                params=params,
                json=body,
            )
        except httpx.HTTPError as e:
            logger.debug("[GATEWAY] %s %s failed: %s", method, path, e)
            return ApiResult.failure(NETWORK_ERROR_MESSAGE, transport_error=True)
        return _parse_envelope(response)

    def get_account(self) -> ApiResult:
        """Own account, including `currentGames` and lifetime stats."""
        return self._request("GET", "/accounts/me")

    def put_wallet(self, wallet_address: str) -> ApiResult:
        return self._request("PUT", "/accounts/wallet", body={"wallet_address": wallet_address})

    def list_games(self, status: str) -> ApiResult:
        return self._request("GET", "/games", params={"status": status})

    def get_game(self, game_id: str) -> ApiResult:
        return self._request("GET", f"/games/{game_id}")

    def get_game_state(self, game_id: str) -> ApiResult:
        """Full session state including every registered agent."""
        return self._request("GET", f"/games/{game_id}/state")

    def create_game(self, config: dict[str, Any]) -> ApiResult:
        return self._request("POST", "/games", body=config)

    def register_agent(self, game_id: str, name: str) -> ApiResult:
        return self._request("POST", f"/games/{game_id}/agents/register", body={"name": name})

    def get_agent_state(self, game_id: str, agent_id: str) -> ApiResult:
        return self._request("GET", f"/games/{game_id}/agents/{agent_id}/state")

    def submit_action(
        self,
        game_id: str,
        agent_id: str,
        action: Action,
        thought: dict[str, str] | None = None,
    ) -> ApiResult:
        body: dict[str, Any] = {"action": action.to_payload()}
        if thought:
            body["thought"] = thought
        return self._request("POST", f"/games/{game_id}/agents/{agent_id}/action", body=body)


class GatewayFactory:
    """Builds per-credential gateways over one shared HTTP connection pool."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 15.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout_seconds,
            headers={"Content-Type": "application/json"},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def for_key(self, api_key: str) -> GameGateway:
        """Gateway bound to one account API key."""
        return GameGateway(api_key, client=self._client, base_url=self._base_url)

    def create_account(self, name: str, wallet_address: str) -> ApiResult:
        """Create a new remote account (unauthenticated)."""
        try:
            response = self._client.post(
                f"{self._base_url}/accounts",
                json={"name": name, "wallet_address": wallet_address},
            )
        except httpx.HTTPError as e:
            logger.debug("[GATEWAY] account creation failed: %s", e)
            return ApiResult.failure(NETWORK_ERROR_MESSAGE, transport_error=True)

        result = _parse_envelope(response)
        if not result.success and response.status_code == 403:
            return ApiResult.failure("IP limit reached (max accounts per IP)", code=result.code)
        return result

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
