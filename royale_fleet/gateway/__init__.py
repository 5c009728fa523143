"""Remote game service gateway."""

from royale_fleet.gateway.client import (
    DEFAULT_BASE_URL,
    ApiResult,
    GameGateway,
    GatewayFactory,
)

__all__ = ["DEFAULT_BASE_URL", "ApiResult", "GameGateway", "GatewayFactory"]
