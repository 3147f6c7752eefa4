from content_gateway.gateways.domain import (
    DEFAULT_READ_GATEWAYS,
    DEFAULT_WRITE_GATEWAY,
    Gateway,
    GatewayRegistry,
    GatewayRole,
    InvalidGateway,
)

__all__ = [
    "DEFAULT_READ_GATEWAYS",
    "DEFAULT_WRITE_GATEWAY",
    "Gateway",
    "GatewayRegistry",
    "GatewayRole",
    "InvalidGateway",
]
