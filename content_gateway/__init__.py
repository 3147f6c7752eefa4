"""Content-addressed blob store client with gateway fallback and usage accounting."""

from content_gateway.app.client import ContentClient, FallbackPolicy
from content_gateway.errors import (
    AllGatewaysExhausted,
    ContentGatewayError,
    ErrorCode,
    GatewayUnreachable,
    HashDerivationError,
    InvalidIdentifierFormat,
    StatsPersistenceError,
)
from content_gateway.gateways.domain import Gateway, GatewayRegistry, GatewayRole
from content_gateway.identity.domain import IdentifierDeriver, ValidationResult, validate_identifier
from content_gateway.usage.domain import UsageReport, UsageStats
from content_gateway.usage.services import InMemoryStatsStore, StatsStore, UsageLedger

__all__ = [
    "AllGatewaysExhausted",
    "ContentClient",
    "ContentGatewayError",
    "ErrorCode",
    "FallbackPolicy",
    "Gateway",
    "GatewayRegistry",
    "GatewayRole",
    "GatewayUnreachable",
    "HashDerivationError",
    "IdentifierDeriver",
    "InMemoryStatsStore",
    "InvalidIdentifierFormat",
    "StatsPersistenceError",
    "StatsStore",
    "UsageLedger",
    "UsageReport",
    "UsageStats",
    "ValidationResult",
    "validate_identifier",
]
