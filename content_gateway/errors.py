"""Error taxonomy for content_gateway."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from content_gateway.app.services import GatewayAttempt


class ErrorCode(str, Enum):
    HASH_DERIVATION_FAILED = "HASH_DERIVATION_FAILED"
    GATEWAY_UNREACHABLE = "GATEWAY_UNREACHABLE"
    ALL_GATEWAYS_EXHAUSTED = "ALL_GATEWAYS_EXHAUSTED"
    STATS_PERSISTENCE_FAILED = "STATS_PERSISTENCE_FAILED"
    INVALID_IDENTIFIER_FORMAT = "INVALID_IDENTIFIER_FORMAT"

    def is_retryable(self) -> bool:
        return self in {
            ErrorCode.GATEWAY_UNREACHABLE,
            ErrorCode.ALL_GATEWAYS_EXHAUSTED,
            ErrorCode.STATS_PERSISTENCE_FAILED,
        }


class ContentGatewayError(RuntimeError):
    """Base error for content_gateway failures."""

    code: ErrorCode

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "message": str(self)}


class HashDerivationError(ContentGatewayError):
    """Raised when no identifier can be derived for an upload."""

    code = ErrorCode.HASH_DERIVATION_FAILED


class GatewayUnreachable(ContentGatewayError):
    """One gateway attempt failed at the transport level."""

    code = ErrorCode.GATEWAY_UNREACHABLE

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class AllGatewaysExhausted(ContentGatewayError):
    """Every configured read gateway failed for one identifier."""

    code = ErrorCode.ALL_GATEWAYS_EXHAUSTED

    def __init__(self, identifier: str, attempts: Sequence[GatewayAttempt] = ()) -> None:
        self.identifier = identifier
        self.attempts = tuple(attempts)
        super().__init__(
            f"Content {identifier} not found on any configured gateway "
            f"({len(self.attempts)} attempted)"
        )


class StatsPersistenceError(ContentGatewayError):
    """Usage stats could not be read from or written to durable storage."""

    code = ErrorCode.STATS_PERSISTENCE_FAILED

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class InvalidIdentifierFormat(ContentGatewayError):
    """Carried in results for malformed identifiers; never raised by the client."""

    code = ErrorCode.INVALID_IDENTIFIER_FORMAT

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Malformed identifier: {reason}")
