from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import mimetypes
from typing import Any, Mapping, Protocol

from content_gateway.errors import ContentGatewayError
from content_gateway.gateways.domain import Gateway


DEFAULT_MIME_TYPE = "application/octet-stream"


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class GatewayResponse:
    status_code: int
    content: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


class GatewayFetcher(Protocol):
    """Transport for gateway reads; transport failures raise GatewayUnreachable."""

    async def get(self, url: str, *, timeout: float) -> GatewayResponse:
        ...

    async def head(self, url: str, *, timeout: float) -> GatewayResponse:
        ...


@dataclass(frozen=True, slots=True)
class GatewayAttempt:
    gateway: Gateway
    url: str
    status_code: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "gateway": self.gateway.name,
            "url": self.url,
            "statusCode": self.status_code,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class UploadFile:
    name: str
    data: bytes
    mime_type: str | None = None

    def __post_init__(self) -> None:
        if self.mime_type is None or not str(self.mime_type).strip():
            guessed = None
            if isinstance(self.name, str):
                guessed, _ = mimetypes.guess_type(self.name)
            object.__setattr__(self, "mime_type", guessed or DEFAULT_MIME_TYPE)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class UploadResult:
    identifier: str
    byte_size: int
    mime_type: str
    file_name: str
    source_gateway: Gateway
    url: str
    scheme: str
    pooled: bool = False
    success: bool = True
    timestamp_utc: str = field(default_factory=_now_rfc3339)

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "byteSize": self.byte_size,
            "mimeType": self.mime_type,
            "fileName": self.file_name,
            "sourceGateway": self.source_gateway.base_url,
            "url": self.url,
            "scheme": self.scheme,
            "pooled": self.pooled,
            "success": self.success,
            "timestampUtc": self.timestamp_utc,
        }


@dataclass(frozen=True, slots=True)
class RetrievalOutcome:
    success: bool
    content: bytes | None = None
    gateway_used: Gateway | None = None
    error: ContentGatewayError | None = None
    attempts: tuple[GatewayAttempt, ...] = ()
    mime_type: str | None = None
    file_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "byteSize": len(self.content) if self.content is not None else None,
            "gatewayUsed": self.gateway_used.base_url if self.gateway_used is not None else None,
            "mimeType": self.mime_type,
            "fileName": self.file_name,
            "error": self.error.to_dict() if self.error is not None else None,
            "attempts": [attempt.to_dict() for attempt in self.attempts],
        }


@dataclass(frozen=True, slots=True)
class ContentInfo:
    accessible: bool
    size: int = 0
    mime_type: str = "unknown"
    last_modified: str | None = None
    gateway: Gateway | None = None
    attempts: tuple[GatewayAttempt, ...] = ()

    @classmethod
    def from_response(
        cls, response: GatewayResponse, *, gateway: Gateway, attempts: tuple[GatewayAttempt, ...]
    ) -> "ContentInfo":
        raw_size = response.header("content-length") or "0"
        try:
            size = max(int(raw_size), 0)
        except ValueError:
            size = 0
        return cls(
            accessible=True,
            size=size,
            mime_type=response.header("content-type") or DEFAULT_MIME_TYPE,
            last_modified=response.header("last-modified"),
            gateway=gateway,
            attempts=attempts,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "accessible": self.accessible,
            "size": self.size,
            "mimeType": self.mime_type,
            "lastModified": self.last_modified,
            "gateway": self.gateway.base_url if self.gateway is not None else None,
        }
