from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable
from urllib.parse import urlsplit


DEFAULT_READ_GATEWAYS: tuple[str, ...] = (
    "https://ipfs.io/ipfs",
    "https://gateway.pinata.cloud/ipfs",
    "https://cloudflare-ipfs.com/ipfs",
    "https://dweb.link/ipfs",
)
DEFAULT_WRITE_GATEWAY = "https://api.pinata.cloud/pinning/pinFileToIPFS"


class InvalidGateway(ValueError):
    """Raised when a gateway URL or registry layout is invalid."""


class GatewayRole(str, Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True, slots=True)
class Gateway:
    base_url: str
    role: GatewayRole = GatewayRole.READ
    name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.base_url, str) or not self.base_url.strip():
            raise InvalidGateway("gateway base_url must be non-empty")
        base_url = self.base_url.strip().rstrip("/")
        parts = urlsplit(base_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidGateway("gateway base_url must be an http(s) URL")
        if parts.query or parts.fragment:
            raise InvalidGateway("gateway base_url must not include query/fragment")
        object.__setattr__(self, "base_url", base_url)
        object.__setattr__(self, "role", GatewayRole(self.role))
        if not self.name:
            object.__setattr__(self, "name", parts.netloc)

    def __str__(self) -> str:
        return self.base_url

    def url_for(self, identifier: str) -> str:
        return f"{self.base_url}/{identifier.strip()}"


class GatewayRegistry:
    """Ordered read gateways plus the single write gateway.

    Read order is static priority order and is also the retry order.
    """

    def __init__(self, read_gateways: Iterable[Gateway], write_gateway: Gateway) -> None:
        reads = tuple(read_gateways)
        if not reads:
            raise InvalidGateway("registry needs at least one read gateway")
        for gateway in reads:
            if gateway.role is not GatewayRole.READ:
                raise InvalidGateway(f"{gateway.base_url} is not a read gateway")
        if len({gateway.base_url for gateway in reads}) != len(reads):
            raise InvalidGateway("read gateways must be unique")
        if write_gateway.role is not GatewayRole.WRITE:
            raise InvalidGateway(f"{write_gateway.base_url} is not a write gateway")
        self._reads = reads
        self._write = write_gateway

    @classmethod
    def from_urls(
        cls,
        read_urls: Iterable[str] = DEFAULT_READ_GATEWAYS,
        write_url: str = DEFAULT_WRITE_GATEWAY,
    ) -> "GatewayRegistry":
        return cls(
            read_gateways=[Gateway(url, GatewayRole.READ) for url in read_urls],
            write_gateway=Gateway(write_url, GatewayRole.WRITE),
        )

    def ordered_read_gateways(self) -> tuple[Gateway, ...]:
        return self._reads

    def write_gateway(self) -> Gateway:
        return self._write

    def primary(self) -> Gateway:
        return self._reads[0]

    def url_for(self, identifier: str, gateway: Gateway | None = None) -> str:
        return (gateway or self.primary()).url_for(identifier)

    def urls_for(self, identifier: str) -> tuple[str, ...]:
        return tuple(gateway.url_for(identifier) for gateway in self._reads)
