"""Content identifier derivation and validation."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
import hashlib
import re
from typing import Any

from content_gateway.errors import HashDerivationError


BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
V0_PREFIX = "Qm"
V0_BODY_LENGTH = 44
V1_MIN_LENGTH = 59
DIGEST_SIZE = 32

_V0_RE = re.compile(rf"^{V0_PREFIX}[{BASE58_ALPHABET}]{{{V0_BODY_LENGTH}}}$")
_V1_RE = re.compile(rf"^[a-z0-9]{{{V1_MIN_LENGTH},}}$")
_PLACEHOLDERS = {"No IPFS hash", "undefined", "null", "None"}

# CIDv1 header: version 1, raw codec, multihash code, digest length.
_CID_V1 = 0x01
_RAW_CODEC = 0x55
_SHA2_256 = 0x12
_IDENTITY = 0x00

_DJB2_SEED = 5381
_MASK32 = 0xFFFFFFFF


class IdentifierVersion(str, Enum):
    V0 = "v0"
    V1 = "v1"


class HashScheme(str, Enum):
    SHA256 = "sha256"
    METADATA = "metadata"


@dataclass(frozen=True, slots=True)
class DerivedIdentifier:
    value: str
    version: IdentifierVersion
    scheme: HashScheme
    digest: bytes

    def __str__(self) -> str:
        return self.value

    @property
    def is_fallback(self) -> bool:
        return self.scheme is HashScheme.METADATA


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    version: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"valid": self.valid}
        if self.version is not None:
            payload["version"] = self.version
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload


def _new_sha256() -> Any:
    return hashlib.new("sha256")


def encode_base58_fixed(digest: bytes, width: int = V0_BODY_LENGTH) -> str:
    """Map digest bytes onto exactly ``width`` base58 symbols.

    The digest is read as a big-endian integer and divided by 58 ``width``
    times; remainders select symbols, most significant first. A 32-byte
    digest always fits in 44 symbols, so no information is dropped.
    """
    num = int.from_bytes(digest, "big")
    symbols: list[str] = []
    for _ in range(width):
        num, remainder = divmod(num, len(BASE58_ALPHABET))
        symbols.append(BASE58_ALPHABET[remainder])
    return "".join(reversed(symbols))


def encode_base32_cid(digest: bytes, *, multihash_code: int) -> str:
    header = bytes((_CID_V1, _RAW_CODEC, multihash_code, len(digest)))
    encoded = base64.b32encode(header + digest).decode("ascii").lower().rstrip("=")
    return f"b{encoded}"


def sha256_digest(data: bytes, name: str) -> bytes:
    hasher = _new_sha256()
    hasher.update(len(data).to_bytes(8, "big"))
    hasher.update(name.encode("utf-8"))
    hasher.update(b"\x00")
    hasher.update(data)
    return hasher.digest()


def metadata_digest(size: int, name: str) -> bytes:
    """Deterministic 32-byte digest from size and name only.

    djb2 over the name and decimal size, then stretched with a 32-bit LCG.
    Low quality: distinct contents of equal size and name collide.
    """
    state = _DJB2_SEED
    for char in f"{name}{size}":
        state = (state * 33 + ord(char)) & _MASK32

    words = [state]
    for index in range(1, DIGEST_SIZE // 4):
        state = (state * 1103515245 + 12345 + index) & _MASK32
        words.append(state)
    return b"".join(word.to_bytes(4, "big") for word in words)


class IdentifierDeriver:
    """Turns blob bytes plus a file name into a stable content identifier."""

    def __init__(self, version: IdentifierVersion | str = IdentifierVersion.V0) -> None:
        self.version = IdentifierVersion(version)

    def derive(self, data: bytes | bytearray | memoryview, name: str) -> DerivedIdentifier:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise HashDerivationError(f"content must be bytes-like, got {type(data).__name__}")
        if not isinstance(name, str):
            raise HashDerivationError(f"name must be a string, got {type(name).__name__}")
        raw = bytes(data)

        try:
            digest = sha256_digest(raw, name)
            scheme = HashScheme.SHA256
        except ValueError:
            # sha256 disabled by the runtime, or a name that cannot be UTF-8 encoded.
            try:
                digest = metadata_digest(len(raw), name)
            except Exception as exc:
                raise HashDerivationError("metadata fallback failed") from exc
            scheme = HashScheme.METADATA

        return DerivedIdentifier(
            value=self.encode(digest, scheme),
            version=self.version,
            scheme=scheme,
            digest=digest,
        )

    def encode(self, digest: bytes, scheme: HashScheme) -> str:
        if self.version is IdentifierVersion.V1:
            code = _SHA2_256 if scheme is HashScheme.SHA256 else _IDENTITY
            return encode_base32_cid(digest, multihash_code=code)
        return f"{V0_PREFIX}{encode_base58_fixed(digest)}"


def validate_identifier(value: Any) -> ValidationResult:
    if not isinstance(value, str) or not value.strip():
        return ValidationResult(valid=False, reason="Identifier is empty or not a string")

    cleaned = value.strip()
    if _V0_RE.fullmatch(cleaned):
        return ValidationResult(valid=True, version=IdentifierVersion.V0.value)
    if _V1_RE.fullmatch(cleaned):
        return ValidationResult(valid=True, version=IdentifierVersion.V1.value)

    if cleaned in _PLACEHOLDERS:
        return ValidationResult(valid=False, reason="Placeholder or invalid identifier value")
    if len(cleaned) < 20:
        return ValidationResult(valid=False, reason="Identifier too short")
    if cleaned.startswith(V0_PREFIX) and len(cleaned) == len(V0_PREFIX) + V0_BODY_LENGTH:
        return ValidationResult(
            valid=False, reason="Identifier contains symbols outside the base58 alphabet"
        )
    return ValidationResult(valid=False, reason="Identifier does not match a known format")
