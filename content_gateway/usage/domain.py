from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any, Mapping


_FIELDS = (
    ("upload_count", "uploadCount"),
    ("download_count", "downloadCount"),
    ("error_count", "errorCount"),
    ("total_bytes", "totalBytes"),
)
_BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


class StatsPayloadInvalid(ValueError):
    """Raised when a persisted stats payload cannot be decoded."""


@dataclass(frozen=True, slots=True)
class UsageStats:
    upload_count: int = 0
    download_count: int = 0
    error_count: int = 0
    total_bytes: int = 0

    def __post_init__(self) -> None:
        for attr, _ in _FIELDS:
            value = getattr(self, attr)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise StatsPayloadInvalid(f"{attr} must be a non-negative integer")

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "UsageStats":
        if not isinstance(raw, Mapping):
            raise StatsPayloadInvalid("stats payload must be an object")
        values: dict[str, int] = {}
        for attr, key in _FIELDS:
            if key not in raw:
                raise StatsPayloadInvalid(f"stats payload is missing {key}")
            values[attr] = raw[key]
        return cls(**values)

    def to_dict(self) -> dict[str, int]:
        return {key: getattr(self, attr) for attr, key in _FIELDS}

    def with_upload(self, byte_size: int) -> "UsageStats":
        return UsageStats(
            upload_count=self.upload_count + 1,
            download_count=self.download_count,
            error_count=self.error_count,
            total_bytes=self.total_bytes + byte_size,
        )

    def with_download(self) -> "UsageStats":
        return UsageStats(
            upload_count=self.upload_count,
            download_count=self.download_count + 1,
            error_count=self.error_count,
            total_bytes=self.total_bytes,
        )

    def with_error(self) -> "UsageStats":
        return UsageStats(
            upload_count=self.upload_count,
            download_count=self.download_count,
            error_count=self.error_count + 1,
            total_bytes=self.total_bytes,
        )


def success_rate(stats: UsageStats) -> int:
    """Percentage of uploads not offset by errors, rounded half up; 100 with no uploads."""
    if stats.upload_count <= 0:
        return 100
    ratio = 100 * (stats.upload_count - stats.error_count) / stats.upload_count
    return math.floor(ratio + 0.5)


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while exponent < len(_BYTE_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size / (1024**exponent), 2)
    return f"{value:g} {_BYTE_UNITS[exponent]}"


@dataclass(frozen=True, slots=True)
class UsageReport:
    stats: UsageStats
    success_rate: int
    total_storage: str

    @classmethod
    def from_stats(cls, stats: UsageStats) -> "UsageReport":
        return cls(
            stats=stats,
            success_rate=success_rate(stats),
            total_storage=format_bytes(stats.total_bytes),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.stats.to_dict())
        payload["successRate"] = self.success_rate
        payload["totalStorage"] = self.total_storage
        return payload
