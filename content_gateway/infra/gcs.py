from __future__ import annotations

from dataclasses import dataclass

from content_gateway.errors import StatsPersistenceError
from content_gateway.usage.services import StatsStore

try:
    from google.api_core import exceptions as gax  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    gax = None


def is_retryable(exc: Exception) -> bool:
    if gax is not None:
        retryable = (
            gax.ServiceUnavailable,
            gax.InternalServerError,
            gax.TooManyRequests,
            gax.DeadlineExceeded,
            gax.GatewayTimeout,
        )
        if isinstance(exc, retryable):
            return True
    return exc.__class__.__name__ in (
        "ServiceUnavailable",
        "InternalServerError",
        "TooManyRequests",
        "DeadlineExceeded",
        "GatewayTimeout",
    )


def _is_not_found(exc: Exception) -> bool:
    if gax is not None and isinstance(exc, gax.NotFound):
        return True
    return exc.__class__.__name__ == "NotFound"


@dataclass(slots=True)
class GcsStatsStore(StatsStore):
    """Stats snapshots as JSON objects at ``<prefix>/<key>.json``."""

    client: object
    bucket: str
    prefix: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.bucket, str) or not self.bucket.strip():
            raise ValueError("bucket must be a non-empty string")
        self.bucket = self.bucket.strip()
        if self.prefix is not None:
            self.prefix = self.prefix.strip().strip("/") or None

    def object_path(self, key: str) -> str:
        if not isinstance(key, str) or not key.strip() or "/" in key:
            raise ValueError("stats key must be a non-empty string without '/'")
        name = f"{key.strip()}.json"
        return f"{self.prefix}/{name}" if self.prefix else name

    def get(self, key: str) -> str | None:
        path = self.object_path(key)
        try:
            blob = self.client.bucket(self.bucket).blob(path)
            if not blob.exists():
                return None
            return blob.download_as_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StatsPersistenceError("GCS stats object is not UTF-8") from exc
        except Exception as exc:
            if _is_not_found(exc):
                return None
            raise StatsPersistenceError("GCS stats read failed", retryable=is_retryable(exc)) from exc

    def set(self, key: str, value: str) -> None:
        path = self.object_path(key)
        try:
            blob = self.client.bucket(self.bucket).blob(path)
            blob.upload_from_string(value.encode("utf-8"), content_type="application/json")
        except Exception as exc:
            raise StatsPersistenceError("GCS stats write failed", retryable=is_retryable(exc)) from exc
