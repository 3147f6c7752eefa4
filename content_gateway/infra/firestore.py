from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from content_gateway.errors import StatsPersistenceError
from content_gateway.infra.gcs import is_retryable
from content_gateway.usage.services import StatsStore


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(slots=True)
class FirestoreStatsStore(StatsStore):
    """One document per stats key; the serialized snapshot lives in ``value``."""

    client: Any
    collection: str = "usage_stats"

    def _doc_ref(self, key: str) -> Any:
        if not isinstance(key, str) or not key.strip() or "/" in key:
            raise ValueError("stats key must be a non-empty string without '/'")
        return self.client.collection(self.collection).document(key.strip())

    def get(self, key: str) -> str | None:
        doc_ref = self._doc_ref(key)
        try:
            snapshot = doc_ref.get()
        except Exception as exc:
            raise StatsPersistenceError(
                "Firestore stats read failed", retryable=is_retryable(exc)
            ) from exc
        if not getattr(snapshot, "exists", False):
            return None
        raw = snapshot.to_dict()
        if not isinstance(raw, Mapping):
            return None
        value = raw.get("value")
        if value is None:
            return None
        if not isinstance(value, str):
            raise StatsPersistenceError("Firestore stats value must be a string")
        return value

    def set(self, key: str, value: str) -> None:
        doc_ref = self._doc_ref(key)
        try:
            doc_ref.set({"value": value, "updatedAt": _now_rfc3339()})
        except Exception as exc:
            raise StatsPersistenceError(
                "Firestore stats write failed", retryable=is_retryable(exc)
            ) from exc
