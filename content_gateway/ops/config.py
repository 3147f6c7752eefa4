from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping

from content_gateway.gateways.domain import DEFAULT_READ_GATEWAYS, DEFAULT_WRITE_GATEWAY


ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}
ALLOWED_FALLBACK_POLICIES = {"content_hash", "pooled"}
ALLOWED_IDENTIFIER_VERSIONS = {"v0", "v1"}
ALLOWED_STATS_BACKENDS = {"memory", "firestore", "gcs"}

DEFAULT_STATS_KEY = "content_store_stats"


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or invalid."""


def _optional_env(env: Mapping[str, str], name: str, default: str | None = None) -> str | None:
    value = env.get(name)
    if value is None:
        return default
    value = value.strip()
    return value if value else default


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "")
    if not raw.strip():
        return default
    try:
        parsed = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid integer for {name}") from exc
    if parsed <= 0:
        raise ConfigurationError(f"Invalid integer for {name}")
    return parsed


def _parse_non_negative_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "")
    if not raw.strip():
        return default
    try:
        parsed = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid number for {name}") from exc
    if parsed < 0 or parsed != parsed:
        raise ConfigurationError(f"Invalid number for {name}")
    return parsed


def _parse_choice(env: Mapping[str, str], name: str, default: str, allowed: set[str]) -> str:
    value = (_optional_env(env, name, default) or default).lower()
    if value not in allowed:
        choices = "|".join(sorted(allowed))
        raise ConfigurationError(f"{name} must be one of {choices}")
    return value


def _parse_url_list(raw: str, *, name: str) -> tuple[str, ...]:
    items = [item.strip() for item in raw.split(",")]
    items = [item for item in items if item]
    if not items:
        raise ConfigurationError(f"{name} must contain at least one URL")
    for item in items:
        if not item.startswith(("http://", "https://")):
            raise ConfigurationError(f"{name} entries must be http(s) URLs")
    return tuple(dict.fromkeys(items))


@dataclass(frozen=True, slots=True)
class ClientConfig:
    read_gateways: tuple[str, ...]
    write_gateway: str
    gateway_timeout_seconds: int
    progress_stage_delay_seconds: float
    fallback_policy: str
    identifier_version: str
    stats_backend: str
    stats_key: str
    stats_collection: str
    stats_bucket: str | None
    stats_prefix: str | None
    gcp_project: str | None
    firestore_database: str
    log_level: str

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ClientConfig":
        env = env if env is not None else os.environ

        read_raw = _optional_env(env, "READ_GATEWAYS")
        read_gateways = (
            _parse_url_list(read_raw, name="READ_GATEWAYS")
            if read_raw is not None
            else DEFAULT_READ_GATEWAYS
        )
        write_gateway = _optional_env(env, "WRITE_GATEWAY", DEFAULT_WRITE_GATEWAY) or DEFAULT_WRITE_GATEWAY
        if not write_gateway.startswith(("http://", "https://")):
            raise ConfigurationError("WRITE_GATEWAY must be an http(s) URL")

        gateway_timeout_seconds = _parse_int(env, "GATEWAY_TIMEOUT_SECONDS", 8)
        progress_stage_delay_seconds = _parse_non_negative_float(
            env, "PROGRESS_STAGE_DELAY_SECONDS", 0.15
        )

        fallback_policy = _parse_choice(
            env, "FALLBACK_POLICY", "content_hash", ALLOWED_FALLBACK_POLICIES
        )
        identifier_version = _parse_choice(
            env, "IDENTIFIER_VERSION", "v0", ALLOWED_IDENTIFIER_VERSIONS
        )
        stats_backend = _parse_choice(env, "STATS_BACKEND", "memory", ALLOWED_STATS_BACKENDS)

        stats_key = _optional_env(env, "STATS_KEY", DEFAULT_STATS_KEY) or DEFAULT_STATS_KEY
        stats_collection = _optional_env(env, "STATS_COLLECTION", "usage_stats") or "usage_stats"
        if "/" in stats_key:
            raise ConfigurationError("STATS_KEY must not contain '/'")
        if "/" in stats_collection:
            raise ConfigurationError("STATS_COLLECTION must not contain '/'")

        stats_bucket = _optional_env(env, "STATS_BUCKET")
        stats_prefix = _optional_env(env, "STATS_PREFIX")
        if stats_backend == "gcs" and stats_bucket is None:
            raise ConfigurationError("Missing required env var: STATS_BUCKET")

        gcp_project = _optional_env(env, "GCP_PROJECT")
        firestore_database = _optional_env(env, "FIRESTORE_DATABASE", "(default)") or "(default)"

        log_level = (_optional_env(env, "LOG_LEVEL", "INFO") or "INFO").upper()
        if log_level not in ALLOWED_LOG_LEVELS:
            raise ConfigurationError("LOG_LEVEL must be one of DEBUG|INFO|WARNING|ERROR")

        return cls(
            read_gateways=read_gateways,
            write_gateway=write_gateway,
            gateway_timeout_seconds=gateway_timeout_seconds,
            progress_stage_delay_seconds=progress_stage_delay_seconds,
            fallback_policy=fallback_policy,
            identifier_version=identifier_version,
            stats_backend=stats_backend,
            stats_key=stats_key,
            stats_collection=stats_collection,
            stats_bucket=stats_bucket,
            stats_prefix=stats_prefix,
            gcp_project=gcp_project,
            firestore_database=firestore_database,
            log_level=log_level,
        )
