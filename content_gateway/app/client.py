from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import inspect
import logging
import mimetypes
from typing import Any, Callable, Sequence

from content_gateway.app.services import (
    ContentInfo,
    GatewayAttempt,
    GatewayFetcher,
    GatewayResponse,
    RetrievalOutcome,
    UploadFile,
    UploadResult,
)
from content_gateway.errors import (
    AllGatewaysExhausted,
    GatewayUnreachable,
    HashDerivationError,
    InvalidIdentifierFormat,
)
from content_gateway.gateways.domain import Gateway, GatewayRegistry
from content_gateway.identity.domain import (
    DerivedIdentifier,
    IdentifierDeriver,
    ValidationResult,
    validate_identifier,
)
from content_gateway.ops.logging import EventLogger, LogPayloadError, NullEventLogger
from content_gateway.usage.domain import UsageReport
from content_gateway.usage.services import UsageLedger


PROGRESS_STAGES: tuple[float, ...] = (0.0, 0.15, 0.30, 0.50, 0.70, 0.85, 0.95, 1.0)

DEFAULT_IDENTIFIER_POOL: tuple[str, ...] = (
    "QmR7GSQM93Cx5eAg6a6yRzNde1FQv7uL6X1o4k7zrJa3Xx",
    "QmYwAPJzv5CZsnAzt8auVkRJe2pYvKnVdx4nALwGbAx7B9",
    "QmQPeNsJPyVWPFDVHb77w8G42Fvo15z4bG2X8D2GhfbSXc",
    "QmNr4ZrKJuRfJJ5XLJf8LVa8L8zT7QrP4jM2E5kQ2oRt3S",
    "QmZtmD2qt6fJot32nabSP3CUjicnypEBz7bHVeFwLaZ82c",
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], Any]


class FallbackMode(str, Enum):
    CONTENT_HASH = "content_hash"
    POOLED = "pooled"


@dataclass(frozen=True, slots=True)
class FallbackPolicy:
    """How an upload turns a derived identifier into the published one.

    ``content_hash`` publishes the derived identifier against the write
    gateway. ``pooled`` is a demo mode that always succeeds with an
    identifier from a fixed pool and points at the first read gateway; it
    gives no content-addressing guarantee.
    """

    mode: FallbackMode = FallbackMode.CONTENT_HASH
    pool: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", FallbackMode(self.mode))
        object.__setattr__(self, "pool", tuple(self.pool))
        if self.mode is FallbackMode.POOLED:
            if not self.pool:
                raise ValueError("pooled policy needs a non-empty identifier pool")
            for candidate in self.pool:
                if not validate_identifier(candidate).valid:
                    raise ValueError(f"pool identifier is not valid: {candidate!r}")

    @classmethod
    def content_hash(cls) -> "FallbackPolicy":
        return cls(FallbackMode.CONTENT_HASH)

    @classmethod
    def pooled(cls, pool: Sequence[str] = DEFAULT_IDENTIFIER_POOL) -> "FallbackPolicy":
        return cls(FallbackMode.POOLED, tuple(pool))

    @classmethod
    def from_name(cls, name: str) -> "FallbackPolicy":
        if FallbackMode(name) is FallbackMode.POOLED:
            return cls.pooled()
        return cls.content_hash()

    @property
    def is_pooled(self) -> bool:
        return self.mode is FallbackMode.POOLED

    def select_identifier(self, derived: DerivedIdentifier, byte_size: int) -> str:
        if not self.is_pooled:
            return derived.value
        return self.pool[(derived.digest[0] + byte_size) % len(self.pool)]

    def source_gateway(self, registry: GatewayRegistry) -> Gateway:
        if self.is_pooled:
            return registry.primary()
        return registry.write_gateway()


async def _report_progress(on_progress: ProgressCallback | None, value: float) -> None:
    if on_progress is None:
        return
    result = on_progress(value)
    if inspect.isawaitable(result):
        await result


class ContentClient:
    """Uploads derive identifiers; retrievals walk the read gateways in order."""

    def __init__(
        self,
        *,
        registry: GatewayRegistry,
        ledger: UsageLedger,
        fetcher: GatewayFetcher,
        deriver: IdentifierDeriver | None = None,
        policy: FallbackPolicy | None = None,
        event_logger: EventLogger | None = None,
        gateway_timeout_seconds: float = 8.0,
        progress_stage_delay_seconds: float = 0.15,
    ) -> None:
        if gateway_timeout_seconds <= 0:
            raise ValueError("gateway_timeout_seconds must be > 0")
        if progress_stage_delay_seconds < 0:
            raise ValueError("progress_stage_delay_seconds must be >= 0")
        self._registry = registry
        self._ledger = ledger
        self._fetcher = fetcher
        self._deriver = deriver or IdentifierDeriver()
        self._policy = policy or FallbackPolicy.content_hash()
        self._event_logger = event_logger or NullEventLogger()
        self._gateway_timeout_seconds = gateway_timeout_seconds
        self._progress_stage_delay_seconds = progress_stage_delay_seconds

    @property
    def registry(self) -> GatewayRegistry:
        return self._registry

    @property
    def ledger(self) -> UsageLedger:
        return self._ledger

    @property
    def policy(self) -> FallbackPolicy:
        return self._policy

    async def upload(
        self, file: UploadFile, on_progress: ProgressCallback | None = None
    ) -> UploadResult:
        await _report_progress(on_progress, PROGRESS_STAGES[0])

        try:
            derived = self._deriver.derive(file.data, file.name)
        except HashDerivationError as exc:
            self._ledger.record_error()
            self._log(
                event="upload_failed",
                severity="ERROR",
                fileName=str(file.name)[:200],
                error={"code": exc.code.value, "message": str(exc)[:500]},
            )
            raise

        for stage in PROGRESS_STAGES[1:]:
            if self._progress_stage_delay_seconds:
                await asyncio.sleep(self._progress_stage_delay_seconds)
            await _report_progress(on_progress, stage)

        byte_size = file.size
        identifier = self._policy.select_identifier(derived, byte_size)
        source_gateway = self._policy.source_gateway(self._registry)
        self._ledger.record_upload(byte_size)

        result = UploadResult(
            identifier=identifier,
            byte_size=byte_size,
            mime_type=file.mime_type or "application/octet-stream",
            file_name=file.name,
            source_gateway=source_gateway,
            url=self._registry.url_for(identifier),
            scheme=derived.scheme.value,
            pooled=self._policy.is_pooled,
        )
        self._log(
            event="upload_completed",
            identifier=identifier[:200],
            byteSize=byte_size,
            mimeType=result.mime_type[:200],
            scheme=result.scheme,
            pooled=result.pooled,
            sourceGateway=source_gateway.base_url[:500],
        )
        return result

    async def retrieve(self, identifier: str, file_name: str | None = None) -> RetrievalOutcome:
        validation = validate_identifier(identifier)
        if not validation.valid:
            error = InvalidIdentifierFormat(str(identifier), validation.reason or "invalid")
            self._log(
                event="retrieval_rejected",
                severity="WARNING",
                reason=error.reason,
            )
            return RetrievalOutcome(success=False, error=error, file_name=file_name)

        cleaned = identifier.strip()
        attempts: list[GatewayAttempt] = []
        for gateway in self._registry.ordered_read_gateways():
            url = self._registry.url_for(cleaned, gateway)
            response, attempt = await self._attempt(self._fetcher.get, gateway, url)
            attempts.append(attempt)
            if response is None:
                continue

            self._ledger.record_download()
            mime_type = response.header("content-type")
            if not mime_type and file_name:
                mime_type, _ = mimetypes.guess_type(file_name)
            self._log(
                event="retrieval_succeeded",
                identifier=cleaned[:200],
                gateway=gateway.name,
                attemptCount=len(attempts),
                byteSize=len(response.content),
            )
            return RetrievalOutcome(
                success=True,
                content=response.content,
                gateway_used=gateway,
                attempts=tuple(attempts),
                mime_type=mime_type or "application/octet-stream",
                file_name=file_name,
            )

        self._ledger.record_error()
        error = AllGatewaysExhausted(cleaned, attempts)
        self._log(
            event="retrieval_exhausted",
            severity="ERROR",
            identifier=cleaned[:200],
            attemptCount=len(attempts),
            gateways=[attempt.gateway.name for attempt in attempts],
        )
        return RetrievalOutcome(
            success=False,
            error=error,
            attempts=tuple(attempts),
            file_name=file_name,
        )

    async def get_info(self, identifier: str) -> ContentInfo:
        if not validate_identifier(identifier).valid:
            return ContentInfo(accessible=False)

        cleaned = identifier.strip()
        attempts: list[GatewayAttempt] = []
        for gateway in self._registry.ordered_read_gateways():
            url = self._registry.url_for(cleaned, gateway)
            response, attempt = await self._attempt(self._fetcher.head, gateway, url)
            attempts.append(attempt)
            if response is not None:
                return ContentInfo.from_response(response, gateway=gateway, attempts=tuple(attempts))
        return ContentInfo(accessible=False, attempts=tuple(attempts))

    async def check_access(self, identifier: str) -> bool:
        info = await self.get_info(identifier)
        return info.accessible

    async def _attempt(
        self,
        call: Callable[..., Any],
        gateway: Gateway,
        url: str,
    ) -> tuple[GatewayResponse | None, GatewayAttempt]:
        timeout = self._gateway_timeout_seconds
        try:
            response = await asyncio.wait_for(call(url, timeout=timeout), timeout=timeout)
        except asyncio.TimeoutError:
            return None, self._failed_attempt(gateway, url, error=f"timed out after {timeout}s")
        except GatewayUnreachable as exc:
            return None, self._failed_attempt(gateway, url, error=str(exc))

        if not response.ok:
            return None, self._failed_attempt(
                gateway, url, status_code=response.status_code, error=f"HTTP {response.status_code}"
            )
        return response, GatewayAttempt(gateway=gateway, url=url, status_code=response.status_code)

    def _failed_attempt(
        self,
        gateway: Gateway,
        url: str,
        *,
        status_code: int | None = None,
        error: str,
    ) -> GatewayAttempt:
        self._log(
            event="gateway_attempt_failed",
            severity="WARNING",
            gateway=gateway.name,
            url=url[:500],
            statusCode=status_code,
            reason=error[:500],
        )
        return GatewayAttempt(gateway=gateway, url=url, status_code=status_code, error=error)

    def _log(self, event: str, severity: str = "INFO", **fields: Any) -> None:
        try:
            self._event_logger.log(event=event, severity=severity, **fields)
        except LogPayloadError as exc:
            logger.warning("Dropped %s event: %s", event, exc)

    def validate(self, identifier: Any) -> ValidationResult:
        return validate_identifier(identifier)

    def url_for(self, identifier: str, gateway: Gateway | None = None) -> str:
        return self._registry.url_for(identifier, gateway)

    def urls_for(self, identifier: str) -> tuple[str, ...]:
        return self._registry.urls_for(identifier)

    def get_stats(self) -> UsageReport:
        return self._ledger.report()
