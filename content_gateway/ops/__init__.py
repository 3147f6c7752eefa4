"""Ops utilities for content_gateway."""

from content_gateway.ops.config import ClientConfig, ConfigurationError
from content_gateway.ops.logging import (
    CloudLoggingEventLogger,
    EventLogger,
    LogPayloadError,
    NullEventLogger,
    configure_logging,
)

__all__ = [
    "ClientConfig",
    "ConfigurationError",
    "EventLogger",
    "CloudLoggingEventLogger",
    "LogPayloadError",
    "NullEventLogger",
    "configure_logging",
]
