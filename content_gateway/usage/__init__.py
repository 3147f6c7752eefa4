from content_gateway.usage.domain import (
    StatsPayloadInvalid,
    UsageReport,
    UsageStats,
    format_bytes,
    success_rate,
)
from content_gateway.usage.services import InMemoryStatsStore, StatsStore, UsageLedger

__all__ = [
    "InMemoryStatsStore",
    "StatsPayloadInvalid",
    "StatsStore",
    "UsageLedger",
    "UsageReport",
    "UsageStats",
    "format_bytes",
    "success_rate",
]
