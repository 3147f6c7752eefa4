import logging
import os

import functions_framework

from content_gateway.app.client import ContentClient, FallbackPolicy
from content_gateway.app.http_api import handle_http_request
from content_gateway.gateways.domain import GatewayRegistry
from content_gateway.identity.domain import IdentifierDeriver
from content_gateway.infra.firestore import FirestoreStatsStore
from content_gateway.infra.gcs import GcsStatsStore
from content_gateway.infra.http import HttpxGatewayFetcher
from content_gateway.ops.config import ClientConfig, ConfigurationError
from content_gateway.ops.logging import CloudLoggingEventLogger, configure_logging
from content_gateway.usage.services import InMemoryStatsStore, StatsStore, UsageLedger

configure_logging()
logger = logging.getLogger(__name__)
try:
    CONFIG = ClientConfig.from_env()
except ConfigurationError as exc:
    logger.error("Configuration error: %s", exc)
    raise

configure_logging(level=CONFIG.log_level)

ENV_LABEL = os.environ.get("ENV") or os.environ.get("ENVIRONMENT") or "dev"
EVENT_LOGGER = CloudLoggingEventLogger(
    service="content_gateway",
    env=ENV_LABEL,
    component="content_client",
    logger=logging.getLogger(),
)


def _build_stats_store(config: ClientConfig) -> StatsStore:
    if config.stats_backend == "firestore":
        try:
            from google.cloud import firestore  # type: ignore
        except Exception as exc:  # pragma: no cover - runtime guard
            logger.error("Firestore client unavailable: %s", exc)
            raise
        client = firestore.Client(project=config.gcp_project, database=config.firestore_database)
        return FirestoreStatsStore(client, collection=config.stats_collection)

    if config.stats_backend == "gcs":
        try:
            from google.cloud import storage  # type: ignore
        except Exception as exc:  # pragma: no cover - runtime guard
            logger.error("GCS client unavailable: %s", exc)
            raise
        client = storage.Client(project=config.gcp_project)
        return GcsStatsStore(client, bucket=config.stats_bucket, prefix=config.stats_prefix)

    return InMemoryStatsStore()


LEDGER = UsageLedger(
    _build_stats_store(CONFIG),
    key=CONFIG.stats_key,
    event_logger=EVENT_LOGGER,
)
CONTENT_CLIENT = ContentClient(
    registry=GatewayRegistry.from_urls(CONFIG.read_gateways, CONFIG.write_gateway),
    ledger=LEDGER,
    fetcher=HttpxGatewayFetcher(),
    deriver=IdentifierDeriver(CONFIG.identifier_version),
    policy=FallbackPolicy.from_name(CONFIG.fallback_policy),
    event_logger=EVENT_LOGGER,
    gateway_timeout_seconds=float(CONFIG.gateway_timeout_seconds),
    progress_stage_delay_seconds=CONFIG.progress_stage_delay_seconds,
)


@functions_framework.http
def content_gateway(request):
    """HTTP entry for uploads, gateway retrieval, validation and usage stats."""
    return handle_http_request(request, CONTENT_CLIENT, event_logger=EVENT_LOGGER)
