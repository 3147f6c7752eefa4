from content_gateway.infra.firestore import FirestoreStatsStore
from content_gateway.infra.gcs import GcsStatsStore, is_retryable
from content_gateway.infra.http import HttpxGatewayFetcher

__all__ = ["FirestoreStatsStore", "GcsStatsStore", "HttpxGatewayFetcher", "is_retryable"]
