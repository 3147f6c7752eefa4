from content_gateway.app.client import (
    DEFAULT_IDENTIFIER_POOL,
    PROGRESS_STAGES,
    ContentClient,
    FallbackMode,
    FallbackPolicy,
)
from content_gateway.app.http_api import handle_http_request
from content_gateway.app.services import (
    ContentInfo,
    GatewayAttempt,
    GatewayFetcher,
    GatewayResponse,
    RetrievalOutcome,
    UploadFile,
    UploadResult,
)

__all__ = [
    "DEFAULT_IDENTIFIER_POOL",
    "PROGRESS_STAGES",
    "ContentClient",
    "ContentInfo",
    "FallbackMode",
    "FallbackPolicy",
    "GatewayAttempt",
    "GatewayFetcher",
    "GatewayResponse",
    "RetrievalOutcome",
    "UploadFile",
    "UploadResult",
    "handle_http_request",
]
