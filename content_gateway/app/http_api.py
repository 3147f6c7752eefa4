"""Thin HTTP surface over ContentClient for functions_framework requests."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Mapping

from content_gateway.app.client import ContentClient
from content_gateway.app.services import UploadFile
from content_gateway.errors import (
    AllGatewaysExhausted,
    ContentGatewayError,
    HashDerivationError,
    InvalidIdentifierFormat,
)
from content_gateway.ops.logging import EventLogger, NullEventLogger


_JSON_HEADERS = {"Content-Type": "application/json"}

HttpResponse = tuple[Any, int, Mapping[str, str]]


def _json_response(payload: Any, status: int = 200) -> HttpResponse:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")), status, dict(_JSON_HEADERS)


def _error_response(code: str, message: str, status: int) -> HttpResponse:
    return _json_response({"error": {"code": code, "message": message}}, status)


def _content_gateway_error(exc: ContentGatewayError, status: int) -> HttpResponse:
    return _json_response({"error": exc.to_dict()}, status)


def _split_path(path: str) -> list[str]:
    return [segment for segment in (path or "").split("/") if segment]


def _header(request: Any, name: str) -> str | None:
    headers = getattr(request, "headers", None)
    if headers is None:
        return None
    value = headers.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _arg(request: Any, name: str) -> str | None:
    args = getattr(request, "args", None)
    if args is None:
        return None
    value = args.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def handle_http_request(
    request: Any,
    client: ContentClient,
    *,
    event_logger: EventLogger | None = None,
) -> HttpResponse:
    """Route one request; every failure becomes a JSON error body."""
    event_logger = event_logger or NullEventLogger()
    method = (getattr(request, "method", "GET") or "GET").upper()
    segments = _split_path(getattr(request, "path", "/"))

    try:
        if segments == ["upload"]:
            if method != "POST":
                return _error_response("METHOD_NOT_ALLOWED", "upload requires POST", 405)
            return _upload(request, client)

        if segments == ["stats"]:
            if method != "GET":
                return _error_response("METHOD_NOT_ALLOWED", "stats requires GET", 405)
            return _json_response(client.get_stats().to_dict())

        if len(segments) == 2 and segments[0] in ("retrieve", "info", "validate", "url"):
            if method != "GET":
                return _error_response("METHOD_NOT_ALLOWED", f"{segments[0]} requires GET", 405)
            action, identifier = segments
            if action == "retrieve":
                return _retrieve(request, client, identifier)
            if action == "info":
                info = asyncio.run(client.get_info(identifier))
                return _json_response(info.to_dict())
            if action == "validate":
                return _json_response(client.validate(identifier).to_dict())
            return _url(request, client, identifier)

        return _error_response("NOT_FOUND", "unknown route", 404)
    except Exception as exc:
        event_logger.log(
            event="http_request_failed",
            severity="ERROR",
            method=method,
            route="/".join(segments[:1]),
            errorType=type(exc).__name__,
        )
        return _error_response("INTERNAL", "request failed", 500)


def _upload(request: Any, client: ContentClient) -> HttpResponse:
    name = _arg(request, "name") or _header(request, "X-File-Name")
    if name is None:
        return _error_response("INVALID_REQUEST", "file name is required", 400)
    payload = request.get_data() or b""
    upload = UploadFile(name=name, data=payload, mime_type=_header(request, "Content-Type"))
    try:
        result = asyncio.run(client.upload(upload))
    except HashDerivationError as exc:
        return _content_gateway_error(exc, 500)
    return _json_response(result.to_dict(), 201)


def _retrieve(request: Any, client: ContentClient, identifier: str) -> HttpResponse:
    outcome = asyncio.run(client.retrieve(identifier, file_name=_arg(request, "name")))
    if outcome.success:
        headers = {
            "Content-Type": outcome.mime_type or "application/octet-stream",
            "X-Gateway-Used": outcome.gateway_used.base_url if outcome.gateway_used else "",
        }
        return outcome.content or b"", 200, headers
    if isinstance(outcome.error, InvalidIdentifierFormat):
        return _content_gateway_error(outcome.error, 400)
    if isinstance(outcome.error, AllGatewaysExhausted):
        return _content_gateway_error(outcome.error, 404)
    return _error_response("INTERNAL", "retrieval failed", 500)


def _url(request: Any, client: ContentClient, identifier: str) -> HttpResponse:
    gateways = client.registry.ordered_read_gateways()
    raw_index = _arg(request, "gateway")
    gateway = None
    if raw_index is not None:
        try:
            index = int(raw_index)
        except ValueError:
            return _error_response("INVALID_REQUEST", "gateway must be an integer index", 400)
        if index < 0 or index >= len(gateways):
            return _error_response("INVALID_REQUEST", "gateway index out of range", 400)
        gateway = gateways[index]
    return _json_response(
        {
            "url": client.url_for(identifier, gateway),
            "urls": list(client.urls_for(identifier)),
        }
    )
