from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from content_gateway.app.services import GatewayFetcher, GatewayResponse
from content_gateway.errors import GatewayUnreachable


@dataclass(slots=True)
class HttpxGatewayFetcher(GatewayFetcher):
    """Gateway reads over httpx.

    With no injected client a short-lived ``httpx.AsyncClient`` is opened per
    request; inject a shared client (or one built on ``httpx.MockTransport``)
    to reuse connections.
    """

    client: httpx.AsyncClient | None = None
    follow_redirects: bool = True

    async def get(self, url: str, *, timeout: float) -> GatewayResponse:
        return await self._request("GET", url, timeout=timeout)

    async def head(self, url: str, *, timeout: float) -> GatewayResponse:
        return await self._request("HEAD", url, timeout=timeout)

    async def _request(self, method: str, url: str, *, timeout: float) -> GatewayResponse:
        try:
            if self.client is not None:
                response = await self.client.request(
                    method, url, timeout=timeout, follow_redirects=self.follow_redirects
                )
            else:
                async with httpx.AsyncClient(
                    timeout=timeout, follow_redirects=self.follow_redirects
                ) as client:
                    response = await client.request(method, url)
        except httpx.TimeoutException as exc:
            raise GatewayUnreachable(f"{method} {url} timed out") from exc
        except httpx.HTTPError as exc:
            raise GatewayUnreachable(f"{method} {url} failed: {type(exc).__name__}") from exc

        return GatewayResponse(
            status_code=response.status_code,
            content=response.content if method != "HEAD" else b"",
            headers=_headers(response),
        )


def _headers(response: Any) -> dict[str, str]:
    return {key.lower(): value for key, value in response.headers.items()}
