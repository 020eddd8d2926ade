"""HTTP client for the remote catalog API."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from boxsync.adapters.http_resilience import RequestOptions, ResilientClient, build_limiter
from boxsync.config.http_resilience import RetryPolicy
from boxsync.domain.errors import (
    CatalogAPIError,
    CatalogNotFoundError,
    CatalogResponseError,
    CatalogTransportError,
)

from .schema import CatalogErrorResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Mapping
    from typing import BinaryIO

    from boxsync.config.catalog import CatalogConfig
    from boxsync.config.http_resilience import ResilienceConfig
    from boxsync.domain.ports.catalog import Payload

log = getLogger(__name__)

ACCESS_TOKEN_PARAM = "access_token"
UPLOAD_CHUNK_SIZE = 1024 * 1024


class CatalogClient:
    """Authenticated request/response primitive against the catalog API.

    All requests must carry the access token as a request parameter: in the
    query string for GET and uploads, as a form field otherwise. Public box
    downloads are served from the catalog host outside the API root.
    """

    def __init__(
        self,
        *,
        config: CatalogConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        # one bucket per catalog client; each call opens a fresh ResilientClient
        self._limiter = build_limiter(config.resilience.ratelimit)

    def get(self, uri: str) -> Payload:
        return asyncio.run(self._request("GET", uri, params=self._auth()))

    def post(self, uri: str, fields: Mapping[str, str]) -> Payload:
        return asyncio.run(self._request("POST", uri, data={**fields, **self._auth()}))

    def put(self, uri: str, fields: Mapping[str, str] | None = None) -> Payload:
        return asyncio.run(self._request("PUT", uri, data={**(fields or {}), **self._auth()}))

    def delete(self, uri: str) -> Payload:
        return asyncio.run(self._request("DELETE", uri, data=self._auth()))

    def upload(self, uri: str, data: BinaryIO) -> Payload:
        return asyncio.run(self._upload(uri, data))

    def download(self, path: str, sink: BinaryIO) -> int:
        return asyncio.run(self._download(path, sink))

    def _auth(self) -> dict[str, str]:
        if not self._config.token:
            return {}
        return {ACCESS_TOKEN_PARAM: self._config.token}

    def _api_url(self, uri: str) -> str:
        return self._config.api_url + uri

    def _open(self, resilience: ResilienceConfig) -> ResilientClient:
        client = self._client_factory(resilience)
        client.limiter = self._limiter
        return client

    async def _request(
        self,
        method: str,
        uri: str,
        *,
        resilience: ResilienceConfig | None = None,
        **kwargs: Any,
    ) -> Payload:
        options: RequestOptions = {  # type: ignore[assignment]
            key: value for key, value in kwargs.items() if value is not None
        }
        async with self._open(resilience or self._resilience) as client:
            try:
                response = await client.request(method, self._api_url(uri), **options)
            except httpx.HTTPError as exc:
                raise CatalogTransportError(f"{method} {uri} failed: {exc}") from exc
        log.debug("%s %s -> %s", method, uri, response.status_code)
        return _parse_response(response)

    async def _upload(self, uri: str, data: BinaryIO) -> Payload:
        # a streamed body cannot be replayed, so uploads are never retried
        resilience = replace(self._resilience, retry=RetryPolicy.fail_fast())
        return await self._request(
            "PUT",
            uri,
            resilience=resilience,
            params=self._auth(),
            content=_iter_chunks(data),
            headers={"Content-Type": "application/octet-stream"},
        )

    async def _download(self, path: str, sink: BinaryIO) -> int:
        url = self._config.base_url.rstrip("/") + path
        written = 0
        async with self._open(self._resilience) as client:
            try:
                async with client.stream("GET", url, params=self._auth()) as response:
                    if not response.is_success:
                        await response.aread()
                        raise _api_error(response)
                    async for chunk in response.aiter_bytes():
                        sink.write(chunk)
                        written += len(chunk)
            except httpx.HTTPError as exc:
                raise CatalogTransportError(f"GET {path} failed: {exc}") from exc
        log.debug("Downloaded %d bytes from %s", written, path)
        return written


async def _iter_chunks(data: BinaryIO, size: int = UPLOAD_CHUNK_SIZE) -> AsyncIterator[bytes]:
    while chunk := data.read(size):
        yield chunk


def _parse_response(response: httpx.Response) -> Payload:
    if not response.is_success:
        raise _api_error(response)
    if not response.content:
        return {}
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CatalogResponseError(
            f"Malformed catalog response from {response.request.url.path}: {exc}"
        ) from exc
    if not isinstance(payload, dict):
        raise CatalogResponseError(
            f"Unexpected catalog response payload from {response.request.url.path}"
        )
    return payload


def _api_error(response: httpx.Response) -> CatalogAPIError:
    reason = f"{response.status_code} {response.reason_phrase}".strip()
    error_cls = CatalogNotFoundError if response.status_code == 404 else CatalogAPIError
    return error_cls(reason, status_code=response.status_code, errors=_field_errors(response))


def _field_errors(response: httpx.Response) -> dict[str, list[str]] | None:
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(body, dict) or "errors" not in body:
        return None
    try:
        return CatalogErrorResponse.model_validate(body).field_errors()
    except ValidationError:
        log.warning("Unrecognized catalog error payload: %s", body)
        return None
