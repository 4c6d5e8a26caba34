"""
HTTP transport for the Code Assist adapter.

``HttpTransport`` is a thin layer over ``httpx.AsyncClient`` that attaches
the bearer token, translates ``httpx`` failures into ``TransportError`` and
turns non-2xx replies into ``APIError`` carrying the exact status and body.
The connection pool belongs to the ``httpx.AsyncClient``.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from code_assist_adapter.constants import (
    DEFAULT_CONNECTION_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    SSE_MEDIA_TYPE,
)
from code_assist_adapter.exceptions import APIError, DecodeError, TransportError
from code_assist_adapter.model_bases import DomainModel

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=DomainModel)


def build_timeout(
    connect_timeout: float = DEFAULT_CONNECTION_TIMEOUT,
    read_timeout: float = DEFAULT_READ_TIMEOUT,
) -> httpx.Timeout:
    return httpx.Timeout(read_timeout, connect=connect_timeout)


def auth_headers(token: str, *, accept: str = "application/json") -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": accept,
    }


class HttpTransport:
    """Performs authenticated requests against the backend."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: httpx.Timeout | None = None,
    ) -> None:
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout or build_timeout())

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()

    async def post_json(
        self,
        url: str,
        body: dict[str, Any],
        token: str,
        *,
        context: str | None = None,
    ) -> httpx.Response:
        """POST a JSON body and return the (successful) response.

        Raises:
            TransportError: If the request could not be completed
            APIError: If the backend returned a non-2xx status
        """
        try:
            response = await self.client.post(url, json=body, headers=auth_headers(token))
        except httpx.RequestError as e:
            if logger.isEnabledFor(logging.ERROR):
                logger.error(f"Request error calling {url}: {e}")
            raise TransportError(str(e) or type(e).__name__) from e

        if not response.is_success:
            if logger.isEnabledFor(logging.WARNING):
                logger.warning(
                    f"HTTP error from {url}: {response.status_code} - {response.text}"
                )
            raise APIError(response.status_code, response.text, context=context)
        return response

    async def get_json(
        self, url: str, token: str, *, context: str | None = None
    ) -> httpx.Response:
        try:
            response = await self.client.get(url, headers=auth_headers(token))
        except httpx.RequestError as e:
            if logger.isEnabledFor(logging.ERROR):
                logger.error(f"Request error calling {url}: {e}")
            raise TransportError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise APIError(response.status_code, response.text, context=context)
        return response

    async def open_stream(
        self,
        url: str,
        body: dict[str, Any],
        token: str,
        *,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a POST with a streamed reply.

        The caller owns the returned response and must close it with
        ``aclose()``. On a non-2xx status the body is read, the response is
        closed and ``APIError`` is raised before anything is decoded.
        """
        request = self.client.build_request(
            "POST",
            url,
            json=body,
            params=params,
            headers=auth_headers(token, accept=SSE_MEDIA_TYPE),
        )
        try:
            response = await self.client.send(request, stream=True)
        except httpx.RequestError as e:
            if logger.isEnabledFor(logging.ERROR):
                logger.error(f"Request error opening stream {url}: {e}")
            raise TransportError(str(e) or type(e).__name__) from e

        if not response.is_success:
            try:
                body_bytes = await response.aread()
                body_text = body_bytes.decode("utf-8", errors="replace")
            except httpx.HTTPError:
                body_text = ""
            finally:
                await response.aclose()
            if logger.isEnabledFor(logging.WARNING):
                logger.warning(
                    f"HTTP error opening stream: {response.status_code} - {body_text}"
                )
            raise APIError(response.status_code, body_text)
        return response


def parse_model(response: httpx.Response, model_cls: type[ModelT]) -> ModelT:
    """Validate a JSON response body into ``model_cls``.

    Raises:
        DecodeError: If the body is not JSON or does not match the model
    """
    try:
        return model_cls.model_validate_json(response.content)
    except ValidationError as e:
        raise DecodeError(
            f"{model_cls.__name__}: {e.error_count()} validation error(s)",
            details={"body": response.text[:200]},
        ) from e
