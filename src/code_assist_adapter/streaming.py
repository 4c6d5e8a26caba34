"""
Streaming decoder for ``:streamGenerateContent?alt=sse``.

Each server-sent event on the wire becomes at most one ``StreamResult``:

- ``data: [DONE]`` is a protocol terminator and produces nothing;
- any other payload is unwrapped through the envelope codec; a payload that
  fails to decode produces an error result and decoding continues with the
  next event;
- a transport or content-decoding failure while reading produces one error
  result and ends the stream.

Results are yielded in wire order, one event at a time, as the consumer
pulls them. The connection is released when the stream is exhausted, on
``aclose()`` or when leaving an ``async with`` block. A stream dropped
without being iterated or closed keeps its connection until the client
closes.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import httpx

from code_assist_adapter.constants import SSE_TERMINATOR
from code_assist_adapter.envelope import encode, unwrap
from code_assist_adapter.exceptions import AdapterError, DecodeError, StreamError
from code_assist_adapter.gemini_models import GenerateContentResponse
from code_assist_adapter.models import CodeAssistEnvelope
from code_assist_adapter.sse import iter_sse_events
from code_assist_adapter.transport import HttpTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamResult:
    """One element of a response stream: a decoded chunk or an error."""

    response: GenerateContentResponse | None = None
    error: AdapterError | None = None
    trace_id: str | None = None

    def __post_init__(self) -> None:
        if (self.response is None) == (self.error is None):
            raise ValueError("StreamResult needs exactly one of response or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> GenerateContentResponse:
        """Return the response or raise the carried error."""
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response


class ResponseStream:
    """Lazy, single-pass sequence of ``StreamResult`` for one streaming call.

    Close it (``aclose()`` or ``async with``) unless it is iterated to the end.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._released = False
        self._results = self._decode()

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    def __aiter__(self) -> ResponseStream:
        return self

    async def __anext__(self) -> StreamResult:
        return await self._results.__anext__()

    async def __aenter__(self) -> ResponseStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop decoding and release the connection."""
        await self._results.aclose()
        await self._release()

    async def _release(self) -> None:
        if not self._released:
            self._released = True
            await self._response.aclose()

    async def _decode(self) -> AsyncIterator[StreamResult]:
        try:
            async for event in iter_sse_events(self._response.aiter_lines()):
                if event.data.strip() == SSE_TERMINATOR:
                    continue
                try:
                    response, trace_id = unwrap(event.data)
                except DecodeError as e:
                    if logger.isEnabledFor(logging.WARNING):
                        logger.warning(f"Undecodable stream event: {e}")
                    yield StreamResult(error=e)
                    continue
                yield StreamResult(response=response, trace_id=trace_id)
        except httpx.RequestError as e:
            if logger.isEnabledFor(logging.ERROR):
                logger.error(f"Stream interrupted: {e!r}")
            yield StreamResult(error=StreamError(str(e) or type(e).__name__))
        finally:
            await self._release()


class StreamingDecoder:
    """Opens a streaming generate call and hands back its ``ResponseStream``."""

    def __init__(self, transport: HttpTransport, token: str) -> None:
        self.transport = transport
        self.token = token

    async def open(self, url: str, envelope: CodeAssistEnvelope) -> ResponseStream:
        """Send the envelope and return the lazy result sequence.

        Raises:
            APIError: If the backend answers with a non-2xx status; nothing
                is decoded in that case
            TransportError: If the request could not be sent
        """
        params: dict[str, Any] = {"alt": "sse"}
        response = await self.transport.open_stream(
            url, encode(envelope), self.token, params=params
        )
        return ResponseStream(response)
