from __future__ import annotations

import gzip
import json
import logging

import httpx
import pytest
from pytest_httpx import HTTPXMock

from code_assist_adapter.envelope import wrap
from code_assist_adapter.exceptions import APIError, DecodeError, StreamError
from code_assist_adapter.gemini_models import GenerateContentResponse
from code_assist_adapter.streaming import ResponseStream, StreamingDecoder, StreamResult
from code_assist_adapter.transport import HttpTransport
from tests.helpers import (
    STREAM_URL,
    TEST_PROJECT,
    TEST_TOKEN,
    BrokenStream,
    ChunkedStream,
    response_envelope,
    sse_body,
)

ENDPOINT = STREAM_URL.split("?", 1)[0]
SSE_HEADERS = {"Content-Type": "text/event-stream"}


def _envelope():
    return wrap("gemini-3-flash-preview", TEST_PROJECT, {"contents": []})


async def _open(transport: HttpTransport) -> ResponseStream:
    return await StreamingDecoder(transport, TEST_TOKEN).open(ENDPOINT, _envelope())


def test_stream_result_requires_exactly_one_side() -> None:
    with pytest.raises(ValueError):
        StreamResult()
    with pytest.raises(ValueError):
        StreamResult(
            response=GenerateContentResponse(), error=StreamError("both")
        )


def test_stream_result_unwrap_raises_carried_error() -> None:
    error = DecodeError("bad chunk")
    result = StreamResult(error=error)

    assert not result.ok
    with pytest.raises(DecodeError) as exc_info:
        result.unwrap()
    assert exc_info.value is error


@pytest.mark.asyncio
async def test_chunks_are_yielded_in_order_and_done_is_filtered(
    transport: HttpTransport, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_response(
        method="POST",
        url=STREAM_URL,
        content=sse_body(
            [
                response_envelope("Hello", trace_id="t-1"),
                response_envelope(", "),
                response_envelope("world"),
                "[DONE]",
            ]
        ),
        headers=SSE_HEADERS,
    )

    async with await _open(transport) as stream:
        results = [item async for item in stream]

    assert len(results) == 3
    assert all(r.ok for r in results)
    assert "".join(r.unwrap().text for r in results) == "Hello, world"
    assert results[0].trace_id == "t-1"
    assert results[1].trace_id is None


@pytest.mark.asyncio
async def test_request_uses_sse_and_bearer(
    transport: HttpTransport, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_response(
        method="POST", url=STREAM_URL, content=sse_body(["[DONE]"]), headers=SSE_HEADERS
    )

    async with await _open(transport) as stream:
        assert [item async for item in stream] == []

    request = httpx_mock.get_requests()[0]
    assert request.url.params["alt"] == "sse"
    assert request.headers["Authorization"] == f"Bearer {TEST_TOKEN}"
    assert request.headers["Accept"] == "text/event-stream"
    body = json.loads(request.content)
    assert body["model"] == "gemini-3-flash-preview"
    assert body["project"] == TEST_PROJECT


@pytest.mark.asyncio
async def test_undecodable_event_yields_error_and_continues(
    transport: HttpTransport,
    httpx_mock: HTTPXMock,
    caplog: pytest.LogCaptureFixture,
) -> None:
    httpx_mock.add_response(
        method="POST",
        url=STREAM_URL,
        content=sse_body(
            [
                response_envelope("first"),
                "{not valid json",
                response_envelope("second"),
            ]
        ),
        headers=SSE_HEADERS,
    )

    with caplog.at_level(logging.WARNING, logger="code_assist_adapter.streaming"):
        async with await _open(transport) as stream:
            results = [item async for item in stream]

    assert [r.ok for r in results] == [True, False, True]
    assert "Undecodable stream event" in caplog.text
    assert "Skipping" not in caplog.text
    assert isinstance(results[1].error, DecodeError)
    assert results[0].unwrap().text == "first"
    assert results[2].unwrap().text == "second"


@pytest.mark.asyncio
async def test_non_success_status_raises_before_decoding(
    transport: HttpTransport, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_response(
        method="POST",
        url=STREAM_URL,
        status_code=429,
        text='{"error": {"message": "quota exceeded"}}',
    )

    with pytest.raises(APIError) as exc_info:
        await _open(transport)

    assert exc_info.value.status_code == 429
    assert "quota exceeded" in exc_info.value.body


@pytest.mark.asyncio
async def test_broken_connection_ends_stream_with_one_error() -> None:
    body = BrokenStream(
        [
            sse_body([response_envelope("partial")]),
            b'data: {"response": {"candi',
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers=SSE_HEADERS, stream=body)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        stream = await _open(HttpTransport(client))
        results = [item async for item in stream]

    assert len(results) == 2
    assert results[0].unwrap().text == "partial"
    assert isinstance(results[1].error, StreamError)
    assert body.closed


@pytest.mark.asyncio
async def test_corrupt_compressed_body_ends_stream_with_one_error() -> None:
    compressed = gzip.compress(
        sse_body([response_envelope("intact"), response_envelope("also intact")])
    )
    # Flip the CRC32 in the gzip trailer so decompression fails at the end
    bad_crc = bytes(b ^ 0xFF for b in compressed[-8:-4])
    body = ChunkedStream([compressed[:-8], bad_crc + compressed[-4:]])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={**SSE_HEADERS, "Content-Encoding": "gzip"},
            stream=body,
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        stream = await _open(HttpTransport(client))
        results = [item async for item in stream]

    assert results[0].unwrap().text == "intact"
    assert all(r.ok for r in results[:-1])
    assert isinstance(results[-1].error, StreamError)
    assert body.closed


@pytest.mark.asyncio
async def test_aclose_without_iterating_releases_connection() -> None:
    body = ChunkedStream([sse_body([response_envelope("unread")])])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers=SSE_HEADERS, stream=body)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        stream = await _open(HttpTransport(client))
        await stream.aclose()

        assert body.closed
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()


@pytest.mark.asyncio
async def test_aclose_stops_early_and_releases_connection() -> None:
    body = BrokenStream(
        [sse_body([response_envelope("one"), response_envelope("two")])]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers=SSE_HEADERS, stream=body)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        stream = await _open(HttpTransport(client))
        first = await stream.__anext__()
        await stream.aclose()

        assert first.unwrap().text == "one"
        assert body.closed
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()


@pytest.mark.asyncio
async def test_response_metadata_is_exposed(
    transport: HttpTransport, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_response(
        method="POST",
        url=STREAM_URL,
        content=sse_body(["[DONE]"]),
        headers={**SSE_HEADERS, "X-Request-Id": "req-9"},
    )

    async with await _open(transport) as stream:
        assert stream.status_code == 200
        assert stream.headers["X-Request-Id"] == "req-9"
