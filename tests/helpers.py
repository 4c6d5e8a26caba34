from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable
from typing import Any

import httpx

TEST_TOKEN = "ya29.test-access-token"
TEST_PROJECT = "tentative-project"
BASE_URL = "https://cloudcode-pa.googleapis.com/v1internal"
LOAD_URL = f"{BASE_URL}:loadCodeAssist"
ONBOARD_URL = f"{BASE_URL}:onboardUser"
GENERATE_URL = f"{BASE_URL}:generateContent"
STREAM_URL = f"{BASE_URL}:streamGenerateContent?alt=sse"


def response_envelope(text: str, trace_id: str | None = None) -> dict[str, Any]:
    envelope: dict[str, Any] = {
        "response": {
            "candidates": [
                {"content": {"role": "model", "parts": [{"text": text}]}, "index": 0}
            ]
        }
    }
    if trace_id is not None:
        envelope["traceId"] = trace_id
    return envelope


def sse_body(payloads: Iterable[str | dict[str, Any]]) -> bytes:
    """Frame payloads as server-sent events; dicts are JSON encoded."""
    lines = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        lines.append(f"data: {data}\n\n")
    return "".join(lines).encode("utf-8")


class RecordingSleep:
    """Stand-in for asyncio.sleep that records waits without waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given raw chunks; records closing."""

    def __init__(self, chunks: Iterable[bytes]) -> None:
        self.chunks = list(chunks)
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


class BrokenStream(ChunkedStream):
    """Response body that fails with a transport error after its chunks."""

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk
        raise httpx.ReadError("connection reset by peer")
