from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from code_assist_adapter.sse import ServerSentEvent, iter_sse_events


async def _lines(*lines: str) -> AsyncIterator[str]:
    for line in lines:
        yield line


async def _collect(*lines: str) -> list[ServerSentEvent]:
    return [event async for event in iter_sse_events(_lines(*lines))]


@pytest.mark.asyncio
async def test_blank_line_dispatches_event() -> None:
    events = await _collect('data: {"a": 1}', "", 'data: {"b": 2}', "")

    assert [e.data for e in events] == ['{"a": 1}', '{"b": 2}']


@pytest.mark.asyncio
async def test_multiple_data_lines_are_joined() -> None:
    events = await _collect("data: first", "data: second", "")

    assert events == [ServerSentEvent(data="first\nsecond")]


@pytest.mark.asyncio
async def test_comments_and_unknown_fields_are_ignored() -> None:
    events = await _collect(": keep-alive", "", "foo: bar", "data: x", "")

    assert [e.data for e in events] == ["x"]


@pytest.mark.asyncio
async def test_event_id_and_retry_lines_are_ignored() -> None:
    events = await _collect("event: update", "id: 7", "retry: 3000", "data:x", "")

    assert events == [ServerSentEvent(data="x")]


@pytest.mark.asyncio
async def test_event_without_data_is_dropped() -> None:
    events = await _collect("event: ping", "", "data: payload", "")

    assert [e.data for e in events] == ["payload"]


@pytest.mark.asyncio
async def test_pending_event_flushed_at_end_of_input() -> None:
    events = await _collect("data: one", "", "data: [DONE]")

    assert [e.data for e in events] == ["one", "[DONE]"]


@pytest.mark.asyncio
async def test_carriage_returns_are_stripped() -> None:
    events = await _collect("data: crlf\r", "\r")

    assert [e.data for e in events] == ["crlf"]


@pytest.mark.asyncio
async def test_only_one_leading_space_is_removed() -> None:
    events = await _collect("data:   indented", "")

    assert events[0].data == "  indented"
