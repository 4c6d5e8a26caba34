"""
Server-sent event framing.

Turns an async iterator of text lines (``httpx.Response.aiter_lines()``)
into events. Only the ``data`` field is kept; ``event``, ``id`` and
``retry`` lines carry nothing the backend uses and are ignored. Only the
event currently being assembled is buffered.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass


@dataclass(frozen=True)
class ServerSentEvent:
    data: str


class _EventBuilder:
    def __init__(self) -> None:
        self.data_lines: list[str] = []

    def feed(self, line: str) -> None:
        if line.startswith(":"):
            return  # comment

        field, sep, value = line.partition(":")
        if field != "data":
            return
        if sep and value.startswith(" "):
            value = value[1:]
        self.data_lines.append(value)

    def build(self) -> ServerSentEvent | None:
        if not self.data_lines:
            return None
        event = ServerSentEvent(data="\n".join(self.data_lines))
        self.data_lines = []
        return event


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[ServerSentEvent]:
    """Frame ``lines`` into server-sent events.

    A blank line dispatches the pending event. Events without any ``data``
    line are dropped. An event still pending when the input ends is
    dispatched, since some backends close the connection without a final
    blank line.
    """
    builder = _EventBuilder()
    async for raw_line in lines:
        line = raw_line.rstrip("\r\n")
        if line:
            builder.feed(line)
            continue
        event = builder.build()
        if event is not None:
            yield event

    event = builder.build()
    if event is not None:
        yield event
