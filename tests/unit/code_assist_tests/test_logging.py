from __future__ import annotations

import logging
from pathlib import Path

import pytest

from code_assist_adapter.log_capture import LogCaptureHandler
from code_assist_adapter.logging_utils import (
    BearerTokenRedactionFilter,
    configure_logging,
    get_logger,
    redact,
)


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("", ""), ("short", "***"), ("ya29.secret-token", "ya***en")],
)
def test_redact(value: str, expected: str) -> None:
    assert redact(value) == expected


def test_filter_masks_known_token_shapes() -> None:
    redaction = BearerTokenRedactionFilter()

    text = redaction.sanitize(
        "Authorization: Bearer abc.def-123 access=ya29.a0AfB_xyz "
        "refresh=1//0gLongRefreshTokenValue123"
    )

    assert "abc.def-123" not in text
    assert "ya29.a0AfB_xyz" not in text
    assert "1//0gLongRefreshTokenValue123" not in text
    assert "Bearer ***" in text


def test_filter_masks_explicit_secrets_in_args() -> None:
    redaction = BearerTokenRedactionFilter(secrets=["opaque-secret-value"])
    record = _record("token=%s extra=%s", "opaque-secret-value", ["ya29.inner"])

    assert redaction.filter(record) is True
    assert record.getMessage() == "token=*** extra=['***']"


def test_filter_handles_mapping_args() -> None:
    redaction = BearerTokenRedactionFilter()
    record = _record("%(header)s", {"header": "Bearer abc"})

    redaction.filter(record)

    assert record.getMessage() == "Bearer ***"


def test_capture_handler_keeps_warnings_and_drains() -> None:
    handler = LogCaptureHandler()
    logger = logging.getLogger("code_assist_adapter.test_capture")
    logger.addHandler(handler)
    logger.propagate = False
    try:
        logger.warning("Handshake warning: %s", "503")
        logger.info("not captured")
        logger.error("Onboarding warning")
    finally:
        logger.removeHandler(handler)
        logger.propagate = True

    assert len(handler) == 2
    events = handler.pop_logs()
    assert [e.message for e in events] == ["Handshake warning: 503", "Onboarding warning"]
    assert [e.level_name for e in events] == ["WARNING", "ERROR"]
    assert events[0].logger_name == "code_assist_adapter.test_capture"
    assert handler.pop_logs() == []


def test_capture_handler_is_bounded() -> None:
    handler = LogCaptureHandler(capacity=2)
    for i in range(3):
        handler.handle(
            logging.LogRecord("x", logging.WARNING, __file__, 1, f"msg {i}", None, None)
        )

    assert [e.message for e in handler.pop_logs()] == ["msg 1", "msg 2"]


def test_configure_logging_redacts_through_handlers(
    restore_root_logger: logging.Logger, tmp_path: Path
) -> None:
    capture = LogCaptureHandler(level=logging.INFO)
    log_file = tmp_path / "adapter.log"

    configure_logging(
        "INFO",
        str(log_file),
        extra_handlers=[capture],
        secrets=["my-raw-secret"],
    )
    logging.getLogger("code_assist_adapter.transport").warning(
        "HTTP error: Bearer ya29.abc and my-raw-secret"
    )

    events = capture.pop_logs()
    assert events[-1].message == "HTTP error: Bearer *** and ***"
    assert restore_root_logger.level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING
    for handler in restore_root_logger.handlers:
        handler.flush()
    assert "my-raw-secret" not in log_file.read_text(encoding="utf-8")


def test_structlog_events_reach_stdlib_handlers(
    restore_root_logger: logging.Logger,
) -> None:
    capture = LogCaptureHandler(level=logging.INFO)
    configure_logging(logging.DEBUG, extra_handlers=[capture])

    get_logger("code_assist_adapter.cli").info(
        "session_ready", project="p-1", model="gemini-3-flash-preview"
    )

    messages = [e.message for e in capture.pop_logs()]
    assert "event='session_ready' project='p-1' model='gemini-3-flash-preview'" in messages
