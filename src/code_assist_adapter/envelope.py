"""
Envelope codec for the Code Assist generate endpoints.

The backend does not accept a bare ``GenerateContentRequest``. Every call is
wrapped in an envelope carrying the routing metadata:

    {
        "model": "gemini-3-flash-preview",
        "project": "my-project",
        "user_prompt_id": "<uuid4>",
        "request": {... generic request ..., "session_id": "<uuid4>"}
    }

Replies come back wrapped as ``{"response": {...}, "traceId": "..."}``.

The two identifiers are generated independently for every call and are
never reused.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from code_assist_adapter.constants import MODEL_NAME_PREFIX
from code_assist_adapter.exceptions import DecodeError
from code_assist_adapter.gemini_models import (
    GenerateContentRequest,
    GenerateContentResponse,
)
from code_assist_adapter.models import CodeAssistEnvelope, CodeAssistResponseEnvelope

logger = logging.getLogger(__name__)

SESSION_ID_FIELD = "session_id"


def normalize_model_name(model: str) -> str:
    """Strip the ``models/`` namespace prefix from a model identifier.

    Identifiers without the prefix pass through unchanged.
    """
    if model.startswith(MODEL_NAME_PREFIX):
        return model[len(MODEL_NAME_PREFIX) :]
    return model


def _new_correlation_id() -> str:
    return str(uuid.uuid4())


def _request_to_json(request: GenerateContentRequest | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(request, GenerateContentRequest):
        return request.model_dump(by_alias=True, exclude_none=True, mode="json")
    if isinstance(request, Mapping):
        return dict(request)
    raise TypeError(
        f"Expected GenerateContentRequest or mapping, got {type(request).__name__}"
    )


def wrap(
    model: str,
    project: str,
    request: GenerateContentRequest | Mapping[str, Any],
) -> CodeAssistEnvelope:
    """Wrap a generic request into a Code Assist envelope.

    Args:
        model: Model identifier, with or without the ``models/`` prefix
        project: Effective Code Assist project identifier
        request: The generic request; it is copied, never mutated

    Returns:
        A fresh envelope with a new ``user_prompt_id`` and a new
        ``session_id`` injected into the request body
    """
    request_json = _request_to_json(request)
    request_json[SESSION_ID_FIELD] = _new_correlation_id()

    return CodeAssistEnvelope(
        model=normalize_model_name(model),
        project=project,
        user_prompt_id=_new_correlation_id(),
        request=request_json,
    )


def encode(envelope: CodeAssistEnvelope) -> dict[str, Any]:
    """Return the JSON body for an envelope."""
    return envelope.model_dump(by_alias=True, exclude_none=True, mode="json")


def unwrap(raw: bytes | str) -> tuple[GenerateContentResponse, str | None]:
    """Strip the response envelope from a raw reply.

    Args:
        raw: Response body or a single SSE ``data`` payload

    Returns:
        The inner generic response and the optional backend trace id

    Raises:
        DecodeError: If the payload is not JSON or does not have the
            response envelope shape
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(str(e), details={"payload": _preview(raw)}) from e

    if not isinstance(data, dict):
        raise DecodeError(
            f"expected a JSON object, got {type(data).__name__}",
            details={"payload": _preview(raw)},
        )

    try:
        envelope = CodeAssistResponseEnvelope.model_validate(data)
    except ValidationError as e:
        raise DecodeError(
            f"response envelope did not validate: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False), "payload": _preview(raw)},
        ) from e

    if envelope.trace_id and logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Code Assist trace id: {envelope.trace_id}")
    return envelope.response, envelope.trace_id


def _preview(raw: bytes | str, limit: int = 200) -> str:
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    return text if len(text) <= limit else f"{text[:limit]}..."
