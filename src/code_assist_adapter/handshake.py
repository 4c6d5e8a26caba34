"""
Handshake with the Code Assist backend (``:loadCodeAssist``).

The handshake tells the backend which project the caller intends to use and
returns the project the backend considers authoritative, along with the
user's current tier. It is advisory: a caller may skip it and keep its
tentative project, but should apply the resolved project before
generating.
"""

from __future__ import annotations

import logging

from code_assist_adapter.constants import CODE_ASSIST_BASE_URL, LOAD_CODE_ASSIST_METHOD
from code_assist_adapter.models import (
    ClientMetadata,
    LoadCodeAssistRequest,
    LoadCodeAssistResponse,
)
from code_assist_adapter.transport import HttpTransport, parse_model

logger = logging.getLogger(__name__)


class HandshakeCoordinator:
    """Resolves the effective project id with a single ``loadCodeAssist`` call.

    There are no retries: a non-2xx status surfaces immediately as
    ``APIError`` and a connection failure as ``TransportError``.
    """

    def __init__(
        self,
        transport: HttpTransport,
        token: str,
        *,
        base_url: str = CODE_ASSIST_BASE_URL,
        metadata: ClientMetadata | None = None,
    ) -> None:
        self.transport = transport
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.metadata = metadata or ClientMetadata()

    async def load(self, tentative_project: str | None) -> LoadCodeAssistResponse:
        """Send the handshake and return the parsed reply."""
        request = LoadCodeAssistRequest(
            cloudaicompanion_project=tentative_project or None,
            metadata=self.metadata,
        )
        url = f"{self.base_url}{LOAD_CODE_ASSIST_METHOD}"
        response = await self.transport.post_json(
            url,
            request.model_dump(by_alias=True, exclude_none=True),
            self.token,
            context="Handshake failed",
        )
        return parse_model(response, LoadCodeAssistResponse)

    async def resolve(self, tentative_project: str) -> str:
        """Return the authoritative project id for ``tentative_project``.

        The backend-supplied project wins when present; otherwise the
        tentative id is returned unchanged.
        """
        data = await self.load(tentative_project)
        effective_project = data.cloudaicompanion_project or tentative_project

        if logger.isEnabledFor(logging.DEBUG):
            tier = data.current_tier.id if data.current_tier else None
            logger.debug(
                f"Handshake success. Tier: {tier}. Using Project: {effective_project}"
            )
        return effective_project
