"""
Project onboarding (``:onboardUser``).

Onboarding activates a project for Code Assist. The backend models it as a
long-running operation: each ``onboardUser`` call returns an operation
record whose ``done`` flag tells whether activation has finished. The call
is idempotent, so polling simply resends the identical request.

The retry budget is small and its exhaustion is NOT an error. Activation
often keeps converging server-side while generation already works, so an
unfinished operation after the last poll is treated as success and only
logged. This means a project that never activates goes unnoticed here; the
first generation call is where that surfaces.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from code_assist_adapter.constants import (
    CODE_ASSIST_BASE_URL,
    FREE_TIER_ID,
    ONBOARD_USER_METHOD,
    ONBOARDING_MAX_RETRIES,
    ONBOARDING_POLL_INTERVAL_SECONDS,
)
from code_assist_adapter.models import (
    ClientMetadata,
    LongRunningOperation,
    OnboardUserRequest,
)
from code_assist_adapter.transport import HttpTransport, parse_model

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class OnboardingCoordinator:
    """Polls ``onboardUser`` until the operation is done or the budget runs out.

    At most ``1 + max_retries`` requests are sent and at most
    ``max_retries * poll_interval`` seconds are spent waiting. Transport and
    API failures on any attempt propagate immediately.
    """

    def __init__(
        self,
        transport: HttpTransport,
        token: str,
        *,
        base_url: str = CODE_ASSIST_BASE_URL,
        metadata: ClientMetadata | None = None,
        tier_id: str = FREE_TIER_ID,
        poll_interval: float = ONBOARDING_POLL_INTERVAL_SECONDS,
        max_retries: int = ONBOARDING_MAX_RETRIES,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.transport = transport
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.metadata = metadata or ClientMetadata()
        self.tier_id = tier_id
        self.poll_interval = poll_interval
        self.max_retries = max_retries
        self._sleep = sleep

    async def _send(self, url: str, body: dict) -> LongRunningOperation:
        response = await self.transport.post_json(
            url, body, self.token, context="Onboarding failed"
        )
        return parse_model(response, LongRunningOperation)

    async def activate(self, project: str) -> str | None:
        """Activate ``project`` and return the project id the backend confirmed.

        Returns:
            The confirmed project id carried by the final operation record,
            or ``None`` when the record carries none (including when the
            retry budget ran out before the operation reported done)
        """
        request = OnboardUserRequest(
            tier_id=self.tier_id,
            cloudaicompanion_project=project,
            metadata=self.metadata,
        )
        body = request.model_dump(by_alias=True, exclude_none=True)
        url = f"{self.base_url}{ONBOARD_USER_METHOD}"

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Onboarding user for project: {project}")

        operation = await self._send(url, body)
        attempts = 0
        while operation.done is not True and attempts < self.max_retries:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    f"Onboarding in progress ({operation.name or 'unnamed operation'})... waiting"
                )
            await self._sleep(self.poll_interval)
            operation = await self._send(url, body)
            attempts += 1

        confirmed = operation.confirmed_project_id
        if confirmed:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"Onboarding complete. Project confirmed: {confirmed}")
            return confirmed

        if operation.done is not True:
            if logger.isEnabledFor(logging.INFO):
                logger.info(
                    f"Onboarding did not report completion after {attempts + 1} attempts; "
                    "assuming the project is usable"
                )
        elif logger.isEnabledFor(logging.DEBUG):
            logger.debug("Onboarding finished (assumed success or already done).")
        return None
