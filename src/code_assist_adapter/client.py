"""
Client for the Gemini Code Assist backend.

``CodeAssistClient`` owns the session state (bearer token, project id,
model) and composes the handshake, onboarding, envelope and streaming
pieces. A typical session:

    async with CodeAssistClient(token, project) as client:
        client.set_project_id(await client.load_code_assist())
        await client.onboard_user()
        stream = await client.with_model("gemini-3-flash-preview").generate_content_stream(request)
        async with stream:
            async for item in stream:
                ...

The client does no internal locking. Handshake application, onboarding and
model updates must not run concurrently with generation calls on the same
instance.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import TracebackType
from typing import Any

import httpx

from code_assist_adapter import envelope as envelope_codec
from code_assist_adapter.config import AdapterConfig
from code_assist_adapter.constants import (
    DEFAULT_MODEL,
    GENERATE_CONTENT_METHOD,
    STREAM_GENERATE_CONTENT_METHOD,
)
from code_assist_adapter.exceptions import AdapterError, ConfigurationError
from code_assist_adapter.gemini_models import (
    GenerateContentRequest,
    GenerateContentResponse,
)
from code_assist_adapter.handshake import HandshakeCoordinator
from code_assist_adapter.models import CodeAssistEnvelope
from code_assist_adapter.onboarding import OnboardingCoordinator, SleepFunc
from code_assist_adapter.streaming import ResponseStream, StreamingDecoder
from code_assist_adapter.transport import HttpTransport, build_timeout

logger = logging.getLogger(__name__)

RequestLike = GenerateContentRequest | Mapping[str, Any]


class CodeAssistClient:
    """Adapter client for Gemini Code Assist."""

    def __init__(
        self,
        auth_token: str,
        project_id: str,
        *,
        model: str | None = None,
        config: AdapterConfig | None = None,
        transport: HttpTransport | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        """Create a client.

        Args:
            auth_token: OAuth2 access token
            project_id: Tentative Google Cloud project id
            model: Model id, with or without the ``models/`` prefix; defaults
                to the configured default model
            config: Adapter settings; defaults to ``AdapterConfig()``
            transport: Transport to use; built from ``http_client`` otherwise
            http_client: ``httpx.AsyncClient`` to share; the client creates
                and owns one when neither this nor ``transport`` is given
            sleep: Wait function used between onboarding polls
        """
        self.config = config or AdapterConfig()
        self._auth_token = auth_token
        self._project_id = project_id
        self._model = model or self.config.default_model or DEFAULT_MODEL
        self.transport = transport or HttpTransport(
            http_client,
            timeout=build_timeout(self.config.connect_timeout, self.config.read_timeout),
        )
        self._sleep = sleep

    @property
    def auth_token(self) -> str:
        return self._auth_token

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def model(self) -> str:
        return self._model

    async def __aenter__(self) -> CodeAssistClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    def set_project_id(self, project_id: str) -> None:
        """Apply a project id, typically the one returned by the handshake."""
        self._project_id = project_id

    def with_model(self, model: str) -> CodeAssistClient:
        """Use ``model`` from the next call on and return the client."""
        self._model = model
        return self

    def _url(self, method: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{method}"

    async def load_code_assist(self) -> str:
        """Perform the handshake and return the effective project id.

        The client state is left untouched; apply the result with
        ``set_project_id``.
        """
        coordinator = HandshakeCoordinator(
            self.transport,
            self._auth_token,
            base_url=self.config.base_url,
            metadata=self.config.client_metadata,
        )
        return await coordinator.resolve(self._project_id)

    async def onboard_user(self) -> None:
        """Activate the current project, applying any project id the backend confirms."""
        kwargs: dict[str, Any] = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        coordinator = OnboardingCoordinator(
            self.transport,
            self._auth_token,
            base_url=self.config.base_url,
            metadata=self.config.client_metadata,
            tier_id=self.config.tier_id,
            poll_interval=self.config.onboarding_poll_interval,
            max_retries=self.config.onboarding_max_retries,
            **kwargs,
        )
        confirmed = await coordinator.activate(self._project_id)
        if confirmed:
            self._project_id = confirmed

    async def prepare_session(self, *, onboard: bool = True) -> str:
        """Run the handshake and onboarding, tolerating failures of either.

        Failures are logged as warnings and the session continues with the
        project id known at that point.

        Returns:
            The project id generation calls will use
        """
        try:
            self.set_project_id(await self.load_code_assist())
        except AdapterError as e:
            if logger.isEnabledFor(logging.WARNING):
                logger.warning(f"Handshake warning: {e}")

        if onboard:
            try:
                await self.onboard_user()
            except AdapterError as e:
                if logger.isEnabledFor(logging.WARNING):
                    logger.warning(f"Onboarding warning: {e}")

        return self._project_id

    def _build_envelope(self, request: RequestLike) -> CodeAssistEnvelope:
        if not self._project_id:
            raise ConfigurationError(
                "A project id is required before generating content"
            )
        envelope = envelope_codec.wrap(self._model, self._project_id, request)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Sending envelope: model={envelope.model} project={envelope.project} "
                f"user_prompt_id={envelope.user_prompt_id}"
            )
        return envelope

    async def generate_content(self, request: RequestLike) -> GenerateContentResponse:
        """Perform a standard (non-streaming) request."""
        envelope = self._build_envelope(request)
        response = await self.transport.post_json(
            self._url(GENERATE_CONTENT_METHOD),
            envelope_codec.encode(envelope),
            self._auth_token,
        )
        result, _trace_id = envelope_codec.unwrap(response.content)
        return result

    async def generate_content_stream(self, request: RequestLike) -> ResponseStream:
        """Perform a streaming request.

        Returns:
            A lazy sequence of ``StreamResult``. It must be closed with
            ``aclose()`` or used as an async context manager unless it is
            iterated to the end; a stream that is never iterated holds its
            connection open otherwise
        """
        envelope = self._build_envelope(request)
        decoder = StreamingDecoder(self.transport, self._auth_token)
        return await decoder.open(self._url(STREAM_GENERATE_CONTENT_METHOD), envelope)
