"""Adapter for running Gemini generate-content requests against Code Assist."""

from code_assist_adapter.client import CodeAssistClient
from code_assist_adapter.config import AdapterConfig, load_config
from code_assist_adapter.envelope import normalize_model_name
from code_assist_adapter.exceptions import (
    AdapterError,
    APIError,
    AuthenticationError,
    ConfigurationError,
    DecodeError,
    StreamError,
    TransportError,
)
from code_assist_adapter.gemini_models import (
    Content,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    Role,
)
from code_assist_adapter.handshake import HandshakeCoordinator
from code_assist_adapter.onboarding import OnboardingCoordinator
from code_assist_adapter.streaming import ResponseStream, StreamingDecoder, StreamResult

__all__ = [
    "APIError",
    "AdapterConfig",
    "AdapterError",
    "AuthenticationError",
    "CodeAssistClient",
    "ConfigurationError",
    "Content",
    "DecodeError",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "GenerationConfig",
    "HandshakeCoordinator",
    "OnboardingCoordinator",
    "Part",
    "ResponseStream",
    "Role",
    "StreamError",
    "StreamResult",
    "StreamingDecoder",
    "TransportError",
    "load_config",
    "normalize_model_name",
]
