"""
Wire records for the Code Assist ``v1internal`` API.

Outbound records serialize with camelCase aliases except where the backend
expects snake_case (``user_prompt_id`` and ``session_id``). Inbound records
ignore fields they do not know about.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, ConfigDict, Field

from code_assist_adapter import constants
from code_assist_adapter.gemini_models import GenerateContentResponse
from code_assist_adapter.model_bases import DomainModel


class WireModel(DomainModel):
    model_config = ConfigDict(populate_by_name=True)


class ClientMetadata(WireModel):
    """Describes the calling agent on handshake and onboarding calls."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ide_type: str = Field(constants.CLIENT_IDE_TYPE, alias="ideType")
    ide_version: str = Field(constants.CLIENT_IDE_VERSION, alias="ideVersion")
    plugin_version: str = Field(constants.CLIENT_PLUGIN_VERSION, alias="pluginVersion")
    platform: str = Field(constants.CLIENT_PLATFORM, alias="platform")
    plugin_type: str = Field(constants.CLIENT_PLUGIN_TYPE, alias="pluginType")


class CodeAssistEnvelope(WireModel):
    """Request wrapper for the Code Assist generate endpoints."""

    model: str
    project: str
    user_prompt_id: str | None = None
    request: dict[str, Any]


class CodeAssistResponseEnvelope(WireModel):
    """Response wrapper returned by the Code Assist generate endpoints."""

    response: GenerateContentResponse
    trace_id: str | None = Field(
        None, validation_alias=AliasChoices("traceId", "trace_id")
    )


class LoadCodeAssistRequest(WireModel):
    cloudaicompanion_project: str | None = Field(None, alias="cloudaicompanionProject")
    metadata: ClientMetadata = Field(default_factory=ClientMetadata)


class Tier(WireModel):
    id: str
    name: str | None = None
    is_default: bool | None = Field(None, alias="isDefault")
    user_defined_cloudaicompanion_project: bool | None = Field(
        None, alias="userDefinedCloudaicompanionProject"
    )


class LoadCodeAssistResponse(WireModel):
    cloudaicompanion_project: str | None = Field(None, alias="cloudaicompanionProject")
    current_tier: Tier | None = Field(None, alias="currentTier")
    allowed_tiers: list[Tier] | None = Field(None, alias="allowedTiers")


class OnboardUserRequest(WireModel):
    tier_id: str = Field(constants.FREE_TIER_ID, alias="tierId")
    cloudaicompanion_project: str | None = Field(None, alias="cloudaicompanionProject")
    metadata: ClientMetadata = Field(default_factory=ClientMetadata)


class ProjectInfo(WireModel):
    id: str
    name: str | None = None


class OnboardUserResponse(WireModel):
    cloudaicompanion_project: ProjectInfo | None = Field(
        None, alias="cloudaicompanionProject"
    )


class LongRunningOperation(WireModel):
    """State of the onboarding activation.

    ``done`` is tri-state: ``None`` when the backend has not reported it.
    """

    name: str | None = None
    done: bool | None = None
    response: OnboardUserResponse | None = None

    @property
    def confirmed_project_id(self) -> str | None:
        if self.response and self.response.cloudaicompanion_project:
            return self.response.cloudaicompanion_project.id
        return None
