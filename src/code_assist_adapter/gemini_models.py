"""
Pydantic models for Google Gemini API request/response structures.

These models match the public Gemini API format. The Code Assist backend
accepts the same request body (inside its envelope) and returns the same
response body (inside its response envelope), so the adapter only reads
and writes these types at the envelope boundary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field, model_validator

from code_assist_adapter.model_bases import DomainModel


class HarmCategory(str, Enum):
    """Harm categories for safety settings."""

    HARM_CATEGORY_UNSPECIFIED = "HARM_CATEGORY_UNSPECIFIED"
    HARM_CATEGORY_HARASSMENT = "HARM_CATEGORY_HARASSMENT"
    HARM_CATEGORY_HATE_SPEECH = "HARM_CATEGORY_HATE_SPEECH"
    HARM_CATEGORY_SEXUALLY_EXPLICIT = "HARM_CATEGORY_SEXUALLY_EXPLICIT"
    HARM_CATEGORY_DANGEROUS_CONTENT = "HARM_CATEGORY_DANGEROUS_CONTENT"
    HARM_CATEGORY_CIVIC_INTEGRITY = "HARM_CATEGORY_CIVIC_INTEGRITY"


class HarmBlockThreshold(str, Enum):
    """Harm block thresholds for safety settings."""

    HARM_BLOCK_THRESHOLD_UNSPECIFIED = "HARM_BLOCK_THRESHOLD_UNSPECIFIED"
    BLOCK_LOW_AND_ABOVE = "BLOCK_LOW_AND_ABOVE"
    BLOCK_MEDIUM_AND_ABOVE = "BLOCK_MEDIUM_AND_ABOVE"
    BLOCK_ONLY_HIGH = "BLOCK_ONLY_HIGH"
    BLOCK_NONE = "BLOCK_NONE"
    OFF = "OFF"


class FinishReason(str, Enum):
    """Finish reasons for candidate responses."""

    FINISH_REASON_UNSPECIFIED = "FINISH_REASON_UNSPECIFIED"
    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    RECITATION = "RECITATION"
    MALFORMED_FUNCTION_CALL = "MALFORMED_FUNCTION_CALL"
    OTHER = "OTHER"


class Role(str, Enum):
    """Author of a conversation turn."""

    USER = "user"
    MODEL = "model"


class GeminiModel(DomainModel):
    """Base for Gemini models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True)


class SafetySetting(GeminiModel):
    """Safety setting for a specific harm category."""

    category: HarmCategory
    threshold: HarmBlockThreshold


class SafetyRating(GeminiModel):
    """Safety rating for a specific harm category."""

    category: HarmCategory | str
    probability: str | None = None
    blocked: bool | None = None


class Blob(GeminiModel):
    """Raw bytes data with MIME type."""

    mime_type: str = Field(alias="mimeType")
    data: str  # Base64 encoded data


class FileData(GeminiModel):
    """Reference to a file uploaded via the File API."""

    mime_type: str = Field(alias="mimeType")
    file_uri: str = Field(alias="fileUri")


class Part(GeminiModel):
    """A part of a content message.

    ``thought`` and ``thought_signature`` are flags riding along with a
    payload, not payloads of their own.
    """

    text: str | None = None
    inline_data: Blob | None = Field(None, alias="inlineData")
    file_data: FileData | None = Field(None, alias="fileData")
    function_call: dict[str, Any] | None = Field(None, alias="functionCall")
    function_response: dict[str, Any] | None = Field(None, alias="functionResponse")
    thought: bool | None = None
    thought_signature: str | None = Field(None, alias="thoughtSignature")

    @model_validator(mode="after")
    def check_single_payload(self) -> Part:
        """Ensure only one kind of payload is present per part."""
        fields_set = sum(
            [
                self.text is not None,
                self.inline_data is not None,
                self.file_data is not None,
                self.function_call is not None,
                self.function_response is not None,
            ]
        )
        if fields_set > 1:
            raise ValueError(
                "Exactly one of text, inlineData, fileData, functionCall, or functionResponse must be set"
            )
        return self

    @classmethod
    def from_text(cls, text: str) -> Part:
        return cls(text=text)


class Content(GeminiModel):
    """Content of a conversation turn."""

    parts: list[Part] = Field(default_factory=list)
    role: Role | str | None = None

    @classmethod
    def from_text(cls, text: str, role: Role | str | None = None) -> Content:
        return cls(parts=[Part.from_text(text)], role=role)


class GenerationConfig(GeminiModel):
    """Configuration options for model generation."""

    stop_sequences: list[str] | None = Field(None, alias="stopSequences")
    response_mime_type: str | None = Field(None, alias="responseMimeType")
    response_schema: dict[str, Any] | None = Field(None, alias="responseSchema")
    candidate_count: int | None = Field(None, alias="candidateCount")
    max_output_tokens: int | None = Field(None, alias="maxOutputTokens")
    temperature: float | None = None
    top_p: float | None = Field(None, alias="topP")
    top_k: int | None = Field(None, alias="topK")
    thinking_config: dict[str, Any] | None = Field(None, alias="thinkingConfig")


class GenerateContentRequest(GeminiModel):
    """Request for generating content with Gemini."""

    contents: list[Content]
    tools: list[dict[str, Any]] | None = None
    tool_config: dict[str, Any] | None = Field(None, alias="toolConfig")
    safety_settings: list[SafetySetting] | None = Field(None, alias="safetySettings")
    system_instruction: Content | None = Field(None, alias="systemInstruction")
    generation_config: GenerationConfig | None = Field(None, alias="generationConfig")
    cached_content: str | None = Field(None, alias="cachedContent")


class PromptFeedback(GeminiModel):
    """Feedback about the prompt."""

    block_reason: str | None = Field(None, alias="blockReason")
    safety_ratings: list[SafetyRating] | None = Field(None, alias="safetyRatings")


class CitationMetadata(GeminiModel):
    """Citation metadata for generated content."""

    citation_sources: list[dict[str, Any]] | None = Field(
        None, alias="citationSources"
    )


class Candidate(GeminiModel):
    """A generated candidate response."""

    content: Content | None = None
    finish_reason: FinishReason | str | None = Field(None, alias="finishReason")
    index: int | None = None
    safety_ratings: list[SafetyRating] | None = Field(None, alias="safetyRatings")
    citation_metadata: CitationMetadata | None = Field(
        None, alias="citationMetadata"
    )
    token_count: int | None = Field(None, alias="tokenCount")


class UsageMetadata(GeminiModel):
    """Usage metadata for the generation request."""

    prompt_token_count: int | None = Field(None, alias="promptTokenCount")
    candidates_token_count: int | None = Field(None, alias="candidatesTokenCount")
    total_token_count: int | None = Field(None, alias="totalTokenCount")
    cached_content_token_count: int | None = Field(
        None, alias="cachedContentTokenCount"
    )
    thoughts_token_count: int | None = Field(None, alias="thoughtsTokenCount")


class GenerateContentResponse(GeminiModel):
    """Response (or one streamed chunk) from generating content with Gemini."""

    candidates: list[Candidate] | None = None
    prompt_feedback: PromptFeedback | None = Field(None, alias="promptFeedback")
    usage_metadata: UsageMetadata | None = Field(None, alias="usageMetadata")
    model_version: str | None = Field(None, alias="modelVersion")
    response_id: str | None = Field(None, alias="responseId")

    @property
    def text(self) -> str:
        """Concatenated non-thought text of the first candidate."""
        if not self.candidates:
            return ""
        content = self.candidates[0].content
        if content is None:
            return ""
        return "".join(
            part.text for part in content.parts if part.text and not part.thought
        )
