"""
Request/response schemas of the HTTP surface (JSON validation and OpenAPI docs).
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import MAX_MESSAGE_CHARS, MAX_MESSAGES, MAX_SEGMENT_CHARS


class _CamelModel(BaseModel):
    """Accepts both the camelCase wire names and the Python field names."""

    model_config = ConfigDict(populate_by_name=True)


class ChatMessageSchema(BaseModel):
    """One dialogue message. system is only allowed before the first user/assistant turn."""

    role: Literal["system", "user", "assistant"]
    content: str = Field(..., max_length=MAX_SEGMENT_CHARS)


class ChatRequestSchema(_CamelModel):
    """POST /chat body. Send sessionId + message, or the full history (stateless)."""

    messages: Optional[List[ChatMessageSchema]] = Field(
        None, max_length=MAX_MESSAGES, description="Dialogue history, oldest first"
    )
    message: Optional[str] = Field(
        None, max_length=MAX_MESSAGE_CHARS, description="New user message (session mode)"
    )
    session_id: Optional[str] = Field(None, alias="sessionId", max_length=64, description="Id returned by /upload")
    question_count: Optional[int] = Field(
        None, alias="questionCount", ge=0, description="Questions asked so far (stateless mode only)"
    )
    plan: Optional[str] = Field(None, max_length=32, description="core / pro / executive (stateless mode only)")
    initial_context: Optional[Dict[str, Any]] = Field(
        None, alias="initialContext", description="Context returned by /upload (stateless mode only)"
    )

    @field_validator("initial_context")
    @classmethod
    def _bound_initial_context(cls, value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        # Shape is checked when the context is rebuilt; only size is bounded here
        if value is None:
            return value
        segments = value.get("segments")
        if isinstance(segments, list):
            if len(segments) > MAX_MESSAGES:
                raise ValueError(f"at most {MAX_MESSAGES} segments allowed")
            for segment in segments:
                content = segment.get("content") if isinstance(segment, dict) else None
                if isinstance(content, str) and len(content) > MAX_SEGMENT_CHARS:
                    raise ValueError(f"segment content exceeds {MAX_SEGMENT_CHARS} characters")
        source_text = value.get("sourceText")
        if isinstance(source_text, str) and len(source_text) > MAX_SEGMENT_CHARS:
            raise ValueError(f"sourceText exceeds {MAX_SEGMENT_CHARS} characters")
        return value


class ChatResponseSchema(_CamelModel):
    """POST /chat response. generatedResume is present only when isComplete is true."""

    reply: str
    is_complete: bool = Field(False, alias="isComplete")
    question_count: int = Field(0, alias="questionCount")
    generated_resume: Optional[str] = Field(None, alias="generatedResume")


class UploadResponseSchema(_CamelModel):
    """POST /upload response."""

    reply: str
    initial_context: Dict[str, Any] = Field(..., alias="initialContext")
    session_id: str = Field(..., alias="sessionId")
    question_count: int = Field(0, alias="questionCount")
    is_complete: bool = Field(False, alias="isComplete")


class OptimizeRequestSchema(_CamelModel):
    """POST /optimize body; bulletPoint is accepted for older clients."""

    text: Optional[str] = Field(None, max_length=MAX_MESSAGE_CHARS)
    bullet_point: Optional[str] = Field(None, alias="bulletPoint", max_length=MAX_MESSAGE_CHARS)


class OptimizeResponseSchema(BaseModel):
    enhanced: str


class ErrorResponseSchema(BaseModel):
    error: str


class HealthResponseSchema(_CamelModel):
    status: str
    service: str
    model: str
    ai_enabled: bool = Field(..., alias="aiEnabled")
    metrics: Dict[str, int]
