"""Pydantic request/response models for the HoneyGuard API."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Message(BaseModel):
    """Single chat message in a conversation."""

    model_config = ConfigDict(extra="ignore")

    sender: Optional[str] = Field(default="scammer")
    text: Optional[str] = Field(default=None)
    timestamp: Optional[Union[str, int]] = Field(default=None)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value):
        """Evaluator sometimes sends epoch ints; normalize to string."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value

    @field_validator("sender", "text", mode="before")
    @classmethod
    def _text_or_none(cls, value):
        return value if isinstance(value, str) else None


class Metadata(BaseModel):
    """Optional channel/locale context (informational only)."""

    model_config = ConfigDict(extra="ignore")

    channel: Optional[str] = Field(default=None)
    language: Optional[str] = Field(default=None)
    locale: Optional[str] = Field(default=None)

    @field_validator("channel", "language", "locale", mode="before")
    @classmethod
    def _text_or_none(cls, value):
        return value if isinstance(value, str) else None


class HoneypotRequest(BaseModel):
    """Incoming payload on POST /api/honeypot.

    Besides the evaluator shape (``message`` object plus history), plain
    clients may send the text as ``message`` (a string), ``text``,
    ``content``, ``input``, ``query`` or ``data``.
    """

    model_config = ConfigDict(extra="ignore")

    sessionId: Optional[str] = Field(default=None)
    message: Optional[Union[Message, str]] = Field(default=None)
    text: Optional[Any] = None
    content: Optional[Any] = None
    input: Optional[Any] = None
    query: Optional[Any] = None
    data: Optional[Any] = None
    conversationHistory: List[Message] = Field(default_factory=list)
    metadata: Optional[Metadata] = Field(default=None)

    @field_validator("conversationHistory", mode="before")
    @classmethod
    def _history_entries(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator("message", mode="before")
    @classmethod
    def _message_shape(cls, value):
        return value if isinstance(value, (dict, str)) else None

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_object(cls, value):
        return value if isinstance(value, dict) else None

    @field_validator("sessionId", mode="before")
    @classmethod
    def _session_id_text(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value if isinstance(value, str) and value.strip() else None

    def text_to_analyze(self) -> str:
        """First usable text, in the order the fields are documented."""
        if isinstance(self.message, Message) and self.message.text:
            return self.message.text
        if isinstance(self.message, str) and self.message:
            return self.message
        for candidate in (self.text, self.content, self.input, self.query, self.data):
            if isinstance(candidate, str) and candidate:
                return candidate
        return ""


class VoiceDetectionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None
    audioBase64: Optional[str] = None
    language: str = Field(default="en-IN")
    sessionId: Optional[str] = None


class ScreenshotRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    imageBase64: Optional[str] = None
    sessionId: Optional[str] = None


class AnalysisSummary(BaseModel):
    scamDetected: bool
    confidence: float
    riskLevel: str
    riskScore: int


class HoneypotResponse(BaseModel):
    """Response for POST /api/honeypot. Analysis fields are absent for empty input."""

    status: str = "success"
    reply: str
    sessionId: str
    timestamp: str
    analysis: Optional[AnalysisSummary] = None
    extractedIntelligence: Optional[Dict[str, List[str]]] = None
    patterns: Optional[List[str]] = None
    recommendations: Optional[List[str]] = None
    agentNotes: Optional[str] = None


# Callback payload models (used internally)

class CallbackIntelligence(BaseModel):
    bankAccounts: List[str] = Field(default_factory=list)
    upiIds: List[str] = Field(default_factory=list)
    phishingLinks: List[str] = Field(default_factory=list)
    phoneNumbers: List[str] = Field(default_factory=list)
    suspiciousKeywords: List[str] = Field(default_factory=list)


class CallbackPayload(BaseModel):
    """Final-result payload sent to the evaluation endpoint."""

    sessionId: str
    scamDetected: bool = False
    totalMessagesExchanged: int = 0
    extractedIntelligence: CallbackIntelligence = Field(default_factory=CallbackIntelligence)
    agentNotes: str = ""
