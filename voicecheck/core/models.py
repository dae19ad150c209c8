"""
Pydantic v2 models shared by the session, the analyzer and the API layer.

Wire form is camelCase (``overallScore``, ``metrics.clarity`` ...); Python
attributes are snake_case. Both spellings are accepted on input.
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr
from pydantic.alias_generators import to_camel

# JSON integers are accepted; strings and booleans are not.
Score = Annotated[float, Field(ge=0, le=100, strict=True)]


class _WireModel(BaseModel):
    """Base for models exchanged with the analyzer and share links.

    Leaf values are strictly typed: ``"82"`` is not a score and ``"yes"`` is
    not a boolean.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Analysis result
# ---------------------------------------------------------------------------


class VoiceMetrics(_WireModel):
    """The five scored dimensions, each 0-100."""

    clarity: Score
    charisma: Score
    uniqueness: Score
    stability: Score
    warmth: Score


class TechnicalDetails(_WireModel):
    """Descriptive labels for pitch, pacing and expressiveness."""

    pitch_range: StrictStr
    speaking_pace: StrictStr
    expressiveness: StrictStr


class AnalysisResult(_WireModel):
    """Validated report returned by the remote analyzer. Every field is required."""

    overall_score: Score
    voice_archetype: StrictStr
    estimated_age: StrictStr
    estimated_weight: StrictStr
    is_artificial_voice: StrictBool
    roast: StrictStr
    encouragement: StrictStr
    pros: list[StrictStr]
    cons: list[StrictStr]
    similar_voice: StrictStr
    metrics: VoiceMetrics
    technical: TechnicalDetails

    def to_wire(self) -> dict:
        """Return the camelCase JSON-compatible dict."""
        return self.model_dump(mode="json", by_alias=True)


class SharedAnalysisResult(AnalysisResult):
    """Share-link profile: only the score and the metric set are required."""

    voice_archetype: StrictStr = ""
    estimated_age: StrictStr = ""
    estimated_weight: StrictStr = ""
    is_artificial_voice: StrictBool = False
    roast: StrictStr = ""
    encouragement: StrictStr = ""
    pros: list[StrictStr] = Field(default_factory=list)
    cons: list[StrictStr] = Field(default_factory=list)
    similar_voice: StrictStr = ""
    technical: TechnicalDetails = TechnicalDetails(
        pitch_range="", speaking_pace="", expressiveness=""
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class SessionState(StrEnum):
    """Possible states of one record -> analyze -> present cycle."""

    idle = "idle"
    recording = "recording"
    processing = "processing"
    result = "result"
    error = "error"
    admin = "admin"


class SessionSnapshot(BaseModel):
    """Read-only view of a session handed to listeners and the API."""

    state: SessionState
    elapsed_seconds: int = 0
    max_seconds: int = 15
    analysis: AnalysisResult | None = None
    error_message: str | None = None
    copied: bool = False
    language: str = "en"


class SessionCreate(BaseModel):
    """POST /session request body."""

    url: str = "/"
    language: str | None = None


class NavigateRequest(BaseModel):
    """POST /session/navigate request body."""

    url: str


class ShareLinkResponse(BaseModel):
    """POST /session/share response."""

    url: str
    copied: bool


class SpectrumResponse(BaseModel):
    """GET /session/spectrum response (0-255 per bin)."""

    levels: list[int] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Access log
# ---------------------------------------------------------------------------


class LogRecord(BaseModel):
    """One persisted analysis. Raw audio is never stored."""

    id: str
    timestamp: int  # ms since epoch
    analysis: AnalysisResult
    ip: str | None = None
    user_agent: str | None = None


class LogCount(BaseModel):
    """GET /logs/count response."""

    total: int


class DeleteLogResponse(BaseModel):
    """DELETE /logs/{id} response."""

    id: str
    deleted: bool = True


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str
