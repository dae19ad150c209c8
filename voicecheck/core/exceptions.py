"""
VoiceCheck exception hierarchy.

All application-specific exceptions inherit from VoiceCheckError,
enabling centralized error handling in the API middleware layer.
"""

from datetime import UTC, datetime

PERMISSION_DENIED_MESSAGE = "Microphone access denied. Please check permissions."
ANALYSIS_FAILED_MESSAGE = "Analysis failed. Please try again."


class VoiceCheckError(Exception):
    """Base exception for all VoiceCheck errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VOICECHECK_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class MicrophonePermissionError(VoiceCheckError):
    """Raised when the microphone cannot be acquired (denied or missing)."""

    def __init__(self, detail: str = PERMISSION_DENIED_MESSAGE) -> None:
        super().__init__(
            detail=detail,
            code="MICROPHONE_DENIED",
            status_code=403,
        )


class AnalyzerError(VoiceCheckError):
    """Raised when one analyze call fails for any reason.

    Network failures, non-OK responses, unparsable text and schema
    violations all surface as this type; the cause is kept in ``detail``
    for logging only.
    """

    def __init__(
        self,
        detail: str = "Voice analysis failed",
        code: str = "ANALYZER_FAILURE",
    ) -> None:
        super().__init__(detail=detail, code=code, status_code=502)


class SchemaValidationError(AnalyzerError):
    """Raised when the model response misses or violates required fields."""

    def __init__(self, detail: str = "Response failed schema validation") -> None:
        super().__init__(detail=detail, code="SCHEMA_VALIDATION_FAILED")


class InvalidTransitionError(VoiceCheckError):
    """Raised when a trigger is not legal from the session's current state."""

    def __init__(self, trigger: str, state: str) -> None:
        super().__init__(
            detail=f"Cannot {trigger} while session is {state}",
            code="INVALID_TRANSITION",
            status_code=409,
        )


class NoActiveSessionError(VoiceCheckError):
    """Raised when a session operation is requested before one exists."""

    def __init__(self) -> None:
        super().__init__(
            detail="No active session",
            code="NO_ACTIVE_SESSION",
            status_code=404,
        )


class LogRecordNotFoundError(VoiceCheckError):
    """Raised when an access-log record ID does not exist."""

    def __init__(self, record_id: str) -> None:
        super().__init__(
            detail=f"Log record not found: {record_id}",
            code="LOG_NOT_FOUND",
            status_code=404,
        )


class ShareDecodeError(VoiceCheckError):
    """Raised when a share payload cannot be decoded into a result."""

    def __init__(self, detail: str = "Invalid share payload") -> None:
        super().__init__(detail=detail, code="SHARE_DECODE_FAILED", status_code=400)
