from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorClass(str, Enum):
    BAD_INPUT = "bad_input"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


class QuizGenError(Exception):
    """
    Base for every pipeline failure.

    `message` is safe to show to the caller. `context` carries diagnostic data
    (raw upstream body, cleaned JSON string, ...) that is logged but never returned.
    """

    status_code: int = 500
    error_class: ErrorClass = ErrorClass.INTERNAL
    default_message: str = "Failed to process PDF or AI request"

    def __init__(self, message: Optional[str] = None, *, context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message or self.default_message
        self.context: Dict[str, Any] = dict(context or {})
        super().__init__(self.message)


class NoInputError(QuizGenError):
    status_code = 400
    error_class = ErrorClass.BAD_INPUT
    default_message = "No file uploaded"


class DocumentParseError(QuizGenError):
    status_code = 400
    error_class = ErrorClass.BAD_INPUT
    default_message = "Could not read the uploaded PDF"


class ConfigurationError(QuizGenError):
    status_code = 500
    error_class = ErrorClass.INTERNAL
    default_message = "Service is not configured"


class UpstreamUnavailableError(QuizGenError):
    status_code = 503
    error_class = ErrorClass.UPSTREAM
    default_message = "AI service unavailable"


class UpstreamResponseError(QuizGenError):
    status_code = 502
    error_class = ErrorClass.UPSTREAM
    default_message = "AI response invalid"


class MalformedReplyError(QuizGenError):
    status_code = 502
    error_class = ErrorClass.UPSTREAM
    default_message = "Could not find JSON in AI response"


class JsonParseError(QuizGenError):
    status_code = 502
    error_class = ErrorClass.UPSTREAM
    default_message = "AI response was not valid JSON"


class SchemaMismatchError(QuizGenError):
    status_code = 502
    error_class = ErrorClass.UPSTREAM
    default_message = "AI response did not match the quiz format"
