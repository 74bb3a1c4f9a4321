"""Exception hierarchy for the source-docs pipeline.

Not-found conditions are never exceptions: reads return None or a status value.
"""

from enum import Enum
from typing import Any, List, Optional


class SourceDocsError(Exception):
    """Base class for all pipeline errors."""


class RejectionReason(str, Enum):
    NOT_AN_OBJECT = "not_an_object"
    WRONG_SCHEMA_VERSION = "wrong_schema_version"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    SOURCES_NOT_ARRAY = "sources_not_array"
    INVALID_SHAPE = "invalid_shape"


class EvidencePackRejected(SourceDocsError):
    """Raised when an import payload is not an acceptable Evidence Pack."""

    def __init__(self, reason: RejectionReason, message: str, details: Optional[List[Any]] = None):
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.details = details or []

    def to_dict(self) -> dict:
        return {"reason": self.reason.value, "error": self.message, "details": self.details}


class ContextualizedValidationError(SourceDocsError):
    """Raised when a contextualized document save request is incomplete."""

    def __init__(self, person_id: str, run_id: str, message: str):
        super().__init__(message)
        self.person_id = person_id
        self.run_id = run_id
        self.message = message


class StorageError(SourceDocsError):
    """Raised when document storage read/write fails."""


class LLMError(SourceDocsError):
    """Raised when the external language model call fails."""


class LLMConfigurationError(LLMError):
    """Raised when the language model client is not configured."""
