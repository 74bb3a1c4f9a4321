from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .evidence import CamelModel, EvidencePack

RedactionType = Literal["email", "phone", "ssn", "address", "living"]


class Redaction(CamelModel):
    source_id: str
    field: str
    original_value: str
    redacted_value: str
    type: RedactionType


class SourceRedaction(CamelModel):
    source_id: str
    has_living_indicators: bool = False
    redactions: List[Redaction] = Field(default_factory=list)


class RedactionResult(BaseModel):
    redacted_pack: EvidencePack
    redactions: List[Redaction]
    has_living_indicators: bool
    sources: List[SourceRedaction] = Field(default_factory=list)

    def source_result(self, source_id: str) -> Optional[SourceRedaction]:
        for entry in self.sources:
            if entry.source_id == source_id:
                return entry
        return None


class DocumentStatus(str, Enum):
    SUCCESS = "success"
    NO_RUNS = "no_runs"
    NOT_GENERATED = "not_generated"
    PACK_NOT_FOUND = "pack_not_found"
    INVALID_PACK = "invalid_pack"


class ContextualizedDocument(BaseModel):
    person_id: str
    status: DocumentStatus
    run_id: Optional[str] = None
    markdown: Optional[str] = None
    person_name: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == DocumentStatus.SUCCESS


class RawDocument(BaseModel):
    person_id: str
    status: DocumentStatus
    run_id: Optional[str] = None
    markdown: Optional[str] = None
    person_name: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == DocumentStatus.SUCCESS


class ContextualizedDraft(BaseModel):
    """Generated markdown awaiting user review; never persisted by itself."""
    person_id: str
    status: DocumentStatus
    run_id: Optional[str] = None
    markdown: Optional[str] = None
    used_redacted: bool = True
    redactions: List[Redaction] = Field(default_factory=list)
    redaction_summary: str = ""
    has_living_indicators: bool = False


class ImportResult(BaseModel):
    person_id: str
    run_id: str
    source_count: int
