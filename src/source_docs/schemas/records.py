"""Store-side records: persons, runs and artifact kinds."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .evidence import CamelModel


class ArtifactKind(str, Enum):
    PACK = "pack"
    RAW_DOCUMENT = "raw_document"
    CONTEXTUALIZED_DOCUMENT = "contextualized_document"


class PersonMetadata(CamelModel):
    family_search_id: str
    name: str = ""
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


class Run(CamelModel):
    run_id: str
    captured_at: str
    # Monotonic per person; breaks capturedAt ties in favour of the latest write.
    persisted_seq: int = 0
    has_pack: bool = False
    has_raw_document: bool = False
    has_contextualized_document: bool = False
