"""Pydantic schemas for Evidence Pack import payloads.

Defines EvidencePack, Source and their nested models. Attributes are
snake_case in Python; the JSON form uses the extractor's camelCase keys.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = "1.0"

SourceType = Literal["record", "memory", "story", "photo", "other"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> Dict[str, Any]:
        """Wire form: camelCase keys, absent optionals left out."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class IndexedField(CamelModel):
    label: str = ""
    label_raw: Optional[str] = None
    value: str = ""


class IndexedInfo(CamelModel):
    fields: List[IndexedField] = Field(default_factory=list)
    text_blocks: List[str] = Field(default_factory=list)


class Source(CamelModel):
    id: str
    order_index: Union[int, float] = 0
    source_key: str = ""
    source_type: SourceType = "other"

    title: str = ""
    date: Optional[str] = None
    citation: Optional[str] = None
    web_page_url: Optional[str] = None
    attached_by: Optional[str] = None
    attached_at: Optional[str] = None
    reason_attached: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    indexed: IndexedInfo = Field(default_factory=IndexedInfo)
    raw_text: str = ""

    expanded: bool = False
    expansion_attempts: int = Field(0, ge=0)
    expansion_succeeded: bool = False


class Person(CamelModel):
    family_search_id: str = ""
    name: str = ""
    birth_date: Optional[str] = None
    death_date: Optional[str] = None


class ExtractionWarning(CamelModel):
    # VIRTUALIZED_LIST | EXPAND_TIMEOUT | MISSING_FIELD | RATE_LIMITED
    code: str
    message: str = ""
    source_id: Optional[str] = None


class ExtractorError(CamelModel):
    code: str
    message: str = ""
    fatal: bool = False


class Diagnostics(CamelModel):
    mode: Literal["standard", "admin"] = "standard"
    total_sources: int = Field(0, ge=0)
    expanded_sections: int = Field(0, ge=0)
    failed_expansions: int = Field(0, ge=0)
    warnings: List[ExtractionWarning] = Field(default_factory=list)
    errors: List[ExtractorError] = Field(default_factory=list)


class EvidencePack(CamelModel):
    schema_version: Literal["1.0"]
    run_id: str
    captured_at: str
    extractor_version: str = ""
    extraction_duration_ms: Union[int, float] = Field(0, ge=0)

    source_url: str = ""
    page_title: str = ""
    ui_locale: str = "en"

    person: Person
    sources: List[Source]
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)

    @model_validator(mode="after")
    def check_unique_source_ids(self) -> "EvidencePack":
        seen = set()
        for source in self.sources:
            if source.id in seen:
                raise ValueError(f"Duplicate source id {source.id!r}")
            seen.add(source.id)
        return self


def create_empty_evidence_pack() -> EvidencePack:
    """Template pack for a new extraction; always passes validation."""
    return EvidencePack(
        schema_version=SCHEMA_VERSION,
        run_id=uuid.uuid4().hex,
        captured_at=datetime.now(timezone.utc).isoformat(),
        extractor_version="1.0.0",
        extraction_duration_ms=0,
        source_url="",
        page_title="",
        ui_locale="en",
        person=Person(),
        sources=[],
        diagnostics=Diagnostics(),
    )
