"""Pydantic schemas for the staged AI analysis outputs.

normalize -> NormalizedSources, cluster -> ClusterResult, synthesize -> Synthesis.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from .evidence import CamelModel

Confidence = Literal["high", "medium", "low"]


class Entity(CamelModel):
    name: str
    type: Literal["person", "place", "organization"]
    role: Optional[str] = None


class DateMention(CamelModel):
    date: str
    type: str
    precision: Literal["exact", "estimated", "range"]


class PlaceMention(CamelModel):
    name: str
    type: str


class Relationship(CamelModel):
    person1: str
    person2: str
    type: str


class NormalizedSource(CamelModel):
    source_id: str
    summary: str
    entities: List[Entity] = Field(default_factory=list)
    dates: List[DateMention] = Field(default_factory=list)
    places: List[PlaceMention] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)
    claims: List[str] = Field(default_factory=list)
    confidence: Confidence = "medium"


class NormalizedSources(CamelModel):
    sources: List[NormalizedSource]


class Cluster(CamelModel):
    id: str
    type: Literal["same_record", "same_event", "overlapping_info", "related"]
    source_ids: List[str]
    reason: str
    primary_source_id: str


class ClusterResult(CamelModel):
    clusters: List[Cluster] = Field(default_factory=list)
    standalone: List[str] = Field(default_factory=list)


class VerifiedFact(CamelModel):
    fact: str
    source_ids: List[str] = Field(default_factory=list)
    confidence: Confidence = "medium"


class ConflictPosition(CamelModel):
    claim: str
    source_ids: List[str] = Field(default_factory=list)


class Conflict(CamelModel):
    description: str
    positions: List[ConflictPosition] = Field(default_factory=list)


class TimelineEntry(CamelModel):
    date: str
    event: str
    source_ids: List[str] = Field(default_factory=list)


class Synthesis(CamelModel):
    summary: str = ""
    verified_facts: List[VerifiedFact] = Field(default_factory=list)
    conflicts: List[Conflict] = Field(default_factory=list)
    timeline: List[TimelineEntry] = Field(default_factory=list)
    research_suggestions: List[str] = Field(default_factory=list)
