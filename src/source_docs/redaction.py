"""Redaction of sensitive values before external AI processing.

The Redactor scans every free-text field of an Evidence Pack for e-mail
addresses, phone numbers and SSN-shaped digit triplets, replaces each match
with a fixed placeholder and records one Redaction per substitution. It also
flags sources that mention living-person indicators. Detection is pattern
based only; misses are an accepted limitation, not errors.
"""

from __future__ import annotations

import re
from typing import List, NamedTuple, Optional, Pattern, Tuple

from pydantic import BaseModel, ConfigDict

from .config import load_redaction_rules
from .log import get_logger
from .schemas.evidence import EvidencePack, Source
from .schemas.outputs import Redaction, RedactionResult, RedactionType, SourceRedaction

logger = get_logger("redaction")

EMAIL_PLACEHOLDER = "[EMAIL REDACTED]"
PHONE_PLACEHOLDER = "[PHONE REDACTED]"
SSN_PLACEHOLDER = "[SSN REDACTED]"

DEFAULT_LIVING_INDICATORS = (
    "living",
    "private",
    "current address",
    "contact info",
    "phone number",
    "email address",
)


class PatternRule(NamedTuple):
    type: RedactionType
    pattern: Pattern[str]
    placeholder: str


# Applied in this order; each rule sees the output of the previous one.
PATTERN_RULES: Tuple[PatternRule, ...] = (
    PatternRule(
        "email",
        re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        EMAIL_PLACEHOLDER,
    ),
    PatternRule(
        "phone",
        re.compile(r"(?<!\w)(?:\+?1[-.\s]?)?(?:\(\d{3}\)|\d{3})[-.\s]?\d{3}[-.\s]?\d{4}\b"),
        PHONE_PLACEHOLDER,
    ),
    PatternRule(
        "ssn",
        re.compile(r"\b\d{3}[-.\s]?\d{2}[-.\s]?\d{4}\b"),
        SSN_PLACEHOLDER,
    ),
)

_SEPARATORS = re.compile(r"[-.\s]")


class RedactionConfig(BaseModel):
    """Immutable detection vocabulary owned by a Redactor."""
    model_config = ConfigDict(frozen=True)

    living_indicators: Tuple[str, ...] = DEFAULT_LIVING_INDICATORS
    # Inclusive; a 3-2-4 group ending in a year in this range is kept as a date.
    date_year_range: Tuple[int, int] = (1800, 2100)


def load_redaction_config() -> RedactionConfig:
    """Defaults merged with the optional YAML overrides file."""
    rules = load_redaction_rules()
    overrides = {}
    if rules.get("living_indicators"):
        overrides["living_indicators"] = tuple(str(p).lower() for p in rules["living_indicators"])
    if rules.get("date_year_range"):
        low, high = rules["date_year_range"]
        overrides["date_year_range"] = (int(low), int(high))
    return RedactionConfig(**overrides)


class Redactor:
    def __init__(self, config: Optional[RedactionConfig] = None):
        self.config = config or RedactionConfig()

    def redact(self, pack: EvidencePack) -> RedactionResult:
        """
        Redact a deep copy of the pack. The input is never mutated, so callers
        can keep the original and sanitized packs side by side.
        """
        redacted_pack = pack.model_copy(deep=True)
        redactions: List[Redaction] = []
        per_source: List[SourceRedaction] = []

        for source in redacted_pack.sources:
            entry = self._redact_source(source)
            per_source.append(entry)
            redactions.extend(entry.redactions)

        has_living = any(entry.has_living_indicators for entry in per_source)
        if redactions or has_living:
            logger.info(
                f"Run {pack.run_id}: {len(redactions)} redaction(s), living indicators={has_living}"
            )

        return RedactionResult(
            redacted_pack=redacted_pack,
            redactions=redactions,
            has_living_indicators=has_living,
            sources=per_source,
        )

    def has_living_indicators(self, source: Source) -> bool:
        parts = [
            source.title,
            source.citation or "",
            source.reason_attached or "",
            source.raw_text,
            *[f"{f.label} {f.value}" for f in source.indexed.fields],
            *source.indexed.text_blocks,
        ]
        full_text = " ".join(parts).lower()
        return any(indicator in full_text for indicator in self.config.living_indicators)

    def looks_like_date(self, value: str) -> bool:
        """True when the last four digits read as a plausible year."""
        digits = _SEPARATORS.sub("", value)
        low, high = self.config.date_year_range
        return low <= int(digits[-4:]) <= high

    def redact_text(self, text: str, source_id: str, field: str) -> Tuple[str, List[Redaction]]:
        redactions: List[Redaction] = []
        for rule in PATTERN_RULES:
            text = self._apply_rule(rule, text, source_id, field, redactions)
        return text, redactions

    def _apply_rule(self, rule: PatternRule, text: str, source_id: str, field: str,
                    redactions: List[Redaction]) -> str:
        def substitute(match: re.Match) -> str:
            value = match.group(0)
            if rule.type == "ssn" and self.looks_like_date(value):
                return value
            redactions.append(Redaction(
                source_id=source_id,
                field=field,
                original_value=value,
                redacted_value=rule.placeholder,
                type=rule.type,
            ))
            return rule.placeholder

        return rule.pattern.sub(substitute, text)

    def _redact_source(self, source: Source) -> SourceRedaction:
        # Mutates the caller's private copy only.
        redactions: List[Redaction] = []
        living = self.has_living_indicators(source)

        if source.citation:
            source.citation, found = self.redact_text(source.citation, source.id, "citation")
            redactions.extend(found)

        if source.reason_attached:
            source.reason_attached, found = self.redact_text(source.reason_attached, source.id, "reasonAttached")
            redactions.extend(found)

        if source.raw_text:
            source.raw_text, found = self.redact_text(source.raw_text, source.id, "rawText")
            redactions.extend(found)

        for idx, indexed_field in enumerate(source.indexed.fields):
            indexed_field.value, found = self.redact_text(
                indexed_field.value, source.id, f"indexed.fields[{idx}].value"
            )
            redactions.extend(found)

        blocks = []
        for idx, block in enumerate(source.indexed.text_blocks):
            block, found = self.redact_text(block, source.id, f"indexed.textBlocks[{idx}]")
            blocks.append(block)
            redactions.extend(found)
        source.indexed.text_blocks = blocks

        return SourceRedaction(source_id=source.id, has_living_indicators=living, redactions=redactions)


def redact_evidence_pack(pack: EvidencePack, config: Optional[RedactionConfig] = None) -> RedactionResult:
    return Redactor(config).redact(pack)


def get_redaction_summary(redactions: List[Redaction]) -> str:
    counts = {"email": 0, "phone": 0, "ssn": 0, "address": 0, "living": 0}
    for r in redactions:
        counts[r.type] += 1

    parts = []
    if counts["email"]:
        parts.append(f"{counts['email']} email(s)")
    if counts["phone"]:
        parts.append(f"{counts['phone']} phone number(s)")
    if counts["ssn"]:
        parts.append(f"{counts['ssn']} SSN(s)")
    if counts["address"]:
        parts.append(f"{counts['address']} address(es)")

    return f"Redacted: {', '.join(parts)}" if parts else "No sensitive information found"
