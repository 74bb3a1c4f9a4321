"""Deterministic markdown rendering of an Evidence Pack.

render_raw_document() is a pure function of the pack: no clock, no store
access, so repeated renders of the same pack are byte-identical and a stored
raw document can always be regenerated. Callers validate the pack first.
"""

from __future__ import annotations

import re
from typing import List

from ..schemas.evidence import EvidencePack, Source

RULE = "---"


def ordered_sources(pack: EvidencePack) -> List[Source]:
    """Sources by orderIndex ascending; array position breaks ties."""
    indexed = list(enumerate(pack.sources))
    indexed.sort(key=lambda pair: (pair[1].order_index, pair[0]))
    return [source for _, source in indexed]


def _escape_cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


def _code_fence(text: str) -> str:
    """Backtick fence longer than any backtick run inside text."""
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    return "`" * max(3, longest + 1)


def _format_duration(ms: float) -> str:
    return f"{ms / 1000:.1f}s"


def _person_header(pack: EvidencePack) -> List[str]:
    person = pack.person
    lines = [f"# {person.name or 'Unknown Person'}"]
    if person.family_search_id:
        lines.append(f"**FamilySearch ID:** {person.family_search_id}  ")
    dates = []
    if person.birth_date:
        dates.append(f"Born: {person.birth_date}")
    if person.death_date:
        dates.append(f"Died: {person.death_date}")
    if dates:
        lines.append(f"**{' | '.join(dates)}**")
    lines.extend(["", RULE, ""])
    return lines


def _metadata_table(pack: EvidencePack) -> List[str]:
    diag = pack.diagnostics
    lines = [
        "## Extraction Metadata",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| Run ID | `{pack.run_id}` |",
        f"| Captured | {pack.captured_at} |",
    ]
    if pack.source_url:
        lines.append(f"| Source URL | {pack.source_url} |")
    if pack.extractor_version:
        lines.append(f"| Extractor | v{pack.extractor_version} |")
    lines.extend([
        f"| Mode | {diag.mode} |",
        f"| Duration | {_format_duration(pack.extraction_duration_ms)} |",
        f"| Sources | {diag.total_sources} total, {diag.expanded_sections} expanded |",
        "",
        RULE,
        "",
    ])
    return lines


def render_source_section(source: Source) -> str:
    lines = [
        f"### {source.id}: {source.title} {{#{source.id}}}",
        f"**Source ID:** `{source.id}`  ",
    ]
    if source.source_key:
        lines.append(f"**Source Key:** `{source.source_key}`  ")
    lines.extend([f"**Type:** {source.source_type}  ", ""])

    if source.date:
        lines.append(f"**Date:** {source.date}  ")
    if source.attached_by:
        attached = f"**Attached by:** {source.attached_by}"
        if source.attached_at:
            attached += f" on {source.attached_at}"
        lines.append(attached + "  ")
    if source.reason_attached:
        lines.append(f"**Reason:** {source.reason_attached}  ")
    lines.append("")

    if source.citation:
        lines.extend(["**Citation:**  ", f"> {source.citation}", ""])

    if source.web_page_url:
        lines.extend([f"**Web Page:** [View Record]({source.web_page_url})", ""])

    if source.tags:
        tag_str = " ".join(f"`{t}`" for t in source.tags)
        lines.extend([f"**Tags:** {tag_str}", ""])

    fields = source.indexed.fields
    blocks = source.indexed.text_blocks
    if fields or blocks:
        lines.extend(["#### Indexed Information", ""])
        if fields:
            lines.extend(["| Field | Value |", "|-------|-------|"])
            for f in fields:
                lines.append(f"| {_escape_cell(f.label)} | {_escape_cell(f.value)} |")
            lines.append("")
        for block in blocks:
            lines.extend([f"> {block}", ""])

    if source.raw_text.strip():
        fence = _code_fence(source.raw_text)
        lines.extend(["#### Full Text", "", f"{fence}text", source.raw_text.rstrip("\n"), fence, ""])

    if not source.expanded and source.expansion_attempts > 0:
        lines.append(
            f"*Note: Indexed information expansion failed after {source.expansion_attempts} attempt(s)*"
        )
        lines.append("")

    lines.append(RULE)
    lines.append(f"*End of Source {source.id} (captured from FamilySearch Sources page)*")
    return "\n".join(lines)


def _diagnostics(pack: EvidencePack) -> List[str]:
    diag = pack.diagnostics
    if not diag.warnings and not diag.errors:
        return []

    lines = [RULE, "", "## Extraction Diagnostics", ""]
    if diag.warnings:
        lines.extend(["### Warnings", ""])
        for w in diag.warnings:
            suffix = f" ({w.source_id})" if w.source_id else ""
            lines.append(f"- **{w.code}**: {w.message}{suffix}")
        lines.append("")
    if diag.errors:
        lines.extend(["### Errors", ""])
        for e in diag.errors:
            suffix = " (FATAL)" if e.fatal else ""
            lines.append(f"- **{e.code}**: {e.message}{suffix}")
        lines.append("")
    return lines


def render_raw_document(pack: EvidencePack) -> str:
    lines = _person_header(pack) + _metadata_table(pack)
    lines.extend(["## Sources", ""])
    for source in ordered_sources(pack):
        lines.append(render_source_section(source))
        lines.append("")
    lines.extend(_diagnostics(pack))
    return "\n".join(lines)


def render_table_of_contents(pack: EvidencePack) -> str:
    lines = ["## Table of Contents", ""]
    for source in ordered_sources(pack):
        lines.append(f"- [{source.id}: {source.title}](#{source.id})")
    lines.append("")
    return "\n".join(lines)
