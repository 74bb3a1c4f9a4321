"""Markdown layout for a synthesized contextualized dossier."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from ..schemas.analysis import Synthesis


def _sources(ids: List[str]) -> str:
    return ", ".join(ids)


def render_contextualized_document(
    person_name: str,
    person_id: str,
    run_id: str,
    synthesis: Synthesis,
    generated_at: Optional[str] = None,
) -> str:
    generated_at = generated_at or datetime.now(timezone.utc).isoformat()
    lines = [
        f"# Contextualized Dossier: {person_name or 'Unknown Person'}",
        f"**FamilySearch ID:** {person_id}  ",
        f"**Run ID:** `{run_id}`  ",
        f"**Generated:** {generated_at}  ",
        "",
        "## Executive Summary",
        "",
        synthesis.summary or "No summary generated.",
        "",
        "## Verified Facts",
        "",
    ]

    if not synthesis.verified_facts:
        lines.append("- No verified facts were returned.")
    for fact in synthesis.verified_facts:
        lines.append(f"- {fact.fact} _(confidence: {fact.confidence}, sources: {_sources(fact.source_ids)})_")
    lines.extend(["", "## Conflicts", ""])

    if not synthesis.conflicts:
        lines.append("- No conflicts identified.")
    for conflict in synthesis.conflicts:
        lines.append(f"- {conflict.description}")
        for position in conflict.positions:
            lines.append(f"  - {position.claim} _(sources: {_sources(position.source_ids)})_")
    lines.extend(["", "## Timeline", ""])

    if not synthesis.timeline:
        lines.append("- No timeline entries generated.")
    for item in synthesis.timeline:
        lines.append(f"- **{item.date}**: {item.event} _(sources: {_sources(item.source_ids)})_")
    lines.extend(["", "## Research Suggestions", ""])

    if not synthesis.research_suggestions:
        lines.append("- No research suggestions generated.")
    for suggestion in synthesis.research_suggestions:
        lines.append(f"- {suggestion}")
    lines.append("")

    return "\n".join(lines)
