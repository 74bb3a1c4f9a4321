import json
import yaml
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..schemas.analysis import ClusterResult, NormalizedSource
from ..schemas.evidence import Person, Source

SYSTEM_PROMPTS: Dict[str, str] = {
    "normalize": """You are an expert genealogist analyzing historical sources. Your task is to extract and normalize information from genealogical sources.

For each given source, extract:
1. A one-sentence summary of what this source tells us
2. All entities mentioned (people, places, organizations)
3. All dates with their types and precision
4. All places with their context
5. Relationships between people
6. Key claims/facts this source asserts
7. Your confidence level in the source's reliability

Respond in valid JSON of the form {"sources": [...]} with one entry per source, keyed by sourceId.""",

    "cluster": """You are an expert genealogist analyzing multiple sources for the same person. Your task is to identify which sources are duplicates, represent the same event, or contain overlapping information.

For the given normalized sources, identify:
1. Clusters of related sources (same record, same event, overlapping info)
2. The primary/best source in each cluster
3. Sources that stand alone (not related to others)

Respond in valid JSON with "clusters" and "standalone". Explain your reasoning for each cluster.""",

    "synthesize": """You are an expert genealogist creating a comprehensive research dossier. Your task is to synthesize information from multiple sources into a cohesive analysis.

Based on the normalized and clustered sources, create:
1. An executive summary of what we know about this person
2. Verified facts with source citations and confidence levels
3. Identified conflicts between sources
4. A chronological timeline of events
5. Suggestions for further research

Distinguish clearly between what the sources explicitly state vs. what you infer.
Respond in valid JSON with summary, verifiedFacts, conflicts, timeline and researchSuggestions.""",

    "summarize": """You are an expert genealogist writing a contextualized research dossier in markdown.
Use only the evidence provided. Cite source ids in parentheses after each claim, keep
placeholders such as [EMAIL REDACTED] untouched, and separate stated facts from inference.""",
}

def load_prompt(name: str) -> str:
    # Prioritize .yaml for structured prompts
    yaml_path = Path("data/prompts") / f"{name}.yaml"
    if yaml_path.exists():
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}
            return data.get("content", "")

    # Fallback to .md
    md_path = Path("data/prompts") / f"{name}.md"
    if md_path.exists():
        with open(md_path, "r") as f:
            return f.read()

    if name in SYSTEM_PROMPTS:
        return SYSTEM_PROMPTS[name]

    raise FileNotFoundError(f"Prompt {name} not found as .yaml or .md")


def build_normalize_prompt(sources: Iterable[Source]) -> str:
    parts = ["Analyze these genealogical sources:", ""]
    for source in sources:
        parts.append(f"**Source ID:** {source.id}")
        parts.append(f"**Title:** {source.title}")
        parts.append("")
        if source.indexed.fields:
            parts.append("**Indexed Information:**")
            for f in source.indexed.fields:
                parts.append(f"- {f.label}: {f.value}")
            parts.append("")
        if source.raw_text:
            parts.append(f"**Full Text:**\n{source.raw_text}")
            parts.append("")
    return "\n".join(parts)


def build_cluster_prompt(normalized: List[NormalizedSource]) -> str:
    parts = [f"Analyze these {len(normalized)} normalized sources and identify clusters:", ""]
    for source in normalized:
        parts.append(f"**{source.source_id}:**")
        parts.append(f"Summary: {source.summary}")
        parts.append(f"Claims: {'; '.join(source.claims)}")
        parts.append("")
    return "\n".join(parts)


def build_synthesize_prompt(person: Person, normalized: List[NormalizedSource], clusters: ClusterResult) -> str:
    parts = [
        f"Create a comprehensive research dossier for **{person.name or person.family_search_id}**.",
        "",
        f"## Analyzed Sources ({len(normalized)} total)",
        "",
    ]
    for source in normalized:
        parts.append(f"### {source.source_id}")
        parts.append(f"- Summary: {source.summary}")
        if source.dates:
            parts.append(f"- Dates: {', '.join(f'{d.type}: {d.date}' for d in source.dates)}")
        if source.places:
            parts.append(f"- Places: {', '.join(f'{p.type}: {p.name}' for p in source.places)}")
        if source.claims:
            parts.append(f"- Claims: {'; '.join(source.claims)}")
        parts.append("")

    parts.extend(["## Source Clusters", ""])
    for cluster in clusters.clusters:
        parts.append(f"- **{cluster.id}** ({cluster.type}): {', '.join(cluster.source_ids)} - {cluster.reason}")
    if clusters.standalone:
        parts.append("")
        parts.append(f"Standalone sources: {', '.join(clusters.standalone)}")
    return "\n".join(parts)


def build_summary_prompt(raw_markdown: str, person_name: str, instructions: Optional[str] = None) -> str:
    prompt = (
        f"Write a contextualized dossier for **{person_name or 'Unknown Person'}** "
        "from the raw evidence document below.\n\n"
    )
    if instructions and instructions.strip():
        prompt += f"# Additional Instructions\n{instructions.strip()}\n\n"
    return prompt + f"# Raw Evidence Document\n{raw_markdown}"


def build_export_prompt(stage: str, data: Any) -> str:
    """Self-contained prompt for pasting into an external AI tool."""
    return (
        "# AI Processing Request for Source Docs\n\n"
        f"## Instructions\n{load_prompt(stage)}\n\n"
        f"## Data to Process\n```json\n{json.dumps(data, indent=2, ensure_ascii=False)}\n```\n\n"
        "## Expected Output Format\n"
        "Please respond with valid JSON only, following the schema requirements above."
    )
