"""Staged AI analysis: normalize -> cluster -> synthesize.

Each stage sends one prompt through the LLM client and validates the JSON
answer against its schema. Callers pass sources from a redacted pack when
personal data must not leave the process.
"""

from typing import List, Optional

from .client import LLMClient, llm_client
from .prompts import build_cluster_prompt, build_normalize_prompt, build_synthesize_prompt, load_prompt
from ..schemas.analysis import ClusterResult, NormalizedSource, NormalizedSources, Synthesis
from ..schemas.evidence import Person, Source


def run_normalize(sources: List[Source], client: Optional[LLMClient] = None) -> List[NormalizedSource]:
    client = client or llm_client
    result = client.run_structured(build_normalize_prompt(sources), NormalizedSources,
                                   system_prompt=load_prompt("normalize"))
    return result.sources


def run_cluster(normalized: List[NormalizedSource], client: Optional[LLMClient] = None) -> ClusterResult:
    client = client or llm_client
    return client.run_structured(build_cluster_prompt(normalized), ClusterResult,
                                 system_prompt=load_prompt("cluster"))


def run_synthesize(person: Person, normalized: List[NormalizedSource], clusters: ClusterResult,
                   client: Optional[LLMClient] = None) -> Synthesis:
    client = client or llm_client
    return client.run_structured(build_synthesize_prompt(person, normalized, clusters), Synthesis,
                                 system_prompt=load_prompt("synthesize"))
