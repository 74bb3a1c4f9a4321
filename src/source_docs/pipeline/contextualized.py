"""Contextualized document workflow.

Per (person, run) the document moves no_runs -> not_generated -> success.
Reads only consult the store; generation is always an explicit call and
returns a draft that the caller saves once the user accepts it.
"""

from typing import Optional, Protocol, Tuple

from ..errors import ContextualizedValidationError, EvidencePackRejected
from ..llm.client import llm_client
from ..llm.prompts import build_summary_prompt, load_prompt
from ..llm.stages import run_cluster, run_normalize, run_synthesize
from ..log import get_logger
from ..redaction import Redactor, get_redaction_summary, load_redaction_config
from ..rendering.contextualized import render_contextualized_document
from ..rendering.raw_document import ordered_sources, render_raw_document
from ..schemas.evidence import EvidencePack
from ..schemas.outputs import (
    ContextualizedDocument,
    ContextualizedDraft,
    DocumentStatus,
    RawDocument,
)
from ..store.base import DocumentStore
from ..validation import validate_evidence_pack

logger = get_logger("workflow")


class LanguageModel(Protocol):
    """The external AI collaborator: send a prompt, receive text or parsed JSON."""

    def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        ...

    def run_structured(self, prompt: str, schema_model, system_prompt: Optional[str] = None):
        ...


class ContextualizedWorkflow:
    def __init__(self, store: DocumentStore, llm: Optional[LanguageModel] = None, redactor: Optional[Redactor] = None):
        self.store = store
        self.llm = llm or llm_client
        self.redactor = redactor or Redactor(load_redaction_config())

    def resolve_run_id(self, person_id: str, run_id: Optional[str] = None) -> Optional[str]:
        if run_id:
            return run_id
        latest = self.store.get_latest_run(person_id)
        return latest.run_id if latest else None

    def _person_name(self, person_id: str) -> str:
        person = self.store.get_person(person_id)
        return person.name if person and person.name else person_id

    def load_pack(self, person_id: str, run_id: str) -> Tuple[DocumentStatus, Optional[EvidencePack]]:
        data = self.store.get_pack(person_id, run_id)
        if data is None:
            return DocumentStatus.PACK_NOT_FOUND, None
        try:
            return DocumentStatus.SUCCESS, validate_evidence_pack(data)
        except EvidencePackRejected as e:
            logger.warning(f"Stored pack {person_id}/{run_id} is invalid: {e.reason.value} {e.message}")
            return DocumentStatus.INVALID_PACK, None

    # Reading

    def get_contextualized(self, person_id: str, run_id: Optional[str] = None) -> ContextualizedDocument:
        resolved = self.resolve_run_id(person_id, run_id)
        if not resolved:
            return ContextualizedDocument(person_id=person_id, status=DocumentStatus.NO_RUNS)

        markdown = self.store.get_contextualized_document(person_id, resolved)
        if not markdown:
            return ContextualizedDocument(person_id=person_id, status=DocumentStatus.NOT_GENERATED,
                                          run_id=resolved)

        return ContextualizedDocument(
            person_id=person_id,
            status=DocumentStatus.SUCCESS,
            run_id=resolved,
            markdown=markdown,
            person_name=self._person_name(person_id),
        )

    def get_raw_document(self, person_id: str, run_id: Optional[str] = None) -> RawDocument:
        """Stored raw document, or one rendered from the stored pack and saved."""
        resolved = self.resolve_run_id(person_id, run_id)
        if not resolved:
            return RawDocument(person_id=person_id, status=DocumentStatus.NO_RUNS)

        markdown = self.store.get_raw_document(person_id, resolved)
        if not markdown:
            status, pack = self.load_pack(person_id, resolved)
            if pack is None:
                return RawDocument(person_id=person_id, status=status, run_id=resolved)
            markdown = render_raw_document(pack)
            self.store.save_raw_document(person_id, resolved, markdown)
            logger.info(f"Rendered raw document for {person_id}/{resolved}")

        return RawDocument(
            person_id=person_id,
            status=DocumentStatus.SUCCESS,
            run_id=resolved,
            markdown=markdown,
            person_name=self._person_name(person_id),
        )

    # Writing

    def save_contextualized(self, person_id: str, run_id: str, markdown: str) -> str:
        """Overwrite the run's contextualized document. Returns the run id."""
        if not isinstance(run_id, str) or not run_id:
            raise ContextualizedValidationError(person_id, run_id, "Missing required fields: runId and markdown")
        if not isinstance(markdown, str) or not markdown.strip():
            raise ContextualizedValidationError(person_id, run_id, "Missing required fields: runId and markdown")

        self.store.save_contextualized_document(person_id, run_id, markdown)
        logger.info(f"Saved contextualized document for {person_id}/{run_id}")
        return run_id

    # Generation (explicit, never persisted here)

    def _prepare(self, person_id: str, run_id: Optional[str], use_redacted: bool):
        resolved = self.resolve_run_id(person_id, run_id)
        if not resolved:
            return ContextualizedDraft(person_id=person_id, status=DocumentStatus.NO_RUNS), None, None

        status, pack = self.load_pack(person_id, resolved)
        if pack is None:
            return ContextualizedDraft(person_id=person_id, status=status, run_id=resolved), None, None

        draft = ContextualizedDraft(person_id=person_id, status=DocumentStatus.SUCCESS,
                                    run_id=resolved, used_redacted=use_redacted)
        if not use_redacted:
            return draft, pack, pack

        result = self.redactor.redact(pack)
        draft.redactions = result.redactions
        draft.redaction_summary = get_redaction_summary(result.redactions)
        draft.has_living_indicators = result.has_living_indicators
        if result.has_living_indicators:
            logger.warning(f"Run {person_id}/{resolved} mentions living-person indicators")
        return draft, pack, result.redacted_pack

    def draft_contextualized(self, person_id: str, run_id: Optional[str] = None, use_redacted: bool = True,
                             instructions: Optional[str] = None) -> ContextualizedDraft:
        draft, original, chosen = self._prepare(person_id, run_id, use_redacted)
        if chosen is None:
            return draft

        raw_markdown = None
        if not use_redacted:
            raw_markdown = self.store.get_raw_document(person_id, draft.run_id)
        if not raw_markdown:
            raw_markdown = render_raw_document(chosen)

        prompt = build_summary_prompt(raw_markdown, original.person.name, instructions)
        draft.markdown = self.llm.complete(prompt, system_prompt=load_prompt("summarize"))
        return draft

    def synthesize_contextualized(self, person_id: str, run_id: Optional[str] = None,
                                  use_redacted: bool = True) -> ContextualizedDraft:
        draft, original, chosen = self._prepare(person_id, run_id, use_redacted)
        if chosen is None:
            return draft

        normalized = run_normalize(ordered_sources(chosen), client=self.llm)
        self.store.save_stage_output(person_id, draft.run_id, "normalize",
                                     [n.to_json_dict() for n in normalized])

        clusters = run_cluster(normalized, client=self.llm)
        self.store.save_stage_output(person_id, draft.run_id, "cluster", clusters.to_json_dict())

        synthesis = run_synthesize(chosen.person, normalized, clusters, client=self.llm)
        self.store.save_stage_output(person_id, draft.run_id, "synthesize", synthesis.to_json_dict())

        draft.markdown = render_contextualized_document(
            original.person.name, person_id, draft.run_id, synthesis
        )
        return draft
