"""Run/Document Store contract.

Artifacts are addressed by (person_id, run_id, ArtifactKind). Absence is a
normal outcome (None); backend failures raise StorageError. Every write is
last-write-wins for its key. A run is registered by its first artifact write
and ordered by capturedAt, then by persistence order.
"""

from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from ..errors import StorageError
from ..schemas.evidence import EvidencePack
from ..schemas.records import ArtifactKind, PersonMetadata, Run


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


_seq_lock = threading.Lock()
_last_seq = 0


def next_persisted_seq() -> int:
    """Nanosecond wall-clock stamp, strictly increasing within this process."""
    global _last_seq
    with _seq_lock:
        _last_seq = max(time.time_ns(), _last_seq + 1)
        return _last_seq


def parse_timestamp(value: str) -> Optional[datetime]:
    """ISO-8601 to an aware datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def run_sort_key(run: Run):
    parsed = parse_timestamp(run.captured_at)
    # Unparseable timestamps sort first; persistence order still applies.
    return (parsed.timestamp() if parsed else float("-inf"), run.persisted_seq)


def check_key(person_id: str, run_id: Optional[str] = None):
    if not isinstance(person_id, str) or not person_id:
        raise StorageError("person_id must be a non-empty string")
    if run_id is not None and (not isinstance(run_id, str) or not run_id):
        raise StorageError(f"run_id must be a non-empty string (person {person_id})")


class DocumentStore(ABC):

    # Keyed primitives implemented by each backend

    @abstractmethod
    def save_artifact(self, person_id: str, run_id: str, kind: ArtifactKind, content: str,
                      captured_at: Optional[str] = None) -> None:
        """Write one artifact and register/refresh the run."""

    @abstractmethod
    def get_artifact(self, person_id: str, run_id: str, kind: ArtifactKind) -> Optional[str]:
        ...

    @abstractmethod
    def _load_runs(self, person_id: str) -> List[Run]:
        ...

    @abstractmethod
    def get_person(self, person_id: str) -> Optional[PersonMetadata]:
        ...

    @abstractmethod
    def save_person(self, person: PersonMetadata) -> None:
        ...

    @abstractmethod
    def list_people(self) -> List[PersonMetadata]:
        """Most recently updated first."""

    @abstractmethod
    def save_stage_output(self, person_id: str, run_id: str, stage: str, data: Any) -> None:
        ...

    @abstractmethod
    def get_stage_output(self, person_id: str, run_id: str, stage: str) -> Optional[Any]:
        ...

    # Named artifact operations

    def save_pack(self, person_id: str, run_id: str, pack: Union[EvidencePack, Dict[str, Any]]) -> None:
        data = pack.to_json_dict() if isinstance(pack, EvidencePack) else pack
        content = json.dumps(data, indent=2, ensure_ascii=False)
        self.save_artifact(person_id, run_id, ArtifactKind.PACK, content,
                           captured_at=data.get("capturedAt") or utc_now())

    def get_pack(self, person_id: str, run_id: str) -> Optional[Dict[str, Any]]:
        """Stored pack as plain JSON data; callers validate before use."""
        content = self.get_artifact(person_id, run_id, ArtifactKind.PACK)
        if content is None:
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt evidence pack for {person_id}/{run_id}: {e}") from e

    def save_raw_document(self, person_id: str, run_id: str, markdown: str) -> None:
        self.save_artifact(person_id, run_id, ArtifactKind.RAW_DOCUMENT, markdown)

    def get_raw_document(self, person_id: str, run_id: str) -> Optional[str]:
        return self.get_artifact(person_id, run_id, ArtifactKind.RAW_DOCUMENT)

    def save_contextualized_document(self, person_id: str, run_id: str, markdown: str) -> None:
        self.save_artifact(person_id, run_id, ArtifactKind.CONTEXTUALIZED_DOCUMENT, markdown)

    def get_contextualized_document(self, person_id: str, run_id: str) -> Optional[str]:
        return self.get_artifact(person_id, run_id, ArtifactKind.CONTEXTUALIZED_DOCUMENT)

    # Runs

    def list_runs(self, person_id: str) -> List[Run]:
        """Chronological: oldest capturedAt first."""
        check_key(person_id)
        return sorted(self._load_runs(person_id), key=run_sort_key)

    def get_latest_run(self, person_id: str) -> Optional[Run]:
        runs = self.list_runs(person_id)
        return runs[-1] if runs else None
