"""File-based document store.

Layout under the root directory:

    <personId>/person.json
    <personId>/runs/<runId>/run.json
    <personId>/runs/<runId>/evidence-pack.json
    <personId>/runs/<runId>/raw-document.md
    <personId>/runs/<runId>/contextualized.md
    <personId>/runs/<runId>/ai-stages/<stage>.json
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, List, Optional
from uuid import uuid4

from ..config import get_settings
from ..errors import StorageError
from ..log import get_logger
from ..schemas.records import ArtifactKind, PersonMetadata, Run
from .base import DocumentStore, check_key, next_persisted_seq, utc_now

logger = get_logger("store")

ARTIFACT_FILES = {
    ArtifactKind.PACK: "evidence-pack.json",
    ArtifactKind.RAW_DOCUMENT: "raw-document.md",
    ArtifactKind.CONTEXTUALIZED_DOCUMENT: "contextualized.md",
}

_UNSAFE_COMPONENT = re.compile(r"[/\\\x00]")


def _safe_component(value: str) -> str:
    if _UNSAFE_COMPONENT.search(value) or value in (".", ".."):
        raise StorageError(f"Invalid storage key component {value!r}")
    return value


class FileStore(DocumentStore):
    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or get_settings().DATA_DIR)

    # Paths

    def person_dir(self, person_id: str) -> Path:
        check_key(person_id)
        return self.root / _safe_component(person_id)

    def run_dir(self, person_id: str, run_id: str) -> Path:
        check_key(person_id, run_id)
        return self.person_dir(person_id) / "runs" / _safe_component(run_id)

    # Low-level IO

    def _read_text(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def _read_json(self, path: Path) -> Optional[Any]:
        content = self._read_text(path)
        if content is None:
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt JSON in {path}: {e}") from e

    def _write_text(self, path: Path, content: str):
        # One temp file per write so concurrent writers never share it
        tmp = path.with_name(f"{path.name}.{uuid4().hex}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(content, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StorageError(f"Failed to write {path}: {e}") from e

    def _write_json(self, path: Path, data: Any):
        self._write_text(path, json.dumps(data, indent=2, ensure_ascii=False))

    # Runs

    def _touch_run(self, person_id: str, run_id: str, captured_at: Optional[str]):
        run_file = self.run_dir(person_id, run_id) / "run.json"
        existing = self._read_json(run_file)
        if existing is not None and captured_at is None:
            return
        run = {
            "runId": run_id,
            "capturedAt": captured_at or utc_now(),
            "persistedSeq": next_persisted_seq(),
        }
        self._write_json(run_file, run)

    def _load_runs(self, person_id: str) -> List[Run]:
        runs_dir = self.person_dir(person_id) / "runs"
        if not runs_dir.is_dir():
            return []
        runs = []
        try:
            entries = sorted(p for p in runs_dir.iterdir() if p.is_dir())
        except OSError as e:
            raise StorageError(f"Failed to list runs for {person_id}: {e}") from e
        for entry in entries:
            data = self._read_json(entry / "run.json")
            if data is None:
                continue
            runs.append(Run(
                run_id=data["runId"],
                captured_at=data["capturedAt"],
                persisted_seq=data.get("persistedSeq", 0),
                has_pack=(entry / ARTIFACT_FILES[ArtifactKind.PACK]).exists(),
                has_raw_document=(entry / ARTIFACT_FILES[ArtifactKind.RAW_DOCUMENT]).exists(),
                has_contextualized_document=(entry / ARTIFACT_FILES[ArtifactKind.CONTEXTUALIZED_DOCUMENT]).exists(),
            ))
        return runs

    # Artifacts

    def save_artifact(self, person_id: str, run_id: str, kind: ArtifactKind, content: str,
                      captured_at: Optional[str] = None) -> None:
        path = self.run_dir(person_id, run_id) / ARTIFACT_FILES[kind]
        self._write_text(path, content)
        self._touch_run(person_id, run_id, captured_at)
        logger.debug(f"Saved {kind.value} for {person_id}/{run_id}")

    def get_artifact(self, person_id: str, run_id: str, kind: ArtifactKind) -> Optional[str]:
        return self._read_text(self.run_dir(person_id, run_id) / ARTIFACT_FILES[kind])

    def save_stage_output(self, person_id: str, run_id: str, stage: str, data: Any) -> None:
        path = self.run_dir(person_id, run_id) / "ai-stages" / f"{_safe_component(stage)}.json"
        self._write_json(path, data)

    def get_stage_output(self, person_id: str, run_id: str, stage: str) -> Optional[Any]:
        return self._read_json(self.run_dir(person_id, run_id) / "ai-stages" / f"{_safe_component(stage)}.json")

    # People

    def get_person(self, person_id: str) -> Optional[PersonMetadata]:
        data = self._read_json(self.person_dir(person_id) / "person.json")
        return PersonMetadata.model_validate(data) if data is not None else None

    def save_person(self, person: PersonMetadata) -> None:
        self._write_json(self.person_dir(person.family_search_id) / "person.json", person.to_json_dict())

    def list_people(self) -> List[PersonMetadata]:
        if not self.root.is_dir():
            return []
        people = []
        for entry in sorted(self.root.iterdir()):
            if not entry.is_dir():
                continue
            data = self._read_json(entry / "person.json")
            if data is not None:
                people.append(PersonMetadata.model_validate(data))
        return sorted(people, key=lambda p: p.updated_at, reverse=True)
