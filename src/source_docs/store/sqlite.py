"""SQLite-backed document store.

Each operation opens its own connection via get_db_connection() and closes
it before returning. Writes are upserts, so the last write for a key wins.
"""

import json
import sqlite3
from typing import Any, List, Optional

from ..errors import StorageError
from ..log import get_logger
from ..schemas.records import ArtifactKind, PersonMetadata, Run
from .base import DocumentStore, check_key, next_persisted_seq, utc_now
from .db import get_db_connection, init_db

logger = get_logger("store")


class SqliteStore(DocumentStore):
    def __init__(self, db_path: Optional[str] = None, create_schema: bool = True):
        self.db_path = db_path
        if create_schema:
            try:
                init_db(db_path)
            except sqlite3.Error as e:
                raise StorageError(f"Failed to initialize database: {e}") from e

    def save_artifact(self, person_id: str, run_id: str, kind: ArtifactKind, content: str,
                      captured_at: Optional[str] = None) -> None:
        check_key(person_id, run_id)
        try:
            with get_db_connection(self.db_path) as conn:
                next_seq = next_persisted_seq()

                if captured_at is not None:
                    conn.execute(
                        """
                        INSERT INTO runs (person_id, run_id, captured_at, persisted_seq)
                        VALUES (?, ?, ?, ?)
                        ON CONFLICT(person_id, run_id)
                        DO UPDATE SET captured_at = excluded.captured_at, persisted_seq = excluded.persisted_seq
                        """,
                        (person_id, run_id, captured_at, next_seq)
                    )
                else:
                    conn.execute(
                        """
                        INSERT OR IGNORE INTO runs (person_id, run_id, captured_at, persisted_seq)
                        VALUES (?, ?, ?, ?)
                        """,
                        (person_id, run_id, utc_now(), next_seq)
                    )

                conn.execute(
                    """
                    INSERT INTO artifacts (person_id, run_id, kind, content)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(person_id, run_id, kind)
                    DO UPDATE SET content = excluded.content, updated_at = CURRENT_TIMESTAMP
                    """,
                    (person_id, run_id, kind.value, content)
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"DB error saving {kind.value} for {person_id}/{run_id}: {e}") from e
        logger.debug(f"Saved {kind.value} for {person_id}/{run_id}")

    def get_artifact(self, person_id: str, run_id: str, kind: ArtifactKind) -> Optional[str]:
        check_key(person_id, run_id)
        try:
            with get_db_connection(self.db_path) as conn:
                row = conn.execute(
                    "SELECT content FROM artifacts WHERE person_id = ? AND run_id = ? AND kind = ?",
                    (person_id, run_id, kind.value)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"DB error reading {kind.value} for {person_id}/{run_id}: {e}") from e
        return row["content"] if row else None

    def _load_runs(self, person_id: str) -> List[Run]:
        try:
            with get_db_connection(self.db_path) as conn:
                rows = conn.execute(
                    "SELECT run_id, captured_at, persisted_seq FROM runs WHERE person_id = ?",
                    (person_id,)
                ).fetchall()
                kinds = conn.execute(
                    "SELECT run_id, kind FROM artifacts WHERE person_id = ?",
                    (person_id,)
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"DB error listing runs for {person_id}: {e}") from e

        present = {(row["run_id"], row["kind"]) for row in kinds}
        return [
            Run(
                run_id=row["run_id"],
                captured_at=row["captured_at"],
                persisted_seq=row["persisted_seq"],
                has_pack=(row["run_id"], ArtifactKind.PACK.value) in present,
                has_raw_document=(row["run_id"], ArtifactKind.RAW_DOCUMENT.value) in present,
                has_contextualized_document=(row["run_id"], ArtifactKind.CONTEXTUALIZED_DOCUMENT.value) in present,
            )
            for row in rows
        ]

    def save_stage_output(self, person_id: str, run_id: str, stage: str, data: Any) -> None:
        check_key(person_id, run_id)
        try:
            with get_db_connection(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO stage_outputs (person_id, run_id, stage, content)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(person_id, run_id, stage) DO UPDATE SET content = excluded.content
                    """,
                    (person_id, run_id, stage, json.dumps(data, ensure_ascii=False))
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"DB error saving stage {stage} for {person_id}/{run_id}: {e}") from e

    def get_stage_output(self, person_id: str, run_id: str, stage: str) -> Optional[Any]:
        check_key(person_id, run_id)
        try:
            with get_db_connection(self.db_path) as conn:
                row = conn.execute(
                    "SELECT content FROM stage_outputs WHERE person_id = ? AND run_id = ? AND stage = ?",
                    (person_id, run_id, stage)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"DB error reading stage {stage} for {person_id}/{run_id}: {e}") from e
        return json.loads(row["content"]) if row else None

    def get_person(self, person_id: str) -> Optional[PersonMetadata]:
        check_key(person_id)
        try:
            with get_db_connection(self.db_path) as conn:
                row = conn.execute(
                    "SELECT * FROM people WHERE family_search_id = ?",
                    (person_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"DB error reading person {person_id}: {e}") from e
        return PersonMetadata(**dict(row)) if row else None

    def save_person(self, person: PersonMetadata) -> None:
        check_key(person.family_search_id)
        try:
            with get_db_connection(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO people (family_search_id, name, birth_date, death_date, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(family_search_id) DO UPDATE SET
                        name = excluded.name,
                        birth_date = excluded.birth_date,
                        death_date = excluded.death_date,
                        created_at = excluded.created_at,
                        updated_at = excluded.updated_at
                    """,
                    (
                        person.family_search_id,
                        person.name,
                        person.birth_date,
                        person.death_date,
                        person.created_at,
                        person.updated_at,
                    )
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"DB error saving person {person.family_search_id}: {e}") from e

    def list_people(self) -> List[PersonMetadata]:
        try:
            with get_db_connection(self.db_path) as conn:
                rows = conn.execute("SELECT * FROM people ORDER BY updated_at DESC").fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"DB error listing people: {e}") from e
        return [PersonMetadata(**dict(row)) for row in rows]
