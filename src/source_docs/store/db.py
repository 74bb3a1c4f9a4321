"""SQLite database connection and schema management.

Provides get_db_connection() context manager and init_db() for schema creation.
Stores people, runs, artifacts and AI stage outputs.
"""

import sqlite3
from typing import Optional
from ..config import get_settings
from contextlib import contextmanager

@contextmanager
def get_db_connection(db_path: Optional[str] = None):
    conn = sqlite3.connect(db_path or get_settings().DB_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()

def init_db(db_path: Optional[str] = None):
    schema = """
    CREATE TABLE IF NOT EXISTS people (
        family_search_id TEXT PRIMARY KEY,
        name TEXT NOT NULL DEFAULT '',
        birth_date TEXT,
        death_date TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS runs (
        person_id TEXT NOT NULL,
        run_id TEXT NOT NULL,
        captured_at TEXT NOT NULL,
        persisted_seq INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY(person_id, run_id)
    );

    CREATE TABLE IF NOT EXISTS artifacts (
        person_id TEXT NOT NULL,
        run_id TEXT NOT NULL,
        kind TEXT NOT NULL,
        content TEXT NOT NULL,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY(person_id, run_id, kind),
        FOREIGN KEY(person_id, run_id) REFERENCES runs(person_id, run_id)
    );

    CREATE TABLE IF NOT EXISTS stage_outputs (
        person_id TEXT NOT NULL,
        run_id TEXT NOT NULL,
        stage TEXT NOT NULL,
        content TEXT NOT NULL,
        PRIMARY KEY(person_id, run_id, stage)
    );
    """
    with get_db_connection(db_path) as conn:
        conn.executescript(schema)
        conn.commit()
