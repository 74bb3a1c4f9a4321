import copy
import os

import pytest
from dotenv import load_dotenv

from source_docs.store.files import FileStore
from source_docs.store.sqlite import SqliteStore

@pytest.fixture(scope="session", autouse=True)
def _load_env():
    # Load .env once per session to avoid side-effects on import time
    load_dotenv()

def _truthy(v: str | None) -> bool:
    return v is not None and v.strip().lower() not in ("", "0", "false", "no")

@pytest.fixture(scope="session")
def allow_integration(_load_env) -> bool:
    return _truthy(os.getenv("RUN_INTEGRATION_TESTS"))

@pytest.fixture(scope="session")
def llm_api_key(_load_env) -> str | None:
    key = os.getenv("LLM_API_KEY")
    if not key or key == "sk-or-...":
        return None
    return key


BASE_PACK = {
    "schemaVersion": "1.0",
    "runId": "run-2024-01-15",
    "capturedAt": "2024-01-15T10:00:00Z",
    "extractorVersion": "1.2.0",
    "extractionDurationMs": 4200,
    "sourceUrl": "https://www.familysearch.org/tree/person/sources/KWCJ-123",
    "pageTitle": "John Smith (1850-1910) - Sources",
    "uiLocale": "en",
    "person": {
        "familySearchId": "KWCJ-123",
        "name": "John Smith",
        "birthDate": "1 January 1850",
        "deathDate": "2 February 1910",
    },
    "sources": [
        {
            "id": "S1",
            "orderIndex": 0,
            "sourceKey": "MXYZ-1",
            "sourceType": "record",
            "title": "United States Census, 1880",
            "date": "1880",
            "citation": "\"United States Census, 1880,\" database, FamilySearch.",
            "webPageUrl": "https://www.familysearch.org/ark:/61903/1:1:MXYZ-1",
            "attachedBy": "jdoe",
            "attachedAt": "12 March 2019",
            "reasonAttached": "Matches birth year and parents",
            "tags": ["Name", "Birth"],
            "indexed": {
                "fields": [
                    {"label": "Name", "value": "John Smith"},
                    {"label": "Residence", "value": "Ohio, United States"},
                ],
                "textBlocks": [],
            },
            "rawText": "",
            "expanded": True,
            "expansionAttempts": 1,
            "expansionSucceeded": True,
        },
        {
            "id": "S2",
            "orderIndex": 1,
            "sourceKey": "MXYZ-2",
            "sourceType": "story",
            "title": "Family letter",
            "indexed": {"fields": [], "textBlocks": ["Written by his daughter in 1925."]},
            "rawText": "Dear Mary,\nFather passed in the winter of 1910.",
            "expanded": False,
            "expansionAttempts": 0,
            "expansionSucceeded": False,
        },
    ],
    "diagnostics": {
        "mode": "standard",
        "totalSources": 2,
        "expandedSections": 1,
        "failedExpansions": 0,
        "warnings": [],
        "errors": [],
    },
}


@pytest.fixture
def make_pack():
    """
    Factory for Evidence Pack payloads in their JSON (camelCase) form.
    Keyword overrides replace top-level keys of a fresh copy.
    """
    def _make(**overrides):
        data = copy.deepcopy(BASE_PACK)
        data.update(overrides)
        return data
    return _make


@pytest.fixture
def file_store(tmp_path):
    return FileStore(str(tmp_path / "people"))


@pytest.fixture
def sqlite_store(tmp_path):
    return SqliteStore(str(tmp_path / "test_source_docs.sqlite"))


@pytest.fixture(params=["file", "sqlite"])
def store(request, tmp_path):
    """Every store contract test runs against both backends."""
    if request.param == "file":
        return FileStore(str(tmp_path / "people"))
    return SqliteStore(str(tmp_path / "test_source_docs.sqlite"))


@pytest.fixture(scope="function")
def test_settings(tmp_path):
    """
    Points the cached settings at temporary storage so nothing touches the
    real data directory or database. Restores the original values afterwards.
    """
    from source_docs.config import get_settings
    settings = get_settings()

    original = (settings.DATA_DIR, settings.DB_PATH, settings.STORAGE_BACKEND)
    settings.DATA_DIR = str(tmp_path / "people")
    settings.DB_PATH = str(tmp_path / "test_source_docs.sqlite")
    settings.STORAGE_BACKEND = "file"

    yield settings

    settings.DATA_DIR, settings.DB_PATH, settings.STORAGE_BACKEND = original
