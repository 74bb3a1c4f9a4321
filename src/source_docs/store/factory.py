from ..config import get_settings
from .base import DocumentStore
from .files import FileStore
from .sqlite import SqliteStore


def get_store() -> DocumentStore:
    """Store for the configured STORAGE_BACKEND ('file' or 'sqlite')."""
    settings = get_settings()
    backend = (settings.STORAGE_BACKEND or "").strip().lower()
    if backend in ("file", "files", "fs", "local"):
        return FileStore(settings.DATA_DIR)
    if backend == "sqlite":
        return SqliteStore(settings.DB_PATH)
    raise ValueError(f"Unsupported STORAGE_BACKEND '{settings.STORAGE_BACKEND}'. Use 'file' or 'sqlite'.")
