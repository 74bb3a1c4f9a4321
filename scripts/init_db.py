from source_docs.config import get_settings
from source_docs.store.db import init_db
import logging

logging.basicConfig(level=logging.INFO)

if __name__ == "__main__":
    db_path = get_settings().DB_PATH
    logging.info(f"Initializing database at {db_path}...")
    init_db(db_path)
    logging.info("Database initialized.")
