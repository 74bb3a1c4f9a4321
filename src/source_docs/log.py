"""Logging configuration with Rich formatting.

setup_logging() is called once by the API app and the scripts; library
modules only ever call get_logger().
"""

import logging
from typing import Optional

from rich.logging import RichHandler
from .config import get_settings

NOISY_LOGGERS = ("httpx", "httpcore", "openai")

def setup_logging(level: Optional[str] = None):
    """Level defaults to LOG_LEVEL from settings."""
    logging.basicConfig(
        level=(level or get_settings().LOG_LEVEL).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)]
    )

    # Quiet down the HTTP stack under the LLM client
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

def get_logger(name: str):
    return logging.getLogger(f"source_docs.{name}")
