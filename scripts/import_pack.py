#!/usr/bin/env python3
"""
Utility: import Evidence Pack JSON files into the configured store.

Usage:
  python scripts/import_pack.py captures/KWCJ-123.json [more.json ...] --render

Each file is validated and recorded as a run of its person. With `--render`
the raw markdown dossier is generated right away.
"""
from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from source_docs.errors import EvidencePackRejected
from source_docs.log import setup_logging, get_logger
from source_docs.pipeline.contextualized import ContextualizedWorkflow
from source_docs.pipeline.importer import import_evidence_pack
from source_docs.store.factory import get_store

logger = get_logger("import_pack")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Import Evidence Pack JSON files")
    p.add_argument("files", nargs="+", help="Evidence Pack JSON files")
    p.add_argument("--render", action="store_true", help="Render the raw document after import")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    args = p.parse_args(argv)

    load_dotenv()
    setup_logging("DEBUG" if args.verbose else None)
    store = get_store()
    workflow = ContextualizedWorkflow(store)

    failures = 0
    for name in args.files:
        path = Path(name)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"{path}: cannot read JSON ({e})")
            failures += 1
            continue

        try:
            result = import_evidence_pack(payload, store)
        except EvidencePackRejected as e:
            logger.error(f"{path}: rejected ({e.reason.value}) {e.message}")
            failures += 1
            continue

        print(f"{path}: person {result.person_id}, run {result.run_id}, {result.source_count} sources")
        if args.render:
            doc = workflow.get_raw_document(result.person_id, result.run_id)
            print(f"  raw document: {doc.status.value}")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
