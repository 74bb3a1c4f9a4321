#!/usr/bin/env python3
"""
Utility: make sure every stored run has a raw markdown dossier.

Usage:
  python scripts/generate_all_docs.py [--all-runs] [--force]

By default only each person's latest run is processed. `--force` re-renders
from the stored Evidence Pack even when a raw document already exists.
"""
from __future__ import annotations
import argparse
import sys

from dotenv import load_dotenv

from source_docs.log import setup_logging, get_logger
from source_docs.pipeline.contextualized import ContextualizedWorkflow
from source_docs.rendering.raw_document import render_raw_document
from source_docs.schemas.outputs import DocumentStatus
from source_docs.store.factory import get_store

logger = get_logger("generate_all_docs")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Render raw documents for stored runs")
    p.add_argument("--all-runs", action="store_true", help="Process every run, not just the latest")
    p.add_argument("--force", action="store_true", help="Re-render existing raw documents")
    args = p.parse_args(argv)

    load_dotenv()
    setup_logging()
    store = get_store()
    workflow = ContextualizedWorkflow(store)

    counts = {status: 0 for status in DocumentStatus}
    for person in store.list_people():
        runs = store.list_runs(person.family_search_id)
        if not args.all_runs:
            runs = runs[-1:]
        for run in runs:
            if args.force:
                status, pack = workflow.load_pack(person.family_search_id, run.run_id)
                if pack is not None:
                    store.save_raw_document(person.family_search_id, run.run_id, render_raw_document(pack))
            else:
                status = workflow.get_raw_document(person.family_search_id, run.run_id).status
            counts[status] += 1
            if status != DocumentStatus.SUCCESS:
                logger.warning(f"{person.family_search_id}/{run.run_id}: {status.value}")

    print(", ".join(f"{status.value}: {n}" for status, n in counts.items() if n) or "No runs found")
    return 1 if counts[DocumentStatus.INVALID_PACK] else 0


if __name__ == "__main__":
    sys.exit(main())
