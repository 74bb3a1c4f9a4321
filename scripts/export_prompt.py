#!/usr/bin/env python3
"""
Utility: print a self-contained AI prompt for one analysis stage.

Usage:
  python scripts/export_prompt.py KWCJ-123 --stage normalize [--run RUN_ID] [--no-redact]

The prompt embeds the (redacted by default) sources of the person's latest run,
or the stored output of the previous stage, so it can be pasted into any chat
tool when no API key is configured.
"""
from __future__ import annotations
import argparse
import sys

from dotenv import load_dotenv

from source_docs.llm.prompts import build_export_prompt
from source_docs.log import setup_logging
from source_docs.pipeline.contextualized import ContextualizedWorkflow
from source_docs.rendering.raw_document import ordered_sources
from source_docs.store.factory import get_store

PREVIOUS_STAGE = {"cluster": "normalize", "synthesize": "cluster"}


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Export an analysis prompt")
    p.add_argument("person_id")
    p.add_argument("--stage", choices=["normalize", "cluster", "synthesize"], default="normalize")
    p.add_argument("--run", default=None, help="Run id (defaults to the latest run)")
    p.add_argument("--no-redact", action="store_true", help="Use the original, unredacted pack")
    args = p.parse_args(argv)

    load_dotenv()
    setup_logging()
    workflow = ContextualizedWorkflow(get_store())

    run_id = workflow.resolve_run_id(args.person_id, args.run)
    if not run_id:
        print(f"No runs found for {args.person_id}", file=sys.stderr)
        return 1

    if args.stage == "normalize":
        status, pack = workflow.load_pack(args.person_id, run_id)
        if pack is None:
            print(f"Cannot load pack for {args.person_id}/{run_id}: {status.value}", file=sys.stderr)
            return 1
        if not args.no_redact:
            pack = workflow.redactor.redact(pack).redacted_pack
        data = [s.to_json_dict() for s in ordered_sources(pack)]
    else:
        previous = PREVIOUS_STAGE[args.stage]
        data = workflow.store.get_stage_output(args.person_id, run_id, previous)
        if data is None:
            print(f"Run the {previous} stage first ({args.person_id}/{run_id})", file=sys.stderr)
            return 1

    print(build_export_prompt(args.stage, data))
    return 0


if __name__ == "__main__":
    sys.exit(main())
