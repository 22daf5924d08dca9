#!/usr/bin/env python3
"""
SlideTiming CLI - Fingerprint Maintenance

Commands:
  import   Re-index documents from a JSONL file
  verify   Report fingerprints whose normalized fields drifted
  suggest  Run one duration suggestion query

Usage:
    slidetiming import documents.jsonl
    slidetiming verify                       # Check every owner
    slidetiming verify --owner u1 --repair   # Check and repair one owner
    slidetiming suggest --owner u1 --title "Intro" --content "Welcome" "Agenda"

Each JSONL line is one document:
    {"owner_id": "u1", "document_id": "d1", "slides": [{"id": "s1", "title": "...", "content": [...], "duration": 5}]}
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from slidetiming.core import SlideTimingError, get_settings, setup_logging
from slidetiming.services import get_duration_suggestion_service, get_fingerprint_store, get_indexer
from slidetiming.services.indexer import IndexingStats, IndexVerifier

logger = logging.getLogger(__name__)


def print_header(title: str):
    """Print a formatted header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def run_import(path: Path) -> int:
    """
    Re-index every document in a JSONL file.

    Returns:
        Number of documents that failed
    """
    print_header("Import: Re-index Documents (JSONL)")

    if not path.exists():
        print(f"❌ File not found: {path}")
        return 1

    indexer = get_indexer()
    totals = IndexingStats()
    documents = 0
    failed = 0

    with open(path, encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
                stats = indexer.reindex_document(
                    record["owner_id"],
                    record["document_id"],
                    record.get("slides", []),
                )
            except (json.JSONDecodeError, KeyError, TypeError, SlideTimingError) as e:
                logger.error(f"✗ Line {line_number}: {e}")
                failed += 1
                continue
            totals.merge(stats)
            documents += 1

    print(f"\n✅ Import Complete!")
    print(f"   Documents: {documents:,}")
    print(f"   {totals}")
    if failed:
        print(f"⚠️  Failed lines: {failed}")
    return failed


def run_verify(owner_id: Optional[str] = None, repair: bool = False) -> int:
    """
    Check fingerprints for drift, optionally repairing them.

    Returns:
        Number of drifted fingerprints left unrepaired
    """
    print_header("Verify: Fingerprint Drift")

    store = get_fingerprint_store()
    verifier = IndexVerifier(store)
    owners = [owner_id] if owner_id else store.owner_ids()

    unresolved = 0
    for owner in owners:
        reports = verifier.repair(owner) if repair else verifier.find_drift(owner)
        for report in reports:
            status = "repaired" if report.repaired else "drifted"
            print(
                f"   {report.source_document_id}/{report.source_slide_id}: "
                f"{', '.join(report.fields)} ({status})"
            )
            if not report.repaired:
                unresolved += 1

    print(f"\n✅ Checked {len(owners)} owner(s)")
    if unresolved:
        print(f"⚠️  Unrepaired drift: {unresolved} (run with --repair)")
    return unresolved


def run_suggest(owner_id: str, title: str, content: list[str]) -> int:
    """Print one suggestion as JSON."""
    service = get_duration_suggestion_service()
    try:
        suggestion = service.suggest(owner_id, title, content)
    except SlideTimingError as e:
        print(f"❌ {e}")
        return 1

    if suggestion is None:
        print(json.dumps({"success": True, "message": "No similar slides found"}, indent=2))
    else:
        print(json.dumps({"success": True, "suggestion": suggestion.to_response()}, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slidetiming",
        description="SlideTiming fingerprint maintenance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Re-index documents from JSONL")
    import_parser.add_argument("path", type=Path, help="JSONL file, one document per line")

    verify_parser = subparsers.add_parser("verify", help="Detect fingerprint drift")
    verify_parser.add_argument("--owner", default=None, help="Only check this owner")
    verify_parser.add_argument("--repair", action="store_true", help="Re-derive drifted fingerprints")

    suggest_parser = subparsers.add_parser("suggest", help="Suggest a duration for one slide")
    suggest_parser.add_argument("--owner", required=True, help="Owner whose history is searched")
    suggest_parser.add_argument("--title", required=True, help="Slide title")
    suggest_parser.add_argument("--content", nargs="*", default=[], help="Content fragments")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging("DEBUG" if args.verbose else settings.log_level, stream=sys.stderr)

    if args.command == "import":
        failed = run_import(args.path)
    elif args.command == "verify":
        failed = run_verify(args.owner, args.repair)
    else:
        failed = run_suggest(args.owner, args.title, args.content)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
