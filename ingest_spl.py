#!/usr/bin/env python3
"""
Ingest SPL label files into the database.

Each file is parsed, every <section> is stored (deduplicated by its GUID),
and the section's text, excerpt and highlights are written through the
selected content strategy. Re-running on the same files adds nothing.

Usage:
    uv run ingest_spl.py FILE [FILE ...] [--strategy single|bulk|staged_bulk]
                         [--batch-size N] [--document-id ID] [--create-tables]
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from spl_ingest.config import IngestStrategyName, load_settings
from spl_ingest.load.context import IngestContext
from spl_ingest.load.db import create_db_and_tables, engine_from_settings, make_session_factory
from spl_ingest.load.media import MediaParser
from spl_ingest.load.section_content import ingest_document
from spl_ingest.load.sections import SectionCreator
from spl_ingest.load.store import ContentStore
from spl_ingest.load.strategies import get_strategy

load_dotenv(override=True)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ingest SPL label XML files")
    parser.add_argument("files", nargs="+", type=Path, help="SPL XML files to ingest.")
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in IngestStrategyName],
        help="Content ingestion strategy (default: SPL_INGEST_STRATEGY or single).",
    )
    parser.add_argument(
        "--batch-size", type=int, help="Rows per write for staged_bulk (default: SPL_STAGED_BATCH_SIZE)."
    )
    parser.add_argument(
        "--document-id", type=int, help="Document id to attach sections and media to."
    )
    parser.add_argument(
        "--create-tables", action="store_true", help="Create missing tables before ingesting."
    )
    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    if args.strategy:
        settings.strategy = IngestStrategyName(args.strategy)
    if args.batch_size is not None:
        if args.batch_size <= 0:
            print("Error: --batch-size must be positive")
            return 2
        settings.staged_batch_size = args.batch_size

    strategy = get_strategy(settings.strategy, settings.staged_batch_size)
    engine = engine_from_settings(settings)
    session_factory = make_session_factory(engine)
    print(f"--- Ingesting {len(args.files)} file(s) with the {strategy.name} strategy ---")

    failed = 0
    try:
        if args.create_tables:
            await create_db_and_tables(engine)
            print("Database tables ready.")

        for file_path in args.files:
            if not file_path.is_file():
                print(f"  -> Error: file not found at {file_path}")
                failed += 1
                continue

            print(f"\nProcessing {file_path.name}")
            async with session_factory() as session:
                store = ContentStore(session)
                ctx = IngestContext(
                    store=store,
                    section_creator=SectionCreator(),
                    media=MediaParser(),
                    document_id=args.document_id,
                )
                try:
                    outcome = await ingest_document(file_path.read_bytes(), ctx, strategy)
                except Exception as e:
                    logger.exception(f"Failed to ingest {file_path}")
                    print(f"  -> ERROR: {e}. Rolling back and moving on.")
                    await store.rollback()
                    failed += 1
                    continue

            print(
                f"  -> {len(outcome.sections)} sections, {outcome.node_count} content nodes, "
                f"{outcome.descendant_count} descendant records created"
            )
            for failure in outcome.failures:
                print(f"  -> Skipped section #{failure.position}: {failure.error}")
    finally:
        await engine.dispose()

    print(f"\nIngestion finished: {len(args.files) - failed} succeeded, {failed} failed.")
    return 1 if failed else 0


def cli() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
