# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_namaste

import json
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger

from coreason_namaste import __version__
from coreason_namaste.config import NamasteSettings
from coreason_namaste.generator import NamasteMappingGenerator
from coreason_namaste.loader import NamasteLoader
from coreason_namaste.matcher import NamasteMatcher
from coreason_namaste.schemas import GenerationOptions, MappingFilters
from coreason_namaste.store import NamasteMappingStore
from coreason_namaste.utils.logger import configure_logging

app = typer.Typer(
    name="coreason-namaste",
    help="CLI for coreason-namaste: NAMASTE to ICD-11 terminology mapping.",
    add_completion=False,
)

DbOption = Annotated[Optional[str], typer.Option("--db", help="Path to the DuckDB database (default: NAMASTE_DB_PATH)")]


@app.callback()
def callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """
    NAMASTE to ICD-11 terminology mapping.
    """
    if verbose:
        configure_logging("DEBUG")


def _matcher(settings: NamasteSettings) -> NamasteMatcher:
    return NamasteMatcher(
        similarity_threshold=settings.similarity_threshold,
        high_confidence_threshold=settings.high_confidence_threshold,
    )


@app.command()
def load(
    sources: Annotated[
        Optional[Path], typer.Option("--sources", "-s", help="JSON file of NAMASTE codes", exists=True)
    ] = None,
    targets: Annotated[
        Optional[Path], typer.Option("--targets", "-t", help="JSON file of ICD-11 codes", exists=True)
    ] = None,
    db: DbOption = None,
) -> None:
    """
    Store NAMASTE and ICD-11 code records in the database.
    """
    try:
        settings = NamasteSettings.from_env(db_path=db)
        source_codes = NamasteLoader(sources).load_source_codes() if sources else []
        target_codes = NamasteLoader(targets).load_target_codes() if targets else []

        store = NamasteMappingStore.connect(settings.db_path)
        try:
            n_sources, n_targets = store.store_codes(source_codes, target_codes)
        finally:
            store.close()
        typer.echo(f"Stored {n_sources} NAMASTE codes and {n_targets} ICD-11 codes")
    except Exception:
        logger.exception("Loading codes failed")
        sys.exit(1)


@app.command()
def match(
    code: Annotated[str, typer.Argument(help="NAMASTE code to match")],
    sources: Annotated[Path, typer.Option("--sources", "-s", help="JSON file of NAMASTE codes", exists=True)],
    targets: Annotated[Path, typer.Option("--targets", "-t", help="JSON file of ICD-11 codes", exists=True)],
    max_results: Annotated[int, typer.Option("--max-results", "-n", help="Maximum number of matches")] = 5,
) -> None:
    """
    Rank ICD-11 candidates for a single NAMASTE code.
    """
    try:
        settings = NamasteSettings.from_env()
        source_codes = NamasteLoader(sources).load_source_codes()
        source = next((s for s in source_codes if s.code == code), None)
        if source is None:
            raise KeyError(f"NAMASTE code not found: {code}")

        target_codes = NamasteLoader(targets).load_target_codes()
        for result in _matcher(settings).find_best_matches(source, target_codes, max_results):
            typer.echo(result.model_dump_json(indent=2))
    except Exception:
        logger.exception("Matching failed")
        sys.exit(1)


@app.command()
def generate(
    db: DbOption = None,
    sources: Annotated[
        Optional[Path], typer.Option("--sources", "-s", help="JSON file of NAMASTE codes (default: stored)", exists=True)
    ] = None,
    targets: Annotated[
        Optional[Path], typer.Option("--targets", "-t", help="JSON file of ICD-11 codes (default: stored)", exists=True)
    ] = None,
    max_matches: Annotated[
        Optional[int], typer.Option("--max-matches", "-m", help="Matches kept per NAMASTE code")
    ] = None,
    overwrite: Annotated[bool, typer.Option("--overwrite", help="Replace existing mappings")] = False,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Do not persist mappings")] = False,
) -> None:
    """
    Generate NAMASTE to ICD-11 mappings and store them.
    """
    try:
        settings = NamasteSettings.from_env(db_path=db)
        store = NamasteMappingStore.connect(settings.db_path)
        try:
            source_codes = NamasteLoader(sources).load_source_codes() if sources else store.get_source_codes()
            target_codes = NamasteLoader(targets).load_target_codes() if targets else store.get_target_codes()

            if not target_codes:
                logger.warning("No ICD-11 codes available; load them first.")

            options = GenerationOptions(
                max_matches_per_code=max_matches if max_matches is not None else settings.max_matches_per_code,
                save_to_database=not dry_run,
                overwrite_existing=overwrite,
            )
            generator = NamasteMappingGenerator(matcher=_matcher(settings), store=store)
            results = generator.generate_mappings(source_codes, target_codes, options)
        finally:
            store.close()

        typer.echo(results.stats.model_dump_json(indent=2))
    except Exception:
        logger.exception("Mapping generation failed")
        sys.exit(1)


@app.command()
def mappings(
    db: DbOption = None,
    source_code: Annotated[Optional[str], typer.Option("--source-code", help="Filter by NAMASTE code")] = None,
    target_code: Annotated[Optional[str], typer.Option("--target-code", help="Filter by ICD-11 code")] = None,
    min_confidence: Annotated[Optional[float], typer.Option("--min-confidence", help="Minimum confidence")] = None,
    limit: Annotated[int, typer.Option("--limit", "-l", help="Maximum rows")] = 100,
) -> None:
    """
    List stored mappings.
    """
    try:
        settings = NamasteSettings.from_env(db_path=db)
        store = NamasteMappingStore.connect(settings.db_path)
        try:
            rows = store.query_mappings(
                MappingFilters(
                    source_code=source_code, target_code=target_code, min_confidence=min_confidence, limit=limit
                )
            )
        finally:
            store.close()
        typer.echo(json.dumps([r.model_dump() for r in rows], indent=2))
    except Exception:
        logger.exception("Querying mappings failed")
        sys.exit(1)


@app.command()
def search(
    text: Annotated[str, typer.Argument(help="Code or text to look for")],
    db: DbOption = None,
    icd11: Annotated[bool, typer.Option("--icd11", help="Search ICD-11 codes instead of NAMASTE codes")] = False,
    limit: Annotated[int, typer.Option("--limit", "-l", help="Maximum rows")] = 20,
) -> None:
    """
    Search stored code records by code or label.
    """
    try:
        settings = NamasteSettings.from_env(db_path=db)
        store = NamasteMappingStore.connect(settings.db_path)
        try:
            codes = store.search_target_codes(text, limit) if icd11 else store.search_source_codes(text, limit)
        finally:
            store.close()
        typer.echo(json.dumps([c.model_dump() for c in codes], indent=2))
    except Exception:
        logger.exception("Searching codes failed")
        sys.exit(1)


@app.command()
def stats(db: DbOption = None) -> None:
    """
    Summarize stored mappings by confidence tier and type.
    """
    try:
        settings = NamasteSettings.from_env(db_path=db)
        store = NamasteMappingStore.connect(settings.db_path)
        try:
            summary = store.get_stats(_matcher(settings))
        finally:
            store.close()
        typer.echo(summary.model_dump_json(indent=2))
    except Exception:
        logger.exception("Computing stats failed")
        sys.exit(1)


@app.command()
def version() -> None:
    """Print the version of coreason-namaste."""
    typer.echo(f"coreason-namaste v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()  # pragma: no cover
