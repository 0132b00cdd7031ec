# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_namaste

from typing import Any, List, Optional, Sequence

from loguru import logger

from coreason_namaste.interfaces import MappingStore
from coreason_namaste.matcher import NamasteMatcher
from coreason_namaste.schemas import ConfidenceTier, GenerationOptions, Mapping, MappingResults, MappingStats


class NamasteMappingGenerator:
    """
    Batch generation of NAMASTE -> ICD-11 mappings.

    Runs the matcher for every source code against every target code
    (O(sources x targets) comparisons, no pre-filtering) and optionally
    persists each mapping as soon as it is produced.
    """

    def __init__(self, matcher: Optional[NamasteMatcher] = None, store: Optional[MappingStore] = None):
        self.matcher = matcher or NamasteMatcher()
        self.store = store

    def generate_mappings(
        self,
        sources: Sequence[Any],
        targets: Sequence[Any],
        options: Optional[GenerationOptions] = None,
    ) -> MappingResults:
        """
        Generates mappings for a batch of source codes.

        Persistence is best effort: a failed write is logged and counted in
        `stats.failed`, and the batch continues. Failed writes are not retried.

        Args:
            sources: NAMASTE codes, processed in order.
            targets: ICD-11 candidate codes.
            options: Generation options (defaults: 3 matches, save, no overwrite).

        Returns:
            MappingResults: All mappings, the high/medium partitions and stats.
        """
        options = options or GenerationOptions()
        save = options.save_to_database and self.store is not None
        if options.save_to_database and self.store is None:
            logger.warning("save_to_database requested but no mapping store is configured; results are not persisted.")

        logger.info(f"Generating mappings for {len(sources)} source codes against {len(targets)} target codes")

        all_mappings: List[Mapping] = []
        persisted = 0
        failed = 0

        for i, source in enumerate(sources, start=1):
            logger.debug(f"Processing {i}/{len(sources)}: {getattr(source, 'code', source)}")
            matches = self.matcher.find_best_matches(source, targets, options.max_matches_per_code)

            for match in matches:
                all_mappings.append(match)
                if not save:
                    continue
                try:
                    self.store.upsert_mapping(match, overwrite=options.overwrite_existing)  # type: ignore[union-attr]
                    persisted += 1
                except Exception as e:
                    failed += 1
                    logger.error(f"Error saving mapping {match.source_code} -> {match.target_code}: {e}")

        high = [m for m in all_mappings if m.confidence == ConfidenceTier.HIGH]
        medium = [m for m in all_mappings if m.confidence == ConfidenceTier.MEDIUM]

        stats = MappingStats(
            total=len(all_mappings),
            high_confidence=len(high),
            medium_confidence=len(medium),
            persisted=persisted,
            failed=failed,
        )
        logger.info(
            f"Generated {stats.total} mappings (high: {stats.high_confidence}, medium: {stats.medium_confidence})"
        )
        if failed:
            logger.warning(f"{failed} of {stats.total} mappings could not be persisted")

        return MappingResults(all=all_mappings, high=high, medium=medium, stats=stats)
