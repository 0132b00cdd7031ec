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

from coreason_namaste.schemas import ConfidenceTier, Mapping
from coreason_namaste.scorer import NamasteScorer
from coreason_namaste.text import build_searchable_text

DEFAULT_SIMILARITY_THRESHOLD = 0.6
DEFAULT_HIGH_CONFIDENCE_THRESHOLD = 0.8


class NamasteMatcher:
    """
    Ranks candidate ICD-11 codes for a single NAMASTE code.

    Mechanism:
    1. Builds the searchable text of the source once.
    2. Scores every target's searchable text against it.
    3. Drops targets below the similarity threshold.
    4. Classifies, sorts (stable, descending) and truncates.
    """

    def __init__(
        self,
        scorer: Optional[NamasteScorer] = None,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        high_confidence_threshold: float = DEFAULT_HIGH_CONFIDENCE_THRESHOLD,
    ):
        if not 0.0 <= similarity_threshold <= high_confidence_threshold <= 1.0:
            raise ValueError(
                "Thresholds must satisfy 0 <= similarity_threshold <= high_confidence_threshold <= 1, "
                f"got {similarity_threshold} and {high_confidence_threshold}"
            )
        self.scorer = scorer or NamasteScorer()
        self.similarity_threshold = similarity_threshold
        self.high_confidence_threshold = high_confidence_threshold

    def classify_confidence(self, score: float) -> ConfidenceTier:
        """
        Maps a composite score to a confidence tier.

        `find_best_matches` never yields LOW since it filters at the similarity
        threshold first; store statistics classify unfiltered scores.
        """
        if score >= self.high_confidence_threshold:
            return ConfidenceTier.HIGH
        if score >= self.similarity_threshold:
            return ConfidenceTier.MEDIUM
        return ConfidenceTier.LOW

    def find_best_matches(self, source: Any, targets: Sequence[Any], max_results: int = 5) -> List[Mapping]:
        """
        Finds the best matching target codes for a source code.

        Args:
            source: The NAMASTE code (SourceCode or mapping).
            targets: Candidate ICD-11 codes (TargetCode or mappings).
            max_results: Maximum number of matches to return.

        Returns:
            List[Mapping]: Matches at or above the similarity threshold, best first.
        """
        source_text = build_searchable_text(source)
        source_code = _field(source, "code")

        matches: List[Mapping] = []
        for target in targets:
            target_text = build_searchable_text(target)
            result = self.scorer.score(source_text, target_text)

            if result.composite < self.similarity_threshold:
                continue

            matches.append(
                Mapping(
                    source_code=source_code,
                    target_code=_field(target, "code") or _field(target, "id"),
                    target_display=_field(target, "display") or _field(target, "title") or None,
                    similarity_score=result.composite,
                    similarity_details=result,
                    confidence=self.classify_confidence(result.composite),
                    source_text=source_text,
                    target_text=target_text,
                )
            )

        # list.sort is stable, so ties keep target order
        matches.sort(key=lambda m: m.similarity_score, reverse=True)
        return matches[:max_results]


def _field(record: Any, name: str) -> str:
    if isinstance(record, dict):
        value = record.get(name)
    else:
        value = getattr(record, name, None)
    return str(value) if value is not None else ""
