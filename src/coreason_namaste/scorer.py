# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_namaste

from typing import Optional, Tuple

from rapidfuzz import fuzz

from coreason_namaste.schemas import SimilarityResult
from coreason_namaste.text import normalize_text

# ratio, partial_ratio, token_sort_ratio, token_set_ratio
DEFAULT_WEIGHTS: Tuple[float, float, float, float] = (0.4, 0.2, 0.2, 0.2)


class NamasteScorer:
    """
    Fuzzy text similarity between two free-text fields.

    Four rapidfuzz metrics are scaled to [0, 1] and combined into a weighted
    composite in which whole-string ratio carries the largest weight.
    """

    def __init__(self, weights: Tuple[float, float, float, float] = DEFAULT_WEIGHTS):
        if len(weights) != 4:
            raise ValueError(f"Expected 4 weights, got {len(weights)}")
        if any(w < 0 for w in weights):
            raise ValueError("Similarity weights must be non-negative.")
        if abs(sum(weights) - 1.0) > 1e-9:
            raise ValueError(f"Similarity weights must sum to 1.0, got {sum(weights)}")
        self.weights = tuple(weights)

    def score(self, text_a: Optional[str], text_b: Optional[str]) -> SimilarityResult:
        """
        Scores two texts after normalization.

        Returns an all-zero result when either side is empty. Not symmetric in
        general: partial_ratio aligns the shorter string inside the longer one.
        """
        a = normalize_text(text_a)
        b = normalize_text(text_b)
        if not a or not b:
            return SimilarityResult()

        ratio = fuzz.ratio(a, b) / 100
        partial = fuzz.partial_ratio(a, b) / 100
        token_sort = fuzz.token_sort_ratio(a, b) / 100
        token_set = fuzz.token_set_ratio(a, b) / 100

        w_ratio, w_partial, w_sort, w_set = self.weights
        composite = w_ratio * ratio + w_partial * partial + w_sort * token_sort + w_set * token_set
        # Rounded so identical strings score exactly 1.0 despite float accumulation.
        composite = round(composite, 10)

        return SimilarityResult(
            composite=min(max(composite, 0.0), 1.0),
            ratio=ratio,
            partial_ratio=partial,
            token_sort_ratio=token_sort,
            token_set_ratio=token_set,
        )


_default_scorer = NamasteScorer()


def compute_similarity(text_a: Optional[str], text_b: Optional[str]) -> SimilarityResult:
    """Scores two texts with the default weights."""
    return _default_scorer.score(text_a, text_b)
