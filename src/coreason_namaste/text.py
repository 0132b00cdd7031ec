# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_namaste

import re
from typing import Any, Iterator, List, Mapping, Optional

PLACEHOLDER = "-"

# Scalar fields in priority order. `longDefinition` is the WHO API spelling.
SCALAR_FIELDS = (
    "display",
    "title",
    "name_english",
    "description",
    "definition",
    "longDefinition",
    "namc_term",
    "short_definition",
    "long_definition",
)

LIST_FIELDS = ("synonym", "inclusion")

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    """
    Lowercases text, replaces punctuation with spaces and collapses whitespace.
    None (or any non-string) normalizes to an empty string.
    """
    if not text or not isinstance(text, str):
        return ""
    text = _NON_WORD.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def _get(record: Any, field: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(field)
    # Models, dataclasses and plain objects
    return getattr(record, field, None)


def _iter_values(record: Any) -> Iterator[Any]:
    for field in SCALAR_FIELDS:
        yield _get(record, field)
    for field in LIST_FIELDS:
        values = _get(record, field)
        if isinstance(values, (list, tuple)):
            yield from values


def build_searchable_text(record: Any) -> str:
    """
    Concatenates the descriptive fields of a code record into one text blob.

    Fields are read in a fixed priority order, list fields (synonyms, inclusions)
    are flattened, and empty or placeholder ("-") values are dropped.

    Args:
        record: A SourceCode/TargetCode model, a mapping, or any object with these attributes.

    Returns:
        The non-empty values joined by single spaces.
    """
    parts: List[str] = []
    for value in _iter_values(record):
        if not isinstance(value, str):
            continue
        if not value.strip() or value.strip() == PLACEHOLDER:
            continue
        parts.append(value)
    return " ".join(parts)
