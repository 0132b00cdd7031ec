# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_namaste

"""
coreason-namaste
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .generator import NamasteMappingGenerator
from .loader import NamasteLoader
from .matcher import NamasteMatcher
from .pipeline import (
    namaste_find_matches,
    namaste_generate_mappings,
    namaste_query_mappings,
    namaste_translate_code,
    initialize,
)
from .scorer import NamasteScorer, compute_similarity
from .store import NamasteMappingStore
from .text import build_searchable_text, normalize_text

__all__ = [
    "NamasteScorer",
    "NamasteMatcher",
    "NamasteMappingGenerator",
    "NamasteMappingStore",
    "NamasteLoader",
    "compute_similarity",
    "normalize_text",
    "build_searchable_text",
    "initialize",
    "namaste_find_matches",
    "namaste_generate_mappings",
    "namaste_query_mappings",
    "namaste_translate_code",
]
