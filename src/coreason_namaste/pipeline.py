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

from coreason_namaste.config import NamasteSettings
from coreason_namaste.generator import NamasteMappingGenerator
from coreason_namaste.matcher import NamasteMatcher
from coreason_namaste.schemas import GenerationOptions, Mapping, MappingFilters, MappingResults, StoredMapping
from coreason_namaste.store import NamasteMappingStore
from coreason_namaste.utils.logger import configure_logging


class NamasteContext:
    """
    Global context/singleton for accessing the mapping services.
    """

    _instance: Optional["NamasteContext"] = None

    def __init__(self, settings: NamasteSettings):
        logger.info(f"Initializing Namaste Context with database: {settings.db_path}")
        self.settings = settings
        self.store = NamasteMappingStore.connect(settings.db_path)
        self.matcher = NamasteMatcher(
            similarity_threshold=settings.similarity_threshold,
            high_confidence_threshold=settings.high_confidence_threshold,
        )
        self.generator = NamasteMappingGenerator(matcher=self.matcher, store=self.store)

    @classmethod
    def initialize(cls, settings: NamasteSettings) -> None:
        if cls._instance is not None:
            cls._instance.store.close()
        cls._instance = cls(settings)

    @classmethod
    def get_instance(cls) -> "NamasteContext":
        if cls._instance is None:
            raise RuntimeError("NamasteContext not initialized. Call initialize() first.")
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        if cls._instance is not None:
            cls._instance.store.close()
        cls._instance = None


# --- Public API Functions ---


def initialize(db_path: Optional[str] = None, settings: Optional[NamasteSettings] = None) -> None:
    """Initializes the mapping system. Settings default to the NAMASTE_* environment."""
    settings = settings or NamasteSettings.from_env(db_path=db_path)
    configure_logging(settings.log_level)
    NamasteContext.initialize(settings)


def namaste_find_matches(source: Any, targets: Optional[Sequence[Any]] = None, max_results: int = 5) -> List[Mapping]:
    """
    Ranks ICD-11 candidates for one NAMASTE code. Targets default to the stored ICD-11 codes.
    """
    ctx = NamasteContext.get_instance()
    if targets is None:
        targets = ctx.store.get_target_codes()
    return ctx.matcher.find_best_matches(source, targets, max_results)


def namaste_generate_mappings(
    sources: Optional[Sequence[Any]] = None,
    targets: Optional[Sequence[Any]] = None,
    options: Optional[GenerationOptions] = None,
) -> MappingResults:
    """
    Generates (and by default persists) mappings. Codes default to those stored in the database.
    """
    ctx = NamasteContext.get_instance()
    if sources is None:
        sources = ctx.store.get_source_codes()
    if targets is None:
        targets = ctx.store.get_target_codes()
    if options is None:
        options = GenerationOptions(max_matches_per_code=ctx.settings.max_matches_per_code)
    return ctx.generator.generate_mappings(sources, targets, options)


def namaste_query_mappings(filters: Optional[MappingFilters] = None) -> List[StoredMapping]:
    """Returns stored mappings matching the filters."""
    ctx = NamasteContext.get_instance()
    return ctx.store.query_mappings(filters)


def namaste_translate_code(source_code: str) -> List[StoredMapping]:
    """Returns the stored ICD-11 mappings for a NAMASTE code."""
    ctx = NamasteContext.get_instance()
    return ctx.store.translate_code(source_code)
