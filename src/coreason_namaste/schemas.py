# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_namaste

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ConfidenceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SourceCode(BaseModel):
    """
    A NAMASTE (traditional medicine) term record.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    code: str
    display: Optional[str] = None
    name_english: Optional[str] = None
    namc_term: Optional[str] = None
    description: Optional[str] = None
    short_definition: Optional[str] = None
    long_definition: Optional[str] = None


class TargetCode(BaseModel):
    """
    An ICD-11 entry. Accepts WHO API field names (`id`, `longDefinition`) as well.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    code: str = Field(validation_alias=AliasChoices("code", "id"))
    display: Optional[str] = None
    title: Optional[str] = None
    definition: Optional[str] = None
    long_definition: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("long_definition", "longDefinition")
    )
    description: Optional[str] = None
    synonym: List[str] = Field(default_factory=list)
    inclusion: List[str] = Field(default_factory=list)


class SimilarityResult(BaseModel):
    composite: float = 0.0
    ratio: float = 0.0
    partial_ratio: float = 0.0
    token_sort_ratio: float = 0.0
    token_set_ratio: float = 0.0


class Mapping(BaseModel):
    """
    A candidate NAMASTE -> ICD-11 mapping produced by the matcher.

    Carries both searchable texts so a reviewer can see what was compared.
    """

    source_code: str
    target_code: str
    target_display: Optional[str] = None
    similarity_score: float
    similarity_details: SimilarityResult
    confidence: ConfidenceTier
    equivalence: str = "equivalent"
    source_text: str
    target_text: str


class MappingStats(BaseModel):
    total: int = 0
    high_confidence: int = 0
    medium_confidence: int = 0
    persisted: int = 0
    failed: int = 0


class MappingResults(BaseModel):
    all: List[Mapping] = Field(default_factory=list)
    high: List[Mapping] = Field(default_factory=list)
    medium: List[Mapping] = Field(default_factory=list)
    stats: MappingStats = Field(default_factory=MappingStats)


class GenerationOptions(BaseModel):
    max_matches_per_code: int = 3
    save_to_database: bool = True
    overwrite_existing: bool = False


class StoredMapping(BaseModel):
    source_code: str
    target_code: str
    equivalence: str = "equivalent"
    confidence: float
    mapping_type: str = "automatic"
    similarity_score: float = 0.0
    mapping_details: Dict[str, Any] = Field(default_factory=dict)
    created_by: Optional[str] = None
    source_display: Optional[str] = None
    target_display: Optional[str] = None


class MappingFilters(BaseModel):
    source_code: Optional[str] = None
    target_code: Optional[str] = None
    min_confidence: Optional[float] = None
    mapping_type: Optional[str] = None
    limit: Optional[int] = None


class StoreStats(BaseModel):
    total: int
    by_confidence: Dict[str, int]
    by_type: Dict[str, int]
    average_confidence: float
