# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_namaste

import os
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class NamasteSettings(BaseModel):
    """
    Runtime configuration. Use `from_env()` to read NAMASTE_* environment variables.
    """

    db_path: str = "./data/namaste.duckdb"
    similarity_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    high_confidence_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    max_matches_per_code: int = 3
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_thresholds(self) -> "NamasteSettings":
        if self.high_confidence_threshold < self.similarity_threshold:
            raise ValueError("high_confidence_threshold must not be below similarity_threshold")
        return self

    @classmethod
    def from_env(cls, db_path: Optional[str] = None) -> "NamasteSettings":
        values = {
            "db_path": db_path or os.getenv("NAMASTE_DB_PATH"),
            "similarity_threshold": os.getenv("NAMASTE_SIMILARITY_THRESHOLD"),
            "high_confidence_threshold": os.getenv("NAMASTE_HIGH_CONFIDENCE_THRESHOLD"),
            "max_matches_per_code": os.getenv("NAMASTE_MAX_MATCHES"),
            "log_level": os.getenv("NAMASTE_LOG_LEVEL"),
        }
        # Unset variables fall back to the field defaults
        return cls(**{k: v for k, v in values.items() if v is not None})
