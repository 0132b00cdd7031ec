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
from pathlib import Path
from typing import Any, List, Union

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from coreason_namaste.schemas import SourceCode, TargetCode

_SOURCE_LIST = TypeAdapter(List[SourceCode])
_TARGET_LIST = TypeAdapter(List[TargetCode])


class NamasteLoader:
    """
    Loads NAMASTE or ICD-11 code records from a JSON file.

    The file holds either a list of records or an object with a "codes" list.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Code file not found at: {self.path}")

    def _read_records(self) -> Any:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {self.path}: {e}") from e

        if isinstance(data, dict):
            data = data.get("codes")
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of code records in {self.path}")
        return data

    def load_source_codes(self) -> List[SourceCode]:
        """Loads and validates NAMASTE code records."""
        try:
            codes = _SOURCE_LIST.validate_python(self._read_records())
        except ValidationError as e:
            raise ValueError(f"Invalid NAMASTE code records in {self.path}: {e}") from e
        logger.info(f"Loaded {len(codes)} NAMASTE codes from {self.path}")
        return codes

    def load_target_codes(self) -> List[TargetCode]:
        """Loads and validates ICD-11 code records."""
        try:
            codes = _TARGET_LIST.validate_python(self._read_records())
        except ValidationError as e:
            raise ValueError(f"Invalid ICD-11 code records in {self.path}: {e}") from e
        logger.info(f"Loaded {len(codes)} ICD-11 codes from {self.path}")
        return codes
