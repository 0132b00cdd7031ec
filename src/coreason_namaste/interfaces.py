# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_namaste

from typing import List, Optional, Protocol

from coreason_namaste.schemas import Mapping, MappingFilters, StoredMapping


class MappingStore(Protocol):
    """
    Protocol for persistent storage of generated mappings.
    """

    def upsert_mapping(self, mapping: Mapping, overwrite: bool = False) -> None:
        """
        Stores a mapping. Replaces an existing (source, target) pair when
        `overwrite` is set, otherwise leaves it untouched.
        """
        ...

    def query_mappings(self, filters: Optional[MappingFilters] = None) -> List[StoredMapping]:
        """
        Returns stored mappings matching the filters.
        """
        ...
