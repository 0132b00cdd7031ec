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
from typing import Any, List, Optional, Sequence, Tuple, Union

import duckdb
from loguru import logger

from coreason_namaste.matcher import NamasteMatcher
from coreason_namaste.schemas import (
    ConfidenceTier,
    Mapping,
    MappingFilters,
    SourceCode,
    StoredMapping,
    StoreStats,
    TargetCode,
)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS namaste_codes (
        code VARCHAR PRIMARY KEY,
        display VARCHAR,
        name_english VARCHAR,
        namc_term VARCHAR,
        description VARCHAR,
        short_definition VARCHAR,
        long_definition VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS icd11_codes (
        code VARCHAR PRIMARY KEY,
        display VARCHAR,
        title VARCHAR,
        definition VARCHAR,
        long_definition VARCHAR,
        description VARCHAR,
        synonym VARCHAR,
        inclusion VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS concept_mappings (
        namaste_code VARCHAR NOT NULL,
        icd11_code VARCHAR NOT NULL,
        equivalence VARCHAR DEFAULT 'equivalent',
        confidence DOUBLE DEFAULT 1.0,
        mapping_type VARCHAR DEFAULT 'manual',
        similarity_score DOUBLE DEFAULT 0.0,
        mapping_details VARCHAR,
        created_by VARCHAR,
        created_at TIMESTAMP DEFAULT current_timestamp,
        PRIMARY KEY (namaste_code, icd11_code)
    )
    """,
]

MAPPING_COLUMNS = """
    cm.namaste_code,
    cm.icd11_code,
    cm.equivalence,
    cm.confidence,
    cm.mapping_type,
    cm.similarity_score,
    cm.mapping_details,
    cm.created_by,
    nc.display,
    COALESCE(ic.display, ic.title)
"""


SOURCE_COLUMNS = "code, display, name_english, namc_term, description, short_definition, long_definition"

TARGET_COLUMNS = "code, display, title, definition, long_definition, description, synonym, inclusion"


class NamasteMappingStore:
    """
    DuckDB-backed store for NAMASTE codes, ICD-11 codes and their mappings.

    At most one mapping is kept per (namaste_code, icd11_code) pair.
    """

    def __init__(self, duckdb_conn: duckdb.DuckDBPyConnection):
        self.duckdb_conn = duckdb_conn

        # Verify connection
        try:
            self.duckdb_conn.execute("SELECT 1")
        except Exception as e:
            logger.error(f"Mapping store connection is not usable: {e}")
            raise ValueError(f"Failed to initialize mapping store: {e}") from e

        self.initialize_schema()

    @classmethod
    def connect(cls, db_path: Union[str, Path] = ":memory:") -> "NamasteMappingStore":
        """Opens (or creates) a DuckDB database file and wraps it in a store."""
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Connecting to DuckDB at {db_path}")
        try:
            con = duckdb.connect(str(db_path))
        except Exception as e:
            logger.error(f"Failed to connect to DuckDB: {e}")
            raise ValueError(f"Failed to initialize DuckDB connection: {e}") from e
        return cls(con)

    def initialize_schema(self) -> None:
        for statement in SCHEMA:
            self.duckdb_conn.execute(statement)

    def close(self) -> None:
        self.duckdb_conn.close()

    # --- Mappings ---

    def upsert_mapping(self, mapping: Mapping, overwrite: bool = False) -> None:
        """
        Persists an automatically generated mapping.

        With `overwrite`, an existing pair is replaced; otherwise the insert is
        a no-op for a pair that already exists. Errors propagate to the caller.
        """
        details = json.dumps(
            {
                "similarity_details": mapping.similarity_details.model_dump(),
                "source_text": mapping.source_text,
                "target_text": mapping.target_text,
            }
        )
        conflict = (
            """
            DO UPDATE SET
                equivalence = excluded.equivalence,
                confidence = excluded.confidence,
                mapping_type = excluded.mapping_type,
                similarity_score = excluded.similarity_score,
                mapping_details = excluded.mapping_details,
                created_at = now()
            """
            if overwrite
            else "DO NOTHING"
        )
        query = f"""
            INSERT INTO concept_mappings
                (namaste_code, icd11_code, equivalence, confidence, mapping_type, similarity_score, mapping_details)
            VALUES (?, ?, ?, ?, 'automatic', ?, ?)
            ON CONFLICT (namaste_code, icd11_code) {conflict}
        """
        self.duckdb_conn.execute(
            query,
            [
                mapping.source_code,
                mapping.target_code,
                mapping.equivalence,
                mapping.similarity_score,
                mapping.similarity_score,
                details,
            ],
        )

    def add_manual_mapping(
        self,
        source_code: str,
        target_code: str,
        equivalence: str = "equivalent",
        confidence: float = 1.0,
        created_by: Optional[str] = None,
    ) -> None:
        """Records a curated mapping, replacing any existing mapping for the pair."""
        query = """
            INSERT INTO concept_mappings
                (namaste_code, icd11_code, equivalence, confidence, mapping_type, similarity_score, created_by)
            VALUES (?, ?, ?, ?, 'manual', 0.0, ?)
            ON CONFLICT (namaste_code, icd11_code) DO UPDATE SET
                equivalence = excluded.equivalence,
                confidence = excluded.confidence,
                mapping_type = excluded.mapping_type,
                similarity_score = excluded.similarity_score,
                mapping_details = NULL,
                created_by = excluded.created_by,
                created_at = now()
        """
        self.duckdb_conn.execute(query, [source_code, target_code, equivalence, confidence, created_by])

    def update_mapping(
        self,
        source_code: str,
        target_code: str,
        confidence: Optional[float] = None,
        equivalence: Optional[str] = None,
        mapping_type: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> bool:
        """
        Updates the review fields of a stored mapping. None leaves a field unchanged.

        Returns:
            bool: True if the mapping exists and was updated.
        """
        query = """
            UPDATE concept_mappings
            SET confidence = COALESCE(CAST(? AS DOUBLE), confidence),
                equivalence = COALESCE(CAST(? AS VARCHAR), equivalence),
                mapping_type = COALESCE(CAST(? AS VARCHAR), mapping_type),
                created_by = COALESCE(CAST(? AS VARCHAR), created_by)
            WHERE namaste_code = ? AND icd11_code = ?
            RETURNING namaste_code
        """
        rows = self.duckdb_conn.execute(
            query, [confidence, equivalence, mapping_type, created_by, source_code, target_code]
        ).fetchall()
        return len(rows) > 0

    def delete_mapping(self, source_code: str, target_code: str) -> bool:
        """Deletes a stored mapping. Returns False if it did not exist."""
        rows = self.duckdb_conn.execute(
            "DELETE FROM concept_mappings WHERE namaste_code = ? AND icd11_code = ? RETURNING namaste_code",
            [source_code, target_code],
        ).fetchall()
        return len(rows) > 0

    def query_mappings(self, filters: Optional[MappingFilters] = None) -> List[StoredMapping]:
        """
        Returns stored mappings with code displays, highest confidence first.

        Args:
            filters: Optional source/target code, minimum confidence, mapping type and limit.
        """
        filters = filters or MappingFilters()
        query = f"""
            SELECT {MAPPING_COLUMNS}
            FROM concept_mappings cm
            LEFT JOIN namaste_codes nc ON cm.namaste_code = nc.code
            LEFT JOIN icd11_codes ic ON cm.icd11_code = ic.code
            WHERE 1=1
        """
        params: List[Any] = []

        if filters.source_code:
            query += " AND cm.namaste_code = ?"
            params.append(filters.source_code)
        if filters.target_code:
            query += " AND cm.icd11_code = ?"
            params.append(filters.target_code)
        if filters.min_confidence is not None:
            query += " AND cm.confidence >= ?"
            params.append(filters.min_confidence)
        if filters.mapping_type:
            query += " AND cm.mapping_type = ?"
            params.append(filters.mapping_type)

        query += " ORDER BY cm.confidence DESC, cm.created_at DESC, cm.namaste_code, cm.icd11_code"

        if filters.limit is not None:
            query += f" LIMIT {int(filters.limit)}"

        try:
            rows = self.duckdb_conn.execute(query, params).fetchall()
        except Exception as e:
            logger.error(f"Error fetching stored mappings: {e}")
            return []

        return [self._row_to_mapping(row) for row in rows]

    def translate_code(self, source_code: str) -> List[StoredMapping]:
        """ICD-11 mappings for a NAMASTE code."""
        return self.query_mappings(MappingFilters(source_code=source_code))

    def reverse_translate_code(self, target_code: str) -> List[StoredMapping]:
        """NAMASTE mappings for an ICD-11 code."""
        return self.query_mappings(MappingFilters(target_code=target_code))

    def get_stats(self, matcher: Optional[NamasteMatcher] = None) -> StoreStats:
        """
        Summarizes stored mappings by confidence tier and mapping type.
        Tiers are computed from the stored confidence with the matcher's thresholds.
        """
        matcher = matcher or NamasteMatcher()
        try:
            rows = self.duckdb_conn.execute("SELECT confidence, mapping_type FROM concept_mappings").fetchall()
        except Exception as e:
            logger.error(f"Error computing mapping stats: {e}")
            rows = []

        by_confidence = {tier.value: 0 for tier in ConfidenceTier}
        by_type = {"automatic": 0, "manual": 0}
        for confidence, mapping_type in rows:
            by_confidence[matcher.classify_confidence(confidence).value] += 1
            by_type[mapping_type] = by_type.get(mapping_type, 0) + 1

        average = sum(r[0] for r in rows) / len(rows) if rows else 0.0
        return StoreStats(total=len(rows), by_confidence=by_confidence, by_type=by_type, average_confidence=average)

    # --- Code records ---

    def store_source_code(self, code: SourceCode) -> None:
        query = """
            INSERT OR REPLACE INTO namaste_codes
                (code, display, name_english, namc_term, description, short_definition, long_definition)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """
        self.duckdb_conn.execute(
            query,
            [
                code.code,
                code.display,
                code.name_english,
                code.namc_term,
                code.description,
                code.short_definition,
                code.long_definition,
            ],
        )

    def store_target_code(self, code: TargetCode) -> None:
        query = """
            INSERT OR REPLACE INTO icd11_codes
                (code, display, title, definition, long_definition, description, synonym, inclusion)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """
        self.duckdb_conn.execute(
            query,
            [
                code.code,
                code.display,
                code.title,
                code.definition,
                code.long_definition,
                code.description,
                json.dumps(code.synonym),
                json.dumps(code.inclusion),
            ],
        )

    def store_codes(self, sources: Sequence[SourceCode] = (), targets: Sequence[TargetCode] = ()) -> Tuple[int, int]:
        """Stores code records. Returns the number of (source, target) records written."""
        for source in sources:
            self.store_source_code(source)
        for target in targets:
            self.store_target_code(target)
        logger.info(f"Stored {len(sources)} NAMASTE codes and {len(targets)} ICD-11 codes")
        return len(sources), len(targets)

    def get_source_codes(self) -> List[SourceCode]:
        return self._fetch_source_codes(f"SELECT {SOURCE_COLUMNS} FROM namaste_codes ORDER BY code")

    def get_target_codes(self, limit: int = 1000, offset: int = 0) -> List[TargetCode]:
        query = f"""
            SELECT {TARGET_COLUMNS}
            FROM icd11_codes
            ORDER BY code
            LIMIT {int(limit)} OFFSET {int(offset)}
        """
        return self._fetch_target_codes(query)

    def lookup_source_code(self, code: str) -> Optional[SourceCode]:
        """Returns the NAMASTE code record, or None if it is not stored."""
        rows = self._fetch_source_codes(f"SELECT {SOURCE_COLUMNS} FROM namaste_codes WHERE code = ?", [code])
        return rows[0] if rows else None

    def lookup_target_code(self, code: str) -> Optional[TargetCode]:
        """Returns the ICD-11 code record, or None if it is not stored."""
        rows = self._fetch_target_codes(f"SELECT {TARGET_COLUMNS} FROM icd11_codes WHERE code = ?", [code])
        return rows[0] if rows else None

    def search_source_codes(self, text: str, limit: int = 20) -> List[SourceCode]:
        """
        Case-insensitive substring search over NAMASTE codes and their labels.
        Exact code matches sort first, then by code.
        """
        if not text.strip():
            return []
        pattern = f"%{text.strip()}%"
        query = f"""
            SELECT {SOURCE_COLUMNS}
            FROM namaste_codes
            WHERE code ILIKE ?
               OR display ILIKE ?
               OR name_english ILIKE ?
               OR namc_term ILIKE ?
               OR description ILIKE ?
            ORDER BY (lower(code) = lower(?)) DESC, code
            LIMIT {int(limit)}
        """
        return self._fetch_source_codes(query, [pattern] * 5 + [text.strip()])

    def search_target_codes(self, text: str, limit: int = 20) -> List[TargetCode]:
        """
        Case-insensitive substring search over ICD-11 codes, titles, definitions and synonyms.
        Exact code matches sort first, then by code.
        """
        if not text.strip():
            return []
        pattern = f"%{text.strip()}%"
        query = f"""
            SELECT {TARGET_COLUMNS}
            FROM icd11_codes
            WHERE code ILIKE ?
               OR display ILIKE ?
               OR title ILIKE ?
               OR definition ILIKE ?
               OR synonym ILIKE ?
            ORDER BY (lower(code) = lower(?)) DESC, code
            LIMIT {int(limit)}
        """
        return self._fetch_target_codes(query, [pattern] * 5 + [text.strip()])

    def _fetch_source_codes(self, query: str, params: Optional[List[Any]] = None) -> List[SourceCode]:
        try:
            rows = self.duckdb_conn.execute(query, params or []).fetchall()
        except Exception as e:
            logger.error(f"Error fetching NAMASTE codes: {e}")
            return []
        # Row order follows SOURCE_COLUMNS
        return [
            SourceCode(
                code=row[0],
                display=row[1],
                name_english=row[2],
                namc_term=row[3],
                description=row[4],
                short_definition=row[5],
                long_definition=row[6],
            )
            for row in rows
        ]

    def _fetch_target_codes(self, query: str, params: Optional[List[Any]] = None) -> List[TargetCode]:
        try:
            rows = self.duckdb_conn.execute(query, params or []).fetchall()
        except Exception as e:
            logger.error(f"Error fetching ICD-11 codes: {e}")
            return []
        # Row order follows TARGET_COLUMNS
        return [
            TargetCode(
                code=row[0],
                display=row[1],
                title=row[2],
                definition=row[3],
                long_definition=row[4],
                description=row[5],
                synonym=json.loads(row[6]) if row[6] else [],
                inclusion=json.loads(row[7]) if row[7] else [],
            )
            for row in rows
        ]

    @staticmethod
    def _row_to_mapping(row: Tuple[Any, ...]) -> StoredMapping:
        # Row order follows MAPPING_COLUMNS
        return StoredMapping(
            source_code=row[0],
            target_code=row[1],
            equivalence=row[2],
            confidence=row[3],
            mapping_type=row[4],
            similarity_score=row[5] or 0.0,
            mapping_details=json.loads(row[6]) if row[6] else {},
            created_by=row[7],
            source_display=row[8],
            target_display=row[9],
        )
