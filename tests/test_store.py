# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_namaste

from pathlib import Path
from typing import List
from unittest.mock import MagicMock

import pytest

from coreason_namaste.matcher import NamasteMatcher
from coreason_namaste.schemas import ConfidenceTier, Mapping, MappingFilters, SimilarityResult, SourceCode, TargetCode
from coreason_namaste.store import NamasteMappingStore


def _mapping(source: str, target: str, score: float) -> Mapping:
    details = SimilarityResult(composite=score, ratio=score, partial_ratio=1.0, token_sort_ratio=score)
    return Mapping(
        source_code=source,
        target_code=target,
        target_display=f"display {target}",
        similarity_score=score,
        similarity_details=details,
        confidence=NamasteMatcher().classify_confidence(score),
        source_text=f"text {source}",
        target_text=f"text {target}",
    )


def test_connect_creates_file(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "namaste.duckdb"
    store = NamasteMappingStore.connect(db_path)
    store.upsert_mapping(_mapping("A", "B", 0.9))
    store.close()

    assert db_path.exists()
    reopened = NamasteMappingStore.connect(db_path)
    assert len(reopened.query_mappings()) == 1
    reopened.close()


def test_init_failure() -> None:
    mock_conn = MagicMock()
    mock_conn.execute.side_effect = Exception("connection closed")
    with pytest.raises(ValueError, match="Failed to initialize mapping store"):
        NamasteMappingStore(mock_conn)


def test_upsert_insert_if_absent(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "B", 0.9))
    store.upsert_mapping(_mapping("A", "B", 0.65), overwrite=False)

    [row] = store.query_mappings()
    assert row.confidence == 0.9


def test_upsert_replace(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "B", 0.9))
    store.upsert_mapping(_mapping("A", "B", 0.65), overwrite=True)

    [row] = store.query_mappings()
    assert row.confidence == 0.65
    assert row.similarity_score == 0.65


def test_upsert_stores_details(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "B", 0.9))
    [row] = store.query_mappings()

    assert row.mapping_type == "automatic"
    assert row.equivalence == "equivalent"
    assert row.mapping_details["source_text"] == "text A"
    assert row.mapping_details["target_text"] == "text B"
    assert row.mapping_details["similarity_details"]["partial_ratio"] == 1.0


def test_query_filters_and_order(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "X", 0.7))
    store.upsert_mapping(_mapping("A", "Y", 0.95))
    store.upsert_mapping(_mapping("B", "X", 0.85))
    store.add_manual_mapping("C", "Z", confidence=0.5, created_by="reviewer")

    assert [m.confidence for m in store.query_mappings()] == [0.95, 0.85, 0.7, 0.5]
    assert {m.target_code for m in store.query_mappings(MappingFilters(source_code="A"))} == {"X", "Y"}
    assert {m.source_code for m in store.query_mappings(MappingFilters(target_code="X"))} == {"A", "B"}
    assert len(store.query_mappings(MappingFilters(min_confidence=0.8))) == 2
    assert [m.source_code for m in store.query_mappings(MappingFilters(mapping_type="manual"))] == ["C"]
    assert len(store.query_mappings(MappingFilters(limit=1))) == 1


def test_query_joins_displays(
    store: NamasteMappingStore,
) -> None:
    store.store_source_code(SourceCode(code="A", display="Jvara"))
    store.store_target_code(TargetCode(code="MG26", title="Fever"))
    store.upsert_mapping(_mapping("A", "MG26", 0.9))

    [row] = store.query_mappings()
    assert row.source_display == "Jvara"
    assert row.target_display == "Fever"


def test_query_error_returns_empty(store: NamasteMappingStore) -> None:
    mock_conn = MagicMock()
    mock_conn.execute.side_effect = Exception("DB Error")
    store.duckdb_conn = mock_conn
    assert store.query_mappings() == []


def test_manual_mapping_replaces_automatic(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "B", 0.7))
    store.add_manual_mapping("A", "B", equivalence="wider", confidence=1.0, created_by="curator")

    [row] = store.query_mappings()
    assert row.mapping_type == "manual"
    assert row.equivalence == "wider"
    assert row.created_by == "curator"
    assert row.mapping_details == {}


def test_update_mapping(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "B", 0.7))

    assert store.update_mapping("A", "B", equivalence="narrower", created_by="reviewer") is True
    [row] = store.query_mappings()
    assert row.equivalence == "narrower"
    assert row.created_by == "reviewer"
    assert row.confidence == 0.7

    assert store.update_mapping("A", "missing", confidence=0.1) is False


def test_delete_mapping(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "B", 0.7))
    assert store.delete_mapping("A", "B") is True
    assert store.delete_mapping("A", "B") is False
    assert store.query_mappings() == []


def test_translate_and_reverse(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "X", 0.7))
    store.upsert_mapping(_mapping("A", "Y", 0.9))
    store.upsert_mapping(_mapping("B", "X", 0.8))

    assert [m.target_code for m in store.translate_code("A")] == ["Y", "X"]
    assert [m.source_code for m in store.reverse_translate_code("X")] == ["B", "A"]
    assert store.translate_code("unknown") == []


def test_stats(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "X", 0.9))
    store.upsert_mapping(_mapping("A", "Y", 0.7))
    store.add_manual_mapping("B", "Z", confidence=0.5)

    stats = store.get_stats()
    assert stats.total == 3
    assert stats.by_confidence == {
        ConfidenceTier.HIGH.value: 1,
        ConfidenceTier.MEDIUM.value: 1,
        ConfidenceTier.LOW.value: 1,
    }
    assert stats.by_type == {"automatic": 2, "manual": 1}
    assert stats.average_confidence == pytest.approx(0.7)


def test_stats_with_custom_thresholds(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "X", 0.7))
    stats = store.get_stats(NamasteMatcher(similarity_threshold=0.5, high_confidence_threshold=0.65))
    assert stats.by_confidence["high"] == 1


def test_stats_empty(store: NamasteMappingStore) -> None:
    stats = store.get_stats()
    assert stats.total == 0
    assert stats.average_confidence == 0.0


def test_code_round_trip(store: NamasteMappingStore) -> None:
    source = SourceCode(code="AAB-2", display="Grahani", short_definition="Digestive disorder")
    target = TargetCode(code="8A80", title="Headache", synonym=["cephalalgia"], inclusion=["head pain"])

    assert store.store_codes([source], [target]) == (1, 1)
    assert store.get_source_codes() == [source]
    assert store.get_target_codes() == [target]


def test_store_code_replaces(store: NamasteMappingStore) -> None:
    store.store_target_code(TargetCode(code="MG26", title="Fever"))
    store.store_target_code(TargetCode(code="MG26", title="Fever, unspecified"))

    [target] = store.get_target_codes()
    assert target.title == "Fever, unspecified"


def test_get_target_codes_paging(store: NamasteMappingStore) -> None:
    store.store_codes(targets=[TargetCode(code=f"T{i}", title=f"term {i}") for i in range(5)])
    assert [t.code for t in store.get_target_codes(limit=2, offset=1)] == ["T1", "T2"]


def test_manual_mapping_on_empty_store(store: NamasteMappingStore) -> None:
    store.add_manual_mapping("A", "B", created_by="curator")

    [row] = store.query_mappings()
    assert row.mapping_type == "manual"
    assert row.confidence == 1.0


def test_overwrite_on_empty_store(store: NamasteMappingStore) -> None:
    store.upsert_mapping(_mapping("A", "B", 0.75), overwrite=True)

    [row] = store.query_mappings()
    assert row.confidence == 0.75


@pytest.fixture
def seeded_store(
    store: NamasteMappingStore, sample_sources: List[SourceCode], sample_targets: List[TargetCode]
) -> NamasteMappingStore:
    store.store_codes(sample_sources, sample_targets)
    return store


def test_lookup_codes(seeded_store: NamasteMappingStore) -> None:
    source = seeded_store.lookup_source_code("AAA-1")
    assert source is not None
    assert source.namc_term == "Jvara"

    target = seeded_store.lookup_target_code("8A80")
    assert target is not None
    assert target.synonym == ["cephalalgia"]

    assert seeded_store.lookup_source_code("missing") is None
    assert seeded_store.lookup_target_code("missing") is None


def test_search_source_codes(seeded_store: NamasteMappingStore) -> None:
    assert [c.code for c in seeded_store.search_source_codes("jvara")] == ["AAA-1"]
    assert [c.code for c in seeded_store.search_source_codes("GASTRO")] == ["AAB-2"]
    assert [c.code for c in seeded_store.search_source_codes("aa")] == ["AAA-1", "AAB-2", "AAC-3"]
    assert len(seeded_store.search_source_codes("aa", limit=2)) == 2
    assert seeded_store.search_source_codes("   ") == []


def test_search_target_codes(seeded_store: NamasteMappingStore) -> None:
    assert [c.code for c in seeded_store.search_target_codes("cephal")] == ["8A80"]
    assert [c.code for c in seeded_store.search_target_codes("disorders")] == ["SK00", "SM10"]
    assert [c.code for c in seeded_store.search_target_codes("sm10")] == ["SM10"]
    assert seeded_store.search_target_codes("nothing like this") == []


def test_search_exact_code_first(store: NamasteMappingStore) -> None:
    store.store_codes(
        targets=[
            TargetCode(code="1A00", title="Cholera, see MG26"),
            TargetCode(code="MG26", title="Fever"),
        ]
    )
    assert [c.code for c in store.search_target_codes("MG26")] == ["MG26", "1A00"]


def test_lookup_error_returns_none(store: NamasteMappingStore) -> None:
    mock_conn = MagicMock()
    mock_conn.execute.side_effect = Exception("DB Error")
    store.duckdb_conn = mock_conn
    assert store.lookup_source_code("A") is None
    assert store.search_target_codes("fever") == []
