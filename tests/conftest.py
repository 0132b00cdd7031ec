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
from typing import Generator, List

import pytest

from coreason_namaste.schemas import SourceCode, TargetCode
from coreason_namaste.store import NamasteMappingStore

# --- Sample Data ---
# AAA-1: Jvara (fever), AAB-2: Grahani (gastro-intestinal disorder), AAC-3: Shiroroga (headache)


@pytest.fixture
def sample_sources() -> List[SourceCode]:
    return [
        SourceCode(code="AAA-1", display="Fever", namc_term="Jvara", short_definition="-"),
        SourceCode(code="AAB-2", display="gastro-intestinal disorder"),
        SourceCode(code="AAC-3", display="Headache", long_definition="-"),
    ]


@pytest.fixture
def sample_targets() -> List[TargetCode]:
    return [
        TargetCode(code="MG26", title="Fever"),
        TargetCode(code="SM10", display="Gastro-intestinal disorders"),
        TargetCode(code="SK00", display="Head, brain, nerve disorders"),
        TargetCode(code="8A80", title="Headache", synonym=["cephalalgia"]),
    ]


@pytest.fixture
def store() -> Generator[NamasteMappingStore, None, None]:
    s = NamasteMappingStore.connect(":memory:")
    yield s
    s.close()


@pytest.fixture
def code_files(tmp_path: Path, sample_sources: List[SourceCode], sample_targets: List[TargetCode]) -> Path:
    """
    Writes sources.json (a plain list) and targets.json (WHO-style object with `codes`).
    """
    (tmp_path / "sources.json").write_text(json.dumps([s.model_dump() for s in sample_sources]))
    targets = [
        {"id": "MG26", "title": "Fever"},
        {"code": "SM10", "display": "Gastro-intestinal disorders"},
        {"code": "SK00", "display": "Head, brain, nerve disorders"},
        {"code": "8A80", "title": "Headache", "synonym": ["cephalalgia"], "longDefinition": "Pain in the head"},
    ]
    (tmp_path / "targets.json").write_text(json.dumps({"codes": targets}))
    return tmp_path
