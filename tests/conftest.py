"""
Shared test fixtures.

Minimal fixture set for exercising the query pipeline end to end.
"""

import json

import pytest

from src.domain.models.raw_record import RawQueryRecord
from src.services.data_loader import clear_record_cache


@pytest.fixture(autouse=True)
def fresh_record_cache():
    """Every test starts without cached parse results."""
    clear_record_cache()
    yield
    clear_record_cache()


@pytest.fixture
def sample_raw():
    """Three rules with bodySize 10 and support 12/5/0, plus dependencies and candidates.

    With num_unseen=5 the confidences are 0.8, 1/3 and 0.
    """
    return {
        "query": "(Alice, worksAt, ?)",
        "rules": [1, 2, 3],
        "ruleInfo": {
            "1": {"bodySize": 10, "support": 12, "rule": "worksAt(X,Y) <= employedBy(X,Y)"},
            "2": {"bodySize": 10, "supp": 5, "rule": "worksAt(X,Y) <= livesIn(X,Y)"},
            "3": {"bodySize": 10, "support": 0, "rule": "worksAt(X,Y) <= knows(X,Z)"},
        },
        "DepInfo": {
            "1": {"2": {"bodySize": 10, "supp": 3, "lift": 1.5}},
            "2": {"3": {"bodySize": 20, "supp": 1, "lift": 0.7}},
        },
        "candidates": [
            {
                "name": "AcmeCorp",
                "rules": [1, 2],
                "GT": True,
                "originalSurprisal": 1.2,
                "newSurprisal": 2.0,
                "score": 0.91,
            },
            {
                "name": "Globex",
                "rules": [2],
                "GT": False,
                "originalSurprisal": 1.5,
                "newSurprisal": 0.4,
            },
            {
                "name": "Initech",
                "rules": [1],
                "GT": False,
                "originalSurprisal": 0.3,
                "newSurprisal": 1.0,
            },
        ],
    }


@pytest.fixture
def sample_record(sample_raw):
    """Parsed form of sample_raw."""
    return RawQueryRecord.model_validate(sample_raw)


@pytest.fixture
def data_root(tmp_path, sample_raw):
    """Data root with one dataset holding one record file of two queries."""
    root = tmp_path / "out"
    dataset = root / "family"
    dataset.mkdir(parents=True)

    second = dict(sample_raw, query="(Bob, worksAt, ?)")
    lines = [json.dumps(sample_raw) + ",", "", json.dumps(second)]
    (dataset / "eval-test.json").write_text("\n".join(lines), encoding="utf-8")
    (dataset / "notes.txt").write_text("not a record file", encoding="utf-8")
    (root / "empty").mkdir()
    return root
