"""Tests for the contracts passed between pipeline components."""

import pytest
from pydantic import ValidationError

from src.domain.models.pipeline_contracts import (
    BuiltGraph,
    ParseDiagnostic,
    RankMaps,
    name_key,
)


class TestParseDiagnostic:
    def test_serializes_camel_case(self):
        diagnostic = ParseDiagnostic(line_number=3, content='{"a":}', error="bad")

        assert diagnostic.model_dump(by_alias=True) == {
            "lineNumber": 3,
            "content": '{"a":}',
            "error": "bad",
        }

    def test_frozen(self):
        diagnostic = ParseDiagnostic(line_number=1, content="x", error="bad")

        with pytest.raises(ValidationError):
            diagnostic.line_number = 2


class TestRankMaps:
    def test_lookup(self):
        ranks = RankMaps(rank_before={"a": 1}, rank_after={"a": 2})

        assert ranks.lookup_before("a") == 1
        assert ranks.lookup_after("a") == 2
        assert ranks.lookup_after("b") == -1


class TestNameKey:
    def test_strings_unchanged(self):
        assert name_key("AcmeCorp") == "AcmeCorp"

    def test_structured_names_are_canonical(self):
        assert name_key({"b": 1, "a": 2}) == name_key({"a": 2, "b": 1})
        assert name_key(["x", "y"]) != name_key(["y", "x"])

    def test_none(self):
        assert name_key(None) is None


def test_built_graph_empty():
    graph = BuiltGraph(nodes=[], edges=[], selected_node_ids=frozenset())

    assert graph.selected_node_ids == frozenset()
