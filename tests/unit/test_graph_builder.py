"""Tests for GraphBuilder node/edge construction and truncation."""

import math

import pytest

from src.core.config import PipelineConfig
from src.domain.models.raw_record import RawQueryRecord
from src.services.graph_builder import GraphBuilder, rule_id_to_int


def _many_rules(count, support_of):
    rule_ids = list(range(count))
    return RawQueryRecord.model_validate(
        {
            "rules": rule_ids,
            "ruleInfo": {
                str(i): {"bodySize": 10, "support": support_of(i), "rule": f"r{i}"}
                for i in rule_ids
            },
        }
    )


class TestRuleIdToInt:
    """Tests for raw rule id conversion."""

    @pytest.mark.parametrize(
        "raw,expected",
        [(7, 7), ("12", 12), (3.0, 3), ("abc", 0), (None, 0)],
    )
    def test_conversion(self, raw, expected):
        assert rule_id_to_int(raw) == expected


class TestBuildNodes:
    """Tests for node construction."""

    def test_worked_example_metrics(self, sample_record):
        graph = GraphBuilder().build(sample_record)

        by_id = {node.id: node for node in graph.nodes}
        assert [node.id for node in graph.nodes] == [1, 2, 3]
        assert by_id[1].conf == pytest.approx(0.8)
        assert by_id[1].surprisal == pytest.approx(math.log(5))
        assert by_id[2].conf == pytest.approx(1 / 3)
        assert by_id[3].conf == 0.0
        assert by_id[3].surprisal == 0.0

    def test_node_fields(self, sample_record):
        node = GraphBuilder().build(sample_record).nodes[0]

        assert node.original_id == node.id
        assert node.rule == "worksAt(X,Y) <= employedBy(X,Y)"
        assert node.body_size == 10.0
        assert node.supp == 12.0
        assert (node.x, node.y) == (0.0, 0.0)

    def test_support_read_from_supp_alias(self, sample_record):
        graph = GraphBuilder().build(sample_record)

        assert graph.nodes[1].supp == 5.0

    def test_missing_rule_info_gets_placeholder(self):
        record = RawQueryRecord.model_validate(
            {"rules": [1, 99], "ruleInfo": {"1": {"bodySize": 10, "support": 2}}}
        )

        graph = GraphBuilder().build(record)

        missing = graph.nodes[1]
        assert missing.id == 99
        assert missing.rule == "Rule 99"
        assert missing.body_size == 0.0
        assert missing.supp == 0.0
        assert missing.conf == 0.0
        assert missing.surprisal == 0.0

    def test_missing_rule_text_gets_placeholder(self):
        record = RawQueryRecord.model_validate(
            {"rules": [4], "ruleInfo": {"4": {"bodySize": 1, "support": 1}}}
        )

        assert GraphBuilder().build(record).nodes[0].rule == "Rule 4"

    def test_rule_info_keys_used_when_rules_empty(self):
        record = RawQueryRecord.model_validate(
            {"ruleInfo": {"5": {"bodySize": 1}, "2": {"bodySize": 1}}}
        )

        graph = GraphBuilder().build(record)

        assert [node.id for node in graph.nodes] == [5, 2]

    def test_float_rule_ids_find_integer_keys(self):
        record = RawQueryRecord.model_validate(
            {"rules": [1.0], "ruleInfo": {"1": {"bodySize": 10, "support": 12}}}
        )

        node = GraphBuilder().build(record).nodes[0]

        assert node.id == 1
        assert node.conf == pytest.approx(0.8)

    def test_non_numeric_counts_are_zero(self):
        record = RawQueryRecord.model_validate(
            {"rules": [1], "ruleInfo": {"1": {"bodySize": "n/a", "support": "x"}}}
        )

        node = GraphBuilder().build(record).nodes[0]

        assert node.body_size == 0.0
        assert node.supp == 0.0
        assert node.conf == 0.0

    def test_num_unseen_changes_confidence(self, sample_record):
        graph = GraphBuilder(num_unseen=0).build(sample_record)

        # support 12 over bodySize 10 with no smoothing saturates
        assert graph.nodes[0].conf == pytest.approx(1.2)
        assert graph.nodes[0].surprisal == math.inf

    def test_empty_record(self):
        graph = GraphBuilder().build(RawQueryRecord())

        assert graph.nodes == []
        assert graph.edges == []
        assert graph.selected_node_ids == frozenset()


class TestTruncation:
    """Tests for the node limit."""

    def test_keeps_top_nodes_by_surprisal(self):
        record = _many_rules(501, lambda i: 0 if i == 0 else 1 + i % 10)

        graph = GraphBuilder().build(record)

        assert len(graph.nodes) == 500
        assert 0 not in graph.selected_node_ids

    def test_exactly_at_limit_keeps_input_order(self):
        record = _many_rules(500, lambda i: i % 7)

        graph = GraphBuilder().build(record)

        assert [node.id for node in graph.nodes] == list(range(500))

    def test_ordered_by_descending_surprisal(self):
        record = _many_rules(6, lambda i: i)

        graph = GraphBuilder(max_nodes=3).build(record)

        assert [node.id for node in graph.nodes] == [5, 4, 3]

    def test_ties_keep_input_order(self):
        record = _many_rules(5, lambda i: 4)

        graph = GraphBuilder(max_nodes=2).build(record)

        assert [node.id for node in graph.nodes] == [0, 1]

    def test_deterministic(self):
        record = _many_rules(40, lambda i: (i * 7) % 11)
        builder = GraphBuilder(max_nodes=10)

        assert builder.build(record) == builder.build(record)

    def test_selected_ids_match_nodes(self):
        record = _many_rules(20, lambda i: i % 5)

        graph = GraphBuilder(max_nodes=8).build(record)

        assert graph.selected_node_ids == frozenset(node.id for node in graph.nodes)

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            GraphBuilder(max_nodes=0)

    def test_from_config(self):
        builder = GraphBuilder.from_config(PipelineConfig(num_unseen=2, max_nodes=7))

        assert builder.num_unseen == 2
        assert builder.max_nodes == 7


class TestBuildEdges:
    """Tests for dependency edges."""

    def test_worked_example_edges(self, sample_record):
        graph = GraphBuilder().build(sample_record)

        first, second = graph.edges
        assert (first.id, first.source, first.target) == (0, 1, 2)
        assert first.conf == pytest.approx(0.2)
        assert first.surprisal == pytest.approx(-math.log(0.8))
        assert first.lift == 1.5
        assert (second.id, second.source, second.target) == (1, 2, 3)
        assert second.conf == pytest.approx(0.04)

    def test_edges_only_between_selected_nodes(self, sample_record):
        graph = GraphBuilder().build(sample_record)

        for edge in graph.edges:
            assert edge.source in graph.selected_node_ids
            assert edge.target in graph.selected_node_ids

    def test_edge_ids_count_discarded_entries(self):
        record = RawQueryRecord.model_validate(
            {
                "rules": [1, 2],
                "ruleInfo": {"1": {"bodySize": 1}, "2": {"bodySize": 1}},
                "DepInfo": {
                    "1": {"9": {"supp": 1}, "2": {"supp": 1}},
                    "9": {"1": {"supp": 1}},
                    "2": {"1": {"supp": 1}},
                },
            }
        )

        graph = GraphBuilder().build(record)

        assert [(e.id, e.source, e.target) for e in graph.edges] == [
            (1, 1, 2),
            (3, 2, 1),
        ]

    def test_edges_to_truncated_nodes_dropped(self):
        record = _many_rules(4, lambda i: i)
        record = record.model_copy(
            update={
                "dep_info": RawQueryRecord.model_validate(
                    {"DepInfo": {"0": {"3": {"supp": 1}}, "3": {"2": {"supp": 1}}}}
                ).dep_info
            }
        )

        graph = GraphBuilder(max_nodes=2).build(record)

        assert graph.selected_node_ids == frozenset({3, 2})
        assert [(e.id, e.source, e.target) for e in graph.edges] == [(1, 3, 2)]

    def test_missing_lift_is_zero(self):
        record = RawQueryRecord.model_validate(
            {
                "rules": [1, 2],
                "DepInfo": {"1": {"2": {"bodySize": 4, "supp": 1}}},
            }
        )

        assert GraphBuilder().build(record).edges[0].lift == 0.0
