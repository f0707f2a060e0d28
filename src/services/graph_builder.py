"""Graph builder: one raw query record -> bounded rule/dependency graph.

Algorithm:
1. Working rule ids: the record's explicit `rules` list if non-empty,
   otherwise the keys of `ruleInfo` in input order
2. One RuleNode per id, metrics recomputed from bodySize/support
3. If there are more than max_nodes nodes, keep the top max_nodes by
   surprisal (stable sort, so ties keep input order)
4. One DependencyEdge per DepInfo[source][target] entry whose two endpoints
   survived truncation; edge ids count every visited entry from 0
"""

from typing import Any, List

import structlog

from src.core.config import DEFAULT_MAX_NODES, DEFAULT_NUM_UNSEEN, PipelineConfig
from src.domain.models.pipeline_contracts import BuiltGraph
from src.domain.models.raw_record import RawQueryRecord
from src.domain.models.rule_graph import DependencyEdge, RuleNode
from src.services.metrics import compute_rule_metrics, to_number

log = structlog.get_logger(__name__)


def rule_id_to_int(raw_id: Any) -> int:
    """Integer node id for a raw rule identifier (non-numeric ids map to 0)."""
    return int(to_number(raw_id))


class GraphBuilder:
    """
    Builds the node and edge sets for a single query.

    Holds only configuration, so one instance can build graphs for any
    number of queries, concurrently if needed.
    """

    def __init__(
        self,
        num_unseen: float = DEFAULT_NUM_UNSEEN,
        max_nodes: int = DEFAULT_MAX_NODES,
    ):
        """
        Initialize graph builder.

        Args:
            num_unseen: Smoothing term added to body size for confidence
            max_nodes: Truncation limit for the node set
        """
        if max_nodes < 1:
            raise ValueError(f"max_nodes must be positive, got {max_nodes}")
        self.num_unseen = num_unseen
        self.max_nodes = max_nodes

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "GraphBuilder":
        return cls(num_unseen=config.num_unseen, max_nodes=config.max_nodes)

    def build(self, record: RawQueryRecord) -> BuiltGraph:
        """
        Build nodes and edges for one query record.

        Args:
            record: Parsed query record

        Returns:
            BuiltGraph whose selected_node_ids is the id set of its nodes
        """
        nodes = self._build_nodes(record)
        total_nodes = len(nodes)
        nodes = self._truncate(nodes)
        selected_node_ids = frozenset(node.id for node in nodes)

        edges = self._build_edges(record, selected_node_ids)

        log.debug(
            "graph_built",
            total_nodes=total_nodes,
            kept_nodes=len(nodes),
            kept_edges=len(edges),
            num_unseen=self.num_unseen,
        )

        return BuiltGraph(
            nodes=nodes, edges=edges, selected_node_ids=selected_node_ids
        )

    def _working_rule_ids(self, record: RawQueryRecord) -> List[Any]:
        if record.rules:
            return list(record.rules)
        return list(record.rule_info.keys())

    def _build_nodes(self, record: RawQueryRecord) -> List[RuleNode]:
        nodes = []
        for raw_id in self._working_rule_ids(record):
            node_id = rule_id_to_int(raw_id)
            info = record.lookup_rule_info(raw_id) or record.lookup_rule_info(node_id)

            if info is None:
                body_size, supp, conf, surprisal = compute_rule_metrics(
                    None, None, self.num_unseen
                )
                label = f"Rule {raw_id}"
            else:
                body_size, supp, conf, surprisal = compute_rule_metrics(
                    info.body_size, info.support, self.num_unseen
                )
                label = info.rule or f"Rule {raw_id}"

            nodes.append(
                RuleNode(
                    id=node_id,
                    original_id=node_id,
                    rule=label,
                    body_size=body_size,
                    supp=supp,
                    conf=conf,
                    surprisal=surprisal,
                )
            )
        return nodes

    def _truncate(self, nodes: List[RuleNode]) -> List[RuleNode]:
        if len(nodes) <= self.max_nodes:
            return nodes
        # sorted() is stable: equal surprisals keep input order
        ranked = sorted(nodes, key=lambda n: n.surprisal, reverse=True)
        log.info(
            "graph_nodes_truncated",
            total_nodes=len(nodes),
            max_nodes=self.max_nodes,
        )
        return ranked[: self.max_nodes]

    def _build_edges(
        self, record: RawQueryRecord, selected_node_ids: frozenset
    ) -> List[DependencyEdge]:
        edges = []
        edge_id = 0
        for source_key, targets in record.dep_info.items():
            source = rule_id_to_int(source_key)
            for target_key, metrics in targets.items():
                target = rule_id_to_int(target_key)
                current_id = edge_id
                edge_id += 1

                if source not in selected_node_ids or target not in selected_node_ids:
                    continue

                body_size, supp, conf, surprisal = compute_rule_metrics(
                    metrics.body_size, metrics.support, self.num_unseen
                )
                edges.append(
                    DependencyEdge(
                        id=current_id,
                        source=source,
                        target=target,
                        body_size=body_size,
                        supp=supp,
                        conf=conf,
                        surprisal=surprisal,
                        lift=to_number(metrics.lift),
                    )
                )
        return edges
