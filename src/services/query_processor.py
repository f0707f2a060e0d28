"""
Query processor: raw record -> ProcessedQuery.

Pipeline per query:
1. GraphBuilder builds nodes/edges (truncated to max_nodes)
2. Optional redundancy filter prunes dominated candidates and orphan rules;
   edges that lost an endpoint are dropped with them
3. Candidates are ranked by original and new surprisal
4. Each candidate is restricted to the surviving nodes and the edges among
   them; candidates left with no nodes are dropped
5. Summary stats, including the ground-truth candidate's rank
"""

from collections import defaultdict
from typing import AbstractSet, Dict, List, Optional, Sequence

import structlog

from src.core.config import PipelineConfig
from src.domain.models.pipeline_contracts import RankMaps
from src.domain.models.raw_record import RawCandidate, RawQueryRecord
from src.domain.models.rule_graph import (
    DependencyEdge,
    ProcessedCandidate,
    ProcessedQuery,
    QueryIndexEntry,
    QueryStats,
    RuleNode,
    node_lookup,
)
from src.services.candidate_ranker import (
    compute_candidate_ranks,
    find_ground_truth,
    find_gt_rank,
)
from src.services.graph_builder import GraphBuilder
from src.services.redundancy_filter import candidate_rule_ids, filter_redundant

log = structlog.get_logger(__name__)

# Keys produced by processing; input fields with these names are not passed through
_PROCESSED_KEYS = frozenset(
    alias
    for name, field in ProcessedCandidate.model_fields.items()
    for alias in (name, field.alias)
    if alias
)


class EdgeIndex:
    """Edges grouped by source, built once per query.

    Lets each candidate collect its internal edges without rescanning the
    full edge list.
    """

    def __init__(self, edges: Sequence[DependencyEdge]):
        self.by_id: Dict[int, DependencyEdge] = {edge.id: edge for edge in edges}
        self._by_source: Dict[int, List[DependencyEdge]] = defaultdict(list)
        for edge in edges:
            self._by_source[edge.source].append(edge)

    def edges_within(self, node_ids: AbstractSet[int]) -> List[DependencyEdge]:
        """Edges with both endpoints in node_ids, in construction order."""
        found = [
            edge
            for source in node_ids
            for edge in self._by_source.get(source, ())
            if edge.target in node_ids
        ]
        return sorted(found, key=lambda edge: edge.id)


class QueryProcessor:
    """
    Runs the full pipeline for one query at a time.

    Usage:
        processor = QueryProcessor(PipelineConfig(num_unseen=5))
        processed = processor.process(record, exclude_redundant=True)
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self.builder = GraphBuilder.from_config(self.config)

    def process(
        self,
        record: RawQueryRecord,
        exclude_redundant: Optional[bool] = None,
    ) -> ProcessedQuery:
        """
        Process one query record.

        Args:
            record: Parsed query record
            exclude_redundant: Enable the redundancy filter; defaults to the
                pipeline configuration

        Returns:
            ProcessedQuery with nodes, edges, candidates and stats
        """
        if exclude_redundant is None:
            exclude_redundant = self.config.exclude_redundant

        built = self.builder.build(record)
        nodes: List[RuleNode] = built.nodes
        edges: List[DependencyEdge] = built.edges
        node_ids = built.selected_node_ids
        candidates: List[RawCandidate] = list(record.candidates)

        if exclude_redundant:
            pruned = filter_redundant(nodes, candidates, node_ids)
            candidates, nodes, node_ids = pruned.candidates, pruned.nodes, pruned.node_ids
            edges = [
                edge
                for edge in edges
                if edge.source in node_ids and edge.target in node_ids
            ]

        rank_maps = compute_candidate_ranks(candidates)
        processed_candidates = self._process_candidates(
            candidates, rank_maps, nodes, edges, node_ids
        )

        gt_candidate = find_ground_truth(processed_candidates)
        gt_rank = gt_candidate.rank_after if gt_candidate is not None else -1

        stats = QueryStats(
            num_nodes=len(nodes),
            num_edges=len(edges),
            num_candidates=len(record.candidates),
            gt_rank=gt_rank,
        )

        log.info(
            "query_processed",
            num_nodes=stats.num_nodes,
            num_edges=stats.num_edges,
            num_candidates=stats.num_candidates,
            kept_candidates=len(processed_candidates),
            gt_rank=gt_rank,
            exclude_redundant=exclude_redundant,
        )

        return ProcessedQuery(
            query=record.query,
            nodes=nodes,
            edges=edges,
            candidates=processed_candidates,
            stats=stats,
        )

    def _process_candidates(
        self,
        candidates: Sequence[RawCandidate],
        rank_maps: RankMaps,
        nodes: Sequence[RuleNode],
        edges: Sequence[DependencyEdge],
        node_ids: AbstractSet[int],
    ) -> List[ProcessedCandidate]:
        nodes_by_id = node_lookup(list(nodes))
        edge_index = EdgeIndex(edges)

        processed = []
        for candidate in candidates:
            member_ids = candidate_rule_ids(candidate, node_ids)
            if not member_ids:
                continue

            member_edges = edge_index.edges_within(set(member_ids))

            data = {
                k: v for k, v in candidate.passthrough().items() if k not in _PROCESSED_KEYS
            }
            data.update(
                name=candidate.name,
                nodes=member_ids,
                edges=[edge.id for edge in member_edges],
                rank_before=rank_maps.lookup_before(candidate.name),
                rank_after=rank_maps.lookup_after(candidate.name),
                node_objects=[
                    nodes_by_id[node_id] for node_id in member_ids if node_id in nodes_by_id
                ],
                edge_objects=member_edges,
            )
            processed.append(ProcessedCandidate.model_validate(data))

        return processed


def build_query_index(records: Sequence[RawQueryRecord]) -> List[QueryIndexEntry]:
    """
    Summarize every record of a loaded file without building graphs.

    num_nodes counts the explicit rule list and num_edges counts dependency
    entries, both before truncation. gt_rank ranks all candidates.
    """
    entries = []
    for index, record in enumerate(records):
        rank_maps = compute_candidate_ranks(record.candidates)
        entries.append(
            QueryIndexEntry(
                index=index,
                query=record.query,
                num_nodes=len(record.rules),
                num_edges=record.dependency_count,
                num_candidates=len(record.candidates),
                gt_rank=find_gt_rank(record.candidates, rank_maps),
            )
        )
    return entries
