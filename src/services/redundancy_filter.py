"""Redundancy filter: prune dominated single-rule candidates and orphaned rules.

A candidate explained by a single rule is trivial when some other rule in
the graph is strictly more confident. Such candidates are dropped. Rules
that no surviving candidate references are then dropped as well.

The filter makes one pass over candidates and one over nodes. It does not
iterate to a fixed point: candidates are not re-checked after nodes are
removed.
"""

from typing import AbstractSet, Dict, List

import structlog

from src.domain.models.pipeline_contracts import RedundancyResult
from src.domain.models.raw_record import RawCandidate
from src.domain.models.rule_graph import RuleNode
from src.services.graph_builder import rule_id_to_int

log = structlog.get_logger(__name__)


def candidate_rule_ids(
    candidate: RawCandidate, selected_node_ids: AbstractSet[int]
) -> List[int]:
    """Candidate rule ids restricted to the selected node set, input order kept."""
    rule_ids = [rule_id_to_int(rule_id) for rule_id in candidate.rules]
    return [rule_id for rule_id in rule_ids if rule_id in selected_node_ids]


def is_dominated(
    candidate: RawCandidate,
    selected_node_ids: AbstractSet[int],
    conf_by_id: Dict[int, float],
    max_conf: float,
) -> bool:
    """True for a single-rule candidate whose rule is not maximally confident.

    Candidates with zero or several valid rules are never dominated.
    """
    valid_ids = candidate_rule_ids(candidate, selected_node_ids)
    if len(valid_ids) != 1:
        return False
    return conf_by_id.get(valid_ids[0], 0.0) < max_conf


def filter_redundant(
    nodes: List[RuleNode],
    candidates: List[RawCandidate],
    selected_node_ids: AbstractSet[int],
) -> RedundancyResult:
    """
    Drop dominated candidates, then drop rules no survivor references.

    Args:
        nodes: Nodes retained by the graph builder
        candidates: Raw candidates of the query
        selected_node_ids: Node ids retained by the graph builder

    Returns:
        RedundancyResult with surviving candidates and nodes. Edges are not
        touched here; callers drop edges whose endpoints left `node_ids`.
    """
    conf_by_id = {node.id: node.conf for node in nodes}
    max_conf = max((node.conf for node in nodes), default=-1.0)

    kept_candidates = [
        candidate
        for candidate in candidates
        if not is_dominated(candidate, selected_node_ids, conf_by_id, max_conf)
    ]

    referenced_ids = set()
    for candidate in kept_candidates:
        referenced_ids.update(candidate_rule_ids(candidate, selected_node_ids))

    kept_node_ids = frozenset(
        node_id for node_id in selected_node_ids if node_id in referenced_ids
    )
    kept_nodes = [node for node in nodes if node.id in kept_node_ids]

    log.info(
        "redundancy_filter_applied",
        candidates_before=len(candidates),
        candidates_after=len(kept_candidates),
        nodes_before=len(nodes),
        nodes_after=len(kept_nodes),
        max_conf=max_conf,
    )

    return RedundancyResult(
        candidates=kept_candidates, nodes=kept_nodes, node_ids=kept_node_ids
    )
