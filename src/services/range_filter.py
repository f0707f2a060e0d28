"""Range filter: induced subgraph of nodes inside the configured bounds.

Bounds apply to node metrics only. An edge is kept when both of its
endpoints are kept; edge metrics are not range-checked. The filter runs on
every interactive bound change, so it is a single linear pass that builds a
new ProcessedQuery and leaves its input untouched.
"""

from src.domain.models.metric_range import FilterConfig
from src.domain.models.rule_graph import ProcessedQuery, RuleNode


def node_in_bounds(node: RuleNode, filters: FilterConfig) -> bool:
    return (
        filters.surprisal.contains(node.surprisal)
        and filters.supp.contains(node.supp)
        and filters.body_size.contains(node.body_size)
    )


def apply_filters(processed: ProcessedQuery, filters: FilterConfig) -> ProcessedQuery:
    """
    Keep nodes whose surprisal, supp and body_size all lie within bounds,
    and edges whose source and target are both kept.

    Args:
        processed: Query graph to filter (not modified)
        filters: Inclusive bounds per metric

    Returns:
        New ProcessedQuery with filtered nodes and edges; candidates and
        stats are carried over unchanged
    """
    nodes = [node for node in processed.nodes if node_in_bounds(node, filters)]
    kept_ids = {node.id for node in nodes}
    edges = [
        edge
        for edge in processed.edges
        if edge.source in kept_ids and edge.target in kept_ids
    ]
    return processed.model_copy(update={"nodes": nodes, "edges": edges})
