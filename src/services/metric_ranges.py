"""Per-metric min/max over nodes and edges, used to configure filter bounds."""

from typing import Iterable, Optional, Sequence, Union

from src.domain.models.metric_range import EntityMetricRanges, MetricBounds, MetricRanges
from src.domain.models.rule_graph import DependencyEdge, RuleNode

GraphEntity = Union[RuleNode, DependencyEdge]


def _bounds(values: Iterable[float]) -> Optional[MetricBounds]:
    values = list(values)
    if not values:
        return None
    return MetricBounds(min=min(values), max=max(values))


def entity_ranges(entities: Sequence[GraphEntity]) -> EntityMetricRanges:
    """Ranges of surprisal, supp and body_size; all None for an empty list."""
    return EntityMetricRanges(
        surprisal=_bounds(e.surprisal for e in entities),
        supp=_bounds(e.supp for e in entities),
        body_size=_bounds(e.body_size for e in entities),
    )


def calculate_metric_ranges(
    nodes: Sequence[RuleNode], edges: Sequence[DependencyEdge]
) -> MetricRanges:
    """
    Compute metric ranges independently over nodes and over edges.

    Args:
        nodes: Node list (may be empty)
        edges: Edge list (may be empty)

    Returns:
        MetricRanges; an empty list yields None bounds for its entity class
    """
    return MetricRanges(node=entity_ranges(nodes), edge=entity_ranges(edges))
