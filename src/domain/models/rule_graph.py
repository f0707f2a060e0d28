"""Domain models for the processed rule graph.

Nodes are mined rules and edges are dependencies between rules. Both carry
metrics recomputed from raw counts. All models here are frozen: filtering
and ranking build new instances that reference the same node and edge ids.

Serialized field names are camelCase (bodySize, rankAfter, gtRank, ...) to
match the naming of the raw input consumed by the rendering layer.
"""

from typing import Any, Dict, FrozenSet, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _GraphModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        ser_json_inf_nan="strings",
    )


class RuleNode(_GraphModel):
    """A mined rule in the graph.

    Position is always a placeholder; an external layout engine assigns it.
    """

    id: int
    original_id: int
    rule: str
    body_size: float
    supp: float
    conf: float
    surprisal: float = Field(description="-ln(1 - conf); inf when conf >= 1")
    x: float = 0.0
    y: float = 0.0


class DependencyEdge(_GraphModel):
    """A directed dependency between two rules.

    Ids are assigned in construction order and only mean something within
    one build.
    """

    id: int
    source: int
    target: int
    body_size: float
    supp: float
    conf: float
    surprisal: float
    lift: float = 0.0


class ProcessedCandidate(_GraphModel):
    """Candidate explanation restricted to the surviving graph.

    Unrecognized input fields, GT included, are preserved verbatim as
    extras, so a candidate that had no GT flag is serialized without one.
    """

    model_config = ConfigDict(extra="allow")

    name: Any = None
    nodes: List[int] = Field(default_factory=list)
    edges: List[int] = Field(default_factory=list)
    rank_before: int = -1
    rank_after: int = -1
    node_objects: List[RuleNode] = Field(default_factory=list)
    edge_objects: List[DependencyEdge] = Field(default_factory=list)

    @property
    def is_ground_truth(self) -> bool:
        return (self.model_extra or {}).get("GT") is True


class QueryStats(_GraphModel):
    """Summary counts for a processed query."""

    num_nodes: int = Field(ge=0)
    num_edges: int = Field(ge=0)
    num_candidates: int = Field(ge=0, description="Candidate count before filtering")
    gt_rank: int = Field(default=-1, description="Ground-truth rank after, or -1")


class ProcessedQuery(_GraphModel):
    """Final graph for one query, ready for layout and rendering."""

    query: Any = None
    nodes: List[RuleNode] = Field(default_factory=list)
    edges: List[DependencyEdge] = Field(default_factory=list)
    candidates: List[ProcessedCandidate] = Field(default_factory=list)
    stats: QueryStats

    @property
    def node_ids(self) -> FrozenSet[int]:
        return frozenset(node.id for node in self.nodes)


class QueryIndexEntry(_GraphModel):
    """One row of the query listing for a loaded record file."""

    index: int = Field(ge=0)
    query: Any = None
    num_nodes: int = Field(ge=0)
    num_edges: int = Field(ge=0)
    num_candidates: int = Field(ge=0)
    gt_rank: int = -1


def node_lookup(nodes: List[RuleNode]) -> Dict[int, RuleNode]:
    """Map node id to node; later duplicates win."""
    return {node.id: node for node in nodes}
