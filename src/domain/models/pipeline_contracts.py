"""Contracts passed between pipeline components.

Each component of the query pipeline (parser, graph builder, redundancy
filter, candidate ranker) returns one of these models so the Query
Processor can wire them together without sharing mutable state.
"""

import json
from typing import Any, Dict, FrozenSet, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.domain.models.raw_record import RawCandidate, RawQueryRecord
from src.domain.models.rule_graph import DependencyEdge, RuleNode


class ParseDiagnostic(BaseModel):
    """A line or element of the input that could not be turned into a record."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    line_number: int = Field(ge=0, description="1-based line or element number")
    content: str = Field(description="Offending content, truncated to 100 characters")
    error: str = Field(description="Decoder or validation message")


class ParseResult(BaseModel):
    """Records in input order plus diagnostics for everything skipped."""

    records: List[RawQueryRecord] = Field(default_factory=list)
    diagnostics: List[ParseDiagnostic] = Field(default_factory=list)


class BuiltGraph(BaseModel):
    """Graph Builder output.

    `selected_node_ids` is exactly the id set of `nodes` after truncation.
    """

    model_config = ConfigDict(frozen=True)

    nodes: List[RuleNode]
    edges: List[DependencyEdge]
    selected_node_ids: FrozenSet[int]


class RedundancyResult(BaseModel):
    """Redundancy Filter output."""

    model_config = ConfigDict(frozen=True)

    candidates: List[RawCandidate]
    nodes: List[RuleNode]
    node_ids: FrozenSet[int]


class RankMaps(BaseModel):
    """Candidate name -> 1-based rank, under original and new surprisal.

    Names are the join key; with duplicate names the later sort position
    is the one stored.
    """

    model_config = ConfigDict(frozen=True)

    rank_before: Dict[Any, int] = Field(default_factory=dict)
    rank_after: Dict[Any, int] = Field(default_factory=dict)

    def lookup_before(self, name: Any) -> int:
        return self.rank_before.get(name_key(name), -1)

    def lookup_after(self, name: Any) -> int:
        return self.rank_after.get(name_key(name), -1)


def name_key(name: Any) -> Any:
    """Hashable join key for a candidate name.

    Names are normally strings; JSON arrays or objects used as names are
    keyed by their canonical JSON text.
    """
    if isinstance(name, (list, dict)):
        return json.dumps(name, sort_keys=True, default=str)
    return name
