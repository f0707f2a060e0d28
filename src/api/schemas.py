"""
API request/response schemas.

Pydantic models for API validation and serialization.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.domain.models.metric_range import MetricRanges
from src.domain.models.pipeline_contracts import ParseDiagnostic
from src.domain.models.rule_graph import ProcessedQuery, QueryIndexEntry


class _ResponseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, ser_json_inf_nan="strings"
    )


# ============ QUERY SCHEMAS ============


class QueryListResponse(_ResponseModel):
    """Queries of one record file plus diagnostics for skipped lines."""

    dataset: str
    record: str
    queries: List[QueryIndexEntry] = Field(default_factory=list)
    diagnostics: List[ParseDiagnostic] = Field(default_factory=list)


class QueryGraphResponse(_ResponseModel):
    """Processed graph for one query with the metric ranges for its filters."""

    dataset: str
    record: str
    index: int
    graph: ProcessedQuery
    ranges: MetricRanges
