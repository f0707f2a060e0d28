"""Domain models package."""

from .raw_record import RuleInfo, DependencyInfo, RawCandidate, RawQueryRecord
from .rule_graph import (
    RuleNode,
    DependencyEdge,
    ProcessedCandidate,
    QueryStats,
    ProcessedQuery,
    QueryIndexEntry,
)
from .metric_range import MetricBounds, EntityMetricRanges, MetricRanges, FilterConfig
from .pipeline_contracts import (
    ParseDiagnostic,
    ParseResult,
    BuiltGraph,
    RedundancyResult,
    RankMaps,
)
from .dataset import DatasetEntry, DatasetCatalog

__all__ = [
    "RuleInfo",
    "DependencyInfo",
    "RawCandidate",
    "RawQueryRecord",
    "RuleNode",
    "DependencyEdge",
    "ProcessedCandidate",
    "QueryStats",
    "ProcessedQuery",
    "QueryIndexEntry",
    "MetricBounds",
    "EntityMetricRanges",
    "MetricRanges",
    "FilterConfig",
    "ParseDiagnostic",
    "ParseResult",
    "BuiltGraph",
    "RedundancyResult",
    "RankMaps",
    "DatasetEntry",
    "DatasetCatalog",
]
