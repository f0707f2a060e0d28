"""
Dataset and query API routes.

GET  /datasets                                              - List datasets and record files
GET  /datasets/{dataset}/records/{record}/queries           - Query index of a record file
GET  /datasets/{dataset}/records/{record}/queries/{index}   - Processed graph + metric ranges
POST /datasets/{dataset}/records/{record}/queries/{index}/filter - Range-filtered graph
"""

import asyncio
from pathlib import Path
from typing import Annotated, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel
import structlog

from src.api.dependencies import get_data_root, get_query_processor
from src.api.schemas import QueryGraphResponse, QueryListResponse
from src.core.exceptions import QueryNotFoundError, ValidationError
from src.domain.models.metric_range import FilterConfig, MetricRanges
from src.domain.models.pipeline_contracts import ParseResult
from src.domain.models.raw_record import RawQueryRecord
from src.domain.models.rule_graph import ProcessedQuery
from src.services.data_loader import load_records
from src.services.dataset_catalog import resolve_record_path, scan_datasets
from src.services.metric_ranges import calculate_metric_ranges
from src.services.query_processor import QueryProcessor, build_query_index
from src.services.range_filter import apply_filters

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/datasets", tags=["datasets"])

DataRootDep = Annotated[Path, Depends(get_data_root)]
ProcessorDep = Annotated[QueryProcessor, Depends(get_query_processor)]
ExcludeRedundantQuery = Annotated[
    Optional[bool],
    Query(description="Prune dominated single-rule candidates and orphan rules"),
]


def _json_response(model: BaseModel) -> Response:
    """Serialize with camelCase aliases; infinite surprisal becomes "Infinity"."""
    return Response(
        content=model.model_dump_json(by_alias=True), media_type="application/json"
    )


async def _load(dataset: str, record: str, data_root: Path) -> ParseResult:
    path = resolve_record_path(dataset, record, data_root)
    return await load_records(path)


async def _load_query(
    dataset: str, record: str, index: int, data_root: Path
) -> RawQueryRecord:
    if index < 0:
        raise ValidationError(f"Query index must be non-negative, got {index}")
    parsed = await _load(dataset, record, data_root)
    if index >= len(parsed.records):
        raise QueryNotFoundError(
            f"Query {index} not found in {dataset}/{record} "
            f"({len(parsed.records)} queries)"
        )
    return parsed.records[index]


def _process(
    processor: QueryProcessor, raw: RawQueryRecord, exclude_redundant: Optional[bool]
) -> Tuple[ProcessedQuery, MetricRanges]:
    processed = processor.process(raw, exclude_redundant=exclude_redundant)
    return processed, calculate_metric_ranges(processed.nodes, processed.edges)


@router.get("")
async def list_datasets(data_root: DataRootDep):
    """List datasets under the data root and the record files in each."""
    return _json_response(scan_datasets(data_root))


@router.get("/{dataset}/records/{record}/queries")
async def list_queries(dataset: str, record: str, data_root: DataRootDep):
    """Summarize every query of a record file.

    Lines that failed to parse are reported in `diagnostics`; they never
    fail the request.
    """
    parsed = await _load(dataset, record, data_root)
    queries = await asyncio.to_thread(build_query_index, parsed.records)
    log.info(
        "queries_listed",
        dataset=dataset,
        record=record,
        query_count=len(parsed.records),
        diagnostic_count=len(parsed.diagnostics),
    )
    return _json_response(
        QueryListResponse(
            dataset=dataset,
            record=record,
            queries=queries,
            diagnostics=parsed.diagnostics,
        )
    )


@router.get("/{dataset}/records/{record}/queries/{index}")
async def get_query_graph(
    dataset: str,
    record: str,
    index: int,
    data_root: DataRootDep,
    processor: ProcessorDep,
    exclude_redundant: ExcludeRedundantQuery = None,
):
    """Build the processed graph for one query, with metric ranges for filters."""
    raw = await _load_query(dataset, record, index, data_root)
    processed, ranges = await asyncio.to_thread(
        _process, processor, raw, exclude_redundant
    )
    return _json_response(
        QueryGraphResponse(
            dataset=dataset, record=record, index=index, graph=processed, ranges=ranges
        )
    )


@router.post("/{dataset}/records/{record}/queries/{index}/filter")
async def filter_query_graph(
    dataset: str,
    record: str,
    index: int,
    filters: FilterConfig,
    data_root: DataRootDep,
    processor: ProcessorDep,
    exclude_redundant: ExcludeRedundantQuery = None,
):
    """Apply inclusive metric bounds to a query graph.

    Ranges in the response are those of the unfiltered graph, so the
    caller can keep its bound controls stable.
    """
    raw = await _load_query(dataset, record, index, data_root)
    processed, ranges = await asyncio.to_thread(
        _process, processor, raw, exclude_redundant
    )
    filtered = apply_filters(processed, filters)
    return _json_response(
        QueryGraphResponse(
            dataset=dataset, record=record, index=index, graph=filtered, ranges=ranges
        )
    )
