"""
Record parser for rule-mining output files.

Accepts raw text in any of the shapes the mining tools have produced:

- a single JSON array of query records
- a single JSON object (treated as a one-element array)
- newline-delimited JSON, one record per line, optionally with a trailing
  comma per line and blank lines in between

Malformed lines never abort a load: each one is skipped and reported as a
ParseDiagnostic. Every decoded record passes through normalize_record()
so the rest of the pipeline only ever sees the named-field shape.
"""

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
import structlog

from src.domain.models.pipeline_contracts import ParseDiagnostic, ParseResult
from src.domain.models.raw_record import RawQueryRecord

log = structlog.get_logger(__name__)

DIAGNOSTIC_CONTENT_LIMIT = 100

# Positional tuple layouts
NODE_FIELDS = ("id", "rule", "bodySize", "supp", "originalSurprisal", "newSurprisal")
EDGE_FIELDS = ("source", "target", "bodySize", "supp", "lift")


def parse_records(text: str) -> ParseResult:
    """
    Parse raw text into query records, preserving input order.

    Args:
        text: Entire file or response body

    Returns:
        ParseResult with the records and one diagnostic per skipped line
    """
    diagnostics: List[ParseDiagnostic] = []

    elements = _parse_whole_document(text)
    if elements is None:
        elements = list(_parse_lines(text, diagnostics))

    records: List[RawQueryRecord] = []
    for position, element in elements:
        record = _to_record(element, position, diagnostics)
        if record is not None:
            records.append(record)

    log.info(
        "records_parsed",
        record_count=len(records),
        skipped_count=len(diagnostics),
    )

    return ParseResult(records=records, diagnostics=diagnostics)


def _parse_whole_document(text: str) -> Optional[List[Tuple[int, Any]]]:
    """Decode the whole text as one JSON value.

    Returns None when the text is not a JSON array or object, so the
    caller falls back to line-oriented parsing.
    """
    try:
        parsed = json.loads(text)
    except ValueError:
        return None

    if isinstance(parsed, list):
        return list(enumerate(parsed, start=1))
    if isinstance(parsed, dict):
        return [(1, parsed)]
    return None


def _parse_lines(
    text: str, diagnostics: List[ParseDiagnostic]
) -> Iterable[Tuple[int, Any]]:
    """Yield (line_number, value) for every line that decodes."""
    for index, raw_line in enumerate(text.strip().split("\n")):
        line = raw_line.strip()
        if len(line) <= 1:
            continue
        if line.endswith(","):
            line = line[:-1]

        try:
            yield index + 1, json.loads(line)
        except ValueError as e:
            _record_diagnostic(diagnostics, index + 1, line, str(e))


def _to_record(
    element: Any, position: int, diagnostics: List[ParseDiagnostic]
) -> Optional[RawQueryRecord]:
    if not isinstance(element, dict):
        _record_diagnostic(
            diagnostics,
            position,
            json.dumps(element, default=str),
            f"expected a JSON object, got {type(element).__name__}",
        )
        return None

    try:
        return RawQueryRecord.model_validate(normalize_record(element))
    except PydanticValidationError as e:
        _record_diagnostic(
            diagnostics,
            position,
            json.dumps(element, default=str),
            f"invalid record: {e.error_count()} validation error(s)",
        )
        return None


def _record_diagnostic(
    diagnostics: List[ParseDiagnostic], line_number: int, content: str, error: str
) -> None:
    diagnostic = ParseDiagnostic(
        line_number=line_number,
        content=content[:DIAGNOSTIC_CONTENT_LIMIT],
        error=error,
    )
    diagnostics.append(diagnostic)
    log.warning(
        "record_line_parse_failed",
        line_number=diagnostic.line_number,
        content=diagnostic.content,
        error=error,
    )


# =============================================================================
# Format adapter
# =============================================================================


def is_positional_record(raw: Dict[str, Any]) -> bool:
    """True for records that list nodes/edges as flat tuples.

    Named-field records (anything with ruleInfo or DepInfo) are never
    positional, even if they also carry nodes/edges keys.
    """
    if any(key in raw for key in ("ruleInfo", "DepInfo", "depInfo")):
        return False
    return any(
        isinstance(raw.get(key), list)
        and any(isinstance(item, list) for item in raw[key])
        for key in ("nodes", "edges")
    )


def normalize_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rewrite a positional-tuple record into the named-field shape.

    Positional layout:
        nodes: [[id, rule, bodySize, supp, originalSurprisal?, newSurprisal?], ...]
        edges: [[source, target, bodySize, supp, lift], ...]
        candidates[].nodes: rule ids
        candidates[].edges: indices into the edges array

    A candidate's rule list becomes its node ids followed by the endpoints
    of the edges it references, first occurrence wins. Candidates without
    their own originalSurprisal/newSurprisal take them from their top
    (first) driving rule.

    Named-field records are returned unchanged.
    """
    if not is_positional_record(raw):
        return raw

    node_rows = [_as_row(item, NODE_FIELDS) for item in raw.get("nodes") or []]
    node_rows = [row for row in node_rows if row is not None]
    edge_rows = [_as_row(item, EDGE_FIELDS) for item in raw.get("edges") or []]

    rule_info: Dict[str, Dict[str, Any]] = {}
    for row in node_rows:
        rule_info[str(row["id"])] = {
            "rule": row["rule"],
            "bodySize": row["bodySize"],
            "supp": row["supp"],
        }

    # Index -> (source, target); built once, shared by all candidates
    edge_endpoints: List[Optional[Tuple[Any, Any]]] = []
    dep_info: Dict[str, Dict[str, Dict[str, Any]]] = {}
    for row in edge_rows:
        if row is None:
            edge_endpoints.append(None)
            continue
        edge_endpoints.append((row["source"], row["target"]))
        dep_info.setdefault(str(row["source"]), {})[str(row["target"])] = {
            "bodySize": row["bodySize"],
            "supp": row["supp"],
            "lift": row["lift"],
        }

    scores_by_rule = {
        str(row["id"]): (row["originalSurprisal"], row["newSurprisal"])
        for row in node_rows
    }

    candidates = [
        _normalize_candidate(c, edge_endpoints, scores_by_rule)
        for c in raw.get("candidates") or []
        if isinstance(c, dict)
    ]

    normalized = {
        k: v for k, v in raw.items() if k not in ("nodes", "edges", "candidates")
    }
    normalized.update(
        {
            "rules": raw.get("rules") or [row["id"] for row in node_rows],
            "ruleInfo": rule_info,
            "DepInfo": dep_info,
            "candidates": candidates,
        }
    )

    log.debug(
        "positional_record_normalized",
        node_count=len(node_rows),
        edge_count=len(edge_rows),
        candidate_count=len(candidates),
    )
    return normalized


def _as_row(item: Any, fields: Tuple[str, ...]) -> Optional[Dict[str, Any]]:
    if not isinstance(item, list) or len(item) < 2:
        return None
    padded = list(item[: len(fields)]) + [None] * (len(fields) - len(item))
    return dict(zip(fields, padded))


def _normalize_candidate(
    candidate: Dict[str, Any],
    edge_endpoints: List[Optional[Tuple[Any, Any]]],
    scores_by_rule: Dict[str, Tuple[Any, Any]],
) -> Dict[str, Any]:
    if isinstance(candidate.get("rules"), list):
        rule_ids = list(candidate["rules"])
    else:
        rule_ids = list(candidate.get("nodes") or [])
        for index in candidate.get("edges") or []:
            endpoints = _edge_at(edge_endpoints, index)
            if endpoints is None:
                log.debug("candidate_edge_index_ignored", edge_index=index)
                continue
            rule_ids.extend(endpoints)

    seen = set()
    unique_ids = []
    for rule_id in rule_ids:
        key = str(rule_id)
        if key not in seen:
            seen.add(key)
            unique_ids.append(rule_id)

    normalized = {k: v for k, v in candidate.items() if k not in ("nodes", "edges")}
    normalized["rules"] = unique_ids

    if unique_ids and "originalSurprisal" not in normalized:
        original, new = scores_by_rule.get(str(unique_ids[0]), (None, None))
        normalized["originalSurprisal"] = original
        normalized.setdefault("newSurprisal", new)

    return normalized


def _edge_at(
    edge_endpoints: List[Optional[Tuple[Any, Any]]], index: Any
) -> Optional[Tuple[Any, Any]]:
    if isinstance(index, bool) or not isinstance(index, int):
        return None
    if index < 0 or index >= len(edge_endpoints):
        return None
    return edge_endpoints[index]
