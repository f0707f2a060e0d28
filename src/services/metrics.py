"""Confidence and surprisal from raw rule counts.

    conf      = supp / (bodySize + num_unseen)     (0 if the denominator <= 0)
    surprisal = -ln(1 - conf)                      (0 if conf <= 0, inf if conf >= 1)

num_unseen is a Laplace-style smoothing term: a rule whose body matched only
a handful of instances cannot reach full confidence.

Raw counts come straight from JSON and may be missing, strings, or junk;
to_number() coerces them without ever producing NaN.
"""

import math
from typing import Any, Tuple

from src.core.config import DEFAULT_NUM_UNSEEN


def to_number(value: Any, fallback: float = 0.0) -> float:
    """Coerce a raw JSON value to a finite float.

    Args:
        value: Raw value (number, numeric string, None, anything else)
        fallback: Returned when the value is missing, non-numeric or non-finite

    Returns:
        Finite float, or `fallback`
    """
    if value is None:
        return fallback
    if isinstance(value, str):
        value = value.strip()
    try:
        num = float(value)
    except (TypeError, ValueError, OverflowError):
        return fallback
    return num if math.isfinite(num) else fallback


def compute_confidence(
    body_size: float, support: float, num_unseen: float = DEFAULT_NUM_UNSEEN
) -> float:
    denominator = body_size + num_unseen
    if denominator <= 0:
        return 0.0
    return support / denominator


def compute_surprisal(confidence: float) -> float:
    """Negative log-likelihood of the rule failing.

    The conf >= 1 boundary is exact: it returns math.inf rather than a
    large finite approximation.
    """
    if confidence >= 1:
        return math.inf
    if confidence <= 0:
        return 0.0
    return -math.log(1 - confidence)


def compute_rule_metrics(
    raw_body_size: Any, raw_support: Any, num_unseen: float = DEFAULT_NUM_UNSEEN
) -> Tuple[float, float, float, float]:
    """Coerce raw counts and derive metrics.

    Returns:
        (body_size, supp, conf, surprisal)
    """
    body_size = to_number(raw_body_size)
    supp = to_number(raw_support)
    conf = compute_confidence(body_size, supp, num_unseen)
    return body_size, supp, conf, compute_surprisal(conf)
