"""Metric ranges and range-filter configuration.

MetricRanges reports the observed min/max of each metric so filter bounds
can be configured; FilterConfig carries the inclusive bounds a user picked.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class MetricBounds(BaseModel):
    """Inclusive [min, max] interval."""

    model_config = ConfigDict(frozen=True, ser_json_inf_nan="strings")

    min: float
    max: float

    @model_validator(mode="after")
    def check_order(self) -> "MetricBounds":
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        return self

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


class EntityMetricRanges(BaseModel):
    """Observed ranges over one entity class (nodes or edges).

    A metric is None when the entity list was empty; that is distinct
    from a valid zero-width range where min == max.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        ser_json_inf_nan="strings",
    )

    surprisal: Optional[MetricBounds] = None
    supp: Optional[MetricBounds] = None
    body_size: Optional[MetricBounds] = None

    @property
    def is_empty(self) -> bool:
        return self.surprisal is None and self.supp is None and self.body_size is None


class MetricRanges(BaseModel):
    """Observed ranges for nodes and edges of a processed query."""

    model_config = ConfigDict(frozen=True, ser_json_inf_nan="strings")

    node: EntityMetricRanges = Field(default_factory=EntityMetricRanges)
    edge: EntityMetricRanges = Field(default_factory=EntityMetricRanges)


class FilterConfig(BaseModel):
    """Inclusive bounds applied to node metrics by the range filter."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        ser_json_inf_nan="strings",
    )

    surprisal: MetricBounds
    supp: MetricBounds
    body_size: MetricBounds

    @classmethod
    def from_ranges(cls, ranges: EntityMetricRanges) -> "FilterConfig":
        """Bounds equal to the observed node ranges (a no-op filter).

        Raises:
            ValueError: If the ranges came from an empty node list
        """
        if ranges.is_empty:
            raise ValueError("cannot derive filter bounds from an empty node list")
        return cls(
            surprisal=ranges.surprisal,
            supp=ranges.supp,
            body_size=ranges.body_size,
        )
