"""Raw per-query records as read from rule-mining output.

A RawQueryRecord holds one query's mined rules, pairwise dependency
statistics between rules, and ranked candidate explanations. Numeric fields
are kept exactly as they appear in the input; they are coerced by the metric
calculator, never here.

Core Models:
    - RuleInfo: body size, support count and display text for one rule
    - DependencyInfo: statistics for a source rule -> target rule dependency
    - RawCandidate: a candidate explanation with arbitrary pass-through fields
    - RawQueryRecord: one complete record, in the named-field shape
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
import structlog

log = structlog.get_logger(__name__)


class RuleInfo(BaseModel):
    """Mined statistics for a single rule."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    body_size: Any = Field(default=None, alias="bodySize")
    support: Any = Field(default=None, description="Raw support count (support or supp)")
    rule: Optional[str] = Field(default=None, description="Rule display text")

    @model_validator(mode="before")
    @classmethod
    def _prefer_support_over_supp(cls, data: Any) -> Any:
        """Read `support`, falling back to `supp` when it is missing or null."""
        if isinstance(data, dict) and data.get("support") is None and "supp" in data:
            data = {**data, "support": data["supp"]}
        return data

    @field_validator("rule", mode="before")
    @classmethod
    def _rule_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)


class DependencyInfo(BaseModel):
    """Statistics for one source -> target dependency."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    body_size: Any = Field(default=None, alias="bodySize")
    support: Any = Field(default=None, description="Raw support count (supp or support)")
    lift: Any = None

    @model_validator(mode="before")
    @classmethod
    def _prefer_supp_over_support(cls, data: Any) -> Any:
        """Dependencies historically use `supp`; `support` is the fallback."""
        if isinstance(data, dict) and data.get("supp") is not None:
            data = {**data, "support": data["supp"]}
        return data


class RawCandidate(BaseModel):
    """Candidate explanation as it appears in the input.

    Unknown keys are kept in `model_extra` and passed through to the
    processed candidate untouched.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: Any = None
    rules: List[Any] = Field(default_factory=list)
    gt: Any = Field(default=None, alias="GT")
    original_surprisal: Any = Field(default=None, alias="originalSurprisal")
    new_surprisal: Any = Field(default=None, alias="newSurprisal")

    @field_validator("rules", mode="before")
    @classmethod
    def _rules_list(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @property
    def is_ground_truth(self) -> bool:
        """Only a literal JSON `true` marks ground truth."""
        return self.gt is True

    def passthrough(self) -> Dict[str, Any]:
        """Fields exactly as supplied in the input, keyed by their input names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class RawQueryRecord(BaseModel):
    """One query's rule-mining output in the named-field shape.

    Missing sections (rules, candidates, ruleInfo, DepInfo) are treated as
    empty. `DepInfo` takes precedence over `depInfo` when both are present.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    query: Any = None
    rules: List[Any] = Field(default_factory=list)
    candidates: List[RawCandidate] = Field(default_factory=list)
    rule_info: Dict[str, RuleInfo] = Field(default_factory=dict, alias="ruleInfo")
    dep_info: Dict[str, Dict[str, DependencyInfo]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("DepInfo", "depInfo", "dep_info"),
        serialization_alias="DepInfo",
    )

    @field_validator("rules", mode="before")
    @classmethod
    def _list_or_empty(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @field_validator("candidates", mode="before")
    @classmethod
    def _object_candidates(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return []
        return [c for c in v if isinstance(c, (dict, RawCandidate))]

    @field_validator("rule_info", mode="before")
    @classmethod
    def _normalize_rule_info(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return {}
        return {str(k): (info if isinstance(info, (dict, RuleInfo)) else {}) for k, info in v.items()}

    @field_validator("dep_info", mode="before")
    @classmethod
    def _normalize_dep_info(cls, v: Any) -> Any:
        """Skip non-object target blocks; non-object metrics count as empty."""
        if not isinstance(v, dict):
            return {}
        normalized: Dict[str, Dict[str, Any]] = {}
        for source_id, targets in v.items():
            if not isinstance(targets, dict):
                log.debug("dependency_block_skipped", source_id=str(source_id))
                continue
            normalized[str(source_id)] = {
                str(target_id): (metrics if isinstance(metrics, (dict, DependencyInfo)) else {})
                for target_id, metrics in targets.items()
            }
        return normalized

    def lookup_rule_info(self, rule_id: Any) -> Optional[RuleInfo]:
        """Find info for a rule id given either as int or as its string key."""
        info = self.rule_info.get(str(rule_id))
        if info is None and isinstance(rule_id, float) and rule_id.is_integer():
            info = self.rule_info.get(str(int(rule_id)))
        return info

    @property
    def dependency_count(self) -> int:
        return sum(len(targets) for targets in self.dep_info.values())
