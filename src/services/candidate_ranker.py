"""Candidate ranking before and after the surprisal transformation.

Each candidate carries an original and a recomputed ("new") surprisal.
Candidates are ranked independently under each, descending, 1-based. Ranks
are joined back to candidates by name, so duplicate names collapse to the
rank of the later sort position. Renamed or duplicated candidate names in
the input will therefore report a shared rank.
"""

from typing import Any, Callable, Dict, List, Sequence

from src.domain.models.pipeline_contracts import RankMaps, name_key
from src.domain.models.raw_record import RawCandidate
from src.services.metrics import to_number


def _rank_by(
    candidates: Sequence[RawCandidate], score: Callable[[RawCandidate], Any]
) -> Dict[Any, int]:
    ordered = sorted(candidates, key=lambda c: to_number(score(c)), reverse=True)
    ranks: Dict[Any, int] = {}
    for position, candidate in enumerate(ordered, start=1):
        ranks[name_key(candidate.name)] = position
    return ranks


def compute_candidate_ranks(candidates: Sequence[RawCandidate]) -> RankMaps:
    """
    Rank candidates by original and by new surprisal.

    Args:
        candidates: Candidates to rank (not modified)

    Returns:
        RankMaps keyed by candidate name
    """
    return RankMaps(
        rank_before=_rank_by(candidates, lambda c: c.original_surprisal),
        rank_after=_rank_by(candidates, lambda c: c.new_surprisal),
    )


def find_ground_truth(candidates: List[Any]) -> Any:
    """First candidate whose GT flag is literally True, or None.

    Works on raw and processed candidates alike through is_ground_truth.
    """
    for candidate in candidates:
        if candidate.is_ground_truth:
            return candidate
    return None


def find_gt_rank(candidates: Sequence[RawCandidate], rank_maps: RankMaps) -> int:
    """Rank-after of the ground-truth candidate, or -1 if there is none."""
    gt_candidate = find_ground_truth(list(candidates))
    if gt_candidate is None:
        return -1
    return rank_maps.lookup_after(gt_candidate.name)
