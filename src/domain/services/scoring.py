"""Score users on activity metrics and filter them against a threshold.

Every candidate user gets a score on every selected metric, so users with no
activity rows score 0 instead of dropping out of the result.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import TypeVar
from uuid import UUID

MetricT = TypeVar("MetricT")

MAX_SCORE = 100.0
SCORE_PRECISION = 9


def normalize(raw: Mapping[UUID, float], user_ids: Iterable[UUID]) -> dict[UUID, float]:
    """Scale raw metric values to 0-100 against the highest candidate value.

    The divisor is floored at 1, so when nobody has activity everyone scores
    0. Negative raw values (e.g. credit reversals) count as 0.
    """
    values = {user_id: max(float(raw.get(user_id) or 0), 0.0) for user_id in user_ids}
    ceiling = max([*values.values(), 1.0])
    return {user_id: MAX_SCORE * value / ceiling for user_id, value in values.items()}


def composite_scores(
    raw_by_metric: Mapping[MetricT, Mapping[UUID, float]],
    metrics: Sequence[MetricT],
    user_ids: Sequence[UUID],
) -> dict[UUID, float]:
    """Average each user's normalized score across ``metrics``.

    A metric missing from ``raw_by_metric`` scores 0 for everyone but still
    counts towards the mean.
    """
    if not metrics:
        return {user_id: 0.0 for user_id in user_ids}

    totals = dict.fromkeys(user_ids, 0.0)
    for metric in metrics:
        scores = normalize(raw_by_metric.get(metric, {}), user_ids)
        for user_id, score in scores.items():
            totals[user_id] += score

    # Rounded so a mean landing exactly on a threshold is not lost to float error
    return {
        user_id: round(total / len(metrics), SCORE_PRECISION)
        for user_id, total in totals.items()
    }


def select_at_threshold(scores: Mapping[UUID, float], threshold: float) -> set[UUID]:
    """Users whose score meets or exceeds ``threshold``."""
    return {user_id for user_id, score in scores.items() if score >= threshold}
