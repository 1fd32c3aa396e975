"""Dynamic group criteria: one variant per dynamic group type.

The stored JSON payload of an ``employee_groups`` row is parsed into one of
the dataclasses below, keyed on the group's ``dynamic_type``. Parsing checks
shape only (known type, required fields, known metric names); range rules are
enforced separately by :func:`validate_criteria` when criteria are written.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar

from core.exceptions import InvalidCriteriaError


class DynamicGroupType(StrEnum):
    """Supported dynamic group types."""

    RECENT_LOGINS = "recent_logins"
    NO_LOGINS = "no_logins"
    MOST_ACTIVE = "most_active"
    TOP_LEARNERS = "top_learners"
    MOST_TALKATIVE = "most_talkative"


class ActivityMetric(StrEnum):
    """Metrics a threshold-based criteria can score users on."""

    STREAKS = "streaks"
    TIME_IN_COURSE = "time_in_course"
    COURSES_COMPLETED = "courses_completed"
    COLLECTION_UTILIZATION = "collection_utilization"
    TIME_SPENT = "time_spent"
    CREDITS_EARNED = "credits_earned"
    CONVERSATION_COUNT = "conversation_count"
    MESSAGE_COUNT = "message_count"


@dataclass(frozen=True)
class RecentLoginsCriteria:
    """Users active within the last ``days`` days."""

    type: ClassVar[DynamicGroupType] = DynamicGroupType.RECENT_LOGINS

    days: int


@dataclass(frozen=True)
class NoLoginsCriteria:
    """Users with no activity within the last ``days`` days."""

    type: ClassVar[DynamicGroupType] = DynamicGroupType.NO_LOGINS

    days: int


@dataclass(frozen=True)
class ScoredCriteria:
    """Threshold criteria shared by the metric-scoring group types.

    ``threshold`` is a 0-100 score; a user is a member when the mean of their
    normalized metric scores is at least the threshold.
    """

    allowed_metrics: ClassVar[frozenset[ActivityMetric]] = frozenset()

    metrics: tuple[ActivityMetric, ...]
    period_days: int
    threshold: float


@dataclass(frozen=True)
class MostActiveCriteria(ScoredCriteria):
    type: ClassVar[DynamicGroupType] = DynamicGroupType.MOST_ACTIVE
    allowed_metrics: ClassVar[frozenset[ActivityMetric]] = frozenset(
        {
            ActivityMetric.STREAKS,
            ActivityMetric.TIME_IN_COURSE,
            ActivityMetric.COURSES_COMPLETED,
            ActivityMetric.COLLECTION_UTILIZATION,
        }
    )


@dataclass(frozen=True)
class TopLearnersCriteria(ScoredCriteria):
    type: ClassVar[DynamicGroupType] = DynamicGroupType.TOP_LEARNERS
    allowed_metrics: ClassVar[frozenset[ActivityMetric]] = frozenset(
        {
            ActivityMetric.TIME_SPENT,
            ActivityMetric.COURSES_COMPLETED,
            ActivityMetric.CREDITS_EARNED,
        }
    )


@dataclass(frozen=True)
class MostTalkativeCriteria(ScoredCriteria):
    type: ClassVar[DynamicGroupType] = DynamicGroupType.MOST_TALKATIVE
    allowed_metrics: ClassVar[frozenset[ActivityMetric]] = frozenset(
        {
            ActivityMetric.CONVERSATION_COUNT,
            ActivityMetric.MESSAGE_COUNT,
        }
    )


DynamicGroupCriteria = (
    RecentLoginsCriteria
    | NoLoginsCriteria
    | MostActiveCriteria
    | TopLearnersCriteria
    | MostTalkativeCriteria
)

_SCORED_VARIANTS: dict[DynamicGroupType, type[ScoredCriteria]] = {
    DynamicGroupType.MOST_ACTIVE: MostActiveCriteria,
    DynamicGroupType.TOP_LEARNERS: TopLearnersCriteria,
    DynamicGroupType.MOST_TALKATIVE: MostTalkativeCriteria,
}


@dataclass(frozen=True)
class DynamicGroupTypeInfo:
    """Display metadata and defaults for a dynamic group type."""

    name: str
    description: str
    default_criteria: DynamicGroupCriteria


DYNAMIC_GROUP_TYPES: dict[DynamicGroupType, DynamicGroupTypeInfo] = {
    DynamicGroupType.RECENT_LOGINS: DynamicGroupTypeInfo(
        name="Recent Logins",
        description="Users who have been active within the specified time period",
        default_criteria=RecentLoginsCriteria(days=30),
    ),
    DynamicGroupType.NO_LOGINS: DynamicGroupTypeInfo(
        name="No Logins",
        description="Users who have not been active within the specified time period",
        default_criteria=NoLoginsCriteria(days=30),
    ),
    DynamicGroupType.MOST_ACTIVE: DynamicGroupTypeInfo(
        name="Most Active",
        description="Users with highest overall platform engagement",
        default_criteria=MostActiveCriteria(
            metrics=(
                ActivityMetric.STREAKS,
                ActivityMetric.TIME_IN_COURSE,
                ActivityMetric.COURSES_COMPLETED,
                ActivityMetric.COLLECTION_UTILIZATION,
            ),
            period_days=30,
            threshold=50,
        ),
    ),
    DynamicGroupType.TOP_LEARNERS: DynamicGroupTypeInfo(
        name="Top Learners",
        description="Users with highest learning metrics",
        default_criteria=TopLearnersCriteria(
            metrics=(
                ActivityMetric.TIME_SPENT,
                ActivityMetric.COURSES_COMPLETED,
                ActivityMetric.CREDITS_EARNED,
            ),
            period_days=30,
            threshold=50,
        ),
    ),
    DynamicGroupType.MOST_TALKATIVE: DynamicGroupTypeInfo(
        name="Most Talkative",
        description="Users with highest conversation activity",
        default_criteria=MostTalkativeCriteria(
            metrics=(
                ActivityMetric.CONVERSATION_COUNT,
                ActivityMetric.MESSAGE_COUNT,
            ),
            period_days=30,
            threshold=50,
        ),
    ),
}


def parse_criteria(
    dynamic_type: DynamicGroupType | str, payload: Mapping[str, Any]
) -> DynamicGroupCriteria:
    """Build the criteria variant for ``dynamic_type`` from a JSON payload.

    Raises:
        InvalidCriteriaError: If the type is unknown, the payload names a
            different type, or a required field is missing or mistyped.
    """
    try:
        group_type = DynamicGroupType(dynamic_type)
    except ValueError:
        raise InvalidCriteriaError(
            f"Unknown dynamic group type: {dynamic_type}", field="type"
        ) from None

    declared = payload.get("type", group_type.value)
    if declared != group_type.value:
        raise InvalidCriteriaError(
            f"Criteria type '{declared}' does not match group type '{group_type.value}'",
            field="type",
        )

    if group_type in (DynamicGroupType.RECENT_LOGINS, DynamicGroupType.NO_LOGINS):
        days = _require_int(payload, "days")
        if group_type is DynamicGroupType.RECENT_LOGINS:
            return RecentLoginsCriteria(days=days)
        return NoLoginsCriteria(days=days)

    variant = _SCORED_VARIANTS[group_type]
    return variant(
        metrics=_parse_metrics(payload, variant.allowed_metrics),
        period_days=_require_int(payload, "period_days"),
        threshold=_require_number(payload, "threshold"),
    )


def validate_criteria(criteria: DynamicGroupCriteria) -> None:
    """Enforce the value ranges that parsing leaves unchecked.

    Raises:
        InvalidCriteriaError: On a non-positive window, an empty metric list
            or a threshold outside 0-100.
    """
    if isinstance(criteria, (RecentLoginsCriteria, NoLoginsCriteria)):
        if criteria.days <= 0:
            raise InvalidCriteriaError("days must be greater than 0", field="days")
        return

    if criteria.period_days <= 0:
        raise InvalidCriteriaError(
            "period_days must be greater than 0", field="period_days"
        )
    if not criteria.metrics:
        raise InvalidCriteriaError("At least one metric is required", field="metrics")
    if not 0 <= criteria.threshold <= 100:
        raise InvalidCriteriaError(
            "threshold must be between 0 and 100", field="threshold"
        )


def criteria_to_dict(criteria: DynamicGroupCriteria) -> dict[str, Any]:
    """Serialize criteria to the JSON payload stored on the group row."""
    if isinstance(criteria, (RecentLoginsCriteria, NoLoginsCriteria)):
        return {"type": criteria.type.value, "days": criteria.days}
    return {
        "type": criteria.type.value,
        "metrics": [metric.value for metric in criteria.metrics],
        "period_days": criteria.period_days,
        "threshold": criteria.threshold,
    }


def _require_int(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCriteriaError(f"{key} must be an integer", field=key)
    return value


def _require_number(payload: Mapping[str, Any], key: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidCriteriaError(f"{key} must be a number", field=key)
    return float(value)


def _parse_metrics(
    payload: Mapping[str, Any], allowed: frozenset[ActivityMetric]
) -> tuple[ActivityMetric, ...]:
    raw = payload.get("metrics")
    if not isinstance(raw, (list, tuple)):
        raise InvalidCriteriaError("metrics must be a list", field="metrics")

    metrics: list[ActivityMetric] = []
    for name in raw:
        try:
            metric = ActivityMetric(name)
        except ValueError:
            raise InvalidCriteriaError(f"Unknown metric: {name}", field="metrics") from None
        if metric not in allowed:
            raise InvalidCriteriaError(
                f"Metric '{metric.value}' is not available for this group type",
                field="metrics",
            )
        # Duplicates would double a metric's weight in the mean
        if metric not in metrics:
            metrics.append(metric)
    return tuple(metrics)
