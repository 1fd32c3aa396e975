"""Unit tests for dynamic group criteria parsing and validation."""

import pytest

from core.exceptions import ErrorCode, InvalidCriteriaError
from domain.entities.criteria import (
    DYNAMIC_GROUP_TYPES,
    ActivityMetric,
    DynamicGroupType,
    MostActiveCriteria,
    NoLoginsCriteria,
    RecentLoginsCriteria,
    TopLearnersCriteria,
    criteria_to_dict,
    parse_criteria,
    validate_criteria,
)


class TestParseCriteria:
    def test_parses_recent_logins(self):
        criteria = parse_criteria("recent_logins", {"type": "recent_logins", "days": 7})

        assert criteria == RecentLoginsCriteria(days=7)

    def test_type_key_is_optional(self):
        assert parse_criteria(DynamicGroupType.NO_LOGINS, {"days": 14}) == NoLoginsCriteria(
            days=14
        )

    def test_parses_scored_criteria(self):
        criteria = parse_criteria(
            "most_active",
            {
                "type": "most_active",
                "metrics": ["streaks", "time_in_course"],
                "period_days": 30,
                "threshold": 50,
            },
        )

        assert isinstance(criteria, MostActiveCriteria)
        assert criteria.metrics == (ActivityMetric.STREAKS, ActivityMetric.TIME_IN_COURSE)
        assert criteria.threshold == 50.0

    def test_duplicate_metrics_are_collapsed(self):
        criteria = parse_criteria(
            "top_learners",
            {"metrics": ["credits_earned", "credits_earned"], "period_days": 5, "threshold": 0},
        )

        assert criteria.metrics == (ActivityMetric.CREDITS_EARNED,)

    def test_rejects_unknown_type(self):
        with pytest.raises(InvalidCriteriaError) as exc_info:
            parse_criteria("most_helpful", {"days": 3})

        assert exc_info.value.error_code == ErrorCode.INVALID_CRITERIA

    def test_rejects_mismatched_type(self):
        with pytest.raises(InvalidCriteriaError):
            parse_criteria("recent_logins", {"type": "no_logins", "days": 3})

    def test_rejects_metric_from_another_variant(self):
        with pytest.raises(InvalidCriteriaError) as exc_info:
            parse_criteria(
                "most_talkative",
                {"metrics": ["streaks"], "period_days": 30, "threshold": 10},
            )

        assert exc_info.value.details == {"field": "metrics"}

    def test_rejects_unknown_metric(self):
        with pytest.raises(InvalidCriteriaError):
            parse_criteria(
                "most_active", {"metrics": ["karma"], "period_days": 30, "threshold": 10}
            )

    @pytest.mark.parametrize("days", [None, "30", 2.5, True])
    def test_rejects_non_integer_days(self, days):
        with pytest.raises(InvalidCriteriaError):
            parse_criteria("recent_logins", {"days": days})

    def test_rejects_missing_threshold(self):
        with pytest.raises(InvalidCriteriaError):
            parse_criteria("top_learners", {"metrics": ["time_spent"], "period_days": 30})


class TestValidateCriteria:
    def test_accepts_defaults(self):
        for info in DYNAMIC_GROUP_TYPES.values():
            validate_criteria(info.default_criteria)

    @pytest.mark.parametrize("days", [0, -1])
    def test_rejects_non_positive_days(self, days):
        with pytest.raises(InvalidCriteriaError):
            validate_criteria(RecentLoginsCriteria(days=days))

    @pytest.mark.parametrize("threshold", [-0.1, 100.5])
    def test_rejects_threshold_out_of_range(self, threshold):
        criteria = TopLearnersCriteria(
            metrics=(ActivityMetric.TIME_SPENT,), period_days=30, threshold=threshold
        )

        with pytest.raises(InvalidCriteriaError):
            validate_criteria(criteria)

    @pytest.mark.parametrize("threshold", [0, 100])
    def test_threshold_bounds_are_allowed(self, threshold):
        validate_criteria(
            TopLearnersCriteria(
                metrics=(ActivityMetric.TIME_SPENT,), period_days=1, threshold=threshold
            )
        )

    def test_rejects_empty_metrics(self):
        with pytest.raises(InvalidCriteriaError):
            validate_criteria(MostActiveCriteria(metrics=(), period_days=30, threshold=50))

    def test_rejects_non_positive_period(self):
        with pytest.raises(InvalidCriteriaError):
            validate_criteria(
                MostActiveCriteria(
                    metrics=(ActivityMetric.STREAKS,), period_days=0, threshold=50
                )
            )


class TestDefaults:
    def test_every_type_has_metadata(self):
        assert set(DYNAMIC_GROUP_TYPES) == set(DynamicGroupType)

    def test_defaults_select_all_variant_metrics(self):
        info = DYNAMIC_GROUP_TYPES[DynamicGroupType.MOST_ACTIVE]

        assert set(info.default_criteria.metrics) == MostActiveCriteria.allowed_metrics
        assert info.default_criteria.period_days == 30
        assert info.default_criteria.threshold == 50

    def test_serialized_defaults_parse_back(self):
        for group_type, info in DYNAMIC_GROUP_TYPES.items():
            payload = criteria_to_dict(info.default_criteria)

            assert payload["type"] == group_type.value
            assert parse_criteria(group_type, payload) == info.default_criteria
