"""Per-metric activity collectors for dynamic group scoring.

Each collector maps a candidate user set and a cutoff to ``user_id -> raw
value`` for one metric. Collectors run concurrently, each in its own unit of
work, under a shared concurrency limit and a per-collector timeout. A
collector that fails or times out is logged and yields an empty mapping so
the remaining metrics are still scored.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import datetime
from enum import StrEnum
from typing import TypeVar
from uuid import UUID

import structlog

from core.config import settings
from domain.entities.criteria import ActivityMetric
from domain.repositories.unit_of_work import IUnitOfWork
from domain.repositories.user_activity_repository import IUserActivityRepository

logger = structlog.get_logger()

T = TypeVar("T")

CollectorFn = Callable[
    [IUserActivityRepository, Sequence[UUID], datetime],
    Awaitable[Mapping[UUID, float]],
]


class ActivitySignal(StrEnum):
    """Sources that count a user as recently active."""

    PROGRESS = "progress"
    CONVERSATIONS = "conversations"
    STREAKS = "streaks"


async def _collect_streaks(
    activity: IUserActivityRepository, user_ids: Sequence[UUID], since: datetime
) -> Mapping[UUID, float]:
    return await activity.max_current_streak(user_ids, since.date())


async def _collect_view_time(
    activity: IUserActivityRepository, user_ids: Sequence[UUID], since: datetime
) -> Mapping[UUID, float]:
    return await activity.sum_view_time(user_ids, since)


async def _collect_completed_courses(
    activity: IUserActivityRepository, user_ids: Sequence[UUID], since: datetime
) -> Mapping[UUID, float]:
    return await activity.count_completed_courses(user_ids, since)


async def _collect_collection_items(
    activity: IUserActivityRepository, user_ids: Sequence[UUID], since: datetime
) -> Mapping[UUID, float]:
    # All-time: collection size is not bounded by the criteria window
    return await activity.count_collection_items(user_ids)


async def _collect_credits(
    activity: IUserActivityRepository, user_ids: Sequence[UUID], since: datetime
) -> Mapping[UUID, float]:
    return await activity.sum_credits(user_ids, since)


async def _collect_conversations(
    activity: IUserActivityRepository, user_ids: Sequence[UUID], since: datetime
) -> Mapping[UUID, float]:
    return await activity.count_conversations(user_ids, since)


async def _collect_messages(
    activity: IUserActivityRepository, user_ids: Sequence[UUID], since: datetime
) -> Mapping[UUID, float]:
    return await activity.count_user_messages(user_ids, since)


METRIC_COLLECTORS: dict[ActivityMetric, CollectorFn] = {
    ActivityMetric.STREAKS: _collect_streaks,
    ActivityMetric.TIME_IN_COURSE: _collect_view_time,
    ActivityMetric.COURSES_COMPLETED: _collect_completed_courses,
    ActivityMetric.COLLECTION_UTILIZATION: _collect_collection_items,
    ActivityMetric.TIME_SPENT: _collect_view_time,
    ActivityMetric.CREDITS_EARNED: _collect_credits,
    ActivityMetric.CONVERSATION_COUNT: _collect_conversations,
    ActivityMetric.MESSAGE_COUNT: _collect_messages,
}


class MetricCollector:
    """Runs activity collectors with failure isolation."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        timeout_seconds: float = settings.dynamic_group_collector_timeout_seconds,
        concurrency: int = settings.dynamic_group_collector_concurrency,
    ) -> None:
        self._uow_factory = uow_factory
        self._timeout = timeout_seconds
        self._concurrency = max(concurrency, 1)

    async def collect_metrics(
        self,
        metrics: Sequence[ActivityMetric],
        user_ids: Sequence[UUID],
        since: datetime,
    ) -> dict[ActivityMetric, dict[UUID, float]]:
        """Collect raw values for each metric; failed metrics map to ``{}``."""

        def fetch(
            collector: CollectorFn,
        ) -> Callable[[IUserActivityRepository], Awaitable[dict[UUID, float]]]:
            async def run(activity: IUserActivityRepository) -> dict[UUID, float]:
                return dict(await collector(activity, user_ids, since))

            return run

        fetches = {metric: fetch(METRIC_COLLECTORS[metric]) for metric in metrics}
        return await self._gather(fetches, default=dict)

    async def collect_active_users(
        self, user_ids: Sequence[UUID], since: datetime
    ) -> dict[ActivitySignal, set[UUID]]:
        """Users active on/after ``since``, per activity signal."""

        async def progress(activity: IUserActivityRepository) -> set[UUID]:
            return await activity.users_with_progress_since(user_ids, since)

        async def conversations(activity: IUserActivityRepository) -> set[UUID]:
            return await activity.users_with_conversations_since(user_ids, since)

        async def streaks(activity: IUserActivityRepository) -> set[UUID]:
            return await activity.users_with_streaks_since(user_ids, since.date())

        return await self._gather(
            {
                ActivitySignal.PROGRESS: progress,
                ActivitySignal.CONVERSATIONS: conversations,
                ActivitySignal.STREAKS: streaks,
            },
            default=set,
        )

    async def _gather(
        self,
        fetches: Mapping[StrEnum, Callable[[IUserActivityRepository], Awaitable[T]]],
        default: Callable[[], T],
    ) -> dict:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def run(
            name: StrEnum,
            fetch: Callable[[IUserActivityRepository], Awaitable[T]],
        ) -> tuple[StrEnum, T]:
            async with semaphore:
                try:
                    return name, await asyncio.wait_for(
                        self._in_session(fetch), timeout=self._timeout
                    )
                except TimeoutError:
                    logger.warning(
                        "metric_collection_timed_out",
                        metric=name.value,
                        timeout_seconds=self._timeout,
                    )
                except Exception as e:
                    logger.warning(
                        "metric_collection_failed",
                        metric=name.value,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                return name, default()

        results = await asyncio.gather(
            *(run(name, fetch) for name, fetch in fetches.items())
        )
        return dict(results)

    async def _in_session(
        self, fetch: Callable[[IUserActivityRepository], Awaitable[T]]
    ) -> T:
        async with self._uow_factory() as uow:
            return await fetch(uow.activity)
