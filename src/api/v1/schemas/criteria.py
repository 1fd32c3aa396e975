"""Pydantic schemas for dynamic group criteria.

Criteria bodies are a union discriminated on ``type``. Value ranges and
metric names are checked by the domain so that every criteria problem is
reported as ``INVALID_CRITERIA``.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, RootModel


class RecentLoginsCriteriaBody(BaseModel):
    """Users active within the last ``days`` days."""

    type: Literal["recent_logins"]
    days: int


class NoLoginsCriteriaBody(BaseModel):
    """Users with no activity within the last ``days`` days."""

    type: Literal["no_logins"]
    days: int


class _ScoredCriteriaBody(BaseModel):
    metrics: list[str]
    period_days: int
    threshold: float


class MostActiveCriteriaBody(_ScoredCriteriaBody):
    type: Literal["most_active"]


class TopLearnersCriteriaBody(_ScoredCriteriaBody):
    type: Literal["top_learners"]


class MostTalkativeCriteriaBody(_ScoredCriteriaBody):
    type: Literal["most_talkative"]


CriteriaBody = Annotated[
    Union[
        RecentLoginsCriteriaBody,
        NoLoginsCriteriaBody,
        MostActiveCriteriaBody,
        TopLearnersCriteriaBody,
        MostTalkativeCriteriaBody,
    ],
    Field(discriminator="type"),
]


class UpdateCriteriaRequest(RootModel[CriteriaBody]):
    """New criteria for a dynamic group; ``type`` must match the group."""
