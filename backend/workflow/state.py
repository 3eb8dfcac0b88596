"""Lookup and copy-on-write helpers shared by the reducers.

Reducers never mutate the objects they receive. They build replacement
objects with ``model_copy(update=...)`` and swap them into a new ``AppState``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from models.schemas import (
    AppState, EditHistoryEntry, Hackathon, HackathonStage, Submission, Team,
)
from workflow.errors import NotFoundError, ValidationError

M = TypeVar("M", bound=BaseModel)


def get_hackathon(state: AppState, hackathon_id: str) -> Hackathon:
    for h in state.hackathons:
        if h.id == hackathon_id:
            return h
    raise NotFoundError("Hackathon", hackathon_id)


def find_hackathon(state: AppState, hackathon_id: Optional[str]) -> Optional[Hackathon]:
    return next((h for h in state.hackathons if h.id == hackathon_id), None)


def get_submission(state: AppState, submission_id: str) -> Submission:
    for s in state.submissions:
        if s.id == submission_id:
            return s
    raise NotFoundError("Submission", submission_id)


def get_team(state: AppState, team_id: str) -> Team:
    for t in state.teams:
        if t.id == team_id:
            return t
    raise NotFoundError("Team", team_id)


def get_stage(hackathon: Hackathon, stage_id: str) -> HackathonStage:
    stage = hackathon.get_stage(stage_id)
    if stage is None:
        raise NotFoundError("Stage", stage_id)
    return stage


def replace_hackathon(state: AppState, hackathon: Hackathon) -> AppState:
    return state.model_copy(
        update={"hackathons": [hackathon if h.id == hackathon.id else h for h in state.hackathons]}
    )


def replace_submission(state: AppState, submission: Submission) -> AppState:
    return state.model_copy(
        update={"submissions": [submission if s.id == submission.id else s for s in state.submissions]}
    )


def with_history(submission: Submission, user_email: str, action: str, now: datetime) -> Submission:
    entry = EditHistoryEntry(timestamp=now, user_email=user_email, action=action)
    return submission.model_copy(update={"edit_history": [*submission.edit_history, entry]})


def parse_model(model_cls: Type[M], data: Any) -> M:
    """``model_cls.model_validate`` that reports bad input as a domain ``ValidationError``."""
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid {model_cls.__name__}: {problems}")
