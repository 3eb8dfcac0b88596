"""Submission status state machine.

Statuses are tagged values (:class:`SubmissionStatus`): a phase plus, for the
stage-bound phases, the stage the submission is in. Stages are ordered by
their ``order`` field; "round N" is simply the N-th stage in that ordering.

    SUBMITTED -> PENDING_REVIEW(s1) -> SELECTED(s1) | REJECTED(s1)
    SELECTED(sN) -> PENDING_REVIEW(sN+1)          (bulk stage transition)
    PENDING_REVIEW(last) --approve--> FINALIST -> AWARD_ASSIGNED
    REJECTED(s) -> ELIMINATED

Every function here is a reducer: it takes an ``AppState`` and returns a new
one, raising from :mod:`workflow.errors` when a transition is not allowed.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

from models.schemas import (
    AppState, Award, AwardLevel, Hackathon, HackathonStage, StageDecision,
    Submission, SubmissionPhase, SubmissionStatus,
)
from utils.text import title_case
from workflow.errors import InvalidTransitionError, NotFoundError, ValidationError
from workflow.state import (
    get_hackathon, get_stage, get_submission, replace_hackathon, replace_submission, with_history,
)


_PHASE_LABELS = {
    SubmissionPhase.SUBMITTED: "Submitted - Pending Stage Assignment",
    SubmissionPhase.FINALIST: "Finalist - Awaiting Award Decision",
    SubmissionPhase.AWARD_ASSIGNED: "Award Assigned",
    SubmissionPhase.ELIMINATED: "Eliminated (Admin)",
    SubmissionPhase.DISQUALIFIED: "Disqualified",
}

# Phases that have gone past every stage; any stage is an earlier one
_PAST_ALL_STAGES = {
    SubmissionPhase.FINALIST,
    SubmissionPhase.AWARD_ASSIGNED,
    SubmissionPhase.ELIMINATED,
}


def award_label(award: Award) -> str:
    return f"{title_case(award.level.value)} - {award.category_name}"


def display_status(
    status: Union[SubmissionStatus, str, None],
    stages: Sequence[HackathonStage],
    award: Optional[Award] = None,
) -> str:
    if not status:
        return "Unknown Status"
    if isinstance(status, str):
        try:
            status = SubmissionStatus.parse(status)
        except ValueError:
            return title_case(status)

    if status.phase == SubmissionPhase.AWARD_ASSIGNED and award is not None:
        return award_label(award)

    if status.is_stage_bound():
        stage = next((s for s in stages if s.id == status.stage_id), None)
        stage_name = stage.name if stage else f"Stage ID {status.stage_id}"
        return f"{title_case(status.phase.value)} ({stage_name})"

    return _PHASE_LABELS[status.phase]


def next_stage(hackathon: Hackathon, stage_id: str) -> Optional[HackathonStage]:
    current = get_stage(hackathon, stage_id)
    later = [s for s in hackathon.sorted_stages() if s.order > current.order]
    return later[0] if later else None


def previous_stage(hackathon: Hackathon, stage_id: str) -> Optional[HackathonStage]:
    current = get_stage(hackathon, stage_id)
    earlier = [s for s in hackathon.sorted_stages() if s.order < current.order]
    return earlier[-1] if earlier else None


def current_stage_order(hackathon: Hackathon, submission: Submission) -> Optional[float]:
    """Order of the stage the submission is in.

    Returns ``inf`` for phases past the last stage and ``None`` for phases that
    have no stage position (not yet assigned, disqualified).
    """
    status = submission.status
    if status.is_stage_bound():
        stage = hackathon.get_stage(status.stage_id)
        return float(stage.order) if stage else None
    if status.phase in _PAST_ALL_STAGES:
        return math.inf
    return None


def revert_targets(hackathon: Hackathon, submission: Submission) -> List[HackathonStage]:
    order = current_stage_order(hackathon, submission)
    if order is None:
        return []
    return [s for s in hackathon.sorted_stages() if s.order < order]


def _change_status(
    submission: Submission,
    hackathon: Hackathon,
    new_status: SubmissionStatus,
    actor: str,
    now: datetime,
    **extra,
) -> Submission:
    old_label = display_status(submission.status, hackathon.stages, submission.award)
    updated = submission.model_copy(update={"status": new_status, **extra})
    new_label = display_status(new_status, hackathon.stages, updated.award)
    return with_history(updated, actor, f"Status changed from {old_label} to {new_label} by {actor}.", now)


def _require_phase(submission: Submission, *phases: SubmissionPhase) -> None:
    if submission.status.phase not in phases:
        allowed = ", ".join(p.value for p in phases)
        raise InvalidTransitionError(
            f"Submission {submission.id} is {submission.status.encode()}; expected one of: {allowed}"
        )


def assign_initial(state: AppState, submission_id: str, actor: str, now: datetime) -> AppState:
    """Put a freshly submitted project into the first stage's review queue."""
    submission = get_submission(state, submission_id)
    hackathon = get_hackathon(state, submission.hackathon_id)
    _require_phase(submission, SubmissionPhase.SUBMITTED)
    stages = hackathon.sorted_stages()
    if not stages:
        raise InvalidTransitionError(f"Hackathon {hackathon.id} has no stages configured")
    target = SubmissionStatus.at_stage(SubmissionPhase.PENDING_REVIEW, stages[0].id)
    return replace_submission(state, _change_status(submission, hackathon, target, actor, now))


def transition_to_stage(
    state: AppState, hackathon_id: str, target_stage_id: str, actor: str, now: datetime
) -> Tuple[AppState, int]:
    """Move every eligible submission into the target stage's review queue.

    Eligible means the status is exactly the pre-transition state for the
    target: ``SUBMITTED`` for the first stage, ``SELECTED`` of the preceding
    stage otherwise. Anything else is left as it is.
    """
    hackathon = get_hackathon(state, hackathon_id)
    get_stage(hackathon, target_stage_id)
    prev = previous_stage(hackathon, target_stage_id)
    if prev is None:
        expected = SubmissionStatus.submitted()
    else:
        expected = SubmissionStatus.at_stage(SubmissionPhase.SELECTED, prev.id)
    target = SubmissionStatus.at_stage(SubmissionPhase.PENDING_REVIEW, target_stage_id)

    changed = 0
    new_subs = []
    for s in state.submissions:
        if s.hackathon_id == hackathon_id and s.status == expected:
            s = _change_status(s, hackathon, target, actor, now)
            changed += 1
        new_subs.append(s)

    state = state.model_copy(update={"submissions": new_subs})
    if hackathon.current_stage_id != target_stage_id:
        state = replace_hackathon(state, hackathon.model_copy(update={"current_stage_id": target_stage_id}))
    return state, changed


def decide_stage(
    state: AppState, submission_id: str, decision: StageDecision, actor: str, now: datetime
) -> AppState:
    submission = get_submission(state, submission_id)
    hackathon = get_hackathon(state, submission.hackathon_id)
    _require_phase(submission, SubmissionPhase.PENDING_REVIEW)
    stage_id = submission.status.stage_id
    get_stage(hackathon, stage_id)

    if decision == StageDecision.REJECT:
        target = SubmissionStatus.at_stage(SubmissionPhase.REJECTED, stage_id)
    else:
        upcoming = next_stage(hackathon, stage_id)
        if upcoming is None:
            target = SubmissionStatus(phase=SubmissionPhase.FINALIST)
        elif hackathon.auto_advance:
            target = SubmissionStatus.at_stage(SubmissionPhase.PENDING_REVIEW, upcoming.id)
        else:
            target = SubmissionStatus.at_stage(SubmissionPhase.SELECTED, stage_id)
    return replace_submission(state, _change_status(submission, hackathon, target, actor, now))


def eliminate(state: AppState, submission_id: str, actor: str, now: datetime) -> AppState:
    """Confirm a stage rejection as final."""
    submission = get_submission(state, submission_id)
    hackathon = get_hackathon(state, submission.hackathon_id)
    _require_phase(submission, SubmissionPhase.REJECTED)
    target = SubmissionStatus(phase=SubmissionPhase.ELIMINATED)
    return replace_submission(state, _change_status(submission, hackathon, target, actor, now))


def disqualify(state: AppState, submission_id: str, actor: str, now: datetime) -> AppState:
    submission = get_submission(state, submission_id)
    hackathon = get_hackathon(state, submission.hackathon_id)
    if submission.status.phase in (SubmissionPhase.ELIMINATED, SubmissionPhase.DISQUALIFIED):
        raise InvalidTransitionError(f"Submission {submission.id} is already out of the competition")
    target = SubmissionStatus(phase=SubmissionPhase.DISQUALIFIED)
    return replace_submission(state, _change_status(submission, hackathon, target, actor, now, award=None))


def assign_award(
    state: AppState,
    submission_id: str,
    category_id: str,
    level: Union[AwardLevel, str, None],
    actor: str,
    now: datetime,
) -> AppState:
    submission = get_submission(state, submission_id)
    hackathon = get_hackathon(state, submission.hackathon_id)
    _require_phase(submission, SubmissionPhase.FINALIST, SubmissionPhase.AWARD_ASSIGNED)

    if not category_id or not level:
        raise ValidationError("Please select both an award category and a level.")
    categories = hackathon.winner_configuration.award_categories
    category = next((c for c in categories if c.id == category_id), None)
    if category is None:
        raise ValidationError(f"Award category {category_id!r} is not configured for this hackathon.")
    try:
        level = AwardLevel(level)
    except ValueError:
        raise ValidationError(f"Unknown award level {level!r}.")
    if level not in category.allowed_levels:
        raise ValidationError(f"Level {level.value!r} is not allowed for category {category.name!r}.")

    award = Award(
        category_id=category.id, category_name=category.name, level=level,
        awarded_at=now, awarded_by=actor,
    )
    updated = submission.model_copy(
        update={"award": award, "status": SubmissionStatus(phase=SubmissionPhase.AWARD_ASSIGNED)}
    )
    updated = with_history(updated, actor, f'Awarded "{award_label(award)}" by {actor}.', now)
    return replace_submission(state, updated)


def rescind_award(state: AppState, submission_id: str, actor: str, now: datetime) -> AppState:
    submission = get_submission(state, submission_id)
    if submission.award is None:
        raise InvalidTransitionError(f"Submission {submission.id} has no award to rescind")
    label = award_label(submission.award)
    updated = submission.model_copy(
        update={"award": None, "status": SubmissionStatus(phase=SubmissionPhase.FINALIST)}
    )
    updated = with_history(updated, actor, f'Award "{label}" rescinded by {actor}.', now)
    return replace_submission(state, updated)


def revert_stage(
    state: AppState, submission_id: str, target_stage_id: str, actor: str, now: datetime
) -> AppState:
    """Send a submission back to an earlier stage.

    Judgements for the target stage and every later stage are dropped, as is
    any award. Only stages with a strictly lower order qualify.
    """
    submission = get_submission(state, submission_id)
    hackathon = get_hackathon(state, submission.hackathon_id)
    target = get_stage(hackathon, target_stage_id)

    order = current_stage_order(hackathon, submission)
    if order is None:
        raise InvalidTransitionError(
            f"Submission {submission.id} is {submission.status.encode()} and has no stage to revert from"
        )
    if target.order >= order:
        raise InvalidTransitionError(
            f"Cannot revert to {target.name!r}: target stage must come before the current stage"
        )

    kept = []
    for j in submission.judgements:
        judged_stage = hackathon.get_stage(j.stage_id)
        if judged_stage is not None and judged_stage.order < target.order:
            kept.append(j)

    updated = submission.model_copy(
        update={
            "status": SubmissionStatus.at_stage(SubmissionPhase.PENDING_REVIEW, target.id),
            "judgements": kept,
            "award": None,
        }
    )
    updated = with_history(
        updated, actor,
        f'Submission stage reverted to "{target.name}" by {actor}. '
        f"Scores for this and subsequent stages cleared.",
        now,
    )
    return replace_submission(state, updated)


def set_status(
    state: AppState, submission_id: str, status: Union[SubmissionStatus, str], actor: str, now: datetime
) -> AppState:
    """Administrative override. Only checks that a referenced stage exists."""
    submission = get_submission(state, submission_id)
    hackathon = get_hackathon(state, submission.hackathon_id)
    if isinstance(status, str):
        try:
            status = SubmissionStatus.parse(status)
        except ValueError as e:
            raise ValidationError(str(e))
    if status.is_stage_bound() and hackathon.get_stage(status.stage_id) is None:
        raise NotFoundError("Stage", status.stage_id)
    if status.phase == SubmissionPhase.AWARD_ASSIGNED:
        raise InvalidTransitionError("Use award assignment to give a submission an award")
    extra = {"award": None} if submission.award is not None else {}
    return replace_submission(state, _change_status(submission, hackathon, status, actor, now, **extra))
