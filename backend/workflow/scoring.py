from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel

from models.schemas import (
    AppState, CriterionScore, Hackathon, Judgement, StageDecision, Submission, SubmissionPhase,
)
from utils.text import normalize_email, same_email
from workflow.errors import InvalidTransitionError, PermissionDeniedError, ValidationError
from workflow.state import get_hackathon, get_stage, get_submission, parse_model, replace_submission, with_history
from workflow.status import decide_stage


class StageScoreSummary(BaseModel):
    stage_id: str
    judgement_count: int = 0
    average_total: Optional[float] = None
    max_total: Optional[int] = None
    display: str = "N/A"


def _coerce_scores(scores: Iterable[Union[CriterionScore, Dict[str, Any]]]) -> List[CriterionScore]:
    return [s if isinstance(s, CriterionScore) else parse_model(CriterionScore, s) for s in scores]


def record_judgement(
    state: AppState,
    submission_id: str,
    stage_id: str,
    judge_email: str,
    scores: Iterable[Union[CriterionScore, Dict[str, Any]]],
    general_comment: str,
    now: datetime,
) -> AppState:
    """Store one judge's scores for one stage, replacing that judge's earlier ones."""
    submission = get_submission(state, submission_id)
    hackathon = get_hackathon(state, submission.hackathon_id)
    stage = get_stage(hackathon, stage_id)

    if not any(same_email(e, judge_email) for e in stage.assigned_judge_emails):
        raise PermissionDeniedError(f"{judge_email} is not assigned to judge {stage.name!r}")
    if submission.status.phase != SubmissionPhase.PENDING_REVIEW or submission.status.stage_id != stage_id:
        raise InvalidTransitionError(
            f"Submission {submission.id} is not awaiting review in {stage.name!r}"
        )

    scores = _coerce_scores(scores)
    criteria = {c.id: c for c in stage.judging_criteria}
    seen = set()
    for s in scores:
        criterion = criteria.get(s.criterion_id)
        if criterion is None:
            raise ValidationError(f"Criterion {s.criterion_id!r} does not belong to {stage.name!r}")
        if s.criterion_id in seen:
            raise ValidationError(f"Criterion {criterion.name!r} scored more than once")
        if not 0 <= s.score <= criterion.max_score:
            raise ValidationError(
                f"Score for {criterion.name!r} must be between 0 and {criterion.max_score}"
            )
        seen.add(s.criterion_id)
    missing = [c.name for cid, c in criteria.items() if cid not in seen]
    if missing:
        raise ValidationError(f"Missing scores for: {', '.join(missing)}")

    judgement = Judgement(
        stage_id=stage_id,
        judge_email=normalize_email(judge_email),
        scores=scores,
        general_comment=general_comment or "",
        judged_at=now,
    )
    others = [
        j for j in submission.judgements
        if not (j.stage_id == stage_id and same_email(j.judge_email, judge_email))
    ]
    updated = submission.model_copy(update={"judgements": [*others, judgement]})
    updated = with_history(updated, judge_email, f"Scores submitted for {stage.name} by {judge_email}.", now)
    return replace_submission(state, updated)


def score_and_decide(
    state: AppState,
    submission_id: str,
    stage_id: str,
    judge_email: str,
    scores: Iterable[Union[CriterionScore, Dict[str, Any]]],
    general_comment: str,
    decision: StageDecision,
    now: datetime,
) -> AppState:
    state = record_judgement(state, submission_id, stage_id, judge_email, scores, general_comment, now)
    return decide_stage(state, submission_id, decision, judge_email, now)


def stage_score_summary(hackathon: Hackathon, submission: Submission, stage_id: str) -> StageScoreSummary:
    stage = hackathon.get_stage(stage_id)
    if stage is None:
        return StageScoreSummary(stage_id=stage_id)
    judgements = submission.judgements_for_stage(stage_id)
    max_total = stage.max_total
    if not judgements:
        return StageScoreSummary(stage_id=stage_id, max_total=max_total)
    average = sum(j.total for j in judgements) / len(judgements)
    return StageScoreSummary(
        stage_id=stage_id,
        judgement_count=len(judgements),
        average_total=average,
        max_total=max_total,
        display=f"{average:.2f} / {max_total}",
    )


def submissions_for_judge(
    state: AppState, judge_email: str, hackathon_id: str, stage_id: Optional[str] = None
) -> List[Submission]:
    """Submissions waiting for this judge: pending review, assigned stage, not yet scored by them."""
    hackathon = get_hackathon(state, hackathon_id)
    stages = [
        s for s in hackathon.sorted_stages()
        if (stage_id is None or s.id == stage_id)
        and any(same_email(e, judge_email) for e in s.assigned_judge_emails)
    ]
    stage_ids = {s.id for s in stages}
    out = []
    for sub in state.submissions:
        if sub.hackathon_id != hackathon_id:
            continue
        if sub.status.phase != SubmissionPhase.PENDING_REVIEW or sub.status.stage_id not in stage_ids:
            continue
        already = any(
            j.stage_id == sub.status.stage_id and same_email(j.judge_email, judge_email)
            for j in sub.judgements
        )
        if not already:
            out.append(sub)
    return out


def stage_leaderboard(state: AppState, hackathon_id: str, stage_id: str) -> List[Dict[str, Any]]:
    hackathon = get_hackathon(state, hackathon_id)
    get_stage(hackathon, stage_id)
    rows = []
    for sub in state.submissions:
        if sub.hackathon_id != hackathon_id:
            continue
        summary = stage_score_summary(hackathon, sub, stage_id)
        if summary.judgement_count == 0:
            continue
        rows.append({
            "submission_id": sub.id,
            "project_name": sub.project_name,
            "average_total": summary.average_total,
            "max_total": summary.max_total,
            "judgement_count": summary.judgement_count,
            "display": summary.display,
        })
    rows.sort(key=lambda r: (-r["average_total"], r["project_name"]))
    return rows
