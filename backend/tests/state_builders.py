from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from models.schemas import (
    AppState, Hackathon, HackathonApprovalStatus, HackathonStage, JudgingCriterion, Judgement,
    CriterionScore, Submission, SubmissionPhase, SubmissionStatus, AwardCategory, WinnerConfiguration,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
ADMIN = "admin@example.com"
JUDGE = "judge@example.com"
JUDGE2 = "judge2@example.com"


def stage(stage_id: str, order: int, judges: Optional[List[str]] = None) -> HackathonStage:
    return HackathonStage(
        id=stage_id,
        name=f"Stage {order}",
        order=order,
        judging_criteria=[
            JudgingCriterion(id=f"{stage_id}-idea", name="Idea", max_score=50),
            JudgingCriterion(id=f"{stage_id}-build", name="Build", max_score=50),
        ],
        assigned_judge_emails=list(judges if judges is not None else [JUDGE, JUDGE2]),
    )


def hackathon(hid: str = "h1", stages: Optional[List[HackathonStage]] = None, **extra) -> Hackathon:
    fields = dict(
        id=hid,
        title="Spring Hack",
        stages=stages if stages is not None else [stage("s1", 1), stage("s2", 2)],
        admin_emails=[ADMIN],
        status=HackathonApprovalStatus.APPROVED,
        is_accepting_submissions=True,
        winner_configuration=WinnerConfiguration(award_categories=[
            AwardCategory(id="overall", name="Overall Event", allowed_levels=["winner", "runner_up"]),
        ]),
    )
    fields.update(extra)
    return Hackathon(**fields)


def submission(sid: str, status: str = "submitted_pending_stage_assignment", hid: str = "h1", **extra) -> Submission:
    fields = dict(
        id=sid,
        hackathon_id=hid,
        project_name=f"Project {sid}",
        participant_name="Pat",
        participant_email=f"{sid}@example.com",
        status=status,
        submitted_at=NOW,
    )
    fields.update(extra)
    return Submission(**fields)


def judgement(stage_id: str, judge: str, idea: float, build: float) -> Judgement:
    return Judgement(
        stage_id=stage_id,
        judge_email=judge,
        scores=[
            CriterionScore(criterion_id=f"{stage_id}-idea", score=idea),
            CriterionScore(criterion_id=f"{stage_id}-build", score=build),
        ],
        judged_at=NOW,
    )


def full_scores(stage_id: str, idea: float = 40, build: float = 40) -> List[dict]:
    return [
        {"criterion_id": f"{stage_id}-idea", "score": idea},
        {"criterion_id": f"{stage_id}-build", "score": build},
    ]


def make_state(*submissions: Submission, h: Optional[Hackathon] = None) -> AppState:
    return AppState(hackathons=[h or hackathon()], submissions=list(submissions))


def status_of(state: AppState, sid: str) -> SubmissionStatus:
    return next(s for s in state.submissions if s.id == sid).status


def pending(stage_id: str) -> SubmissionStatus:
    return SubmissionStatus.at_stage(SubmissionPhase.PENDING_REVIEW, stage_id)
