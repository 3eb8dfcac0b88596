from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    JUDGE = "judge"
    PARTICIPANT = "participant"


class AccountStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


class HackathonApprovalStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    DECLINED = "declined"
    ARCHIVED = "archived"


class QuestionType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    URL = "url"


class AwardLevel(str, Enum):
    WINNER = "winner"
    RUNNER_UP = "runner_up"
    SECOND_RUNNER_UP = "second_runner_up"


class WinnerScope(str, Enum):
    OVERALL = "overall"
    PER_PROBLEM_STATEMENT = "per_problem_statement"


class TeamMemberStatus(str, Enum):
    INVITED = "invited"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    LEFT = "left"


class TeamRole(str, Enum):
    LEADER = "leader"
    MEMBER = "member"


class StageDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


# --- Submission status ---

class SubmissionPhase(str, Enum):
    SUBMITTED = "submitted"
    PENDING_REVIEW = "pending_review"
    SELECTED = "selected"
    REJECTED = "rejected"
    FINALIST = "finalist"
    AWARD_ASSIGNED = "award_assigned"
    ELIMINATED = "eliminated"
    DISQUALIFIED = "disqualified"


STAGE_PHASES = {SubmissionPhase.PENDING_REVIEW, SubmissionPhase.SELECTED, SubmissionPhase.REJECTED}

# Wire strings for phases that are not tied to a stage
_UNSTAGED_WIRE = {
    SubmissionPhase.SUBMITTED: "submitted_pending_stage_assignment",
    SubmissionPhase.FINALIST: "finalist_awaiting_award_decision",
    SubmissionPhase.AWARD_ASSIGNED: "award_assigned",
    SubmissionPhase.ELIMINATED: "eliminated",
    SubmissionPhase.DISQUALIFIED: "disqualified",
}
_UNSTAGED_PARSE = {v: k for k, v in _UNSTAGED_WIRE.items()}

# Longest suffix first so "_judged_selected" wins over "_selected"
_STAGE_SUFFIXES = [
    ("_pending_review", SubmissionPhase.PENDING_REVIEW),
    ("_judged_selected", SubmissionPhase.SELECTED),
    ("_selected", SubmissionPhase.SELECTED),
    ("_rejected", SubmissionPhase.REJECTED),
]

# "s_<id>_judged_selected" is the legacy spelling of "selected", so such ids cannot round-trip
RESERVED_STAGE_SUFFIX = "_judged"


class SubmissionStatus(BaseModel):
    """Where a submission sits in the judging pipeline.

    Stage-bound phases carry the stage id; every other phase must not. The
    persisted form is the legacy string encoding (``s_<stageId>_pending_review``
    and friends), produced by :meth:`encode` and read back by :meth:`parse`.
    """

    model_config = ConfigDict(frozen=True)

    phase: SubmissionPhase
    stage_id: Optional[str] = None

    @classmethod
    def submitted(cls) -> "SubmissionStatus":
        return cls(phase=SubmissionPhase.SUBMITTED)

    @classmethod
    def at_stage(cls, phase: SubmissionPhase, stage_id: str) -> "SubmissionStatus":
        return cls(phase=phase, stage_id=stage_id)

    def is_stage_bound(self) -> bool:
        return self.phase in STAGE_PHASES

    def encode(self) -> str:
        if self.is_stage_bound():
            return f"s_{self.stage_id}_{self.phase.value}"
        return _UNSTAGED_WIRE[self.phase]

    @classmethod
    def parse(cls, raw: str) -> "SubmissionStatus":
        if not raw:
            raise ValueError("Empty submission status")
        if raw in _UNSTAGED_PARSE:
            return cls(phase=_UNSTAGED_PARSE[raw])
        if raw.startswith("s_"):
            body = raw[2:]
            for suffix, phase in _STAGE_SUFFIXES:
                if body.endswith(suffix) and len(body) > len(suffix):
                    return cls(phase=phase, stage_id=body[: -len(suffix)])
        raise ValueError(f"Unknown submission status: {raw!r}")

    @model_validator(mode="after")
    def _check_stage(self) -> "SubmissionStatus":
        if self.phase in STAGE_PHASES and not self.stage_id:
            raise ValueError(f"Phase {self.phase.value} requires a stage id")
        if self.phase not in STAGE_PHASES and self.stage_id:
            raise ValueError(f"Phase {self.phase.value} does not take a stage id")
        if self.stage_id and self.stage_id.endswith(RESERVED_STAGE_SUFFIX):
            raise ValueError(f"Stage id {self.stage_id!r} must not end with {RESERVED_STAGE_SUFFIX!r}")
        return self

    def __str__(self) -> str:
        return self.encode()


# --- Hackathon configuration ---

class JudgingCriterion(BaseModel):
    id: str
    name: str
    description: str = ""
    max_score: int = Field(gt=0)


class HackathonStage(BaseModel):
    id: str
    name: str
    description: str = ""
    order: int
    judging_criteria: List[JudgingCriterion] = Field(default_factory=list)
    assigned_judge_emails: List[str] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def _id_round_trips(cls, v: str) -> str:
        if v.endswith(RESERVED_STAGE_SUFFIX):
            raise ValueError(f"Stage id must not end with {RESERVED_STAGE_SUFFIX!r}")
        return v

    @property
    def max_total(self) -> int:
        return sum(c.max_score for c in self.judging_criteria)


class ProblemStatement(BaseModel):
    id: str
    title: str
    description: str = ""


class SubmissionQuestion(BaseModel):
    id: str
    text: str
    type: QuestionType = QuestionType.TEXTAREA
    is_required: bool = False


class AwardCategory(BaseModel):
    id: str
    name: str
    allowed_levels: List[AwardLevel] = Field(default_factory=list)


class WinnerConfiguration(BaseModel):
    scope: WinnerScope = WinnerScope.OVERALL
    award_categories: List[AwardCategory] = Field(default_factory=list)


class HackathonQuestion(BaseModel):
    id: str
    question_text: str
    asked_by_name: str
    asked_by_email: Optional[str] = None
    asked_at: datetime = Field(default_factory=utcnow)
    answer_text: Optional[str] = None
    answered_by_email: Optional[str] = None
    answered_at: Optional[datetime] = None


class Hackathon(BaseModel):
    id: str
    title: str
    description: str = ""
    rules: str = ""
    timeline: str = ""
    stages: List[HackathonStage] = Field(default_factory=list)
    problem_statements: List[ProblemStatement] = Field(default_factory=list)
    submission_questions: List[SubmissionQuestion] = Field(default_factory=list)
    prizes: List[str] = Field(default_factory=list)
    winner_configuration: WinnerConfiguration = Field(default_factory=WinnerConfiguration)
    questions: List[HackathonQuestion] = Field(default_factory=list)
    admin_emails: List[str] = Field(default_factory=list)
    status: HackathonApprovalStatus = HackathonApprovalStatus.PENDING_APPROVAL
    created_by_email: Optional[str] = None
    approved_by_email: Optional[str] = None
    approved_at: Optional[datetime] = None
    declined_by_email: Optional[str] = None
    declined_at: Optional[datetime] = None
    decline_reason: Optional[str] = None
    current_stage_id: Optional[str] = None
    is_accepting_submissions: bool = False
    # Approving a stage moves straight to the next stage's review instead of "selected"
    auto_advance: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    def sorted_stages(self) -> List[HackathonStage]:
        return sorted(self.stages, key=lambda s: s.order)

    def get_stage(self, stage_id: Optional[str]) -> Optional[HackathonStage]:
        if not stage_id:
            return None
        return next((s for s in self.stages if s.id == stage_id), None)


# --- Submissions ---

class SubmissionAnswer(BaseModel):
    question_id: str
    answer: str = ""


class CriterionScore(BaseModel):
    criterion_id: str
    score: float
    comment: Optional[str] = None


class Judgement(BaseModel):
    stage_id: str
    judge_email: str
    scores: List[CriterionScore] = Field(default_factory=list)
    general_comment: str = ""
    judged_at: datetime = Field(default_factory=utcnow)

    @property
    def total(self) -> float:
        return sum(s.score for s in self.scores)


class Award(BaseModel):
    category_id: str
    category_name: str
    level: AwardLevel
    awarded_at: datetime = Field(default_factory=utcnow)
    awarded_by: str


class EditLock(BaseModel):
    user_email: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class EditHistoryEntry(BaseModel):
    timestamp: datetime = Field(default_factory=utcnow)
    user_email: str
    action: str


class Submission(BaseModel):
    id: str
    hackathon_id: str
    problem_statement_id: Optional[str] = None
    project_name: str
    participant_name: str
    participant_email: str
    answers: List[SubmissionAnswer] = Field(default_factory=list)
    status: SubmissionStatus = Field(default_factory=SubmissionStatus.submitted)
    judgements: List[Judgement] = Field(default_factory=list)
    award: Optional[Award] = None
    edit_history: List[EditHistoryEntry] = Field(default_factory=list)
    locked_by: Optional[EditLock] = None
    team_id: Optional[str] = None
    submitted_at: datetime = Field(default_factory=utcnow)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        if isinstance(v, str):
            return SubmissionStatus.parse(v)
        return v

    @field_serializer("status")
    def _encode_status(self, status: SubmissionStatus) -> str:
        return status.encode()

    def judgements_for_stage(self, stage_id: str) -> List[Judgement]:
        return [j for j in self.judgements if j.stage_id == stage_id]


# --- Teams ---

class Team(BaseModel):
    id: str
    hackathon_id: str
    submission_id: str
    name: str
    leader_email: str
    created_at: datetime = Field(default_factory=utcnow)


class TeamMember(BaseModel):
    id: str
    team_id: str
    participant_email: str
    status: TeamMemberStatus
    role: TeamRole = TeamRole.MEMBER
    invited_at: datetime = Field(default_factory=utcnow)
    joined_at: Optional[datetime] = None


# --- Users ---

class UserAccount(BaseModel):
    id: str
    email: str
    role: UserRole
    status: AccountStatus = AccountStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)


class AppState(BaseModel):
    """Every collection the application keeps, loaded and saved as a unit."""

    hackathons: List[Hackathon] = Field(default_factory=list)
    submissions: List[Submission] = Field(default_factory=list)
    teams: List[Team] = Field(default_factory=list)
    team_members: List[TeamMember] = Field(default_factory=list)
    users: List[UserAccount] = Field(default_factory=list)
