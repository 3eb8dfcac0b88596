from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from config.app_config import DEFAULT_AWARD_CATEGORY, DEFAULT_PRIZES
from models.schemas import (
    AppState, AwardCategory, Hackathon, HackathonApprovalStatus, HackathonQuestion, HackathonStage,
    JudgingCriterion, ProblemStatement, SubmissionQuestion, UserRole, WinnerConfiguration,
)
from utils.text import generate_id, normalize_email, same_email
from workflow.errors import InvalidTransitionError, NotFoundError, ValidationError
from workflow.state import get_hackathon, get_stage, parse_model, replace_hackathon


# Fields an event admin may change directly
EDITABLE_FIELDS = {
    "title", "description", "rules", "timeline", "prizes", "is_accepting_submissions", "auto_advance",
}


def create_hackathon(
    state: AppState,
    title: str,
    description: str,
    creator_role: UserRole,
    creator_email: str,
    now: datetime,
) -> Tuple[AppState, Hackathon]:
    if not (title or "").strip():
        raise ValidationError("Hackathon title is required.")
    email = normalize_email(creator_email)
    fields: Dict[str, Any] = {}
    if creator_role == UserRole.SUPERADMIN:
        fields.update(
            status=HackathonApprovalStatus.APPROVED, approved_by_email=email, approved_at=now
        )
    else:
        fields.update(status=HackathonApprovalStatus.PENDING_APPROVAL)

    hackathon = Hackathon(
        id=generate_id(),
        title=title.strip(),
        description=description or "",
        admin_emails=[email] if email else [],
        created_by_email=email or None,
        prizes=list(DEFAULT_PRIZES),
        winner_configuration=WinnerConfiguration(
            award_categories=[AwardCategory.model_validate(DEFAULT_AWARD_CATEGORY)]
        ),
        created_at=now,
        **fields,
    )
    return state.model_copy(update={"hackathons": [*state.hackathons, hackathon]}), hackathon


def _require_pending(hackathon: Hackathon) -> None:
    if hackathon.status != HackathonApprovalStatus.PENDING_APPROVAL:
        raise InvalidTransitionError(
            f"Hackathon {hackathon.id} is {hackathon.status.value}, not pending approval"
        )


def approve_hackathon(state: AppState, hackathon_id: str, superadmin_email: str, now: datetime) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    _require_pending(hackathon)
    return replace_hackathon(state, hackathon.model_copy(update={
        "status": HackathonApprovalStatus.APPROVED,
        "approved_by_email": normalize_email(superadmin_email),
        "approved_at": now,
    }))


def decline_hackathon(
    state: AppState, hackathon_id: str, superadmin_email: str, reason: str, now: datetime
) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    _require_pending(hackathon)
    return replace_hackathon(state, hackathon.model_copy(update={
        "status": HackathonApprovalStatus.DECLINED,
        "declined_by_email": normalize_email(superadmin_email),
        "declined_at": now,
        "decline_reason": reason or "",
    }))


def archive_hackathon(state: AppState, hackathon_id: str) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    return replace_hackathon(state, hackathon.model_copy(update={
        "status": HackathonApprovalStatus.ARCHIVED,
        "is_accepting_submissions": False,
    }))


def delete_hackathon(state: AppState, hackathon_id: str) -> AppState:
    get_hackathon(state, hackathon_id)
    team_ids = {t.id for t in state.teams if t.hackathon_id == hackathon_id}
    return state.model_copy(update={
        "hackathons": [h for h in state.hackathons if h.id != hackathon_id],
        "submissions": [s for s in state.submissions if s.hackathon_id != hackathon_id],
        "teams": [t for t in state.teams if t.id not in team_ids],
        "team_members": [m for m in state.team_members if m.team_id not in team_ids],
    })


def update_hackathon(state: AppState, hackathon_id: str, fields: Dict[str, Any]) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be edited here: {', '.join(sorted(unknown))}")
    if "title" in fields and not (fields["title"] or "").strip():
        raise ValidationError("Hackathon title is required.")
    if fields.get("is_accepting_submissions") and hackathon.status != HackathonApprovalStatus.APPROVED:
        raise ValidationError("Only approved hackathons can accept submissions.")
    updated = parse_model(Hackathon, {**hackathon.model_dump(), **fields})
    return replace_hackathon(state, updated)


def set_current_stage(state: AppState, hackathon_id: str, stage_id: Optional[str]) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    if stage_id is not None:
        get_stage(hackathon, stage_id)
    return replace_hackathon(state, hackathon.model_copy(update={"current_stage_id": stage_id}))


# --- Problem statements ---

def add_problem_statement(
    state: AppState, hackathon_id: str, title: str, description: str = ""
) -> Tuple[AppState, ProblemStatement]:
    hackathon = get_hackathon(state, hackathon_id)
    if not (title or "").strip():
        raise ValidationError("Problem statement title is required.")
    ps = ProblemStatement(id=generate_id(), title=title.strip(), description=description or "")
    updated = hackathon.model_copy(update={"problem_statements": [*hackathon.problem_statements, ps]})
    return replace_hackathon(state, updated), ps


def update_problem_statement(
    state: AppState, hackathon_id: str, statement_id: str, fields: Dict[str, Any]
) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    current = next((p for p in hackathon.problem_statements if p.id == statement_id), None)
    if current is None:
        raise NotFoundError("Problem statement", statement_id)
    merged = parse_model(ProblemStatement, {**current.model_dump(), **fields, "id": statement_id})
    statements = [merged if p.id == statement_id else p for p in hackathon.problem_statements]
    return replace_hackathon(state, hackathon.model_copy(update={"problem_statements": statements}))


def delete_problem_statement(state: AppState, hackathon_id: str, statement_id: str) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    if not any(p.id == statement_id for p in hackathon.problem_statements):
        raise NotFoundError("Problem statement", statement_id)
    statements = [p for p in hackathon.problem_statements if p.id != statement_id]
    return replace_hackathon(state, hackathon.model_copy(update={"problem_statements": statements}))


# --- Submission questions ---

def add_submission_question(
    state: AppState, hackathon_id: str, text: str, type: str = "textarea", is_required: bool = False
) -> Tuple[AppState, SubmissionQuestion]:
    hackathon = get_hackathon(state, hackathon_id)
    if not (text or "").strip():
        raise ValidationError("Question text is required.")
    q = parse_model(
        SubmissionQuestion,
        {"id": generate_id(), "text": text.strip(), "type": type, "is_required": is_required},
    )
    updated = hackathon.model_copy(update={"submission_questions": [*hackathon.submission_questions, q]})
    return replace_hackathon(state, updated), q


def update_submission_question(
    state: AppState, hackathon_id: str, question_id: str, fields: Dict[str, Any]
) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    current = next((q for q in hackathon.submission_questions if q.id == question_id), None)
    if current is None:
        raise NotFoundError("Submission question", question_id)
    merged = parse_model(SubmissionQuestion, {**current.model_dump(), **fields, "id": question_id})
    questions = [merged if q.id == question_id else q for q in hackathon.submission_questions]
    return replace_hackathon(state, hackathon.model_copy(update={"submission_questions": questions}))


def delete_submission_question(state: AppState, hackathon_id: str, question_id: str) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    if not any(q.id == question_id for q in hackathon.submission_questions):
        raise NotFoundError("Submission question", question_id)
    questions = [q for q in hackathon.submission_questions if q.id != question_id]
    return replace_hackathon(state, hackathon.model_copy(update={"submission_questions": questions}))


# --- Stages & criteria ---

CriterionInput = Union[JudgingCriterion, Dict[str, Any]]


def _new_criterion(data: CriterionInput) -> JudgingCriterion:
    raw = data.model_dump() if isinstance(data, JudgingCriterion) else dict(data)
    raw["id"] = generate_id()
    return parse_model(JudgingCriterion, raw)


def _with_stages(hackathon: Hackathon, stages: List[HackathonStage]) -> Hackathon:
    orders = [s.order for s in stages]
    if len(orders) != len(set(orders)):
        raise ValidationError("Stage order values must be unique.")
    return hackathon.model_copy(update={"stages": sorted(stages, key=lambda s: s.order)})


def add_stage(
    state: AppState,
    hackathon_id: str,
    name: str,
    description: str = "",
    order: Optional[int] = None,
    criteria: Optional[Iterable[CriterionInput]] = None,
) -> Tuple[AppState, HackathonStage]:
    hackathon = get_hackathon(state, hackathon_id)
    if not (name or "").strip():
        raise ValidationError("Stage name is required.")
    if order is None:
        order = max((s.order for s in hackathon.stages), default=0) + 1
    stage = HackathonStage(
        id=generate_id(),
        name=name.strip(),
        description=description or "",
        order=order,
        judging_criteria=[_new_criterion(c) for c in (criteria or [])],
    )
    updated = _with_stages(hackathon, [*hackathon.stages, stage])
    return replace_hackathon(state, updated), stage


def update_stage(state: AppState, hackathon_id: str, stage_id: str, fields: Dict[str, Any]) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    stage = get_stage(hackathon, stage_id)
    allowed = {"name", "description", "order"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f"Fields cannot be edited here: {', '.join(sorted(unknown))}")
    merged = parse_model(HackathonStage, {**stage.model_dump(), **fields, "id": stage_id})
    if not merged.name.strip():
        raise ValidationError("Stage name is required.")
    stages = [merged if s.id == stage_id else s for s in hackathon.stages]
    return replace_hackathon(state, _with_stages(hackathon, stages))


def delete_stage(state: AppState, hackathon_id: str, stage_id: str) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    get_stage(hackathon, stage_id)
    in_stage = [
        s.id for s in state.submissions
        if s.hackathon_id == hackathon_id and s.status.stage_id == stage_id
    ]
    if in_stage:
        raise ValidationError(f"{len(in_stage)} submission(s) are still in this stage.")
    stages = [s for s in hackathon.stages if s.id != stage_id]
    updates: Dict[str, Any] = {"stages": stages}
    if hackathon.current_stage_id == stage_id:
        updates["current_stage_id"] = None
    return replace_hackathon(state, hackathon.model_copy(update=updates))


def _replace_stage(state: AppState, hackathon: Hackathon, stage: HackathonStage) -> AppState:
    stages = [stage if s.id == stage.id else s for s in hackathon.stages]
    return replace_hackathon(state, hackathon.model_copy(update={"stages": stages}))


def _require_unjudged(state: AppState, stage: HackathonStage) -> None:
    judged = sum(1 for s in state.submissions if s.judgements_for_stage(stage.id))
    if judged:
        raise ValidationError(
            f"{judged} submission(s) already have scores for {stage.name!r}; its scoring cannot change."
        )


def add_criterion(
    state: AppState, hackathon_id: str, stage_id: str, criterion: CriterionInput
) -> Tuple[AppState, JudgingCriterion]:
    hackathon = get_hackathon(state, hackathon_id)
    stage = get_stage(hackathon, stage_id)
    new = _new_criterion(criterion)
    updated = stage.model_copy(update={"judging_criteria": [*stage.judging_criteria, new]})
    return _replace_stage(state, hackathon, updated), new


def update_criterion(
    state: AppState, hackathon_id: str, stage_id: str, criterion_id: str, fields: Dict[str, Any]
) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    stage = get_stage(hackathon, stage_id)
    current = next((c for c in stage.judging_criteria if c.id == criterion_id), None)
    if current is None:
        raise NotFoundError("Criterion", criterion_id)
    if "max_score" in fields and fields["max_score"] != current.max_score:
        _require_unjudged(state, stage)
    merged = parse_model(JudgingCriterion, {**current.model_dump(), **fields, "id": criterion_id})
    criteria = [merged if c.id == criterion_id else c for c in stage.judging_criteria]
    return _replace_stage(state, hackathon, stage.model_copy(update={"judging_criteria": criteria}))


def delete_criterion(state: AppState, hackathon_id: str, stage_id: str, criterion_id: str) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    stage = get_stage(hackathon, stage_id)
    if not any(c.id == criterion_id for c in stage.judging_criteria):
        raise NotFoundError("Criterion", criterion_id)
    _require_unjudged(state, stage)
    criteria = [c for c in stage.judging_criteria if c.id != criterion_id]
    return _replace_stage(state, hackathon, stage.model_copy(update={"judging_criteria": criteria}))


# --- Staff assignment ---

def assign_judge_to_stage(state: AppState, hackathon_id: str, stage_id: str, judge_email: str) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    if hackathon.status != HackathonApprovalStatus.APPROVED:
        raise ValidationError("Judges can only be assigned to approved hackathons.")
    stage = get_stage(hackathon, stage_id)
    if any(same_email(e, judge_email) for e in stage.assigned_judge_emails):
        return state
    updated = stage.model_copy(
        update={"assigned_judge_emails": [*stage.assigned_judge_emails, normalize_email(judge_email)]}
    )
    return _replace_stage(state, hackathon, updated)


def remove_judge_from_stage(state: AppState, hackathon_id: str, stage_id: str, judge_email: str) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    stage = get_stage(hackathon, stage_id)
    emails = [e for e in stage.assigned_judge_emails if not same_email(e, judge_email)]
    return _replace_stage(state, hackathon, stage.model_copy(update={"assigned_judge_emails": emails}))


def assign_admin(state: AppState, hackathon_id: str, admin_email: str) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    if any(same_email(e, admin_email) for e in hackathon.admin_emails):
        return state
    emails = [*hackathon.admin_emails, normalize_email(admin_email)]
    return replace_hackathon(state, hackathon.model_copy(update={"admin_emails": emails}))


def remove_admin(state: AppState, hackathon_id: str, admin_email: str) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    emails = [e for e in hackathon.admin_emails if not same_email(e, admin_email)]
    return replace_hackathon(state, hackathon.model_copy(update={"admin_emails": emails}))


# --- Awards configuration ---

def update_winner_configuration(
    state: AppState, hackathon_id: str, config: Union[WinnerConfiguration, Dict[str, Any]]
) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    if not isinstance(config, WinnerConfiguration):
        config = parse_model(WinnerConfiguration, config)
    ids = [c.id for c in config.award_categories]
    if len(ids) != len(set(ids)):
        raise ValidationError("Award category ids must be unique.")
    for c in config.award_categories:
        if not c.allowed_levels:
            raise ValidationError(f"Award category {c.name!r} needs at least one level.")
    return replace_hackathon(state, hackathon.model_copy(update={"winner_configuration": config}))


# --- Public Q&A ---

def ask_question(
    state: AppState,
    hackathon_id: str,
    question_text: str,
    asked_by_name: str,
    now: datetime,
    asked_by_email: Optional[str] = None,
) -> Tuple[AppState, HackathonQuestion]:
    hackathon = get_hackathon(state, hackathon_id)
    if not (question_text or "").strip():
        raise ValidationError("Question text is required.")
    q = HackathonQuestion(
        id=generate_id(),
        question_text=question_text.strip(),
        asked_by_name=(asked_by_name or "Anonymous").strip() or "Anonymous",
        asked_by_email=normalize_email(asked_by_email) or None,
        asked_at=now,
    )
    updated = hackathon.model_copy(update={"questions": [*hackathon.questions, q]})
    return replace_hackathon(state, updated), q


def answer_question(
    state: AppState, hackathon_id: str, question_id: str, answer_text: str, admin_email: str, now: datetime
) -> AppState:
    hackathon = get_hackathon(state, hackathon_id)
    current = next((q for q in hackathon.questions if q.id == question_id), None)
    if current is None:
        raise NotFoundError("Question", question_id)
    if not (answer_text or "").strip():
        raise ValidationError("Answer text is required.")
    answered = current.model_copy(update={
        "answer_text": answer_text.strip(),
        "answered_by_email": normalize_email(admin_email),
        "answered_at": now,
    })
    questions = [answered if q.id == question_id else q for q in hackathon.questions]
    return replace_hackathon(state, hackathon.model_copy(update={"questions": questions}))
