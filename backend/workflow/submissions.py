from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from models.schemas import (
    AppState, HackathonApprovalStatus, Submission, SubmissionAnswer, SubmissionPhase,
    SubmissionStatus, TeamMemberStatus,
)
from utils.text import generate_id, normalize_email, same_email
from workflow.errors import PermissionDeniedError, ValidationError
from workflow.locks import ensure_editable
from workflow.state import find_hackathon, get_hackathon, get_submission, parse_model, replace_submission, with_history
from workflow.status import display_status


AnswerInput = Union[SubmissionAnswer, Dict[str, Any]]


def _validate_contact(name: str, email: str) -> None:
    if not (name or "").strip():
        raise ValidationError("Participant name is required.")
    if "@" not in (email or ""):
        raise ValidationError("A valid participant email is required.")


def _validate_answers(hackathon, answers: List[SubmissionAnswer]) -> None:
    questions = {q.id: q for q in hackathon.submission_questions}
    for a in answers:
        if a.question_id not in questions:
            raise ValidationError(f"Unknown submission question {a.question_id!r}")
    given = {a.question_id: a.answer for a in answers}
    for q in hackathon.submission_questions:
        if q.is_required and not (given.get(q.id) or "").strip():
            raise ValidationError(f"An answer is required for: {q.text}")


def _validate_problem_statement(hackathon, problem_statement_id: Optional[str]) -> None:
    if problem_statement_id:
        if not any(p.id == problem_statement_id for p in hackathon.problem_statements):
            raise ValidationError(f"Unknown problem statement {problem_statement_id!r}")
    elif hackathon.problem_statements:
        raise ValidationError("Please choose a problem statement.")


def _coerce_answers(answers: Optional[Iterable[AnswerInput]]) -> List[SubmissionAnswer]:
    return [
        a if isinstance(a, SubmissionAnswer) else parse_model(SubmissionAnswer, a)
        for a in (answers or [])
    ]


def submit_project(
    state: AppState,
    hackathon_id: str,
    project_name: str,
    participant_name: str,
    participant_email: str,
    now: datetime,
    problem_statement_id: Optional[str] = None,
    answers: Optional[Iterable[AnswerInput]] = None,
) -> Tuple[AppState, Submission]:
    hackathon = get_hackathon(state, hackathon_id)
    if hackathon.status != HackathonApprovalStatus.APPROVED:
        raise ValidationError("This hackathon is not currently approved for submissions.")
    if not hackathon.is_accepting_submissions:
        raise ValidationError("This hackathon is not accepting submissions.")
    if not (project_name or "").strip():
        raise ValidationError("Project name is required.")
    _validate_contact(participant_name, participant_email)
    _validate_problem_statement(hackathon, problem_statement_id)
    parsed = _coerce_answers(answers)
    _validate_answers(hackathon, parsed)

    stages = hackathon.sorted_stages()
    if stages:
        status = SubmissionStatus.at_stage(SubmissionPhase.PENDING_REVIEW, stages[0].id)
    else:
        status = SubmissionStatus.submitted()

    email = normalize_email(participant_email)
    submission = Submission(
        id=generate_id(),
        hackathon_id=hackathon_id,
        problem_statement_id=problem_statement_id,
        project_name=project_name.strip(),
        participant_name=participant_name.strip(),
        participant_email=email,
        answers=parsed,
        status=status,
        submitted_at=now,
    )
    submission = with_history(submission, email, f"Submission created by {email}.", now)
    return state.model_copy(update={"submissions": [*state.submissions, submission]}), submission


def can_edit(state: AppState, submission: Submission, user_email: str) -> bool:
    if same_email(submission.participant_email, user_email):
        return True
    if submission.team_id:
        return any(
            m.team_id == submission.team_id
            and same_email(m.participant_email, user_email)
            and m.status == TeamMemberStatus.ACCEPTED
            for m in state.team_members
        )
    return False


def update_submission(
    state: AppState,
    submission_id: str,
    user_email: str,
    now: datetime,
    project_name: Optional[str] = None,
    problem_statement_id: Optional[str] = None,
    answers: Optional[Iterable[AnswerInput]] = None,
) -> AppState:
    """Edit project details. Refused while another collaborator holds the edit lock."""
    submission = get_submission(state, submission_id)
    hackathon = get_hackathon(state, submission.hackathon_id)
    if not can_edit(state, submission, user_email):
        raise PermissionDeniedError(f"{user_email} cannot edit this submission")
    ensure_editable(submission, user_email, now)

    fields: Dict[str, Any] = {}
    if project_name is not None:
        if not project_name.strip():
            raise ValidationError("Project name is required.")
        fields["project_name"] = project_name.strip()
    if problem_statement_id is not None:
        _validate_problem_statement(hackathon, problem_statement_id)
        fields["problem_statement_id"] = problem_statement_id
    if answers is not None:
        parsed = _coerce_answers(answers)
        _validate_answers(hackathon, parsed)
        fields["answers"] = parsed
    if not fields:
        raise ValidationError("No fields provided")

    updated = submission.model_copy(update=fields)
    updated = with_history(updated, user_email, f"Submission details updated by {user_email}.", now)
    return replace_submission(state, updated)


def delete_submission(state: AppState, submission_id: str, user_email: str) -> AppState:
    """Solo entries: only the submitter. Team entries: only the leader; the team goes too."""
    submission = get_submission(state, submission_id)
    teams = state.teams
    members = state.team_members
    if not submission.team_id:
        if not same_email(submission.participant_email, user_email):
            raise PermissionDeniedError("Only the submitter can delete this solo submission.")
    else:
        team = next((t for t in state.teams if t.id == submission.team_id), None)
        if team is None:
            raise ValidationError("Associated team not found.")
        if not same_email(team.leader_email, user_email):
            raise PermissionDeniedError("Only the team leader can delete this team submission.")
        teams = [t for t in state.teams if t.id != team.id]
        members = [m for m in state.team_members if m.team_id != team.id]
    return state.model_copy(update={
        "submissions": [s for s in state.submissions if s.id != submission_id],
        "teams": teams,
        "team_members": members,
    })


def submissions_for_hackathon(
    state: AppState, hackathon_id: str, phase: Optional[SubmissionPhase] = None
) -> List[Submission]:
    get_hackathon(state, hackathon_id)
    return [
        s for s in state.submissions
        if s.hackathon_id == hackathon_id and (phase is None or s.status.phase == phase)
    ]


def submissions_for_participant(state: AppState, email: str) -> List[Submission]:
    """Own submissions plus those of teams the participant has joined, approved hackathons only."""
    out = []
    for sub in state.submissions:
        hackathon = find_hackathon(state, sub.hackathon_id)
        if hackathon is None or hackathon.status != HackathonApprovalStatus.APPROVED:
            continue
        if same_email(sub.participant_email, email):
            out.append(sub)
        elif sub.team_id and any(
            m.team_id == sub.team_id
            and same_email(m.participant_email, email)
            and m.status == TeamMemberStatus.ACCEPTED
            for m in state.team_members
        ):
            out.append(sub)
    return out


def participant_history(state: AppState, email: str) -> List[Dict[str, Any]]:
    history = []
    for sub in state.submissions:
        hackathon = find_hackathon(state, sub.hackathon_id)
        if hackathon is None:
            continue
        role = "Solo"
        team_name = None
        team = next((t for t in state.teams if t.id == sub.team_id), None) if sub.team_id else None
        if team is not None:
            team_name = team.name
            if same_email(team.leader_email, email):
                role = "Leader"
            elif any(
                m.team_id == team.id
                and same_email(m.participant_email, email)
                and m.status == TeamMemberStatus.ACCEPTED
                for m in state.team_members
            ):
                role = "Member"
            elif same_email(sub.participant_email, email):
                role = "Submitter"
            else:
                continue
        elif not same_email(sub.participant_email, email):
            continue
        history.append({
            "hackathon_id": hackathon.id,
            "hackathon_title": hackathon.title,
            "submission_id": sub.id,
            "project_name": sub.project_name,
            "team_id": sub.team_id,
            "team_name": team_name,
            "role": role,
            "submitted_at": sub.submitted_at,
            "status": display_status(sub.status, hackathon.stages, sub.award),
        })
    history.sort(key=lambda h: h["submitted_at"], reverse=True)
    return history
