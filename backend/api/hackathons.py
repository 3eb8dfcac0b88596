"""Hackathon lifecycle, event setup and public Q&A endpoints."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Form
from pydantic import BaseModel

from api.common import api_errors, current_user, require_user
from services.hackathon_service import get_hackathon_service

router = APIRouter()


class HackathonUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    rules: Optional[str] = None
    timeline: Optional[str] = None
    prizes: Optional[List[str]] = None
    is_accepting_submissions: Optional[bool] = None
    auto_advance: Optional[bool] = None


class ProblemStatementUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class SubmissionQuestionUpdate(BaseModel):
    text: Optional[str] = None
    type: Optional[str] = None
    is_required: Optional[bool] = None


class AwardCategoryIn(BaseModel):
    id: str
    name: str
    allowed_levels: List[str] = []


class WinnerConfigurationIn(BaseModel):
    scope: str = "overall"
    award_categories: List[AwardCategoryIn] = []


@router.get("/hackathons")
def list_hackathons(user: Optional[str] = Depends(current_user)) -> Dict[str, Any]:
    with api_errors("list hackathons"):
        hackathons = get_hackathon_service().list_hackathons(user)
        return {"hackathons": [h.model_dump(mode="json") for h in hackathons]}


@router.get("/hackathons/{hackathon_id}")
def get_hackathon(hackathon_id: str, user: Optional[str] = Depends(current_user)) -> Dict[str, Any]:
    with api_errors("get hackathon"):
        return {"hackathon": get_hackathon_service().get_hackathon(hackathon_id, user).model_dump(mode="json")}


@router.post("/hackathons")
def create_hackathon(
    title: str = Form(...),
    description: str = Form(""),
    user: str = Depends(require_user),
) -> Dict[str, Any]:
    with api_errors("create hackathon"):
        hackathon = get_hackathon_service().create_hackathon(title, description, user)
        return {"ok": True, "hackathon": hackathon.model_dump(mode="json")}


@router.put("/hackathons/{hackathon_id}")
def update_hackathon(
    hackathon_id: str, payload: HackathonUpdate, user: str = Depends(require_user)
) -> Dict[str, Any]:
    fields = payload.model_dump(exclude_unset=True)
    with api_errors("update hackathon"):
        hackathon = get_hackathon_service().update_hackathon(hackathon_id, fields, user)
        return {"ok": True, "hackathon": hackathon.model_dump(mode="json")}


@router.post("/hackathons/{hackathon_id}/approve")
def approve_hackathon(hackathon_id: str, user: str = Depends(require_user)) -> Dict[str, Any]:
    with api_errors("approve hackathon"):
        hackathon = get_hackathon_service().approve_hackathon(hackathon_id, user)
        return {"ok": True, "hackathon": hackathon.model_dump(mode="json")}


@router.post("/hackathons/{hackathon_id}/decline")
def decline_hackathon(
    hackathon_id: str, reason: str = Form(""), user: str = Depends(require_user)
) -> Dict[str, Any]:
    with api_errors("decline hackathon"):
        hackathon = get_hackathon_service().decline_hackathon(hackathon_id, reason, user)
        return {"ok": True, "hackathon": hackathon.model_dump(mode="json")}


@router.post("/hackathons/{hackathon_id}/archive")
def archive_hackathon(hackathon_id: str, user: str = Depends(require_user)) -> Dict[str, Any]:
    with api_errors("archive hackathon"):
        hackathon = get_hackathon_service().archive_hackathon(hackathon_id, user)
        return {"ok": True, "hackathon": hackathon.model_dump(mode="json")}


@router.delete("/hackathons/{hackathon_id}")
def delete_hackathon(hackathon_id: str, user: str = Depends(require_user)) -> Dict[str, Any]:
    with api_errors("delete hackathon"):
        get_hackathon_service().delete_hackathon(hackathon_id, user)
        return {"ok": True}


# --- Problem statements ---

@router.post("/hackathons/{hackathon_id}/problem-statements")
def add_problem_statement(
    hackathon_id: str,
    title: str = Form(...),
    description: str = Form(""),
    user: str = Depends(require_user),
) -> Dict[str, Any]:
    with api_errors("add problem statement"):
        ps = get_hackathon_service().add_problem_statement(hackathon_id, title, description, user)
        return {"ok": True, "problem_statement": ps.model_dump(mode="json")}


@router.put("/hackathons/{hackathon_id}/problem-statements/{statement_id}")
def update_problem_statement(
    hackathon_id: str, statement_id: str, payload: ProblemStatementUpdate, user: str = Depends(require_user)
) -> Dict[str, Any]:
    with api_errors("update problem statement"):
        get_hackathon_service().update_problem_statement(
            hackathon_id, statement_id, payload.model_dump(exclude_unset=True), user
        )
        return {"ok": True}


@router.delete("/hackathons/{hackathon_id}/problem-statements/{statement_id}")
def delete_problem_statement(hackathon_id: str, statement_id: str, user: str = Depends(require_user)):
    with api_errors("delete problem statement"):
        get_hackathon_service().delete_problem_statement(hackathon_id, statement_id, user)
        return {"ok": True}


# --- Submission questions ---

@router.post("/hackathons/{hackathon_id}/submission-questions")
def add_submission_question(
    hackathon_id: str,
    text: str = Form(...),
    type: str = Form("textarea"),
    is_required: bool = Form(False),
    user: str = Depends(require_user),
) -> Dict[str, Any]:
    with api_errors("add submission question"):
        q = get_hackathon_service().add_submission_question(hackathon_id, text, type, is_required, user)
        return {"ok": True, "question": q.model_dump(mode="json")}


@router.put("/hackathons/{hackathon_id}/submission-questions/{question_id}")
def update_submission_question(
    hackathon_id: str, question_id: str, payload: SubmissionQuestionUpdate, user: str = Depends(require_user)
) -> Dict[str, Any]:
    with api_errors("update submission question"):
        get_hackathon_service().update_submission_question(
            hackathon_id, question_id, payload.model_dump(exclude_unset=True), user
        )
        return {"ok": True}


@router.delete("/hackathons/{hackathon_id}/submission-questions/{question_id}")
def delete_submission_question(hackathon_id: str, question_id: str, user: str = Depends(require_user)):
    with api_errors("delete submission question"):
        get_hackathon_service().delete_submission_question(hackathon_id, question_id, user)
        return {"ok": True}


# --- Admins & awards ---

@router.post("/hackathons/{hackathon_id}/admins")
def assign_admin(hackathon_id: str, email: str = Form(...), user: str = Depends(require_user)):
    with api_errors("assign admin"):
        hackathon = get_hackathon_service().assign_admin(hackathon_id, email, user)
        return {"ok": True, "admin_emails": hackathon.admin_emails}


@router.delete("/hackathons/{hackathon_id}/admins/{email}")
def remove_admin(hackathon_id: str, email: str, user: str = Depends(require_user)):
    with api_errors("remove admin"):
        hackathon = get_hackathon_service().remove_admin(hackathon_id, email, user)
        return {"ok": True, "admin_emails": hackathon.admin_emails}


@router.put("/hackathons/{hackathon_id}/winner-configuration")
def update_winner_configuration(
    hackathon_id: str, payload: WinnerConfigurationIn, user: str = Depends(require_user)
) -> Dict[str, Any]:
    with api_errors("update winner configuration"):
        hackathon = get_hackathon_service().update_winner_configuration(hackathon_id, payload.model_dump(), user)
        return {"ok": True, "winner_configuration": hackathon.winner_configuration.model_dump(mode="json")}


# --- Public Q&A ---

@router.post("/hackathons/{hackathon_id}/qa")
def ask_question(
    hackathon_id: str,
    question_text: str = Form(...),
    asked_by_name: str = Form("Anonymous"),
    user: Optional[str] = Depends(current_user),
) -> Dict[str, Any]:
    with api_errors("ask question"):
        q = get_hackathon_service().ask_question(hackathon_id, question_text, asked_by_name, user)
        return {"ok": True, "question": q.model_dump(mode="json")}


@router.post("/hackathons/{hackathon_id}/qa/{question_id}/answer")
def answer_question(
    hackathon_id: str,
    question_id: str,
    answer_text: str = Form(...),
    user: str = Depends(require_user),
) -> Dict[str, Any]:
    with api_errors("answer question"):
        get_hackathon_service().answer_question(hackathon_id, question_id, answer_text, user)
        return {"ok": True}
