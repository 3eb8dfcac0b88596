"""Project submissions, edit lock and the admin status actions."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Form, Query
from pydantic import BaseModel

from api.common import api_errors, current_user, require_user, submission_out
from models.schemas import StageDecision, SubmissionPhase
from services.hackathon_service import get_hackathon_service

router = APIRouter()


class AnswerIn(BaseModel):
    question_id: str
    answer: str = ""


class SubmissionIn(BaseModel):
    project_name: str
    participant_name: str
    participant_email: str
    problem_statement_id: Optional[str] = None
    answers: List[AnswerIn] = []


class SubmissionUpdate(BaseModel):
    project_name: Optional[str] = None
    problem_statement_id: Optional[str] = None
    answers: Optional[List[AnswerIn]] = None


def _hackathons_by_id() -> Dict[str, Any]:
    return {h.id: h for h in get_hackathon_service().state().hackathons}


def _out(submission, hackathons: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    if hackathons is None:
        hackathons = _hackathons_by_id()
    return submission_out(submission, hackathons.get(submission.hackathon_id))


@router.post("/hackathons/{hackathon_id}/submissions")
def submit_project(hackathon_id: str, payload: SubmissionIn) -> Dict[str, Any]:
    with api_errors("submit project"):
        submission = get_hackathon_service().submit_project(
            hackathon_id,
            payload.project_name,
            payload.participant_name,
            payload.participant_email,
            problem_statement_id=payload.problem_statement_id,
            answers=[a.model_dump() for a in payload.answers],
        )
        return {"ok": True, "submission": _out(submission)}


@router.get("/hackathons/{hackathon_id}/submissions")
def list_submissions(
    hackathon_id: str,
    phase: Optional[SubmissionPhase] = Query(None),
    user: Optional[str] = Depends(current_user),
) -> Dict[str, Any]:
    with api_errors("list submissions"):
        service = get_hackathon_service()
        subs = service.list_submissions(hackathon_id, user, phase)
        hackathon = service.get_hackathon(hackathon_id, user)
        return {"submissions": [submission_out(s, hackathon) for s in subs]}


@router.get("/submissions/{submission_id}")
def get_submission(submission_id: str) -> Dict[str, Any]:
    with api_errors("get submission"):
        service = get_hackathon_service()
        submission = service.get_submission(submission_id)
        return {
            "submission": _out(submission),
            "revert_targets": [s.model_dump(mode="json") for s in service.revert_targets(submission_id)],
        }


@router.put("/submissions/{submission_id}")
def update_submission(
    submission_id: str, payload: SubmissionUpdate, user: str = Depends(require_user)
) -> Dict[str, Any]:
    fields = payload.model_dump(exclude_unset=True)
    with api_errors("update submission"):
        submission = get_hackathon_service().update_submission(submission_id, user, **fields)
        return {"ok": True, "submission": _out(submission)}


@router.delete("/submissions/{submission_id}")
def delete_submission(submission_id: str, user: str = Depends(require_user)):
    with api_errors("delete submission"):
        get_hackathon_service().delete_submission(submission_id, user)
        return {"ok": True}


@router.post("/submissions/{submission_id}/lock")
def acquire_lock(submission_id: str, user: str = Depends(require_user)):
    with api_errors("acquire edit lock"):
        submission = get_hackathon_service().acquire_edit_lock(submission_id, user)
        return {"ok": True, "locked_by": submission.locked_by.model_dump(mode="json")}


@router.delete("/submissions/{submission_id}/lock")
def release_lock(submission_id: str, user: str = Depends(require_user)):
    with api_errors("release edit lock"):
        get_hackathon_service().release_edit_lock(submission_id, user)
        return {"ok": True}


# --- Status actions ---

@router.post("/submissions/{submission_id}/assign-initial")
def assign_initial(submission_id: str, user: str = Depends(require_user)):
    with api_errors("assign first stage"):
        return {"ok": True, "submission": _out(get_hackathon_service().assign_initial(submission_id, user))}


@router.post("/submissions/{submission_id}/decision")
def decide_stage(
    submission_id: str, decision: StageDecision = Form(...), user: str = Depends(require_user)
):
    with api_errors("record stage decision"):
        submission = get_hackathon_service().decide_stage(submission_id, decision, user)
        return {"ok": True, "submission": _out(submission)}


@router.post("/submissions/{submission_id}/eliminate")
def eliminate(submission_id: str, user: str = Depends(require_user)):
    with api_errors("eliminate submission"):
        return {"ok": True, "submission": _out(get_hackathon_service().eliminate(submission_id, user))}


@router.post("/submissions/{submission_id}/disqualify")
def disqualify(submission_id: str, user: str = Depends(require_user)):
    with api_errors("disqualify submission"):
        return {"ok": True, "submission": _out(get_hackathon_service().disqualify(submission_id, user))}


@router.post("/submissions/{submission_id}/award")
def assign_award(
    submission_id: str,
    category_id: str = Form(""),
    level: str = Form(""),
    user: str = Depends(require_user),
):
    with api_errors("assign award"):
        submission = get_hackathon_service().assign_award(submission_id, category_id, level or None, user)
        return {"ok": True, "submission": _out(submission)}


@router.delete("/submissions/{submission_id}/award")
def rescind_award(submission_id: str, user: str = Depends(require_user)):
    with api_errors("rescind award"):
        return {"ok": True, "submission": _out(get_hackathon_service().rescind_award(submission_id, user))}


@router.post("/submissions/{submission_id}/revert")
def revert_stage(
    submission_id: str, target_stage_id: str = Form(...), user: str = Depends(require_user)
):
    with api_errors("revert stage"):
        submission = get_hackathon_service().revert_stage(submission_id, target_stage_id, user)
        return {"ok": True, "submission": _out(submission)}


@router.put("/submissions/{submission_id}/status")
def set_status(submission_id: str, status: str = Form(...), user: str = Depends(require_user)):
    with api_errors("set submission status"):
        submission = get_hackathon_service().set_status(submission_id, status, user)
        return {"ok": True, "submission": _out(submission)}


# --- Participant views ---

@router.get("/participants/me/submissions")
def my_submissions(user: str = Depends(require_user)):
    with api_errors("list participant submissions"):
        subs = get_hackathon_service().submissions_for_participant(user)
        hackathons = _hackathons_by_id()
        return {"submissions": [_out(s, hackathons) for s in subs]}


@router.get("/participants/me/history")
def my_history(user: str = Depends(require_user)):
    with api_errors("build participant history"):
        return {"history": get_hackathon_service().participant_history(user)}
