from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Form
from pydantic import BaseModel

from api.common import api_errors, require_user
from services.hackathon_service import get_hackathon_service


router = APIRouter()


class CriterionIn(BaseModel):
    name: str
    description: str = ""
    max_score: int


class CriterionUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    max_score: Optional[int] = None


class StageIn(BaseModel):
    name: str
    description: str = ""
    order: Optional[int] = None
    judging_criteria: List[CriterionIn] = []


class StageUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    order: Optional[int] = None


@router.post("/hackathons/{hackathon_id}/stages")
def add_stage(hackathon_id: str, payload: StageIn, user: str = Depends(require_user)) -> Dict[str, Any]:
    with api_errors("add stage"):
        stage = get_hackathon_service().add_stage(
            hackathon_id,
            payload.name,
            payload.description,
            payload.order,
            [c.model_dump() for c in payload.judging_criteria],
            user,
        )
        return {"ok": True, "stage": stage.model_dump(mode="json")}


@router.put("/hackathons/{hackathon_id}/stages/{stage_id}")
def update_stage(
    hackathon_id: str, stage_id: str, payload: StageUpdate, user: str = Depends(require_user)
) -> Dict[str, Any]:
    with api_errors("update stage"):
        hackathon = get_hackathon_service().update_stage(
            hackathon_id, stage_id, payload.model_dump(exclude_unset=True), user
        )
        return {"ok": True, "stages": [s.model_dump(mode="json") for s in hackathon.stages]}


@router.delete("/hackathons/{hackathon_id}/stages/{stage_id}")
def delete_stage(hackathon_id: str, stage_id: str, user: str = Depends(require_user)):
    with api_errors("delete stage"):
        get_hackathon_service().delete_stage(hackathon_id, stage_id, user)
        return {"ok": True}


@router.put("/hackathons/{hackathon_id}/current-stage")
def set_current_stage(
    hackathon_id: str, stage_id: Optional[str] = Form(None), user: str = Depends(require_user)
):
    with api_errors("set current stage"):
        hackathon = get_hackathon_service().set_current_stage(hackathon_id, stage_id or None, user)
        return {"ok": True, "current_stage_id": hackathon.current_stage_id}


@router.post("/hackathons/{hackathon_id}/stages/{stage_id}/transition")
def transition_to_stage(hackathon_id: str, stage_id: str, user: str = Depends(require_user)):
    """Move every eligible submission into this stage's review queue."""
    with api_errors("transition submissions"):
        changed = get_hackathon_service().transition_to_stage(hackathon_id, stage_id, user)
        return {"ok": True, "moved": changed}


# --- Criteria ---

@router.post("/hackathons/{hackathon_id}/stages/{stage_id}/criteria")
def add_criterion(
    hackathon_id: str, stage_id: str, payload: CriterionIn, user: str = Depends(require_user)
) -> Dict[str, Any]:
    with api_errors("add criterion"):
        criterion = get_hackathon_service().add_criterion(hackathon_id, stage_id, payload.model_dump(), user)
        return {"ok": True, "criterion": criterion.model_dump(mode="json")}


@router.put("/hackathons/{hackathon_id}/stages/{stage_id}/criteria/{criterion_id}")
def update_criterion(
    hackathon_id: str,
    stage_id: str,
    criterion_id: str,
    payload: CriterionUpdate,
    user: str = Depends(require_user),
):
    with api_errors("update criterion"):
        get_hackathon_service().update_criterion(
            hackathon_id, stage_id, criterion_id, payload.model_dump(exclude_unset=True), user
        )
        return {"ok": True}


@router.delete("/hackathons/{hackathon_id}/stages/{stage_id}/criteria/{criterion_id}")
def delete_criterion(hackathon_id: str, stage_id: str, criterion_id: str, user: str = Depends(require_user)):
    with api_errors("delete criterion"):
        get_hackathon_service().delete_criterion(hackathon_id, stage_id, criterion_id, user)
        return {"ok": True}


# --- Judges ---

@router.post("/hackathons/{hackathon_id}/stages/{stage_id}/judges")
def assign_judge(
    hackathon_id: str, stage_id: str, email: str = Form(...), user: str = Depends(require_user)
):
    with api_errors("assign judge"):
        hackathon = get_hackathon_service().assign_judge(hackathon_id, stage_id, email, user)
        stage = hackathon.get_stage(stage_id)
        return {"ok": True, "assigned_judge_emails": stage.assigned_judge_emails}


@router.delete("/hackathons/{hackathon_id}/stages/{stage_id}/judges/{email}")
def remove_judge(hackathon_id: str, stage_id: str, email: str, user: str = Depends(require_user)):
    with api_errors("remove judge"):
        hackathon = get_hackathon_service().remove_judge(hackathon_id, stage_id, email, user)
        stage = hackathon.get_stage(stage_id)
        return {"ok": True, "assigned_judge_emails": stage.assigned_judge_emails}


@router.get("/hackathons/{hackathon_id}/stages/{stage_id}/leaderboard")
def stage_leaderboard(hackathon_id: str, stage_id: str):
    with api_errors("build leaderboard"):
        return {"rows": get_hackathon_service().stage_leaderboard(hackathon_id, stage_id)}
