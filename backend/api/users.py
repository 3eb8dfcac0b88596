"""Platform accounts (admins and judges) and super-admin account management."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Form, Query

from api.common import api_errors, current_user, require_user
from models.schemas import AccountStatus, UserRole
from services.hackathon_service import get_hackathon_service


router = APIRouter()


@router.get("/me")
def whoami(user: Optional[str] = Depends(current_user)) -> Dict[str, Any]:
    with api_errors("resolve role"):
        return {"email": user, "role": get_hackathon_service().resolve_role(user).value}


@router.get("/users")
def list_users(
    role: UserRole = Query(...),
    status: Optional[AccountStatus] = Query(None),
    user: str = Depends(require_user),
):
    with api_errors("list users"):
        accounts = get_hackathon_service().list_users(role, status, user)
        return {"users": [u.model_dump(mode="json") for u in accounts]}


@router.post("/users")
def add_user(email: str = Form(...), role: UserRole = Form(...), user: str = Depends(require_user)):
    with api_errors("add user"):
        account = get_hackathon_service().add_user(email, role, user)
        return {"ok": True, "user": account.model_dump(mode="json")}


@router.post("/users/request")
def request_account(email: str = Form(...), role: UserRole = Form(...)):
    with api_errors("request account"):
        account = get_hackathon_service().request_account(email, role)
        return {"ok": True, "user": account.model_dump(mode="json")}


@router.post("/users/{user_id}/approve")
def approve_user(user_id: str, user: str = Depends(require_user)):
    with api_errors("approve user"):
        account = get_hackathon_service().approve_user(user_id, user)
        return {"ok": True, "user": account.model_dump(mode="json")}


@router.post("/users/{user_id}/decline")
def decline_user(user_id: str, user: str = Depends(require_user)):
    with api_errors("decline user"):
        account = get_hackathon_service().decline_user(user_id, user)
        return {"ok": True, "user": account.model_dump(mode="json")}


@router.delete("/users/{user_id}")
def remove_user(user_id: str, user: str = Depends(require_user)):
    with api_errors("remove user"):
        get_hackathon_service().remove_user(user_id, user)
        return {"ok": True}


@router.post("/users/{user_id}/resend-invite")
def resend_invite(user_id: str, user: str = Depends(require_user)):
    with api_errors("resend invitation"):
        result = get_hackathon_service().resend_invitation(user_id, user)
        return {"ok": result.success, "message": result.message}


@router.get("/users/assignments")
def assignments(email: str = Query(...), user: str = Depends(require_user)):
    with api_errors("list assignments"):
        service = get_hackathon_service()
        return {
            "admin_of": [{"id": h.id, "title": h.title} for h in service.admin_assignments(email)],
            "judge_of": [
                {"hackathon_id": h.id, "hackathon_title": h.title, "stage_id": s.id, "stage_name": s.name}
                for h, s in service.judge_assignments(email)
            ],
        }
