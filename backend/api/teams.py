from typing import Any, Dict

from fastapi import APIRouter, Depends, Form

from api.common import api_errors, require_user
from services.hackathon_service import get_hackathon_service


router = APIRouter()


@router.post("/submissions/{submission_id}/team")
def create_team(submission_id: str, name: str = Form(...), user: str = Depends(require_user)) -> Dict[str, Any]:
    with api_errors("create team"):
        team = get_hackathon_service().create_team(submission_id, name, user)
        return {"ok": True, "team": team.model_dump(mode="json")}


@router.get("/teams")
def my_teams(user: str = Depends(require_user)):
    with api_errors("list teams"):
        return {"teams": [t.model_dump(mode="json") for t in get_hackathon_service().teams_for(user)]}


@router.get("/teams/{team_id}")
def get_team(team_id: str) -> Dict[str, Any]:
    with api_errors("get team"):
        team, members = get_hackathon_service().get_team(team_id)
        return {
            "team": team.model_dump(mode="json"),
            "members": [m.model_dump(mode="json") for m in members],
        }


@router.post("/teams/{team_id}/invitations")
def invite_member(team_id: str, email: str = Form(...), user: str = Depends(require_user)) -> Dict[str, Any]:
    with api_errors("invite team member"):
        invite = get_hackathon_service().invite_member(team_id, email, user)
        return {"ok": True, "invitation": invite.model_dump(mode="json")}


@router.delete("/teams/{team_id}/members/{email}")
def remove_member(team_id: str, email: str, user: str = Depends(require_user)):
    with api_errors("remove team member"):
        get_hackathon_service().remove_member(team_id, email, user)
        return {"ok": True}


@router.post("/teams/{team_id}/leave")
def leave_team(team_id: str, user: str = Depends(require_user)):
    with api_errors("leave team"):
        get_hackathon_service().leave_team(team_id, user)
        return {"ok": True}


@router.get("/invitations")
def my_invitations(user: str = Depends(require_user)):
    with api_errors("list invitations"):
        invites = get_hackathon_service().invitations_for(user)
        return {"invitations": [m.model_dump(mode="json") for m in invites]}


@router.post("/invitations/{invitation_id}/respond")
def respond_to_invitation(invitation_id: str, accept: bool = Form(...), user: str = Depends(require_user)):
    with api_errors("respond to invitation"):
        get_hackathon_service().respond_to_invitation(invitation_id, accept, user)
        return {"ok": True}
