"""Organizer tips for event admins."""

from fastapi import APIRouter, Depends, Form, HTTPException

from api.common import api_errors, require_user
from models.schemas import UserRole
from services.ai_assistance_service import get_ai_assistance_service
from services.hackathon_service import get_hackathon_service


router = APIRouter()


@router.get("/ai/topics")
def list_topics():
    service = get_ai_assistance_service()
    return {"topics": [t.model_dump() for t in service.list_topics()], "live": service.is_live}


@router.post("/ai/tips")
async def get_tips(topic_id: str = Form(...), user: str = Depends(require_user)):
    with api_errors("load tips"):
        role = get_hackathon_service().resolve_role(user)
        if role not in (UserRole.ADMIN, UserRole.SUPERADMIN):
            raise HTTPException(status_code=403, detail="Only admins can request tips")
        tips = await get_ai_assistance_service().get_tips(topic_id)
        return {"tips": tips.model_dump()}
