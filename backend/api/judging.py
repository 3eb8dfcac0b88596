from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from api.common import api_errors, require_user, submission_out
from models.schemas import StageDecision
from services.hackathon_service import get_hackathon_service


router = APIRouter()


class CriterionScoreIn(BaseModel):
    criterion_id: str
    score: float
    comment: Optional[str] = None


class JudgementIn(BaseModel):
    stage_id: str
    scores: List[CriterionScoreIn]
    general_comment: str = ""
    # Omit to save scores without moving the submission on
    decision: Optional[StageDecision] = None


@router.get("/judging/{hackathon_id}/queue")
def judge_queue(
    hackathon_id: str, stage_id: Optional[str] = Query(None), user: str = Depends(require_user)
) -> Dict[str, Any]:
    with api_errors("load judging queue"):
        service = get_hackathon_service()
        subs = service.submissions_for_judge(user, hackathon_id, stage_id)
        hackathon = next((h for h in service.state().hackathons if h.id == hackathon_id), None)
        return {"submissions": [submission_out(s, hackathon) for s in subs]}


@router.get("/judging/assignments")
def my_assignments(user: str = Depends(require_user)):
    with api_errors("list judge assignments"):
        pairs = get_hackathon_service().judge_assignments(user)
        return {
            "assignments": [
                {"hackathon_id": h.id, "hackathon_title": h.title, "stage_id": s.id, "stage_name": s.name}
                for h, s in pairs
            ]
        }


@router.post("/submissions/{submission_id}/judgements")
def judge_submission(
    submission_id: str, payload: JudgementIn, user: str = Depends(require_user)
) -> Dict[str, Any]:
    with api_errors("record judgement"):
        service = get_hackathon_service()
        submission = service.judge_submission(
            submission_id,
            payload.stage_id,
            [s.model_dump() for s in payload.scores],
            payload.general_comment,
            payload.decision,
            user,
        )
        summary = service.score_summary(submission_id, payload.stage_id)
        return {
            "ok": True,
            "submission": submission.model_dump(mode="json"),
            "summary": summary.model_dump(),
        }


@router.get("/submissions/{submission_id}/scores/{stage_id}")
def score_summary(submission_id: str, stage_id: str) -> Dict[str, Any]:
    with api_errors("summarize scores"):
        return {"summary": get_hackathon_service().score_summary(submission_id, stage_id).model_dump()}
