from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from fastapi import Header, HTTPException

from models.schemas import Hackathon, Submission
from workflow.errors import (
    HackathonHubError,
    InvalidTransitionError,
    LockConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from workflow.status import display_status

logger = logging.getLogger(__name__)


ERROR_STATUS = {
    NotFoundError: 404,
    ValidationError: 422,
    PermissionDeniedError: 403,
    InvalidTransitionError: 409,
    LockConflictError: 423,
}


def to_http_error(e: HackathonHubError) -> HTTPException:
    code = next((c for cls, c in ERROR_STATUS.items() if isinstance(e, cls)), 400)
    detail: Any = str(e)
    if isinstance(e, LockConflictError):
        detail = {"error": str(e), "locked_by": e.holder, "expires_at": e.expires_at.isoformat()}
    return HTTPException(status_code=code, detail=detail)


@contextmanager
def api_errors(action: str) -> Iterator[None]:
    """Translate domain errors into HTTP responses; anything else is a 500."""
    try:
        yield
    except HTTPException:
        raise
    except HackathonHubError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"Failed to {action}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


def current_user(x_user_email: Optional[str] = Header(None)) -> Optional[str]:
    """Caller identity. There is no authentication; the client states who it is."""
    if x_user_email is None:
        return None
    return x_user_email.strip().lower() or None


def require_user(x_user_email: Optional[str] = Header(None)) -> str:
    email = current_user(x_user_email)
    if not email:
        raise HTTPException(status_code=401, detail="X-User-Email header is required")
    return email


def submission_out(submission: Submission, hackathon: Optional[Hackathon] = None) -> Dict[str, Any]:
    data = submission.model_dump(mode="json")
    stages = hackathon.stages if hackathon is not None else []
    data["status_label"] = display_status(submission.status, stages, submission.award)
    return data
