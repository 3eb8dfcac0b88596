"""Advisory edit lock on a submission.

One collaborator at a time may edit project details. A lock is a
``(user_email, expires_at)`` pair; it is never renewed in the background, so a
long editing session can outlive its own lock.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from models.schemas import AppState, EditLock, Submission
from utils.text import normalize_email, same_email
from workflow.errors import LockConflictError
from workflow.state import get_submission, replace_submission, with_history


def active_lock(submission: Submission, now: datetime) -> Optional[EditLock]:
    lock = submission.locked_by
    if lock is None or lock.is_expired(now):
        return None
    return lock


def ensure_editable(submission: Submission, user_email: str, now: datetime) -> None:
    lock = active_lock(submission, now)
    if lock is not None and not same_email(lock.user_email, user_email):
        raise LockConflictError(lock.user_email, lock.expires_at)


def acquire_edit_lock(
    state: AppState, submission_id: str, user_email: str, now: datetime, duration_seconds: int
) -> AppState:
    """Take (or renew) the lock. Fails only if someone else holds an unexpired lock."""
    submission = get_submission(state, submission_id)
    ensure_editable(submission, user_email, now)
    lock = EditLock(
        user_email=normalize_email(user_email),
        expires_at=now + timedelta(seconds=duration_seconds),
    )
    updated = submission.model_copy(update={"locked_by": lock})
    updated = with_history(updated, user_email, "Acquired edit lock.", now)
    return replace_submission(state, updated)


def release_edit_lock(state: AppState, submission_id: str, user_email: str, now: datetime) -> AppState:
    """Drop the caller's lock. An absent or expired lock counts as already released."""
    submission = get_submission(state, submission_id)
    lock = active_lock(submission, now)
    if lock is None:
        if submission.locked_by is None:
            return state
        return replace_submission(state, submission.model_copy(update={"locked_by": None}))
    if not same_email(lock.user_email, user_email):
        raise LockConflictError(lock.user_email, lock.expires_at)
    updated = submission.model_copy(update={"locked_by": None})
    updated = with_history(updated, user_email, "Released edit lock.", now)
    return replace_submission(state, updated)
