"""Platform accounts for event admins and judges, plus actor role checks.

Super-admins come from configuration and never appear in ``state.users``.
Anyone else without an approved account acts as a participant.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from config.app_config import is_superadmin
from models.schemas import AccountStatus, AppState, Hackathon, HackathonStage, UserAccount, UserRole
from utils.text import generate_id, normalize_email, same_email
from workflow.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError, ValidationError


STAFF_ROLES = (UserRole.ADMIN, UserRole.JUDGE)


def find_user(state: AppState, email: str, role: Optional[UserRole] = None) -> Optional[UserAccount]:
    return next(
        (
            u for u in state.users
            if same_email(u.email, email) and (role is None or u.role == role)
        ),
        None,
    )


def get_user(state: AppState, user_id: str) -> UserAccount:
    for u in state.users:
        if u.id == user_id:
            return u
    raise NotFoundError("User", user_id)


def resolve_role(state: AppState, email: Optional[str]) -> UserRole:
    if is_superadmin(email):
        return UserRole.SUPERADMIN
    if email:
        # An admin account outranks a judge account for the same address
        for role in STAFF_ROLES:
            account = find_user(state, email, role)
            if account is not None and account.status == AccountStatus.APPROVED:
                return role
    return UserRole.PARTICIPANT


def require_superadmin(email: Optional[str]) -> None:
    if not is_superadmin(email):
        raise PermissionDeniedError("Only a super-admin can do this.")


def can_manage(state: AppState, hackathon: Hackathon, email: Optional[str]) -> bool:
    if is_superadmin(email):
        return True
    return bool(email) and any(same_email(e, email) for e in hackathon.admin_emails)


def require_event_admin(state: AppState, hackathon: Hackathon, email: Optional[str]) -> None:
    if not can_manage(state, hackathon, email):
        raise PermissionDeniedError(f"{email or 'Anonymous'} does not manage {hackathon.title!r}")


def require_approved_judge(state: AppState, email: str) -> None:
    account = find_user(state, email, UserRole.JUDGE)
    if account is None or account.status != AccountStatus.APPROVED:
        raise ValidationError(f"{email} is not an approved judge.")


def _new_account(state: AppState, email: str, role: UserRole, status: AccountStatus, now: datetime) -> UserAccount:
    if role not in STAFF_ROLES:
        raise ValidationError("Accounts can only be created for admins and judges.")
    if "@" not in (email or ""):
        raise ValidationError("A valid email is required.")
    if is_superadmin(email):
        raise ValidationError("Super-admin accounts are configured, not created.")
    if find_user(state, email, role) is not None:
        raise ValidationError(f"A {role.value} account for {email} already exists.")
    return UserAccount(id=generate_id(), email=normalize_email(email), role=role, status=status, created_at=now)


def add_user(
    state: AppState, email: str, role: UserRole, actor_email: str, now: datetime
) -> Tuple[AppState, UserAccount]:
    """Create an account directly. Super-admin only; the account is approved straight away."""
    require_superadmin(actor_email)
    account = _new_account(state, email, role, AccountStatus.APPROVED, now)
    return state.model_copy(update={"users": [*state.users, account]}), account


def request_account(state: AppState, email: str, role: UserRole, now: datetime) -> Tuple[AppState, UserAccount]:
    account = _new_account(state, email, role, AccountStatus.PENDING, now)
    return state.model_copy(update={"users": [*state.users, account]}), account


def _set_account_status(state: AppState, user_id: str, status: AccountStatus) -> AppState:
    account = get_user(state, user_id)
    if account.status != AccountStatus.PENDING:
        raise InvalidTransitionError(f"Account {account.email} is {account.status.value}, not pending")
    updated = account.model_copy(update={"status": status})
    return state.model_copy(update={"users": [updated if u.id == user_id else u for u in state.users]})


def approve_user(state: AppState, user_id: str) -> AppState:
    return _set_account_status(state, user_id, AccountStatus.APPROVED)


def decline_user(state: AppState, user_id: str) -> AppState:
    return _set_account_status(state, user_id, AccountStatus.DECLINED)


def remove_user(state: AppState, user_id: str) -> AppState:
    """Delete the account and strip it from every assignment of its role."""
    account = get_user(state, user_id)
    hackathons = []
    for h in state.hackathons:
        if account.role == UserRole.ADMIN:
            h = h.model_copy(
                update={"admin_emails": [e for e in h.admin_emails if not same_email(e, account.email)]}
            )
        elif account.role == UserRole.JUDGE:
            stages = [
                s.model_copy(update={
                    "assigned_judge_emails": [
                        e for e in s.assigned_judge_emails if not same_email(e, account.email)
                    ]
                })
                for s in h.stages
            ]
            h = h.model_copy(update={"stages": stages})
        hackathons.append(h)
    return state.model_copy(update={
        "users": [u for u in state.users if u.id != user_id],
        "hackathons": hackathons,
    })


def users_by_role(state: AppState, role: UserRole, status: Optional[AccountStatus] = None) -> List[UserAccount]:
    return [u for u in state.users if u.role == role and (status is None or u.status == status)]


def admin_assignments(state: AppState, email: str) -> List[Hackathon]:
    return [h for h in state.hackathons if any(same_email(e, email) for e in h.admin_emails)]


def judge_assignments(state: AppState, email: str) -> List[Tuple[Hackathon, HackathonStage]]:
    out = []
    for h in state.hackathons:
        for s in h.sorted_stages():
            if any(same_email(e, email) for e in s.assigned_judge_emails):
                out.append((h, s))
    return out
