from __future__ import annotations

from datetime import datetime
from typing import List, Tuple

from models.schemas import (
    AppState, HackathonApprovalStatus, Team, TeamMember, TeamMemberStatus, TeamRole,
)
from utils.text import generate_id, normalize_email, same_email
from workflow.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError, ValidationError
from workflow.state import (
    find_hackathon, get_submission, get_team, replace_submission, with_history,
)

_OPEN_STATUSES = (TeamMemberStatus.INVITED, TeamMemberStatus.ACCEPTED)


def _log_on_submission(state: AppState, team: Team, user_email: str, action: str, now: datetime) -> AppState:
    submission = next((s for s in state.submissions if s.id == team.submission_id), None)
    if submission is None:
        return state
    return replace_submission(state, with_history(submission, user_email, action, now))


def _accepted_member(state: AppState, team_id: str, email: str):
    return next(
        (
            m for m in state.team_members
            if m.team_id == team_id
            and same_email(m.participant_email, email)
            and m.status == TeamMemberStatus.ACCEPTED
        ),
        None,
    )


def create_team(
    state: AppState, submission_id: str, team_name: str, leader_email: str, now: datetime
) -> Tuple[AppState, Team]:
    submission = get_submission(state, submission_id)
    if not (team_name or "").strip():
        raise ValidationError("Team name is required.")
    if not same_email(submission.participant_email, leader_email):
        raise PermissionDeniedError("Only the submitter can create a team for this submission.")
    if submission.team_id or any(t.submission_id == submission_id for t in state.teams):
        raise InvalidTransitionError("This submission already has a team.")

    leader = normalize_email(leader_email)
    team = Team(
        id=generate_id(),
        hackathon_id=submission.hackathon_id,
        submission_id=submission_id,
        name=team_name.strip(),
        leader_email=leader,
        created_at=now,
    )
    member = TeamMember(
        id=generate_id(),
        team_id=team.id,
        participant_email=leader,
        status=TeamMemberStatus.ACCEPTED,
        role=TeamRole.LEADER,
        invited_at=now,
        joined_at=now,
    )
    updated = with_history(
        submission.model_copy(update={"team_id": team.id}),
        leader, f'Team "{team.name}" created by leader.', now,
    )
    state = state.model_copy(update={
        "teams": [*state.teams, team],
        "team_members": [*state.team_members, member],
    })
    return replace_submission(state, updated), team


def invite_member(
    state: AppState, team_id: str, invitee_email: str, inviter_email: str, now: datetime
) -> Tuple[AppState, TeamMember]:
    team = get_team(state, team_id)
    if "@" not in (invitee_email or ""):
        raise ValidationError("A valid invitee email is required.")
    if _accepted_member(state, team_id, inviter_email) is None:
        raise PermissionDeniedError("Only team members can invite others.")

    existing = next(
        (m for m in state.team_members if m.team_id == team_id and same_email(m.participant_email, invitee_email)),
        None,
    )
    if existing is not None and existing.status in _OPEN_STATUSES:
        raise ValidationError(f"{invitee_email} is already part of this team or has a pending invitation.")

    invite = TeamMember(
        id=existing.id if existing else generate_id(),
        team_id=team_id,
        participant_email=normalize_email(invitee_email),
        status=TeamMemberStatus.INVITED,
        role=TeamRole.MEMBER,
        invited_at=now,
    )
    if existing is not None:
        members = [invite if m.id == existing.id else m for m in state.team_members]
    else:
        members = [*state.team_members, invite]
    state = state.model_copy(update={"team_members": members})
    state = _log_on_submission(state, team, inviter_email, f'Invited {invite.participant_email} to team "{team.name}".', now)
    return state, invite


def respond_to_invitation(
    state: AppState, invitation_id: str, accept: bool, participant_email: str, now: datetime
) -> AppState:
    invitation = next(
        (
            m for m in state.team_members
            if m.id == invitation_id
            and same_email(m.participant_email, participant_email)
            and m.status == TeamMemberStatus.INVITED
        ),
        None,
    )
    if invitation is None:
        raise NotFoundError("Invitation", invitation_id)
    status = TeamMemberStatus.ACCEPTED if accept else TeamMemberStatus.DECLINED
    updated = invitation.model_copy(update={"status": status, "joined_at": now if accept else None})
    state = state.model_copy(
        update={"team_members": [updated if m.id == invitation_id else m for m in state.team_members]}
    )
    team = get_team(state, invitation.team_id)
    return _log_on_submission(
        state, team, participant_email,
        f'{invitation.participant_email} {status.value} invitation to team "{team.name}".', now,
    )


def remove_member(
    state: AppState, team_id: str, member_email: str, remover_email: str, now: datetime
) -> AppState:
    team = get_team(state, team_id)
    if not same_email(team.leader_email, remover_email):
        raise PermissionDeniedError("Only the team leader can remove members.")
    if same_email(member_email, team.leader_email):
        raise ValidationError("Leader cannot remove themselves.")
    member = _accepted_member(state, team_id, member_email)
    if member is None:
        raise NotFoundError("Team member", member_email)
    state = state.model_copy(update={"team_members": [m for m in state.team_members if m.id != member.id]})
    return _log_on_submission(
        state, team, remover_email, f'Removed {member.participant_email} from team "{team.name}".', now
    )


def leave_team(state: AppState, team_id: str, participant_email: str, now: datetime) -> AppState:
    team = get_team(state, team_id)
    if same_email(team.leader_email, participant_email):
        raise ValidationError("Team leaders cannot leave their own team.")
    member = _accepted_member(state, team_id, participant_email)
    if member is None:
        raise NotFoundError("Team member", participant_email)
    left = member.model_copy(update={"status": TeamMemberStatus.LEFT})
    state = state.model_copy(
        update={"team_members": [left if m.id == member.id else m for m in state.team_members]}
    )
    return _log_on_submission(
        state, team, participant_email, f'Participant {member.participant_email} left team "{team.name}".', now
    )


def members_of(state: AppState, team_id: str) -> List[TeamMember]:
    get_team(state, team_id)
    return [m for m in state.team_members if m.team_id == team_id]


def invitations_for(state: AppState, email: str) -> List[TeamMember]:
    return [
        m for m in state.team_members
        if same_email(m.participant_email, email) and m.status == TeamMemberStatus.INVITED
    ]


def teams_for(state: AppState, email: str) -> List[Team]:
    team_ids = {
        m.team_id for m in state.team_members
        if same_email(m.participant_email, email) and m.status == TeamMemberStatus.ACCEPTED
    }
    out = []
    for t in state.teams:
        if t.id not in team_ids:
            continue
        hackathon = find_hackathon(state, t.hackathon_id)
        if hackathon is not None and hackathon.status == HackathonApprovalStatus.APPROVED:
            out.append(t)
    return out
