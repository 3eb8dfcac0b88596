"""Transactional front door to the workflow reducers.

Every mutating call loads the whole ``AppState`` inside one IMMEDIATE store
transaction, applies a reducer, saves, commits and only then sends any
participant notifications. Reads load the state without a write lock.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from config.app_config import LOCK_DURATION_SECONDS
from models.db import transaction
from models.schemas import (
    AccountStatus, AppState, Hackathon, HackathonApprovalStatus, HackathonQuestion, HackathonStage,
    JudgingCriterion, ProblemStatement, StageDecision, Submission, SubmissionPhase, SubmissionQuestion,
    Team, TeamMember, UserAccount, UserRole, utcnow,
)
from models.store import load_state, save_state
from services import email_service
from workflow import hackathons as hackathon_ops
from workflow import locks, scoring, status, submissions, teams, users
from workflow.errors import HackathonHubError, NotFoundError, PermissionDeniedError, ValidationError
from workflow.state import get_hackathon, get_submission, get_team

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HackathonService:
    """Service for every HackathonHub operation that touches the store."""

    def __init__(
        self,
        lock_duration_seconds: int = LOCK_DURATION_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.lock_duration_seconds = lock_duration_seconds
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    # --- plumbing ---

    def state(self) -> AppState:
        return load_state()

    def _apply(self, label: str, fn: Callable[[AppState], Tuple[AppState, T]]) -> Tuple[AppState, T]:
        """Run ``fn`` against the stored state and save its result atomically."""
        try:
            with transaction() as conn:
                state = load_state(conn)
                new_state, result = fn(state)
                save_state(new_state, conn)
        except HackathonHubError as e:
            logger.warning(f"{label} refused: {e}")
            raise
        except Exception as e:
            logger.error(f"{label} failed: {e}")
            raise
        logger.info(label)
        return new_state, result

    def _update(self, label: str, fn: Callable[[AppState], AppState]) -> AppState:
        state, _ = self._apply(label, lambda s: (fn(s), None))
        return state

    def _managed(self, state: AppState, hackathon_id: str, actor: Optional[str]) -> Hackathon:
        hackathon = get_hackathon(state, hackathon_id)
        users.require_event_admin(state, hackathon, actor)
        return hackathon

    def _admin_update(
        self, label: str, hackathon_id: str, actor: Optional[str], fn: Callable[[AppState], AppState]
    ) -> Hackathon:
        def run(state: AppState) -> AppState:
            self._managed(state, hackathon_id, actor)
            return fn(state)

        return get_hackathon(self._update(label, run), hackathon_id)

    def _admin_create(
        self, label: str, hackathon_id: str, actor: Optional[str], fn: Callable[[AppState], Tuple[AppState, T]]
    ) -> T:
        def run(state: AppState) -> Tuple[AppState, T]:
            self._managed(state, hackathon_id, actor)
            return fn(state)

        _, created = self._apply(label, run)
        return created

    # --- hackathons ---

    def list_hackathons(self, viewer: Optional[str] = None) -> List[Hackathon]:
        state = self.state()
        return [
            h for h in state.hackathons
            if h.status == HackathonApprovalStatus.APPROVED or users.can_manage(state, h, viewer)
        ]

    def get_hackathon(self, hackathon_id: str, viewer: Optional[str] = None) -> Hackathon:
        state = self.state()
        hackathon = get_hackathon(state, hackathon_id)
        if hackathon.status != HackathonApprovalStatus.APPROVED and not users.can_manage(state, hackathon, viewer):
            raise NotFoundError("Hackathon", hackathon_id)
        return hackathon

    def create_hackathon(self, title: str, description: str, actor: Optional[str]) -> Hackathon:
        def run(state: AppState):
            role = users.resolve_role(state, actor)
            if role not in (UserRole.SUPERADMIN, UserRole.ADMIN):
                raise PermissionDeniedError("Only admins can create hackathons.")
            return hackathon_ops.create_hackathon(state, title, description, role, actor, self.now())

        _, hackathon = self._apply(f"Hackathon {title!r} created by {actor}", run)
        return hackathon

    def approve_hackathon(self, hackathon_id: str, actor: Optional[str]) -> Hackathon:
        users.require_superadmin(actor)
        state = self._update(
            f"Hackathon {hackathon_id} approved by {actor}",
            lambda s: hackathon_ops.approve_hackathon(s, hackathon_id, actor, self.now()),
        )
        return get_hackathon(state, hackathon_id)

    def decline_hackathon(self, hackathon_id: str, reason: str, actor: Optional[str]) -> Hackathon:
        users.require_superadmin(actor)
        state = self._update(
            f"Hackathon {hackathon_id} declined by {actor}",
            lambda s: hackathon_ops.decline_hackathon(s, hackathon_id, actor, reason, self.now()),
        )
        return get_hackathon(state, hackathon_id)

    def archive_hackathon(self, hackathon_id: str, actor: Optional[str]) -> Hackathon:
        users.require_superadmin(actor)
        state = self._update(
            f"Hackathon {hackathon_id} archived by {actor}",
            lambda s: hackathon_ops.archive_hackathon(s, hackathon_id),
        )
        return get_hackathon(state, hackathon_id)

    def delete_hackathon(self, hackathon_id: str, actor: Optional[str]) -> None:
        users.require_superadmin(actor)
        self._update(
            f"Hackathon {hackathon_id} deleted by {actor}",
            lambda s: hackathon_ops.delete_hackathon(s, hackathon_id),
        )

    def update_hackathon(self, hackathon_id: str, fields: Dict[str, Any], actor: Optional[str]) -> Hackathon:
        return self._admin_update(
            f"Hackathon {hackathon_id} updated by {actor}: {', '.join(sorted(fields))}",
            hackathon_id, actor,
            lambda s: hackathon_ops.update_hackathon(s, hackathon_id, fields),
        )

    def set_current_stage(self, hackathon_id: str, stage_id: Optional[str], actor: Optional[str]) -> Hackathon:
        return self._admin_update(
            f"Hackathon {hackathon_id} current stage set to {stage_id} by {actor}",
            hackathon_id, actor,
            lambda s: hackathon_ops.set_current_stage(s, hackathon_id, stage_id),
        )

    def add_problem_statement(
        self, hackathon_id: str, title: str, description: str, actor: Optional[str]
    ) -> ProblemStatement:
        return self._admin_create(
            f"Problem statement added to {hackathon_id} by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.add_problem_statement(s, hackathon_id, title, description),
        )

    def update_problem_statement(
        self, hackathon_id: str, statement_id: str, fields: Dict[str, Any], actor: Optional[str]
    ) -> Hackathon:
        return self._admin_update(
            f"Problem statement {statement_id} updated by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.update_problem_statement(s, hackathon_id, statement_id, fields),
        )

    def delete_problem_statement(self, hackathon_id: str, statement_id: str, actor: Optional[str]) -> Hackathon:
        return self._admin_update(
            f"Problem statement {statement_id} deleted by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.delete_problem_statement(s, hackathon_id, statement_id),
        )

    def add_submission_question(
        self, hackathon_id: str, text: str, type: str, is_required: bool, actor: Optional[str]
    ) -> SubmissionQuestion:
        return self._admin_create(
            f"Submission question added to {hackathon_id} by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.add_submission_question(s, hackathon_id, text, type, is_required),
        )

    def update_submission_question(
        self, hackathon_id: str, question_id: str, fields: Dict[str, Any], actor: Optional[str]
    ) -> Hackathon:
        return self._admin_update(
            f"Submission question {question_id} updated by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.update_submission_question(s, hackathon_id, question_id, fields),
        )

    def delete_submission_question(self, hackathon_id: str, question_id: str, actor: Optional[str]) -> Hackathon:
        return self._admin_update(
            f"Submission question {question_id} deleted by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.delete_submission_question(s, hackathon_id, question_id),
        )

    def add_stage(
        self,
        hackathon_id: str,
        name: str,
        description: str,
        order: Optional[int],
        criteria: Optional[List[Dict[str, Any]]],
        actor: Optional[str],
    ) -> HackathonStage:
        return self._admin_create(
            f"Stage {name!r} added to {hackathon_id} by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.add_stage(s, hackathon_id, name, description, order, criteria),
        )

    def update_stage(self, hackathon_id: str, stage_id: str, fields: Dict[str, Any], actor: Optional[str]) -> Hackathon:
        return self._admin_update(
            f"Stage {stage_id} updated by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.update_stage(s, hackathon_id, stage_id, fields),
        )

    def delete_stage(self, hackathon_id: str, stage_id: str, actor: Optional[str]) -> Hackathon:
        return self._admin_update(
            f"Stage {stage_id} deleted by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.delete_stage(s, hackathon_id, stage_id),
        )

    def add_criterion(
        self, hackathon_id: str, stage_id: str, criterion: Dict[str, Any], actor: Optional[str]
    ) -> JudgingCriterion:
        return self._admin_create(
            f"Criterion added to stage {stage_id} by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.add_criterion(s, hackathon_id, stage_id, criterion),
        )

    def update_criterion(
        self, hackathon_id: str, stage_id: str, criterion_id: str, fields: Dict[str, Any], actor: Optional[str]
    ) -> Hackathon:
        return self._admin_update(
            f"Criterion {criterion_id} updated by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.update_criterion(s, hackathon_id, stage_id, criterion_id, fields),
        )

    def delete_criterion(self, hackathon_id: str, stage_id: str, criterion_id: str, actor: Optional[str]) -> Hackathon:
        return self._admin_update(
            f"Criterion {criterion_id} deleted by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.delete_criterion(s, hackathon_id, stage_id, criterion_id),
        )

    def assign_admin(self, hackathon_id: str, admin_email: str, actor: Optional[str]) -> Hackathon:
        users.require_superadmin(actor)

        def run(state: AppState) -> AppState:
            account = users.find_user(state, admin_email, UserRole.ADMIN)
            if account is None or account.status != AccountStatus.APPROVED:
                raise ValidationError(f"{admin_email} is not an approved admin.")
            return hackathon_ops.assign_admin(state, hackathon_id, admin_email)

        state = self._update(f"Admin {admin_email} assigned to {hackathon_id} by {actor}", run)
        return get_hackathon(state, hackathon_id)

    def remove_admin(self, hackathon_id: str, admin_email: str, actor: Optional[str]) -> Hackathon:
        users.require_superadmin(actor)
        state = self._update(
            f"Admin {admin_email} removed from {hackathon_id} by {actor}",
            lambda s: hackathon_ops.remove_admin(s, hackathon_id, admin_email),
        )
        return get_hackathon(state, hackathon_id)

    def assign_judge(self, hackathon_id: str, stage_id: str, judge_email: str, actor: Optional[str]) -> Hackathon:
        def run(state: AppState) -> AppState:
            users.require_approved_judge(state, judge_email)
            return hackathon_ops.assign_judge_to_stage(state, hackathon_id, stage_id, judge_email)

        return self._admin_update(
            f"Judge {judge_email} assigned to stage {stage_id} by {actor}", hackathon_id, actor, run
        )

    def remove_judge(self, hackathon_id: str, stage_id: str, judge_email: str, actor: Optional[str]) -> Hackathon:
        return self._admin_update(
            f"Judge {judge_email} removed from stage {stage_id} by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.remove_judge_from_stage(s, hackathon_id, stage_id, judge_email),
        )

    def update_winner_configuration(
        self, hackathon_id: str, config: Dict[str, Any], actor: Optional[str]
    ) -> Hackathon:
        return self._admin_update(
            f"Winner configuration of {hackathon_id} updated by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.update_winner_configuration(s, hackathon_id, config),
        )

    def ask_question(
        self, hackathon_id: str, question_text: str, asked_by_name: str, asked_by_email: Optional[str]
    ) -> HackathonQuestion:
        _, q = self._apply(
            f"Question asked on {hackathon_id}",
            lambda s: hackathon_ops.ask_question(
                s, hackathon_id, question_text, asked_by_name, self.now(), asked_by_email
            ),
        )
        return q

    def answer_question(
        self, hackathon_id: str, question_id: str, answer_text: str, actor: Optional[str]
    ) -> Hackathon:
        return self._admin_update(
            f"Question {question_id} answered by {actor}", hackathon_id, actor,
            lambda s: hackathon_ops.answer_question(s, hackathon_id, question_id, answer_text, actor, self.now()),
        )

    # --- submissions ---

    def get_submission(self, submission_id: str) -> Submission:
        return get_submission(self.state(), submission_id)

    def list_submissions(
        self, hackathon_id: str, actor: Optional[str], phase: Optional[SubmissionPhase] = None
    ) -> List[Submission]:
        state = self.state()
        self._managed(state, hackathon_id, actor)
        return submissions.submissions_for_hackathon(state, hackathon_id, phase)

    def submit_project(
        self,
        hackathon_id: str,
        project_name: str,
        participant_name: str,
        participant_email: str,
        problem_statement_id: Optional[str] = None,
        answers: Optional[List[Dict[str, Any]]] = None,
    ) -> Submission:
        _, submission = self._apply(
            f"Submission {project_name!r} to {hackathon_id} by {participant_email}",
            lambda s: submissions.submit_project(
                s, hackathon_id, project_name, participant_name, participant_email, self.now(),
                problem_statement_id=problem_statement_id, answers=answers,
            ),
        )
        return submission

    def update_submission(self, submission_id: str, actor: str, **fields) -> Submission:
        state = self._update(
            f"Submission {submission_id} updated by {actor}",
            lambda s: submissions.update_submission(s, submission_id, actor, self.now(), **fields),
        )
        return get_submission(state, submission_id)

    def delete_submission(self, submission_id: str, actor: str) -> None:
        self._update(
            f"Submission {submission_id} deleted by {actor}",
            lambda s: submissions.delete_submission(s, submission_id, actor),
        )

    def submissions_for_participant(self, email: str) -> List[Submission]:
        return submissions.submissions_for_participant(self.state(), email)

    def participant_history(self, email: str) -> List[Dict[str, Any]]:
        return submissions.participant_history(self.state(), email)

    # --- edit lock ---

    def acquire_edit_lock(self, submission_id: str, actor: str) -> Submission:
        def run(state: AppState) -> AppState:
            if not submissions.can_edit(state, get_submission(state, submission_id), actor):
                raise PermissionDeniedError(f"{actor} cannot edit this submission")
            return locks.acquire_edit_lock(state, submission_id, actor, self.now(), self.lock_duration_seconds)

        state = self._update(f"Edit lock on {submission_id} taken by {actor}", run)
        return get_submission(state, submission_id)

    def release_edit_lock(self, submission_id: str, actor: str) -> Submission:
        state = self._update(
            f"Edit lock on {submission_id} released by {actor}",
            lambda s: locks.release_edit_lock(s, submission_id, actor, self.now()),
        )
        return get_submission(state, submission_id)

    # --- status changes ---

    def _status_change(
        self, label: str, submission_id: str, actor: Optional[str], fn: Callable[[AppState], AppState]
    ) -> Tuple[AppState, Submission, Submission]:
        def run(state: AppState):
            before = get_submission(state, submission_id)
            self._managed(state, before.hackathon_id, actor)
            return fn(state), before

        state, before = self._apply(label, run)
        return state, before, get_submission(state, submission_id)

    def assign_initial(self, submission_id: str, actor: Optional[str]) -> Submission:
        state, _, after = self._status_change(
            f"Submission {submission_id} assigned to first stage by {actor}", submission_id, actor,
            lambda s: status.assign_initial(s, submission_id, actor, self.now()),
        )
        hackathon = get_hackathon(state, after.hackathon_id)
        email_service.notify_under_review(hackathon, after, hackathon.get_stage(after.status.stage_id))
        return after

    def transition_to_stage(self, hackathon_id: str, stage_id: str, actor: Optional[str]) -> int:
        def run(state: AppState):
            self._managed(state, hackathon_id, actor)
            before = {s.id: s.status for s in state.submissions if s.hackathon_id == hackathon_id}
            new_state, changed = status.transition_to_stage(state, hackathon_id, stage_id, actor, self.now())
            return new_state, (changed, before)

        state, (changed, before) = self._apply(
            f"Bulk transition of {hackathon_id} to stage {stage_id} by {actor}", run
        )
        hackathon = get_hackathon(state, hackathon_id)
        stage = hackathon.get_stage(stage_id)
        for sub in state.submissions:
            if sub.id in before and before[sub.id] != sub.status:
                email_service.notify_under_review(hackathon, sub, stage)
        logger.info(f"{changed} submission(s) moved to stage {stage_id}")
        return changed

    def _notify_decision(self, state: AppState, before: Submission, after: Submission) -> None:
        hackathon = get_hackathon(state, after.hackathon_id)
        passed = hackathon.get_stage(before.status.stage_id)
        phase = after.status.phase
        if phase == SubmissionPhase.REJECTED:
            email_service.notify_not_selected(hackathon, after, passed)
        elif phase == SubmissionPhase.FINALIST:
            email_service.notify_finalist(hackathon, after)
        elif phase == SubmissionPhase.SELECTED:
            email_service.notify_selected(hackathon, after, passed)
        elif phase == SubmissionPhase.PENDING_REVIEW and passed is not None:
            email_service.notify_advanced(hackathon, after, passed, hackathon.get_stage(after.status.stage_id))

    def decide_stage(self, submission_id: str, decision: StageDecision, actor: Optional[str]) -> Submission:
        state, before, after = self._status_change(
            f"Stage decision {decision.value} on {submission_id} by {actor}", submission_id, actor,
            lambda s: status.decide_stage(s, submission_id, decision, actor, self.now()),
        )
        self._notify_decision(state, before, after)
        return after

    def eliminate(self, submission_id: str, actor: Optional[str]) -> Submission:
        state, _, after = self._status_change(
            f"Submission {submission_id} eliminated by {actor}", submission_id, actor,
            lambda s: status.eliminate(s, submission_id, actor, self.now()),
        )
        email_service.notify_not_selected(get_hackathon(state, after.hackathon_id), after, None)
        return after

    def disqualify(self, submission_id: str, actor: Optional[str]) -> Submission:
        _, _, after = self._status_change(
            f"Submission {submission_id} disqualified by {actor}", submission_id, actor,
            lambda s: status.disqualify(s, submission_id, actor, self.now()),
        )
        return after

    def assign_award(self, submission_id: str, category_id: str, level: Optional[str], actor: Optional[str]) -> Submission:
        state, _, after = self._status_change(
            f"Award {category_id}/{level} given to {submission_id} by {actor}", submission_id, actor,
            lambda s: status.assign_award(s, submission_id, category_id, level, actor, self.now()),
        )
        email_service.notify_award(get_hackathon(state, after.hackathon_id), after, after.award)
        return after

    def rescind_award(self, submission_id: str, actor: Optional[str]) -> Submission:
        state, before, after = self._status_change(
            f"Award rescinded from {submission_id} by {actor}", submission_id, actor,
            lambda s: status.rescind_award(s, submission_id, actor, self.now()),
        )
        email_service.notify_award_rescinded(get_hackathon(state, after.hackathon_id), after, before.award)
        return after

    def revert_stage(self, submission_id: str, target_stage_id: str, actor: Optional[str]) -> Submission:
        state, _, after = self._status_change(
            f"Submission {submission_id} reverted to stage {target_stage_id} by {actor}", submission_id, actor,
            lambda s: status.revert_stage(s, submission_id, target_stage_id, actor, self.now()),
        )
        hackathon = get_hackathon(state, after.hackathon_id)
        email_service.notify_reverted(hackathon, after, hackathon.get_stage(target_stage_id))
        return after

    def revert_targets(self, submission_id: str) -> List[HackathonStage]:
        state = self.state()
        submission = get_submission(state, submission_id)
        return status.revert_targets(get_hackathon(state, submission.hackathon_id), submission)

    def set_status(self, submission_id: str, new_status: str, actor: Optional[str]) -> Submission:
        state, before, after = self._status_change(
            f"Submission {submission_id} set to {new_status} by {actor}", submission_id, actor,
            lambda s: status.set_status(s, submission_id, new_status, actor, self.now()),
        )
        hackathon = get_hackathon(state, after.hackathon_id)
        if before.status.phase == SubmissionPhase.SUBMITTED and after.status.phase == SubmissionPhase.PENDING_REVIEW:
            email_service.notify_under_review(hackathon, after, hackathon.get_stage(after.status.stage_id))
        elif after.status.phase == SubmissionPhase.ELIMINATED:
            email_service.notify_not_selected(hackathon, after, None)
        return after

    # --- judging ---

    def judge_submission(
        self,
        submission_id: str,
        stage_id: str,
        scores: List[Dict[str, Any]],
        general_comment: str,
        decision: Optional[StageDecision],
        actor: str,
    ) -> Submission:
        """Record scores and, when a decision is given, move the submission on."""
        def run(state: AppState):
            before = get_submission(state, submission_id)
            if decision is None:
                new_state = scoring.record_judgement(
                    state, submission_id, stage_id, actor, scores, general_comment, self.now()
                )
            else:
                new_state = scoring.score_and_decide(
                    state, submission_id, stage_id, actor, scores, general_comment, decision, self.now()
                )
            return new_state, before

        state, before = self._apply(f"Submission {submission_id} judged for stage {stage_id} by {actor}", run)
        after = get_submission(state, submission_id)
        if decision is not None:
            self._notify_decision(state, before, after)
        return after

    def submissions_for_judge(self, judge_email: str, hackathon_id: str, stage_id: Optional[str] = None) -> List[Submission]:
        return scoring.submissions_for_judge(self.state(), judge_email, hackathon_id, stage_id)

    def stage_leaderboard(self, hackathon_id: str, stage_id: str) -> List[Dict[str, Any]]:
        return scoring.stage_leaderboard(self.state(), hackathon_id, stage_id)

    def score_summary(self, submission_id: str, stage_id: str) -> scoring.StageScoreSummary:
        state = self.state()
        submission = get_submission(state, submission_id)
        return scoring.stage_score_summary(get_hackathon(state, submission.hackathon_id), submission, stage_id)

    # --- teams ---

    def create_team(self, submission_id: str, team_name: str, actor: str) -> Team:
        _, team = self._apply(
            f"Team {team_name!r} created for {submission_id} by {actor}",
            lambda s: teams.create_team(s, submission_id, team_name, actor, self.now()),
        )
        return team

    def get_team(self, team_id: str) -> Tuple[Team, List[TeamMember]]:
        state = self.state()
        return get_team(state, team_id), teams.members_of(state, team_id)

    def invite_member(self, team_id: str, invitee_email: str, actor: str) -> TeamMember:
        _, invite = self._apply(
            f"{invitee_email} invited to team {team_id} by {actor}",
            lambda s: teams.invite_member(s, team_id, invitee_email, actor, self.now()),
        )
        return invite

    def respond_to_invitation(self, invitation_id: str, accept: bool, actor: str) -> None:
        self._update(
            f"Invitation {invitation_id} {'accepted' if accept else 'declined'} by {actor}",
            lambda s: teams.respond_to_invitation(s, invitation_id, accept, actor, self.now()),
        )

    def remove_member(self, team_id: str, member_email: str, actor: str) -> None:
        self._update(
            f"{member_email} removed from team {team_id} by {actor}",
            lambda s: teams.remove_member(s, team_id, member_email, actor, self.now()),
        )

    def leave_team(self, team_id: str, actor: str) -> None:
        self._update(
            f"{actor} left team {team_id}",
            lambda s: teams.leave_team(s, team_id, actor, self.now()),
        )

    def invitations_for(self, email: str) -> List[TeamMember]:
        return teams.invitations_for(self.state(), email)

    def teams_for(self, email: str) -> List[Team]:
        return teams.teams_for(self.state(), email)

    # --- users ---

    def list_users(
        self, role: UserRole, status_filter: Optional[AccountStatus] = None, actor: Optional[str] = None
    ) -> List[UserAccount]:
        users.require_superadmin(actor)
        return users.users_by_role(self.state(), role, status_filter)

    def resolve_role(self, email: Optional[str]) -> UserRole:
        return users.resolve_role(self.state(), email)

    def add_user(self, email: str, role: UserRole, actor: Optional[str]) -> UserAccount:
        _, account = self._apply(
            f"{role.value} account {email} added by {actor}",
            lambda s: users.add_user(s, email, role, actor, self.now()),
        )
        email_service.send_invitation_reminder(account.email, account.role.value)
        return account

    def request_account(self, email: str, role: UserRole) -> UserAccount:
        _, account = self._apply(
            f"{role.value} account requested for {email}",
            lambda s: users.request_account(s, email, role, self.now()),
        )
        return account

    def approve_user(self, user_id: str, actor: Optional[str]) -> UserAccount:
        users.require_superadmin(actor)
        state = self._update(f"User {user_id} approved by {actor}", lambda s: users.approve_user(s, user_id))
        return users.get_user(state, user_id)

    def decline_user(self, user_id: str, actor: Optional[str]) -> UserAccount:
        users.require_superadmin(actor)
        state = self._update(f"User {user_id} declined by {actor}", lambda s: users.decline_user(s, user_id))
        return users.get_user(state, user_id)

    def remove_user(self, user_id: str, actor: Optional[str]) -> None:
        users.require_superadmin(actor)
        self._update(f"User {user_id} removed by {actor}", lambda s: users.remove_user(s, user_id))

    def resend_invitation(self, user_id: str, actor: Optional[str]) -> email_service.EmailResult:
        users.require_superadmin(actor)
        account = users.get_user(self.state(), user_id)
        return email_service.send_invitation_reminder(account.email, account.role.value)

    def admin_assignments(self, email: str) -> List[Hackathon]:
        return users.admin_assignments(self.state(), email)

    def judge_assignments(self, email: str) -> List[Tuple[Hackathon, HackathonStage]]:
        return users.judge_assignments(self.state(), email)


# Global service instance
_hackathon_service: Optional[HackathonService] = None
_service_lock = threading.Lock()


def get_hackathon_service() -> HackathonService:
    """Get the global hackathon service instance."""
    global _hackathon_service
    with _service_lock:
        if _hackathon_service is None:
            _hackathon_service = HackathonService()
        return _hackathon_service


def reset_hackathon_service(service: Optional[HackathonService] = None) -> None:
    global _hackathon_service
    with _service_lock:
        _hackathon_service = service
