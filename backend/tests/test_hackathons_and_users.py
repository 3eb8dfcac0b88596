from __future__ import annotations

import pytest

from models.schemas import AccountStatus, AppState, HackathonApprovalStatus, UserRole
from workflow import hackathons as ops
from workflow import users
from workflow.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError, ValidationError
from workflow.submissions import submit_project

from state_builders import NOW, ADMIN, JUDGE, judgement, make_state, submission

SUPER = "superadmin@example.com"


def _approved_event():
    state, h = ops.create_hackathon(AppState(), "Winter Hack", "Build things", UserRole.SUPERADMIN, SUPER, NOW)
    return state, h


def test_superadmin_creation_is_approved_immediately():
    state, h = _approved_event()
    assert h.status == HackathonApprovalStatus.APPROVED
    assert h.approved_by_email == SUPER
    assert h.admin_emails == [SUPER]
    category = h.winner_configuration.award_categories[0]
    assert category.id == "overall"
    assert [lvl.value for lvl in category.allowed_levels] == ["winner", "runner_up", "second_runner_up"]


def test_admin_creation_waits_for_approval():
    state, h = ops.create_hackathon(AppState(), "Hack", "", UserRole.ADMIN, ADMIN, NOW)
    assert h.status == HackathonApprovalStatus.PENDING_APPROVAL
    state = ops.decline_hackathon(state, h.id, SUPER, "Too vague", NOW)
    declined = state.hackathons[0]
    assert declined.status == HackathonApprovalStatus.DECLINED
    assert declined.decline_reason == "Too vague"
    with pytest.raises(InvalidTransitionError):
        ops.approve_hackathon(state, h.id, SUPER, NOW)


def test_create_requires_title():
    with pytest.raises(ValidationError):
        ops.create_hackathon(AppState(), "  ", "", UserRole.ADMIN, ADMIN, NOW)


def test_archive_closes_submissions():
    state, h = _approved_event()
    state = ops.update_hackathon(state, h.id, {"is_accepting_submissions": True})
    state = ops.archive_hackathon(state, h.id)
    archived = state.hackathons[0]
    assert archived.status == HackathonApprovalStatus.ARCHIVED
    assert archived.is_accepting_submissions is False


def test_update_hackathon_rejects_unknown_fields_and_bad_values():
    state, h = _approved_event()
    with pytest.raises(ValidationError):
        ops.update_hackathon(state, h.id, {"status": "approved"})
    with pytest.raises(ValidationError):
        ops.update_hackathon(state, h.id, {"title": ""})
    state = ops.update_hackathon(state, h.id, {"rules": "Be kind", "auto_advance": False})
    assert state.hackathons[0].rules == "Be kind"
    assert state.hackathons[0].auto_advance is False


def test_pending_hackathon_cannot_open_submissions():
    state, h = ops.create_hackathon(AppState(), "Hack", "", UserRole.ADMIN, ADMIN, NOW)
    with pytest.raises(ValidationError):
        ops.update_hackathon(state, h.id, {"is_accepting_submissions": True})


def test_stages_stay_sorted_with_unique_orders():
    state, h = _approved_event()
    state, late = ops.add_stage(state, h.id, "Final", order=3)
    state, early = ops.add_stage(state, h.id, "Screening", order=1, criteria=[{"name": "Idea", "max_score": 10}])
    state, auto = ops.add_stage(state, h.id, "Next")
    stages = state.hackathons[0].stages
    assert [s.name for s in stages] == ["Screening", "Final", "Next"]
    assert auto.order == 4
    assert early.judging_criteria[0].id
    with pytest.raises(ValidationError):
        ops.add_stage(state, h.id, "Clash", order=3)
    with pytest.raises(ValidationError):
        ops.update_stage(state, h.id, early.id, {"order": 3})
    state = ops.update_stage(state, h.id, late.id, {"order": 0})
    assert state.hackathons[0].stages[0].id == late.id


@pytest.mark.parametrize(
    "fields",
    [{"name": None}, {"order": None}, {"order": "first"}, {"name": "  "}, {"judging_criteria": []}],
)
def test_update_stage_rejects_null_and_mistyped_fields(fields):
    state = make_state()
    with pytest.raises(ValidationError):
        ops.update_stage(state, "h1", "s1", fields)


def test_criteria_crud_and_validation():
    state, h = _approved_event()
    state, st = ops.add_stage(state, h.id, "Screening")
    state, crit = ops.add_criterion(state, h.id, st.id, {"name": "Impact", "max_score": 20})
    with pytest.raises(ValidationError):
        ops.add_criterion(state, h.id, st.id, {"name": "Zero", "max_score": 0})
    state = ops.update_criterion(state, h.id, st.id, crit.id, {"max_score": 25})
    assert state.hackathons[0].stages[0].max_total == 25
    state = ops.delete_criterion(state, h.id, st.id, crit.id)
    assert state.hackathons[0].stages[0].judging_criteria == []
    with pytest.raises(NotFoundError):
        ops.delete_criterion(state, h.id, st.id, crit.id)


def test_scored_stage_keeps_its_criteria():
    scored = submission("a", status="s_s1_pending_review", judgements=[judgement("s1", JUDGE, 12, 40)])
    state = make_state(scored)
    with pytest.raises(ValidationError):
        ops.delete_criterion(state, "h1", "s1", "s1-idea")
    with pytest.raises(ValidationError):
        ops.update_criterion(state, "h1", "s1", "s1-idea", {"max_score": 10})
    state = ops.update_criterion(state, "h1", "s1", "s1-idea", {"name": "Originality", "max_score": 50})
    assert state.hackathons[0].stages[0].judging_criteria[0].name == "Originality"
    state = ops.delete_criterion(state, "h1", "s2", "s2-idea")
    assert state.hackathons[0].stages[1].max_total == 50


def test_delete_stage_refused_while_submissions_sit_in_it():
    state = make_state(submission("a", status="s_s1_pending_review"))
    with pytest.raises(ValidationError):
        ops.delete_stage(state, "h1", "s1")
    state = ops.delete_stage(state, "h1", "s2")
    assert [s.id for s in state.hackathons[0].stages] == ["s1"]


def test_problem_statements_and_questions_drive_submission_validation():
    state, h = _approved_event()
    state = ops.update_hackathon(state, h.id, {"is_accepting_submissions": True})
    state, ps = ops.add_problem_statement(state, h.id, "Climate")
    state, q = ops.add_submission_question(state, h.id, "Repo URL", "url", True)
    with pytest.raises(ValidationError):
        submit_project(state, h.id, "Proj", "Pat", "pat@example.com", NOW)
    with pytest.raises(ValidationError):
        submit_project(state, h.id, "Proj", "Pat", "pat@example.com", NOW, problem_statement_id=ps.id)
    state, sub = submit_project(
        state, h.id, "Proj", "Pat", "pat@example.com", NOW,
        problem_statement_id=ps.id, answers=[{"question_id": q.id, "answer": "https://example.com"}],
    )
    # No stages yet, so the project waits for assignment
    assert sub.status.encode() == "submitted_pending_stage_assignment"
    with pytest.raises(ValidationError):
        ops.add_submission_question(state, h.id, "Bad", "checkbox")
    state = ops.delete_problem_statement(state, h.id, ps.id)
    assert state.hackathons[0].problem_statements == []


def test_submission_enters_first_stage_review_and_needs_open_event():
    state = make_state()
    state, sub = submit_project(state, "h1", "Proj", "Pat", "Pat@Example.com", NOW)
    assert sub.status.encode() == "s_s1_pending_review"
    assert sub.participant_email == "pat@example.com"
    closed = state.hackathons[0].model_copy(update={"is_accepting_submissions": False})
    state = state.model_copy(update={"hackathons": [closed]})
    with pytest.raises(ValidationError):
        submit_project(state, "h1", "Proj", "Pat", "pat@example.com", NOW)


def test_winner_configuration_validation():
    state, h = _approved_event()
    with pytest.raises(ValidationError):
        ops.update_winner_configuration(state, h.id, {"award_categories": [
            {"id": "x", "name": "X", "allowed_levels": ["winner"]},
            {"id": "x", "name": "Y", "allowed_levels": ["winner"]},
        ]})
    with pytest.raises(ValidationError):
        ops.update_winner_configuration(state, h.id, {"award_categories": [{"id": "x", "name": "X"}]})
    with pytest.raises(ValidationError):
        ops.update_winner_configuration(state, h.id, {"award_categories": [
            {"id": "x", "name": "X", "allowed_levels": ["platinum"]},
        ]})
    state = ops.update_winner_configuration(state, h.id, {
        "scope": "per_problem_statement",
        "award_categories": [{"id": "best", "name": "Best Design", "allowed_levels": ["winner"]}],
    })
    assert state.hackathons[0].winner_configuration.award_categories[0].name == "Best Design"


def test_questions_and_answers():
    state, h = _approved_event()
    state, q = ops.ask_question(state, h.id, "Can we use AI?", "", NOW)
    assert q.asked_by_name == "Anonymous"
    state = ops.answer_question(state, h.id, q.id, "Yes.", SUPER, NOW)
    answered = state.hackathons[0].questions[0]
    assert answered.answer_text == "Yes." and answered.answered_by_email == SUPER
    with pytest.raises(ValidationError):
        ops.ask_question(state, h.id, "   ", "Pat", NOW)


def test_delete_hackathon_cascades():
    state = make_state(submission("a"))
    state = ops.delete_hackathon(state, "h1")
    assert state == AppState()


# --- users ---

def test_superadmin_adds_approved_users():
    state, judge = users.add_user(AppState(), "Judge@Example.com", UserRole.JUDGE, SUPER, NOW)
    assert judge.status == AccountStatus.APPROVED and judge.email == "judge@example.com"
    assert users.resolve_role(state, "judge@example.com") == UserRole.JUDGE
    assert users.resolve_role(state, SUPER) == UserRole.SUPERADMIN
    assert users.resolve_role(state, "nobody@example.com") == UserRole.PARTICIPANT
    with pytest.raises(PermissionDeniedError):
        users.add_user(state, "x@example.com", UserRole.ADMIN, ADMIN, NOW)
    with pytest.raises(ValidationError):
        users.add_user(state, "judge@example.com", UserRole.JUDGE, SUPER, NOW)
    with pytest.raises(ValidationError):
        users.add_user(state, "p@example.com", UserRole.PARTICIPANT, SUPER, NOW)


def test_requested_accounts_need_approval():
    state, account = users.request_account(AppState(), ADMIN, UserRole.ADMIN, NOW)
    assert account.status == AccountStatus.PENDING
    assert users.resolve_role(state, ADMIN) == UserRole.PARTICIPANT
    state = users.approve_user(state, account.id)
    assert users.resolve_role(state, ADMIN) == UserRole.ADMIN
    with pytest.raises(InvalidTransitionError):
        users.decline_user(state, account.id)


def test_judge_assignment_requires_approved_hackathon_and_judge():
    state = make_state()
    state, judge = users.request_account(state, "new@example.com", UserRole.JUDGE, NOW)
    with pytest.raises(ValidationError):
        users.require_approved_judge(state, "new@example.com")
    state = users.approve_user(state, judge.id)
    users.require_approved_judge(state, "new@example.com")
    state = ops.assign_judge_to_stage(state, "h1", "s2", "new@example.com")
    assert [s.id for _h, s in users.judge_assignments(state, "new@example.com")] == ["s2"]

    pending_event = state.hackathons[0].model_copy(update={"status": HackathonApprovalStatus.PENDING_APPROVAL})
    with pytest.raises(ValidationError):
        ops.assign_judge_to_stage(state.model_copy(update={"hackathons": [pending_event]}), "h1", "s1", "new@example.com")


def test_remove_user_strips_assignments():
    state = make_state()
    state, judge = users.add_user(state, "j@example.com", UserRole.JUDGE, SUPER, NOW)
    state, admin = users.add_user(state, "boss@example.com", UserRole.ADMIN, SUPER, NOW)
    state = ops.assign_judge_to_stage(state, "h1", "s1", "j@example.com")
    state = ops.assign_admin(state, "h1", "boss@example.com")
    assert [h.id for h in users.admin_assignments(state, "boss@example.com")] == ["h1"]

    state = users.remove_user(state, judge.id)
    state = users.remove_user(state, admin.id)
    assert users.judge_assignments(state, "j@example.com") == []
    assert users.admin_assignments(state, "boss@example.com") == []
    assert state.users == []


def test_event_admin_checks():
    state = make_state()
    h = state.hackathons[0]
    users.require_event_admin(state, h, ADMIN)
    users.require_event_admin(state, h, SUPER)
    with pytest.raises(PermissionDeniedError):
        users.require_event_admin(state, h, "stranger@example.com")
    with pytest.raises(PermissionDeniedError):
        users.require_event_admin(state, h, None)
