from __future__ import annotations

import pytest

from models.schemas import Award, AwardLevel, SubmissionPhase
from workflow.errors import InvalidTransitionError, ValidationError
from workflow.status import assign_award, rescind_award, revert_stage, revert_targets

from state_builders import (
    NOW, ADMIN, JUDGE, JUDGE2, hackathon, judgement, make_state, pending, stage, status_of, submission,
)


def test_revert_to_earlier_stage_clears_later_judgements():
    sub = submission(
        "a",
        status="s_s2_pending_review",
        judgements=[
            judgement("s1", JUDGE, 30, 30),
            judgement("s2", JUDGE, 40, 40),
            judgement("s2", JUDGE2, 45, 45),
        ],
    )
    state = revert_stage(make_state(sub), "a", "s1", ADMIN, NOW)
    reverted = state.submissions[0]
    assert reverted.status.encode() == "s_s1_pending_review"
    assert reverted.judgements == []
    assert "reverted" in reverted.edit_history[-1].action


def test_revert_keeps_judgements_of_earlier_stages():
    h = hackathon(stages=[stage("s1", 1), stage("s2", 2), stage("s3", 3)])
    sub = submission(
        "a",
        status="s_s3_pending_review",
        judgements=[judgement("s1", JUDGE, 10, 10), judgement("s2", JUDGE, 20, 20)],
    )
    state = revert_stage(make_state(sub, h=h), "a", "s2", ADMIN, NOW)
    kept = state.submissions[0].judgements
    assert [j.stage_id for j in kept] == ["s1"]
    assert status_of(state, "a") == pending("s2")


def test_revert_target_must_be_strictly_earlier():
    state = make_state(submission("a", status="s_s1_pending_review"))
    with pytest.raises(InvalidTransitionError):
        revert_stage(state, "a", "s1", ADMIN, NOW)
    with pytest.raises(InvalidTransitionError):
        revert_stage(state, "a", "s2", ADMIN, NOW)


def test_finalists_and_award_winners_can_revert_to_any_stage():
    award = Award(category_id="overall", category_name="Overall Event", level=AwardLevel.WINNER, awarded_by=ADMIN)
    state = make_state(
        submission("fin", status="finalist_awaiting_award_decision"),
        submission("won", status="award_assigned", award=award),
    )
    state = revert_stage(state, "fin", "s2", ADMIN, NOW)
    state = revert_stage(state, "won", "s1", ADMIN, NOW)
    assert status_of(state, "fin") == pending("s2")
    won = next(s for s in state.submissions if s.id == "won")
    assert won.status == pending("s1") and won.award is None


def test_unstaged_submissions_cannot_revert():
    state = make_state(submission("a"), submission("b", status="disqualified"))
    for sid in ("a", "b"):
        with pytest.raises(InvalidTransitionError):
            revert_stage(state, sid, "s1", ADMIN, NOW)


def test_revert_targets_lists_earlier_stages():
    state = make_state(submission("a", status="s_s2_rejected"))
    h = state.hackathons[0]
    assert [s.id for s in revert_targets(h, state.submissions[0])] == ["s1"]
    assert revert_targets(h, submission("b")) == []


def test_assign_award_to_finalist():
    state = make_state(submission("a", status="finalist_awaiting_award_decision"))
    state = assign_award(state, "a", "overall", "winner", ADMIN, NOW)
    sub = state.submissions[0]
    assert sub.status.phase == SubmissionPhase.AWARD_ASSIGNED
    assert sub.award.level == AwardLevel.WINNER
    assert sub.award.category_name == "Overall Event"
    assert sub.award.awarded_by == ADMIN
    assert sub.edit_history[-1].action == f'Awarded "Winner - Overall Event" by {ADMIN}.'


def test_award_can_be_changed_while_assigned():
    state = make_state(submission("a", status="finalist_awaiting_award_decision"))
    state = assign_award(state, "a", "overall", "winner", ADMIN, NOW)
    state = assign_award(state, "a", "overall", "runner_up", ADMIN, NOW)
    assert state.submissions[0].award.level == AwardLevel.RUNNER_UP


@pytest.mark.parametrize(
    "category_id, level",
    [
        ("overall", ""),
        ("overall", None),
        ("", "winner"),
        ("missing", "winner"),
        ("overall", "second_runner_up"),
        ("overall", "gold"),
    ],
)
def test_assign_award_rejects_bad_choices(category_id, level):
    state = make_state(submission("a", status="finalist_awaiting_award_decision"))
    with pytest.raises(ValidationError):
        assign_award(state, "a", category_id, level, ADMIN, NOW)


def test_assign_award_requires_finalist():
    state = make_state(submission("a", status="s_s2_pending_review"))
    with pytest.raises(InvalidTransitionError):
        assign_award(state, "a", "overall", "winner", ADMIN, NOW)


def test_rescind_award_returns_to_finalist():
    state = make_state(submission("a", status="finalist_awaiting_award_decision"))
    state = assign_award(state, "a", "overall", "winner", ADMIN, NOW)
    state = rescind_award(state, "a", ADMIN, NOW)
    sub = state.submissions[0]
    assert sub.award is None
    assert sub.status.phase == SubmissionPhase.FINALIST
    with pytest.raises(InvalidTransitionError):
        rescind_award(state, "a", ADMIN, NOW)
