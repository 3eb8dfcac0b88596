from __future__ import annotations

import pytest

from models.schemas import Award, AwardLevel, StageDecision, SubmissionPhase, SubmissionStatus
from workflow.errors import InvalidTransitionError, NotFoundError, ValidationError
from workflow.status import (
    assign_initial, decide_stage, display_status, disqualify, eliminate, set_status, transition_to_stage,
)

from state_builders import NOW, ADMIN, hackathon, make_state, pending, stage, status_of, submission


def test_parse_stage_ids_with_underscores():
    st = SubmissionStatus.parse("s_stage_2_pending_review")
    assert st.phase == SubmissionPhase.PENDING_REVIEW
    assert st.stage_id == "stage_2"
    assert st.encode() == "s_stage_2_pending_review"


def test_parse_accepts_judged_selected_and_encodes_canonical():
    st = SubmissionStatus.parse("s_s1_judged_selected")
    assert st == SubmissionStatus.at_stage(SubmissionPhase.SELECTED, "s1")
    assert st.encode() == "s_s1_selected"


def test_parse_rejects_unknown_strings():
    with pytest.raises(ValueError):
        SubmissionStatus.parse("round_1_pending_review")
    with pytest.raises(ValueError):
        SubmissionStatus.parse("")


def test_stage_bound_phase_requires_stage():
    with pytest.raises(ValueError):
        SubmissionStatus(phase=SubmissionPhase.PENDING_REVIEW)
    with pytest.raises(ValueError):
        SubmissionStatus(phase=SubmissionPhase.FINALIST, stage_id="s1")


def test_stage_ids_ending_in_judged_are_refused():
    # "s_x_judged_selected" already reads as stage "x"
    with pytest.raises(ValueError):
        SubmissionStatus.at_stage(SubmissionPhase.SELECTED, "x_judged")
    with pytest.raises(ValueError):
        stage("x_judged", 1)
    assert SubmissionStatus.parse("s_x_judged_selected").stage_id == "x"


def test_submission_round_trips_status_through_json():
    sub = submission("a", status="s_s2_rejected")
    dumped = sub.model_dump(mode="json")
    assert dumped["status"] == "s_s2_rejected"
    assert type(sub).model_validate(dumped).status == sub.status


def test_display_labels():
    stages = [stage("s1", 1)]
    assert display_status("s_s1_pending_review", stages) == "Pending Review (Stage 1)"
    assert display_status("s_s1_rejected", stages) == "Rejected (Stage 1)"
    assert display_status("s_zz_rejected", stages) == "Rejected (Stage ID zz)"
    assert display_status("finalist_awaiting_award_decision", stages) == "Finalist - Awaiting Award Decision"
    assert display_status("submitted_pending_stage_assignment", stages) == "Submitted - Pending Stage Assignment"
    assert display_status("eliminated", stages) == "Eliminated (Admin)"
    assert display_status("something_odd", stages) == "Something Odd"
    assert display_status(None, stages) == "Unknown Status"
    award = Award(category_id="overall", category_name="Overall Event", level=AwardLevel.RUNNER_UP, awarded_by=ADMIN)
    assert display_status("award_assigned", stages, award) == "Runner Up - Overall Event"


def test_assign_initial_moves_to_first_stage_by_order():
    h = hackathon(stages=[stage("late", 5), stage("early", 2)])
    state = make_state(submission("a"), h=h)
    state = assign_initial(state, "a", ADMIN, NOW)
    assert status_of(state, "a") == pending("early")
    history = state.submissions[0].edit_history
    assert history[-1].action.startswith("Status changed from Submitted - Pending Stage Assignment")


def test_assign_initial_needs_stages_and_submitted_status():
    state = make_state(submission("a"), h=hackathon(stages=[]))
    with pytest.raises(InvalidTransitionError):
        assign_initial(state, "a", ADMIN, NOW)
    state = make_state(submission("b", status="s_s1_pending_review"))
    with pytest.raises(InvalidTransitionError):
        assign_initial(state, "b", ADMIN, NOW)


def test_bulk_transition_moves_only_exact_matches():
    state = make_state(
        submission("sel", status="s_s1_selected"),
        submission("rej", status="s_s1_rejected"),
        submission("new"),
        submission("pend", status="s_s1_pending_review"),
    )
    state, changed = transition_to_stage(state, "h1", "s2", ADMIN, NOW)
    assert changed == 1
    assert status_of(state, "sel") == pending("s2")
    assert status_of(state, "rej").encode() == "s_s1_rejected"
    assert status_of(state, "new").encode() == "submitted_pending_stage_assignment"
    assert status_of(state, "pend") == pending("s1")
    assert state.hackathons[0].current_stage_id == "s2"


def test_bulk_transition_to_first_stage_takes_submitted():
    state = make_state(submission("a"), submission("b"), submission("c", status="s_s1_selected"))
    state, changed = transition_to_stage(state, "h1", "s1", ADMIN, NOW)
    assert changed == 2
    assert status_of(state, "c").encode() == "s_s1_selected"


def test_bulk_transition_ignores_other_hackathons():
    other = hackathon("h2", stages=[stage("s1", 1)])
    state = make_state(submission("a"), submission("b", hid="h2"))
    state = state.model_copy(update={"hackathons": [*state.hackathons, other]})
    state, changed = transition_to_stage(state, "h1", "s1", ADMIN, NOW)
    assert changed == 1
    assert status_of(state, "b").phase == SubmissionPhase.SUBMITTED


def test_approve_auto_advances_to_next_stage():
    state = make_state(submission("a", status="s_s1_pending_review"))
    state = decide_stage(state, "a", StageDecision.APPROVE, ADMIN, NOW)
    assert status_of(state, "a") == pending("s2")


def test_approve_without_auto_advance_marks_selected():
    state = make_state(submission("a", status="s_s1_pending_review"), h=hackathon(auto_advance=False))
    state = decide_stage(state, "a", StageDecision.APPROVE, ADMIN, NOW)
    assert status_of(state, "a").encode() == "s_s1_selected"


def test_approve_last_stage_makes_finalist():
    state = make_state(submission("a", status="s_s2_pending_review"))
    state = decide_stage(state, "a", StageDecision.APPROVE, ADMIN, NOW)
    assert status_of(state, "a").phase == SubmissionPhase.FINALIST


def test_reject_then_eliminate():
    state = make_state(submission("a", status="s_s1_pending_review"))
    state = decide_stage(state, "a", StageDecision.REJECT, ADMIN, NOW)
    assert status_of(state, "a").encode() == "s_s1_rejected"
    state = eliminate(state, "a", ADMIN, NOW)
    assert status_of(state, "a").phase == SubmissionPhase.ELIMINATED


def test_decide_requires_pending_review():
    state = make_state(submission("a", status="s_s1_rejected"))
    with pytest.raises(InvalidTransitionError):
        decide_stage(state, "a", StageDecision.APPROVE, ADMIN, NOW)


def test_eliminate_requires_rejection():
    state = make_state(submission("a", status="s_s1_pending_review"))
    with pytest.raises(InvalidTransitionError):
        eliminate(state, "a", ADMIN, NOW)


def test_disqualify_clears_award_and_is_terminal():
    award = Award(category_id="overall", category_name="Overall Event", level=AwardLevel.WINNER, awarded_by=ADMIN)
    state = make_state(submission("a", status="award_assigned", award=award))
    state = disqualify(state, "a", ADMIN, NOW)
    sub = state.submissions[0]
    assert sub.status.phase == SubmissionPhase.DISQUALIFIED
    assert sub.award is None
    with pytest.raises(InvalidTransitionError):
        disqualify(state, "a", ADMIN, NOW)


def test_set_status_validates_stage_reference():
    state = make_state(submission("a"))
    state = set_status(state, "a", "s_s2_pending_review", ADMIN, NOW)
    assert status_of(state, "a") == pending("s2")
    with pytest.raises(NotFoundError):
        set_status(state, "a", "s_nope_pending_review", ADMIN, NOW)
    with pytest.raises(ValidationError):
        set_status(state, "a", "bogus", ADMIN, NOW)
    with pytest.raises(InvalidTransitionError):
        set_status(state, "a", "award_assigned", ADMIN, NOW)


def test_reducers_do_not_mutate_input_state():
    state = make_state(submission("a", status="s_s1_pending_review"))
    decide_stage(state, "a", StageDecision.REJECT, ADMIN, NOW)
    assert status_of(state, "a") == pending("s1")
    assert state.submissions[0].edit_history == []
