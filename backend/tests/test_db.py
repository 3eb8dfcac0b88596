from __future__ import annotations

from pathlib import Path
import tempfile

import pytest

from models.db import (
    set_db_path,
    init_db,
    get_connection,
    transaction,
    get_value,
    set_value,
    delete_value,
    list_keys,
    get_json,
    set_json,
)
from models.store import SUBMISSIONS_KEY, HACKATHONS_KEY, load_state, save_state
from models.schemas import AppState, Team, TeamMember, TeamMemberStatus, TeamRole, UserAccount, UserRole

from state_builders import NOW, hackathon, make_state, submission


def with_temp_db(func):
    def wrapper():
        with tempfile.TemporaryDirectory() as td:
            db_path = Path(td) / "test.db"
            set_db_path(db_path)
            init_db()
            func()
    return wrapper


@with_temp_db
def test_key_value_crud():
    assert get_value("missing") is None
    set_value("a:1", "one")
    set_value("a:2", "two")
    set_value("b:1", "other")
    set_value("a:1", "uno")
    assert get_value("a:1") == "uno"
    assert list_keys("a:") == ["a:1", "a:2"]
    assert delete_value("a:2") is True
    assert delete_value("a:2") is False
    assert list_keys("a:") == ["a:1"]


@with_temp_db
def test_json_helpers_fall_back_to_default():
    assert get_json("nothing", default=[]) == []
    set_json("cfg", {"x": [1, 2]})
    assert get_json("cfg") == {"x": [1, 2]}
    set_value("broken", "{not json")
    assert get_json("broken", default="fallback") == "fallback"


@with_temp_db
def test_init_db_is_idempotent():
    init_db()
    init_db()
    with get_connection() as conn:
        versions = [r[0] for r in conn.execute("SELECT version FROM schema_migrations")]
    assert versions.count("0001_app_store") == 1


@with_temp_db
def test_transaction_rolls_back_on_error():
    set_value("counter", "1")
    with pytest.raises(RuntimeError):
        with transaction() as conn:
            set_value("counter", "2", conn)
            raise RuntimeError("boom")
    assert get_value("counter") == "1"
    with transaction() as conn:
        set_value("counter", "3", conn)
    assert get_value("counter") == "3"


@with_temp_db
def test_empty_store_loads_empty_state():
    assert load_state() == AppState()


@with_temp_db
def test_state_round_trip_groups_submissions_by_hackathon():
    state = make_state(
        submission("a", status="s_s1_pending_review"),
        submission("b", status="finalist_awaiting_award_decision"),
    )
    state = state.model_copy(update={
        "hackathons": [*state.hackathons, hackathon("h2")],
        "teams": [Team(id="t1", hackathon_id="h1", submission_id="a", name="Rockets",
                       leader_email="a@example.com", created_at=NOW)],
        "team_members": [TeamMember(id="m1", team_id="t1", participant_email="a@example.com",
                                    status=TeamMemberStatus.ACCEPTED, role=TeamRole.LEADER,
                                    invited_at=NOW, joined_at=NOW)],
        "users": [UserAccount(id="u1", email="judge@example.com", role=UserRole.JUDGE, created_at=NOW)],
    })
    save_state(state)

    raw = get_json(SUBMISSIONS_KEY)
    grouped = {hid: [s["id"] for s in subs] for hid, subs in raw}
    assert grouped == {"h1": ["a", "b"], "h2": []}
    assert raw[0][1][0]["status"] == "s_s1_pending_review"
    assert [entry[0] for entry in get_json(HACKATHONS_KEY)] == ["h1", "h2"]

    assert load_state() == state
