from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from models.db import set_db_path, init_db
from services.email_service import clear_outbox, get_outbox
from services.hackathon_service import reset_hackathon_service

SUPER = {"X-User-Email": "superadmin@example.com"}
JUDGE = {"X-User-Email": "judge@example.com"}
PAT = {"X-User-Email": "pat@example.com"}
MATE = {"X-User-Email": "mate@example.com"}


@pytest.fixture
def client(tmp_path) -> TestClient:
    """Provide a TestClient backed by a temporary DB and a fresh service."""
    db_path = tmp_path / "test.db"
    set_db_path(db_path)
    init_db()
    reset_hackathon_service()
    clear_outbox()

    import main
    return TestClient(main.app)


def _event(client: TestClient) -> dict:
    r = client.post("/api/hackathons", data={"title": "Spring Hack", "description": "Build"}, headers=SUPER)
    assert r.status_code == 200
    hid = r.json()["hackathon"]["id"]
    for name in ("Screening", "Final"):
        r = client.post(
            f"/api/hackathons/{hid}/stages",
            json={"name": name, "judging_criteria": [{"name": "Idea", "max_score": 10}]},
            headers=SUPER,
        )
        assert r.status_code == 200, r.text
    r = client.post("/api/users", data={"email": "judge@example.com", "role": "judge"}, headers=SUPER)
    assert r.status_code == 200
    stages = client.get(f"/api/hackathons/{hid}").json()["hackathon"]["stages"]
    for st in stages:
        r = client.post(f"/api/hackathons/{hid}/stages/{st['id']}/judges", data={"email": "judge@example.com"}, headers=SUPER)
        assert r.json()["assigned_judge_emails"] == ["judge@example.com"]
    r = client.put(f"/api/hackathons/{hid}", json={"is_accepting_submissions": True}, headers=SUPER)
    assert r.status_code == 200
    return {"id": hid, "stages": stages}


def _submit(client: TestClient, hid: str, email: str = "pat@example.com") -> dict:
    r = client.post(
        f"/api/hackathons/{hid}/submissions",
        json={"project_name": "Rocket", "participant_name": "Pat", "participant_email": email},
    )
    assert r.status_code == 200, r.text
    return r.json()["submission"]


def test_whoami_resolves_roles(client: TestClient):
    assert client.get("/api/me", headers=SUPER).json()["role"] == "superadmin"
    assert client.get("/api/me").json() == {"email": None, "role": "participant"}


def test_mutations_need_caller_identity(client: TestClient):
    r = client.post("/api/hackathons", data={"title": "x"})
    assert r.status_code == 401


def test_submission_lifecycle_over_http(client: TestClient):
    event = _event(client)
    first, final = event["stages"]
    sub = _submit(client, event["id"])
    assert sub["status"] == f"s_{first['id']}_pending_review"
    assert sub["status_label"] == "Pending Review (Screening)"

    crit = first["judging_criteria"][0]["id"]
    r = client.post(
        f"/api/submissions/{sub['id']}/judgements",
        json={"stage_id": first["id"], "scores": [{"criterion_id": crit, "score": 7}], "decision": "approve"},
        headers=JUDGE,
    )
    assert r.status_code == 200, r.text
    assert r.json()["summary"]["display"] == "7.00 / 10"
    assert r.json()["submission"]["status"] == f"s_{final['id']}_pending_review"

    r = client.post(f"/api/submissions/{sub['id']}/decision", data={"decision": "approve"}, headers=SUPER)
    assert r.json()["submission"]["status"] == "finalist_awaiting_award_decision"

    r = client.post(f"/api/submissions/{sub['id']}/award", data={"category_id": "overall", "level": "winner"}, headers=SUPER)
    assert r.json()["submission"]["status_label"] == "Winner - Overall Event"

    r = client.get(f"/api/submissions/{sub['id']}")
    assert [t["id"] for t in r.json()["revert_targets"]] == [first["id"], final["id"]]

    r = client.post(f"/api/submissions/{sub['id']}/revert", data={"target_stage_id": first["id"]}, headers=SUPER)
    reverted = r.json()["submission"]
    assert reverted["status"] == f"s_{first['id']}_pending_review"
    assert reverted["award"] is None and reverted["judgements"] == []
    assert get_outbox()[-1].subject.startswith("Update: Submission Reverted")


def test_error_codes(client: TestClient):
    event = _event(client)
    sub = _submit(client, event["id"])
    assert client.get("/api/submissions/nope").status_code == 404
    r = client.post(f"/api/submissions/{sub['id']}/decision", data={"decision": "approve"}, headers=PAT)
    assert r.status_code == 403
    r = client.post(f"/api/submissions/{sub['id']}/eliminate", headers=SUPER)
    assert r.status_code == 409
    r = client.post(f"/api/submissions/{sub['id']}/award", data={"category_id": "overall"}, headers=SUPER)
    assert r.status_code == 409
    r = client.put(f"/api/hackathons/{event['id']}", json={"title": ""}, headers=SUPER)
    assert r.status_code == 422
    stage_url = f"/api/hackathons/{event['id']}/stages/{event['stages'][0]['id']}"
    assert client.put(stage_url, json={"name": None}, headers=SUPER).status_code == 422
    assert client.put(stage_url, json={"order": None}, headers=SUPER).status_code == 422


def test_team_edit_lock_conflict(client: TestClient):
    event = _event(client)
    sub = _submit(client, event["id"])
    team = client.post(f"/api/submissions/{sub['id']}/team", data={"name": "Rockets"}, headers=PAT).json()["team"]
    invite = client.post(f"/api/teams/{team['id']}/invitations", data={"email": "mate@example.com"}, headers=PAT).json()
    assert [i["id"] for i in client.get("/api/invitations", headers=MATE).json()["invitations"]] == [invite["invitation"]["id"]]
    r = client.post(f"/api/invitations/{invite['invitation']['id']}/respond", data={"accept": "true"}, headers=MATE)
    assert r.status_code == 200

    r = client.post(f"/api/submissions/{sub['id']}/lock", headers=PAT)
    assert r.json()["locked_by"]["user_email"] == "pat@example.com"
    r = client.put(f"/api/submissions/{sub['id']}", json={"project_name": "Mine"}, headers=MATE)
    assert r.status_code == 423
    assert r.json()["detail"]["locked_by"] == "pat@example.com"

    client.delete(f"/api/submissions/{sub['id']}/lock", headers=PAT)
    r = client.put(f"/api/submissions/{sub['id']}", json={"project_name": "Mine"}, headers=MATE)
    assert r.status_code == 200
    assert r.json()["submission"]["project_name"] == "Mine"

    mine = client.get("/api/participants/me/submissions", headers=MATE).json()["submissions"]
    assert [s["id"] for s in mine] == [sub["id"]]


def test_pending_hackathon_flow(client: TestClient):
    client.post("/api/users", data={"email": "boss@example.com", "role": "admin"}, headers=SUPER)
    boss = {"X-User-Email": "boss@example.com"}
    r = client.post("/api/hackathons", data={"title": "Draft"}, headers=boss)
    hid = r.json()["hackathon"]["id"]
    assert r.json()["hackathon"]["status"] == "pending_approval"
    assert client.get("/api/hackathons").json()["hackathons"] == []
    assert client.get(f"/api/hackathons/{hid}").status_code == 404
    assert client.post(f"/api/hackathons/{hid}/approve", headers=boss).status_code == 403
    r = client.post(f"/api/hackathons/{hid}/decline", data={"reason": "Needs dates"}, headers=SUPER)
    assert r.json()["hackathon"]["decline_reason"] == "Needs dates"


def test_user_admin_endpoints(client: TestClient):
    r = client.post("/api/users/request", data={"email": "new@example.com", "role": "judge"})
    uid = r.json()["user"]["id"]
    pending = client.get("/api/users", params={"role": "judge", "status": "pending"}, headers=SUPER).json()["users"]
    assert [u["id"] for u in pending] == [uid]
    assert client.get("/api/users", params={"role": "judge"}, headers=PAT).status_code == 403
    r = client.post(f"/api/users/{uid}/approve", headers=SUPER)
    assert r.json()["user"]["status"] == "approved"
    assert client.post(f"/api/users/{uid}/approve", headers=SUPER).status_code == 409
    assert client.delete(f"/api/users/{uid}", headers=SUPER).json() == {"ok": True}
