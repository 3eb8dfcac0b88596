from __future__ import annotations

import sqlite3
from collections import defaultdict
from typing import Any, Dict, List, Optional

from models.db import get_connection, get_json, set_json
from models.schemas import AppState, Hackathon, Submission, Team, TeamMember, UserAccount


HACKATHONS_KEY = "hackathonEventsMap"
SUBMISSIONS_KEY = "projectSubmissionsMap"
TEAMS_KEY = "hackathonTeams"
TEAM_MEMBERS_KEY = "hackathonTeamMembers"
USERS_KEY = "platformUsers"


def load_state(conn: Optional[sqlite3.Connection] = None) -> AppState:
    """Read every collection from the key/value store."""
    if conn is None:
        with get_connection() as c:
            return load_state(c)

    # Stored as [[id, hackathon], ...] pairs, the map-entries layout
    hackathon_entries = get_json(HACKATHONS_KEY, [], conn)
    submission_entries = get_json(SUBMISSIONS_KEY, [], conn)

    hackathons = [Hackathon.model_validate(h) for _hid, h in hackathon_entries]
    submissions: List[Submission] = []
    for _hid, subs in submission_entries:
        submissions.extend(Submission.model_validate(s) for s in subs)

    return AppState(
        hackathons=hackathons,
        submissions=submissions,
        teams=[Team.model_validate(t) for t in get_json(TEAMS_KEY, [], conn)],
        team_members=[TeamMember.model_validate(m) for m in get_json(TEAM_MEMBERS_KEY, [], conn)],
        users=[UserAccount.model_validate(u) for u in get_json(USERS_KEY, [], conn)],
    )


def save_state(state: AppState, conn: Optional[sqlite3.Connection] = None) -> None:
    """Write every collection back. Last write wins."""
    if conn is None:
        with get_connection() as c:
            return save_state(state, c)

    by_hackathon: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for h in state.hackathons:
        by_hackathon[h.id] = []
    for s in state.submissions:
        by_hackathon[s.hackathon_id].append(s.model_dump(mode="json"))

    set_json(HACKATHONS_KEY, [[h.id, h.model_dump(mode="json")] for h in state.hackathons], conn)
    set_json(SUBMISSIONS_KEY, [[hid, subs] for hid, subs in by_hackathon.items()], conn)
    set_json(TEAMS_KEY, [t.model_dump(mode="json") for t in state.teams], conn)
    set_json(TEAM_MEMBERS_KEY, [m.model_dump(mode="json") for m in state.team_members], conn)
    set_json(USERS_KEY, [u.model_dump(mode="json") for u in state.users], conn)
