from __future__ import annotations

# Public API facade for the state reducers

from .errors import (
    HackathonHubError,
    NotFoundError,
    ValidationError,
    PermissionDeniedError,
    InvalidTransitionError,
    LockConflictError,
)
from .status import (
    display_status,
    assign_initial,
    transition_to_stage,
    decide_stage,
    eliminate,
    disqualify,
    assign_award,
    rescind_award,
    revert_stage,
    revert_targets,
    set_status,
)
from .scoring import (
    StageScoreSummary,
    record_judgement,
    score_and_decide,
    stage_score_summary,
    submissions_for_judge,
    stage_leaderboard,
)
from .locks import acquire_edit_lock, release_edit_lock


__all__ = [
    "HackathonHubError",
    "NotFoundError",
    "ValidationError",
    "PermissionDeniedError",
    "InvalidTransitionError",
    "LockConflictError",
    "display_status",
    "assign_initial",
    "transition_to_stage",
    "decide_stage",
    "eliminate",
    "disqualify",
    "assign_award",
    "rescind_award",
    "revert_stage",
    "revert_targets",
    "set_status",
    "StageScoreSummary",
    "record_judgement",
    "score_and_decide",
    "stage_score_summary",
    "submissions_for_judge",
    "stage_leaderboard",
    "acquire_edit_lock",
    "release_edit_lock",
]
