from fastapi import APIRouter

# Subrouters are imported and re-exported for convenience
from .hackathons import router as hackathons_router  # noqa: F401
from .stages import router as stages_router  # noqa: F401
from .submissions import router as submissions_router  # noqa: F401
from .judging import router as judging_router  # noqa: F401
from .teams import router as teams_router  # noqa: F401
from .users import router as users_router  # noqa: F401
from .ai import router as ai_router  # noqa: F401

__all__ = [
    "APIRouter",
    "hackathons_router",
    "stages_router",
    "submissions_router",
    "judging_router",
    "teams_router",
    "users_router",
    "ai_router",
]
