from fastapi import APIRouter

# Compose modular sub-routers
from api import (
    hackathons_router,
    stages_router,
    submissions_router,
    judging_router,
    teams_router,
    users_router,
    ai_router,
)


router = APIRouter()

# main.py applies the `/api` prefix
router.include_router(hackathons_router)
router.include_router(stages_router)
router.include_router(submissions_router)
router.include_router(judging_router)
router.include_router(teams_router)
router.include_router(users_router)
router.include_router(ai_router)
