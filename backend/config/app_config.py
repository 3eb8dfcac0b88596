"""Runtime configuration for the HackathonHub backend."""

from __future__ import annotations

import os

# Edit lock lifetime (seconds); locks are advisory and never renewed automatically
LOCK_DURATION_SECONDS = int(os.getenv("HACKATHON_LOCK_DURATION_SECONDS", "300"))

# Super-admins are configured, not stored
SUPERADMIN_EMAILS = [
    e.strip().lower()
    for e in os.getenv("HACKATHON_SUPERADMIN_EMAILS", "superadmin@example.com").split(",")
    if e.strip()
]

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("HACKATHON_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]

# When disabled, notification emails are skipped entirely (not even logged as sent)
EMAIL_ENABLED = os.getenv("HACKATHON_EMAIL_ENABLED", "1").lower() not in ("0", "false", "no")

LOG_LEVEL = os.getenv("HACKATHON_LOG_LEVEL", "INFO").upper()

# Default award configuration applied to new hackathons
DEFAULT_AWARD_CATEGORY = {
    "id": "overall",
    "name": "Overall Event",
    "allowed_levels": ["winner", "runner_up", "second_runner_up"],
}

DEFAULT_PRIZES = ["1st Place", "2nd Place", "3rd Place"]

# Sent mail kept in memory for inspection; oldest messages are dropped first
EMAIL_OUTBOX_LIMIT = int(os.getenv("HACKATHON_EMAIL_OUTBOX_LIMIT", "200"))

# OpenAI-compatible endpoint for admin tips. Empty base URL means canned replies only.
LLM_BASE_URL = os.getenv("HACKATHON_LLM_BASE_URL", "").rstrip("/")
LLM_MODEL = os.getenv("HACKATHON_LLM_MODEL", "gpt-oss:20b")
LLM_API_KEY = os.getenv("HACKATHON_LLM_API_KEY", "sk-no-key")


def is_superadmin(email: str | None) -> bool:
    return bool(email) and email.strip().lower() in SUPERADMIN_EMAILS
