from __future__ import annotations

import re
import uuid


def title_case(text: str) -> str:
    """``pending_review`` -> ``Pending Review``."""
    if not text:
        return text
    words = re.split(r"[_\s]+", text.strip())
    return " ".join(w[:1].upper() + w[1:].lower() for w in words if w)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def same_email(a: str | None, b: str | None) -> bool:
    return bool(a) and normalize_email(a) == normalize_email(b)


def generate_id() -> str:
    return uuid.uuid4().hex[:12]
