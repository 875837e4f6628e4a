"""
Session-scoped job description drafts.
The AI flow keeps the JD the user is working against here until they explicitly close it.
Entries expire after settings.job_description_draft_ttl seconds.
"""
from __future__ import annotations

import time
from typing import Any

from tailorcv.app.core.config import settings

_store: dict[str, tuple[float, dict[str, Any]]] = {}


def set_draft(user_id: str, job_description: str, resume_id: str | None = None) -> dict[str, Any]:
    draft = {
        "jobDescription": job_description or "",
        "resumeId": resume_id,
    }
    _store[user_id] = (time.time(), draft)
    return draft


def get_draft(user_id: str) -> dict[str, Any] | None:
    entry = _store.get(user_id)
    if not entry:
        return None
    ts, draft = entry
    if time.time() - ts > settings.job_description_draft_ttl:
        _store.pop(user_id, None)
        return None
    return draft


def clear_draft(user_id: str) -> None:
    _store.pop(user_id, None)
