"""CI and PR context detection utilities."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_PR_EVENTS = frozenset({"pull_request", "pull_request_target"})


@dataclass
class CIContext:
    """Commit context of the current CI run."""

    commit_sha: str | None = None
    """Current commit SHA."""

    base_sha: str | None = None
    """SHA of the PR base commit (the baseline coverage)."""


def _load_event_payload(event_path: str | None) -> dict[str, Any]:
    """Read the GitHub Actions event payload, or return an empty dict."""
    if not event_path:
        return {}
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read event payload %s: %s", event_path, exc)
        return {}
    return payload if isinstance(payload, dict) else {}


def detect_ci_context() -> CIContext:
    """Detect the current and base commit SHAs from environment variables.

    Only GitHub Actions is supported; elsewhere both SHAs are ``None``. The
    base SHA is read from the pull request event payload.
    """
    if os.getenv("GITHUB_ACTIONS") != "true":
        return CIContext()

    payload: dict[str, Any] = {}
    if os.getenv("GITHUB_EVENT_NAME", "") in _PR_EVENTS:
        payload = _load_event_payload(os.getenv("GITHUB_EVENT_PATH"))
    pull_request = payload.get("pull_request") or {}
    base = pull_request.get("base") or {}

    return CIContext(commit_sha=os.getenv("GITHUB_SHA"), base_sha=base.get("sha"))
