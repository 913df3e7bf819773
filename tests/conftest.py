"""Shared fixtures for covdelta tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from covdelta.models.coverage import METRIC_NAMES

# ── Summary builders ─────────────────────────────────────────────


def metric(total: int, covered: int, pct: float | str, skipped: int = 0) -> dict[str, Any]:
    """Build one Istanbul metric object."""
    return {"total": total, "covered": covered, "skipped": skipped, "pct": pct}


def entry(
    lines: dict[str, Any],
    *,
    branches: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a four-metric entry; statements and functions mirror *lines*."""
    data = {name: dict(lines) for name in METRIC_NAMES}
    if branches is not None:
        data["branches"] = branches
    return data


def write_json(root: Path, rel: str, data: Any) -> Path:
    """Write a JSON file under *root* and return its path."""
    f = root / rel
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return f


def write_summary(root: Path, project: str, data: dict[str, Any]) -> Path:
    """Write ``coverage-summary.json`` for *project* under *root*."""
    rel = f"{project}/coverage-summary.json" if project else "coverage-summary.json"
    return write_json(root, rel, data)


# ── Monorepo fixture ─────────────────────────────────────────────

LIQUIDITY = "apps/backend/liquidity-service"
AUDIT_LOGS = "apps/backend/audit-logs-service"
BLOOMBERG = "libs/bloomberg"

_CI_PREFIX = "/home/runner/work/grain/grain"
_LOCAL_PREFIX = "/Users/a/dev/grain"


def _current_liquidity() -> dict[str, Any]:
    return {
        "total": entry(metric(449, 378, 84.18)),
        f"{_CI_PREFIX}/{LIQUIDITY}/src/pool.ts": entry(metric(200, 176, 88)),
        f"{_CI_PREFIX}/{LIQUIDITY}/src/quote.ts": entry(metric(249, 202, 81.12)),
        f"{_CI_PREFIX}/{LIQUIDITY}/src/fees.ts": entry(metric(10, 10, 100)),
    }


def _baseline_liquidity() -> dict[str, Any]:
    return {
        "total": entry(metric(449, 382, 85.07)),
        f"{_LOCAL_PREFIX}/{LIQUIDITY}/src/pool.ts": entry(metric(200, 180, 90)),
        f"{_LOCAL_PREFIX}/{LIQUIDITY}/src/quote.ts": entry(metric(249, 202, 81.12)),
        f"{_LOCAL_PREFIX}/{LIQUIDITY}/src/legacy.ts": entry(metric(5, 0, 0)),
    }


def _current_audit_logs() -> dict[str, Any]:
    unknown = metric(0, 0, "Unknown")
    return {
        "total": entry(metric(287, 193, 67.24), branches=unknown),
        f"{_CI_PREFIX}/{AUDIT_LOGS}/src/log.ts": entry(metric(287, 193, 67.24), branches=unknown),
    }


def _baseline_bloomberg() -> dict[str, Any]:
    return {
        "total": entry(metric(50, 25, 50)),
        f"{_LOCAL_PREFIX}/{BLOOMBERG}/src/feed.ts": entry(metric(50, 25, 50)),
    }


@pytest.fixture
def monorepo(tmp_path: Path) -> tuple[Path, Path]:
    """Create current and baseline coverage roots.

    * liquidity-service exists on both sides; lines drop 85.07 -> 84.18.
    * audit-logs-service is new and has no branches (``Unknown``).
    * bloomberg only exists in the baseline.
    """
    current = tmp_path / "coverage"
    baseline = tmp_path / "baseline"

    write_summary(current, LIQUIDITY, _current_liquidity())
    write_summary(current, AUDIT_LOGS, _current_audit_logs())
    write_summary(baseline, LIQUIDITY, _baseline_liquidity())
    write_summary(baseline, BLOOMBERG, _baseline_bloomberg())

    return current, baseline
