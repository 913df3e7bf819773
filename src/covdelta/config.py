"""Configuration parsing from ``.covdelta.yml``.

Values not present in the file fall back to environment variables, including
the ``INPUT_*`` variables GitHub Actions sets for action inputs, and finally to
built-in defaults.
"""

from __future__ import annotations

import logging
import math
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from covdelta.adapters.coverage.istanbul import SUMMARY_FILENAME

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".covdelta.yml"
DEFAULT_COMMENT_MARKER = "<!-- coverage-comparison -->"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _env(*names: str) -> str | None:
    """Return the first non-empty environment variable among *names*."""
    for name in names:
        value = os.environ.get(name)
        if value is not None and value.strip():
            return value
    return None


def parse_optional_float(value: Any) -> float | None:
    """Parse a threshold value; ``None`` and blank strings mean "not checked".

    Raises:
        ValueError: If *value* is not numeric.
    """
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        return float(value.strip())
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got: {value!r}")
    return float(value)


def parse_bool(value: Any, *, default: bool) -> bool:
    """Parse YAML/env booleans ("true", "no", 1, ...)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


@dataclass
class CoveragePathsConfig:
    """Where to find current and baseline coverage."""

    new_path: str = "coverage"
    """Root directory of the current run's coverage summaries."""

    old_path: str = "baseline/coverage"
    """Root directory of the baseline coverage summaries."""

    summary_filename: str = SUMMARY_FILENAME
    """File name that marks a project report."""


@dataclass
class ThresholdConfig:
    """Allowed coverage regressions, in percentage points."""

    delta: float | None = None
    """Per-project tolerance (None = not checked)."""

    total_delta: float | None = None
    """Aggregate tolerance across existing projects (None = not checked)."""


@dataclass
class CommentConfig:
    """Pull request comment settings."""

    enabled: bool = True
    """Post the coverage comment when running on a pull request."""

    use_same_comment: bool = True
    """Update the previous coverage comment instead of adding a new one."""

    custom_text: str = ""
    """Extra markdown shown above the report."""

    marker: str = DEFAULT_COMMENT_MARKER
    """First line of the comment, used to find it again."""


@dataclass
class GitHubConfig:
    """GitHub API access."""

    token: str = ""
    """Access token (supports ${ENV_VAR} expansion)."""

    api_url: str = ""
    """API root for GitHub Enterprise (empty = api.github.com)."""


@dataclass
class CovdeltaConfig:
    """Complete covdelta configuration."""

    root: str
    """Directory the configuration was loaded from."""

    coverage: CoveragePathsConfig = field(default_factory=CoveragePathsConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    comment: CommentConfig = field(default_factory=CommentConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""


def _parse_coverage_paths(raw: dict[str, Any]) -> CoveragePathsConfig:
    section = _section(raw, "coverage")
    defaults = CoveragePathsConfig()
    return CoveragePathsConfig(
        new_path=str(section.get("new_path") or _env("INPUT_NEWCOVERAGEPATH") or defaults.new_path),
        old_path=str(section.get("old_path") or _env("INPUT_OLDCOVERAGEPATH") or defaults.old_path),
        summary_filename=str(section.get("summary_filename") or defaults.summary_filename),
    )


def _parse_threshold_config(raw: dict[str, Any]) -> ThresholdConfig:
    section = _section(raw, "thresholds")
    delta_raw = section["delta"] if "delta" in section else _env("COVDELTA_DELTA", "INPUT_DELTA")
    total_raw = (
        section["total_delta"]
        if "total_delta" in section
        else _env("COVDELTA_TOTAL_DELTA", "INPUT_TOTAL_DELTA")
    )
    return ThresholdConfig(
        delta=parse_optional_float(delta_raw),
        total_delta=parse_optional_float(total_raw),
    )


def _parse_comment_config(raw: dict[str, Any]) -> CommentConfig:
    section = _section(raw, "comment")
    defaults = CommentConfig()
    return CommentConfig(
        enabled=parse_bool(section.get("enabled"), default=defaults.enabled),
        use_same_comment=parse_bool(
            section.get("use_same_comment", _env("INPUT_USESAMECOMMENT")),
            default=defaults.use_same_comment,
        ),
        custom_text=str(section.get("custom_text") or _env("INPUT_COMMENT") or ""),
        marker=str(section.get("marker") or defaults.marker),
    )


def _parse_github_config(raw: dict[str, Any]) -> GitHubConfig:
    section = _section(raw, "github")
    return GitHubConfig(
        token=str(section.get("token") or _env("GITHUB_TOKEN", "INPUT_ACCESSTOKEN") or ""),
        api_url=str(section.get("api_url") or _env("GITHUB_API_URL") or ""),
    )


def load_config(root: str | Path) -> CovdeltaConfig:
    """Load and parse ``.covdelta.yml`` from *root*.

    Falls back to environment variables and defaults when the file is
    missing or incomplete.

    Raises:
        ValueError: If a threshold is not numeric.
        yaml.YAMLError: If the file is not valid YAML.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        elif parsed is not None:
            logger.warning("Ignoring %s: top level must be a mapping", config_file)

    return CovdeltaConfig(
        root=str(root_path),
        coverage=_parse_coverage_paths(raw),
        thresholds=_parse_threshold_config(raw),
        comment=_parse_comment_config(raw),
        github=_parse_github_config(raw),
        raw=raw,
    )


def _validate_threshold_config(thresholds: ThresholdConfig) -> list[str]:
    errors: list[str] = []

    for name, value in (("delta", thresholds.delta), ("total_delta", thresholds.total_delta)):
        if value is None:
            continue
        if not math.isfinite(value):
            errors.append(f"thresholds.{name} must be a finite number (got: {value})")
        elif value < 0:
            errors.append(f"thresholds.{name} must be non-negative (got: {value})")

    return errors


def _validate_coverage_paths(coverage: CoveragePathsConfig) -> list[str]:
    errors: list[str] = []

    if not coverage.new_path:
        errors.append("coverage.new_path is required")
    if not coverage.old_path:
        errors.append("coverage.old_path is required")
    if not coverage.summary_filename:
        errors.append("coverage.summary_filename is required")

    return errors


def validate_config(config: CovdeltaConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []
    errors.extend(_validate_coverage_paths(config.coverage))
    errors.extend(_validate_threshold_config(config.thresholds))

    if config.comment.enabled and not config.comment.marker.strip():
        errors.append("comment.marker must not be empty when comments are enabled")

    return errors
