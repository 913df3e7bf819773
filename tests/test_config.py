"""Tests for config.py: .covdelta.yml parsing and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
import yaml

from covdelta.config import (
    DEFAULT_COMMENT_MARKER,
    CovdeltaConfig,
    ThresholdConfig,
    _resolve_dict,
    _resolve_env_vars,
    load_config,
    parse_bool,
    parse_optional_float,
    validate_config,
)

if TYPE_CHECKING:
    from pathlib import Path

_ENV_VARS = (
    "GITHUB_TOKEN",
    "GITHUB_API_URL",
    "COVDELTA_DELTA",
    "COVDELTA_TOTAL_DELTA",
    "INPUT_DELTA",
    "INPUT_TOTAL_DELTA",
    "INPUT_NEWCOVERAGEPATH",
    "INPUT_OLDCOVERAGEPATH",
    "INPUT_USESAMECOMMENT",
    "INPUT_COMMENT",
    "INPUT_ACCESSTOKEN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_config(root: Path, data: dict[str, Any]) -> None:
    """Write .covdelta.yml with given data."""
    (root / ".covdelta.yml").write_text(yaml.dump(data), encoding="utf-8")


# ── _resolve_env_vars / _resolve_dict ─────────────────────────────────


class TestResolveEnvVars:
    def test_resolves_existing_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _resolve_env_vars("${MY_VAR}") == "hello"

    def test_missing_var_returns_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MISSING_VAR", raising=False)
        assert _resolve_env_vars("${MISSING_VAR}") == ""

    def test_nested_and_lists(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INNER", "resolved")
        result = _resolve_dict({"outer": {"inner": "${INNER}"}, "items": ["${INNER}", 3]})
        assert result == {"outer": {"inner": "resolved"}, "items": ["resolved", 3]}


# ── Value parsing ─────────────────────────────────────────────────────


class TestParseOptionalFloat:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_means_unset(self, value: object) -> None:
        assert parse_optional_float(value) is None

    @pytest.mark.parametrize(("value", "expected"), [("0.5", 0.5), (1, 1.0), (2.25, 2.25)])
    def test_numbers(self, value: object, expected: float) -> None:
        assert parse_optional_float(value) == expected

    @pytest.mark.parametrize("value", ["abc", True])
    def test_invalid(self, value: object) -> None:
        with pytest.raises(ValueError):
            parse_optional_float(value)


class TestParseBool:
    @pytest.mark.parametrize("value", [True, "true", "Yes", "1", "on"])
    def test_true(self, value: object) -> None:
        assert parse_bool(value, default=False) is True

    @pytest.mark.parametrize("value", [False, "false", "NO", "0", "off"])
    def test_false(self, value: object) -> None:
        assert parse_bool(value, default=True) is False

    def test_default(self) -> None:
        assert parse_bool(None, default=True) is True
        assert parse_bool("maybe", default=False) is False


# ── load_config ───────────────────────────────────────────────────────


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)

        assert config.root == str(tmp_path.resolve())
        assert config.coverage.new_path == "coverage"
        assert config.coverage.old_path == "baseline/coverage"
        assert config.coverage.summary_filename == "coverage-summary.json"
        assert config.thresholds == ThresholdConfig()
        assert config.comment.enabled
        assert config.comment.use_same_comment
        assert config.comment.marker == DEFAULT_COMMENT_MARKER
        assert config.github.token == ""

    def test_full_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_TOKEN", "secret")
        _write_config(
            tmp_path,
            {
                "coverage": {"new_path": "cov/new", "old_path": "cov/old"},
                "thresholds": {"delta": 0.5, "total_delta": 1},
                "comment": {
                    "enabled": False,
                    "use_same_comment": "false",
                    "custom_text": "Hi",
                    "marker": "<!-- mine -->",
                },
                "github": {"token": "${MY_TOKEN}", "api_url": "https://ghe/api/v3"},
            },
        )

        config = load_config(tmp_path)

        assert config.coverage.new_path == "cov/new"
        assert config.coverage.old_path == "cov/old"
        assert config.thresholds.delta == 0.5
        assert config.thresholds.total_delta == 1.0
        assert not config.comment.enabled
        assert not config.comment.use_same_comment
        assert config.comment.custom_text == "Hi"
        assert config.comment.marker == "<!-- mine -->"
        assert config.github.token == "secret"  # noqa: S105
        assert config.github.api_url == "https://ghe/api/v3"
        assert config.raw["thresholds"]["delta"] == 0.5

    def test_action_inputs_from_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("INPUT_NEWCOVERAGEPATH", "./coverage")
        monkeypatch.setenv("INPUT_OLDCOVERAGEPATH", "./base")
        monkeypatch.setenv("INPUT_DELTA", "0.2")
        monkeypatch.setenv("INPUT_TOTAL_DELTA", "")
        monkeypatch.setenv("INPUT_USESAMECOMMENT", "false")
        monkeypatch.setenv("INPUT_ACCESSTOKEN", "tok")

        config = load_config(tmp_path)

        assert config.coverage.new_path == "./coverage"
        assert config.coverage.old_path == "./base"
        assert config.thresholds.delta == 0.2
        assert config.thresholds.total_delta is None
        assert not config.comment.use_same_comment
        assert config.github.token == "tok"  # noqa: S105

    def test_file_overrides_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COVDELTA_DELTA", "5")
        _write_config(tmp_path, {"thresholds": {"delta": 1}})

        assert load_config(tmp_path).thresholds.delta == 1.0

    def test_explicit_null_disables_threshold(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("COVDELTA_DELTA", "5")
        _write_config(tmp_path, {"thresholds": {"delta": None}})

        assert load_config(tmp_path).thresholds.delta is None

    def test_non_numeric_threshold(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"thresholds": {"delta": "lots"}})
        with pytest.raises(ValueError):
            load_config(tmp_path)

    def test_non_mapping_file_is_ignored(self, tmp_path: Path) -> None:
        (tmp_path / ".covdelta.yml").write_text("- a\n- b\n", encoding="utf-8")
        assert load_config(tmp_path).raw == {}


# ── validate_config ───────────────────────────────────────────────────


class TestValidateConfig:
    def test_valid_defaults(self, tmp_path: Path) -> None:
        assert validate_config(load_config(tmp_path)) == []

    def test_negative_thresholds(self, tmp_path: Path) -> None:
        config = CovdeltaConfig(root=str(tmp_path))
        config.thresholds.delta = -1
        config.thresholds.total_delta = -0.5

        errors = validate_config(config)

        assert any("thresholds.delta" in e for e in errors)
        assert any("thresholds.total_delta" in e for e in errors)

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf"])
    def test_non_finite_thresholds(self, tmp_path: Path, value: str) -> None:
        config = CovdeltaConfig(root=str(tmp_path))
        config.thresholds.delta = parse_optional_float(value)
        config.thresholds.total_delta = parse_optional_float(value)

        errors = validate_config(config)

        assert errors == [
            f"thresholds.delta must be a finite number (got: {value})",
            f"thresholds.total_delta must be a finite number (got: {value})",
        ]

    def test_nan_from_yaml(self, tmp_path: Path) -> None:
        (tmp_path / ".covdelta.yml").write_text("thresholds:\n  delta: .nan\n", encoding="utf-8")

        errors = validate_config(load_config(tmp_path))

        assert errors == ["thresholds.delta must be a finite number (got: nan)"]

    def test_missing_paths(self, tmp_path: Path) -> None:
        config = CovdeltaConfig(root=str(tmp_path))
        config.coverage.new_path = ""

        assert validate_config(config) == ["coverage.new_path is required"]

    def test_empty_marker(self, tmp_path: Path) -> None:
        config = CovdeltaConfig(root=str(tmp_path))
        config.comment.marker = "  "
        assert validate_config(config) == [
            "comment.marker must not be empty when comments are enabled"
        ]

        config.comment.enabled = False
        assert validate_config(config) == []
