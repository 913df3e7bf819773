"""covdelta CLI: top-level command group."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from covdelta import __version__
from covdelta.analyzers.thresholds import check_thresholds
from covdelta.config import CovdeltaConfig, load_config, validate_config
from covdelta.orchestrator import compare_coverage_dirs
from covdelta.reporters.github_comment import GitHubCommentReporter
from covdelta.reporters.json_reporter import JSONReporter, build_report
from covdelta.reporters.terminal import reporter
from covdelta.utils.ci_context import detect_ci_context
from covdelta.utils.git import GitHubAPIError, get_pr_info_from_env

if TYPE_CHECKING:
    from covdelta.orchestrator import ComparisonRun

logger = logging.getLogger(__name__)
console = Console()

# Masking thresholds
_MIN_MASKED_VALUE_LENGTH = 8
_SENSITIVE_KEYS = frozenset({"token"})


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _config_to_dict(config: CovdeltaConfig) -> dict[str, Any]:
    """Convert CovdeltaConfig to dictionary for display."""
    result = asdict(config)
    # Remove the raw field as it's redundant
    result.pop("raw", None)
    return result


def _mask_sensitive_values(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *data* with tokens masked."""
    masked: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            masked[key] = _mask_sensitive_values(value)
        elif key in _SENSITIVE_KEYS and isinstance(value, str) and value:
            if len(value) > _MIN_MASKED_VALUE_LENGTH:
                masked[key] = f"{value[:4]}...{value[-4:]}"
            else:
                masked[key] = "***"
        else:
            masked[key] = value
    return masked


def _load_config_or_abort(path: str) -> CovdeltaConfig:
    try:
        return load_config(path)
    except (ValueError, yaml.YAMLError, OSError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e


def _resolve_dir(root: str, value: str) -> Path:
    candidate = Path(value)
    return candidate if candidate.is_absolute() else Path(root) / candidate


def _post_comment(config: CovdeltaConfig, run: ComparisonRun, *, ci_mode: bool) -> None:
    """Post the coverage comment when running on a pull request."""
    pr_info = get_pr_info_from_env()
    if pr_info is None:
        logger.debug("Not a pull request event; skipping comment")
        return

    ci_context = detect_ci_context()
    try:
        comment_reporter = GitHubCommentReporter(
            config.github.token or None,
            api_url=config.github.api_url or None,
            marker=config.comment.marker,
        )
        url = comment_reporter.post_comparison(
            pr_info,
            run,
            commit_sha=ci_context.commit_sha or "unknown",
            base_sha=ci_context.base_sha,
            custom_comment=config.comment.custom_text or None,
            use_same_comment=config.comment.use_same_comment,
        )
    except GitHubAPIError as e:
        logger.warning("Failed to post coverage comment: %s", e)
        if not ci_mode:
            reporter.print_warning(f"Failed to post coverage comment: {e}")
        return

    if not ci_mode:
        reporter.print_success(f"Posted coverage comment: {url}")


@click.group()
@click.option(
    "--ci",
    is_flag=True,
    help="CI mode: machine-readable JSON output, exit codes for pass/fail.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="covdelta")
@click.pass_context
def cli(ctx: click.Context, *, ci: bool, verbose: bool) -> None:
    """covdelta: compare Istanbul coverage summaries between two runs."""
    ctx.ensure_object(dict)
    ctx.obj["ci"] = ci
    if verbose:
        _setup_logging()


@cli.command()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory (where .covdelta.yml lives).",
)
@click.option("--new-coverage-path", "new_path", default=None, help="Current coverage root.")
@click.option("--old-coverage-path", "old_path", default=None, help="Baseline coverage root.")
@click.option(
    "--delta",
    type=float,
    default=None,
    help="Allowed per-project coverage drop in percentage points.",
)
@click.option(
    "--total-delta",
    type=float,
    default=None,
    help="Allowed aggregate coverage drop in percentage points.",
)
@click.option(
    "--comment/--no-comment",
    default=None,
    help="Post the report as a pull request comment.",
)
@click.option(
    "--use-same-comment/--new-comment",
    default=None,
    help="Update the previous coverage comment instead of adding one.",
)
@click.option("--custom-comment", default=None, help="Markdown shown above the report.")
@click.option("--show-files", is_flag=True, help="Show file-level changes in the terminal.")
@click.option(
    "--json-output",
    "json_output",
    default=None,
    type=click.Path(dir_okay=False),
    help="Also write the JSON report to this file.",
)
@click.pass_context
def compare(
    ctx: click.Context,
    path: str,
    new_path: str | None,
    old_path: str | None,
    delta: float | None,
    total_delta: float | None,
    comment: bool | None,
    use_same_comment: bool | None,
    custom_comment: str | None,
    *,
    show_files: bool,
    json_output: str | None,
) -> None:
    """Compare current coverage against a baseline.

    Exits with status 1 when a coverage threshold is breached.

    Example:
      covdelta compare --new-coverage-path coverage --old-coverage-path base --delta 0.5
    """
    ci_mode = bool(ctx.obj.get("ci", False)) if ctx.obj else False
    config = _load_config_or_abort(path)

    # Command-line options override the configuration file.
    if new_path is not None:
        config.coverage.new_path = new_path
    if old_path is not None:
        config.coverage.old_path = old_path
    if delta is not None:
        config.thresholds.delta = delta
    if total_delta is not None:
        config.thresholds.total_delta = total_delta
    if comment is not None:
        config.comment.enabled = comment
    if use_same_comment is not None:
        config.comment.use_same_comment = use_same_comment
    if custom_comment is not None:
        config.comment.custom_text = custom_comment

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(error)
        raise click.Abort

    run = compare_coverage_dirs(
        _resolve_dir(config.root, config.coverage.new_path),
        _resolve_dir(config.root, config.coverage.old_path),
        summary_filename=config.coverage.summary_filename,
    )
    result = check_thresholds(
        run.diffs,
        delta=config.thresholds.delta,
        total_delta=config.thresholds.total_delta,
    )

    if ci_mode:
        click.echo(json.dumps(build_report(run, result), indent=2))
    else:
        reporter.print_diagnostics(run.diagnostics)
        reporter.print_comparison(run, show_files=show_files)
        reporter.print_threshold_result(result)

    if json_output:
        JSONReporter().generate(Path(json_output), run, result)

    if config.comment.enabled:
        _post_comment(config, run, ci_mode=ci_mode)

    if not result.passed:
        logger.info("Coverage check failed: %s", result.reason)
        if not ci_mode:
            reporter.print_error(f"Coverage check failed: {result.reason}")
        sys.exit(1)


@cli.group("config")
def config_group() -> None:
    """Inspect `.covdelta.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
@click.option(
    "--no-mask",
    is_flag=True,
    help="Show sensitive values unmasked (use with caution).",
)
def config_show(path: str, *, as_json: bool, no_mask: bool) -> None:
    """Display resolved configuration with masked tokens.

    Example:
      covdelta config show
      covdelta config show --json-output
    """
    config = _load_config_or_abort(path)
    config_dict = _config_to_dict(config)

    if not no_mask:
        config_dict = _mask_sensitive_values(config_dict)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
def config_validate(path: str) -> None:
    """Validate `.covdelta.yml`.

    Example:
      covdelta config validate
    """
    config = _load_config_or_abort(path)
    errors = validate_config(config)

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()

    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")

    console.print()
    console.print(
        "[dim]Fix these errors in .covdelta.yml and run 'covdelta config validate' again.[/dim]"
    )
    raise click.Abort
