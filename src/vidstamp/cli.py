"""Command line interface for vidstamp."""

from __future__ import annotations

import difflib
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Iterable

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from vidstamp.batch import (
    BatchPlanner,
    BatchReport,
    BatchRunner,
    BatchSession,
    CollisionDecision,
    OutputPolicy,
    RunnerEvent,
    RunState,
    TranscodeExecutor,
    VideoScanner,
)
from vidstamp.batch.runner import NO_OUTPUT_DIRECTORY_STATUS
from vidstamp.catalog import CatalogLoader
from vidstamp.config import (
    ConfigError,
    ConfigManager,
    VidstampConfig,
    resolve_with_precedence,
    set_path,
)
from vidstamp.metadata import MetadataProbe
from vidstamp.tools import FFMPEG, FFPROBE, ToolLocator, ToolNotFoundError

console = Console()
LOGGER = logging.getLogger(__name__)


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """
    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _format_summary_line(command: str, target: Path | str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


def _configure_logging(level: str, verbose: bool) -> None:
    """Attach a rich handler to the package logger at the configured level."""
    logger = logging.getLogger("vidstamp")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    logger.setLevel(logging.DEBUG if verbose else level.upper())
    logger.propagate = False


def _load_config(cli_overrides: dict[str, Any], *, json_output: bool) -> VidstampConfig:
    manager = ConfigManager()
    try:
        return manager.load(cli_overrides=cli_overrides)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        raise  # pragma: no cover - _handle_cli_error always raises


def _build_session(
    config: VidstampConfig,
    paths: Iterable[str],
    *,
    recursive: bool,
    output: str | None,
) -> tuple[BatchSession, CatalogLoader, ToolLocator, list[str]]:
    """Select the videos under ``paths`` and probe them into a new session."""
    locator = ToolLocator.from_settings(config.tools)
    loader = CatalogLoader(MetadataProbe(locator), config.processing.birthtime_fallback)
    session = BatchSession(
        output_directory=Path(output).expanduser().resolve() if output else None,
        policy=OutputPolicy(
            append_suffix=config.output.append_suffix,
            suffix=config.output.suffix,
        ),
        overwrite_all=config.output.overwrite_all,
    )
    scanner = VideoScanner(recursive=recursive)
    session.add(scanner.scan(Path(item) for item in paths))
    result = loader.load_many(session.missing_entries())
    for entry in result.entries:
        session.set_entry(entry)
    return session, loader, locator, result.errors


def _catalog_table(session: BatchSession) -> Table:
    table = Table(title="Selected videos")
    table.add_column("#", justify="right")
    table.add_column("File")
    table.add_column("Size", justify="right")
    table.add_column("Creation date")
    table.add_column("Encoded date")
    table.add_column("Status")
    for number, path in enumerate(session.selection, start=1):
        entry = session.entry(path)
        if entry is None:
            table.add_row(str(number), path.name, session.size_label(path) or "", "", "", "[red]error[/red]")
            continue
        status = "[yellow]needs update[/yellow]" if entry.needs_update else "[green]up to date[/green]"
        table.add_row(
            str(number),
            path.name,
            session.size_label(path) or "",
            entry.creation_date,
            entry.encoded_date or "None",
            status,
        )
    return table


def _catalog_payload(session: BatchSession, errors: list[str]) -> dict[str, Any]:
    files = []
    for path in session.selection:
        entry = session.entry(path)
        if entry is None:
            continue
        record = entry.model_dump(mode="json")
        record["size"] = session.size_label(path)
        files.append(record)
    return {
        "files": files,
        "counts": {
            "selected": len(session.selection),
            "needs_update": session.files_needing_update,
            "up_to_date": session.files_up_to_date,
        },
        "errors": errors,
    }


def _prompt_collision(output_name: str) -> CollisionDecision:
    choice = click.prompt(
        f"The file '{output_name}' already exists. Overwrite it?",
        type=click.Choice([decision.value for decision in CollisionDecision]),
        default=CollisionDecision.SKIP.value,
        err=True,
    )
    return CollisionDecision(choice)


def _prompt_outside_live(progress: Progress, output_name: str) -> CollisionDecision:
    """Ask about a collision with the live progress display suspended."""
    progress.stop()
    try:
        return _prompt_collision(output_name)
    finally:
        progress.start()


def _report_payload(report: BatchReport, session: BatchSession) -> dict[str, Any]:
    return {
        "state": report.state.value,
        "status": report.status,
        "outcomes": [outcome.model_dump(mode="json") for outcome in report.outcomes],
        "counts": {
            "processed": report.processed,
            "failed": report.failed,
            "skipped": report.skipped,
        },
        "selection": [str(path) for path in session.selection],
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="vidstamp")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Sync the encoded date of video files with their filesystem creation date."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=str))
@click.option("-r", "--recursive", is_flag=True, help="Include videos in subdirectories.")
@click.option("--json", "json_output", is_flag=True, help="Emit the catalog as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def scan(ctx: click.Context, paths: tuple[str, ...], recursive: bool, json_output: bool, quiet: bool) -> None:
    """Show creation and encoded dates for the videos under PATHS."""
    config = _load_config({}, json_output=json_output)
    _configure_logging(config.logging.level, ctx.obj.get("verbose", False))

    try:
        session, _, _, errors = _build_session(config, paths, recursive=recursive, output=None)
    except ToolNotFoundError as exc:
        _handle_cli_error(str(exc), code="tool_not_found", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data=_catalog_payload(session, errors))
        return

    if not session.selection:
        _emit_message("[yellow]No video files selected.[/yellow]", mode="warning", quiet=quiet, summary_only=False)
        return

    _emit_message(_catalog_table(session), mode="detail", quiet=quiet, summary_only=False)
    for error in errors:
        _emit_message(f"[red]{error}[/red]", mode="error", quiet=quiet, summary_only=False)
    _emit_message(session.status_message(), mode="summary", quiet=quiet, summary_only=False)


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=str))
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=str),
    help="Directory receiving the processed videos.",
)
@click.option("--suffix", type=str, help="Suffix appended to output file names.")
@click.option("--no-suffix", is_flag=True, help="Keep the input file names.")
@click.option("--overwrite-all", is_flag=True, help="Overwrite existing outputs without asking.")
@click.option("-r", "--recursive", is_flag=True, help="Include videos in subdirectories.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the batch result.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def sync(
    ctx: click.Context,
    paths: tuple[str, ...],
    output: str | None,
    suffix: str | None,
    no_suffix: bool,
    overwrite_all: bool,
    recursive: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Rewrite the encoded date of videos under PATHS into new files in --output."""
    overrides: dict[str, Any] = {}
    if suffix is not None:
        overrides["output.suffix"] = suffix
        overrides["output.append_suffix"] = True
    if no_suffix:
        overrides["output.append_suffix"] = False
    if overwrite_all:
        overrides["output.overwrite_all"] = True

    config = _load_config(overrides, json_output=json_output)
    _configure_logging(config.logging.level, ctx.obj.get("verbose", False))

    try:
        session, loader, locator, errors = _build_session(
            config, paths, recursive=recursive, output=output
        )
    except ToolNotFoundError as exc:
        _handle_cli_error(str(exc), code="tool_not_found", json_output=json_output, original=exc)
        return

    show_detail = not (json_output or quiet or summary_mode)
    for error in errors:
        if not json_output:
            _emit_message(f"[red]{error}[/red]", mode="error", quiet=quiet, summary_only=summary_mode)
    if show_detail and session.selection:
        console.print(_catalog_table(session))
        console.print(session.status_message())

    executor = TranscodeExecutor(locator, tick_seconds=config.processing.progress_tick_seconds)

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
        disable=not show_detail,
    ) as progress:
        overall_task = progress.add_task("Overall", total=1.0)
        file_task = progress.add_task("Waiting", total=1.0)

        def _on_event(event: RunnerEvent) -> None:
            if event.kind == "overall_progress":
                progress.update(overall_task, completed=event.fraction)
            elif event.kind == "file_started":
                progress.update(file_task, description=event.message, completed=0.0)
            elif event.kind in {"file_progress", "file_finished"}:
                progress.update(file_task, completed=event.fraction)

        runner = BatchRunner(
            session,
            BatchPlanner(),
            executor,
            loader,
            lambda output_name: _prompt_outside_live(progress, output_name),
            pause_seconds=config.processing.pause_seconds,
            on_event=_on_event,
        )
        try:
            report = runner.run()
        except ToolNotFoundError as exc:
            _handle_cli_error(str(exc), code="tool_not_found", json_output=json_output, original=exc)
            return

    if json_output:
        payload = _report_payload(report, session)
        payload["errors"] = errors
        console.print_json(data=payload)
    else:
        for outcome in report.outcomes:
            color = {"success": "green", "degraded": "yellow", "skipped": "cyan"}.get(outcome.status, "red")
            mode = "error" if outcome.status == "failed" else "detail"
            _emit_message(f"[{color}]{outcome.message}[/{color}]", mode=mode, quiet=quiet, summary_only=summary_mode)
        _emit_message(report.status, mode="summary", quiet=quiet, summary_only=summary_mode)
        target = session.output_directory or "selection"
        _emit_message(
            _format_summary_line(
                "Sync",
                target,
                {
                    "processed": report.processed,
                    "failed": report.failed,
                    "skipped": report.skipped,
                    "state": report.state.value,
                },
            ),
            mode="summary",
            quiet=quiet,
            summary_only=summary_mode,
        )

    if report.failed or report.state is RunState.ABORTED or report.status == NO_OUTPUT_DIRECTORY_STATUS:
        ctx.exit(1)


@cli.command()
def tools() -> None:
    """Show the resolved ffmpeg and ffprobe executables and their versions."""
    config = _load_config({}, json_output=False)
    locator = ToolLocator.from_settings(config.tools)
    table = Table(title="External tools")
    table.add_column("Tool")
    table.add_column("Path")
    table.add_column("Version")
    for tool in (FFMPEG, FFPROBE):
        try:
            path = locator.locate(tool)
        except ToolNotFoundError:
            path = "[red]not found[/red]"
        table.add_row(tool, path, locator.version(tool))
    console.print(table)


@cli.group()
def config() -> None:
    """Manage vidstamp configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY."""
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'output.suffix'.")

    try:
        parsed_value = yaml.safe_load(value)
        previous = manager.load_file_overrides()
        file_data = deepcopy(previous)
        set_path(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=VidstampConfig(), file_overrides=file_data)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if file_data == previous:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    manager.save(file_data)
    after = manager.read_text().splitlines()
    diff = difflib.unified_diff(
        before,
        after,
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session."""
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=VidstampConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
