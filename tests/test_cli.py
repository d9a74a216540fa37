"""CLI tests for the scan, sync and tools commands."""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pytest
from click.testing import CliRunner

from vidstamp import cli as cli_module
from vidstamp.batch import CollisionDecision, ProcessOutcome, TranscodeExecutor
from vidstamp.cli import cli
from vidstamp.metadata import MetadataProbe, format_display

FIXED_CREATION = datetime(2024, 3, 1, 10, 0, 0).astimezone()


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("VIDSTAMP__")}
    env["HOME"] = str(tmp_path / "home")
    env["VIDSTAMP__PROCESSING__PAUSE_SECONDS"] = "0"
    return env


@pytest.fixture()
def fake_media(monkeypatch: pytest.MonkeyPatch) -> None:
    """Fix creation times and report encoded dates only for processed outputs."""

    def _probe(self: MetadataProbe, path: Path) -> Optional[str]:
        if path.stem.endswith("_processed") or path.stem == "tagged":
            return format_display(FIXED_CREATION)
        return None

    monkeypatch.setattr("vidstamp.catalog.loader.read_creation_time", lambda path, fallback: FIXED_CREATION)
    monkeypatch.setattr(MetadataProbe, "probe", _probe)


@pytest.fixture()
def fake_transcode(monkeypatch: pytest.MonkeyPatch) -> list[Path]:
    calls: list[Path] = []

    def _process(
        self: TranscodeExecutor,
        source: Path,
        output: Path,
        creation_instant: datetime,
        on_progress: Any = None,
    ) -> ProcessOutcome:
        calls.append(source)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(source.read_bytes())
        return ProcessOutcome(status="success", message=f"Successfully processed {source.name}!")

    monkeypatch.setattr(TranscodeExecutor, "process", _process)
    return calls


def _videos(tmp_path: Path) -> Path:
    folder = tmp_path / "videos"
    folder.mkdir()
    (folder / "holiday.mp4").write_bytes(b"a")
    (folder / "tagged.mov").write_bytes(b"b")
    (folder / "readme.txt").write_text("not a video", encoding="utf-8")
    return folder


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Sync the encoded date of video files" in result.output
    for command in ("scan", "sync", "tools", "config"):
        assert command in result.output


def test_scan_json_reports_dates(tmp_path: Path, fake_media: None) -> None:
    folder = _videos(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["scan", str(folder), "--json"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    names = [Path(item["path"]).name for item in payload["files"]]
    assert names == ["holiday.mp4", "tagged.mov"]
    holiday, tagged = payload["files"]
    assert holiday["encoded_date"] is None
    assert holiday["needs_update"] is True
    assert tagged["needs_update"] is False
    assert holiday["size"] == "0.0 KB"
    assert payload["counts"] == {"selected": 2, "needs_update": 1, "up_to_date": 1}
    assert payload["errors"] == []


def test_scan_table_output(tmp_path: Path, fake_media: None) -> None:
    folder = _videos(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["scan", str(folder)], env=_env_with_home(tmp_path))

    assert result.exit_code == 0, result.output
    assert "Selected videos" in result.output
    assert "1 file ready for processing" in result.output


def test_sync_processes_stale_files(
    tmp_path: Path, fake_media: None, fake_transcode: list[Path]
) -> None:
    folder = _videos(tmp_path)
    output = tmp_path / "out"
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["sync", str(folder), "--output", str(output), "--json"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["state"] == "completed"
    assert payload["status"] == "Batch processing completed! Files saved to: out"
    assert payload["counts"] == {"processed": 1, "failed": 0, "skipped": 0}
    assert [path.name for path in fake_transcode] == ["holiday.mp4"]
    assert (output / "holiday_processed.mp4").exists()
    assert str(output.resolve() / "holiday_processed.mp4") in payload["selection"]


def test_sync_uses_custom_suffix(
    tmp_path: Path, fake_media: None, fake_transcode: list[Path]
) -> None:
    folder = _videos(tmp_path)
    output = tmp_path / "out"
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["sync", str(folder), "-o", str(output), "--suffix", "_fixed", "--summary"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    assert (output / "holiday_fixed.mp4").exists()
    assert "Sync summary" in result.output


def test_sync_skip_on_collision(
    tmp_path: Path, fake_media: None, fake_transcode: list[Path]
) -> None:
    folder = _videos(tmp_path)
    output = tmp_path / "out"
    output.mkdir()
    (output / "holiday_processed.mp4").write_bytes(b"existing")
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["sync", str(folder), "-o", str(output), "--quiet"],
        env=_env_with_home(tmp_path),
        input="skip\n",
    )

    assert result.exit_code == 0, result.output
    assert fake_transcode == []
    assert (output / "holiday_processed.mp4").read_bytes() == b"existing"


def test_sync_cancel_exits_with_error(
    tmp_path: Path, fake_media: None, fake_transcode: list[Path]
) -> None:
    folder = _videos(tmp_path)
    output = tmp_path / "out"
    output.mkdir()
    (output / "holiday_processed.mp4").write_bytes(b"existing")
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["sync", str(folder), "-o", str(output)],
        env=_env_with_home(tmp_path),
        input="cancel\n",
    )

    assert result.exit_code == 1
    assert "Batch processing cancelled" in result.output
    assert fake_transcode == []


def test_sync_without_output_directory_fails(
    tmp_path: Path, fake_media: None, fake_transcode: list[Path]
) -> None:
    folder = _videos(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["sync", str(folder)], env=_env_with_home(tmp_path))

    assert result.exit_code == 1
    assert "Please select an output folder first" in result.output
    assert fake_transcode == []


def test_tools_reports_missing_executables(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("vidstamp.tools.locator.shutil.which", lambda name: None)
    env = _env_with_home(tmp_path)
    env["VIDSTAMP__TOOLS__SEARCH_PATHS"] = "[]"
    runner = CliRunner()

    result = runner.invoke(cli, ["tools"], env=env)

    assert result.exit_code == 0, result.output
    assert "ffmpeg" in result.output
    assert "not found" in result.output
    assert "Not found" in result.output


def test_scan_without_ffprobe_reports_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("vidstamp.tools.locator.shutil.which", lambda name: None)
    monkeypatch.setattr("vidstamp.catalog.loader.read_creation_time", lambda path, fallback: FIXED_CREATION)
    folder = _videos(tmp_path)
    env = _env_with_home(tmp_path)
    env["VIDSTAMP__TOOLS__SEARCH_PATHS"] = "[]"
    runner = CliRunner()

    result = runner.invoke(cli, ["scan", str(folder), "--json"], env=env)

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "tool_not_found"


def test_invalid_logging_level_is_reported_without_traceback(tmp_path: Path) -> None:
    folder = _videos(tmp_path)
    env = _env_with_home(tmp_path)
    config_path = tmp_path / "home" / ".vidstamp" / "config.yaml"
    config_path.parent.mkdir(parents=True)
    config_path.write_text("logging:\n  level: LOUD\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(cli, ["scan", str(folder)], env=env)

    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert "Invalid configuration values" in result.output


def test_collision_prompt_suspends_live_display(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    class _Display:
        def stop(self) -> None:
            calls.append("stop")

        def start(self) -> None:
            calls.append("start")

    def _answer(output_name: str) -> CollisionDecision:
        calls.append(f"prompt {output_name}")
        return CollisionDecision.SKIP

    monkeypatch.setattr(cli_module, "_prompt_collision", _answer)

    decision = cli_module._prompt_outside_live(_Display(), "clip_processed.mp4")  # type: ignore[arg-type]

    assert decision is CollisionDecision.SKIP
    assert calls == ["stop", "prompt clip_processed.mp4", "start"]
