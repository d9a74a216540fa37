"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from vidstamp.config import (
    ConfigError,
    ConfigManager,
    VidstampConfig,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager()


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".vidstamp" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "vidstamp configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, VidstampConfig)
    assert config.output.suffix == "_processed"


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.save({"output": {"suffix": "_file"}, "processing": {"pause_seconds": 2}})

    env = {"VIDSTAMP__OUTPUT__SUFFIX": "_env", "VIDSTAMP__PROCESSING__BIRTHTIME_FALLBACK": "now"}
    cli = {"output.suffix": "_cli"}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.processing.pause_seconds == pytest.approx(2)
    assert config.processing.birthtime_fallback == "now"
    # CLI overrides take precedence over environment
    assert config.output.suffix == "_cli"


def test_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"output": {"suffix": "_file"}})

    config = manager.load(env_overrides={"VIDSTAMP__OUTPUT__SUFFIX": "_env"})

    assert config.output.suffix == "_env"
    assert manager.load(include_env=False).output.suffix == "_file"


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=VidstampConfig(),
            file_overrides={"output": {"colour": "blue"}},
        )


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=VidstampConfig(),
            file_overrides={"processing": {"progress_tick_seconds": 0}},
        )


def test_logging_level_is_validated() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=VidstampConfig(),
            file_overrides={"logging": {"level": "LOUD"}},
        )

    config = resolve_with_precedence(defaults=VidstampConfig(), cli_overrides={"logging.level": "debug"})
    assert config.logging.level == "DEBUG"


def test_file_section_with_plain_value_is_rejected(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"output": {"suffix": "_file"}})

    with pytest.raises(ConfigError):
        manager.load(cli_overrides={"output.suffix.extra": "x"}, include_env=False)
