"""Configuration management for vidstamp."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import VidstampConfig
from .resolver import ENV_PREFIX, resolve_with_precedence, set_path
from .resolver import env_overrides as collect_env_overrides

DEFAULT_CONFIG_PATH = Path("~/.vidstamp/config.yaml")
_HEADER_LINES = (
    "# vidstamp configuration file",
    "# Edit with `vidstamp config edit` or change one key with `vidstamp config set`.",
)


class ConfigManager:
    """Own the YAML configuration file and resolve the effective settings from it."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> VidstampConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key values from command options.
            include_env: Whether ``VIDSTAMP__`` variables participate.
            ensure_file: Create the file with defaults when it is missing.
            env_overrides: Variables to read instead of the process environment.

        Raises:
            ConfigError: If the file is unreadable or a value is invalid.
        """
        if ensure_file:
            self.ensure_exists()
        environ = (env_overrides if env_overrides is not None else self._env) if include_env else {}
        return resolve_with_precedence(
            defaults=VidstampConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=collect_env_overrides(environ) or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the mapping stored in the file, or an empty one when absent."""
        text = self.read_text()
        try:
            data = yaml.safe_load(text) if text else None
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return data

    def save(self, config: VidstampConfig | Mapping[str, Any]) -> None:
        data = config.model_dump(mode="python") if isinstance(config, VidstampConfig) else dict(config)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(data, sort_keys=False)
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(
            "\n".join((*_HEADER_LINES, f"# Last updated: {stamp}", body)), encoding="utf-8"
        )

    def ensure_exists(self) -> Path:
        """Write the default configuration unless a file is already present."""
        if not self.config_path.exists():
            self.save(VidstampConfig())
        return self.config_path

    def read_text(self) -> str:
        if not self.config_path.exists():
            return ""
        return self.config_path.read_text(encoding="utf-8")


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "VidstampConfig",
    "resolve_with_precedence",
    "set_path",
]
