"""Layer configuration sources into a validated `VidstampConfig`."""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Sequence

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import VidstampConfig

ENV_PREFIX = "VIDSTAMP__"


def resolve_with_precedence(
    *,
    defaults: VidstampConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> VidstampConfig:
    """Apply override layers on top of ``defaults`` in increasing priority.

    Each layer may be nested, use dotted keys (``output.suffix``) or mix both.
    A later layer replaces single leaves and leaves sibling settings alone.

    Args:
        defaults: Baseline configuration.
        file_overrides: Values read from the YAML file.
        env_overrides: Values collected from ``VIDSTAMP__`` variables.
        cli_overrides: Values supplied by command options.

    Returns:
        VidstampConfig: The validated result.

    Raises:
        ConfigError: If a layer is malformed or the merged values are invalid.
    """
    merged = defaults.model_dump(mode="python")
    for source, layer in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if not layer:
            continue
        if not isinstance(layer, Mapping):
            raise ConfigError(f"{source.capitalize()} overrides must be a mapping.")
        for path, value in _leaves(layer, source=source):
            set_path(merged, path, value)

    try:
        return VidstampConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``VIDSTAMP__SECTION__KEY`` variables into a nested mapping.

    Values are parsed as YAML so ``true``, ``0.5`` or ``[]`` keep their types;
    text that is not valid YAML is kept verbatim.
    """
    overrides: dict[str, Any] = {}
    for name, raw in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        path = [part.lower() for part in name[len(ENV_PREFIX) :].split("__") if part]
        if not path:
            continue
        try:
            value: Any = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        set_path(overrides, path, value)
    return overrides


def set_path(target: dict[str, Any], path: Sequence[str], value: Any) -> None:
    """Store ``value`` at ``path`` inside ``target``, creating missing sections.

    Raises:
        ConfigError: If a segment along ``path`` already holds a plain value.
    """
    node = target
    for depth, segment in enumerate(path[:-1]):
        child = node.get(segment)
        if child is None:
            child = node[segment] = {}
        elif not isinstance(child, dict):
            prefix = ".".join(path[: depth + 1])
            raise ConfigError(f"Cannot set {'.'.join(path)}: {prefix} is not a section.")
        node = child
    node[path[-1]] = value


def _leaves(
    layer: Mapping[str, Any], *, source: str, prefix: tuple[str, ...] = ()
) -> Iterator[tuple[list[str], Any]]:
    for key, value in layer.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source.capitalize()} override keys must be strings.")
        path = (*prefix, *key.split("."))
        if isinstance(value, Mapping):
            yield from _leaves(value, source=source, prefix=path)
        else:
            yield list(path), value


__all__ = ["ENV_PREFIX", "env_overrides", "resolve_with_precedence", "set_path"]
