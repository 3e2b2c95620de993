"""Project configuration: ``.playscan.yml`` at the project root."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import yaml

from playscan.engine.catalog import DEFAULT_PROFILE

if TYPE_CHECKING:
    from pathlib import Path

    from playscan.engine.catalog import RuleCatalog

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".playscan.yml"

_KNOWN_KEYS: frozenset[str] = frozenset(
    {"profile", "enable", "disable", "exclude", "parameters", "workers"}
)


class ConfigError(ValueError):
    """Raised when the project configuration is invalid."""


@dataclass(frozen=True)
class ScanConfig:
    """Settings of one scan, after config file and command line are merged."""

    profile: str = DEFAULT_PROFILE
    enable: tuple[str, ...] = ()
    disable: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    parameters: dict[str, dict[str, Any]] = field(default_factory=dict)
    workers: int = 1

    def with_overrides(
        self, *, profile: str | None = None, workers: int | None = None
    ) -> ScanConfig:
        """Return a copy with command-line values taking precedence."""
        return ScanConfig(
            profile=profile if profile is not None else self.profile,
            enable=self.enable,
            disable=self.disable,
            exclude=self.exclude,
            parameters=self.parameters,
            workers=workers if workers is not None else self.workers,
        )

    def active_rule_keys(self, catalog: RuleCatalog) -> list[str]:
        """Resolve the profile, then apply ``enable`` and ``disable``.

        Raises
        ------
        UnknownProfileError
            If the profile is not registered in *catalog*.
        ConfigError
            If ``enable``, ``disable`` or ``parameters`` name an unknown rule.
        """
        keys = list(catalog.active_rule_keys(self.profile))
        unknown = sorted(
            {k for k in (*self.enable, *self.disable, *self.parameters) if k not in catalog}
        )
        if unknown:
            msg = f"Unknown rule key(s) in configuration: {', '.join(unknown)}"
            raise ConfigError(msg)
        for key in self.enable:
            if key not in keys:
                keys.append(key)
        disabled = set(self.disable)
        return [key for key in keys if key not in disabled]


def _string_list(data: dict[str, Any], key: str) -> tuple[str, ...]:
    value = data.get(key, [])
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        msg = f"'{key}' must be a list of strings"
        raise ConfigError(msg)
    return tuple(value)


def parse_config(data: object) -> ScanConfig:
    """Validate an already-loaded configuration mapping."""
    if data is None:
        return ScanConfig()
    if not isinstance(data, dict):
        msg = "Configuration must be a mapping"
        raise ConfigError(msg)

    for key in sorted(set(data) - _KNOWN_KEYS):
        logger.warning("Ignoring unknown configuration key '%s'", key)

    profile = data.get("profile", DEFAULT_PROFILE)
    if not isinstance(profile, str) or not profile:
        msg = "'profile' must be a non-empty string"
        raise ConfigError(msg)

    parameters = data.get("parameters", {}) or {}
    if not isinstance(parameters, dict) or not all(
        isinstance(value, dict) for value in parameters.values()
    ):
        msg = "'parameters' must map rule keys to mappings of options"
        raise ConfigError(msg)

    workers = data.get("workers", 1)
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        msg = f"'workers' must be a positive integer, got {workers!r}"
        raise ConfigError(msg)

    return ScanConfig(
        profile=profile,
        enable=_string_list(data, "enable"),
        disable=_string_list(data, "disable"),
        exclude=_string_list(data, "exclude"),
        parameters={str(key): dict(value) for key, value in parameters.items()},
        workers=workers,
    )


def load_config(project_root: Path, config_path: Path | None = None) -> ScanConfig:
    """Load ``.playscan.yml`` from *project_root* (or *config_path*).

    A missing file yields the defaults.

    Raises
    ------
    ConfigError
        If the file cannot be read, is not valid YAML, or has invalid values.
    """
    path = config_path if config_path is not None else project_root / CONFIG_FILENAME
    if not path.is_file():
        if config_path is not None:
            msg = f"Configuration file not found: {path}"
            raise ConfigError(msg)
        return ScanConfig()

    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path.name}: {exc}"
        raise ConfigError(msg) from exc

    logger.debug("Loaded configuration from %s", path)
    return parse_config(data)
