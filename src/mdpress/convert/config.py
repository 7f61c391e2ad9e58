"""Configuration loader for conversions."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from mdpress.core import config as core_config
from mdpress.core import workspace as workspace_mod

from .diagrams import DEFAULT_KROKI_URL
from .errors import ConvertConfigError
from .models import OutputFormat, PageTheme

CONFIG_FILENAME = "mdpress.toml"
CONFIG_ENV = "MDPRESS_CONFIG"
ENV_PREFIX = "MDPRESS_"

_DEFAULT_FORMAT = "pdf"
_DEFAULT_THEME = "default"
_DEFAULT_TIMEOUT = 30.0
_DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class ConvertConfig:
    """Fully resolved settings for one conversion."""

    output_dir: Path
    output_format: OutputFormat
    theme: PageTheme
    renderer_url: str
    renderer_timeout: float
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """Values given on the command line; ``None`` means not given."""

    output_dir: Optional[Path] = None
    output_format: Optional[OutputFormat] = None
    theme: Optional[PageTheme] = None
    renderer_url: Optional[str] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: ConvertConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve settings with precedence CLI > env > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise ConvertConfigError(str(exc)) from exc

    requested = _requested_path(
        config_path, env_map, layout.path_for("config") / CONFIG_FILENAME
    )
    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        try:
            core_config.merge_defaults(
                table, core_config.load_toml(requested)
            )
        except core_config.TomlConfigError as exc:
            raise ConvertConfigError(str(exc)) from exc
        loaded_path = requested
    elif config_path is not None or _env_value(env_map, "CONFIG"):
        raise ConvertConfigError(f"Config file not found: {requested}")

    output_dir = _resolve_output_dir(
        _first(
            overrides.output_dir,
            _env_path(env_map, "OUTPUT_DIR"),
            _optional_path(table["paths"]["output_dir"]),
        ),
        layout,
    )
    output_format = _first(
        overrides.output_format,
        _env_enum(env_map, "FORMAT", OutputFormat),
        _table_enum(table["output"]["format"], OutputFormat, "output.format"),
    )
    theme = _first(
        overrides.theme,
        _env_enum(env_map, "THEME", PageTheme),
        _table_enum(table["output"]["theme"], PageTheme, "output.theme"),
    )
    renderer_url = _non_empty(
        _first(
            overrides.renderer_url,
            _env_value(env_map, "RENDERER_URL"),
            table["diagrams"]["renderer_url"],
        ),
        "diagrams.renderer_url",
    )
    timeout = _timeout(
        _first(_env_value(env_map, "TIMEOUT"), table["diagrams"]["timeout"])
    )
    log_level = _non_empty(
        _first(
            overrides.log_level,
            _env_value(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        ),
        "logging.level",
    ).upper()

    config = ConvertConfig(
        output_dir=output_dir,
        output_format=output_format,
        theme=theme,
        renderer_url=renderer_url,
        renderer_timeout=timeout,
        log_level=log_level,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "paths": {"output_dir": None},
        "output": {"format": _DEFAULT_FORMAT, "theme": _DEFAULT_THEME},
        "diagrams": {
            "renderer_url": DEFAULT_KROKI_URL,
            "timeout": _DEFAULT_TIMEOUT,
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _requested_path(
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    from_env = _env_value(env_map, "CONFIG")
    if from_env:
        return Path(from_env).expanduser()
    return default_path


def _resolve_output_dir(
    candidate: Optional[Path], layout: workspace_mod.WorkspaceLayout
) -> Path:
    if candidate is None:
        return layout.path_for("exports")
    candidate = candidate.expanduser()
    if not candidate.is_absolute():
        return (layout.home / candidate).resolve()
    return candidate.resolve()


def _optional_path(value: object) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, str):
        return Path(value.strip()) if value.strip() else None
    raise ConvertConfigError("paths.output_dir must be a string.")


def _table_enum(value: object, enum_cls, key: str):
    if not isinstance(value, str):
        raise ConvertConfigError(f"{key} must be a string.")
    return enum_cls.from_value(value)


def _env_enum(env_map: Mapping[str, str], key: str, enum_cls):
    raw = _env_value(env_map, key)
    if raw is None:
        return None
    return enum_cls.from_value(raw)


def _env_path(env_map: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _env_value(env_map, key)
    return Path(raw) if raw is not None else None


def _env_value(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    return raw.strip() or None


def _non_empty(value: object, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConvertConfigError(f"{key} must be a non-empty string.")
    return value.strip()


def _timeout(value: object) -> float:
    if isinstance(value, bool):
        raise ConvertConfigError("diagrams.timeout must be a number.")
    try:
        timeout = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConvertConfigError("diagrams.timeout must be a number.") from exc
    if timeout <= 0:
        raise ConvertConfigError("diagrams.timeout must be positive.")
    return timeout


def _first(*candidates):
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


__all__ = [
    "CONFIG_ENV",
    "CONFIG_FILENAME",
    "ConfigOverrides",
    "ConvertConfig",
    "LoadResult",
    "load_config",
]
