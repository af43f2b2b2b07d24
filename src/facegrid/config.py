"""Grid-size validation and YAML configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from facegrid.errors import ConfigError, GridSizeError
from facegrid.logging import get_logger
from facegrid.models import MAX_GRID_SIZE, GenerationSetup

logger = get_logger("config")

DEFAULT_GRID_SIZE = 5


def parse_grid_size(raw: str | int | None) -> int:
    """Validate the grid dimension given on the command line.

    ``None`` or an empty string selects the default.  Integral numeric
    strings such as ``"5.0"`` are accepted.

    Args:
        raw: Raw CLI value.

    Returns:
        A positive odd grid size.

    Raises:
        GridSizeError: If the value is not a positive odd integer or is too
            large for the fixed-width artifact index.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return DEFAULT_GRID_SIZE

    try:
        number = float(raw)
    except (TypeError, ValueError):
        number = float("nan")

    if not number.is_integer() or number <= 0:
        raise GridSizeError(
            "Grid size must be a positive integer, e.g. `facegrid 5`"
        )
    size = int(number)
    if size % 2 != 1:
        raise GridSizeError("Grid size must be an odd integer, e.g. `facegrid 5`")
    if size > MAX_GRID_SIZE:
        raise GridSizeError(
            f"Grid size must be at most {MAX_GRID_SIZE} "
            f"({size}x{size} cells do not fit a three-digit file index)"
        )
    return size


def _parse_yaml(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Malformed YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}"
        )
    return data


def load_config(
    path: str | Path | None = None, **overrides: Any
) -> GenerationSetup:
    """Load run settings from an optional YAML file.

    Keys mirror :class:`GenerationSetup` fields.  Keyword *overrides* whose
    value is not ``None`` take precedence over the file, which lets CLI
    options win over the config.

    Args:
        path: YAML file, or ``None`` for built-in defaults.
        **overrides: Field values that replace the file's.

    Returns:
        A validated :class:`GenerationSetup`.

    Raises:
        ConfigError: If the file is missing, malformed, or has invalid or
            unknown fields.
    """
    data: dict[str, Any] = {}
    if path is not None:
        resolved = Path(path)
        if not resolved.is_file():
            raise ConfigError(f"Config file not found: {resolved}")
        data = _parse_yaml(resolved)

    unknown = sorted(set(data) - set(GenerationSetup.model_fields))
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        setup = GenerationSetup(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    logger.debug(
        "Loaded setup: %dx%d grid, prefix=%s, concurrency=%d, attempts=%d",
        setup.grid_size,
        setup.grid_size,
        setup.photo_prefix,
        setup.concurrency,
        setup.max_attempts,
    )
    return setup
