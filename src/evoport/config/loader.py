"""YAML configuration files validated by pydantic schemas.

Example
-------
>>> from evoport.config.loader import load_config
>>> from evoport.config.schemas import RunConfig
>>>
>>> config = load_config("configs/ga_example.yaml", RunConfig)
>>> config.ga.population_size
50

Every failure (missing file, YAML syntax, schema violation) surfaces as
:class:`ConfigError` so callers handle a single exception type.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

__all__ = ["load_config", "load_config_mapping", "save_config", "ConfigError"]

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

PathLike = Union[str, Path]


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""


def _default_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _locate(file_path: PathLike, project_root: Optional[Path]) -> Path:
    """Absolute paths are taken as-is; relative ones are tried against
    ``project_root`` first and then the working directory."""

    path = Path(file_path)
    candidates = [path] if path.is_absolute() else [(project_root or _default_root()) / path, path]
    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
    raise ConfigError(f"Configuration file not found: {file_path}")


def load_config_mapping(data: object, schema: Type[T], *, source: str = "<mapping>") -> T:
    """Validate an already parsed mapping against ``schema``."""

    if data is None:
        raise ConfigError(f"Empty configuration: {source}")
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed for {source}:\n{e}") from e


def load_config(
    file_path: PathLike,
    schema: Type[T],
    *,
    project_root: Optional[Path] = None,
) -> T:
    """Read ``file_path`` with ``yaml.safe_load`` and validate it as ``schema``.

    Raises
    ------
    ConfigError
        If the file is missing, is not valid YAML or fails validation.
    """

    path = _locate(file_path, project_root)
    logger.debug("Loading config from: %s", path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {file_path}: {e}") from e

    config = load_config_mapping(data, schema, source=str(file_path))
    logger.info("Loaded %s from %s", schema.__name__, path.name)
    return config


def save_config(
    config: BaseModel, file_path: PathLike, *, project_root: Optional[Path] = None
) -> Path:
    """Write ``config`` as YAML (``None`` fields omitted) and return the path."""

    path = Path(file_path)
    if not path.is_absolute():
        path = (project_root or _default_root()) / path
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = config.model_dump(mode="python", exclude_none=True)
    path.write_text(
        yaml.safe_dump(payload, default_flow_style=False, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )
    logger.info("Saved %s to %s", type(config).__name__, path)
    return path
