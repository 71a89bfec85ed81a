"""Configurações globais do evoport.

Os valores são resolvidos em camadas, da menor para a maior precedência:

1. defaults declarados em ``_FIELDS``;
2. arquivo ``.env`` (o do ``project_root`` ou um ``env_file`` explícito);
3. variáveis de ambiente ``EVOPORT_*``;
4. ``overrides`` passados a :meth:`Settings.from_env`.

Caminhos relativos são sempre ancorados no ``project_root``. O resultado é
um objeto imutável, cacheado por :func:`get_settings`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

__all__ = [
    "ENV_PREFIX",
    "Settings",
    "get_settings",
    "load_env_file",
    "reset_settings_cache",
]

ENV_PREFIX = "EVOPORT_"
"""Prefixo de todas as variáveis de ambiente do projeto."""


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Cannot interpret '{raw}' as boolean")


# campo -> (chave sem prefixo, default, conversor); paths são tratados à parte
_FIELDS: dict[str, tuple[str, Any, Callable[[Any], Any] | None]] = {
    "data_dir": ("DATA_DIR", "data", None),
    "reports_dir": ("REPORTS_DIR", "reports", None),
    "configs_dir": ("CONFIGS_DIR", "configs", None),
    "logs_dir": ("LOGS_DIR", "logs", None),
    "environment": ("ENVIRONMENT", "development", str),
    "random_seed": ("RANDOM_SEED", 42, int),
    "structured_logging": ("STRUCTURED_LOGGING", True, _to_bool),
}


def load_env_file(path: Path) -> dict[str, str]:
    """Read ``KEY=VALUE`` pairs from a ``.env`` file.

    Comments, blank lines and lines without ``=`` are skipped; a missing file
    yields an empty mapping.
    """

    path = Path(path)
    if not path.exists():
        return {}
    entries: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        entries[key.strip()] = value.strip()
    return entries


def _default_project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _anchor(value: Any, root: Path) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else root / path


@dataclass(slots=True, frozen=True)
class Settings:
    """Caminhos e *flags* de execução compartilhados pelos pipelines."""

    project_root: Path
    data_dir: Path
    reports_dir: Path
    configs_dir: Path
    logs_dir: Path
    environment: str
    random_seed: int
    structured_logging: bool

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"project_root": str(self.project_root)}
        for name in _FIELDS:
            value = getattr(self, name)
            payload[name] = str(value) if isinstance(value, Path) else value
        return payload

    @classmethod
    def from_env(
        cls,
        *,
        overrides: Mapping[str, Any] | None = None,
        env_file: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "Settings":
        """Build settings from defaults, ``.env``, environment and ``overrides``.

        ``overrides`` use the unprefixed variable names (``"RANDOM_SEED"``)
        plus ``"project_root"``; unknown keys raise ``KeyError``. Passing
        ``environ`` replaces ``os.environ`` (handy for isolated tests).
        """

        pending = dict(overrides or {})
        environ = dict(os.environ if environ is None else environ)
        file_values = load_env_file(Path(env_file).expanduser()) if env_file is not None else {}

        root_key = f"{ENV_PREFIX}PROJECT_ROOT"
        root_value = pending.pop("project_root", None)
        if root_value is None:
            root_value = environ.get(root_key, file_values.get(root_key))
        root = (
            _default_project_root()
            if root_value is None
            else Path(str(root_value)).expanduser().resolve()
        )
        if env_file is None:
            file_values = load_env_file(root / ".env")

        layered = {**file_values, **environ}
        values: dict[str, Any] = {}
        for name, (key, default, convert) in _FIELDS.items():
            if key in pending:
                raw = pending.pop(key)
            else:
                raw = layered.get(f"{ENV_PREFIX}{key}", default)
            values[name] = _anchor(raw, root) if convert is None else convert(raw)

        if pending:
            raise KeyError(f"Unknown override(s): {', '.join(sorted(pending))}")
        return cls(project_root=root, **values)


_CACHE: Settings | None = None


def get_settings(**kwargs: Any) -> Settings:
    """Cached :class:`Settings`; keyword arguments bypass the cache."""

    global _CACHE
    if kwargs:
        return Settings.from_env(**kwargs)
    if _CACHE is None:
        _CACHE = Settings.from_env()
    return _CACHE


def reset_settings_cache() -> None:
    global _CACHE
    _CACHE = None
