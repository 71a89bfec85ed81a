"""Logging do evoport: saída JSON estruturada ou texto simples.

Os módulos usam apenas ``logging.getLogger(__name__)``; quem executa (CLI,
notebooks, testes) chama :func:`configure_logging` uma única vez. Campos
passados via ``extra=`` (geração, diversidade, seed...) viram chaves do JSON.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Mapping

from .settings import Settings, get_settings

__all__ = ["JSONFormatter", "configure_logging"]

# Atributos padrão de um LogRecord; tudo fora daqui veio de ``extra``.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_LOG_FILENAME = "evoport.log"
_QUIET_LOGGERS = ("yfinance", "matplotlib", "urllib3", "peewee")


class JSONFormatter(logging.Formatter):
    """Serialises each record as one JSON object per line."""

    def __init__(self, *, default_context: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._default_context = dict(default_context or {})

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self._default_context,
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _STANDARD_ATTRS
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _attach(root: logging.Logger, handler: logging.Handler, level: int | str, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def configure_logging(
    *,
    settings: Settings | None = None,
    level: int | str = logging.INFO,
    structured: bool | None = None,
    module_levels: Mapping[str, int | str] | None = None,
    stream: IO[str] | None = None,
    context: Mapping[str, Any] | None = None,
    log_file: Path | None = None,
) -> None:
    """(Re)configure the root logger.

    Parameters
    ----------
    settings:
        Fonte de ``structured_logging`` e ``logs_dir``; padrão
        :func:`get_settings`.
    level:
        Nível dos handlers (o root fica em ``DEBUG``).
    structured:
        JSON (``True``) ou texto (``False``); ``None`` segue as settings.
    module_levels:
        Ajuste fino ``logger -> level``.
    stream:
        Destino do handler de console (``sys.stderr`` por padrão).
    context:
        Campos fixos incluídos em todo registro JSON (ex.: ``{"command": "optimize"}``).
    log_file:
        Cópia em arquivo; padrão ``settings.logs_dir / 'evoport.log'``.
    """

    settings = settings or get_settings()
    if structured is None:
        structured = settings.structured_logging
    formatter: logging.Formatter = (
        JSONFormatter(default_context=context)
        if structured
        else logging.Formatter(_PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    )

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.DEBUG)
    _attach(root, logging.StreamHandler(stream), level, formatter)

    target = Path(log_file) if log_file is not None else settings.logs_dir / _LOG_FILENAME
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(target, encoding="utf-8")
    except OSError as exc:  # pragma: no cover - read-only filesystems
        root.warning("File logging disabled (%s): %s", target, exc)
    else:
        _attach(root, file_handler, level, formatter)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name, module_level in (module_levels or {}).items():
        logging.getLogger(name).setLevel(module_level)
