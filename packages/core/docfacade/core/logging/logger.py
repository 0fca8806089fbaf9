import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import structlog

from docfacade.core.config import CoreSettings
from docfacade.core.utils import ifnone

ROOT_LOGGER_NAME = "docfacade"
STRUCTLOG_KEY_ORDER = ["timestamp", "event", "duration_ms", "level", "logger"]


def default_formatter(fmt: Optional[str] = None) -> logging.Formatter:
    """``[time] LEVEL: logger.name: message`` unless ``fmt`` is given."""
    return logging.Formatter(fmt or "[%(asctime)s] %(levelname)s: %(name)s: %(message)s")


def _log_file_path(name: str, log_dir: Optional[Path], use_structlog: bool) -> Path:
    """The root logger writes ``<dir>/docfacade.log``; every other logger writes ``<dir>/modules/<name>.log``."""
    if log_dir is None:
        paths = CoreSettings().DOCFACADE_DIR_PATHS
        log_dir = paths.STRUCT_LOGGER_DIR if use_structlog else paths.LOGGER_DIR
    relative = Path(f"{name}.log") if name == ROOT_LOGGER_NAME else Path("modules") / f"{name}.log"
    return Path(log_dir) / relative


def _ordered_keys(key_order: list[str]):
    """structlog processor emitting ``key_order`` first and the remaining keys alphabetically."""

    def processor(_logger, _method_name, event_dict):
        head = {key: event_dict.pop(key) for key in key_order if key in event_dict}
        return {**head, **dict(sorted(event_dict.items()))}

    return processor


def _configure_structlog(json: bool) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _ordered_keys(STRUCTLOG_KEY_ORDER),
            structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    *,
    log_dir: Optional[Path] = None,
    logger_level: int = logging.DEBUG,
    stream_level: int = logging.ERROR,
    add_stream_handler: bool = True,
    file_level: int = logging.DEBUG,
    file_mode: str = "a",
    add_file_handler: bool = True,
    propagate: bool = False,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    use_structlog: Optional[bool] = None,
    structlog_json: bool = True,
    structlog_bind: Optional[object] = None,
) -> logging.Logger | structlog.stdlib.BoundLogger:
    """(Re)configure the stdlib logger ``name`` and return it.

    Existing handlers on the logger are replaced. Files rotate after ``max_bytes`` keeping ``backup_count`` old
    copies; they go under ``DOCFACADE_DIR_PATHS.LOGGER_DIR`` (or ``STRUCT_LOGGER_DIR`` for structlog) unless
    ``log_dir`` is given.

    Args:
        name: Logger name.
        log_dir: Directory overriding the configured log directory.
        logger_level: Level of the logger itself.
        stream_level: Level of the console handler.
        add_stream_handler: Attach a console handler.
        file_level: Level of the rotating file handler.
        file_mode: Open mode of the log file.
        add_file_handler: Attach a rotating file handler.
        propagate: Let records reach ancestor loggers.
        max_bytes: Rotation size.
        backup_count: Rotated files to keep.
        use_structlog: Return a structlog ``BoundLogger`` instead. Defaults to ``DOCFACADE_LOGGER.USE_STRUCTLOG``.
        structlog_json: Render structlog events as JSON rather than for the console.
        structlog_bind: Fields bound to the structlog logger, as a mapping or a ``callable(name) -> mapping``.
    """
    use_structlog = ifnone(use_structlog, CoreSettings().DOCFACADE_LOGGER.USE_STRUCTLOG)

    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.setLevel(logger_level)
    logger.propagate = propagate

    # structlog renders the whole line itself
    formatter = logging.Formatter("%(message)s") if use_structlog else default_formatter()
    handlers: list[logging.Handler] = []
    if add_stream_handler:
        handler = logging.StreamHandler()
        handler.setLevel(stream_level)
        handlers.append(handler)
    if add_file_handler:
        path = _log_file_path(name, log_dir, use_structlog)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(path, mode=file_mode, maxBytes=max_bytes, backupCount=backup_count)
        handler.setLevel(file_level)
        handlers.append(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if not use_structlog:
        return logger

    _configure_structlog(structlog_json)
    bound = structlog.get_logger(name)
    if structlog_bind is not None:
        fields = structlog_bind(name) if callable(structlog_bind) else dict(structlog_bind)
        if fields:
            bound = bound.bind(**fields)
    return bound


def get_logger(
    name: str | None = ROOT_LOGGER_NAME, use_structlog: bool | None = None, **kwargs
) -> logging.Logger | structlog.stdlib.BoundLogger:
    """
    Logger inside the ``docfacade`` hierarchy.

    ``name`` is prefixed with ``docfacade.`` unless it already starts with it, and an empty name means the root
    ``docfacade`` logger. Loggers propagate by default and then get no console handler of their own, since the root
    logger already has one. Remaining ``kwargs`` go to ``setup_logger``.

    Example:
        .. code-block:: python

            from docfacade.core.logging.logger import get_logger

            logger = get_logger("database.client")
            logger.info("Connected.")
    """
    name = name or ROOT_LOGGER_NAME
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    kwargs.setdefault("propagate", True)
    kwargs.setdefault("add_stream_handler", not kwargs["propagate"])
    return setup_logger(name, use_structlog=use_structlog, **kwargs)
