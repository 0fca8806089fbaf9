"""Base classes giving docfacade components a logger and a config."""

import inspect
import logging
import time
import traceback
from abc import ABC, ABCMeta
from functools import wraps
from typing import Callable, Optional

from docfacade.core.config import CoreConfig, SettingsLike
from docfacade.core.logging.logger import get_logger
from docfacade.core.utils import ifnone

LOGGER_PARAM_NAMES = {
    "log_dir",
    "logger_level",
    "stream_level",
    "file_level",
    "file_mode",
    "propagate",
    "max_bytes",
    "backup_count",
    "use_structlog",
    "structlog_json",
    "structlog_bind",
}


def _calling(function, args, kwargs) -> str:
    return f"Calling {function.__name__} with args: {args} and kwargs: {kwargs}"


def _finished(function, result) -> str:
    return f"Finished {function.__name__} with result: {result}"


def _failed(function, error, stack_trace) -> str:
    return f"{function.__name__} failed with the following error: {error}\n{stack_trace}"


class FacadeMeta(type):
    """Metaclass exposing ``logger``, ``config`` and ``unique_name`` on the class itself.

    Class methods and instance methods then log through the same ``docfacade.<module>.<Class>`` logger::

        class ConnectionManager(FacadeBase):
            @classmethod
            def default(cls):
                cls.logger.debug("Building the default manager.")
                return cls()
    """

    def __init__(cls, name, bases, attr_dict):
        super().__init__(name, bases, attr_dict)
        cls._logger = None
        cls._config = None

    @property
    def unique_name(cls) -> str:
        return f"{cls.__module__}.{cls.__name__}"

    @property
    def logger(cls):
        if cls._logger is None:
            cls._logger = get_logger(cls.unique_name)
        return cls._logger

    @logger.setter
    def logger(cls, value):
        cls._logger = value

    @property
    def config(cls):
        if cls._config is None:
            cls._config = CoreConfig()
        return cls._config

    @config.setter
    def config(cls, value):
        cls._config = value


class FacadeBase(metaclass=FacadeMeta):
    """Base class for docfacade components.

    Args:
        config_overrides: Settings merged over the class config for this instance only. Secrets stay masked.
        **kwargs: Logger options (``log_dir``, ``logger_level``, ``use_structlog``, ...) give the instance its own
            configured logger; anything else is passed up the MRO.
    """

    def __init__(self, *, config_overrides: SettingsLike | None = None, **kwargs):
        logger_kwargs = {k: kwargs.pop(k) for k in list(kwargs) if k in LOGGER_PARAM_NAMES}
        super().__init__(**kwargs)

        cls_config = type(self).config
        self.config = cls_config if config_overrides is None else cls_config.clone_with_overrides(config_overrides)
        self.logger = get_logger(self.unique_name, **logger_kwargs) if logger_kwargs else type(self).logger

    @property
    def unique_name(self) -> str:
        return type(self).unique_name

    @classmethod
    def autolog(
        cls,
        log_level=logging.DEBUG,
        prefix_formatter: Optional[Callable] = None,
        suffix_formatter: Optional[Callable] = None,
        exception_formatter: Optional[Callable] = None,
        include_duration: bool = True,
    ):
        """Log entry, exit and failure of a sync or async method through ``self.logger``.

        Entry and exit are logged at ``log_level``, failures at ERROR before the exception is re-raised. With
        ``include_duration`` the exit and failure lines end in ``| duration_ms=<elapsed>``.

        Args:
            log_level: Level for the entry and exit lines.
            prefix_formatter: ``(function, args, kwargs) -> str`` for the entry line.
            suffix_formatter: ``(function, result) -> str`` for the exit line.
            exception_formatter: ``(function, error, stack_trace) -> str`` for the failure line.
            include_duration: Append the elapsed time.

        Example::

            class Client(FacadeBase):
                @FacadeBase.autolog()
                async def delete_one(self, query):
                    ...

        .. code-block:: text

            docfacade.database.client.Client: Calling delete_one with args: (Query(...),) and kwargs: {}
            docfacade.database.client.Client: Finished delete_one with result: DeleteResult(...) | duration_ms=1.20
        """
        on_call = ifnone(prefix_formatter, _calling)
        on_return = ifnone(suffix_formatter, _finished)
        on_error = ifnone(exception_formatter, _failed)

        def timed(message: str, started_at: float) -> str:
            if include_duration:
                return f"{message} | duration_ms={(time.perf_counter() - started_at) * 1000.0:.2f}"
            return message

        def decorator(function):
            if inspect.iscoroutinefunction(function):

                @wraps(function)
                async def wrapper(self, *args, **kwargs):
                    started_at = time.perf_counter()
                    self.logger.log(log_level, on_call(function, args, kwargs))
                    try:
                        result = await function(self, *args, **kwargs)
                    except Exception as e:
                        self.logger.error(timed(on_error(function, e, traceback.format_exc()), started_at))
                        raise
                    self.logger.log(log_level, timed(on_return(function, result), started_at))
                    return result

            else:

                @wraps(function)
                def wrapper(self, *args, **kwargs):
                    started_at = time.perf_counter()
                    self.logger.log(log_level, on_call(function, args, kwargs))
                    try:
                        result = function(self, *args, **kwargs)
                    except Exception as e:
                        self.logger.error(timed(on_error(function, e, traceback.format_exc()), started_at))
                        raise
                    self.logger.log(log_level, timed(on_return(function, result), started_at))
                    return result

            return wrapper

        return decorator


class FacadeABCMeta(FacadeMeta, ABCMeta):
    """Combined metaclass so a class can derive from both ``FacadeBase`` and ``ABC``."""


class FacadeABC(FacadeBase, ABC, metaclass=FacadeABCMeta):
    """``FacadeBase`` with abstract method support, used for the store handle interface."""
