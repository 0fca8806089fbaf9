from docfacade.core.utils import AsyncRunner, first_not_none, ifnone
from docfacade.core.config import Config, CoreConfig
from docfacade.core.logging.logger import get_logger, setup_logger

setup_logger()  # Initialize the default logger

from docfacade.core.base import FacadeABC, FacadeBase, FacadeMeta  # noqa: E402

__all__ = [
    "AsyncRunner",
    "Config",
    "CoreConfig",
    "FacadeABC",
    "FacadeBase",
    "FacadeMeta",
    "first_not_none",
    "get_logger",
    "ifnone",
]
