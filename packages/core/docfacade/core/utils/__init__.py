"""
Utility functions and classes for the docfacade core package.
"""

from docfacade.core.utils.async_runner import AsyncRunner
from docfacade.core.utils.checks import first_not_none, ifnone

__all__ = ["AsyncRunner", "first_not_none", "ifnone"]
