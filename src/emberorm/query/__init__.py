"""
Query selectors and SQL compilation.
"""

from .compiler import SQLCompiler
from .query import Collection, Query

__all__ = ["Collection", "Query", "SQLCompiler"]
