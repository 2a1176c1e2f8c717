# miniquery - a fluent query builder with active-record style reads
from miniquery.base import Model
from miniquery.builder import QueryBuilder
from miniquery.config import Settings
from miniquery.database import DatabaseEngine
from miniquery.exceptions import ArgumentError, ConfigurationError
from miniquery.orm_types import BoundParam, ParamKind, Text, Number, Real, Boolean

__version__ = "0.1.0"
__all__ = [
    "Model", "QueryBuilder", "Settings", "DatabaseEngine", "ArgumentError", "ConfigurationError",
    "BoundParam", "ParamKind", "Text", "Number", "Real", "Boolean",
]
