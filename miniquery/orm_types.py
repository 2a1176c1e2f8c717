from enum import Enum, auto
from typing import Any, NamedTuple


class ParamKind(Enum):
    INTEGER = auto()
    BOOLEAN = auto()
    TEXT = auto()
    NULL = auto()

    def coerce(self, value):
        if self is ParamKind.NULL:
            return None
        if self is ParamKind.BOOLEAN:
            return int(bool(value))
        if self is ParamKind.INTEGER:
            return int(value)
        return str(value)


def infer_kind(value):
    # bool is a subclass of int, check it first
    if value is None:
        return ParamKind.NULL
    if isinstance(value, bool):
        return ParamKind.BOOLEAN
    if isinstance(value, int):
        return ParamKind.INTEGER
    # floats travel as text
    return ParamKind.TEXT


class BoundParam(NamedTuple):
    name: str
    value: Any
    kind: ParamKind

    @classmethod
    def of(cls, value, name=""):
        return cls(name, value, infer_kind(value))

    def named(self, name):
        return self._replace(name=name)


class Column:
    def __init__(self, dtype, pk=False):
        self.dtype = dtype
        self.pk = pk

    @property
    def kind(self):
        if self.dtype is bool:
            return ParamKind.BOOLEAN
        if self.dtype is int:
            return ParamKind.INTEGER
        return ParamKind.TEXT

    def __repr__(self):
        flags = " pk" if self.pk else ""
        return f"<Column {self.dtype.__name__}{flags}>"


class Text(Column):
    def __init__(self, pk=False):
        super().__init__(str, pk)


class Number(Column):
    def __init__(self, pk=False):
        super().__init__(int, pk)


class Real(Column):
    def __init__(self, pk=False):
        super().__init__(float, pk)


class Boolean(Column):
    def __init__(self, pk=False):
        super().__init__(bool, pk)
