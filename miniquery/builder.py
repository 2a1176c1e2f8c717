import logging
import re

from miniquery.exceptions import ArgumentError
from miniquery.orm_types import BoundParam
from miniquery.schema import TableSchema

logger = logging.getLogger("miniquery")

_JOIN_KEYWORD = re.compile(r"^\s*((natural|left|right|full|inner|outer|cross)\s+)*join\s", re.IGNORECASE)


class Fragment:
    """A piece of SQL text together with the values for its ``?`` tokens."""

    def __init__(self, sql, params=()):
        self.sql = sql
        self.params = [p if isinstance(p, BoundParam) else BoundParam.of(p) for p in params]

    def __repr__(self):
        return f"<Fragment {self.sql!r} params={[p.value for p in self.params]}>"


def _check_params(clause, expr, params):
    expected = expr.count("?")
    if expected != len(params):
        raise ArgumentError(
            f"The number of ? in the {clause} clause ({expected}) "
            f"doesn't match the number of parameters ({len(params)})"
        )


def _single_param(clause, expr, param):
    if "?" in expr and param is None:
        raise ArgumentError(f"When a ? is specified in the {clause} clause, a param must be set too")
    params = [] if param is None else [param]
    _check_params(clause, expr, params)
    return params


def _check_limit(name, value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ArgumentError(f"{name} must be a non-negative integer, got {value!r}")
    return value


class QueryBuilder:
    """Fluent SELECT builder bound to one table and one connection provider.

    Clause methods only record fragments; nothing is turned into SQL until
    ``to_sql()``, ``exec()`` or one of the write methods renders it, so the
    order of bound parameters always follows the order of ``?`` in the text.
    """

    def __init__(self, engine, table=None, primary="id", columns=None):
        self.schema = TableSchema.load(table, primary, columns)
        self.engine = engine

        self._select = None
        self._from = None
        self._joins = []
        self._where = []
        self._group_by = None
        self._having = None
        self._order_by = None
        self._start = None
        self._length = None

    @property
    def table(self):
        return self.schema.table

    @property
    def primary(self):
        return self.schema.primary

    @property
    def columns(self):
        return list(self.schema.columns)

    def __repr__(self):
        return f"<{self.__class__.__name__} table={self.table} sql={self.to_sql()!r}>"

    def select(self, columns=None):
        if isinstance(columns, str):
            raise ArgumentError(f"select expects a list of columns, got the string {columns!r}")
        self._select = ",".join(columns) if columns else "*"
        return self

    def from_(self, table=None):
        self._from = table or self.table
        return self

    def join(self, table, on, params=None):
        params = list(params or [])
        _check_params("join", on, params)
        if not _JOIN_KEYWORD.match(table):
            table = f"join {table}"
        self._joins.append(Fragment(f"{table} on {on}", params))
        return self

    def where(self, expr, param=None):
        self._where.append(("and", Fragment(expr, _single_param("where", expr, param))))
        return self

    def where_or(self, expr, param=None):
        self._where.append(("or", Fragment(expr, _single_param("where", expr, param))))
        return self

    def group_by(self, expr):
        self._group_by = expr
        return self

    def having(self, expr, param=None):
        self._having = Fragment(expr, _single_param("having", expr, param))
        return self

    def order_by(self, expr):
        self._order_by = expr
        return self

    def offset(self, start):
        self._start = _check_limit("offset", start)
        return self

    def take(self, length):
        self._length = _check_limit("take", length)
        return self

    def _where_clause(self):
        if not self._where:
            return []
        parts = []
        for i, (connective, fragment) in enumerate(self._where):
            if i:
                parts.append(connective)
            parts.append(fragment)
        return ["where", *parts]

    def _limit_clause(self):
        if self._start is None and self._length is None:
            return []
        if self._start is None:
            return [f"limit {self._length}"]
        length = -1 if self._length is None else self._length
        return [f"limit {self._start}, {length}"]

    @staticmethod
    def _assemble(parts, first_index=1):
        sql = []
        params = []
        for part in parts:
            if isinstance(part, Fragment):
                sql.append(part.sql)
                params.extend(part.params)
            else:
                sql.append(part)
        bindings = [p.named(f":{i}") for i, p in enumerate(params, start=first_index)]
        return " ".join(sql), bindings

    def _render(self):
        parts = ["select", self._select or "*", "from", self._from or self.table]
        parts.extend(self._joins)
        parts.extend(self._where_clause())
        if self._group_by:
            parts.extend(["group by", self._group_by])
        if self._having is not None:
            parts.extend(["having", self._having])
        if self._order_by:
            parts.extend(["order by", self._order_by])
        parts.extend(self._limit_clause())
        return self._assemble(parts)

    def to_sql(self):
        sql, _ = self._render()
        return sql

    def bindings(self):
        _, params = self._render()
        return params

    def _run(self, sql, params):
        logger.debug("Running %s with %d parameter(s)", sql, len(params))
        stmt = self.engine.connection().prepare(sql)
        for param in params:
            stmt.bind(param.name, param.value, param.kind)
        return stmt.execute()

    def exec(self):
        sql, params = self._render()
        return self._run(sql, params).fetch_all()

    def first(self):
        rows = self.take(1).exec()
        return rows[0] if rows else None

    def all(self):
        return self._run(f"select * from {self.table}", []).fetch_all()

    def find(self, id):
        sql = f"select {','.join(self.columns)} from {self.table} where {self.primary} = :primary limit 1"
        return self._run(sql, [BoundParam.of(id, ":primary")]).fetch_one()

    def _check_values(self, values):
        if not values:
            raise ArgumentError("At least one column value must be given")
        unknown = [name for name in values if name not in self.schema.columns]
        if unknown:
            raise ArgumentError(f"Unknown columns for {self.table}: {', '.join(unknown)}")

    def _bind_value(self, name, value):
        return BoundParam.of(value)

    def insert(self, values):
        self._check_values(values)
        names = list(values)
        placeholders = ", ".join("?" for _ in names)
        fragment = Fragment(
            f"insert into {self.table} ({', '.join(names)}) values ({placeholders})",
            [self._bind_value(name, values[name]) for name in names],
        )
        sql, params = self._assemble([fragment])
        return self._run(sql, params).lastrowid

    def update(self, values):
        self._check_values(values)
        names = list(values)
        assignments = Fragment(
            ", ".join(f"{name} = ?" for name in names),
            [self._bind_value(name, values[name]) for name in names],
        )
        sql, params = self._assemble(["update", self.table, "set", assignments, *self._where_clause()])
        return self._run(sql, params).rowcount
