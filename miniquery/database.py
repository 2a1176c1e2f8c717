import sqlite3
import logging

from miniquery.config import get_settings
from miniquery.exceptions import ArgumentError
from miniquery.orm_types import infer_kind


class PreparedStatement:
    """A statement waiting for its parameters.

    Names made of digits (``:1``, ``:2``...) bind to the ``?`` tokens in order,
    any other name binds to the matching ``:name`` in the SQL text.
    """

    def __init__(self, connection, sql):
        self.connection = connection
        self.sql = sql
        self._positional = {}
        self._named = {}
        self._cursor = None

    def bind(self, name, value, kind):
        try:
            value = kind.coerce(value)
        except (TypeError, ValueError) as exc:
            raise ArgumentError(f"Cannot bind {value!r} to {name} as {kind.name}") from exc

        key = name.lstrip(":")
        if key.isdigit():
            self._positional[int(key)] = value
        else:
            self._named[key] = value

    def _params(self):
        if self._positional and self._named:
            raise ArgumentError("Positional and named parameters cannot be mixed in one statement")
        if self._named:
            return dict(self._named)
        indexes = sorted(self._positional)
        if indexes != list(range(1, len(indexes) + 1)):
            raise ArgumentError(f"Positional parameters must be numbered from 1 without gaps: {indexes}")
        return tuple(self._positional[i] for i in indexes)

    def execute(self):
        params = self._params()
        self.connection.engine._log(self.sql, params)
        cursor = self.connection.raw.cursor()
        cursor.execute(self.sql, params)
        self._cursor = cursor
        return self

    def fetch_all(self):
        return [dict(row) for row in self._cursor.fetchall()]

    def fetch_one(self):
        row = self._cursor.fetchone()
        return dict(row) if row is not None else None

    @property
    def rowcount(self):
        return self._cursor.rowcount

    @property
    def lastrowid(self):
        return self._cursor.lastrowid


class Connection:
    def __init__(self, raw, engine):
        self.raw = raw
        self.engine = engine

    def prepare(self, sql):
        return PreparedStatement(self, sql)


class DatabaseEngine:
    logger = logging.getLogger("miniquery")
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO)

    def __init__(self, db_path=None, settings=None):
        self.settings = settings or get_settings()
        self.db_path = db_path or self.settings.db_path
        self.logger.setLevel(self.settings.log_level)
        self._connection = None

    def connection(self):
        if self._connection is None:
            raw = sqlite3.connect(self.db_path)
            raw.row_factory = sqlite3.Row
            self._connection = Connection(raw, self)
        return self._connection

    def _log(self, sql, params=None):
        msg = f"[SQL EXECUTE]: {sql}"
        if params:
            msg += f" | [PARAMS]: {params}"
        self.logger.info(msg)

    def execute(self, sql, params=None):
        stmt = self.connection().prepare(sql)
        for i, value in enumerate(params or (), start=1):
            stmt.bind(f":{i}", value, infer_kind(value))
        return stmt.execute().fetch_all()

    def commit(self):
        if self._connection is not None:
            self._connection.raw.commit()

    def rollback(self):
        if self._connection is not None:
            self._connection.raw.rollback()

    def close(self):
        if self._connection is not None:
            self._connection.raw.close()
            self._connection = None
