import logging
import sqlite3

import pytest

from miniquery.base import Model
from miniquery.config import Settings
from miniquery.database import DatabaseEngine
from miniquery.exceptions import ArgumentError, ConfigurationError
from miniquery.orm_types import Boolean, Number, ParamKind, Real, Text


class User(Model):
    id = Number(pk=True)
    email = Text()
    age = Number()

    class Meta:
        table_name = "users"


class Account(User):
    active = Boolean()
    score = Real()


class Tag(Model):
    class Meta:
        table_name = "tags"
        primary = "slug"
        columns = ["slug", "label"]


@pytest.fixture
def engine():
    engine = DatabaseEngine(":memory:", settings=Settings())
    engine.execute(
        "CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT, age INTEGER, active INTEGER, score REAL)"
    )
    engine.execute("CREATE TABLE posts (id INTEGER PRIMARY KEY, user_id INTEGER, title TEXT)")
    rows = [
        ("ann@example.com", 34, True, 4.5),
        ("bob@example.com", 17, False, 1.0),
        ("cid@example.com", 52, True, 2.5),
    ]
    for row in rows:
        engine.execute("INSERT INTO users (email, age, active, score) VALUES (?, ?, ?, ?)", row)
    engine.execute("INSERT INTO posts (user_id, title) VALUES (?, ?)", (1, "hello"))
    engine.execute("INSERT INTO posts (user_id, title) VALUES (?, ?)", (1, "again"))
    engine.execute("INSERT INTO posts (user_id, title) VALUES (?, ?)", (3, "first"))
    yield engine
    engine.close()


def test_model_configuration():
    user = User(None)
    assert user.table == "users"
    assert user.primary == "id"
    assert user.columns == ["id", "email", "age"]

    account = Account(None)
    assert account.table == "users"
    assert account.columns == ["id", "email", "age", "active", "score"]

    tag = Tag(None)
    assert tag.primary == "slug"
    assert tag.columns == ["slug", "label"]


def test_model_without_table_or_columns():
    class NoTable(Model):
        id = Number(pk=True)

    class NoColumns(Model):
        class Meta:
            table_name = "nothing"

    with pytest.raises(ConfigurationError):
        NoTable(None)
    with pytest.raises(ConfigurationError):
        NoColumns(None)
    with pytest.raises(ConfigurationError):
        Model(None)


def test_column_cannot_shadow_query_method():
    with pytest.raises(ConfigurationError):
        class Page(Model):
            offset = Number()

            class Meta:
                table_name = "pages"


def test_find(engine):
    assert User(engine).find(2) == {"id": 2, "email": "bob@example.com", "age": 17}
    assert User(engine).find(99) is None


def test_all_ignores_chained_clauses(engine):
    rows = User(engine).where("age > ?", 100).take(1).all()

    assert len(rows) == 3
    assert rows[0]["email"] == "ann@example.com"


def test_exec(engine):
    rows = User.query(engine).select(["email"]).from_().where("age > ?", 18).order_by("email").exec()

    assert rows == [{"email": "ann@example.com"}, {"email": "cid@example.com"}]


def test_exec_with_join_and_grouping(engine):
    rows = (
        User(engine)
        .select(["users.email as email", "count(posts.id) as post_count"])
        .join("posts", "posts.user_id = users.id and posts.title != ?", ["ignored"])
        .group_by("users.email")
        .having("count(posts.id) >= ?", 1)
        .order_by("post_count desc")
        .exec()
    )

    assert rows == [
        {"email": "ann@example.com", "post_count": 2},
        {"email": "cid@example.com", "post_count": 1},
    ]


def test_exec_where_or_and_limits(engine):
    rows = User(engine).select(["id"]).where("age < ?", 18).where_or("age > ?", 50).order_by("id").exec()
    assert [row["id"] for row in rows] == [2, 3]

    rows = User(engine).select(["id"]).order_by("id").offset(1).take(1).exec()
    assert rows == [{"id": 2}]

    rows = User(engine).select(["id"]).order_by("id").offset(1).exec()
    assert rows == [{"id": 2}, {"id": 3}]


def test_boolean_and_float_params(engine):
    rows = Account(engine).select(["id"]).where("active = ?", True).order_by("id").exec()
    assert [row["id"] for row in rows] == [1, 3]

    rows = Account(engine).select(["id"]).where("score > ?", 2.0).order_by("id").exec()
    assert [row["id"] for row in rows] == [1, 3]


def test_first(engine):
    assert User(engine).select(["id"]).order_by("age desc").first() == {"id": 3}
    assert User(engine).where("age > ?", 100).first() is None


def test_database_errors_propagate(engine):
    with pytest.raises(sqlite3.OperationalError):
        User(engine).where("missing = ?", 1).exec()
    with pytest.raises(sqlite3.OperationalError):
        User(engine).from_("nowhere").exec()


def test_insert_and_update(engine):
    new_id = User(engine).insert({"email": "dee@example.com", "age": 29})
    assert User(engine).find(new_id) == {"id": new_id, "email": "dee@example.com", "age": 29}

    changed = User(engine).where("age < ?", 30).update({"age": 30})
    assert changed == 2
    assert [row["age"] for row in User(engine).select(["age"]).order_by("id").exec()] == [34, 30, 52, 30]


def test_insert_rejects_unknown_columns(engine):
    with pytest.raises(ArgumentError):
        User(engine).insert({"nickname": "x"})
    with pytest.raises(ArgumentError):
        User(engine).update({})


class CountingEngine:
    def __init__(self, engine):
        self.engine = engine
        self.calls = 0

    def connection(self):
        self.calls += 1
        return self.engine.connection()


@pytest.mark.parametrize("run", [
    lambda user: user.where("age > ?", 18).exec(),
    lambda user: user.all(),
    lambda user: user.find(1),
    lambda user: user.first(),
    lambda user: user.insert({"email": "eve@example.com"}),
    lambda user: user.where("id = ?", 1).update({"age": 35}),
])
def test_one_connection_per_statement(engine, run):
    provider = CountingEngine(engine)
    run(User(provider))

    assert provider.calls == 1


def test_find_statement(engine, caplog):
    with caplog.at_level(logging.INFO, logger="miniquery"):
        User(engine).find(5)

    assert "[SQL EXECUTE]: select id,email,age from users where id = :primary limit 1" in caplog.text
    assert "[PARAMS]: {'primary': 5}" in caplog.text


def test_declared_column_types_decide_bind_kind(engine):
    new_id = Account(engine).insert({"email": "eve@example.com", "age": "41", "active": "yes", "score": 3.5})
    row = Account(engine).find(new_id)

    assert row["age"] == 41
    assert row["active"] == 1
    assert row["score"] == 3.5

    with pytest.raises(ArgumentError):
        Account(engine).insert({"age": "old"})


def test_column_kinds():
    assert Number().kind is ParamKind.INTEGER
    assert Boolean().kind is ParamKind.BOOLEAN
    assert Real().kind is ParamKind.TEXT
    assert Text(pk=True).kind is ParamKind.TEXT
