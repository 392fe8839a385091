"""Tests for translating where clauses into SQL over the objects table."""
import pytest
from sqlalchemy.dialects import postgresql

from roleauth.crud.object_record import ObjectRecordRepository, build_query, to_record
from roleauth.models.object_record import ObjectRecord

from tests.role_helpers import pointer


def _compile(class_name, where, limit=None):
    compiled = build_query(class_name, where, limit).compile(dialect=postgresql.dialect())
    return str(compiled), list(compiled.params.values())


def test_class_name_is_always_filtered() -> None:
    sql, params = _compile("_Role", {})

    assert "objects.class_name = " in sql
    assert params == ["_Role"]


def test_object_id_equality_uses_key_column() -> None:
    sql, params = _compile("Post", {"objectId": "p1"}, limit=1)

    assert "objects.object_id = " in sql
    assert "LIMIT" in sql
    assert "p1" in params


def test_object_id_in_list() -> None:
    sql, params = _compile("Post", {"objectId": {"$in": ["p1", "p2"]}})

    assert "objects.object_id IN" in sql


def test_pointer_matches_field_or_array_element() -> None:
    sql, params = _compile("_Role", {"users": pointer("_User", "u1")})

    assert sql.count("objects.data @>") == 2
    identity = {"className": "_User", "objectId": "u1"}
    assert {"users": identity} in params
    assert {"users": [identity]} in params


def test_in_over_pointers_ors_every_value() -> None:
    where = {"roles": {"$in": [pointer("_Role", "r1"), pointer("_Role", "r2")]}}

    sql, params = _compile("_Role", where)

    assert sql.count("objects.data @>") == 4
    assert {"roles": [{"className": "_Role", "objectId": "r2"}]} in params


def test_scalar_equality() -> None:
    sql, params = _compile("UBUserRoleDefinition", {"name": "general"})

    assert {"name": "general"} in params
    assert {"name": ["general"]} in params


def test_empty_in_matches_nothing() -> None:
    sql, _ = _compile("_Role", {"roles": {"$in": []}})

    assert "false" in sql.lower()


def test_unknown_operator_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unsupported operator"):
        build_query("_Role", {"name": {"$regex": "adm"}})


def test_in_requires_list() -> None:
    with pytest.raises(ValueError, match="requires a list"):
        build_query("_Role", {"name": {"$in": "admins"}})


def test_to_record_exposes_object_id() -> None:
    row = ObjectRecord(class_name="_Role", object_id="r1", data={"name": "admins"})

    assert to_record(row) == {"name": "admins", "objectId": "r1"}


class _FakeResult:
    def __init__(self, rows):
        self._rows = rows

    def scalars(self):
        return self

    def all(self):
        return self._rows


class _FakeSession:
    def __init__(self, rows):
        self.rows = rows
        self.statements = []

    async def execute(self, statement):
        self.statements.append(statement)
        return _FakeResult(self.rows)


@pytest.mark.anyio
async def test_repository_executes_built_query() -> None:
    session = _FakeSession([ObjectRecord(class_name="Post", object_id="p1", data={"title": "x"})])
    repo = ObjectRecordRepository(session)

    records = await repo.execute("Post", {"objectId": "p1"}, limit=1)

    assert records == [{"title": "x", "objectId": "p1"}]
    assert len(session.statements) == 1
