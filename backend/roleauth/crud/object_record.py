from typing import Any, Mapping

from sqlalchemy import ColumnElement, Select, false, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.pointers import Pointer
from ..models.object_record import ObjectRecord

OBJECT_ID_KEY = "objectId"
IN_OPERATOR = "$in"


def _in_values(key: str, condition: Mapping[str, Any]) -> list[Any]:
    unknown = [op for op in condition if op != IN_OPERATOR]
    if unknown:
        raise ValueError(f"Unsupported operator(s) {sorted(unknown)} on field '{key}'")
    values = condition[IN_OPERATOR]
    if not isinstance(values, (list, tuple)):
        raise ValueError(f"'$in' on field '{key}' requires a list")
    return list(values)


def _is_operator(value: Any) -> bool:
    return isinstance(value, Mapping) and any(
        isinstance(k, str) and k.startswith("$") for k in value
    )


def _comparable(value: Any) -> Any:
    pointer = Pointer.parse(value)
    if pointer is not None:
        # Containment on the identifying keys only; extra keys on stored
        # pointers (e.g. "__type") must not affect matching.
        return {"className": pointer.class_name, "objectId": pointer.object_id}
    return value


def _field_matches(key: str, value: Any) -> ColumnElement[bool]:
    value = _comparable(value)
    # Equal to a scalar/pointer field, or contained in an array field.
    return or_(
        ObjectRecord.data.contains({key: value}),
        ObjectRecord.data.contains({key: [value]}),
    )


def build_conditions(class_name: str, where: Mapping[str, Any]) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = [ObjectRecord.class_name == class_name]
    for key, value in where.items():
        if key == OBJECT_ID_KEY:
            if _is_operator(value):
                conditions.append(ObjectRecord.object_id.in_(_in_values(key, value)))
            else:
                conditions.append(ObjectRecord.object_id == value)
            continue

        if _is_operator(value):
            values = _in_values(key, value)
            if not values:
                conditions.append(false())
            else:
                conditions.append(or_(*[_field_matches(key, v) for v in values]))
        else:
            conditions.append(_field_matches(key, value))
    return conditions


def build_query(
    class_name: str, where: Mapping[str, Any], limit: int | None = None
) -> Select[tuple[ObjectRecord]]:
    query = (
        select(ObjectRecord)
        .where(*build_conditions(class_name, where))
        .order_by(ObjectRecord.created_at, ObjectRecord.object_id)
    )
    if limit is not None:
        query = query.limit(limit)
    return query


def to_record(row: ObjectRecord) -> dict[str, Any]:
    record = dict(row.data or {})
    record[OBJECT_ID_KEY] = row.object_id
    return record


class ObjectRecordRepository:
    """QueryExecutor over the ``objects`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def execute(
        self,
        class_name: str,
        where: Mapping[str, Any],
        *,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        result = await self.session.execute(build_query(class_name, where, limit))
        return [to_record(row) for row in result.scalars().all()]
