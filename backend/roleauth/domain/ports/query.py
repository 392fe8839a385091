from __future__ import annotations

from typing import Any, Mapping, Protocol


Record = dict[str, Any]
WhereClause = Mapping[str, Any]


class QueryExecutor(Protocol):
    """Elevated-privilege filtered read against a named collection.

    ``where`` supports plain equality (scalars or pointer dicts) and
    ``{"$in": [...]}``. A pointer compared against an array field matches
    when the array contains it.
    """

    async def execute(
        self,
        class_name: str,
        where: WhereClause,
        *,
        limit: int | None = None,
    ) -> list[Record]:
        ...
