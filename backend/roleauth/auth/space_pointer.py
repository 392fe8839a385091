from __future__ import annotations

import logging
from typing import Any, Mapping

from ..domain.pointers import Pointer, SpaceRef
from ..domain.ports.query import QueryExecutor
from .names import (
    ITEM_ID_FIELD,
    ITEM_TYPE_FIELD,
    OBJECT_ID_FIELD,
    PARENT_POST_FIELD,
    SPACE_FIELD,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_HOPS = 8


class SpacePointerResolver:
    """Find the space an operation's target belongs to.

    Precedence, first match wins:

    1. a space pointer on the payload
    2. a space pointer on the REST where clause
    3. a parent post pointer on the payload, chased to its space
    4. an ``itemType``/``itemId`` pair on the payload, chased the same way
    5. the queried ``objectId`` of ``class_name``, chased the same way

    A chase stops on a record carrying a space pointer, on a record with
    neither a space nor a parent post, on a dangling reference, or after
    ``max_hops`` lookups. Every stop other than the first yields None.
    """

    def __init__(self, executor: QueryExecutor, *, max_hops: int = DEFAULT_MAX_HOPS):
        if max_hops < 1:
            raise ValueError("max_hops must be at least 1")
        self.executor = executor
        self.max_hops = max_hops

    async def resolve_space(
        self,
        class_name: str,
        data: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        rest_query: Mapping[str, Any] | None = None,
    ) -> SpaceRef | None:
        data = data or {}
        query = query or {}
        rest_query = rest_query or {}

        space = Pointer.parse(data.get(SPACE_FIELD))
        if space is not None:
            return space

        space = Pointer.parse(rest_query.get(SPACE_FIELD))
        if space is not None:
            return space

        parent = Pointer.parse(data.get(PARENT_POST_FIELD))
        if parent is not None:
            return await self._chase(parent)

        item_type = data.get(ITEM_TYPE_FIELD)
        item_id = data.get(ITEM_ID_FIELD)
        if isinstance(item_type, str) and item_type and isinstance(item_id, str) and item_id:
            return await self._chase(Pointer(item_type, item_id))

        object_id = query.get(OBJECT_ID_FIELD)
        if isinstance(object_id, str) and object_id:
            return await self._chase(Pointer(class_name, object_id))

        return None

    async def _chase(self, start: Pointer) -> SpaceRef | None:
        target: Pointer | None = start
        for _ in range(self.max_hops):
            records = await self.executor.execute(
                target.class_name, {OBJECT_ID_FIELD: target.object_id}, limit=1
            )
            if not records:
                logger.debug(
                    "space.chase.dangling class_name=%s object_id=%s",
                    target.class_name,
                    target.object_id,
                )
                return None

            record = records[0]
            space = Pointer.parse(record.get(SPACE_FIELD))
            if space is not None:
                return space

            target = Pointer.parse(record.get(PARENT_POST_FIELD))
            if target is None:
                return None

        logger.warning(
            "space.chase.hop_limit start_class=%s start_id=%s max_hops=%d",
            start.class_name,
            start.object_id,
            self.max_hops,
        )
        return None
