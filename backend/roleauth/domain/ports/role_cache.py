from __future__ import annotations

from typing import Protocol


class RoleCache(Protocol):
    async def get(self, user_id: str) -> list[str] | None:
        ...

    async def put(self, user_id: str, tokens: list[str]) -> None:
        ...

    async def delete(self, user_id: str) -> None:
        ...
