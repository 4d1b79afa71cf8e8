"""In-process repository used by local runs and tests."""

from __future__ import annotations

from collections.abc import Iterable

from storefront_core.core.exceptions import ConflictError
from storefront_core.repositories.interfaces import MemberRow


class InMemoryMemberRepository:
    def __init__(self, rows: Iterable[MemberRow] = ()) -> None:
        self._by_id: dict[str, MemberRow] = {}
        for row in rows:
            self.add(row)

    def add(self, row: MemberRow) -> None:
        if row.id in self._by_id:
            raise ConflictError(f"Member already exists: {row.id}")
        self._by_id[row.id] = row

    async def get_by_id(self, member_id: str) -> MemberRow | None:
        return self._by_id.get(member_id)
