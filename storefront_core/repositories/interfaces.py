"""Repository abstractions consumed by route handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class MemberRow:
    id: str
    email: str
    name: str


class MemberRepository(Protocol):
    """Read boundary of the member service."""

    async def get_by_id(self, member_id: str) -> MemberRow | None: ...
