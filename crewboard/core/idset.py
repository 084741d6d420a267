"""
Identifier sets.

Every many-to-many reference (team members, a user's projects, ...) is held as
an ``IdSet``. Members are normalised to ``uuid.UUID`` on the way in, so a string
id coming from a request body and a UUID coming from the database compare
equal. Iteration keeps first-insertion order, which keeps API output stable.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Set
from uuid import UUID


def to_uuid(value: UUID | str) -> UUID:
    """Normalise an identifier; raises ValueError for anything that is not a UUID."""
    if isinstance(value, UUID):
        return value
    return UUID(str(value))


class IdSet(Set[UUID]):
    """Immutable, ordered set of UUIDs."""

    __slots__ = ("_items", "_index")

    def __init__(self, values: Iterable[UUID | str] = ()) -> None:
        items: list[UUID] = []
        index: set[UUID] = set()
        for value in values:
            uid = to_uuid(value)
            if uid not in index:
                index.add(uid)
                items.append(uid)
        self._items = tuple(items)
        self._index = frozenset(index)

    @classmethod
    def _from_iterable(cls, it: Iterable[UUID | str]) -> IdSet:
        return cls(it)

    def __contains__(self, value: object) -> bool:
        if isinstance(value, str):
            try:
                value = UUID(value)
            except ValueError:
                return False
        return value in self._index

    def __iter__(self) -> Iterator[UUID]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(self._index)

    def __repr__(self) -> str:
        return f"IdSet({[str(uid) for uid in self._items]!r})"

    def with_id(self, value: UUID | str) -> IdSet:
        return IdSet((*self._items, to_uuid(value)))

    def without(self, values: Iterable[UUID | str]) -> IdSet:
        drop = IdSet(values)
        return IdSet(uid for uid in self._items if uid not in drop)

    def as_list(self) -> list[UUID]:
        return list(self._items)
