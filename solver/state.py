# solver/state.py
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Iterable, List

from models import Group, Item


def _hasher():
    return hashlib.blake2b(digest_size=8)


def group_digest(group: Group) -> int:
    """Hash of the group's member IDs, independent of their order.

    The capacity bounds are mixed in so that groups of the same shape are
    interchangeable while differently sized groups are not.
    """
    h = _hasher()
    h.update(f"{group.min_size}:{group.max_size}|".encode("ascii"))
    for item_id in sorted(item.id for item in group.items):
        h.update(item_id.encode("utf-8"))
        h.update(b"\x00")
    return int.from_bytes(h.digest(), "big")


@dataclass
class State:
    """One (possibly partial) arrangement of items into groups.

    ``score`` is exact for terminal states; for partial states it is an upper
    bound on what any completion can reach.
    """

    groups: List[Group]
    items_not_in_groups: List[Item] = field(default_factory=list)
    score: float = 0.0

    @classmethod
    def blank(cls, templates: Iterable[Group], items: Iterable[Item]) -> "State":
        return cls([g.template() for g in templates], list(items))

    def copy(self) -> "State":
        return State(
            [g.copy() for g in self.groups],
            list(self.items_not_in_groups),
            self.score,
        )

    def digest(self) -> int:
        # sorted so the same partition hashes alike whatever the group order
        digests = sorted(group_digest(g) for g in self.groups)
        h = _hasher()
        for d in digests:
            h.update(d.to_bytes(8, "big"))
        return int.from_bytes(h.digest(), "big")

    def is_terminal(self) -> bool:
        return not self.items_not_in_groups

    def deficit(self) -> int:
        return sum(g.min_size - len(g.items) for g in self.groups if g.below_minimum())

    def placed_count(self) -> int:
        return sum(len(g.items) for g in self.groups)
