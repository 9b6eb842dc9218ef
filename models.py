from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class ArrangementError(Exception):
    """Base class for every failure surfaced by the arrangement engine."""


class ConfigurationError(ArrangementError, ValueError):
    """Inputs that can never be arranged; raised before any search runs."""


class NoWorkableArrangementError(ArrangementError, RuntimeError):
    """The search finished without reaching a single feasible arrangement."""


class UnsupportedRuleError(ArrangementError, NotImplementedError):
    """A rule type the engine has no scoring for (fatal)."""


class RuleType(str, Enum):
    # keep items together that share the same value for this tag
    SAMENESS = "Sameness"
    # interpret the tag value as "x, y" and keep nearby items together
    NEARNESS = "Nearness"
    # tag value is the ID of another item; not implemented
    RELATIONSHIP = "Relationship"


def parse_rule_type(text: str) -> RuleType:
    value = (text or "").strip()
    for rt in RuleType:
        if rt.value.lower() == value.lower():
            return rt
    raise ConfigurationError(f"unknown rule type {value!r}")


@dataclass(frozen=True)
class Item:
    id: str
    tags: Dict[str, str] = field(default_factory=dict)

    def tag(self, name: str) -> str:
        return self.tags.get(name, "") or ""


@dataclass(frozen=True)
class Rule:
    tag_name: str
    type: RuleType
    weight: int

    @property
    def active(self) -> bool:
        return self.weight != 0


@dataclass
class Group:
    name: str
    min_size: int
    max_size: int
    items: List[Item] = field(default_factory=list)

    @property
    def free_slots(self) -> int:
        return self.max_size - len(self.items)

    def is_full(self) -> bool:
        return len(self.items) >= self.max_size

    def below_minimum(self) -> bool:
        # an empty group trivially satisfies its minimum
        return 0 < len(self.items) < self.min_size

    def copy(self) -> "Group":
        # items are shared; only the container is new
        return Group(self.name, self.min_size, self.max_size, list(self.items))

    def template(self) -> "Group":
        return Group(self.name, self.min_size, self.max_size)


def uniform_groups(count: int, min_size: int, max_size: int) -> List[Group]:
    return [Group(f"Group {i + 1}", int(min_size), int(max_size)) for i in range(int(count))]
