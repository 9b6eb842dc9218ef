# solver/scoring.py
"""Rule-weighted scoring of arrangements.

Terminal states get their exact score. Partial states get an optimistic bound
that no completion of the state can exceed, which is what lets the frontier
search prune.
"""
from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Optional

from models import Item, Rule, RuleType, UnsupportedRuleError
from solver.geometry import NearnessIndex
from solver.state import State

INFEASIBLE_SCORE = float("-inf")


def _unsupported(rule: Rule) -> UnsupportedRuleError:
    return UnsupportedRuleError(
        f"rule type {rule.type.value} on tag {rule.tag_name!r} is not implemented"
    )


class Scorer:
    def __init__(self, rules: Iterable[Rule], items: Iterable[Item], separator: str = ","):
        self.rules: List[Rule] = [r for r in rules if r.active]
        for rule in self.rules:
            if rule.type == RuleType.RELATIONSHIP:
                raise _unsupported(rule)
        self.nearness = NearnessIndex(separator)
        self.nearness.populate(
            items, {r.tag_name for r in self.rules if r.type == RuleType.NEARNESS}
        )

    @property
    def has_rules(self) -> bool:
        return bool(self.rules)

    def close(self) -> None:
        self.nearness.clear()

    def score_of(self, state: State) -> float:
        if not state.is_terminal():
            return self.max_potential_score(state)
        if any(g.below_minimum() for g in state.groups):
            return INFEASIBLE_SCORE
        return self.current_score(state)

    # ---------- exact score ----------

    def _sameness(self, rule: Rule, state: State) -> float:
        total = 0
        for group in state.groups:
            counts = Counter(v for v in (it.tag(rule.tag_name) for it in group.items) if v)
            # only shared values score: a lone value contributes 0
            total += sum(rule.weight * (c - 1) for c in counts.values())
        return float(total)

    def _nearness(self, rule: Rule, state: State) -> float:
        total = 0.0
        for group in state.groups:
            dist, n = self.nearness.group_spread(group.items, rule.tag_name)
            ratio = self.nearness.ratio(dist, rule.tag_name)
            total += rule.weight * n * (1.0 - ratio)
        return total

    def _rule_score(self, rule: Rule, state: State) -> float:
        if rule.type == RuleType.SAMENESS:
            return self._sameness(rule, state)
        if rule.type == RuleType.NEARNESS:
            return self._nearness(rule, state)
        raise _unsupported(rule)

    def current_score(self, state: State) -> float:
        return sum((self._rule_score(rule, state) for rule in self.rules), 0.0)

    # ---------- optimistic bound ----------

    def _nearness_headroom(self, rule: Rule, state: State, current: Optional[float] = None) -> float:
        tag = rule.tag_name
        if rule.weight < 0:
            # each group's term is weight * n * (1 - ratio) <= 0; best case is 0
            return -(current if current is not None else self._nearness(rule, state))

        remaining = sum(1 for it in state.items_not_in_groups if self.nearness.has_point(it, tag))
        if remaining == 0:
            return 0.0

        # A group's spread never shrinks, so a point joining it is worth at most
        # weight * (1 - current ratio). Fill the tightest groups first.
        slots = []
        for group in state.groups:
            free = group.free_slots
            if free > 0:
                dist, _ = self.nearness.group_spread(group.items, tag)
                slots.append((dist, free))
        slots.sort(key=lambda s: s[0])

        extra = 0.0
        for dist, free in slots:
            if remaining <= 0:
                break
            take = min(free, remaining)
            remaining -= take
            extra += rule.weight * take * (1.0 - self.nearness.ratio(dist, tag))
        return extra

    def max_potential_score(self, state: State) -> float:
        score = 0.0
        for rule in self.rules:
            if rule.type == RuleType.SAMENESS:
                score += self._sameness(rule, state)
                # each placement raises sum(count - 1) by at most one
                if rule.weight > 0:
                    score += rule.weight * len(state.items_not_in_groups)
            elif rule.type == RuleType.NEARNESS:
                current = self._nearness(rule, state)
                score += current + self._nearness_headroom(rule, state, current)
            else:
                raise _unsupported(rule)
        return score
