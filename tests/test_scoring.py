import itertools

import pytest

from models import Group, Item, Rule, RuleType, UnsupportedRuleError
from solver.scoring import INFEASIBLE_SCORE, Scorer
from solver.state import State


def _item(item_id, **tags):
    return Item(item_id, dict(tags))


def _terminal(*members, min_size=0, max_size=4):
    return State([Group(f"g{n}", min_size, max_size, list(m)) for n, m in enumerate(members)])


M1, M2, F1, F2 = _item("m1", g="m"), _item("m2", g="m"), _item("f1", g="f"), _item("f2", g="f")


def test_sameness_scores_shared_values_only():
    scorer = Scorer([Rule("g", RuleType.SAMENESS, 2)], [M1, M2, F1, F2])
    assert scorer.current_score(_terminal([M1, M2, F1], [F2])) == 2.0
    assert scorer.current_score(_terminal([M1, F1], [M2, F2])) == 0.0
    assert scorer.current_score(_terminal([M1, M2], [F1, F2])) == 4.0


def test_sameness_ignores_missing_tag_values():
    blank_a, blank_b = _item("x"), _item("y", g="")
    scorer = Scorer([Rule("g", RuleType.SAMENESS, 1)], [blank_a, blank_b])
    assert scorer.current_score(_terminal([blank_a, blank_b])) == 0.0


def test_rule_scores_add_up():
    a = _item("a", g="m", c="x")
    b = _item("b", g="m", c="x")
    rules = [Rule("g", RuleType.SAMENESS, 1), Rule("c", RuleType.SAMENESS, 3)]
    assert Scorer(rules, [a, b]).current_score(_terminal([a, b])) == 4.0


def test_negative_weight_penalises_sameness():
    scorer = Scorer([Rule("g", RuleType.SAMENESS, -1)], [M1, M2, F1, F2])
    assert scorer.current_score(_terminal([M1, M2], [F1, F2])) == -2.0
    assert scorer.current_score(_terminal([M1, F1], [M2, F2])) == 0.0


def test_nearness_rewards_tight_groups():
    a, b, c = _item("a", at="0, 0"), _item("b", at="0, 0"), _item("c", at="4, 0")
    scorer = Scorer([Rule("at", RuleType.NEARNESS, 1)], [a, b, c])

    assert scorer.current_score(_terminal([a, b], [c])) == pytest.approx(3.0)
    assert scorer.current_score(_terminal([a, c], [b])) == pytest.approx(1.0)


def test_nearness_skips_items_without_coordinates():
    a, b, c = _item("a", at="0, 0"), _item("b", at="2, 2"), _item("c", at="somewhere")
    scorer = Scorer([Rule("at", RuleType.NEARNESS, 2)], [a, b, c])
    # c has no point, so it neither counts nor widens its group
    assert scorer.current_score(_terminal([a, c], [b])) == pytest.approx(4.0)
    assert scorer.current_score(_terminal([a, b], [c])) == pytest.approx(0.0)


def test_terminal_state_below_minimum_is_infeasible():
    scorer = Scorer([Rule("g", RuleType.SAMENESS, 1)], [M1, M2, F1, F2])
    state = _terminal([M1, M2, F1], [F2], min_size=2)
    assert scorer.score_of(state) == INFEASIBLE_SCORE
    assert scorer.score_of(_terminal([M1, M2, F1, F2], [], min_size=2)) == 2.0


def test_scoring_is_deterministic():
    items = [M1, M2, F1, F2]
    scorer = Scorer([Rule("g", RuleType.SAMENESS, 1)], items)
    state = _terminal([M1, F1, M2], [F2])
    assert scorer.score_of(state) == scorer.score_of(state.copy())


def test_active_relationship_rule_is_unsupported():
    with pytest.raises(UnsupportedRuleError):
        Scorer([Rule("buddy", RuleType.RELATIONSHIP, 1)], [M1])
    assert not Scorer([Rule("buddy", RuleType.RELATIONSHIP, 0)], [M1]).has_rules


def _completions(state):
    """Every way of placing the unplaced items without overfilling a group."""
    n_groups = len(state.groups)
    for choice in itertools.product(range(n_groups), repeat=len(state.items_not_in_groups)):
        done = state.copy()
        done.items_not_in_groups = []
        for item, gi in zip(state.items_not_in_groups, choice):
            done.groups[gi].items.append(item)
        if all(len(g.items) <= g.max_size for g in done.groups):
            yield done


@pytest.mark.parametrize("weights", [(1, 1), (2, -1), (-1, 3), (-2, -2)])
def test_partial_bound_never_underestimates_a_completion(weights):
    items = [
        _item("a", g="m", at="0, 0"),
        _item("b", g="f", at="1, 0"),
        _item("c", g="m", at="5, 5"),
        _item("d", g="f", at="0, 1"),
        _item("e", g="m", at="4, 6"),
    ]
    rules = [Rule("g", RuleType.SAMENESS, weights[0]), Rule("at", RuleType.NEARNESS, weights[1])]
    scorer = Scorer(rules, items)

    partial = State(
        [Group("x", 0, 3, [items[0]]), Group("y", 0, 3, [items[2]])],
        items[1:2] + items[3:],
    )
    bound = scorer.score_of(partial)
    best = max(scorer.current_score(s) for s in _completions(partial))
    assert bound >= best - 1e-9
