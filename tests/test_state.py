from models import Group, Item
from solver.state import State, group_digest

A, B, C, D = (Item(x) for x in "abcd")


def _state(*members, shape=(0, 2), unplaced=()):
    groups = [Group(f"g{n}", shape[0], shape[1], list(m)) for n, m in enumerate(members)]
    return State(groups, list(unplaced))


def test_digest_ignores_group_and_member_order():
    first = _state([A, B], [C, D])
    second = _state([D, C], [B, A])
    assert first.digest() == second.digest()


def test_digest_distinguishes_partitions():
    assert _state([A, B], [C, D]).digest() != _state([A, C], [B, D]).digest()


def test_digest_distinguishes_group_shapes():
    small_first = State([Group("x", 1, 2, [A]), Group("y", 1, 3, [])])
    big_first = State([Group("x", 1, 2, []), Group("y", 1, 3, [A])])
    assert small_first.digest() != big_first.digest()


def test_group_digest_ignores_name():
    assert group_digest(Group("x", 0, 2, [A])) == group_digest(Group("y", 0, 2, [A]))


def test_copy_is_independent_but_shares_items():
    original = _state([A], [B], unplaced=[C])
    clone = original.copy()
    clone.groups[0].items.append(clone.items_not_in_groups.pop())

    assert [it.id for it in original.groups[0].items] == ["a"]
    assert original.items_not_in_groups == [C]
    assert clone.groups[0].items[1] is C


def test_blank_state_holds_every_item_unplaced():
    templates = [Group("g", 0, 2, [A])]
    state = State.blank(templates, [A, B])
    assert state.groups[0].items == []
    assert state.items_not_in_groups == [A, B]
    assert not state.is_terminal()
    assert templates[0].items == [A]


def test_deficit_counts_only_partially_filled_groups():
    state = _state([A], [], [B, C], shape=(3, 4))
    assert state.deficit() == 3
    assert state.placed_count() == 3
    assert state.is_terminal()
