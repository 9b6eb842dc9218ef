# solver/local_search.py
"""Hill climbing over complete arrangements, restarted from every ordering.

Each restart deals the items (in the next untried order) round-robin into the
groups, minimums first, then climbs with relocate/swap moves until no
neighbour scores higher.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional, Sequence, Set

from models import Group, Item
from progress import update as progress_update
from solver.context import SearchContext
from solver.permutations import PermutationCounter
from solver.state import State

logger = logging.getLogger(__name__)


def _deal(queue: List[Item], pos: int, groups: List[Group], limit: Callable[[Group], int]) -> int:
    while pos < len(queue):
        open_groups = [g for g in groups if len(g.items) < limit(g)]
        if not open_groups:
            break
        for group in open_groups:
            if pos == len(queue):
                break
            group.items.append(queue[pos])
            pos += 1
    return pos


def initial_state(items: Sequence[Item], templates: Sequence[Group], order: Sequence[int]) -> State:
    queue = [items[i] for i in order]
    state = State.blank(templates, [])
    pos = _deal(queue, 0, state.groups, lambda g: g.min_size)
    pos = _deal(queue, pos, state.groups, lambda g: g.max_size)
    state.items_not_in_groups = queue[pos:]
    return state


def neighbours(state: State) -> Iterator[State]:
    """Every arrangement one relocate or one swap away from ``state``."""
    groups = state.groups
    for gi, source in enumerate(groups):
        for ii in range(len(source.items)):
            for gj, target in enumerate(groups):
                if gj == gi:
                    continue
                if not target.is_full():
                    nxt = state.copy()
                    nxt.groups[gj].items.append(nxt.groups[gi].items.pop(ii))
                    yield nxt
                    continue
                if source.is_full() and gj < gi:
                    # full/full swaps were already produced from the other side
                    continue
                for jj in range(len(target.items)):
                    nxt = state.copy()
                    a, b = nxt.groups[gi].items, nxt.groups[gj].items
                    a[ii], b[jj] = b[jj], a[ii]
                    yield nxt


def hill_climb(ctx: SearchContext, state: State) -> State:
    current = state
    while True:
        ctx.explored.add(current.digest())
        if ctx.should_stop():
            break
        best: Optional[State] = None
        best_digest = 0
        # mirror moves between same-shape groups land on the same partition
        scanned: Set[int] = set()
        for candidate in neighbours(current):
            digest = candidate.digest()
            if digest in scanned:
                continue
            scanned.add(digest)
            ctx.score(candidate)
            if best is None or candidate.score > best.score:
                best, best_digest = candidate, digest
        if best is None or not best.score > current.score:
            break
        if best_digest in ctx.explored:
            # an earlier climb already went through here
            break
        current = best
    return current


def run_local_search(ctx: SearchContext) -> None:
    counter = PermutationCounter(len(ctx.items))
    progress_update(phase_total=counter.total if counter.n <= 12 else f"{counter.n}!")

    while not ctx.should_stop():
        if ctx.max_restarts and ctx.restarts >= ctx.max_restarts:
            break
        order = counter.next()
        if order is None:
            break
        state = initial_state(ctx.items, ctx.templates, order)
        if state.digest() in ctx.explored:
            continue

        ctx.restarts += 1
        ctx.score(state)
        ctx.offer(hill_climb(ctx, state))
        ctx.tick(f"restart {ctx.restarts}", counter.fraction_done())
        if ctx.optimum_reached():
            break

    logger.info(
        "Local search finished: %d restarts, %d arrangements explored, orderings exhausted=%s",
        ctx.restarts, len(ctx.explored), counter.exhausted,
    )
