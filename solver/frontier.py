# solver/frontier.py
"""Best-first search over partial arrangements.

Items are placed one at a time in input order. Partial states are ordered by
their optimistic bound, and any state whose bound cannot beat the best
complete arrangement found so far is dropped.
"""
from __future__ import annotations

import heapq
import itertools
import logging
from typing import List, Set, Tuple

from progress import update as progress_update
from solver.context import SearchContext
from solver.state import State

logger = logging.getLogger(__name__)


def expand(ctx: SearchContext, state: State) -> List[State]:
    """Place the next unplaced item into every group that has room."""
    # Empty groups of the same shape are interchangeable: only the first one
    # of each (min, max) shape is tried in this expansion.
    tried_empty_shapes: Set[Tuple[int, int]] = set()

    children: List[State] = []
    for i, group in enumerate(state.groups):
        if group.is_full():
            continue
        if not group.items:
            shape = (group.min_size, group.max_size)
            if shape in tried_empty_shapes:
                continue
            tried_empty_shapes.add(shape)

        child = state.copy()
        item = child.items_not_in_groups.pop(0)
        child.groups[i].items.append(item)
        ctx.score(child)
        children.append(child)
    return children


def _can_meet_minimums(state: State) -> bool:
    return state.deficit() <= len(state.items_not_in_groups)


def run_frontier_search(ctx: SearchContext) -> None:
    seq = itertools.count()
    frontier: List[Tuple[float, int, State]] = []

    def push(s: State) -> None:
        # max-heap on score; among equals the newest state comes out first
        heapq.heappush(frontier, (-s.score, -next(seq), s))

    root = ctx.blank_state()
    ctx.explored.add(root.digest())
    push(root)
    progress_update(phase_total=ctx.node_limit or "unbounded")

    while frontier:
        if ctx.should_stop():
            break
        if ctx.node_limit and ctx.expansions >= ctx.node_limit:
            logger.info("Frontier search hit its node limit (%d)", ctx.node_limit)
            break

        _, _, state = heapq.heappop(frontier)
        if ctx.best is not None and state.score <= ctx.best.score:
            continue

        ctx.expansions += 1
        for child in expand(ctx, state):
            if child.is_terminal():
                ctx.offer(child)
                continue
            if ctx.best is not None and child.score <= ctx.best.score:
                continue
            if not _can_meet_minimums(child):
                continue
            digest = child.digest()
            if digest in ctx.explored:
                continue
            ctx.explored.add(digest)
            push(child)

        ctx.tick(f"expansion {ctx.expansions}")
        if ctx.optimum_reached():
            break

    logger.info(
        "Frontier search finished: %d expansions, %d partial states queued, %d still open",
        ctx.expansions, len(ctx.explored), len(frontier),
    )
