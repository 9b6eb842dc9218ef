# Orchestrator: validation, nearness pre-parsing and the search phases
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from config import CFG, STRATEGIES
from models import (
    ConfigurationError,
    Group,
    Item,
    NoWorkableArrangementError,
    Rule,
    RuleType,
    UnsupportedRuleError,
)
from progress import (
    log_attempt_detail,
    set_attempt, set_best_score, set_elapsed, set_explored, set_item_count,
    set_message, set_phase, set_progress_pct, set_status,
)
from solver.context import SearchContext
from solver.frontier import run_frontier_search
from solver.local_search import run_local_search
from solver.scoring import Scorer

logger = logging.getLogger(__name__)

NO_ARRANGEMENT_REASON = "failed to discover any workable arrangement"

PHASES: Dict[str, Callable[[SearchContext], None]] = {
    "local": run_local_search,
    "frontier": run_frontier_search,
}


# ---------- helpers ----------

def deadline_after(seconds: Optional[float]) -> Optional[float]:
    """Absolute ``time.monotonic()`` deadline for a budget; None/0 means none."""
    if seconds is None or float(seconds) <= 0:
        return None
    return time.monotonic() + float(seconds)


def _phases_for(strategy: Optional[str], item_count: int = 0) -> List[Tuple[str, bool]]:
    """Phases to run as ``(name, refines)`` pairs.

    A refining phase still runs once a feasible arrangement is known and tries
    to beat it; any other phase is skipped at that point.
    """
    name = (strategy or CFG.STRATEGY or "auto").strip().lower()
    if name not in STRATEGIES:
        raise ConfigurationError(
            f"unknown search strategy {name!r} (expected one of {', '.join(STRATEGIES)})"
        )
    if name == "auto":
        # small inputs get the exact frontier pass on top of local search
        refine = 0 < item_count <= CFG.REFINE_MAX_ITEMS
        return [("local", False), ("frontier", refine)]
    return [(name, False)]


def validate_input(items: List[Item], rules: List[Rule], groups: List[Group]) -> None:
    if not items:
        raise ConfigurationError("bad configuration: there are no items to arrange")

    seen = set()
    for item in items:
        if item.id in seen:
            raise ConfigurationError(f"bad configuration: item ID {item.id!r} appears more than once")
        seen.add(item.id)

    for group in groups:
        if group.min_size < 0 or group.max_size < 0:
            raise ConfigurationError(f"bad configuration: group {group.name!r} has a negative size")
        if group.min_size > group.max_size:
            raise ConfigurationError(
                f"bad configuration: group {group.name!r} has MinSize {group.min_size} "
                f"above MaxSize {group.max_size}"
            )

    num_slots = sum(g.max_size for g in groups)
    if num_slots < len(items):
        raise ConfigurationError(
            f"bad configuration: there are {len(items)} items to arrange "
            f"but only {num_slots} possible slots"
        )

    for rule in rules:
        if rule.active and rule.type == RuleType.RELATIONSHIP:
            raise UnsupportedRuleError(
                f"rule type {rule.type.value} on tag {rule.tag_name!r} is not implemented"
            )


def _search(
    items: Iterable[Item],
    rules: Iterable[Rule],
    groups: Iterable[Group],
    deadline: Optional[float],
    strategy: Optional[str],
    cancel: Optional[threading.Event],
) -> SearchContext:
    items, rules, groups = list(items), list(rules), list(groups)
    validate_input(items, rules, groups)
    phases = _phases_for(strategy, len(items))

    scorer = Scorer(rules, items, CFG.COORD_SEPARATOR)
    try:
        ctx = SearchContext(
            items,
            groups,
            scorer,
            deadline=deadline,
            cancel=cancel,
            max_restarts=CFG.MAX_RESTARTS,
            node_limit=CFG.FRONTIER_NODE_LIMIT,
        )
        log_attempt_detail(
            "Run setup",
            items=len(items),
            groups=len(groups),
            active_rules=len(scorer.rules),
            nearness_tags=",".join(scorer.nearness.tags()),
            phases="+".join(label for label, _ in phases),
            budget=None if deadline is None else f"{max(0.0, ctx.time_left() or 0.0):.1f}s",
        )
        set_item_count(len(items))

        for label, refines in phases:
            if ctx.should_stop() or ctx.optimum_reached():
                break
            if ctx.best is not None and not refines:
                break
            ctx.phase = label
            set_phase(label)
            set_attempt("")
            PHASES[label](ctx)
            set_explored(len(ctx.explored))
    finally:
        # coordinates and max spreads never outlive the run
        scorer.close()

    if ctx.stopped_early:
        logger.info("Search stopped by deadline/cancel; returning best arrangement so far")
    return ctx


# ---------- public entrypoints ----------

def compute_arrangement(
    items: Iterable[Item],
    rules: Iterable[Rule],
    groups: Iterable[Group],
    deadline: Optional[float] = None,
    *,
    strategy: Optional[str] = None,
    cancel: Optional[threading.Event] = None,
) -> List[Group]:
    """Arrange every item into exactly one of ``groups``.

    Returns new, populated copies of the group templates in their original
    order; the templates and items passed in are left untouched.

    ``deadline`` is an absolute ``time.monotonic()`` instant (see
    :func:`deadline_after`); reaching it, or setting ``cancel``, ends the
    search with the best arrangement found so far.

    Raises :class:`ConfigurationError` before searching when the inputs can
    never be arranged, :class:`UnsupportedRuleError` for an active
    Relationship rule, and :class:`NoWorkableArrangementError` when no
    feasible arrangement was reached.
    """
    ctx = _search(items, rules, groups, deadline, strategy, cancel)
    if ctx.best is None:
        raise NoWorkableArrangementError(NO_ARRANGEMENT_REASON)
    return ctx.best.groups


def solve_arrangement(
    items: Iterable[Item],
    rules: Iterable[Rule],
    groups: Iterable[Group],
    *,
    timeout_secs: Optional[float] = None,
    strategy: Optional[str] = None,
    cancel: Optional[threading.Event] = None,
) -> Dict[str, Any]:
    """Run an arrangement and report it as a result dict for the UI and CLI.

    Keys: ok, groups, score, strategy, reason, note, elapsed, restarts,
    explored. Configuration problems and "no workable arrangement" come back
    as ``ok=False`` with a ``reason``; an unsupported rule still raises.
    """
    t0 = time.time()
    if timeout_secs is None:
        timeout_secs = CFG.TIMEOUT_SECS

    set_status("Arranging")
    set_progress_pct(0.0)

    def _failure(reason: str, ctx: Optional[SearchContext] = None) -> Dict[str, Any]:
        elapsed = time.time() - t0
        set_status("Error")
        set_message(reason)
        set_elapsed(elapsed)
        return {
            "ok": False,
            "groups": [],
            "score": None,
            "strategy": "error",
            "reason": reason,
            "note": None,
            "elapsed": elapsed,
            "restarts": ctx.restarts if ctx else 0,
            "explored": len(ctx.explored) if ctx else 0,
        }

    try:
        ctx = _search(items, rules, groups, deadline_after(timeout_secs), strategy, cancel)
    except ConfigurationError as e:
        return _failure(str(e))
    except UnsupportedRuleError as e:
        set_status("Error")
        set_message(str(e))
        raise

    if ctx.best is None:
        return _failure(NO_ARRANGEMENT_REASON, ctx)

    elapsed = time.time() - t0
    note = "time budget reached; best arrangement found so far" if ctx.stopped_early else None
    set_status("Arranged")
    set_best_score(ctx.best.score)
    set_explored(len(ctx.explored))
    set_elapsed(elapsed)
    if note:
        set_message(note)
    return {
        "ok": True,
        "groups": ctx.best.groups,
        "score": ctx.best.score,
        "strategy": ctx.best_phase,
        "reason": None,
        "note": note,
        "elapsed": elapsed,
        "restarts": ctx.restarts,
        "explored": len(ctx.explored),
    }
