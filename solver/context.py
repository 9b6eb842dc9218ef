# solver/context.py
from __future__ import annotations

import threading
import time
from typing import List, Optional, Set

from config import CFG
from models import Group, Item
from progress import log_attempt_detail, update as progress_update
from solver.scoring import INFEASIBLE_SCORE, Scorer
from solver.state import State


class SearchContext:
    """Everything one arrangement run shares between its search phases.

    Owns the scorer, the deadline/cancel signal, the digests already explored
    and the best terminal feasible state found so far.
    """

    def __init__(
        self,
        items: List[Item],
        templates: List[Group],
        scorer: Scorer,
        *,
        deadline: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
        max_restarts: int = 0,
        node_limit: int = 0,
        progress_every: int = 0,
    ):
        self.items = list(items)
        self.templates = list(templates)
        self.scorer = scorer
        self.deadline = deadline
        self.cancel = cancel
        self.max_restarts = max(0, int(max_restarts))
        self.node_limit = max(0, int(node_limit))
        self.progress_every = max(1, int(progress_every or CFG.PROGRESS_EVERY or 1))

        self.explored: Set[int] = set()
        self.best: Optional[State] = None
        self.restarts = 0
        self.expansions = 0
        self.stopped_early = False
        self.phase = ""
        self.best_phase = ""
        self.started = time.monotonic()
        self._ticks = 0

    # ---------- stop signal ----------

    def time_left(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def should_stop(self) -> bool:
        if self.cancel is not None and self.cancel.is_set():
            self.stopped_early = True
            return True
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self.stopped_early = True
            return True
        return False

    def optimum_reached(self) -> bool:
        # without rules every feasible arrangement scores 0
        return self.best is not None and not self.scorer.has_rules

    # ---------- states ----------

    def blank_state(self) -> State:
        state = State.blank(self.templates, self.items)
        state.score = self.scorer.score_of(state)
        return state

    def score(self, state: State) -> State:
        state.score = self.scorer.score_of(state)
        return state

    def best_score(self) -> float:
        return self.best.score if self.best is not None else INFEASIBLE_SCORE

    def offer(self, state: State) -> bool:
        """Keep ``state`` if it is a feasible complete arrangement beating the best."""
        if not state.is_terminal() or state.score == INFEASIBLE_SCORE:
            return False
        if self.best is not None and state.score <= self.best.score:
            return False
        self.best = state
        self.best_phase = self.phase
        log_attempt_detail(
            "Best score", phase=self.phase, score=round(state.score, 6), explored=len(self.explored)
        )
        progress_update(best_score=state.score)
        return True

    # ---------- progress ----------

    def tick(self, attempt: str, fraction: Optional[float] = None) -> None:
        """Publish progress every ``progress_every`` calls."""
        self._ticks += 1
        if self._ticks % self.progress_every:
            return
        if self.deadline is not None:
            budget = self.deadline - self.started
            if budget > 0:
                by_time = (time.monotonic() - self.started) / budget
                fraction = by_time if fraction is None else max(fraction, by_time)
        fields = {"attempt": attempt, "explored": len(self.explored)}
        if fraction is not None:
            fields["percent"] = 100.0 * fraction
        progress_update(**fields)
