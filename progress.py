"""Run progress shared between the arranging thread and the /progress poller.

One ``PROGRESS`` dict guarded by ``PROGRESS_LOCK`` is the source of truth. It
is mirrored to a JSON state file after every change so that a poller in a
different worker process sees the same run. Phase and attempt transitions,
plus free-form detail lines, go to ``logs/arrangement_attempts.log``.
"""
from __future__ import annotations

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

PROGRESS_LOCK = threading.Lock()

_HERE = Path(__file__).resolve().parent


def _state_file_path() -> Path:
    configured = os.environ.get("PROGRESS_STATE_FILE")
    return Path(configured) if configured else _HERE / "logs" / "progress_state.json"


STATE_FILE = _state_file_path()
STATE_FILE_TMP = STATE_FILE.with_name(STATE_FILE.name + ".tmp")
_LAST_STATE_MTIME: float = 0.0


# ---------- attempt log ----------

def _attempt_logger() -> logging.Logger:
    log = logging.getLogger("arranger.attempt_log")
    if log.handlers:
        return log
    path = _HERE / "logs" / "arrangement_attempts.log"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        # read-only checkout: the run still reports progress in memory
        return log
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S"))
    log.addHandler(handler)
    log.setLevel(logging.INFO)
    log.propagate = False
    return log


ATTEMPT_LOGGER = _attempt_logger()


def _seconds(value: Optional[float]) -> Optional[str]:
    return None if value is None else f"{float(value):.2f}s"


def _emit(event: str, **fields: Any) -> None:
    if not ATTEMPT_LOGGER.handlers:
        return
    extras = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None and v != "")
    if extras:
        ATTEMPT_LOGGER.info("%s | %s", event, extras)
    else:
        ATTEMPT_LOGGER.info("%s", event)


def log_attempt_detail(event: str, **fields: Any) -> None:
    """Free-form line in the attempt log (run setup, best-score changes...)."""
    _emit(event, **fields)


class _Timeline:
    """Start times of the current run, phase and attempt, for the attempt log."""

    def __init__(self) -> None:
        self.clear()

    def clear(self) -> None:
        self.run_start: Optional[float] = None
        self.phase = ""
        self.phase_start: Optional[float] = None
        self.attempt = ""
        self.attempt_start: Optional[float] = None

    def close_attempt(self, now: float, reason: str) -> None:
        if not self.attempt:
            return
        took = None if self.attempt_start is None else max(0.0, now - self.attempt_start)
        _emit("Attempt finished", phase=self.phase, attempt=self.attempt, duration=_seconds(took), reason=reason)
        self.attempt = ""
        self.attempt_start = None

    def enter_attempt(self, name: str) -> None:
        if name == self.attempt:
            return
        now = _now()
        self.close_attempt(now, "switch")
        if name:
            self.attempt = name
            self.attempt_start = now
            _emit("Attempt started", phase=self.phase, attempt=name)

    def enter_phase(self, name: str) -> None:
        if name == self.phase:
            return
        now = _now()
        self.close_attempt(now, "phase_change")
        if self.phase and self.phase_start is not None:
            _emit("Phase finished", phase=self.phase, duration=_seconds(now - self.phase_start))
        self.phase = name
        self.phase_start = now
        if name:
            _emit("Phase started", phase=name)

    def run_duration(self, now: float) -> Optional[float]:
        return None if self.run_start is None else max(0.0, now - self.run_start)


TIMELINE = _Timeline()


# ---------- shared state ----------

def _fresh(run_id: int) -> Dict[str, Any]:
    return {
        "status": "Idle",          # Idle | Arranging | Arranged | Error
        "phase": "",               # local | frontier
        "phase_total": "",         # orderings (local) or node cap (frontier)
        "attempt": "",             # e.g. "restart 42"
        "percent": 0.0,            # 0..100
        "best_score": None,
        "explored": 0,             # distinct arrangements visited
        "item_count": 0,
        "elapsed_start": None,     # wall-clock t0 of the run
        "elapsed": 0.0,
        "message": "",
        "done": False,
        "ok": None,
        "result_url": "",
        "run_id": run_id,
    }


PROGRESS: Dict[str, Any] = _fresh(0)


def _now() -> float:
    return time.time()


def _persist_locked() -> None:
    global _LAST_STATE_MTIME
    try:
        STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
        with STATE_FILE_TMP.open("w", encoding="utf-8") as fh:
            json.dump(PROGRESS, fh, ensure_ascii=False, separators=(",", ":"))
        STATE_FILE_TMP.replace(STATE_FILE)
        _LAST_STATE_MTIME = STATE_FILE.stat().st_mtime
    except OSError:
        pass


def _load_persisted_locked(force: bool = False) -> None:
    global _LAST_STATE_MTIME
    try:
        mtime = STATE_FILE.stat().st_mtime
    except OSError:
        return
    if not force and mtime <= _LAST_STATE_MTIME:
        return
    try:
        data = json.loads(STATE_FILE.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return
    if isinstance(data, dict):
        PROGRESS.update({k: data[k] for k in PROGRESS if k in data})
        _LAST_STATE_MTIME = mtime


def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = _now() - float(t0)


def _store(key: str, value: Any, hook: Optional[Callable[[Any], None]] = None) -> None:
    with PROGRESS_LOCK:
        PROGRESS[key] = value
        if hook is not None:
            hook(value)
        _persist_locked()


def _text(v: Any) -> str:
    return "" if v is None else str(v)


def _count(v: Any) -> int:
    return max(0, int(v or 0))


def _float_or_zero(v: Any) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return 0.0


# ---------- run lifecycle ----------

def reset() -> None:
    with PROGRESS_LOCK:
        TIMELINE.close_attempt(_now(), "reset")
        PROGRESS.update(_fresh(int(PROGRESS.get("run_id") or 0) + 1))
        TIMELINE.clear()
        _emit("Progress reset")
        _persist_locked()


def start_timer() -> None:
    with PROGRESS_LOCK:
        now = _now()
        PROGRESS["elapsed_start"] = now
        PROGRESS["elapsed"] = 0.0
        TIMELINE.run_start = now
        _emit("Run timer started")
        _persist_locked()


def set_done(ok: Optional[bool] = None, *, reason: Any = None) -> None:
    """Mark the run complete.

    ``ok`` picks the final status ("Arranged" or "Error"); when omitted an
    idle status is promoted to "Arranged". ``reason`` lands in ``message``.
    """
    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        now = _now()
        if ok is not None:
            PROGRESS["status"] = "Arranged" if ok else "Error"
            PROGRESS["ok"] = bool(ok)
        elif PROGRESS.get("status") in ("", "Idle", None):
            PROGRESS["status"] = "Arranged"
            PROGRESS["ok"] = True
        PROGRESS["percent"] = 100.0
        if reason is not None:
            PROGRESS["message"] = str(reason)
        PROGRESS["done"] = True

        TIMELINE.close_attempt(now, "run_complete")
        _emit(
            "Run finished",
            status=PROGRESS["status"],
            ok=PROGRESS["ok"],
            duration=_seconds(TIMELINE.run_duration(now)),
            best_score=PROGRESS["best_score"],
            explored=PROGRESS["explored"],
            message=PROGRESS["message"],
        )
        TIMELINE.run_start = None
        TIMELINE.phase_start = None
        _persist_locked()


# ---------- setters ----------

def set_status(v: Any) -> None:
    _store("status", str(v))


def set_phase(v: Any) -> None:
    _store("phase", _text(v), TIMELINE.enter_phase)


def set_phase_total(v: Any) -> None:
    _store("phase_total", _text(v))


def set_attempt(v: Any) -> None:
    _store("attempt", _text(v), TIMELINE.enter_attempt)


def set_progress_pct(pct: Any) -> None:
    pct = max(0.0, min(100.0, _float_or_zero(pct)))
    _store("percent", pct, lambda _: _touch_elapsed_locked())


def set_best_score(score: Any) -> None:
    _store("best_score", None if score is None else round(float(score), 6))


def set_explored(n: Any) -> None:
    _store("explored", _count(n))


def set_item_count(n: Any) -> None:
    _store("item_count", _count(n))


def set_elapsed(seconds: Any) -> None:
    _store("elapsed", max(0.0, _float_or_zero(seconds)))


def set_message(msg: Any) -> None:
    _store("message", _text(msg))


def set_result_url(url: Any) -> None:
    _store("result_url", _text(url))


_SETTERS: Dict[str, Callable[[Any], None]] = {
    "status": set_status,
    "phase": set_phase,
    "phase_total": set_phase_total,
    "attempt": set_attempt,
    "percent": set_progress_pct,
    "best_score": set_best_score,
    "explored": set_explored,
    "item_count": set_item_count,
    "elapsed": set_elapsed,
    "message": set_message,
}


def update(**kw: Any) -> None:
    """Route keyword fields to their setters; unknown keys are ignored."""
    for key, value in kw.items():
        setter = _SETTERS.get(key)
        if setter is not None:
            setter(value)


# ---------- snapshots ----------

def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return f"{int(seconds)}s"
    m, s = divmod(int(seconds), 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"


def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _load_persisted_locked()
        _touch_elapsed_locked()
        snap = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
        snap["elapsed_str"] = _fmt_elapsed(PROGRESS["elapsed"])
        return snap


def as_json() -> Dict[str, Any]:
    # served by /progress
    return snapshot()


with PROGRESS_LOCK:
    _load_persisted_locked(force=True)
