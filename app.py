# app.py: upload form, arrangement run, result page and progress polling
from __future__ import annotations
import os
import time
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, request, render_template, send_from_directory, jsonify, url_for

from solver.orchestrator import solve_arrangement
from config import CFG
from io_files import (
    items_from_text, rules_from_text, groups_from_text,
    write_report, write_report_html,
)
from models import ConfigurationError, Group, Item, Rule, uniform_groups
from render import render_result

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    start_timer as progress_start,
    set_status, set_phase, set_attempt, set_progress_pct,
    set_item_count, set_elapsed, set_done, set_result_url,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


_REPORT_FULL_PATH, REPORT_DIR, REPORT_FILENAME = _resolve_output_paths(
    CFG.REPORT_OUT, "arrangement.txt"
)
_HTML_FULL_PATH, HTML_DIR, HTML_FILENAME = _resolve_output_paths(
    CFG.REPORT_HTML, "arrangement_view.html"
)

EMPTY_RESULT: Dict[str, Any] = {
    "ok": False,
    "strategy": "error",
    "message": "",
    "score": None,
    "item_count": 0,
    "group_count": 0,
    "restarts": 0,
    "explored": 0,
    "elapsed_str": "0s",
    "table": "",
    "legend": "",
    "report_filename": REPORT_FILENAME,
    "html_filename": HTML_FILENAME,
}

LAST_RESULT: Dict[str, Any] = dict(EMPTY_RESULT)

app = Flask(__name__, static_folder=".", template_folder="templates")


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


@app.route("/")
def index():
    return send_from_directory(BASE_DIR, "arrangement_form.html")


@app.route("/result/latest")
def result_latest():
    return render_template("result.html", **LAST_RESULT)


@app.route("/styles.css")
def styles_css():
    return send_from_directory(BASE_DIR, "styles.css")


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return "0s"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _text_field(file_key: str, text_key: str) -> str:
    """Uploaded CSV file wins over the pasted textarea of the same input."""
    upload = request.files.get(file_key)
    if upload is not None and upload.filename:
        return upload.read().decode("utf-8-sig")
    return request.form.get(text_key, "") or ""


def _int_field(key: str, default: int = 0) -> int:
    raw = (request.form.get(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None


def _timeout_field() -> float:
    raw = (request.form.get("timeout_secs") or "").strip()
    if not raw:
        return float(CFG.WEB_TIMEOUT_SECS)
    try:
        return max(0.0, float(raw))
    except ValueError:
        raise ConfigurationError(f"timeout_secs must be a number, got {raw!r}") from None


def _inputs_from_request() -> Tuple[List[Item], List[Rule], List[Group]]:
    items = items_from_text(_text_field("items_csv", "items_text"))
    rules = rules_from_text(_text_field("rules_csv", "rules_text"))

    groups_text = _text_field("groups_csv", "groups_text")
    if groups_text.strip():
        groups = groups_from_text(groups_text)
    else:
        max_groups = _int_field("max_groups")
        max_size = _int_field("max_size")
        if max_groups <= 0 or max_size <= 0:
            raise ConfigurationError("either a groups CSV or max_groups and max_size are required")
        groups = uniform_groups(max_groups, _int_field("min_size"), max_size)
    return items, rules, groups


def _finalize_arrangement_progress(ok_flag: bool, message: str) -> None:
    """Write the terminal run status without clobbering failure states."""

    set_status("Arranged" if ok_flag else "Error")
    set_done(ok_flag, reason=message)


def _publish(t0: float, **fields: Any) -> Any:
    LAST_RESULT.clear()
    LAST_RESULT.update(EMPTY_RESULT)
    LAST_RESULT.update(fields)
    LAST_RESULT["elapsed_str"] = _fmt_elapsed(time.time() - t0)
    set_result_url(url_for("result_latest"))
    return render_template("result.html", **LAST_RESULT)


@app.route("/arrange", methods=["POST"])
def arrange():
    progress_reset()
    progress_start()

    set_status("Arranging")
    set_phase("setup")
    set_attempt("")
    set_progress_pct(0)

    t0 = time.time()

    try:
        items, rules, groups = _inputs_from_request()
        timeout_secs = _timeout_field()
    except ConfigurationError as e:
        reason = f"Bad input: {e}"
        _finalize_arrangement_progress(False, reason)
        return _publish(t0, strategy=reason, message=reason)

    set_item_count(len(items))

    try:
        result = solve_arrangement(
            items, rules, groups,
            timeout_secs=timeout_secs,
            strategy=(request.form.get("strategy") or None),
        )
    except Exception as e:
        reason = f"arrangement exception: {type(e).__name__}: {e}"
        _finalize_arrangement_progress(False, reason)
        return _publish(
            t0, strategy=reason, message=reason,
            item_count=len(items), group_count=len(groups),
        )

    ok_flag = bool(result.get("ok"))
    message = result.get("note") or result.get("reason") or ("Arranged" if ok_flag else "No arrangement")
    _finalize_arrangement_progress(ok_flag, message)
    set_elapsed(time.time() - t0)

    table = legend = ""
    report_name = REPORT_FILENAME
    html_name = HTML_FILENAME
    arranged: List[Group] = list(result.get("groups") or [])
    if arranged:
        table, legend = render_result(arranged)
        report_name = os.path.basename(write_report(arranged, BASE_DIR)) or REPORT_FILENAME
        html_name = os.path.basename(write_report_html(table, legend, BASE_DIR)) or HTML_FILENAME

    return _publish(
        t0,
        ok=ok_flag,
        strategy=result.get("strategy") if ok_flag else (result.get("reason") or "error"),
        message=message,
        score=result.get("score"),
        item_count=len(items),
        group_count=len(groups),
        restarts=result.get("restarts", 0),
        explored=result.get("explored", 0),
        table=table,
        legend=legend,
        report_filename=report_name,
        html_filename=html_name,
    )


@app.route("/download/report")
def download_report():
    return send_from_directory(REPORT_DIR, REPORT_FILENAME, as_attachment=True)


@app.route("/download/html")
def download_html():
    return send_from_directory(HTML_DIR, HTML_FILENAME, as_attachment=True)


@app.route("/progress")
def progress():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)
