# config.py
import os

# ======= Search strategy =======
# auto = local search with restarts, frontier search as a rescue phase
STRATEGY = os.getenv("GA_STRATEGY", "auto").strip().lower()

# ======= Time budgets (seconds, 0 = no deadline) =======
TIMEOUT_SECS     = float(os.getenv("GA_TIMEOUT_SECS", "0"))
WEB_TIMEOUT_SECS = float(os.getenv("GA_WEB_TIMEOUT_SECS", "30"))

# ======= Search caps =======
MAX_RESTARTS        = int(os.getenv("GA_MAX_RESTARTS", "0"))
FRONTIER_NODE_LIMIT = int(os.getenv("GA_FRONTIER_NODE_LIMIT", "2000000"))
# auto: inputs up to this many items also get an exact frontier pass
REFINE_MAX_ITEMS    = int(os.getenv("GA_REFINE_MAX_ITEMS", "8"))

# ======= Progress publishing =======
PROGRESS_EVERY = int(os.getenv("GA_PROGRESS_EVERY", "25"))

# ======= Nearness tags =======
# "38.83, -77.19" -> two components split on this separator
COORD_SEPARATOR = os.getenv("GA_COORD_SEPARATOR", ",")

# ======= Output names =======
REPORT_OUT  = os.getenv("GA_REPORT_OUT", "arrangement.txt")
REPORT_HTML = os.getenv("GA_REPORT_HTML", "arrangement_view.html")

STRATEGIES = ("auto", "local", "frontier")


class CFG:
    STRATEGY = STRATEGY

    TIMEOUT_SECS     = TIMEOUT_SECS
    WEB_TIMEOUT_SECS = WEB_TIMEOUT_SECS

    MAX_RESTARTS        = MAX_RESTARTS
    FRONTIER_NODE_LIMIT = FRONTIER_NODE_LIMIT
    REFINE_MAX_ITEMS    = REFINE_MAX_ITEMS

    PROGRESS_EVERY = PROGRESS_EVERY

    COORD_SEPARATOR = COORD_SEPARATOR

    REPORT_OUT  = REPORT_OUT
    REPORT_HTML = REPORT_HTML


__all__ = ["CFG", "STRATEGIES"]
