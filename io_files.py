"""Reading arrangement inputs from CSV and writing the reports to disk."""

from __future__ import annotations

import csv
import io
import os
from typing import Iterable, List, Sequence

from config import CFG
from models import ConfigurationError, Group, Item, Rule, parse_rule_type
from render import render_report


# ---------- readers ----------

def _records(rows: Iterable[Sequence[str]], source: str) -> List[List[str]]:
    records = [list(r) for r in rows]
    if not records:
        raise ConfigurationError(f"at least a header row is required in {source}")
    return records


def _required(row: dict, column: str, source: str) -> str:
    value = str(row.get(column) or "").strip()
    if not value:
        raise ConfigurationError(f"{source}: every row needs a {column}")
    return value


def _to_int(value: str, column: str, source: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"{source}: {column} must be an integer, got {value!r}") from None


def items_from_rows(rows: Iterable[Sequence[str]], source: str = "items") -> List[Item]:
    records = _records(rows, source)
    # first column is the ID, the rest are tag names
    column_names = [c.strip() for c in records[0][1:]]
    items: List[Item] = []
    for record in records[1:]:
        if not record or not str(record[0]).strip():
            continue
        tags = {name: value for name, value in zip(column_names, record[1:])}
        items.append(Item(str(record[0]).strip(), tags))
    return items


def rules_from_rows(rows: Iterable[Sequence[str]], source: str = "rules") -> List[Rule]:
    records = _records(rows, source)
    column_names = [c.strip() for c in records[0]]
    rules: List[Rule] = []
    for record in records[1:]:
        if not any(str(v).strip() for v in record):
            continue
        row = dict(zip(column_names, record))
        rules.append(Rule(
            tag_name=_required(row, "TagName", source),
            type=parse_rule_type(row.get("RuleType", "")),
            weight=_to_int(row.get("Weight", ""), "Weight", source),
        ))
    return rules


def groups_from_rows(rows: Iterable[Sequence[str]], source: str = "groups") -> List[Group]:
    records = _records(rows, source)
    column_names = [c.strip() for c in records[0]]
    groups: List[Group] = []
    for record in records[1:]:
        if not any(str(v).strip() for v in record):
            continue
        row = dict(zip(column_names, record))
        groups.append(Group(
            name=_required(row, "GroupName", source),
            min_size=_to_int(row.get("MinSize", "0") or "0", "MinSize", source),
            max_size=_to_int(row.get("MaxSize", ""), "MaxSize", source),
        ))
    return groups


def _read_rows(path: str) -> List[List[str]]:
    with open(path, "r", encoding="utf-8-sig", newline="") as fh:
        return list(csv.reader(fh))


def _text_rows(text: str) -> List[List[str]]:
    return list(csv.reader(io.StringIO(text or "")))


def read_items_from_csv(path: str) -> List[Item]:
    return items_from_rows(_read_rows(path), path)


def read_rules_from_csv(path: str) -> List[Rule]:
    return rules_from_rows(_read_rows(path), path)


def read_groups_from_csv(path: str) -> List[Group]:
    return groups_from_rows(_read_rows(path), path)


def items_from_text(text: str) -> List[Item]:
    return items_from_rows(_text_rows(text), "uploaded items")


def rules_from_text(text: str) -> List[Rule]:
    return rules_from_rows(_text_rows(text), "uploaded rules")


def groups_from_text(text: str) -> List[Group]:
    return groups_from_rows(_text_rows(text), "uploaded groups")


# ---------- writers ----------

def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def write_report(groups: List[Group], base_dir: str) -> str:
    """Write the plain-text arrangement report to the configured file."""

    path = _resolve_output_path(base_dir, CFG.REPORT_OUT, "arrangement.txt")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(render_report(groups) if groups else "No arrangement\n")
    return path


def write_report_html(table_html: str, legend_html: str, base_dir: str) -> str:
    """Write the rendered group table/legend preview to the configured HTML file."""

    path = _resolve_output_path(base_dir, CFG.REPORT_HTML, "arrangement_view.html")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as vf:
        vf.write(
            f"""<!doctype html>
<html><head><meta charset='utf-8'><title>Arrangement View</title>
<link rel='stylesheet' href='/styles.css'></head>
<body class='container'>
<h1>Arrangement View</h1>
<section class='card'>{table_html}</section>
<section class='card'><h3>Legend</h3><ul>{legend_html}</ul></section>
</body></html>"""
        )
    return path


__all__ = [
    "items_from_rows", "rules_from_rows", "groups_from_rows",
    "read_items_from_csv", "read_rules_from_csv", "read_groups_from_csv",
    "items_from_text", "rules_from_text", "groups_from_text",
    "write_report", "write_report_html",
]
