import html
import random
from typing import Dict, List, Tuple

from models import Group


def _color(name: str) -> str:
    # seeded per name so a group keeps its colour across runs and processes
    rng = random.Random(name)
    r = rng.randint(120, 230)
    g = rng.randint(120, 230)
    b = rng.randint(120, 230)
    return f"rgb({r},{g},{b})"


def _tag_text(tags: Dict[str, str]) -> str:
    return " ".join(sorted(f"{k}={v}" for k, v in tags.items()))


def render_report(groups: List[Group]) -> str:
    lines: List[str] = []
    for group in groups:
        lines.append("---")
        lines.append(group.name)
        for item in group.items:
            lines.append(f"    - {item.id} ({_tag_text(item.tags)})")
    return "\n".join(lines) + "\n"


def render_result(groups: List[Group]) -> Tuple[str, str]:
    palette: Dict[str, str] = {}
    for group in groups:
        palette.setdefault(group.name, _color(group.name))

    tag_names = sorted({k for g in groups for it in g.items for k in it.tags})
    head = "".join(f"<th>{html.escape(t)}</th>" for t in tag_names)

    rows = []
    for group in groups:
        colour = palette[group.name]
        label = (
            f"{html.escape(group.name)} "
            f"<small>({len(group.items)} of {group.min_size}–{group.max_size})</small>"
        )
        if not group.items:
            rows.append(
                f'<tr style="background:{colour}"><td>{label}</td>'
                f'<td colspan="{len(tag_names) + 1}"><em>empty</em></td></tr>'
            )
            continue
        for item in group.items:
            cells = "".join(f"<td>{html.escape(item.tags.get(t, ''))}</td>" for t in tag_names)
            rows.append(
                f'<tr style="background:{colour}"><td>{label}</td>'
                f"<td>{html.escape(item.id)}</td>{cells}</tr>"
            )
    table = (
        '<table class="arrangement-table">'
        f"<thead><tr><th>Group</th><th>ID</th>{head}</tr></thead>"
        f'<tbody>{"".join(rows)}</tbody></table>'
    )

    legend = "".join(
        f"<li><span class='swatch' style='background:{c}'></span>{html.escape(n)}</li>"
        for n, c in palette.items()
    )
    return table, legend
