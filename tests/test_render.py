from models import Group, Item
from render import render_report, render_result

GROUPS = [
    Group("Van", 0, 3, [Item("ann", {"Church": "first", "Gender": "f"}), Item("bob", {"Gender": "m"})]),
    Group("Car <2>", 0, 2),
]


def test_report_lists_groups_and_members():
    assert render_report(GROUPS) == (
        "---\n"
        "Van\n"
        "    - ann (Church=first Gender=f)\n"
        "    - bob (Gender=m)\n"
        "---\n"
        "Car <2>\n"
    )


def test_result_table_escapes_and_marks_empty_groups():
    table, legend = render_result(GROUPS)
    assert "<th>Church</th><th>Gender</th>" in table
    assert "Car &lt;2&gt;" in table
    assert "<em>empty</em>" in table
    assert table.count("<td>ann</td>") == 1
    assert legend.count("<li>") == 2


def test_group_colours_are_stable():
    first, _ = render_result(GROUPS)
    second, _ = render_result(list(reversed(GROUPS)))
    van_colour = first.split('<tr style="background:')[1].split('"')[0]
    assert f'background:{van_colour}"><td>Van' in second
