import pytest

from cli import EXIT_ERROR, EXIT_FATAL, EXIT_OK, main

ITEMS_CSV = "ID,Gender\nguy1,m\ngirl1,f\nguy2,m\ngirl2,f\n"
RULES_CSV = "TagName,RuleType,Weight\nGender,Sameness,1\n"


@pytest.fixture
def inputs(tmp_path):
    items = tmp_path / "items.csv"
    items.write_text(ITEMS_CSV, encoding="utf-8")
    rules = tmp_path / "rules.csv"
    rules.write_text(RULES_CSV, encoding="utf-8")
    return str(items), str(rules), tmp_path


def test_arranges_with_uniform_groups(inputs, capsys):
    items, rules, _ = inputs
    code = main(["--items", items, "--rules", rules, "--max-groups", "2", "--max-size", "2"])

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert out.count("---") == 2
    assert "Group 1" in out and "Group 2" in out
    blocks = [b for b in out.split("---") if b.strip()]
    assert all(("guy1" in b) == ("guy2" in b) for b in blocks)


def test_arranges_with_groups_file(inputs, capsys):
    items, rules, tmp_path = inputs
    groups = tmp_path / "groups.csv"
    groups.write_text("GroupName,MinSize,MaxSize\nVan,3,4\nCar,3,4\n", encoding="utf-8")

    code = main(["--items", items, "--rules", rules, "--groups", str(groups), "--strategy", "frontier"])

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "Van" in out and "Car" in out


def test_group_shape_is_required(inputs, capsys):
    items, rules, _ = inputs
    assert main(["--items", items, "--rules", rules]) == EXIT_ERROR
    assert "--max-size" in capsys.readouterr().err


def test_too_few_slots_is_an_error(inputs, capsys):
    items, rules, _ = inputs
    code = main(["--items", items, "--rules", rules, "--max-groups", "1", "--max-size", "3"])
    assert code == EXIT_ERROR
    assert "possible slots" in capsys.readouterr().err


def test_missing_file_is_an_error(inputs, capsys):
    _, rules, tmp_path = inputs
    code = main(["--items", str(tmp_path / "nope.csv"), "--rules", rules, "--max-groups", "2", "--max-size", "2"])
    assert code == EXIT_ERROR
    assert "error reading input" in capsys.readouterr().err


def test_relationship_rule_is_fatal(inputs, capsys):
    items, _, tmp_path = inputs
    rules = tmp_path / "buddy.csv"
    rules.write_text("TagName,RuleType,Weight\nGender,Relationship,1\n", encoding="utf-8")

    code = main(["--items", items, "--rules", str(rules), "--max-groups", "2", "--max-size", "2"])
    assert code == EXIT_FATAL
    assert "fatal" in capsys.readouterr().err
