import logging

import pytest

from models import Item
from solver.geometry import CoordinateParseError, NearnessIndex, Point, parse_point, spread


def test_parse_point_accepts_padded_pair():
    assert parse_point("38.831076, -77.194633") == Point(38.831076, -77.194633)
    assert parse_point(" 1 ;2", separator=";") == Point(1.0, 2.0)


@pytest.mark.parametrize("text", ["5", "1,2,3", "abc, 1", "1, north", ""])
def test_parse_point_rejects_malformed_values(text):
    with pytest.raises(CoordinateParseError):
        parse_point(text)


def test_spread_is_bounding_box_width_plus_height():
    assert spread([]) == 0
    assert spread([Point(4, 4)]) == 0
    assert spread([Point(0, 0), Point(2, 1), Point(1, 3)]) == pytest.approx(5.0)


def test_spread_never_shrinks_when_points_are_added():
    pts = [Point(0, 0), Point(1, 1)]
    before = spread(pts)
    assert spread(pts + [Point(0.5, 0.5)]) == before
    assert spread(pts + [Point(3, -1)]) > before


def _index(*values, separator=","):
    items = [Item(f"i{n}", {"home": v}) for n, v in enumerate(values)]
    index = NearnessIndex(separator)
    index.populate(items, ["home"])
    return index, items


def test_unparseable_values_are_skipped_with_a_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="solver.geometry"):
        index, items = _index("0, 0", "not a point", "", "4, 0")

    assert index.has_point(items[0], "home")
    assert not index.has_point(items[1], "home")
    assert not index.has_point(items[2], "home")
    assert index.point(items[3], "home") == Point(4.0, 0.0)
    assert "i1" in caplog.text
    assert index.group_spread(items, "home") == (4.0, 2)


def test_max_spread_is_memoized_per_tag():
    index, items = _index("0, 0", "3, 1")
    assert index.max_spread("home") == pytest.approx(4.0)
    assert index.ratio(2.0, "home") == pytest.approx(0.5)

    index._points["home"]["extra"] = Point(100, 100)
    assert index.max_spread("home") == pytest.approx(4.0)


def test_ratio_is_zero_when_every_point_coincides():
    index, _ = _index("1, 1", "1, 1")
    assert index.max_spread("home") == 0
    assert index.ratio(0.0, "home") == 0.0


def test_clear_drops_points_and_spreads():
    index, items = _index("0, 0", "3, 1")
    index.max_spread("home")
    index.clear()
    assert index.tags() == []
    assert index.points_for(items, "home") == []
    assert index.max_spread("home") == 0
