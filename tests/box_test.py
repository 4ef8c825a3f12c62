import pytest

from diffmap.models.box import Box, abs_box, box_intersect, fit_box


def test_point_box_has_unit_area():
    box = Box.point(3, 4)
    assert (box.width, box.height, box.area) == (1, 1, 1)


def test_extended_to_never_shrinks():
    box = Box(2, 2, 4, 4).extended_to(3, 3)
    assert box == Box(2, 2, 4, 4)
    assert Box(2, 2, 4, 4).extended_to(0, 6) == Box(0, 2, 4, 6)


def test_expanded_does_not_clamp():
    assert Box(0, 0, 1, 1).expanded(2) == Box(-2, -2, 3, 3)


def test_contains_is_inclusive():
    box = Box(1, 1, 3, 3)
    assert box.contains(1, 3)
    assert not box.contains(4, 2)


def test_union():
    assert Box(0, 0, 1, 1).union(Box(3, -1, 4, 0)) == Box(0, -1, 4, 1)


def test_abs_box_from_relative_mapping():
    assert abs_box({"left": 2, "top": 3, "width": 4, "height": 1}) == Box(2, 3, 5, 3)
    assert abs_box({"left": 1, "top": 1, "right": 2, "bottom": 2}) == Box(1, 1, 2, 2)


def test_fit_box_grows_and_clamps():
    assert fit_box(4, 4, Box.point(1, 1), 1) == Box(0, 0, 2, 2)
    assert fit_box(4, 4, Box.point(1, 1), 80) == Box(0, 0, 3, 3)
    assert fit_box(10, 10, Box(2, 2, 3, 3)) == Box(2, 2, 3, 3)


@pytest.mark.parametrize("a, b, expected", [
    (Box(0, 0, 2, 2), Box(2, 2, 4, 4), True),    # shared corner pixel
    (Box(0, 0, 2, 2), Box(3, 0, 4, 2), False),   # adjacent, no shared pixel
    (Box(0, 2, 6, 3), Box(2, 0, 3, 6), True),    # crossing, no corner inside the other
    (Box(0, 0, 6, 6), Box(2, 2, 3, 3), True),    # contained
])
def test_box_intersect(a, b, expected):
    assert box_intersect(a, b) is expected
    assert box_intersect(b, a) is expected
