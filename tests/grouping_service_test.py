import pytest

from conftest import diff_flag_map
from diffmap.models.box import Box
from diffmap.models.diff_options import DiffOptions
from diffmap.models.flag_map import DiffState
from diffmap.services.grouping_service import GroupingService

grouping = GroupingService()

SCATTERED = [(2, 2), (3, 2), (10, 3), (2, 12), (14, 14), (15, 9)]


def group(width, height, points, **options):
    flag_map = diff_flag_map(width, height, points)
    result = grouping.group(flag_map, DiffOptions(**options))
    return flag_map, result


def test_no_diff_pixels_no_regions():
    _, result = group(4, 4, [])
    assert result.regions == []
    assert result.group_pixel_count == 0


def test_single_pixel_is_padded_and_clamped():
    flag_map, result = group(4, 4, [(1, 1)], group_padding_size=1, group_border_size=1)
    assert result.regions == [Box(0, 0, 2, 2)]
    assert result.group_pixel_count == 9
    assert flag_map.flags_at(1, 1).state == DiffState.DIFFERENT | DiffState.GROUP
    assert flag_map.flags_at(0, 0).state == DiffState.GROUP | DiffState.BORDER
    assert flag_map.flags_at(2, 1).state == DiffState.GROUP | DiffState.BORDER
    assert flag_map.flags_at(3, 3).state == DiffState.NONE


def test_default_padding_covers_small_image():
    _, result = group(4, 4, [(1, 1)])
    assert result.regions == [Box(0, 0, 3, 3)]
    assert result.group_pixel_count == 16


def test_zero_border_paints_only_fill():
    flag_map, _ = group(5, 5, [(2, 2)], group_padding_size=1, group_border_size=0)
    assert not flag_map.has_state(DiffState.BORDER).any()
    assert flag_map.has_state(DiffState.GROUP).sum() == 9


def test_scan_joins_the_first_region_within_gap():
    # (1, 1) is within 1 pixel of the region opened at (0, 0), not of (2, 0).
    flag_map = diff_flag_map(4, 4, [(0, 0), (2, 0), (1, 1)])
    regions = grouping._scan(flag_map, max_gap=1)
    assert regions == [Box(0, 0, 1, 1), Box(2, 0, 2, 0)]


def test_gap_controls_clustering():
    _, near = group(20, 20, [(0, 0), (5, 0)], group_padding_size=0, group_merge_max_gap_size=5)
    _, far = group(20, 20, [(0, 0), (5, 0)], group_padding_size=0, group_merge_max_gap_size=4)
    assert near.regions == [Box(0, 0, 5, 0)]
    assert far.regions == [Box(0, 0, 0, 0), Box(5, 0, 5, 0)]


def test_padding_merges_nearby_regions():
    _, result = group(20, 20, [(0, 0), (5, 0)], group_padding_size=3, group_merge_max_gap_size=1)
    assert result.regions == [Box(0, 0, 8, 3)]


def test_merge_is_a_single_pass():
    regions = [Box(0, 0, 1, 1), Box(5, 5, 6, 6), Box(1, 1, 5, 5)]
    merged = grouping._merge_overlapping(regions)
    # The third box joins the first; the grown first box now touches the second
    # but is not merged again.
    assert merged == [Box(0, 0, 5, 5), Box(5, 5, 6, 6)]


def test_crossing_boxes_merge():
    merged = grouping._merge_overlapping([Box(0, 2, 6, 3), Box(2, 0, 3, 6)])
    assert merged == [Box(0, 0, 6, 6)]


@pytest.mark.parametrize("padding", [0, 1, 3, 80])
def test_regions_stay_inside_the_image(padding):
    _, result = group(16, 16, SCATTERED, group_padding_size=padding, group_merge_max_gap_size=2)
    for region in result.regions:
        assert 0 <= region.left <= region.right < 16
        assert 0 <= region.top <= region.bottom < 16


def test_more_padding_never_shrinks_or_splits():
    previous = None
    for padding in range(0, 6):
        _, result = group(16, 16, SCATTERED, group_padding_size=padding, group_merge_max_gap_size=2)
        total = sum(region.area for region in result.regions)
        if previous is not None:
            assert len(result.regions) <= previous[0]
            assert min(r.area for r in result.regions) >= previous[1]
            assert total >= previous[2]
        previous = (len(result.regions), min(r.area for r in result.regions), total)


def test_group_count_is_sum_of_region_areas():
    _, result = group(16, 16, SCATTERED, group_padding_size=1, group_merge_max_gap_size=2)
    assert result.group_pixel_count == sum(region.area for region in result.regions)
