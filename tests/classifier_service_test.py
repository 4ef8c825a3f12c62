from itertools import permutations

import numpy as np
import pytest

from conftest import solid
from diffmap.exceptions import InvalidInputError
from diffmap.models.diff_options import DiffOptions
from diffmap.models.flag_map import DiffState, FlagMap, Significance, Similarity
from diffmap.services.classifier_service import ClassifierService
from diffmap.services.color_service import DISTANCE_SCALE, DISTANCE_WEIGHT_Y

classifier = ClassifierService()


def classify(images, options=None, **kwargs):
    flag_map = FlagMap.create(images[0].width, images[0].height)
    result = classifier.classify(images, flag_map, options, **kwargs)
    return flag_map, result


def test_identical_images_are_identical_background(black_4x4):
    flag_map, result = classify([black_4x4, black_4x4.copy()])
    counts = result.pixel_counts
    assert (counts.all, counts.compared, counts.diff) == (16, 0, 0)
    assert counts.significance == {"foreground": 0, "background": 16, "antialias": 0}
    assert counts.similarity["identical"]["all"] == 16
    assert counts.similarity["identical"]["background"] == 16
    assert not flag_map.has_state(DiffState.DIFFERENT).any()


def test_one_flipped_pixel(one_pixel_pair):
    flag_map, result = classify(list(one_pixel_pair))
    counts = result.pixel_counts
    assert counts.diff == 1
    # The flipped pixel and its four diagonal neighbours see high contrast.
    assert counts.compared == 5
    assert counts.significance == {"foreground": 5, "background": 11, "antialias": 0}
    assert counts.similarity["changed"] == {"all": 1, "foreground": 1, "background": 0, "antialias": 0}
    assert counts.similarity["identical"]["foreground"] == 4
    assert list(zip(*np.nonzero(flag_map.has_state(DiffState.DIFFERENT)))) == [(1, 1)]
    assert flag_map.flags_at(1, 1) == (Similarity.CHANGED, Significance.FOREGROUND, DiffState.DIFFERENT)
    assert flag_map.flags_at(0, 0).significance == Significance.FOREGROUND
    assert flag_map.flags_at(3, 0).significance == Significance.BACKGROUND


def test_category_gates_decide_what_is_compared(one_pixel_pair):
    options = DiffOptions(diff_include_foreground=False)
    flag_map, result = classify(list(one_pixel_pair), options)
    assert result.compared == 0
    assert result.diff == 0
    assert flag_map.similarity[1, 1] == Similarity.CHANGED

    options = DiffOptions(diff_include_background=True)
    _, result = classify(list(one_pixel_pair), options)
    assert result.compared == 16
    assert result.diff == 1


def test_dim_dot_is_antialias_and_similar(grey_centre_pair):
    flag_map, result = classify(list(grey_centre_pair))
    assert flag_map.flags_at(1, 1) == (Similarity.SIMILAR, Significance.ANTIALIAS, DiffState.NONE)
    assert result.significance_counts == {"foreground": 0, "background": 4, "antialias": 5}
    assert result.similarity_counts["similar"] == {"all": 1, "foreground": 0, "background": 0, "antialias": 1}
    assert result.compared == 0


def test_low_changed_threshold_turns_similar_into_changed(grey_centre_pair):
    options = DiffOptions(changed_min_distance=0.1, diff_include_antialias=True)
    flag_map, result = classify(list(grey_centre_pair), options)
    assert flag_map.flags_at(1, 1).similarity == Similarity.CHANGED
    assert result.diff == 1


def test_categories_do_not_depend_on_image_order(random_images):
    reference, _ = classify(random_images)
    for ordering in permutations(random_images):
        flag_map, _ = classify(list(ordering))
        np.testing.assert_array_equal(flag_map.similarity, reference.similarity)
        np.testing.assert_array_equal(flag_map.significance, reference.significance)


def test_diagnostic_maps_depend_on_image_order(grey_centre_pair):
    before, after = grey_centre_pair

    def diagnostics(images):
        distance_map, contrast_map = np.zeros((3, 3)), np.zeros((3, 3))
        classify(images, distance_map=distance_map, contrast_map=contrast_map)
        return distance_map[1, 1], contrast_map[1, 1]

    distance, contrast = diagnostics([before, after])
    assert distance == pytest.approx(DISTANCE_WEIGHT_Y * 110 * 110 / DISTANCE_SCALE, rel=1e-6)
    assert contrast == pytest.approx(110, rel=1e-6)

    distance, contrast = diagnostics([after, before])
    assert distance == pytest.approx(DISTANCE_WEIGHT_Y * 100 * 100 / DISTANCE_SCALE, rel=1e-6)
    assert contrast == pytest.approx(100, rel=1e-6)


def test_foreground_stops_inspection_of_later_images(one_pixel_pair):
    before, after = one_pixel_pair
    distance_map = np.full((4, 4), -1.0)
    classify([after, before], distance_map=distance_map)
    # Decided by the first image; the flat black image never overwrites it.
    assert distance_map[1, 1] > 200

    inspection = classifier.inspect_pixel([after, before], 1, 1)
    assert len(inspection.per_image) == 1
    inspection = classifier.inspect_pixel([before, after], 1, 1)
    assert [s.significance for s in inspection.per_image] == [Significance.BACKGROUND, Significance.FOREGROUND]


def test_inspect_pixel_agrees_with_classify(random_images):
    options = DiffOptions(diff_include_antialias=True)
    flag_map, _ = classify(random_images, options)
    for x, y in random_images[0].iterate_all():
        inspection = classifier.inspect_pixel(random_images, x, y, options)
        flags = flag_map.flags_at(x, y)
        assert inspection.similarity == flags.similarity
        assert inspection.significance == flags.significance
        assert inspection.different == bool(flags.state & DiffState.DIFFERENT)


def test_inspect_pixel_rejects_out_of_bounds(black_4x4):
    with pytest.raises(InvalidInputError):
        classifier.inspect_pixel([black_4x4, black_4x4], 4, 0)


def test_needs_two_images(black_4x4):
    with pytest.raises(InvalidInputError):
        classify([black_4x4])


def test_images_must_share_dimensions(black_4x4):
    with pytest.raises(InvalidInputError):
        classifier.classify([black_4x4, solid(4, 5)], FlagMap.create(4, 4))


def test_flag_map_must_match_images(black_4x4):
    with pytest.raises(InvalidInputError):
        classifier.classify([black_4x4, black_4x4], FlagMap.create(3, 4))
