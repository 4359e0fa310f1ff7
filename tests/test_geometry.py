"""Test geometric helpers.

Tests for bezier_flatten.utils.geometry:
    - Point coercion from tuples, arrays and tensors
    - Cubic Bézier evaluation at t=0, 0.5, 1 and vectorized sampling
    - Polyline length and bounding box (incl. empty / single point)
    - Point-to-polyline distances and max deviation of a flattening
    - numpy / torch conversion

Run:
    pytest tests/test_geometry.py -v
"""

import numpy as np
import pytest
import torch

from bezier_flatten import make_subdivider
from bezier_flatten.utils import geometry


S_CURVE = ((0.0, 0.0), (0.0, 50.0), (50.0, 100.0), (100.0, 100.0))


def test_as_point_copies_values():
    assert geometry.as_point((1, 2)) == (1.0, 2.0)
    assert geometry.as_point([3.5, -4]) == (3.5, -4.0)
    assert geometry.as_point(np.array([5.0, 6.0])) == (5.0, 6.0)
    assert geometry.as_point(torch.tensor([7.0, 8.0])) == (7.0, 8.0)
    assert all(isinstance(v, float) for v in geometry.as_point(np.array([1, 2])))


def test_bezier_cubic_eval():
    """Endpoints at t=0/1, symmetric blend at t=0.5."""
    assert geometry.bezier_cubic_eval(*S_CURVE, 0.0) == (0.0, 0.0)
    assert geometry.bezier_cubic_eval(*S_CURVE, 1.0) == (100.0, 100.0)

    mid = geometry.bezier_cubic_eval(*S_CURVE, 0.5)
    assert mid == pytest.approx((31.25, 68.75))


def test_bezier_cubic_sample():
    pts = geometry.bezier_cubic_sample(*S_CURVE, samples=5)
    assert pts.shape == (5, 2)
    np.testing.assert_allclose(pts[0], S_CURVE[0])
    np.testing.assert_allclose(pts[-1], S_CURVE[3])
    np.testing.assert_allclose(pts[2], geometry.bezier_cubic_eval(*S_CURVE, 0.5))


def test_bezier_cubic_sample_rejects_single_sample():
    with pytest.raises(ValueError):
        geometry.bezier_cubic_sample(*S_CURVE, samples=1)


def test_polyline_length():
    assert geometry.polyline_length([(0.0, 0.0), (3.0, 4.0), (3.0, 10.0)]) == pytest.approx(11.0)
    assert geometry.polyline_length([(1.0, 1.0)]) == 0.0
    assert geometry.polyline_length([]) == 0.0


def test_polyline_bbox():
    pts = [(10.0, 20.0), (50.0, 60.0), (30.0, 40.0)]
    assert geometry.polyline_bbox(pts) == (10.0, 20.0, 50.0, 60.0)


def test_polyline_bbox_single_point():
    xmin, ymin, xmax, ymax = geometry.polyline_bbox([(25.0, 35.0)])
    assert xmin == xmax == 25.0
    assert ymin == ymax == 35.0


def test_polyline_bbox_empty():
    assert geometry.polyline_bbox([]) == (0.0, 0.0, 0.0, 0.0)


def test_flattened_bbox_within_control_hull():
    pts = make_subdivider()(*S_CURVE)
    xmin, ymin, xmax, ymax = geometry.polyline_bbox(pts)
    assert xmin >= 0.0 and ymin >= 0.0
    assert xmax <= 100.0 and ymax <= 100.0


def test_point_segment_distances():
    polyline = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0]])
    queries = np.array([[5.0, 3.0], [12.0, 5.0], [-4.0, 3.0]])
    dist = geometry.point_segment_distances(queries, polyline)
    np.testing.assert_allclose(dist, [3.0, 2.0, 5.0])


def test_point_segment_distances_zero_length_segment():
    polyline = np.array([[1.0, 1.0], [1.0, 1.0]])
    dist = geometry.point_segment_distances(np.array([[4.0, 5.0]]), polyline)
    np.testing.assert_allclose(dist, [5.0])


def test_max_deviation_tightens_with_scale():
    subdivider = make_subdivider()
    coarse = subdivider(*S_CURVE, scale=1.0)
    fine = subdivider(*S_CURVE, scale=4.0)

    dev_coarse = geometry.max_deviation(coarse, *S_CURVE)
    dev_fine = geometry.max_deviation(fine, *S_CURVE)

    assert dev_coarse < 2.0
    assert dev_fine <= dev_coarse


def test_max_deviation_of_straight_line_is_zero():
    line = ((0.0, 0.0), (1.0, 1.0), (2.0, 2.0), (3.0, 3.0))
    pts = make_subdivider()(*line)
    assert geometry.max_deviation(pts, *line) == pytest.approx(0.0, abs=1e-12)


def test_polyline_to_array():
    arr = geometry.polyline_to_array([(1.0, 2.0), (3.0, 4.0)])
    assert arr.shape == (2, 2)
    assert arr.dtype == np.float64
    assert geometry.polyline_to_array([]).shape == (0, 2)


def test_polyline_tensor_roundtrip():
    pts = make_subdivider()(*S_CURVE)
    t = geometry.polyline_to_tensor(pts, dtype=torch.float64)

    assert t.shape == (len(pts), 2)
    assert t.dtype == torch.float64
    assert geometry.polyline_from_tensor(t) == pts


def test_polyline_to_tensor_default_dtype():
    t = geometry.polyline_to_tensor([(0.5, 1.5)])
    assert t.dtype == torch.float32
    assert torch.equal(t, torch.tensor([[0.5, 1.5]]))


def test_polyline_from_tensor_rejects_bad_shape():
    with pytest.raises(ValueError):
        geometry.polyline_from_tensor(torch.zeros(3, 3))
