"""Geometric helpers for points, cubic Béziers and polylines.

Provides:
    - Point coercion: as_point() copies any 2-indexable value to a float tuple
    - Cubic Bézier evaluation (scalar and vectorized sampling)
    - Polyline operations: length, bbox, deviation from the source curve
    - Conversion of point lists to numpy arrays / torch tensors

Used by:
    - Subdivider: point coercion of caller-supplied control points
    - flatten_curves.py: per-curve quality report (max deviation)
    - Tests: endpoint, bbox and tolerance checks

Points are plain (x, y) float tuples everywhere in the core; arrays and
tensors only appear at the conversion boundary.
"""

import math
from typing import Any, Iterable, List, Sequence, Tuple

import numpy as np
import torch

Point = Tuple[float, float]


def as_point(value: Any) -> Point:
    """Copy a 2-indexable value (tuple, list, ndarray, tensor) to a float tuple.

    Non-finite coordinates are copied unchanged.
    """
    return (float(value[0]), float(value[1]))


def bezier_cubic_eval(p1: Point, p2: Point, p3: Point, p4: Point, t: float) -> Point:
    """Evaluate cubic Bézier curve at parameter t.

    Notes
    -----
    Standard cubic Bézier formula:
    B(t) = (1-t)³·p1 + 3(1-t)²t·p2 + 3(1-t)t²·p3 + t³·p4
    """
    mt = 1.0 - t
    b0 = mt * mt * mt
    b1 = 3.0 * mt * mt * t
    b2 = 3.0 * mt * t * t
    b3 = t * t * t
    return (
        b0 * p1[0] + b1 * p2[0] + b2 * p3[0] + b3 * p4[0],
        b0 * p1[1] + b1 * p2[1] + b2 * p3[1] + b3 * p4[1],
    )


def bezier_cubic_sample(
    p1: Point,
    p2: Point,
    p3: Point,
    p4: Point,
    samples: int = 256
) -> np.ndarray:
    """Sample a cubic Bézier at evenly spaced parameters.

    Parameters
    ----------
    p1, p2, p3, p4 : Point
        Control points
    samples : int
        Number of parameter values in [0, 1], inclusive, must be ≥ 2

    Returns
    -------
    np.ndarray
        Curve points, shape (samples, 2), float64
    """
    if samples < 2:
        raise ValueError(f"samples must be >= 2, got {samples}")

    t = np.linspace(0.0, 1.0, samples)[:, None]
    mt = 1.0 - t
    ctrl = np.asarray([p1, p2, p3, p4], dtype=np.float64)
    return (
        (mt ** 3) * ctrl[0]
        + 3.0 * (mt ** 2) * t * ctrl[1]
        + 3.0 * mt * (t ** 2) * ctrl[2]
        + (t ** 3) * ctrl[3]
    )


def polyline_length(points: Sequence[Point]) -> float:
    """Sum of Euclidean distances between consecutive points (0 for < 2 points)."""
    total = 0.0
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        total += math.hypot(x1 - x0, y1 - y0)
    return total


def polyline_bbox(points: Sequence[Point]) -> Tuple[float, float, float, float]:
    """Axis-aligned bounding box (xmin, ymin, xmax, ymax).

    Returns (0, 0, 0, 0) for an empty polyline.
    """
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)

    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


def point_segment_distances(pts: np.ndarray, polyline: np.ndarray) -> np.ndarray:
    """Distance from each point to the nearest segment of a polyline.

    Parameters
    ----------
    pts : np.ndarray
        Query points, shape (M, 2)
    polyline : np.ndarray
        Polyline vertices, shape (N, 2), N ≥ 1

    Returns
    -------
    np.ndarray
        Minimum distances, shape (M,)
    """
    if polyline.shape[0] == 1:
        return np.linalg.norm(pts - polyline[0], axis=1)

    a = polyline[:-1][None, :, :]  # (1, S, 2)
    ab = (polyline[1:] - polyline[:-1])[None, :, :]
    ap = pts[:, None, :] - a  # (M, S, 2)

    denom = np.sum(ab * ab, axis=-1)
    # Zero-length segments collapse to their start vertex
    safe = np.where(denom > 0.0, denom, 1.0)
    t = np.clip(np.sum(ap * ab, axis=-1) / safe, 0.0, 1.0)
    t = np.where(denom > 0.0, t, 0.0)

    closest = a + t[..., None] * ab
    dist = np.linalg.norm(pts[:, None, :] - closest, axis=-1)
    return dist.min(axis=1)


def max_deviation(
    points: Sequence[Point],
    p1: Point,
    p2: Point,
    p3: Point,
    p4: Point,
    samples: int = 256
) -> float:
    """Largest distance from the sampled curve to the flattened polyline.

    Quality metric for a flattening result: how far the true curve strays
    from the emitted line segments.
    """
    curve = bezier_cubic_sample(p1, p2, p3, p4, samples)
    return float(point_segment_distances(curve, polyline_to_array(points)).max())


def polyline_to_array(points: Iterable[Point]) -> np.ndarray:
    """Stack points into a float64 array of shape (N, 2)."""
    arr = np.asarray(list(points), dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    return arr.reshape(-1, 2)


def polyline_to_tensor(
    points: Iterable[Point],
    dtype: torch.dtype = torch.float32,
    device: Any = None
) -> torch.Tensor:
    """Stack points into a tensor of shape (N, 2) for tensor-based renderers."""
    return torch.as_tensor(polyline_to_array(points), dtype=dtype, device=device)


def polyline_from_tensor(points: torch.Tensor) -> List[Point]:
    """Inverse of polyline_to_tensor: (N, 2) tensor → list of float tuples."""
    if points.ndim != 2 or points.shape[-1] != 2:
        raise ValueError(f"Expected (N, 2) tensor, got shape {tuple(points.shape)}")
    return [(float(x), float(y)) for x, y in points.detach().cpu().tolist()]
