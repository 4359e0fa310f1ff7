"""Curvature-adaptive flattening of cubic Bézier curves.

A Subdivider turns one cubic Bézier segment into a polyline whose vertices
stay within a distance tolerance of the curve. Segments are split at t=0.5
(De Casteljau) until one of the stopping rules fires:

    - distance: interior control points close enough to the chord
    - angle: accumulated turning angle below angle_tolerance
    - cusp: a single turn sharper than cusp_limit (vertex emitted at the turn)
    - degenerate chord: curve midpoint close to the chord midpoint
    - depth: recursion_limit exceeded (branch dropped, no vertex)

The tolerance is resolution-relative: distance_tolerance = (path_epsilon / scale)²,
so a larger display scale yields a finer polyline.

Invariants:
    - output[0] == start and output[-1] == end exactly
    - interior vertices appear in increasing curve-parameter order
    - segment depth never exceeds recursion_limit (+1 for dropped branches)
    - no exception for any numeric input; NaN/inf propagate into the output

Usage:
    from bezier_flatten.subdivision import make_subdivider

    flatten = make_subdivider({"angleTolerance": 0.2, "cuspLimit": 2.5})
    points = flatten((0, 0), (0, 50), (50, 100), (100, 100), scale=2.0)

The subdivision runs on an explicit work stack, so the host recursion limit
plays no part regardless of recursion_limit.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..utils.geometry import Point, as_point
from ..utils.validators import SubdividerConfig, resolve_subdivider_config

logger = logging.getLogger(__name__)

# (x1, y1, x2, y2, x3, y3, x4, y4, depth)
_Segment = Tuple[float, float, float, float, float, float, float, float, int]


class Branch(str, Enum):
    """Outcome of visiting one segment."""
    SPLIT = "split"
    DEPTH_LIMIT = "depth_limit"
    DISTANCE = "distance"
    ANGLE = "angle"
    CUSP = "cusp"
    COLLINEAR_ANGLE = "collinear_angle"
    COLLINEAR_CUSP = "collinear_cusp"
    DEGENERATE = "degenerate"


@dataclass(frozen=True, slots=True)
class SubdivisionEvent:
    """One visited segment: its depth, the rule that fired, and what it emitted."""

    depth: int
    branch: Branch
    emitted: Tuple[Point, ...] = ()


def _wrap_angle(a: float) -> float:
    """Fold an absolute angle difference from [0, 2π) into [0, π]."""
    if a >= math.pi:
        return 2.0 * math.pi - a
    return a


class Subdivider:
    """Reusable cubic Bézier flattener with a fixed configuration.

    Parameters
    ----------
    config : SubdividerConfig
        Resolved options; see make_subdivider() for partial options.

    Notes
    -----
    Instances hold no per-call state and are safe to share between threads
    as long as each call gets its own output list.
    """

    __slots__ = ('_config',)

    def __init__(self, config: SubdividerConfig):
        object.__setattr__(self, '_config', config)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._config!r})"

    @property
    def config(self) -> SubdividerConfig:
        return self._config

    def distance_tolerance(self, scale: float = 1.0) -> float:
        """Squared distance tolerance at a display scale.

        A zero scale gives an infinite tolerance (every segment below
        the root is flat).
        """
        if scale == 0:
            return math.inf
        ratio = self._config.path_epsilon / scale
        return ratio * ratio

    def __call__(
        self,
        start: Any,
        control1: Any,
        control2: Any,
        end: Any,
        scale: float = 1.0,
        output: Optional[List[Point]] = None
    ) -> List[Point]:
        return self.flatten(start, control1, control2, end, scale, output)

    def flatten(
        self,
        start: Any,
        control1: Any,
        control2: Any,
        end: Any,
        scale: float = 1.0,
        output: Optional[List[Point]] = None
    ) -> List[Point]:
        """Append the flattened polyline of one cubic segment to ``output``.

        Parameters
        ----------
        start, control1, control2, end : point-like
            Control points; anything indexable as ``p[0], p[1]``
        scale : float
            Display scale; larger values tighten the tolerance
        output : list, optional
            Existing list to append to (e.g. to chain several curves);
            a new list is created when omitted

        Returns
        -------
        list[Point]
            ``output`` itself, now ending with the flattened curve
        """
        if output is None:
            output = []
        self._run(start, control1, control2, end, scale, output, None)
        return output

    def trace(
        self,
        start: Any,
        control1: Any,
        control2: Any,
        end: Any,
        scale: float = 1.0
    ) -> Tuple[List[Point], List[SubdivisionEvent]]:
        """Flatten one segment and record every visited sub-segment.

        Returns
        -------
        points : list[Point]
            Same vertices flatten() produces
        events : list[SubdivisionEvent]
            One event per visited sub-segment, in visiting order
        """
        points: List[Point] = []
        events: List[SubdivisionEvent] = []
        self._run(start, control1, control2, end, scale, points, events)
        return points, events

    def flatten_path(
        self,
        segments: Iterable[Sequence[Any]],
        scale: float = 1.0,
        output: Optional[List[Point]] = None
    ) -> List[Point]:
        """Flatten a chain of cubic segments into one polyline.

        Each segment is a (start, control1, control2, end) sequence. When a
        segment starts exactly where the previous one ended, the shared
        vertex is written once; otherwise the segment simply follows.
        """
        if output is None:
            output = []

        previous_end: Optional[Point] = None
        for segment in segments:
            p1, c1, c2, p2 = segment
            piece = self.flatten(p1, c1, c2, p2, scale)
            if previous_end is not None and piece[0] == previous_end:
                output.extend(piece[1:])
            else:
                output.extend(piece)
            previous_end = piece[-1]
        return output

    def _run(
        self,
        start: Any,
        control1: Any,
        control2: Any,
        end: Any,
        scale: float,
        output: List[Point],
        events: Optional[List[SubdivisionEvent]]
    ) -> None:
        p1 = as_point(start)
        c1 = as_point(control1)
        c2 = as_point(control2)
        p2 = as_point(end)
        tolerance = self.distance_tolerance(scale)

        output.append(p1)
        truncated = self._subdivide(
            (p1[0], p1[1], c1[0], c1[1], c2[0], c2[1], p2[0], p2[1], 0),
            tolerance, output, events
        )
        output.append(p2)

        if truncated:
            logger.debug(
                f"recursion_limit={self._config.recursion_limit} reached on "
                f"{truncated} branch(es); polyline coarser than tolerance there"
            )

    def _subdivide(
        self,
        root: _Segment,
        tolerance: float,
        output: List[Point],
        events: Optional[List[SubdivisionEvent]]
    ) -> int:
        """Process the segment tree depth-first, left child before right.

        Returns the number of branches dropped by the depth guard.
        """
        limit = self._config.recursion_limit
        truncated = 0
        stack: List[_Segment] = [root]

        while stack:
            x1, y1, x2, y2, x3, y3, x4, y4, depth = stack.pop()

            if depth > limit:
                truncated += 1
                if events is not None:
                    events.append(SubdivisionEvent(depth, Branch.DEPTH_LIMIT))
                continue

            # Mid-points of the control polygon (De Casteljau at t=0.5)
            x12, y12 = (x1 + x2) / 2, (y1 + y2) / 2
            x23, y23 = (x2 + x3) / 2, (y2 + y3) / 2
            x34, y34 = (x3 + x4) / 2, (y3 + y4) / 2
            x123, y123 = (x12 + x23) / 2, (y12 + y23) / 2
            x234, y234 = (x23 + x34) / 2, (y23 + y34) / 2
            x1234, y1234 = (x123 + x234) / 2, (y123 + y234) / 2

            # The root is always split at least once
            if depth > 0:
                branch, emitted = self._stop_rule(
                    x1, y1, x2, y2, x3, y3, x4, y4, x1234, y1234, tolerance
                )
                if branch is not Branch.SPLIT:
                    output.extend(emitted)
                    if events is not None:
                        events.append(SubdivisionEvent(depth, branch, emitted))
                    continue

            if events is not None:
                events.append(SubdivisionEvent(depth, Branch.SPLIT))

            # LIFO: push the right half first so the left half is emitted first
            stack.append((x1234, y1234, x234, y234, x34, y34, x4, y4, depth + 1))
            stack.append((x1, y1, x12, y12, x123, y123, x1234, y1234, depth + 1))

        return truncated

    def _stop_rule(
        self,
        x1: float, y1: float,
        x2: float, y2: float,
        x3: float, y3: float,
        x4: float, y4: float,
        xm: float, ym: float,
        tolerance: float
    ) -> Tuple[Branch, Tuple[Point, ...]]:
        """Decide whether a segment is flat enough and which vertices to emit.

        Deviations d2, d3 are the unnormalized distances of the control
        points from the chord (2D cross products with the chord vector), so
        the flatness tests compare against tolerance·|chord|².
        """
        cfg = self._config
        eps = cfg.float_epsilon

        dx = x4 - x1
        dy = y4 - y1
        d2 = abs((x2 - x4) * dy - (y2 - y4) * dx)
        d3 = abs((x3 - x4) * dy - (y3 - y4) * dx)

        if d2 > eps and d3 > eps:
            if (d2 + d3) * (d2 + d3) <= tolerance * (dx * dx + dy * dy):
                if not cfg.angle_enabled:
                    return Branch.DISTANCE, ((xm, ym),)

                a23 = math.atan2(y3 - y2, x3 - x2)
                da1 = _wrap_angle(abs(a23 - math.atan2(y2 - y1, x2 - x1)))
                da2 = _wrap_angle(abs(math.atan2(y4 - y3, x4 - x3) - a23))

                if da1 + da2 < cfg.angle_tolerance:
                    return Branch.ANGLE, ((xm, ym),)

                if cfg.cusp_enabled:
                    if da1 > cfg.cusp_limit:
                        return Branch.CUSP, ((x2, y2),)
                    if da2 > cfg.cusp_limit:
                        return Branch.CUSP, ((x3, y3),)

        elif d2 > eps:
            # p1, c2, p2 collinear; only c1 deviates
            if d2 * d2 <= tolerance * (dx * dx + dy * dy):
                if not cfg.angle_enabled:
                    return Branch.DISTANCE, ((xm, ym),)

                da1 = _wrap_angle(abs(
                    math.atan2(y3 - y2, x3 - x2) - math.atan2(y2 - y1, x2 - x1)
                ))
                if da1 < cfg.angle_tolerance:
                    return Branch.COLLINEAR_ANGLE, ((x2, y2), (x3, y3))
                if cfg.cusp_enabled and da1 > cfg.cusp_limit:
                    return Branch.COLLINEAR_CUSP, ((x2, y2),)

        elif d3 > eps:
            # p1, c1, p2 collinear; only c2 deviates
            if d3 * d3 <= tolerance * (dx * dx + dy * dy):
                if not cfg.angle_enabled:
                    return Branch.DISTANCE, ((xm, ym),)

                da1 = _wrap_angle(abs(
                    math.atan2(y4 - y3, x4 - x3) - math.atan2(y3 - y2, x3 - x2)
                ))
                if da1 < cfg.angle_tolerance:
                    return Branch.COLLINEAR_ANGLE, ((x2, y2), (x3, y3))
                if cfg.cusp_enabled and da1 > cfg.cusp_limit:
                    return Branch.COLLINEAR_CUSP, ((x3, y3),)

        else:
            # All four points collinear, chord possibly of zero length:
            # compare against the raw tolerance, not tolerance·|chord|²
            ex = xm - (x1 + x4) / 2
            ey = ym - (y1 + y4) / 2
            if ex * ex + ey * ey <= tolerance:
                return Branch.DEGENERATE, ((xm, ym),)

        return Branch.SPLIT, ()


def make_subdivider(
    options: Union[SubdividerConfig, Mapping[str, Any], None] = None,
    **overrides: Any
) -> Subdivider:
    """Build a Subdivider, filling unset options with defaults.

    Parameters
    ----------
    options : SubdividerConfig | Mapping | None
        Partial options; snake_case (``angle_tolerance``) or camelCase
        (``angleTolerance``) keys
    **overrides
        Individual options, applied on top of ``options``

    Returns
    -------
    Subdivider
        Immutable, reusable flattener

    Raises
    ------
    pydantic.ValidationError
        Unknown option names or out-of-range values

    Examples
    --------
    >>> flatten = make_subdivider(recursion_limit=10, path_epsilon=0.5)
    >>> flatten((0, 0), (0, 50), (50, 100), (100, 100))[0]
    (0.0, 0.0)
    """
    config = resolve_subdivider_config(options, **overrides)
    logger.debug(f"Subdivider created: {config.model_dump()}")
    return Subdivider(config)
