"""Planar geometry primitives and predicates.

Points compare equal within ``CLOSE`` so that user input snapped to a pixel
grid still finds the site it refers to. Because that relation is not
transitive, points are deliberately unhashable; containers keyed by
location go through the triangulation's site handles instead.

Edges (``Segment``, ``Ray``, ``Line``) share one intersection routine: each
is an origin plus a direction with a parameter range, and two edges meet
when the solved parameters fall inside both ranges.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from .constants import CLOSE, PARALLEL, EPS_INCIRCLE

__all__ = [
    'Point', 'INFINITY', 'as_point', 'compare_points',
    'Side', 'Containment', 'point_test', 'cross', 'signed_area',
    'incircle', 'in_circumcircle', 'classify_in_triangle',
    'BoundingBox', 'Circle', 'Segment', 'Ray', 'Line', 'Triangle',
    'Edge', 'intersect', 'clip_segment_coords',
    'orientation_array', 'incircle_array',
]


class Point:
    """Immutable 2-D point with epsilon equality.

    ``color`` is carried along for export only and is ignored by equality.
    """

    __slots__ = ('x', 'y', 'color')

    def __init__(self, x: float, y: float, color: Optional[str] = None):
        object.__setattr__(self, 'x', float(x))
        object.__setattr__(self, 'y', float(y))
        object.__setattr__(self, 'color', color)

    def __setattr__(self, name, value):
        raise AttributeError('Point is immutable')

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        if self.is_infinity() or other.is_infinity():
            return self.is_infinity() and other.is_infinity()
        return self.distance(other) < CLOSE

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    __hash__ = None  # epsilon equality is not transitive

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __repr__(self):
        if self.is_infinity():
            return 'Point(inf, inf)'
        return f'Point({self.x:g}, {self.y:g})'

    def is_infinity(self) -> bool:
        return math.isinf(self.x) and math.isinf(self.y)

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def distance(self, other: 'Point') -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def with_color(self, color: Optional[str]) -> 'Point':
        return Point(self.x, self.y, color)


INFINITY = Point(math.inf, math.inf)


def as_point(value: Union[Point, Sequence[float]]) -> Point:
    """Accept a Point or any (x, y) pair."""
    if isinstance(value, Point):
        return value
    x, y = value
    return Point(x, y)


def compare_points(p: Point, q: Point) -> int:
    """Lexicographic order by x, then y. Returns -1, 0 or 1."""
    if p.x < q.x:
        return -1
    if p.x > q.x:
        return 1
    if p.y < q.y:
        return -1
    if p.y > q.y:
        return 1
    return 0


class Side(IntEnum):
    """Position of a point relative to a directed segment a -> b."""
    LEFT = 0
    RIGHT = 1
    ON_EDGE = 2
    BEFORE = 3   # collinear, behind a
    BEHIND = 4   # collinear, beyond b


class Containment(IntEnum):
    OUTSIDE = 0
    INSIDE = 1
    BOUNDARY = 2


def cross(a: Point, b: Point, c: Point) -> float:
    """Twice the signed area of (a, b, c); positive when counter-clockwise."""
    return (b.x - a.x) * (c.y - a.y) - (c.x - a.x) * (b.y - a.y)


def signed_area(a: Point, b: Point, c: Point) -> float:
    return 0.5 * cross(a, b, c)


def point_test(a: Point, b: Point, c: Point) -> Side:
    """Classify ``c`` against the directed segment ``a -> b``.

    Exact zero of the orientation determinant means collinear; collinear
    points are then split by their projection onto the segment.
    """
    area = cross(a, b, c)
    if area > 0.0:
        return Side.LEFT
    if area < 0.0:
        return Side.RIGHT
    dx = b.x - a.x
    dy = b.y - a.y
    if dx > 0.0:
        if c.x < a.x:
            return Side.BEFORE
        if b.x < c.x:
            return Side.BEHIND
        return Side.ON_EDGE
    if dx < 0.0:
        if c.x > a.x:
            return Side.BEFORE
        if b.x > c.x:
            return Side.BEHIND
        return Side.ON_EDGE
    if dy > 0.0:
        if c.y < a.y:
            return Side.BEFORE
        if b.y < c.y:
            return Side.BEHIND
        return Side.ON_EDGE
    if dy < 0.0:
        if c.y > a.y:
            return Side.BEFORE
        if b.y > c.y:
            return Side.BEHIND
        return Side.ON_EDGE
    raise ValueError(f'degenerate segment {a} -> {b}')


def classify_in_triangle(a: Point, b: Point, c: Point, p: Point) -> Containment:
    """Locate ``p`` against triangle (a, b, c) of either orientation."""
    if cross(a, b, c) < 0.0:
        b, c = c, b
    sides = (point_test(a, b, p), point_test(b, c, p), point_test(c, a, p))
    if any(s in (Side.RIGHT, Side.BEFORE, Side.BEHIND) for s in sides):
        return Containment.OUTSIDE
    if all(s == Side.LEFT for s in sides):
        return Containment.INSIDE
    return Containment.BOUNDARY


def incircle(a: Point, b: Point, c: Point, d: Point) -> Tuple[float, float]:
    """In-circle determinant of ``d`` against (a, b, c) and its permanent.

    The determinant is positive when ``d`` lies inside the circle through a
    counter-clockwise (a, b, c). The permanent bounds its rounding error.
    """
    adx, ady = a.x - d.x, a.y - d.y
    bdx, bdy = b.x - d.x, b.y - d.y
    cdx, cdy = c.x - d.x, c.y - d.y
    alift = adx * adx + ady * ady
    blift = bdx * bdx + bdy * bdy
    clift = cdx * cdx + cdy * cdy
    det = (alift * (bdx * cdy - bdy * cdx)
           + blift * (cdx * ady - cdy * adx)
           + clift * (adx * bdy - ady * bdx))
    permanent = (alift * (abs(bdx * cdy) + abs(bdy * cdx))
                 + blift * (abs(cdx * ady) + abs(cdy * adx))
                 + clift * (abs(adx * bdy) + abs(ady * bdx)))
    return det, permanent


def in_circumcircle(a: Point, b: Point, c: Point, d: Point) -> Containment:
    """Robust-ish in-circle test for a counter-clockwise triangle."""
    det, permanent = incircle(a, b, c, d)
    tol = EPS_INCIRCLE * permanent
    if det > tol:
        return Containment.INSIDE
    if det < -tol:
        return Containment.OUTSIDE
    return Containment.BOUNDARY


def orientation_array(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """Vectorised ``cross`` over broadcastable (..., 2) arrays."""
    return ((b[..., 0] - a[..., 0]) * (c[..., 1] - a[..., 1])
            - (c[..., 0] - a[..., 0]) * (b[..., 1] - a[..., 1]))


def incircle_array(a: np.ndarray, b: np.ndarray, c: np.ndarray, d: np.ndarray):
    """Vectorised ``incircle``: returns (det, permanent) arrays."""
    ad = a - d
    bd = b - d
    cd = c - d
    alift = np.einsum('...i,...i->...', ad, ad)
    blift = np.einsum('...i,...i->...', bd, bd)
    clift = np.einsum('...i,...i->...', cd, cd)
    m_bc = bd[..., 0] * cd[..., 1] - bd[..., 1] * cd[..., 0]
    m_ca = cd[..., 0] * ad[..., 1] - cd[..., 1] * ad[..., 0]
    m_ab = ad[..., 0] * bd[..., 1] - ad[..., 1] * bd[..., 0]
    det = alift * m_bc + blift * m_ca + clift * m_ab
    permanent = (alift * (np.abs(bd[..., 0] * cd[..., 1]) + np.abs(bd[..., 1] * cd[..., 0]))
                 + blift * (np.abs(cd[..., 0] * ad[..., 1]) + np.abs(cd[..., 1] * ad[..., 0]))
                 + clift * (np.abs(ad[..., 0] * bd[..., 1]) + np.abs(ad[..., 1] * bd[..., 0])))
    return det, permanent


@dataclass(frozen=True)
class BoundingBox:
    xmin: float
    ymin: float
    xmax: float
    ymax: float

    def __post_init__(self):
        if not (self.xmax > self.xmin and self.ymax > self.ymin):
            raise ValueError(f'empty bounding box {self}')

    @classmethod
    def around(cls, points, margin: float = 0.1, min_size: float = 1.0) -> 'BoundingBox':
        """Smallest box around ``points`` grown by ``margin`` of its size on every side."""
        pts = [as_point(p) for p in points]
        if not pts:
            return cls(0.0, 0.0, min_size, min_size)
        xs = [p.x for p in pts]
        ys = [p.y for p in pts]
        w = max(max(xs) - min(xs), min_size)
        h = max(max(ys) - min(ys), min_size)
        cx = 0.5 * (max(xs) + min(xs))
        cy = 0.5 * (max(ys) + min(ys))
        hw = 0.5 * w * (1.0 + 2.0 * margin)
        hh = 0.5 * h * (1.0 + 2.0 * margin)
        return cls(cx - hw, cy - hh, cx + hw, cy + hh)

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def center(self) -> Point:
        return Point(0.5 * (self.xmin + self.xmax), 0.5 * (self.ymin + self.ymax))

    @property
    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)

    def corners(self) -> Tuple[Point, Point, Point, Point]:
        """Corners in counter-clockwise order starting at (xmin, ymin)."""
        return (Point(self.xmin, self.ymin), Point(self.xmax, self.ymin),
                Point(self.xmax, self.ymax), Point(self.xmin, self.ymax))

    def contains(self, p: Point) -> bool:
        return self.xmin <= p.x <= self.xmax and self.ymin <= p.y <= self.ymax


@dataclass(frozen=True)
class Circle:
    """Circle by centre and radius. Unhashable, like the Point it holds."""
    __hash__ = None

    center: Point
    radius: float
    color: Optional[str] = field(default=None, compare=False)

    @classmethod
    def through(cls, a: Point, b: Point, c: Point) -> 'Circle':
        """Circumcircle of three points; collinear input gives an infinite radius."""
        ax, ay = a.x, a.y
        bx, by = b.x, b.y
        cx, cy = c.x, c.y
        den = 2.0 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))
        if den == 0.0:
            return cls(a, math.inf)
        a2 = ax * ax + ay * ay
        b2 = bx * bx + by * by
        c2 = cx * cx + cy * cy
        ux = (a2 * (by - cy) + b2 * (cy - ay) + c2 * (ay - by)) / den
        uy = (a2 * (cx - bx) + b2 * (ax - cx) + c2 * (bx - ax)) / den
        if not (math.isfinite(ux) and math.isfinite(uy)):
            return cls(a, math.inf)
        center = Point(ux, uy)
        return cls(center, center.distance(a))

    def is_degenerate(self) -> bool:
        return math.isinf(self.radius)

    def contains(self, p: Point) -> Containment:
        if self.is_degenerate():
            return Containment.INSIDE
        d = self.center.distance(p)
        tol = EPS_INCIRCLE * max(self.radius, 1.0)
        if d < self.radius - tol:
            return Containment.INSIDE
        if d > self.radius + tol:
            return Containment.OUTSIDE
        return Containment.BOUNDARY

    def with_color(self, color: Optional[str]) -> 'Circle':
        return Circle(self.center, self.radius, color)


def _solve(p0: Point, d0: Tuple[float, float], p1: Point, d1: Tuple[float, float]):
    """Parameters (m, n) with p0 + m*d0 == p1 + n*d1, or None when parallel."""
    det = d1[0] * d0[1] - d0[0] * d1[1]
    if abs(det) < PARALLEL:
        return None
    rx = p1.x - p0.x
    ry = p1.y - p0.y
    m = (d1[0] * ry - rx * d1[1]) / det
    n = (d0[0] * ry - rx * d0[1]) / det
    return m, n


def _within(value: float, lo: float, hi: float) -> bool:
    return lo <= value <= hi


def _gradient(dx: float, dy: float) -> float:
    """Angle of a direction measured from +x, in [0, 2*pi)."""
    angle = math.atan2(dy, dx)
    return angle + 2.0 * math.pi if angle < 0.0 else angle


class _EdgeMixin:
    """Shared behaviour of the three edge kinds."""

    # parameter range along ``direction`` for which the edge exists
    _lo = 0.0
    _hi = 1.0

    def _param_form(self):
        return self.origin, self.direction, self._lo, self._hi

    def point_test(self, p: Point) -> Side:
        o, d, _, _ = self._param_form()
        return point_test(o, Point(o.x + d[0], o.y + d[1]), p)

    def gradient(self) -> float:
        d = self.direction
        return _gradient(d[0], d[1])

    def intersect(self, other: 'Edge') -> Optional[Point]:
        return intersect(self, other)


@dataclass(frozen=True)
class Segment(_EdgeMixin):
    """Closed segment between two points. Unhashable, like Point."""
    __hash__ = None

    start: Point
    end: Point
    color: Optional[str] = field(default=None, compare=False)

    @property
    def origin(self) -> Point:
        return self.start

    @property
    def direction(self) -> Tuple[float, float]:
        return (self.end.x - self.start.x, self.end.y - self.start.y)

    def length(self) -> float:
        return self.start.distance(self.end)

    def midpoint(self) -> Point:
        return Point(0.5 * (self.start.x + self.end.x), 0.5 * (self.start.y + self.end.y))

    def clip_to(self, box: BoundingBox) -> Optional['Segment']:
        res = clip_segment_coords(self.start.x, self.start.y, self.end.x, self.end.y, box)
        if res is None:
            return None
        return Segment(Point(res[0], res[1]), Point(res[2], res[3]), self.color)


@dataclass(frozen=True)
class Ray(_EdgeMixin):
    """Half-line from ``start`` towards ``(dx, dy)``. Unhashable, like Point."""
    __hash__ = None

    start: Point
    dx: float
    dy: float
    color: Optional[str] = field(default=None, compare=False)
    _hi = math.inf

    @classmethod
    def through(cls, start: Point, towards: Point, color: Optional[str] = None) -> 'Ray':
        return cls(start, towards.x - start.x, towards.y - start.y, color)

    @property
    def origin(self) -> Point:
        return self.start

    @property
    def direction(self) -> Tuple[float, float]:
        return (self.dx, self.dy)

    def point_at(self, distance: float) -> Point:
        """Point ``distance`` away from the start along the ray."""
        norm = math.hypot(self.dx, self.dy)
        if norm == 0.0:
            return self.start
        s = distance / norm
        return Point(self.start.x + s * self.dx, self.start.y + s * self.dy)

    def clip_to(self, box: BoundingBox) -> Optional[Segment]:
        if self.dx == 0.0 and self.dy == 0.0:
            return None
        reach = 2.0 * (self.start.distance(box.center) + box.diagonal)
        end = self.point_at(reach)
        return Segment(self.start, end, self.color).clip_to(box)


@dataclass(frozen=True)
class Line(_EdgeMixin):
    """Infinite line through ``origin`` with direction ``(dx, dy)``. Unhashable, like Point."""
    __hash__ = None

    origin: Point
    dx: float
    dy: float
    color: Optional[str] = field(default=None, compare=False)
    _lo = -math.inf
    _hi = math.inf

    @classmethod
    def through(cls, a: Point, b: Point, color: Optional[str] = None) -> 'Line':
        return cls(a, b.x - a.x, b.y - a.y, color)

    @property
    def direction(self) -> Tuple[float, float]:
        return (self.dx, self.dy)

    def clip_to(self, box: BoundingBox) -> Optional[Segment]:
        norm = math.hypot(self.dx, self.dy)
        if norm == 0.0:
            return None
        reach = 2.0 * (self.origin.distance(box.center) + box.diagonal) / norm
        a = Point(self.origin.x - reach * self.dx, self.origin.y - reach * self.dy)
        b = Point(self.origin.x + reach * self.dx, self.origin.y + reach * self.dy)
        return Segment(a, b, self.color).clip_to(box)


Edge = Union[Segment, Ray, Line]


def intersect(e0: Edge, e1: Edge) -> Optional[Point]:
    """Intersection point of two edges, or None when they miss or are parallel."""
    p0, d0, lo0, hi0 = e0._param_form()
    p1, d1, lo1, hi1 = e1._param_form()
    sol = _solve(p0, d0, p1, d1)
    if sol is None:
        return None
    m, n = sol
    if not (_within(m, lo0, hi0) and _within(n, lo1, hi1)):
        return None
    return Point(p0.x + m * d0[0], p0.y + m * d0[1])


@dataclass(frozen=True)
class Triangle:
    """Triangle of three points. Unhashable, like Point."""
    __hash__ = None

    a: Point
    b: Point
    c: Point
    color: Optional[str] = field(default=None, compare=False)

    def signed_area(self) -> float:
        return signed_area(self.a, self.b, self.c)

    def contains(self, p: Point) -> Containment:
        return classify_in_triangle(self.a, self.b, self.c, p)

    def circumcircle(self) -> Circle:
        return Circle.through(self.a, self.b, self.c)

    def centroid(self) -> Point:
        return Point((self.a.x + self.b.x + self.c.x) / 3.0, (self.a.y + self.b.y + self.c.y) / 3.0)

    def vertices(self) -> Tuple[Point, Point, Point]:
        return (self.a, self.b, self.c)


# Cohen-Sutherland outcodes
_INSIDE, _LEFT, _RIGHT, _BOTTOM, _TOP = 0, 1, 2, 4, 8


def _outcode(x: float, y: float, box: BoundingBox) -> int:
    code = _INSIDE
    if x < box.xmin:
        code |= _LEFT
    elif x > box.xmax:
        code |= _RIGHT
    if y < box.ymin:
        code |= _BOTTOM
    elif y > box.ymax:
        code |= _TOP
    return code


def clip_segment_coords(x1: float, y1: float, x2: float, y2: float, box: BoundingBox):
    """Cohen-Sutherland clipping; returns (x1, y1, x2, y2) or None when outside."""
    c1 = _outcode(x1, y1, box)
    c2 = _outcode(x2, y2, box)
    while True:
        if not (c1 | c2):
            return x1, y1, x2, y2
        if c1 & c2:
            return None
        code = c1 or c2
        if code & _TOP:
            x = x1 + (x2 - x1) * (box.ymax - y1) / (y2 - y1)
            y = box.ymax
        elif code & _BOTTOM:
            x = x1 + (x2 - x1) * (box.ymin - y1) / (y2 - y1)
            y = box.ymin
        elif code & _RIGHT:
            y = y1 + (y2 - y1) * (box.xmax - x1) / (x2 - x1)
            x = box.xmax
        else:
            y = y1 + (y2 - y1) * (box.xmin - x1) / (x2 - x1)
            x = box.xmin
        if code == c1:
            x1, y1 = x, y
            c1 = _outcode(x1, y1, box)
        else:
            x2, y2 = x, y
            c2 = _outcode(x2, y2, box)
