"""Polygons and (possibly unbounded) convex regions.

A ``Region`` stores its boundary as a counter-clockwise point list in which
the ``INFINITY`` sentinel marks an unbounded stretch. The four points around
a sentinel, ``[p, q, INFINITY, s, t]``, encode two rays: ``p -> q`` leaves
the region towards infinity and ``t -> s`` comes back from it. A region with
no points at all is the whole plane.

Clipping keeps everything convex-friendly: a polygon is clipped against the
box by Sutherland-Hodgman, and a region is clipped by cutting the box with
the supporting line of each of its boundary edges, keeping the side of the
kernel point.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union

from .geometry import (
    BoundingBox, Containment, Point, Ray, Segment,
    as_point, cross,
)

__all__ = ['Polygon', 'Region', 'clip_polygon_halfplane', 'clip_polygon_to_box']


def clip_polygon_halfplane(points: Sequence[Point], a: Point, b: Point) -> List[Point]:
    """Keep the part of a polygon on the left of (or on) the line ``a -> b``."""
    out: List[Point] = []
    n = len(points)
    if n == 0:
        return out
    for i in range(n):
        cur = points[i]
        nxt = points[(i + 1) % n]
        s_cur = cross(a, b, cur)
        s_nxt = cross(a, b, nxt)
        if s_cur >= 0.0:
            out.append(cur)
        if (s_cur > 0.0 and s_nxt < 0.0) or (s_cur < 0.0 and s_nxt > 0.0):
            t = s_cur / (s_cur - s_nxt)
            out.append(Point(cur.x + t * (nxt.x - cur.x), cur.y + t * (nxt.y - cur.y)))
    return _dedupe(out)


def _dedupe(points: List[Point]) -> List[Point]:
    out: List[Point] = []
    for p in points:
        if not out or out[-1] != p:
            out.append(p)
    while len(out) > 1 and out[0] == out[-1]:
        out.pop()
    return out


def clip_polygon_to_box(points: Sequence[Point], box: BoundingBox) -> List[Point]:
    """Sutherland-Hodgman against the four box edges."""
    c = box.corners()
    out = list(points)
    for i in range(4):
        out = clip_polygon_halfplane(out, c[i], c[(i + 1) % 4])
        if not out:
            break
    return out


@dataclass(frozen=True)
class Polygon:
    points: tuple
    color: Optional[str] = field(default=None, compare=False)

    def __init__(self, points: Iterable, color: Optional[str] = None):
        object.__setattr__(self, 'points', tuple(as_point(p) for p in points))
        object.__setattr__(self, 'color', color)

    def __len__(self):
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def edges(self) -> List[Segment]:
        n = len(self.points)
        if n < 2:
            return []
        if n == 2:
            return [Segment(self.points[0], self.points[1])]
        return [Segment(self.points[i], self.points[(i + 1) % n]) for i in range(n)]

    def signed_area(self) -> float:
        """Shoelace area; positive for counter-clockwise vertex order."""
        pts = self.points
        n = len(pts)
        s = 0.0
        for i in range(n):
            p = pts[i]
            q = pts[(i + 1) % n]
            s += p.x * q.y - q.x * p.y
        return 0.5 * s

    def area(self) -> float:
        return abs(self.signed_area())

    def contains(self, p: Point) -> bool:
        """Even-odd rule; points on the outline count as inside."""
        for e in self.edges():
            if e.start == p or (cross(e.start, e.end, p) == 0.0
                                and min(e.start.x, e.end.x) <= p.x <= max(e.start.x, e.end.x)
                                and min(e.start.y, e.end.y) <= p.y <= max(e.start.y, e.end.y)):
                return True
        inside = False
        pts = self.points
        n = len(pts)
        j = n - 1
        for i in range(n):
            xi, yi = pts[i].x, pts[i].y
            xj, yj = pts[j].x, pts[j].y
            if (yi > p.y) != (yj > p.y):
                x_cross = (xj - xi) * (p.y - yi) / (yj - yi) + xi
                if p.x < x_cross:
                    inside = not inside
            j = i
        return inside

    def clip_to(self, box: BoundingBox) -> Optional['Polygon']:
        pts = clip_polygon_to_box(self.points, box)
        if len(pts) < 3:
            return None
        return Polygon(pts, self.color)


class Region:
    """Convex, possibly unbounded, region around a kernel point.

    Attributes
    ----------
    kernel : Point
        A point strictly inside the region (for Voronoi regions, the site).
    points : list of Point
        Counter-clockwise boundary, with ``INFINITY`` sentinels for
        unbounded stretches.
    """

    def __init__(self, kernel: Point, points: Optional[Iterable[Point]] = None,
                 color: Optional[str] = None):
        self.kernel = as_point(kernel)
        self.points: List[Point] = list(points) if points is not None else []
        self.color = color

    def __repr__(self):
        return f'Region(kernel={self.kernel!r}, points={self.points!r})'

    def __len__(self):
        return len(self.points)

    def add(self, p: Point) -> None:
        self.points.append(p)

    def extend(self, pts: Iterable[Point]) -> None:
        self.points.extend(pts)

    def is_open(self) -> bool:
        return not self.points or any(p.is_infinity() for p in self.points)

    def finite_points(self) -> List[Point]:
        return [p for p in self.points if not p.is_infinity()]

    def boundary(self) -> List[Union[Segment, Ray]]:
        """Boundary as segments between consecutive points and rays at the sentinels."""
        pts = self.points
        n = len(pts)
        out: List[Union[Segment, Ray]] = []
        for i in range(n):
            p = pts[i]
            q = pts[(i + 1) % n]
            if p.is_infinity() or q.is_infinity():
                continue
            if pts[(i + 2) % n].is_infinity():
                out.append(Ray.through(p, q, self.color))
            elif pts[(i - 1) % n].is_infinity():
                out.append(Ray.through(q, p, self.color))
            elif p != q:
                out.append(Segment(p, q, self.color))
        return out

    def _cut_lines(self):
        for e in self.boundary():
            a = e.origin
            d = e.direction
            if d[0] == 0.0 and d[1] == 0.0:
                continue
            b = Point(a.x + d[0], a.y + d[1])
            # orient each line so the kernel is on its left
            if cross(a, b, self.kernel) < 0.0:
                a, b = b, a
            yield a, b

    def contains(self, p: Point) -> Containment:
        p = as_point(p)
        result = Containment.INSIDE
        for a, b in self._cut_lines():
            s = cross(a, b, p)
            if s < 0.0:
                return Containment.OUTSIDE
            if s == 0.0:
                result = Containment.BOUNDARY
        return result

    def clip_to(self, box: BoundingBox) -> Optional[Polygon]:
        """The region cut to ``box`` as a polygon, or None when they do not overlap."""
        pts: List[Point] = list(box.corners())
        for a, b in self._cut_lines():
            pts = clip_polygon_halfplane(pts, a, b)
            if len(pts) < 3:
                return None
        return Polygon(pts, self.color)

    def to_polygon(self) -> Polygon:
        """Finite regions only."""
        if self.is_open():
            raise ValueError('cannot turn an open region into a polygon; use clip_to()')
        return Polygon(_dedupe(list(self.points)), self.color)
