"""Triangle storage for the incremental Delaunay triangulation.

Triangles live in an arena and refer to each other (and to their sites) by
integer handles, which keeps the cyclic neighbour graph free of object
cycles and makes a rebuild a matter of dropping one list.

Every triangle is either *real* (three distinct sites, counter-clockwise)
or a *halfplane*: the unbounded face outside one convex-hull edge, stored as
``(a, b, a)``. For a halfplane the outside of the hull is on the LEFT of
``a -> b``; ``n_ab`` is the real triangle (or, while all sites are
collinear, the twin halfplane) across the hull edge, ``n_bc`` the next hull
halfplane in clockwise order and ``n_ca`` the previous one.
"""
from __future__ import annotations

from typing import Iterator, List, Optional

from .errors import MeshConsistencyError
from .geometry import (
    Circle, Containment, Point, Side, Triangle,
    classify_in_triangle, in_circumcircle, point_test,
)

__all__ = ['MeshTriangle', 'TriangleArena']


class MeshTriangle:
    __slots__ = ('a', 'b', 'c', 'n_ab', 'n_bc', 'n_ca', 'halfplane', 'circle')

    def __init__(self, a: int, b: int, c: int, halfplane: bool = False):
        self.a = a
        self.b = b
        self.c = c
        self.n_ab: Optional[int] = None
        self.n_bc: Optional[int] = None
        self.n_ca: Optional[int] = None
        self.halfplane = halfplane
        self.circle: Optional[Circle] = None

    def __repr__(self):
        kind = 'H' if self.halfplane else 'T'
        return f'{kind}({self.a}, {self.b}, {self.c})'

    def has_vertex(self, site: int) -> bool:
        return site == self.a or site == self.b or site == self.c


class TriangleArena:
    """Handle-addressed triangle store with a free list.

    ``sites`` is the triangulation's site list; the arena only reads it to
    evaluate predicates and circumcircles.
    """

    def __init__(self, sites: List[Point]):
        self.sites = sites
        self._slots: List[Optional[MeshTriangle]] = []
        self._free: List[int] = []

    def __getitem__(self, h: int) -> MeshTriangle:
        t = self._slots[h]
        if t is None:
            raise MeshConsistencyError(f'triangle handle {h} was released')
        return t

    def __len__(self):
        return len(self._slots) - len(self._free)

    def handles(self) -> Iterator[int]:
        for h, t in enumerate(self._slots):
            if t is not None:
                yield h

    def _store(self, t: MeshTriangle) -> int:
        if self._free:
            h = self._free.pop()
            self._slots[h] = t
            return h
        self._slots.append(t)
        return len(self._slots) - 1

    def new_triangle(self, a: int, b: int, c: int) -> int:
        t = MeshTriangle(a, b, c)
        t.circle = self._circle(a, b, c)
        return self._store(t)

    def new_halfplane(self, a: int, b: int) -> int:
        return self._store(MeshTriangle(a, b, a, halfplane=True))

    def release(self, h: int) -> None:
        self._slots[h] = None
        self._free.append(h)

    def _circle(self, a: int, b: int, c: int) -> Circle:
        s = self.sites
        return Circle.through(s[a], s[b], s[c])

    # Vertex updates keep the cached circumcircle in sync

    def set_a(self, h: int, site: int) -> None:
        t = self[h]
        t.a = site
        if t.halfplane:
            t.c = site
        else:
            t.circle = self._circle(t.a, t.b, t.c)

    def set_b(self, h: int, site: int) -> None:
        t = self[h]
        t.b = site
        if not t.halfplane:
            t.circle = self._circle(t.a, t.b, t.c)

    def set_c(self, h: int, site: int) -> None:
        t = self[h]
        t.c = site
        t.circle = self._circle(t.a, t.b, t.c)

    def extend(self, h: int, site: int) -> None:
        """Turn halfplane (a, b, a) into the real triangle (a, b, site)."""
        t = self[h]
        t.c = site
        t.halfplane = False
        t.circle = self._circle(t.a, t.b, t.c)

    # Predicates

    def point_in_triangle(self, h: int, p: Point) -> Containment:
        t = self[h]
        s = self.sites
        if t.halfplane:
            side = point_test(s[t.a], s[t.b], p)
            if side == Side.LEFT:
                return Containment.INSIDE
            if side == Side.RIGHT:
                return Containment.OUTSIDE
            return Containment.BOUNDARY
        return classify_in_triangle(s[t.a], s[t.b], s[t.c], p)

    def point_in_circumcircle(self, h: int, p: Point) -> bool:
        """Strictly inside the circumcircle; degenerate triangles contain everything.

        For a halfplane the "circle" is the open side right of ``a -> b``.
        """
        t = self[h]
        s = self.sites
        if t.halfplane:
            return point_test(s[t.a], s[t.b], p) == Side.RIGHT
        if t.circle is not None and t.circle.is_degenerate():
            return True
        return in_circumcircle(s[t.a], s[t.b], s[t.c], p) == Containment.INSIDE

    # Topology

    def neighbour(self, h: int, site: int) -> int:
        """Next triangle counter-clockwise around ``site``."""
        t = self[h]
        if t.a == site:
            return t.n_ca
        if t.b == site:
            return t.n_ab
        if t.c == site:
            return t.n_bc
        raise MeshConsistencyError(f'site {site} is not a vertex of {t!r}')

    def previous(self, h: int, site: int) -> int:
        """Next triangle clockwise around ``site``."""
        t = self[h]
        if t.a == site:
            return t.n_ab
        if t.b == site:
            return t.n_bc
        if t.c == site:
            return t.n_ca
        raise MeshConsistencyError(f'site {site} is not a vertex of {t!r}')

    def replace_neighbour(self, h: int, old: int, new: int) -> None:
        t = self[h]
        if t.n_ab == old:
            t.n_ab = new
        elif t.n_bc == old:
            t.n_bc = new
        elif t.n_ca == old:
            t.n_ca = new
        else:
            raise MeshConsistencyError(f'{t!r} ({h}) has no neighbour {old}')

    def slot_of(self, h: int, neighbour: int) -> str:
        """Name of the edge slot ('ab', 'bc' or 'ca') of ``h`` pointing at ``neighbour``."""
        t = self[h]
        if t.n_ab == neighbour:
            return 'ab'
        if t.n_bc == neighbour:
            return 'bc'
        if t.n_ca == neighbour:
            return 'ca'
        raise MeshConsistencyError(f'{t!r} ({h}) has no neighbour {neighbour}')

    def nearest_vertex(self, h: int, p: Point) -> int:
        t = self[h]
        s = self.sites
        best = t.a
        best_d = s[t.a].distance(p)
        for v in (t.b, t.c):
            d = s[v].distance(p)
            if d < best_d:
                best, best_d = v, d
        return best

    def shape(self, h: int) -> Triangle:
        t = self[h]
        s = self.sites
        return Triangle(s[t.a], s[t.b], s[t.c])
