"""Dynamic Delaunay triangulation of planar point sites.

Sites are inserted one at a time. While all sites are collinear the
structure is a ring of paired halfplanes sorted along the line; once a site
off the line arrives, real triangles appear and every later insertion is a
point-location walk, a local split (or a hull extension), and Lawson edge
flips around the new site. Deletion and moving are implemented as a rebuild
from the site list.

The structure is single-threaded; callers that share one instance between
threads must serialise access.
"""
from __future__ import annotations

from typing import Callable, Iterable, Iterator, List, Optional, Set

import numpy as np

from .config import TriangulationConfig
from .errors import DuplicateSiteError, MeshConsistencyError
from .geometry import (
    Containment, Point, Side, Triangle,
    as_point, compare_points, point_test,
)
from .logging_utils import get_logger
from .mesh import MeshTriangle, TriangleArena

__all__ = ['DelaunayTriangulation']


class DelaunayTriangulation:
    """Incremental Delaunay triangulation with halfplane hull sentinels.

    Sites are addressed by *handles*: their index in the insertion-ordered
    site list. Handles stay valid until the next ``delete``, ``move`` or
    ``clear``. Triangles are addressed by arena handles (see
    :mod:`delvor.core.mesh`).

    Example:
        >>> dt = DelaunayTriangulation()
        >>> for p in [(0, 0), (10, 0), (0, 10)]:
        ...     _ = dt.insert(p)
        >>> dt.is_collinear()
        False
    """

    def __init__(self, config: Optional[TriangulationConfig] = None):
        self.config = config or TriangulationConfig()
        self.logger = get_logger('delvor.delaunay')
        self._sites: List[Point] = []
        self._rebuilding = False
        self._reset_structure()

    def _reset_structure(self) -> None:
        self._mesh = TriangleArena(self._sites)
        self._collinear = True
        self._first: Optional[int] = None        # any triangle incident to the latest site
        self._first_hull: Optional[int] = None   # some hull halfplane
        # collinear bookkeeping: sorted end sites and the halfplanes at both ends
        self._first_site: Optional[int] = None
        self._last_site: Optional[int] = None
        self._first_col: Optional[int] = None
        self._last_col: Optional[int] = None

    # ------------------------------------------------------------------
    # Read-only views

    @property
    def mesh(self) -> TriangleArena:
        return self._mesh

    @property
    def first_triangle(self) -> Optional[int]:
        return self._first

    @property
    def first_hull_triangle(self) -> Optional[int]:
        return self._first_hull

    def __len__(self):
        return len(self._sites)

    def __repr__(self):
        return (f'{self.__class__.__name__}(sites={len(self._sites)}, '
                f'triangles={len(self.real_triangles())}, collinear={self._collinear})')

    def size(self) -> int:
        return len(self._sites)

    def points(self) -> Iterator[Point]:
        """Sites in insertion order."""
        return iter(list(self._sites))

    def site(self, handle: int) -> Point:
        return self._sites[handle]

    def is_collinear(self) -> bool:
        return self._collinear

    def points_array(self) -> np.ndarray:
        """Sites as an (N, 2) float64 array, row i is site handle i."""
        if not self._sites:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array([(p.x, p.y) for p in self._sites], dtype=np.float64)

    def triangles_array(self) -> np.ndarray:
        """Real triangles as an (M, 3) int32 array of site handles, counter-clockwise."""
        m = self._mesh
        rows = [(m[h].a, m[h].b, m[h].c) for h in self.real_triangles()]
        if not rows:
            return np.zeros((0, 3), dtype=np.int32)
        return np.array(rows, dtype=np.int32)

    def site_handle(self, point) -> Optional[int]:
        """Handle of the site within ``CLOSE`` of ``point`` (the nearest one), else None."""
        p = as_point(point)
        if not self._sites:
            return None
        coords = self.points_array()
        d = np.hypot(coords[:, 0] - p.x, coords[:, 1] - p.y)
        idx = int(np.argmin(d))
        return idx if self._sites[idx] == p else None

    def contains(self, point) -> bool:
        return self.site_handle(point) is not None

    def find_near(self, x: float, y: float, radius: float) -> Optional[Point]:
        """Nearest site within ``radius`` of (x, y), or None."""
        if not self._sites:
            return None
        coords = self.points_array()
        d = np.hypot(coords[:, 0] - x, coords[:, 1] - y)
        idx = int(np.argmin(d))
        return self._sites[idx] if d[idx] <= radius else None

    # ------------------------------------------------------------------
    # Mutation

    def insert(self, point) -> int:
        """Insert a site and return its handle.

        Raises DuplicateSiteError (leaving the structure untouched) when a
        site within ``CLOSE`` already exists.
        """
        p = as_point(point)
        if not p.is_finite():
            raise ValueError(f'cannot insert non-finite point {p}')
        if self.site_handle(p) is not None:
            self.logger.debug('rejecting duplicate site %s', p)
            raise DuplicateSiteError(p)
        s = len(self._sites)
        n = s + 1
        # locate before the site is recorded so a failed walk leaves no trace
        t = self.locate(p) if n >= 3 and not self._collinear else None
        self._sites.append(p)
        if n == 1:
            self._first_site = s
        elif n == 2:
            self._start(s)
        elif self._collinear:
            self._insert_collinear(s)
        else:
            if self._mesh[t].halfplane:
                self._first = self._extend_hull(t, s)
            else:
                self._first = self._split_triangle(t, s)
        if n >= 3 and not self._collinear:
            self._legalize(self._first, s)
        self.logger.debug('inserted site %d at %s', s, p)
        if self.config.validate_after_mutation and not self._rebuilding:
            self._validate()
        return s

    def extend(self, points: Iterable) -> List[int]:
        """Insert several sites; duplicates are skipped and logged."""
        handles = []
        for p in points:
            try:
                handles.append(self.insert(p))
            except DuplicateSiteError as exc:
                self.logger.warning('skipping duplicate site %s', exc.point)
        return handles

    def delete(self, point) -> bool:
        """Remove the site matching ``point``; False when there is none."""
        h = self.site_handle(point)
        if h is None:
            return False
        removed = self._sites.pop(h)
        self.logger.debug('deleted site %s', removed)
        self.rebuild()
        return True

    def move(self, point, x: float, y: float) -> bool:
        """Move a site to (x, y).

        Returns False (nothing changes) when ``point`` is not a site or the
        target coincides with an existing site, including the moved one.
        """
        h = self.site_handle(point)
        if h is None:
            return False
        target = Point(x, y, self._sites[h].color)
        if not target.is_finite():
            raise ValueError(f'cannot move a site to non-finite {target}')
        if self.site_handle(target) is not None:
            self.logger.debug('move of %s to %s blocked by an existing site', self._sites[h], target)
            return False
        self._sites[h] = target
        self.rebuild()
        return True

    def clear(self) -> None:
        self._sites.clear()
        self._reset_structure()

    def rebuild(self) -> None:
        """Rebuild the triangulation from the current site list, in order.

        If an insertion fails with anything but a duplicate, the full site
        list is restored before the error propagates so that a later
        ``rebuild()`` can retry; the mesh is left empty until then.
        """
        old = list(self._sites)
        self._sites = []
        self._reset_structure()
        self._rebuilding = True
        try:
            for p in old:
                try:
                    self.insert(p)
                except DuplicateSiteError as exc:
                    self.logger.warning('dropping site %s during rebuild: %s', p, exc)
        except Exception:
            self._sites = old
            self._reset_structure()
            raise
        finally:
            self._rebuilding = False
        self.logger.debug('rebuilt triangulation with %d sites', len(self._sites))
        if self.config.validate_after_mutation:
            self._validate()

    def _validate(self) -> None:
        from .diagnostics import assert_valid
        assert_valid(self)

    # ------------------------------------------------------------------
    # Point location

    def _walk_limit(self) -> int:
        cfg = self.config
        return cfg.walk_step_factor * max(len(self._mesh), 1) + cfg.walk_step_slack

    def locate(self, point, start: Optional[int] = None, site: Optional[int] = None) -> Optional[int]:
        """Walk from ``start`` to a triangle containing ``point``.

        The result is a real triangle containing the point (interior or
        boundary) or a halfplane whose open outside contains it. With
        ``site`` the walk also stops at any triangle having that site as a
        vertex. Returns None when there are fewer than two sites.
        """
        m = self._mesh
        p = as_point(point)
        t = self._first if start is None else start
        if t is None:
            return None
        for _ in range(self._walk_limit()):
            tri = m[t]
            if site is not None and tri.has_vertex(site):
                return t
            if m.point_in_triangle(t, p) != Containment.OUTSIDE:
                return t
            s = self._sites
            if tri.halfplane:
                if point_test(s[tri.a], s[tri.b], p) != Side.RIGHT:
                    raise MeshConsistencyError(f'walk for {p} stuck at {tri!r}')
                t = tri.n_ab
            elif point_test(s[tri.a], s[tri.b], p) == Side.RIGHT:
                t = tri.n_ab
            elif point_test(s[tri.b], s[tri.c], p) == Side.RIGHT:
                t = tri.n_bc
            elif point_test(s[tri.c], s[tri.a], p) == Side.RIGHT:
                t = tri.n_ca
            else:
                raise MeshConsistencyError(f'walk for {p} left the mesh at {tri!r}')
        raise MeshConsistencyError(f'point-location walk for {p} did not terminate')

    def incident_triangle(self, site: int) -> int:
        """Some triangle (real or halfplane) having ``site`` as a vertex."""
        m = self._mesh
        t = self.locate(self._sites[site], site=site)
        if t is not None and m[t].has_vertex(site):
            return t
        # the walk can settle on a non-incident halfplane when the site lies on a hull line
        fallback = None
        for h in m.handles():
            tri = m[h]
            if tri.has_vertex(site):
                if not tri.halfplane:
                    return h
                fallback = h if fallback is None else fallback
        if fallback is None:
            raise MeshConsistencyError(f'site {site} has no incident triangle')
        return fallback

    # ------------------------------------------------------------------
    # Traversal

    def traverse(self) -> List[int]:
        """Handles of all triangles, halfplanes included, in depth-first order."""
        if self._first is None:
            return []
        m = self._mesh
        seen: Set[int] = set()
        order: List[int] = []
        stack = [self._first]
        while stack:
            h = stack.pop()
            if h in seen:
                continue
            seen.add(h)
            order.append(h)
            t = m[h]
            for n in (t.n_ca, t.n_bc, t.n_ab):
                if n is not None and n not in seen:
                    stack.append(n)
        return order

    def visit_triangles(self, visitor: Callable[[int, MeshTriangle], None]) -> Set[int]:
        """Call ``visitor(handle, triangle)`` once per triangle; returns the visited handles."""
        visited: Set[int] = set()
        for h in self.traverse():
            visitor(h, self._mesh[h])
            visited.add(h)
        return visited

    def real_triangles(self) -> List[int]:
        m = self._mesh
        return [h for h in self.traverse() if not m[h].halfplane]

    def triangles(self) -> List[Triangle]:
        """Real triangles as coordinate triangles."""
        return [self._mesh.shape(h) for h in self.real_triangles()]

    def hull_ring(self) -> List[int]:
        """Hull halfplanes in counter-clockwise order (walking ``n_ca``)."""
        if self._first_hull is None:
            return []
        m = self._mesh
        ring = []
        t = self._first_hull
        for _ in range(len(m) + 1):
            ring.append(t)
            t = m[t].n_ca
            if t == self._first_hull:
                return ring
        raise MeshConsistencyError('hull ring is not closed')

    def describe(self) -> str:
        """Multi-line dump of every triangle with its neighbours, for debugging."""
        m = self._mesh
        lines = [repr(self)]
        for h in self.traverse():
            t = m[h]
            lines.append(f'  {h}: {t!r} ab={t.n_ab} bc={t.n_bc} ca={t.n_ca}')
        return '\n'.join(lines)

    # ------------------------------------------------------------------
    # Construction

    def _start(self, s: int) -> None:
        m = self._mesh
        first, last = self._first_site, s
        if compare_points(self._sites[first], self._sites[last]) > 0:
            first, last = last, first
        f = m.new_halfplane(first, last)
        t = m.new_halfplane(last, first)
        m[f].n_ab = m[f].n_bc = m[f].n_ca = t
        m[t].n_ab = m[t].n_bc = m[t].n_ca = f
        self._first_site, self._last_site = first, last
        self._first_col = self._last_col = f
        self._first = self._first_hull = f

    def _insert_collinear(self, s: int) -> None:
        m = self._mesh
        sites = self._sites
        p = sites[s]
        side = point_test(sites[self._first_site], sites[self._last_site], p)
        if side == Side.RIGHT:
            self._collinear = False
            self._first = self._extend_hull(m[self._first_col].n_ab, s)
        elif side == Side.LEFT:
            self._collinear = False
            self._first = self._extend_hull(self._first_col, s)
        elif side == Side.ON_EDGE:
            self._splice_collinear(s)
        elif side == Side.BEFORE:
            t = m.new_halfplane(s, self._first_site)
            tp = m.new_halfplane(self._first_site, s)
            fc = m[self._first_col]
            m[t].n_ab = tp
            m[tp].n_ab = t
            m[t].n_ca = tp
            m[tp].n_bc = t
            m[t].n_bc = self._first_col
            fc.n_ca = t
            m[tp].n_ca = fc.n_ab
            m[fc.n_ab].n_bc = tp
            self._first_col = self._first_hull = t
            self._first_site = s
        else:  # BEHIND
            t = m.new_halfplane(self._last_site, s)
            tp = m.new_halfplane(s, self._last_site)
            lc = m[self._last_col]
            m[t].n_ab = tp
            m[tp].n_ab = t
            m[t].n_bc = tp
            lc.n_bc = t
            m[t].n_ca = self._last_col
            m[tp].n_ca = t
            m[tp].n_bc = lc.n_ab
            m[lc.n_ab].n_ca = tp
            self._last_col = t
            self._last_site = s

    def _splice_collinear(self, s: int) -> None:
        """Insert a site strictly between the two end sites of the collinear chain."""
        m = self._mesh
        sites = self._sites
        u = self._first_col
        for _ in range(len(m) + 1):
            if compare_points(sites[s], sites[m[u].a]) <= 0:
                break
            u = m[u].n_bc
        else:
            raise MeshConsistencyError('collinear chain is not sorted')
        u = m[u].n_ca
        twin = m[u].n_ab
        far = m[u].b
        t = m.new_halfplane(s, far)
        tp = m.new_halfplane(far, s)
        m.set_b(u, s)
        m.set_a(twin, s)
        m[t].n_ab = tp
        m[tp].n_ab = t
        if u == self._last_col:
            m[t].n_bc = tp
            m[tp].n_ca = t
            self._last_col = t
        else:
            nxt = m[u].n_bc
            m[t].n_bc = nxt
            m[nxt].n_ca = t
            prev = m[twin].n_ca
            m[tp].n_ca = prev
            m[prev].n_bc = tp
        m[t].n_ca = u
        m[u].n_bc = t
        m[tp].n_bc = twin
        m[twin].n_ca = tp

    def _extend_hull(self, th: int, s: int) -> int:
        """Attach site ``s``, lying outside the hull edge of halfplane ``th``."""
        m = self._mesh
        sites = self._sites
        t = m[th]
        side = point_test(sites[t.a], sites[t.b], sites[s])
        if side in (Side.BEFORE, Side.BEHIND):
            # s on the prolongation of this hull edge: start from a halfplane that sees it
            th = self._visible_halfplane(th, s)
            t = m[th]
        elif side == Side.ON_EDGE:
            # s on the hull edge itself: split the edge, leaving a flat triangle to flip away
            dg = m.new_triangle(t.a, t.b, s)
            hp = m.new_halfplane(s, t.b)
            m.set_b(th, s)
            d, h = m[dg], m[hp]
            d.n_ab = t.n_ab
            m.replace_neighbour(d.n_ab, th, dg)
            d.n_bc = hp
            h.n_ab = dg
            d.n_ca = th
            t.n_ab = dg
            h.n_bc = t.n_bc
            m[h.n_bc].n_ca = hp
            h.n_ca = th
            t.n_bc = hp
            return dg
        side1 = self._extend_clockwise(th, s)
        side2 = self._extend_counterclockwise(th, s)
        m[side1].n_ca = side2
        m[side2].n_bc = side1
        self._first_hull = side1
        return th

    def _visible_halfplane(self, th: int, s: int) -> int:
        m = self._mesh
        sites = self._sites
        t = th
        for _ in range(len(m) + 1):
            tri = m[t]
            if point_test(sites[tri.a], sites[tri.b], sites[s]) == Side.LEFT:
                return t
            t = tri.n_bc
            if t == th:
                break
        raise MeshConsistencyError(f'no hull edge is visible from site {s}')

    def _extend_clockwise(self, th: int, s: int) -> int:
        m = self._mesh
        p = self._sites[s]
        prev = t = th
        for _ in range(len(m) + 1):
            if m.point_in_triangle(t, p) != Containment.INSIDE:
                break
            m.extend(t, s)
            prev = t
            t = m[t].n_bc
        else:
            raise MeshConsistencyError('clockwise hull extension did not terminate')
        new = m.new_halfplane(s, m[prev].b)
        m[new].n_ab = prev
        m[new].n_bc = t
        m[t].n_ca = new
        m[prev].n_bc = new
        return new

    def _extend_counterclockwise(self, th: int, s: int) -> int:
        m = self._mesh
        p = self._sites[s]
        prev = th
        t = m[th].n_ca
        for _ in range(len(m) + 1):
            if m.point_in_triangle(t, p) != Containment.INSIDE:
                break
            m.extend(t, s)
            prev = t
            t = m[t].n_ca
        else:
            raise MeshConsistencyError('counter-clockwise hull extension did not terminate')
        new = m.new_halfplane(m[prev].a, s)
        m[new].n_ab = prev
        m[new].n_ca = t
        m[t].n_bc = new
        m[prev].n_ca = new
        return new

    def _split_triangle(self, th: int, s: int) -> int:
        """Split real triangle ``th`` at ``s`` into three (flat ones are flipped later)."""
        m = self._mesh
        sites = self._sites
        p = sites[s]
        t = m[th]
        # s on a hull edge: grow the hull instead
        if m[t.n_ab].halfplane and point_test(sites[t.b], sites[t.a], p) == Side.ON_EDGE:
            return self._extend_hull(t.n_ab, s)
        if m[t.n_bc].halfplane and point_test(sites[t.c], sites[t.b], p) == Side.ON_EDGE:
            return self._extend_hull(t.n_bc, s)
        if m[t.n_ca].halfplane and point_test(sites[t.a], sites[t.c], p) == Side.ON_EDGE:
            return self._extend_hull(t.n_ca, s)
        h1 = m.new_triangle(t.c, t.a, s)
        h2 = m.new_triangle(t.b, t.c, s)
        t1, t2 = m[h1], m[h2]
        t1.n_ab = t.n_ca
        t1.n_bc = th
        t1.n_ca = h2
        t2.n_ab = t.n_bc
        t2.n_bc = h1
        t2.n_ca = th
        m.replace_neighbour(t1.n_ab, th, h1)
        m.replace_neighbour(t2.n_ab, th, h2)
        t.n_bc = h2
        t.n_ca = h1
        m.set_c(th, s)
        return th

    # ------------------------------------------------------------------
    # Legalisation

    def _flip(self, th: int) -> int:
        """Lawson-flip the edge ab of ``th`` (whose c is the new site) and recurse.

        Returns the number of flips performed.
        """
        m = self._mesh
        sites = self._sites
        flips = 0
        stack = [th]
        while stack:
            th = stack.pop()
            t = m[th]
            uh = t.n_ab
            u = m[uh]
            if u.halfplane or not m.point_in_circumcircle(uh, sites[t.c]):
                continue
            if t.a == u.a:
                vh = m.new_triangle(u.b, t.b, t.c)
                v = m[vh]
                v.n_ab = u.n_bc
                t.n_ab = u.n_ab
            elif t.a == u.b:
                vh = m.new_triangle(u.c, t.b, t.c)
                v = m[vh]
                v.n_ab = u.n_ca
                t.n_ab = u.n_bc
            elif t.a == u.c:
                vh = m.new_triangle(u.a, t.b, t.c)
                v = m[vh]
                v.n_ab = u.n_ab
                t.n_ab = u.n_ca
            else:
                raise MeshConsistencyError(f'{t!r} and {u!r} do not share an edge')
            v.n_bc = t.n_bc
            m.replace_neighbour(v.n_ab, uh, vh)
            m.replace_neighbour(v.n_bc, th, vh)
            t.n_bc = vh
            v.n_ca = th
            m.set_b(th, v.a)
            m.replace_neighbour(t.n_ab, uh, th)
            m.release(uh)
            flips += 1
            stack.append(vh)
            stack.append(th)
        return flips

    def _legalize(self, first: int, s: int) -> None:
        """Flip every triangle around the new site ``s`` back to Delaunay."""
        m = self._mesh
        limit = len(m) + 1
        flips = 0
        t = first
        for _ in range(limit):
            flips += self._flip(t)
            t = m.neighbour(t, s)
            if t == first or m[t].halfplane:
                break
        else:
            raise MeshConsistencyError(f'ring around site {s} is not closed')
        if m[t].halfplane:
            # the ring around a hull site is open; sweep the other side as well
            t = m.previous(first, s)
            for _ in range(limit):
                if t == first or m[t].halfplane:
                    break
                flips += self._flip(t)
                t = m.previous(t, s)
        if flips:
            self.logger.debug('legalised site %d with %d flips', s, flips)
