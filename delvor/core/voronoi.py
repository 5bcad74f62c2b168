"""Voronoi diagram derived from the Delaunay triangulation.

Nothing is stored here: regions, the dual edge graph and exported elements
are recomputed from the triangulation on every call, so they always match
its current sites. ``VoronoiDiagram`` doubles as the public facade and
forwards site mutations to its triangulation.
"""
from __future__ import annotations

import math
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .config import DiagramConfig, ExportConfig
from .dcel import DualEdge, VoronoiStructure
from .errors import MeshConsistencyError, UnknownSiteError
from .geometry import (
    INFINITY, BoundingBox, Circle, Line, Point, Ray, Segment, Triangle, as_point,
)
from .hull import ConvexHull
from .logging_utils import get_logger
from .regions import Polygon, Region
from .triangulation import DelaunayTriangulation

__all__ = ['VoronoiDiagram']

logger = get_logger('delvor.voronoi')

Element = Union[Point, Segment, Ray, Line, Circle, Triangle, Polygon]


def _append_to(sink) -> Callable[[Element], None]:
    if callable(getattr(sink, 'append', None)):
        return sink.append
    if callable(getattr(sink, 'add', None)):
        return sink.add
    if callable(sink):
        return sink
    raise TypeError(f'cannot export elements into {type(sink).__name__}')


class VoronoiDiagram:
    """Dynamic Voronoi diagram of a set of planar sites.

    Parameters
    ----------
    points : iterable, optional
        Initial sites; duplicates are skipped with a warning.
    config : DiagramConfig, optional
        Triangulation and export settings.
    triangulation : DelaunayTriangulation, optional
        Existing triangulation to share instead of creating a new one.
    """

    def __init__(self, points=None, config: Optional[DiagramConfig] = None,
                 triangulation: Optional[DelaunayTriangulation] = None):
        self.config = config or DiagramConfig()
        self.triangulation = triangulation or DelaunayTriangulation(self.config.triangulation)
        self.hull = ConvexHull(self.triangulation)
        if points is not None:
            self.triangulation.extend(points)

    def __len__(self):
        return self.triangulation.size()

    def __repr__(self):
        return f'{self.__class__.__name__}(sites={len(self)})'

    # ------------------------------------------------------------------
    # Site management (forwarded)

    def insert(self, point) -> int:
        return self.triangulation.insert(point)

    def delete(self, point) -> bool:
        return self.triangulation.delete(point)

    def move(self, point, x: float, y: float) -> bool:
        return self.triangulation.move(point, x, y)

    def clear(self) -> None:
        self.triangulation.clear()

    def rebuild(self) -> None:
        self.triangulation.rebuild()

    def find_near(self, x: float, y: float, radius: float) -> Optional[Point]:
        return self.triangulation.find_near(x, y, radius)

    def size(self) -> int:
        return self.triangulation.size()

    def points(self):
        return self.triangulation.points()

    def is_collinear(self) -> bool:
        return self.triangulation.is_collinear()

    def hull_polygon(self) -> List[Point]:
        return self.hull.polygon()

    # ------------------------------------------------------------------
    # Regions

    def _site(self, point) -> int:
        h = self.triangulation.site_handle(point)
        if h is None:
            raise UnknownSiteError(as_point(point))
        return h

    def _center(self, h: int) -> Point:
        return self.triangulation.mesh[h].circle.center

    def _halfplane_region(self, th: int, site: int) -> List[Point]:
        """Five-point encoding [mid1, mid1 + out1, INF, mid2 + out2, mid2] around a hull site.

        ``th`` is a halfplane with ``site`` as its ``a``; the second
        halfplane is the next one around the site.
        """
        tri = self.triangulation
        m = tri.mesh
        t = m[th]
        if t.a != site:
            raise MeshConsistencyError(f'site {site} is not the start of halfplane {t!r}')
        a, b = tri.site(t.a), tri.site(t.b)
        mid1 = Point(0.5 * (a.x + b.x), 0.5 * (a.y + b.y))
        out1 = Point(mid1.x - 2.0 * (b.y - a.y), mid1.y + 2.0 * (b.x - a.x))
        t2 = m[m.neighbour(th, site)]
        a2, b2 = tri.site(t2.a), tri.site(t2.b)
        mid2 = Point(0.5 * (a2.x + b2.x), 0.5 * (a2.y + b2.y))
        out2 = Point(mid2.x - 2.0 * (b2.y - a2.y), mid2.y + 2.0 * (b2.x - a2.x))
        return [mid1, out1, INFINITY, out2, mid2]

    def region(self, point) -> Optional[Region]:
        """Voronoi region of a site, or None for an empty diagram.

        The region of the only site is the whole plane (no points).
        Raises UnknownSiteError when ``point`` is not a site.
        """
        tri = self.triangulation
        n = tri.size()
        if n == 0:
            return None
        h = self._site(point)
        region = Region(tri.site(h), color=tri.site(h).color)
        if n == 1:
            return region
        if tri.is_collinear():
            self._collinear_region(h, region)
        else:
            self._walk_region(h, region)
        return region

    voronoi_region = region

    def _collinear_region(self, site: int, region: Region) -> None:
        tri = self.triangulation
        m = tri.mesh
        start = t = tri.first_hull_triangle
        while m[t].a != site:
            t = m[t].n_bc
            if t == start:
                raise MeshConsistencyError(f'site {site} missing from the collinear chain')
        region.extend(self._halfplane_region(t, site))
        nxt = m.neighbour(t, site)
        if tri.size() > 2 and nxt != m[t].n_ab:
            # inner site: the strip is closed by the bisector on the other side
            t = m[nxt].n_ab
            region.extend(self._halfplane_region(t, site)[1:4])

    def _walk_region(self, site: int, region: Region) -> None:
        tri = self.triangulation
        m = tri.mesh
        t = tri.incident_triangle(site)
        if m[t].halfplane:
            t = m[t].n_ab
        start = t
        last: Optional[Point] = None
        for _ in range(len(m) + 1):
            if m[t].halfplane:
                pts = self._halfplane_region(t, site)
                t = m.neighbour(t, site)
                # rays re-based on the neighbouring circumcentres keep their direction
                region.add(Point(last.x - pts[0].x + pts[1].x, last.y - pts[0].y + pts[1].y))
                region.add(pts[2])
                last = self._center(m.neighbour(t, site))
                region.add(Point(last.x - pts[4].x + pts[3].x, last.y - pts[4].y + pts[3].y))
                region.add(last)
            else:
                q = self._center(t)
                if last is None or q != last:
                    region.add(q)
                last = q
            t = m.neighbour(t, site)
            if t == start:
                pts = region.points
                # the boundary is cyclic, drop a closing vertex equal to the first
                if len(pts) > 1 and pts[-1] == pts[0]:
                    pts.pop()
                return
        raise MeshConsistencyError(f'ring around site {site} is not closed')

    def regions(self) -> List[Region]:
        return [self.region(p) for p in self.points()]

    def region_for_new_point(self, point) -> Optional[Region]:
        """Region ``point`` would own if it were a site; the diagram is left unchanged.

        Raises DuplicateSiteError when ``point`` is already a site.
        """
        p = as_point(point)
        self.triangulation.insert(p)
        try:
            return self.region(p)
        finally:
            self.triangulation.delete(p)

    # ------------------------------------------------------------------
    # Proximity queries

    def point_location(self, point) -> Optional[Point]:
        """Nearest site to ``point`` (exact for collinear sites, approximate otherwise).

        The answer is the closest vertex among the located triangle and its
        three neighbours.
        """
        p = as_point(point)
        tri = self.triangulation
        n = tri.size()
        if n == 0:
            return None
        if n == 1 or tri.is_collinear():
            coords = tri.points_array()
            idx = int(np.argmin(np.hypot(coords[:, 0] - p.x, coords[:, 1] - p.y)))
            return tri.site(idx)
        m = tri.mesh
        t = tri.locate(p)
        best = None
        best_d = math.inf
        for h in (t, m[t].n_ab, m[t].n_bc, m[t].n_ca):
            v = m.nearest_vertex(h, p)
            d = tri.site(v).distance(p)
            if d < best_d:
                best, best_d = v, d
        return tri.site(best)

    def nearest_neighbour(self, point) -> Optional[Point]:
        """Closest other site to the given site; None with fewer than two sites."""
        tri = self.triangulation
        if tri.size() <= 1:
            return None
        site = self._site(point)
        p = tri.site(site)
        m = tri.mesh
        start = t = tri.incident_triangle(site)
        best = None
        best_d = math.inf
        for _ in range(len(m) + 1):
            tt = m[t]
            for v in (tt.a, tt.b, tt.c):
                if v != site:
                    d = p.distance(tri.site(v))
                    if d < best_d:
                        best, best_d = v, d
            t = m.neighbour(t, site)
            if t == start:
                return tri.site(best)
        raise MeshConsistencyError(f'ring around site {site} is not closed')

    def largest_empty_circle(self) -> Optional[Circle]:
        """Largest circumcircle over the real triangles (an empty circle centred on a Voronoi vertex)."""
        best: Dict[str, Circle] = {}

        def visit(h, t):
            if t.halfplane:
                return
            c = t.circle
            if 'max' not in best or c.radius > best['max'].radius:
                best['max'] = c

        self.triangulation.visit_triangles(visit)
        return best.get('max')

    def nearest_site_circle(self, point) -> Optional[Circle]:
        """Circle around ``point`` through its located nearest site."""
        p = as_point(point)
        nearest = self.point_location(p)
        if nearest is None:
            return None
        return Circle(p, nearest.distance(p))

    # ------------------------------------------------------------------
    # Dual structure and export

    def structure(self) -> Optional[VoronoiStructure]:
        """Dual edge graph, or None while the sites are collinear."""
        tri = self.triangulation
        if tri.is_collinear() or tri.size() < 3:
            return None
        m = tri.mesh
        dual: Dict[Tuple[int, str], DualEdge] = {}
        edges: List[DualEdge] = []
        visited = set()
        stack = [tri.first_triangle]
        while stack:
            th = stack.pop()
            if th in visited:
                continue
            visited.add(th)
            t = m[th]
            c0 = t.circle.center
            for slot, nb, right, left in (('ab', t.n_ab, t.a, t.b),
                                          ('bc', t.n_bc, t.b, t.c),
                                          ('ca', t.n_ca, t.c, t.a)):
                if nb in visited:
                    dual[(th, slot)] = dual[(nb, m.slot_of(nb, th))]
                    continue
                c1 = None if m[nb].halfplane else self._center(nb)
                e = DualEdge(c0, c1, tri.site(right), tri.site(left))
                dual[(th, slot)] = e
                edges.append(e)
            e_ab, e_bc, e_ca = dual[(th, 'ab')], dual[(th, 'bc')], dual[(th, 'ca')]
            e_ab.connect_right(e_ca)
            e_ab.connect_left(e_bc)
            e_bc.connect_right(e_ab)
            e_bc.connect_left(e_ca)
            e_ca.connect_right(e_bc)
            e_ca.connect_left(e_ab)
            for nb in (t.n_ca, t.n_bc, t.n_ab):
                if nb not in visited and not m[nb].halfplane:
                    stack.append(nb)
        return VoronoiStructure(dual[(tri.first_triangle, 'ab')], edges)

    voronoi_structure = structure

    def voronoi_elements(self, color: Optional[str] = None) -> List[Union[Segment, Ray]]:
        """Voronoi edges: segments between adjacent circumcentres, rays towards the hull.

        While the sites are collinear every hull halfplane contributes the
        bisector ray leaving the midpoint of its edge.
        """
        tri = self.triangulation
        m = tri.mesh
        out: List[Union[Segment, Ray]] = []
        if tri.size() < 2:
            return out
        if tri.is_collinear():
            for h in tri.hull_ring():
                a, b = tri.site(m[h].a), tri.site(m[h].b)
                mid = Point(0.5 * (a.x + b.x), 0.5 * (a.y + b.y))
                out.append(Ray(mid, -(b.y - a.y), b.x - a.x, color))
            return out
        done = set()
        for th in tri.real_triangles():
            done.add(th)
            t = m[th]
            c0 = t.circle.center
            for nb in (t.n_ab, t.n_bc, t.n_ca):
                n = m[nb]
                if n.halfplane:
                    a, b = tri.site(n.a), tri.site(n.b)
                    out.append(Ray(c0, -(b.y - a.y), b.x - a.x, color))
                elif nb not in done:
                    out.append(Segment(c0, n.circle.center, color))
        return out

    def delaunay_elements(self, color: Optional[str] = None) -> List[Union[Triangle, Segment]]:
        """Delaunay triangles, or the chain of segments while the sites are collinear."""
        tri = self.triangulation
        m = tri.mesh
        if tri.size() < 2:
            return []
        if tri.is_collinear():
            out = []
            for h in tri.hull_ring():
                t = m[h]
                a, b = tri.site(t.a), tri.site(t.b)
                # each segment appears once per direction; keep the lexicographically increasing one
                if (a.x, a.y) < (b.x, b.y):
                    out.append(Segment(a, b, color))
            return out
        return [Triangle(*m.shape(h).vertices(), color) for h in tri.real_triangles()]

    def export_elements(self, sink=None, config: Optional[ExportConfig] = None):
        """Append the diagram's shapes to ``sink`` and return it.

        ``sink`` may be a list (default: a new one), any object with
        ``add``, or a callable. Layers and colours come from ``config``
        (default: the diagram's export config), in drawing order: Delaunay,
        Voronoi, hull, largest empty circle, sites.
        """
        cfg = config or self.config.export
        if sink is None:
            sink = []
        emit = _append_to(sink)
        if cfg.include_delaunay:
            for e in self.delaunay_elements(cfg.delaunay_color):
                emit(e)
        if cfg.include_voronoi:
            for e in self.voronoi_elements(cfg.voronoi_color):
                emit(e)
        if cfg.include_hull and self.size() >= 2:
            emit(self.hull.to_polygon(cfg.hull_color))
        if cfg.include_largest_circle:
            circle = self.largest_empty_circle()
            if circle is not None:
                emit(circle.with_color(cfg.circle_color))
        if cfg.include_sites:
            for p in self.points():
                emit(p if p.color is not None else p.with_color(cfg.site_color))
        logger.debug('exported diagram with %d sites', self.size())
        return sink

    def bounding_box(self, config: Optional[ExportConfig] = None) -> BoundingBox:
        """Viewport from the export config, or the sites' box grown by its margin."""
        cfg = config or self.config.export
        if cfg.viewport is not None:
            return BoundingBox(*cfg.viewport)
        return BoundingBox.around(self.points(), margin=cfg.margin)
