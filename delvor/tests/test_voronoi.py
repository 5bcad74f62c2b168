"""Tests for Voronoi regions, proximity queries, the dual edge graph and export."""
import math

import numpy as np
import pytest

from delvor.core.config import DiagramConfig, ExportConfig
from delvor.core.errors import DuplicateSiteError, UnknownSiteError
from delvor.core.geometry import BoundingBox, Circle, Containment, Point, Ray, Segment, Triangle
from delvor.core.regions import Polygon
from delvor.core.voronoi import VoronoiDiagram


TRIANGLE = [(0, 0), (10, 0), (0, 10)]
SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10)]


def _nearest(sites, q):
    arr = np.asarray(sites, dtype=float)
    return Point(*arr[int(np.argmin(np.hypot(arr[:, 0] - q[0], arr[:, 1] - q[1])))])


class TestRegions:

    def test_empty_diagram_has_no_region(self):
        assert VoronoiDiagram().region((0, 0)) is None

    def test_single_site_owns_the_plane(self):
        vd = VoronoiDiagram([(3, 3)])
        r = vd.region((3, 3))
        assert r.points == []
        assert r.is_open()
        assert r.contains(Point(1000, -1000)) == Containment.INSIDE

    def test_unknown_site_raises(self):
        vd = VoronoiDiagram(TRIANGLE)
        with pytest.raises(UnknownSiteError):
            vd.region((5, 5))

    def test_corner_region_of_triangle(self):
        vd = VoronoiDiagram(TRIANGLE)
        r = vd.voronoi_region((0, 0))
        assert r.is_open()
        assert Point(5, 5) in r.finite_points()
        assert r.contains(Point(0, 0)) == Containment.INSIDE
        assert r.contains(Point(6, 0)) == Containment.OUTSIDE
        assert r.contains(Point(5, 0)) == Containment.BOUNDARY
        assert r.clip_to(BoundingBox(-10, -10, 20, 20)).area() == pytest.approx(225.0)

    def test_corner_region_has_no_closing_duplicate(self):
        vd = VoronoiDiagram(TRIANGLE)
        r = vd.region((0, 0))
        assert [p.to_tuple() if not p.is_infinity() else None for p in r.points] == [
            (5.0, 5.0), (-15.0, 5.0), None, (5.0, -15.0)]

    def test_region_points_never_repeat_cyclically(self, random_sites):
        vd = VoronoiDiagram(random_sites)
        for site in vd.points():
            pts = vd.region(site).points
            n = len(pts)
            for i in range(n):
                a, b = pts[i], pts[(i + 1) % n]
                if a.is_infinity() or b.is_infinity():
                    continue
                assert a != b, (site, pts)

    def test_collinear_regions_are_strips(self):
        vd = VoronoiDiagram([(0, 0), (2, 0), (4, 0)])
        box = BoundingBox(-10, -10, 10, 10)
        inner = vd.region((2, 0))
        assert inner.contains(Point(2, 100)) == Containment.INSIDE
        assert inner.contains(Point(0.5, 0)) == Containment.OUTSIDE
        assert inner.clip_to(box).area() == pytest.approx(40.0)
        left = vd.region((0, 0))
        assert left.clip_to(box).area() == pytest.approx(220.0)
        right = vd.region((4, 0))
        assert right.contains(Point(3.5, -50)) == Containment.INSIDE
        assert right.contains(Point(2.5, 0)) == Containment.OUTSIDE

    def test_two_sites_split_by_bisector(self):
        vd = VoronoiDiagram([(0, 0), (0, 4)])
        r = vd.region((0, 0))
        assert r.contains(Point(100, 1)) == Containment.INSIDE
        assert r.contains(Point(0, 3)) == Containment.OUTSIDE
        assert r.clip_to(BoundingBox(-5, -5, 5, 5)).area() == pytest.approx(70.0)

    def test_interior_regions_are_closed(self, random_sites):
        vd = VoronoiDiagram(random_sites)
        hull = vd.hull_polygon()
        for p in vd.points():
            r = vd.region(p)
            assert r.contains(p) == Containment.INSIDE
            on_hull = any(p == q for q in hull)
            assert r.is_open() == on_hull

    def test_regions_tile_the_box(self, random_sites):
        vd = VoronoiDiagram(random_sites)
        box = BoundingBox(0, 0, 100, 100)
        total = sum(r.clip_to(box).area() for r in vd.regions())
        assert total == pytest.approx(box.width * box.height, rel=1e-9)

    def test_region_contains_points_nearest_to_its_site(self, random_sites, rng):
        vd = VoronoiDiagram(random_sites)
        regions = {r.kernel.to_tuple(): r for r in vd.regions()}
        for q in rng.uniform(0.0, 100.0, size=(40, 2)):
            site = _nearest(random_sites, q)
            assert regions[site.to_tuple()].contains(Point(*q)) != Containment.OUTSIDE

    def test_region_for_new_point_leaves_diagram_unchanged(self, random_sites):
        vd = VoronoiDiagram(random_sites)
        before = vd.triangulation.triangles_array().copy()
        r = vd.region_for_new_point((50.5, 49.5))
        assert r.kernel == Point(50.5, 49.5)
        assert r.contains(Point(50.5, 49.5)) == Containment.INSIDE
        assert vd.size() == len(random_sites)
        assert np.array_equal(vd.triangulation.triangles_array(), before)

    def test_region_for_existing_site_raises(self):
        vd = VoronoiDiagram(TRIANGLE)
        with pytest.raises(DuplicateSiteError):
            vd.region_for_new_point((0, 0))
        assert vd.size() == 3


class TestProximity:

    def test_point_location_in_triangle(self):
        vd = VoronoiDiagram(TRIANGLE)
        assert vd.point_location((1, 1)) == Point(0, 0)
        assert vd.point_location((100, 1)) == Point(10, 0)

    def test_point_location_collinear_and_empty(self):
        assert VoronoiDiagram().point_location((0, 0)) is None
        vd = VoronoiDiagram([(0, 0), (4, 0), (8, 0)])
        assert vd.point_location((5, 7)) == Point(4, 0)

    def test_nearest_neighbour(self, random_sites):
        vd = VoronoiDiagram(random_sites)
        for p in random_sites[:15]:
            others = [q for q in random_sites if q != p]
            assert vd.nearest_neighbour(p) == _nearest(others, p)

    def test_nearest_neighbour_small_diagrams(self):
        assert VoronoiDiagram([(1, 1)]).nearest_neighbour((1, 1)) is None
        vd = VoronoiDiagram(SQUARE + [(1, 1)])
        assert vd.nearest_neighbour((0, 0)) == Point(1, 1)
        with pytest.raises(UnknownSiteError):
            vd.nearest_neighbour((3, 3))

    def test_largest_empty_circle(self):
        assert VoronoiDiagram(SQUARE[:2]).largest_empty_circle() is None
        c = VoronoiDiagram(SQUARE).largest_empty_circle()
        assert c.center == Point(5, 5)
        assert c.radius == pytest.approx(5 * math.sqrt(2))

    def test_nearest_site_circle(self):
        c = VoronoiDiagram(TRIANGLE).nearest_site_circle((1, 1))
        assert isinstance(c, Circle)
        assert c.center == Point(1, 1)
        assert c.radius == pytest.approx(math.sqrt(2))


class TestStructure:

    def test_collinear_has_no_structure(self):
        assert VoronoiDiagram([(0, 0), (1, 1), (2, 2)]).structure() is None

    def test_triangle_structure_is_three_rays(self):
        s = VoronoiDiagram(TRIANGLE).voronoi_structure()
        assert len(s) == 3
        assert len(s.rays()) == 3
        assert all(e.point1 == Point(5, 5) for e in s)
        # the ray across the bottom edge points down
        bottom = [e for e in s if {e.right.to_tuple(), e.left.to_tuple()} == {(0.0, 0.0), (10.0, 0.0)}]
        assert len(bottom) == 1
        edge = bottom[0].to_edge()
        assert isinstance(edge, Ray) and edge.dy < 0 and edge.dx == 0

    def test_edge_counts(self, random_sites):
        vd = VoronoiDiagram(random_sites)
        s = vd.structure()
        n = vd.size()
        k = len(vd.hull_polygon())
        assert len(s) == 3 * n - 3 - k
        assert len(s.rays()) == k
        assert len(s.segments()) == len(s) - k
        assert len(s.reachable()) == len(s)
        assert s.root in s.edges

    def test_edges_link_through_shared_vertices(self):
        s = VoronoiDiagram(SQUARE + [(5, 5)]).structure()
        for e in s:
            for nxt in (e.next1_right, e.next1_left):
                if nxt is not None:
                    assert e.point1 in (nxt.point1, nxt.point2)
            for nxt in (e.next2_right, e.next2_left):
                if nxt is not None:
                    assert e.point2 in (nxt.point1, nxt.point2)


class TestExport:

    def test_triangle_export_layers(self):
        vd = VoronoiDiagram(TRIANGLE)
        out = vd.export_elements()
        kinds = [type(e) for e in out]
        assert kinds == [Triangle, Ray, Ray, Ray, Polygon, Point, Point, Point]
        cfg = vd.config.export
        assert out[0].color == cfg.delaunay_color
        assert out[1].color == cfg.voronoi_color
        assert out[4].color == cfg.hull_color
        assert out[-1].color == cfg.site_color

    def test_collinear_export(self):
        vd = VoronoiDiagram([(0, 0), (2, 0), (4, 0)])
        out = vd.export_elements()
        assert sum(isinstance(e, Segment) for e in out) == 2
        assert sum(isinstance(e, Ray) for e in out) == 4
        assert sum(isinstance(e, Polygon) for e in out) == 1
        assert sum(isinstance(e, Point) for e in out) == 3

    def test_square_with_center_voronoi_edges(self):
        vd = VoronoiDiagram(SQUARE + [(5, 5)])
        edges = vd.voronoi_elements()
        assert sum(isinstance(e, Segment) for e in edges) == 4
        assert sum(isinstance(e, Ray) for e in edges) == 4
        assert len(vd.delaunay_elements()) == 4

    def test_layers_and_sinks(self):
        vd = VoronoiDiagram(SQUARE)
        cfg = ExportConfig(include_delaunay=False, include_voronoi=False,
                           include_hull=False, include_largest_circle=True)
        collected = []
        vd.export_elements(collected.append, config=cfg)
        assert isinstance(collected[0], Circle)
        assert collected[0].color == cfg.circle_color
        assert len(collected) == 5

        class Bag:
            def __init__(self):
                self.items = []

            def add(self, e):
                self.items.append(e)

        bag = vd.export_elements(Bag(), config=cfg)
        assert len(bag.items) == 5
        with pytest.raises(TypeError):
            vd.export_elements(42)

    def test_site_color_is_kept(self):
        vd = VoronoiDiagram([Point(0, 0, '#ff0000'), (10, 0), (0, 10)])
        sites = [e for e in vd.export_elements() if isinstance(e, Point)]
        assert sites[0].color == '#ff0000'
        assert sites[1].color == vd.config.export.site_color

    def test_empty_diagram_exports_nothing(self):
        assert VoronoiDiagram().export_elements() == []

    def test_bounding_box_from_viewport(self):
        cfg = DiagramConfig.from_dict({'export': {'viewport': [0, 0, 50, 20]}})
        vd = VoronoiDiagram(TRIANGLE, config=cfg)
        box = vd.bounding_box()
        assert (box.xmin, box.ymin, box.xmax, box.ymax) == (0.0, 0.0, 50.0, 20.0)


def test_facade_forwards_mutations():
    vd = VoronoiDiagram(SQUARE)
    assert len(vd) == 4
    vd.insert((5, 5))
    assert vd.find_near(5.01, 5.0, 0.1) == Point(5, 5)
    assert vd.move((5, 5), 4, 6)
    assert vd.delete((4, 6))
    assert not vd.delete((4, 6))
    assert not vd.is_collinear()
    vd.clear()
    assert vd.size() == 0
    assert vd.hull_polygon() == []
