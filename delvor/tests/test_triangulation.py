"""Tests for the incremental Delaunay triangulation."""
import numpy as np
import pytest

from delvor.core.config import TriangulationConfig
from delvor.core.diagnostics import check_triangulation, compare_with_scipy
from delvor.core.errors import DuplicateSiteError
from delvor.core.geometry import Point
from delvor.core.triangulation import DelaunayTriangulation


def _build(points, **cfg):
    dt = DelaunayTriangulation(TriangulationConfig(**cfg))
    for p in points:
        dt.insert(p)
    return dt


def _assert_valid(dt):
    ok, msgs = check_triangulation(dt)
    assert ok, '\n'.join(msgs)


def _triangle_set(dt):
    """Triangles as sets of site coordinates, independent of handles and rotation."""
    pts = dt.points_array()
    return {frozenset(tuple(pts[i]) for i in row) for row in dt.triangles_array().tolist()}


def test_empty_triangulation():
    dt = DelaunayTriangulation()
    assert dt.size() == 0
    assert list(dt.points()) == []
    assert dt.triangles_array().shape == (0, 3)
    assert dt.points_array().shape == (0, 2)
    assert dt.hull_ring() == []
    assert dt.locate((1, 1)) is None
    assert dt.find_near(0, 0, 10) is None


def test_single_and_two_sites_are_collinear():
    dt = _build([(1, 1)])
    assert dt.size() == 1 and dt.is_collinear()
    dt.insert((3, 1))
    assert dt.is_collinear()
    assert len(dt.hull_ring()) == 2
    assert len(dt.real_triangles()) == 0
    _assert_valid(dt)


def test_three_sites_make_one_triangle():
    dt = _build([(0, 0), (10, 0), (0, 10)])
    assert not dt.is_collinear()
    tris = dt.triangles_array()
    assert tris.shape == (1, 3)
    assert tris.dtype == np.int32
    assert sorted(tris[0].tolist()) == [0, 1, 2]
    assert len(dt.hull_ring()) == 3
    _assert_valid(dt)


def test_square_then_center():
    dt = _build([(0, 0), (10, 0), (10, 10), (0, 10)])
    assert len(dt.real_triangles()) == 2
    _assert_valid(dt)
    dt.insert((5, 5))
    assert len(dt.real_triangles()) == 4
    center = dt.site_handle((5, 5))
    assert all(center in row for row in dt.triangles_array().tolist())
    _assert_valid(dt)


def test_triangles_are_counter_clockwise():
    dt = _build([(0, 0), (10, 0), (10, 10), (0, 10), (3, 6)])
    for t in dt.triangles():
        assert t.signed_area() > 0


@pytest.mark.parametrize('order', [
    [(0, 0), (1, 0), (2, 0), (3, 0)],
    [(3, 0), (2, 0), (1, 0), (0, 0)],
    [(1, 0), (3, 0), (0, 0), (2, 0)],
    [(2, 0), (0, 0), (3, 0), (1, 0)],
])
def test_collinear_insertion_orders(order):
    dt = _build(order)
    assert dt.is_collinear()
    assert len(dt.real_triangles()) == 0
    assert len(dt.hull_ring()) == 6
    _assert_valid(dt)
    dt.insert((1, 1))
    assert not dt.is_collinear()
    # the four bottom sites all stay on the hull
    assert len(dt.real_triangles()) == 3
    _assert_valid(dt)


def test_vertical_collinear_chain_before_behind_and_between():
    dt = _build([(0, 0), (0, 1), (0, 2)])
    dt.insert((0, -1))
    dt.insert((0, 5))
    dt.insert((0, 1.5))
    assert dt.size() == 6
    assert dt.is_collinear()
    assert len(dt.hull_ring()) == 10
    _assert_valid(dt)
    dt.insert((1, 0))
    assert len(dt.real_triangles()) == 5
    _assert_valid(dt)


@pytest.mark.parametrize('extra', [(20, 0), (-5, 0), (0, 25), (0, -3)])
def test_site_on_prolongation_of_hull_edge(extra):
    dt = _build([(0, 0), (10, 0), (0, 10)])
    dt.insert(extra)
    assert len(dt.real_triangles()) == 2
    _assert_valid(dt)


def test_site_on_hull_edge():
    dt = _build([(0, 0), (10, 0), (10, 10), (0, 10)])
    dt.insert((5, 0))
    assert len(dt.hull_ring()) == 5
    assert len(dt.real_triangles()) == 3
    _assert_valid(dt)


def test_sites_on_interior_edges():
    dt = _build([(0, 0), (10, 0), (10, 10), (0, 10), (5, 5)])
    dt.insert((2.5, 2.5))
    dt.insert((7.5, 7.5))
    _assert_valid(dt)
    assert len(dt.real_triangles()) == 2 * 7 - 2 - 4


def test_grid_with_cocircular_quadruples():
    pts = [(float(x), float(y)) for x in range(5) for y in range(5)]
    dt = _build(pts)
    assert len(dt.real_triangles()) == 2 * 25 - 2 - 16
    _assert_valid(dt)


def test_random_sites_are_delaunay(random_sites):
    dt = _build(random_sites, validate_after_mutation=True)
    assert dt.size() == len(random_sites)
    _assert_valid(dt)
    report = compare_with_scipy(dt)
    assert report['same_triangles'], report
    assert report['same_hull'], report


def test_duplicate_insert_is_rejected_without_change():
    dt = _build([(0, 0), (10, 0), (0, 10)])
    before = _triangle_set(dt)
    with pytest.raises(DuplicateSiteError) as info:
        dt.insert((0, 0.00001))
    assert info.value.point == Point(0, 0)
    assert isinstance(info.value, ValueError)
    assert dt.size() == 3
    assert _triangle_set(dt) == before


def test_non_finite_insert_rejected():
    dt = DelaunayTriangulation()
    with pytest.raises(ValueError):
        dt.insert((float('nan'), 0))


def test_extend_skips_duplicates():
    dt = DelaunayTriangulation()
    handles = dt.extend([(0, 0), (1, 0), (0, 0), (0, 1)])
    assert handles == [0, 1, 2]
    assert dt.size() == 3


def test_insert_then_delete_restores_triangulation(random_sites):
    dt = _build(random_sites)
    before = _triangle_set(dt)
    dt.insert((50.123, 47.321))
    assert dt.size() == len(random_sites) + 1
    assert dt.delete((50.123, 47.321))
    assert dt.size() == len(random_sites)
    assert _triangle_set(dt) == before
    _assert_valid(dt)


def test_delete_unknown_site_returns_false():
    dt = _build([(0, 0), (10, 0), (0, 10)])
    assert not dt.delete((5, 5))
    assert dt.size() == 3


def test_delete_down_to_collinear():
    dt = _build([(0, 0), (10, 0), (0, 10)])
    assert dt.delete((0, 10))
    assert dt.is_collinear()
    assert list(dt.points()) == [Point(0, 0), Point(10, 0)]
    _assert_valid(dt)


def test_move_site():
    dt = _build([(0, 0), (10, 0), (10, 10), (0, 10), (5, 5)])
    assert dt.move((5, 5), 6, 4)
    assert not dt.contains((5, 5))
    assert dt.contains((6, 4))
    assert dt.size() == 5
    _assert_valid(dt)


def test_move_onto_existing_site_is_refused():
    dt = _build([(0, 0), (10, 0), (10, 10)])
    assert not dt.move((0, 0), 10, 10)
    assert not dt.move((3, 3), 1, 1)
    assert dt.contains((0, 0))


def test_clear():
    dt = _build([(0, 0), (10, 0), (0, 10)])
    dt.clear()
    assert dt.size() == 0
    assert dt.first_triangle is None
    dt.insert((1, 1))
    assert dt.size() == 1


def test_rebuild_is_idempotent(random_sites):
    dt = _build(random_sites)
    before = _triangle_set(dt)
    dt.rebuild()
    assert _triangle_set(dt) == before
    assert [p.to_tuple() for p in dt.points()] == [Point(*p).to_tuple() for p in random_sites]


def test_find_near():
    dt = _build([(0, 0), (10, 0), (0, 10)])
    assert dt.find_near(0.5, 0.5, 1.0) == Point(0, 0)
    assert dt.find_near(0.5, 0.5, 0.1) is None
    assert dt.site_handle((10, 0)) == 1
    assert dt.site_handle((9, 0)) is None


def test_locate_and_incident_triangle(random_sites):
    dt = _build(random_sites)
    m = dt.mesh
    for h in range(dt.size()):
        t = dt.incident_triangle(h)
        assert m[t].has_vertex(h)
    t = dt.locate((50, 50))
    assert not m[t].halfplane
    t = dt.locate((500, 500))
    assert m[t].halfplane


def test_visit_triangles_sees_every_triangle_once(random_sites):
    dt = _build(random_sites)
    seen = []
    visited = dt.visit_triangles(lambda h, t: seen.append(h))
    assert len(seen) == len(set(seen)) == len(visited)
    n_real = sum(1 for h in seen if not dt.mesh[h].halfplane)
    assert n_real == len(dt.triangles_array())
    assert len(seen) - n_real == len(dt.hull_ring())


def test_describe_lists_triangles():
    dt = _build([(0, 0), (10, 0), (0, 10)])
    text = dt.describe()
    assert text.splitlines()[0].startswith('DelaunayTriangulation(sites=3')
    assert len(text.splitlines()) == 1 + 4


def test_single_triangle_hull_is_counter_clockwise():
    from delvor.core.hull import ConvexHull
    from delvor.core.regions import Polygon
    dt = _build([(0, 0), (10, 0), (5, 10)])
    assert len(dt.real_triangles()) == 1
    assert len(dt.traverse()) == 4
    poly = ConvexHull(dt).polygon()
    assert {p.to_tuple() for p in poly} == {(0.0, 0.0), (10.0, 0.0), (5.0, 10.0)}
    assert Polygon(poly).signed_area() > 0


def test_delete_corner_of_square():
    dt = _build([(0, 0), (10, 0), (0, 10), (10, 10)])
    assert dt.delete((0, 0))
    assert dt.size() == 3
    assert len(dt.real_triangles()) == 1
    _assert_valid(dt)


def test_second_insert_of_same_site_keeps_count():
    dt = _build([(0, 0)])
    with pytest.raises(DuplicateSiteError):
        dt.insert((0, 0))
    assert dt.size() == 1


def test_many_insertion_orders_stay_delaunay(rng):
    pts = [tuple(p) for p in rng.uniform(0, 50, size=(25, 2))]
    for _ in range(5):
        order = [pts[i] for i in rng.permutation(len(pts))]
        dt = _build(order)
        _assert_valid(dt)


def test_failed_walk_does_not_record_the_site():
    from delvor.core.errors import MeshConsistencyError
    dt = _build([(0, 0), (10, 0), (0, 10)])
    before = _triangle_set(dt)
    dt.config.walk_step_factor = 0
    dt.config.walk_step_slack = 0
    with pytest.raises(MeshConsistencyError):
        dt.insert((3, 3))
    assert dt.size() == 3
    assert not dt.contains((3, 3))
    assert _triangle_set(dt) == before


def test_failed_rebuild_keeps_all_sites():
    from delvor.core.errors import MeshConsistencyError
    sites = [(0, 0), (10, 0), (10, 10), (0, 10), (5, 5)]
    dt = _build(sites)
    dt.config.walk_step_factor = 0
    dt.config.walk_step_slack = 0
    with pytest.raises(MeshConsistencyError):
        dt.rebuild()
    assert [p.to_tuple() for p in dt.points()] == [Point(*p).to_tuple() for p in sites]
    dt.config = TriangulationConfig()
    dt.rebuild()
    assert len(dt.real_triangles()) == 4
    _assert_valid(dt)
