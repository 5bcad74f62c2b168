"""Invariant checks for a DelaunayTriangulation.

``check_triangulation`` returns ``(ok, msgs)`` like the other checkers in
the package; ``assert_valid`` turns a failed check into a
MeshConsistencyError. ``compare_with_scipy`` cross-checks the result against
qhull through scipy.spatial, which is the reference for inputs in general
position.
"""
from __future__ import annotations

from typing import Any, Dict, List, Tuple

import numpy as np
from scipy.spatial import ConvexHull as _QhullHull, Delaunay as _QhullDelaunay

from .constants import EPS_INCIRCLE
from .errors import MeshConsistencyError
from .geometry import cross, incircle_array, orientation_array
from .logging_utils import get_logger

logger = get_logger('delvor.diagnostics')

__all__ = ['check_triangulation', 'assert_valid', 'empty_circle_violations', 'compare_with_scipy']

_MAX_MSGS = 50


def _check_links(tri, msgs: List[str]) -> bool:
    m = tri.mesh
    ok = True
    live = set(m.handles())
    for h in tri.traverse():
        t = m[h]
        slots = (('ab', t.n_ab, (t.a, t.b)), ('bc', t.n_bc, (t.b, t.c)), ('ca', t.n_ca, (t.c, t.a)))
        for name, nb, edge in slots:
            if nb is None or nb not in live:
                msgs.append(f'{t!r} ({h}) has a dangling {name} neighbour {nb}')
                ok = False
                continue
            n = m[nb]
            if h not in (n.n_ab, n.n_bc, n.n_ca):
                msgs.append(f'{t!r} ({h}) -> {n!r} ({nb}) is not mutual')
                ok = False
                continue
            # shared edge check: every real edge and the hull edge of a halfplane
            if t.halfplane and name != 'ab':
                continue
            back = m.slot_of(nb, h)
            if n.halfplane and back != 'ab':
                continue
            nedge = {'ab': (n.a, n.b), 'bc': (n.b, n.c), 'ca': (n.c, n.a)}[back]
            if nedge != (edge[1], edge[0]):
                msgs.append(f'{t!r} ({h}) and {n!r} ({nb}) disagree on their shared edge')
                ok = False
    return ok


def empty_circle_violations(points: np.ndarray, triangles: np.ndarray, chunk: int = 256) -> np.ndarray:
    """Indices of triangles whose circumcircle strictly contains some site.

    Triangles must be counter-clockwise; the in-circle determinant is
    evaluated for every (triangle, site) pair in chunks of triangles.
    """
    points = np.asarray(points, dtype=np.float64)
    triangles = np.asarray(triangles, dtype=np.int32)
    bad = []
    for start in range(0, len(triangles), chunk):
        tris = triangles[start:start + chunk]
        a = points[tris[:, 0]][:, None, :]
        b = points[tris[:, 1]][:, None, :]
        c = points[tris[:, 2]][:, None, :]
        d = points[None, :, :]
        det, permanent = incircle_array(a, b, c, d)
        inside = det > EPS_INCIRCLE * permanent
        rows = np.nonzero(np.any(inside, axis=1))[0]
        bad.extend((rows + start).tolist())
    return np.asarray(bad, dtype=np.int64)


def check_triangulation(tri, check_delaunay: bool = True) -> Tuple[bool, List[str]]:
    """Check neighbour symmetry, orientation, hull ring and the empty-circle property."""
    msgs: List[str] = []
    n = tri.size()
    if n < 2:
        return True, msgs
    ok = _check_links(tri, msgs)
    m = tri.mesh
    try:
        ring = tri.hull_ring()
    except MeshConsistencyError as exc:
        msgs.append(str(exc))
        return False, msgs
    if any(not m[h].halfplane for h in ring):
        msgs.append('hull ring contains a real triangle')
        ok = False
    points = tri.points_array()
    triangles = tri.triangles_array()
    used = set(triangles.ravel().tolist())
    for h in ring:
        used.update((m[h].a, m[h].b))
    missing = set(range(n)) - used
    if missing:
        msgs.append(f'sites without incident triangle: {sorted(missing)[:_MAX_MSGS]}')
        ok = False
    if tri.is_collinear():
        if len(triangles):
            msgs.append('collinear triangulation holds real triangles')
            ok = False
        return ok, msgs[:_MAX_MSGS]
    if len(triangles) == 0:
        msgs.append('non-collinear triangulation has no real triangles')
        return False, msgs
    areas = orientation_array(points[triangles[:, 0]], points[triangles[:, 1]], points[triangles[:, 2]])
    for i in np.nonzero(areas <= 0.0)[0][:_MAX_MSGS]:
        msgs.append(f'triangle {triangles[i].tolist()} is not counter-clockwise')
        ok = False
    hull_pts = [tri.site(m[h].a) for h in ring]
    k = len(hull_pts)
    for i in range(k):
        if cross(hull_pts[i - 1], hull_pts[i], hull_pts[(i + 1) % k]) < 0.0:
            msgs.append(f'hull turns clockwise at {hull_pts[i]}')
            ok = False
    expected = 2 * n - 2 - k
    if len(triangles) != expected:
        msgs.append(f'{len(triangles)} triangles, expected {expected} for {n} sites and {k} hull vertices')
        ok = False
    if check_delaunay:
        for i in empty_circle_violations(points, triangles)[:_MAX_MSGS]:
            msgs.append(f'triangle {triangles[i].tolist()} has a site inside its circumcircle')
            ok = False
    return ok, msgs[:_MAX_MSGS]


def assert_valid(tri) -> None:
    ok, msgs = check_triangulation(tri)
    if not ok:
        for msg in msgs:
            logger.error('Consistency: %s', msg)
        raise MeshConsistencyError('; '.join(msgs[:5]))


def compare_with_scipy(tri) -> Dict[str, Any]:
    """Compare triangles and hull with qhull's.

    Only meaningful for at least three non-collinear sites without four
    cocircular ones; otherwise qhull may pick another valid triangulation.
    """
    points = tri.points_array()
    ours = {tuple(sorted(row)) for row in tri.triangles_array().tolist()}
    ref = _QhullDelaunay(points)
    theirs = {tuple(sorted(row)) for row in ref.simplices.tolist()}
    hull = _QhullHull(points)
    ring = tri.hull_ring()
    m = tri.mesh
    our_hull = {m[h].a for h in ring}
    report = {
        'triangles': len(ours),
        'reference_triangles': len(theirs),
        'same_triangles': ours == theirs,
        'hull_vertices': sorted(our_hull),
        'reference_hull_vertices': sorted(int(v) for v in hull.vertices),
        'same_hull': set(int(v) for v in hull.vertices) <= our_hull,
    }
    logger.debug('scipy comparison: %s', report)
    return report
