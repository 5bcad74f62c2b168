"""Convex hull read off the triangulation's halfplane ring."""
from __future__ import annotations

from typing import List, Optional

from .geometry import Point, Segment, Side, as_point, point_test
from .regions import Polygon
from .triangulation import DelaunayTriangulation

__all__ = ['ConvexHull']


class ConvexHull:
    """View of the convex hull of a triangulation; always reflects its current state."""

    def __init__(self, triangulation: DelaunayTriangulation):
        self.triangulation = triangulation

    def __len__(self):
        return len(self.polygon())

    def polygon(self) -> List[Point]:
        """Hull vertices in counter-clockwise order.

        Empty for no sites, the site itself for one site. While the sites
        are collinear the ring runs along the line and back, so every site
        appears (the end sites once, inner sites twice).
        """
        tri = self.triangulation
        n = tri.size()
        if n == 0:
            return []
        if n == 1:
            return [tri.site(0)]
        m = tri.mesh
        return [tri.site(m[h].a) for h in tri.hull_ring()]

    def to_polygon(self, color: Optional[str] = None) -> Polygon:
        return Polygon(self.polygon(), color)

    def edges(self) -> List[Segment]:
        """Hull edges in counter-clockwise order."""
        tri = self.triangulation
        m = tri.mesh
        return [Segment(tri.site(m[h].b), tri.site(m[h].a)) for h in tri.hull_ring()]

    def contains(self, point, include_boundary: bool = True) -> bool:
        """Whether ``point`` lies in the closed (or open) hull region.

        Each hull halfplane's outside is left of a -> b, so a hull point has
        to be on the left of every counter-clockwise hull edge b -> a.
        """
        p = as_point(point)
        tri = self.triangulation
        if tri.size() < 3 or tri.is_collinear():
            if not include_boundary:
                return False
            if tri.size() == 1:
                return tri.site(0) == p
            return any(point_test(e.start, e.end, p) == Side.ON_EDGE or e.start == p
                       for e in self.edges())
        for e in self.edges():
            side = point_test(e.start, e.end, p)
            if side == Side.LEFT:
                continue
            if include_boundary and side == Side.ON_EDGE:
                continue
            return False
        return True
