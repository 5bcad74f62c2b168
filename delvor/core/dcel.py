"""Edge graph of the Voronoi diagram.

Each ``DualEdge`` is a Voronoi edge between the circumcentres ``point1`` and
``point2`` of two adjacent Delaunay triangles (``point2`` is None for an
unbounded edge), together with the two sites whose regions it separates.
Edges link to their successors around both endpoints, on both sides::

    next2_left     \\      /   next2_right
                    \\ p2 /
                      |
             left     |     right
                      p1
                    /    \\
    next1_right    /      \\   next1_left

Links are established by matching shared endpoints, so zero-length edges
between cocircular triangles may be linked to either neighbour.
"""
from __future__ import annotations

from typing import Iterator, List, Optional, Union

from .geometry import Point, Ray, Segment

__all__ = ['DualEdge', 'VoronoiStructure']


class DualEdge:
    __slots__ = ('point1', 'point2', 'right', 'left',
                 'next1_right', 'next2_right', 'next1_left', 'next2_left')

    def __init__(self, point1: Point, point2: Optional[Point], right: Point, left: Point):
        self.point1 = point1
        self.point2 = point2
        self.right = right
        self.left = left
        self.next1_right: Optional[DualEdge] = None
        self.next2_right: Optional[DualEdge] = None
        self.next1_left: Optional[DualEdge] = None
        self.next2_left: Optional[DualEdge] = None

    def __repr__(self):
        return f'DualEdge({self.point1!r} -> {self.point2!r}, right={self.right!r}, left={self.left!r})'

    def is_ray(self) -> bool:
        return self.point2 is None

    def _shares(self, end: Optional[Point], other: 'DualEdge') -> bool:
        if end is None:
            return False
        return ((other.point1 is not None and end == other.point1)
                or (other.point2 is not None and end == other.point2))

    def connect_right(self, other: Optional['DualEdge']) -> None:
        """Link ``other`` on the right side at whichever endpoint they share."""
        if other is None:
            return
        if self._shares(self.point2, other):
            self.next2_right = other
        elif self._shares(self.point1, other):
            self.next1_right = other

    connect = connect_right

    def connect_left(self, other: Optional['DualEdge']) -> None:
        if other is None:
            return
        if self._shares(self.point2, other):
            self.next2_left = other
        elif self._shares(self.point1, other):
            self.next1_left = other

    def neighbours(self) -> Iterator['DualEdge']:
        for e in (self.next1_right, self.next2_right, self.next1_left, self.next2_left):
            if e is not None:
                yield e

    def to_edge(self) -> Union[Segment, Ray]:
        """Geometric edge; rays point away from the right site's Delaunay edge."""
        color = self.right.color if self.right is not None else None
        if self.point2 is not None:
            return Segment(self.point1, self.point2, color)
        dx = -(self.right.y - self.left.y)
        dy = self.right.x - self.left.x
        return Ray(self.point1, dx, dy, color)


class VoronoiStructure:
    """The full set of dual edges, reachable from ``root``."""

    def __init__(self, root: DualEdge, edges: List[DualEdge]):
        self.root = root
        self.edges = edges

    def __len__(self):
        return len(self.edges)

    def __iter__(self) -> Iterator[DualEdge]:
        return iter(self.edges)

    def rays(self) -> List[DualEdge]:
        return [e for e in self.edges if e.is_ray()]

    def segments(self) -> List[DualEdge]:
        return [e for e in self.edges if not e.is_ray()]

    def reachable(self) -> List[DualEdge]:
        """Edges reachable from the root through the next links, breadth first."""
        seen = {id(self.root)}
        order = [self.root]
        i = 0
        while i < len(order):
            for e in order[i].neighbours():
                if id(e) not in seen:
                    seen.add(id(e))
                    order.append(e)
            i += 1
        return order

    def to_elements(self) -> List[Union[Segment, Ray]]:
        return [e.to_edge() for e in self.edges]
