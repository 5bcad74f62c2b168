"""The closed set of exportable shapes and the operations over all of them."""
from __future__ import annotations

from typing import Optional, Union

from .geometry import BoundingBox, Circle, Line, Point, Ray, Segment, Triangle
from .regions import Polygon, Region

__all__ = ['Shape', 'shape_kind', 'clip_shape', 'shape_color', 'SHAPE_TYPES']

Shape = Union[Point, Segment, Ray, Line, Circle, Triangle, Polygon, Region]

SHAPE_TYPES = (Point, Segment, Ray, Line, Circle, Triangle, Polygon, Region)

_KINDS = {
    Point: 'point',
    Segment: 'segment',
    Ray: 'ray',
    Line: 'line',
    Circle: 'circle',
    Triangle: 'triangle',
    Polygon: 'polygon',
    Region: 'region',
}


def shape_kind(shape: Shape) -> str:
    try:
        return _KINDS[type(shape)]
    except KeyError:
        raise TypeError(f'not an exportable shape: {type(shape).__name__}') from None


def shape_color(shape: Shape) -> Optional[str]:
    return getattr(shape, 'color', None)


def clip_shape(shape: Shape, box: BoundingBox) -> Optional[Shape]:
    """Drawable part of ``shape`` inside ``box``.

    Rays, lines and regions become segments or polygons; points outside the
    box and edges missing it give None. Circles and triangles are kept
    whole, as a renderer clips them anyway.
    """
    kind = shape_kind(shape)
    if kind == 'point':
        return shape if box.contains(shape) else None
    if kind in ('segment', 'ray', 'line', 'polygon', 'region'):
        return shape.clip_to(box)
    return shape
