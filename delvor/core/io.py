"""File output for diagrams and sites.

- write_svg: render exported shapes into an SVG document for a viewport
- write_vtk: export the triangulation in legacy VTK format for ParaView/VisIt
- save_sites / load_sites: plain-text site lists ("x y" per line)

Triangulations travel in the package's array format:
    points: (N, 2) float64 array
    triangles: (M, 3) int32 array
"""
from __future__ import annotations

import math
import warnings
from typing import Dict, Iterable, List, Optional, TextIO, Union
from xml.sax.saxutils import escape

import numpy as np

from .geometry import BoundingBox, Point, as_point
from .logging_utils import get_logger
from .shapes import clip_shape, shape_color, shape_kind

logger = get_logger('delvor.io')

__all__ = [
    'write_svg', 'svg_document', 'write_diagram_svg',
    'write_vtk', 'write_triangulation_vtk',
    'save_sites', 'load_sites',
]


def _num(v: float) -> str:
    return f'{v:.6g}'


def _stroke(color: Optional[str], default: str, width: float) -> str:
    return f' stroke="{color or default}" stroke-width="{_num(width)}"'


def _svg_element(shape, box: BoundingBox, point_radius: float, stroke_width: float,
                 default_color: str) -> Optional[str]:
    clipped = clip_shape(shape, box)
    if clipped is None:
        return None
    kind = shape_kind(clipped)
    color = shape_color(clipped) or shape_color(shape)
    if kind == 'point':
        c = color or default_color
        return (f'<circle cx="{_num(clipped.x)}" cy="{_num(clipped.y)}" r="{_num(point_radius)}"'
                f' stroke="{c}" fill="{c}"/>')
    if kind == 'segment':
        s, e = clipped.start, clipped.end
        return (f'<line x1="{_num(s.x)}" y1="{_num(s.y)}" x2="{_num(e.x)}" y2="{_num(e.y)}"'
                f'{_stroke(color, default_color, stroke_width)}/>')
    if kind == 'circle':
        if clipped.is_degenerate():
            return None
        return (f'<circle cx="{_num(clipped.center.x)}" cy="{_num(clipped.center.y)}"'
                f' r="{_num(clipped.radius)}" fill="none"{_stroke(color, default_color, stroke_width)}/>')
    if kind in ('triangle', 'polygon'):
        pts = clipped.vertices() if kind == 'triangle' else clipped.points
        if len(pts) < 2:
            return None
        coords = ' '.join(f'{_num(p.x)},{_num(p.y)}' for p in pts)
        return f'<polygon points="{coords}" fill="none"{_stroke(color, default_color, stroke_width)}/>'
    return f'<!-- cannot export {type(shape).__name__} -->'


def svg_document(elements: Iterable, box: BoundingBox, title: str = 'Voronoi diagram',
                 point_radius: float = 3.0, stroke_width: float = 1.0,
                 default_color: str = '#000000') -> str:
    """SVG text for ``elements`` seen through ``box`` (user units = diagram units)."""
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        (f'<svg xmlns="http://www.w3.org/2000/svg" width="{_num(box.width)}px"'
         f' height="{_num(box.height)}px"'
         f' viewBox="{_num(box.xmin)} {_num(box.ymin)} {_num(box.width)} {_num(box.height)}">'),
        f'<title>{escape(title)}</title>',
    ]
    skipped = 0
    for el in elements:
        text = _svg_element(el, box, point_radius, stroke_width, default_color)
        if text is None:
            skipped += 1
            continue
        lines.append(text)
    lines.append('</svg>')
    if skipped:
        logger.debug('svg: %d elements outside the viewport', skipped)
    return '\n'.join(lines) + '\n'


def write_svg(target: Union[str, TextIO], elements: Iterable, box: BoundingBox, **kwargs) -> None:
    """Write ``svg_document(elements, box, **kwargs)`` to a path or an open text stream."""
    doc = svg_document(elements, box, **kwargs)
    if hasattr(target, 'write'):
        target.write(doc)
    else:
        with open(target, 'w', encoding='utf-8') as f:
            f.write(doc)
        logger.info('wrote %s', target)


def write_vtk(filepath: str,
              points: np.ndarray,
              triangles: np.ndarray,
              point_data: Optional[Dict[str, np.ndarray]] = None,
              cell_data: Optional[Dict[str, np.ndarray]] = None,
              title: str = "delvor triangulation") -> None:
    """Write a 2D triangulation to legacy VTK format (ASCII).

    Parameters
    ----------
    filepath : str
        Output .vtk file path
    points : (N, 2) or (N, 3) ndarray
        Site coordinates. If 2D, z=0 is added.
    triangles : (M, 3) ndarray
        Triangle connectivity (0-indexed site handles)
    point_data : dict, optional
        Scalars ``(N,)`` or vectors ``(N, 2|3)`` per site.
    cell_data : dict, optional
        Scalars ``(M,)`` or vectors ``(M, 2|3)`` per triangle.
    title : str
        Dataset title line.

    Examples
    --------
    >>> write_vtk('delaunay.vtk', tri.points_array(), tri.triangles_array(),
    ...           cell_data={'circumradius': radii})
    """
    points = np.asarray(points, dtype=np.float64)
    triangles = np.asarray(triangles)

    if points.ndim != 2 or points.shape[1] not in (2, 3):
        raise ValueError(f"points must be (N, 2) or (N, 3), got shape {points.shape}")
    if triangles.ndim != 2 or triangles.shape[1] != 3:
        if triangles.size == 0:
            triangles = triangles.reshape(0, 3)
        else:
            raise ValueError(f"triangles must be (M, 3), got shape {triangles.shape}")

    if points.shape[1] == 2:
        points = np.column_stack([points, np.zeros(len(points))])
    n_pts = len(points)
    n_tri = len(triangles)

    def _write_fields(f, data: Dict[str, np.ndarray], count: int, where: str):
        for name, values in data.items():
            values = np.asarray(values, dtype=np.float64)
            if values.shape[0] != count:
                warnings.warn(f"Skipping {where}['{name}']: expected {count} rows, got {values.shape[0]}")
                continue
            if values.ndim == 1:
                f.write(f"SCALARS {name} double 1\nLOOKUP_TABLE default\n")
                for v in values:
                    f.write(f"{v:.16e}\n")
            elif values.ndim == 2 and values.shape[1] in (2, 3):
                if values.shape[1] == 2:
                    values = np.column_stack([values, np.zeros(len(values))])
                f.write(f"VECTORS {name} double\n")
                for v in values:
                    f.write(f"{v[0]:.16e} {v[1]:.16e} {v[2]:.16e}\n")
            else:
                warnings.warn(f"Skipping {where}['{name}'] with unsupported shape {values.shape}")

    with open(filepath, 'w') as f:
        f.write("# vtk DataFile Version 2.0\n")
        f.write(f"{title}\n")
        f.write("ASCII\n")
        f.write("DATASET UNSTRUCTURED_GRID\n")
        f.write(f"POINTS {n_pts} double\n")
        for p in points:
            f.write(f"{p[0]:.16e} {p[1]:.16e} {p[2]:.16e}\n")
        f.write(f"\nCELLS {n_tri} {n_tri * 4}\n")
        for t in triangles:
            f.write(f"3 {t[0]} {t[1]} {t[2]}\n")
        # 5 = VTK_TRIANGLE
        f.write(f"\nCELL_TYPES {n_tri}\n")
        for _ in range(n_tri):
            f.write("5\n")
        if point_data:
            f.write(f"\nPOINT_DATA {n_pts}\n")
            _write_fields(f, point_data, n_pts, 'point_data')
        if cell_data:
            f.write(f"\nCELL_DATA {n_tri}\n")
            _write_fields(f, cell_data, n_tri, 'cell_data')
    logger.info('wrote %s (%d sites, %d triangles)', filepath, n_pts, n_tri)


def save_sites(target: Union[str, TextIO], points: Iterable) -> int:
    """Write one "x y" line per site, in the given (insertion) order. Returns the count."""
    pts = [as_point(p) for p in points]
    text = ''.join(f'{p.x!r} {p.y!r}\n' for p in pts)
    if hasattr(target, 'write'):
        target.write(text)
    else:
        with open(target, 'w', encoding='utf-8') as f:
            f.write(text)
    return len(pts)


def load_sites(source: Union[str, TextIO]) -> List[Point]:
    """Read a site list written by save_sites; blank lines and '#' comments are ignored."""
    if hasattr(source, 'read'):
        lines = source.read().splitlines()
    else:
        with open(source, 'r', encoding='utf-8') as f:
            lines = f.read().splitlines()
    out: List[Point] = []
    for lineno, line in enumerate(lines, start=1):
        line = line.split('#', 1)[0].strip()
        if not line:
            continue
        parts = line.replace(',', ' ').split()
        if len(parts) != 2:
            raise ValueError(f"line {lineno}: expected 'x y', got {line!r}")
        x, y = float(parts[0]), float(parts[1])
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"line {lineno}: non-finite coordinate")
        out.append(Point(x, y))
    return out


def write_diagram_svg(target: Union[str, TextIO], diagram, config=None,
                      title: str = 'Voronoi diagram') -> None:
    """Export a VoronoiDiagram's layers as SVG through its viewport."""
    cfg = config or diagram.config.export
    write_svg(target, diagram.export_elements(config=cfg), diagram.bounding_box(cfg),
              title=title, point_radius=cfg.point_radius, stroke_width=cfg.stroke_width,
              default_color=cfg.site_color)


def write_triangulation_vtk(filepath: str, triangulation, title: str = "delvor triangulation") -> None:
    """VTK export of the real triangles with their circumradius as cell data."""
    m = triangulation.mesh
    radii = np.array([m[h].circle.radius for h in triangulation.real_triangles()], dtype=np.float64)
    write_vtk(filepath, triangulation.points_array(), triangulation.triangles_array(),
              cell_data={'circumradius': radii} if len(radii) else None, title=title)
