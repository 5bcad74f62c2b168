"""Matplotlib rendering of a Voronoi diagram and its triangulation."""
from __future__ import annotations

import os as _os
import matplotlib as _mpl
# Ensure a non-interactive backend in headless environments before importing pyplot
if not _os.environ.get('MPLBACKEND'):
    try:
        _mpl.use('Agg')
    except Exception:
        pass
import numpy as np
import matplotlib.pyplot as plt

from .logging_utils import get_logger
from .shapes import clip_shape, shape_color, shape_kind

logger = get_logger('delvor.viz')

__all__ = ['draw_elements', 'plot_diagram']


def draw_elements(ax, elements, box, point_size: float = 12.0, linewidth: float = 1.0) -> int:
    """Draw exported shapes clipped to ``box`` on ``ax``; returns how many were drawn."""
    drawn = 0
    for el in elements:
        shape = clip_shape(el, box)
        if shape is None:
            continue
        kind = shape_kind(shape)
        color = shape_color(shape) or shape_color(el) or 'k'
        if kind == 'point':
            ax.scatter([shape.x], [shape.y], s=point_size, color=color, zorder=3)
        elif kind == 'segment':
            ax.plot([shape.start.x, shape.end.x], [shape.start.y, shape.end.y],
                    color=color, linewidth=linewidth)
        elif kind == 'circle':
            if shape.is_degenerate():
                continue
            ax.add_patch(plt.Circle((shape.center.x, shape.center.y), shape.radius,
                                    fill=False, color=color, linewidth=linewidth))
        elif kind in ('triangle', 'polygon'):
            pts = shape.vertices() if kind == 'triangle' else shape.points
            if len(pts) < 2:
                continue
            xs = [p.x for p in pts] + [pts[0].x]
            ys = [p.y for p in pts] + [pts[0].y]
            ax.plot(xs, ys, color=color, linewidth=linewidth)
        else:
            continue
        drawn += 1
    return drawn


def plot_diagram(diagram, outname: str = 'diagram.png', config=None, fill_regions: bool = False,
                 dpi: int = 150) -> str:
    """Render ``diagram`` with its export layers to an image file.

    Args:
        diagram: VoronoiDiagram
        outname: output image path
        config: ExportConfig overriding the diagram's own
        fill_regions: if True, shade every clipped Voronoi region in a distinct colour
    """
    cfg = config or diagram.config.export
    box = diagram.bounding_box(cfg)
    fig, ax = plt.subplots(figsize=(7, 7 * box.height / box.width))
    if fill_regions and len(diagram) > 0:
        cmap = plt.get_cmap('tab20')
        for i, region in enumerate(diagram.regions()):
            poly = region.clip_to(box)
            if poly is None:
                continue
            xy = np.array([(p.x, p.y) for p in poly.points])
            ax.fill(xy[:, 0], xy[:, 1], color=cmap(i % 20), alpha=0.35, linewidth=0)
    tris = diagram.triangulation.triangles_array()
    if cfg.include_delaunay and len(tris):
        pts = diagram.triangulation.points_array()
        ax.triplot(pts[:, 0], pts[:, 1], tris, color=cfg.delaunay_color, linewidth=0.6 * cfg.stroke_width)
        cfg_rest = _without_delaunay(cfg)
    else:
        cfg_rest = cfg
    n = draw_elements(ax, diagram.export_elements(config=cfg_rest), box,
                      point_size=4 * cfg.point_radius ** 2, linewidth=cfg.stroke_width)
    ax.set_xlim(box.xmin, box.xmax)
    ax.set_ylim(box.ymin, box.ymax)
    ax.set_aspect('equal')
    ax.set_title(f'{len(diagram)} sites')
    fig.savefig(outname, dpi=dpi)
    plt.close(fig)
    logger.info('plot_diagram: %d elements -> %s', n, outname)
    return outname


def _without_delaunay(cfg):
    from dataclasses import replace
    return replace(cfg, include_delaunay=False)
