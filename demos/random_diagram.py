#!/usr/bin/env python3
"""
Random sites: build a Voronoi diagram, edit it a little and export it.
Writes a PNG, an SVG and the site list.
"""
from __future__ import annotations

import argparse

import numpy as np

from delvor.core.config import DiagramConfig, ExportConfig
from delvor.core.diagnostics import check_triangulation, compare_with_scipy
from delvor.core.io import save_sites, write_diagram_svg
from delvor.core.logging_utils import configure_logging, get_logger
from delvor.core.visualization import plot_diagram
from delvor.core.voronoi import VoronoiDiagram

logger = get_logger('delvor.demos.random')


def run_random_diagram(n: int = 40, seed: int = 0, out_prefix: str = 'random_diagram',
                       fill_regions: bool = False) -> VoronoiDiagram:
    rng = np.random.default_rng(seed)
    pts = rng.uniform(0.0, 100.0, size=(n, 2))
    cfg = DiagramConfig(export=ExportConfig(include_largest_circle=True, viewport=(-10, -10, 110, 110)))
    vd = VoronoiDiagram([tuple(p) for p in pts], config=cfg)
    logger.info('built %r', vd.triangulation)

    # move the first site to the middle and drop the last one
    first = next(iter(vd.points()))
    vd.move(first, 50.0, 50.0)
    vd.delete(pts[-1])

    ok, msgs = check_triangulation(vd.triangulation)
    if not ok:
        for m in msgs:
            logger.error('%s', m)
    if vd.size() >= 3 and not vd.is_collinear():
        logger.info('qhull comparison: %s', compare_with_scipy(vd.triangulation))

    circle = vd.largest_empty_circle()
    if circle is not None:
        logger.info('largest empty circle at %s, r=%.3f', circle.center, circle.radius)

    plot_diagram(vd, outname=f'{out_prefix}.png', fill_regions=fill_regions)
    write_diagram_svg(f'{out_prefix}.svg', vd, title=f'{vd.size()} random sites')
    save_sites(f'{out_prefix}_sites.txt', vd.points())
    return vd


def main():
    ap = argparse.ArgumentParser(description='Random Voronoi diagram demo')
    ap.add_argument('--n', type=int, default=40, help='Number of random sites')
    ap.add_argument('--seed', type=int, default=0)
    ap.add_argument('--out', type=str, default='random_diagram', help='Output file prefix')
    ap.add_argument('--fill', action='store_true', help='Shade the clipped Voronoi regions')
    ap.add_argument('--log-level', type=str, default='INFO')
    args = ap.parse_args()

    configure_logging(args.log_level)
    run_random_diagram(args.n, args.seed, args.out, args.fill)


if __name__ == '__main__':  # pragma: no cover
    main()
