"""Public package API for delvor: dynamic Delaunay triangulations and Voronoi diagrams.

This facade gives a flat import surface over the implementation modules in
``delvor.core`` and defers the matplotlib renderer and the scipy-backed
diagnostics until first use so ``import delvor`` stays light.

Example
-------
    from delvor import VoronoiDiagram, BoundingBox

    vd = VoronoiDiagram([(0, 0), (10, 0), (5, 8)])
    region = vd.voronoi_region((5, 8)).clip_to(BoundingBox(-20, -20, 30, 30))
"""
from importlib import import_module as _imp
import logging as _logging

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("delvor")
except Exception:  # pragma: no cover - source checkout without metadata
    __version__ = "0.0.0+dev"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())

_geom = _imp('delvor.core.geometry')
_const = _imp('delvor.core.constants')
_regions = _imp('delvor.core.regions')
_tri = _imp('delvor.core.triangulation')
_hull = _imp('delvor.core.hull')
_voronoi = _imp('delvor.core.voronoi')
_dcel = _imp('delvor.core.dcel')
_io = _imp('delvor.core.io')
_errors = _imp('delvor.core.errors')
_config = _imp('delvor.core.config')
_log = _imp('delvor.core.logging_utils')


def _lazy_module(mod_name):
    class _ModuleProxy:
        __slots__ = ('_m',)

        def __init__(self):
            self._m = None

        def _load(self):
            if self._m is None:
                self._m = _imp(mod_name)
            return self._m

        def __getattr__(self, item):
            return getattr(self._load(), item)

        def __dir__(self):
            return dir(self._load())
    return _ModuleProxy()


def _lazy_attr(mod_name, name):
    def _wrapper(*args, **kwargs):
        return getattr(_imp(mod_name), name)(*args, **kwargs)
    _wrapper.__name__ = name
    return _wrapper


# Heavy / dependency-rich modules
diagnostics = _lazy_module('delvor.core.diagnostics')
visualization = _lazy_module('delvor.core.visualization')

check_triangulation = _lazy_attr('delvor.core.diagnostics', 'check_triangulation')
plot_diagram = _lazy_attr('delvor.core.visualization', 'plot_diagram')

# Geometry
Point = _geom.Point
INFINITY = _geom.INFINITY
Side = _geom.Side
Containment = _geom.Containment
BoundingBox = _geom.BoundingBox
Circle = _geom.Circle
Segment = _geom.Segment
Ray = _geom.Ray
Line = _geom.Line
Triangle = _geom.Triangle
point_test = _geom.point_test
signed_area = _geom.signed_area
intersect = _geom.intersect
Polygon = _regions.Polygon
Region = _regions.Region
CLOSE = _const.CLOSE
PARALLEL = _const.PARALLEL

# Structures
DelaunayTriangulation = _tri.DelaunayTriangulation
ConvexHull = _hull.ConvexHull
VoronoiDiagram = _voronoi.VoronoiDiagram
DualEdge = _dcel.DualEdge
VoronoiStructure = _dcel.VoronoiStructure

# Errors and configuration
DelvorError = _errors.DelvorError
DuplicateSiteError = _errors.DuplicateSiteError
UnknownSiteError = _errors.UnknownSiteError
MeshConsistencyError = _errors.MeshConsistencyError
TriangulationConfig = _config.TriangulationConfig
ExportConfig = _config.ExportConfig
DiagramConfig = _config.DiagramConfig
configure_logging = _log.configure_logging
get_logger = _log.get_logger

# I/O
write_svg = _io.write_svg
write_diagram_svg = _io.write_diagram_svg
write_vtk = _io.write_vtk
save_sites = _io.save_sites
load_sites = _io.load_sites

geometry = _geom
constants = _const
io = _io

__all__ = [
    '__version__',
    # geometry
    'Point', 'INFINITY', 'Side', 'Containment', 'BoundingBox', 'Circle', 'Segment', 'Ray',
    'Line', 'Triangle', 'Polygon', 'Region', 'point_test', 'signed_area', 'intersect',
    'CLOSE', 'PARALLEL',
    # structures
    'DelaunayTriangulation', 'ConvexHull', 'VoronoiDiagram', 'DualEdge', 'VoronoiStructure',
    # errors / config / logging
    'DelvorError', 'DuplicateSiteError', 'UnknownSiteError', 'MeshConsistencyError',
    'TriangulationConfig', 'ExportConfig', 'DiagramConfig', 'configure_logging', 'get_logger',
    # io / lazily loaded
    'write_svg', 'write_diagram_svg', 'write_vtk', 'save_sites', 'load_sites',
    'check_triangulation', 'plot_diagram', 'diagnostics', 'visualization',
    'geometry', 'constants', 'io',
]
