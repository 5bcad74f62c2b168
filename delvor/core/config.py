"""Configuration objects for the triangulation and the exporters."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Any, Dict, Tuple

from .constants import WALK_STEP_FACTOR, WALK_STEP_SLACK


@dataclass
class TriangulationConfig:
    # Run the full invariant check after each insert/delete/move (slow, for debugging)
    validate_after_mutation: bool = False
    walk_step_factor: int = WALK_STEP_FACTOR
    walk_step_slack: int = WALK_STEP_SLACK


@dataclass
class ExportConfig:
    include_sites: bool = True
    include_delaunay: bool = True
    include_voronoi: bool = True
    include_hull: bool = True
    include_largest_circle: bool = False
    site_color: str = '#000000'
    delaunay_color: str = '#9a9a9a'
    voronoi_color: str = '#1f4fd8'
    hull_color: str = '#2a9d3a'
    circle_color: str = '#d8441f'
    point_radius: float = 3.0
    stroke_width: float = 1.0
    # (xmin, ymin, xmax, ymax); None means "fit the sites with a margin"
    viewport: Optional[Tuple[float, float, float, float]] = None
    margin: float = 0.1


@dataclass
class DiagramConfig:
    """Unified configuration.

    Attributes
    ----------
    triangulation : TriangulationConfig
        Behaviour of the incremental triangulation.
    export : ExportConfig
        Layers, colours and viewport used by ``export_elements`` and the writers.
    extras : dict
        Free-form dictionary for caller-side settings.
    """
    triangulation: TriangulationConfig = field(default_factory=TriangulationConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DiagramConfig':
        """Build a config from a nested plain dict, e.g. parsed JSON."""
        tri = TriangulationConfig(**data.get('triangulation', {}))
        exp = dict(data.get('export', {}))
        if exp.get('viewport') is not None:
            exp['viewport'] = tuple(float(v) for v in exp['viewport'])
        return cls(triangulation=tri, export=ExportConfig(**exp), extras=dict(data.get('extras', {})))


__all__ = ['TriangulationConfig', 'ExportConfig', 'DiagramConfig']
