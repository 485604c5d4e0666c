"""
Triangulated surface meshes built from projected DEM points.
"""

from dataclasses import dataclass, field
from typing import Dict, Union
import logging

import numpy as np
from scipy.spatial import Delaunay, QhullError

from demesh.config.settings import DemeshConfig
from demesh.errors import TriangulationError

logger = logging.getLogger(__name__)


@dataclass
class SurfaceMesh:
    """
    Triangle mesh over the x-y plane with elevations at the vertices.

    Attributes:
        vertices: (n, 3) float64 vertex coordinates
        triangles: (m, 3) int64 vertex indices, counter-clockwise
        options: Triangulation engine settings the mesh was built with
    """
    vertices: np.ndarray
    triangles: np.ndarray
    options: Dict[str, Union[int, float]] = field(default_factory=dict)

    @property
    def num_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def num_cells(self) -> int:
        return int(self.triangles.shape[0])


def triangulate_dem(config: DemeshConfig, points: np.ndarray) -> SurfaceMesh:
    """
    Triangulate the unmasked points in the x-y plane.

    Args:
        config: Configuration holding the triangulation engine options
        points: Structured point array from project_points

    Returns:
        SurfaceMesh whose vertices are the points with mask == 1

    Raises:
        TriangulationError: If fewer than three usable points remain or the
            points are degenerate (e.g. all collinear)
    """
    options = config.jigsaw.resolved()
    valid = points[points["mask"] != 0]
    if valid.size < 3:
        raise TriangulationError(
            f"At least 3 unmasked points are needed to triangulate (got {valid.size})."
        )

    vertices = np.column_stack([valid["x"], valid["y"], valid["z"]])
    try:
        tri = Delaunay(vertices[:, :2])
    except QhullError as e:
        raise TriangulationError(f"Triangulation failed: {e}") from e

    triangles = tri.simplices.astype(np.int64, copy=True)

    # Qhull does not guarantee orientation
    a, b, c = (vertices[triangles[:, k], :2] for k in range(3))
    area2 = (b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0])
    flip = area2 < 0
    triangles[flip] = triangles[flip][:, [0, 2, 1]]

    if options["verbosity"] > 0:
        logger.info("Explicit engine options: %s", config.jigsaw.explicit())
    logger.info("Triangulated %d points into %d triangles", len(vertices), len(triangles))
    return SurfaceMesh(vertices=vertices, triangles=triangles, options=options)
