"""
Extrusion of surface meshes into columns of prisms.

Every surface vertex is copied once per layer interface, stepping downward
from the surface by the cumulative layer thickness. Every surface triangle
becomes a stack of wedge (6-node prism) cells, one per layer.
"""

from dataclasses import dataclass
from typing import List
import logging

import numpy as np

from demesh.config.settings import DemeshConfig, ExtrusionConfig
from demesh.errors import InvalidParameterValueError, MissingParameterError
from demesh.mesh.surface import SurfaceMesh

logger = logging.getLogger(__name__)


@dataclass
class ColumnMesh:
    """
    Layered prism mesh.

    Attributes:
        vertices: ((num_layers + 1) * n, 3) coordinates; interface k of
            surface vertex i is row k * n + i
        prisms: (num_layers * m, 6) wedge connectivity; layer k of surface
            triangle j is row k * m + j (top face first)
        cell_layers: Layer index of each prism (0 = top)
        num_layers: Number of layers
    """
    vertices: np.ndarray
    prisms: np.ndarray
    cell_layers: np.ndarray
    num_layers: int

    @property
    def num_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def num_cells(self) -> int:
        return int(self.prisms.shape[0])


def layer_thicknesses(extrusion: ExtrusionConfig) -> List[float]:
    """
    Resolve the per-layer thicknesses of an extrusion configuration.

    An explicit thickness list takes precedence over a total thickness,
    which is otherwise split evenly across the layers.

    Raises:
        MissingParameterError: If neither thickness nor thicknesses is set
        InvalidParameterValueError: If the settings are inconsistent
    """
    n = extrusion.num_layers
    if extrusion.layer_thicknesses:
        if len(extrusion.layer_thicknesses) != n:
            raise InvalidParameterValueError(
                f"Got {len(extrusion.layer_thicknesses)} layer thicknesses "
                f"for {n} layers in extrusion block."
            )
        thicknesses = list(extrusion.layer_thicknesses)
    elif extrusion.total_layer_thickness is not None:
        thicknesses = [extrusion.total_layer_thickness / n] * n
    else:
        raise MissingParameterError("No thickness or thicknesses given in extrusion block.")

    if any(t <= 0.0 for t in thicknesses):
        raise InvalidParameterValueError("Layer thicknesses must be positive.")
    return thicknesses


def extrude_surface_mesh(config: DemeshConfig, surface: SurfaceMesh) -> ColumnMesh:
    """
    Extrude each surface triangle into a column of prisms.

    Args:
        config: Configuration holding the extrusion settings
        surface: Triangulated surface mesh

    Returns:
        ColumnMesh with num_layers prisms per surface triangle
    """
    thicknesses = layer_thicknesses(config.extrusion)
    num_layers = len(thicknesses)
    n = surface.num_vertices
    m = surface.num_cells

    depths = np.concatenate([[0.0], np.cumsum(thicknesses)])
    vertices = np.tile(surface.vertices, (num_layers + 1, 1))
    vertices[:, 2] -= np.repeat(depths, n)

    offsets = (np.arange(num_layers, dtype=np.int64) * n)[:, None, None]
    top = surface.triangles[None, :, :] + offsets
    prisms = np.concatenate([top, top + n], axis=2).reshape(-1, 6)
    cell_layers = np.repeat(np.arange(num_layers, dtype=np.int32), m)

    logger.info("Extruded %d triangles into %d prisms over %d layers (%.3f m)",
                m, len(prisms), num_layers, depths[-1])
    return ColumnMesh(vertices=vertices, prisms=prisms,
                      cell_layers=cell_layers, num_layers=num_layers)
