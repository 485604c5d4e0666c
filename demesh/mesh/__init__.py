"""
Surface triangulation, column extrusion and mesh output.
"""

from demesh.mesh.surface import SurfaceMesh, triangulate_dem
from demesh.mesh.column import ColumnMesh, extrude_surface_mesh, layer_thicknesses
from demesh.mesh.writers import write_mesh, write_exodus, write_hdf5

__all__ = [
    "SurfaceMesh",
    "triangulate_dem",
    "ColumnMesh",
    "extrude_surface_mesh",
    "layer_thicknesses",
    "write_mesh",
    "write_exodus",
    "write_hdf5",
]
