"""
Mesh output in Exodus II and HDF5 formats.

Exodus files are written through meshio (which needs netCDF4 installed).
HDF5 files are written directly with h5py using a small flat layout:

    /vertices            (n, 3) float64
    /cells               (m, k) int64, k = 3 (triangle) or 6 (wedge)
    /cell_layers         (m,) int32, column meshes only
    attrs: cell_type, num_layers, demesh_version
"""

from pathlib import Path
from typing import Optional, Union
import logging

import h5py
import meshio
import numpy as np

from demesh.config.settings import DemeshConfig, MeshFormat, MeshOutput
from demesh.errors import FileOpenError, InvalidParameterValueError, MeshWriteError
from demesh.mesh.column import ColumnMesh
from demesh.mesh.surface import SurfaceMesh

logger = logging.getLogger(__name__)

MESH_KINDS = ("surface_mesh", "column_mesh")

Mesh = Union[SurfaceMesh, ColumnMesh]


def _cells(mesh: Mesh):
    if isinstance(mesh, ColumnMesh):
        return "wedge", mesh.prisms
    return "triangle", mesh.triangles


def write_exodus(mesh: Mesh, path: Union[str, Path]) -> None:
    """Write a mesh to an Exodus II file."""
    cell_type, cells = _cells(mesh)
    out = meshio.Mesh(points=mesh.vertices, cells=[(cell_type, cells)])
    meshio.write(str(path), out, file_format="exodus")


def write_hdf5(mesh: Mesh, path: Union[str, Path]) -> None:
    """Write a mesh to an HDF5 file."""
    from demesh import __version__

    cell_type, cells = _cells(mesh)
    with h5py.File(path, "w") as f:
        f.attrs["demesh_version"] = __version__
        f.attrs["cell_type"] = cell_type
        f.create_dataset("vertices", data=np.asarray(mesh.vertices, dtype=np.float64))
        f.create_dataset("cells", data=np.asarray(cells, dtype=np.int64))
        if isinstance(mesh, ColumnMesh):
            f.attrs["num_layers"] = mesh.num_layers
            f.create_dataset("cell_layers", data=mesh.cell_layers)


_WRITERS = {
    MeshFormat.EXODUS: write_exodus,
    MeshFormat.HDF5: write_hdf5,
}


def write_mesh(config: DemeshConfig, mesh: Mesh, kind: str) -> Optional[Path]:
    """
    Write a mesh as described by the configuration's output block.

    Args:
        config: Configuration holding the output descriptors
        mesh: Surface or column mesh
        kind: Which descriptor to use ("surface_mesh" or "column_mesh")

    Returns:
        Path written, or None if the descriptor has no filename

    Raises:
        InvalidParameterValueError: If kind is not a known descriptor
        FileOpenError: If the file cannot be written
        MeshWriteError: If the writer back-end fails or is not installed
    """
    if kind not in MESH_KINDS:
        raise InvalidParameterValueError(f"Unknown mesh output '{kind}'")
    output: MeshOutput = getattr(config.output, kind)
    if output.filename is None:
        logger.info("No filename given for %s; not writing it", kind)
        return None

    path = Path(output.filename)
    try:
        _WRITERS[output.format](mesh, path)
    except OSError as e:
        raise FileOpenError(path, e.strerror or str(e)) from e
    except (meshio.WriteError, ImportError) as e:
        raise MeshWriteError(
            f"Could not write {kind} to '{path}' as {output.format.value}: {e}"
        ) from e

    logger.info("Wrote %s (%s) to %s", kind, output.format.value, path)
    return path
