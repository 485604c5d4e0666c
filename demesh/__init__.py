"""
demesh - DEM preprocessing and column-mesh generation.

This package turns elevation/latitude/longitude samples and a YAML
configuration into a triangulated surface mesh and an extruded 3D column
mesh of prisms.

Main modules:
    - demesh.config: Configuration record, value coercion and the event-driven parser
    - demesh.dem: Sample loading and tangent-plane point projection
    - demesh.mesh: Triangulation, extrusion and mesh writers
    - demesh.pipeline: End-to-end driver
    - demesh.cli: Command-line entry point

Quick start:
    >>> from demesh import read_config, extract_points
    >>>
    >>> config = read_config("input.yaml")
    >>> points = extract_points(config)
    >>> print(f"{points.size} points")
"""

__version__ = "0.1.0"

# Config exports
from demesh.config.settings import DemeshConfig, MeshFormat
from demesh.config.parser import read_config, parse_config_string

# DEM exports
from demesh.dem.loader import read_point_data
from demesh.dem.projection import POINT_DTYPE, extract_points, project_points

# Mesh exports
from demesh.mesh.surface import SurfaceMesh, triangulate_dem
from demesh.mesh.column import ColumnMesh, extrude_surface_mesh
from demesh.mesh.writers import write_mesh

# Pipeline exports
from demesh.pipeline import run_pipeline

from demesh.errors import DemeshError, ErrorCode

__all__ = [
    # Version
    "__version__",
    # Config
    "DemeshConfig",
    "MeshFormat",
    "read_config",
    "parse_config_string",
    # DEM
    "read_point_data",
    "POINT_DTYPE",
    "extract_points",
    "project_points",
    # Mesh
    "SurfaceMesh",
    "triangulate_dem",
    "ColumnMesh",
    "extrude_surface_mesh",
    "write_mesh",
    # Pipeline
    "run_pipeline",
    # Errors
    "DemeshError",
    "ErrorCode",
]
