"""
DEM sample handling.

This module provides tools for working with terrain samples:
    - Loading whitespace-separated elevation/latitude/longitude/mask files
    - Projecting geodetic samples onto a local tangent plane
"""

from demesh.dem.loader import (
    read_point_data,
    read_mask_data,
)

from demesh.dem.projection import (
    POINT_DTYPE,
    TangentPlane,
    fit_tangent_plane,
    tangent_plane_scales,
    project_points,
    extract_points,
)

__all__ = [
    # Loading
    "read_point_data",
    "read_mask_data",
    # Projection
    "POINT_DTYPE",
    "TangentPlane",
    "fit_tangent_plane",
    "tangent_plane_scales",
    "project_points",
    "extract_points",
]
