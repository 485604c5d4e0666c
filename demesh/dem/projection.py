"""
Projection of geodetic samples onto a local tangent plane.

Latitude/longitude offsets from a reference point are converted to metres
using scale factors that are held constant over the whole data set. The
earth is treated as flat around the reference point, so the result is only
meaningful for small extents away from the poles.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union
import logging

import numpy as np

from demesh.config.settings import DemeshConfig
from demesh.dem.loader import read_mask_data, read_point_data
from demesh.errors import MissingParameterError, PointCountMismatchError

logger = logging.getLogger(__name__)

POINT_DTYPE = np.dtype([
    ("x", np.float64),
    ("y", np.float64),
    ("z", np.float64),
    ("mask", np.int32),
])

# Beyond these the flat-earth approximation is poor.
POLAR_LATITUDE_LIMIT = 80.0
MAX_EXTENT_DEGREES = 5.0


def tangent_plane_scales(latitude: Union[float, np.ndarray]) -> Tuple[float, float]:
    """
    Length of one degree of longitude and latitude at a given latitude.

    Uses the series expansion of the WGS84 ellipsoid.

    Args:
        latitude: Latitude in degrees

    Returns:
        dx_dlon: Metres per degree of longitude (easting)
        dy_dlat: Metres per degree of latitude (northing)
    """
    phi = np.deg2rad(latitude)
    dx_dlon = (111412.84 * np.cos(phi) - 93.5 * np.cos(3 * phi)
               + 0.118 * np.cos(5 * phi))
    dy_dlat = (111132.92 - 559.82 * np.cos(2 * phi) + 1.175 * np.cos(4 * phi)
               - 0.0023 * np.cos(6 * phi))
    return float(dx_dlon), float(dy_dlat)


@dataclass
class TangentPlane:
    """
    Local north-east plane fitted to a set of samples.

    Attributes:
        origin_lat: Latitude of the origin (middle of the latitude range)
        origin_lon: Longitude of the origin (middle of the longitude range)
        dx_dlon: Metres per degree of longitude at the origin
        dy_dlat: Metres per degree of latitude at the origin
    """
    origin_lat: float
    origin_lon: float
    dx_dlon: float
    dy_dlat: float

    def project(
        self,
        latitude: np.ndarray,
        longitude: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Convert latitude/longitude (degrees) to x/y offsets in metres."""
        x = self.dx_dlon * (np.asarray(longitude, dtype=np.float64) - self.origin_lon)
        y = self.dy_dlat * (np.asarray(latitude, dtype=np.float64) - self.origin_lat)
        return x, y


def fit_tangent_plane(latitude: np.ndarray, longitude: np.ndarray) -> TangentPlane:
    """
    Fit a tangent plane at the middle of the sample bounding box.

    Args:
        latitude: Latitudes in degrees
        longitude: Longitudes in degrees

    Returns:
        TangentPlane with origin and scale factors
    """
    latitude = np.asarray(latitude, dtype=np.float64)
    longitude = np.asarray(longitude, dtype=np.float64)

    min_lat, max_lat = float(latitude.min()), float(latitude.max())
    min_lon, max_lon = float(longitude.min()), float(longitude.max())
    median_lat = 0.5 * (min_lat + max_lat)
    median_lon = 0.5 * (min_lon + max_lon)

    if abs(median_lat) > POLAR_LATITUDE_LIMIT:
        logger.warning(
            "Tangent plane at latitude %.2f is close to a pole; "
            "projected distances will be inaccurate", median_lat
        )
    if max_lat - min_lat > MAX_EXTENT_DEGREES or max_lon - min_lon > MAX_EXTENT_DEGREES:
        logger.warning(
            "Samples span %.2f x %.2f degrees; the flat-earth approximation "
            "is poor over large extents", max_lat - min_lat, max_lon - min_lon
        )

    dx_dlon, dy_dlat = tangent_plane_scales(median_lat)
    return TangentPlane(median_lat, median_lon, dx_dlon, dy_dlat)


def project_points(
    elevation: np.ndarray,
    latitude: np.ndarray,
    longitude: np.ndarray,
    mask: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Convert geodetic samples to points above a local x-y plane.

    x is the easterly and y the northerly displacement in metres from the
    middle of the latitude/longitude bounding box; z is the elevation.

    Args:
        elevation: Elevation samples
        latitude: Latitudes in degrees, one per elevation sample
        longitude: Longitudes in degrees, one per elevation sample
        mask: Optional 0/1 validity flags (all 1 if omitted)

    Returns:
        Structured array with POINT_DTYPE fields x, y, z, mask

    Raises:
        PointCountMismatchError: If any array length differs from elevation's

    Example:
        >>> points = project_points(elev, lat, lon)
        >>> print(points["x"].max() - points["x"].min())
    """
    elevation = np.asarray(elevation, dtype=np.float64).ravel()
    latitude = np.asarray(latitude, dtype=np.float64).ravel()
    longitude = np.asarray(longitude, dtype=np.float64).ravel()
    n = elevation.size

    # Validate everything before producing any output
    if latitude.size != n:
        raise PointCountMismatchError("latitude coordinates", latitude.size, "elevations", n)
    if longitude.size != n:
        raise PointCountMismatchError("longitude coordinates", longitude.size, "elevations", n)
    if mask is not None:
        mask = np.asarray(mask).ravel()
        if mask.size != n:
            raise PointCountMismatchError("mask values", mask.size, "elevations", n)

    points = np.zeros(n, dtype=POINT_DTYPE)
    if n == 0:
        return points

    plane = fit_tangent_plane(latitude, longitude)
    points["x"], points["y"] = plane.project(latitude, longitude)
    points["z"] = elevation
    points["mask"] = 1 if mask is None else mask.astype(np.int32)

    logger.debug(
        "Projected %d points about (%.6f, %.6f); dx/dlon=%.3f m, dy/dlat=%.3f m",
        n, plane.origin_lat, plane.origin_lon, plane.dx_dlon, plane.dy_dlat
    )
    return points


def extract_points(config: DemeshConfig) -> np.ndarray:
    """
    Read the sample files named in a configuration and project them.

    Args:
        config: Configuration whose data block names the sample files

    Returns:
        Structured point array (see project_points)

    Raises:
        MissingParameterError: If dem, lat or lon is not configured
        FileOpenError: If a sample file cannot be read
        InvalidNumberError: If a sample file holds malformed data
        PointCountMismatchError: If the files disagree in length
    """
    data = config.data
    for name in ("dem", "lat", "lon"):
        if getattr(data, name) is None:
            raise MissingParameterError(f"No '{name}' file given in data block.")

    elevation = read_point_data(data.dem)
    latitude = read_point_data(data.lat)
    if latitude.size != elevation.size:
        raise PointCountMismatchError(
            "latitude coordinates", latitude.size, "elevations", elevation.size)
    longitude = read_point_data(data.lon)
    if longitude.size != elevation.size:
        raise PointCountMismatchError(
            "longitude coordinates", longitude.size, "elevations", elevation.size)
    mask = read_mask_data(data.mask) if data.mask is not None else None

    points = project_points(elevation, latitude, longitude, mask)
    logger.info("Extracted %d points from %s", points.size, data.dem)
    return points
