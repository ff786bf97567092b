# region Imports
import math
import numpy as np
# endregion

# region Great-circle Distance
def great_circle_angle(phi1, lam1, phi2, lam2):
    """
    Central angle (radians) between two points given in radians, via the
    haversine formula. Accepts scalars or numpy arrays (broadcast).
    """
    dphi = phi2 - phi1
    # longitude difference wrapped to [-pi, pi)
    dlam = np.mod(lam2 - lam1 + math.pi, 2.0 * math.pi) - math.pi
    s2 = np.sin(dphi * 0.5) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlam * 0.5) ** 2
    return 2.0 * np.arcsin(np.sqrt(np.clip(s2, 0.0, 1.0)))


def great_circle_m(phi1, lam1, phi2, lam2, radius: float):
    return great_circle_angle(phi1, lam1, phi2, lam2) * radius
# endregion

# region Meter-to-Angle Conversions
def meters_to_angle(d_m: float, radius: float) -> float:
    """Angular radius of a distance bound, clamped to half the circumference."""
    return min(d_m / radius, math.pi)
# endregion

# region Tangent Plane
def unit_vectors(phi, lam) -> np.ndarray:
    """(..., 3) unit position vectors for latitude/longitude in radians."""
    phi, lam = np.broadcast_arrays(np.asarray(phi, dtype=np.float64), np.asarray(lam, dtype=np.float64))
    cphi = np.cos(phi)
    return np.stack([cphi * np.cos(lam), cphi * np.sin(lam), np.sin(phi)], axis=-1)


def tangent_basis(phi0: float, lam0: float):
    """Return (normal, east, north) unit vectors at a point on the sphere."""
    n = unit_vectors(phi0, lam0)
    e_east = np.array([-math.sin(lam0), math.cos(lam0), 0.0])
    e_north = np.cross(n, e_east)
    return n, e_east, e_north
# endregion
