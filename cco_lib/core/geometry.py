"""
Geometry kernel for 2D and 3D vascular trees.

Points and vectors are numpy arrays of shape ``(dimension,)``. Every function
is pure. The vectorized variants (``distances_from_segments`` and
``intersections``) operate on stacks of segments and are what the connection
search and the intersection restrictions use in the hot loop; the scalar
functions are thin wrappers over them so both paths share one definition.
"""

from typing import Union
import numpy as np

TOLERANCE = 1e-6

ArrayLike = Union[np.ndarray, list, tuple]


def as_point(p: ArrayLike) -> np.ndarray:
    """Convert to a float64 point array."""
    return np.asarray(p, dtype=np.float64)


def dot(u: np.ndarray, v: np.ndarray) -> float:
    """Dot product."""
    return float(np.dot(u, v))


def norm(v: np.ndarray) -> float:
    """Euclidean norm."""
    return float(np.sqrt(np.dot(v, v)))


def distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two points."""
    d = np.asarray(a) - np.asarray(b)
    return float(np.sqrt(np.dot(d, d)))


def middle(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Midpoint of segment AB."""
    return 0.5 * (np.asarray(a, dtype=np.float64) + np.asarray(b, dtype=np.float64))


def unit_vector(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Unit vector pointing from A to B."""
    ab = np.asarray(b, dtype=np.float64) - np.asarray(a, dtype=np.float64)
    return ab / norm(ab)


def cross(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Cross product, always returned as a 3-vector.

    2D inputs are embedded in the z = 0 plane.
    """
    return np.cross(_to_3d(u), _to_3d(v))


def angle(u: np.ndarray, v: np.ndarray) -> float:
    """
    Angle between two vectors in radians.

    Returns exactly 0.0 when either vector is shorter than ``TOLERANCE``.
    """
    nu = norm(u)
    nv = norm(v)
    if nu < TOLERANCE or nv < TOLERANCE:
        return 0.0
    cosine = dot(u, v) / (nu * nv)
    return float(np.arccos(np.clip(cosine, -1.0, 1.0)))


def distance_from_segment(point: np.ndarray, proximal: np.ndarray, distal: np.ndarray) -> float:
    """
    Critical distance from a point to segment [proximal, distal].

    Orthogonal distance when the projection falls on the segment, otherwise
    the distance to the closest endpoint.
    """
    d = distances_from_segments(
        point, np.atleast_2d(proximal), np.atleast_2d(distal)
    )
    return float(d[0])


def has_intersection(
    a: np.ndarray,
    b: np.ndarray,
    c: np.ndarray,
    d: np.ndarray,
    tolerance: float,
) -> bool:
    """
    Check whether segments AB and CD intersect.

    ``tolerance`` is the combined radius of both vessels.
    """
    hits = intersections(
        a, b, np.atleast_2d(c), np.atleast_2d(d), np.atleast_1d(tolerance)
    )
    return bool(hits[0])


def distances_from_segments(
    point: np.ndarray,
    proximal: np.ndarray,
    distal: np.ndarray,
) -> np.ndarray:
    """
    Critical distance from one point to each segment in a stack.

    Parameters
    ----------
    point : ndarray, shape (d,)
        Query point
    proximal, distal : ndarray, shape (n, d)
        Segment endpoints

    Returns
    -------
    ndarray, shape (n,)
        Distances
    """
    point = np.asarray(point, dtype=np.float64)
    ab = distal - proximal
    ap = point - proximal
    ab_ab = np.einsum("ij,ij->i", ab, ab)
    ap_ab = np.einsum("ij,ij->i", ap, ab)

    degenerate = ab_ab <= 0.0
    safe = np.where(degenerate, 1.0, ab_ab)
    t = np.where(degenerate, -1.0, ap_ab / safe)
    on_segment = (t >= 0.0) & (t <= 1.0)

    if ab.shape[1] == 2:
        perpendicular = np.abs(ab[:, 1] * ap[:, 0] - ab[:, 0] * ap[:, 1])
    else:
        perpendicular = np.linalg.norm(np.cross(ap, ab), axis=1)
    perpendicular = perpendicular / np.sqrt(safe)

    to_proximal = np.linalg.norm(ap, axis=1)
    to_distal = np.linalg.norm(point - distal, axis=1)
    return np.where(on_segment, perpendicular, np.minimum(to_proximal, to_distal))


def intersections(
    a: np.ndarray,
    b: np.ndarray,
    c: np.ndarray,
    d: np.ndarray,
    tolerance: np.ndarray,
) -> np.ndarray:
    """
    Intersection test of one segment AB against a stack of segments CD.

    Parameters
    ----------
    a, b : ndarray, shape (dim,)
        Endpoints of the tested segment
    c, d : ndarray, shape (n, dim)
        Endpoints of the other segments
    tolerance : ndarray, shape (n,)
        Combined radii per pair

    Returns
    -------
    ndarray of bool, shape (n,)
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape[0] == 2:
        return _intersections_2d(a, b, c, d, tolerance)
    return _intersections_3d(a, b, c, d, tolerance)


def _intersections_2d(a, b, c, d, tolerance):
    ab = b - a
    cd = d - c
    ac = c - a

    # Cramer's rule on r*AB - s*CD = AC
    det = ab[0] * (-cd[:, 1]) - (-cd[:, 0]) * ab[1]
    parallel = np.abs(det) < TOLERANCE * TOLERANCE
    safe = np.where(parallel, 1.0, det)
    det_r = ac[:, 0] * (-cd[:, 1]) - (-cd[:, 0]) * ac[:, 1]
    det_s = ab[0] * ac[:, 1] - ac[:, 0] * ab[1]
    r = det_r / safe
    s = det_s / safe

    norm_ab = norm(ab)
    norm_cd = np.linalg.norm(cd, axis=1)
    slack_ab = tolerance / norm_ab if norm_ab > 0.0 else np.full_like(tolerance, np.inf)
    slack_cd = tolerance / np.where(norm_cd > 0.0, norm_cd, np.inf)

    hit = (r > 0.0) & (r < 1.0 + slack_ab) & (s > 0.0) & (s < 1.0 + slack_cd)
    return hit & ~parallel


def _intersections_3d(a, b, c, d, tolerance):
    ab = b - a
    cd = d - c
    ac = c - a

    sq_ab = float(np.dot(ab, ab))
    sq_cd = np.einsum("ij,ij->i", cd, cd)
    ab_cd = cd @ ab
    det = ab_cd * ab_cd - sq_ab * sq_cd
    # sin^2 of the angle between the lines below TOLERANCE means parallel
    parallel = np.abs(det) < TOLERANCE * sq_ab * sq_cd
    parallel |= (sq_ab <= 0.0) | (sq_cd <= 0.0)
    safe = np.where(parallel, 1.0, det)

    ac_ab = ac @ ab
    ac_cd = np.einsum("ij,ij->i", ac, cd)
    r = (ab_cd * ac_cd - ac_ab * sq_cd) / safe
    s = (ac_cd * sq_ab - ac_ab * ab_cd) / safe

    p = a + r[:, None] * ab
    q = c + s[:, None] * cd
    pq = q - p
    sq_pq = np.einsum("ij,ij->i", pq, pq)

    hit = (r > 0.0) & (r < 1.0) & (s > 0.0) & (s < 1.0) & (sq_pq < tolerance * tolerance)
    return hit & ~parallel


def _to_3d(v: np.ndarray) -> np.ndarray:
    v = np.asarray(v, dtype=np.float64)
    if v.shape[-1] == 2:
        return np.append(v, 0.0)
    return v
