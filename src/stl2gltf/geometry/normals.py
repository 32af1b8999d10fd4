"""Per-vertex normals and bounding coordinates for the glTF pre-pass."""

from __future__ import annotations

import numpy as np


def compute_normals(
    vertices: np.ndarray, faces: np.ndarray, face_normals: np.ndarray
) -> np.ndarray:
    """Average the normals of the faces touching each vertex.

    Each face contributes its normal once to each of its three vertices;
    the sum is divided by the number of contributing faces. No area or
    angle weighting and no re-normalization. Vertices not referenced by
    any face keep a zero normal.

    Returns:
        (N, 3) float32 array aligned by index with ``vertices``.
    """
    vertices = np.asarray(vertices).reshape(-1, 3)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    face_normals = np.asarray(face_normals, dtype=np.float64).reshape(-1, 3)

    sums = np.zeros((len(vertices), 3), dtype=np.float64)
    counts = np.zeros(len(vertices), dtype=np.int64)
    for corner in range(3):
        np.add.at(sums, faces[:, corner], face_normals)
        np.add.at(counts, faces[:, corner], 1)

    normals = np.zeros_like(sums)
    used = counts > 0
    normals[used] = sums[used] / counts[used, None]
    return normals.astype(np.float32)


def bounding_coords(points: np.ndarray) -> tuple[list[float], list[float]]:
    """Per-axis minimum and maximum of a point set.

    An empty set yields ``([inf]*3, [-inf]*3)``; check with has_bounds()
    before using the pair.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(points) == 0:
        return [float("inf")] * 3, [float("-inf")] * 3
    return points.min(axis=0).tolist(), points.max(axis=0).tolist()


def has_bounds(bounds_min: list[float], bounds_max: list[float]) -> bool:
    """True when the pair came from at least one point and is finite.

    Bounds of coordinates that hold inf or nan are rejected, since glTF
    accessor min/max must be plain JSON numbers.
    """
    lo = np.asarray(bounds_min, dtype=np.float64)
    hi = np.asarray(bounds_max, dtype=np.float64)
    return bool(
        lo.size
        and np.isfinite(lo).all()
        and np.isfinite(hi).all()
        and (lo <= hi).all()
    )
