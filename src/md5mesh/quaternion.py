"""Quaternion helpers. MD5 stores orientations as [x, y, z, w]."""

from __future__ import annotations

import math

import numpy as np


def quat_w(x: float, y: float, z: float) -> float:
    """Recover the w component of a unit quaternion from x, y and z.

    The format always stores the negative root. When rounding pushes
    ``x² + y² + z²`` past 1 the result is clamped to 0.
    """
    t = 1.0 - x * x - y * y - z * z
    if t < 0.0:
        return 0.0
    return -math.sqrt(t)


def quat_mul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product of two quaternions [x, y, z, w]."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array(
        [
            aw * bx + ax * bw + ay * bz - az * by,
            aw * by - ax * bz + ay * bw + az * bx,
            aw * bz + ax * by - ay * bx + az * bw,
            aw * bw - ax * bx - ay * by - az * bz,
        ],
        dtype=np.float64,
    )


def quat_conj(q: np.ndarray) -> np.ndarray:
    """Conjugate of quaternion [x, y, z, w]."""
    return np.array([-q[0], -q[1], -q[2], q[3]], dtype=np.float64)


def quat_rotate(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Rotate vector v by unit quaternion q. Returns 3-vector."""
    v_quat = np.array([v[0], v[1], v[2], 0.0], dtype=np.float64)
    result = quat_mul(quat_mul(q, v_quat), quat_conj(q))
    return result[:3]


def quat_to_matrix(q: np.ndarray) -> np.ndarray:
    """3x3 rotation matrix for unit quaternion [x, y, z, w]."""
    x, y, z, w = q
    return np.array(
        [
            [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)],
            [2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - w * x)],
            [2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y)],
        ],
        dtype=np.float64,
    )


def quat_normalize(q: tuple[float, float, float, float] | np.ndarray) -> np.ndarray:
    """Unit-length copy of q; a zero quaternion maps to identity."""
    arr = np.array(q, dtype=np.float64)
    norm = np.linalg.norm(arr)
    if norm < 1e-12:
        return np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float64)
    return arr / norm
