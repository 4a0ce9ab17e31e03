"""Vector, matrix and quaternion primitives for the map tools.

Vectors are sequences of three numbers, quaternions sequences of four
(x, y, z, w) and matrices 3x4 nested sequences whose last column is a
translation. Every function returns new tuples and leaves its arguments alone.
"""

from __future__ import annotations

import math
from typing import Sequence

__all__ = [
    "Q_PI",
    "ON_EPSILON",
    "EQUAL_EPSILON",
    "VEC3_ORIGIN",
    "vector_length",
    "vector_compare",
    "q_rint",
    "vector_ma",
    "cross_product",
    "dot_product",
    "vector_subtract",
    "vector_add",
    "vector_scale",
    "vector_normalize",
    "vector_inverse",
    "clear_bounds",
    "add_point_to_bounds",
    "angle_matrix",
    "angle_imatrix",
    "concat_transforms",
    "vector_rotate",
    "vector_irotate",
    "vector_transform",
    "angle_quaternion",
    "quaternion_matrix",
    "quaternion_slerp",
]

Q_PI = 3.14159265358979323846
ON_EPSILON = 0.01
EQUAL_EPSILON = 0.001

Vec3 = tuple[float, float, float]
Vec4 = tuple[float, float, float, float]
Matrix = tuple[tuple[float, float, float, float], ...]

VEC3_ORIGIN: Vec3 = (0.0, 0.0, 0.0)

_DEG_TO_RAD = Q_PI * 2 / 360


def vector_length(v: Sequence[float]) -> float:
    """Return the Euclidean length of ``v``."""
    return math.sqrt(sum(c * c for c in v[:3]))


def vector_compare(v1: Sequence[float], v2: Sequence[float]) -> bool:
    """Return True when every component differs by at most EQUAL_EPSILON."""
    return all(abs(a - b) <= EQUAL_EPSILON for a, b in zip(v1[:3], v2[:3]))


def q_rint(value: float) -> float:
    """Round to the nearest integer, halves rounding up."""
    return float(math.floor(value + 0.5))


def vector_ma(va: Sequence[float], scale: float, vb: Sequence[float]) -> Vec3:
    """Return ``va + scale * vb``."""
    return (va[0] + scale * vb[0], va[1] + scale * vb[1], va[2] + scale * vb[2])


def cross_product(v1: Sequence[float], v2: Sequence[float]) -> Vec3:
    """Return the cross product ``v1 x v2``."""
    return (
        v1[1] * v2[2] - v1[2] * v2[1],
        v1[2] * v2[0] - v1[0] * v2[2],
        v1[0] * v2[1] - v1[1] * v2[0],
    )


def dot_product(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Return the dot product of the first three components."""
    return v1[0] * v2[0] + v1[1] * v2[1] + v1[2] * v2[2]


def vector_subtract(va: Sequence[float], vb: Sequence[float]) -> Vec3:
    """Return ``va - vb``."""
    return (va[0] - vb[0], va[1] - vb[1], va[2] - vb[2])


def vector_add(va: Sequence[float], vb: Sequence[float]) -> Vec3:
    """Return ``va + vb``."""
    return (va[0] + vb[0], va[1] + vb[1], va[2] + vb[2])


def vector_scale(v: Sequence[float], scale: float) -> Vec3:
    """Return ``v * scale``."""
    return (v[0] * scale, v[1] * scale, v[2] * scale)


def vector_normalize(v: Sequence[float]) -> tuple[Vec3, float]:
    """Return ``(unit_vector, original_length)``.

    A zero vector comes back unchanged with a length of 0.
    """
    length = vector_length(v)
    if length == 0:
        return (float(v[0]), float(v[1]), float(v[2])), 0.0
    return (v[0] / length, v[1] / length, v[2] / length), length


def vector_inverse(v: Sequence[float]) -> Vec3:
    """Return ``-v``."""
    return (-v[0], -v[1], -v[2])


def clear_bounds() -> tuple[Vec3, Vec3]:
    """Return empty ``(mins, maxs)`` bounds ready for add_point_to_bounds."""
    return (99999.0, 99999.0, 99999.0), (-99999.0, -99999.0, -99999.0)


def add_point_to_bounds(
    v: Sequence[float], mins: Sequence[float], maxs: Sequence[float]
) -> tuple[Vec3, Vec3]:
    """Return ``(mins, maxs)`` grown to include the point ``v``."""
    new_mins = tuple(min(m, p) if p < m else m for p, m in zip(v[:3], mins[:3]))
    new_maxs = tuple(max(m, p) if p > m else m for p, m in zip(v[:3], maxs[:3]))
    return new_mins, new_maxs  # type: ignore[return-value]


def _sin_cos(angles: Sequence[float], factor: float) -> tuple[float, ...]:
    yaw = angles[2] * factor
    pitch = angles[1] * factor
    roll = angles[0] * factor
    return (
        math.sin(roll), math.sin(pitch), math.sin(yaw),
        math.cos(roll), math.cos(pitch), math.cos(yaw),
    )


def _rotation_rows(angles: Sequence[float]) -> tuple[tuple[float, float, float], ...]:
    sr, sp, sy, cr, cp, cy = _sin_cos(angles, _DEG_TO_RAD)
    # matrix = (Z * Y) * X
    return (
        (cp * cy, sr * sp * cy + cr * -sy, cr * sp * cy + -sr * -sy),
        (cp * sy, sr * sp * sy + cr * cy, cr * sp * sy + -sr * cy),
        (-sp, sr * cp, cr * cp),
    )


def angle_matrix(angles: Sequence[float]) -> Matrix:
    """Return the 3x4 rotation matrix for (roll, pitch, yaw) in degrees."""
    return tuple(row + (0.0,) for row in _rotation_rows(angles))


def angle_imatrix(angles: Sequence[float]) -> Matrix:
    """Return the inverse (transposed) rotation matrix for angles in degrees."""
    rows = _rotation_rows(angles)
    return tuple(tuple(rows[r][c] for r in range(3)) + (0.0,) for c in range(3))


def concat_transforms(in1: Sequence[Sequence[float]], in2: Sequence[Sequence[float]]) -> Matrix:
    """Return the 3x4 transform that applies ``in2`` then ``in1``."""
    result = []
    for row in in1:
        values = [sum(row[k] * in2[k][col] for k in range(3)) for col in range(4)]
        values[3] += row[3]
        result.append(tuple(values))
    return tuple(result)


def vector_rotate(v: Sequence[float], matrix: Sequence[Sequence[float]]) -> Vec3:
    """Rotate ``v`` by the rotation part of ``matrix``."""
    return (
        dot_product(v, matrix[0]),
        dot_product(v, matrix[1]),
        dot_product(v, matrix[2]),
    )


def vector_irotate(v: Sequence[float], matrix: Sequence[Sequence[float]]) -> Vec3:
    """Rotate ``v`` by the inverse of the rotation part of ``matrix``."""
    return tuple(  # type: ignore[return-value]
        v[0] * matrix[0][c] + v[1] * matrix[1][c] + v[2] * matrix[2][c] for c in range(3)
    )


def vector_transform(v: Sequence[float], matrix: Sequence[Sequence[float]]) -> Vec3:
    """Rotate ``v`` by ``matrix`` and add its translation."""
    return tuple(dot_product(v, row) + row[3] for row in matrix[:3])  # type: ignore[return-value]


def angle_quaternion(angles: Sequence[float]) -> Vec4:
    """Return the (x, y, z, w) quaternion for (roll, pitch, yaw) in radians."""
    sr, sp, sy, cr, cp, cy = _sin_cos(angles, 0.5)
    return (
        sr * cp * cy - cr * sp * sy,
        cr * sp * cy + sr * cp * sy,
        cr * cp * sy - sr * sp * cy,
        cr * cp * cy + sr * sp * sy,
    )


def quaternion_matrix(quaternion: Sequence[float]) -> Matrix:
    """Return the 3x4 rotation matrix of a quaternion, with zero translation."""
    x, y, z, w = quaternion[:4]
    return (
        (1.0 - 2.0 * y * y - 2.0 * z * z, 2.0 * x * y - 2.0 * w * z, 2.0 * x * z + 2.0 * w * y, 0.0),
        (2.0 * x * y + 2.0 * w * z, 1.0 - 2.0 * x * x - 2.0 * z * z, 2.0 * y * z - 2.0 * w * x, 0.0),
        (2.0 * x * z - 2.0 * w * y, 2.0 * y * z + 2.0 * w * x, 1.0 - 2.0 * x * x - 2.0 * y * y, 0.0),
    )


def quaternion_slerp(p: Sequence[float], q: Sequence[float], t: float) -> Vec4:
    """Spherically interpolate from ``p`` (t=0) to ``q`` (t=1)."""
    a = sum((pi - qi) ** 2 for pi, qi in zip(p, q))
    b = sum((pi + qi) ** 2 for pi, qi in zip(p, q))
    if a > b:
        q = [-qi for qi in q]

    cosom = sum(pi * qi for pi, qi in zip(p, q))

    if 1.0 + cosom > 0.00000001:
        if 1.0 - cosom > 0.00000001:
            omega = math.acos(cosom)
            sinom = math.sin(omega)
            sclp = math.sin((1.0 - t) * omega) / sinom
            sclq = math.sin(t * omega) / sinom
        else:
            sclp = 1.0 - t
            sclq = t
        return tuple(sclp * pi + sclq * qi for pi, qi in zip(p, q))  # type: ignore[return-value]

    perpendicular = (-p[1], p[0], -p[3], p[2])
    sclp = math.sin((1.0 - t) * 0.5 * Q_PI)
    sclq = math.sin(t * 0.5 * Q_PI)
    return (
        sclp * p[0] + sclq * perpendicular[0],
        sclp * p[1] + sclq * perpendicular[1],
        sclp * p[2] + sclq * perpendicular[2],
        perpendicular[3],
    )