"""
Common mathematical utility functions.

Vectors are (x, y, z) tuples, quaternions are (x, y, z, w) tuples.
"""
import math
from typing import Tuple

Vec3 = Tuple[float, float, float]
Quat = Tuple[float, float, float, float]

IDENTITY_QUAT: Quat = (0.0, 0.0, 0.0, 1.0)


def clip(v: float, lo: float, hi: float) -> float:
    """Clip value v to range [lo, hi]."""
    return lo if v < lo else hi if v > hi else v


def inverse_lerp(a: float, b: float, v: float) -> float:
    """Position of v between a and b as a fraction in [0, 1]."""
    if a == b:
        return 0.0
    return clip((v - a) / (b - a), 0.0, 1.0)


def v3_sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def v3_add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def v3_len(a: Vec3) -> float:
    return math.sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


def v3_dist(a: Vec3, b: Vec3) -> float:
    return v3_len(v3_sub(a, b))


def v3_lerp(a: Vec3, b: Vec3, t: float) -> Vec3:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t, a[2] + (b[2] - a[2]) * t)


def q_dot(a: Quat, b: Quat) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2] + a[3] * b[3]


def q_norm(q: Quat) -> Quat:
    """Unit quaternion; a zero quaternion becomes identity."""
    n = math.sqrt(q_dot(q, q))
    if n <= 1e-12:
        return IDENTITY_QUAT
    inv = 1.0 / n
    return (q[0] * inv, q[1] * inv, q[2] * inv, q[3] * inv)


def q_conj(q: Quat) -> Quat:
    return (-q[0], -q[1], -q[2], q[3])


def q_inverse(q: Quat) -> Quat:
    n2 = q_dot(q, q)
    if n2 <= 1e-12:
        return IDENTITY_QUAT
    c = q_conj(q)
    return (c[0] / n2, c[1] / n2, c[2] / n2, c[3] / n2)


def q_mul(a: Quat, b: Quat) -> Quat:
    """Hamilton product a * b (apply b first, then a)."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return (
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    )


def q_rotate(q: Quat, v: Vec3) -> Vec3:
    """Rotate vector v by quaternion q."""
    p = q_mul(q_mul(q, (v[0], v[1], v[2], 0.0)), q_conj(q))
    return (p[0], p[1], p[2])


def q_slerp(a: Quat, b: Quat, t: float) -> Quat:
    """
    Spherical linear interpolation along the shortest arc.
    Falls back to normalised lerp when the inputs are nearly identical.
    """
    a = q_norm(a)
    b = q_norm(b)
    d = q_dot(a, b)
    if d < 0.0:
        b = (-b[0], -b[1], -b[2], -b[3])
        d = -d
    d = clip(d, 0.0, 1.0)

    if d > 0.9995:
        out = (
            a[0] + (b[0] - a[0]) * t,
            a[1] + (b[1] - a[1]) * t,
            a[2] + (b[2] - a[2]) * t,
            a[3] + (b[3] - a[3]) * t,
        )
        return q_norm(out)

    theta = math.acos(d)
    sin_theta = math.sin(theta)
    w1 = math.sin((1.0 - t) * theta) / sin_theta
    w2 = math.sin(t * theta) / sin_theta
    return q_norm((
        a[0] * w1 + b[0] * w2,
        a[1] * w1 + b[1] * w2,
        a[2] * w1 + b[2] * w2,
        a[3] * w1 + b[3] * w2,
    ))


def q_angle_deg(a: Quat, b: Quat) -> float:
    """Angle between two orientations in degrees, sign-invariant."""
    d = clip(abs(q_dot(q_norm(a), q_norm(b))), 0.0, 1.0)
    return math.degrees(2.0 * math.acos(d))
