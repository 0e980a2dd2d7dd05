"""
Decoding of quantized rotations.

A rotation column is sent as an integer. The low 3 bits pick one octant of
the unit sphere (three axis vectors). Each following pair of bits narrows the
spherical triangle by replacing corners with normalized edge midpoints. The
decoded column is the normalized sum of the final three corners.
"""

import numpy as np

_XP = (1.0, 0.0, 0.0)
_XN = (-1.0, 0.0, 0.0)
_YP = (0.0, 1.0, 0.0)
_YN = (0.0, -1.0, 0.0)
_ZP = (0.0, 0.0, 1.0)
_ZN = (0.0, 0.0, -1.0)

ROTATION_TABLE = np.array([
    [_YP, _XP, _ZP],
    [_YP, _ZP, _XN],
    [_YP, _ZN, _XP],
    [_YP, _XN, _ZN],
    [_ZP, _XP, _YN],
    [_XN, _ZP, _YN],
    [_XP, _ZN, _YN],
    [_ZN, _XN, _YN],
], dtype=np.float32)


def _normalize(v: np.ndarray) -> np.ndarray:
    return v / np.linalg.norm(v)


def convert_rot_column(bits: int, value: int) -> np.ndarray:
    """Expand a `bits`-wide rotation code into a unit vector (float32)."""
    a, b, c = (v.copy() for v in ROTATION_TABLE[value & 7])

    for shift in range(3, bits, 2):
        step = (value >> shift) & 3
        ab = _normalize(a + b)
        bc = _normalize(b + c)
        ac = _normalize(a + c)
        if step == 0:
            b, c = ab, ac
        elif step == 1:
            a, c = ab, bc
        elif step == 2:
            a, b = ac, bc
        else:
            a, b, c = ab, bc, ac

    return _normalize(a + b + c)


def convert_matrix(bits: int, v1: int, v2: int) -> np.ndarray:
    """Build a 3x3 rotation matrix from the codes of its second and third columns.

    The first column is the cross product of the other two.
    """
    r1 = convert_rot_column(bits, v1)
    r2 = convert_rot_column(bits, v2)
    r0 = np.cross(r1, r2)
    return np.column_stack((r0, r1, r2)).astype(np.float32)
