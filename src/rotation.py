"""
Rotation engine for voxel point sets.

Rotations are about a canonical axis (x, y or z) through a pivot, using the
Rodrigues formula, and results snap back to the lattice with round-half-up.
Sequences are applied strictly in order; composition is not commutative.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from geometry_utils import Position, centroid
from shapes import Axis

logger = logging.getLogger(__name__)

_AXIS_VECTORS: Dict[Axis, Tuple[float, float, float]] = {
    Axis.X: (1.0, 0.0, 0.0),
    Axis.Y: (0.0, 1.0, 0.0),
    Axis.Z: (0.0, 0.0, 1.0),
}

DIRECTIONS = ("+x", "-x", "+y", "-y", "+z", "-z", "custom")


@dataclass
class RotationSpec:
    """One rotation step; ``pivot=None`` means the centroid of the points it acts on."""
    axis: Axis
    angle: float  # degrees
    pivot: Optional[Position] = None

    def __post_init__(self):
        self.axis = Axis.from_str(self.axis)


@dataclass
class Orientation:
    direction: Optional[str] = None
    rotations: List[RotationSpec] = field(default_factory=list)

    def __post_init__(self):
        if self.direction is not None and self.direction not in DIRECTIONS:
            raise ValueError(
                f"Invalid direction: {self.direction!r}. Must be one of: {list(DIRECTIONS)}"
            )


# ─── Core math ───────────────────────────────────────────────────────────────

def rodrigues_matrix(axis: Union[str, Axis], angle_deg: float) -> np.ndarray:
    """3x3 rotation matrix for ``angle_deg`` about a canonical unit axis.

    R = cos(a) I + sin(a) [n]x + (1 - cos(a)) n n^T
    """
    n = np.array(_AXIS_VECTORS[Axis.from_str(axis)])
    a = math.radians(angle_deg)
    c, s = math.cos(a), math.sin(a)
    cross = np.array([
        [0.0, -n[2], n[1]],
        [n[2], 0.0, -n[0]],
        [-n[1], n[0], 0.0],
    ])
    return c * np.eye(3) + s * cross + (1 - c) * np.outer(n, n)


def _snap(values: np.ndarray) -> List[Position]:
    snapped = np.floor(values + 0.5).astype(np.int64)
    return [tuple(int(v) for v in row) for row in snapped]


def rotate_points(
    points: Sequence[Position],
    axis: Union[str, Axis],
    angle_deg: float,
    pivot: Position,
) -> List[Position]:
    """Rotate ``points`` about ``axis`` through ``pivot`` and round to the lattice."""
    if not points:
        return []
    rot = rodrigues_matrix(axis, angle_deg)
    origin = np.asarray(pivot, dtype=float)
    relative = np.asarray(points, dtype=float) - origin
    return _snap(relative @ rot.T + origin)


def rotate_point(point: Position, axis: Union[str, Axis], angle_deg: float,
                 pivot: Position = (0, 0, 0)) -> Position:
    return rotate_points([point], axis, angle_deg, pivot)[0]


def apply_rotations(points: Sequence[Position], specs: Sequence[RotationSpec]) -> List[Position]:
    """Apply rotation steps in order, each to the output of the previous one."""
    current = list(points)
    for spec in specs:
        pivot = spec.pivot if spec.pivot is not None else centroid(current)
        current = rotate_points(current, spec.axis, spec.angle, pivot)
    return current


# ─── Directions & presets ────────────────────────────────────────────────────

# Rotations that turn a +y oriented structure toward each direction.
_DIRECTION_ROTATIONS: Dict[str, List[Tuple[Axis, float]]] = {
    "+x": [(Axis.Z, -90)],
    "-x": [(Axis.Z, 90)],
    "+y": [],
    "-y": [(Axis.Z, 180)],
    "+z": [(Axis.X, 90)],
    "-z": [(Axis.X, -90)],
}


def rotations_for_direction(direction: str, pivot: Optional[Position] = None) -> List[RotationSpec]:
    try:
        steps = _DIRECTION_ROTATIONS[direction]
    except KeyError:
        raise ValueError(
            f"Invalid direction: {direction!r}. Must be one of: {sorted(_DIRECTION_ROTATIONS)}"
        )
    return [RotationSpec(axis=axis, angle=angle, pivot=pivot) for axis, angle in steps]


def apply_orientation(
    points: Sequence[Position],
    orientation: Optional[Orientation],
) -> Tuple[List[Position], str]:
    """Reorient a point set.

    A direction other than ``+y``/``custom`` wins over explicit rotations;
    ``custom`` (or no direction) uses ``orientation.rotations``. Directions
    pivot on the rounded centroid of the input.

    Returns:
        (points, transform_info); transform_info is empty when nothing changed.
    """
    points = list(points)
    if not points or orientation is None:
        return points, ""

    if orientation.direction not in (None, "+y", "custom"):
        specs = rotations_for_direction(orientation.direction, centroid(points))
        info = f"oriented to {orientation.direction}"
    else:
        specs = list(orientation.rotations)
        info = f"custom rotations ({len(specs)} steps)"

    if not specs:
        return points, ""

    logger.debug("Applying %d rotation(s): %s", len(specs), info)
    return apply_rotations(points, specs), info


PRESET_ORIENTATIONS: Dict[str, List[Tuple[Axis, float]]] = {
    # Axis-aligned
    "POSITIVE_X": [(Axis.Z, -90)],
    "NEGATIVE_X": [(Axis.Z, 90)],
    "POSITIVE_Y": [],
    "NEGATIVE_Y": [(Axis.Z, 180)],
    "POSITIVE_Z": [(Axis.X, 90)],
    "NEGATIVE_Z": [(Axis.X, -90)],
    # Diagonals
    "DIAGONAL_XY_45": [(Axis.Z, 45)],
    "DIAGONAL_XZ_45": [(Axis.Y, 45)],
    "DIAGONAL_YZ_45": [(Axis.X, 45)],
    # Multi-axis tilts
    "TILTED_TOWER": [(Axis.X, 15), (Axis.Y, 30), (Axis.Z, 10)],
    "DIAGONAL_SPIRAL": [(Axis.X, 30), (Axis.Y, 45), (Axis.Z, 15)],
    "EXTREME_ANGLE": [(Axis.X, 60), (Axis.Y, 45), (Axis.Z, 30)],
}


def apply_preset_orientation(
    points: Sequence[Position],
    name: str,
    pivot: Optional[Position] = None,
) -> Tuple[List[Position], str]:
    """Apply a named preset; every step shares one pivot (default: input centroid)."""
    if name not in PRESET_ORIENTATIONS:
        raise ValueError(
            f"Unknown orientation preset: {name!r}. Must be one of: {sorted(PRESET_ORIENTATIONS)}"
        )
    points = list(points)
    if not points:
        return points, ""
    origin = pivot if pivot is not None else centroid(points)
    specs = [RotationSpec(axis=a, angle=angle, pivot=origin) for a, angle in PRESET_ORIENTATIONS[name]]
    return apply_rotations(points, specs), f"preset: {name}, {len(specs)} rotations"
