"""
Shared coordinate math for voxel shape generation.

Pure helpers used by the shape generators, the rotation engine and the
block optimizer: distances, interpolation, Bernstein basis, bounding boxes,
point-set deduplication and world-range checks.
"""
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

Position = Tuple[int, int, int]
Vec3 = Tuple[float, float, float]

# Minecraft Bedrock world bounds (inclusive)
WORLD_BOUNDS: Dict[str, int] = {
    "x_min": -30_000_000,
    "x_max": 30_000_000,
    "y_min": -64,
    "y_max": 320,
    "z_min": -30_000_000,
    "z_max": 30_000_000,
}

# Normalized-distance band used by ellipsoid shells
HOLLOW_THRESHOLD = 0.8


# ─── Rounding ────────────────────────────────────────────────────────────────

def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +inf.

    This is the single rounding rule for every generator and for rotation.
    """
    return int(math.floor(value + 0.5))


def round_position(x: float, y: float, z: float) -> Position:
    return (round_half_up(x), round_half_up(y), round_half_up(z))


# ─── Distances & interpolation ──────────────────────────────────────────────

def distance(x1: float, y1: float, z1: float,
             x2: float, y2: float, z2: float) -> float:
    """Euclidean distance between two 3D points."""
    dx = x2 - x1
    dy = y2 - y1
    dz = z2 - z1
    return math.sqrt(dx * dx + dy * dy + dz * dz)


def distance_between(p1: Sequence[float], p2: Sequence[float]) -> float:
    return distance(p1[0], p1[1], p1[2], p2[0], p2[1], p2[2])


def normalized_distance(point, center: Sequence[float], radii: Sequence[float]):
    """Distance with each axis scaled by its radius (1.0 = on the ellipsoid).

    Point components may be numpy arrays, in which case the result is an array.
    """
    dx = (point[0] - center[0]) / radii[0]
    dy = (point[1] - center[1]) / radii[1]
    dz = (point[2] - center[2]) / radii[2]
    return np.sqrt(dx * dx + dy * dy + dz * dz)


def should_place(dist, radius: float, hollow: bool):
    """Membership test for radial shapes, scalar or elementwise over an array.

    Solid keeps everything within ``radius``; hollow keeps the outer
    one-block band ``[radius - 1, radius]``.
    """
    inside = dist <= radius
    if hollow:
        return inside & (dist >= radius - 1)
    return inside


def in_ellipsoid_shell(norm, hollow: bool):
    """Normalized-distance membership; hollow keeps ``[HOLLOW_THRESHOLD, 1.0]``."""
    inside = norm <= 1.0
    if hollow:
        return inside & (norm >= HOLLOW_THRESHOLD)
    return inside


def lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def lerp3d(start: Sequence[float], end: Sequence[float], t: float) -> Vec3:
    return (
        lerp(start[0], end[0], t),
        lerp(start[1], end[1], t),
        lerp(start[2], end[2], t),
    )


def factorial(n: int) -> int:
    """Factorial for the small degrees used by Bezier curves."""
    result = 1
    for i in range(2, n + 1):
        result *= i
    return result


def bernstein_basis(i: int, n: int, t: float) -> float:
    """Bernstein basis polynomial b_{i,n}(t)."""
    coeff = factorial(n) / (factorial(i) * factorial(n - i))
    return coeff * (t ** i) * ((1 - t) ** (n - i))


# ─── Point sets ──────────────────────────────────────────────────────────────

def point_key(point: Sequence[int]) -> Position:
    """Canonical hashable key for a lattice point."""
    return (int(point[0]), int(point[1]), int(point[2]))


def deduplicate(points: Iterable[Sequence[int]]) -> List[Position]:
    """Drop repeated points, keeping first-seen order."""
    seen = set()
    unique: List[Position] = []
    for p in points:
        key = point_key(p)
        if key not in seen:
            seen.add(key)
            unique.append(key)
    return unique


def bounding_box(points: Sequence[Sequence[int]]) -> Tuple[Position, Position]:
    """Axis-aligned bounding box as ``(min_corner, max_corner)``.

    An empty set yields ``((0, 0, 0), (0, 0, 0))``.
    """
    if not points:
        return (0, 0, 0), (0, 0, 0)
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    zs = [p[2] for p in points]
    return (min(xs), min(ys), min(zs)), (max(xs), max(ys), max(zs))


def centroid(points: Sequence[Sequence[int]]) -> Position:
    """Rounded mean of a point set; origin for an empty set."""
    if not points:
        return (0, 0, 0)
    n = len(points)
    sx = sum(p[0] for p in points)
    sy = sum(p[1] for p in points)
    sz = sum(p[2] for p in points)
    return round_position(sx / n, sy / n, sz / n)


# ─── World range checks ──────────────────────────────────────────────────────

def clamp_coordinate(value: float, low: int, high: int) -> int:
    """Round a coordinate and clamp it into ``[low, high]``."""
    return max(low, min(high, round_half_up(value)))


def validate_coordinates(x: int, y: int, z: int) -> bool:
    return (
        WORLD_BOUNDS["x_min"] <= x <= WORLD_BOUNDS["x_max"]
        and WORLD_BOUNDS["y_min"] <= y <= WORLD_BOUNDS["y_max"]
        and WORLD_BOUNDS["z_min"] <= z <= WORLD_BOUNDS["z_max"]
    )


def coordinate_validation_error(x: int, y: int, z: int) -> Optional[str]:
    """Describe the first out-of-range axis, or None if the point is valid."""
    for name, value in (("X", x), ("Y", y), ("Z", z)):
        low = WORLD_BOUNDS[f"{name.lower()}_min"]
        high = WORLD_BOUNDS[f"{name.lower()}_max"]
        if not low <= value <= high:
            return f"{name} coordinate {value} is outside [{low}, {high}]"
    return None


def validate_bounding_box(min_corner: Position, max_corner: Position) -> bool:
    return validate_coordinates(*min_corner) and validate_coordinates(*max_corner)
