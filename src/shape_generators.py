"""
Voxel generators for parametric shapes.

Each generator maps one shape descriptor to the lattice points it occupies
and yields them lazily, one layer at a time, so very large requests never
hold more than a layer in memory before the caller decides to materialize.

Radial shapes evaluate their membership test on a numpy grid per layer:
- solid keeps points within the surface,
- hollow keeps a one-block (or normalized 0.8-1.0) shell band.

All rounding goes through ``geometry_utils.round_half_up``.
"""
import logging
import math
from typing import Callable, Dict, Iterator, List, Sequence, Tuple

import numpy as np

from build_limits import ADAPTIVE_SEGMENT_RANGE
from geometry_utils import (
    Position,
    bernstein_basis,
    distance_between,
    in_ellipsoid_shell,
    lerp3d,
    normalized_distance,
    round_half_up,
    round_position,
    should_place,
)
from shapes import (
    Axis,
    BezierShape,
    CubeShape,
    CylinderShape,
    EllipsoidShape,
    HelixShape,
    HyperboloidShape,
    LineShape,
    Opening,
    ParaboloidShape,
    ShapeDescriptor,
    ShapeKind,
    SphereShape,
    TorusShape,
)

logger = logging.getLogger(__name__)

Generator = Callable[[ShapeDescriptor], Iterator[Position]]


# =============================================================================
# Helpers
# =============================================================================

def _place(center: Position, axis: Axis, u: int, along: int, v: int) -> Position:
    """Map local (radial u, axial, radial v) offsets to world coordinates."""
    cx, cy, cz = center
    if axis is Axis.Y:
        return (cx + u, cy + along, cz + v)
    if axis is Axis.X:
        return (cx + along, cy + u, cz + v)
    if axis is Axis.Z:
        return (cx + u, cy + v, cz + along)
    raise ValueError(f"Unsupported axis: {axis!r}")


def circle_offsets(radius: float, hollow: bool = False) -> List[Tuple[int, int]]:
    """Integer (u, v) offsets of a filled disc or one-block ring."""
    if radius < 0:
        return []
    base = int(math.floor(radius))
    offsets = np.arange(-base, base + 1)
    du, dv = np.meshgrid(offsets, offsets, indexing="ij")
    mask = should_place(np.sqrt(du ** 2 + dv ** 2), radius, hollow)
    return list(zip(du[mask].tolist(), dv[mask].tolist()))


def _dedupe_consecutive(points: Iterator[Position]) -> Iterator[Position]:
    last = None
    for p in points:
        if p != last:
            yield p
            last = p


# =============================================================================
# Box & line
# =============================================================================

def generate_cube(shape: CubeShape) -> Iterator[Position]:
    """Inclusive box between two corners, given in any order."""
    (x1, y1, z1), (x2, y2, z2) = shape.corner1, shape.corner2
    min_x, max_x = min(x1, x2), max(x1, x2)
    min_y, max_y = min(y1, y2), max(y1, y2)
    min_z, max_z = min(z1, z2), max(z1, z2)

    for x in range(min_x, max_x + 1):
        x_edge = x in (min_x, max_x)
        for y in range(min_y, max_y + 1):
            xy_edge = x_edge or y in (min_y, max_y)
            if shape.hollow and not xy_edge:
                # Interior column: only the two z faces belong to the shell
                yield (x, y, min_z)
                if max_z != min_z:
                    yield (x, y, max_z)
                continue
            for z in range(min_z, max_z + 1):
                yield (x, y, z)


def generate_line(shape: LineShape) -> Iterator[Position]:
    """Integer line stepper that moves one axis per step.

    At every step the axis whose next cell boundary the ideal line crosses
    first is advanced (ties go x, then y, then z), so consecutive points are
    face-adjacent and the walk ends exactly on ``end``.
    """
    start, end = shape.start, shape.end
    deltas = [abs(end[i] - start[i]) for i in range(3)]
    signs = [1 if end[i] > start[i] else -1 for i in range(3)]
    taken = [0, 0, 0]
    current = list(start)

    yield tuple(current)
    for _ in range(sum(deltas)):
        best = -1
        for axis in range(3):
            if taken[axis] >= deltas[axis]:
                continue
            if best < 0:
                best = axis
                continue
            # Crossing parameter t = (2n + 1) / (2d); compare by cross-multiplying
            lhs = (2 * taken[axis] + 1) * deltas[best]
            rhs = (2 * taken[best] + 1) * deltas[axis]
            if lhs < rhs:
                best = axis
        taken[best] += 1
        current[best] += signs[best]
        yield tuple(current)


# =============================================================================
# Radial solids
# =============================================================================

def generate_sphere(shape: SphereShape) -> Iterator[Position]:
    r = shape.radius
    if r < 0:
        return
    cx, cy, cz = shape.center
    offsets = np.arange(-r, r + 1)
    dy, dz = np.meshgrid(offsets, offsets, indexing="ij")
    yz_sq = dy ** 2 + dz ** 2
    for dx in range(-r, r + 1):
        mask = should_place(np.sqrt(dx * dx + yz_sq), r, shape.hollow)
        for oy, oz in zip(dy[mask].tolist(), dz[mask].tolist()):
            yield (cx + dx, cy + oy, cz + oz)


def generate_ellipsoid(shape: EllipsoidShape) -> Iterator[Position]:
    """Normalized-distance ellipsoid; the hollow shell is the band [0.8, 1.0]."""
    rx, ry, rz = shape.radius_x, shape.radius_y, shape.radius_z
    if min(rx, ry, rz) <= 0:
        return
    cx, cy, cz = shape.center
    dy, dz = np.meshgrid(np.arange(-ry, ry + 1), np.arange(-rz, rz + 1), indexing="ij")
    for dx in range(-rx, rx + 1):
        norm = normalized_distance((dx, dy, dz), (0, 0, 0), (rx, ry, rz))
        mask = in_ellipsoid_shell(norm, shape.hollow)
        for oy, oz in zip(dy[mask].tolist(), dz[mask].tolist()):
            yield (cx + dx, cy + oy, cz + oz)


def generate_cylinder(shape: CylinderShape) -> Iterator[Position]:
    """Stack of discs (or rings when hollow, leaving the ends open)."""
    ring = circle_offsets(shape.radius, shape.hollow)
    for level in range(shape.height):
        for u, v in ring:
            yield _place(shape.center, shape.axis, u, level, v)


def generate_torus(shape: TorusShape) -> Iterator[Position]:
    """Implicit torus: tube distance ``sqrt((rho - R)^2 + h^2)`` against the minor radius."""
    big_r, small_r = shape.major_radius, shape.minor_radius
    if small_r < 0 or big_r < 0:
        return
    reach = big_r + small_r
    offsets = np.arange(-reach, reach + 1)
    du, dv = np.meshgrid(offsets, offsets, indexing="ij")
    rho_gap_sq = (np.sqrt(du ** 2 + dv ** 2) - big_r) ** 2
    for h in range(-small_r, small_r + 1):
        mask = should_place(np.sqrt(rho_gap_sq + h * h), small_r, shape.hollow)
        for u, v in zip(du[mask].tolist(), dv[mask].tolist()):
            yield _place(shape.center, shape.axis, u, h, v)


def generate_paraboloid(shape: ParaboloidShape) -> Iterator[Position]:
    """Layer radius grows as ``R * sqrt(progress)`` from the apex."""
    height = shape.height
    for i in range(height):
        progress = i / (height - 1) if height > 1 else 1.0
        level = i if shape.opening is Opening.UP else height - 1 - i
        for u, v in circle_offsets(shape.radius * math.sqrt(progress), shape.hollow):
            yield _place(shape.center, shape.axis, u, level, v)


def generate_hyperboloid(shape: HyperboloidShape) -> Iterator[Position]:
    """One-sheet hyperboloid centred on ``center``.

    Layer radius is ``sqrt(a^2 + (R^2 - a^2) * t^2)`` for t in [-1, 1], so the
    waist (a) sits at mid-height and both ends reach the base radius (R).
    """
    height = shape.height
    a_sq = shape.waist_radius ** 2
    spread = shape.base_radius ** 2 - a_sq
    half_span = (height - 1) / 2.0
    for i in range(height):
        t = (i - half_span) / half_span if half_span > 0 else 0.0
        radius = math.sqrt(max(0.0, a_sq + spread * t * t))
        level = i - height // 2
        for u, v in circle_offsets(radius, shape.hollow):
            yield _place(shape.center, shape.axis, u, level, v)


# =============================================================================
# Curves
# =============================================================================

def helix_steps(radius: float, height: float, turns: float) -> int:
    """Sample count keeping spacing near one block along the spiral."""
    arc = 2 * math.pi * radius * turns
    length = math.sqrt(arc * arc + height * height)
    return max(int(height) * 2, round_half_up(length))


def generate_helix(shape: HelixShape) -> Iterator[Position]:
    steps = helix_steps(shape.radius, shape.height, shape.turns)
    if steps <= 0:
        return
    spin = 1 if shape.clockwise else -1
    rise = -1 if shape.descending else 1

    def _samples() -> Iterator[Position]:
        for i in range(steps + 1):
            progress = i / steps
            angle = spin * shape.turns * 2 * math.pi * progress
            u = round_half_up(math.cos(angle) * shape.radius)
            v = round_half_up(math.sin(angle) * shape.radius)
            level = round_half_up(shape.height * progress) * rise
            yield _place(shape.center, shape.axis, u, level, v)

    yield from _dedupe_consecutive(_samples())


def _control_matrix(start: Position, end: Position,
                    control_points: Sequence[Position]) -> np.ndarray:
    return np.array([start, *control_points, end], dtype=float)


def bezier_curve(points: np.ndarray, ts: np.ndarray) -> np.ndarray:
    """Evaluate a Bezier curve with control polygon ``points`` at parameters ``ts``.

    Returns:
        (len(ts), 3) array of curve points.
    """
    n = len(points) - 1
    basis = np.array([[bernstein_basis(j, n, float(t)) for j in range(n + 1)] for t in ts])
    return basis @ points


def estimate_bezier_arc_length(
    start: Position,
    end: Position,
    control_points: Sequence[Position],
    sample_points: int = 100,
) -> float:
    """Polyline length of the curve sampled at ``sample_points + 1`` parameters."""
    curve = bezier_curve(
        _control_matrix(start, end, control_points),
        np.linspace(0.0, 1.0, sample_points + 1),
    )
    return float(np.linalg.norm(np.diff(curve, axis=0), axis=1).sum())


def adaptive_segments(
    start: Position,
    end: Position,
    control_points: Sequence[Position],
    blocks_per_unit: float = 1.0,
) -> int:
    """Segment count from estimated arc length, clamped to [50, 1000]."""
    arc_length = estimate_bezier_arc_length(start, end, control_points)
    segments = math.ceil(arc_length * blocks_per_unit)
    low, high = ADAPTIVE_SEGMENT_RANGE
    return max(low, min(high, segments))


def generate_bezier(shape: BezierShape) -> Iterator[Position]:
    if shape.segments is None:
        segments = adaptive_segments(shape.start, shape.end, shape.control_points)
    else:
        segments = shape.segments
    if segments <= 0:
        return

    if not shape.control_points:
        # Straight path between the endpoints
        samples = (
            round_position(*lerp3d(shape.start, shape.end, i / segments))
            for i in range(segments + 1)
        )
        yield from _dedupe_consecutive(samples)
        return

    curve = bezier_curve(
        _control_matrix(shape.start, shape.end, shape.control_points),
        np.linspace(0.0, 1.0, segments + 1),
    )
    logger.debug(
        "Bezier degree %d sampled at %d segments (span %.1f)",
        shape.degree, segments, distance_between(shape.start, shape.end),
    )
    yield from _dedupe_consecutive(round_position(*pt) for pt in curve.tolist())


# =============================================================================
# Dispatch table
# =============================================================================

GENERATORS: Dict[ShapeKind, Generator] = {
    ShapeKind.CUBE: generate_cube,
    ShapeKind.LINE: generate_line,
    ShapeKind.SPHERE: generate_sphere,
    ShapeKind.CYLINDER: generate_cylinder,
    ShapeKind.ELLIPSOID: generate_ellipsoid,
    ShapeKind.TORUS: generate_torus,
    ShapeKind.HELIX: generate_helix,
    ShapeKind.PARABOLOID: generate_paraboloid,
    ShapeKind.HYPERBOLOID: generate_hyperboloid,
    ShapeKind.BEZIER: generate_bezier,
}


def generate_points(
    shape: ShapeDescriptor,
    generators: Dict[ShapeKind, Generator] = GENERATORS,
) -> Iterator[Position]:
    """Lazily generate the voxels of ``shape`` using the matching table entry."""
    try:
        generator = generators[shape.kind]
    except KeyError:
        raise ValueError(f"No generator registered for shape kind {shape.kind.value!r}")
    return generator(shape)
