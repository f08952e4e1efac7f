"""
Build size limits and accepted shape parameter ranges.

Block limits apply to the raw voxel count before optimization; the
bulk-operation ceiling applies to the number of mutation calls after it.
"""
from typing import Dict, Tuple

# Raw voxel count per shape kind, keyed by ShapeKind value.
BUILD_LIMITS: Dict[str, int] = {
    # Basic solids (collapse into few boxes)
    "cube": 100_000,
    "sphere": 50_000,
    "cylinder": 80_000,
    "ellipsoid": 60_000,
    # Curved solids
    "torus": 40_000,
    "hyperboloid": 30_000,
    "paraboloid": 30_000,
    # Curves (close to one call per block)
    "helix": 20_000,
    "line": 10_000,
    "bezier": 10_000,
}

# Mutation calls a single build may issue after optimization.
FILL_OPERATION_LIMIT = 2000

# Expected fraction of calls saved by optimization, per shape kind.
EXPECTED_REDUCTION: Dict[str, float] = {
    "cube": 0.99,
    "sphere": 0.90,
    "cylinder": 0.95,
    "ellipsoid": 0.85,
    "torus": 0.80,
    "hyperboloid": 0.75,
    "paraboloid": 0.75,
    "helix": 0.20,
    "line": 0.30,
    "bezier": 0.30,
}

# Inclusive (min, max) per numeric descriptor field.
PARAMETER_RANGES: Dict[str, Dict[str, Tuple[float, float]]] = {
    "sphere": {"radius": (1, 50)},
    "cylinder": {"radius": (1, 30), "height": (1, 50)},
    "ellipsoid": {"radius_x": (1, 50), "radius_y": (1, 50), "radius_z": (1, 50)},
    "torus": {"major_radius": (3, 50), "minor_radius": (1, 20)},
    "helix": {"radius": (1, 50), "height": (2, 100), "turns": (0.5, 20)},
    "paraboloid": {"radius": (2, 50), "height": (1, 50)},
    "hyperboloid": {"base_radius": (3, 50), "waist_radius": (1, 30), "height": (4, 100)},
}

BEZIER_SEGMENT_RANGE: Tuple[int, int] = (10, 1000)
ADAPTIVE_SEGMENT_RANGE: Tuple[int, int] = (50, 1000)


def block_limit(kind: str) -> int:
    """Raw voxel limit for a shape kind value."""
    return BUILD_LIMITS[kind]


def estimate_fill_operations(kind: str, block_count: int) -> float:
    """Predicted mutation calls for ``block_count`` voxels of a shape kind."""
    reduction = EXPECTED_REDUCTION.get(kind, 0.5)
    return block_count * (1 - reduction)
