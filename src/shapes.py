"""
Shape descriptors for voxel builds.

Each buildable solid is a frozen dataclass carrying only the parameters of
its own kind. ``ShapeKind`` tags the variant so generators and limits are
looked up by enum, never by raw string.
"""
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from build_limits import BEZIER_SEGMENT_RANGE, PARAMETER_RANGES
from geometry_utils import Position, coordinate_validation_error


class ShapeKind(Enum):
    """Buildable shape families."""
    CUBE = "cube"
    LINE = "line"
    SPHERE = "sphere"
    CYLINDER = "cylinder"
    ELLIPSOID = "ellipsoid"
    TORUS = "torus"
    HELIX = "helix"
    PARABOLOID = "paraboloid"
    HYPERBOLOID = "hyperboloid"
    BEZIER = "bezier"


class Axis(Enum):
    """Canonical coordinate axes."""
    X = "x"
    Y = "y"
    Z = "z"

    @classmethod
    def from_str(cls, value: Union[str, "Axis"]) -> "Axis":
        if isinstance(value, Axis):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Invalid axis: {value!r}. Must be one of: {[a.value for a in cls]}"
            )


class Opening(Enum):
    """Which way a paraboloid's bowl opens along its axis."""
    UP = "up"
    DOWN = "down"


class ShapeValidationError(ValueError):
    """Raised when a descriptor fails boundary validation."""

    def __init__(self, issues: List[str]):
        self.issues = issues
        super().__init__("; ".join(issues))


# ─── Descriptors ─────────────────────────────────────────────────────────────

class _AxisAligned:
    """Accepts ``axis`` as an ``Axis`` or its letter, stored as ``Axis``."""

    def __post_init__(self):
        object.__setattr__(self, "axis", Axis.from_str(self.axis))


@dataclass(frozen=True)
class CubeShape:
    corner1: Position
    corner2: Position
    hollow: bool = False
    kind: ClassVar[ShapeKind] = ShapeKind.CUBE


@dataclass(frozen=True)
class LineShape:
    start: Position
    end: Position
    kind: ClassVar[ShapeKind] = ShapeKind.LINE


@dataclass(frozen=True)
class SphereShape:
    center: Position
    radius: int
    hollow: bool = False
    kind: ClassVar[ShapeKind] = ShapeKind.SPHERE


@dataclass(frozen=True)
class CylinderShape(_AxisAligned):
    """Circular layers stacked ``height`` blocks along ``axis`` from ``center``."""
    center: Position
    radius: int
    height: int
    axis: Axis = Axis.Y
    hollow: bool = False
    kind: ClassVar[ShapeKind] = ShapeKind.CYLINDER


@dataclass(frozen=True)
class EllipsoidShape:
    center: Position
    radius_x: int
    radius_y: int
    radius_z: int
    hollow: bool = False
    kind: ClassVar[ShapeKind] = ShapeKind.ELLIPSOID


@dataclass(frozen=True)
class TorusShape(_AxisAligned):
    """Ring in the plane normal to ``axis``."""
    center: Position
    major_radius: int
    minor_radius: int
    axis: Axis = Axis.Y
    hollow: bool = False
    kind: ClassVar[ShapeKind] = ShapeKind.TORUS


@dataclass(frozen=True)
class HelixShape(_AxisAligned):
    center: Position
    radius: int
    height: int
    turns: float
    axis: Axis = Axis.Y
    clockwise: bool = True
    descending: bool = False
    kind: ClassVar[ShapeKind] = ShapeKind.HELIX


@dataclass(frozen=True)
class ParaboloidShape(_AxisAligned):
    center: Position
    radius: int
    height: int
    opening: Opening = Opening.UP
    axis: Axis = Axis.Y
    hollow: bool = False
    kind: ClassVar[ShapeKind] = ShapeKind.PARABOLOID

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.opening, Opening):
            object.__setattr__(self, "opening", Opening(str(self.opening).lower()))


@dataclass(frozen=True)
class HyperboloidShape(_AxisAligned):
    """Hyperboloid of one sheet: ``waist_radius`` at mid-height, ``base_radius`` at both ends."""
    center: Position
    base_radius: int
    waist_radius: int
    height: int
    axis: Axis = Axis.Y
    hollow: bool = False
    kind: ClassVar[ShapeKind] = ShapeKind.HYPERBOLOID


@dataclass(frozen=True)
class BezierShape:
    start: Position
    end: Position
    control_points: Tuple[Position, ...] = field(default_factory=tuple)
    segments: Optional[int] = None  # None = adaptive
    kind: ClassVar[ShapeKind] = ShapeKind.BEZIER

    @property
    def degree(self) -> int:
        return len(self.control_points) + 1


ShapeDescriptor = Union[
    CubeShape,
    LineShape,
    SphereShape,
    CylinderShape,
    EllipsoidShape,
    TorusShape,
    HelixShape,
    ParaboloidShape,
    HyperboloidShape,
    BezierShape,
]

SHAPE_TYPES: Dict[ShapeKind, type] = {
    ShapeKind.CUBE: CubeShape,
    ShapeKind.LINE: LineShape,
    ShapeKind.SPHERE: SphereShape,
    ShapeKind.CYLINDER: CylinderShape,
    ShapeKind.ELLIPSOID: EllipsoidShape,
    ShapeKind.TORUS: TorusShape,
    ShapeKind.HELIX: HelixShape,
    ShapeKind.PARABOLOID: ParaboloidShape,
    ShapeKind.HYPERBOLOID: HyperboloidShape,
    ShapeKind.BEZIER: BezierShape,
}

_POSITION_FIELDS = {"corner1", "corner2", "start", "end", "center"}


# ─── Parsing & echo ──────────────────────────────────────────────────────────

def _as_position(value: Any) -> Position:
    if isinstance(value, Mapping):
        return (int(value["x"]), int(value["y"]), int(value["z"]))
    x, y, z = value
    return (int(x), int(y), int(z))


def shape_from_dict(kind: Union[str, ShapeKind], params: Mapping[str, Any]) -> ShapeDescriptor:
    """Build a descriptor from loosely typed parameters (e.g. parsed JSON).

    Positions may be ``[x, y, z]`` lists or ``{"x":, "y":, "z":}`` mappings.
    Unknown parameter names raise ``ValueError``.
    """
    try:
        shape_kind = kind if isinstance(kind, ShapeKind) else ShapeKind(str(kind).lower())
    except ValueError:
        raise ValueError(
            f"Unknown shape kind: {kind!r}. Must be one of: {[k.value for k in ShapeKind]}"
        )
    cls = SHAPE_TYPES[shape_kind]
    allowed = {f.name for f in fields(cls)}
    unknown = set(params) - allowed
    if unknown:
        raise ValueError(f"Unknown parameters for {shape_kind.value}: {sorted(unknown)}")

    kwargs: Dict[str, Any] = {}
    for name, value in params.items():
        if name in _POSITION_FIELDS:
            kwargs[name] = _as_position(value)
        elif name == "control_points":
            kwargs[name] = tuple(_as_position(p) for p in value)
        else:
            kwargs[name] = value
    return cls(**kwargs)


def shape_echo(shape: ShapeDescriptor) -> Dict[str, Any]:
    """JSON-friendly summary of a descriptor for build results."""
    echo: Dict[str, Any] = {"type": shape.kind.value}
    for f in fields(shape):
        value = getattr(shape, f.name)
        if isinstance(value, Enum):
            value = value.value
        elif f.name == "control_points":
            value = [list(p) for p in value]
        elif isinstance(value, tuple):
            value = list(value)
        echo[f.name] = value
    return echo


# ─── Boundary validation ────────────────────────────────────────────────────

def validate_shape(shape: ShapeDescriptor) -> List[str]:
    """Check descriptor parameters against the accepted ranges.

    Returns list of issue strings (empty = ok).
    """
    issues: List[str] = []
    ranges = PARAMETER_RANGES.get(shape.kind.value, {})
    for name, (low, high) in ranges.items():
        value = getattr(shape, name)
        if not low <= value <= high:
            issues.append(f"{name} must be between {low} and {high} (got {value})")

    if isinstance(shape, TorusShape) and shape.minor_radius >= shape.major_radius:
        issues.append("minor_radius must be smaller than major_radius")
    if isinstance(shape, HyperboloidShape) and shape.waist_radius >= shape.base_radius:
        issues.append("waist_radius must be smaller than base_radius")
    if isinstance(shape, BezierShape):
        if not 1 <= len(shape.control_points) <= 10:
            issues.append(
                f"control_points must contain 1 to 10 points (got {len(shape.control_points)})"
            )
        low, high = BEZIER_SEGMENT_RANGE
        if shape.segments is not None and not low <= shape.segments <= high:
            issues.append(f"segments must be between {low} and {high} (got {shape.segments})")
    for anchor in positions_of(shape):
        error = coordinate_validation_error(*anchor)
        if error:
            issues.append(error)
    return issues


def ensure_valid_shape(shape: ShapeDescriptor) -> ShapeDescriptor:
    issues = validate_shape(shape)
    if issues:
        raise ShapeValidationError(issues)
    return shape


def positions_of(shape: ShapeDescriptor) -> Sequence[Position]:
    """Anchor positions of a descriptor (centers, corners, endpoints)."""
    anchors: List[Position] = []
    for f in fields(shape):
        if f.name in _POSITION_FIELDS:
            anchors.append(getattr(shape, f.name))
    if isinstance(shape, BezierShape):
        anchors.extend(shape.control_points)
    return anchors
