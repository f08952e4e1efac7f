"""Tests for voxel shape generators."""
import inspect
import math

import pytest

from geometry_utils import normalized_distance
from shape_generators import (
    GENERATORS,
    adaptive_segments,
    circle_offsets,
    estimate_bezier_arc_length,
    generate_bezier,
    generate_cube,
    generate_cylinder,
    generate_ellipsoid,
    generate_helix,
    generate_hyperboloid,
    generate_line,
    generate_paraboloid,
    generate_points,
    generate_sphere,
    generate_torus,
    helix_steps,
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
    ShapeKind,
    SphereShape,
    TorusShape,
)


def _assert_no_consecutive_duplicates(points):
    for a, b in zip(points, points[1:]):
        assert a != b


def _assert_single_axis_steps(points):
    for a, b in zip(points, points[1:]):
        diff = sorted(abs(a[i] - b[i]) for i in range(3))
        assert diff == [0, 0, 1], f"{a} -> {b} is not a single axis step"


# ─── Dispatch ────────────────────────────────────────────────────────────────

class TestDispatch:

    def test_table_covers_every_kind(self):
        """Every shape kind has a generator."""
        assert set(GENERATORS) == set(ShapeKind)

    def test_generators_are_lazy(self):
        """Huge shapes yield points without materializing."""
        stream = generate_points(CubeShape(corner1=(0, 0, 0), corner2=(400, 400, 400)))
        assert inspect.isgenerator(stream)
        assert next(stream) == (0, 0, 0)

    def test_missing_kind_raises(self):
        """generate_points rejects kinds absent from the table."""
        with pytest.raises(ValueError, match="No generator"):
            generate_points(SphereShape(center=(0, 0, 0), radius=1), generators={})


# ─── Cube & line ─────────────────────────────────────────────────────────────

class TestCube:

    def test_solid_count(self):
        """A solid cube yields its full volume."""
        points = list(generate_cube(CubeShape(corner1=(0, 0, 0), corner2=(2, 2, 2))))
        assert len(points) == 27
        assert len(set(points)) == 27

    def test_corner_order_does_not_matter(self):
        """Swapped corners describe the same cube."""
        a = set(generate_cube(CubeShape(corner1=(0, 0, 0), corner2=(2, 3, 1))))
        b = set(generate_cube(CubeShape(corner1=(2, 3, 1), corner2=(0, 0, 0))))
        assert a == b

    def test_hollow_drops_interior(self):
        """Hollow cubes keep only boundary cells."""
        points = set(generate_cube(CubeShape(corner1=(0, 0, 0), corner2=(2, 2, 2), hollow=True)))
        assert len(points) == 26
        assert (1, 1, 1) not in points

    def test_hollow_flat_slab_is_full(self):
        """A one-thick hollow cube has no interior to drop."""
        points = list(generate_cube(CubeShape(corner1=(0, 5, 0), corner2=(3, 5, 3), hollow=True)))
        assert len(points) == 16
        assert len(set(points)) == 16


class TestLine:

    def test_axis_aligned(self):
        """An axis-aligned line is a simple run."""
        points = list(generate_line(LineShape(start=(0, 0, 0), end=(5, 0, 0))))
        assert points == [(i, 0, 0) for i in range(6)]

    def test_diagonal_is_face_connected(self):
        """Consecutive line points differ on exactly one axis."""
        points = list(generate_line(LineShape(start=(0, 0, 0), end=(3, -3, 2))))
        assert points[0] == (0, 0, 0)
        assert points[-1] == (3, -3, 2)
        assert len(points) == 9
        _assert_single_axis_steps(points)

    def test_single_point(self):
        """A zero-length line is its start point."""
        assert list(generate_line(LineShape(start=(4, 4, 4), end=(4, 4, 4)))) == [(4, 4, 4)]

    def test_ties_step_x_first(self):
        """Boundary ties advance x before y."""
        points = list(generate_line(LineShape(start=(0, 0, 0), end=(1, 1, 0))))
        assert points == [(0, 0, 0), (1, 0, 0), (1, 1, 0)]


# ─── Radial solids ───────────────────────────────────────────────────────────

class TestSphere:

    def test_unit_sphere(self):
        """Radius 1 is the center plus six neighbours."""
        points = set(generate_sphere(SphereShape(center=(0, 0, 0), radius=1)))
        assert points == {
            (0, 0, 0), (1, 0, 0), (-1, 0, 0), (0, 1, 0), (0, -1, 0), (0, 0, 1), (0, 0, -1),
        }

    def test_solid_within_radius(self):
        """Every solid sphere point lies within the radius."""
        center = (10, 64, -3)
        for p in generate_sphere(SphereShape(center=center, radius=4)):
            assert math.dist(p, center) <= 4 + 1e-9

    def test_hollow_shell_band(self):
        """Hollow sphere points lie in the one-block band."""
        center = (0, 0, 0)
        points = list(generate_sphere(SphereShape(center=center, radius=3, hollow=True)))
        assert points
        for p in points:
            assert 2 - 1e-9 <= math.dist(p, center) <= 3 + 1e-9

    def test_negative_radius_is_empty(self):
        """Negative radius yields nothing."""
        assert list(generate_sphere(SphereShape(center=(0, 0, 0), radius=-1))) == []


class TestEllipsoid:

    def test_axis_extremes_present(self):
        """The tips on each axis are included."""
        points = set(generate_ellipsoid(EllipsoidShape(
            center=(0, 0, 0), radius_x=3, radius_y=2, radius_z=1,
        )))
        assert {(3, 0, 0), (-3, 0, 0), (0, 2, 0), (0, 0, -1)} <= points
        for p in points:
            assert normalized_distance(p, (0, 0, 0), (3, 2, 1)) <= 1.0 + 1e-9

    def test_hollow_excludes_core(self):
        """Hollow ellipsoid points stay in the normalized shell band."""
        points = set(generate_ellipsoid(EllipsoidShape(
            center=(0, 0, 0), radius_x=5, radius_y=4, radius_z=3, hollow=True,
        )))
        assert (0, 0, 0) not in points
        for p in points:
            assert normalized_distance(p, (0, 0, 0), (5, 4, 3)) >= 0.8 - 1e-9

    def test_zero_radius_is_empty(self):
        """Any zero radius yields nothing."""
        shape = EllipsoidShape(center=(0, 0, 0), radius_x=0, radius_y=2, radius_z=2)
        assert list(generate_ellipsoid(shape)) == []


class TestCircleOffsets:

    def test_unit_disc(self):
        """Radius 1 is a plus-shaped disc."""
        assert sorted(circle_offsets(1)) == [(-1, 0), (0, -1), (0, 0), (0, 1), (1, 0)]

    def test_zero_radius_is_center(self):
        """Radius 0 is just the center."""
        assert circle_offsets(0) == [(0, 0)]
        assert circle_offsets(0, hollow=True) == [(0, 0)]

    def test_ring_excludes_center(self):
        """A ring has no center cell."""
        assert (0, 0) not in circle_offsets(3, hollow=True)


class TestCylinder:

    def test_layers_along_y(self):
        """Default cylinders stack layers up y from the center."""
        points = list(generate_cylinder(CylinderShape(center=(0, 10, 0), radius=1, height=3)))
        assert len(points) == 15
        assert {p[1] for p in points} == {10, 11, 12}

    def test_axis_x_permutes(self):
        """Axis x stacks layers along x."""
        points = list(generate_cylinder(CylinderShape(
            center=(0, 10, 0), radius=2, height=4, axis=Axis.X,
        )))
        assert {p[0] for p in points} == {0, 1, 2, 3}
        for x, y, z in points:
            assert math.hypot(y - 10, z) <= 2 + 1e-9

    def test_axis_z_permutes(self):
        """Axis z stacks layers along z."""
        points = list(generate_cylinder(CylinderShape(
            center=(0, 0, 5), radius=1, height=2, axis=Axis.Z,
        )))
        assert {p[2] for p in points} == {5, 6}

    def test_hollow_is_open_tube(self):
        """Hollow cylinders are open tubes with no caps."""
        points = set(generate_cylinder(CylinderShape(
            center=(0, 0, 0), radius=3, height=4, hollow=True,
        )))
        assert all((0, y, 0) not in points for y in range(4))

    def test_zero_height_is_empty(self):
        """Zero height yields nothing."""
        assert list(generate_cylinder(CylinderShape(center=(0, 0, 0), radius=3, height=0))) == []


class TestTorus:

    def test_ring_around_axis(self):
        """The torus ring lies around the y axis, hole at the center."""
        points = set(generate_torus(TorusShape(center=(0, 0, 0), major_radius=4, minor_radius=1)))
        assert (0, 0, 0) not in points
        assert {(4, 0, 0), (-4, 0, 0), (0, 0, 4), (0, 0, -4), (4, 1, 0)} <= points
        assert {p[1] for p in points} == {-1, 0, 1}

    def test_tube_distance(self):
        """Every point is within the tube radius of the ring."""
        for x, y, z in generate_torus(TorusShape(center=(0, 0, 0), major_radius=6, minor_radius=2)):
            assert math.hypot(math.hypot(x, z) - 6, y) <= 2 + 1e-9

    def test_axis_x_ring_normal(self):
        """Axis x puts the ring in the y-z plane."""
        points = set(generate_torus(TorusShape(
            center=(0, 0, 0), major_radius=4, minor_radius=1, axis=Axis.X,
        )))
        assert {p[0] for p in points} == {-1, 0, 1}
        assert (0, 4, 0) in points

    def test_axis_z_ring_normal(self):
        """Axis z puts the ring in the x-y plane."""
        points = set(generate_torus(TorusShape(
            center=(0, 0, 0), major_radius=4, minor_radius=1, axis=Axis.Z,
        )))
        assert {p[2] for p in points} == {-1, 0, 1}
        assert (0, 4, 0) in points


class TestParaboloid:

    def test_apex_included_opening_up(self):
        """An upward paraboloid starts with its apex at the center."""
        center = (0, 0, 0)
        points = list(generate_paraboloid(ParaboloidShape(center=center, radius=4, height=5)))
        assert [p for p in points if p[1] == 0] == [center]
        assert max(p[1] for p in points) == 4

    def test_top_layer_has_full_radius(self):
        """The last layer reaches the full radius."""
        points = list(generate_paraboloid(ParaboloidShape(center=(0, 0, 0), radius=4, height=5)))
        top = [p for p in points if p[1] == 4]
        assert len(top) == len(circle_offsets(4))

    def test_opening_down_puts_apex_on_top(self):
        """Opening down flips the bowl."""
        points = list(generate_paraboloid(ParaboloidShape(
            center=(0, 0, 0), radius=4, height=5, opening=Opening.DOWN,
        )))
        assert [p for p in points if p[1] == 4] == [(0, 4, 0)]

    def test_single_layer_is_full_disc(self):
        """Height 1 is one full-radius disc."""
        points = list(generate_paraboloid(ParaboloidShape(center=(0, 0, 0), radius=3, height=1)))
        assert len(points) == len(circle_offsets(3))


class TestHyperboloid:

    def test_waist_narrower_than_ends(self):
        """The middle layer is narrower than the end layers."""
        shape = HyperboloidShape(center=(0, 0, 0), base_radius=5, waist_radius=2, height=10)
        points = list(generate_hyperboloid(shape))
        layers = {}
        for p in points:
            layers.setdefault(p[1], []).append(p)
        assert sorted(layers) == list(range(-5, 5))
        assert len(layers[-5]) == len(circle_offsets(5))
        assert len(layers[4]) == len(circle_offsets(5))
        assert len(layers[0]) < len(layers[-5])

    def test_hollow_is_ring_per_layer(self):
        """Hollow hyperboloid layers are rings."""
        shape = HyperboloidShape(center=(0, 0, 0), base_radius=5, waist_radius=2, height=10, hollow=True)
        points = set(generate_hyperboloid(shape))
        assert all((0, y, 0) not in points for y in range(-5, 5))


# ─── Curves ──────────────────────────────────────────────────────────────────

class TestHelix:

    def test_starts_on_radius_and_rises(self):
        """The helix starts on the radius and climbs."""
        shape = HelixShape(center=(0, 64, 0), radius=5, height=10, turns=2)
        points = list(generate_helix(shape))
        assert points[0] == (5, 64, 0)
        assert points[-1][1] == 74
        _assert_no_consecutive_duplicates(points)

    def test_step_count(self):
        """Step count follows the arc length."""
        assert helix_steps(5, 10, 2) == 64
        assert helix_steps(1, 100, 0.5) == 200

    def test_descending(self):
        """Descending helices run top to bottom."""
        shape = HelixShape(center=(0, 64, 0), radius=5, height=10, turns=2, descending=True)
        points = list(generate_helix(shape))
        assert points[-1][1] == 54
        assert all(54 <= p[1] <= 64 for p in points)

    def test_direction_of_spin(self):
        """Clockwise and counter-clockwise spin opposite ways."""
        cw = list(generate_helix(HelixShape(center=(0, 0, 0), radius=5, height=10, turns=1)))
        ccw = list(generate_helix(HelixShape(
            center=(0, 0, 0), radius=5, height=10, turns=1, clockwise=False,
        )))
        first_cw = next(p[2] for p in cw if p[2] != 0)
        first_ccw = next(p[2] for p in ccw if p[2] != 0)
        assert first_cw > 0 > first_ccw

    def test_axis_x(self):
        """Axis x helices advance along x."""
        shape = HelixShape(center=(0, 0, 0), radius=3, height=6, turns=1, axis=Axis.X)
        points = list(generate_helix(shape))
        assert {p[0] for p in points} == set(range(7))
        for x, y, z in points:
            assert math.hypot(y, z) <= 3.8


class TestBezier:

    def test_quadratic_has_no_consecutive_duplicates(self):
        """Rounded curve points never repeat back to back."""
        shape = BezierShape(start=(0, 0, 0), end=(10, 0, 0), control_points=((5, 5, 0),))
        points = list(generate_bezier(shape))
        assert points[0] == (0, 0, 0)
        assert points[-1] == (10, 0, 0)
        _assert_no_consecutive_duplicates(points)

    def test_curve_bends_toward_control_point(self):
        """The curve is pulled toward its control point."""
        shape = BezierShape(start=(0, 0, 0), end=(10, 0, 0), control_points=((5, 10, 0),))
        points = list(generate_bezier(shape))
        assert max(p[1] for p in points) == 5

    def test_no_control_points_is_straight(self):
        """Without control points the path is straight."""
        points = list(generate_bezier(BezierShape(start=(0, 0, 0), end=(10, 0, 0))))
        assert points == [(i, 0, 0) for i in range(11)]

    def test_explicit_segments(self):
        """An explicit segment count fixes the sample count."""
        shape = BezierShape(start=(0, 0, 0), end=(4, 0, 0), control_points=((2, 0, 0),), segments=4)
        assert list(generate_bezier(shape)) == [(i, 0, 0) for i in range(5)]

    def test_zero_segments_is_empty(self):
        """Zero segments yield nothing."""
        shape = BezierShape(start=(0, 0, 0), end=(4, 0, 0), control_points=((2, 2, 0),), segments=0)
        assert list(generate_bezier(shape)) == []

    def test_arc_length_of_straight_curve(self):
        """A collinear curve's arc length is the chord."""
        assert estimate_bezier_arc_length((0, 0, 0), (10, 0, 0), [(5, 0, 0)]) == pytest.approx(10.0)

    def test_adaptive_segments_clamped(self):
        """Segment counts track arc length, clamped to the adaptive range."""
        assert adaptive_segments((0, 0, 0), (10, 0, 0), [(5, 5, 0)]) == 50
        assert adaptive_segments((0, 0, 0), (5000, 0, 0), [(2500, 0, 0)]) == 1000
        assert 120 <= adaptive_segments((0, 0, 0), (120, 0, 0), [(60, 0, 0)]) <= 121


# ─── Cross-shape properties ──────────────────────────────────────────────────

HOLLOW_PAIRS = [
    (CubeShape(corner1=(0, 0, 0), corner2=(4, 3, 5)),
     CubeShape(corner1=(0, 0, 0), corner2=(4, 3, 5), hollow=True)),
    (SphereShape(center=(0, 0, 0), radius=5),
     SphereShape(center=(0, 0, 0), radius=5, hollow=True)),
    (EllipsoidShape(center=(0, 0, 0), radius_x=5, radius_y=3, radius_z=4),
     EllipsoidShape(center=(0, 0, 0), radius_x=5, radius_y=3, radius_z=4, hollow=True)),
    (CylinderShape(center=(0, 0, 0), radius=4, height=3, axis=Axis.Z),
     CylinderShape(center=(0, 0, 0), radius=4, height=3, axis=Axis.Z, hollow=True)),
    (TorusShape(center=(0, 0, 0), major_radius=6, minor_radius=3),
     TorusShape(center=(0, 0, 0), major_radius=6, minor_radius=3, hollow=True)),
    (ParaboloidShape(center=(0, 0, 0), radius=5, height=6),
     ParaboloidShape(center=(0, 0, 0), radius=5, height=6, hollow=True)),
    (HyperboloidShape(center=(0, 0, 0), base_radius=6, waist_radius=3, height=8),
     HyperboloidShape(center=(0, 0, 0), base_radius=6, waist_radius=3, height=8, hollow=True)),
]


class TestHollowContainment:

    @pytest.mark.parametrize("solid,hollow", HOLLOW_PAIRS, ids=lambda s: s.kind.value)
    def test_hollow_subset_of_solid(self, solid, hollow):
        """Every hollow point is also a solid point."""
        solid_points = set(generate_points(solid))
        hollow_points = set(generate_points(hollow))
        assert hollow_points
        assert hollow_points <= solid_points
        assert len(hollow_points) < len(solid_points)


class TestDeterminism:

    @pytest.mark.parametrize("shape", [pair[0] for pair in HOLLOW_PAIRS] + [
        HelixShape(center=(0, 0, 0), radius=4, height=8, turns=1.5),
        BezierShape(start=(0, 0, 0), end=(9, 3, 0), control_points=((3, 8, 1), (7, -2, 4))),
    ], ids=lambda s: s.kind.value)
    def test_same_input_same_output(self, shape):
        """Generators are deterministic."""
        assert list(generate_points(shape)) == list(generate_points(shape))
