#!/usr/bin/env python3
"""
Plan a voxel shape build and write the call plan to a run folder.

Generates the shape, optionally reorients it, decomposes it into boxes and
records the set_block / fill_blocks calls a live world would receive.

Usage:
    python scripts/build_shape.py --shape sphere --params '{"center": [0, 64, 0], "radius": 8, "hollow": true}'
    python scripts/build_shape.py --shape cylinder --params '{"center": [0, 64, 0], "radius": 4, "height": 10}' --direction +x
    python scripts/build_shape.py --shape torus --params '{"center": [0, 70, 0], "major_radius": 10, "minor_radius": 3}' --rotate x:45 --rotate y:30
"""
import sys
import json
import argparse
import logging
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pipeline import PipelineConfig, run_build_plan
from rotation import DIRECTIONS, Orientation, RotationSpec
from shapes import ShapeKind, ShapeValidationError, shape_from_dict


def parse_rotation(value: str) -> RotationSpec:
    """Parse ``axis:angle`` (e.g. ``y:90``)."""
    try:
        axis, angle = value.split(":", 1)
        return RotationSpec(axis=axis, angle=float(angle))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid rotation {value!r}: {e}")


def main():
    parser = argparse.ArgumentParser(
        description="Plan a voxel shape build and write the call plan to a run folder.",
    )
    parser.add_argument(
        "--shape", required=True,
        choices=[k.value for k in ShapeKind],
        help="Shape kind to build",
    )
    parser.add_argument(
        "--params", required=True,
        help="Shape parameters as a JSON object",
    )
    parser.add_argument(
        "--block", default="stone",
        help="Block id (default: stone)",
    )
    parser.add_argument(
        "--direction", default=None,
        choices=list(DIRECTIONS),
        help="Orient the shape toward a direction (+y is the identity)",
    )
    parser.add_argument(
        "--rotate", action="append", default=[], type=parse_rotation,
        help="Extra rotation axis:angle, repeatable, applied in order",
    )
    parser.add_argument(
        "--runs-dir", default="runs",
        help="Root folder for run outputs (default: runs)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        params = json.loads(args.params)
    except json.JSONDecodeError as e:
        parser.error(f"--params is not valid JSON: {e}")
    if not isinstance(params, dict):
        parser.error("--params must be a JSON object")

    try:
        descriptor = shape_from_dict(args.shape, params)
    except (TypeError, ValueError) as e:
        parser.error(str(e))

    orientation = None
    if args.direction or args.rotate:
        direction = args.direction
        if args.rotate and direction is None:
            direction = "custom"
        orientation = Orientation(direction=direction, rotations=args.rotate)

    try:
        result = run_build_plan(
            descriptor,
            args.block,
            orientation,
            PipelineConfig(runs_dir=args.runs_dir),
        )
    except ShapeValidationError as e:
        print("Invalid shape parameters:")
        for issue in e.issues:
            print(f"  - {issue}")
        sys.exit(2)

    build = result.build_result
    print(build.message)
    if build.stats:
        print(build.stats)
    print(f"Run folder: {result.run_dir}")
    sys.exit(0 if build.success else 1)


if __name__ == "__main__":
    main()
