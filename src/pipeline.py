"""Build-plan pipeline: descriptor -> dry-run build -> run artifacts."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from block_optimizer import box_volume, Box
from build_executor import BuildConfig, BuildExecutor, BuildResult, RecordingWorld
from build_limits import block_limit, estimate_fill_operations
from rotation import Orientation
from run_protocol import prepare_run_dir, update_latest_pointer, write_json, write_text
from shapes import ShapeDescriptor, ensure_valid_shape, shape_echo

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    runs_dir: str = "runs"
    write_boxes: bool = True
    validate: bool = True
    build: BuildConfig = field(default_factory=BuildConfig)


@dataclass
class PipelineResult:
    run_id: str
    run_dir: str
    plan_path: str
    metrics_path: str
    summary_path: str
    manifest_path: str
    boxes_path: Optional[str] = None
    build_result: Optional[BuildResult] = None


def _orientation_payload(orientation: Optional[Orientation]) -> Optional[Dict[str, Any]]:
    if orientation is None:
        return None
    return {
        "direction": orientation.direction,
        "rotations": [
            {
                "axis": spec.axis.value,
                "angle": spec.angle,
                "pivot": list(spec.pivot) if spec.pivot is not None else None,
            }
            for spec in orientation.rotations
        ],
    }


def _calls_payload(world: RecordingWorld) -> List[Dict[str, Any]]:
    plan = []
    for index, (op, args) in enumerate(world.calls):
        if op == "set_block":
            position, block_id = args
            plan.append({"index": index, "op": op, "position": list(position), "block": block_id})
        else:
            start, end, block_id = args
            plan.append({
                "index": index, "op": op, "start": list(start), "end": list(end), "block": block_id,
            })
    return plan


def _boxes_from_calls(world: RecordingWorld) -> List[Box]:
    boxes = []
    for op, args in world.calls:
        if op == "set_block":
            boxes.append(Box(start=args[0], end=args[0]))
        else:
            boxes.append(Box(start=args[0], end=args[1]))
    return boxes


def run_build_plan(
    descriptor: ShapeDescriptor,
    block_id: str,
    orientation: Optional[Orientation] = None,
    config: Optional[PipelineConfig] = None,
    run_name: Optional[str] = None,
) -> PipelineResult:
    """Dry-run a build against a recording world and persist the plan.

    Raises:
        ShapeValidationError: if ``config.validate`` and the descriptor is out of range.
    """
    if config is None:
        config = PipelineConfig()
    if config.validate:
        ensure_valid_shape(descriptor)

    started = time.perf_counter()
    kind = descriptor.kind.value
    paths = prepare_run_dir(config.runs_dir, run_name or kind)

    request = {
        "shape": shape_echo(descriptor),
        "block": block_id,
        "orientation": _orientation_payload(orientation),
    }
    write_json(paths.request_path, request)

    world = RecordingWorld()
    executor = BuildExecutor(world, config=config.build)
    logger.info("Planning %s build into %s", kind, paths.run_dir)
    result = asyncio.run(executor.build(descriptor, block_id, orientation))

    plan_path = paths.artifacts_dir / "plan.json"
    write_json(plan_path, _calls_payload(world))

    boxes_path = None
    if config.write_boxes:
        boxes_path = paths.artifacts_dir / "boxes.json"
        write_json(boxes_path, [
            {"start": list(b.start), "end": list(b.end), "volume": box_volume(b)}
            for b in _boxes_from_calls(world)
        ])

    elapsed = time.perf_counter() - started
    status = "pass" if result.success else "fail"

    metrics = {
        "run_id": paths.run_id,
        "status": status,
        "elapsed_s": round(elapsed, 3),
        "blocks_placed": result.blocks_placed,
        "calls_issued": result.calls_issued,
        "compression_ratio": result.compression_ratio,
        "block_limit": block_limit(kind),
        "expected_operations": round(estimate_fill_operations(kind, result.blocks_placed), 1),
        "distinct_blocks_in_world": len(world.blocks),
    }
    write_json(paths.metrics_path, metrics)
    write_text(paths.summary_path, _build_summary(paths.run_id, kind, result, elapsed))

    manifest = {
        "run_id": paths.run_id,
        "shape": kind,
        "status": status,
        "created_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": asdict(config),
        "artifacts": {
            "request": str(paths.request_path),
            "plan": str(plan_path),
            "boxes": str(boxes_path) if boxes_path else None,
            "metrics": str(paths.metrics_path),
            "summary": str(paths.summary_path),
        },
    }
    write_json(paths.manifest_path, manifest)
    update_latest_pointer(config.runs_dir, paths.run_dir)

    return PipelineResult(
        run_id=paths.run_id,
        run_dir=str(paths.run_dir),
        plan_path=str(plan_path),
        metrics_path=str(paths.metrics_path),
        summary_path=str(paths.summary_path),
        manifest_path=str(paths.manifest_path),
        boxes_path=str(boxes_path) if boxes_path else None,
        build_result=result,
    )


def _build_summary(run_id: str, kind: str, result: BuildResult, elapsed_s: float) -> str:
    lines = [
        f"# Run {run_id}",
        "",
        f"- Shape: {kind}",
        f"- Status: **{'PASS' if result.success else 'FAIL'}**",
        f"- Duration: {elapsed_s:.2f}s",
        f"- Blocks: {result.blocks_placed}",
        f"- Calls: {result.calls_issued}",
        f"- Compression: {result.compression_ratio:.2f}x",
        "",
        "## Result",
        f"- {result.message}",
    ]
    if result.stats:
        lines.append(f"- {result.stats}")
    return "\n".join(lines) + "\n"
