"""
Build executor: generator -> (rotation) -> optimizer -> world mutations.

The executor is the only stage with side effects. It looks the descriptor's
generator up in an injected table, enforces size limits, reorients the point
set, decomposes it into boxes and awaits one mutation call per box, in the
order the optimizer emitted them. The first failing call aborts the build;
boxes already placed stay placed.
"""
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from block_optimizer import Box, OptimizationResult, OptimizerConfig, optimize_blocks, optimization_stats
from build_limits import FILL_OPERATION_LIMIT, block_limit
from geometry_utils import Position, bounding_box, coordinate_validation_error
from rotation import Orientation, apply_orientation
from shape_generators import GENERATORS, Generator
from shapes import ShapeDescriptor, ShapeKind, shape_echo

logger = logging.getLogger(__name__)


class WorldMutator(Protocol):
    """Remote world accepting single-block and bulk box mutations.

    A call may raise or return ``False`` to signal failure.
    """

    async def set_block(self, position: Position, block_id: str) -> Any:
        ...

    async def fill_blocks(self, start: Position, end: Position, block_id: str) -> Any:
        ...


class RecordingWorld:
    """In-memory world that records every mutation call (dry runs, tests)."""

    def __init__(self):
        self.calls: List[Tuple[str, Tuple]] = []
        self.blocks: Dict[Position, str] = {}

    async def set_block(self, position: Position, block_id: str) -> bool:
        self.calls.append(("set_block", (tuple(position), block_id)))
        self.blocks[tuple(position)] = block_id
        return True

    async def fill_blocks(self, start: Position, end: Position, block_id: str) -> bool:
        self.calls.append(("fill_blocks", (tuple(start), tuple(end), block_id)))
        for x in range(start[0], end[0] + 1):
            for y in range(start[1], end[1] + 1):
                for z in range(start[2], end[2] + 1):
                    self.blocks[(x, y, z)] = block_id
        return True


@dataclass
class BuildConfig:
    """Configuration for build execution."""
    enforce_limits: bool = True
    max_fill_operations: int = FILL_OPERATION_LIMIT
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    normalize_block_ids: bool = True


@dataclass
class BuildResult:
    success: bool
    message: str
    blocks_placed: int = 0
    calls_issued: int = 0
    compression_ratio: float = 1.0
    stats: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    failed_box: Optional[Box] = None


def normalize_block_id(block_id: str) -> str:
    """Prefix ``minecraft:`` onto bare block names."""
    block_id = block_id.strip()
    if not block_id:
        raise ValueError("Block id must not be empty")
    if ":" in block_id:
        return block_id
    return f"minecraft:{block_id}"


class BuildExecutor:
    """Realizes shape descriptors in a world with as few mutation calls as possible."""

    def __init__(
        self,
        world: WorldMutator,
        generators: Dict[ShapeKind, Generator] = GENERATORS,
        config: BuildConfig = None,
    ):
        self.world = world
        self.generators = generators
        self.config = config if config is not None else BuildConfig()

    async def build(
        self,
        descriptor: ShapeDescriptor,
        block_id: str,
        orientation: Optional[Orientation] = None,
    ) -> BuildResult:
        """Generate, orient, optimize and place one shape."""
        generator = self.generators.get(descriptor.kind)
        if generator is None:
            logger.warning("No generator registered for %s", descriptor.kind.value)
            return BuildResult(
                success=False,
                message=f"Unsupported shape kind: {descriptor.kind.value}",
            )

        if self.config.enforce_limits:
            # Pull one point past the limit at most; the stream is never drained.
            limit = block_limit(descriptor.kind.value)
            positions = list(itertools.islice(generator(descriptor), limit + 1))
            if len(positions) > limit:
                logger.warning(
                    "Rejected %s build: more than %d blocks", descriptor.kind.value, limit,
                )
                return BuildResult(
                    success=False,
                    message=f"Too many blocks for {descriptor.kind.value}: exceeds limit of {limit}",
                )
        else:
            positions = list(generator(descriptor))
        logger.info("Generated %d points for %s", len(positions), descriptor.kind.value)

        return await self.execute_positions(
            positions, block_id, orientation, extra={"shape": shape_echo(descriptor)},
        )

    async def execute_positions(
        self,
        positions: Sequence[Position],
        block_id: str,
        orientation: Optional[Orientation] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> BuildResult:
        """Orient, optimize and place an already generated point set."""
        if not positions:
            logger.warning("Build produced no blocks")
            return BuildResult(success=False, message="No blocks to place")

        if self.config.normalize_block_ids:
            block_id = normalize_block_id(block_id)

        points, transform_info = apply_orientation(positions, orientation)

        if self.config.enforce_limits:
            error = self._bounds_error(points)
            if error:
                logger.warning("Rejected build outside world bounds: %s", error)
                return BuildResult(success=False, message=f"Build outside world bounds: {error}")

        optimization = optimize_blocks(points, self.config.optimizer)
        stats = optimization_stats(optimization)

        if self.config.enforce_limits and optimization.fill_operation_count > self.config.max_fill_operations:
            logger.warning(
                "Rejected build: %d operations exceeds ceiling %d",
                optimization.fill_operation_count, self.config.max_fill_operations,
            )
            return BuildResult(
                success=False,
                message=(
                    f"Too many fill operations: {optimization.fill_operation_count} "
                    f"exceeds limit of {self.config.max_fill_operations}"
                ),
                compression_ratio=optimization.compression_ratio,
                stats=stats,
            )

        data = dict(extra or {})
        data["optimization"] = {
            "fill_operations": optimization.fill_operation_count,
            "compression_ratio": optimization.compression_ratio,
            "stats": stats,
        }
        if transform_info:
            data["transform"] = transform_info

        calls, failure = await self._place_boxes(optimization, block_id)
        if failure is not None:
            failed_box, error_text = failure
            return BuildResult(
                success=False,
                message=(
                    f"Building error at {list(failed_box.start)}..{list(failed_box.end)}: "
                    f"{error_text} ({calls - 1} of {optimization.fill_operation_count} operations completed)"
                ),
                calls_issued=calls,
                compression_ratio=optimization.compression_ratio,
                stats=stats,
                data=data,
                failed_box=failed_box,
            )

        suffix = f" ({transform_info})" if transform_info else ""
        message = (
            f"Structure built with {block_id}{suffix}. "
            f"Placed {optimization.original_block_count} blocks with "
            f"{optimization.fill_operation_count} operations "
            f"({optimization.compression_ratio:.2f}x compression)."
        )
        logger.info("%s", message)
        return BuildResult(
            success=True,
            message=message,
            blocks_placed=optimization.original_block_count,
            calls_issued=calls,
            compression_ratio=optimization.compression_ratio,
            stats=stats,
            data=data,
        )

    async def _place_boxes(
        self,
        optimization: OptimizationResult,
        block_id: str,
    ) -> Tuple[int, Optional[Tuple[Box, str]]]:
        """Await one mutation per box; stop at the first failure.

        Returns:
            (calls_issued, (failed_box, error_text) or None)
        """
        calls = 0
        for box in optimization.boxes:
            try:
                if box.is_single:
                    logger.debug("set_block %s", box.start)
                    ok = await self.world.set_block(box.start, block_id)
                else:
                    logger.debug("fill_blocks %s..%s", box.start, box.end)
                    ok = await self.world.fill_blocks(box.start, box.end, block_id)
            except Exception as e:
                calls += 1
                logger.error("Mutation failed at %s..%s: %s", box.start, box.end, e)
                return calls, (box, str(e))
            calls += 1
            if ok is False:
                logger.error("Mutation rejected at %s..%s", box.start, box.end)
                return calls, (box, "world rejected the operation")
        return calls, None

    @staticmethod
    def _bounds_error(points: Sequence[Position]) -> Optional[str]:
        low, high = bounding_box(points)
        return coordinate_validation_error(*low) or coordinate_validation_error(*high)
