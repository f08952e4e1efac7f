"""
Shared test fixtures for voxel build tests.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from build_executor import RecordingWorld


class FailingWorld(RecordingWorld):
    """Recording world whose N-th mutation call (0-based) fails."""

    def __init__(self, fail_at: int, raise_error: bool = True):
        super().__init__()
        self.fail_at = fail_at
        self.raise_error = raise_error

    async def _maybe_fail(self):
        if len(self.calls) == self.fail_at + 1:
            if self.raise_error:
                raise RuntimeError("connection lost")
            return False
        return True

    async def set_block(self, position, block_id):
        await super().set_block(position, block_id)
        return await self._maybe_fail()

    async def fill_blocks(self, start, end, block_id):
        await super().fill_blocks(start, end, block_id)
        return await self._maybe_fail()


@pytest.fixture
def recording_world():
    """A fresh in-memory world."""
    return RecordingWorld()


@pytest.fixture
def failing_world_factory():
    """Build a world that fails at a given call index."""
    return FailingWorld

