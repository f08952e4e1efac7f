"""Run-folder protocol for build-plan dry runs."""

from __future__ import annotations

import json
import os
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class RunPaths:
    run_id: str
    run_dir: Path
    input_dir: Path
    artifacts_dir: Path
    request_path: Path
    manifest_path: Path
    metrics_path: Path
    summary_path: Path


def slugify(value: str) -> str:
    value = value.strip().lower()
    value = re.sub(r"[^a-z0-9]+", "-", value)
    value = re.sub(r"-+", "-", value)
    return value.strip("-") or "run"


def create_run_id(run_name: str) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
    return f"{stamp}_{slugify(run_name)}"


def prepare_run_dir(runs_root: str, run_name: str) -> RunPaths:
    """Create ``<runs_root>/<run_id>/{input,artifacts}`` and return its paths."""
    runs_path = Path(runs_root)
    runs_path.mkdir(parents=True, exist_ok=True)

    run_id = create_run_id(run_name)
    run_dir = runs_path / run_id
    input_dir = run_dir / "input"
    artifacts_dir = run_dir / "artifacts"
    input_dir.mkdir(parents=True, exist_ok=True)
    artifacts_dir.mkdir(parents=True, exist_ok=True)

    return RunPaths(
        run_id=run_id,
        run_dir=run_dir,
        input_dir=input_dir,
        artifacts_dir=artifacts_dir,
        request_path=input_dir / "request.json",
        manifest_path=run_dir / "manifest.json",
        metrics_path=run_dir / "metrics.json",
        summary_path=run_dir / "summary.md",
    )


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(content)


def update_latest_pointer(runs_root: str, run_dir: Path) -> None:
    """Point ``<runs_root>/latest`` at ``run_dir`` (symlink, or a marker file)."""
    runs_path = Path(runs_root)
    latest = runs_path / "latest"

    if latest.is_symlink() or latest.is_file():
        latest.unlink()
    elif latest.exists():
        shutil.rmtree(latest)

    try:
        latest.symlink_to(os.path.relpath(run_dir, runs_path))
    except OSError:
        # No symlink support on this filesystem
        latest.mkdir(parents=True, exist_ok=True)
        write_text(latest / "latest_run.txt", run_dir.name)


def resolve_latest(runs_root: str) -> Path:
    """Run directory the ``latest`` pointer refers to."""
    latest = Path(runs_root) / "latest"
    if latest.is_symlink():
        return latest.resolve()
    marker = latest / "latest_run.txt"
    if marker.is_file():
        return Path(runs_root) / marker.read_text(encoding="utf-8").strip()
    raise FileNotFoundError(f"No latest run under {runs_root}")
