# src/storage/run_store.py — v1
"""Run manifest persistence: one JSON document per run under {output_dir}/runs/."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from shipwright.core.models import RunState, RunStatus
from shipwright.storage import layout

logger = logging.getLogger(__name__)


class RunStore:
    """Save and load RunState snapshots.

    Args:
        output_dir: Base output directory.
    """

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = Path(output_dir).expanduser()

    def save(self, run: RunState) -> Path:
        """Write the run manifest, replacing the previous snapshot of the same run."""
        path = layout.run_manifest_path(self._output_dir, run.run_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Manifests stay small; the encoded video payload is not persisted.
        payload = run.model_dump(
            mode="json", exclude={"trailer_result": {"video_encoded_payload"}}
        )
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp.replace(path)
        return path

    def load(self, run_id: str) -> RunState | None:
        path = layout.run_manifest_path(self._output_dir, run_id)
        if not path.exists():
            return None
        return self._read(path)

    def list_runs(self, status: RunStatus | None = None) -> list[RunState]:
        """All readable manifests, oldest first. Unreadable files are skipped."""
        directory = layout.runs_dir(self._output_dir)
        if not directory.is_dir():
            return []
        runs = [r for p in directory.glob("*.json") if (r := self._read(p)) is not None]
        if status is not None:
            runs = [r for r in runs if r.status is status]
        return sorted(runs, key=lambda r: r.started_at)

    def latest(self) -> RunState | None:
        runs = self.list_runs()
        return runs[-1] if runs else None

    def _read(self, path: Path) -> RunState | None:
        try:
            return RunState.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Failed to read run manifest %s: %s", path, e)
            return None
