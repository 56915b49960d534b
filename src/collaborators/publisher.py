# src/collaborators/publisher.py — v1
"""Release log publisher: one JSON line per shipped feature."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from shipwright.core.models import FeatureSpec, TrailerResult
from shipwright.events.bus import EventBus
from shipwright.storage import layout

logger = logging.getLogger(__name__)


class JsonlReleasePublisher:
    """Append release records to ``<output_dir>/releases.jsonl``.

    Downstream announcers tail this file; a release without a trailer carries
    ``"video_path": null``.
    """

    def __init__(self, output_dir: Path, bus: EventBus | None = None) -> None:
        self.path = layout.releases_path(Path(output_dir))
        self._bus = bus

    async def publish(
        self, feature: FeatureSpec, url: str | None, trailer: TrailerResult | None
    ) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "name": feature.name,
            "slug": feature.slug,
            "description": feature.description,
            "tagline": feature.tagline or feature.description,
            "url": url,
            "video_path": trailer.video_path if trailer is not None else None,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False) + "\n")
        logger.info("Release recorded for '%s'", feature.slug)
        if self._bus is not None:
            suffix = " with trailer" if trailer is not None else ""
            self._bus.publish(f"📣 Released {feature.name}{suffix}")
