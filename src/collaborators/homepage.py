# src/collaborators/homepage.py — v1
"""Homepage feature registry stored as a JSON list."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from shipwright.core.models import FeatureSpec

logger = logging.getLogger(__name__)


class JsonHomepageRegistry:
    """Keep ``[{name, slug, url}, ...]`` in a JSON file; adding a slug twice updates it.

    Args:
        path: Registry file, created on first write.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def entries(self) -> list[dict[str, str | None]]:
        if not self.path.exists():
            return []
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"{self.path} must contain a JSON list")
        return data

    async def add_feature(self, feature: FeatureSpec, url: str | None) -> None:
        entries = self.entries()
        entry = {"name": feature.name, "slug": feature.slug, "url": url}
        for i, existing in enumerate(entries):
            if existing.get("slug") == feature.slug:
                entries[i] = entry
                break
        else:
            entries.append(entry)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(entries, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.path)
        logger.info("Homepage now lists %d features", len(entries))
