# src/storage/layout.py — v1
"""Filesystem layout conventions.

Output directory (rendered trailers, run manifests, release log):
    {output_dir}/{slug}_{unix_ms}.{ext}
    {output_dir}/runs/{run_id}.json
    {output_dir}/releases.jsonl

Composition root (renderer project, shared footage):
    {composition_root}/public/footage/{slug}_footage.{ext}
"""

from __future__ import annotations

from pathlib import Path

RUNS_DIR = "runs"
RELEASES_FILE = "releases.jsonl"
HOMEPAGE_FILE = "homepage.json"

PUBLIC_DIR = "public"
FOOTAGE_DIR = "footage"


# --- Output directory ---

def trailer_filename(slug: str, timestamp_ms: int, ext: str = "mp4") -> str:
    return f"{slug}_{timestamp_ms}.{ext}"


def trailer_path(output_dir: Path, slug: str, timestamp_ms: int, ext: str = "mp4") -> Path:
    """Rendered trailer location; slug + timestamp keep historical renders apart."""
    return output_dir / trailer_filename(slug, timestamp_ms, ext)


def runs_dir(output_dir: Path) -> Path:
    return output_dir / RUNS_DIR


def run_manifest_path(output_dir: Path, run_id: str) -> Path:
    return runs_dir(output_dir) / f"{run_id}.json"


def releases_path(output_dir: Path) -> Path:
    return output_dir / RELEASES_FILE


def homepage_path(output_dir: Path) -> Path:
    return output_dir / HOMEPAGE_FILE


# --- Composition root ---

def footage_dir(composition_root: Path) -> Path:
    """Footage lives under the renderer's public dir so compositions can load it."""
    return composition_root / PUBLIC_DIR / FOOTAGE_DIR


def footage_filename(slug: str, ext: str = "mp4") -> str:
    return f"{slug}_footage.{ext}"


def footage_relative_path(slug: str, ext: str = "mp4") -> str:
    """Path as seen by the composition (relative to the public dir)."""
    return f"{FOOTAGE_DIR}/{footage_filename(slug, ext)}"


def ensure_output_directories(output_dir: Path) -> None:
    for path in (output_dir, runs_dir(output_dir)):
        path.mkdir(parents=True, exist_ok=True)
