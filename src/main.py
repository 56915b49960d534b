# src/main.py — v2
"""CLI entry point: run, classify, trailer, status commands.

Usage:
    shipwright run --name <name> --slug <slug> --description <text> [options]
    shipwright run --features <file.json> [--loop] [--max-runs N]
    shipwright classify <slug> <description>
    shipwright trailer --name <name> --slug <slug> --description <text> [--url URL]
    shipwright status [--output-dir DIR]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from shipwright.config.settings import ConfigurationError, Settings, load_settings
from shipwright.core.models import FeatureSpec, RunStatus
from shipwright.events.bus import EventBus
from shipwright.events.sinks import JsonlFileSink, LoggingSink
from shipwright.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load(args)
    except (ConfigurationError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="shipwright",
        description=f"shipwright v{__version__}: build, deploy and promote features",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-o", "--output-dir", type=Path, default=None,
        help="Output directory (default: SHIPWRIGHT_OUTPUT_DIR or ./recordings)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- run ---
    p_run = subparsers.add_parser("run", help="Ship one or more features")
    _add_feature_args(p_run, required=False)
    p_run.add_argument(
        "--features", type=Path, default=None,
        help="JSON file with a list of features to ship in order",
    )
    p_run.add_argument(
        "--loop", action="store_true",
        help="Keep shipping with a cooldown between runs",
    )
    p_run.add_argument(
        "--max-runs", type=int, default=None,
        help="Stop after this many runs (with --loop)",
    )
    p_run.add_argument(
        "--dry-run", action="store_true",
        help="Log build/deploy/verify instead of running them",
    )
    p_run.set_defaults(func=_cmd_run)

    # --- classify ---
    p_classify = subparsers.add_parser(
        "classify", help="Decide whether a feature needs live footage",
    )
    p_classify.add_argument("slug")
    p_classify.add_argument("description")
    p_classify.set_defaults(func=_cmd_classify)

    # --- trailer ---
    p_trailer = subparsers.add_parser("trailer", help="Render a trailer only")
    _add_feature_args(p_trailer, required=True)
    p_trailer.add_argument(
        "--url", default=None,
        help="Live URL to capture footage from",
    )
    p_trailer.add_argument(
        "--footage", default=None,
        help="Existing footage path relative to the composition public dir",
    )
    p_trailer.set_defaults(func=_cmd_trailer)

    # --- status ---
    p_status = subparsers.add_parser("status", help="Show recorded runs")
    p_status.add_argument(
        "--status", choices=[s.value for s in RunStatus], default=None,
        help="Only show runs with this status",
    )
    p_status.set_defaults(func=_cmd_status)

    return parser


def _add_feature_args(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument("--name", required=required, help="Feature display name")
    parser.add_argument("--slug", required=required, help="Feature slug / route")
    parser.add_argument("--description", required=required, help="One-line description")
    parser.add_argument("--tagline", default=None, help="Trailer tagline")


def _load(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.output_dir is not None:
        overrides["output_dir"] = args.output_dir
    return load_settings(**overrides)


def _feature_from_args(args: argparse.Namespace) -> FeatureSpec:
    return FeatureSpec(
        name=args.name,
        slug=args.slug,
        description=args.description,
        tagline=args.tagline,
    )


def _load_features(path: Path) -> list[FeatureSpec]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of features")
    return [FeatureSpec.model_validate(item) for item in data]


def _make_bus(settings: Settings) -> EventBus:
    bus = EventBus()
    bus.subscribe(LoggingSink())
    if settings.events_file is not None:
        bus.subscribe(JsonlFileSink(settings.events_file))
    return bus


async def _cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    """Ship features through the full pipeline."""
    from shipwright.pipeline.factory import create_orchestrator

    if args.features is not None:
        features = _load_features(args.features)
    elif args.name and args.slug and args.description:
        features = [_feature_from_args(args)]
    else:
        logger.error("Provide --features or all of --name, --slug and --description")
        return 1

    bus = _make_bus(settings)
    orchestrator = create_orchestrator(settings, bus, dry_run=args.dry_run)

    if not args.loop:
        runs = []
        for feature in features:
            runs.append(await orchestrator.execute(feature))
    else:
        queue = list(features)

        async def next_feature() -> FeatureSpec | None:
            return queue.pop(0) if queue else None

        runs = await orchestrator.run_forever(next_feature, max_runs=args.max_runs)

    for run in runs:
        _print_run(run)
    return 0 if all(r.status is RunStatus.COMPLETED for r in runs) else 3


async def _cmd_classify(args: argparse.Namespace, settings: Settings) -> int:
    """Print the footage decision for a feature."""
    from shipwright.trailer.classifier import classify

    decision = classify(args.slug, args.description)
    kind = "dynamic" if decision.needs_footage else "static"
    print(f"{args.slug}: {kind} ({decision.reason})")
    return 0


async def _cmd_trailer(args: argparse.Namespace, settings: Settings) -> int:
    """Render a trailer without running the other phases."""
    from shipwright.pipeline.factory import create_trailer_pipeline

    feature = _feature_from_args(args)
    pipeline = create_trailer_pipeline(settings, _make_bus(settings))
    result = await pipeline.generate_trailer(
        feature.trailer_config(), args.url, footage_path=args.footage,
    )
    if not result.success:
        print(f"\nTrailer failed: {result.error} [{result.error_kind}]")
        return 1

    print("\nTrailer rendered:")
    print(f"  Path:      {result.video_path}")
    print(f"  Duration:  {result.duration_seconds}s")
    print(f"  Size:      {result.size_bytes} bytes")
    return 0


async def _cmd_status(args: argparse.Namespace, settings: Settings) -> int:
    """List run manifests from the output directory."""
    from shipwright.storage.run_store import RunStore

    store = RunStore(settings.output_dir)
    status = RunStatus(args.status) if args.status else None
    runs = store.list_runs(status=status)
    if not runs:
        print(f"No runs recorded in {settings.output_dir}")
        return 0
    for run in runs:
        _print_run(run)
    return 0


def _print_run(run: object) -> None:
    """Print a one-run summary."""
    print(f"\nRun {run.run_id}: {run.feature.slug}")
    print(f"  Status:   {run.status.value}")
    print(f"  Phase:    {run.current_phase.value}")
    if run.deploy_url:
        print(f"  URL:      {run.deploy_url}")
    if run.trailer_result is not None and run.trailer_result.success:
        print(f"  Trailer:  {run.trailer_result.video_path}")
    if run.deferred_reason:
        print(f"  Reason:   {run.deferred_reason}")


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from shipwright.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
