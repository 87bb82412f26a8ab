from __future__ import annotations

import argparse
import dataclasses
import logging
from typing import Sequence

from src.adapters.persistence import (
    LocalGtfsRepository,
    LocalTimetableSink,
    S3TimetableSink,
)
from src.app.ports.output import ITimetableSink
from src.app.services.timetable_build_service import TimetableBuildService
from src.config import BuildSettings
from src.domain.exceptions import TimetableError

logger = logging.getLogger("timetables")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build per-date, per-route timetable documents from a GTFS feed"
    )
    parser.add_argument(
        "--gtfs-path", help="Directory with the GTFS .txt files (env: GTFS_PATH)"
    )
    parser.add_argument(
        "--output-dir",
        help="Local output directory (env: TIMETABLE_OUTPUT_DIR)",
    )
    parser.add_argument(
        "--bucket",
        help="Upload documents to this S3 bucket instead (env: TIMETABLE_BUCKET)",
    )
    parser.add_argument("--prefix", help="S3 key prefix (env: TIMETABLE_PREFIX)")
    parser.add_argument(
        "--workers",
        type=int,
        help="Dates processed in parallel (env: TIMETABLE_WORKERS)",
    )
    parser.add_argument("--log-level", help="Logging level (env: LOG_LEVEL)")
    args = parser.parse_args(argv)

    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be >= 1")
    return args


def resolve_settings(argv: Sequence[str] | None = None) -> BuildSettings:
    """Environment defaults, overridden by any flag given on the command line."""

    args = _parse_args(argv)
    overrides = {
        "gtfs_path": args.gtfs_path,
        "output_dir": args.output_dir,
        "bucket": args.bucket,
        "prefix": args.prefix.strip("/") if args.prefix else None,
        "workers": args.workers,
        "log_level": args.log_level.upper() if args.log_level else None,
    }
    return dataclasses.replace(
        BuildSettings.from_env(),
        **{k: v for k, v in overrides.items() if v is not None},
    )


def build_service(settings: BuildSettings) -> TimetableBuildService:
    sink: ITimetableSink
    if settings.bucket:
        sink = S3TimetableSink(bucket=settings.bucket, prefix=settings.prefix)
    else:
        sink = LocalTimetableSink(output_dir=settings.output_dir)

    return TimetableBuildService(
        gtfs_repository=LocalGtfsRepository(base_path=settings.gtfs_path),
        sink=sink,
        max_workers=settings.workers,
    )


def main(argv: Sequence[str] | None = None) -> int:
    settings = resolve_settings(argv)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        summary = build_service(settings).run()
    except TimetableError as exc:
        logger.error("Timetable build aborted, no output written: %s", exc)
        return 1

    counts = sorted(summary.issue_counts.items(), key=lambda kv: kv[0].value)
    for kind, count in counts:
        logger.info("Skipped or degraded (%s): %d", kind.value, count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
