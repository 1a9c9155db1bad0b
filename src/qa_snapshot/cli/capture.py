import argparse
import logging
import os
from typing import Iterable

from qa_snapshot.capture import capture_urls
from qa_snapshot.config import FAILED_URLS_PATH, SNAPSHOT_DIR
from qa_snapshot.exceptions import ResourceError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Capture structural page snapshots for QA comparison")
    parser.add_argument("urls", nargs="+", help="Pages to capture")
    parser.add_argument(
        "--environment",
        type=str,
        default="control",
        help="Sub-directory the snapshots are written to (e.g. control, experimental)",
    )
    parser.add_argument("--out", type=str, default=str(SNAPSHOT_DIR), help="Snapshot output directory")
    parser.add_argument(
        "--failures",
        type=str,
        default=str(FAILED_URLS_PATH),
        help="JSON file that failed URLs are merged into",
    )
    parser.add_argument("--batch-size", type=int, default=5, help="Pages captured concurrently")
    return parser


def configure_logging() -> None:
    level = os.getenv("QA_SNAPSHOT_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.batch_size < 1:
        parser.error("--batch-size must be at least 1")

    configure_logging()
    print(f"Capturing {len(args.urls)} URL(s) into {args.out}/{args.environment}")
    try:
        failures = capture_urls(
            args.urls,
            environment=args.environment,
            output_dir=args.out,
            failures_path=args.failures,
            batch_size=args.batch_size,
        )
    except ResourceError as exc:
        print(f"Cannot start capture: {exc}")
        return 2
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
