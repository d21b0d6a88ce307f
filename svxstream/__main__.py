"""svxstream setup entry point.

Usage::

    sudo python -m svxstream [--non-interactive] [--svxlink | --no-svxlink]
                             [--host ADDR] [--stream-url URL] [--skip-install]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(log_file: Path, level: int) -> None:
    """Warnings to the console, everything at *level* appended to *log_file*."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    root = logging.getLogger()
    for handler in root.handlers:
        handler.setLevel(logging.WARNING)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as exc:
        logger.warning("Cannot write log file %s (%s); logging to console only", log_file, exc)
        return
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(file_handler)
    root.setLevel(min(level, logging.WARNING))
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m svxstream",
        description="Install Darkice + Icecast2 and tap SvxLink TX audio into the stream",
    )
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Run with defaults and the values given below; no prompts",
    )
    svx = parser.add_mutually_exclusive_group()
    svx.add_argument(
        "--svxlink", dest="svxlink", action="store_const", const=True, default=None,
        help="svxlink was installed with svxlinkbuilder (skip the question)",
    )
    svx.add_argument(
        "--no-svxlink", dest="svxlink", action="store_const", const=False,
        help="Skip all svxlink configuration",
    )
    parser.add_argument("--host", metavar="ADDR", default=None, help="Streaming host address")
    parser.add_argument("--stream-url", metavar="URL", default=None, help="Public stream URL")
    parser.add_argument(
        "--source-dir",
        metavar="PATH",
        default=None,
        help="Directory with darkice.cfg, darkice.service and darkice.sh "
             "(default: bundled files or SVXSTREAM_SOURCE_DIR)",
    )
    parser.add_argument(
        "--skip-install",
        action="store_true",
        help="Only re-run the configuration patching and health check",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    from svxstream.config import LOG_FILE, LOG_LEVEL
    from svxstream.steps import PrecheckError
    from svxstream.wizard import run_setup

    args = build_parser().parse_args(argv)
    setup_logging(LOG_FILE, LOG_LEVEL)

    try:
        run_setup(
            source_dir=Path(args.source_dir) if args.source_dir else None,
            non_interactive=args.non_interactive,
            svxlink=args.svxlink,
            host=args.host,
            stream_url=args.stream_url,
            skip_install=args.skip_install,
        )
    except PrecheckError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        logger.error("Precheck failed: %s", exc)
        return 1
    except KeyboardInterrupt:
        print("\n\nSetup cancelled.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
