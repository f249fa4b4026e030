"""CLI entrypoint for docharvest."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import CONFIG_FILENAME, load_config
from .errors import DocHarvestError
from .generator import Generator
from .logging import configure_logging, get_logger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docharvest",
        description="Extract documentation records and AST dumps from a source tree.",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=CONFIG_FILENAME,
        help=f"Path to the configuration file or its directory (defaults to ./{CONFIG_FILENAME}).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log output to this file.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docharvest."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    try:
        config = load_config(Path(args.config))
        outcome = Generator().generate(config)
    except DocHarvestError as exc:
        logger.debug("Run failed with %s error", exc.kind, exc_info=True)
        parser.exit(1, f"docharvest failed: {exc}\n")
    except Exception as exc:  # pragma: no cover - defensive guard
        logger.error("Unexpected failure", exc_info=True)
        parser.exit(1, f"docharvest failed: {exc}\nRun with --verbose for more details.\n")
    print(f"Documentation written to {_relativize(outcome.output_path)}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
