"""slowlog-report — turn a slow-query server log into rotating CSV reports."""

import logging
import sys
from argparse import ArgumentParser

from slowlog.config import MIN_CHUNK_SIZE, load_config, load_yaml_config
from slowlog.errors import ConfigError, FieldValidationError
from slowlog.pipeline import run

LOG_FORMAT = "%(asctime)s [slowlog] %(levelname)s %(message)s"

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="slowlog-report",
        description="Extract slow queries from an NDJSON server log into CSV reports.",
    )
    parser.add_argument(
        "-i", "--input",
        help="Input log file path (one JSON object per line)",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output folder path (created if missing)",
    )
    parser.add_argument(
        "-s", "--chunk-size",
        type=int,
        help=f"Lines per chunk and rows per rotated file (at least {MIN_CHUNK_SIZE})",
    )
    parser.add_argument(
        "--config",
        help="Optional YAML file with input, output, chunk_size, log_level keys",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args, load_yaml_config(args.config))
    except ConfigError as exc:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT, stream=sys.stderr)
    logger.info(
        "Config: input=%s, output=%s, chunk_size=%d",
        config.input_path, config.output_dir, config.chunk_size,
    )

    try:
        summary = run(config)
    except FieldValidationError as exc:
        logger.error("Invalid slow query event: %s", exc)
        return 1
    except OSError as exc:
        logger.error("I/O error: %s", exc)
        return 1

    logger.info(
        "Done: %d lines read, %d records parsed, %d dropped, %d slow queries, %d file(s) written",
        summary.lines_read, summary.records_parsed, summary.lines_dropped,
        summary.events, len(summary.files_written),
    )
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
