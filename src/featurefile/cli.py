"""
Feature File Driver
===================

Command-line access to feature files written through file meta channels.

Usage:
    # Re-encode binary descriptors as ascii text
    featurefile convert \\
        --input binary:%.descr \\
        --output ascii:%.descr.txt \\
        --kind byte \\
        img001 img002

    # Summarize keypoint frames (four doubles per record)
    featurefile dump --input %.frame --columns 4 img001

    # Use channel definitions from a JSON file
    featurefile dump --config channels.json --show-progress img001 img002
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Optional, Sequence

from tqdm import tqdm

from featurefile.config import ChannelConfig, FileMetaConfig, load_channel_configs
from featurefile.errors import ErrorCode, FileMetaError
from featurefile.meta import FileMeta
from featurefile.protocol import Protocol, protocol_from_name
from featurefile.tables import ValueKind, read_table, read_values, write_values

LOGGER = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "basenames",
        nargs="+",
        help="Basenames substituted for the wildcard in each pattern",
    )
    parser.add_argument(
        "--input",
        type=str,
        help="Input channel as [protocol:]pattern (e.g. binary:%%.descr)",
    )
    parser.add_argument(
        "--input-protocol",
        type=str,
        default="ascii",
        help="Protocol used when --input has no prefix (default: ascii)",
    )
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in ValueKind],
        default=ValueKind.DOUBLE.value,
        help="Scalar type stored in the files (default: double)",
    )
    parser.add_argument(
        "--columns",
        type=int,
        help="Values per record (default: 1, or the channel configuration)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON file with 'input'/'output' channel definitions",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--show-progress",
        action="store_true",
        help="Show a progress bar over basenames",
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="featurefile",
        description="Convert and inspect feature files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser(
        "convert", help="Re-encode files from one channel to another"
    )
    _add_common_arguments(convert)
    convert.add_argument(
        "--output",
        type=str,
        help="Output channel as [protocol:]pattern (e.g. ascii:%%.txt)",
    )
    convert.add_argument(
        "--output-protocol",
        type=str,
        default="ascii",
        help="Protocol used when --output has no prefix (default: ascii)",
    )

    dump = subparsers.add_parser("dump", help="Print per-file summary statistics")
    _add_common_arguments(dump)

    return parser.parse_args(argv)


def build_channel(
    name: str,
    option: Optional[str],
    default_protocol: str,
    configs: Dict[str, ChannelConfig],
) -> tuple[FileMeta, int]:
    """Create and configure the file meta for channel *name*.

    Command-line options take precedence over the JSON configuration.

    Returns:
        The configured file meta and the number of values per record.

    Raises:
        FileMetaError: The option names an unknown protocol or is too long.
        ValueError: No pattern or no protocol is available for the channel.
    """
    channel = configs.get(name)
    if channel is None:
        channel = ChannelConfig(
            name=name,
            meta=FileMetaConfig(default_protocol=protocol_from_name(default_protocol)),
        )
    option = option if option is not None else channel.option
    if option is None:
        raise ValueError(f"No pattern given for the {name} channel")

    meta = FileMeta(channel.meta)
    meta.configure(option)
    if meta.protocol is Protocol.UNSPECIFIED:
        raise ValueError(f"No protocol given for the {name} channel")
    LOGGER.info("%s channel: %s (%s)", name.capitalize(), meta.pattern, meta.protocol.value)
    return meta, channel.columns


def _report_item_error(
    exc: FileMetaError, index: int, basename: str, meta: FileMeta
) -> int:
    filename = exc.filename or meta.name or meta.pattern
    LOGGER.error(
        "Item %d (%s): %s [%s]: %s",
        index,
        basename,
        type(exc).__name__,
        filename,
        exc,
    )
    return int(exc.code)


def run_convert(
    source: FileMeta,
    target: FileMeta,
    basenames: Sequence[str],
    kind: ValueKind,
    show_progress: bool = False,
) -> int:
    """Re-encode each basename's file from *source* to *target*."""
    for index, basename in enumerate(
        tqdm(basenames, desc="Converting", disable=not show_progress)
    ):
        meta = source
        try:
            with source.opened(basename, "r"):
                values = read_values(source, kind)
            meta = target
            with target.opened(basename, "w"):
                count = write_values(target, values, kind)
        except FileMetaError as exc:
            return _report_item_error(exc, index, basename, meta)
        LOGGER.info("Wrote %d value(s) to %s", count, target.name)
    return int(ErrorCode.OK)


def run_dump(
    source: FileMeta,
    basenames: Sequence[str],
    kind: ValueKind,
    columns: int,
    show_progress: bool = False,
) -> int:
    """Print a summary table for each basename's file."""
    for index, basename in enumerate(
        tqdm(basenames, desc="Reading", disable=not show_progress)
    ):
        try:
            with source.opened(basename, "r"):
                frame = read_table(source, columns, kind)
        except FileMetaError as exc:
            return _report_item_error(exc, index, basename, source)

        print(f"\n{source.name}: {len(frame)} record(s) x {columns} value(s)")
        if len(frame):
            print(frame.describe().T.to_string())
    return int(ErrorCode.OK)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main execution function."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    kind = ValueKind(args.kind)
    try:
        configs = load_channel_configs(args.config) if args.config else {}
        source, columns = build_channel(
            "input", args.input, args.input_protocol, configs
        )
        if args.command == "convert":
            target, _ = build_channel(
                "output", args.output, args.output_protocol, configs
            )
    except FileMetaError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return int(exc.code)
    except (OSError, ValueError) as exc:
        LOGGER.error("Configuration error: %s", exc)
        return int(ErrorCode.BAD_ARG)

    if args.columns is not None:
        columns = args.columns
    if columns < 1:
        LOGGER.error("--columns must be at least 1, got %s", columns)
        return int(ErrorCode.BAD_ARG)

    if args.command == "convert":
        return run_convert(source, target, args.basenames, kind, args.show_progress)
    return run_dump(source, args.basenames, kind, columns, args.show_progress)


if __name__ == "__main__":
    sys.exit(main())
