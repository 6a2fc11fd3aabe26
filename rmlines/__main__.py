"""
Lines file CLI

Convert reMarkable .lines files to SVG.

Usage:
    python -m rmlines <input.rm> [-o output.svg] [--width W --height H]
    python -m rmlines pages/*.rm -o output/
    python -m rmlines <input.rm> --analyze
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .converter import convert_file
from .errors import ConversionError
from .parser import analyze_file


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert reMarkable .lines files to SVG",
        prog="rmlines"
    )
    parser.add_argument(
        "input",
        nargs="+",
        type=Path,
        help="Input .rm file(s)"
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Output file or directory (default: same name as input with .svg extension)"
    )
    parser.add_argument(
        "--width",
        type=float,
        help="Output canvas width (default: 1404)"
    )
    parser.add_argument(
        "--height",
        type=float,
        help="Output canvas height (default: 1872)"
    )
    parser.add_argument(
        "--colored",
        action="store_true",
        help="Render black/grey ink as blue/red, highlighter as yellow"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Report every recovery from damaged input on stderr"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to rmlines.toml"
    )
    parser.add_argument(
        "--analyze",
        action="store_true",
        help="Analyze file(s) without converting"
    )
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: bad config: {e}", file=sys.stderr)
        return 2

    changes = {}
    if args.width is not None:
        changes["width"] = args.width
    if args.height is not None:
        changes["height"] = args.height
    if args.colored:
        changes["colored_annotations"] = True
    if args.verbose:
        changes["verbose"] = True
    try:
        options = dataclasses.replace(config.render, **changes)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.INFO if options.verbose else logging.ERROR,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    input_files = []
    for pattern in args.input:
        if pattern.exists():
            input_files.append(pattern)
        else:
            # Might be a glob pattern
            matches = sorted(pattern.parent.glob(pattern.name))
            if matches:
                input_files.extend(matches)
            else:
                print(f"Warning: No files matching '{pattern}'", file=sys.stderr)

    if not input_files:
        print("Error: No input files found", file=sys.stderr)
        return 1

    if args.analyze:
        failures = 0
        for input_file in input_files:
            try:
                analyze_file(input_file)
            except (ConversionError, OSError) as e:
                print(f"{input_file}: {e}", file=sys.stderr)
                failures += 1
            print()
        return 1 if failures else 0

    multiple_inputs = len(input_files) > 1
    output_dir = None
    if multiple_inputs:
        output_dir = args.output or Path(".")
        output_dir.mkdir(parents=True, exist_ok=True)

    failures = 0
    for input_file in input_files:
        if output_dir:
            output_file = output_dir / input_file.with_suffix(".svg").name
        elif args.output:
            output_file = args.output
        else:
            output_file = input_file.with_suffix(".svg")

        print(f"Converting {input_file.name}...", end=" ", flush=True)
        result = convert_file(input_file, output_file, options)
        if result.success:
            print(f"OK ({result.stroke_count} strokes)")
        else:
            print("FAILED")
            print(f"{input_file}: {result.error_message}", file=sys.stderr)
            failures += 1

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
