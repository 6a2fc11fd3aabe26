"""
Export a local backup of the tablet's documents to SVG with readable names.

Walks the document directory, converts every page of every document and
lays the SVGs out by folder and document name.
"""

from __future__ import annotations

import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from .converter import convert_file
from .folders import MetadataCache, find_page_files, slugify
from .renderer import RenderOptions

logger = logging.getLogger(__name__)


def pdf_page_sizes(pdf_path: Path) -> list[tuple[float, float]]:
    """(width, height) of every page of a backing PDF, [] if unreadable."""
    if not pdf_path.exists():
        return []
    try:
        pdf = fitz.open(pdf_path)
    except Exception as e:  # PyMuPDF raises its own error types
        logger.warning("Cannot open %s: %s", pdf_path.name, e)
        return []
    try:
        return [(page.rect.width, page.rect.height) for page in pdf]
    finally:
        pdf.close()


def page_options(options: RenderOptions, sizes: list[tuple[float, float]],
                 index: int) -> RenderOptions:
    """Canvas for one page: its PDF page size if there is one."""
    if not sizes:
        return options
    width, height = sizes[index] if 0 <= index < len(sizes) else sizes[0]
    return dataclasses.replace(options, width=width, height=height)


def export_backup(
    backup_dir: Path,
    output_dir: Path,
    options: Optional[RenderOptions] = None,
    verbose: bool = True
) -> dict[str, int]:
    """
    Export all pages from a backup to SVG.

    Args:
        backup_dir: Path to the document directory copy
        output_dir: Path to output directory for SVGs
        options: Canvas and palette used where there is no backing PDF
        verbose: Print progress

    Returns:
        Dict with export statistics
    """
    backup_dir = Path(backup_dir)
    output_dir = Path(output_dir)
    if options is None:
        options = RenderOptions()

    if not backup_dir.is_dir():
        raise ValueError(f"Backup directory not found: {backup_dir}")

    stats = {
        "documents": 0,
        "pages": 0,
        "skipped": 0,
    }

    cache = MetadataCache(backup_dir)

    for doc in cache.documents():
        pages = find_page_files(backup_dir, doc.uuid)
        if not pages:
            continue

        stats["documents"] += 1
        folder_path = cache.get_folder_path(doc.uuid)
        doc_output_dir = output_dir / folder_path / slugify(doc.name)
        doc_output_dir.mkdir(parents=True, exist_ok=True)

        sizes = pdf_page_sizes(backup_dir / f"{doc.uuid}.pdf")

        if verbose:
            print(f"📄 {doc.name}")

        for page in pages:
            result = convert_file(
                page.path,
                doc_output_dir / page.output_name,
                page_options(options, sizes, page.index),
            )
            if not result.success:
                stats["skipped"] += 1
                if verbose:
                    print(f"   ✗ {page.output_name}: {result.error_message}")
                continue

            stats["pages"] += 1
            if verbose:
                print(f"   ✓ {page.output_name} ({result.stroke_count} strokes)")

    return stats


def main():
    """CLI entry point for export."""
    import argparse

    from .config import ConfigError, load_config

    parser = argparse.ArgumentParser(
        description="Export a local document backup to SVG"
    )
    parser.add_argument(
        "backup_dir",
        type=Path,
        nargs="?",
        help="Path to the document directory copy (default: from config)"
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Output directory for SVGs (default: from config)"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to rmlines.toml"
    )
    parser.add_argument(
        "--colored",
        action="store_true",
        help="Render black/grey ink as blue/red"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress output"
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.ERROR, format="%(levelname)s: %(message)s")

    try:
        config = load_config(args.config)
    except ConfigError as e:
        parser.error(f"bad config: {e}")

    backup_dir = args.backup_dir or config.backup_dir
    output_dir = args.output or config.output_dir or Path("output/svg")
    if backup_dir is None:
        parser.error("no backup directory given")

    options = config.render
    if args.colored:
        options = dataclasses.replace(options, colored_annotations=True)

    if not args.quiet:
        print()
        print("📓 Lines SVG Export")
        print("=" * 40)
        print()

    try:
        stats = export_backup(backup_dir, output_dir, options,
                              verbose=not args.quiet)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not args.quiet:
        print()
        print(f"✓ Exported {stats['pages']} pages from {stats['documents']} documents")
        print(f"  Output: {output_dir}")
        if stats["skipped"]:
            print(f"  Skipped: {stats['skipped']} (errors)")
        print()


if __name__ == "__main__":
    main()
