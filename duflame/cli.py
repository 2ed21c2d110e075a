from __future__ import annotations
import argparse
import logging
import os
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from .compactor import compact_tree
from .drives import default_workers
from .render import build_meta, write_json, write_report
from .scanner import scan_tree
from .utils import clamp, format_bytes

APP_NAME = "duflame"
DEFAULT_OUTPUT = "duflame.html"
DEFAULT_MAX_ENTRIES = 20
DEFAULT_MAX_DEPTH = 8

logger = logging.getLogger(__name__)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Scan a directory tree and write a disk usage flamegraph as HTML.",
    )
    parser.add_argument("-C", "--dir", default=".", help="Directory to scan.")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help="Output HTML file.")
    parser.add_argument("-n", "--max-entries", type=int, default=DEFAULT_MAX_ENTRIES,
                        help="Children kept per directory; the rest are merged into [OTHERS].")
    parser.add_argument("-d", "--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
                        help="Deepest level shown below the root.")
    parser.add_argument("-j", "--workers", type=int, default=None,
                        help="Concurrent directory listings (default: CPU count).")
    parser.add_argument("--json", dest="json_path", default=None, help="Also dump the tree as JSON.")
    parser.add_argument("--dirs-only", action="store_true", help="Do not show individual files.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging.")
    return parser

def run(args: argparse.Namespace, console: Optional[Console] = None) -> int:
    console = console or Console(stderr=True)
    max_entries = clamp(args.max_entries, 1)
    max_depth = clamp(args.max_depth, 1)
    workers = clamp(args.workers if args.workers is not None else default_workers(), 1)
    if not os.path.isdir(args.dir):
        if os.path.exists(args.dir):
            raise NotADirectoryError(f"not a directory: {args.dir}")
        raise FileNotFoundError(f"no such directory: {args.dir}")

    res = scan_tree(args.dir, workers=workers, dirs_only=args.dirs_only)
    compact_tree(res.root, max_entries, max_depth)

    meta = build_meta(args.dir)
    write_report(args.output, res.root, meta)
    if args.json_path:
        write_json(args.json_path, res.root, meta)

    console.print(
        f"[bold]{format_bytes(res.root.size)}[/bold] in {res.files} files, {res.dirs} dirs "
        f"({res.elapsed_sec:.2f}s, {res.workers} workers) -> {escape(args.output)}"
    )
    if res.errors:
        console.print(f"[yellow]{len(res.errors)} path(s) could not be read[/yellow]")
    return 0

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return run(args)
    except OSError as e:
        logger.error("exited with error: %s", e)
        return 1
