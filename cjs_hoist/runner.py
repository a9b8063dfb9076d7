"""
CLI runner for cjs-hoist.

This module provides the command line entry point: it collects JavaScript
files, rewrites each one with the default tree-sitter parser and writes the
results (and optional source maps) to stdout, an output directory, or back in
place.
"""

import argparse
import concurrent.futures
import json
import logging
import os
import sys
import time
from typing import List, Optional, Tuple

from .config import HoistConfig, find_config_file, load_config
from .errors import CjsHoistError
from .javascript_adapter import JavaScriptAdapter, parse_javascript
from .transform import transform
from .types import TransformResult

logger = logging.getLogger(__name__)

# (absolute input path, path relative to the argument it was found under)
FileEntry = Tuple[str, str]


def collect_files(paths: List[str], config: HoistConfig) -> List[FileEntry]:
    """Collect files to rewrite from files and directories.

    Directories are searched recursively, skipping hidden directories and the
    configured ``exclude_dirs``.
    """
    adapter = JavaScriptAdapter()
    extensions = tuple(config.extensions)
    entries = []
    for path in paths:
        if not os.path.exists(path):
            print(f"Warning: Path '{path}' does not exist", file=sys.stderr)
            continue
        base = path if os.path.isdir(path) else os.path.dirname(path)
        for file_path in adapter.list_files([path], tuple(config.exclude_dirs), extensions):
            entries.append((os.path.abspath(file_path), os.path.relpath(file_path, base or ".")))

    seen = set()
    unique = []
    for entry in entries:
        if entry[0] not in seen:
            seen.add(entry[0])
            unique.append(entry)
    return unique


def transform_file(file_path: str, config: HoistConfig, output_path: Optional[str] = None) -> TransformResult:
    """
    Rewrite a single file.

    Args:
        file_path: JavaScript file to read
        config: Transform options
        output_path: Where to write the result; None leaves writing to the caller

    Returns:
        TransformResult for the file

    Raises:
        ParseError: if the file is not valid JavaScript
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        code = f.read()

    result = transform(
        parse_javascript,
        code,
        source_map=config.source_map,
        ignore_dynamic_require=config.ignore_dynamic_require,
        filename=os.path.basename(file_path),
    )

    if output_path is not None:
        directory = os.path.dirname(output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if result.is_touched or output_path != file_path:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(result.code)
        if result.map:
            with open(output_path + ".map", 'w', encoding='utf-8') as f:
                json.dump(result.map, f)

    logger.info(f"{file_path}: {'rewritten' if result.is_touched else 'unchanged'}")
    return result


def run_transform(entries: List[FileEntry], config: HoistConfig, jobs: int,
                  out_dir: Optional[str] = None, in_place: bool = False) -> int:
    """Rewrite files, optionally in parallel. Returns the number of failures."""

    def output_for(entry: FileEntry) -> Optional[str]:
        if in_place:
            return entry[0]
        if out_dir:
            return os.path.join(out_dir, entry[1])
        return None

    def process(entry: FileEntry) -> TransformResult:
        return transform_file(entry[0], config, output_for(entry))

    failures = 0
    if jobs <= 1:
        results = []
        for entry in entries:
            try:
                results.append((entry, process(entry)))
            except (CjsHoistError, OSError, UnicodeDecodeError) as e:
                print(f"Error: Failed to rewrite {entry[0]}: {e}", file=sys.stderr)
                failures += 1
    else:
        # Each transform call owns all of its state, so files can run concurrently
        with concurrent.futures.ThreadPoolExecutor(max_workers=jobs) as executor:
            futures = [(entry, executor.submit(process, entry)) for entry in entries]
            results = []
            for entry, future in futures:
                try:
                    results.append((entry, future.result()))
                except (CjsHoistError, OSError, UnicodeDecodeError) as e:
                    print(f"Error: Failed to rewrite {entry[0]}: {e}", file=sys.stderr)
                    failures += 1

    if not in_place and not out_dir:
        for _, result in results:
            sys.stdout.write(result.code)

    return failures


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="cjs-hoist",
        description="Rewrite CommonJS module, exports and require references into private bindings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cjs-hoist --paths lib/index.js
  cjs-hoist --paths lib/ --out-dir build/ --source-map
  cjs-hoist --paths lib/ --in-place --jobs 4
        """
    )

    parser.add_argument(
        "--paths",
        nargs="+",
        required=True,
        help="Paths to files or directories to rewrite"
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--out-dir",
        help="Write rewritten files under this directory, mirroring the input layout"
    )
    output.add_argument(
        "--in-place",
        action="store_true",
        help="Overwrite input files with the rewritten code"
    )

    parser.add_argument(
        "--source-map",
        action="store_true",
        default=None,
        help="Write a <file>.map source map next to each rewritten file"
    )

    parser.add_argument(
        "--no-ignore-dynamic-require",
        dest="ignore_dynamic_require",
        action="store_false",
        default=None,
        help="Also rewrite require() calls wrapped in Promise.resolve()"
    )

    parser.add_argument(
        "--config",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Number of parallel jobs (0=auto, 1=sequential, N=parallel)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    total_start = time.time()

    # Load configuration
    config_path = args.config or find_config_file(args.paths[0])
    try:
        config = load_config(config_path)
    except CjsHoistError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.source_map is not None:
        config.source_map = args.source_map
    if args.ignore_dynamic_require is not None:
        config.ignore_dynamic_require = args.ignore_dynamic_require

    if args.verbose:
        print(f"Using config: {config_path or 'defaults'}", file=sys.stderr)

    entries = collect_files(args.paths, config)
    if not entries:
        print("No files found to rewrite", file=sys.stderr)
        return 1

    if not args.out_dir and not args.in_place:
        if len(entries) > 1:
            print("Error: Multiple files found; use --out-dir or --in-place", file=sys.stderr)
            return 1
        if config.source_map:
            print("Warning: Source maps are only written with --out-dir or --in-place", file=sys.stderr)

    jobs = args.jobs
    if jobs == 0:
        jobs = min(4, len(entries), os.cpu_count() or 1)

    failures = run_transform(entries, config, jobs, args.out_dir, args.in_place)

    if args.verbose:
        total_time_ms = (time.time() - total_start) * 1000
        print(f"Processed {len(entries)} files in {total_time_ms:.1f} ms ({failures} failed)", file=sys.stderr)

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
