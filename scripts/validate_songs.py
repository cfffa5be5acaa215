#!/usr/bin/env python3
"""
validate_songs.py - Validate UltraStar song files for Frank karaoke

Checks every UltraStar .txt chart below a directory for problems that stop
songs from loading or playing correctly (missing tags, malformed notes,
missing or unsupported audio/video/image files, bad encoding).

Usage:
    python scripts/validate_songs.py --path songs/
    python scripts/validate_songs.py --path songs/ --warnings
    python scripts/validate_songs.py --path "songs/Queen - Bohemian Rhapsody/" --format json

Flags:
    --warnings  Also show warnings (BOM, unknown lines, missing end marker, ...)
    --verbose   List every chart, including valid ones
    --format    text (default) or json
"""

import argparse
import json
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from frank.config import VALIDATE_WORKERS  # noqa: E402
from frank.services.chart_validator import ValidationResult, validate_chart  # noqa: E402
from frank.services.song_indexer import is_ultrastar_file  # noqa: E402


def collect_txt_files(path: Path) -> List[Path]:
    """All UltraStar charts below *path* (or *path* itself if it is one)."""
    if path.is_file():
        return [path] if is_ultrastar_file(path) else []
    return sorted(p for p in path.rglob("*") if p.is_file() and is_ultrastar_file(p))


def validate_all(files: List[Path], workers: int = VALIDATE_WORKERS) -> List[ValidationResult]:
    """Validate charts in parallel; results keep the order of *files*."""
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        return list(pool.map(validate_chart, files))


def _should_show(result: ValidationResult, warnings: bool, verbose: bool) -> bool:
    if verbose or result.errors:
        return True
    return warnings and bool(result.warnings)


def output_text(results: List[ValidationResult], warnings: bool, verbose: bool) -> None:
    for result in results:
        if not _should_show(result, warnings, verbose):
            continue

        print(result.summary())

        for error in result.errors:
            line = f"  ERROR: {error.message}"
            if error.line is not None:
                line += f" (line {error.line})"
            if error.context:
                line += f" - {error.context}"
            print(line)

        if warnings:
            for warning in result.warnings:
                line = f"  WARN: {warning.message}"
                if warning.line is not None:
                    line += f" (line {warning.line})"
                print(line)


def output_json(results: List[ValidationResult], warnings: bool, verbose: bool) -> None:
    output = [
        r.to_dict(include_warnings=warnings)
        for r in results
        if _should_show(r, warnings, verbose)
    ]
    print(json.dumps(output, indent=2, ensure_ascii=False))


def print_summary(results: List[ValidationResult], warnings: bool) -> None:
    total = len(results)
    valid = sum(1 for r in results if r.is_valid)
    invalid = total - valid
    print()
    print("=" * 60)
    print("Summary:")
    print(f"  Total files:  {total}")
    print(f"  Valid:        {valid} ({valid / total * 100:.1f}%)")
    print(f"  With errors:  {invalid} ({invalid / total * 100:.1f}%)")
    if warnings:
        print(f"  Total warnings: {sum(len(r.warnings) for r in results)}")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate UltraStar song files for Frank karaoke",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "-p", "--path", required=True, help="Songs directory or chart file to validate"
    )
    parser.add_argument(
        "-w", "--warnings", action="store_true", help="Show warnings in addition to errors"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show every file, including valid ones",
    )
    parser.add_argument(
        "-f", "--format", choices=("text", "json"), default="text", help="Output format"
    )

    args = parser.parse_args(argv)
    target = Path(args.path)

    if not target.exists():
        print(f"❌ Path does not exist: {target}", file=sys.stderr)
        return 1

    files = collect_txt_files(target)
    if not files:
        print(f"No .txt files found in {target}")
        return 0

    if args.format == "json":
        results = validate_all(files)
        output_json(results, args.warnings, args.verbose)
    else:
        print(f"Validating {len(files)} files...\n")
        results = validate_all(files)
        output_text(results, args.warnings, args.verbose)
        print_summary(results, args.warnings)

    # Non-zero if any chart has errors
    if any(not r.is_valid for r in results):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
