"""Argparse-based CLI for vdiff — visual regression checks on image pairs."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from vdiff.compare import CompareOptions, CompareResult
from vdiff.images import compare_files
from vdiff.manifest import load_compare_manifest, options_for_case

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output helper
# ---------------------------------------------------------------------------


def _summary(result: CompareResult) -> str:
    verdict = "PASS" if result.passed else "FAIL"
    return (
        f"{result.pixel_difference} differing pixel(s) "
        f"({result.percentage_difference:.4%}) — {verdict}"
    )


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


def cmd_compare(args: argparse.Namespace) -> None:
    """Compare a single reference/candidate pair."""
    try:
        options = CompareOptions(
            max_delta=args.max_delta,
            max_difference=args.max_difference,
            max_offset=args.max_offset,
        )
        composition = Path(args.composition) if args.composition else None
        result = compare_files(
            Path(args.reference), Path(args.candidate), options, composition
        )
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(_summary(result))
    if composition is not None:
        print(f"  Composition: {composition}")
    sys.exit(0 if result.passed else 1)


def cmd_run(args: argparse.Namespace) -> None:
    """Run every comparison case in a manifest."""
    manifest_path = Path(args.manifest)
    try:
        manifest = load_compare_manifest(manifest_path)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    base = manifest_path.parent
    failures = []
    for case in manifest["case"]:
        name = case["name"]
        print(f"--- Case: {name} ---")

        reference = base / case["reference"]
        candidate = base / case["candidate"]
        composition = base / case["composition"] if "composition" in case else None
        missing = [p for p in (reference, candidate) if not p.exists()]
        if missing:
            msg = f"[{name}] Image not found: {', '.join(str(p) for p in missing)}"
            print(f"FAIL: {msg}")
            failures.append(msg)
            continue

        try:
            options = options_for_case(manifest, case)
            log.debug("Comparing %s against %s with %s", candidate, reference, options)
            result = compare_files(reference, candidate, options, composition)
        except ValueError as e:
            msg = f"[{name}] {e}"
            print(f"FAIL: {msg}")
            failures.append(msg)
            continue

        print(f"  {_summary(result)}")
        if not result.passed:
            msg = f"[{name}] {result.pixel_difference} differing pixel(s)"
            if composition is not None:
                msg += f" (composition: {composition})"
            failures.append(msg)

    if failures:
        print(f"\n{len(failures)} case(s) failed:")
        for f in failures:
            print(f"  - {f}")
        sys.exit(1)
    else:
        print(f"\nAll {len(manifest['case'])} case(s) passed")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for vdiff."""
    defaults = CompareOptions()
    parser = argparse.ArgumentParser(
        prog="vdiff",
        description="Pixel-level visual regression checks for image pairs",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command")

    # compare
    p_compare = sub.add_parser("compare", help="Compare two images")
    p_compare.add_argument("reference", help="Reference image path")
    p_compare.add_argument("candidate", help="Candidate image path")
    p_compare.add_argument(
        "--max-delta", type=float, default=defaults.max_delta,
        help="Color delta below which a pixel passes",
    )
    p_compare.add_argument(
        "--max-difference", type=float, default=defaults.max_difference,
        help="Maximum number of failing pixels for the comparison to pass",
    )
    p_compare.add_argument(
        "--max-offset", type=int, default=defaults.max_offset,
        help="Neighborhood radius searched for shifted content",
    )
    p_compare.add_argument("--composition", help="Write the green/red composition here")

    # run
    p_run = sub.add_parser("run", help="Run comparison cases from a manifest")
    p_run.add_argument("--manifest", required=True, help="Path to comparison manifest")

    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the appropriate command handler."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    dispatch = {
        "compare": cmd_compare,
        "run": cmd_run,
    }

    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    handler(args)


if __name__ == "__main__":
    main()
