"""Command line interface for vbjs."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from ..core.config import get_settings
from ..core.errors import TranspileError, ValidationFailed
from ..core.logging import get_logger, setup_logging
from .transpiler import convert_file
from .validator import validate_javascript

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert legacy VBScript into JavaScript."
    )
    parser.add_argument(
        "source",
        type=Path,
        help="Path to the .vbs file (or HTML page with --html) to translate.",
    )
    parser.add_argument(
        "output",
        type=Path,
        nargs="?",
        help="Optional destination for the generated .js file (defaults to alongside the source).",
    )
    parser.add_argument(
        "--html",
        action="store_true",
        help="Treat the source as an HTML page and translate its VBScript blocks.",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Allow overwriting an existing output file.",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print function/container catalogs and diagnostics as JSON.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when the generated code fails validation.",
    )
    parser.add_argument(
        "--encoding",
        default="utf-8",
        help="Encoding to use when reading and writing files (default: utf-8).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress informational output.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.quiet:
        settings = settings.model_copy(update={"LOG_LEVEL": "WARNING"})
    setup_logging(settings)

    try:
        written_path, result = convert_file(
            args.source,
            output_path=args.output,
            html=args.html,
            overwrite=args.overwrite,
            encoding=args.encoding,
            settings=settings,
        )
    except (FileNotFoundError, FileExistsError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except TranspileError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    validation = validate_javascript(result.code)

    if args.report:
        report = result.report()
        report["validation"] = validation.model_dump()
        print(json.dumps(report, indent=2))

    if not args.quiet:
        print(f"Wrote {written_path}", file=sys.stderr if args.report else sys.stdout)

    if args.strict and not validation.valid:
        failure = ValidationFailed(validation.problems + validation.residual_keywords)
        logger.error(failure.message)
        print(f"Error: {failure.message}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
