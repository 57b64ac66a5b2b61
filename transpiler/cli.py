"""Command line entry point: c2cs FILE [options]."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from . import constants
from .api import dump_syntax, transpile_source
from .config import TranspileConfig
from .errors import TranslationError

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="c2cs", description="Translate C function definitions into C# methods"
    )
    parser.add_argument("file", help="C source file (preprocessed output works best)")
    parser.add_argument(
        "--output", "-o", default=None, help="Write C# here instead of stdout"
    )
    parser.add_argument(
        "--function", "-f", default="", help="Translate only this function"
    )
    parser.add_argument(
        "--dump-syntax",
        action="store_true",
        help="Print the typed syntax tree instead of translating",
    )
    parser.add_argument(
        "--skip",
        action="append",
        default=[],
        metavar="NAME",
        help="Leave this function out (repeatable)",
    )
    parser.add_argument(
        "--no-default-skips",
        action="store_true",
        help="Do not skip the functions that have hand-written replacements",
    )
    parser.add_argument(
        "--indent",
        default=constants.DEFAULT_INDENT,
        help="Prefix for each top-level body statement (default: none)",
    )
    parser.add_argument(
        "--class-name",
        default="",
        help="Wrap the output in 'partial class NAME { ... }'",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log at DEBUG level"
    )
    return parser


def config_from_args(args: argparse.Namespace) -> TranspileConfig:
    skips = frozenset() if args.no_default_skips else constants.DEFAULT_SKIP_FUNCTIONS
    return TranspileConfig(
        skip_functions=skips,
        indent=args.indent,
        class_name=args.class_name,
    ).with_extra_skips(args.skip)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )

    with open(args.file, encoding="utf-8", errors="replace") as f:
        source = f.read()

    try:
        if args.dump_syntax:
            text = dump_syntax(source) + "\n"
            failed = False
        else:
            output = transpile_source(
                source, config_from_args(args), function_name=args.function
            )
            if args.function and not output.functions and not output.failures:
                logger.error("No translatable function named '%s'", args.function)
                return 1
            text = output.text
            failed = not output.ok
    except TranslationError as exc:
        logger.error("%s", exc.reason)
        return 1

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
    else:
        sys.stdout.write(text)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
