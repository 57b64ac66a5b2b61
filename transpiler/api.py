"""Composable API functions for the C-to-C# pipeline.

Each function corresponds to a CLI workflow (full file, single function,
--dump-syntax) but is callable programmatically without argparse.
"""

from __future__ import annotations

import logging
from typing import Optional

from . import constants
from .config import TranspileConfig
from .driver import TranslationOutput, TranslationUnitDriver
from .errors import TranslationError
from .frontends import get_syntax_builder
from .frontends.c import blank_linemarkers
from .parser import Parser, TreeSitterParserFactory
from .syntax import SyntaxNode

logger = logging.getLogger(__name__)


def parse_source(source: str) -> SyntaxNode:
    """Parse C source into a typed translation unit.

    Args:
        source: C source text, preprocessed or not.

    Returns:
        A ``TRANSLATION_UNIT`` syntax node.
    """
    raw = source.encode("utf-8")
    tree = Parser(TreeSitterParserFactory()).parse(
        blank_linemarkers(raw), constants.LANGUAGE_C
    )
    return get_syntax_builder(constants.LANGUAGE_C).build(tree, raw)


def transpile_source(
    source: str,
    config: Optional[TranspileConfig] = None,
    function_name: str = "",
) -> TranslationOutput:
    """Translate every eligible function of a C source file.

    Args:
        source: C source text.
        config: Skip set, renames and layout; defaults when omitted.
        function_name: If non-empty, translate only this function.

    Returns:
        A TranslationOutput with the emitted functions and any failures.
    """
    unit = parse_source(source)
    output = TranslationUnitDriver(config).run(unit, function_name)
    logger.info(
        "Translated %d function(s), %d failure(s)",
        len(output.functions),
        len(output.failures),
    )
    return output


def transpile_function(
    source: str, function_name: str, config: Optional[TranspileConfig] = None
) -> str:
    """Translate a single named function and return its C# text.

    Raises ``ValueError`` if no eligible function has that name, and
    ``TranslationError`` if its translation fails.
    """
    if not function_name:
        raise ValueError("function_name must not be empty")
    output = TranslationUnitDriver(config).run(parse_source(source), function_name)
    if output.failures:
        failure = output.failures[0]
        raise TranslationError(failure.reason, failure.function_name)
    if not output.functions:
        raise ValueError(f"No translatable function named '{function_name}'")
    return output.functions[0].text


def dump_syntax(source: str) -> str:
    """Parse source and return an indented dump of the typed syntax tree."""
    return parse_source(source).dump()
