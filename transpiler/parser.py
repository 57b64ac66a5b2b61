"""Tree-sitter parsing layer for C source bytes."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from tree_sitter import Parser as TreeSitterParser
from tree_sitter import Tree

logger = logging.getLogger(__name__)


class ParserFactory(ABC):
    """Abstract factory for obtaining a tree-sitter parser by language name."""

    @abstractmethod
    def get_parser(self, language: str) -> TreeSitterParser: ...


class TreeSitterParserFactory(ParserFactory):
    """Delegates to tree-sitter-language-pack, keeping one parser per language."""

    def __init__(self):
        self._parsers: dict[str, TreeSitterParser] = {}

    def get_parser(self, language: str) -> TreeSitterParser:
        if language not in self._parsers:
            import tree_sitter_language_pack as tslp

            self._parsers[language] = tslp.get_parser(language)
        return self._parsers[language]


class Parser:
    """Parses source bytes; callers keep the bytes to slice node text from."""

    def __init__(self, parser_factory: ParserFactory):
        self._factory = parser_factory

    def parse(self, source: bytes, language: str) -> Tree:
        tree = self._factory.get_parser(language).parse(source)
        if tree.root_node.has_error:
            logger.debug("%s parse of %d bytes contains errors", language, len(source))
        return tree
