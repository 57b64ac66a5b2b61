"""BaseSyntaxBuilder — language-agnostic tree-sitter AST -> typed syntax nodes."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from tree_sitter import Node, Tree

from ..syntax import NO_SOURCE_LOCATION, NodeKind, SourceLocation, SyntaxNode
from ..type_system import INVALID_TYPE, CType

logger = logging.getLogger(__name__)


class BaseSyntaxBuilder:
    """Base class for tree-sitter syntax builders.

    Subclasses populate ``_STMT_DISPATCH`` and ``_EXPR_DISPATCH`` tables
    keyed by tree-sitter node type. Statement types without a handler are
    tried as expressions; expression types without a handler become
    unexposed nodes wrapping their named children, which the engine passes
    through.
    """

    COMMENT_TYPES: frozenset[str] = frozenset({"comment"})
    NOISE_TYPES: frozenset[str] = frozenset({"\n"})
    ATOMIC_TOKEN_TYPES: frozenset[str] = frozenset()

    def __init__(self):
        self._source: bytes = b""
        self._STMT_DISPATCH: dict[str, Callable] = {}
        self._EXPR_DISPATCH: dict[str, Callable] = {}

    def build(self, tree: Tree, source: bytes) -> SyntaxNode:
        raise NotImplementedError

    # ── helpers ──────────────────────────────────────────────────

    def _node_text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def _source_loc(self, node) -> SourceLocation:
        if node is None:
            return NO_SOURCE_LOCATION
        s, e = node.start_point, node.end_point
        return SourceLocation(
            start_line=s[0] + 1,
            start_col=s[1],
            end_line=e[0] + 1,
            end_col=e[1],
        )

    def _tokens(self, node: Node) -> list[str]:
        """Raw source tokens covered by *node*, in order."""
        if node.type in self.COMMENT_TYPES:
            return []
        if node.child_count == 0 or node.type in self.ATOMIC_TOKEN_TYPES:
            return [self._node_text(node)]
        tokens: list[str] = []
        for child in node.children:
            tokens.extend(self._tokens(child))
        return tokens

    def _named_children(self, node) -> list:
        return [
            c
            for c in node.children
            if c.is_named
            and c.type not in self.COMMENT_TYPES
            and c.type not in self.NOISE_TYPES
        ]

    def _make(
        self,
        kind: NodeKind,
        ts_node,
        *,
        spelling: str = "",
        ctype: CType = INVALID_TYPE,
        children: Optional[list[SyntaxNode]] = None,
        **extra,
    ) -> SyntaxNode:
        return SyntaxNode(
            kind=kind,
            spelling=spelling,
            type=ctype,
            children=children or [],
            source_location=self._source_loc(ts_node),
            **extra,
        )

    # ── dispatchers ──────────────────────────────────────────────

    def _build_stmt(self, node) -> Optional[SyntaxNode]:
        ntype = node.type
        if ntype in self.COMMENT_TYPES or ntype in self.NOISE_TYPES:
            return None
        handler = self._STMT_DISPATCH.get(ntype)
        if handler:
            return handler(node)
        # Fallback: try as expression
        return self._build_expr(node)

    def _build_expr(self, node) -> SyntaxNode:
        handler = self._EXPR_DISPATCH.get(node.type)
        if handler:
            return handler(node)
        return self._build_unexposed(node)

    def _build_unexposed(self, node) -> SyntaxNode:
        logger.debug("unsupported:%s at %s", node.type, self._source_loc(node))
        children = [self._build_expr(c) for c in self._named_children(node)]
        ctype = children[-1].type if children else INVALID_TYPE
        return self._make(
            NodeKind.UNEXPOSED_EXPR,
            node,
            ctype=ctype,
            children=children,
            tokens=self._tokens(node),
        )
