"""Shared syntax-node builders for the transpiler unit tests."""

from __future__ import annotations

from typing import Optional

from transpiler.api import parse_source
from transpiler.engine import ExpressionEngine, FunctionContext
from transpiler.syntax import BinaryOperator, NodeKind, SyntaxNode, UnaryOperator
from transpiler.type_system import (
    INT_TYPE,
    INVALID_TYPE,
    CType,
    function_type,
)


def node(
    kind: NodeKind, *children: SyntaxNode, spelling: str = "", ctype: CType = INVALID_TYPE, **extra
) -> SyntaxNode:
    """Build a syntax node with positional children."""
    return SyntaxNode(
        kind=kind, spelling=spelling, type=ctype, children=list(children), **extra
    )


def literal(value, ctype: CType = INT_TYPE) -> SyntaxNode:
    return node(NodeKind.INTEGER_LITERAL, spelling=str(value), ctype=ctype)


def ref(name: str, ctype: CType = INT_TYPE) -> SyntaxNode:
    return node(NodeKind.DECL_REF_EXPR, spelling=name, ctype=ctype)


def binop(
    op: BinaryOperator, lhs: SyntaxNode, rhs: SyntaxNode, ctype: Optional[CType] = None
) -> SyntaxNode:
    kind = (
        NodeKind.COMPOUND_ASSIGN_OPERATOR
        if op.is_assignment() and op != BinaryOperator.ASSIGN
        else NodeKind.BINARY_OPERATOR
    )
    return node(
        kind, lhs, rhs, ctype=ctype if ctype is not None else lhs.type, binary_operator=op
    )


def unop(op: UnaryOperator, operand: SyntaxNode, ctype: Optional[CType] = None) -> SyntaxNode:
    return node(
        NodeKind.UNARY_OPERATOR,
        operand,
        ctype=ctype if ctype is not None else operand.type,
        unary_operator=op,
    )


def paren(inner: SyntaxNode) -> SyntaxNode:
    return node(NodeKind.PAREN_EXPR, inner, ctype=inner.type)


def block(*statements: SyntaxNode) -> SyntaxNode:
    return node(NodeKind.COMPOUND_STMT, *statements)


def var_decl(name: str, ctype: CType, init: Optional[SyntaxNode] = None) -> SyntaxNode:
    children = [init] if init is not None else []
    return node(NodeKind.VAR_DECL, *children, spelling=name, ctype=ctype)


def function_decl(
    name: str,
    result: CType,
    params: list[tuple[str, CType]],
    body: Optional[SyntaxNode] = None,
    in_system_header: bool = False,
) -> SyntaxNode:
    children = [
        node(NodeKind.PARM_DECL, spelling=pname, ctype=ptype) for pname, ptype in params
    ]
    if body is not None:
        children.append(body)
    return node(
        NodeKind.FUNCTION_DECL,
        *children,
        spelling=name,
        ctype=function_type(result, [ptype for _, ptype in params]),
        in_system_header=in_system_header,
    )


def make_engine(return_type: str = "int", function_name: str = "f") -> ExpressionEngine:
    return ExpressionEngine(
        FunctionContext(function_name=function_name, return_type=return_type)
    )


def translate(syntax: SyntaxNode, return_type: str = "int") -> str:
    """Translate one node in a function returning *return_type*."""
    return make_engine(return_type).translate(syntax).text


def parse_c(source: str) -> SyntaxNode:
    """Parse real C through tree-sitter into a translation unit."""
    return parse_source(source)


def function_body(source: str, name: str) -> SyntaxNode:
    """The compound statement of the function *name* defined in *source*."""
    unit = parse_c(source)
    decl = next(
        c for c in unit.children if c.kind == NodeKind.FUNCTION_DECL and c.spelling == name
    )
    return decl.find_child(NodeKind.COMPOUND_STMT)
