"""Syntax model — the typed C syntax tree consumed by the engine."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .errors import MissingChildError
from .type_system import INVALID_TYPE, CType, TypeKind


class NodeKind(str, Enum):
    # Declarations
    TRANSLATION_UNIT = "TranslationUnit"
    FUNCTION_DECL = "FunctionDecl"
    PARM_DECL = "ParmDecl"
    VAR_DECL = "VarDecl"
    TYPE_REF = "TypeRef"
    # Expressions
    INTEGER_LITERAL = "IntegerLiteral"
    FLOATING_LITERAL = "FloatingLiteral"
    CHARACTER_LITERAL = "CharacterLiteral"
    STRING_LITERAL = "StringLiteral"
    NULL_POINTER_LITERAL = "NullPointerLiteral"
    DECL_REF_EXPR = "DeclRefExpr"
    UNARY_EXPR = "UnaryExpr"
    BINARY_OPERATOR = "BinaryOperator"
    COMPOUND_ASSIGN_OPERATOR = "CompoundAssignOperator"
    UNARY_OPERATOR = "UnaryOperator"
    CALL_EXPR = "CallExpr"
    CONDITIONAL_OPERATOR = "ConditionalOperator"
    MEMBER_REF_EXPR = "MemberRefExpr"
    ARRAY_SUBSCRIPT_EXPR = "ArraySubscriptExpr"
    INIT_LIST_EXPR = "InitListExpr"
    PAREN_EXPR = "ParenExpr"
    CSTYLE_CAST_EXPR = "CStyleCastExpr"
    COMPOUND_LITERAL_EXPR = "CompoundLiteralExpr"
    UNEXPOSED_EXPR = "UnexposedExpr"
    # Statements
    COMPOUND_STMT = "CompoundStmt"
    DECL_STMT = "DeclStmt"
    RETURN_STMT = "ReturnStmt"
    IF_STMT = "IfStmt"
    FOR_STMT = "ForStmt"
    WHILE_STMT = "WhileStmt"
    DO_STMT = "DoStmt"
    SWITCH_STMT = "SwitchStmt"
    CASE_STMT = "CaseStmt"
    DEFAULT_STMT = "DefaultStmt"
    LABEL_STMT = "LabelStmt"
    LABEL_REF = "LabelRef"
    GOTO_STMT = "GotoStmt"
    BREAK_STMT = "BreakStmt"
    CONTINUE_STMT = "ContinueStmt"
    NULL_STMT = "NullStmt"
    UNEXPOSED_STMT = "UnexposedStmt"


class BinaryOperator(str, Enum):
    """Binary operator kinds; the value is the canonical C spelling."""

    MUL = "*"
    DIV = "/"
    REM = "%"
    ADD = "+"
    SUB = "-"
    SHL = "<<"
    SHR = ">>"
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    EQ = "=="
    NE = "!="
    AND = "&"
    XOR = "^"
    OR = "|"
    LAND = "&&"
    LOR = "||"
    ASSIGN = "="
    MUL_ASSIGN = "*="
    DIV_ASSIGN = "/="
    REM_ASSIGN = "%="
    ADD_ASSIGN = "+="
    SUB_ASSIGN = "-="
    SHL_ASSIGN = "<<="
    SHR_ASSIGN = ">>="
    AND_ASSIGN = "&="
    XOR_ASSIGN = "^="
    OR_ASSIGN = "|="
    COMMA = ","

    @property
    def spelling(self) -> str:
        return self.value

    def is_logical(self) -> bool:
        return self in (BinaryOperator.LAND, BinaryOperator.LOR)

    def is_comparison(self) -> bool:
        return self in _COMPARISON_OPERATORS

    def is_assignment(self) -> bool:
        return self.value.endswith("=") and self not in _COMPARISON_OPERATORS


_COMPARISON_OPERATORS = frozenset(
    {
        BinaryOperator.LT,
        BinaryOperator.GT,
        BinaryOperator.LE,
        BinaryOperator.GE,
        BinaryOperator.EQ,
        BinaryOperator.NE,
    }
)


class UnaryOperator(str, Enum):
    POST_INC = "PostInc"
    POST_DEC = "PostDec"
    PRE_INC = "PreInc"
    PRE_DEC = "PreDec"
    ADDR_OF = "AddrOf"
    DEREF = "Deref"
    PLUS = "Plus"
    MINUS = "Minus"
    NOT = "Not"
    LNOT = "LNot"

    @property
    def spelling(self) -> str:
        return _UNARY_SPELLINGS[self]

    def is_prefix(self) -> bool:
        return self not in (UnaryOperator.POST_INC, UnaryOperator.POST_DEC)


_UNARY_SPELLINGS: dict[UnaryOperator, str] = {
    UnaryOperator.POST_INC: "++",
    UnaryOperator.POST_DEC: "--",
    UnaryOperator.PRE_INC: "++",
    UnaryOperator.PRE_DEC: "--",
    UnaryOperator.ADDR_OF: "&",
    UnaryOperator.DEREF: "*",
    UnaryOperator.PLUS: "+",
    UnaryOperator.MINUS: "-",
    UnaryOperator.NOT: "~",
    UnaryOperator.LNOT: "!",
}


class SourceLocation(BaseModel):
    """Structured source span from tree-sitter AST nodes."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def is_unknown(self) -> bool:
        return (
            self.start_line == 0
            and self.start_col == 0
            and self.end_line == 0
            and self.end_col == 0
        )

    def __str__(self) -> str:
        if self.is_unknown():
            return "<unknown>"
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


NO_SOURCE_LOCATION = SourceLocation(start_line=0, start_col=0, end_line=0, end_col=0)


class SyntaxNode(BaseModel):
    """One node of the typed syntax tree.

    Children are ordered the way a clang cursor visit enumerates them: absent
    optional parts (a missing ``else``, an omitted ``for`` clause) are simply
    not present, so positional lookups go through :meth:`child` (required)
    or :meth:`optional_child`.
    """

    kind: NodeKind
    spelling: str = ""
    type: CType = INVALID_TYPE
    children: list[SyntaxNode] = []
    tokens: list[str] = []
    binary_operator: Optional[BinaryOperator] = None
    unary_operator: Optional[UnaryOperator] = None
    in_system_header: bool = False
    source_location: SourceLocation = NO_SOURCE_LOCATION

    @property
    def child_count(self) -> int:
        return len(self.children)

    def child(self, index: int) -> SyntaxNode:
        if index < 0 or index >= len(self.children):
            raise MissingChildError(index, self.kind.value, str(self.source_location))
        return self.children[index]

    def optional_child(self, index: int) -> Optional[SyntaxNode]:
        if index < 0 or index >= len(self.children):
            return None
        return self.children[index]

    def find_child(self, kind: NodeKind) -> Optional[SyntaxNode]:
        return next((c for c in self.children if c.kind == kind), None)

    def tokenize(self) -> list[str]:
        """Return the raw source tokens covered by this node."""
        return list(self.tokens)

    def dump(self, depth: int = 0) -> str:
        label = f"{'  ' * depth}{self.kind.value}"
        if self.spelling:
            label += f" '{self.spelling}'"
        if self.binary_operator is not None:
            label += f" <{self.binary_operator.spelling}>"
        if self.unary_operator is not None:
            label += f" <{self.unary_operator.value}>"
        if self.type.kind != TypeKind.INVALID:
            label += f" : {self.type.spelling}"
        lines = [label]
        lines.extend(c.dump(depth + 1) for c in self.children)
        return "\n".join(lines)
