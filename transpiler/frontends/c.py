"""CSyntaxBuilder — tree-sitter C AST -> typed syntax nodes.

Children are laid out the way libclang enumerates cursor children, which is
what the engine's positional rules expect: an ``if`` is ``[cond, then,
else?]``, a ``case`` is ``[value, first statement]`` with the rest of its
statements following as siblings, and so on. The one deliberate difference
is ``for``: omitted clauses are kept as empty null statements so the loop
always has four children.
"""

from __future__ import annotations

import bisect
import logging
import re
from typing import Callable, Optional

from ._base import BaseSyntaxBuilder
from .c_types import (
    BUILTIN_TYPEDEFS,
    CTypeResolver,
    DeclarationTable,
    decay,
    function_result_of,
    is_arithmetic,
    is_pointer_like,
    literal_type,
    pointee_of,
    promote,
    usual_arithmetic_conversion,
)
from ..errors import UnsupportedSourceError
from ..syntax import BinaryOperator, NodeKind, SyntaxNode, UnaryOperator
from ..type_mapper import desugar
from ..type_system import (
    FUNCTION_KINDS,
    INT_TYPE,
    INVALID_TYPE,
    SIZE_TYPE,
    VOID_TYPE,
    CType,
    TypeKind,
    array_of,
    builtin,
    pointer_to,
    typedef,
)

logger = logging.getLogger(__name__)

PREPROC_NOISE_TYPES = frozenset(
    {
        "preproc_include",
        "preproc_define",
        "preproc_ifdef",
        "preproc_ifndef",
        "preproc_if",
        "preproc_else",
        "preproc_elif",
        "preproc_elifdef",
        "preproc_endif",
        "preproc_call",
        "preproc_def",
        "preproc_function_def",
    }
)

PREPROC_CONTAINER_TYPES = frozenset(
    {"preproc_if", "preproc_ifdef", "preproc_else", "preproc_elif", "preproc_elifdef"}
)

# GCC/clang linemarkers in preprocessed output: # 12 "/usr/include/stdio.h" 1 3 4
LINEMARKER_PATTERN = re.compile(
    rb'^\s*#\s*(?:line\s+)?\d+\s+"[^"]*"((?:\s+\d+)*)\s*$'
)
SYSTEM_HEADER_FLAG = b"3"

_UNARY_OPERATORS: dict[str, UnaryOperator] = {
    "-": UnaryOperator.MINUS,
    "+": UnaryOperator.PLUS,
    "!": UnaryOperator.LNOT,
    "~": UnaryOperator.NOT,
}

PTRDIFF_TYPE = BUILTIN_TYPEDEFS["ptrdiff_t"]


def scan_linemarkers(source: bytes) -> list[tuple[int, bool]]:
    """(row, in-system-header) for every linemarker row, in source order."""
    markers: list[tuple[int, bool]] = []
    for row, line in enumerate(source.split(b"\n")):
        match = LINEMARKER_PATTERN.match(line)
        if match:
            flags = match.group(1).split()
            markers.append((row, SYSTEM_HEADER_FLAG in flags))
    return markers


def blank_linemarkers(source: bytes) -> bytes:
    """Replace linemarker lines with spaces; tree-sitter does not parse them.

    Byte offsets and rows are preserved, so nodes parsed from the result
    still index into the original source.
    """
    return b"\n".join(
        b" " * len(line) if LINEMARKER_PATTERN.match(line) else line
        for line in source.split(b"\n")
    )


class CSyntaxBuilder(BaseSyntaxBuilder):
    """Builds a typed translation unit from a tree-sitter C tree."""

    NOISE_TYPES = frozenset({"\n", ";"}) | PREPROC_NOISE_TYPES
    ATOMIC_TOKEN_TYPES = frozenset({"string_literal", "char_literal", "system_lib_string"})

    def __init__(self):
        super().__init__()
        self._table = DeclarationTable()
        self._types = CTypeResolver(self._table, b"")
        self._linemarker_rows: list[int] = []
        self._linemarker_flags: list[bool] = []
        self._function_name = ""
        self._EXPR_DISPATCH: dict[str, Callable] = {
            "identifier": self._build_identifier,
            "number_literal": self._build_number_literal,
            "char_literal": self._build_char_literal,
            "string_literal": self._build_string_literal,
            "concatenated_string": self._build_concatenated_string,
            "true": self._build_bool_literal,
            "false": self._build_bool_literal,
            "null": self._build_null_literal,
            "binary_expression": self._build_binary_expr,
            "assignment_expression": self._build_assignment_expr,
            "unary_expression": self._build_unary_expr,
            "update_expression": self._build_update_expr,
            "pointer_expression": self._build_pointer_expr,
            "parenthesized_expression": self._build_paren_expr,
            "call_expression": self._build_call_expr,
            "field_expression": self._build_field_expr,
            "subscript_expression": self._build_subscript_expr,
            "cast_expression": self._build_cast_expr,
            "sizeof_expression": self._build_sizeof_expr,
            "alignof_expression": self._build_opaque_size_expr,
            "offsetof_expression": self._build_opaque_size_expr,
            "conditional_expression": self._build_conditional_expr,
            "comma_expression": self._build_comma_expr,
            "compound_literal_expression": self._build_compound_literal,
            "initializer_list": self._build_initializer_list,
        }
        self._STMT_DISPATCH: dict[str, Callable] = {
            "compound_statement": self._build_compound,
            "declaration": self._build_local_declaration,
            "expression_statement": self._build_expression_statement,
            "return_statement": self._build_return,
            "if_statement": self._build_if,
            "for_statement": self._build_for,
            "while_statement": self._build_while,
            "do_statement": self._build_do_while,
            "switch_statement": self._build_switch,
            "case_statement": self._build_lone_case,
            "labeled_statement": self._build_labeled_stmt,
            "goto_statement": self._build_goto,
            "break_statement": self._build_break,
            "continue_statement": self._build_continue,
            "type_definition": self._build_typedef,
            "struct_specifier": self._build_tag_declaration,
            "union_specifier": self._build_tag_declaration,
            "enum_specifier": self._build_tag_declaration,
        }

    # ── entry point ──────────────────────────────────────────────

    def build(self, tree, source: bytes) -> SyntaxNode:
        self._source = source
        self._table = DeclarationTable()
        self._types = CTypeResolver(self._table, source)
        markers = scan_linemarkers(source)
        self._linemarker_rows = [row for row, _ in markers]
        self._linemarker_flags = [flag for _, flag in markers]

        root = tree.root_node
        if root.type != "translation_unit":
            raise UnsupportedSourceError(f"Expected a C translation unit, got {root.type}")
        items = self._build_top_level(root)
        if root.has_error:
            if not any(item.kind == NodeKind.FUNCTION_DECL for item in items):
                raise UnsupportedSourceError("Source has syntax errors and no functions")
            logger.warning("Source has syntax errors; translating what parsed")
        return self._make(NodeKind.TRANSLATION_UNIT, root, children=items)

    def _in_system_header(self, node) -> bool:
        index = bisect.bisect_right(self._linemarker_rows, node.start_point[0] - 1)
        if index == 0:
            return False
        return self._linemarker_flags[index - 1]

    # ── file scope ───────────────────────────────────────────────

    def _build_top_level(self, node) -> list[SyntaxNode]:
        items: list[SyntaxNode] = []
        for child in node.children:
            ntype = child.type
            if ntype in PREPROC_CONTAINER_TYPES:
                items.extend(self._build_top_level(child))
            elif ntype == "function_definition":
                items.append(self._build_function_definition(child))
            elif ntype == "declaration":
                items.extend(self._build_file_declaration(child))
            elif ntype == "type_definition":
                self._build_typedef(child)
            elif ntype in ("struct_specifier", "union_specifier", "enum_specifier"):
                self._build_tag_declaration(child)
        return items

    def _build_function_definition(self, node) -> SyntaxNode:
        declarator = node.child_by_field_name("declarator")
        name, ftype = self._types.apply_declarator(self._types.resolve_base(node), declarator)
        self._table.declare(name, ftype)
        self._function_name = name

        self._table.push_scope()
        try:
            children = self._build_parameters(
                declarator, declare=True, old_style=self._old_style_parameter_types(node)
            )
            body = node.child_by_field_name("body")
            if body is not None:
                children.append(self._build_compound(body))
        finally:
            self._table.pop_scope()

        return self._make(
            NodeKind.FUNCTION_DECL,
            node,
            spelling=name,
            ctype=ftype,
            children=children,
            in_system_header=self._in_system_header(node),
        )

    def _old_style_parameter_types(self, node) -> dict[str, CType]:
        """Types from the declarations between a K&R declarator and its body."""
        types: dict[str, CType] = {}
        for decl in node.children:
            if decl.type != "declaration":
                continue
            base = self._types.resolve_base(decl)
            for declarator in decl.children_by_field_name("declarator"):
                name, ctype = self._types.apply_declarator(base, declarator)
                types[name] = ctype
        return types

    def _build_parameters(
        self, declarator, declare: bool, old_style: Optional[dict[str, CType]] = None
    ) -> list[SyntaxNode]:
        function_declarator = CTypeResolver.find_function_declarator(declarator)
        if function_declarator is None:
            return []
        params: list[SyntaxNode] = []
        resolved = self._types.resolve_parameters(function_declarator, old_style)
        for name, ctype, param_node in resolved:
            if declare:
                self._table.declare(name, ctype)
            params.append(
                self._make(NodeKind.PARM_DECL, param_node, spelling=name, ctype=ctype)
            )
        return params

    def _build_file_declaration(self, node) -> list[SyntaxNode]:
        """Prototypes become bodiless function declarations, the rest variables."""
        base = self._types.resolve_base(node)
        items: list[SyntaxNode] = []
        for declarator in node.children_by_field_name("declarator"):
            name, ctype = self._types.apply_declarator(base, declarator)
            if desugar(ctype).kind in FUNCTION_KINDS:
                self._table.declare(name, ctype)
                items.append(
                    self._make(
                        NodeKind.FUNCTION_DECL,
                        node,
                        spelling=name,
                        ctype=ctype,
                        children=self._build_parameters(declarator, declare=False),
                        in_system_header=self._in_system_header(node),
                    )
                )
            else:
                items.append(self._build_var_decl(declarator, name, ctype))
        return items

    def _build_typedef(self, node) -> Optional[SyntaxNode]:
        declarators = node.children_by_field_name("declarator")
        alias_hint = next(
            (self._node_text(d) for d in declarators if d.type == "type_identifier"),
            "",
        )
        base = self._types.resolve_base(node, anonymous_name=alias_hint)
        for declarator in declarators:
            name, ctype = self._types.apply_declarator(base, declarator)
            self._table.typedefs[name] = typedef(name, ctype)
        return None

    def _build_tag_declaration(self, node) -> Optional[SyntaxNode]:
        self._types.resolve_specifier(node)
        return None

    # ── statements ───────────────────────────────────────────────

    def _null_stmt(self, ts_node) -> SyntaxNode:
        return self._make(NodeKind.NULL_STMT, ts_node)

    def _build_body(self, node, parent) -> SyntaxNode:
        if node is None:
            return self._null_stmt(parent)
        return self._build_stmt(node) or self._null_stmt(node)

    def _build_compound(self, node) -> SyntaxNode:
        for child in node.named_children:
            if child.type in PREPROC_CONTAINER_TYPES:
                logger.warning(
                    "%s: preprocessor conditional at line %d dropped; "
                    "preprocess the source to keep its statements",
                    self._function_name,
                    child.start_point[0] + 1,
                )
        self._table.push_scope()
        try:
            statements = self._build_statement_list(self._named_children(node))
        finally:
            self._table.pop_scope()
        return self._make(NodeKind.COMPOUND_STMT, node, children=statements)

    def _build_statement_list(self, ts_children) -> list[SyntaxNode]:
        """Lower block statements, splitting each ``case`` the way clang nests it.

        A case label owns only its first statement; the statements after it
        become siblings. Labels with no statement (``case 1: case 2: x;``)
        nest into the label that follows them.
        """
        statements: list[SyntaxNode] = []
        pending: list = []
        for child in ts_children:
            if child.type != "case_statement":
                built = self._build_stmt(child)
                if built is not None:
                    statements.append(built)
                continue

            body = [
                s for s in (self._build_stmt(b) for b in self._case_body(child)) if s
            ]
            if not body:
                pending.append(child)
                continue
            label = self._wrap_case(child, body[0])
            for waiting in reversed(pending):
                label = self._wrap_case(waiting, label)
            pending = []
            statements.append(label)
            statements.extend(body[1:])

        if pending:
            label = self._wrap_case(pending[-1], self._null_stmt(pending[-1]))
            for waiting in reversed(pending[:-1]):
                label = self._wrap_case(waiting, label)
            statements.append(label)
        return statements

    def _case_body(self, node) -> list:
        value_node = node.child_by_field_name("value")
        return [c for c in self._named_children(node) if c != value_node]

    def _wrap_case(self, ts_node, body: SyntaxNode) -> SyntaxNode:
        value_node = ts_node.child_by_field_name("value")
        if value_node is None:
            return self._make(NodeKind.DEFAULT_STMT, ts_node, children=[body])
        return self._make(
            NodeKind.CASE_STMT, ts_node, children=[self._build_expr(value_node), body]
        )

    def _build_lone_case(self, node) -> SyntaxNode:
        body = [s for s in (self._build_stmt(b) for b in self._case_body(node)) if s]
        if len(body) > 1:
            logger.warning(
                "case label outside a block at %s keeps only its first statement",
                self._source_loc(node),
            )
        return self._wrap_case(node, body[0] if body else self._null_stmt(node))

    def _build_local_declaration(self, node) -> Optional[SyntaxNode]:
        base = self._types.resolve_base(node)
        variables: list[SyntaxNode] = []
        for declarator in node.children_by_field_name("declarator"):
            name, ctype = self._types.apply_declarator(base, declarator)
            if desugar(ctype).kind in FUNCTION_KINDS:
                self._table.declare(name, ctype)
                continue
            variables.append(self._build_var_decl(declarator, name, ctype))
        if not variables:
            return None
        return self._make(NodeKind.DECL_STMT, node, children=variables)

    def _build_var_decl(self, declarator, name: str, ctype: CType) -> SyntaxNode:
        value_node = None
        if declarator.type == "init_declarator":
            value_node = declarator.child_by_field_name("value")

        if value_node is not None and desugar(ctype).kind == TypeKind.INCOMPLETE_ARRAY:
            ctype = self._complete_array_type(ctype, value_node)

        # The name is in scope inside its own initializer.
        self._table.declare(name, ctype)
        children = []
        if value_node is not None:
            children.append(self._build_initializer(value_node, ctype))
        return self._make(
            NodeKind.VAR_DECL, declarator, spelling=name, ctype=ctype, children=children
        )

    def _complete_array_type(self, ctype: CType, value_node) -> CType:
        element = desugar(ctype).array_element_type()
        if value_node.type == "initializer_list":
            return array_of(element, len(self._named_children(value_node)))
        if value_node.type in ("string_literal", "concatenated_string"):
            literal = self._build_expr(value_node)
            return array_of(element, desugar(literal.type).array_size)
        return ctype

    def _build_expression_statement(self, node) -> SyntaxNode:
        named = self._named_children(node)
        if not named:
            return self._null_stmt(node)
        return self._build_expr(named[0])

    def _build_return(self, node) -> SyntaxNode:
        children = [self._build_expr(c) for c in self._named_children(node)]
        return self._make(NodeKind.RETURN_STMT, node, children=children[:1])

    def _build_condition(self, node) -> SyntaxNode:
        """Build a statement condition without its grammar parentheses."""
        if node.type == "parenthesized_expression":
            inner = self._named_children(node)
            if inner:
                return self._build_expr(inner[0])
        return self._build_expr(node)

    def _build_if(self, node) -> SyntaxNode:
        children = [
            self._build_condition(node.child_by_field_name("condition")),
            self._build_body(node.child_by_field_name("consequence"), node),
        ]
        alternative = node.child_by_field_name("alternative")
        if alternative is not None:
            if alternative.type == "else_clause":
                alternative = next(iter(self._named_children(alternative)), None)
            children.append(self._build_body(alternative, node))
        return self._make(NodeKind.IF_STMT, node, children=children)

    def _build_for(self, node) -> SyntaxNode:
        self._table.push_scope()
        try:
            init_node = node.child_by_field_name("initializer")
            if init_node is None:
                init = self._null_stmt(node)
            elif init_node.type == "declaration":
                init = self._build_local_declaration(init_node) or self._null_stmt(node)
            else:
                init = self._build_expr(init_node)

            cond_node = node.child_by_field_name("condition")
            update_node = node.child_by_field_name("update")
            children = [
                init,
                self._build_expr(cond_node) if cond_node else self._null_stmt(node),
                self._build_expr(update_node) if update_node else self._null_stmt(node),
                self._build_body(node.child_by_field_name("body"), node),
            ]
        finally:
            self._table.pop_scope()
        return self._make(NodeKind.FOR_STMT, node, children=children)

    def _build_while(self, node) -> SyntaxNode:
        return self._make(
            NodeKind.WHILE_STMT,
            node,
            children=[
                self._build_condition(node.child_by_field_name("condition")),
                self._build_body(node.child_by_field_name("body"), node),
            ],
        )

    def _build_do_while(self, node) -> SyntaxNode:
        return self._make(
            NodeKind.DO_STMT,
            node,
            children=[
                self._build_body(node.child_by_field_name("body"), node),
                self._build_condition(node.child_by_field_name("condition")),
            ],
        )

    def _build_switch(self, node) -> SyntaxNode:
        return self._make(
            NodeKind.SWITCH_STMT,
            node,
            children=[
                self._build_condition(node.child_by_field_name("condition")),
                self._build_body(node.child_by_field_name("body"), node),
            ],
        )

    def _build_labeled_stmt(self, node) -> SyntaxNode:
        label_node = node.child_by_field_name("label")
        statements = [
            c
            for c in self._named_children(node)
            if c != label_node and c.type != "statement_identifier"
        ]
        children = [self._build_body(statements[0], node)] if statements else []
        return self._make(
            NodeKind.LABEL_STMT,
            node,
            spelling=self._node_text(label_node) if label_node else "",
            children=children,
        )

    def _build_goto(self, node) -> SyntaxNode:
        label_node = node.child_by_field_name("label")
        if label_node is None:
            label_node = next(
                (c for c in node.children if c.type == "statement_identifier"), None
            )
        children = []
        if label_node is not None:
            children.append(
                self._make(
                    NodeKind.LABEL_REF, label_node, spelling=self._node_text(label_node)
                )
            )
        else:
            logger.warning("goto without label: %s", self._node_text(node)[:40])
        return self._make(NodeKind.GOTO_STMT, node, children=children)

    def _build_break(self, node) -> SyntaxNode:
        return self._make(NodeKind.BREAK_STMT, node)

    def _build_continue(self, node) -> SyntaxNode:
        return self._make(NodeKind.CONTINUE_STMT, node)

    # ── literals and names ───────────────────────────────────────

    def _build_identifier(self, node) -> SyntaxNode:
        name = self._node_text(node)
        ctype = self._table.lookup(name)
        if ctype is None:
            logger.debug("Undeclared identifier '%s' at %s", name, self._source_loc(node))
            ctype = INVALID_TYPE
        return self._make(NodeKind.DECL_REF_EXPR, node, spelling=name, ctype=ctype)

    def _build_number_literal(self, node) -> SyntaxNode:
        text = self._node_text(node)
        ctype = literal_type(text)
        kind = (
            NodeKind.FLOATING_LITERAL
            if desugar(ctype).kind in (TypeKind.FLOAT, TypeKind.DOUBLE, TypeKind.LONGDOUBLE)
            else NodeKind.INTEGER_LITERAL
        )
        return self._make(kind, node, spelling=text, ctype=ctype)

    def _build_char_literal(self, node) -> SyntaxNode:
        return self._make(
            NodeKind.CHARACTER_LITERAL, node, spelling=self._node_text(node), ctype=INT_TYPE
        )

    def _string_type(self, content: str) -> CType:
        return array_of(builtin(TypeKind.CHAR_S), len(content) + 1)

    @staticmethod
    def _split_string_literal(text: str) -> tuple[str, str]:
        """Split ``L"abc"`` into its prefix and unquoted content."""
        quote = text.index('"')
        return text[:quote], text[quote + 1 : -1]

    def _build_string_literal(self, node) -> SyntaxNode:
        text = self._node_text(node)
        _, content = self._split_string_literal(text)
        return self._make(
            NodeKind.STRING_LITERAL, node, spelling=text, ctype=self._string_type(content)
        )

    def _build_concatenated_string(self, node) -> SyntaxNode:
        pieces = [
            self._split_string_literal(self._node_text(c))
            for c in node.children
            if c.type == "string_literal"
        ]
        prefix = pieces[0][0] if pieces else ""
        content = "".join(piece for _, piece in pieces)
        return self._make(
            NodeKind.STRING_LITERAL,
            node,
            spelling=f'{prefix}"{content}"',
            ctype=self._string_type(content),
        )

    def _build_bool_literal(self, node) -> SyntaxNode:
        return self._make(
            NodeKind.INTEGER_LITERAL,
            node,
            spelling=self._node_text(node),
            ctype=builtin(TypeKind.BOOL),
        )

    def _build_null_literal(self, node) -> SyntaxNode:
        return self._make(
            NodeKind.NULL_POINTER_LITERAL, node, ctype=pointer_to(VOID_TYPE)
        )

    # ── operators ────────────────────────────────────────────────

    def _build_binary_expr(self, node) -> SyntaxNode:
        op_text = self._node_text(node.child_by_field_name("operator"))
        try:
            op = BinaryOperator(op_text)
        except ValueError:
            return self._build_unexposed(node)
        lhs = self._build_expr(node.child_by_field_name("left"))
        rhs = self._build_expr(node.child_by_field_name("right"))
        return self._make(
            NodeKind.BINARY_OPERATOR,
            node,
            ctype=self._binary_result_type(op, lhs.type, rhs.type),
            children=[lhs, rhs],
            binary_operator=op,
        )

    @staticmethod
    def _binary_result_type(op: BinaryOperator, lhs: CType, rhs: CType) -> CType:
        if op.is_comparison() or op.is_logical():
            return INT_TYPE
        if op == BinaryOperator.COMMA:
            return rhs
        if op in (BinaryOperator.ADD, BinaryOperator.SUB):
            if op == BinaryOperator.SUB and is_pointer_like(lhs) and is_pointer_like(rhs):
                return PTRDIFF_TYPE
            if is_pointer_like(lhs):
                return decay(lhs)
            if op == BinaryOperator.ADD and is_pointer_like(rhs):
                return decay(rhs)
        if op in (BinaryOperator.SHL, BinaryOperator.SHR):
            return promote(lhs)
        if is_arithmetic(lhs) and is_arithmetic(rhs):
            return usual_arithmetic_conversion(lhs, rhs)
        return lhs if lhs.kind != TypeKind.INVALID else rhs

    def _build_assignment_expr(self, node) -> SyntaxNode:
        op = BinaryOperator(self._node_text(node.child_by_field_name("operator")))
        lhs = self._build_expr(node.child_by_field_name("left"))
        rhs = self._build_expr(node.child_by_field_name("right"))
        kind = (
            NodeKind.BINARY_OPERATOR
            if op == BinaryOperator.ASSIGN
            else NodeKind.COMPOUND_ASSIGN_OPERATOR
        )
        return self._make(
            kind, node, ctype=lhs.type, children=[lhs, rhs], binary_operator=op
        )

    def _build_comma_expr(self, node) -> SyntaxNode:
        lhs = self._build_expr(node.child_by_field_name("left"))
        rhs = self._build_expr(node.child_by_field_name("right"))
        return self._make(
            NodeKind.BINARY_OPERATOR,
            node,
            ctype=rhs.type,
            children=[lhs, rhs],
            binary_operator=BinaryOperator.COMMA,
        )

    def _build_unary_expr(self, node) -> SyntaxNode:
        op_text = self._node_text(node.child_by_field_name("operator"))
        op = _UNARY_OPERATORS.get(op_text)
        if op is None:
            return self._build_unexposed(node)
        operand = self._build_expr(node.child_by_field_name("argument"))
        ctype = INT_TYPE if op == UnaryOperator.LNOT else promote(operand.type)
        return self._make(
            NodeKind.UNARY_OPERATOR,
            node,
            ctype=ctype,
            children=[operand],
            unary_operator=op,
        )

    def _build_update_expr(self, node) -> SyntaxNode:
        op_node = node.child_by_field_name("operator")
        arg_node = node.child_by_field_name("argument")
        is_prefix = op_node.start_byte < arg_node.start_byte
        if self._node_text(op_node) == "++":
            op = UnaryOperator.PRE_INC if is_prefix else UnaryOperator.POST_INC
        else:
            op = UnaryOperator.PRE_DEC if is_prefix else UnaryOperator.POST_DEC
        operand = self._build_expr(arg_node)
        return self._make(
            NodeKind.UNARY_OPERATOR,
            node,
            ctype=operand.type,
            children=[operand],
            unary_operator=op,
        )

    def _build_pointer_expr(self, node) -> SyntaxNode:
        """``*p`` dereferences to the pointee type, ``&x`` points at x."""
        operand = self._build_expr(node.child_by_field_name("argument"))
        if self._node_text(node.child_by_field_name("operator")) == "&":
            op, ctype = UnaryOperator.ADDR_OF, pointer_to(operand.type)
        else:
            op, ctype = UnaryOperator.DEREF, pointee_of(operand.type)
        return self._make(
            NodeKind.UNARY_OPERATOR,
            node,
            ctype=ctype,
            children=[operand],
            unary_operator=op,
        )

    # ── other expressions ────────────────────────────────────────

    def _build_paren_expr(self, node) -> SyntaxNode:
        inner = self._named_children(node)
        if not inner:
            return self._make(NodeKind.PAREN_EXPR, node)
        child = self._build_expr(inner[0])
        return self._make(NodeKind.PAREN_EXPR, node, ctype=child.type, children=[child])

    def _build_call_expr(self, node) -> SyntaxNode:
        callee = self._build_expr(node.child_by_field_name("function"))
        args_node = node.child_by_field_name("arguments")
        args = (
            [self._build_expr(c) for c in self._named_children(args_node)]
            if args_node is not None
            else []
        )
        return self._make(
            NodeKind.CALL_EXPR,
            node,
            ctype=function_result_of(callee.type),
            children=[callee] + args,
        )

    def _build_field_expr(self, node) -> SyntaxNode:
        """Lower field_expression (e.g., obj.field or ptr->field)."""
        base = self._build_expr(node.child_by_field_name("argument"))
        field_name = self._node_text(node.child_by_field_name("field"))
        return self._make(
            NodeKind.MEMBER_REF_EXPR,
            node,
            spelling=field_name,
            ctype=self._table.field_type(base.type, field_name),
            children=[base],
        )

    def _build_subscript_expr(self, node) -> SyntaxNode:
        base = self._build_expr(node.child_by_field_name("argument"))
        index = self._build_expr(node.child_by_field_name("index"))
        ctype = pointee_of(base.type)
        if ctype.kind == TypeKind.INVALID:
            ctype = pointee_of(index.type)
        return self._make(
            NodeKind.ARRAY_SUBSCRIPT_EXPR, node, ctype=ctype, children=[base, index]
        )

    def _resolve_type_descriptor(self, node) -> CType:
        base = self._types.resolve_base(node)
        _, ctype = self._types.apply_declarator(
            base, node.child_by_field_name("declarator")
        )
        return ctype

    def _build_cast_expr(self, node) -> SyntaxNode:
        ctype = self._resolve_type_descriptor(node.child_by_field_name("type"))
        value = self._build_expr(node.child_by_field_name("value"))
        return self._make(NodeKind.CSTYLE_CAST_EXPR, node, ctype=ctype, children=[value])

    def _build_sizeof_expr(self, node) -> SyntaxNode:
        value_node = node.child_by_field_name("value")
        type_node = node.child_by_field_name("type")
        children: list[SyntaxNode] = []
        if value_node is not None:
            children.append(self._build_expr(value_node))
        elif type_node is not None:
            variable = self._variable_named_by(type_node)
            if variable is not None:
                # sizeof(buf) parsed as a type name
                children.append(
                    self._make(
                        NodeKind.PAREN_EXPR,
                        type_node,
                        ctype=variable.type,
                        children=[variable],
                    )
                )
        return self._make(
            NodeKind.UNARY_EXPR,
            node,
            ctype=SIZE_TYPE,
            children=children,
            tokens=self._tokens(node),
        )

    def _variable_named_by(self, type_descriptor) -> Optional[SyntaxNode]:
        type_node = type_descriptor.child_by_field_name("type")
        if type_node is None or type_node.type != "type_identifier":
            return None
        if type_descriptor.child_by_field_name("declarator") is not None:
            return None
        name = self._node_text(type_node)
        ctype = self._table.lookup(name)
        if ctype is None:
            return None
        return self._make(NodeKind.DECL_REF_EXPR, type_node, spelling=name, ctype=ctype)

    def _build_opaque_size_expr(self, node) -> SyntaxNode:
        return self._make(
            NodeKind.UNARY_EXPR, node, ctype=SIZE_TYPE, tokens=self._tokens(node)
        )

    def _build_conditional_expr(self, node) -> SyntaxNode:
        condition = self._build_expr(node.child_by_field_name("condition"))
        consequence_node = node.child_by_field_name("consequence")
        # GNU "a ?: b" reuses the condition
        consequence = (
            self._build_expr(consequence_node) if consequence_node else condition
        )
        alternative = self._build_expr(node.child_by_field_name("alternative"))

        if is_arithmetic(consequence.type) and is_arithmetic(alternative.type):
            ctype = usual_arithmetic_conversion(consequence.type, alternative.type)
        elif consequence.kind == NodeKind.NULL_POINTER_LITERAL:
            ctype = alternative.type
        elif consequence.type.kind == TypeKind.INVALID:
            ctype = alternative.type
        else:
            ctype = consequence.type
        return self._make(
            NodeKind.CONDITIONAL_OPERATOR,
            node,
            ctype=ctype,
            children=[condition, consequence, alternative],
        )

    def _build_compound_literal(self, node) -> SyntaxNode:
        ctype = self._resolve_type_descriptor(node.child_by_field_name("type"))
        value = self._build_initializer(node.child_by_field_name("value"), ctype)
        return self._make(
            NodeKind.COMPOUND_LITERAL_EXPR, node, ctype=ctype, children=[value]
        )

    def _build_initializer_list(self, node) -> SyntaxNode:
        return self._build_initializer(node, INVALID_TYPE)

    def _build_initializer(self, node, ctype: CType) -> SyntaxNode:
        """Initializers take their type from the declaration they initialize."""
        if node.type == "initializer_pair":
            value = node.child_by_field_name("value")
            inner = self._build_initializer(value, INVALID_TYPE)
            return self._make(
                NodeKind.UNEXPOSED_EXPR, node, ctype=inner.type, children=[inner]
            )
        if node.type != "initializer_list":
            return self._build_expr(node)

        element_type = desugar(ctype).array_element_type()
        elements = [
            self._build_initializer(c, element_type) for c in self._named_children(node)
        ]
        return self._make(
            NodeKind.INIT_LIST_EXPR, node, ctype=ctype, children=elements
        )
