"""ExpressionEngine — typed C syntax nodes -> C# source text.

Translation is post-order: every rule translates the children it needs
first and builds its own text from theirs. Rules are looked up in
``_DISPATCH`` by node kind; kinds with no rule fall back to the last
child's text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from . import constants
from .descriptor import NodeDescriptor, TranslationResult, describe, text_of
from .errors import TranslationError
from .syntax import BinaryOperator, NodeKind, SyntaxNode, UnaryOperator
from .type_mapper import desugar, is_pointer_wrapper_name
from .type_system import TypeKind

logger = logging.getLogger(__name__)

# Structural kinds with no semantics of their own.
PASSTHROUGH_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.TRANSLATION_UNIT,
        NodeKind.FUNCTION_DECL,
        NodeKind.PARM_DECL,
        NodeKind.TYPE_REF,
        NodeKind.COMPOUND_LITERAL_EXPR,
        NodeKind.UNEXPOSED_EXPR,
        NodeKind.UNEXPOSED_STMT,
        NodeKind.NULL_STMT,
    }
)


@dataclass(frozen=True)
class FunctionContext:
    """Per-function facts the statement rules read but never write."""

    function_name: str
    return_type: str
    # C parameter name -> C# name, for parameters spelled like C# keywords
    parameter_renames: Mapping[str, str] = field(default_factory=dict)


def ensure_statement_finished(statement: str) -> str:
    trimmed = statement.strip()
    if not trimmed.endswith(constants.STATEMENT_TERMINATOR) and not trimmed.endswith(
        constants.BLOCK_TERMINATOR
    ):
        return statement + constants.STATEMENT_TERMINATOR
    return statement


class ExpressionEngine:
    """Translates the statements of one function body."""

    def __init__(self, context: FunctionContext):
        self._context = context
        self._DISPATCH: dict[NodeKind, Callable[[NodeDescriptor], str]] = {
            NodeKind.INTEGER_LITERAL: self._translate_literal,
            NodeKind.FLOATING_LITERAL: self._translate_literal,
            NodeKind.CHARACTER_LITERAL: self._translate_literal,
            NodeKind.STRING_LITERAL: self._translate_string_literal,
            NodeKind.NULL_POINTER_LITERAL: self._translate_null_literal,
            NodeKind.DECL_REF_EXPR: self._translate_decl_ref,
            NodeKind.LABEL_REF: self._translate_spelling,
            NodeKind.UNARY_EXPR: self._translate_unary_expr,
            NodeKind.BINARY_OPERATOR: self._translate_binary_operator,
            NodeKind.COMPOUND_ASSIGN_OPERATOR: self._translate_binary_operator,
            NodeKind.UNARY_OPERATOR: self._translate_unary_operator,
            NodeKind.CALL_EXPR: self._translate_call,
            NodeKind.CONDITIONAL_OPERATOR: self._translate_conditional,
            NodeKind.MEMBER_REF_EXPR: self._translate_member_ref,
            NodeKind.ARRAY_SUBSCRIPT_EXPR: self._translate_array_subscript,
            NodeKind.INIT_LIST_EXPR: self._translate_init_list,
            NodeKind.PAREN_EXPR: self._translate_paren,
            NodeKind.CSTYLE_CAST_EXPR: self._translate_cstyle_cast,
            NodeKind.RETURN_STMT: self._translate_return,
            NodeKind.IF_STMT: self._translate_if,
            NodeKind.FOR_STMT: self._translate_for,
            NodeKind.WHILE_STMT: self._translate_while,
            NodeKind.DO_STMT: self._translate_do,
            NodeKind.SWITCH_STMT: self._translate_switch,
            NodeKind.CASE_STMT: self._translate_case,
            NodeKind.DEFAULT_STMT: self._translate_default,
            NodeKind.LABEL_STMT: self._translate_label,
            NodeKind.GOTO_STMT: self._translate_goto,
            NodeKind.BREAK_STMT: self._translate_break,
            NodeKind.CONTINUE_STMT: self._translate_continue,
            NodeKind.VAR_DECL: self._translate_var_decl,
            NodeKind.DECL_STMT: self._translate_decl_stmt,
            NodeKind.COMPOUND_STMT: self._translate_compound,
        }

    # ── entry points ─────────────────────────────────────────────

    def translate(self, node: SyntaxNode) -> TranslationResult:
        info = describe(node)
        handler = self._DISPATCH.get(info.kind)
        if handler is None:
            text = self._translate_passthrough(info)
        else:
            text = handler(info)
        return TranslationResult(descriptor=info, text=text)

    def handles(self, kind: NodeKind) -> bool:
        return kind in self._DISPATCH

    def normalize_truthiness(self, result: TranslationResult) -> TranslationResult:
        """Spell out C's "nonzero is true" for a C# boolean context."""
        info = result.descriptor
        if info.kind == NodeKind.BINARY_OPERATOR:
            return result

        if (
            info.kind == NodeKind.UNARY_OPERATOR
            and info.node.unary_operator == UnaryOperator.LNOT
        ):
            negated = self._child(info.node, 0)
            return result.with_text(f"({negated.text} == 0)")

        if info.is_primitive_numeric:
            return result.with_text(f"({result.text}) != 0")

        if info.is_pointer:
            return result.with_text(f"({result.text}) != {constants.NULL_LITERAL}")

        return result

    # ── helpers ──────────────────────────────────────────────────

    def _child(self, node: SyntaxNode, index: int) -> TranslationResult:
        return self.translate(node.child(index))

    def _optional_child(
        self, node: SyntaxNode, index: int
    ) -> Optional[TranslationResult]:
        child = node.optional_child(index)
        if child is None:
            return None
        return self.translate(child)

    def _all_children(self, node: SyntaxNode) -> list[TranslationResult]:
        return [self.translate(child) for child in node.children]

    # ── literals and names ───────────────────────────────────────

    def _translate_literal(self, info: NodeDescriptor) -> str:
        return info.spelling

    def _translate_string_literal(self, info: NodeDescriptor) -> str:
        if info.spelling.startswith(constants.WIDE_STRING_PREFIX):
            return info.spelling[len(constants.WIDE_STRING_PREFIX) :]
        return info.spelling

    def _translate_null_literal(self, info: NodeDescriptor) -> str:
        return constants.NULL_LITERAL

    def _translate_spelling(self, info: NodeDescriptor) -> str:
        return info.spelling

    def _translate_decl_ref(self, info: NodeDescriptor) -> str:
        return self._context.parameter_renames.get(info.spelling, info.spelling)

    # ── expressions ──────────────────────────────────────────────

    def _translate_unary_expr(self, info: NodeDescriptor) -> str:
        """sizeof and friends: ``x.Size`` for size_t results, raw tokens otherwise."""
        expr = self._optional_child(info.node, 0)
        if expr is not None:
            if desugar(info.type).kind == TypeKind.ULONGLONG:
                return f"{expr.text}.{constants.SIZE_MEMBER}"
            return expr.text
        return " ".join(info.node.tokenize())

    def _translate_binary_operator(self, info: NodeDescriptor) -> str:
        op = info.node.binary_operator
        if op is None:
            raise TranslationError(
                f"{info.kind.value} at {info.node.source_location} has no operator"
            )
        lhs = self._child(info.node, 0)
        rhs = self._child(info.node, 1)

        if op.is_logical():
            lhs = self.normalize_truthiness(lhs)
            rhs = self.normalize_truthiness(rhs)

        rhs_text = rhs.text
        if op == BinaryOperator.ASSIGN and not info.is_pointer:
            rhs_text = f"({info.cs_type}) ({rhs_text})"

        return f"{lhs.text} {op.spelling} {rhs_text}"

    def _translate_unary_operator(self, info: NodeDescriptor) -> str:
        op = info.node.unary_operator
        if op is None:
            raise TranslationError(
                f"{info.kind.value} at {info.node.source_location} has no operator"
            )
        operand = self._child(info.node, 0)

        if op == UnaryOperator.DEREF and operand.kind == NodeKind.UNARY_OPERATOR:
            # *ptr++
            advanced = self._child(operand.descriptor.node, 0)
            return f"{advanced.text}.{constants.GET_AND_MOVE_METHOD}()"

        text = operand.text
        if (
            op == UnaryOperator.DEREF
            and operand.descriptor.is_pointer
            and not operand.descriptor.is_record
        ):
            text = f"{text}.{constants.CURRENT_VALUE_MEMBER}"

        token = op.spelling
        if op in (UnaryOperator.ADDR_OF, UnaryOperator.DEREF):
            token = ""

        if op.is_prefix():
            return token + text
        return text + token

    def _translate_call(self, info: NodeDescriptor) -> str:
        callee = self._child(info.node, 0)
        args = [
            self._child(info.node, i).text for i in range(1, info.node.child_count)
        ]
        function_name = callee.text.replace("(", "").replace(")", "")
        return f"{function_name}({', '.join(args)})"

    def _translate_conditional(self, info: NodeDescriptor) -> str:
        condition = self._child(info.node, 0)
        then_expr = self._child(info.node, 1)
        else_expr = self._child(info.node, 2)

        condition_text = condition.text
        if condition.descriptor.is_primitive_numeric:
            condition_text = f"{condition_text} > 0"

        return f"{condition_text} ? {then_expr.text} : {else_expr.text}"

    def _translate_member_ref(self, info: NodeDescriptor) -> str:
        base = self._child(info.node, 0)
        return f"{base.text}.{info.spelling}"

    def _translate_array_subscript(self, info: NodeDescriptor) -> str:
        base = self._child(info.node, 0)
        index = self._child(info.node, 1)
        return f"{base.text}[{index.text}]"

    def _translate_init_list(self, info: NodeDescriptor) -> str:
        elements = [r.text for r in self._all_children(info.node)]
        return "{ " + ", ".join(elements) + " }"

    def _translate_paren(self, info: NodeDescriptor) -> str:
        inner = self._optional_child(info.node, 0)
        return f"({text_of(inner)})"

    def _translate_cstyle_cast(self, info: NodeDescriptor) -> str:
        operand = self._child(info.node, max(info.node.child_count - 1, 0))
        if not info.is_c_pointer or not operand.descriptor.is_primitive_numeric:
            return operand.text

        if info.is_record:
            return f"new {info.cs_type}({operand.text})"

        logger.debug(
            "%s: cast of '%s' to %s has no C# form, emitting null",
            self._context.function_name,
            operand.text,
            info.type,
        )
        return f"{constants.NULL_LITERAL} /*{operand.text}*/"

    # ── statements ───────────────────────────────────────────────

    def _translate_return(self, info: NodeDescriptor) -> str:
        child = self._optional_child(info.node, 0)
        ret = text_of(child)
        return_type = self._context.return_type

        if (
            ret
            and return_type != constants.VOID_TYPE_NAME
            and not is_pointer_wrapper_name(return_type)
        ):
            ret = f"({return_type})({ret})"

        return f"return {ret}" if ret else "return"

    def _translate_if(self, info: NodeDescriptor) -> str:
        condition = self.normalize_truthiness(self._child(info.node, 0))
        then_branch = self._child(info.node, 1)
        else_branch = self._optional_child(info.node, 2)

        if else_branch is None:
            return f"if ({condition.text}) {then_branch.text}"
        then_text = ensure_statement_finished(then_branch.text)
        return f"if ({condition.text}) {then_text} else {else_branch.text}"

    def _translate_for(self, info: NodeDescriptor) -> str:
        node = info.node
        size = node.child_count
        init = condition = step = None

        if size <= 1:
            body = self._child(node, 0)
        elif size == 2:
            init = self._child(node, 0)
            body = self._child(node, 1)
        elif size == 3:
            init = self._child(node, 0)
            step = self._child(node, 1)
            body = self._child(node, 2)
        else:
            init = self._child(node, 0)
            condition = self._child(node, 1)
            step = self._child(node, 2)
            body = self._child(node, 3)

        init_text = self._for_init_text(init)
        return (
            f"for ({init_text}; {text_of(condition)}; {text_of(step)}){body.text}"
        )

    def _for_init_text(self, init: Optional[TranslationResult]) -> str:
        """``int i = 0, j = 0`` rather than two declaration statements."""
        if init is None or init.kind != NodeKind.DECL_STMT:
            return text_of(init).rstrip(constants.STATEMENT_TERMINATOR)
        declarations = self._all_children(init.descriptor.node)
        if len(declarations) < 2:
            return text_of(init).rstrip(constants.STATEMENT_TERMINATOR)

        first = declarations[0]
        type_prefix = f"{first.descriptor.cs_type} "
        parts = [first.text]
        for declaration in declarations[1:]:
            text = declaration.text
            if declaration.descriptor.cs_type != first.descriptor.cs_type:
                logger.debug(
                    "%s: for initializer mixes %s and %s",
                    self._context.function_name,
                    first.descriptor.cs_type,
                    declaration.descriptor.cs_type,
                )
            elif text.startswith(type_prefix):
                text = text[len(type_prefix) :]
            parts.append(text)
        return ", ".join(parts)

    def _translate_while(self, info: NodeDescriptor) -> str:
        condition = self.normalize_truthiness(self._child(info.node, 0))
        body = self._child(info.node, 1)
        return f"while ({condition.text}) {body.text}"

    def _translate_do(self, info: NodeDescriptor) -> str:
        body = self._child(info.node, 0)
        condition = self.normalize_truthiness(self._child(info.node, 1))
        return f"do {ensure_statement_finished(body.text)} while ({condition.text})"

    def _translate_switch(self, info: NodeDescriptor) -> str:
        expr = self._child(info.node, 0)
        body = self._child(info.node, 1)
        return f"switch ({expr.text}){body.text}"

    def _translate_case(self, info: NodeDescriptor) -> str:
        label = self._child(info.node, 0)
        body = self._child(info.node, 1)
        return f"case {label.text}:{body.text}"

    def _translate_default(self, info: NodeDescriptor) -> str:
        body = self._optional_child(info.node, 0)
        return f"default:{text_of(body)}"

    def _translate_label(self, info: NodeDescriptor) -> str:
        parts = [f"{info.spelling}:;\n"]
        parts.extend(r.text for r in self._all_children(info.node))
        return "".join(parts)

    def _translate_goto(self, info: NodeDescriptor) -> str:
        label = self._child(info.node, 0)
        return f"goto {label.text}"

    def _translate_break(self, info: NodeDescriptor) -> str:
        return "break"

    def _translate_continue(self, info: NodeDescriptor) -> str:
        return "continue"

    # ── declarations and blocks ──────────────────────────────────

    def _translate_var_decl(self, info: NodeDescriptor) -> str:
        size = info.node.child_count
        rvalue = self._optional_child(info.node, size - 1) if size > 0 else None

        expr = f"{info.cs_type} {info.spelling}"
        if rvalue is not None and rvalue.text:
            if not info.is_pointer:
                expr += f" = ({info.cs_type})({rvalue.text})"
            else:
                expr += f" = {rvalue.text}"
        elif info.is_record:
            expr += f" = new {info.cs_type}()"

        return expr

    def _translate_decl_stmt(self, info: NodeDescriptor) -> str:
        return "".join(
            ensure_statement_finished(r.text) for r in self._all_children(info.node)
        )

    def _translate_compound(self, info: NodeDescriptor) -> str:
        statements = "".join(
            ensure_statement_finished(r.text) for r in self._all_children(info.node)
        )
        return "{\n" + statements + "}\n"

    # ── fallback ─────────────────────────────────────────────────

    def _translate_passthrough(self, info: NodeDescriptor) -> str:
        size = info.node.child_count
        if size == 0:
            return ""
        if info.kind not in PASSTHROUGH_KINDS:
            logger.debug("No rule for %s, passing through its last child", info.kind)
        return text_of(self._optional_child(info.node, size - 1))
