"""Tests for FunctionEmitter — function declarations -> C# methods."""

from __future__ import annotations

import pytest

from transpiler.config import TranspileConfig
from transpiler.emitter import FunctionEmitter
from transpiler.errors import MissingChildError
from transpiler.syntax import BinaryOperator, NodeKind, UnaryOperator
from transpiler.type_system import (
    INT_TYPE,
    VOID_TYPE,
    TypeKind,
    builtin,
    pointer_to,
    record,
)
from tests.unit.conftest import binop, block, function_decl, literal, node, ref, unop


def _add_function():
    body = block(node(NodeKind.RETURN_STMT, binop(BinaryOperator.ADD, ref("a"), ref("b"))))
    return function_decl("add", INT_TYPE, [("a", INT_TYPE), ("b", INT_TYPE)], body)


class TestSignature:
    def test_add_end_to_end(self):
        emitted = FunctionEmitter().emit(_add_function())
        assert emitted.text == (
            "private static int add(int a, int b)\n{\nreturn (int)(a + b);\n}\n"
        )

    def test_pointer_and_record_parameters(self):
        uchar_p = pointer_to(builtin(TypeKind.UCHAR))
        ctx_p = pointer_to(record("stbi__context"))
        decl = function_decl(
            "stbi__get8", VOID_TYPE, [("s", ctx_p), ("buffer", uchar_p)], block()
        )
        emitted = FunctionEmitter().emit(decl)
        assert emitted.signature == (
            "private static void stbi__get8(stbi__context s, Pointer<byte> buffer)\n{\n"
        )

    def test_reserved_parameter_names_are_renamed(self):
        out = pointer_to(INT_TYPE)
        body = block(
            binop(
                BinaryOperator.ASSIGN,
                unop(UnaryOperator.DEREF, ref("out", out), INT_TYPE),
                ref("in"),
            )
        )
        decl = function_decl("copy", VOID_TYPE, [("out", out), ("in", INT_TYPE)], body)
        emitted = FunctionEmitter().emit(decl)
        assert "(Pointer<int> output, int input)" in emitted.signature
        assert emitted.body == "output.CurrentValue = (int) (input);\n}\n"

    def test_access_modifier_is_configurable(self):
        config = TranspileConfig(access_modifier="public static")
        emitted = FunctionEmitter(config).emit(_add_function())
        assert emitted.signature.startswith("public static int add(")


class TestBody:
    def test_empty_statements_are_not_written(self):
        body = block(node(NodeKind.NULL_STMT), node(NodeKind.RETURN_STMT))
        decl = function_decl("noop", VOID_TYPE, [], body)
        assert FunctionEmitter().emit(decl).body == "return;\n}\n"

    def test_indent_prefixes_each_statement(self):
        body = block(
            binop(BinaryOperator.ASSIGN, ref("x"), literal(1)),
            node(NodeKind.RETURN_STMT, ref("x")),
        )
        decl = function_decl("one", INT_TYPE, [("x", INT_TYPE)], body)
        emitted = FunctionEmitter(TranspileConfig(indent="    ")).emit(decl)
        assert emitted.body == "    x = (int) (1);\n    return (int)(x);\n}\n"

    def test_return_cast_uses_the_function_return_type(self):
        body = block(node(NodeKind.RETURN_STMT, ref("x")))
        decl = function_decl(
            "narrow", builtin(TypeKind.UCHAR), [("x", INT_TYPE)], body
        )
        assert "return (byte)(x);\n" in FunctionEmitter().emit(decl).body

    def test_translation_failure_propagates(self):
        body = block(node(NodeKind.IF_STMT, ref("x")))
        decl = function_decl("broken", VOID_TYPE, [("x", INT_TYPE)], body)
        with pytest.raises(MissingChildError):
            FunctionEmitter().emit(decl)


class TestSkipping:
    def test_forward_declaration_is_skipped(self):
        decl = function_decl("later", INT_TYPE, [("x", INT_TYPE)])
        emitter = FunctionEmitter()
        assert emitter.should_skip(decl)
        assert emitter.emit(decl) is None

    def test_default_skip_set(self):
        decl = function_decl("stbi__malloc", pointer_to(VOID_TYPE), [], block())
        assert FunctionEmitter().emit(decl) is None

    def test_extra_skips(self):
        config = TranspileConfig().with_extra_skips(["add"])
        assert FunctionEmitter(config).emit(_add_function()) is None

    def test_empty_skip_set_emits_everything(self):
        config = TranspileConfig(skip_functions=frozenset())
        decl = function_decl("stbi__err", INT_TYPE, [], block())
        assert FunctionEmitter(config).emit(decl) is not None

    def test_rejects_non_function_nodes(self):
        with pytest.raises(ValueError):
            FunctionEmitter().emit(ref("x"))
