"""Tests for TranslationUnitDriver — per-function isolation and filtering."""

from __future__ import annotations

import logging

import pytest

from transpiler.config import TranspileConfig
from transpiler.driver import TranslationOutput, TranslationUnitDriver
from transpiler.emitter import EmittedFunction
from transpiler.syntax import NodeKind
from transpiler.type_system import INT_TYPE, VOID_TYPE
from tests.unit.conftest import block, function_decl, node, ref


def _unit(*decls):
    return node(NodeKind.TRANSLATION_UNIT, *decls)


def _returns(name: str):
    return function_decl(name, VOID_TYPE, [], block(node(NodeKind.RETURN_STMT)))


def _broken(name: str):
    body = block(node(NodeKind.IF_STMT, ref("x")))
    return function_decl(name, VOID_TYPE, [("x", INT_TYPE)], body)


class TestDriverRun:
    def test_emits_functions_in_source_order(self):
        output = TranslationUnitDriver().run(_unit(_returns("b"), _returns("a")))
        assert output.function_names == ["b", "a"]
        assert output.ok

    def test_rejects_non_unit(self):
        with pytest.raises(ValueError):
            TranslationUnitDriver().run(_returns("a"))

    def test_failure_is_isolated_to_its_function(self, caplog):
        caplog.set_level(logging.ERROR)
        output = TranslationUnitDriver().run(
            _unit(_returns("before"), _broken("broken"), _returns("after"))
        )
        assert output.function_names == ["before", "after"]
        assert not output.ok
        (failure,) = output.failures
        assert failure.function_name == "broken"
        assert "doesn't have child #1" in failure.reason
        assert "broken" in caplog.text

    def test_logs_each_processed_function(self, caplog):
        caplog.set_level(logging.INFO)
        TranslationUnitDriver().run(_unit(_returns("one")))
        assert "Processing function one" in caplog.text

    def test_system_header_functions_are_skipped(self):
        system = function_decl("sys", VOID_TYPE, [], block(), in_system_header=True)
        output = TranslationUnitDriver().run(_unit(system, _returns("user")))
        assert output.function_names == ["user"]

    def test_forward_declarations_are_skipped(self):
        prototype = function_decl("later", VOID_TYPE, [])
        output = TranslationUnitDriver().run(_unit(prototype, _returns("later")))
        assert output.function_names == ["later"]

    def test_skip_set_is_honoured(self):
        config = TranspileConfig().with_extra_skips(["hidden"])
        output = TranslationUnitDriver(config).run(
            _unit(_returns("hidden"), _returns("shown"))
        )
        assert output.function_names == ["shown"]

    def test_duplicate_definition_is_ignored(self, caplog):
        caplog.set_level(logging.WARNING)
        output = TranslationUnitDriver().run(_unit(_returns("twice"), _returns("twice")))
        assert output.function_names == ["twice"]
        assert "Duplicate definition of twice" in caplog.text

    def test_single_function_filter(self):
        output = TranslationUnitDriver().run(
            _unit(_returns("a"), _broken("b"), _returns("c")), function_name="c"
        )
        assert output.function_names == ["c"]
        assert output.ok


class TestTranslationOutput:
    def _output(self, class_name: str = "") -> TranslationOutput:
        return TranslationOutput(
            functions=[
                EmittedFunction(name="a", signature="A\n", body="}\n"),
                EmittedFunction(name="b", signature="B\n", body="}\n"),
            ],
            class_name=class_name,
        )

    def test_functions_are_blank_line_terminated(self):
        assert self._output().text == "A\n}\n\nB\n}\n\n"

    def test_class_wrapper(self):
        assert self._output("Image").text == (
            "partial class Image\n{\nA\n}\n\nB\n}\n\n}\n"
        )

    def test_empty_output(self):
        assert TranslationOutput().text == ""
