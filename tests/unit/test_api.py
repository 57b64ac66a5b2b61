"""Tests for the composable API functions in transpiler.api."""

from __future__ import annotations

import pytest

from transpiler.api import dump_syntax, parse_source, transpile_function, transpile_source
from transpiler.config import TranspileConfig
from transpiler.driver import TranslationOutput
from transpiler.syntax import NodeKind

ADD_SOURCE = "int add(int a, int b) { return a + b; }\n"

IMAGE_SOURCE = """\
typedef unsigned char stbi_uc;
typedef struct { int w, h; stbi_uc *buffer; } stbi__context;

void *stbi__malloc(unsigned long size) { return 0; }

static int stbi__get_width(stbi__context *s);

static void stbi__clear(int *p)
{
   if (p) { *p = 0; }
}

static int stbi__sum(int *v, int n)
{
   int s = 0;
   for (int i = 0; i < n; i++) { s += v[i]; }
   return s;
}

static int stbi__get_width(stbi__context *s)
{
   return s->w;
}
"""


class TestTranspileFunction:
    def test_add_end_to_end(self):
        assert transpile_function(ADD_SOURCE, "add") == (
            "private static int add(int a, int b)\n{\nreturn (int)(a + b);\n}\n"
        )

    def test_pointer_condition_and_dereference(self):
        text = transpile_function(IMAGE_SOURCE, "stbi__clear")
        assert text == (
            "private static void stbi__clear(Pointer<int> p)\n"
            "{\n"
            "if ((p) != null) {\np.CurrentValue = (int) (0);}\n\n"
            "}\n"
        )

    def test_for_loop_with_declaration(self):
        text = transpile_function(IMAGE_SOURCE, "stbi__sum")
        assert text == (
            "private static int stbi__sum(Pointer<int> v, int n)\n"
            "{\n"
            "int s = (int)(0);\n"
            "for (int i = (int)(0); i < n; i++){\ns += v[i];}\n\n"
            "return (int)(s);\n"
            "}\n"
        )

    def test_record_pointer_parameter_is_the_record(self):
        text = transpile_function(IMAGE_SOURCE, "stbi__get_width")
        assert text.startswith("private static int stbi__get_width(stbi__context s)\n")
        assert "return (int)(s.w);\n" in text

    def test_switch_layout(self):
        source = """
        int pick(int x, int a, int b) {
            switch (x) {
            case 1:
                a = 1;
                b = 2;
                break;
            case 2:
            case 3:
                return 0;
            default:
                break;
            }
            return a;
        }
        """
        text = transpile_function(source, "pick")
        assert (
            "switch (x){\ncase 1:a = (int) (1);b = (int) (2);break;"
            "case 2:case 3:return (int)(0);default:break;}\n"
        ) in text

    def test_sizeof_variable_and_record_local(self):
        source = """
        typedef struct { int w; } ctx;
        int f(void) { ctx c; int buf[8]; return sizeof(buf); }
        """
        text = transpile_function(source, "f")
        assert "ctx c = new ctx();\n" in text
        assert "Pointer<int> buf;\n" in text
        assert "return (int)((buf).Size);\n" in text

    def test_while_and_logical_operators(self):
        source = "int f(int n, int *p) { while (n && p) { n--; } return n; }"
        text = transpile_function(source, "f")
        assert "while ((n) != 0 && (p) != null) {\nn--;}\n" in text

    def test_ternary(self):
        text = transpile_function("int f(int x) { return x ? 1 : 2; }", "f")
        assert "return (int)(x > 0 ? 1 : 2);\n" in text

    def test_unknown_function(self):
        with pytest.raises(ValueError):
            transpile_function(ADD_SOURCE, "missing")

    def test_empty_name(self):
        with pytest.raises(ValueError):
            transpile_function(ADD_SOURCE, "")


class TestTranspileSource:
    def test_returns_translation_output(self):
        assert isinstance(transpile_source(ADD_SOURCE), TranslationOutput)

    def test_skips_prototypes_and_skip_set(self):
        output = transpile_source(IMAGE_SOURCE)
        assert output.function_names == ["stbi__clear", "stbi__sum", "stbi__get_width"]
        assert output.ok

    def test_default_skips_can_be_disabled(self):
        output = transpile_source(IMAGE_SOURCE, TranspileConfig(skip_functions=frozenset()))
        assert output.function_names[0] == "stbi__malloc"

    def test_void_pointer_return_type_is_object(self):
        output = transpile_source(IMAGE_SOURCE, TranspileConfig(skip_functions=frozenset()))
        assert output.functions[0].signature.startswith(
            "private static object stbi__malloc(int size)"
        )

    def test_function_name_filter(self):
        output = transpile_source(IMAGE_SOURCE, function_name="stbi__sum")
        assert output.function_names == ["stbi__sum"]

    def test_class_wrapper(self):
        output = transpile_source(ADD_SOURCE, TranspileConfig(class_name="Calc"))
        assert output.text.startswith("partial class Calc\n{\nprivate static int add(")
        assert output.text.endswith("}\n\n}\n")

    def test_system_header_functions_are_left_out(self):
        source = (
            '# 1 "/usr/include/helpers.h" 1 3 4\n'
            "static int helper(int x) { return x; }\n"
            '# 2 "image.c" 2\n'
            + ADD_SOURCE
        )
        assert transpile_source(source).function_names == ["add"]


class TestParseAndDump:
    def test_parse_source_returns_unit(self):
        unit = parse_source(ADD_SOURCE)
        assert unit.kind == NodeKind.TRANSLATION_UNIT

    def test_dump_syntax(self):
        dump = dump_syntax(ADD_SOURCE)
        assert "FunctionDecl 'add'" in dump
        assert "ReturnStmt" in dump
        assert "BinaryOperator <+> : int" in dump


class TestReservedParameterNames:
    def test_body_uses_renamed_parameters(self):
        text = transpile_function("void f(int *out, int ref) { *out = ref; }", "f")
        assert text == (
            "private static void f(Pointer<int> output, int reference)\n"
            "{\n"
            "output.CurrentValue = (int) (reference);\n"
            "}\n"
        )


class TestForInitializers:
    def test_two_declarations_share_one_type(self):
        source = "int f(int n) { int s = 0; for (int i = 0, j = n; i < j; i++) { s++; } return s; }"
        text = transpile_function(source, "f")
        assert "for (int i = (int)(0), j = (int)(n); i < j; i++){\ns++;}\n" in text


class TestOldStyleDefinitions:
    def test_parameters_keep_their_declared_types(self):
        source = "int f(a, b)\nint a;\nint b;\n{ return a + b; }\n"
        assert transpile_function(source, "f").startswith(
            "private static int f(int a, int b)\n"
        )
