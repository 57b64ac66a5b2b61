"""Tests for the type classifier and the C# type name mapper."""

from __future__ import annotations

import pytest

from transpiler.type_mapper import (
    classify,
    is_c_pointer,
    is_pointer,
    is_pointer_wrapper_name,
    is_primitive_numeric,
    is_ptr_to_const_char,
    is_record,
    map_type,
)
from transpiler.type_system import (
    INT_TYPE,
    SIZE_TYPE,
    VOID_TYPE,
    TypeKind,
    array_of,
    builtin,
    enum,
    function_type,
    pointer_to,
    record,
    typedef,
)


class TestPrimitiveMapping:
    @pytest.mark.parametrize(
        "kind, expected",
        [
            (TypeKind.BOOL, "bool"),
            (TypeKind.UCHAR, "byte"),
            (TypeKind.CHAR_S, "sbyte"),
            (TypeKind.SCHAR, "sbyte"),
            (TypeKind.USHORT, "ushort"),
            (TypeKind.SHORT, "short"),
            (TypeKind.INT, "int"),
            (TypeKind.UINT, "uint"),
            (TypeKind.LONG, "int"),
            (TypeKind.ULONG, "int"),
            (TypeKind.LONGLONG, "long"),
            (TypeKind.ULONGLONG, "ulong"),
            (TypeKind.FLOAT, "float"),
            (TypeKind.DOUBLE, "double"),
            (TypeKind.VOID, "void"),
        ],
    )
    def test_builtin_kinds(self, kind, expected):
        assert map_type(builtin(kind)) == expected

    def test_const_qualifier_is_dropped(self):
        assert map_type(builtin(TypeKind.INT, is_const=True)) == "int"

    def test_typedef_maps_through_its_target(self):
        stbi_uc = typedef("stbi_uc", builtin(TypeKind.UCHAR))
        assert map_type(stbi_uc) == "byte"

    def test_size_t_is_unsigned_64_bit(self):
        assert map_type(SIZE_TYPE) == "ulong"


class TestPointerMapping:
    def test_pointer_to_int_uses_wrapper(self):
        assert map_type(pointer_to(INT_TYPE)) == "Pointer<int>"

    def test_pointer_to_pointer_nests_wrapper(self):
        uchar_pp = pointer_to(pointer_to(builtin(TypeKind.UCHAR)))
        assert map_type(uchar_pp) == "Pointer<Pointer<byte>>"

    def test_pointer_to_typedef_desugars_pointee(self):
        stbi_uc = typedef("stbi_uc", builtin(TypeKind.UCHAR))
        assert map_type(pointer_to(stbi_uc)) == "Pointer<byte>"

    def test_pointer_to_record_is_the_record_name(self):
        assert map_type(pointer_to(record("foo"))) == "foo"

    def test_pointer_to_const_record_drops_const(self):
        assert map_type(pointer_to(record("foo", is_const=True))) == "foo"

    def test_void_pointer_is_object(self):
        assert map_type(pointer_to(VOID_TYPE)) == "object"

    def test_function_pointer_is_intptr(self):
        callback = pointer_to(function_type(INT_TYPE, [INT_TYPE]))
        assert map_type(callback) == "IntPtr"

    def test_constant_array_maps_like_pointer(self):
        assert map_type(array_of(INT_TYPE, 4)) == "Pointer<int>"

    def test_incomplete_array_uses_array_syntax(self):
        assert map_type(array_of(INT_TYPE)) == "int[]"

    def test_pointer_to_const_char_keeps_wrapper(self):
        const_char_p = pointer_to(builtin(TypeKind.CHAR_S, is_const=True))
        assert map_type(const_char_p) == "Pointer<sbyte>"


class TestRecordAndEnumMapping:
    def test_record_is_its_name(self):
        assert map_type(record("stbi__context")) == "stbi__context"

    def test_typedef_of_record_is_record_name(self):
        alias = typedef("ctx_t", record("stbi__context"))
        assert map_type(alias) == "stbi__context"

    def test_enum_is_its_name(self):
        assert map_type(enum("color")) == "color"


class TestClassifier:
    def test_void_pointer_is_c_pointer_but_not_pointer(self):
        void_p = pointer_to(VOID_TYPE)
        assert is_c_pointer(void_p)
        assert not is_pointer(void_p)

    def test_constant_array_is_pointer(self):
        assert is_pointer(array_of(INT_TYPE, 8))

    def test_incomplete_array_is_not_c_pointer(self):
        assert not is_c_pointer(array_of(INT_TYPE))

    def test_record_pointer_is_record(self):
        assert is_record(pointer_to(record("foo")))

    def test_array_of_records_is_record(self):
        assert is_record(array_of(record("foo"), 3))

    def test_int_pointer_is_not_record(self):
        assert not is_record(pointer_to(INT_TYPE))

    def test_typedef_of_integer_is_primitive_numeric(self):
        assert is_primitive_numeric(SIZE_TYPE)

    def test_pointer_is_not_primitive_numeric(self):
        assert not is_primitive_numeric(pointer_to(INT_TYPE))

    def test_pointer_to_const_char(self):
        assert is_ptr_to_const_char(pointer_to(builtin(TypeKind.CHAR_S, is_const=True)))
        assert not is_ptr_to_const_char(pointer_to(builtin(TypeKind.CHAR_S)))

    def test_classify_collects_all_flags(self):
        info = classify(builtin(TypeKind.DOUBLE, is_const=True))
        assert info.is_primitive_numeric
        assert info.is_const
        assert not info.is_pointer
        assert not info.is_record


class TestPointerWrapperName:
    def test_wrapper_names(self):
        assert is_pointer_wrapper_name("Pointer<int>")
        assert not is_pointer_wrapper_name("int")
