"""Type Classifier and Type Name Mapper — C types to C# type names.

Every rule desugars typedefs first. Pointers and arrays become the generic
``Pointer<T>`` wrapper except when they point at records: records are
reference types in C#, so ``struct foo *`` is just ``foo``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from . import constants
from .type_system import (
    FLOATING_KINDS,
    FUNCTION_KINDS,
    INTEGER_KINDS,
    CType,
    TypeKind,
)

logger = logging.getLogger(__name__)

_PLAIN_TYPE_NAMES: dict[TypeKind, str] = {
    TypeKind.BOOL: "bool",
    TypeKind.UCHAR: "byte",
    TypeKind.CHAR_U: "byte",
    TypeKind.SCHAR: "sbyte",
    TypeKind.CHAR_S: "sbyte",
    TypeKind.USHORT: "ushort",
    TypeKind.SHORT: "short",
    TypeKind.FLOAT: "float",
    TypeKind.DOUBLE: "double",
    TypeKind.INT: "int",
    TypeKind.UINT: "uint",
    TypeKind.POINTER: constants.ADDRESS_TYPE,
    TypeKind.NULLPTR: constants.ADDRESS_TYPE,
    TypeKind.LONG: "int",
    TypeKind.ULONG: "int",
    TypeKind.LONGLONG: "long",
    TypeKind.ULONGLONG: "ulong",
    TypeKind.VOID: constants.VOID_TYPE_NAME,
}


@dataclass(frozen=True)
class TypeClassification:
    is_pointer: bool
    is_record: bool
    is_primitive_numeric: bool
    is_const: bool


def desugar(ctype: CType) -> CType:
    if ctype.kind == TypeKind.TYPEDEF:
        return ctype.canonical_type()
    return ctype


# ── classifier ───────────────────────────────────────────────────


def is_primitive_numeric_kind(kind: TypeKind) -> bool:
    return kind in INTEGER_KINDS or kind in FLOATING_KINDS


def is_primitive_numeric(ctype: CType) -> bool:
    return is_primitive_numeric_kind(desugar(ctype).kind)


def is_pointer_kind(kind: TypeKind) -> bool:
    return kind in (TypeKind.POINTER, TypeKind.CONSTANT_ARRAY)


def is_c_pointer(ctype: CType) -> bool:
    """Pointer or constant array, whatever it points at."""
    return is_pointer_kind(desugar(ctype).kind)


def is_pointer(ctype: CType) -> bool:
    """Pointer or constant array that does not point at ``void``."""
    ctype = desugar(ctype)
    if not is_pointer_kind(ctype.kind):
        return False
    return desugar(ctype.pointee_type()).kind != TypeKind.VOID


def is_record(ctype: CType) -> bool:
    ctype = desugar(ctype)
    if ctype.kind == TypeKind.RECORD:
        return True
    if ctype.kind in (TypeKind.INCOMPLETE_ARRAY, TypeKind.CONSTANT_ARRAY):
        return is_record(ctype.array_element_type())
    if ctype.kind == TypeKind.POINTER:
        return is_record(ctype.pointee_type())
    return False


def is_const(ctype: CType) -> bool:
    return ctype.is_const


def is_ptr_to_const_char(ctype: CType) -> bool:
    pointee = desugar(ctype).pointee_type()
    return pointee.is_const and desugar(pointee).kind == TypeKind.CHAR_S


def classify(ctype: CType) -> TypeClassification:
    return TypeClassification(
        is_pointer=is_pointer(ctype),
        is_record=is_record(ctype),
        is_primitive_numeric=is_primitive_numeric(ctype),
        is_const=is_const(ctype),
    )


# ── mapper ───────────────────────────────────────────────────────


def to_plain_type_string(ctype: CType) -> str:
    """Map a builtin kind through the fixed primitive table."""
    name = _PLAIN_TYPE_NAMES.get(ctype.kind)
    if name is not None:
        return name
    canonical = ctype.canonical_type()
    if ctype.kind == TypeKind.UNEXPOSED:
        if canonical.kind == TypeKind.UNEXPOSED:
            return canonical.spelling
        return to_plain_type_string(canonical)
    logger.debug("No plain mapping for %s, using its spelling", ctype)
    return ctype.spelling


def _pointer_type_string(pointee: CType) -> str:
    pointee = desugar(pointee)
    if pointee.kind == TypeKind.VOID:
        return constants.OBJECT_TYPE
    if pointee.kind in FUNCTION_KINDS:
        return constants.ADDRESS_TYPE
    element = to_csharp_type_string(pointee)
    if pointee.kind == TypeKind.RECORD:
        return element
    return constants.POINTER_WRAPPER_TEMPLATE.format(element=element)


def to_csharp_type_string(ctype: CType) -> str:
    """Map any C type to the C# type name used in declarations and casts."""
    const_qualified = ctype.is_const
    ctype = desugar(ctype)
    prefix = ""

    if ctype.kind in (TypeKind.RECORD, TypeKind.ENUM):
        spelling = ctype.spelling
    elif ctype.kind == TypeKind.INCOMPLETE_ARRAY:
        prefix = to_csharp_type_string(ctype.array_element_type())
        spelling = "[]"
    elif ctype.kind == TypeKind.UNEXPOSED:
        canonical = ctype.canonical_type()
        if canonical.kind == TypeKind.FUNCTION_PROTO:
            spelling = constants.ADDRESS_TYPE
        else:
            spelling = canonical.spelling
    elif ctype.kind == TypeKind.CONSTANT_ARRAY:
        return _pointer_type_string(ctype.array_element_type())
    elif ctype.kind == TypeKind.POINTER:
        return _pointer_type_string(ctype.pointee_type())
    else:
        spelling = to_plain_type_string(ctype.canonical_type())

    if const_qualified:
        spelling = spelling.replace("const ", "")
    return prefix + spelling


def map_type(ctype: CType) -> str:
    return to_csharp_type_string(ctype)


def is_pointer_wrapper_name(type_name: str) -> bool:
    return type_name.startswith(constants.POINTER_WRAPPER)
