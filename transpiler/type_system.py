"""C type descriptors — the borrowed type model the classifier inspects."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class TypeKind(str, Enum):
    INVALID = "Invalid"
    UNEXPOSED = "Unexposed"
    VOID = "Void"
    BOOL = "Bool"
    CHAR_U = "Char_U"
    UCHAR = "UChar"
    USHORT = "UShort"
    UINT = "UInt"
    ULONG = "ULong"
    ULONGLONG = "ULongLong"
    CHAR_S = "Char_S"
    SCHAR = "SChar"
    SHORT = "Short"
    INT = "Int"
    LONG = "Long"
    LONGLONG = "LongLong"
    FLOAT = "Float"
    DOUBLE = "Double"
    LONGDOUBLE = "LongDouble"
    NULLPTR = "NullPtr"
    POINTER = "Pointer"
    RECORD = "Record"
    ENUM = "Enum"
    TYPEDEF = "Typedef"
    FUNCTION_NO_PROTO = "FunctionNoProto"
    FUNCTION_PROTO = "FunctionProto"
    CONSTANT_ARRAY = "ConstantArray"
    INCOMPLETE_ARRAY = "IncompleteArray"


INTEGER_KINDS: frozenset[TypeKind] = frozenset(
    {
        TypeKind.BOOL,
        TypeKind.CHAR_U,
        TypeKind.UCHAR,
        TypeKind.USHORT,
        TypeKind.UINT,
        TypeKind.ULONG,
        TypeKind.ULONGLONG,
        TypeKind.CHAR_S,
        TypeKind.SCHAR,
        TypeKind.SHORT,
        TypeKind.INT,
        TypeKind.LONG,
        TypeKind.LONGLONG,
    }
)

FLOATING_KINDS: frozenset[TypeKind] = frozenset(
    {TypeKind.FLOAT, TypeKind.DOUBLE, TypeKind.LONGDOUBLE}
)

UNSIGNED_KINDS: frozenset[TypeKind] = frozenset(
    {
        TypeKind.BOOL,
        TypeKind.CHAR_U,
        TypeKind.UCHAR,
        TypeKind.USHORT,
        TypeKind.UINT,
        TypeKind.ULONG,
        TypeKind.ULONGLONG,
    }
)

FUNCTION_KINDS: frozenset[TypeKind] = frozenset(
    {TypeKind.FUNCTION_PROTO, TypeKind.FUNCTION_NO_PROTO}
)

# C spellings of the builtin kinds (LLP64 data model: long is 32 bits).
BUILTIN_SPELLINGS: dict[TypeKind, str] = {
    TypeKind.VOID: "void",
    TypeKind.BOOL: "_Bool",
    TypeKind.CHAR_U: "char",
    TypeKind.UCHAR: "unsigned char",
    TypeKind.USHORT: "unsigned short",
    TypeKind.UINT: "unsigned int",
    TypeKind.ULONG: "unsigned long",
    TypeKind.ULONGLONG: "unsigned long long",
    TypeKind.CHAR_S: "char",
    TypeKind.SCHAR: "signed char",
    TypeKind.SHORT: "short",
    TypeKind.INT: "int",
    TypeKind.LONG: "long",
    TypeKind.LONGLONG: "long long",
    TypeKind.FLOAT: "float",
    TypeKind.DOUBLE: "double",
    TypeKind.LONGDOUBLE: "long double",
    TypeKind.NULLPTR: "nullptr_t",
}


class CType(BaseModel):
    """A C type: a kind tag plus the accessors the classifier needs."""

    kind: TypeKind
    spelling: str = ""
    is_const: bool = False
    pointee: Optional[CType] = None
    element: Optional[CType] = None
    array_size: Optional[int] = None
    canonical: Optional[CType] = None
    result: Optional[CType] = None
    params: list[CType] = []

    def canonical_type(self) -> CType:
        """The type with every typedef stripped, as libclang's canonical type."""
        if self.canonical is not None:
            return self.canonical
        return canonicalize(self)

    def pointee_type(self) -> CType:
        if self.kind == TypeKind.POINTER and self.pointee is not None:
            return self.pointee
        return INVALID_TYPE

    def array_element_type(self) -> CType:
        if self.element is not None:
            return self.element
        return INVALID_TYPE

    def with_const(self, is_const: bool = True) -> CType:
        if self.is_const == is_const:
            return self
        spelling = self.spelling
        if is_const and not spelling.startswith("const "):
            spelling = f"const {spelling}"
        elif not is_const:
            spelling = spelling.replace("const ", "")
        canonical = self.canonical.with_const(is_const) if self.canonical else None
        return self.model_copy(
            update={"is_const": is_const, "spelling": spelling, "canonical": canonical}
        )

    def __str__(self) -> str:
        return self.spelling or self.kind.value


def builtin(kind: TypeKind, is_const: bool = False) -> CType:
    spelling = BUILTIN_SPELLINGS.get(kind, kind.value)
    if is_const:
        spelling = f"const {spelling}"
    return CType(kind=kind, spelling=spelling, is_const=is_const)


def pointer_to(pointee: CType, is_const: bool = False) -> CType:
    spelling = _pointer_spelling(pointee.spelling)
    if is_const:
        spelling = f"{spelling} const"
    return CType(
        kind=TypeKind.POINTER, spelling=spelling, pointee=pointee, is_const=is_const
    )


def _pointer_spelling(pointee_spelling: str) -> str:
    if pointee_spelling.endswith("*"):
        return f"{pointee_spelling}*"
    return f"{pointee_spelling} *"


def array_of(element: CType, size: Optional[int] = None) -> CType:
    if size is None:
        return CType(
            kind=TypeKind.INCOMPLETE_ARRAY,
            spelling=f"{element.spelling} []",
            element=element,
        )
    return CType(
        kind=TypeKind.CONSTANT_ARRAY,
        spelling=f"{element.spelling} [{size}]",
        element=element,
        array_size=size,
    )


def record(name: str, is_const: bool = False) -> CType:
    return CType(
        kind=TypeKind.RECORD,
        spelling=f"const {name}" if is_const else name,
        is_const=is_const,
    )


def enum(name: str) -> CType:
    return CType(kind=TypeKind.ENUM, spelling=name)


def typedef(name: str, target: CType, is_const: bool = False) -> CType:
    canonical = canonicalize(target)
    if is_const:
        canonical = canonical.with_const(True)
    return CType(
        kind=TypeKind.TYPEDEF,
        spelling=f"const {name}" if is_const else name,
        is_const=is_const,
        canonical=canonical,
    )


def function_type(
    result: CType, params: list[CType], has_prototype: bool = True
) -> CType:
    param_spelling = ", ".join(p.spelling for p in params)
    if has_prototype and not params:
        param_spelling = "void"
    return CType(
        kind=TypeKind.FUNCTION_PROTO if has_prototype else TypeKind.FUNCTION_NO_PROTO,
        spelling=f"{result.spelling} ({param_spelling})",
        result=result,
        params=params,
    )


def canonicalize(ctype: CType) -> CType:
    """Strip typedefs at every level of *ctype*."""
    if ctype.kind in (TypeKind.TYPEDEF, TypeKind.UNEXPOSED) and ctype.canonical:
        return ctype.canonical
    if ctype.kind == TypeKind.POINTER and ctype.pointee is not None:
        inner = canonicalize(ctype.pointee)
        if inner is ctype.pointee:
            return ctype
        return pointer_to(inner, ctype.is_const)
    if ctype.element is not None:
        inner = canonicalize(ctype.element)
        if inner is ctype.element:
            return ctype
        return array_of(inner, ctype.array_size)
    return ctype


INVALID_TYPE = CType(kind=TypeKind.INVALID)
VOID_TYPE = builtin(TypeKind.VOID)
INT_TYPE = builtin(TypeKind.INT)
# size_t under the LLP64 model the primitive table assumes.
SIZE_TYPE = typedef("size_t", builtin(TypeKind.ULONGLONG))
