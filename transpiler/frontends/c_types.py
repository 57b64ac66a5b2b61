"""C declaration tables and type resolution over tree-sitter C nodes."""

from __future__ import annotations

import logging
from typing import Optional

from ..type_mapper import desugar
from ..type_system import (
    FLOATING_KINDS,
    FUNCTION_KINDS,
    INT_TYPE,
    INTEGER_KINDS,
    INVALID_TYPE,
    UNSIGNED_KINDS,
    CType,
    TypeKind,
    array_of,
    builtin,
    enum,
    function_type,
    pointer_to,
    record,
    typedef,
)

logger = logging.getLogger(__name__)

PRIMITIVE_SPECIFIERS: dict[str, TypeKind] = {
    "void": TypeKind.VOID,
    "char": TypeKind.CHAR_S,
    "short": TypeKind.SHORT,
    "int": TypeKind.INT,
    "long": TypeKind.LONG,
    "float": TypeKind.FLOAT,
    "double": TypeKind.DOUBLE,
    "bool": TypeKind.BOOL,
    "_Bool": TypeKind.BOOL,
    "signed": TypeKind.INT,
    "unsigned": TypeKind.UINT,
}

# Typedefs the C library headers would provide (LLP64).
BUILTIN_TYPEDEFS: dict[str, CType] = {
    "size_t": typedef("size_t", builtin(TypeKind.ULONGLONG)),
    "ssize_t": typedef("ssize_t", builtin(TypeKind.LONGLONG)),
    "ptrdiff_t": typedef("ptrdiff_t", builtin(TypeKind.LONGLONG)),
    "intptr_t": typedef("intptr_t", builtin(TypeKind.LONGLONG)),
    "uintptr_t": typedef("uintptr_t", builtin(TypeKind.ULONGLONG)),
    "int8_t": typedef("int8_t", builtin(TypeKind.SCHAR)),
    "uint8_t": typedef("uint8_t", builtin(TypeKind.UCHAR)),
    "int16_t": typedef("int16_t", builtin(TypeKind.SHORT)),
    "uint16_t": typedef("uint16_t", builtin(TypeKind.USHORT)),
    "int32_t": typedef("int32_t", builtin(TypeKind.INT)),
    "uint32_t": typedef("uint32_t", builtin(TypeKind.UINT)),
    "int64_t": typedef("int64_t", builtin(TypeKind.LONGLONG)),
    "uint64_t": typedef("uint64_t", builtin(TypeKind.ULONGLONG)),
}

_INTEGER_RANKS: dict[TypeKind, int] = {
    TypeKind.BOOL: 0,
    TypeKind.CHAR_S: 1,
    TypeKind.CHAR_U: 1,
    TypeKind.SCHAR: 1,
    TypeKind.UCHAR: 1,
    TypeKind.SHORT: 2,
    TypeKind.USHORT: 2,
    TypeKind.INT: 3,
    TypeKind.UINT: 3,
    TypeKind.LONG: 4,
    TypeKind.ULONG: 4,
    TypeKind.LONGLONG: 5,
    TypeKind.ULONGLONG: 5,
}

_UNSIGNED_OF: dict[TypeKind, TypeKind] = {
    TypeKind.INT: TypeKind.UINT,
    TypeKind.LONG: TypeKind.ULONG,
    TypeKind.LONGLONG: TypeKind.ULONGLONG,
}

_FLOATING_RANKS: dict[TypeKind, int] = {
    TypeKind.FLOAT: 0,
    TypeKind.DOUBLE: 1,
    TypeKind.LONGDOUBLE: 2,
}

DECLARATOR_TYPES: frozenset[str] = frozenset(
    {
        "pointer_declarator",
        "abstract_pointer_declarator",
        "array_declarator",
        "abstract_array_declarator",
        "function_declarator",
        "abstract_function_declarator",
        "parenthesized_declarator",
        "abstract_parenthesized_declarator",
        "init_declarator",
        "attributed_declarator",
    }
)


class DeclarationTable:
    """Typedefs, record layouts and lexically scoped names of one translation unit."""

    def __init__(self):
        self.typedefs: dict[str, CType] = dict(BUILTIN_TYPEDEFS)
        self.records: dict[str, dict[str, CType]] = {}
        self._scopes: list[dict[str, CType]] = [{}]
        self._anonymous_counter = 0

    # ── scopes ───────────────────────────────────────────────────

    def push_scope(self):
        self._scopes.append({})

    def pop_scope(self):
        if len(self._scopes) == 1:
            raise RuntimeError("Cannot pop the file scope")
        self._scopes.pop()

    def declare(self, name: str, ctype: CType):
        if name:
            self._scopes[-1][name] = ctype

    def lookup(self, name: str) -> Optional[CType]:
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        return None

    # ── records ──────────────────────────────────────────────────

    def anonymous_name(self, prefix: str) -> str:
        self._anonymous_counter += 1
        return f"__anon_{prefix}_{self._anonymous_counter}"

    def register_record(self, name: str, fields: dict[str, CType]):
        existing = self.records.setdefault(name, {})
        existing.update(fields)

    def alias_record(self, alias: str, name: str):
        self.records[alias] = self.records.setdefault(name, {})

    def field_type(self, base: CType, field_name: str) -> CType:
        base = desugar(base)
        if base.kind == TypeKind.POINTER:
            base = desugar(base.pointee_type())
        if base.kind != TypeKind.RECORD:
            return INVALID_TYPE
        fields = self.records.get(base.spelling.replace("const ", ""), {})
        return fields.get(field_name, INVALID_TYPE)


# ── type arithmetic ──────────────────────────────────────────────


def decay(ctype: CType) -> CType:
    """Array-to-pointer and function-to-pointer conversion."""
    canonical = desugar(ctype)
    if canonical.kind in (TypeKind.CONSTANT_ARRAY, TypeKind.INCOMPLETE_ARRAY):
        return pointer_to(canonical.array_element_type())
    if canonical.kind in FUNCTION_KINDS:
        return pointer_to(ctype)
    return ctype


def is_arithmetic(ctype: CType) -> bool:
    kind = desugar(ctype).kind
    return kind in INTEGER_KINDS or kind in FLOATING_KINDS or kind == TypeKind.ENUM


def is_pointer_like(ctype: CType) -> bool:
    return desugar(decay(ctype)).kind == TypeKind.POINTER


def promote(ctype: CType) -> CType:
    kind = desugar(ctype).kind
    if kind == TypeKind.ENUM:
        return INT_TYPE
    if kind in _INTEGER_RANKS and _INTEGER_RANKS[kind] < _INTEGER_RANKS[TypeKind.INT]:
        return INT_TYPE
    return ctype


def usual_arithmetic_conversion(lhs: CType, rhs: CType) -> CType:
    left = desugar(promote(lhs))
    right = desugar(promote(rhs))
    if left.kind in FLOATING_KINDS or right.kind in FLOATING_KINDS:
        candidates = [t for t in (left, right) if t.kind in FLOATING_KINDS]
        best = max(candidates, key=lambda t: _FLOATING_RANKS[t.kind])
        return builtin(best.kind)
    if left.kind not in _INTEGER_RANKS or right.kind not in _INTEGER_RANKS:
        return left if left.kind in _INTEGER_RANKS else right
    left_rank = _INTEGER_RANKS[left.kind]
    right_rank = _INTEGER_RANKS[right.kind]
    if left_rank != right_rank:
        return builtin(left.kind if left_rank > right_rank else right.kind)
    kind = left.kind
    if left.kind in UNSIGNED_KINDS or right.kind in UNSIGNED_KINDS:
        kind = _UNSIGNED_OF.get(kind, kind)
    return builtin(kind)


def pointee_of(ctype: CType) -> CType:
    canonical = desugar(decay(ctype))
    if canonical.kind == TypeKind.POINTER:
        return canonical.pointee_type()
    return INVALID_TYPE


def function_result_of(callee: CType) -> CType:
    canonical = desugar(callee)
    if canonical.kind == TypeKind.POINTER:
        canonical = desugar(canonical.pointee_type())
    if canonical.kind in FUNCTION_KINDS and canonical.result is not None:
        return canonical.result
    # Implicitly declared functions return int.
    return INT_TYPE


def literal_type(text: str) -> CType:
    """Type of a C number literal from its spelling and suffix."""
    lowered = text.lower()
    is_hex = lowered.startswith("0x")
    is_float = ("p" in lowered) if is_hex else ("." in lowered or "e" in lowered)
    if is_float:
        if lowered.endswith("f"):
            return builtin(TypeKind.FLOAT)
        if lowered.endswith("l"):
            return builtin(TypeKind.LONGDOUBLE)
        return builtin(TypeKind.DOUBLE)

    suffix = lowered.lstrip("0123456789abcdefx.")
    if is_hex:
        suffix = lowered[2:].lstrip("0123456789abcdef")
    unsigned = "u" in suffix
    longs = suffix.count("l")
    if longs >= 2:
        return builtin(TypeKind.ULONGLONG if unsigned else TypeKind.LONGLONG)
    if longs == 1:
        return builtin(TypeKind.ULONG if unsigned else TypeKind.LONG)
    return builtin(TypeKind.UINT if unsigned else TypeKind.INT)


def parse_integer(text: str) -> Optional[int]:
    cleaned = text.lower().rstrip("ul")
    try:
        if cleaned.startswith("0x"):
            return int(cleaned, 16)
        if len(cleaned) > 1 and cleaned.startswith("0"):
            return int(cleaned, 8)
        return int(cleaned)
    except ValueError:
        return None


# ── resolution from tree-sitter nodes ────────────────────────────


class CTypeResolver:
    """Turns tree-sitter type specifiers and declarators into :class:`CType`."""

    def __init__(self, table: DeclarationTable, source: bytes):
        self._table = table
        self._source = source

    def _text(self, node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    @staticmethod
    def _has_const(node) -> bool:
        return any(
            c.type == "type_qualifier" and c.text.decode("utf-8") == "const"
            for c in node.children
        )

    # ── specifiers ───────────────────────────────────────────────

    def resolve_base(self, decl_node, anonymous_name: str = "") -> CType:
        """Resolve the ``type`` field of a declaration-like node with its qualifiers."""
        type_node = decl_node.child_by_field_name("type")
        if type_node is None:
            return INT_TYPE
        base = self.resolve_specifier(type_node, anonymous_name)
        if self._has_const(decl_node):
            base = base.with_const(True)
        return base

    def resolve_specifier(self, node, anonymous_name: str = "") -> CType:
        ntype = node.type
        if ntype == "primitive_type":
            text = self._text(node)
            if text in PRIMITIVE_SPECIFIERS:
                return builtin(PRIMITIVE_SPECIFIERS[text])
            if text in self._table.typedefs:
                return self._table.typedefs[text]
            return CType(kind=TypeKind.UNEXPOSED, spelling=text)
        if ntype == "sized_type_specifier":
            return builtin(self._sized_kind(self._text(node).split()))
        if ntype == "type_identifier":
            name = self._text(node)
            if name in self._table.typedefs:
                return self._table.typedefs[name]
            logger.debug("Unknown type name '%s'", name)
            return CType(kind=TypeKind.UNEXPOSED, spelling=name)
        if ntype in ("struct_specifier", "union_specifier"):
            return self._resolve_record(node, anonymous_name)
        if ntype == "enum_specifier":
            return self._resolve_enum(node, anonymous_name)
        logger.debug("Unhandled type specifier %s", ntype)
        return CType(kind=TypeKind.UNEXPOSED, spelling=self._text(node))

    @staticmethod
    def _sized_kind(words: list[str]) -> TypeKind:
        unsigned = "unsigned" in words
        longs = words.count("long")
        if "char" in words:
            if unsigned:
                return TypeKind.UCHAR
            return TypeKind.SCHAR if "signed" in words else TypeKind.CHAR_S
        if "double" in words:
            return TypeKind.LONGDOUBLE if longs else TypeKind.DOUBLE
        if "short" in words:
            return TypeKind.USHORT if unsigned else TypeKind.SHORT
        if longs >= 2:
            return TypeKind.ULONGLONG if unsigned else TypeKind.LONGLONG
        if longs == 1:
            return TypeKind.ULONG if unsigned else TypeKind.LONG
        return TypeKind.UINT if unsigned else TypeKind.INT

    def _resolve_record(self, node, anonymous_name: str) -> CType:
        name_node = node.child_by_field_name("name")
        body_node = node.child_by_field_name("body")
        if name_node is not None:
            name = self._text(name_node)
        else:
            name = anonymous_name or self._table.anonymous_name("struct")

        if body_node is not None:
            fields: dict[str, CType] = {}
            for field in body_node.children:
                if field.type != "field_declaration":
                    continue
                base = self.resolve_base(field)
                for declarator in field.children_by_field_name("declarator"):
                    field_name, field_type = self.apply_declarator(base, declarator)
                    fields[field_name] = field_type
            self._table.register_record(name, fields)
        if anonymous_name and name != anonymous_name:
            self._table.alias_record(anonymous_name, name)
        return record(name)

    def _resolve_enum(self, node, anonymous_name: str) -> CType:
        name_node = node.child_by_field_name("name")
        body_node = node.child_by_field_name("body")
        name = (
            self._text(name_node)
            if name_node is not None
            else anonymous_name or self._table.anonymous_name("enum")
        )
        if body_node is not None:
            for enumerator in body_node.children:
                if enumerator.type != "enumerator":
                    continue
                constant = enumerator.child_by_field_name("name")
                if constant is not None:
                    self._table.declare(self._text(constant), INT_TYPE)
        return enum(name)

    # ── declarators ──────────────────────────────────────────────

    def apply_declarator(self, base: CType, node) -> tuple[str, CType]:
        """Wrap *base* in the pointer/array/function layers spelled by *node*.

        Returns the declared name (empty for abstract declarators) and type.
        """
        if node is None:
            return "", base
        ntype = node.type
        if ntype in ("identifier", "field_identifier", "type_identifier"):
            return self._text(node), base
        if ntype in ("pointer_declarator", "abstract_pointer_declarator"):
            wrapped = pointer_to(base, is_const=self._has_const(node))
            return self.apply_declarator(wrapped, node.child_by_field_name("declarator"))
        if ntype in ("array_declarator", "abstract_array_declarator"):
            size_node = node.child_by_field_name("size")
            size: Optional[int] = None
            if size_node is not None:
                size = parse_integer(self._text(size_node))
                if size is None:
                    size = 0
            wrapped = array_of(base, size)
            return self.apply_declarator(wrapped, node.child_by_field_name("declarator"))
        if ntype in ("function_declarator", "abstract_function_declarator"):
            params = [p for _, p, _ in self.resolve_parameters(node)]
            wrapped = function_type(base, params)
            return self.apply_declarator(wrapped, node.child_by_field_name("declarator"))
        if ntype == "init_declarator":
            return self.apply_declarator(base, node.child_by_field_name("declarator"))
        if ntype in (
            "parenthesized_declarator",
            "abstract_parenthesized_declarator",
            "attributed_declarator",
        ):
            inner = next((c for c in node.children if c.is_named), None)
            return self.apply_declarator(base, inner)
        logger.debug("Unhandled declarator %s", ntype)
        return self._text(node), base

    def resolve_parameters(
        self, function_declarator, old_style: Optional[dict[str, CType]] = None
    ) -> list[tuple[str, CType, object]]:
        """Names, adjusted types and nodes of a function declarator's parameters.

        A K&R identifier list takes its types from *old_style*; names it does
        not declare are ``int``.
        """
        params_node = function_declarator.child_by_field_name("parameters")
        if params_node is None:
            return []
        params: list[tuple[str, CType, object]] = []
        for child in params_node.children:
            if child.type == "identifier":
                name = self._text(child)
                ctype = (old_style or {}).get(name, INT_TYPE)
                params.append((name, decay(ctype), child))
                continue
            if child.type != "parameter_declaration":
                continue
            base = self.resolve_base(child)
            name, ctype = self.apply_declarator(
                base, child.child_by_field_name("declarator")
            )
            if not name and desugar(ctype).kind == TypeKind.VOID:
                continue
            params.append((name, decay(ctype), child))
        return params

    @staticmethod
    def find_function_declarator(node):
        """Find the function_declarator that names the declared function.

        ``int (*get(void))(int)`` nests two function declarators; the one
        whose own declarator is the identifier carries the parameters.
        """
        if node is None:
            return None
        for child in node.children:
            if child.type in DECLARATOR_TYPES:
                result = CTypeResolver.find_function_declarator(child)
                if result is not None:
                    return result
        if node.type == "function_declarator":
            return node
        return None
