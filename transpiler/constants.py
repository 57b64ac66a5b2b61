"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

# Functions with hand-maintained C# substitutes downstream.
DEFAULT_SKIP_FUNCTIONS: frozenset[str] = frozenset(
    {
        "stbi__malloc",
        "stbi_image_free",
        "stbi_failure_reason",
        "stbi__err",
        "stbi_is_hdr_from_memory",
        "stbi_is_hdr_from_callbacks",
    }
)

# C parameter names that are C# keywords.
RESERVED_PARAMETER_NAMES: dict[str, str] = {
    "out": "output",
    "ref": "reference",
    "in": "input",
    "params": "parameters",
    "object": "obj",
    "string": "str",
    "base": "baseValue",
    "checked": "isChecked",
    "fixed": "fixedValue",
    "lock": "lockValue",
    "event": "evt",
    "operator": "op",
}

ACCESS_MODIFIER = "private static"
DEFAULT_INDENT = ""

# Target-language type names
POINTER_WRAPPER = "Pointer"
POINTER_WRAPPER_TEMPLATE = "Pointer<{element}>"
ADDRESS_TYPE = "IntPtr"
OBJECT_TYPE = "object"
VOID_TYPE_NAME = "void"

# Target-language member names on the pointer wrapper
CURRENT_VALUE_MEMBER = "CurrentValue"
GET_AND_MOVE_METHOD = "GetAndMove"
SIZE_MEMBER = "Size"

NULL_LITERAL = "null"
STATEMENT_TERMINATOR = ";"
BLOCK_TERMINATOR = "}"

WIDE_STRING_PREFIX = "L"

LANGUAGE_C = "c"
