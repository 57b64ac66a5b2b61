"""Node Descriptor and Translation Result — the units threaded through the engine."""

from __future__ import annotations

from dataclasses import dataclass, replace

from . import type_mapper
from .syntax import NodeKind, SyntaxNode
from .type_system import CType


@dataclass(frozen=True)
class NodeDescriptor:
    """Read-only facts about one syntax node, computed once per visit."""

    node: SyntaxNode
    kind: NodeKind
    type: CType
    cs_type: str
    spelling: str
    is_pointer: bool
    is_record: bool
    is_primitive_numeric: bool
    is_c_pointer: bool


def describe(node: SyntaxNode) -> NodeDescriptor:
    classification = type_mapper.classify(node.type)
    return NodeDescriptor(
        node=node,
        kind=node.kind,
        type=node.type,
        cs_type=type_mapper.map_type(node.type),
        spelling=node.spelling,
        is_pointer=classification.is_pointer,
        is_record=classification.is_record,
        is_primitive_numeric=classification.is_primitive_numeric,
        is_c_pointer=type_mapper.is_c_pointer(node.type),
    )


@dataclass(frozen=True)
class TranslationResult:
    descriptor: NodeDescriptor
    text: str

    @property
    def kind(self) -> NodeKind:
        return self.descriptor.kind

    def with_text(self, text: str) -> TranslationResult:
        return replace(self, text=text)


def text_of(result: TranslationResult | None) -> str:
    """Text of an optional result; an absent child renders as nothing."""
    return result.text if result is not None else ""
