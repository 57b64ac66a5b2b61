"""FunctionEmitter — one C function definition -> one C# method."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .config import TranspileConfig
from .engine import ExpressionEngine, FunctionContext, ensure_statement_finished
from .syntax import NodeKind, SyntaxNode
from .type_mapper import map_type
from .type_system import INVALID_TYPE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmittedFunction:
    name: str
    signature: str
    body: str

    @property
    def text(self) -> str:
        return self.signature + self.body


class FunctionEmitter:
    """Emits the signature and body of a function declaration.

    Each call to :meth:`emit` builds its own :class:`FunctionContext` and
    :class:`ExpressionEngine`, so one emitter can serve any number of
    functions without carrying state between them.
    """

    def __init__(self, config: Optional[TranspileConfig] = None):
        self._config = config or TranspileConfig()

    def should_skip(self, function_decl: SyntaxNode) -> bool:
        if function_decl.spelling in self._config.skip_functions:
            logger.debug("Skipping %s: in skip set", function_decl.spelling)
            return True
        if function_decl.find_child(NodeKind.COMPOUND_STMT) is None:
            logger.debug("Skipping %s: no body", function_decl.spelling)
            return True
        return False

    def emit(self, function_decl: SyntaxNode) -> Optional[EmittedFunction]:
        if function_decl.kind != NodeKind.FUNCTION_DECL:
            raise ValueError(f"Expected a function declaration, got {function_decl.kind}")
        if self.should_skip(function_decl):
            return None

        result_type = function_decl.type.result or INVALID_TYPE
        context = FunctionContext(
            function_name=function_decl.spelling,
            return_type=map_type(result_type),
            parameter_renames=self._parameter_renames(function_decl),
        )
        engine = ExpressionEngine(context)

        signature = self._signature(function_decl, context)
        body = self._body(function_decl, engine)
        return EmittedFunction(
            name=function_decl.spelling, signature=signature, body=body
        )

    def fix_parameter_name(self, name: str) -> str:
        return self._config.reserved_parameter_names.get(name, name)

    def _parameter_renames(self, function_decl: SyntaxNode) -> dict[str, str]:
        renames: dict[str, str] = {}
        for p in function_decl.children:
            if p.kind != NodeKind.PARM_DECL:
                continue
            fixed = self.fix_parameter_name(p.spelling)
            if fixed != p.spelling:
                renames[p.spelling] = fixed
        return renames

    def _signature(self, function_decl: SyntaxNode, context: FunctionContext) -> str:
        params = [
            f"{map_type(p.type)} {self.fix_parameter_name(p.spelling)}"
            for p in function_decl.children
            if p.kind == NodeKind.PARM_DECL
        ]
        return (
            f"{self._config.access_modifier} "
            f"{context.return_type} {function_decl.spelling}({', '.join(params)})\n"
            "{\n"
        )

    def _body(self, function_decl: SyntaxNode, engine: ExpressionEngine) -> str:
        body_node = function_decl.find_child(NodeKind.COMPOUND_STMT)
        lines: list[str] = []
        for statement in body_node.children:
            result = engine.translate(statement)
            if result.text:
                lines.append(
                    f"{self._config.indent}{ensure_statement_finished(result.text)}\n"
                )
        lines.append("}\n")
        return "".join(lines)
