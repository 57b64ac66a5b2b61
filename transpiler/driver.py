"""TranslationUnitDriver — walks a translation unit and emits its functions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .config import TranspileConfig
from .emitter import EmittedFunction, FunctionEmitter
from .errors import TranslationError
from .syntax import NodeKind, SyntaxNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranslationFailure:
    """A function whose translation was abandoned."""

    function_name: str
    reason: str
    location: str = ""


@dataclass
class TranslationOutput:
    """Emitted functions and failures of one translation unit, in source order."""

    functions: list[EmittedFunction] = field(default_factory=list)
    failures: list[TranslationFailure] = field(default_factory=list)
    class_name: str = ""

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def function_names(self) -> list[str]:
        return [f.name for f in self.functions]

    @property
    def text(self) -> str:
        body = "".join(f"{f.text}\n" for f in self.functions)
        if not self.class_name:
            return body
        return f"partial class {self.class_name}\n{{\n{body}}}\n"


class TranslationUnitDriver:
    """Emits every eligible function definition of a translation unit.

    Declarations from system headers, prototypes without a body and names
    in the skip set are left out. A function that fails to translate is
    recorded and the walk continues with the next one.
    """

    def __init__(self, config: Optional[TranspileConfig] = None):
        self._config = config or TranspileConfig()
        self._emitter = FunctionEmitter(self._config)

    def run(self, unit: SyntaxNode, function_name: str = "") -> TranslationOutput:
        if unit.kind != NodeKind.TRANSLATION_UNIT:
            raise ValueError(f"Expected a translation unit, got {unit.kind}")

        output = TranslationOutput(class_name=self._config.class_name)
        emitted: set[str] = set()
        for decl in self._eligible(unit, function_name):
            if decl.spelling in emitted:
                logger.warning(
                    "Duplicate definition of %s at %s ignored",
                    decl.spelling,
                    decl.source_location,
                )
                continue
            emitted.add(decl.spelling)

            logger.info("Processing function %s", decl.spelling)
            try:
                result = self._emitter.emit(decl)
            except TranslationError as exc:
                logger.error("%s: %s", decl.spelling, exc.reason)
                output.failures.append(
                    TranslationFailure(
                        function_name=decl.spelling,
                        reason=exc.reason,
                        location=str(decl.source_location),
                    )
                )
                continue
            if result is not None:
                output.functions.append(result)
        return output

    def _eligible(self, unit: SyntaxNode, function_name: str) -> list[SyntaxNode]:
        return [
            decl
            for decl in unit.children
            if decl.kind == NodeKind.FUNCTION_DECL
            and not decl.in_system_header
            and (not function_name or decl.spelling == function_name)
            and not self._emitter.should_skip(decl)
        ]
