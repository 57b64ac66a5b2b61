"""Transpiler configuration (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass, field

from . import constants


@dataclass(frozen=True)
class TranspileConfig:
    """Groups the knobs of one transpilation run."""

    skip_functions: frozenset[str] = constants.DEFAULT_SKIP_FUNCTIONS
    reserved_parameter_names: dict[str, str] = field(
        default_factory=lambda: dict(constants.RESERVED_PARAMETER_NAMES)
    )
    indent: str = constants.DEFAULT_INDENT
    access_modifier: str = constants.ACCESS_MODIFIER
    class_name: str = ""

    def with_extra_skips(self, names: list[str]) -> TranspileConfig:
        return TranspileConfig(
            skip_functions=self.skip_functions | frozenset(names),
            reserved_parameter_names=self.reserved_parameter_names,
            indent=self.indent,
            access_modifier=self.access_modifier,
            class_name=self.class_name,
        )
