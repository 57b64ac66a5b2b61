"""Translation error taxonomy."""

from __future__ import annotations


class TranslationError(Exception):
    """A structural mismatch that aborts translation of one function."""

    def __init__(self, message: str, function_name: str = ""):
        super().__init__(message)
        self.function_name = function_name

    @property
    def reason(self) -> str:
        return self.args[0] if self.args else ""


class MissingChildError(TranslationError):
    """A child that a rule requires is absent from its parent."""

    def __init__(self, index: int, parent_kind: str, location: str = ""):
        where = f" at {location}" if location and location != "<unknown>" else ""
        super().__init__(
            f"{parent_kind}{where} doesn't have child #{index}",
        )
        self.index = index
        self.parent_kind = parent_kind


class UnsupportedSourceError(TranslationError):
    """The source text could not be turned into a translation unit."""
