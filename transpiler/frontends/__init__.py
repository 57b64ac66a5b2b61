"""Tree-sitter syntax builders that produce typed syntax trees."""

from __future__ import annotations

import importlib

from ._base import BaseSyntaxBuilder

_BUILDER_CLASSES: dict[str, str] = {
    "c": "c.CSyntaxBuilder",
}


def get_syntax_builder(language: str) -> BaseSyntaxBuilder:
    """Instantiate the syntax builder for *language*.

    Raises ``ValueError`` if *language* has no registered builder.
    """
    spec = _BUILDER_CLASSES.get(language)
    if spec is None:
        raise ValueError(f"Unsupported source language: {language}")
    module_name, class_name = spec.split(".")
    mod = importlib.import_module(f".{module_name}", package=__package__)
    cls = getattr(mod, class_name)
    return cls()


__all__ = ["BaseSyntaxBuilder", "get_syntax_builder"]
