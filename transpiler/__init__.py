"""C to C# source translator package."""

from .api import (  # noqa: F401
    dump_syntax,
    parse_source,
    transpile_function,
    transpile_source,
)
from .config import TranspileConfig  # noqa: F401
