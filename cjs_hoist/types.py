"""
Core types for the cjs-hoist rewrite engine.

This module provides shared dataclasses and aliases used across the buffer,
the parser adapter, the transformers and the runner.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


# Type aliases for clarity
SourceMap = Dict[str, Any]

# A parse function takes source text and returns a tree-sitter Tree
# (or its root Node) with byte offsets on every node.
ParseFunction = Callable[[str], Any]


@dataclass(frozen=True)
class Edit:
    """A single overwrite recorded by the source buffer."""
    start_byte: int
    end_byte: int
    replacement: str

    def overlaps(self, start_byte: int, end_byte: int) -> bool:
        """Check whether [start_byte, end_byte) intersects this edit's range."""
        return start_byte < self.end_byte and self.start_byte < end_byte


@dataclass(frozen=True)
class TransformResult:
    """Result of a single transform call.

    Attributes:
        code: Rewritten text, or the original string object when untouched
        map: Version 3 source map, or None when not requested or untouched
        is_touched: True iff at least one exports/module/require rewrite happened
    """
    code: str
    map: Optional[SourceMap] = None
    is_touched: bool = False
