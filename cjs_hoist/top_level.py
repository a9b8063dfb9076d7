"""
Tracking of the currently open top-level statement.

Generated declarations are anchored to whichever top-level statement is being
visited when the need for them is discovered, so they run in the same order
relative to the file's other side effects as the code they replace.
"""

from typing import Any, Optional, Set

# Direct children of the program that are not statements
NON_STATEMENT_TYPES = frozenset({"comment", "hash_bang_line"})


class TopLevelTracker:
    """Remembers the most recently entered direct child of the program."""

    def __init__(self):
        self._current = None
        self._top_level_ids: Set[int] = set()

    def enter(self, node: Any, parent: Optional[Any]) -> None:
        if parent is None or parent.type != "program" or node.type in NON_STATEMENT_TYPES:
            return
        self._top_level_ids.add(node.id)
        self._current = node

    def current(self) -> Optional[Any]:
        return self._current

    def is_top_level(self, node: Any) -> bool:
        return node.id in self._top_level_ids
