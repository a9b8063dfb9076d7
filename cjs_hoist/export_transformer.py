"""
Rewriting of the ambient ``exports`` and ``module`` names.

Free references are renamed to the private bindings ``_exports_`` and
``_module_``; after traversal the bindings are declared before the top-level
statement that first needed them, and a single re-synchronization write copies
the final value back to the real ``module.exports``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .javascript_adapter import node_text
from .scopes import ScopeAnalyzer
from .source_buffer import SourceBuffer
from .top_level import TopLevelTracker

logger = logging.getLogger(__name__)

EXPORTS_NAME = "exports"
MODULE_NAME = "module"
EXPORTS_BINDING = "_exports_"
MODULE_BINDING = "_module_"

SHORTHAND_TYPES = frozenset({"shorthand_property_identifier", "shorthand_property_identifier_pattern"})


@dataclass
class DeclarationState:
    """Whether a private binding is needed and where to declare it."""
    declared: bool = False
    position: Optional[int] = None


def is_bare_module_assignment(node: Any, source: bytes) -> bool:
    """Check for the canonical ``module.exports = <expression>`` assignment."""
    operator = node.child_by_field_name("operator")
    if operator is not None and node_text(source, operator) != "=":
        return False
    left = node.child_by_field_name("left")
    if left is None or left.type != "member_expression":
        return False
    obj = left.child_by_field_name("object")
    prop = left.child_by_field_name("property")
    return (
        obj is not None and obj.type == "identifier" and node_text(source, obj) == MODULE_NAME
        and prop is not None and prop.type == "property_identifier"
        and node_text(source, prop) == EXPORTS_NAME
    )


class ExportTransformer:
    """Renames free ``exports``/``module`` references and emits their declarations."""

    def __init__(self, buffer: SourceBuffer, top_level: TopLevelTracker,
                 scopes: ScopeAnalyzer, source: bytes):
        self.buffer = buffer
        self.top_level = top_level
        self.scopes = scopes
        self.source = source
        self.exports = DeclarationState()
        self.module = DeclarationState()
        self.is_touched = False

    def transform_export(self, node: Any) -> None:
        self._rename(node, EXPORTS_NAME, EXPORTS_BINDING, self.exports)

    def transform_module(self, node: Any) -> None:
        self._rename(node, MODULE_NAME, MODULE_BINDING, self.module)

    def transform_module_assign(self, node: Any) -> bool:
        """
        Decide whether a top-level assignment is left verbatim.

        A lone ``module.exports = value`` is kept as written as long as no
        other free ``module`` reference has been rewritten before it; the
        first textual occurrence decides, so reordering top-level statements
        can change the output.

        Returns:
            True if the caller must skip the assignment's subtree
        """
        if self.module.declared or not is_bare_module_assignment(node, self.source):
            return False
        if self.scopes.has(MODULE_NAME):
            return False
        logger.debug(f"Keeping bare module.exports assignment at byte {node.start_byte}")
        return True

    def write_declarations(self) -> None:
        """Insert the private binding declarations at their anchors."""
        exports, module = self.exports, self.module
        if exports.declared and module.declared and module.position < exports.position:
            # _module_ is initialized from _exports_, which must exist first
            exports.position = module.position
        if exports.declared:
            self.buffer.append_right(exports.position, f"let {EXPORTS_BINDING} = {{}};\n")
            self.is_touched = True
        if module.declared:
            initial = EXPORTS_BINDING if exports.declared else "{}"
            self.buffer.append_right(
                module.position, f"const {MODULE_BINDING} = {{exports: {initial}}};\n"
            )
            self.is_touched = True

    def write_export(self) -> None:
        """Append the re-synchronization write after the last top-level statement."""
        if self.module.declared:
            value = f"{MODULE_BINDING}.exports"
        elif self.exports.declared:
            value = EXPORTS_BINDING
        else:
            return
        self.buffer.append_right(self.top_level.current().end_byte, f"\nmodule.exports = {value};")
        self.is_touched = True

    def _rename(self, node: Any, name: str, binding: str, state: DeclarationState) -> None:
        if node_text(self.source, node) != name or not self.scopes.is_free_reference(node):
            return
        if not state.declared:
            state.declared = True
            state.position = self.top_level.current().start_byte
        # Shorthand properties keep their key: {exports} -> {exports: _exports_}
        replacement = f"{name}: {binding}" if node.type in SHORTHAND_TYPES else binding
        self.buffer.overwrite(node.start_byte, node.end_byte, replacement)
        self.is_touched = True
        logger.debug(f"Renamed {name} at byte {node.start_byte} to {binding}")
