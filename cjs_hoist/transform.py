"""
Driver for the CommonJS hoisting rewrite.

A single depth-first traversal feeds every node to the top-level tracker and
the scope analyzer, then dispatches on the node type to the export and import
transformers. Declarations and the re-synchronization write are emitted once
the traversal has finished, and the buffer is only materialized if something
was rewritten.
"""

import logging
from typing import Any, Optional

from .export_transformer import ExportTransformer
from .import_transformer import ImportTransformer
from .scopes import ScopeAnalyzer
from .source_buffer import SourceBuffer
from .top_level import TopLevelTracker
from .types import ParseFunction, TransformResult

logger = logging.getLogger(__name__)

IDENTIFIER_TYPES = frozenset({
    "identifier",
    "shorthand_property_identifier",
    "shorthand_property_identifier_pattern",
})


class _Driver:
    """Per-call traversal state."""

    def __init__(self, root: Any, buffer: SourceBuffer, ignore_dynamic_require: bool):
        source = buffer.original.encode("utf-8")
        self.root = root
        self.ignore_dynamic_require = ignore_dynamic_require
        self.top_level = TopLevelTracker()
        self.scopes = ScopeAnalyzer(root, source)
        self.export_transformer = ExportTransformer(buffer, self.top_level, self.scopes, source)
        self.import_transformer = ImportTransformer(buffer, self.top_level, self.scopes, source)

    def run(self) -> bool:
        # (node, parent, leaving); iterative so deeply nested files cannot
        # exhaust the recursion limit
        stack = [(self.root, None, False)]
        while stack:
            node, parent, leaving = stack.pop()
            if leaving:
                self.scopes.leave(node)
                continue

            self.top_level.enter(node, parent)
            self.scopes.enter(node)
            stack.append((node, parent, True))
            if self.visit(node, parent):
                continue
            for child in reversed(node.named_children):
                stack.append((child, node, False))

        self.export_transformer.write_declarations()
        self.export_transformer.write_export()
        return self.export_transformer.is_touched or self.import_transformer.is_touched

    def visit(self, node: Any, parent: Optional[Any]) -> bool:
        """Dispatch a node to the transformers. Returns True to skip its children."""
        node_type = node.type
        if node_type in IDENTIFIER_TYPES:
            self.export_transformer.transform_export(node)
            self.export_transformer.transform_module(node)
        elif node_type == "assignment_expression":
            # (module.exports = value); counts as directly inside its statement
            while parent is not None and parent.type == "parenthesized_expression":
                parent = parent.parent
            if parent is not None and self.top_level.is_top_level(parent):
                return self.export_transformer.transform_module_assign(node)
        elif node_type == "call_expression":
            if self.ignore_dynamic_require and self.import_transformer.transform_dynamic(node):
                return True
            self.import_transformer.transform(node)
        return False


def transform(parse: ParseFunction, code: str, source_map: bool = False,
              ignore_dynamic_require: bool = True, filename: Optional[str] = None) -> TransformResult:
    """
    Rewrite free ``module``, ``exports`` and ``require`` references into
    private local bindings.

    Args:
        parse: Function from source text to a tree-sitter Tree (or root Node);
            its exceptions propagate
        code: JavaScript source text
        source_map: Also generate a version 3 source map
        ignore_dynamic_require: Leave ``Promise.resolve(require("..."))`` as is
        filename: Name recorded as the map's source

    Returns:
        TransformResult. When nothing was rewritten, ``code`` is the very
        string that was passed in and ``map`` is None.
    """
    tree = parse(code)
    root = getattr(tree, "root_node", tree)

    buffer = SourceBuffer(code)
    driver = _Driver(root, buffer, ignore_dynamic_require)
    is_touched = driver.run()

    if not is_touched:
        logger.debug(f"No CommonJS references rewritten in {filename or '<code>'}")
        return TransformResult(code=code, map=None, is_touched=False)

    logger.debug(
        f"Rewrote {filename or '<code>'}: exports={driver.export_transformer.exports.declared} "
        f"module={driver.export_transformer.module.declared} "
        f"requires={len(driver.import_transformer.imports)}"
    )
    return TransformResult(
        code=buffer.to_string(),
        map=buffer.generate_map(source=filename) if source_map else None,
        is_touched=True,
    )
