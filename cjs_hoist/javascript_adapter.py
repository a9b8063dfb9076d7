"""
JavaScript language adapter for tree-sitter.
"""
import logging
import os
import re
from typing import Any, List, Optional, Tuple

import tree_sitter

from .errors import ParseError

logger = logging.getLogger(__name__)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}
_LINE_CONTINUATIONS = ("\n", "\r\n", "\r", "\u2028", "\u2029")
_SURROGATE_PAIR = re.compile("[\ud800-\udbff][\udc00-\udfff]")

_language = None


def _get_language() -> tree_sitter.Language:
    """Load the tree-sitter JavaScript grammar once per process."""
    global _language
    if _language is None:
        from tree_sitter_javascript import language
        _language = tree_sitter.Language(language())
    return _language


class JavaScriptAdapter:
    """Tree-sitter adapter for JavaScript language.

    A parser instance is not safe to share between threads; create one adapter
    per thread (``parse_javascript`` does this per call).
    """

    def __init__(self):
        """Initialize JavaScript adapter with tree-sitter parser."""
        self._parser = None

    @property
    def language_id(self) -> str:
        """Return the language identifier."""
        return "javascript"

    @property
    def file_extensions(self) -> Tuple[str, ...]:
        """Return supported file extensions."""
        return (".js", ".cjs", ".jsx")

    def _get_parser(self) -> tree_sitter.Parser:
        """Get or create the tree-sitter parser."""
        if self._parser is None:
            self._parser = tree_sitter.Parser()
            self._parser.language = _get_language()
            logger.debug("JavaScript parser initialized")
        return self._parser

    def parse(self, text: str) -> Any:
        """
        Parse text and return a tree-sitter tree.

        Tree-sitter recovers from syntax errors instead of failing, so the tree
        is checked for ERROR and MISSING nodes and rejected if it has any.

        Raises:
            ParseError: if the text is not valid JavaScript
        """
        if isinstance(text, bytes):
            text_bytes = text
            text = text.decode("utf-8")
        else:
            text_bytes = text.encode("utf-8")

        tree = self._get_parser().parse(text_bytes)
        if tree.root_node.has_error:
            error_node = find_error_node(tree.root_node)
            if error_node is not None:
                line, col = self.byte_to_linecol(text, error_node.start_byte)
                raise ParseError("Invalid JavaScript syntax", line, col)
            raise ParseError("Invalid JavaScript syntax")
        return tree

    def list_files(self, paths: List[str], exclude_dirs: Tuple[str, ...] = ("node_modules",),
                   extensions: Optional[Tuple[str, ...]] = None) -> List[str]:
        """List all JavaScript files in the given paths."""
        file_extensions = extensions or self.file_extensions
        js_files = []

        for path in paths:
            if os.path.isfile(path):
                if any(path.endswith(ext) for ext in file_extensions):
                    js_files.append(path)
            elif os.path.isdir(path):
                for root, dirs, files in os.walk(path):
                    # Skip hidden and excluded directories
                    dirs[:] = sorted(d for d in dirs if not d.startswith('.') and d not in exclude_dirs)

                    for file in sorted(files):
                        if any(file.endswith(ext) for ext in file_extensions):
                            js_files.append(os.path.join(root, file))
            else:
                logger.warning(f"Path '{path}' does not exist")

        return js_files

    def byte_to_linecol(self, text: str, byte: int) -> Tuple[int, int]:
        """Convert byte offset to (line, column) 1-based."""
        text_bytes = text.encode('utf-8')
        if byte > len(text_bytes):
            byte = len(text_bytes)

        lines = text_bytes[:byte].decode('utf-8', errors='ignore').split('\n')
        line = len(lines)
        col = len(lines[-1]) + 1 if lines else 1
        return (line, col)


def parse_javascript(code: str) -> Any:
    """Parse JavaScript source with a fresh tree-sitter parser."""
    return JavaScriptAdapter().parse(code)


def find_error_node(root: Any) -> Optional[Any]:
    """Return the first ERROR or MISSING node in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


def node_text(source: bytes, node: Any) -> str:
    """Extract the source text of a node from the UTF-8 encoded source."""
    return source[node.start_byte:node.end_byte].decode("utf-8")


def is_same_node(a: Any, b: Any) -> bool:
    return a is not None and b is not None and a.id == b.id


def call_arguments(node: Any) -> Optional[List[Any]]:
    """Return the argument nodes of a call_expression, ignoring comments.

    Tagged templates and calls without a parenthesized argument list give None.
    """
    arguments = node.child_by_field_name("arguments")
    if arguments is None or arguments.type != "arguments":
        return None
    return [child for child in arguments.named_children if child.type != "comment"]


def string_value(node: Any, source: bytes) -> str:
    """
    Decode a tree-sitter ``string`` node into its runtime value.

    Args:
        node: A ``string`` node (single or double quoted literal)
        source: UTF-8 encoded source the node was parsed from

    Returns:
        The cooked string value with escape sequences resolved
    """
    parts = []
    for child in node.named_children:
        text = node_text(source, child)
        if child.type == "escape_sequence":
            parts.append(_decode_escape(text))
        else:
            parts.append(text)
    value = "".join(parts)
    # \uXXXX escapes may encode UTF-16 surrogate pairs; lone surrogates stay as is
    return _SURROGATE_PAIR.sub(_join_surrogates, value)


def _join_surrogates(match: Any) -> str:
    return match.group(0).encode("utf-16-le", "surrogatepass").decode("utf-16-le")


def _decode_escape(sequence: str) -> str:
    body = sequence[1:]
    if body in _LINE_CONTINUATIONS:
        return ""
    if body.startswith("u{"):
        return chr(int(body[2:-1], 16))
    if body[0] == "u":
        return chr(int(body[1:5], 16))
    if body[0] == "x":
        return chr(int(body[1:3], 16))
    if body[0] in "01234567":
        return chr(int(body, 8))
    return _SIMPLE_ESCAPES.get(body, body)
