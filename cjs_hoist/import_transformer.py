"""
Rewriting of static ``require("<specifier>")`` calls.

Each distinct specifier is required once, through a private ``const``
declared before the top-level statement where it is first used; every call
site is replaced by a reference to that binding.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from .javascript_adapter import call_arguments, node_text, string_value
from .scopes import ScopeAnalyzer
from .source_buffer import SourceBuffer
from .top_level import TopLevelTracker

logger = logging.getLogger(__name__)

REQUIRE_NAME = "require"

_ESCAPED_CHARS = re.compile(r"[\W_]", re.ASCII)
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def require_binding_name(specifier: str) -> str:
    """
    Build the private binding name for a specifier.

    ``/`` and ``\\`` become ``$``, ``_`` is doubled and any other character
    outside ``[A-Za-z0-9]`` becomes ``_``:

        >>> require_binding_name("./lib/foo-bar")
        '_require__$lib$foo_bar_'
    """
    def escape(match):
        char = match.group(0)
        if char in "/\\":
            return "$"
        if char == "_":
            return "__"
        return "_"

    return f"_require_{_ESCAPED_CHARS.sub(escape, specifier)}_"


def quote_specifier(specifier: str) -> str:
    """Quote a specifier as a double-quoted JavaScript string literal.

    Unpaired surrogates cannot be written as UTF-8 and are emitted as
    ``\\uXXXX`` escapes instead.
    """
    return json.dumps(specifier, ensure_ascii=_LONE_SURROGATE.search(specifier) is not None)


def get_require_info(node: Any, source: bytes) -> Optional[Any]:
    """Return the string literal argument of a ``require("...")`` call."""
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "identifier" or node_text(source, callee) != REQUIRE_NAME:
        return None
    arguments = call_arguments(node)
    if arguments is None or len(arguments) != 1 or arguments[0].type != "string":
        return None
    return arguments[0]


def get_dynamic_import(node: Any, source: bytes) -> Optional[Any]:
    """Match ``Promise.resolve(require("..."))``; return the inner literal."""
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return None
    obj = callee.child_by_field_name("object")
    prop = callee.child_by_field_name("property")
    if obj is None or obj.type != "identifier" or node_text(source, obj) != "Promise":
        return None
    if prop is None or node_text(source, prop) != "resolve":
        return None
    arguments = call_arguments(node)
    if arguments is None or len(arguments) != 1 or arguments[0].type != "call_expression":
        return None
    return get_require_info(arguments[0], source)


class ImportTransformer:
    """Hoists free ``require`` calls into deduplicated private bindings."""

    def __init__(self, buffer: SourceBuffer, top_level: TopLevelTracker,
                 scopes: ScopeAnalyzer, source: bytes):
        self.buffer = buffer
        self.top_level = top_level
        self.scopes = scopes
        self.source = source
        self.imports: Dict[str, str] = {}
        self.is_touched = False

    def transform_dynamic(self, node: Any) -> bool:
        """Return True if node is the dynamic import idiom and must be skipped."""
        return get_dynamic_import(node, self.source) is not None

    def transform(self, node: Any) -> None:
        required = get_require_info(node, self.source)
        if required is None or not self.scopes.is_free_reference(node.child_by_field_name("function")):
            return

        specifier = string_value(required, self.source)
        name = self.imports.get(specifier)
        if name is None:
            name = require_binding_name(specifier)
            self.imports[specifier] = name
            self.buffer.append_right(
                self.top_level.current().start_byte,
                f"const {name} = require({quote_specifier(specifier)});\n",
            )
            logger.debug(f"Hoisted require({specifier!r}) as {name}")

        self.buffer.overwrite(node.start_byte, node.end_byte, name)
        self.is_touched = True
