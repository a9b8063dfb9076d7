"""
Scopes and name resolution for JavaScript syntax trees.

The analyzer builds the whole scope tree in a pre-pass (so hoisted
declarations are visible before their textual position), then answers
"is this name declared here?" against whichever scope is current during a
single top-to-bottom traversal that calls ``enter``/``leave`` on every node.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from .javascript_adapter import is_same_node, node_text

logger = logging.getLogger(__name__)


FUNCTION_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
})
FUNCTION_DECLARATION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})
CLASS_TYPES = frozenset({"class_declaration", "class"})
BLOCK_TYPES = frozenset({"statement_block", "switch_body"})
FOR_TYPES = frozenset({"for_statement", "for_in_statement"})

SCOPE_KINDS: Dict[str, str] = {
    "program": "program",
    "catch_clause": "catch",
    # A static initialization block is a var boundary like a function body
    "class_static_block": "static",
}
SCOPE_KINDS.update({t: "function" for t in FUNCTION_TYPES})
SCOPE_KINDS.update({t: "class" for t in CLASS_TYPES})
SCOPE_KINDS.update({t: "block" for t in BLOCK_TYPES})
SCOPE_KINDS.update({t: "for" for t in FOR_TYPES})

# Scopes that receive var and function declarations
HOISTING_KINDS = frozenset({"program", "function", "static"})

PATTERN_TYPES = frozenset({
    "object_pattern",
    "array_pattern",
    "assignment_pattern",
    "object_assignment_pattern",
    "pair_pattern",
    "rest_pattern",
})
# Parents whose identifier children name something other than a variable
NON_REFERENCE_PARENTS = frozenset({
    "import_clause",
    "import_specifier",
    "namespace_import",
    "export_specifier",
})
JSX_ELEMENT_TYPES = frozenset({
    "jsx_opening_element",
    "jsx_closing_element",
    "jsx_self_closing_element",
})


@dataclass(frozen=True)
class Symbol:
    """A symbol represents a name binding in a scope."""
    name: str
    kind: str            # "var"|"let"|"const"|"param"|"function"|"class"|"catch"|"import"
    start_byte: int
    end_byte: int


class Scope:
    """A lexical scope: declared names plus a link to the enclosing scope."""

    def __init__(self, kind: str, parent: Optional["Scope"] = None):
        self.kind = kind            # "program"|"function"|"static"|"class"|"block"|"for"|"catch"
        self.parent = parent
        self.symbols: Dict[str, Symbol] = {}

    def declare(self, symbol: Symbol) -> None:
        # Redeclaration (var x; var x) keeps the first binding
        self.symbols.setdefault(symbol.name, symbol)

    def lookup(self, name: str) -> Optional[Symbol]:
        """Look up a symbol, checking parent scopes."""
        scope = self
        while scope is not None:
            symbol = scope.symbols.get(name)
            if symbol is not None:
                return symbol
            scope = scope.parent
        return None

    def function_scope(self) -> "Scope":
        """Nearest enclosing scope that receives hoisted declarations."""
        scope = self
        while scope.kind not in HOISTING_KINDS:
            scope = scope.parent
        return scope

    def __repr__(self) -> str:
        return f"Scope(kind={self.kind!r}, symbols={sorted(self.symbols)!r})"


class ScopeAnalyzer:
    """Scope tree over a tree-sitter JavaScript syntax tree.

    Args:
        root: The ``program`` node
        source: UTF-8 encoded source text the tree was parsed from
    """

    def __init__(self, root: Any, source: bytes):
        self._source = source
        self._scopes: Dict[int, Scope] = {}
        self._stack: List[Scope] = []
        self._build(root)

    @property
    def current(self) -> Optional[Scope]:
        return self._stack[-1] if self._stack else None

    def scope_for(self, node: Any) -> Optional[Scope]:
        """Scope introduced by node, if it introduces one."""
        return self._scopes.get(node.id)

    def enter(self, node: Any) -> None:
        scope = self._scopes.get(node.id)
        if scope is not None:
            self._stack.append(scope)

    def leave(self, node: Any) -> None:
        if node.id in self._scopes:
            self._stack.pop()

    def has(self, name: str) -> bool:
        """Check whether name is declared in the current scope chain."""
        current = self.current
        return current is not None and current.lookup(name) is not None

    def is_reference(self, node: Any) -> bool:
        """
        Check whether an identifier occurrence is in reference position.

        Declaration sites (declarator names, parameters, function and class
        names, catch parameters, binding pattern slots), import/export specifier
        names and JSX tag names are not references. Default values inside
        patterns and destructuring assignment targets are.
        """
        if node.type == "shorthand_property_identifier":
            return True
        if node.type not in ("identifier", "shorthand_property_identifier_pattern"):
            return False
        return not _is_binding(node)

    def is_free_reference(self, node: Any) -> bool:
        """A reference whose name no enclosing scope declares."""
        return self.is_reference(node) and not self.has(node_text(self._source, node))

    def get_stats(self) -> Dict[str, int]:
        """Get statistics about the scope tree."""
        return {
            "scopes": len(self._scopes),
            "symbols": sum(len(scope.symbols) for scope in self._scopes.values()),
        }

    def _build(self, root: Any) -> None:
        stack = [(root, None)]
        while stack:
            node, outer = stack.pop()
            inner = outer
            kind = SCOPE_KINDS.get(node.type)
            if kind is not None:
                inner = Scope(kind, outer)
                self._scopes[node.id] = inner
            if inner is not None:
                self._collect(node, outer or inner, inner)
            for child in reversed(node.named_children):
                stack.append((child, inner))

        stats = self.get_stats()
        logger.debug(f"Built scope tree: {stats['scopes']} scopes, {stats['symbols']} symbols")

    def _collect(self, node: Any, outer: Scope, inner: Scope) -> None:
        """Declare the names a single node binds.

        ``outer`` is the scope enclosing node, ``inner`` the scope node itself
        introduces (the same as ``outer`` for nodes without one).
        """
        node_type = node.type

        if node_type in FUNCTION_TYPES:
            name = node.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                if node_type in FUNCTION_DECLARATION_TYPES:
                    self._declare(outer.function_scope(), name, "function")
                else:
                    self._declare(inner, name, "function")
            parameter = node.child_by_field_name("parameter")
            if parameter is not None:
                self._declare_pattern(inner, parameter, "param")
            parameters = node.child_by_field_name("parameters")
            if parameters is not None:
                for child in parameters.named_children:
                    self._declare_pattern(inner, child, "param")

        elif node_type in CLASS_TYPES:
            name = node.child_by_field_name("name")
            if name is not None:
                self._declare(outer if node_type == "class_declaration" else inner, name, "class")

        elif node_type == "variable_declaration":
            target = inner.function_scope()
            for declarator in node.named_children:
                if declarator.type == "variable_declarator":
                    self._declare_pattern(target, declarator.child_by_field_name("name"), "var")

        elif node_type == "lexical_declaration":
            kind_node = node.child_by_field_name("kind")
            kind = node_text(self._source, kind_node) if kind_node is not None else "let"
            for declarator in node.named_children:
                if declarator.type == "variable_declarator":
                    self._declare_pattern(inner, declarator.child_by_field_name("name"), kind)

        elif node_type == "for_in_statement":
            kind_node = node.child_by_field_name("kind")
            if kind_node is not None:
                kind = node_text(self._source, kind_node)
                target = inner.function_scope() if kind == "var" else inner
                self._declare_pattern(target, node.child_by_field_name("left"), kind)

        elif node_type == "catch_clause":
            parameter = node.child_by_field_name("parameter")
            if parameter is not None:
                self._declare_pattern(inner, parameter, "catch")

        elif node_type == "import_statement":
            program = inner.function_scope()
            for clause in node.named_children:
                if clause.type == "import_clause":
                    for name in _import_bindings(clause):
                        self._declare(program, name, "import")

    def _declare(self, scope: Scope, name_node: Any, kind: str) -> None:
        scope.declare(Symbol(
            name=node_text(self._source, name_node),
            kind=kind,
            start_byte=name_node.start_byte,
            end_byte=name_node.end_byte,
        ))

    def _declare_pattern(self, scope: Scope, pattern: Any, kind: str) -> None:
        if pattern is None:
            return
        for name_node in _pattern_names(pattern):
            self._declare(scope, name_node, kind)


def _pattern_names(pattern: Any) -> Iterator[Any]:
    """Yield the identifier nodes a binding pattern declares."""
    stack = [pattern]
    while stack:
        node = stack.pop()
        node_type = node.type
        if node_type in ("identifier", "shorthand_property_identifier_pattern"):
            yield node
        elif node_type in ("object_pattern", "array_pattern", "rest_pattern"):
            stack.extend(reversed(node.named_children))
        elif node_type in ("assignment_pattern", "object_assignment_pattern"):
            left = node.child_by_field_name("left")
            if left is not None:
                stack.append(left)
        elif node_type == "pair_pattern":
            value = node.child_by_field_name("value")
            if value is not None:
                stack.append(value)


def _import_bindings(clause: Any) -> Iterator[Any]:
    for child in clause.named_children:
        if child.type == "identifier":
            yield child
        elif child.type == "namespace_import":
            for name in child.named_children:
                if name.type == "identifier":
                    yield name
        elif child.type == "named_imports":
            for specifier in child.named_children:
                if specifier.type != "import_specifier":
                    continue
                local = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
                if local is not None and local.type == "identifier":
                    yield local


def _is_field(parent: Any, field: str, child: Any) -> bool:
    return is_same_node(parent.child_by_field_name(field), child)


def _is_binding(node: Any) -> bool:
    """Check whether an identifier sits in a declaration or naming slot."""
    child = node
    parent = node.parent
    while parent is not None and parent.type in PATTERN_TYPES:
        if parent.type in ("assignment_pattern", "object_assignment_pattern"):
            if not _is_field(parent, "left", child):
                return False
        elif parent.type == "pair_pattern" and not _is_field(parent, "value", child):
            return False
        child, parent = parent, parent.parent

    if parent is None:
        return False
    parent_type = parent.type
    if parent_type == "formal_parameters" or parent_type in NON_REFERENCE_PARENTS:
        return True
    if parent_type == "variable_declarator":
        return _is_field(parent, "name", child)
    if parent_type == "catch_clause":
        return _is_field(parent, "parameter", child)
    if parent_type == "for_in_statement":
        return _is_field(parent, "left", child) and parent.child_by_field_name("kind") is not None
    if parent_type in FUNCTION_TYPES:
        return _is_field(parent, "name", child) or _is_field(parent, "parameter", child)
    if parent_type in CLASS_TYPES or parent_type in JSX_ELEMENT_TYPES:
        return _is_field(parent, "name", child)
    return False
