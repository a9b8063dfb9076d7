"""
Tests for the scope analyzer.

Each test walks the tree the way the driver does and collects the lines
(0-based) on which a given name occurs as a free reference.
"""

from typing import List

from cjs_hoist.javascript_adapter import node_text, parse_javascript
from cjs_hoist.scopes import ScopeAnalyzer


def free_reference_lines(code: str, name: str) -> List[int]:
    """Lines of free references to name, in traversal order."""
    tree = parse_javascript(code)
    source = code.encode("utf-8")
    analyzer = ScopeAnalyzer(tree.root_node, source)

    lines = []
    stack = [(tree.root_node, False)]
    while stack:
        node, leaving = stack.pop()
        if leaving:
            analyzer.leave(node)
            continue
        analyzer.enter(node)
        stack.append((node, True))
        if node_text(source, node) == name and analyzer.is_free_reference(node):
            lines.append(node.start_point[0])
        for child in reversed(node.named_children):
            stack.append((child, False))
    return lines


class TestDeclarations:

    def test_undeclared_is_free(self):
        assert free_reference_lines("exports.a = 1;", "exports") == [0]

    def test_let_is_block_scoped(self):
        code = "{\n  let x = 1;\n  x;\n}\nx;\n"
        assert free_reference_lines(code, "x") == [4]

    def test_var_hoists_out_of_block(self):
        code = "function f() {\n  x;\n  if (a) {\n    var x = 1;\n  }\n}\nx;\n"
        assert free_reference_lines(code, "x") == [6]

    def test_function_declaration_hoists(self):
        code = "require();\nfunction require() {}\n"
        assert free_reference_lines(code, "require") == []

    def test_nested_function_declaration_stays_inside(self):
        code = "function outer() {\n  function inner() {}\n}\ninner();\n"
        assert free_reference_lines(code, "inner") == [3]

    def test_static_block_is_var_boundary(self):
        code = (
            "class A {\n"
            "  static {\n"
            "    exports;\n"
            "    if (a) { var exports = 1; }\n"
            "    function require() {}\n"
            "    require;\n"
            "  }\n"
            "}\n"
            "exports;\n"
            "require;\n"
        )
        assert free_reference_lines(code, "exports") == [8]
        assert free_reference_lines(code, "require") == [9]

    def test_static_block_scope_kind(self):
        code = "class A { static { var x; } }\n"
        tree = parse_javascript(code)
        analyzer = ScopeAnalyzer(tree.root_node, code.encode("utf-8"))
        program = analyzer.scope_for(tree.root_node)
        assert "x" not in program.symbols
        assert "A" in program.symbols

    def test_function_expression_name_is_local(self):
        code = "const f = function module() {\n  module;\n};\nmodule;\n"
        assert free_reference_lines(code, "module") == [3]

    def test_class_declaration_and_expression(self):
        code = "class A {}\nA;\nconst b = class B {\n  m() { return B; }\n};\nB;\n"
        assert free_reference_lines(code, "A") == []
        assert free_reference_lines(code, "B") == [5]

    def test_parameters(self):
        code = "function f(a, [b], {c}, ...d) {\n  return a + b + c + d;\n}\n"
        for name in ("a", "b", "c", "d"):
            assert free_reference_lines(code, name) == []

    def test_arrow_parameter(self):
        code = "const f = exports => exports;\nexports;\n"
        assert free_reference_lines(code, "exports") == [1]

    def test_catch_parameter(self):
        code = "try {} catch (e) {\n  e;\n}\ne;\n"
        assert free_reference_lines(code, "e") == [3]

    def test_for_let(self):
        code = "for (let i = 0; i < 1; i++) {\n  i;\n}\ni;\n"
        assert free_reference_lines(code, "i") == [3]

    def test_for_of_const(self):
        code = "for (const m of list) {\n  m;\n}\nm;\n"
        assert free_reference_lines(code, "m") == [3]

    def test_for_in_without_declaration_is_reference(self):
        assert free_reference_lines("for (exports in o) {}\n", "exports") == [0]

    def test_import_bindings(self):
        code = "import a, {b, c as d} from 'x';\nimport * as e from 'y';\na; b; c; d; e;\n"
        assert free_reference_lines(code, "a") == []
        assert free_reference_lines(code, "b") == []
        assert free_reference_lines(code, "c") == [2]
        assert free_reference_lines(code, "d") == []
        assert free_reference_lines(code, "e") == []


class TestReferencePositions:

    def test_destructuring_rename_binds_value(self):
        code = "const {a: exports} = o;\nexports;\n"
        assert free_reference_lines(code, "exports") == []

    def test_array_rest_binds(self):
        code = "const [...exports] = arr;\nexports;\n"
        assert free_reference_lines(code, "exports") == []

    def test_pattern_default_is_reference(self):
        assert free_reference_lines("const {a = exports} = o;\n", "exports") == [0]

    def test_parameter_default_is_reference(self):
        assert free_reference_lines("function f(a = module) {}\n", "module") == [0]

    def test_destructuring_assignment_target_is_reference(self):
        assert free_reference_lines("[exports] = arr;\n", "exports") == [0]

    def test_property_names_are_not_references(self):
        code = "o.exports;\n({exports: 1});\nclass C { exports() {} }\n"
        assert free_reference_lines(code, "exports") == []

    def test_shorthand_property_is_reference(self):
        assert free_reference_lines("({module});\n", "module") == [0]

    def test_labels_are_not_references(self):
        code = "exports: for (;;) {\n  break exports;\n}\n"
        assert free_reference_lines(code, "exports") == []


class TestScopeAnalyzer:

    def test_stats(self):
        code = "var a;\nfunction f(b) {\n  let c;\n}\n"
        analyzer = ScopeAnalyzer(parse_javascript(code).root_node, code.encode("utf-8"))
        stats = analyzer.get_stats()
        # program, function f, its body block
        assert stats["scopes"] == 3
        # a, f, b, c
        assert stats["symbols"] == 4

    def test_scope_kinds(self):
        code = "function f() {}\n"
        tree = parse_javascript(code)
        analyzer = ScopeAnalyzer(tree.root_node, code.encode("utf-8"))
        program = analyzer.scope_for(tree.root_node)
        function = analyzer.scope_for(tree.root_node.named_children[0])
        assert program.kind == "program"
        assert function.kind == "function"
        assert function.parent is program
        assert "f" in program.symbols
        assert program.symbols["f"].kind == "function"
