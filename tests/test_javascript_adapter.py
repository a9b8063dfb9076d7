"""Tests for the tree-sitter JavaScript adapter and its node helpers."""

import pytest

from cjs_hoist.errors import ParseError
from cjs_hoist.javascript_adapter import (
    JavaScriptAdapter,
    call_arguments,
    node_text,
    string_value,
)


def first_node(tree, node_type):
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.type == node_type:
            return node
        stack.extend(reversed(node.children))
    return None


class TestParse:

    def test_language_info(self):
        adapter = JavaScriptAdapter()
        assert adapter.language_id == "javascript"
        assert ".js" in adapter.file_extensions
        assert ".cjs" in adapter.file_extensions

    def test_valid_program(self, parse):
        tree = parse("const a = require('a');\n")
        assert tree.root_node.type == "program"
        assert tree.root_node.has_error is False

    def test_hash_bang_is_accepted(self, parse):
        tree = parse("#!/usr/bin/env node\nexports.a = 1;\n")
        assert tree.root_node.named_children[0].type == "hash_bang_line"

    def test_syntax_error_has_location(self, parse):
        with pytest.raises(ParseError) as excinfo:
            parse("const a = 1;\nconst = ;\n")
        assert excinfo.value.line == 2
        assert "line 2" in str(excinfo.value)

    def test_bytes_input(self):
        tree = JavaScriptAdapter().parse("exports.a = 1;".encode("utf-8"))
        assert tree.root_node.type == "program"

    def test_byte_to_linecol(self):
        adapter = JavaScriptAdapter()
        assert adapter.byte_to_linecol("ab\ncd", 0) == (1, 1)
        assert adapter.byte_to_linecol("ab\ncd", 4) == (2, 2)
        assert adapter.byte_to_linecol("é\nx", 3) == (2, 1)
        assert adapter.byte_to_linecol("ab", 100) == (1, 3)


class TestListFiles:

    def test_walks_directories(self, tmp_path):
        (tmp_path / "a.js").write_text("")
        (tmp_path / "notes.txt").write_text("")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "c.cjs").write_text("")
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "d.js").write_text("")
        (tmp_path / ".cache").mkdir()
        (tmp_path / ".cache" / "e.js").write_text("")

        files = JavaScriptAdapter().list_files([str(tmp_path)])

        assert files == [str(tmp_path / "a.js"), str(tmp_path / "sub" / "c.cjs")]

    def test_custom_extensions_and_exclusions(self, tmp_path):
        (tmp_path / "a.js").write_text("")
        (tmp_path / "b.mjs").write_text("")
        (tmp_path / "vendor").mkdir()
        (tmp_path / "vendor" / "c.mjs").write_text("")

        files = JavaScriptAdapter().list_files([str(tmp_path)], ("vendor",), (".mjs",))

        assert files == [str(tmp_path / "b.mjs")]

    def test_explicit_file_and_missing_path(self, tmp_path):
        target = tmp_path / "a.js"
        target.write_text("")
        files = JavaScriptAdapter().list_files([str(target), str(tmp_path / "missing")])
        assert files == [str(target)]


class TestStringValue:

    @pytest.mark.parametrize("literal, expected", [
        ('"plain"', "plain"),
        ("'single'", "single"),
        ('""', ""),
        (r'"a\nb"', "a\nb"),
        (r'"\x41B"', "AB"),
        (r'"\u{1F600}"', "\U0001F600"),
        (r'"😀"', "\U0001F600"),
        (r'"\q\'\""', "q'\""),
        (r'"\0"', "\0"),
        ('"a\\\nb"', "ab"),
        ('"ü"', "ü"),
        (r'"\uD83D\uDE00"', "\U0001F600"),
        (r'"\uD800"', "\ud800"),
        (r'"\uDE00\uD83D"', "\ude00\ud83d"),
        (r'"\uD83Dx"', "\ud83dx"),
    ])
    def test_decodes(self, parse, literal, expected):
        code = f"x = {literal};"
        tree = parse(code)
        node = first_node(tree, "string")
        assert string_value(node, code.encode("utf-8")) == expected


class TestCallArguments:

    def test_comments_are_ignored(self, parse):
        code = "f(a, /* note */ b);"
        tree = parse(code)
        arguments = call_arguments(first_node(tree, "call_expression"))
        assert [node_text(code.encode("utf-8"), arg) for arg in arguments] == ["a", "b"]

    def test_tagged_template_has_no_arguments(self, parse):
        tree = parse("require`x`;")
        assert call_arguments(first_node(tree, "call_expression")) is None
