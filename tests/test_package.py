"""Tests for the public package surface."""

import cjs_hoist
from cjs_hoist import types


def test_all_names_resolve():
    for name in cjs_hoist.__all__:
        assert hasattr(cjs_hoist, name), name


def test_type_aliases_are_used():
    assert set(cjs_hoist.__all__) >= {"SourceMap", "ParseFunction"}
    assert types.TransformResult.__annotations__["map"] == types.Optional[types.SourceMap]
