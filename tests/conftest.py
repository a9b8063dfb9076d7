"""Shared fixtures for the cjs-hoist test suite."""

import sys
from pathlib import Path

import pytest

# Add the repository root to the path for importing
sys.path.insert(0, str(Path(__file__).parent.parent))

from cjs_hoist.javascript_adapter import parse_javascript


@pytest.fixture
def parse():
    """The default tree-sitter JavaScript parse function."""
    return parse_javascript
