"""
Fixture-driven rewrite cases.

Each directory under fixtures/cases holds an input.js and the expected
output.js; a case is untouched exactly when the two files are identical.
"""

from pathlib import Path

import pytest

from cjs_hoist import transform
from cjs_hoist.javascript_adapter import parse_javascript

CASES_DIR = Path(__file__).parent / "fixtures" / "cases"
CASES = sorted(p.name for p in CASES_DIR.iterdir() if p.is_dir())


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8").replace("\r", "")


@pytest.mark.parametrize("case", CASES)
def test_case(case):
    """Rewrite input.js and compare with output.js byte for byte."""
    input_code = _read(CASES_DIR / case / "input.js")
    expected = _read(CASES_DIR / case / "output.js")

    result = transform(parse_javascript, input_code)

    assert result.code == expected
    assert result.is_touched == (input_code != expected)

