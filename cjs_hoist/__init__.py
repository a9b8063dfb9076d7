"""
cjs-hoist: rewrite CommonJS module globals into private bindings.

This package rewrites free references to ``module``, ``exports`` and
``require`` in JavaScript source into locally declared bindings, using
tree-sitter for parsing and lexical scope analysis.
"""

from .types import Edit, TransformResult, ParseFunction, SourceMap

from .errors import CjsHoistError, ParseError, EditConflictError, ConfigError

from .javascript_adapter import JavaScriptAdapter, parse_javascript

from .source_buffer import SourceBuffer

from .transform import transform

from .config import (
    HoistConfig, load_config, save_config, find_config_file
)

__all__ = [
    # Types
    "Edit", "TransformResult", "ParseFunction", "SourceMap",

    # Errors
    "CjsHoistError", "ParseError", "EditConflictError", "ConfigError",

    # Parsing
    "JavaScriptAdapter", "parse_javascript",

    # Rewriting
    "SourceBuffer", "transform",

    # Config
    "HoistConfig", "load_config", "save_config", "find_config_file"
]
