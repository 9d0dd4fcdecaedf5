"""
Binding generation for BearSSL.

This module translates the BearSSL public headers into a generated Python
module of cffi declarations:
- C preprocessing of the header set
- Declaration parsing and allowlisting (pycparser)
- Integer macro constants
- Struct layout self-tests, adjusted per target
"""

from .generator import BindingGenerator, GeneratedBindings
from .layout import DataModel, LayoutCalculator, LayoutUnavailable, RecordLayout
from .macros import MacroConstant, MacroTable
from .options import BEARSSL_HEADERS, BindgenOptions
from .preprocessor import Preprocessor, TranslationError
from .quirks import LAYOUT_TEST_EXEMPT_TARGETS, apply_target_quirks, layout_tests_enabled
from .translator import Translation, Translator

__all__ = [
    "BEARSSL_HEADERS",
    "BindgenOptions",
    "BindingGenerator",
    "GeneratedBindings",
    "DataModel",
    "LayoutCalculator",
    "LayoutUnavailable",
    "RecordLayout",
    "MacroConstant",
    "MacroTable",
    "Preprocessor",
    "TranslationError",
    "LAYOUT_TEST_EXEMPT_TARGETS",
    "apply_target_quirks",
    "layout_tests_enabled",
    "Translation",
    "Translator",
]
