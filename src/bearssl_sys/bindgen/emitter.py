"""Generated module emitter.

Renders one flat Python module holding everything the cffi build and the
runtime need: the cdef source, integer constants, one IntEnum class per
enumeration, array parameter sizes and, unless disabled, the layout table
with its check_layouts() self-test.
"""

import pprint
from dataclasses import dataclass
from typing import Dict, List, Sequence

from .layout import RecordLayout
from .macros import MacroConstant
from .options import ENUM_STYLE_NEWTYPE, BindgenOptions
from .translator import Translation

HEADER_COMMENT = "# Generated by bearssl-sys from the BearSSL headers. Do not edit."

_CHECK_LAYOUTS = '''

class LayoutMismatchError(AssertionError):
    """A compiled record layout differs from the one computed for TARGET."""


def check_layouts(ffi):
    """Compare LAYOUTS with the layouts ffi reports.

    Raises:
        LayoutMismatchError: On the first size, alignment or offset mismatch
    """
    for ctype, expected in LAYOUTS.items():
        size = ffi.sizeof(ctype)
        if size != expected["size"]:
            raise LayoutMismatchError(
                f"Size of {ctype}: expected {expected['size']}, got {size}"
            )
        align = ffi.alignof(ctype)
        if align != expected["align"]:
            raise LayoutMismatchError(
                f"Alignment of {ctype}: expected {expected['align']}, got {align}"
            )
        for name, offset in expected["fields"].items():
            actual = ffi.offsetof(ctype, name)
            if actual != offset:
                raise LayoutMismatchError(
                    f"Offset of {ctype}::{name}: expected {offset}, got {actual}"
                )
'''


@dataclass
class ModuleContents:
    """Everything that goes into one generated module."""

    headers: Sequence[str]
    translation: Translation
    constants: List[MacroConstant]
    layouts: Dict[str, RecordLayout]


def _string_block(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    return f'"""\n{escaped}\n"""'


def _assign(name: str, value) -> str:
    return f"{name} = {pprint.pformat(value, indent=4, width=88, sort_dicts=False)}"


class ModuleEmitter:
    """Renders ModuleContents as Python source."""

    def __init__(self, options: BindgenOptions):
        self.options = options

    def cdef(self, contents: ModuleContents) -> str:
        """cdef source: declarations followed by constant #defines."""
        parts = [contents.translation.cdef()]
        if contents.constants:
            parts.append(
                "\n".join(f"#define {c.name} {c.value}" for c in contents.constants)
            )
        return "\n\n".join(p for p in parts if p)

    def render(self, contents: ModuleContents) -> str:
        """Render the generated module source."""
        translation = contents.translation
        lines = [
            HEADER_COMMENT,
            f'"""cffi declarations for BearSSL ({self.options.target})."""',
            "",
        ]
        if translation.enums and self.options.enum_style == ENUM_STYLE_NEWTYPE:
            lines += ["import enum", ""]

        lines += [
            _assign("HEADERS", tuple(contents.headers)),
            "",
            _assign("TARGET", self.options.target),
            "",
            "CDEF = " + _string_block(self.cdef(contents)),
            "",
            _assign("CONSTANTS", {c.name: c.value for c in contents.constants}),
            "",
            _assign("CONSTANT_TYPES", {c.name: c.ctype for c in contents.constants}),
            "",
            _assign("FUNCTIONS", tuple(translation.functions)),
            "",
            _assign("TYPES", tuple(translation.types)),
            "",
            _assign("VARIABLES", tuple(translation.variables)),
            "",
            _assign("ARRAY_PARAMS", translation.array_params),
        ]

        for enum in translation.enums:
            lines += ["", ""]
            lines += self.render_enum(enum.name, enum.members)

        if self.options.layout_tests:
            table = {
                ctype: {"size": l.size, "align": l.align, "fields": l.fields}
                for ctype, l in contents.layouts.items()
            }
            lines += ["", _assign("LAYOUTS", table)]
            lines.append(_CHECK_LAYOUTS.rstrip("\n"))

        return "\n".join(lines) + "\n"

    def render_enum(self, name: str, members) -> List[str]:
        if self.options.enum_style != ENUM_STYLE_NEWTYPE:
            return [f"{member} = {value}" for member, value in members]

        lines = [f"class {name}(enum.IntEnum):"]
        if not members:
            lines.append("    pass")
        for member, value in members:
            lines.append(f"    {member} = {value}")
        return lines
