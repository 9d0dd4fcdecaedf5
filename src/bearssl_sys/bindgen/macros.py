"""Preprocessor constant extraction.

Reads `cc -dM -E` output and keeps the object-like macros whose names pass
the variable allowlist and whose bodies evaluate to integers. Macros that
alias functions (`#define br_sha256_update br_sha224_update`) are not
constants and are dropped here; the shim layer covers them.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from .cexpr import STANDARD_TYPEDEFS, eval_text
from .options import MACRO_TYPE_SIGNED

_DEFINE = re.compile(r"^\s*#\s*define\s+([A-Za-z_][A-Za-z0-9_]*)(\(?)(.*)$")

INT32_MIN, INT32_MAX = -(2 ** 31), 2 ** 31 - 1
INT64_MIN, INT64_MAX = -(2 ** 63), 2 ** 63 - 1
UINT32_MAX = 2 ** 32 - 1
UINT64_MAX = 2 ** 64 - 1


@dataclass(frozen=True)
class MacroConstant:
    """An integer preprocessor constant and the C type it is exposed as."""

    name: str
    value: int
    ctype: str


def constant_type(value: int, style: str = MACRO_TYPE_SIGNED, fit: bool = False) -> Optional[str]:
    """Pick the C type for a macro constant.

    Signed style uses int unless the value needs a wider type. With fit
    enabled the narrowest fitting type of the style is used instead of int.

    Returns:
        C type name, or None if no 64-bit type can hold the value
    """
    if style == MACRO_TYPE_SIGNED:
        if fit and -128 <= value <= 127:
            return "signed char"
        if fit and -(2 ** 15) <= value < 2 ** 15:
            return "short"
        if INT32_MIN <= value <= INT32_MAX:
            return "int"
        if INT64_MIN <= value <= INT64_MAX:
            return "long long"
        if 0 <= value <= UINT64_MAX:
            return "unsigned long long"
        return None

    if value < 0:
        return constant_type(value, MACRO_TYPE_SIGNED, fit)
    if fit and value <= 255:
        return "unsigned char"
    if fit and value <= 65535:
        return "unsigned short"
    if value <= UINT32_MAX:
        return "unsigned int"
    if value <= UINT64_MAX:
        return "unsigned long long"
    return None


class MacroTable:
    """Object-like macro definitions from one preprocessor run."""

    def __init__(self, bodies: Dict[str, str], typedefs: Iterable[str] = ()):
        self.bodies = bodies
        # Type names allowed in casts inside macro bodies
        self.typedefs = STANDARD_TYPEDEFS.union(typedefs)
        self._cache: Dict[str, Optional[int]] = {}
        self._resolving: set = set()

    @classmethod
    def parse(cls, defines: str, typedefs: Iterable[str] = ()) -> "MacroTable":
        """Parse `-dM` output, skipping function-like macros.

        typedefs names the types, beyond the standard ones, that macro
        bodies may cast to.
        """
        bodies: Dict[str, str] = {}
        for line in defines.splitlines():
            match = _DEFINE.match(line)
            if match is None or match.group(2):
                continue
            bodies[match.group(1)] = match.group(3).strip()
        return cls(bodies, typedefs)

    def value(self, name: str) -> Optional[int]:
        """Integer value of a macro, following references to other macros."""
        if name in self._cache:
            return self._cache[name]
        if name not in self.bodies or name in self._resolving:
            return None

        self._resolving.add(name)
        try:
            result = eval_text(self.bodies[name], self.value, self.typedefs)
        finally:
            self._resolving.discard(name)

        self._cache[name] = result
        return result

    def constants(
        self,
        allow: Callable[[str], bool],
        style: str = MACRO_TYPE_SIGNED,
        fit: bool = False,
    ) -> List[MacroConstant]:
        """Integer constants whose names pass allow, sorted by name."""
        result = []
        for name in sorted(self.bodies):
            if not allow(name):
                continue
            value = self.value(name)
            if value is None:
                continue
            ctype = constant_type(value, style, fit)
            if ctype is None:
                continue
            result.append(MacroConstant(name, value, ctype))
        return result
