"""Access to the compiled BearSSL extension."""

import importlib
from types import ModuleType

EXTENSION_MODULE = "bearssl_sys._bearssl"

_extension = None


def extension() -> ModuleType:
    """Import the compiled extension on first use."""
    global _extension
    if _extension is None:
        try:
            _extension = importlib.import_module(EXTENSION_MODULE)
        except ImportError as e:
            raise ImportError(
                f"{EXTENSION_MODULE} is not built. Run: bearssl-sys build --compile"
            ) from e
    return _extension


def lib():
    """The extension's `lib` object (BearSSL functions and constants)."""
    return extension().lib


def ffi():
    """The extension's `ffi` object."""
    return extension().ffi
