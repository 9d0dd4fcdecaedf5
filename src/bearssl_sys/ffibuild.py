"""cffi extension build from a bearssl-sys build result.

The generated bindings module supplies the cdef; the build result supplies
the include path and linker directives.
"""

import importlib.util
from pathlib import Path
from types import ModuleType
from typing import Optional

import cffi

from .build import BuildResult
from .config import path_str
from .native import EXTENSION_MODULE

EXTENSION_SOURCE = "#include <bearssl.h>\n"


def load_bindings(path: Path) -> ModuleType:
    """Import a generated bindings module from its file path."""
    spec = importlib.util.spec_from_file_location("_bearssl_bindings", str(path))
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load bindings from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def make_ffibuilder(
    result: BuildResult, module_name: str = EXTENSION_MODULE
) -> cffi.FFI:
    """Create the cffi builder for the BearSSL extension.

    Args:
        result: Result of BuildOrchestrator.build()
        module_name: Dotted name of the extension module to produce

    Returns:
        cffi.FFI ready for compile()
    """
    bindings = load_bindings(result.bindings_path)

    ffibuilder = cffi.FFI()
    ffibuilder.cdef(bindings.CDEF)
    ffibuilder.set_source(
        module_name,
        EXTENSION_SOURCE,
        include_dirs=[path_str(result.include_path)],
        **result.link.as_setuptools_kwargs(),
    )
    return ffibuilder


def compile_extension(
    result: BuildResult, target_dir: Optional[Path] = None, verbose: bool = False
) -> Path:
    """Compile the extension next to the bearssl_sys package.

    Args:
        result: Result of BuildOrchestrator.build()
        target_dir: Directory that contains the bearssl_sys package
        verbose: Show compiler output

    Returns:
        Path to the compiled extension module
    """
    if target_dir is None:
        target_dir = Path(__file__).resolve().parent.parent
    ffibuilder = make_ffibuilder(result)
    return Path(ffibuilder.compile(tmpdir=str(target_dir), verbose=verbose))
