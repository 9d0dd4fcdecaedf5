"""Linker directives handed to the cffi build.

A source builder (or a precompiled directory) tells the downstream
extension build which static library to link and where to find it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

LIBRARY_NAME = "bearssl"

# Symbols of the host interpreter are only resolved when the extension
# is loaded.
MACOS_RELAXED_LINK_ARGS = ["-undefined", "dynamic_lookup"]


@dataclass
class LinkDirectives:
    """Libraries, search paths and extra arguments for the final link."""

    libraries: List[str] = field(default_factory=list)
    library_dirs: List[Path] = field(default_factory=list)
    extra_link_args: List[str] = field(default_factory=list)

    @classmethod
    def static(cls, library_dir: Path, target_os: str) -> "LinkDirectives":
        """Directives for linking libbearssl.a found in library_dir.

        Args:
            library_dir: Directory holding the archive
            target_os: Operating system of the target ('macos', 'linux', ...)

        Returns:
            LinkDirectives instance
        """
        extra = list(MACOS_RELAXED_LINK_ARGS) if target_os == "macos" else []
        return cls(
            libraries=[LIBRARY_NAME],
            library_dirs=[Path(library_dir)],
            extra_link_args=extra,
        )

    def as_setuptools_kwargs(self) -> dict:
        """Keyword arguments for FFI.set_source / setuptools.Extension."""
        return {
            "libraries": list(self.libraries),
            "library_dirs": [str(d) for d in self.library_dirs],
            "extra_link_args": list(self.extra_link_args),
        }
