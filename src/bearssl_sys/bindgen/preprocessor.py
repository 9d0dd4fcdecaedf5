"""C preprocessor driver for header translation.

The header set is wrapped in a single translation unit and run through the
C compiler twice: once with -E for the declarations and once with -dM -E
for the macro definitions. System headers are replaced by the minimal
stand-ins in fake_libc/ so the output stays plain C99.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from ..config import path_str
from ..packages.process import run_process

log = logging.getLogger(__name__)

FAKE_LIBC_DIR = Path(__file__).resolve().parent / "fake_libc"

WRAPPER_NAME = "bindgen_wrapper.c"

# Compiler extensions pycparser does not understand.
_EXTENSION_DEFINES = [
    "-D__attribute__(x)=",
    "-D__extension__=",
    "-D__restrict=",
    "-D__restrict__=",
    "-D__inline=inline",
    "-D__inline__=inline",
    "-D__asm__(x)=",
]


class TranslationError(Exception):
    """Raised when the header set cannot be translated."""
    pass


@dataclass
class PreprocessedHeaders:
    """Preprocessor output for one header set."""

    declarations: str
    defines: str
    wrapper: Path


class Preprocessor:
    """Runs the C preprocessor over the header set."""

    def __init__(self, cc: str = "cc", extra_args: Sequence[str] = ()):
        """Initialize preprocessor.

        Args:
            cc: C compiler used as preprocessor
            extra_args: Additional arguments appended to every invocation
        """
        self.cc = cc
        self.extra_args = list(extra_args)

    def base_command(self, include_path: Path) -> List[str]:
        cmd = [self.cc, "-x", "c", "-std=c99", "-nostdinc"]
        cmd.extend(_EXTENSION_DEFINES)
        cmd.extend(["-I", path_str(FAKE_LIBC_DIR)])
        cmd.extend(["-I", path_str(include_path)])
        cmd.extend(self.extra_args)
        return cmd

    def write_wrapper(self, headers: Sequence[str], work_dir: Path) -> Path:
        """Write the translation unit that includes every header in order."""
        work_dir.mkdir(parents=True, exist_ok=True)
        wrapper = work_dir / WRAPPER_NAME
        lines = [f'#include "{header}"' for header in headers]
        wrapper.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return wrapper

    def run(
        self, include_path: Path, headers: Sequence[str], work_dir: Path
    ) -> PreprocessedHeaders:
        """Preprocess the header set.

        Args:
            include_path: Directory holding the headers
            headers: Header file names, in include order
            work_dir: Directory for the wrapper translation unit

        Returns:
            PreprocessedHeaders with declarations and macro definitions

        Raises:
            TranslationError: If the include path or a header is missing,
                or the preprocessor fails
        """
        include_path = Path(include_path)
        if not include_path.is_dir():
            raise TranslationError(f"Include path not found: {include_path}")

        missing = [h for h in headers if not (include_path / h).is_file()]
        if missing:
            raise TranslationError(
                f"Headers not found in {include_path}: {', '.join(missing)}"
            )

        wrapper = self.write_wrapper(headers, work_dir)
        base = self.base_command(include_path)

        declarations = self._invoke(base + ["-E", "-P", path_str(wrapper)])
        defines = self._invoke(base + ["-dM", "-E", path_str(wrapper)])

        return PreprocessedHeaders(declarations, defines, wrapper)

    def _invoke(self, cmd: List[str]) -> str:
        result = run_process(cmd)
        if not result.ok:
            raise TranslationError(
                f"Preprocessor failed (exit status {result.returncode}): "
                f"{' '.join(cmd)}\n{result.stderr.strip()}"
            )
        return result.stdout
