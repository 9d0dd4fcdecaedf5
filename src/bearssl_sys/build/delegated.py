"""Delegated compilation of BearSSL.

Runs BearSSL's own Makefile in the source directory. The upstream build
leaves its outputs in <source>/build, which becomes the link search path.
"""

from pathlib import Path

from ..config import EnvironmentConfiguration
from ..packages.process import run_process
from .compiler import BuildError, CompileResult
from .link_directives import LIBRARY_NAME, LinkDirectives

# Output directory of BearSSL's Makefile, relative to the source root.
MAKE_BUILD_DIR = "build"


class MakeBuilder:
    """Builds libbearssl.a with the upstream Makefile."""

    def __init__(self, config: EnvironmentConfiguration, show_progress: bool = True):
        self.config = config
        self.show_progress = show_progress

    def build(self, source_dir: Path) -> CompileResult:
        """Run make in source_dir.

        Raises:
            ExternalProcessError: If make exits nonzero
            BuildError: If make succeeded but no archive was produced
        """
        if self.show_progress:
            print(f"building BearSSL at {source_dir} with {self.config.make}")

        run_process(
            [self.config.make], cwd=source_dir, capture=not self.show_progress
        ).check("compilation")

        build_dir = source_dir / MAKE_BUILD_DIR
        archive = build_dir / f"lib{LIBRARY_NAME}.a"
        if not archive.exists():
            raise BuildError(f"make did not produce {archive}")

        return CompileResult(
            archive_path=archive,
            object_files=[],
            link=LinkDirectives.static(build_dir, self.config.target_os),
        )
