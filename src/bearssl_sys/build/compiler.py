"""Direct compilation of BearSSL.

Compiles every BearSSL translation unit with the C compiler and archives
the objects into libbearssl.a inside the build output directory.

Design:
    - One compiler invocation per translation unit, size-optimized (-Os)
    - Objects mirror the source tree under <out_dir>/obj
    - The first failing invocation aborts the build with its exit status
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List

from tqdm import tqdm

from ..config import EnvironmentConfiguration, path_str
from ..packages.process import run_process
from .archive_creator import ArchiveCreator
from .link_directives import LIBRARY_NAME, LinkDirectives
from .source_scanner import BEARSSL_SOURCES_PATTERN, SourceScanner


class BuildError(Exception):
    """Raised when a source build does not produce its artifacts."""
    pass


@dataclass
class CompileResult:
    """Result of building BearSSL from source."""

    archive_path: Path
    object_files: List[Path]
    link: LinkDirectives


class DirectCompiler:
    """Builds libbearssl.a by invoking the C compiler directly.

    Example usage:
        compiler = DirectCompiler(config)
        result = compiler.build(Path("deps/bearssl"))
        print(result.archive_path)
    """

    OPT_LEVEL = "-Os"

    def __init__(self, config: EnvironmentConfiguration, show_progress: bool = True):
        """Initialize direct compiler.

        Args:
            config: Build configuration (compiler, archiver, output dir)
            show_progress: Whether to show a progress bar while compiling
        """
        self.config = config
        self.show_progress = show_progress

    @property
    def obj_dir(self) -> Path:
        """Directory for compiled object files."""
        return self.config.out_dir / "obj"

    @property
    def archive_path(self) -> Path:
        """Path of the static archive this compiler produces."""
        return self.config.out_dir / f"lib{LIBRARY_NAME}.a"

    def get_compile_flags(self, source_dir: Path) -> List[str]:
        """Flags shared by every translation unit."""
        flags = ["-c", self.OPT_LEVEL]
        if self.config.target_os != "windows":
            # The archive ends up inside a Python extension module
            flags.append("-fPIC")
        flags.append(f"-I{path_str(source_dir / 'inc')}")
        flags.append(f"-I{path_str(source_dir / 'src')}")
        return flags

    def build(self, source_dir: Path) -> CompileResult:
        """Compile BearSSL sources into a static archive.

        Args:
            source_dir: Root of the BearSSL source tree

        Returns:
            CompileResult with archive, objects and link directives

        Raises:
            PatternMatchError: If no translation units are found
            ExternalProcessError: If a compiler or archiver call fails
        """
        sources = SourceScanner.find(source_dir, BEARSSL_SOURCES_PATTERN)
        flags = self.get_compile_flags(source_dir)

        if self.show_progress:
            print(f"compiling BearSSL at {source_dir}")

        object_files = []
        with tqdm(
            total=len(sources),
            unit="file",
            desc="Compiling BearSSL",
            disable=not self.show_progress,
        ) as progress:
            for source in sources:
                object_files.append(self.compile_source(source_dir, source, flags))
                progress.update(1)

        ArchiveCreator(self.config.ar, self.show_progress).create_archive(
            self.archive_path, object_files
        )

        return CompileResult(
            archive_path=self.archive_path,
            object_files=object_files,
            link=LinkDirectives.static(self.config.out_dir, self.config.target_os),
        )

    def compile_source(self, source_dir: Path, source: Path, flags: List[str]) -> Path:
        """Compile a single translation unit.

        Args:
            source_dir: Root of the BearSSL source tree
            source: Translation unit to compile
            flags: Shared compile flags

        Returns:
            Path to the object file
        """
        relative = source.relative_to(source_dir)
        obj = self.obj_dir / relative.with_suffix(".o")
        obj.parent.mkdir(parents=True, exist_ok=True)

        cmd = [self.config.cc]
        cmd.extend(flags)
        cmd.extend([path_str(source), "-o", path_str(obj)])

        run_process(cmd).check("compilation")
        return obj
