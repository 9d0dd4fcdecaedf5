"""
Build orchestration for bearssl-sys.

This module runs the whole single-pass pipeline:
- Source resolution (precompiled directory, local sources, pinned clone)
- Compilation of raw sources (direct compiler calls or upstream make)
- Binding generation with target quirks applied
- Build manifest next to the generated module
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..bindgen import BindgenOptions, BindingGenerator, TranslationError, apply_target_quirks
from ..config import STRATEGY_MAKE, ConfigurationError, EnvironmentConfiguration, path_str
from ..packages import BuildInfo, DependencyResolver, Precompiled, Raw, SourceLocation
from ..packages.process import ExternalProcessError
from .archive_creator import ArchiveError
from .compiler import BuildError, DirectCompiler
from .delegated import MAKE_BUILD_DIR, MakeBuilder
from .link_directives import LinkDirectives
from .source_scanner import PatternMatchError

BUILD_INFO_NAME = "build_info.json"


@dataclass
class BuildResult:
    """Result of a complete bearssl-sys build."""

    location: SourceLocation
    include_path: Path
    link: LinkDirectives
    bindings_path: Path
    layout_tests: bool
    revision: Optional[str]
    build_time: float


class BuildOrchestratorError(Exception):
    """Exception raised when a build stage fails."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"{stage} failed: {message}")


def create_builder(
    config: EnvironmentConfiguration, show_progress: bool = True
) -> Union[DirectCompiler, MakeBuilder]:
    """Source builder for the configured strategy."""
    if config.build_strategy == STRATEGY_MAKE:
        return MakeBuilder(config, show_progress)
    return DirectCompiler(config, show_progress)


def precompiled_link(directory: Path, target_os: str) -> LinkDirectives:
    """Link directives for a precompiled BearSSL directory."""
    build_dir = directory / MAKE_BUILD_DIR
    return LinkDirectives.static(build_dir if build_dir.is_dir() else directory, target_os)


class BuildOrchestrator:
    """
    Orchestrates resolution, compilation and binding generation.

    Example usage:
        config = EnvironmentConfiguration.from_environ()
        result = BuildOrchestrator(config, verbose=True).build()
        print(f"Bindings: {result.bindings_path}")
    """

    def __init__(self, config: EnvironmentConfiguration, verbose: bool = False):
        """
        Initialize build orchestrator.

        Args:
            config: Build configuration
            verbose: Enable verbose output
        """
        self.config = config
        self.verbose = verbose

    def build(self) -> BuildResult:
        """
        Execute the complete build.

        Returns:
            BuildResult describing the generated module and how to link

        Raises:
            BuildOrchestratorError: If any stage fails
        """
        start_time = time.time()
        config = self.config

        if self.verbose:
            print("[1/4] Resolving BearSSL sources...")

        resolver = DependencyResolver(config, show_progress=self.verbose)
        try:
            location = resolver.resolve()
        except (ExternalProcessError, OSError) as e:
            raise BuildOrchestratorError("resolution", str(e)) from e

        if self.verbose:
            print(f"      Using {type(location).__name__.lower()} BearSSL at {location.directory}")
            print("[2/4] Building BearSSL...")

        strategy = None
        try:
            if isinstance(location, Precompiled):
                link = precompiled_link(location.directory, config.target_os)
                if self.verbose:
                    print("      Precompiled, nothing to build")
            elif isinstance(location, Raw):
                strategy = config.build_strategy
                link = create_builder(config, show_progress=self.verbose).build(location.directory).link
            else:
                raise TypeError(f"Unknown source location: {location!r}")
        except (ExternalProcessError, PatternMatchError, ArchiveError, BuildError,
                ConfigurationError, OSError) as e:
            raise BuildOrchestratorError("compilation", str(e)) from e

        include_path = config.include_path or location.directory / "inc"

        if self.verbose:
            print(f"[3/4] Generating bindings from {include_path}...")

        options = apply_target_quirks(
            BindgenOptions(target=config.target, cc=config.cc, clang_args=config.bindgen_args),
            config.target,
        )
        if self.verbose and not options.layout_tests:
            print(f"      Layout tests disabled for {config.target}")

        generator = BindingGenerator(options, verbose=self.verbose)
        try:
            bindings = generator.generate(include_path, config.out_dir / "bindgen")
            generator.write(bindings, config.bindings_path)
        except (TranslationError, ConfigurationError, OSError) as e:
            raise BuildOrchestratorError("generation", str(e)) from e

        if self.verbose:
            print("[4/4] Writing build info...")

        info = BuildInfo(
            source_kind=type(location).__name__.lower(),
            source_dir=path_str(location.directory),
            include_dir=path_str(include_path),
            revision=resolver.revision,
            target=config.target,
            strategy=strategy,
            libraries=list(link.libraries),
            library_dirs=[path_str(d) for d in link.library_dirs],
            extra_link_args=list(link.extra_link_args),
            environment=config.snapshot(),
        )
        try:
            info.save(config.out_dir / BUILD_INFO_NAME)
        except OSError as e:
            raise BuildOrchestratorError("generation", f"Failed to write build info: {e}") from e

        return BuildResult(
            location=location,
            include_path=include_path,
            link=link,
            bindings_path=config.bindings_path,
            layout_tests=options.layout_tests,
            revision=resolver.revision,
            build_time=time.time() - start_time,
        )
