"""Environment configuration for bearssl-sys builds.

Every decision the build makes is steered by a fixed set of environment
variables. They are read exactly once into an EnvironmentConfiguration,
which is then handed to the resolver, the source builders and the binding
generator. Nothing downstream looks at os.environ again.
"""

import os
import platform
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple


class ConfigurationError(Exception):
    """Raised when the build configuration cannot be read."""

    pass


# The env var that has the directory we search for precompiled BearSSL files.
PRECOMPILED_PATH_VAR = "BEARSSL_PRECOMPILED_PATH"
# The env var that has the directory we search for BearSSL source files.
SOURCE_PATH_VAR = "BEARSSL_SOURCE_PATH"
# The env var that has the directory we search for BearSSL header files.
INCLUDE_PATH_VAR = "BEARSSL_INCLUDE_PATH"
# The env var that has the git hash we check out if neither
# BEARSSL_PRECOMPILED_PATH nor BEARSSL_SOURCE_PATH are provided.
GIT_HASH_VAR = "BEARSSL_GIT_HASH"
TARGET_VAR = "BEARSSL_TARGET"
TARGET_OS_VAR = "BEARSSL_TARGET_OS"
OUT_DIR_VAR = "BEARSSL_OUT_DIR"
BUILD_STRATEGY_VAR = "BEARSSL_BUILD_STRATEGY"
# Extra preprocessor arguments for binding generation, shell-quoted.
BINDGEN_ARGS_VAR = "BEARSSL_BINDGEN_ARGS"

CC_VAR = "CC"
AR_VAR = "AR"
MAKE_VAR = "MAKE"

STRATEGY_DIRECT = "direct"
STRATEGY_MAKE = "make"
BUILD_STRATEGIES = (STRATEGY_DIRECT, STRATEGY_MAKE)

_MACHINE_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "i386": "i686",
    "i586": "i686",
}


def path_str(path: Path) -> str:
    """Convert a path to a string that can be handed to external tools.

    Args:
        path: Path to convert

    Returns:
        The path as a string

    Raises:
        ConfigurationError: If the path holds undecodable bytes
    """
    text = os.fspath(path)
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ConfigurationError(f"Path is not valid UTF-8: {text!r}") from e
    return text


def host_target_triple(
    machine: Optional[str] = None, system: Optional[str] = None
) -> str:
    """Derive a target triple for the running interpreter.

    Args:
        machine: Machine name (defaults to platform.machine())
        system: Platform name (defaults to sys.platform)

    Returns:
        Target triple such as 'x86_64-unknown-linux-gnu'

    Raises:
        ConfigurationError: If the host platform has no known triple
    """
    machine = (machine if machine is not None else platform.machine()).lower()
    system = system if system is not None else sys.platform
    machine = _MACHINE_ALIASES.get(machine, machine)

    if not machine:
        raise ConfigurationError(
            f"Cannot determine host architecture; set {TARGET_VAR}"
        )

    if system.startswith("linux"):
        return f"{machine}-unknown-linux-gnu"
    if system == "darwin":
        return f"{machine}-apple-darwin"
    if system == "win32":
        return f"{machine}-pc-windows-msvc"
    if system.startswith("freebsd"):
        return f"{machine}-unknown-freebsd"

    raise ConfigurationError(
        f"No target triple known for host platform '{system}'; set {TARGET_VAR}"
    )


def target_os(triple: str) -> str:
    """Extract the operating system name from a target triple.

    'x86_64-apple-darwin' -> 'macos', 'aarch64-apple-ios-sim' -> 'ios',
    'x86_64-unknown-linux-gnu' -> 'linux'.
    """
    parts = triple.split("-")
    if len(parts) < 3:
        return parts[-1]
    system = parts[2]
    if system == "darwin":
        return "macos"
    return system


@dataclass(frozen=True)
class EnvironmentConfiguration:
    """Read-only snapshot of the variables that steer a build.

    Absent variables are None; absence is a valid state that makes the
    resolver fall back to its next tier.
    """

    project_dir: Path
    out_dir: Path
    target: str
    target_os: str
    precompiled_path: Optional[Path] = None
    source_path: Optional[Path] = None
    include_path: Optional[Path] = None
    git_hash: Optional[str] = None
    build_strategy: str = STRATEGY_DIRECT
    cc: str = "cc"
    ar: str = "ar"
    make: str = "make"
    bindgen_args: Tuple[str, ...] = field(default=())
    consulted: Tuple[str, ...] = field(default=())

    @classmethod
    def from_environ(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        project_dir: Optional[Path] = None,
    ) -> "EnvironmentConfiguration":
        """Build a configuration from an environment mapping.

        Args:
            environ: Environment mapping. If None, uses os.environ.
            project_dir: Project directory. If None, uses current directory.

        Returns:
            EnvironmentConfiguration instance

        Raises:
            ConfigurationError: If a variable holds an unusable value
        """
        if environ is None:
            environ = os.environ
        if project_dir is None:
            project_dir = Path.cwd()
        project_dir = Path(project_dir).resolve()

        consulted = []

        def read(name: str) -> Optional[str]:
            consulted.append(name)
            value = environ.get(name)
            if value is None or value == "":
                return None
            return value

        def read_path(name: str) -> Optional[Path]:
            value = read(name)
            if value is None:
                return None
            path = Path(value).expanduser()
            path_str(path)
            return path

        precompiled_path = read_path(PRECOMPILED_PATH_VAR)
        source_path = read_path(SOURCE_PATH_VAR)
        include_path = read_path(INCLUDE_PATH_VAR)
        git_hash = read(GIT_HASH_VAR)

        target = read(TARGET_VAR) or host_target_triple()
        os_name = read(TARGET_OS_VAR) or target_os(target)

        out_dir = read_path(OUT_DIR_VAR)
        if out_dir is None:
            out_dir = project_dir / ".bearssl" / "build"
        out_dir = out_dir.resolve()

        strategy = (read(BUILD_STRATEGY_VAR) or STRATEGY_DIRECT).lower()
        if strategy not in BUILD_STRATEGIES:
            raise ConfigurationError(
                f"{BUILD_STRATEGY_VAR} must be one of "
                f"{', '.join(BUILD_STRATEGIES)}, got '{strategy}'"
            )

        bindgen_args = read(BINDGEN_ARGS_VAR) or ""
        try:
            extra_args = tuple(shlex.split(bindgen_args))
        except ValueError as e:
            raise ConfigurationError(f"Cannot parse {BINDGEN_ARGS_VAR}: {e}") from e

        return cls(
            project_dir=project_dir,
            out_dir=out_dir,
            target=target,
            target_os=os_name,
            precompiled_path=precompiled_path,
            source_path=source_path,
            include_path=include_path,
            git_hash=git_hash,
            build_strategy=strategy,
            cc=read(CC_VAR) or "cc",
            ar=read(AR_VAR) or "ar",
            make=read(MAKE_VAR) or "make",
            bindgen_args=extra_args,
            consulted=tuple(consulted),
        )

    @property
    def deps_dir(self) -> Path:
        """Directory the baked-in BearSSL sources are cloned into."""
        return self.out_dir / "deps" / "bearssl"

    @property
    def bindings_path(self) -> Path:
        """Path of the generated bindings module."""
        return self.out_dir / "bindings.py"

    def snapshot(self) -> Dict[str, Optional[str]]:
        """Return the consulted variables and their effective values."""
        values = {
            PRECOMPILED_PATH_VAR: self.precompiled_path,
            SOURCE_PATH_VAR: self.source_path,
            INCLUDE_PATH_VAR: self.include_path,
            GIT_HASH_VAR: self.git_hash,
            TARGET_VAR: self.target,
            TARGET_OS_VAR: self.target_os,
            OUT_DIR_VAR: self.out_dir,
            BUILD_STRATEGY_VAR: self.build_strategy,
            CC_VAR: self.cc,
            AR_VAR: self.ar,
            MAKE_VAR: self.make,
            BINDGEN_ARGS_VAR: shlex.join(self.bindgen_args) if self.bindgen_args else None,
        }
        return {
            name: (None if values.get(name) is None else str(values[name]))
            for name in self.consulted
        }
