"""BearSSL source resolution.

The resolver walks an ordered fallback chain and produces exactly one
SourceLocation per build:

1. BEARSSL_PRECOMPILED_PATH, if set and present on disk -> Precompiled
2. BEARSSL_SOURCE_PATH, if set and present on disk -> Raw
3. A clone of the upstream repository in the build cache, checked out at
   BEARSSL_GIT_HASH (or the pinned revision) -> Raw

Only the last tier touches the network or writes to disk.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..config import EnvironmentConfiguration
from .process import run_process

log = logging.getLogger(__name__)

BEARSSL_GIT_URL = "https://www.bearssl.org/git/BearSSL"

# The git hash we check out if BEARSSL_GIT_HASH is unset.
#
# This is master as of 2023/06/05.
BEARSSL_GIT_HASH = "79c060eea3eea1257797f15ea1608a9a9923aa6f"

# A cache directory holding this file is treated as an existing clone.
BUILD_DESCRIPTOR = "Makefile"


@dataclass(frozen=True)
class Precompiled:
    """A directory that already holds built artifacts and headers."""

    directory: Path


@dataclass(frozen=True)
class Raw:
    """A directory that holds buildable BearSSL sources."""

    directory: Path


SourceLocation = Union[Precompiled, Raw]


class DependencyResolver:
    """Decides where BearSSL comes from for this build."""

    def __init__(self, config: EnvironmentConfiguration, show_progress: bool = True):
        """Initialize resolver.

        Args:
            config: Build configuration
            show_progress: Whether to print clone/fetch progress
        """
        self.config = config
        self.show_progress = show_progress
        self.revision: Optional[str] = None

    def resolve(self) -> SourceLocation:
        """Resolve the BearSSL source location.

        Returns:
            Precompiled or Raw location

        Raises:
            ExternalProcessError: If git clone/fetch/checkout fails
        """
        self.revision = None

        path = self._probe(self.config.precompiled_path, "precompiled")
        if path is not None:
            return Precompiled(path)

        path = self._probe(self.config.source_path, "source")
        if path is not None:
            return Raw(path)

        return Raw(self.fetch_sources())

    def _probe(self, path: Optional[Path], label: str) -> Optional[Path]:
        if path is None:
            return None
        if path.exists():
            log.info("using %s BearSSL at %s", label, path)
            return path
        log.warning("%s path %s does not exist, falling back", label, path)
        return None

    def fetch_sources(self) -> Path:
        """Clone or update the cached checkout and pin its revision.

        Returns:
            Path to the checked-out source tree
        """
        path = self.config.deps_dir

        if not (path / BUILD_DESCRIPTOR).exists():
            if self.show_progress:
                print("cloning BearSSL")
            path.parent.mkdir(parents=True, exist_ok=True)
            run_process(
                ["git", "clone", BEARSSL_GIT_URL, path], capture=False
            ).check("resolution")
        else:
            if self.show_progress:
                print("fetching BearSSL")
            run_process(["git", "fetch"], cwd=path, capture=False).check(
                "resolution"
            )

        revision = self.config.git_hash or BEARSSL_GIT_HASH
        run_process(["git", "checkout", revision], cwd=path, capture=False).check(
            "resolution"
        )
        self.revision = revision

        return path
