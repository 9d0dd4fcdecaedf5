"""Build manifest for bearssl-sys.

Records where BearSSL came from and how it was linked, next to the
generated bindings, so a later cffi compile (or a human) can see what the
last build used.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional


class BuildInfo:
    """Metadata about one bearssl-sys build."""

    def __init__(
        self,
        source_kind: str,
        source_dir: str,
        include_dir: str,
        revision: Optional[str],
        target: str,
        strategy: Optional[str],
        libraries: List[str],
        library_dirs: List[str],
        extra_link_args: List[str],
        environment: Dict[str, Optional[str]],
    ):
        """Initialize build info.

        Args:
            source_kind: 'precompiled' or 'raw'
            source_dir: Resolved BearSSL directory
            include_dir: Header directory handed to the binding generator
            revision: Checked-out git revision, if the sources were fetched
            target: Target triple
            strategy: Source builder strategy used, None when nothing was built
            libraries: Libraries to link against
            library_dirs: Link search paths
            extra_link_args: Additional linker arguments
            environment: Consulted environment variables and their values
        """
        self.source_kind = source_kind
        self.source_dir = source_dir
        self.include_dir = include_dir
        self.revision = revision
        self.target = target
        self.strategy = strategy
        self.libraries = libraries
        self.library_dirs = library_dirs
        self.extra_link_args = extra_link_args
        self.environment = environment

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "source_kind": self.source_kind,
            "source_dir": self.source_dir,
            "include_dir": self.include_dir,
            "revision": self.revision,
            "target": self.target,
            "strategy": self.strategy,
            "libraries": self.libraries,
            "library_dirs": self.library_dirs,
            "extra_link_args": self.extra_link_args,
            "environment": self.environment,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "BuildInfo":
        """Create from dictionary."""
        return cls(
            source_kind=data["source_kind"],
            source_dir=data["source_dir"],
            include_dir=data["include_dir"],
            revision=data.get("revision"),
            target=data["target"],
            strategy=data.get("strategy"),
            libraries=data["libraries"],
            library_dirs=data["library_dirs"],
            extra_link_args=data.get("extra_link_args", []),
            environment=data.get("environment", {}),
        )

    def save(self, path: Path) -> None:
        """Save build info to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> "BuildInfo":
        """Load build info from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)
