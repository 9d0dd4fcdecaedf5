"""Archive Creator.

This module handles creating the static BearSSL archive (libbearssl.a) from
compiled object files using the archiver tool (ar).
"""

from pathlib import Path
from typing import List

from ..packages.process import run_process


class ArchiveError(Exception):
    """Raised when archive creation operations fail."""
    pass


class ArchiveCreator:
    """Creates static library archives from object files."""

    def __init__(self, ar: str = "ar", show_progress: bool = True):
        """Initialize archive creator.

        Args:
            ar: Archiver executable
            show_progress: Whether to show archive creation progress
        """
        self.ar = ar
        self.show_progress = show_progress

    def create_archive(self, archive_path: Path, object_files: List[Path]) -> Path:
        """Create static library archive from object files.

        Args:
            archive_path: Path for output .a file
            object_files: List of object file paths to archive

        Returns:
            Path to generated archive file

        Raises:
            ArchiveError: If no objects were given or no archive was produced
            ExternalProcessError: If the archiver exits nonzero
        """
        if not object_files:
            raise ArchiveError("No object files provided for archive")

        archive_path.parent.mkdir(parents=True, exist_ok=True)

        # A stale archive would keep members of files that no longer exist
        if archive_path.exists():
            archive_path.unlink()

        # 'rcs' flags: r=insert/replace, c=create, s=index (ranlib)
        cmd = [self.ar, "rcs", str(archive_path)]
        cmd.extend(str(obj) for obj in object_files)

        if self.show_progress:
            print(f"Creating {archive_path.name} from {len(object_files)} object files...")

        run_process(cmd).check("compilation")

        if not archive_path.exists():
            raise ArchiveError(f"Archive was not created: {archive_path}")

        if self.show_progress:
            size = archive_path.stat().st_size
            print(f"Created {archive_path.name}: {size:,} bytes")

        return archive_path
