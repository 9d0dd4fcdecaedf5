"""
Translation unit discovery.

BearSSL keeps every translation unit under src/, spread over one level of
feature directories (src/hash, src/ssl, src/x509, ...). The scanner expands
a glob pattern relative to the source root and insists on a non-empty
result.
"""

from pathlib import Path
from typing import List

# Every BearSSL translation unit.
BEARSSL_SOURCES_PATTERN = "src/**/*.c"


class PatternMatchError(Exception):
    """Raised when a source glob is malformed or matches nothing."""
    pass


class SourceScanner:
    """Expands glob patterns into sorted lists of source files."""

    @staticmethod
    def find(root: Path, pattern: str = BEARSSL_SOURCES_PATTERN) -> List[Path]:
        """
        Find files under root matching pattern.

        Args:
            root: Directory the pattern is relative to
            pattern: Glob pattern ('**' matches any number of directories)

        Returns:
            Sorted list of matching file paths

        Raises:
            PatternMatchError: If the pattern is invalid or matches nothing
        """
        root = Path(root)
        try:
            matches = sorted(p for p in root.glob(pattern) if p.is_file())
        except (ValueError, NotImplementedError) as e:
            raise PatternMatchError(f"Invalid source pattern '{pattern}': {e}") from e

        if not matches:
            raise PatternMatchError(f"No files match '{pattern}' under {root}")

        return matches
