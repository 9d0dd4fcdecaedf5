"""
Build system components for bearssl-sys.

This module provides:
- Translation unit discovery
- Direct compilation (cc + ar) and delegated compilation (make)
- Linker directives for the cffi extension
- Build orchestration
"""

from .archive_creator import ArchiveCreator, ArchiveError
from .compiler import BuildError, CompileResult, DirectCompiler
from .delegated import MakeBuilder
from .link_directives import LinkDirectives
from .orchestrator import (
    BuildOrchestrator,
    BuildOrchestratorError,
    BuildResult,
    create_builder,
)
from .source_scanner import PatternMatchError, SourceScanner

__all__ = [
    "ArchiveCreator",
    "ArchiveError",
    "BuildError",
    "CompileResult",
    "DirectCompiler",
    "MakeBuilder",
    "LinkDirectives",
    "BuildOrchestrator",
    "BuildOrchestratorError",
    "BuildResult",
    "create_builder",
    "PatternMatchError",
    "SourceScanner",
]
