"""Package acquisition for bearssl-sys.

This module decides where BearSSL comes from (precompiled directory, local
source tree, or a pinned clone of upstream) and runs the external tools
needed to get it there.
"""

from .build_info import BuildInfo
from .process import ExternalProcessError, ProcessResult, run_process
from .resolver import (
    BEARSSL_GIT_HASH,
    BEARSSL_GIT_URL,
    DependencyResolver,
    Precompiled,
    Raw,
    SourceLocation,
)

__all__ = [
    "BuildInfo",
    "DependencyResolver",
    "Precompiled",
    "Raw",
    "SourceLocation",
    "BEARSSL_GIT_HASH",
    "BEARSSL_GIT_URL",
    "ExternalProcessError",
    "ProcessResult",
    "run_process",
]
