"""bearssl-sys: build BearSSL and generate its cffi bindings."""

from .shims import br_sha256_update, br_sha512_update

__version__ = "0.1.0"

__all__ = [
    "br_sha256_update",
    "br_sha512_update",
]
