"""Functions BearSSL only provides as macros.

bearssl_hash.h defines br_sha256_update and br_sha512_update as aliases of
the SHA-224 and SHA-384 update functions. Macros produce no symbol, so the
header translation cannot see them.
"""

from . import native


def br_sha256_update(ctx, data, length):
    """A wrapper for the ``br_sha256_update`` macro.

    See the ``br_xxx_update`` docs: ``ctx`` must be an initialized
    ``br_sha256_context *``.
    """
    return native.lib().br_sha224_update(ctx, data, length)


def br_sha512_update(ctx, data, length):
    """A wrapper for the ``br_sha512_update`` macro.

    See the ``br_xxx_update`` docs: ``ctx`` must be an initialized
    ``br_sha512_context *``.
    """
    return native.lib().br_sha384_update(ctx, data, length)
