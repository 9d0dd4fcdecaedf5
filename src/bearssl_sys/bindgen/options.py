"""Binding generator options.

BindgenOptions collects every knob of the header translation in one frozen
value. The defaults are the configuration BearSSL bindings are generated
with; the platform quirk adjuster derives modified copies with
dataclasses.replace().
"""

import re
from dataclasses import dataclass, field
from typing import Tuple

# Umbrella header first, then the per-feature headers.
BEARSSL_HEADERS = (
    "bearssl.h",
    "bearssl_aead.h",
    "bearssl_block.h",
    "bearssl_ec.h",
    "bearssl_hash.h",
    "bearssl_hmac.h",
    "bearssl_kdf.h",
    "bearssl_pem.h",
    "bearssl_prf.h",
    "bearssl_rand.h",
    "bearssl_rsa.h",
    "bearssl_ssl.h",
    "bearssl_x509.h",
)

ENUM_STYLE_NEWTYPE = "newtype"
ENUM_STYLE_CONSTS = "consts"

MACRO_TYPE_SIGNED = "signed"
MACRO_TYPE_UNSIGNED = "unsigned"


@dataclass(frozen=True)
class BindgenOptions:
    """Configuration of one header translation."""

    target: str
    headers: Tuple[str, ...] = BEARSSL_HEADERS
    allowlist_function: str = r"br_.*"
    allowlist_type: str = r"br_.*"
    allowlist_var: str = r"(br|BR)_.*"
    array_pointers_in_arguments: bool = True
    enum_style: str = ENUM_STYLE_NEWTYPE
    prepend_enum_name: bool = True
    default_macro_constant_type: str = MACRO_TYPE_SIGNED
    fit_macro_constants: bool = False
    layout_tests: bool = True
    merge_extern_blocks: bool = True
    time_phases: bool = True
    cc: str = "cc"
    clang_args: Tuple[str, ...] = field(default=())

    def allows_function(self, name: str) -> bool:
        return re.fullmatch(self.allowlist_function, name) is not None

    def allows_type(self, name: str) -> bool:
        return re.fullmatch(self.allowlist_type, name) is not None

    def allows_var(self, name: str) -> bool:
        return re.fullmatch(self.allowlist_var, name) is not None
