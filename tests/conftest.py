"""Shared fixtures for the bearssl-sys tests."""

import pytest

from bearssl_sys.config import EnvironmentConfiguration

LINUX_TARGET = "x86_64-unknown-linux-gnu"


@pytest.fixture
def make_config(tmp_path):
    """Factory for configurations rooted in a temporary project."""

    def factory(**overrides) -> EnvironmentConfiguration:
        values = {
            "project_dir": tmp_path,
            "out_dir": tmp_path / "out",
            "target": LINUX_TARGET,
            "target_os": "linux",
        }
        values.update(overrides)
        return EnvironmentConfiguration(**values)

    return factory


@pytest.fixture
def bearssl_tree(tmp_path):
    """Minimal BearSSL source tree: Makefile, headers and two units."""
    root = tmp_path / "bearssl"
    (root / "inc").mkdir(parents=True)
    (root / "src" / "hash").mkdir(parents=True)
    (root / "src" / "ssl").mkdir(parents=True)

    (root / "Makefile").write_text("all:\n\t@true\n")
    (root / "inc" / "bearssl.h").write_text("#include \"bearssl_hash.h\"\n")
    (root / "inc" / "bearssl_hash.h").write_text("void br_sha224_init(void *ctx);\n")
    (root / "src" / "inner.h").write_text("/* internal */\n")
    (root / "src" / "hash" / "sha2small.c").write_text("int br_sha2_marker;\n")
    (root / "src" / "ssl" / "ssl_engine.c").write_text("int br_ssl_marker;\n")
    return root
