"""
Unit tests for BindingGenerator and the generated module.

The generated source is executed and inspected, and its check_layouts()
self-test is run against a stand-in for a cffi FFI object.
"""

from unittest.mock import patch

import pytest

from bearssl_sys.bindgen import (
    BindgenOptions,
    BindingGenerator,
    TranslationError,
    apply_target_quirks,
)
from bearssl_sys.packages.process import ProcessResult

LINUX = "x86_64-unknown-linux-gnu"
IOS = "aarch64-apple-ios"


def load(source: str) -> dict:
    namespace = {"__name__": "bindings"}
    exec(compile(source, "bindings.py", "exec"), namespace)
    return namespace


class FakeFFI:
    """Answers sizeof/alignof/offsetof from a layout table."""

    def __init__(self, layouts):
        self.layouts = layouts

    def sizeof(self, ctype):
        return self.layouts[ctype]["size"]

    def alignof(self, ctype):
        return self.layouts[ctype]["align"]

    def offsetof(self, ctype, field):
        return self.layouts[ctype]["fields"][field]


def generate(target, translation, constants):
    options = apply_target_quirks(BindgenOptions(target=target), target)
    return BindingGenerator(options).generate_from(("bearssl.h",), translation, constants)


class TestGeneratedModule:
    """Contents of the generated module."""

    def test_module_contents(self, translation, constants):
        module = load(generate(LINUX, translation, constants).source)

        assert module["TARGET"] == LINUX
        assert module["HEADERS"] == ("bearssl.h",)
        assert module["FUNCTIONS"] == tuple(translation.functions)
        assert module["TYPES"] == tuple(translation.types)
        assert module["VARIABLES"] == ("br_sha224_vtable",)
        assert module["ARRAY_PARAMS"] == {"br_hmac_out": {"out": 32}}
        assert module["CONSTANTS"] == {"BR_HASHDESC_ID_OFF": 0, "BR_SSL_BUFSIZE_INPUT": 16709}
        assert module["CONSTANT_TYPES"]["BR_SSL_BUFSIZE_INPUT"] == "int"

    def test_cdef(self, translation, constants):
        cdef = load(generate(LINUX, translation, constants).source)["CDEF"]

        assert "void br_sha224_init(br_sha224_context *ctx);" in cdef
        assert "#define BR_SSL_BUFSIZE_INPUT 16709" in cdef

    def test_enum_classes(self, translation, constants):
        module = load(generate(LINUX, translation, constants).source)

        br_mode = module["br_mode"]
        assert br_mode.br_mode_BR_MODE_B == 5
        assert [m.name for m in br_mode] == [
            "br_mode_BR_MODE_A", "br_mode_BR_MODE_B", "br_mode_BR_MODE_C"
        ]

    def test_consts_enum_style(self, translation, constants):
        options = BindgenOptions(target=LINUX, enum_style="consts")
        source = BindingGenerator(options).generate_from(("bearssl.h",), translation, constants).source
        module = load(source)

        assert module["br_mode_BR_MODE_C"] == 6
        assert "br_mode" not in module


class TestLayoutTests:
    """Layout self-test presence per target."""

    def test_present_on_linux(self, translation, constants):
        module = load(generate(LINUX, translation, constants).source)

        assert module["LAYOUTS"]["br_sha224_context"] == {
            "size": 112,
            "align": 8,
            "fields": {"vtable": 0, "buf": 8, "count": 72, "val": 80},
        }
        module["check_layouts"](FakeFFI(module["LAYOUTS"]))

    @pytest.mark.parametrize("target", [IOS, "aarch64-apple-ios-sim"])
    def test_absent_on_exempt_targets(self, translation, constants, target):
        bindings = generate(target, translation, constants)
        module = load(bindings.source)

        assert "LAYOUTS" not in module
        assert "check_layouts" not in module
        assert bindings.layouts == {}
        # Everything else is still generated
        assert module["FUNCTIONS"] == tuple(translation.functions)

    def test_mismatch_detected(self, translation, constants):
        module = load(generate(LINUX, translation, constants).source)
        compiled = {name: dict(layout) for name, layout in module["LAYOUTS"].items()}
        compiled["br_sha224_context"] = dict(compiled["br_sha224_context"], size=104)

        with pytest.raises(module["LayoutMismatchError"], match="br_sha224_context"):
            module["check_layouts"](FakeFFI(compiled))

        assert issubclass(module["LayoutMismatchError"], AssertionError)


class TestGenerate:
    """The full pipeline with the compiler stubbed out."""

    def test_generate(self, tmp_path, preprocessed, defines):
        include = tmp_path / "inc"
        include.mkdir()
        (include / "bearssl.h").write_text("/* umbrella */\n")

        def fake_cc(cmd, cwd=None, capture=True):
            output = defines if "-dM" in cmd else preprocessed
            return ProcessResult(list(cmd), 0, output)

        generator = BindingGenerator(BindgenOptions(target=LINUX))
        with patch("bearssl_sys.bindgen.preprocessor.run_process", side_effect=fake_cc):
            bindings = generator.generate(include, tmp_path / "work", headers=["bearssl.h"])

        module = load(bindings.source)
        assert module["CONSTANTS"] == {"BR_HASHDESC_ID_OFF": 0, "BR_SSL_BUFSIZE_INPUT": 16709}
        assert "br_sha256_update" not in module["CONSTANTS"]
        assert set(generator.phase_times) == {"preprocess", "parse", "constants", "layout", "emit"}

    def test_cast_constants_use_header_typedefs(self, tmp_path, preprocessed, defines):
        include = tmp_path / "inc"
        include.mkdir()
        (include / "bearssl.h").write_text("/* umbrella */\n")
        defines += "#define BR_HASHDESC_MD_PADDING ((uint32_t)1 << 28)\n#define BR_MODE_DEFAULT ((br_mode)5)\n"

        def fake_cc(cmd, cwd=None, capture=True):
            output = defines if "-dM" in cmd else preprocessed
            return ProcessResult(list(cmd), 0, output)

        generator = BindingGenerator(BindgenOptions(target=LINUX))
        with patch("bearssl_sys.bindgen.preprocessor.run_process", side_effect=fake_cc):
            bindings = generator.generate(include, tmp_path / "work", headers=["bearssl.h"])

        module = load(bindings.source)
        assert module["CONSTANTS"]["BR_HASHDESC_MD_PADDING"] == 1 << 28
        assert module["CONSTANTS"]["BR_MODE_DEFAULT"] == 5
        assert "#define BR_HASHDESC_MD_PADDING 268435456" in module["CDEF"]

    def test_missing_include_path(self, tmp_path):
        generator = BindingGenerator(BindgenOptions(target=LINUX))

        with pytest.raises(TranslationError, match="Include path not found"):
            generator.generate(tmp_path / "missing", tmp_path / "work")

    def test_missing_header(self, tmp_path):
        (tmp_path / "inc").mkdir()
        generator = BindingGenerator(BindgenOptions(target=LINUX))

        with pytest.raises(TranslationError, match="bearssl_ssl.h"):
            generator.generate(tmp_path / "inc", tmp_path / "work")

    def test_write_replaces_previous_module(self, tmp_path, translation, constants):
        out = tmp_path / "out" / "bindings.py"
        out.parent.mkdir()
        out.write_text("stale = True\n")
        bindings = generate(LINUX, translation, constants)

        BindingGenerator.write(bindings, out)

        assert out.read_text() == bindings.source
        assert bindings.path == out
        assert not out.with_suffix(".py.tmp").exists()
