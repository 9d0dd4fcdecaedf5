"""
Unit tests for BuildOrchestrator.

Tests the complete single-pass pipeline:
- Source resolution tiers and their effect on the build stage
- Include path selection
- Target quirks reaching the binding generator
- Stage-tagged failures
- Build manifest
"""

from unittest.mock import ANY, patch

import pytest

from bearssl_sys.bindgen import TranslationError
from bearssl_sys.build import (
    BuildOrchestrator,
    BuildOrchestratorError,
    CompileResult,
    LinkDirectives,
    DirectCompiler,
    MakeBuilder,
    create_builder,
)
from bearssl_sys.build.orchestrator import BUILD_INFO_NAME, precompiled_link
from bearssl_sys.packages import BuildInfo, Precompiled, Raw
from bearssl_sys.packages.process import ExternalProcessError

ORCH = "bearssl_sys.build.orchestrator"


@pytest.fixture
def mock_resolver():
    """Patch the resolver class; configure return_value.resolve per test."""
    with patch(f"{ORCH}.DependencyResolver") as resolver_cls:
        resolver_cls.return_value.revision = None
        yield resolver_cls.return_value


@pytest.fixture
def mock_builder():
    with patch(f"{ORCH}.create_builder") as factory:
        yield factory


@pytest.fixture
def mock_generator():
    with patch(f"{ORCH}.BindingGenerator") as generator_cls:
        yield generator_cls


class TestPrecompiled:
    """Precompiled location: nothing is built."""

    def test_skips_builder_and_uses_inc(
        self, make_config, tmp_path, mock_resolver, mock_builder, mock_generator
    ):
        precompiled = tmp_path / "opt" / "bearssl"
        precompiled.mkdir(parents=True)
        mock_resolver.resolve.return_value = Precompiled(precompiled)
        config = make_config(precompiled_path=precompiled)

        result = BuildOrchestrator(config).build()

        mock_builder.assert_not_called()
        generate = mock_generator.return_value.generate
        assert generate.call_args.args[0] == precompiled / "inc"
        mock_generator.return_value.write.assert_called_once_with(
            generate.return_value, config.bindings_path
        )
        assert result.include_path == precompiled / "inc"
        assert result.location == Precompiled(precompiled)
        assert result.link.library_dirs == [precompiled]

    def test_include_path_override(
        self, make_config, tmp_path, mock_resolver, mock_builder, mock_generator
    ):
        precompiled = tmp_path / "pre"
        precompiled.mkdir()
        mock_resolver.resolve.return_value = Precompiled(precompiled)
        headers = tmp_path / "headers"

        result = BuildOrchestrator(make_config(include_path=headers)).build()

        assert mock_generator.return_value.generate.call_args.args[0] == headers
        assert result.include_path == headers

    def test_precompiled_link_prefers_build_dir(self, tmp_path):
        (tmp_path / "build").mkdir()

        link = precompiled_link(tmp_path, "linux")

        assert link.library_dirs == [tmp_path / "build"]


class TestRawSources:
    """Raw location: the configured builder runs."""

    def test_builds_then_generates(
        self, make_config, bearssl_tree, mock_resolver, mock_builder, mock_generator
    ):
        mock_resolver.resolve.return_value = Raw(bearssl_tree)
        mock_resolver.revision = "79c060eea3eea1257797f15ea1608a9a9923aa6f"
        config = make_config()
        link = LinkDirectives.static(config.out_dir, "linux")
        mock_builder.return_value.build.return_value = CompileResult(
            config.out_dir / "libbearssl.a", [], link
        )

        result = BuildOrchestrator(config).build()

        mock_builder.return_value.build.assert_called_once_with(bearssl_tree)
        assert result.link is link
        assert result.include_path == bearssl_tree / "inc"
        assert result.revision == mock_resolver.revision

        info = BuildInfo.load(config.out_dir / BUILD_INFO_NAME)
        assert info.source_kind == "raw"
        assert info.strategy == "direct"
        assert info.revision == mock_resolver.revision
        assert info.libraries == ["bearssl"]
        assert info.environment == config.snapshot()

    def test_compile_failure_stops_before_generation(
        self, make_config, bearssl_tree, mock_resolver, mock_builder, mock_generator
    ):
        """A failing compile aborts with its exit status and writes no bindings."""
        mock_resolver.resolve.return_value = Raw(bearssl_tree)
        mock_builder.return_value.build.side_effect = ExternalProcessError(
            "compilation", ["cc", "-c", "x.c"], 1
        )
        config = make_config()

        with pytest.raises(BuildOrchestratorError) as exc_info:
            BuildOrchestrator(config).build()

        assert exc_info.value.stage == "compilation"
        assert exc_info.value.__cause__.returncode == 1
        mock_generator.return_value.generate.assert_not_called()
        assert not config.bindings_path.exists()
        assert not (config.out_dir / BUILD_INFO_NAME).exists()


class TestStages:
    """Failure tagging and target quirks."""

    def test_resolution_failure(self, make_config, mock_resolver, mock_builder, mock_generator):
        mock_resolver.resolve.side_effect = ExternalProcessError(
            "resolution", ["git", "clone"], 128
        )

        with pytest.raises(BuildOrchestratorError) as exc_info:
            BuildOrchestrator(make_config()).build()

        assert exc_info.value.stage == "resolution"
        mock_builder.assert_not_called()

    def test_generation_failure(
        self, make_config, tmp_path, mock_resolver, mock_builder, mock_generator
    ):
        mock_resolver.resolve.return_value = Precompiled(tmp_path)
        mock_generator.return_value.generate.side_effect = TranslationError("bad header")

        with pytest.raises(BuildOrchestratorError) as exc_info:
            BuildOrchestrator(make_config()).build()

        assert exc_info.value.stage == "generation"
        assert "bad header" in str(exc_info.value)

    def test_build_info_write_failure(
        self, make_config, tmp_path, mock_resolver, mock_builder, mock_generator
    ):
        mock_resolver.resolve.return_value = Precompiled(tmp_path)

        with patch(f"{ORCH}.BuildInfo.save", side_effect=OSError("disk full")):
            with pytest.raises(BuildOrchestratorError) as exc_info:
                BuildOrchestrator(make_config()).build()

        assert exc_info.value.stage == "generation"
        assert "disk full" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.parametrize(
        "target,layout_tests",
        [
            ("aarch64-apple-ios", False),
            ("aarch64-apple-ios-sim", False),
            ("x86_64-unknown-linux-gnu", True),
            ("x86_64-apple-ios", True),
        ],
    )
    def test_target_quirks(
        self, make_config, tmp_path, mock_resolver, mock_builder, mock_generator,
        target, layout_tests,
    ):
        mock_resolver.resolve.return_value = Precompiled(tmp_path)

        result = BuildOrchestrator(make_config(target=target, target_os="ios")).build()

        options = mock_generator.call_args.args[0]
        assert options.target == target
        assert options.layout_tests is layout_tests
        assert result.layout_tests is layout_tests

    def test_bindgen_args_reach_preprocessor_options(
        self, make_config, tmp_path, mock_resolver, mock_builder, mock_generator
    ):
        mock_resolver.resolve.return_value = Precompiled(tmp_path)
        config = make_config(bindgen_args=("-DBR_USE_UNIX_TIME=1",), cc="clang")

        BuildOrchestrator(config).build()

        options = mock_generator.call_args.args[0]
        assert options.clang_args == ("-DBR_USE_UNIX_TIME=1",)
        assert options.cc == "clang"


class TestCreateBuilder:

    def test_direct_is_default(self, make_config):
        assert isinstance(create_builder(make_config(), False), DirectCompiler)

    def test_make_strategy(self, make_config):
        assert isinstance(create_builder(make_config(build_strategy="make"), False), MakeBuilder)


def test_verbose_output(make_config, tmp_path, mock_resolver, mock_builder, mock_generator, capsys):
    mock_resolver.resolve.return_value = Precompiled(tmp_path)

    BuildOrchestrator(make_config(target="aarch64-apple-ios"), verbose=True).build()

    out = capsys.readouterr().out
    assert "[1/4]" in out
    assert "Layout tests disabled for aarch64-apple-ios" in out


@pytest.mark.parametrize("verbose", [False, True])
def test_progress_follows_verbose(make_config, bearssl_tree, mock_builder, mock_generator, verbose):
    config = make_config()
    mock_builder.return_value.build.return_value = CompileResult(
        config.out_dir / "libbearssl.a", [], LinkDirectives.static(config.out_dir, "linux")
    )

    with patch(f"{ORCH}.DependencyResolver") as resolver_cls:
        resolver_cls.return_value.revision = None
        resolver_cls.return_value.resolve.return_value = Raw(bearssl_tree)
        BuildOrchestrator(config, verbose=verbose).build()

    resolver_cls.assert_called_once_with(ANY, show_progress=verbose)
    mock_builder.assert_called_once_with(ANY, show_progress=verbose)
