"""Binding generation pipeline: preprocess, translate, lay out, emit."""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .emitter import ModuleContents, ModuleEmitter
from .layout import DataModel, LayoutCalculator, RecordLayout
from .macros import MacroConstant, MacroTable
from .options import BindgenOptions
from .preprocessor import Preprocessor
from .translator import Translation, Translator

log = logging.getLogger(__name__)


@dataclass
class GeneratedBindings:
    """The generated module and what went into it."""

    source: str
    translation: Translation
    constants: List[MacroConstant]
    layouts: Dict[str, RecordLayout]
    path: Optional[Path] = None


class BindingGenerator:
    """Generates the BearSSL bindings module from a header directory.

    Example usage:
        options = apply_target_quirks(BindgenOptions(target=triple), triple)
        bindings = BindingGenerator(options).generate(include_dir, out_dir)
        bindings.write(out_dir / "bindings.py")
    """

    def __init__(self, options: BindgenOptions, verbose: bool = False):
        self.options = options
        self.verbose = verbose
        self.phase_times: Dict[str, float] = {}

    @contextmanager
    def _phase(self, name: str):
        start = time.time()
        yield
        elapsed = time.time() - start
        self.phase_times[name] = elapsed
        if self.options.time_phases:
            log.info("bindgen phase %s took %.3fs", name, elapsed)
            if self.verbose:
                print(f"      {name}: {elapsed:.3f}s")

    def generate(
        self,
        include_path: Path,
        work_dir: Path,
        headers: Optional[Sequence[str]] = None,
    ) -> GeneratedBindings:
        """Translate the header set into module source.

        Args:
            include_path: Directory holding the BearSSL headers
            work_dir: Scratch directory for the preprocessor wrapper
            headers: Header set; defaults to options.headers

        Returns:
            GeneratedBindings (not yet written)

        Raises:
            TranslationError: If preprocessing or parsing fails
        """
        headers = tuple(headers if headers is not None else self.options.headers)
        preprocessor = Preprocessor(self.options.cc, self.options.clang_args)

        with self._phase("preprocess"):
            preprocessed = preprocessor.run(include_path, headers, work_dir)

        with self._phase("parse"):
            translation = Translator(self.options).translate(
                preprocessed.declarations, str(preprocessed.wrapper)
            )

        with self._phase("constants"):
            constants = MacroTable.parse(preprocessed.defines, translation.typedefs).constants(
                self.options.allows_var,
                self.options.default_macro_constant_type,
                self.options.fit_macro_constants,
            )

        return self.generate_from(headers, translation, constants)

    def generate_from(
        self,
        headers: Sequence[str],
        translation: Translation,
        constants: List[MacroConstant],
    ) -> GeneratedBindings:
        """Lay out and emit an existing translation."""
        layouts: Dict[str, RecordLayout] = {}
        if self.options.layout_tests:
            with self._phase("layout"):
                model = DataModel.for_target(self.options.target)
                layouts = LayoutCalculator(translation, model).compute()

        with self._phase("emit"):
            source = ModuleEmitter(self.options).render(
                ModuleContents(headers, translation, constants, layouts)
            )

        return GeneratedBindings(source, translation, constants, layouts)

    @staticmethod
    def write(bindings: GeneratedBindings, out_path: Path) -> Path:
        """Write the generated module, replacing any previous one."""
        out_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = out_path.with_suffix(out_path.suffix + ".tmp")
        tmp_path.write_text(bindings.source, encoding="utf-8")
        tmp_path.replace(out_path)
        bindings.path = out_path
        return out_path
