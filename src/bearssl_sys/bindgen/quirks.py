"""Target-specific adjustments to binding generation."""

from dataclasses import replace

from .options import BindgenOptions

# Targets whose system headers reinterpret memory through explicitly
# unaligned types (OSUnalignedU64 and friends). Layout tests for those
# types read misaligned memory, and they cannot be disabled per type, so
# the whole module goes without them.
LAYOUT_TEST_EXEMPT_TARGETS = frozenset({
    "aarch64-apple-ios",
    "aarch64-apple-ios-sim",
})


def layout_tests_enabled(target: str) -> bool:
    """Whether layout tests may be generated for target."""
    return target not in LAYOUT_TEST_EXEMPT_TARGETS


def apply_target_quirks(options: BindgenOptions, target: str) -> BindgenOptions:
    """Return options adjusted for target.

    Args:
        options: Options to adjust
        target: Target triple

    Returns:
        options with layout tests disabled on exempt targets, else options
    """
    if not layout_tests_enabled(target):
        return replace(options, layout_tests=False)
    return options
