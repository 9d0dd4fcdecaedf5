"""Configuration modules for bearssl-sys."""

from .environment import (
    BINDGEN_ARGS_VAR,
    BUILD_STRATEGIES,
    STRATEGY_DIRECT,
    STRATEGY_MAKE,
    ConfigurationError,
    EnvironmentConfiguration,
    host_target_triple,
    path_str,
    target_os,
)

__all__ = [
    "EnvironmentConfiguration",
    "ConfigurationError",
    "BINDGEN_ARGS_VAR",
    "BUILD_STRATEGIES",
    "STRATEGY_DIRECT",
    "STRATEGY_MAKE",
    "host_target_triple",
    "path_str",
    "target_os",
]
