"""
Command-line interface for bearssl-sys.

This module provides the `bearssl-sys` CLI tool for fetching, building and
generating bindings for BearSSL.
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from bearssl_sys import __version__
from bearssl_sys.build import BuildOrchestrator, BuildOrchestratorError
from bearssl_sys.cli_utils import ErrorFormatter, PathValidator
from bearssl_sys.config import BUILD_STRATEGIES, ConfigurationError, EnvironmentConfiguration
from bearssl_sys.config.environment import BUILD_STRATEGY_VAR, OUT_DIR_VAR, TARGET_VAR


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    out_dir: Optional[Path] = None
    target: Optional[str] = None
    strategy: Optional[str] = None
    compile: bool = False
    verbose: bool = False

    def environ(self) -> Dict[str, str]:
        """Process environment with command-line overrides applied."""
        environ = dict(os.environ)
        if self.out_dir is not None:
            environ[OUT_DIR_VAR] = str(self.out_dir)
        if self.target is not None:
            environ[TARGET_VAR] = self.target
        if self.strategy is not None:
            environ[BUILD_STRATEGY_VAR] = self.strategy
        return environ


def build_command(args: BuildArgs) -> None:
    """Build BearSSL and generate its bindings.

    Examples:
        bearssl-sys build                     # Fetch pinned BearSSL, build, generate
        bearssl-sys build --strategy make     # Use BearSSL's own Makefile
        bearssl-sys build --target aarch64-apple-ios
        bearssl-sys build --compile           # Also compile the cffi extension
    """
    print(f"bearssl-sys v{__version__}")
    print()

    try:
        config = EnvironmentConfiguration.from_environ(args.environ(), args.project_dir)
        if args.verbose:
            print(f"Target: {config.target}")
            print(f"Output: {config.out_dir}")
            print()

        result = BuildOrchestrator(config, verbose=args.verbose).build()

        ErrorFormatter.print_success("Build successful!")
        print()
        print(f"Bindings: {result.bindings_path}")
        print(f"Headers:  {result.include_path}")
        if result.revision:
            print(f"Revision: {result.revision}")

        if args.compile:
            from bearssl_sys.ffibuild import compile_extension

            extension = compile_extension(result, verbose=args.verbose)
            print(f"Extension: {extension}")

        print(f"Build time: {result.build_time:.2f}s")
        sys.exit(0)

    except ConfigurationError as e:
        ErrorFormatter.print_error("Configuration error", str(e))
        sys.exit(1)
    except BuildOrchestratorError as e:
        ErrorFormatter.print_error("Build failed!", str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def main() -> None:
    """bearssl-sys - BearSSL build and binding generator."""
    parser = argparse.ArgumentParser(
        prog="bearssl-sys",
        description="Fetch, build and generate cffi bindings for BearSSL",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"bearssl-sys {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser(
        "build",
        help="Resolve and build BearSSL, then generate bindings",
    )
    build_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    build_parser.add_argument(
        "-o",
        "--out-dir",
        type=Path,
        default=None,
        help=f"Build output directory (overrides {OUT_DIR_VAR})",
    )
    build_parser.add_argument(
        "-t",
        "--target",
        default=None,
        help=f"Target triple (overrides {TARGET_VAR})",
    )
    build_parser.add_argument(
        "-s",
        "--strategy",
        choices=BUILD_STRATEGIES,
        default=None,
        help=f"Source build strategy (overrides {BUILD_STRATEGY_VAR})",
    )
    build_parser.add_argument(
        "--compile",
        action="store_true",
        help="Compile the cffi extension after generating bindings",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    if parsed_args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    PathValidator.validate_project_dir(parsed_args.project_dir)

    if parsed_args.command == "build":
        build_args = BuildArgs(
            project_dir=parsed_args.project_dir,
            out_dir=parsed_args.out_dir,
            target=parsed_args.target,
            strategy=parsed_args.strategy,
            compile=parsed_args.compile,
            verbose=parsed_args.verbose,
        )
        build_command(build_args)


if __name__ == "__main__":
    main()
