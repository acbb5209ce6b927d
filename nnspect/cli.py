# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
nnspect Command Line Interface

Simple CLI for nnspect operations.
"""

from __future__ import annotations

import argparse
import sys


def main(argv=None):
    """Main entry point for nnspect CLI."""
    parser = argparse.ArgumentParser(
        prog="nnspect",
        description="nnspect - Tensor Inspection for Image Models",
    )

    parser.add_argument(
        "--version",
        "-v",
        action="store_true",
        help="Show version information",
    )

    parser.add_argument(
        "--info",
        action="store_true",
        help="Show system information",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Operators command
    operators_parser = subparsers.add_parser(
        "operators",
        help="List supported operator kinds and their options",
    )
    operators_parser.add_argument(
        "--all",
        action="store_true",
        help="Also list the kinds that can't be computed",
    )

    args = parser.parse_args(argv)

    if args.version:
        from nnspect import __version__

        print(f"nnspect v{__version__}")
        return 0

    if args.info:
        _show_info()
        return 0

    if args.command == "operators":
        return _list_operators(args)

    # Default: show help
    parser.print_help()
    return 0


def _list_operators(args):
    """Print every supported operator kind with its required options."""
    from nnspect.core.types import OperatorKind
    from nnspect.execution import OperatorRegistry

    for kind in OperatorKind:
        if not OperatorRegistry.is_supported(kind):
            if args.all:
                print(f"{kind.name:<18} (not implemented)")
            continue
        spec = OperatorRegistry.get(kind)
        if spec.options is None:
            options = "(present, ignored)"
        else:
            options = ", ".join(f"{name}:{option_type.value}" for name, option_type in spec.options)
        print(f"{kind.name:<18} {options}")
    return 0


def _show_info():
    """Show system and nnspect information."""
    import platform

    print("=" * 50)
    print("nnspect System Information")
    print("=" * 50)

    # Version
    try:
        from nnspect import __version__

        print(f"nnspect Version: {__version__}")
    except ImportError:
        print("nnspect Version: unknown")

    # Python
    print(f"Python Version: {platform.python_version()}")
    print(f"Platform: {platform.platform()}")

    # numpy
    import numpy

    print(f"NumPy Version: {numpy.__version__}")

    # Operators
    from nnspect.execution import OperatorRegistry
    from nnspect.observability import get_logger

    print(f"Operators: {OperatorRegistry.count()}")
    print(f"Verbosity: {get_logger().get_verbosity().name}")

    print("=" * 50)


if __name__ == "__main__":
    sys.exit(main())
