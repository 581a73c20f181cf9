"""
Command-line entry point.

    decomp-layout <root> [--target TRIPLE] [-D NAME[=VALUE]] [-v]

Parses every module header under <root>, writes the layout documents to
<root>/ClangParsed and prints a one-line summary.
"""

import sys
import argparse
import logging
from typing import List, Optional

from .config import LayoutConfig, LayoutConfigError
from .header_source import HeaderParseError
from .session import LayoutSession


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="decomp-layout",
        description="Extract struct and global variable layouts from decompiled C headers.",
    )
    parser.add_argument("root", nargs="?", help="Root directory of the decompilation tree.")
    parser.add_argument("--global-header", help="Forced-include header (default: include/global.h).")
    parser.add_argument("--include-dir", help="Third-party include directory (default: Clang-Include).")
    parser.add_argument("--output-dir", help="Output directory (default: ClangParsed).")
    parser.add_argument("--std", dest="c_standard", help="C language standard (default: c11).")
    parser.add_argument("--target", help="Target triple handed to clang, e.g. x86_64-pc-windows-msvc.")
    parser.add_argument(
        "-D", "--define", dest="defines", action="append",
        help="Preprocessor define NAME or NAME=VALUE (repeatable).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = LayoutConfig.load(
            args.root,
            global_header=args.global_header,
            include_dir=args.include_dir,
            output_dir=args.output_dir,
            c_standard=args.c_standard,
            target=args.target,
            defines=args.defines,
        )
    except LayoutConfigError as e:
        print(e)
        return 1

    session = LayoutSession(config)
    try:
        result = session.run()
    except HeaderParseError as e:
        print(f"Error: {e}")
        return 1

    session.write(result)
    print(result.summary_line())
    return 0


if __name__ == "__main__":
    sys.exit(main())
