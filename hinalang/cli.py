"""Command-line entry point of the hinalang compiler.

With -ast the syntax tree is written, with -ir the IR module; otherwise
the IR module is written with the host's target triple.
"""

from __future__ import annotations

import argparse
import platform
import sys

from .errors import CompileError, report
from .irgen import IRGenerator
from .nodes import dumps
from .parser import parse


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the parser for the command-line options."""
    parser = argparse.ArgumentParser(prog="hinalang", description="hinalang compiler")
    parser.add_argument("input", metavar="<input source>", help="input source")
    parser.add_argument(
        "-o", dest="output", metavar="filename", default="out.o", help="output file"
    )
    parser.add_argument("-ast", "--ast", dest="ast", action="store_true", help="Output AST.")
    parser.add_argument("-ir", "--ir", dest="ir", action="store_true", help="Output LLVM IR.")
    return parser


def _host_triple() -> str:
    machine = platform.machine().lower() or "unknown"
    machine = {"amd64": "x86_64", "x64": "x86_64"}.get(machine, machine)
    system = platform.system().lower()
    if system == "darwin":
        return f"{machine}-apple-darwin{platform.release()}"
    if system == "windows":
        return f"{machine}-pc-windows-msvc"
    if machine in ("arm64", "aarch64"):
        return "aarch64-unknown-linux-gnu"
    return f"{machine}-pc-{system or 'unknown'}-gnu"


def _save(path: str, text: str) -> int:
    try:
        with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="") as out:
            out.write(text)
    except OSError as exc:
        report(f"File '{path}' save failed. (err: {exc.strerror})")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Compile one source file; return the exit status."""
    args = build_arg_parser().parse_args(argv)

    try:
        with open(args.input, encoding="utf-8", errors="surrogateescape", newline="") as f:
            source = f.read()
    except OSError:
        report(f"File '{args.input}' open failed.")
        return 1

    try:
        program = parse(source)
        if args.ast:
            return _save(args.output, dumps(program))

        generator = IRGenerator()
        generator.generate(program)
        if not args.ir:
            generator.target_triple = _host_triple()
        return _save(args.output, generator.module_text())
    except CompileError as exc:
        report(exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())