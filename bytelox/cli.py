"""Command-line entry point: run a script file or an interactive prompt."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import Optional, TextIO

from bytelox.vm import VM, InterpretResult

EXIT_USAGE = 64
EXIT_DATA_ERROR = 65
EXIT_SOFTWARE = 70
EXIT_IO_ERROR = 74

_LINE_LIMIT = 1023

_EXIT_CODES = {
    InterpretResult.OK: 0,
    InterpretResult.COMPILE_ERROR: EXIT_DATA_ERROR,
    InterpretResult.RUNTIME_ERROR: EXIT_SOFTWARE,
}


def repl(vm: VM, stdin: Optional[TextIO] = None) -> None:
    """Read and interpret lines from ``stdin`` until end of input."""
    source = stdin if stdin is not None else sys.stdin
    while True:
        vm.out.write("> ")
        vm.out.flush()
        line = source.readline(_LINE_LIMIT)
        if not line:
            vm.out.write("\n")
            return
        vm.interpret(line)


def run_file(vm: VM, path: str) -> int:
    """Interpret the script at ``path`` and return the process exit code."""
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError:
        vm.err.write(f"Could not open file <{path}>\n")
        return EXIT_IO_ERROR
    try:
        source = data.decode("utf-8")
    except UnicodeDecodeError:
        vm.err.write(f"Could not read file <{path}>\n")
        return EXIT_IO_ERROR
    return _EXIT_CODES[vm.interpret(source)]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run a script given as the only argument, or start a prompt without one."""
    args = list(sys.argv[1:] if argv is None else argv)
    vm = VM()
    if not args:
        repl(vm)
        return 0
    if len(args) == 1:
        return run_file(vm, args[0])
    sys.stderr.write("Usage: bytelox [path]\n")
    return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())