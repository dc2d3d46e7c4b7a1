"""A bytecode compiler and stack-based virtual machine for the Lox language."""

__version__ = "0.1.0"
__all__ = ["chunk", "cli", "compiler", "debug", "objects", "scanner", "table", "value", "vm"]