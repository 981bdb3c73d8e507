"""A stack-based virtual machine for Lisp bytecode."""

__version__ = "0.1.0"
__all__ = ["opcode", "lisp", "character", "machine", "bytecode"]