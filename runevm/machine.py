"""Building blocks of the bytecode machine.

This module holds the program counter, the operand stack, condition handlers,
argument specifications, compiled functions and call frames.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from .lisp import NIL, LispError


@dataclass
class ProgramCounter:
    """A bounds-checked cursor over a byte string of instructions."""

    code: bytes
    pc: int = 0

    def _check(self, position: int) -> None:
        if not 0 <= position < len(self.code):
            raise IndexError(
                f"program counter {position} outside code of length {len(self.code)}"
            )

    def goto(self, offset: int) -> None:
        """Move to the absolute byte ``offset``."""
        self._check(offset)
        self.pc = offset

    def next(self) -> int:
        """Return the next byte and advance past it."""
        self._check(self.pc)
        value = self.code[self.pc]
        self.pc += 1
        return value

    def arg1(self) -> int:
        """Read a one-byte operand."""
        return self.next()

    def arg2(self) -> int:
        """Read a two-byte little-endian operand."""
        self._check(self.pc + 1)
        value = int.from_bytes(self.code[self.pc:self.pc + 2], "little")
        self.pc += 2
        return value


@dataclass
class LispStack:
    """The operand stack. Index 0 refers to the top, 1 to the slot below it."""

    items: list = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def _offset_end(self, index: int) -> int:
        if not 0 <= index < len(self.items):
            raise IndexError(f"stack index {index} out of range for depth {len(self.items)}")
        return len(self.items) - (index + 1)

    def push(self, value: Any) -> None:
        """Push ``value`` onto the stack."""
        self.items.append(value)

    def pop(self) -> Any:
        """Remove and return the top value."""
        if not self.items:
            raise IndexError("pop from an empty stack")
        return self.items.pop()

    def top(self) -> Any:
        """Return the top value without removing it."""
        if not self.items:
            raise IndexError("empty stack has no top")
        return self.items[-1]

    def set_top(self, value: Any) -> None:
        """Replace the top value."""
        if not self.items:
            raise IndexError("empty stack has no top")
        self.items[-1] = value

    def ref(self, index: int) -> Any:
        """Return the value ``index`` slots below the top."""
        return self.items[self._offset_end(index)]

    def push_ref(self, index: int) -> None:
        """Push a copy of the value ``index`` slots below the top."""
        self.push(self.ref(index))

    def set_ref(self, index: int) -> None:
        """Pop the top and store it in the slot ``index`` below the old top."""
        position = self._offset_end(index)
        value = self.items.pop()
        if position < len(self.items):
            self.items[position] = value

    def fill_extra_args(self, count: int) -> None:
        """Push ``count`` nils."""
        self.items.extend([NIL] * count)

    def remove_top(self, index: int) -> None:
        """Drop every value above the slot ``index`` below the top."""
        self.truncate(self._offset_end(index) + 1)

    def truncate(self, size: int) -> None:
        """Shrink the stack to ``size`` values."""
        if size < 0:
            raise IndexError(f"cannot truncate stack to negative size {size}")
        del self.items[size:]


@dataclass
class Handler:
    """An active condition-case handler."""

    jump_code: int
    stack_size: int
    condition: Any


@dataclass(frozen=True)
class ArgSpec:
    """Counts of required and optional parameters, and whether a &rest exists."""

    required: int = 0
    optional: int = 0
    rest: bool = False

    @classmethod
    def from_arglist(cls, arglist: int) -> ArgSpec:
        """Decode an integer argument descriptor.

        Bits 0-6 hold the required count, bit 7 flags &rest and bits 8-14 hold
        the count of required plus optional parameters.
        """
        if arglist < 0 or arglist > 0x7FFF:
            raise LispError(f"Invalid bytecode argument descriptor: {arglist}")
        required = arglist & 0x7F
        rest = bool(arglist & 0x80)
        total = (arglist >> 8) & 0x7F
        if total < required:
            raise LispError(f"Invalid bytecode argument descriptor: {arglist}")
        return cls(required=required, optional=total - required, rest=rest)

    def num_of_fill_args(self, arg_cnt: int, name: str) -> int:
        """Return how many nils pad ``arg_cnt`` arguments, raising if the count is wrong."""
        if arg_cnt < self.required:
            raise LispError(
                f"Wrong number of arguments to {name}: expected at least "
                f"{self.required}, got {arg_cnt}"
            )
        total = self.required + self.optional
        if not self.rest and arg_cnt > total:
            raise LispError(
                f"Wrong number of arguments to {name}: expected at most {total}, got {arg_cnt}"
            )
        return max(total - arg_cnt, 0)


@dataclass
class ByteFn:
    """A compiled function: its arguments, code, constants and stack depth."""

    args: ArgSpec
    code: bytes
    constants: list
    depth: int = 0


@dataclass
class CallFrame:
    """The execution state of one active function."""

    pc: ProgramCounter
    consts: Sequence[Any]
    start: int = 0

    def get_const(self, index: int) -> Any:
        """Return constant number ``index``."""
        if not 0 <= index < len(self.consts):
            raise IndexError(f"constant had invalid index: {index}")
        return self.consts[index]


def make_byte_code(
    arglist: int, code: bytes | str | Iterable[int], constants: Iterable[Any], maxdepth: int
) -> ByteFn:
    """Build a compiled function from its descriptor, code, constants and depth."""
    if isinstance(code, str):
        try:
            raw = code.encode("latin-1")
        except UnicodeEncodeError:
            raise LispError("Bytecode string is not unibyte") from None
    else:
        try:
            raw = bytes(code)
        except (ValueError, TypeError) as exc:
            raise LispError(f"Invalid bytecode: {exc}") from None
    if maxdepth < 0:
        raise LispError(f"Invalid maximum stack depth: {maxdepth}")
    return ByteFn(ArgSpec.from_arglist(arglist), raw, list(constants), maxdepth)