"""Character and string primitives."""
from __future__ import annotations

from collections.abc import Iterable

from .lisp import LispError


def unibyte_string(values: Iterable[int]) -> bytes:
    """Build a unibyte string from integers, each of which must fit in a byte."""
    result = bytearray()
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise LispError(f"Wrong type argument: integerp, {value!r}")
        if not 0 <= value <= 255:
            raise LispError(f"Value out of range for a byte: {value}")
        result.append(value)
    return bytes(result)