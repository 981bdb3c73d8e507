"""Core Lisp values: symbols, cons cells, errors and the dynamic environment."""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, NoReturn


class LispError(Exception):
    """An error raised while evaluating Lisp code."""


class LispSignal(LispError):
    """A Lisp condition carrying an error symbol and its data."""

    def __init__(self, symbol: Symbol, data: Any) -> None:
        super().__init__(f"{symbol}: {data!r}")
        self.symbol = symbol
        self.data = data


class Symbol:
    """A Lisp symbol. Interned symbols are unique per name."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return self.name

    __str__ = __repr__


_OBARRAY: dict[str, Symbol] = {}


def intern(name: str) -> Symbol:
    """Return the unique symbol called ``name``, creating it on first use."""
    symbol = _OBARRAY.get(name)
    if symbol is None:
        symbol = _OBARRAY[name] = Symbol(name)
    return symbol


NIL = intern("nil")
T = intern("t")


def is_nil(obj: Any) -> bool:
    """True for the nil symbol; None and False are accepted as spellings of nil."""
    return obj is NIL or obj is None or obj is False


@dataclass(repr=False)
class Cons:
    """A mutable cons cell. Equality is structural."""

    car: Any
    cdr: Any = NIL

    def __repr__(self) -> str:
        parts = []
        obj: Any = self
        while isinstance(obj, Cons):
            parts.append(repr(obj.car))
            obj = obj.cdr
        if not is_nil(obj):
            parts.extend([".", repr(obj)])
        return "(" + " ".join(parts) + ")"


def make_list(items: Iterable[Any]) -> Any:
    """Build a proper Lisp list from ``items``; an empty iterable gives nil."""
    result: Any = NIL
    for item in reversed(list(items)):
        result = Cons(item, result)
    return result


def iter_list(obj: Any) -> Iterator[Any]:
    """Yield the elements of a proper Lisp list, raising on a dotted tail."""
    while isinstance(obj, Cons):
        yield obj.car
        obj = obj.cdr
    if not is_nil(obj):
        raise LispError(f"Wrong type argument: listp, {obj!r}")


_UNBOUND = object()


def _is_constant(symbol: Symbol) -> bool:
    return symbol is NIL or symbol is T or symbol.name.startswith(":")


@dataclass
class Env:
    """Global variables, function cells, property lists and dynamic bindings."""

    vars: dict = field(default_factory=dict)
    functions: dict = field(default_factory=dict)
    plists: dict = field(default_factory=dict)
    _bindings: list = field(default_factory=list, repr=False)

    def varbind(self, symbol: Symbol, value: Any) -> None:
        """Dynamically bind ``symbol`` to ``value`` until the matching unbind."""
        self._bindings.append((symbol, self.vars.get(symbol, _UNBOUND)))
        self.vars[symbol] = value

    def unbind(self, count: int) -> None:
        """Undo the ``count`` most recent dynamic bindings."""
        if count > len(self._bindings):
            raise LispError(f"Cannot unbind {count} bindings, only {len(self._bindings)} active")
        for _ in range(count):
            symbol, previous = self._bindings.pop()
            if previous is _UNBOUND:
                self.vars.pop(symbol, None)
            else:
                self.vars[symbol] = previous

    def get_var(self, symbol: Symbol) -> Any:
        """Return the value of ``symbol``, raising if it is void."""
        if _is_constant(symbol):
            return symbol
        try:
            return self.vars[symbol]
        except KeyError:
            raise LispError(f"Void Variable: {symbol}") from None

    def set_var(self, symbol: Symbol, value: Any) -> Any:
        """Set the current binding of ``symbol`` and return ``value``."""
        if _is_constant(symbol):
            raise LispError(f"Attempt to set a constant symbol: {symbol}")
        self.vars[symbol] = value
        return value

    def defun(self, symbol: Symbol, func: Any) -> Symbol:
        """Store ``func`` in the function cell of ``symbol``."""
        self.functions[symbol] = func
        return symbol

    def function(self, symbol: Symbol) -> Any:
        """Return the definition of ``symbol``, following aliases; None if void."""
        seen: set[Symbol] = set()
        current = symbol
        while True:
            func = self.functions.get(current)
            if func is None or is_nil(func):
                return None
            if not isinstance(func, Symbol):
                return func
            seen.add(current)
            if func in seen:
                raise LispError(f"Cyclic function indirection: {symbol}")
            current = func

    def raise_signal(self, symbol: Symbol, data: Any) -> NoReturn:
        """Signal the condition ``symbol`` with ``data``."""
        raise LispSignal(symbol, data)