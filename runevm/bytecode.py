"""The bytecode interpreter: executes compiled functions on an operand stack."""
from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .lisp import (
    NIL,
    T,
    Cons,
    Env,
    LispError,
    LispSignal,
    Symbol,
    intern,
    is_nil,
    iter_list,
    make_list,
)
from .machine import (
    ByteFn,
    CallFrame,
    Handler,
    LispStack,
    ProgramCounter,
    make_byte_code,
)
from .opcode import OpCode, decode

ERROR = intern("error")
DEBUG = intern("debug")


def _bool(value: bool) -> Symbol:
    return T if value else NIL


def _wrong_type(predicate: str, value: Any) -> LispError:
    return LispError(f"Wrong type argument: {predicate}, {value!r}")


def _number(value: Any) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _wrong_type("number-or-marker-p", value)
    return value


def _integer(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _wrong_type("integerp", value)
    return value


def _symbol(value: Any) -> Symbol:
    if is_nil(value):
        return NIL
    if value is True:
        return T
    if not isinstance(value, Symbol):
        raise _wrong_type("symbolp", value)
    return value


def _cons(value: Any) -> Cons:
    if not isinstance(value, Cons):
        raise _wrong_type("consp", value)
    return value


def _is_list(value: Any) -> bool:
    return isinstance(value, Cons) or is_nil(value)


def _list(value: Any) -> Any:
    if not _is_list(value):
        raise _wrong_type("listp", value)
    return value


def _car(value: Any) -> Any:
    return value.car if isinstance(value, Cons) else NIL if is_nil(_list(value)) else NIL


def _cdr(value: Any) -> Any:
    return value.cdr if isinstance(value, Cons) else NIL if is_nil(_list(value)) else NIL


def _eq(a: Any, b: Any) -> bool:
    if is_nil(a) and is_nil(b):
        return True
    if isinstance(a, int) and isinstance(b, int) and not isinstance(a, bool) \
            and not isinstance(b, bool):
        return a == b
    return a is b


def _equal(a: Any, b: Any) -> bool:
    if is_nil(a) and is_nil(b):
        return True
    if isinstance(a, Cons) and isinstance(b, Cons):
        return _equal(a.car, b.car) and _equal(a.cdr, b.cdr)
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    return type(a) is type(b) and a == b


def _nthcdr(n: int, lst: Any) -> Any:
    _integer(n)
    for _ in range(n):
        if is_nil(lst):
            return NIL
        lst = _cons(lst).cdr
    return _list(lst)


def _member(elt: Any, lst: Any, test: Callable[[Any, Any], bool]) -> Any:
    _list(lst)
    while isinstance(lst, Cons):
        if test(elt, lst.car):
            return lst
        lst = _list(lst.cdr)
    return NIL


def _assq(key: Any, alist: Any) -> Any:
    for entry in iter_list(_list(alist)):
        if isinstance(entry, Cons) and _eq(key, entry.car):
            return entry
    return NIL


def _length(value: Any) -> int:
    if _is_list(value):
        return sum(1 for _ in iter_list(value))
    if isinstance(value, (str, bytes, list, tuple)):
        return len(value)
    raise _wrong_type("sequencep", value)


def _aref(array: Any, index: Any) -> Any:
    index = _integer(index)
    if isinstance(array, (str, bytes, list, tuple)):
        if not 0 <= index < len(array):
            raise LispError(f"Args out of range: {array!r}, {index}")
        item = array[index]
        return ord(item) if isinstance(array, str) else item
    raise _wrong_type("arrayp", array)


def _aset(array: Any, index: Any, value: Any) -> Any:
    index = _integer(index)
    if not isinstance(array, list):
        raise _wrong_type("arrayp", array)
    if not 0 <= index < len(array):
        raise LispError(f"Args out of range: {array!r}, {index}")
    array[index] = value
    return value


def _elt(seq: Any, n: Any) -> Any:
    if _is_list(seq):
        return _car(_nthcdr(_integer(n), seq))
    return _aref(seq, n)


def _nreverse(lst: Any) -> Any:
    prev: Any = NIL
    current = _list(lst)
    while isinstance(current, Cons):
        following = current.cdr
        current.cdr = prev
        prev = current
        current = _list(following)
    return prev


def _nconc(lists: Sequence[Any]) -> Any:
    result: Any = NIL
    tail: Cons | None = None
    for lst in lists:
        if is_nil(lst):
            continue
        cell = _cons(lst)
        if tail is None:
            result = cell
        else:
            tail.cdr = cell
        tail = cell
        while isinstance(tail.cdr, Cons):
            tail = tail.cdr
    return result


def _compare(op: Callable[[Any, Any], bool], first: Any, rest: Sequence[Any]) -> Symbol:
    values = [_number(first), *(_number(x) for x in rest)]
    return _bool(all(op(a, b) for a, b in zip(values, values[1:])))


def _get(env: Env, symbol: Symbol, prop: Any) -> Any:
    plist = env.plists.get(symbol)
    if isinstance(plist, dict):
        return plist.get(prop, NIL)
    return NIL


def _funcall(env: Env, func: Any, args: list, name: str) -> Any:
    if isinstance(func, Symbol):
        name = func.name
        resolved = env.function(func)
        if resolved is None:
            resolved = _BUILTINS.get(func.name)
        if resolved is None:
            raise LispError(f"Void Function: {func}")
        func = resolved
    if isinstance(func, _Builtin):
        return func.fn(env, args)
    if isinstance(func, ByteFn):
        return call(func, args, name, env)
    if callable(func):
        return func(*args)
    raise LispError(f"Invalid function: {func!r}")


@dataclass(frozen=True)
class _Builtin:
    fn: Callable[[Env, list], Any]


def _add(env: Env, args: list) -> Any:
    return sum((_number(x) for x in args), 0)


def _mul(env: Env, args: list) -> Any:
    return math.prod(_number(x) for x in args)


def _sub(env: Env, args: list) -> Any:
    if not args:
        return 0
    first = _number(args[0])
    if len(args) == 1:
        return -first
    return first - sum(_number(x) for x in args[1:])


def _symbol_name(env: Env, args: list) -> Any:
    if len(args) != 1:
        raise LispError(f"Wrong number of arguments: symbol-name, {len(args)}")
    return _symbol(args[0]).name


def _floor(env: Env, args: list) -> Any:
    if len(args) not in (1, 2):
        raise LispError(f"Wrong number of arguments: floor, {len(args)}")
    value = _number(args[0])
    if len(args) == 2 and not is_nil(args[1]):
        divisor = _number(args[1])
        if divisor == 0:
            raise LispSignal(intern("arith-error"), NIL)
        return math.floor(value / divisor)
    return math.floor(value)


def _apply(env: Env, args: list) -> Any:
    if not args:
        raise LispError("Wrong number of arguments: apply, 0")
    func, *rest = args
    if rest:
        rest = rest[:-1] + list(iter_list(_list(rest[-1])))
    return _funcall(env, func, rest, "apply")


_BUILTINS: dict[str, _Builtin] = {
    "+": _Builtin(_add),
    "*": _Builtin(_mul),
    "-": _Builtin(_sub),
    "symbol-name": _Builtin(_symbol_name),
    "floor": _Builtin(_floor),
    "apply": _Builtin(_apply),
    "list": _Builtin(lambda env, args: make_list(args)),
    "car": _Builtin(lambda env, args: _car(*args)),
    "cdr": _Builtin(lambda env, args: _cdr(*args)),
}


@dataclass
class Routine:
    """The state of one running interpreter: stack, frames and handlers."""

    stack: LispStack
    frame: CallFrame
    call_frames: list = field(default_factory=list)
    handlers: list = field(default_factory=list)

    def prepare_lisp_args(self, func: ByteFn, arg_cnt: int, name: str) -> int:
        """Pad missing optionals with nil and collect &rest arguments into a list."""
        fill = func.args.num_of_fill_args(arg_cnt, name)
        self.stack.fill_extra_args(fill)
        total = arg_cnt + fill
        rest_size = total - (func.args.required + func.args.optional)
        if rest_size > 0:
            rest = make_list(self.stack.items[-rest_size:])
            self.stack.remove_top(rest_size - 1)
            self.stack.set_top(rest)
            return total - rest_size + 1
        if func.args.rest:
            self.stack.push(NIL)
            return total + 1
        return total

    def _call(self, arg_cnt: int, env: Env) -> None:
        func = self.stack.ref(arg_cnt)
        if not isinstance(func, Symbol):
            raise LispError(f"Expected symbol for call, found {func!r}")
        args = self.stack.items[len(self.stack) - arg_cnt:] if arg_cnt else []
        result = _funcall(env, func, list(args), func.name)
        self.stack.remove_top(arg_cnt)
        self.stack.set_top(result)

    def run(self, env: Env) -> Any:
        """Execute until return, routing errors to condition-case handlers."""
        while True:
            try:
                return self.execute_bytecode(env)
            except LispError as err:
                if not self.handlers:
                    raise
                handler: Handler = self.handlers.pop()
                condition = handler.condition
                if isinstance(condition, Cons):
                    for item in iter_list(condition):
                        if item is not DEBUG and item is not ERROR:
                            raise LispError(
                                f"non-error conditions {item} not yet supported"
                            ) from err
                elif condition is not ERROR:
                    raise LispError(f"Invalid condition handler: {condition!r}") from err
                if isinstance(err, LispSignal):
                    error = Cons(err.symbol, err.data)
                else:
                    error = Cons(ERROR, str(err))
                self.stack.truncate(handler.stack_size)
                self.stack.push(error)
                self.frame.pc.goto(handler.jump_code)

    def _binary(self, fn: Callable[[Any, Any], Any]) -> None:
        rhs = self.stack.pop()
        self.stack.set_top(fn(self.stack.top(), rhs))

    def _unary(self, fn: Callable[[Any], Any]) -> None:
        self.stack.set_top(fn(self.stack.top()))

    def execute_bytecode(self, env: Env) -> Any:
        """The main execution loop; returns the value of the function."""
        stack = self.stack
        pc = self.frame.pc
        while True:
            op = decode(pc.next())
            if op >= OpCode.CONSTANT0:
                stack.push(self.frame.get_const(op - OpCode.CONSTANT0))
            elif op <= OpCode.STACK_REF5:
                stack.push_ref(op - OpCode.STACK_REF0)
            elif op == OpCode.STACK_REF_N:
                stack.push_ref(pc.arg1())
            elif op == OpCode.STACK_REF_N2:
                stack.push_ref(pc.arg2())
            elif op == OpCode.STACK_SET_N:
                stack.set_ref(pc.arg1())
            elif op == OpCode.STACK_SET_N2:
                stack.set_ref(pc.arg2())
            elif OpCode.VAR_REF0 <= op <= OpCode.VAR_REF_N2:
                idx = self._operand(op, OpCode.VAR_REF0)
                stack.push(env.get_var(_symbol(self.frame.get_const(idx))))
            elif OpCode.VAR_SET0 <= op <= OpCode.VAR_SET_N2:
                idx = self._operand(op, OpCode.VAR_SET0)
                symbol = _symbol(self.frame.get_const(idx))
                env.set_var(symbol, stack.pop())
            elif OpCode.VAR_BIND0 <= op <= OpCode.VAR_BIND_N2:
                idx = self._operand(op, OpCode.VAR_BIND0)
                value = stack.pop()
                env.varbind(_symbol(self.frame.get_const(idx)), value)
            elif OpCode.CALL0 <= op <= OpCode.CALL_N2:
                self._call(self._operand(op, OpCode.CALL0), env)
            elif OpCode.UNBIND0 <= op <= OpCode.UNBIND_N2:
                env.unbind(self._operand(op, OpCode.UNBIND0))
            elif op == OpCode.POP_HANDLER:
                if self.handlers:
                    self.handlers.pop()
            elif op == OpCode.PUSH_CONDITION_CASE:
                condition = stack.pop()
                self.handlers.append(Handler(pc.arg2(), len(stack), condition))
            elif op == OpCode.NTH:
                self._binary(lambda n, lst: _car(_nthcdr(_integer(n), lst)))
            elif op == OpCode.SYMBOLP:
                self._unary(lambda x: _bool(isinstance(x, Symbol) or is_nil(x) or x is True))
            elif op == OpCode.CONSP:
                self._unary(lambda x: _bool(isinstance(x, Cons)))
            elif op == OpCode.STRINGP:
                self._unary(lambda x: _bool(isinstance(x, str)))
            elif op == OpCode.LISTP:
                self._unary(lambda x: _bool(_is_list(x)))
            elif op == OpCode.EQ:
                self._binary(lambda a, b: _bool(_eq(a, b)))
            elif op == OpCode.MEMQ:
                self._binary(lambda e, lst: _member(e, lst, _eq))
            elif op == OpCode.NOT:
                self._unary(lambda x: _bool(is_nil(x)))
            elif op == OpCode.CAR:
                self._unary(_car)
            elif op == OpCode.CDR:
                self._unary(_cdr)
            elif op == OpCode.CONS:
                self._binary(Cons)
            elif OpCode.LIST1 <= op <= OpCode.LIST4:
                self._make_list(op - OpCode.LIST1 + 1)
            elif op == OpCode.LIST_N:
                self._make_list(pc.arg1())
            elif op == OpCode.LENGTH:
                self._unary(_length)
            elif op == OpCode.AREF:
                self._binary(_aref)
            elif op == OpCode.ASET:
                value = stack.pop()
                index = stack.pop()
                stack.set_top(_aset(stack.top(), index, value))
            elif op == OpCode.SYMBOL_VALUE:
                self._unary(lambda s: self._symbol_value(env, s))
            elif op == OpCode.SYMBOL_FUNCTION:
                self._unary(lambda s: env.functions.get(_symbol(s), NIL))
            elif op == OpCode.SET:
                self._binary(lambda s, v: env.set_var(_symbol(s), v))
            elif op == OpCode.FSET:
                self._binary(lambda s, d: env.defun(_symbol(s), d))
            elif op == OpCode.GET:
                self._binary(lambda s, p: _get(env, _symbol(s), _symbol(p)))
            elif op == OpCode.SUB1:
                self._unary(lambda x: _number(x) - 1)
            elif op == OpCode.ADD1:
                self._unary(lambda x: _number(x) + 1)
            elif op == OpCode.EQL_SIGN:
                self._binary(lambda a, b: _compare(lambda x, y: x == y, a, [b]))
            elif op == OpCode.GREATER_THAN:
                self._binary(lambda a, b: _compare(lambda x, y: x > y, a, [b]))
            elif op == OpCode.LESS_THAN:
                self._binary(lambda a, b: _compare(lambda x, y: x < y, a, [b]))
            elif op == OpCode.LESS_THAN_OR_EQUAL:
                self._binary(lambda a, b: _compare(lambda x, y: x <= y, a, [b]))
            elif op == OpCode.GREATER_THAN_OR_EQUAL:
                self._binary(lambda a, b: _compare(lambda x, y: x >= y, a, [b]))
            elif op == OpCode.NEGATE:
                self._unary(lambda x: -_number(x))
            elif op == OpCode.PLUS:
                self._binary(lambda a, b: _number(a) + _number(b))
            elif op == OpCode.MAX:
                self._binary(lambda a, b: max(_number(a), _number(b)))
            elif op == OpCode.MIN:
                self._binary(lambda a, b: min(_number(a), _number(b)))
            elif op == OpCode.MULTIPLY:
                self._binary(lambda a, b: _number(a) * _number(b))
            elif op == OpCode.CONSTANT_N2:
                stack.push(self.frame.get_const(pc.arg2()))
            elif op == OpCode.GOTO:
                pc.goto(pc.arg2())
            elif op == OpCode.GOTO_IF_NIL:
                cond = stack.pop()
                offset = pc.arg2()
                if is_nil(cond):
                    pc.goto(offset)
            elif op == OpCode.GOTO_IF_NON_NIL:
                cond = stack.pop()
                offset = pc.arg2()
                if not is_nil(cond):
                    pc.goto(offset)
            elif op == OpCode.GOTO_IF_NIL_ELSE_POP:
                offset = pc.arg2()
                if is_nil(stack.top()):
                    pc.goto(offset)
                else:
                    stack.pop()
            elif op == OpCode.GOTO_IF_NON_NIL_ELSE_POP:
                offset = pc.arg2()
                if is_nil(stack.top()):
                    stack.pop()
                else:
                    pc.goto(offset)
            elif op == OpCode.RETURN:
                value = stack.pop()
                if not self.call_frames:
                    return value
                stack.truncate(self.frame.start + 1)
                stack.set_top(value)
                self.frame = self.call_frames.pop()
                pc = self.frame.pc
            elif op == OpCode.DISCARD:
                stack.pop()
            elif op == OpCode.DISCARD_N:
                arg = pc.arg1()
                count = arg & 0x7F
                if arg & 0x80:
                    top = stack.top()
                    stack.truncate(len(stack) - count)
                    stack.set_top(top)
                else:
                    stack.truncate(len(stack) - count)
            elif op == OpCode.DUPLICATE:
                stack.push(stack.top())
            elif op == OpCode.EQUAL:
                self._binary(lambda a, b: _bool(_equal(a, b)))
            elif op == OpCode.NTHCDR:
                self._binary(lambda n, lst: _nthcdr(_integer(n), lst))
            elif op == OpCode.ELT:
                self._binary(_elt)
            elif op == OpCode.MEMBER:
                self._binary(lambda e, lst: _member(e, lst, _equal))
            elif op == OpCode.ASSQ:
                self._binary(_assq)
            elif op == OpCode.NREVERSE:
                self._unary(_nreverse)
            elif op == OpCode.SETCAR:
                self._binary(self._setcar)
            elif op == OpCode.SETCDR:
                self._binary(self._setcdr)
            elif op == OpCode.CAR_SAFE:
                self._unary(lambda x: x.car if isinstance(x, Cons) else NIL)
            elif op == OpCode.CDR_SAFE:
                self._unary(lambda x: x.cdr if isinstance(x, Cons) else NIL)
            elif op == OpCode.NCONC:
                self._binary(lambda a, b: _nconc([a, b]))
            elif op == OpCode.NUMBERP:
                self._unary(lambda x: _bool(
                    isinstance(x, (int, float)) and not isinstance(x, bool)))
            elif op == OpCode.INTEGERP:
                self._unary(lambda x: _bool(isinstance(x, int) and not isinstance(x, bool)))
            elif op == OpCode.SWITCH:
                table = stack.pop()
                if not isinstance(table, dict):
                    raise LispError(f"switch table was not a hash table: {table!r}")
                cond = stack.pop()
                offset = table.get(cond)
                if offset is not None:
                    pc.goto(_integer(offset))
            else:
                raise LispError(f"Unsupported bytecode: {op.name}")

    def _operand(self, op: OpCode, base: OpCode) -> int:
        offset = op - base
        if offset < 6:
            return offset
        return self.frame.pc.arg1() if offset == 6 else self.frame.pc.arg2()

    def _make_list(self, size: int) -> None:
        items = self.stack.items[len(self.stack) - size:] if size else []
        result = make_list(items)
        if size == 0:
            self.stack.push(result)
            return
        self.stack.truncate(len(self.stack) - (size - 1))
        self.stack.set_top(result)

    @staticmethod
    def _symbol_value(env: Env, symbol: Any) -> Any:
        try:
            return env.get_var(_symbol(symbol))
        except LispError:
            return NIL

    @staticmethod
    def _setcar(cell: Any, value: Any) -> Any:
        _cons(cell).car = value
        return value

    @staticmethod
    def _setcdr(cell: Any, value: Any) -> Any:
        _cons(cell).cdr = value
        return value


def call(func: ByteFn, args: Iterable[Any], name: str, env: Env) -> Any:
    """Call the compiled function ``func`` with ``args`` and return its value."""
    stack = LispStack(list(args))
    arg_cnt = len(stack)
    frame = CallFrame(ProgramCounter(func.code), func.constants, 0)
    routine = Routine(stack, frame)
    routine.prepare_lisp_args(func, arg_cnt, name)
    return routine.run(env)


def byte_code(bytestr: Any, vector: Iterable[Any], maxdepth: int, env: Env) -> Any:
    """Run a bare piece of bytecode taking no arguments."""
    fun = make_byte_code(0, bytestr, vector, maxdepth)
    return call(fun, [], "unnamed", env)