import pytest

from runevm.bytecode import Routine, byte_code, call
from runevm.lisp import NIL, Cons, Env, LispError, intern, is_nil, make_list
from runevm.machine import CallFrame, LispStack, ProgramCounter, make_byte_code
from runevm.opcode import OpCode as O


def build(arglist, ops, consts):
    return make_byte_code(arglist, bytes(int(x) for x in ops), consts, 0)


def run(fn, args):
    return call(fn, args, "test", Env())


def test_basic():
    assert run(build(0, [O.CONSTANT0, O.RETURN], [5]), []) == 5
    fn = build(257, [O.DUPLICATE, O.CONSTANT0, O.PLUS, O.RETURN], [5])
    assert run(fn, [7]) == 12
    fn = build(513, [O.STACK_REF1, O.STACK_REF1, O.PLUS, O.RETURN], [])
    assert run(fn, [3, 4]) == 7
    fn = build(257, [O.DUPLICATE, O.GOTO_IF_NIL, 6, 0, O.CONSTANT0, O.RETURN,
                     O.CONSTANT1, O.RETURN], [2, 3])
    assert run(fn, [False]) == 3
    assert run(fn, [True]) == 2
    fn = build(257, [O.CONSTANT0, O.CONSTANT0, O.STACK_REF2, O.LESS_THAN, O.GOTO_IF_NIL,
                     O.VAR_SET2, 0, O.STACK_REF1, O.SUB1, O.STACK_SET_N, 2, O.DUPLICATE,
                     O.ADD1, O.STACK_SET_N, 1, O.GOTO, 1, 0, O.RETURN], [0])
    assert run(fn, [5]) == 5
    assert run(fn, [0]) == 0


def test_bytecode_call():
    fn = build(257, [O.CONSTANT0, O.STACK_REF1, O.CALL1, O.RETURN], [intern("symbol-name")])
    assert run(fn, [intern("symbol-name")]) == "symbol-name"
    assert run(fn, [intern("aref")]) == "aref"
    assert run(fn, [intern("+")]) == "+"
    fn = build(771, [O.CONSTANT0, O.STACK_REF3, O.STACK_REF3, O.STACK_REF3, O.CALL3,
                     O.RETURN], [intern("+")])
    assert run(fn, [1, 2, 3]) == 6
    fn = build(128, [O.CONSTANT0, O.CONSTANT1, O.STACK_REF2, O.CALL2, O.RETURN],
               [intern("apply"), intern("+")])
    assert run(fn, [1, 2, 3]) == 6
    fn = build(513, [O.STACK_REF1, O.STACK_REF1, O.PLUS, O.RETURN], [])
    assert run(fn, [1, 2]) == 3


def test_bytecode_variables():
    fn = build(0, [O.CONSTANT1, O.VAR_BIND0, O.VAR_REF0, O.UNBIND1, O.RETURN],
               [intern("load-path"), 5])
    env = Env()
    assert call(fn, [], "test", env) == 5
    assert intern("load-path") not in env.vars


def test_bytecode_advanced():
    table = {1: 6, 2: 8, 3: 10}
    fn = build(257, [O.DUPLICATE, O.CONSTANT0, O.SWITCH, O.GOTO, 0x0C, 0, O.CONSTANT1,
                     O.RETURN, O.CONSTANT2, O.RETURN, O.CONSTANT3, O.RETURN,
                     O.CONSTANT4, O.RETURN], [table, 4, 5, 6, False])
    assert run(fn, [1]) == 4
    assert run(fn, [2]) == 5
    assert run(fn, [3]) == 6
    assert is_nil(run(fn, [4]))
    fn = build(0, [O.CONSTANT0, O.CONSTANT1, O.DUPLICATE, O.STACK_REF2, O.DISCARD_N, 0x83,
                   O.ADD1, O.RETURN], [1, False])
    assert run(fn, []) == 2
    fn = build(0, [O.CONSTANT0, O.CONSTANT1, O.CONSTANT2, O.CONSTANT3, O.CONSTANT4,
                   O.CONSTANT5, O.LIST_N, 6, O.RETURN], [1, 2, 3, 4, 5, 6])
    assert run(fn, []) == make_list([1, 2, 3, 4, 5, 6])
    fn = build(0, [O.CONSTANT6, O.CONSTANT0, O.CONSTANT1, O.CONSTANT2, O.CONSTANT3,
                   O.CONSTANT4, O.CONSTANT5, O.LIST_N, 6, O.DISCARD_N, 1, O.RETURN],
               [1, 2, 3, 4, 5, 6, 7])
    assert run(fn, []) == 7


def test_handlers():
    err = Cons(intern("error"))
    fn = build(257, [O.CONSTANT0, O.PUSH_CONDITION_CASE, 9, 0, O.CONSTANT1, O.STACK_REF1,
                     O.CALL1, O.POP_HANDLER, O.RETURN, O.DISCARD, O.DUPLICATE,
                     O.CONSTANT2, O.PLUS, O.RETURN], [err, intern("symbol-name"), 4])
    assert run(fn, [3]) == 7
    assert run(fn, [intern("floor")]) == "floor"


def test_unhandled_error_propagates():
    fn = build(0, [O.CONSTANT0, O.CONSTANT1, O.CALL1, O.RETURN],
               [intern("symbol-name"), 3])
    with pytest.raises(LispError):
        run(fn, [])


def test_void_variable():
    fn = build(0, [O.VAR_REF0, O.RETURN], [intern("no-such-var")])
    with pytest.raises(LispError, match="Void Variable"):
        run(fn, [])


def test_wrong_arg_count():
    fn = build(257, [O.RETURN], [])
    with pytest.raises(LispError):
        run(fn, [])


def test_byte_code_entry():
    assert byte_code(bytes([O.CONSTANT0, O.CONSTANT1, O.PLUS, O.RETURN]), [2, 9], 2,
                     Env()) == 11


def test_prepare_rest_empty():
    fn = build(128, [O.RETURN], [])
    routine = Routine(LispStack([]), CallFrame(ProgramCounter(fn.code), fn.constants))
    assert routine.prepare_lisp_args(fn, 0, "f") == 1
    assert routine.stack.items == [NIL]


def test_list_ops():
    fn = build(0, [O.CONSTANT0, O.CONSTANT1, O.CONS, O.CDR, O.RETURN], [1, 2])
    assert run(fn, []) == 2
    fn = build(0, [O.CONSTANT0, O.CONSTANT1, O.LIST2, O.LENGTH, O.RETURN], [1, 2])
    assert run(fn, []) == 2