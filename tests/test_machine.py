import pytest

from runevm.lisp import NIL, LispError
from runevm.machine import (
    ArgSpec,
    ByteFn,
    CallFrame,
    Handler,
    LispStack,
    ProgramCounter,
    make_byte_code,
)


def test_program_counter_reads_in_order():
    pc = ProgramCounter(bytes([7, 9, 11]))
    assert pc.next() == 7
    assert pc.arg1() == 9
    assert pc.next() == 11
    with pytest.raises(IndexError):
        pc.next()


def test_program_counter_arg2_is_little_endian():
    pc = ProgramCounter(bytes([0x06, 0x00, 0x34, 0x12]))
    assert pc.arg2() == 6
    assert pc.arg2() == 0x1234
    assert pc.pc == 4


def test_program_counter_arg2_needs_two_bytes():
    pc = ProgramCounter(bytes([1]))
    with pytest.raises(IndexError):
        pc.arg2()


def test_program_counter_goto():
    pc = ProgramCounter(bytes([10, 20, 30]))
    pc.goto(2)
    assert pc.next() == 30
    pc.goto(0)
    assert pc.next() == 10
    with pytest.raises(IndexError):
        pc.goto(3)


def test_stack_push_pop_top():
    stack = LispStack()
    stack.push(1)
    stack.push(2)
    assert stack.top() == 2
    assert len(stack) == 2
    assert stack.pop() == 2
    assert stack.pop() == 1
    with pytest.raises(IndexError):
        stack.pop()
    with pytest.raises(IndexError):
        stack.top()


def test_stack_set_top():
    stack = LispStack([1, 2])
    stack.set_top("x")
    assert list(stack) == [1, "x"]


def test_stack_ref_counts_from_top():
    stack = LispStack(["a", "b", "c"])
    assert stack.ref(0) == "c"
    assert stack.ref(2) == "a"
    with pytest.raises(IndexError):
        stack.ref(3)


def test_stack_push_ref():
    stack = LispStack(["a", "b", "c"])
    stack.push_ref(1)
    assert list(stack) == ["a", "b", "c", "b"]


def test_stack_set_ref_moves_top_into_slot():
    stack = LispStack(["a", "b", "c", "new"])
    stack.set_ref(2)
    assert list(stack) == ["a", "new", "c"]


def test_stack_set_ref_zero_just_pops():
    stack = LispStack(["a", "b"])
    stack.set_ref(0)
    assert list(stack) == ["a"]


def test_stack_fill_extra_args():
    stack = LispStack([5])
    stack.fill_extra_args(2)
    assert list(stack) == [5, NIL, NIL]


def test_stack_remove_top():
    stack = LispStack([1, 2, 3, 4])
    stack.remove_top(2)
    assert list(stack) == [1, 2]


def test_stack_truncate():
    stack = LispStack([1, 2, 3])
    stack.truncate(1)
    assert list(stack) == [1]
    stack.truncate(5)
    assert list(stack) == [1]


def test_handler_fields():
    handler = Handler(jump_code=9, stack_size=1, condition="error")
    assert (handler.jump_code, handler.stack_size, handler.condition) == (9, 1, "error")


@pytest.mark.parametrize(
    "arglist, required, optional, rest",
    [(0, 0, 0, False), (257, 1, 0, False), (513, 1, 1, False), (771, 3, 0, False), (128, 0, 0, True)],
)
def test_argspec_from_arglist(arglist, required, optional, rest):
    spec = ArgSpec.from_arglist(arglist)
    assert (spec.required, spec.optional, spec.rest) == (required, optional, rest)


def test_argspec_rejects_bad_descriptor():
    with pytest.raises(LispError):
        ArgSpec.from_arglist(3)


def test_argspec_fill_args():
    spec = ArgSpec.from_arglist(513)
    assert spec.num_of_fill_args(1, "f") == 1
    assert spec.num_of_fill_args(2, "f") == 0


def test_argspec_too_few_args():
    with pytest.raises(LispError):
        ArgSpec.from_arglist(257).num_of_fill_args(0, "f")


def test_argspec_too_many_args():
    with pytest.raises(LispError):
        ArgSpec.from_arglist(257).num_of_fill_args(2, "f")


def test_argspec_rest_accepts_extra():
    assert ArgSpec.from_arglist(128).num_of_fill_args(3, "f") == 0


def test_call_frame_get_const():
    frame = CallFrame(ProgramCounter(bytes([0])), [5, "x"], 0)
    assert frame.get_const(1) == "x"
    with pytest.raises(IndexError):
        frame.get_const(2)


def test_make_byte_code_from_list():
    fn = make_byte_code(257, [137, 192, 92, 135], [5], 0)
    assert isinstance(fn, ByteFn)
    assert fn.code == bytes([137, 192, 92, 135])
    assert fn.constants == [5]
    assert fn.args == ArgSpec(1, 0, False)


def test_make_byte_code_from_string():
    fn = make_byte_code(0, "\xc0\x87", [5], 1)
    assert fn.code == bytes([0xC0, 0x87])
    assert fn.depth == 1


def test_make_byte_code_rejects_out_of_range_byte():
    with pytest.raises(LispError):
        make_byte_code(0, [256], [], 0)