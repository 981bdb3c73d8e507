# runevm

`runevm` is a small stack-based virtual machine that runs Lisp bytecode using
the Emacs Lisp opcode numbering. It provides the Lisp values the machine works
on (symbols, cons cells, an environment with dynamic binding) and an
interpreter that executes compiled function objects.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `runevm.opcode`: the `OpCode` integer enumeration (`STACK_REF0`,
  `CONSTANT0`, `PLUS`, `RETURN`, ...) and `decode(byte)`, which turns a byte
  into an `OpCode` and raises `ValueError` for bytes that name no instruction.
- `runevm.lisp`: Lisp values and the environment. `Symbol` and
  `intern(name)` (one symbol per name), the constants `NIL` and `T`, `Cons`
  (mutable, structurally compared), `make_list(items)`, `iter_list(obj)` and
  `is_nil(obj)` (which also accepts `None` and `False` as nil). `Env` holds
  global variables, function cells and property lists, with dynamic binding
  through `varbind` / `unbind`, variable access through `get_var` / `set_var`,
  function cells through `defun` / `function` (following symbol aliases), and
  `raise_signal`. Errors are `LispError`; `LispSignal` is a `LispError`
  carrying an error symbol and its data.
- `runevm.character`: `unibyte_string(values)`, building `bytes` from
  integers in the range 0–255 and raising `LispError` otherwise.
- `runevm.machine`: the parts of execution: `ProgramCounter` (bounds-checked,
  with one-byte and little-endian two-byte operands), `LispStack` (indexed from
  the top), `Handler`, `ArgSpec` (decoded from the integer argument descriptor:
  bits 0–6 required count, bit 7 `&rest`, bits 8–14 required plus optional),
  `ByteFn`, `CallFrame` and `make_byte_code(arglist, code, constants, maxdepth)`.
- `runevm.bytecode`: the interpreter: `Routine`, `call(func, args, name, env)`
  and `byte_code(bytestr, vector, maxdepth, env)`, which runs argument-less
  bytecode.

## Example

The function `(lambda (x) (+ x 5))` compiles to the opcodes `DUPLICATE`,
`CONSTANT0`, `PLUS`, `RETURN` with the constant vector `[5]`. The argument
descriptor `257` means one required argument.

```python
from runevm.bytecode import call
from runevm.lisp import Env
from runevm.machine import make_byte_code
from runevm.opcode import OpCode

code = bytes([OpCode.DUPLICATE, OpCode.CONSTANT0, OpCode.PLUS, OpCode.RETURN])
func = make_byte_code(257, code, [5], 0)
print(call(func, [7], "add-five", Env()))  # 12
```

## Calls and errors

The `CALL*` opcodes call the function named by a symbol. The symbol is looked
up in the `Env` function cells first, then among a few built-in functions:
`+`, `-`, `*`, `symbol-name`, `floor`, `apply`, `list`, `car` and `cdr`. A
function cell may hold a `ByteFn` or any Python callable.

Errors raised inside a region opened with `PUSH_CONDITION_CASE` are caught when
the handler's condition is `error` or a list of `error` / `debug`; the stack is
cut back, the error object `(symbol . data)` (or `(error . message)`) is
pushed, and execution resumes at the handler's jump target. Errors outside any
handler propagate as `LispError`.

## What it does not do

There is no reader, compiler or command-line program: bytecode has to be built
by hand or supplied from elsewhere. Buffer and editing opcodes (`POINT`,
`INSERT`, `FORWARD_CHAR`, ...), string opcodes (`SUBSTRING`, `CONCAT*`,
`UPCASE`, ...), `DIFF`, `QUO`, `REM`, `PUSH_CATCH`, `UNWIND_PROTECT` and the
other unimplemented instructions raise `LispError("Unsupported bytecode: ...")`.