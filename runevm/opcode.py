"""Bytecode operation codes understood by the interpreter."""
from __future__ import annotations

from enum import IntEnum


class OpCode(IntEnum):
    """A single bytecode instruction, identified by its byte value."""

    STACK_REF0 = 0
    STACK_REF1 = 1
    STACK_REF2 = 2
    STACK_REF3 = 3
    STACK_REF4 = 4
    STACK_REF5 = 5
    STACK_REF_N = 6
    STACK_REF_N2 = 7
    VAR_REF0 = 8
    VAR_REF1 = 9
    VAR_REF2 = 10
    VAR_REF3 = 11
    VAR_REF4 = 12
    VAR_REF5 = 13
    VAR_REF_N = 14
    VAR_REF_N2 = 15
    VAR_SET0 = 16
    VAR_SET1 = 17
    VAR_SET2 = 18
    VAR_SET3 = 19
    VAR_SET4 = 20
    VAR_SET5 = 21
    VAR_SET_N = 22
    VAR_SET_N2 = 23
    VAR_BIND0 = 24
    VAR_BIND1 = 25
    VAR_BIND2 = 26
    VAR_BIND3 = 27
    VAR_BIND4 = 28
    VAR_BIND5 = 29
    VAR_BIND_N = 30
    VAR_BIND_N2 = 31
    CALL0 = 32
    CALL1 = 33
    CALL2 = 34
    CALL3 = 35
    CALL4 = 36
    CALL5 = 37
    CALL_N = 38
    CALL_N2 = 39
    UNBIND0 = 40
    UNBIND1 = 41
    UNBIND2 = 42
    UNBIND3 = 43
    UNBIND4 = 44
    UNBIND5 = 45
    UNBIND_N = 46
    UNBIND_N2 = 47
    POP_HANDLER = 48
    PUSH_CONDITION_CASE = 49
    PUSH_CATCH = 50
    NTH = 56
    SYMBOLP = 57
    CONSP = 58
    STRINGP = 59
    LISTP = 60
    EQ = 61
    MEMQ = 62
    NOT = 63
    CAR = 64
    CDR = 65
    CONS = 66
    LIST1 = 67
    LIST2 = 68
    LIST3 = 69
    LIST4 = 70
    LENGTH = 71
    AREF = 72
    ASET = 73
    SYMBOL_VALUE = 74
    SYMBOL_FUNCTION = 75
    SET = 76
    FSET = 77
    GET = 78
    SUBSTRING = 79
    CONCAT2 = 80
    CONCAT3 = 81
    CONCAT4 = 82
    SUB1 = 83
    ADD1 = 84
    EQL_SIGN = 85
    GREATER_THAN = 86
    LESS_THAN = 87
    LESS_THAN_OR_EQUAL = 88
    GREATER_THAN_OR_EQUAL = 89
    DIFF = 90
    NEGATE = 91
    PLUS = 92
    MAX = 93
    MIN = 94
    MULTIPLY = 95
    POINT = 96
    GOTO_CHAR = 98
    INSERT = 99
    POINT_MAX = 100
    POINT_MIN = 101
    CHAR_AFTER = 102
    FOLLOWING_CHAR = 103
    PRECEDING_CHAR = 104
    CURRENT_COLUMN = 105
    INDENT_TO = 106
    END_OF_LINE_P = 108
    END_OF_BUFFER_P = 109
    BEGINNING_OF_LINE_P = 110
    BEGINNING_OF_BUFFER_P = 111
    CURRENT_BUFFER = 112
    SET_BUFFER = 113
    SAVE_CURRENT_BUFFER1 = 114
    FORWARD_CHAR = 117
    FORWARD_WORD = 118
    SKIP_CHARS_FORWARD = 119
    SKIP_CHARS_BACKWARD = 120
    FORWARD_LINE = 121
    CHAR_SYNTAX = 122
    BUFFER_SUBSTRING = 123
    DELETE_REGION = 124
    NARROW_TO_REGION = 125
    WIDEN = 126
    END_OF_LINE = 127
    CONSTANT_N2 = 129
    GOTO = 130
    GOTO_IF_NIL = 131
    GOTO_IF_NON_NIL = 132
    GOTO_IF_NIL_ELSE_POP = 133
    GOTO_IF_NON_NIL_ELSE_POP = 134
    RETURN = 135
    DISCARD = 136
    DUPLICATE = 137
    SAVE_EXCURSION = 138
    SAVE_RESTRICTION = 140
    UNWIND_PROTECT = 142
    SET_MARKER = 147
    MATCH_BEGINNING = 148
    MATCH_END = 149
    UPCASE = 150
    DOWNCASE = 151
    STRING_EQL_SIGN = 152
    STRING_LESS_THAN = 153
    EQUAL = 154
    NTHCDR = 155
    ELT = 156
    MEMBER = 157
    ASSQ = 158
    NREVERSE = 159
    SETCAR = 160
    SETCDR = 161
    CAR_SAFE = 162
    CDR_SAFE = 163
    NCONC = 164
    QUO = 165
    REM = 166
    NUMBERP = 167
    INTEGERP = 168
    LIST_N = 175
    CONCAT_N = 176
    INSERT_N = 177
    STACK_SET_N = 178
    STACK_SET_N2 = 179
    DISCARD_N = 182
    SWITCH = 183
    CONSTANT0 = 192
    CONSTANT1 = 193
    CONSTANT2 = 194
    CONSTANT3 = 195
    CONSTANT4 = 196
    CONSTANT5 = 197
    CONSTANT6 = 198
    CONSTANT7 = 199
    CONSTANT8 = 200
    CONSTANT9 = 201
    CONSTANT10 = 202
    CONSTANT11 = 203
    CONSTANT12 = 204
    CONSTANT13 = 205
    CONSTANT14 = 206
    CONSTANT15 = 207
    CONSTANT16 = 208
    CONSTANT17 = 209
    CONSTANT18 = 210
    CONSTANT19 = 211
    CONSTANT20 = 212
    CONSTANT21 = 213
    CONSTANT22 = 214
    CONSTANT23 = 215
    CONSTANT24 = 216
    CONSTANT25 = 217
    CONSTANT26 = 218
    CONSTANT27 = 219
    CONSTANT28 = 220
    CONSTANT29 = 221
    CONSTANT30 = 222
    CONSTANT31 = 223
    CONSTANT32 = 224
    CONSTANT33 = 225
    CONSTANT34 = 226
    CONSTANT35 = 227
    CONSTANT36 = 228
    CONSTANT37 = 229
    CONSTANT38 = 230
    CONSTANT39 = 231
    CONSTANT40 = 232
    CONSTANT41 = 233
    CONSTANT42 = 234
    CONSTANT43 = 235
    CONSTANT44 = 236
    CONSTANT45 = 237
    CONSTANT46 = 238
    CONSTANT47 = 239
    CONSTANT48 = 240
    CONSTANT49 = 241
    CONSTANT50 = 242
    CONSTANT51 = 243
    CONSTANT52 = 244
    CONSTANT53 = 245
    CONSTANT54 = 246
    CONSTANT55 = 247
    CONSTANT56 = 248
    CONSTANT57 = 249
    CONSTANT58 = 250
    CONSTANT59 = 251
    CONSTANT60 = 252
    CONSTANT61 = 253
    CONSTANT62 = 254
    CONSTANT63 = 255


def decode(byte: int) -> OpCode:
    """Return the operation for ``byte``, raising ValueError if it names none."""
    try:
        return OpCode(byte)
    except ValueError:
        raise ValueError(f"Invalid Bytecode: {byte}") from None