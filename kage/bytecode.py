from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional


class OpCode(Enum):
    PUSH = auto()       # operand: string literal
    POP = auto()        # never emitted by the compiler
    ENCRYPT = auto()    # pop value; push envelope
    DECRYPT = auto()    # pop envelope; push plaintext


Operand = Optional[str]


@dataclass(frozen=True)
class Instruction:
    op: OpCode
    arg: Operand = None


Bytecode = List[Instruction]


def disassemble(code: Bytecode) -> str:
    lines = []
    for pc, instr in enumerate(code):
        if instr.arg is None:
            lines.append(f"{pc:04d}  {instr.op.name}")
        else:
            lines.append(f"{pc:04d}  {instr.op.name:<8} {instr.arg!r}")
    return "\n".join(lines)
