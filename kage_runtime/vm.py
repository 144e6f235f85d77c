from __future__ import annotations
import logging
from enum import Enum, auto
from typing import List, Optional, Union
from kage.bytecode import OpCode, Instruction, Bytecode
from kage.errors import KageError, VmError, VmErrorKind
from . import crypto

logger = logging.getLogger(__name__)

Value = str


class VmState(Enum):
    READY = auto()
    HALTED_OK = auto()
    HALTED_ERROR = auto()


def _to_value(data: bytes) -> Value:
    # surrogateescape keeps non-UTF-8 plaintext lossless across the stack
    return data.decode("utf-8", "surrogateescape")


class KageVM:
    def __init__(self, code: Bytecode, key: bytes, stack_limit: Optional[int] = None):
        self.code = code
        self.key = key
        self.stack_limit = stack_limit
        self.stack: List[Value] = []
        self.pc: int = 0
        self.state = VmState.READY

    def push(self, value: Value):
        if self.stack_limit is not None and len(self.stack) >= self.stack_limit:
            raise VmError(VmErrorKind.STACK_OVERFLOW, f"Stack limit of {self.stack_limit} reached")
        self.stack.append(value)

    def pop(self) -> Value:
        if not self.stack:
            raise VmError(VmErrorKind.STACK_UNDERFLOW, f"Stack underflow at pc {self.pc - 1}")
        return self.stack.pop()

    def run(self) -> List[Value]:
        """Execute every instruction once and return the final stack, bottom first."""
        if self.state is not VmState.READY:
            raise VmError(VmErrorKind.INVALID_STATE, f"VM already halted ({self.state.name})")
        try:
            self._run()
        except KageError:
            self.state = VmState.HALTED_ERROR
            raise
        self.state = VmState.HALTED_OK
        return list(self.stack)

    def _run(self):
        code = self.code
        while self.pc < len(code):
            instr = code[self.pc]
            op = instr.op
            self.pc += 1
            logger.debug("pc=%d %s depth=%d", self.pc - 1, op, len(self.stack))

            if op is OpCode.PUSH:
                self.push(instr.arg)

            elif op is OpCode.POP:
                self.pop()

            elif op is OpCode.ENCRYPT:
                v = self.pop()
                self.push(crypto.encrypt(v, self.key))

            elif op is OpCode.DECRYPT:
                v = self.pop()
                self.push(_to_value(crypto.decrypt(v, self.key)))

            else:
                raise VmError(VmErrorKind.UNKNOWN_OPCODE, f"Unknown opcode {op}")

    def result(self) -> Value:
        """Pop the single value a halted program leaves behind."""
        if self.state is not VmState.HALTED_OK:
            raise VmError(VmErrorKind.INVALID_STATE, f"No result in state {self.state.name}")
        if len(self.stack) != 1:
            raise VmError(
                VmErrorKind.INCONSISTENT_STACK,
                f"Expected exactly one value after execution, found {len(self.stack)}",
            )
        return self.stack.pop()


def full_decrypt(value: Union[Value, bytes], key: bytes) -> Union[Value, bytes]:
    """
    Peel encryption layers off ``value`` until it no longer opens under ``key``.

    Never raises: a failed decryption just means there are no more layers.
    """
    layers = 0
    while isinstance(value, str):
        plain = crypto.try_decrypt(value, key)
        if plain is None:
            break
        value = _to_value(plain)
        layers += 1
    logger.debug("full_decrypt peeled %d layer(s)", layers)
    return value
