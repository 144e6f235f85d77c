from __future__ import annotations
import logging
from . import ast as A
from .bytecode import OpCode, Instruction, Bytecode
from .errors import CompileError, CompileErrorKind

logger = logging.getLogger(__name__)


class CodeGenVM:
    def __init__(self):
        self.code: Bytecode = []

    def generate(self, program: A.Program) -> Bytecode:
        if not isinstance(program, A.Program):
            raise CompileError(CompileErrorKind.UNKNOWN_NODE, f"Expected a Program, got {type(program).__name__}")
        for st in program.statements:
            self._emit_expr(st)
        logger.debug("generated %d instructions for %d statements", len(self.code), len(program.statements))
        return self.code

    def _emit(self, op: OpCode, arg=None):
        self.code.append(Instruction(op, arg))
        logger.debug("emit %s (count=%d)", op.name, len(self.code))

    def _emit_expr(self, e: A.Expr):
        if isinstance(e, A.String):
            self._emit(OpCode.PUSH, e.value)
        elif isinstance(e, (A.Encrypt, A.Decrypt)):
            if e.operand is None:
                raise CompileError(
                    CompileErrorKind.MISSING_OPERAND,
                    f"{type(e).__name__} at offset {e.offset} has no operand",
                )
            # operand leaves exactly one value on the stack
            self._emit_expr(e.operand)
            self._emit(OpCode.ENCRYPT if isinstance(e, A.Encrypt) else OpCode.DECRYPT)
        else:
            raise CompileError(CompileErrorKind.UNKNOWN_NODE, f"Unknown AST node {type(e).__name__}")
