"""
Host entry points: source text in, value out.

``run`` parses, compiles and executes a program under one key and returns
the value left on top of the stack. ``full_decrypt`` peels whatever
encryption layers remain on a value.
"""
from __future__ import annotations
import logging
from typing import List, Optional, Tuple

from .bytecode import Bytecode
from .codegen_vm import CodeGenVM
from .errors import VmError, VmErrorKind
from .parser import DEFAULT_MAX_DEPTH, parse_source
from . import ast as A
from kage_runtime.vm import KageVM, Value, full_decrypt

__all__ = ["compile_source", "run", "run_all", "full_decrypt"]

logger = logging.getLogger(__name__)


def compile_source(source: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Tuple[A.Program, Bytecode]:
    program = parse_source(source, max_depth)
    code = CodeGenVM().generate(program)
    return program, code


def run_all(
    source: str,
    key: bytes,
    stack_limit: Optional[int] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[Value]:
    """Run ``source`` and return one value per top-level expression, in source order."""
    program, code = compile_source(source, max_depth)
    values = KageVM(code, key, stack_limit).run()
    if len(values) != len(program.statements):
        raise VmError(
            VmErrorKind.INCONSISTENT_STACK,
            f"{len(program.statements)} statement(s) left {len(values)} value(s) on the stack",
        )
    logger.debug("ran %d instruction(s), %d result(s)", len(code), len(values))
    return values


def run(
    source: str,
    key: bytes,
    stack_limit: Optional[int] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Value:
    return run_all(source, key, stack_limit, max_depth)[-1]
