from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Union

# Expressions
@dataclass(frozen=True)
class Expr:
    pass

@dataclass(frozen=True)
class String(Expr):
    value: str
    offset: int = 0

@dataclass(frozen=True)
class Encrypt(Expr):
    operand: Operand
    offset: int = 0

@dataclass(frozen=True)
class Decrypt(Expr):
    operand: Operand
    offset: int = 0

Operand = Union[String, Encrypt, Decrypt]

@dataclass(frozen=True)
class Program:
    statements: List[Operand] = field(default_factory=list)
