from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional

class TokenType(Enum):
    # Literals
    STRING = auto()

    # Keywords
    ENCRYPT = auto()
    DECRYPT = auto()

    EOF = auto()

KEYWORDS = {
    "encrypt": TokenType.ENCRYPT,
    "decrypt": TokenType.DECRYPT,
}

@dataclass
class Token:
    type: TokenType
    lexeme: str
    offset: int
    literal: Optional[str] = None

    def __repr__(self) -> str:
        lit = f" {self.literal!r}" if self.literal is not None else ""
        return f"{self.type.name} '{self.lexeme}'{lit} (@{self.offset})"
