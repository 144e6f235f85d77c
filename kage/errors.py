"""
Error taxonomy shared by every stage of the pipeline.

Each stage raises its own exception class; ``kind`` names what went wrong
and ``phase`` names the stage, so a host can report one structured error.
"""
from __future__ import annotations
from enum import Enum, auto


class ParseErrorKind(Enum):
    UNCLOSED_STRING = auto()
    MISSING_OPERAND = auto()
    INVALID_TOKEN = auto()
    EMPTY_SOURCE = auto()
    NESTING_TOO_DEEP = auto()


class CompileErrorKind(Enum):
    UNKNOWN_NODE = auto()
    MISSING_OPERAND = auto()


class VmErrorKind(Enum):
    STACK_UNDERFLOW = auto()
    STACK_OVERFLOW = auto()
    UNKNOWN_OPCODE = auto()
    INCONSISTENT_STACK = auto()
    INVALID_STATE = auto()


class CryptoErrorKind(Enum):
    INVALID_KEY_LENGTH = auto()
    MALFORMED_ENVELOPE = auto()
    AUTHENTICATION_FAILURE = auto()
    ENTROPY_FAILURE = auto()
    INVALID_PLAINTEXT = auto()


class ConfigErrorKind(Enum):
    MISSING_KEY = auto()
    INVALID_KEY = auto()
    INVALID_SETTING = auto()


class KageError(Exception):
    phase = "kage"

    def __init__(self, kind: Enum, message: str = ""):
        super().__init__(message or kind.name.lower().replace("_", " "))
        self.kind = kind

    def describe(self) -> str:
        return f"{self.phase} error: {self.kind.name}: {self}"


class ParseError(KageError):
    phase = "parse"

    def __init__(self, kind: ParseErrorKind, offset: int, message: str = ""):
        super().__init__(kind, message)
        self.offset = offset

    def describe(self) -> str:
        return f"{self.phase} error: {self.kind.name} at offset {self.offset}: {self}"


class CompileError(KageError):
    phase = "compile"


class VmError(KageError):
    phase = "vm"


class CryptoError(KageError):
    phase = "crypto"


class ConfigError(KageError):
    """Raised when a key or setting from the environment is unusable."""
    phase = "config"

