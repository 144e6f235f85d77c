import logging
from typing import List
from .tokens import Token, TokenType
from .lexer import Lexer
from .errors import ParseError, ParseErrorKind
from . import ast as A

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 256


class Parser:
    def __init__(self, tokens: List[Token], max_depth: int = DEFAULT_MAX_DEPTH):
        self.tokens = tokens
        self.current = 0
        self.max_depth = max_depth

    def parse(self) -> A.Program:
        stmts: List[A.Operand] = []
        while not self._is_at_end():
            stmts.append(self._expression(0))
        if not stmts:
            raise self._error(ParseErrorKind.EMPTY_SOURCE, 0, "No expressions found")
        return A.Program(stmts)

    # Helpers
    def _match(self, *types: TokenType) -> bool:
        for t in types:
            if self._check(t):
                self._advance()
                return True
        return False

    def _check(self, type_: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._peek().type == type_

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]

    def _error(self, kind: ParseErrorKind, offset: int, message: str) -> ParseError:
        logger.warning("%s at offset %d: %s", kind.name, offset, message)
        return ParseError(kind, offset, message)

    # Grammar
    def _expression(self, depth: int) -> A.Operand:
        if self._match(TokenType.STRING):
            tok = self._previous()
            return A.String(tok.literal, tok.offset)
        if self._match(TokenType.ENCRYPT, TokenType.DECRYPT):
            keyword = self._previous()
            if depth >= self.max_depth:
                raise self._error(
                    ParseErrorKind.NESTING_TOO_DEEP,
                    keyword.offset,
                    f"Nesting deeper than {self.max_depth} levels",
                )
            if self._is_at_end():
                raise self._error(
                    ParseErrorKind.MISSING_OPERAND,
                    self._peek().offset,
                    f"Missing operand for '{keyword.lexeme}'",
                )
            operand = self._expression(depth + 1)
            if keyword.type == TokenType.ENCRYPT:
                return A.Encrypt(operand, keyword.offset)
            return A.Decrypt(operand, keyword.offset)
        # The lexer only produces strings and keywords; anything else is a bad token stream
        tok = self._peek()
        raise self._error(ParseErrorKind.INVALID_TOKEN, tok.offset, f"Unexpected token '{tok.lexeme}'")


def parse_source(source: str, max_depth: int = DEFAULT_MAX_DEPTH) -> A.Program:
    tokens = Lexer(source).tokenize()
    return Parser(tokens, max_depth).parse()
