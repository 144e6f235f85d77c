import logging
from typing import List
from .tokens import Token, TokenType, KEYWORDS
from .errors import ParseError, ParseErrorKind

logger = logging.getLogger(__name__)

# ASCII whitespace only; other characters are never insignificant
WHITESPACE = " \t\r\n\f\v"


class Lexer:
    def __init__(self, source: str):
        self.source = source
        self.length = len(source)
        self.tokens: List[Token] = []
        self.start = 0
        self.current = 0

    def tokenize(self) -> List[Token]:
        while True:
            self._skip_whitespace()
            if self._is_at_end():
                break
            self.start = self.current
            self._scan_token()
        self.tokens.append(Token(TokenType.EOF, "", self.current))
        return self.tokens

    def _is_at_end(self) -> bool:
        return self.current >= self.length

    def _advance(self) -> str:
        ch = self.source[self.current]
        self.current += 1
        return ch

    def _peek(self) -> str:
        if self._is_at_end():
            return "\0"
        return self.source[self.current]

    def _skip_whitespace(self):
        while not self._is_at_end() and self.source[self.current] in WHITESPACE:
            self.current += 1

    def _add_token(self, type_: TokenType, literal=None):
        text = self.source[self.start:self.current]
        self.tokens.append(Token(type_, text, self.start, literal))

    def _error(self, kind: ParseErrorKind, offset: int, message: str) -> ParseError:
        logger.warning("%s at offset %d: %s", kind.name, offset, message)
        return ParseError(kind, offset, message)

    def _scan_token(self):
        c = self._advance()
        if c == '"':
            self._string(); return
        if c.isalpha() or c == '_':
            self._word(); return
        # Skip past the rest of the offending run so the cursor sits after it
        self._skip_invalid()
        raise self._error(
            ParseErrorKind.INVALID_TOKEN,
            self.start,
            f"Unexpected token '{self.source[self.start:self.current][:10]}'",
        )

    def _string(self):
        end = self.source.find('"', self.current)
        if end == -1:
            self.current = self.length
            raise self._error(
                ParseErrorKind.UNCLOSED_STRING,
                self.start,
                "Unclosed string literal",
            )
        value = self.source[self.current:end]
        self.current = end + 1  # closing quote
        try:
            value.encode("utf-8", "surrogateescape")
        except UnicodeEncodeError as exc:
            raise self._error(
                ParseErrorKind.INVALID_TOKEN,
                self.start + 1 + exc.start,
                f"String literal holds an unencodable character {value[exc.start]!r}",
            ) from None
        self._add_token(TokenType.STRING, value)

    def _word(self):
        while self._peek().isalnum() or self._peek() == '_':
            self._advance()
        text = self.source[self.start:self.current]
        type_ = KEYWORDS.get(text)
        if type_ is None:
            raise self._error(
                ParseErrorKind.INVALID_TOKEN,
                self.start,
                f"Unexpected token '{text[:10]}'",
            )
        self._add_token(type_)

    def _skip_invalid(self):
        while not self._is_at_end() and self._peek() not in WHITESPACE and self._peek() != '"':
            self._advance()
