"""Tokenizer for hinalang source text."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator

from .errors import CompileError


class TokenKind(enum.IntEnum):
    END = -1
    KEYWORD = 0
    NUMBER = 1
    STRING = 2
    OPERATOR = 3
    COMMA = 4
    SEMICOLON = 5
    RIGHT_ARROW = 6
    LEFT_BRACKET = 7
    RIGHT_BRACKET = 8
    LEFT_BRACE = 9
    RIGHT_BRACE = 10


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str = ""


_WHITESPACE = frozenset(" \t\n")

_PUNCTUATION = {
    ",": TokenKind.COMMA,
    "(": TokenKind.LEFT_BRACKET,
    ")": TokenKind.RIGHT_BRACKET,
    "{": TokenKind.LEFT_BRACE,
    "}": TokenKind.RIGHT_BRACE,
    ";": TokenKind.SEMICOLON,
}

# First character -> characters that may follow it to form a two-character operator.
_OPERATOR_PAIRS = {
    ">": ">=",
    "<": "<=",
    "=": "=",
    "!": "=",
}


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def _is_keyword_char(c: str) -> bool:
    return c == "_" or ord(c) >= 0x80 or (c.isascii() and c.isalnum())


class Lexer:
    """Reads tokens one at a time from source text; the last one can be pushed back."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._prev_pos = 0

    def _peek(self) -> str:
        return self._text[self._pos] if self._pos < len(self._text) else ""

    def _take(self, choices: str) -> str:
        c = self._peek()
        if c and c in choices:
            self._pos += 1
            return c
        return ""

    def _skip_line_comment(self) -> None:
        end = self._text.find("\n", self._pos)
        self._pos = len(self._text) if end < 0 else end + 1

    def _skip_block_comment(self) -> None:
        text = self._text
        while True:
            star = text.find("*", self._pos)
            if star < 0:
                self._pos = len(text)
                return
            # The character after '*' is consumed whether or not it closes the comment.
            self._pos = star + 2
            if text[star + 1 : star + 2] == "/":
                return

    def _skip_blank(self) -> None:
        text = self._text
        while self._pos < len(text):
            c = text[self._pos]
            if c in _WHITESPACE:
                self._pos += 1
            elif text.startswith("//", self._pos):
                self._pos += 2
                self._skip_line_comment()
            elif text.startswith("/*", self._pos):
                self._pos += 2
                self._skip_block_comment()
            else:
                return

    def _read_while(self, predicate) -> str:
        start = self._pos
        while self._pos < len(self._text) and predicate(self._text[self._pos]):
            self._pos += 1
        return self._text[start : self._pos]

    def _read_string(self) -> str:
        parts = []
        while True:
            c = self._peek()
            if not c:
                raise CompileError('" is required.')
            self._pos += 1
            if c == '"':
                return "".join(parts)
            if c == "\\":
                parts.append(c)
                escaped = self._peek()
                if escaped:
                    self._pos += 1
                    parts.append(escaped)
            else:
                parts.append(c)

    def lex(self) -> Token:
        """Read and return the next token; an END token once the text is exhausted."""
        self._prev_pos = self._pos
        self._skip_blank()

        c = self._peek()
        if not c:
            return Token(TokenKind.END)
        self._pos += 1

        if c in "+*%/":
            return Token(TokenKind.OPERATOR, c)
        if c == "-":
            if self._take(">"):
                return Token(TokenKind.RIGHT_ARROW, "->")
            return Token(TokenKind.OPERATOR, "-")
        if c in _OPERATOR_PAIRS:
            second = self._take(_OPERATOR_PAIRS[c])
            return Token(TokenKind.OPERATOR, c + second)
        if c in _PUNCTUATION:
            return Token(_PUNCTUATION[c], c)
        if _is_digit(c):
            return Token(TokenKind.NUMBER, c + self._read_while(_is_digit))
        if c == '"':
            return Token(TokenKind.STRING, self._read_string())
        if _is_keyword_char(c):
            return Token(TokenKind.KEYWORD, c + self._read_while(_is_keyword_char))
        raise CompileError(f"Undefined char '{c}'")

    def push_back(self) -> None:
        """Rewind to where the most recent call to lex() started."""
        self._pos = self._prev_pos


def tokenize(text: str) -> Iterator[Token]:
    """Yield every token of *text*, not including the final END token."""
    lexer = Lexer(text)
    while (token := lexer.lex()).kind is not TokenKind.END:
        yield token