"""Tokenizer for protobuf (.proto) files."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional


class ProtoTokenType(Enum):
    # Keywords
    MESSAGE = auto()
    REPEATED = auto()
    OPTIONAL = auto()
    REQUIRED = auto()
    SYNTAX = auto()
    EDITION = auto()
    PACKAGE = auto()
    OPTION = auto()
    RESERVED = auto()
    EXTENSIONS = auto()
    IMPORT = auto()
    ENUM = auto()
    ONEOF = auto()
    MAP = auto()
    GROUP = auto()
    EXTEND = auto()
    SERVICE = auto()
    RPC = auto()
    RETURNS = auto()
    STREAM = auto()

    # Delimiters
    LBRACE = auto()
    RBRACE = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LANGLE = auto()
    RANGLE = auto()
    SEMICOLON = auto()
    COLON = auto()
    COMMA = auto()
    EQUALS = auto()

    # Literals
    IDENT = auto()
    NUMBER = auto()
    STRING_LIT = auto()

    # Special
    EOF = auto()


_KEYWORDS = {
    "message": ProtoTokenType.MESSAGE,
    "repeated": ProtoTokenType.REPEATED,
    "optional": ProtoTokenType.OPTIONAL,
    "required": ProtoTokenType.REQUIRED,
    "syntax": ProtoTokenType.SYNTAX,
    "edition": ProtoTokenType.EDITION,
    "package": ProtoTokenType.PACKAGE,
    "option": ProtoTokenType.OPTION,
    "reserved": ProtoTokenType.RESERVED,
    "extensions": ProtoTokenType.EXTENSIONS,
    "import": ProtoTokenType.IMPORT,
    "enum": ProtoTokenType.ENUM,
    "oneof": ProtoTokenType.ONEOF,
    "map": ProtoTokenType.MAP,
    "group": ProtoTokenType.GROUP,
    "extend": ProtoTokenType.EXTEND,
    "service": ProtoTokenType.SERVICE,
    "rpc": ProtoTokenType.RPC,
    "returns": ProtoTokenType.RETURNS,
    "stream": ProtoTokenType.STREAM,
}

_SINGLE_CHAR_TOKENS = {
    "{": ProtoTokenType.LBRACE,
    "}": ProtoTokenType.RBRACE,
    "(": ProtoTokenType.LPAREN,
    ")": ProtoTokenType.RPAREN,
    "[": ProtoTokenType.LBRACKET,
    "]": ProtoTokenType.RBRACKET,
    "<": ProtoTokenType.LANGLE,
    ">": ProtoTokenType.RANGLE,
    ";": ProtoTokenType.SEMICOLON,
    ":": ProtoTokenType.COLON,
    ",": ProtoTokenType.COMMA,
    "=": ProtoTokenType.EQUALS,
}


@dataclass
class ProtoToken:
    type: ProtoTokenType
    value: str
    line: int
    col: int
    # Comment block directly above the token, and comment following it on the same line.
    leading_comments: str = ""
    trailing_comments: str = ""

    def is_word(self) -> bool:
        """True for identifiers and keywords; keywords are valid type and field names."""
        return self.type == ProtoTokenType.IDENT or self.value in _KEYWORDS


class _CommentTracker:
    """Collects comments and attaches them to tokens the way protoc does."""

    def __init__(self) -> None:
        self._block: List[str] = []
        self._block_end_line = 0
        self._last_token: Optional[ProtoToken] = None

    def add(self, text: str, start_line: int, end_line: int) -> None:
        last = self._last_token
        if last is not None and last.line == start_line and not self._block:
            last.trailing_comments += text
            return
        if self._block and self._block_end_line < start_line - 1:
            self._block = []
        self._block.append(text)
        self._block_end_line = end_line

    def attach(self, token: ProtoToken) -> None:
        if self._block and self._block_end_line >= token.line - 1:
            token.leading_comments = "".join(self._block)
        self._block = []
        self._last_token = token


def _block_comment_text(body: str) -> str:
    lines = []
    for line in body.split("\n"):
        stripped = line.lstrip()
        if stripped.startswith("*"):
            line = stripped[1:]
        lines.append(line)
    text = "\n".join(lines)
    return text if text.endswith("\n") else text + "\n"


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def tokenize_proto(text: str) -> List[ProtoToken]:
    """Tokenize a protobuf source string into a list of tokens."""
    tokens: List[ProtoToken] = []
    comments = _CommentTracker()
    i = 0
    line = 1
    col = 1
    n = len(text)

    def emit(token: ProtoToken) -> None:
        comments.attach(token)
        tokens.append(token)

    while i < n:
        ch = text[i]

        # Whitespace
        if ch in (" ", "\t", "\r"):
            i += 1
            col += 1
            continue

        if ch == "\n":
            i += 1
            line += 1
            col = 1
            continue

        # Single-line comment
        if ch == "/" and i + 1 < n and text[i + 1] == "/":
            start = i + 2
            while i < n and text[i] != "\n":
                i += 1
            comments.add(text[start:i] + "\n", line, line)
            continue

        # Multi-line comment
        if ch == "/" and i + 1 < n and text[i + 1] == "*":
            start_line = line
            i += 2
            col += 2
            start = i
            end = n
            while i < n:
                if text[i] == "\n":
                    line += 1
                    col = 1
                elif text[i] == "*" and i + 1 < n and text[i + 1] == "/":
                    end = i
                    i += 2
                    col += 2
                    break
                else:
                    col += 1
                i += 1
            comments.add(_block_comment_text(text[start:end]), start_line, line)
            continue

        # Single-character tokens
        if ch in _SINGLE_CHAR_TOKENS:
            emit(ProtoToken(_SINGLE_CHAR_TOKENS[ch], ch, line, col))
            i += 1
            col += 1
            continue

        # String literal
        if ch in ('"', "'"):
            quote = ch
            start_col = col
            i += 1
            col += 1
            start = i
            while i < n and text[i] != quote:
                if text[i] == "\\":
                    i += 1
                    col += 1
                i += 1
                col += 1
            value = text[start:i]
            if i < n:
                i += 1  # consume closing quote
                col += 1
            emit(ProtoToken(ProtoTokenType.STRING_LIT, value, line, start_col))
            continue

        # Number (signed, decimal, float or hex)
        if ch.isdigit() or (ch == "-" and i + 1 < n and text[i + 1].isdigit()):
            start = i
            start_col = col
            i += 1
            col += 1
            is_hex = text[start:i + 2].lstrip("-")[:2].lower() == "0x"
            # A sign is part of the literal only as a float exponent sign, e.g. 1.5e-3
            while i < n and (
                text[i].isalnum()
                or text[i] == "."
                or (text[i] in "+-" and text[i - 1] in "eE" and not is_hex)
            ):
                i += 1
                col += 1
            emit(ProtoToken(ProtoTokenType.NUMBER, text[start:i], line, start_col))
            continue

        # Identifier / keyword; full names such as .pkg.Type are one token
        if _is_ident_start(ch) or (ch == "." and i + 1 < n and _is_ident_start(text[i + 1])):
            start = i
            start_col = col
            i += 1
            col += 1
            while i < n and (text[i].isalnum() or text[i] in "_."):
                i += 1
                col += 1
            word = text[start:i]
            tok_type = _KEYWORDS.get(word, ProtoTokenType.IDENT)
            emit(ProtoToken(tok_type, word, line, start_col))
            continue

        # Skip any other character
        i += 1
        col += 1

    tokens.append(ProtoToken(ProtoTokenType.EOF, "", line, col))
    return tokens
