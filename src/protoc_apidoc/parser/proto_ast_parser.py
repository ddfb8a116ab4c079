"""Recursive descent parser for protobuf (.proto) files.

Consumes a token stream from proto_tokenizer and produces proto AST nodes.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from .proto_ast import (
    ProtoEnum,
    ProtoField,
    ProtoFile,
    ProtoHttpRule,
    ProtoMessage,
    ProtoRpc,
    ProtoService,
)
from .proto_tokenizer import ProtoToken, ProtoTokenType, tokenize_proto

HTTP_OPTION_NAMES = {"google.api.http", ".google.api.http"}
HTTP_PATTERNS = ("get", "put", "post", "delete", "patch", "custom")

_LABELS = {
    ProtoTokenType.REPEATED,
    ProtoTokenType.OPTIONAL,
    ProtoTokenType.REQUIRED,
}


class ProtoParseError(Exception):
    """Raised when the parser encounters unexpected input."""

    def __init__(self, message: str, token: ProtoToken | None = None):
        if token:
            super().__init__(f"Line {token.line}:{token.col}: {message}")
        else:
            super().__init__(message)


class ProtoParser:
    """Recursive descent parser for .proto files."""

    def __init__(self, tokens: List[ProtoToken]):
        self._tokens = tokens
        self._pos = 0

    # -- public API --

    def parse(self) -> ProtoFile:
        """Parse the full token stream into a ProtoFile AST."""
        result = ProtoFile()

        while not self._at_end():
            tt = self._peek().type

            if tt == ProtoTokenType.MESSAGE:
                result.messages.append(self._parse_message())
            elif tt == ProtoTokenType.ENUM:
                result.enums.append(self._parse_enum())
            elif tt == ProtoTokenType.SERVICE:
                result.services.append(self._parse_service())
            elif tt == ProtoTokenType.PACKAGE:
                self._advance()
                result.package = self._expect_word().value
                self._expect(ProtoTokenType.SEMICOLON)
            elif tt in (
                ProtoTokenType.SYNTAX,
                ProtoTokenType.EDITION,
                ProtoTokenType.OPTION,
                ProtoTokenType.IMPORT,
            ):
                self._skip_statement()
            elif tt == ProtoTokenType.EXTEND:
                self._skip_block()
            else:
                self._advance()

        return result

    # -- message parsing --

    def _parse_message(self) -> ProtoMessage:
        """Parse: MESSAGE IDENT LBRACE body RBRACE"""
        self._expect(ProtoTokenType.MESSAGE)
        name_tok = self._expect_word()
        message = ProtoMessage(name=name_tok.value)
        self._expect(ProtoTokenType.LBRACE)
        self._parse_message_body(message)
        self._expect(ProtoTokenType.RBRACE)
        return message

    def _parse_message_body(self, message: ProtoMessage) -> None:
        """Parse the contents between { and } of a message."""
        while not self._at_end() and self._peek().type != ProtoTokenType.RBRACE:
            tt = self._peek().type

            if tt == ProtoTokenType.MESSAGE:
                message.nested_messages.append(self._parse_message())
            elif tt == ProtoTokenType.ENUM:
                message.nested_enums.append(self._parse_enum())
            elif tt == ProtoTokenType.ONEOF:
                self._parse_oneof(message)
            elif tt == ProtoTokenType.MAP:
                message.fields.append(self._parse_map_field())
            elif tt in _LABELS or tt == ProtoTokenType.GROUP:
                self._parse_labeled_field(message)
            elif tt in (
                ProtoTokenType.OPTION,
                ProtoTokenType.RESERVED,
                ProtoTokenType.EXTENSIONS,
            ):
                self._skip_statement()
            elif tt == ProtoTokenType.EXTEND:
                self._skip_block()
            elif self._peek().is_word():
                message.fields.append(self._parse_field(self._peek()))
            else:
                self._advance()

    def _parse_oneof(self, message: ProtoMessage) -> None:
        """Parse: ONEOF IDENT LBRACE fields RBRACE. Oneof members are plain message fields."""
        self._expect(ProtoTokenType.ONEOF)
        self._expect_word()
        self._expect(ProtoTokenType.LBRACE)
        while not self._at_end() and self._peek().type != ProtoTokenType.RBRACE:
            tt = self._peek().type
            if tt == ProtoTokenType.OPTION:
                self._skip_statement()
            elif tt == ProtoTokenType.GROUP:
                self._parse_labeled_field(message)
            elif tt == ProtoTokenType.SEMICOLON:
                self._advance()
            else:
                message.fields.append(self._parse_field(self._peek()))
        self._expect(ProtoTokenType.RBRACE)

    def _parse_labeled_field(self, message: ProtoMessage) -> None:
        """Parse a field or group with an optional proto2 label."""
        first = self._peek()
        is_repeated = False
        if first.type in _LABELS:
            is_repeated = first.type == ProtoTokenType.REPEATED
            self._advance()

        if self._peek().type == ProtoTokenType.GROUP:
            self._parse_group(message, first, is_repeated)
        else:
            message.fields.append(self._parse_field(first, is_repeated=is_repeated))

    def _parse_field(self, first: ProtoToken, *, is_repeated: bool = False) -> ProtoField:
        """Parse: IDENT(type) IDENT(name) EQUALS NUMBER [options] SEMICOLON"""
        type_tok = self._expect_word()
        name_tok = self._expect_word()
        self._expect(ProtoTokenType.EQUALS)
        self._expect_number()
        options = self._parse_field_options()
        end = self._expect(ProtoTokenType.SEMICOLON)

        return ProtoField(
            type_name=type_tok.value,
            field_name=name_tok.value,
            is_repeated=is_repeated,
            options=options,
            leading_comments=first.leading_comments,
            trailing_comments=end.trailing_comments,
        )

    def _parse_map_field(self) -> ProtoField:
        """Parse: MAP LANGLE key COMMA value RANGLE IDENT EQUALS NUMBER [options] SEMICOLON"""
        first = self._expect(ProtoTokenType.MAP)
        self._expect(ProtoTokenType.LANGLE)
        key_tok = self._expect_word()
        self._expect(ProtoTokenType.COMMA)
        value_tok = self._expect_word()
        self._expect(ProtoTokenType.RANGLE)
        name_tok = self._expect_word()
        self._expect(ProtoTokenType.EQUALS)
        self._expect_number()
        options = self._parse_field_options()
        end = self._expect(ProtoTokenType.SEMICOLON)

        return ProtoField(
            type_name=value_tok.value,
            field_name=name_tok.value,
            key_type=key_tok.value,
            options=options,
            leading_comments=first.leading_comments,
            trailing_comments=end.trailing_comments,
        )

    def _parse_group(self, message: ProtoMessage, first: ProtoToken, is_repeated: bool) -> None:
        """Parse: GROUP IDENT EQUALS NUMBER [options] LBRACE body RBRACE

        The group body becomes a nested message; the field is named after
        the group in lower case.
        """
        self._expect(ProtoTokenType.GROUP)
        name_tok = self._expect_word()
        self._expect(ProtoTokenType.EQUALS)
        self._expect_number()
        options = self._parse_field_options()
        self._expect(ProtoTokenType.LBRACE)
        body = ProtoMessage(name=name_tok.value)
        self._parse_message_body(body)
        end = self._expect(ProtoTokenType.RBRACE)

        message.nested_messages.append(body)
        message.fields.append(
            ProtoField(
                type_name=name_tok.value,
                field_name=name_tok.value.lower(),
                is_repeated=is_repeated,
                is_group=True,
                options=options,
                leading_comments=first.leading_comments,
                trailing_comments=end.trailing_comments,
            )
        )

    def _parse_field_options(self) -> Dict[str, str]:
        """Parse an optional `[name = value, ...]` list."""
        options: Dict[str, str] = {}
        if self._peek().type != ProtoTokenType.LBRACKET:
            return options
        self._advance()
        while not self._at_end():
            name = self._parse_option_name()
            self._expect(ProtoTokenType.EQUALS)
            options[name] = self._parse_option_value()
            if self._peek().type == ProtoTokenType.COMMA:
                self._advance()
                continue
            self._expect(ProtoTokenType.RBRACKET)
            break
        return options

    # -- enum parsing --

    def _parse_enum(self) -> ProtoEnum:
        """Parse: ENUM IDENT LBRACE (IDENT EQUALS NUMBER [options] SEMICOLON)* RBRACE"""
        self._expect(ProtoTokenType.ENUM)
        enum = ProtoEnum(name=self._expect_word().value)
        self._expect(ProtoTokenType.LBRACE)
        while not self._at_end() and self._peek().type != ProtoTokenType.RBRACE:
            tt = self._peek().type
            if tt in (ProtoTokenType.OPTION, ProtoTokenType.RESERVED):
                self._skip_statement()
            elif self._peek().is_word():
                self._advance()
                self._expect(ProtoTokenType.EQUALS)
                self._expect_number()
                self._parse_field_options()
                self._expect(ProtoTokenType.SEMICOLON)
            else:
                self._advance()
        self._expect(ProtoTokenType.RBRACE)
        return enum

    # -- service parsing --

    def _parse_service(self) -> ProtoService:
        """Parse: SERVICE IDENT LBRACE (rpc | option)* RBRACE"""
        self._expect(ProtoTokenType.SERVICE)
        service = ProtoService(name=self._expect_word().value)
        self._expect(ProtoTokenType.LBRACE)
        while not self._at_end() and self._peek().type != ProtoTokenType.RBRACE:
            tt = self._peek().type
            if tt == ProtoTokenType.RPC:
                service.rpcs.append(self._parse_rpc())
            elif tt == ProtoTokenType.OPTION:
                self._skip_statement()
            else:
                self._advance()
        self._expect(ProtoTokenType.RBRACE)
        return service

    def _parse_rpc(self) -> ProtoRpc:
        """Parse: RPC IDENT LPAREN [STREAM] type RPAREN RETURNS LPAREN [STREAM] type RPAREN (SEMICOLON | block)"""
        start = self._expect(ProtoTokenType.RPC)
        name_tok = self._expect_word()
        client_streaming, input_type = self._parse_rpc_type()
        self._expect(ProtoTokenType.RETURNS)
        server_streaming, output_type = self._parse_rpc_type()

        rpc = ProtoRpc(
            name=name_tok.value,
            input_type=input_type,
            output_type=output_type,
            client_streaming=client_streaming,
            server_streaming=server_streaming,
            leading_comments=start.leading_comments,
        )

        if self._peek().type == ProtoTokenType.SEMICOLON:
            rpc.trailing_comments = self._advance().trailing_comments
            return rpc

        self._expect(ProtoTokenType.LBRACE)
        while not self._at_end() and self._peek().type != ProtoTokenType.RBRACE:
            if self._peek().type == ProtoTokenType.OPTION:
                self._parse_rpc_option(rpc)
            else:
                self._advance()
        end = self._expect(ProtoTokenType.RBRACE)
        rpc.trailing_comments = end.trailing_comments
        if self._peek().type == ProtoTokenType.SEMICOLON:
            self._advance()
        return rpc

    def _parse_rpc_type(self) -> Tuple[bool, str]:
        self._expect(ProtoTokenType.LPAREN)
        streaming = False
        if (
            self._peek().type == ProtoTokenType.STREAM
            and self._peek(1).type != ProtoTokenType.RPAREN
        ):
            self._advance()
            streaming = True
        type_tok = self._expect_word()
        self._expect(ProtoTokenType.RPAREN)
        return streaming, type_tok.value

    def _parse_rpc_option(self, rpc: ProtoRpc) -> None:
        """Parse a method option, keeping google.api.http bindings.

        Accepts both `option (google.api.http) = { get: "/x" };` and
        `option (google.api.http).get = "/x";`.
        """
        self._expect(ProtoTokenType.OPTION)
        if self._peek().type != ProtoTokenType.LPAREN:
            self._skip_statement()
            return
        self._advance()
        name = self._expect_word().value
        self._expect(ProtoTokenType.RPAREN)
        sub_field = None
        if self._peek().type == ProtoTokenType.IDENT and self._peek().value.startswith("."):
            sub_field = self._advance().value[1:]
        self._expect(ProtoTokenType.EQUALS)

        if name not in HTTP_OPTION_NAMES:
            self._skip_statement()
            return

        if sub_field is not None:
            value = self._parse_constant()
            if sub_field == "body" and rpc.http_rule is not None:
                rpc.http_rule.body = value
            else:
                rpc.http_rule = _http_rule_from_fields({sub_field: value})
        elif self._peek().type == ProtoTokenType.LBRACE:
            rpc.http_rule = _http_rule_from_fields(self._parse_text_message())
        else:
            self._skip_statement()
            return
        if self._peek().type == ProtoTokenType.SEMICOLON:
            self._advance()

    def _parse_text_message(self) -> Dict[str, object]:
        """Parse a `{ key: value ... }` option literal into an ordered dict.

        Nested message values are parsed recursively and `[a, b]` values
        become lists; repeated keys keep their first value.
        """
        fields: Dict[str, object] = {}
        self._expect(ProtoTokenType.LBRACE)
        while not self._at_end() and self._peek().type != ProtoTokenType.RBRACE:
            if self._peek().type in (ProtoTokenType.COMMA, ProtoTokenType.SEMICOLON):
                self._advance()
                continue
            key = self._expect_word().value
            if self._peek().type == ProtoTokenType.COLON:
                self._advance()
            fields.setdefault(key, self._parse_text_value())
        self._expect(ProtoTokenType.RBRACE)
        return fields

    def _parse_text_value(self) -> object:
        tt = self._peek().type
        if tt == ProtoTokenType.LBRACE:
            return self._parse_text_message()
        if tt != ProtoTokenType.LBRACKET:
            return self._parse_constant()

        self._advance()
        values: List[object] = []
        while self._peek().type != ProtoTokenType.RBRACKET:
            values.append(self._parse_text_value())
            if self._peek().type != ProtoTokenType.COMMA:
                break
            self._advance()
        self._expect(ProtoTokenType.RBRACKET)
        return values

    # -- option helpers --

    def _parse_option_name(self) -> str:
        if self._peek().type == ProtoTokenType.LPAREN:
            self._advance()
            name = "(" + self._expect_word().value + ")"
            self._expect(ProtoTokenType.RPAREN)
            if self._peek().type == ProtoTokenType.IDENT and self._peek().value.startswith("."):
                name += self._advance().value
            return name
        return self._expect_word().value

    def _parse_option_value(self) -> str:
        if self._peek().type == ProtoTokenType.LBRACE:
            self._parse_text_message()
            return ""
        return self._parse_constant()

    def _parse_constant(self) -> str:
        """Parse a scalar constant; adjacent string literals are concatenated."""
        tok = self._advance()
        if tok.type == ProtoTokenType.STRING_LIT:
            value = tok.value
            while self._peek().type == ProtoTokenType.STRING_LIT:
                value += self._advance().value
            return value
        if tok.type == ProtoTokenType.NUMBER or tok.is_word():
            return tok.value
        raise ProtoParseError(f"Expected constant, got {tok.type.name} ({tok.value!r})", tok)

    # -- skip helpers --

    def _skip_statement(self) -> None:
        """Skip tokens until (and including) the next semicolon outside braces."""
        depth = 0
        while not self._at_end():
            tok = self._advance()
            if tok.type == ProtoTokenType.LBRACE:
                depth += 1
            elif tok.type == ProtoTokenType.RBRACE:
                depth -= 1
            elif tok.type == ProtoTokenType.SEMICOLON and depth <= 0:
                return

    def _skip_block(self) -> None:
        """Skip a keyword + IDENT + braced block (e.g. extend)."""
        self._advance()  # keyword
        # Skip until opening brace
        while not self._at_end() and self._peek().type != ProtoTokenType.LBRACE:
            self._advance()
        if not self._at_end():
            self._advance()  # consume LBRACE
        depth = 1
        while not self._at_end() and depth > 0:
            tok = self._advance()
            if tok.type == ProtoTokenType.LBRACE:
                depth += 1
            elif tok.type == ProtoTokenType.RBRACE:
                depth -= 1

    # -- token helpers --

    def _peek(self, offset: int = 0) -> ProtoToken:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> ProtoToken:
        tok = self._tokens[self._pos]
        if tok.type != ProtoTokenType.EOF:
            self._pos += 1
        return tok

    def _expect(self, expected: ProtoTokenType) -> ProtoToken:
        tok = self._peek()
        if tok.type != expected:
            raise ProtoParseError(
                f"Expected {expected.name}, got {tok.type.name} ({tok.value!r})",
                tok,
            )
        return self._advance()

    def _expect_word(self) -> ProtoToken:
        tok = self._peek()
        if not tok.is_word():
            raise ProtoParseError(
                f"Expected identifier, got {tok.type.name} ({tok.value!r})",
                tok,
            )
        return self._advance()

    def _expect_number(self) -> int:
        """Consume an integer literal (decimal, hex or octal) and return its value."""
        return _to_int(self._expect(ProtoTokenType.NUMBER))

    def _at_end(self) -> bool:
        return self._tokens[self._pos].type == ProtoTokenType.EOF


def _to_int(tok: ProtoToken) -> int:
    digits = tok.value.lstrip("-")
    # A leading zero marks an octal literal, e.g. 010 == 8.
    base = 8 if len(digits) > 1 and digits.startswith("0") and digits.isdigit() else 0
    try:
        return int(tok.value, base)
    except ValueError:
        raise ProtoParseError(f"Invalid number {tok.value!r}", tok) from None


def _http_rule_from_fields(fields: Dict[str, object]) -> ProtoHttpRule:
    """Build an http rule from the parsed option literal; the first pattern key wins."""
    for key, value in fields.items():
        if key not in HTTP_PATTERNS:
            continue
        if isinstance(value, dict):
            return ProtoHttpRule(pattern=key, path=str(value.get("path", "")), body=str(fields.get("body", "")))
        return ProtoHttpRule(pattern=key, path=str(value), body=str(fields.get("body", "")))
    return ProtoHttpRule(pattern="", body=str(fields.get("body", "")))


def parse_proto_text(text: str) -> ProtoFile:
    """Tokenize and parse .proto source text."""
    return ProtoParser(tokenize_proto(text)).parse()
