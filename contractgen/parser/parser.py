"""AST construction for contract definitions.

Recursive descent over the token list from the lexer. The cursor is an
explicit position: every scanner and driver takes `pos` and returns the
position just past what it consumed.

Grammar:
  TYPE_OR_EXPRESSION: everything up to an unmatched ')', ']', '}' or '>'
  STATEMENT:          everything up to a ';' outside of brackets
  BLOCK:              '{' STATEMENT* '}'
  TYPE:               ID TYPE_END
  TYPE_END:           (nothing) | '::' TYPE | '<' TYPE_OR_EXPRESSION '>' TYPE_END
  DECLARE:            TYPE ID
  FUNCTION:           DECLARE '(' PARAMS ')'
  MEMBER:             DECLARE ';'
                    | DECLARE '=' STATEMENT
                    | FUNCTION ATTR* BLOCK
                    | FUNCTION ATTR* '=' ('required' | 'default') ';'
                    | 'using' ID '=' STATEMENT
  CONTRACT:           'contract' ID ':' ID '{' MEMBER* '}' ';'
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, NoReturn

from contractgen.config import ParserConfig
from contractgen.parser.lexer import Token, TokenType, tokenize
from contractgen.parser.types import (
    Root, Contract, AssociatedType, DataMember, MethodDecl,
)


_MATCHING_CLOSE = {"(": ")", "[": "]", "{": "}"}
_MATCHING_OPEN = {")": "(", "]": "[", "}": "{"}


class ParseError(Exception):
    def __init__(
        self,
        message: str,
        position: int,
        expected: str | None = None,
        token: Token | None = None,
    ):
        if token:
            super().__init__(f"token {position} (L{token.line}:{token.col}): {message}")
        else:
            super().__init__(f"token {position}: {message}")
        self.message = message
        self.position = position
        self.expected = expected
        self.token = token


def _stderr_trace(message: str) -> None:
    print(message, file=sys.stderr)


class Parser:
    def __init__(
        self,
        tokens: list[Token],
        config: ParserConfig | None = None,
        trace: Callable[[str], None] | None = None,
    ):
        self.tokens = tokens
        self.config = config or ParserConfig()
        self.trace = trace or _stderr_trace
        self.root = Root()

    # --- Cursor helpers ---

    def has_token(self, pos: int) -> bool:
        return 0 <= pos < len(self.tokens)

    def is_id(self, pos: int) -> bool:
        return self.has_token(pos) and self.tokens[pos].type == TokenType.ID

    def is_number(self, pos: int) -> bool:
        return self.has_token(pos) and self.tokens[pos].type == TokenType.NUMBER

    def is_string(self, pos: int) -> bool:
        return self.has_token(pos) and self.tokens[pos].type == TokenType.STRING

    def as_char(self, pos: int) -> str:
        """The symbol at pos if it is a single-character Other token, else ""."""
        if self.has_token(pos) and self.tokens[pos].type == TokenType.OTHER:
            lexeme = self.tokens[pos].lexeme
            if len(lexeme) == 1:
                return lexeme
        return ""

    def as_lexeme(self, pos: int) -> str:
        return self.tokens[pos].lexeme if self.has_token(pos) else ""

    def concat_lexemes(self, start: int, end: int) -> str:
        return " ".join(tok.lexeme for tok in self.tokens[start:end])

    def error(self, message: str, pos: int, expected: str | None = None) -> NoReturn:
        token = self.tokens[pos] if self.has_token(pos) else None
        raise ParseError(message, pos, expected, token)

    def debug(self, message: str) -> None:
        if self.config.debug:
            self.trace(f"DEBUG: {message}")

    def require_id(self, pos: int, message: str) -> None:
        if not self.is_id(pos):
            self.error(message, pos, "identifier")

    def require_number(self, pos: int, message: str) -> None:
        if not self.is_number(pos):
            self.error(message, pos, "number")

    def require_string(self, pos: int, message: str) -> None:
        if not self.is_string(pos):
            self.error(message, pos, "string")

    def require_char(self, char: str, pos: int, message: str) -> None:
        if self.as_char(pos) != char:
            self.error(message, pos, repr(char))

    def require_lexeme(self, lexeme: str, pos: int, message: str) -> None:
        if self.as_lexeme(pos) != lexeme:
            self.error(message, pos, repr(lexeme))

    # --- Scanners ---

    def scan_code(
        self, pos: int, match_angle_bracket: bool = False, multi_line: bool = False
    ) -> tuple[int, str]:
        """Collect code up to a top-level ';' or an unmatched close bracket.

        An unmatched ')', ']', '}' (or '>' with match_angle_bracket) is left
        unconsumed. A ';' outside of brackets is consumed but not included in
        the returned text; with multi_line it does not stop the scan.
        """
        start = pos
        open_marks: list[tuple[str, int]] = []

        while pos < len(self.tokens):
            char = self.as_char(pos)
            pos += 1

            if char == ";":
                if not open_marks and not multi_line:
                    return pos, self.concat_lexemes(start, pos - 1)
            elif char in _MATCHING_CLOSE:
                open_marks.append((char, pos - 1))
            elif char == "<" and match_angle_bracket:
                open_marks.append((char, pos - 1))
            elif char == ">" and match_angle_bracket:
                if not open_marks:
                    return pos - 1, self.concat_lexemes(start, pos - 1)
                # Inside parens or brackets a '>' is a comparison.
                if open_marks[-1][0] == "<":
                    open_marks.pop()
            elif char in _MATCHING_OPEN:
                # A '<' never closed by '>' was a comparison, not a bracket.
                while open_marks and open_marks[-1][0] == "<":
                    open_marks.pop()
                if not open_marks:
                    return pos - 1, self.concat_lexemes(start, pos - 1)
                mark, mark_pos = open_marks.pop()
                if mark != _MATCHING_OPEN[char]:
                    self.error(
                        f"'{char}' does not match '{mark}' opened at token {mark_pos}",
                        pos - 1, repr(_MATCHING_CLOSE[mark]),
                    )

        if open_marks:
            mark, mark_pos = open_marks[-1]
            self.error(f"unclosed '{mark}' at end of input", mark_pos)
        return pos, self.concat_lexemes(start, pos)

    def scan_statement(self, pos: int, message: str) -> tuple[int, str]:
        """scan_code that must end on a top-level ';'."""
        start = pos
        pos, code = self.scan_code(pos)
        if pos == start or self.as_char(pos - 1) != ";":
            self.error(message, pos, "';'")
        if pos == start + 1:
            self.error("expected a value before ';'", start, "value")
        return pos, code

    def scan_type(self, pos: int) -> tuple[int, str]:
        """Collect all tokens used to describe a type."""
        start = pos
        # A type may start with a const.
        if self.as_lexeme(pos) == "const":
            pos += 1

        # The identifier, with each "::" requiring another.
        need_id = True
        while need_id:
            if self.as_lexeme(pos) == "typename":
                pos += 1
            if self.as_lexeme(pos) == "template":
                pos += 1

            self.require_id(pos, f"expecting type, but found {self.as_lexeme(pos)!r}")
            pos += 1
            need_id = False

            if self.as_char(pos) == "<":
                pos, _ = self.scan_code(pos + 1, match_angle_bracket=True)
                self.require_char(">", pos, "templates must end in a close angle bracket")
                pos += 1

            if self.as_lexeme(pos) == "::":
                pos += 1
                need_id = True

        # Type may end in a symbol.
        if self.as_char(pos) == "&":
            pos += 1
        if self.as_char(pos) == "*":
            pos += 1

        return pos, self._join_type(start, pos)

    def _join_type(self, start: int, end: int) -> str:
        parts: list[str] = []
        prev_word = False
        for tok in self.tokens[start:end]:
            word = tok.type in (TokenType.ID, TokenType.NUMBER)
            if parts and word and prev_word:
                parts.append(" ")
            parts.append(tok.lexeme)
            prev_word = word
        return "".join(parts)

    def scan_id_list(self, pos: int) -> tuple[int, set[str]]:
        """Collect a run of identifiers, e.g. function attributes."""
        ids: set[str] = set()
        while self.is_id(pos):
            ids.add(self.as_lexeme(pos))
            pos += 1
        return pos, ids

    # --- Top level ---

    def parse(self) -> Root:
        self.parse_top(0)
        return self.root

    def parse_top(self, pos: int = 0) -> int:
        """Process the tokens starting from the outer-most scope."""
        keyword = self.config.contract_keyword
        while pos < len(self.tokens):
            self.require_id(pos, "statements in outer scope must begin with an identifier or keyword")

            if self.as_lexeme(pos) == keyword:
                contract = Contract(name="", base_name="")
                self.root.children.append(contract)
                pos = self.parse_contract(pos + 1, contract)
            else:
                self.error(f"unknown keyword {self.as_lexeme(pos)!r}", pos, repr(keyword))
        return pos

    # --- Contract body ---

    def parse_contract(self, pos: int, contract: Contract) -> int:
        self.require_id(pos, "contract declaration must be followed by name identifier")
        contract.name = self.as_lexeme(pos)
        pos += 1

        self.require_char(":", pos, "contract names must be followed by a colon (':')")
        pos += 1

        self.require_id(pos, "contract declaration must include name of base class")
        contract.base_name = self.as_lexeme(pos)
        pos += 1

        self.debug(f"defining contract {contract.name!r} with base class {contract.base_name!r}")

        self.require_char("{", pos, "contracts must be defined in braces ('{' and '}')")
        pos += 1

        while self.as_char(pos) != "}":
            self.require_id(pos, "contract members can be either functions, variables, or using-statements")

            if self.as_lexeme(pos) == self.config.alias_keyword:
                pos = self._parse_associated_type(pos + 1, contract)
                continue

            pos, type_name = self.scan_type(pos)

            self.require_id(pos, "functions and variables in contract definition must provide identifier after type name")
            identifier = self.as_lexeme(pos)
            pos += 1

            if self.as_char(pos) == "(":
                pos = self._parse_method(pos + 1, type_name, identifier, contract)
            else:
                pos = self._parse_data_member(pos, type_name, identifier, contract)

        pos += 1  # closing brace
        self.require_char(";", pos, "contract definitions must end in a semi-colon")
        return pos + 1

    def _parse_associated_type(self, pos: int, contract: Contract) -> int:
        self.require_id(pos, f"a {self.config.alias_keyword!r} statement must first specify the new type name")

        node = AssociatedType(type_name="")
        contract.children.append(node)
        pos, node.type_name = self.scan_type(pos)
        self.debug(f"...adding a type {node.type_name!r}")

        self.require_char("=", pos, "a using statement must provide an equals ('=') to assign the type")
        pos, node.default_code = self.scan_statement(
            pos + 1, "a using statement must end in a semi-colon"
        )
        self.debug(f"   value: {node.default_code}")
        return pos

    def _parse_method(
        self, pos: int, return_type: str, name: str, contract: Contract
    ) -> int:
        node = MethodDecl(return_type=return_type, method_name=name)
        contract.children.append(node)

        pos, node.args = self.scan_code(pos)
        self.require_char(")", pos, "function arguments must end with a close-parenthesis (')')")
        pos += 1
        self.debug(f"...adding a function '{return_type} {name}({node.args})'")

        pos, node.attributes = self.scan_id_list(pos)
        self.debug(f"   with attributes: {node.attribute_string()}")

        char = self.as_char(pos)
        pos += 1

        if char == "=":
            # "= required;" or "= default;" ("= 0;" reads as required)
            marker = self.as_lexeme(pos)
            if self.is_id(pos) and marker == self.config.required_marker:
                node.is_required = True
            elif self.is_id(pos) and marker == self.config.default_marker:
                node.is_default = True
            elif self.is_number(pos) and marker == "0":
                node.is_required = True
            else:
                self.error(
                    f"functions can only be set to {self.config.required_marker!r} "
                    f"or {self.config.default_marker!r}",
                    pos,
                    f"{self.config.required_marker!r} or {self.config.default_marker!r}",
                )
            pos += 1
            self.require_char(";", pos, f"{marker} functions must end in a semi-colon")
            pos += 1
        elif char == "{":
            pos, node.default_code = self.scan_code(pos, multi_line=True)
            self.debug(f"   and code: {node.default_code}")
            self.require_char(
                "}", pos,
                f"function body must end with close brace ('}}') not {self.as_lexeme(pos)!r}",
            )
            pos += 1
        else:
            self.error("function body must begin with open brace or assignment ('{' or '=')", pos - 1, "'{' or '='")

        return pos

    def _parse_data_member(
        self, pos: int, var_type: str, name: str, contract: Contract
    ) -> int:
        node = DataMember(var_type=var_type, var_name=name)
        contract.children.append(node)
        self.debug(f"...adding a variable '{var_type} {name}'")

        if self.as_char(pos) == ";":
            return pos + 1

        if self.as_char(pos) == "=":
            pos += 1
        pos, node.default_code = self.scan_statement(
            pos, "variable declarations must end in a semi-colon"
        )
        self.debug(f"   default: {node.default_code}")
        return pos


def parse_source(
    source: str,
    config: ParserConfig | None = None,
    trace: Callable[[str], None] | None = None,
) -> Root:
    """Parse contract source text into an AST root."""
    tokens = tokenize(source)
    parser = Parser(tokens, config, trace)
    return parser.parse()


def parse_file(
    path: Path,
    config: ParserConfig | None = None,
    trace: Callable[[str], None] | None = None,
) -> Root:
    return parse_source(Path(path).read_text(encoding="utf-8"), config, trace)
