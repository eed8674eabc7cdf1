"""Tokenization for contract definition files.

Tokens are produced from an ordered rule table. At every offset each rule is
tried; the longest match wins and ties go to the rule added first.

Default rules, in priority order:
  Whitespace  blanks and newlines (dropped)
  Comment     // to end of line (dropped)
  ID          Vehicle, SetSpeed, const (two or more characters)
  Number      0, 42, 3.14
  String      "quoted text"
  Other       ::, or any single remaining character
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    ID = auto()
    NUMBER = auto()
    STRING = auto()
    OTHER = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    line: int
    col: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.lexeme!r}, L{self.line})"


@dataclass(frozen=True)
class LexerRule:
    """A named token pattern. Tokens from rules with keep=False are dropped."""
    name: str
    pattern: re.Pattern[str]
    keep: bool = True
    token_type: TokenType | None = None


class Lexer:
    def __init__(self) -> None:
        self.rules: list[LexerRule] = []

    def add_rule(
        self, name: str, pattern: str, keep: bool = True,
        token_type: TokenType | None = None,
    ) -> LexerRule:
        rule = LexerRule(name, re.compile(pattern), keep, token_type)
        self.rules.append(rule)
        return rule

    def tokenize(self, source: str) -> list[Token]:
        tokens: list[Token] = []
        pos = 0
        line = 1
        line_start = 0

        while pos < len(source):
            best: LexerRule | None = None
            best_end = pos
            for rule in self.rules:
                m = rule.pattern.match(source, pos)
                if m and m.end() > best_end:
                    best, best_end = rule, m.end()

            if best is None:
                # Only reachable with a rule table lacking a catch-all.
                best_end = pos + 1
            elif best.keep and best.token_type is not None:
                tokens.append(Token(
                    best.token_type, source[pos:best_end], line, pos - line_start + 1,
                ))

            newlines = source.count("\n", pos, best_end)
            if newlines:
                line += newlines
                line_start = source.rindex("\n", pos, best_end) + 1
            pos = best_end

        return tokens

    def describe(self) -> list[str]:
        """One line per rule, in priority order."""
        return [
            f"{i}: {rule.name} /{rule.pattern.pattern}/"
            f"{'' if rule.keep else ' (dropped)'}"
            for i, rule in enumerate(self.rules)
        ]


def default_lexer() -> Lexer:
    lexer = Lexer()
    # Whitespace and comments are dismissed first.
    lexer.add_rule("Whitespace", r"[ \t\n\r]+", keep=False)
    lexer.add_rule("Comment", r"//.*", keep=False)

    lexer.add_rule("ID", r"[a-zA-Z_][a-zA-Z0-9_]+", token_type=TokenType.ID)
    lexer.add_rule("Number", r"[0-9]+(\.[0-9]+)?", token_type=TokenType.NUMBER)
    lexer.add_rule("String", r'"[^"]*"', token_type=TokenType.STRING)

    # Symbols have least priority.
    lexer.add_rule("Other", r"::|.", token_type=TokenType.OTHER)
    return lexer


_TOKEN_NAMES = {
    TokenType.ID: "ID",
    TokenType.NUMBER: "Number",
    TokenType.STRING: "String",
    TokenType.OTHER: "Other",
}


def token_name(token: Token) -> str:
    return _TOKEN_NAMES[token.type]


def tokenize(source: str) -> list[Token]:
    """Tokenize a contract source string into a list of tokens."""
    return default_lexer().tokenize(source)


def dump_tokens(tokens: list[Token]) -> list[str]:
    return [f'{pos}: {token_name(tok)} : "{tok.lexeme}"' for pos, tok in enumerate(tokens)]
