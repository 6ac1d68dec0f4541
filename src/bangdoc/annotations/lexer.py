"""Tokenizer for a single annotation line.

An annotation line looks like ``!verb token token ...``. Tokens are bare
words, quoted strings, ``<angle>`` and ``(paren)`` values, ``#tags``,
``key=value`` flags, ``name:type`` pairs and the ``->`` arrow.
"""

import re
from enum import Enum
from typing import NamedTuple

MARKER = "!"

_FLAG_RE = re.compile(r"^([A-Za-z_][\w\-]*)=(.*)$", re.DOTALL)
_PAIR_RE = re.compile(r"^([^\s:=]+):([^\s:/]+)$")


class TokenKind(str, Enum):
    WORD = "word"
    STRING = "string"
    ANGLE = "angle"
    PAREN = "paren"
    TAG = "tag"
    FLAG = "flag"
    PAIR = "pair"
    ARROW = "arrow"


class Token(NamedTuple):
    kind: TokenKind
    text: str
    key: str = ""
    value: str = ""

    @property
    def is_positional(self) -> bool:
        return self.kind not in (TokenKind.TAG, TokenKind.FLAG, TokenKind.ARROW)


def split_annotation(line: str) -> tuple[str, str] | None:
    """Split ``!verb rest`` into ``(verb, rest)``; None if not an annotation."""
    stripped = line.strip()
    if not stripped.startswith(MARKER):
        return None
    body = stripped[len(MARKER):]
    if not body or body[0].isspace():
        return None
    parts = body.split(None, 1)
    rest = parts[1] if len(parts) > 1 else ""
    return parts[0], rest.strip()


def tokenize_line(text: str) -> list[Token] | None:
    """Tokenize the part of an annotation line after the verb.

    Returns None when the line is malformed (an unterminated quote, angle
    or paren value).
    """
    tokens: list[Token] = []
    pos = 0
    end = len(text)

    while pos < end:
        ch = text[pos]
        if ch.isspace():
            pos += 1
            continue

        if ch == '"':
            closed = _read_quoted(text, pos)
            if closed is None:
                return None
            value, pos = closed
            tokens.append(Token(TokenKind.STRING, value))
            continue

        if ch in "<(":
            closer = ">" if ch == "<" else ")"
            stop = text.find(closer, pos + 1)
            if stop == -1:
                return None
            kind = TokenKind.ANGLE if ch == "<" else TokenKind.PAREN
            tokens.append(Token(kind, text[pos + 1:stop].strip()))
            pos = stop + 1
            continue

        start = pos
        while pos < end and not text[pos].isspace():
            # key="quoted value"
            if text[pos] == "=" and pos + 1 < end and text[pos + 1] == '"' and _FLAG_RE.match(text[start:pos + 1]):
                closed = _read_quoted(text, pos + 1)
                if closed is None:
                    return None
                value, pos = closed
                key = text[start:start + text[start:].index("=")]
                tokens.append(Token(TokenKind.FLAG, f"{key}={value}", key=key, value=value))
                break
            pos += 1
        else:
            tokens.append(_classify(text[start:pos]))

    return tokens


def _read_quoted(text: str, start: int) -> tuple[str, int] | None:
    """Read a double-quoted string starting at ``start``; returns (value, next_pos)."""
    chars: list[str] = []
    pos = start + 1
    while pos < len(text):
        ch = text[pos]
        if ch == "\\" and pos + 1 < len(text) and text[pos + 1] in '"\\':
            chars.append(text[pos + 1])
            pos += 2
            continue
        if ch == '"':
            return "".join(chars), pos + 1
        chars.append(ch)
        pos += 1
    return None


def _classify(word: str) -> Token:
    if word == "->":
        return Token(TokenKind.ARROW, word)
    if word.startswith("#") and len(word) > 1:
        return Token(TokenKind.TAG, word[1:])
    match = _FLAG_RE.match(word)
    if match:
        return Token(TokenKind.FLAG, word, key=match.group(1), value=match.group(2))
    match = _PAIR_RE.match(word)
    if match:
        return Token(TokenKind.PAIR, word, key=match.group(1), value=match.group(2))
    return Token(TokenKind.WORD, word)
