from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

__all__ = [
    "Token",
    "TokenKind",
    "serialize_tokens",
    "deserialize_tokens",
]


class TokenKind(str, Enum):
    TEXT = "text"
    KUNOJITEN = "kunojiten"
    NEW_LINE = "new-line"
    POSITION_MARKER = "position-marker"
    RUBY_OPEN = "ruby-open"
    RUBY_CLOSE = "ruby-close"
    ANNOTATION_OPEN = "annotation-open"
    ANNOTATION_CLOSE = "annotation-close"
    GAIJI_ANNOTATION_OPEN = "gaiji-annotation-open"
    ACCENT_OPEN = "accent-open"
    ACCENT_CLOSE = "accent-close"


_LITERALS = {
    TokenKind.NEW_LINE: "\n",
    TokenKind.POSITION_MARKER: "｜",
    TokenKind.RUBY_OPEN: "《",
    TokenKind.RUBY_CLOSE: "》",
    TokenKind.ANNOTATION_OPEN: "［＃",
    TokenKind.ANNOTATION_CLOSE: "］",
    TokenKind.GAIJI_ANNOTATION_OPEN: "※［＃",
    TokenKind.ACCENT_OPEN: "〔",
    TokenKind.ACCENT_CLOSE: "〕",
}


@dataclass(frozen=True)
class Token:
    """
    One lexical unit of a ruby-txt document.

    ``value`` is only set for text tokens and ``dakuten`` only matters for
    kunojiten (the voiced form ``／″＼``).
    """

    kind: TokenKind
    value: str | None = None
    dakuten: bool = False

    @classmethod
    def text(cls, value: str) -> "Token":
        return cls(TokenKind.TEXT, value=value)

    @classmethod
    def kunojiten(cls, dakuten: bool = False) -> "Token":
        return cls(TokenKind.KUNOJITEN, dakuten=dakuten)

    @property
    def is_new_line(self) -> bool:
        return self.kind is TokenKind.NEW_LINE

    def literal(self) -> str:
        """Return the source glyphs this token was read from."""
        if self.kind is TokenKind.TEXT:
            return self.value or ""
        if self.kind is TokenKind.KUNOJITEN:
            return "／″＼" if self.dakuten else "／＼"
        return _LITERALS[self.kind]


NEW_LINE = Token(TokenKind.NEW_LINE)
POSITION_MARKER = Token(TokenKind.POSITION_MARKER)
RUBY_OPEN = Token(TokenKind.RUBY_OPEN)
RUBY_CLOSE = Token(TokenKind.RUBY_CLOSE)
ANNOTATION_OPEN = Token(TokenKind.ANNOTATION_OPEN)
ANNOTATION_CLOSE = Token(TokenKind.ANNOTATION_CLOSE)
GAIJI_ANNOTATION_OPEN = Token(TokenKind.GAIJI_ANNOTATION_OPEN)
ACCENT_OPEN = Token(TokenKind.ACCENT_OPEN)
ACCENT_CLOSE = Token(TokenKind.ACCENT_CLOSE)


def serialize_tokens(tokens: Iterable[Token]) -> list[dict[str, object]]:
    payload: list[dict[str, object]] = []
    for token in tokens:
        entry: dict[str, object] = {"type": token.kind.value}
        if token.kind is TokenKind.TEXT:
            entry["value"] = token.value
        elif token.kind is TokenKind.KUNOJITEN:
            entry["dakuten"] = token.dakuten
        payload.append(entry)
    return payload


def deserialize_tokens(data: Iterable[Mapping[str, object]]) -> list[Token]:
    tokens: list[Token] = []
    for entry in data:
        if not isinstance(entry, Mapping):
            continue
        raw_kind = entry.get("type")
        try:
            kind = TokenKind(raw_kind)
        except ValueError:
            continue
        if kind is TokenKind.TEXT:
            value = entry.get("value")
            if not isinstance(value, str) or not value:
                continue
            tokens.append(Token.text(value))
        elif kind is TokenKind.KUNOJITEN:
            tokens.append(Token.kunojiten(bool(entry.get("dakuten"))))
        else:
            tokens.append(Token(kind))
    return tokens
