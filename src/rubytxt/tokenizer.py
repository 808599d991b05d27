from __future__ import annotations

from .tokens import (
    ACCENT_CLOSE,
    ACCENT_OPEN,
    ANNOTATION_CLOSE,
    ANNOTATION_OPEN,
    GAIJI_ANNOTATION_OPEN,
    NEW_LINE,
    POSITION_MARKER,
    RUBY_CLOSE,
    RUBY_OPEN,
    Token,
)

__all__ = ["tokenize_ruby_txt"]

# Longest patterns first; the first match at a position wins.
_PATTERNS: tuple[tuple[str, Token], ...] = (
    ("／″＼", Token.kunojiten(dakuten=True)),
    ("／＼", Token.kunojiten()),
    # Line breaks are officially CR+LF but real files mix all three.
    ("\r\n", NEW_LINE),
    ("\r", NEW_LINE),
    ("\n", NEW_LINE),
    ("｜", POSITION_MARKER),
    ("《", RUBY_OPEN),
    ("》", RUBY_CLOSE),
    ("※［＃", GAIJI_ANNOTATION_OPEN),
    ("［＃", ANNOTATION_OPEN),
    ("］", ANNOTATION_CLOSE),
    ("〔", ACCENT_OPEN),
    ("〕", ACCENT_CLOSE),
)
_LEADING_CHARS = frozenset(pattern[0] for pattern, _ in _PATTERNS)


def tokenize_ruby_txt(text: str) -> list[Token]:
    tokens: list[Token] = []
    buffer: list[str] = []
    idx = 0
    length = len(text)
    while idx < length:
        ch = text[idx]
        matched: tuple[str, Token] | None = None
        if ch in _LEADING_CHARS:
            for pattern, token in _PATTERNS:
                if text.startswith(pattern, idx):
                    matched = (pattern, token)
                    break
        if matched is None:
            buffer.append(ch)
            idx += 1
            continue
        if buffer:
            tokens.append(Token.text("".join(buffer)))
            buffer = []
        pattern, token = matched
        tokens.append(token)
        idx += len(pattern)
    if buffer:
        tokens.append(Token.text("".join(buffer)))
    return tokens
