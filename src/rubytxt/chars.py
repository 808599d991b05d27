from __future__ import annotations

from enum import Enum

from .errors import ParseError

__all__ = [
    "CharType",
    "char_type",
    "split_ruby_target",
    "decode_digits",
]


class CharType(Enum):
    LATIN = "latin"
    HIRAGANA = "hiragana"
    KATAKANA = "katakana"
    KANJI = "kanji"
    OTHER = "other"


# Treated as kanji when looking for the ruby target.
# https://www.aozora.gr.jp/annotation/etc.html#ruby
_KANJI_LIKE = frozenset("仝々〆〇ヶ")

_LATIN_RANGES = (
    (0x0041, 0x005A),
    (0x0061, 0x007A),
    (0x00C0, 0x00FF),
)
_LATIN_EXCLUDED = (0x00D7, 0x00F7)
_KANJI_RANGES = (
    (0x3400, 0x4DBF),
    (0x4E00, 0x9FFF),
    (0xF900, 0xFAFF),
)


def _in_ranges(code: int, ranges: tuple[tuple[int, int], ...]) -> bool:
    return any(lo <= code <= hi for lo, hi in ranges)


def char_type(ch: str) -> CharType:
    if ch in _KANJI_LIKE:
        return CharType.KANJI
    code = ord(ch)
    if _in_ranges(code, _LATIN_RANGES) and code not in _LATIN_EXCLUDED:
        return CharType.LATIN
    if 0x3040 <= code <= 0x309F:
        return CharType.HIRAGANA
    if 0x30A0 <= code <= 0x30FF:
        return CharType.KATAKANA
    if _in_ranges(code, _KANJI_RANGES):
        return CharType.KANJI
    return CharType.OTHER


def split_ruby_target(value: str) -> tuple[str, str]:
    """
    Split ``value`` into ``(prefix, target)`` where ``target`` is the longest
    trailing run of characters sharing the class of the last character.
    """
    if not value:
        raise ValueError("Cannot set ruby to empty text")
    last_type = char_type(value[-1])
    start = len(value)
    while start > 0 and char_type(value[start - 1]) is last_type:
        start -= 1
    return value[:start], value[start:]


def decode_digits(text: str) -> int:
    """Decode a run of half-width or full-width decimal digits."""
    if not text:
        raise ParseError("Empty numeral")
    result = 0
    for ch in text:
        if "0" <= ch <= "9":
            zero = "0"
        elif "０" <= ch <= "９":
            zero = "０"
        else:
            raise ParseError("Invalid numeral", text)
        result = result * 10 + (ord(ch) - ord(zero))
    return result
