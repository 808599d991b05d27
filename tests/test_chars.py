from __future__ import annotations

import pytest

from rubytxt.accent import compose_accent
from rubytxt.chars import CharType, char_type, decode_digits, split_ruby_target
from rubytxt.errors import ParseError
from rubytxt.gaiji import lookup_gaiji, lookup_gaiji_unicode, resolve_gaiji


@pytest.mark.parametrize(
    ("ch", "expected"),
    [
        ("a", CharType.LATIN),
        ("Ｚ", CharType.OTHER),
        ("ā", CharType.OTHER),
        ("\U0002000B", CharType.OTHER),
        ("é", CharType.LATIN),
        ("×", CharType.OTHER),
        ("か", CharType.HIRAGANA),
        ("カ", CharType.KATAKANA),
        ("漢", CharType.KANJI),
        ("々", CharType.KANJI),
        ("ヶ", CharType.KANJI),
        ("、", CharType.OTHER),
    ],
)
def test_char_type(ch: str, expected: CharType) -> None:
    assert char_type(ch) is expected


def test_split_ruby_target_takes_trailing_run() -> None:
    assert split_ruby_target("美しい花") == ("美しい", "花")
    assert split_ruby_target("東京") == ("", "東京")
    assert split_ruby_target("三ヶ月") == ("", "三ヶ月")
    assert split_ruby_target("日本のrubytxt") == ("日本の", "rubytxt")


def test_split_ruby_target_stops_at_basic_ranges() -> None:
    assert split_ruby_target("東京Ｔｏｋｙｏ") == ("東京", "Ｔｏｋｙｏ")
    assert split_ruby_target("Caféā") == ("Café", "ā")
    assert split_ruby_target("\U0002000B野") == ("\U0002000B", "野")


def test_split_ruby_target_rejects_empty_text() -> None:
    with pytest.raises(ValueError):
        split_ruby_target("")


def test_decode_digits_accepts_both_widths() -> None:
    assert decode_digits("12") == 12
    assert decode_digits("１２") == 12
    assert decode_digits("０") == 0


@pytest.mark.parametrize("text", ["", "1a", "一"])
def test_decode_digits_rejects_non_digits(text: str) -> None:
    with pytest.raises(ParseError):
        decode_digits(text)


def test_compose_accent_digraphs_and_trigraphs() -> None:
    assert compose_accent("cafe'") == "café"
    assert compose_accent("Ae&sop") == "Ae&sop"
    assert compose_accent("ae&on") == "æon"
    assert compose_accent("Stras&e") == "Straße"
    assert compose_accent("plain") == "plain"


def test_lookup_gaiji_reads_jis_x_0213_planes() -> None:
    assert lookup_gaiji(1, 4, 2) == "あ"
    assert lookup_gaiji(1, 16, 1) == "亜"
    assert lookup_gaiji(3, 1, 1) is None


def test_lookup_gaiji_unicode_rejects_surrogates() -> None:
    assert lookup_gaiji_unicode(0x546D) == chr(0x546D)
    assert lookup_gaiji_unicode(0xD800) is None
    assert lookup_gaiji_unicode(0x110000) is None


def test_resolve_gaiji_descriptions() -> None:
    assert resolve_gaiji("「あ」、第3水準1-4-2") == "あ"
    assert resolve_gaiji("「口＋世」、U+546D、110-4") == chr(0x546D)
    assert resolve_gaiji("変体仮名え、1-12-3") == "え"
    assert resolve_gaiji("「謎」、未知") is None
