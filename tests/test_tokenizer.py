from __future__ import annotations

from rubytxt.tokenizer import tokenize_ruby_txt
from rubytxt.tokens import (
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
    TokenKind,
    deserialize_tokens,
    serialize_tokens,
)


def test_ruby_markers_split_text() -> None:
    tokens = tokenize_ruby_txt("｜東京《とうきょう》へ")
    assert tokens == [
        POSITION_MARKER,
        Token.text("東京"),
        RUBY_OPEN,
        Token.text("とうきょう"),
        RUBY_CLOSE,
        Token.text("へ"),
    ]


def test_all_line_break_styles_become_one_new_line() -> None:
    tokens = tokenize_ruby_txt("a\r\nb\rc\nd")
    assert tokens == [
        Token.text("a"),
        NEW_LINE,
        Token.text("b"),
        NEW_LINE,
        Token.text("c"),
        NEW_LINE,
        Token.text("d"),
    ]


def test_blank_lines_keep_one_token_per_break() -> None:
    tokens = tokenize_ruby_txt("表題\r\n\r\n本文")
    assert [token.kind for token in tokens] == [
        TokenKind.TEXT,
        TokenKind.NEW_LINE,
        TokenKind.NEW_LINE,
        TokenKind.TEXT,
    ]


def test_kunojiten_with_and_without_dakuten() -> None:
    tokens = tokenize_ruby_txt("いろ／＼と／″＼")
    assert tokens == [
        Token.text("いろ"),
        Token.kunojiten(),
        Token.text("と"),
        Token.kunojiten(dakuten=True),
    ]


def test_gaiji_open_wins_over_annotation_open() -> None:
    tokens = tokenize_ruby_txt("※［＃x］［＃y］〔e'〕")
    assert tokens == [
        GAIJI_ANNOTATION_OPEN,
        Token.text("x"),
        ANNOTATION_CLOSE,
        ANNOTATION_OPEN,
        Token.text("y"),
        ANNOTATION_CLOSE,
        ACCENT_OPEN,
        Token.text("e'"),
        ACCENT_CLOSE,
    ]


def test_lone_reference_mark_stays_text() -> None:
    assert tokenize_ruby_txt("※注意／") == [Token.text("※注意／")]


def test_empty_input_has_no_tokens() -> None:
    assert tokenize_ruby_txt("") == []


def test_plain_text_round_trips() -> None:
    text = "吾輩は猫である。\n名前はまだ無い。\n\nどこで生れたかとんと見当がつかぬ。"
    tokens = tokenize_ruby_txt(text)
    assert "".join(token.literal() for token in tokens) == text


def test_literal_reproduces_structural_glyphs() -> None:
    text = "｜漢字《かんじ》［＃傍点］※［＃x］〔a`〕／＼／″＼"
    assert "".join(token.literal() for token in tokenize_ruby_txt(text)) == text


def test_serialized_tokens_restore() -> None:
    tokens = tokenize_ruby_txt("本文《ほんぶん》／″＼\n")
    payload = serialize_tokens(tokens)
    assert payload[0] == {"type": "text", "value": "本文"}
    assert payload[1] == {"type": "ruby-open"}
    assert payload[-2] == {"type": "kunojiten", "dakuten": True}
    assert deserialize_tokens(payload) == tokens


def test_deserialize_skips_malformed_entries() -> None:
    payload = [{"type": "unknown"}, {"type": "text", "value": ""}, "junk", {"type": "new-line"}]
    assert deserialize_tokens(payload) == [NEW_LINE]
