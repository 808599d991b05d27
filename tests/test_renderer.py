from __future__ import annotations

from typing import AbstractSet

import pytest

from rubytxt.elements import (
    BouDecoration,
    BouDecorationSide,
    BouDecorationStyle,
    MidashiLevel,
    MidashiStyle,
    PageBreakKind,
    Ruby,
    Text,
)
from rubytxt.errors import RenderError
from rubytxt.parser import parse_block
from rubytxt.renderer import (
    TOLERATED_VIOLATIONS,
    Indent,
    MidashiComponent,
    PageStyle,
    PassthroughComponent,
    RenderedLine,
    RubyComponent,
    SideBlock,
    StringComponent,
    UnknownAnnotationComponent,
    render_block,
    serialize_line,
)
from rubytxt.tokenizer import tokenize_ruby_txt

STRICT: frozenset[str] = frozenset()


def _render(text: str, tolerated: AbstractSet[str] = TOLERATED_VIOLATIONS) -> list[RenderedLine]:
    return render_block(parse_block(tokenize_ruby_txt(text)), tolerated=tolerated)


def _texts(lines: list[RenderedLine]) -> list[list[object]]:
    return [line.components for line in lines]


def test_ruby_and_text_share_a_line() -> None:
    lines = _render("｜漢字《かんじ》です。")
    assert len(lines) == 1
    assert lines[0].components == [
        RubyComponent("かんじ", (StringComponent("漢字"),)),
        StringComponent("です。"),
    ]
    assert lines[0].has_default_layout


def test_trailing_blank_lines_are_trimmed() -> None:
    lines = _render("本文\n\n\n")
    assert _texts(lines) == [[StringComponent("本文")]]


def test_blank_lines_inside_are_kept() -> None:
    lines = _render("一\n\n二")
    assert _texts(lines) == [[StringComponent("一")], [], [StringComponent("二")]]


def test_jisage_block_indents_enclosed_lines() -> None:
    lines = _render(
        "［＃ここから２字下げ］\n一行目\n二行目\n［＃ここで字下げ終わり］\n三行目"
    )
    assert [line.indent for line in lines] == [Indent(2, 2), Indent(2, 2), Indent(0, 0)]
    assert _texts(lines) == [
        [StringComponent("一行目")],
        [StringComponent("二行目")],
        [StringComponent("三行目")],
    ]


def test_jisage_with_orikaeshi_sets_hanging_indent() -> None:
    lines = _render("［＃ここから３字下げ、折り返して１字下げ］\n本文\n［＃ここで字下げ終わり］")
    assert lines[0].indent == Indent(3, 1)


def test_jisage_after_tentsuki_starts_at_top() -> None:
    lines = _render("［＃ここから改行天付き、折り返して２字下げ］\n本文\n［＃ここで字下げ終わり］")
    assert lines[0].indent == Indent(0, 2)


def test_nested_blocks_use_innermost_indent() -> None:
    lines = _render(
        "［＃ここから２字下げ］\n外\n［＃ここから４字下げ］\n内\n"
        "［＃ここで字下げ終わり］\n外\n［＃ここで字下げ終わり］"
    )
    assert [line.indent.first for line in lines] == [2, 4, 2]


@pytest.mark.parametrize(
    "text",
    [
        "前［＃ここから２字下げ］\n本文\n［＃ここで字下げ終わり］",
        "［＃ここから２字下げ］\n本文\n［＃ここで字下げ終わり］後",
        "［＃ここから２字下げ］本文\n［＃ここで字下げ終わり］",
        "［＃ここから２字下げ］\n本文",
        "［＃ここから地付き］\n本文\n［＃ここで字下げ終わり］",
    ],
)
def test_malformed_blocks_fail(text: str) -> None:
    with pytest.raises(RenderError):
        _render(text)


def test_stray_jisage_end_is_tolerated_by_default() -> None:
    text = "本文\n［＃ここで字下げ終わり］\n次"
    assert _texts(_render(text)) == [[StringComponent("本文")], [StringComponent("次")]]
    with pytest.raises(RenderError):
        _render(text, STRICT)


def test_one_shot_jisage_applies_to_current_line() -> None:
    lines = _render("［＃３字下げ］本文\n次")
    assert lines[0].indent == Indent(3, 3)
    assert lines[1].indent == Indent()


def test_one_shot_jisage_after_text_starts_new_line() -> None:
    lines = _render("前［＃３字下げ］後")
    assert _texts(lines) == [[StringComponent("前")], [StringComponent("後")]]
    assert lines[0].indent == Indent()
    assert lines[1].indent == Indent(3, 3)


def test_page_break_applies_to_next_line() -> None:
    lines = _render("前\n［＃改ページ］\n後")
    assert len(lines) == 2
    assert lines[0].page_style == PageStyle()
    assert lines[1].page_style == PageStyle(PageBreakKind.KAIPAGE)
    assert lines[1].components == [StringComponent("後")]


def test_page_break_after_text_splits_line() -> None:
    lines = _render("前［＃改丁］\n後")
    assert _texts(lines) == [[StringComponent("前")], [StringComponent("後")]]
    assert lines[1].page_style == PageStyle(PageBreakKind.KAICHO)


def test_page_break_before_text_is_tolerated_by_default() -> None:
    lines = _render("［＃改ページ］本文")
    assert lines[0].page_style == PageStyle(PageBreakKind.KAIPAGE)
    assert lines[0].components == [StringComponent("本文")]
    with pytest.raises(RenderError):
        _render("［＃改ページ］本文", STRICT)


def test_conflicting_page_breaks_fail() -> None:
    with pytest.raises(RenderError):
        _render("［＃改丁］\n［＃改ページ］\n本文")


def test_page_center_defaults_to_new_page() -> None:
    lines = _render("［＃ページの左右中央］\n本文")
    assert lines[0].page_style == PageStyle(PageBreakKind.KAIPAGE, True)


def test_page_center_keeps_requested_break() -> None:
    lines = _render("［＃改丁］\n［＃ページの左右中央］\n本文")
    assert lines[0].page_style == PageStyle(PageBreakKind.KAICHO, True)


def test_one_shot_jitsuki_moves_rest_of_line_to_side() -> None:
    lines = _render("本文［＃地付き］署名")
    assert len(lines) == 1
    assert lines[0].components == [StringComponent("本文")]
    assert lines[0].side == SideBlock("jitsuki", 0, ((StringComponent("署名"),),))


def test_one_shot_jiyose_keeps_level() -> None:
    lines = _render("［＃地から２字上げ］署名\n次")
    assert lines[0].components == []
    assert lines[0].side == SideBlock("jiyose", 2, ((StringComponent("署名"),),))
    assert lines[1].side is None


def test_jitsuki_block_gives_each_line_a_side_block() -> None:
    lines = _render("［＃ここから地付き］\n一\n二\n［＃ここで地付き終わり］")
    assert len(lines) == 2
    assert [line.side for line in lines] == [
        SideBlock("jitsuki", 0, ((StringComponent("一"),),)),
        SideBlock("jitsuki", 0, ((StringComponent("二"),),)),
    ]
    assert all(not line.components for line in lines)


def test_inline_midashi_wraps_preceding_text() -> None:
    lines = _render("第一章［＃「第一章」は中見出し］")
    assert lines[0].components == [
        MidashiComponent(
            MidashiLevel.NAKA, MidashiStyle.NORMAL, (StringComponent("第一章"),)
        )
    ]


def test_inline_midashi_spans_ruby() -> None:
    lines = _render("｜第一《だいいち》章［＃「第一章」は大見出し］")
    assert lines[0].components == [
        MidashiComponent(
            MidashiLevel.OH,
            MidashiStyle.NORMAL,
            (
                RubyComponent("だいいち", (StringComponent("第一"),)),
                StringComponent("章"),
            ),
        )
    ]


def test_dogyo_midashi_may_follow_text() -> None:
    lines = _render("前文第一章［＃「第一章」は同行中見出し］")
    assert lines[0].components == [
        StringComponent("前文"),
        MidashiComponent(
            MidashiLevel.NAKA, MidashiStyle.DOGYO, (StringComponent("第一章"),)
        ),
    ]


def test_normal_midashi_must_start_line() -> None:
    with pytest.raises(RenderError, match="start its line"):
        _render("前文第一章［＃「第一章」は中見出し］")


def test_midashi_text_must_be_present() -> None:
    with pytest.raises(RenderError, match="not found"):
        _render("第二章［＃「第一章」は中見出し］")


def test_midashi_start_and_end_on_one_line() -> None:
    lines = _render("［＃大見出し］第一章［＃大見出し終わり］")
    assert lines[0].components == [
        MidashiComponent(MidashiLevel.OH, MidashiStyle.NORMAL, (StringComponent("第一章"),))
    ]


def test_unclosed_inline_midashi_fails() -> None:
    with pytest.raises(RenderError):
        _render("［＃大見出し］第一章\n本文")


def test_midashi_block_wraps_each_line() -> None:
    lines = _render("［＃ここから中見出し］\n第一章\n［＃ここで中見出し終わり］\n本文")
    assert _texts(lines) == [
        [
            MidashiComponent(
                MidashiLevel.NAKA, MidashiStyle.NORMAL, (StringComponent("第一章"),)
            )
        ],
        [StringComponent("本文")],
    ]


def test_unresolved_ruby_splits_last_string() -> None:
    lines = render_block([Text("美しい花"), Ruby("はな", None)])
    assert lines[0].components == [
        StringComponent("美しい"),
        RubyComponent("はな", (StringComponent("花"),)),
    ]


def test_unresolved_ruby_wraps_unknown_annotation() -> None:
    lines = _render("［＃謎］《なぞ》")
    assert lines[0].components == [
        RubyComponent("なぞ", (UnknownAnnotationComponent((StringComponent("謎"),)),))
    ]


def test_ruby_at_line_start_fails() -> None:
    with pytest.raises(RenderError, match="ruby"):
        _render("前\n《かな》")


def test_other_directives_pass_through() -> None:
    lines = _render("［＃「猫」に傍点］")
    decoration = BouDecoration(
        (Text("猫"),), BouDecorationStyle.SESAME_DOT_BOUTEN, BouDecorationSide.RIGHT
    )
    assert lines[0].components == [PassthroughComponent(decoration)]


def test_serialize_line_shape() -> None:
    line = _render("本文［＃地付き］｜署名《しょめい》")[0]
    assert serialize_line(line) == {
        "page_style": {"kind": "continuous", "centered": False},
        "indent": {"first": 0, "left": 0},
        "components": [{"type": "string", "value": "本文"}],
        "side": {
            "kind": "jitsuki",
            "level": 0,
            "lines": [
                [
                    {
                        "type": "ruby",
                        "ruby": "しょめい",
                        "children": [{"type": "string", "value": "署名"}],
                    }
                ]
            ],
        },
    }
