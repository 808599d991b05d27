from __future__ import annotations

import pytest

pytest.importorskip("bs4")
from bs4 import BeautifulSoup

from rubytxt.document import convert_ruby_txt
from rubytxt.xhtml import render_xhtml


def _soup(text: str, title: str | None = None) -> tuple[str, BeautifulSoup]:
    _, rendered = convert_ruby_txt(text)
    markup = render_xhtml(rendered, title=title)
    return markup, BeautifulSoup(markup, "html.parser")


def test_document_has_sections_and_title() -> None:
    markup, soup = _soup("表題\n著者\n\n本文\n底本：なし")
    assert markup.startswith('<?xml version="1.0" encoding="utf-8"?>')
    assert soup.title.string == "表題"
    sections = soup.find_all("section")
    assert [section["class"] for section in sections] == [["header"], ["body"], ["footer"]]
    assert len(sections[0].find_all("div", class_="line")) == 2


def test_explicit_title_wins() -> None:
    _, soup = _soup("表題\n\n本文\n底本：なし", title="別題")
    assert soup.title.string == "別題"


def test_ruby_markup() -> None:
    _, soup = _soup("表題\n\n｜漢字《かんじ》です。\n底本：なし")
    ruby = soup.find("ruby")
    assert ruby.rb.string == "漢字"
    assert ruby.rt.string == "かんじ"
    assert ruby.next_sibling == "です。"


def test_line_layout_attributes() -> None:
    _, soup = _soup(
        "表題\n\n［＃改丁］\n［＃ページの左右中央］\n［＃３字下げ］献辞\n底本：なし"
    )
    line = soup.find("section", class_="body").find("div", class_="line")
    assert line["data-page-break"] == "kaicho"
    assert line["data-page-center"] == "true"
    assert line["data-indent-first"] == "3"
    assert line.get_text() == "献辞"


def test_midashi_side_block_and_blank_line() -> None:
    _, soup = _soup(
        "表題\n\n第一章［＃「第一章」は大見出し］\n\n本文［＃地付き］署名\n底本：なし"
    )
    body = soup.find("section", class_="body")
    heading = body.find("h3")
    assert heading.get_text() == "第一章"
    assert heading["class"] == ["midashi", "normal"]
    lines = body.find_all("div", class_="line", recursive=False)
    assert lines[1].find("br") is not None
    side = body.find("div", class_="jitsuki")
    assert side.get_text() == "署名"


def test_passthrough_directives() -> None:
    _, soup = _soup("表題\n\n猫［＃「猫」に傍点］は［＃「犬」は太字］\n底本：なし")
    emphasis = soup.find("em")
    assert emphasis["class"] == ["sesame-dot-bouten", "right"]
    assert emphasis.get_text() == "猫"
    assert soup.find("b").get_text() == "犬"
