from __future__ import annotations

from typing import Iterable

from bs4 import BeautifulSoup, Tag

from .elements import (
    BouDecoration,
    Caption,
    Image,
    Kaeriten,
    KuntenOkurigana,
    MidashiLevel,
    StringDecoration,
    StringDecorationStyle,
    plain_text,
)
from .renderer import (
    Component,
    MidashiComponent,
    PassthroughComponent,
    RenderedLine,
    RenderedRubyTxt,
    RubyComponent,
    StringComponent,
    UnknownAnnotationComponent,
)

__all__ = ["render_xhtml"]

_XHTML_TEMPLATE = (
    '<html xmlns="http://www.w3.org/1999/xhtml" xml:lang="ja">'
    '<head><meta charset="utf-8"/><title></title></head>'
    "<body></body></html>"
)
_XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'
_MIDASHI_TAGS = {
    MidashiLevel.OH: "h3",
    MidashiLevel.NAKA: "h4",
    MidashiLevel.KO: "h5",
}
_KAERITEN_SERIES = ("一二三四", "上中下", "甲乙丙丁")


def _kaeriten_text(mark: Kaeriten) -> str:
    text = ""
    for series, index in zip(_KAERITEN_SERIES, (mark.ichini, mark.jouge, mark.kouotsu)):
        if index is not None:
            text += series[index]
    if mark.re:
        text += "レ"
    return text


def _passthrough(soup: BeautifulSoup, component: PassthroughComponent) -> Tag:
    data = component.data
    if isinstance(data, BouDecoration):
        tag = soup.new_tag("em", attrs={"class": f"{data.style.value} {data.side.value}"})
        tag.string = plain_text(data.target)
        return tag
    if isinstance(data, StringDecoration):
        tag = soup.new_tag("b" if data.style is StringDecorationStyle.BOLD else "i")
        tag.string = plain_text(data.target)
        return tag
    if isinstance(data, Kaeriten):
        tag = soup.new_tag("sub", attrs={"class": "kaeriten"})
        tag.string = _kaeriten_text(data)
        return tag
    if isinstance(data, KuntenOkurigana):
        tag = soup.new_tag("sup", attrs={"class": "okurigana"})
        tag.string = data.value
        return tag
    if isinstance(data, Image):
        return soup.new_tag("img", attrs={"src": data.path, "alt": data.alt})
    if isinstance(data, Caption):
        tag = soup.new_tag("span", attrs={"class": "caption"})
        tag.string = plain_text(data.value)
        return tag
    return soup.new_tag("span", attrs={"class": "directive", "data-type": data.kind})


def _append_components(
    soup: BeautifulSoup, parent: Tag, components: Iterable[Component]
) -> None:
    for component in components:
        if isinstance(component, StringComponent):
            parent.append(component.value)
        elif isinstance(component, RubyComponent):
            ruby = soup.new_tag("ruby")
            rb = soup.new_tag("rb")
            _append_components(soup, rb, component.children)
            rt = soup.new_tag("rt")
            rt.string = component.ruby
            ruby.append(rb)
            ruby.append(rt)
            parent.append(ruby)
        elif isinstance(component, MidashiComponent):
            heading = soup.new_tag(
                _MIDASHI_TAGS[component.level],
                attrs={"class": f"midashi {component.style.value}"},
            )
            _append_components(soup, heading, component.children)
            parent.append(heading)
        elif isinstance(component, UnknownAnnotationComponent):
            span = soup.new_tag("span", attrs={"class": "annotation"})
            _append_components(soup, span, component.args)
            parent.append(span)
        elif isinstance(component, PassthroughComponent):
            parent.append(_passthrough(soup, component))


def _line_tag(soup: BeautifulSoup, line: RenderedLine) -> Tag:
    attrs = {
        "class": "line",
        "data-indent-first": str(line.indent.first),
        "data-indent-left": str(line.indent.left),
    }
    if line.page_style.kind is not None:
        attrs["data-page-break"] = line.page_style.kind.value
    if line.page_style.centered:
        attrs["data-page-center"] = "true"
    div = soup.new_tag("div", attrs=attrs)
    _append_components(soup, div, line.components)
    if line.side is not None:
        side = soup.new_tag(
            "div",
            attrs={"class": line.side.kind, "data-level": str(line.side.level)},
        )
        for sub_line in line.side.lines:
            sub = soup.new_tag("div", attrs={"class": "line"})
            _append_components(soup, sub, sub_line)
            side.append(sub)
        div.append(side)
    if not div.contents:
        div.append(soup.new_tag("br"))
    return div


def render_xhtml(rendered: RenderedRubyTxt, title: str | None = None) -> str:
    """Serialize rendered lines as a standalone XHTML document."""
    soup = BeautifulSoup(_XHTML_TEMPLATE, "html.parser")
    if title is None:
        title = "".join(
            component.value
            for component in (rendered.header[0].components if rendered.header else [])
            if isinstance(component, StringComponent)
        )
    soup.title.string = title
    body = soup.body
    for section, lines in (
        ("header", rendered.header),
        ("body", rendered.body),
        ("footer", rendered.footer),
    ):
        container = soup.new_tag("section", attrs={"class": section})
        for line in lines:
            container.append(_line_tag(soup, line))
        body.append(container)
    return _XML_DECLARATION + str(soup)
