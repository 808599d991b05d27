from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import AbstractSet, ClassVar, Sequence

from .chars import split_ruby_target
from .elements import (
    Element,
    Jisage,
    JisageAfterTentsukiStart,
    JisageEnd,
    JisageStart,
    JisageWithOrikaeshiStart,
    Jitsuki,
    JitsukiEnd,
    JitsukiStart,
    Jiyose,
    JiyoseEnd,
    JiyoseStart,
    Midashi,
    MidashiEnd,
    MidashiLevel,
    MidashiStart,
    MidashiStyle,
    NewLine,
    PageBreak,
    PageBreakKind,
    PageCenter,
    Ruby,
    Text,
    UnknownAnnotation,
    serialize_element,
)
from .errors import RenderError

__all__ = [
    "TOLERATED_VIOLATIONS",
    "PageStyle",
    "Indent",
    "SideBlock",
    "Component",
    "StringComponent",
    "RubyComponent",
    "UnknownAnnotationComponent",
    "MidashiComponent",
    "PassthroughComponent",
    "RenderedLine",
    "RenderedRubyTxt",
    "component_text",
    "render_block",
    "serialize_line",
    "serialize_rendered",
]

# Malformations found in real books that the renderer accepts by default:
#   page-break-before-text: "［＃改ページ］本文" with the text on the same line
#   jisage-end-without-start: a stray "ここで字下げ終わり"
TOLERATED_VIOLATIONS: frozenset[str] = frozenset(
    {"page-break-before-text", "jisage-end-without-start"}
)


@dataclass(frozen=True)
class PageStyle:
    """Page break requested before a line; ``kind=None`` means continuous."""

    kind: PageBreakKind | None = None
    centered: bool = False


@dataclass(frozen=True)
class Indent:
    first: int = 0
    left: int = 0


class Component:
    kind: ClassVar[str] = "component"

    __slots__ = ()


@dataclass(frozen=True)
class StringComponent(Component):
    kind: ClassVar[str] = "string"
    value: str


@dataclass(frozen=True)
class RubyComponent(Component):
    kind: ClassVar[str] = "ruby"
    ruby: str
    children: tuple[Component, ...]


@dataclass(frozen=True)
class UnknownAnnotationComponent(Component):
    kind: ClassVar[str] = "unknown-annotation"
    args: tuple[Component, ...]


@dataclass(frozen=True)
class MidashiComponent(Component):
    kind: ClassVar[str] = "midashi"
    level: MidashiLevel
    style: MidashiStyle
    children: tuple[Component, ...]


@dataclass(frozen=True)
class PassthroughComponent(Component):
    """Directive the renderer does not lay out itself (decorations, kaeriten, ...)."""

    kind: ClassVar[str] = "passthrough"
    data: Element


@dataclass(frozen=True)
class SideBlock:
    """Bottom-aligned (jitsuki) or raised-from-bottom (jiyose) sub-lines."""

    kind: str
    level: int
    lines: tuple[tuple[Component, ...], ...]


@dataclass
class RenderedLine:
    page_style: PageStyle = field(default_factory=PageStyle)
    indent: Indent = field(default_factory=Indent)
    components: list[Component] = field(default_factory=list)
    side: SideBlock | None = None

    @property
    def is_blank(self) -> bool:
        return not self.components and self.side is None

    @property
    def has_default_layout(self) -> bool:
        return self.page_style == PageStyle() and self.indent == Indent() and self.side is None

    def push(self, component: Component) -> None:
        if isinstance(component, StringComponent):
            if not component.value:
                return
            last = self.components[-1] if self.components else None
            if isinstance(last, StringComponent):
                self.components[-1] = StringComponent(last.value + component.value)
                return
        self.components.append(component)


@dataclass
class RenderedRubyTxt:
    header: list[RenderedLine]
    body: list[RenderedLine]
    footer: list[RenderedLine]


def component_text(component: Component) -> str:
    """Readable text of a component; directives contribute nothing."""
    if isinstance(component, StringComponent):
        return component.value
    if isinstance(component, (RubyComponent, MidashiComponent)):
        return "".join(component_text(child) for child in component.children)
    return ""


@dataclass
class _Block:
    kind: str
    element: Element
    indent: Indent | None = None
    level: int = 0


_SIDE_KINDS = ("jitsuki", "jiyose")


class _BlockRenderer:
    def __init__(self, elements: Sequence[Element], tolerated: AbstractSet[str]) -> None:
        self.elements = list(elements)
        self.tolerated = tolerated
        self.pos = 0
        self.stack: list[_Block] = []
        self.lines: list[RenderedLine] = [RenderedLine()]
        self.inline_midashi: tuple[int, MidashiStart] | None = None

    @property
    def line(self) -> RenderedLine:
        return self.lines[-1]

    def _peek(self) -> Element | None:
        idx = self.pos + 1
        return self.elements[idx] if idx < len(self.elements) else None

    def _ambient_indent(self) -> Indent:
        for block in reversed(self.stack):
            if block.indent is not None:
                return block.indent
        return Indent()

    def _finish_line(self) -> None:
        if self.inline_midashi is not None:
            raise RenderError("Heading is not closed on its line", self.inline_midashi[1])
        line = self.line
        if not line.components:
            return
        for block in reversed(self.stack):
            if block.kind == "midashi":
                start = block.element
                if isinstance(start, MidashiStart):
                    line.components = [
                        MidashiComponent(start.level, start.style, tuple(line.components))
                    ]
                break
        if line.side is not None:
            return
        for block in reversed(self.stack):
            if block.kind in _SIDE_KINDS:
                line.side = SideBlock(block.kind, block.level, (tuple(line.components),))
                line.components = []
                break

    def _new_line(self) -> None:
        self._finish_line()
        self.lines.append(RenderedLine(indent=self._ambient_indent()))

    def _consume_line_break(self, element: Element, violation: str | None = None) -> None:
        """Step over ``element`` and the line break that must follow it."""
        following = self._peek()
        if following is None:
            self.pos += 1
        elif isinstance(following, NewLine):
            self.pos += 2
        elif violation is not None and violation in self.tolerated:
            self.pos += 1
        else:
            raise RenderError("Directive must be followed by a line break", element)

    def _expect_blank(self, element: Element) -> None:
        if not self.line.is_blank:
            raise RenderError("Directive must be on an otherwise empty line", element)

    def _render_inline(self, elements: Sequence[Element]) -> list[Component]:
        lines = render_block(list(elements), tolerated=self.tolerated)
        if not lines:
            return []
        if len(lines) != 1 or not lines[0].has_default_layout:
            raise RenderError("Expected inline content", tuple(elements))
        return lines[0].components

    def _open_block(self, block: _Block) -> None:
        self._expect_blank(block.element)
        self._consume_line_break(block.element)
        self.stack.append(block)
        self.line.indent = self._ambient_indent()

    def _close_block(self, kind: str, element: Element) -> None:
        self._expect_blank(element)
        if self.stack and self.stack[-1].kind == kind:
            self.stack.pop()
        elif not (
            kind == "jisage"
            and "jisage-end-without-start" in self.tolerated
            and all(block.kind != "jisage" for block in self.stack)
        ):
            raise RenderError("Block end without matching start", element)
        self._consume_line_break(element)
        self.line.indent = self._ambient_indent()

    def _page_break(self, element: PageBreak) -> None:
        if not self.line.is_blank:
            self._new_line()
        current = self.line.page_style
        if current.kind is not None and current.kind is not element.page_break:
            raise RenderError("Page style is already set", element)
        self.line.page_style = PageStyle(element.page_break, current.centered)
        self._consume_line_break(element, "page-break-before-text")

    def _page_center(self, element: PageCenter) -> None:
        self._expect_blank(element)
        current = self.line.page_style
        self.line.page_style = PageStyle(current.kind or PageBreakKind.KAIPAGE, True)
        self._consume_line_break(element)

    def _one_shot_indent(self, element: Jisage) -> None:
        if not self.line.is_blank:
            self._new_line()
        self.line.indent = Indent(element.level, element.level)
        self.pos += 1

    def _one_shot_side(self, kind: str, level: int, element: Element) -> None:
        if self.line.side is not None:
            raise RenderError("Line already has a side block", element)
        end = self.pos + 1
        while end < len(self.elements) and not isinstance(self.elements[end], NewLine):
            end += 1
        components = self._render_inline(self.elements[self.pos + 1 : end])
        self.line.side = SideBlock(kind, level, (tuple(components),))
        self.pos = end

    def _ruby(self, element: Ruby) -> None:
        if element.target is not None:
            children = self._render_inline(element.target)
            self.line.push(RubyComponent(element.ruby, tuple(children)))
            return

        components = self.line.components
        last = components[-1] if components else None
        if isinstance(last, StringComponent):
            components.pop()
            prefix, target = split_ruby_target(last.value)
            self.line.push(StringComponent(prefix))
            components.append(RubyComponent(element.ruby, (StringComponent(target),)))
        elif isinstance(last, UnknownAnnotationComponent):
            # Rubies are sometimes given to gaiji that could not be resolved.
            components[-1] = RubyComponent(element.ruby, (last,))
        else:
            raise RenderError("Cannot find text to attach ruby to", element)

    def _pop_trailing_text(self, value: str, element: Midashi) -> list[Component]:
        """Pop components off the line whose text ends exactly with ``value``."""
        components = self.line.components
        needed = value
        popped: list[Component] = []
        while needed:
            if not components:
                raise RenderError("Heading text is not found", element)
            last = components[-1]
            if isinstance(last, StringComponent) and last.value.endswith(needed):
                components.pop()
                rest = last.value[: len(last.value) - len(needed)]
                if rest:
                    components.append(StringComponent(rest))
                popped.insert(0, StringComponent(needed))
                break
            text = component_text(last)
            if not text or not needed.endswith(text):
                raise RenderError("Heading text is not found", element)
            popped.insert(0, components.pop())
            needed = needed[: len(needed) - len(text)]
        return popped

    def _midashi(self, element: Midashi) -> None:
        children = self._pop_trailing_text(element.value, element)
        if element.style is MidashiStyle.NORMAL and self.line.components:
            raise RenderError("Heading must start its line", element)
        self.line.push(MidashiComponent(element.level, element.style, tuple(children)))
        self.pos += 1

    def _midashi_start(self, element: MidashiStart) -> None:
        following = self._peek()
        if self.line.is_blank and (following is None or isinstance(following, NewLine)):
            self._open_block(_Block("midashi", element))
            return
        if self.inline_midashi is not None:
            raise RenderError("Heading is already open", element)
        self.inline_midashi = (len(self.line.components), element)
        self.pos += 1

    def _midashi_end(self, element: MidashiEnd) -> None:
        if self.inline_midashi is None:
            self._close_block("midashi", element)
            return
        start, opened = self.inline_midashi
        self.inline_midashi = None
        children = tuple(self.line.components[start:])
        del self.line.components[start:]
        self.line.push(MidashiComponent(opened.level, opened.style, children))
        self.pos += 1

    def render(self) -> list[RenderedLine]:
        while self.pos < len(self.elements):
            element = self.elements[self.pos]

            if isinstance(element, Text):
                self.line.push(StringComponent(element.value))
                self.pos += 1
            elif isinstance(element, NewLine):
                self._new_line()
                self.pos += 1
            elif isinstance(element, Ruby):
                self._ruby(element)
                self.pos += 1
            elif isinstance(element, UnknownAnnotation):
                args = self._render_inline(element.args)
                self.line.push(UnknownAnnotationComponent(tuple(args)))
                self.pos += 1
            elif isinstance(element, PageBreak):
                self._page_break(element)
            elif isinstance(element, PageCenter):
                self._page_center(element)
            elif isinstance(element, Jisage):
                self._one_shot_indent(element)
            elif isinstance(element, JisageStart):
                self._open_block(
                    _Block("jisage", element, indent=Indent(element.level, element.level))
                )
            elif isinstance(element, JisageWithOrikaeshiStart):
                self._open_block(
                    _Block("jisage", element, indent=Indent(element.level0, element.level1))
                )
            elif isinstance(element, JisageAfterTentsukiStart):
                self._open_block(_Block("jisage", element, indent=Indent(0, element.level)))
            elif isinstance(element, JisageEnd):
                self._close_block("jisage", element)
            elif isinstance(element, Jitsuki):
                self._one_shot_side("jitsuki", 0, element)
            elif isinstance(element, Jiyose):
                self._one_shot_side("jiyose", element.level, element)
            elif isinstance(element, JitsukiStart):
                self._open_block(_Block("jitsuki", element))
            elif isinstance(element, JiyoseStart):
                self._open_block(_Block("jiyose", element, level=element.level))
            elif isinstance(element, JitsukiEnd):
                self._close_block("jitsuki", element)
            elif isinstance(element, JiyoseEnd):
                self._close_block("jiyose", element)
            elif isinstance(element, Midashi):
                self._midashi(element)
            elif isinstance(element, MidashiStart):
                self._midashi_start(element)
            elif isinstance(element, MidashiEnd):
                self._midashi_end(element)
            else:
                self.line.push(PassthroughComponent(element))
                self.pos += 1

        if self.stack:
            raise RenderError("Block is not closed", self.stack[-1].element)
        self._finish_line()

        lines = self.lines
        while lines and lines[-1].is_blank:
            lines.pop()
        return lines


def render_block(
    elements: Sequence[Element],
    tolerated: AbstractSet[str] = TOLERATED_VIOLATIONS,
) -> list[RenderedLine]:
    """Lay out a flat element list as lines."""
    return _BlockRenderer(elements, tolerated).render()


def _serialize_value(value: object) -> object:
    if isinstance(value, Component):
        return serialize_component(value)
    if isinstance(value, Element):
        return serialize_element(value)
    if isinstance(value, (tuple, list)):
        return [_serialize_value(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


def serialize_component(component: Component) -> dict[str, object]:
    entry: dict[str, object] = {"type": component.kind}
    for item in fields(component):  # type: ignore[arg-type]
        entry[item.name] = _serialize_value(getattr(component, item.name))
    return entry


def serialize_line(line: RenderedLine) -> dict[str, object]:
    side = None
    if line.side is not None:
        side = {
            "kind": line.side.kind,
            "level": line.side.level,
            "lines": _serialize_value(line.side.lines),
        }
    return {
        "page_style": {
            "kind": line.page_style.kind.value if line.page_style.kind else "continuous",
            "centered": line.page_style.centered,
        },
        "indent": {"first": line.indent.first, "left": line.indent.left},
        "components": [serialize_component(component) for component in line.components],
        "side": side,
    }


def serialize_rendered(rendered: RenderedRubyTxt) -> dict[str, object]:
    return {
        "header": [serialize_line(line) for line in rendered.header],
        "body": [serialize_line(line) for line in rendered.body],
        "footer": [serialize_line(line) for line in rendered.footer],
    }
