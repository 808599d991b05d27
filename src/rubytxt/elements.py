from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import ClassVar, Iterable

from .errors import ParseError

__all__ = [
    "PageBreakKind",
    "MidashiLevel",
    "MidashiStyle",
    "BouDecorationSide",
    "BouDecorationStyle",
    "StringDecorationStyle",
    "Element",
    "Text",
    "NewLine",
    "Ruby",
    "UnknownAnnotation",
    "PageBreak",
    "Jisage",
    "JisageStart",
    "JisageWithOrikaeshiStart",
    "JisageAfterTentsukiStart",
    "JisageEnd",
    "Jitsuki",
    "JitsukiStart",
    "JitsukiEnd",
    "Jiyose",
    "JiyoseStart",
    "JiyoseEnd",
    "PageCenter",
    "Midashi",
    "MidashiStart",
    "MidashiEnd",
    "Kaeriten",
    "KuntenOkurigana",
    "BouDecoration",
    "BouDecorationStart",
    "BouDecorationEnd",
    "StringDecoration",
    "StringDecorationStart",
    "StringDecorationEnd",
    "Image",
    "Caption",
    "CaptionStart",
    "CaptionEnd",
    "WarichuStart",
    "WarichuEnd",
    "ElementList",
    "plain_text",
    "serialize_elements",
]


class PageBreakKind(str, Enum):
    KAICHO = "kaicho"  # 改丁
    KAIPAGE = "kaipage"  # 改ページ
    KAIMIHIRAKI = "kaimihiraki"  # 改見開き
    KAIDAN = "kaidan"  # 改段


class MidashiLevel(str, Enum):
    OH = "oh"  # 大見出し
    NAKA = "naka"  # 中見出し
    KO = "ko"  # 小見出し

    @classmethod
    def of(cls, name: str) -> "MidashiLevel":
        try:
            return _MIDASHI_LEVELS[name]
        except KeyError:
            raise ParseError("Unknown midashi level", name) from None


class MidashiStyle(str, Enum):
    NORMAL = "normal"  # ［＃中見出し］
    DOGYO = "dogyo"  # ［＃同行中見出し］
    MADO = "mado"  # ［＃窓中見出し］

    @classmethod
    def of(cls, name: str | None) -> "MidashiStyle":
        try:
            return _MIDASHI_STYLES[name or ""]
        except KeyError:
            raise ParseError("Unknown midashi style", name) from None


_MIDASHI_LEVELS = {"大": MidashiLevel.OH, "中": MidashiLevel.NAKA, "小": MidashiLevel.KO}
_MIDASHI_STYLES = {"": MidashiStyle.NORMAL, "同行": MidashiStyle.DOGYO, "窓": MidashiStyle.MADO}


class BouDecorationSide(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class BouDecorationStyle(str, Enum):
    # 傍点 https://www.aozora.gr.jp/annotation/emphasis.html#boten_chuki
    SESAME_DOT_BOUTEN = "sesame-dot-bouten"
    WHITE_SESAME_DOT_BOUTEN = "white-sesame-dot-bouten"
    BLACK_CIRCLE_BOUTEN = "black-circle-bouten"
    WHITE_CIRCLE_BOUTEN = "white-circle-bouten"
    BLACK_UP_POINTING_TRIANGLE_BOUTEN = "black-up-pointing-triangle-bouten"
    WHITE_UP_POINTING_TRIANGLE_BOUTEN = "white-up-pointing-triangle-bouten"
    BULLSEYE_BOUTEN = "bullseye-bouten"
    FISHEYE_BOUTEN = "fisheye-bouten"
    SALTIRE_BOUTEN = "saltire-bouten"

    # 傍線 https://www.aozora.gr.jp/annotation/emphasis.html#bosen_chuki
    SOLID_BOUSEN = "solid-bousen"
    DOUBLE_BOUSEN = "double-bousen"
    DOTTED_BOUSEN = "dotted-bousen"
    DASHED_BOUSEN = "dashed-bousen"
    WAVE_BOUSEN = "wave-bousen"

    @classmethod
    def lookup(cls, name: str) -> "BouDecorationStyle | None":
        return _BOU_DECORATION_STYLES.get(name)


_BOU_DECORATION_STYLES = {
    "傍点": BouDecorationStyle.SESAME_DOT_BOUTEN,
    "白ゴマ傍点": BouDecorationStyle.WHITE_SESAME_DOT_BOUTEN,
    "丸傍点": BouDecorationStyle.BLACK_CIRCLE_BOUTEN,
    "白丸傍点": BouDecorationStyle.WHITE_CIRCLE_BOUTEN,
    "黒三角傍点": BouDecorationStyle.BLACK_UP_POINTING_TRIANGLE_BOUTEN,
    "白三角傍点": BouDecorationStyle.WHITE_UP_POINTING_TRIANGLE_BOUTEN,
    "二重丸傍点": BouDecorationStyle.BULLSEYE_BOUTEN,
    "蛇の目傍点": BouDecorationStyle.FISHEYE_BOUTEN,
    "ばつ傍点": BouDecorationStyle.SALTIRE_BOUTEN,
    "傍線": BouDecorationStyle.SOLID_BOUSEN,
    "二重傍線": BouDecorationStyle.DOUBLE_BOUSEN,
    "鎖線": BouDecorationStyle.DOTTED_BOUSEN,
    "破線": BouDecorationStyle.DASHED_BOUSEN,
    "波線": BouDecorationStyle.WAVE_BOUSEN,
}


class StringDecorationStyle(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"


class Element:
    """Common base of every parsed ruby-txt element."""

    kind: ClassVar[str] = "element"

    __slots__ = ()


@dataclass(frozen=True)
class Text(Element):
    kind: ClassVar[str] = "string"
    value: str


@dataclass(frozen=True)
class NewLine(Element):
    kind: ClassVar[str] = "new-line"


@dataclass(frozen=True)
class Ruby(Element):
    """
    A ruby gloss.

    ``target`` is ``None`` when the parser could not see the text the gloss
    belongs to (for example after a gaiji annotation); the renderer resolves
    it against the components already on the line.
    """

    kind: ClassVar[str] = "ruby"
    ruby: str
    target: tuple[Element, ...] | None = None


@dataclass(frozen=True)
class UnknownAnnotation(Element):
    kind: ClassVar[str] = "unknown-annotation"
    args: tuple[Element, ...]


@dataclass(frozen=True)
class PageBreak(Element):
    kind: ClassVar[str] = "page-break"
    page_break: PageBreakKind


@dataclass(frozen=True)
class Jisage(Element):
    kind: ClassVar[str] = "jisage"
    level: int


@dataclass(frozen=True)
class JisageStart(Element):
    kind: ClassVar[str] = "jisage-start"
    level: int


@dataclass(frozen=True)
class JisageWithOrikaeshiStart(Element):
    kind: ClassVar[str] = "jisage-with-orikaeshi-start"
    level0: int
    level1: int


@dataclass(frozen=True)
class JisageAfterTentsukiStart(Element):
    kind: ClassVar[str] = "jisage-after-tentsuki-start"
    level: int


@dataclass(frozen=True)
class JisageEnd(Element):
    kind: ClassVar[str] = "jisage-end"


@dataclass(frozen=True)
class Jitsuki(Element):
    kind: ClassVar[str] = "jitsuki"


@dataclass(frozen=True)
class JitsukiStart(Element):
    kind: ClassVar[str] = "jitsuki-start"


@dataclass(frozen=True)
class JitsukiEnd(Element):
    kind: ClassVar[str] = "jitsuki-end"


@dataclass(frozen=True)
class Jiyose(Element):
    kind: ClassVar[str] = "jiyose"
    level: int


@dataclass(frozen=True)
class JiyoseStart(Element):
    kind: ClassVar[str] = "jiyose-start"
    level: int


@dataclass(frozen=True)
class JiyoseEnd(Element):
    kind: ClassVar[str] = "jiyose-end"


@dataclass(frozen=True)
class PageCenter(Element):
    kind: ClassVar[str] = "page-center"


@dataclass(frozen=True)
class Midashi(Element):
    kind: ClassVar[str] = "midashi"
    value: str
    level: MidashiLevel
    style: MidashiStyle


@dataclass(frozen=True)
class MidashiStart(Element):
    kind: ClassVar[str] = "midashi-start"
    level: MidashiLevel
    style: MidashiStyle


@dataclass(frozen=True)
class MidashiEnd(Element):
    kind: ClassVar[str] = "midashi-end"


@dataclass(frozen=True)
class Kaeriten(Element):
    """Kanbun return marks; each field is the index within its series."""

    kind: ClassVar[str] = "kaeriten"
    ichini: int | None = None  # 一二三四
    jouge: int | None = None  # 上中下
    kouotsu: int | None = None  # 甲乙丙丁
    re: bool = False  # レ


@dataclass(frozen=True)
class KuntenOkurigana(Element):
    kind: ClassVar[str] = "kunten-okurigana"
    value: str


@dataclass(frozen=True)
class BouDecoration(Element):
    kind: ClassVar[str] = "bou-decoration"
    target: tuple[Element, ...]
    style: BouDecorationStyle
    side: BouDecorationSide


@dataclass(frozen=True)
class BouDecorationStart(Element):
    kind: ClassVar[str] = "bou-decoration-start"
    style: BouDecorationStyle
    side: BouDecorationSide


@dataclass(frozen=True)
class BouDecorationEnd(Element):
    kind: ClassVar[str] = "bou-decoration-end"
    style: BouDecorationStyle
    side: BouDecorationSide


@dataclass(frozen=True)
class StringDecoration(Element):
    kind: ClassVar[str] = "string-decoration"
    target: tuple[Element, ...]
    style: StringDecorationStyle


@dataclass(frozen=True)
class StringDecorationStart(Element):
    kind: ClassVar[str] = "string-decoration-start"
    style: StringDecorationStyle


@dataclass(frozen=True)
class StringDecorationEnd(Element):
    kind: ClassVar[str] = "string-decoration-end"
    style: StringDecorationStyle


@dataclass(frozen=True)
class Image(Element):
    kind: ClassVar[str] = "image"
    path: str
    alt: str


@dataclass(frozen=True)
class Caption(Element):
    kind: ClassVar[str] = "caption"
    value: tuple[Element, ...]


@dataclass(frozen=True)
class CaptionStart(Element):
    kind: ClassVar[str] = "caption-start"


@dataclass(frozen=True)
class CaptionEnd(Element):
    kind: ClassVar[str] = "caption-end"


@dataclass(frozen=True)
class WarichuStart(Element):
    kind: ClassVar[str] = "warichu-start"


@dataclass(frozen=True)
class WarichuEnd(Element):
    kind: ClassVar[str] = "warichu-end"


class ElementList:
    """Element accumulator that keeps adjacent text merged."""

    def __init__(self) -> None:
        self._items: list[Element] = []

    def __len__(self) -> int:
        return len(self._items)

    @property
    def last(self) -> Element | None:
        return self._items[-1] if self._items else None

    def push(self, element: Element) -> None:
        if isinstance(element, Text):
            self.push_text(element.value)
        else:
            self._items.append(element)

    def push_text(self, value: str) -> None:
        if not value:
            return
        last = self.last
        if isinstance(last, Text):
            self._items[-1] = Text(last.value + value)
        else:
            self._items.append(Text(value))

    def extend(self, elements: Iterable[Element]) -> None:
        for element in elements:
            self.push(element)

    def pop(self) -> Element | None:
        return self._items.pop() if self._items else None

    def to_list(self) -> list[Element]:
        return list(self._items)


def plain_text(elements: Iterable[Element]) -> str:
    """Concatenate the readable text of ``elements`` (ruby targets included)."""
    parts: list[str] = []
    for element in elements:
        if isinstance(element, Text):
            parts.append(element.value)
        elif isinstance(element, Ruby) and element.target is not None:
            parts.append(plain_text(element.target))
    return "".join(parts)


def _serialize_value(value: object) -> object:
    if isinstance(value, Element):
        return serialize_element(value)
    if isinstance(value, tuple):
        return [_serialize_value(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


def serialize_element(element: Element) -> dict[str, object]:
    entry: dict[str, object] = {"type": element.kind}
    for item in fields(element):  # type: ignore[arg-type]
        entry[item.name] = _serialize_value(getattr(element, item.name))
    return entry


def serialize_elements(elements: Iterable[Element]) -> list[dict[str, object]]:
    return [serialize_element(element) for element in elements]
