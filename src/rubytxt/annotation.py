from __future__ import annotations

import re
from typing import Callable, Sequence

from .chars import decode_digits
from .elements import (
    BouDecoration,
    BouDecorationEnd,
    BouDecorationSide,
    BouDecorationStart,
    BouDecorationStyle,
    Caption,
    CaptionEnd,
    CaptionStart,
    Element,
    Image,
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
    Kaeriten,
    KuntenOkurigana,
    Midashi,
    MidashiEnd,
    MidashiLevel,
    MidashiStart,
    MidashiStyle,
    PageBreak,
    PageBreakKind,
    PageCenter,
    StringDecoration,
    StringDecorationEnd,
    StringDecorationStart,
    StringDecorationStyle,
    Text,
    UnknownAnnotation,
    WarichuEnd,
    WarichuStart,
)

__all__ = ["resolve_annotation", "EMPTY_ANNOTATION"]

# "［＃］" is used by inputters for their own notes ("［＃］：入力者注 ...").
EMPTY_ANNOTATION = "［＃］"

_DIGITS = "[0-9０-９]+"

Args = tuple[Element, ...]
_Builder = Callable[[re.Match[str], Args], Element]
_Rule = tuple[re.Pattern[str], _Builder]

_KAERITEN_INDEX = {
    "一": 0, "二": 1, "三": 2, "四": 3,
    "上": 0, "中": 1, "下": 2,
    "甲": 0, "乙": 1, "丙": 2, "丁": 3,
}


def _index(match: re.Match[str], group: str) -> int | None:
    value = match.group(group)
    return None if value is None else _KAERITEN_INDEX[value]


def _side(match: re.Match[str]) -> BouDecorationSide:
    return BouDecorationSide.LEFT if match.group("left") else BouDecorationSide.RIGHT


def _bou(
    factory: Callable[[BouDecorationStyle, BouDecorationSide], Element],
) -> _Builder:
    def build(match: re.Match[str], args: Args) -> Element:
        style = BouDecorationStyle.lookup(match.group("style"))
        if style is None:
            return UnknownAnnotation(args)
        return factory(style, _side(match))

    return build


def _quoted_bou(match: re.Match[str], target: Args, args: Args) -> Element:
    style = BouDecorationStyle.lookup(match.group("style"))
    if style is None:
        return UnknownAnnotation(args)
    return BouDecoration(target, style, _side(match))


def _midashi_start(match: re.Match[str], args: Args) -> Element:
    return MidashiStart(
        level=MidashiLevel.of(match.group("level")),
        style=MidashiStyle.of(match.group("style")),
    )


def _rule(pattern: str, builder: _Builder) -> _Rule:
    return re.compile(pattern), builder


def _fixed(literal: str, element: Element) -> _Rule:
    return re.compile(re.escape(literal)), lambda match, args: element


# Ignored notes about the source book: "「○○」に「ママ」の注記",
# "「○○」は底本では「●●」" and "「○○」はママ".
_ERRATUM_PREFIX = "「"
_ERRATUM_RULES: tuple[Callable[[str, Sequence[str]], bool], ...] = (
    lambda last, texts: last.endswith("」に「ママ」の注記"),
    lambda last, texts: last.endswith("」") and any("」は底本では「" in text for text in texts),
    lambda last, texts: last.endswith("」はママ"),
)

# Applied to the text following "「target」".
_QUOTED_RULES: tuple[tuple[re.Pattern[str], Callable[[re.Match[str], Args, Args], Element]], ...] = (
    (re.compile(r"(?P<left>の左)?に(?P<style>.*(?:点|線))"), _quoted_bou),
    (
        re.compile("は太字"),
        lambda match, target, args: StringDecoration(target, StringDecorationStyle.BOLD),
    ),
    (
        re.compile("は斜体"),
        lambda match, target, args: StringDecoration(target, StringDecorationStyle.ITALIC),
    ),
    (
        re.compile("はキャプション"),
        lambda match, target, args: Caption(target),
    ),
)
_QUOTED_MIDASHI_PATTERN = re.compile(r"は(?P<style>同行|窓)?(?P<level>大|中|小)見出し")

# Applied to annotations made of a single piece of text, in order.
_TEXT_RULES: tuple[_Rule, ...] = (
    _fixed("改丁", PageBreak(PageBreakKind.KAICHO)),
    _fixed("改ページ", PageBreak(PageBreakKind.KAIPAGE)),
    _fixed("改見開き", PageBreak(PageBreakKind.KAIMIHIRAKI)),
    _fixed("改段", PageBreak(PageBreakKind.KAIDAN)),
    _rule(
        rf"(?P<level>{_DIGITS})字下げ",
        lambda match, args: Jisage(decode_digits(match.group("level"))),
    ),
    _rule(
        rf"ここから(?P<level>{_DIGITS})字下げ",
        lambda match, args: JisageStart(decode_digits(match.group("level"))),
    ),
    _rule(
        rf"ここから(?P<level0>{_DIGITS})字下げ、折り返して(?P<level1>{_DIGITS})字下げ",
        lambda match, args: JisageWithOrikaeshiStart(
            decode_digits(match.group("level0")),
            decode_digits(match.group("level1")),
        ),
    ),
    _rule(
        rf"ここから改行天付き、折り返して(?P<level>{_DIGITS})字下げ",
        lambda match, args: JisageAfterTentsukiStart(decode_digits(match.group("level"))),
    ),
    _fixed("ここで字下げ終わり", JisageEnd()),
    _fixed("地付き", Jitsuki()),
    _fixed("ここから地付き", JitsukiStart()),
    _fixed("ここで地付き終わり", JitsukiEnd()),
    _rule(
        rf"地から(?P<level>{_DIGITS})字上げ",
        lambda match, args: Jiyose(decode_digits(match.group("level"))),
    ),
    _rule(
        rf"ここから地から(?P<level>{_DIGITS})字上げ",
        lambda match, args: JiyoseStart(decode_digits(match.group("level"))),
    ),
    _fixed("ここで字上げ終わり", JiyoseEnd()),
    _fixed("ページの左右中央", PageCenter()),
    _rule(r"(?:ここから)?(?P<style>同行|窓)?(?P<level>大|中|小)見出し", _midashi_start),
    _rule(r".*見出し終わり", lambda match, args: MidashiEnd()),
    _rule(
        r"(?P<ichini>[一二三四])?(?P<jouge>[上中下])?(?P<kouotsu>[甲乙丙丁])?(?P<re>レ)?",
        lambda match, args: Kaeriten(
            ichini=_index(match, "ichini"),
            jouge=_index(match, "jouge"),
            kouotsu=_index(match, "kouotsu"),
            re=match.group("re") is not None,
        ),
    ),
    _rule(r"（(?P<kana>.+)）", lambda match, args: KuntenOkurigana(match.group("kana"))),
    _rule(r"(?P<left>左に)?(?P<style>.*(?:点|線))", _bou(BouDecorationStart)),
    _rule(r"(?P<left>左に)?(?P<style>.*(?:点|線))終わり", _bou(BouDecorationEnd)),
    _rule(r"(?:ここから)?太字", lambda match, args: StringDecorationStart(StringDecorationStyle.BOLD)),
    _rule(r"(?:ここで)?太字終わり", lambda match, args: StringDecorationEnd(StringDecorationStyle.BOLD)),
    _rule(r"(?:ここから)?斜体", lambda match, args: StringDecorationStart(StringDecorationStyle.ITALIC)),
    _rule(r"(?:ここで)?斜体終わり", lambda match, args: StringDecorationEnd(StringDecorationStyle.ITALIC)),
    _rule(
        r"(?P<alt>.+)（(?P<path>fig[0-9]+_[0-9]+\.png)(?:、横[0-9]+×縦[0-9]+)?）入る",
        lambda match, args: Image(path=match.group("path"), alt=match.group("alt")),
    ),
    _fixed("キャプション", CaptionStart()),
    _fixed("キャプション終わり", CaptionEnd()),
    _fixed("割り注", WarichuStart()),
    _fixed("割り注終わり", WarichuEnd()),
)


def _is_erratum(args: Args) -> bool:
    first, last = args[0], args[-1]
    if not isinstance(first, Text) or not isinstance(last, Text):
        return False
    if not first.value.startswith(_ERRATUM_PREFIX):
        return False
    texts = [arg.value for arg in args if isinstance(arg, Text)]
    return any(rule(last.value, texts) for rule in _ERRATUM_RULES)


def _split_quoted(args: Args) -> tuple[Args, str] | None:
    """Split ``「target」name`` into the target elements and the name."""
    first, last = args[0], args[-1]
    if not isinstance(first, Text) or not isinstance(last, Text):
        return None
    if not first.value.startswith("「") or "」" not in last.value:
        return None

    close = last.value.rfind("」")
    name = last.value[close + 1 :]
    if len(args) == 1:
        inner = first.value[1:close]
        return ((Text(inner),) if inner else ()), name

    target: list[Element] = []
    if len(first.value) > 1:
        target.append(Text(first.value[1:]))
    target.extend(args[1:-1])
    if close > 0:
        target.append(Text(last.value[:close]))
    return tuple(target), name


def _resolve_quoted(args: Args) -> Element | None:
    split = _split_quoted(args)
    if split is None:
        return None
    target, name = split
    for pattern, build in _QUOTED_RULES:
        match = pattern.fullmatch(name)
        if match:
            return build(match, target, args)
    match = _QUOTED_MIDASHI_PATTERN.fullmatch(name)
    if match and len(target) == 1 and isinstance(target[0], Text):
        return Midashi(
            value=target[0].value,
            level=MidashiLevel.of(match.group("level")),
            style=MidashiStyle.of(match.group("style")),
        )
    return None


def resolve_annotation(args: Sequence[Element]) -> Element | None:
    """
    Classify the parsed contents of a ``［＃...］`` annotation.

    Returns the directive element, ``None`` for notes that produce no output,
    or :class:`UnknownAnnotation` for anything not recognised.
    """
    args = tuple(args)
    if not args:
        return Text(EMPTY_ANNOTATION)

    if _is_erratum(args):
        return None

    quoted = _resolve_quoted(args)
    if quoted is not None:
        return quoted

    if len(args) == 1 and isinstance(args[0], Text):
        value = args[0].value
        for pattern, build in _TEXT_RULES:
            match = pattern.fullmatch(value)
            if match:
                return build(match, args)

    return UnknownAnnotation(args)
