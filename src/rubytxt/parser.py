from __future__ import annotations

from typing import Sequence

from .accent import compose_accent
from .annotation import resolve_annotation
from .chars import split_ruby_target
from .elements import Element, ElementList, NewLine, Ruby, Text
from .errors import ParseError
from .gaiji import resolve_gaiji
from .tokens import Token, TokenKind

__all__ = ["parse_block", "tokens_literal"]


def tokens_literal(tokens: Sequence[Token]) -> str:
    return "".join(token.literal() for token in tokens)


def _find_ruby_close(tokens: Sequence[Token], start: int) -> int | None:
    for idx in range(start, len(tokens)):
        kind = tokens[idx].kind
        if kind is TokenKind.RUBY_CLOSE:
            return idx
        if kind is TokenKind.NEW_LINE:
            break
    return None


def _parse_ruby_text(tokens: Sequence[Token]) -> str:
    children = parse_block(tokens)
    if not children:
        return ""
    if len(children) != 1 or not isinstance(children[0], Text):
        raise ParseError("Ruby must be plain text", children)
    return children[0].value


def _parse_position_marker(tokens: Sequence[Token], start: int) -> tuple[int, Ruby] | None:
    """Parse ``｜target《ruby》`` starting at the marker; ``None`` when it is not one."""
    idx = start + 1
    while idx < len(tokens):
        kind = tokens[idx].kind
        if kind is TokenKind.NEW_LINE:
            return None
        if kind is TokenKind.RUBY_OPEN:
            break
        idx += 1
    else:
        return None

    target_tokens = tokens[start + 1 : idx]
    close = _find_ruby_close(tokens, idx + 1)
    if not target_tokens or close is None:
        return None
    ruby = _parse_ruby_text(tokens[idx + 1 : close])
    if not ruby:
        return None
    target = parse_block(target_tokens)
    return close + 1, Ruby(ruby, tuple(target))


def _attach_ruby(elements: ElementList, ruby: str) -> None:
    last = elements.last
    if not isinstance(last, Text):
        # Resolved later against the rendered line.
        elements.push(Ruby(ruby, None))
        return
    elements.pop()
    prefix, target = split_ruby_target(last.value)
    elements.push_text(prefix)
    elements.push(Ruby(ruby, (Text(target),)))


def _find_annotation_close(tokens: Sequence[Token], start: int, *, gaiji: bool) -> int:
    level = 0
    end = len(tokens)
    for idx in range(start, len(tokens)):
        kind = tokens[idx].kind
        if kind is TokenKind.GAIJI_ANNOTATION_OPEN:
            level += 1
        elif kind is TokenKind.ANNOTATION_OPEN:
            if gaiji:
                raise ParseError(
                    "Annotation inside gaiji annotation", tokens_literal(tokens[start - 1 : idx + 1])
                )
            level += 1
        elif kind is TokenKind.ANNOTATION_CLOSE:
            if level == 0:
                return idx
            level -= 1
        elif kind is TokenKind.NEW_LINE:
            end = idx
            break
    raise ParseError("A line ends without '］'", tokens_literal(tokens[start - 1 : end]))


def _parse_gaiji(tokens: Sequence[Token]) -> str:
    children = parse_block(tokens)
    if len(children) != 1 or not isinstance(children[0], Text):
        raise ParseError("Invalid gaiji annotation", children)
    description = children[0].value
    glyph = resolve_gaiji(description)
    if glyph is None:
        return f"※［＃{description}］"
    return glyph


def _compose_accent_span(tokens: Sequence[Token], start: int) -> tuple[int, list[Token]] | None:
    """
    Scan ``〔...〕`` from the opening bracket and compose the accents inside.

    Returns the index after the closing bracket and the composed tokens, or
    ``None`` when the bracket is not closed on its line or nothing composes.
    """
    composed: list[Token] = []
    changed = False
    level = 0
    for idx in range(start + 1, len(tokens)):
        token = tokens[idx]
        kind = token.kind
        if kind is TokenKind.NEW_LINE:
            return None
        if kind is TokenKind.ACCENT_OPEN:
            level += 1
        elif kind is TokenKind.ACCENT_CLOSE:
            if level == 0:
                return (idx + 1, composed) if changed else None
            level -= 1
        elif kind is TokenKind.TEXT and level == 0:
            value = compose_accent(token.value or "")
            if value != token.value:
                changed = True
                composed.append(Token.text(value))
                continue
        composed.append(token)
    return None


def parse_block(tokens: Sequence[Token]) -> list[Element]:
    """Parse a token slice into a coalesced list of elements."""
    elements = ElementList()
    idx = 0
    length = len(tokens)
    while idx < length:
        token = tokens[idx]
        kind = token.kind

        if kind is TokenKind.TEXT:
            elements.push_text(token.value or "")
            idx += 1

        elif kind is TokenKind.KUNOJITEN:
            elements.push_text("〲" if token.dakuten else "〱")
            idx += 1

        elif kind is TokenKind.NEW_LINE:
            elements.push(NewLine())
            idx += 1

        elif kind is TokenKind.POSITION_MARKER:
            parsed = _parse_position_marker(tokens, idx)
            if parsed is None:
                elements.push_text(token.literal())
                idx += 1
            else:
                idx, ruby = parsed
                elements.push(ruby)

        elif kind is TokenKind.RUBY_OPEN:
            close = _find_ruby_close(tokens, idx + 1)
            if close is None:
                elements.push_text(token.literal())
                idx += 1
                continue
            ruby = _parse_ruby_text(tokens[idx + 1 : close])
            idx = close + 1
            if not ruby:
                elements.push_text("《》")
                continue
            _attach_ruby(elements, ruby)

        elif kind is TokenKind.ANNOTATION_OPEN:
            close = _find_annotation_close(tokens, idx + 1, gaiji=False)
            args = parse_block(tokens[idx + 1 : close])
            idx = close + 1
            element = resolve_annotation(args)
            if element is not None:
                elements.push(element)

        elif kind is TokenKind.GAIJI_ANNOTATION_OPEN:
            close = _find_annotation_close(tokens, idx + 1, gaiji=True)
            elements.push_text(_parse_gaiji(tokens[idx + 1 : close]))
            idx = close + 1

        elif kind is TokenKind.ACCENT_OPEN:
            span = _compose_accent_span(tokens, idx)
            if span is None:
                elements.push_text(token.literal())
                idx += 1
            else:
                idx, composed = span
                elements.extend(parse_block(composed))

        else:
            # A close bracket whose opening was not seen in this slice.
            elements.push_text(token.literal())
            idx += 1

    return elements.to_list()
