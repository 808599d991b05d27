from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import AbstractSet, Sequence

from .elements import Element, NewLine, PageBreak, PageBreakKind, serialize_elements
from .errors import ParseError
from .parser import parse_block
from .renderer import TOLERATED_VIOLATIONS, RenderedRubyTxt, render_block
from .tokenizer import tokenize_ruby_txt
from .tokens import Token, TokenKind

__all__ = [
    "ParsedRubyTxt",
    "parse_ruby_txt",
    "render_ruby_txt",
    "convert_ruby_txt",
    "serialize_parsed",
    "set_debug_logging",
]

_DEBUG_LOG = False

# The colophon starts with "底本：", "底本:", "底本「" or "底本・初出：".
_FOOTER_PATTERN = re.compile(r"^底本(?:・初出)?[：:「]")
# Lines of hyphens delimit the notation guide and sometimes plain sections.
_SEPARATOR_PATTERN = re.compile(r"^-+$")
_NOTATION_GUIDE = "【テキスト中に現れる記号について】"


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def _debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[rubytxt debug] {message}", file=sys.stderr)


@dataclass
class ParsedRubyTxt:
    header: list[Element]
    body: list[Element]
    footer: list[Element]


def _is_line_start(tokens: Sequence[Token], idx: int) -> bool:
    return idx == 0 or tokens[idx - 1].is_new_line


def _is_whole_line(tokens: Sequence[Token], idx: int) -> bool:
    return _is_line_start(tokens, idx) and (
        idx + 1 >= len(tokens) or tokens[idx + 1].is_new_line
    )


def _strip_new_lines(tokens: Sequence[Token]) -> Sequence[Token]:
    start, end = 0, len(tokens)
    while start < end and tokens[start].is_new_line:
        start += 1
    while end > start and tokens[end - 1].is_new_line:
        end -= 1
    return tokens[start:end]


def _parse_section(tokens: Sequence[Token], name: str) -> list[Element]:
    elements = parse_block(tokens)
    while elements and isinstance(elements[-1], NewLine):
        elements.pop()
    if not elements:
        raise ParseError(f"{name} is empty")
    return elements


def _split_body_blocks(tokens: Sequence[Token]) -> list[Sequence[Token]]:
    blocks: list[Sequence[Token]] = []
    start = 0
    for idx, token in enumerate(tokens):
        if (
            token.kind is TokenKind.TEXT
            and _SEPARATOR_PATTERN.match(token.value or "")
            and _is_whole_line(tokens, idx)
        ):
            blocks.append(tokens[start:idx])
            start = idx + 1
    blocks.append(tokens[start:])
    return blocks


def _join_blocks(blocks: list[list[Element]]) -> list[Element]:
    elements: list[Element] = []
    for block in blocks:
        if elements:
            if isinstance(elements[-1], PageBreak) or isinstance(block[0], PageBreak):
                elements.append(NewLine())
            else:
                elements.extend([NewLine(), PageBreak(PageBreakKind.KAIPAGE), NewLine()])
        elements.extend(block)
    return elements


def parse_ruby_txt(tokens: Sequence[Token]) -> ParsedRubyTxt:
    """Split a tokenized book into header, body and footer and parse each."""
    if not tokens:
        raise ParseError("Cannot parse an empty document")
    if tokens[0].is_new_line:
        raise ParseError("Header starts with an empty line")

    # Header: everything before the first blank line.
    idx = 0
    while not (tokens[idx].is_new_line and idx + 1 < len(tokens) and tokens[idx + 1].is_new_line):
        idx += 1
        if idx >= len(tokens):
            raise ParseError("Body is missing")
    header = _parse_section(tokens[:idx], "Header")

    while idx < len(tokens) and tokens[idx].is_new_line:
        idx += 1
    body_start = idx

    while True:
        if idx >= len(tokens):
            raise ParseError("Footer is missing")
        token = tokens[idx]
        if (
            token.kind is TokenKind.TEXT
            and _is_line_start(tokens, idx)
            and _FOOTER_PATTERN.match(token.value or "")
        ):
            break
        idx += 1

    blocks: list[list[Element]] = []
    for block in _split_body_blocks(tokens[body_start:idx]):
        block = _strip_new_lines(block)
        if not block:
            continue
        first = block[0]
        if first.kind is TokenKind.TEXT and (first.value or "").startswith(_NOTATION_GUIDE):
            _debug_log("Skipping notation guide block")
            continue
        blocks.append(parse_block(block))
    _debug_log(f"Body has {len(blocks)} block(s)")
    body = _join_blocks(blocks)
    while body and isinstance(body[-1], NewLine):
        body.pop()
    if not body:
        raise ParseError("Body is empty")

    footer = _parse_section(tokens[idx:], "Footer")
    return ParsedRubyTxt(header=header, body=body, footer=footer)


def render_ruby_txt(
    parsed: ParsedRubyTxt,
    tolerated: AbstractSet[str] = TOLERATED_VIOLATIONS,
) -> RenderedRubyTxt:
    return RenderedRubyTxt(
        header=render_block(parsed.header, tolerated=tolerated),
        body=render_block(parsed.body, tolerated=tolerated),
        footer=render_block(parsed.footer, tolerated=tolerated),
    )


def convert_ruby_txt(
    text: str,
    tolerated: AbstractSet[str] = TOLERATED_VIOLATIONS,
) -> tuple[ParsedRubyTxt, RenderedRubyTxt]:
    """Run the whole pipeline on the decoded text of a book."""
    tokens = tokenize_ruby_txt(text)
    _debug_log(f"Tokenized {len(text)} characters into {len(tokens)} tokens")
    parsed = parse_ruby_txt(tokens)
    _debug_log(
        f"Parsed header={len(parsed.header)} body={len(parsed.body)} "
        f"footer={len(parsed.footer)} elements"
    )
    rendered = render_ruby_txt(parsed, tolerated=tolerated)
    _debug_log(f"Rendered {len(rendered.body)} body line(s)")
    return parsed, rendered


def serialize_parsed(parsed: ParsedRubyTxt) -> dict[str, object]:
    return {
        "header": serialize_elements(parsed.header),
        "body": serialize_elements(parsed.body),
        "footer": serialize_elements(parsed.footer),
    }
