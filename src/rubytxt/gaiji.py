from __future__ import annotations

import re
from functools import lru_cache

__all__ = [
    "lookup_gaiji",
    "lookup_gaiji_unicode",
    "resolve_gaiji",
]

# Hentaigana are described by the modern kana they derive from.
_HENTAIGANA_PATTERN = re.compile(r"^変体仮名(?P<kana>.).*$")
# Characters outside JIS level 1/2: "「description」、第3水準1-15-60".
_JIS_PATTERN = re.compile(
    r"^.+、(?:第[34]水準)?(?P<plane>[0-9]+)-(?P<row>[0-9]+)-(?P<cell>[0-9]+)$"
)
# Characters outside JIS X 0213 but in Unicode: "「description」、U+3B7F、110-4".
_UNICODE_PATTERN = re.compile(r"^.+?、U\+(?P<codepoint>[0-9A-Fa-f]+)、[0-9]+-[0-9]+$")

_EUC_SS3 = b"\x8f"


@lru_cache(maxsize=1)
def _jis_x_0213_table() -> dict[tuple[int, int, int], str]:
    """Build the plane/row/cell table once from the EUC-JIS-2004 codec."""
    table: dict[tuple[int, int, int], str] = {}
    for plane, prefix in ((1, b""), (2, _EUC_SS3)):
        for row in range(1, 95):
            for cell in range(1, 95):
                raw = prefix + bytes((0xA0 + row, 0xA0 + cell))
                try:
                    table[(plane, row, cell)] = raw.decode("euc_jis_2004")
                except UnicodeDecodeError:
                    continue
    return table


def lookup_gaiji(plane: int, row: int, cell: int) -> str | None:
    return _jis_x_0213_table().get((plane, row, cell))


def lookup_gaiji_unicode(codepoint: int) -> str | None:
    if codepoint < 0 or codepoint > 0x10FFFF:
        return None
    if 0xD800 <= codepoint <= 0xDFFF:
        return None
    return chr(codepoint)


def resolve_gaiji(description: str) -> str | None:
    """
    Resolve the text of a ``※［＃...］`` annotation to a glyph.

    Returns ``None`` when the description does not identify a character we can
    produce; callers keep the annotation as literal text in that case.
    """
    match = _HENTAIGANA_PATTERN.match(description)
    if match:
        return match.group("kana")

    match = _JIS_PATTERN.match(description)
    if match:
        glyph = lookup_gaiji(
            int(match.group("plane")),
            int(match.group("row")),
            int(match.group("cell")),
        )
        if glyph is not None:
            return glyph

    match = _UNICODE_PATTERN.match(description)
    if match:
        return lookup_gaiji_unicode(int(match.group("codepoint"), 16))

    return None
