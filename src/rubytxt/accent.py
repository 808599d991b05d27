from __future__ import annotations

__all__ = ["compose_accent", "ACCENT_DIGRAPHS", "ACCENT_TRIGRAPHS"]

# https://www.aozora.gr.jp/accent_separation.html
ACCENT_DIGRAPHS: dict[str, str] = {
    "a`": "à", "a'": "á", "a^": "â", "a~": "ã", "a:": "ä", "a&": "å", "a_": "ā",
    "c,": "ç", "c'": "ć", "c^": "ĉ",
    "d/": "đ",
    "e`": "è", "e'": "é", "e^": "ê", "e:": "ë", "e_": "ē", "e~": "ẽ",
    "g^": "ĝ",
    "h^": "ĥ", "h/": "ħ",
    "i`": "ì", "i'": "í", "i^": "î", "i:": "ï", "i_": "ī", "i/": "ɨ", "i~": "ĩ",
    "j^": "ĵ",
    "l/": "ł", "l'": "ĺ",
    "m'": "ḿ",
    "n`": "ǹ", "n~": "ñ", "n'": "ń",
    "o`": "ò", "o'": "ó", "o^": "ô", "o~": "õ", "o:": "ö", "o/": "ø", "o_": "ō",
    "r'": "ŕ",
    "s'": "ś", "s,": "ş", "s^": "ŝ", "s&": "ß",
    "t,": "ţ",
    "u`": "ù", "u'": "ú", "u^": "û", "u:": "ü", "u_": "ū", "u&": "ů", "u~": "ũ",
    "y'": "ý", "y:": "ÿ",
    "z'": "ź",
    "A`": "À", "A'": "Á", "A^": "Â", "A~": "Ã", "A:": "Ä", "A&": "Å", "A_": "Ā",
    "C,": "Ç", "C'": "Ć", "C^": "Ĉ",
    "D/": "Đ",
    "E`": "È", "E'": "É", "E^": "Ê", "E:": "Ë", "E_": "Ē", "E~": "Ẽ",
    "G^": "Ĝ",
    "H^": "Ĥ",
    "I`": "Ì", "I'": "Í", "I^": "Î", "I:": "Ï", "I_": "Ī", "I~": "Ĩ",
    "J^": "Ĵ",
    "L/": "Ł", "L'": "Ĺ",
    "M'": "Ḿ",
    "N`": "Ǹ", "N~": "Ñ", "N'": "Ń",
    "O`": "Ò", "O'": "Ó", "O^": "Ô", "O~": "Õ", "O:": "Ö", "O/": "Ø", "O_": "Ō",
    "R'": "Ŕ",
    "S'": "Ś", "S,": "Ş", "S^": "Ŝ",
    "T,": "Ţ",
    "U`": "Ù", "U'": "Ú", "U^": "Û", "U:": "Ü", "U_": "Ū", "U&": "Ů", "U~": "Ũ",
    "Y'": "Ý",
    "Z'": "Ź",
}
ACCENT_TRIGRAPHS: dict[str, str] = {
    "ae&": "æ",
    "AE&": "Æ",
    "oe&": "œ",
    "OE&": "Œ",
}


def compose_accent(text: str) -> str:
    """Replace accent-decomposition sequences with the composed letters."""
    out: list[str] = []
    idx = 0
    length = len(text)
    while idx < length:
        composed = ACCENT_DIGRAPHS.get(text[idx : idx + 2])
        if composed is not None:
            out.append(composed)
            idx += 2
            continue
        composed = ACCENT_TRIGRAPHS.get(text[idx : idx + 3])
        if composed is not None:
            out.append(composed)
            idx += 3
            continue
        out.append(text[idx])
        idx += 1
    return "".join(out)
