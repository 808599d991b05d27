from .annotation import resolve_annotation
from .document import ParsedRubyTxt, convert_ruby_txt, parse_ruby_txt, render_ruby_txt
from .errors import ParseError, RenderError, RubyTxtError
from .parser import parse_block
from .renderer import TOLERATED_VIOLATIONS, RenderedLine, RenderedRubyTxt, render_block
from .tokenizer import tokenize_ruby_txt
from .tokens import Token, TokenKind

__all__ = [
    "tokenize_ruby_txt",
    "Token",
    "TokenKind",
    "parse_block",
    "resolve_annotation",
    "render_block",
    "RenderedLine",
    "RenderedRubyTxt",
    "TOLERATED_VIOLATIONS",
    "ParsedRubyTxt",
    "parse_ruby_txt",
    "render_ruby_txt",
    "convert_ruby_txt",
    "RubyTxtError",
    "ParseError",
    "RenderError",
]
