from __future__ import annotations

from typing import Any

__all__ = [
    "RubyTxtError",
    "ParseError",
    "RenderError",
]


class RubyTxtError(ValueError):
    """Base class for structural errors in a ruby-txt document."""

    def __init__(self, message: str, context: Any = None) -> None:
        self.message = message
        self.context = context
        if context is not None:
            message = f"{message}: {context!r}"
        super().__init__(message)


class ParseError(RubyTxtError):
    """Raised when tokens cannot be turned into elements."""


class RenderError(RubyTxtError):
    """Raised when elements violate the layout rules of the renderer."""
