"""Exceptions and warnings raised while expanding placeholder templates."""

from __future__ import annotations

import ast
from typing import Optional

# ---------- Exceptions (keep Placefn* canonical) ----------

class PlacefnError(Exception):
    lineno: Optional[int]
    col_offset: Optional[int]

    def __init__(
        self,
        message: str,
        node: Optional[ast.AST] = None,
        *,
        lineno: Optional[int] = None,
        col_offset: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.lineno = getattr(node, "lineno", lineno)
        self.col_offset = getattr(node, "col_offset", col_offset)

    def __str__(self) -> str:
        msg = self.message

        if self.lineno is None:
            return msg

        if self.col_offset is None:
            return f"{msg} (line {self.lineno})"

        return f"{msg} (line {self.lineno}, col {self.col_offset})"

class TemplateSyntaxError(PlacefnError):
    """Template text or template call that cannot become a function body."""

class ScopeUnavailableError(PlacefnError):
    """Lexical scope was requested but the host cannot provide it."""

class ConfigError(PlacefnError):
    pass

class TemplateNotExpandedError(PlacefnError):
    def __init__(self, name: str = "fn"):
        super().__init__(
            f"{name}() is a compile-time template; expand the module "
            "(expand_source, exec_source or the import hook) or use template() for text"
        )
        self.name = name

# ---------- Warnings ----------

class NestedTemplateWarning(UserWarning):
    """A template call appears inside another template's body.

    The inner template is left untouched by the outer walk, so its
    placeholders never consume outer slots.
    """
