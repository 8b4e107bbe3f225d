"""
Placeholder tags.

Every name node in a template is classified exactly once into one of the
tags below; the walker dispatches on the tag instead of re-reading the
identifier text at each use site.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Union

from typing_extensions import TypeAlias

from .config import TemplateConfig


class PK(Enum):
    """Placeholder Kinds"""

    ORDINARY = auto()
    ANONYMOUS = auto()
    NUMBERED = auto()
    VARIADIC = auto()


@dataclass(frozen=True)
class Anonymous:
    kind = PK.ANONYMOUS


@dataclass(frozen=True)
class Numbered:
    index: int
    kind = PK.NUMBERED


@dataclass(frozen=True)
class Variadic:
    kind = PK.VARIADIC


@dataclass(frozen=True)
class Ordinary:
    kind = PK.ORDINARY


Placeholder: TypeAlias = Union[Anonymous, Numbered, Variadic, Ordinary]

ORDINARY = Ordinary()
ANONYMOUS = Anonymous()
VARIADIC = Variadic()


class PlaceholderSpelling:
    """Compiled matcher for one TemplateConfig's placeholder names."""

    def __init__(self, config: TemplateConfig):
        self.config = config
        # positive, no leading zero: _1 .. _50; _0 and _01 stay ordinary
        self._numbered = re.compile(rf"{re.escape(config.numbered_prefix)}([1-9][0-9]*)")

    def classify_name(self, name: str) -> Placeholder:
        if name == self.config.anonymous:
            return ANONYMOUS
        if name == self.config.variadic:
            return VARIADIC

        m = self._numbered.fullmatch(name)
        if m is None:
            return ORDINARY

        index = int(m.group(1))
        if index > self.config.max_numbered:
            return ORDINARY
        return Numbered(index)

    def classify(self, node: ast.AST) -> Placeholder:
        # only loads are evaluated; Store/Del targets bind or unbind names
        if not isinstance(node, ast.Name) or not isinstance(node.ctx, ast.Load):
            return ORDINARY
        return self.classify_name(node.id)

    def is_placeholder_name(self, name: str) -> bool:
        return self.classify_name(name).kind is not PK.ORDINARY
