"""Spread lowering for the variadic placeholder.

A call (or list/tuple/set display) that holds the variadic placeholder
among its direct elements is first described as a spread plan, one entry
per element, then lowered onto Python's own ``*`` unpacking, which
flattens every entry into one argument list.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional, Sequence


class SpreadKind(Enum):
    SINGLE = auto()
    MULTI = auto()


@dataclass(frozen=True)
class SpreadArg:
    kind: SpreadKind
    node: ast.expr


def plan_spread(elements: Sequence[ast.expr], is_variadic: Callable[[ast.expr], bool]) -> Optional[List[SpreadArg]]:
    """Return a spread plan, or None when no element is the variadic marker."""
    plan = [
        SpreadArg(SpreadKind.MULTI if is_variadic(elt) else SpreadKind.SINGLE, elt)
        for elt in elements
    ]

    if not any(entry.kind is SpreadKind.MULTI for entry in plan):
        return None
    return plan


def lower_spread(plan: Sequence[SpreadArg], rest_name: str) -> List[ast.expr]:
    lowered: List[ast.expr] = []

    for entry in plan:
        if entry.kind is SpreadKind.SINGLE:
            lowered.append(entry.node)
            continue

        rest = ast.copy_location(ast.Name(id=rest_name, ctx=ast.Load()), entry.node)
        lowered.append(ast.copy_location(ast.Starred(value=rest, ctx=ast.Load()), entry.node))

    return lowered
