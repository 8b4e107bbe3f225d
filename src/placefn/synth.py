"""Function synthesis: slot table + rewritten body -> ``lambda`` node."""

from __future__ import annotations

import ast
from typing import Optional, Sequence

from .registry import SlotTable


def sequence_body(body: Sequence[ast.expr]) -> ast.expr:
    """Fold several body expressions into one that evaluates all, in order.

    ``(e1, e2, ..., en)[-1]``: the tuple display evaluates left to right and
    the subscript keeps the last value.
    """
    if not body:
        return ast.Constant(value=None)
    if len(body) == 1:
        return body[0]

    return ast.Subscript(
        value=ast.Tuple(elts=list(body), ctx=ast.Load()),
        slice=ast.UnaryOp(op=ast.USub(), operand=ast.Constant(value=1)),
        ctx=ast.Load(),
    )


def make_arguments(names: Sequence[str], vararg: Optional[str] = None) -> ast.arguments:
    return ast.arguments(
        posonlyargs=[],
        args=[ast.arg(arg=name) for name in names],
        vararg=ast.arg(arg=vararg) if vararg is not None else None,
        kwonlyargs=[],
        kw_defaults=[],
        kwarg=None,
        defaults=[],
    )


def synthesize(table: SlotTable, body: Sequence[ast.expr], like: Optional[ast.AST] = None) -> ast.Lambda:
    # reserved-but-unused slots are still declared; Python never complains
    lam = ast.Lambda(args=make_arguments(table.params, table.variadic), body=sequence_body(body))

    if like is not None:
        _fill_locations(lam, like)

    return lam


def _fill_locations(node: ast.AST, like: ast.AST) -> None:
    for sub in ast.walk(node):
        if "lineno" in sub._attributes and getattr(sub, "lineno", None) is None:
            ast.copy_location(sub, like)
