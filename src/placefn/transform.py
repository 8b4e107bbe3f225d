"""
The template operator: one template body in, one ``lambda`` node out.

Each call owns a fresh slot table, walker and scope root; nothing is shared
between two expansions, including sibling and nested templates of one
module.
"""

from __future__ import annotations

import ast
import copy
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from .config import DEFAULT_CONFIG, TemplateConfig
from .errors import NestedTemplateWarning
from .placeholders import PlaceholderSpelling
from .registry import SlotTable
from .scope import ScopeContext, resolve_scope
from .synth import synthesize
from .walker import TemplateWalker

logger = logging.getLogger(__name__)


@dataclass
class Expansion:
    node: ast.Lambda
    params: List[str]
    variadic: Optional[str] = None
    scope_known: bool = True
    diagnostics: List[NestedTemplateWarning] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.params)

    @property
    def source(self) -> str:
        return ast.unparse(self.node)


def transform(
    body: Sequence[ast.expr],
    *,
    scope: Optional[ScopeContext] = None,
    config: Optional[TemplateConfig] = None,
    location: Optional[ast.AST] = None,
    filename: str = "<template>",
) -> Expansion:
    """Expand a template body into a lambda.

    ``body`` is left untouched; the walk rewrites a deep copy. ``scope`` is
    what the enclosing program binds at the template's position; None means
    unknown (see ``resolve_scope``).
    """
    config = config or DEFAULT_CONFIG
    root = resolve_scope(scope, config)
    template = [copy.deepcopy(expr) for expr in body]

    table = SlotTable(config.param_prefix, taken=_template_names(template) | root.all_names())
    walker = TemplateWalker(PlaceholderSpelling(config), table, filename=filename)
    rewritten = walker.walk_body(template, root)
    node = synthesize(table, rewritten, like=location if location is not None else _first(template))

    logger.debug(
        "expanded template at %s:%s into %d-ary lambda%s",
        filename,
        getattr(location, "lineno", "?"),
        len(table),
        " with rest parameter" if table.variadic else "",
    )

    return Expansion(
        node=node,
        params=table.params,
        variadic=table.variadic,
        scope_known=root.known,
        diagnostics=walker.diagnostics,
    )


def _template_names(template: Sequence[ast.expr]) -> Set[str]:
    names: Set[str] = set()

    for expr in template:
        for node in ast.walk(expr):
            if isinstance(node, ast.Name):
                names.add(node.id)
            elif isinstance(node, ast.arg):
                names.add(node.arg)

    return names


def _first(template: Sequence[ast.expr]) -> Optional[ast.AST]:
    return template[0] if template else None
