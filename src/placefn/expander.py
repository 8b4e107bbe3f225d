"""
Macro expansion of ``fn(...)`` templates in Python source.

The expander tracks the lexical scopes of the surrounding program while it
descends (module, function and lambda bindings, comprehension targets) so
that a placeholder-shaped name the program binds is never mistaken for a
placeholder. Class bodies are not tracked: their names are invisible from
inside the synthesized lambda.

The same scopes decide what a call to ``fn`` is. A free ``fn`` or one
imported from placefn is the template operator; a ``fn`` the program binds
any other way (parameter, assignment, ``def``) is called as written.
"""

from __future__ import annotations

import ast
import copy
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .config import DEFAULT_CONFIG, TemplateConfig
from .errors import TemplateSyntaxError
from .scope import Bindings, ScopeContext, comprehension_targets, function_params, scan_bindings
from .transform import Expansion, transform
from .walker import is_template_call

logger = logging.getLogger(__name__)


class TemplateExpander(ast.NodeTransformer):
    def __init__(
        self,
        config: Optional[TemplateConfig] = None,
        filename: str = "<placefn>",
        scope: Optional[ScopeContext] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.filename = filename
        self.expansions: List[Expansion] = []
        self._scope = scope if scope is not None else ScopeContext()

    @contextmanager
    def _bound(self, names: Iterable[str], found: Optional[Bindings] = None) -> Iterator[None]:
        saved = self._scope
        if found is None:
            self._scope = saved.bind(names)
        else:
            self._scope = saved.bind(names, found.operators, found.modules)
        try:
            yield
        finally:
            self._scope = saved

    # ---------- scope roots ----------

    def visit_Module(self, node: ast.Module) -> ast.Module:
        found = scan_bindings(node.body)
        with self._bound(found.names, found):
            node.body = [self.visit(stmt) for stmt in node.body]
        return node

    visit_Interactive = visit_Module

    def visit_Expression(self, node: ast.Expression) -> ast.Expression:
        found = scan_bindings([node.body])
        with self._bound(found.names, found):
            node.body = self.visit(node.body)
        return node

    # ---------- nested scopes ----------

    def _visit_defaults(self, args: ast.arguments) -> None:
        args.defaults = [self.visit(d) for d in args.defaults]
        args.kw_defaults = [None if d is None else self.visit(d) for d in args.kw_defaults]

    def visit_FunctionDef(self, node: Any) -> Any:
        node.decorator_list = [self.visit(d) for d in node.decorator_list]
        self._visit_defaults(node.args)

        found = scan_bindings(node.body)
        with self._bound([*function_params(node.args), *found.names], found):
            node.body = [self.visit(stmt) for stmt in node.body]
        return node

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node: ast.Lambda) -> ast.Lambda:
        self._visit_defaults(node.args)

        with self._bound(function_params(node.args)):
            node.body = self.visit(node.body)
        return node

    def _visit_generators(self, generators: List[ast.comprehension]) -> List[str]:
        bound: List[str] = []

        for idx, gen in enumerate(generators):
            if idx == 0:
                gen.iter = self.visit(gen.iter)
            else:
                with self._bound(bound):
                    gen.iter = self.visit(gen.iter)
            bound.extend(comprehension_targets([gen]))

            with self._bound(bound):
                gen.ifs = [self.visit(cond) for cond in gen.ifs]

        return bound

    def visit_ListComp(self, node: Any) -> Any:
        bound = self._visit_generators(node.generators)
        with self._bound(bound):
            node.elt = self.visit(node.elt)
        return node

    visit_SetComp = visit_ListComp
    visit_GeneratorExp = visit_ListComp

    def visit_DictComp(self, node: ast.DictComp) -> ast.DictComp:
        bound = self._visit_generators(node.generators)
        with self._bound(bound):
            node.key = self.visit(node.key)
            node.value = self.visit(node.value)
        return node

    # ---------- templates ----------

    def visit_Call(self, node: ast.Call) -> ast.AST:
        if not is_template_call(node, self._scope, self.config.operator_names):
            return self.generic_visit(node)

        if node.keywords:
            raise TemplateSyntaxError("template calls take no keyword arguments", node.keywords[0])
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                raise TemplateSyntaxError("template body cannot be a starred expression", arg)

        expansion = transform(
            node.args,
            scope=self._scope,
            config=self.config,
            location=node,
            filename=self.filename,
        )
        self.expansions.append(expansion)

        # inner templates the outer walk left alone expand on their own now,
        # with the outer lambda's parameters in scope
        return self.visit(expansion.node)


def expand(tree: ast.AST, *, config: Optional[TemplateConfig] = None, filename: str = "<placefn>") -> ast.AST:
    """Return a copy of ``tree`` with every template call replaced by a lambda."""
    expander = TemplateExpander(config, filename)
    expanded = expander.visit(copy.deepcopy(tree))
    logger.debug("%s: expanded %d template(s)", filename, len(expander.expansions))
    return ast.fix_missing_locations(expanded)


def expand_source(source: str, filename: str = "<placefn>", *, config: Optional[TemplateConfig] = None) -> ast.Module:
    tree = ast.parse(source, filename=filename, mode="exec")
    expanded = expand(tree, config=config, filename=filename)
    assert isinstance(expanded, ast.Module)
    return expanded


def compile_source(
    source: str,
    filename: str = "<placefn>",
    mode: str = "exec",
    *,
    config: Optional[TemplateConfig] = None,
) -> Any:
    tree = ast.parse(source, filename=filename, mode=mode)
    return compile(expand(tree, config=config, filename=filename), filename, mode, dont_inherit=True)


def exec_source(
    source: str,
    namespace: Optional[Dict[str, Any]] = None,
    *,
    filename: str = "<placefn>",
    config: Optional[TemplateConfig] = None,
) -> Dict[str, Any]:
    """Expand and run ``source`` in ``namespace``; returns the namespace."""
    ns: Dict[str, Any] = {} if namespace is None else namespace
    ns.setdefault("__name__", "__placefn__")
    exec(compile_source(source, filename, "exec", config=config), ns)
    return ns
