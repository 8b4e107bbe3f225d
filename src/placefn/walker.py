"""
Template walker.

Visits a template's expression tree once, depth-first and in the order
Python evaluates it, rewriting placeholder names into slot parameters as
they are met. The order matters: anonymous placeholders take slots in the
order they are reached, and that order is the synthesized function's
parameter order.
"""

from __future__ import annotations

import ast
import warnings
from typing import Any, Iterable, List, Optional, Sequence, Set

from .config import OPERATOR_EXPORT, PACKAGE_NAME
from .errors import NestedTemplateWarning
from .lower import lower_spread, plan_spread
from .placeholders import PK, Anonymous, Numbered, PlaceholderSpelling, Variadic
from .registry import SlotTable
from .scope import Binding, ScopeContext, classify_name, comprehension_targets, function_params


def is_template_call(node: ast.AST, scope: ScopeContext, operator_names: Iterable[str]) -> bool:
    """True for calls of the template operator as the program at ``scope`` sees it.

    A free operator name counts, and so do names bound by ``from placefn
    import fn`` and ``placefn.fn`` through ``import placefn``. Any other
    binding (a parameter, an assignment, a ``def``) makes it an ordinary call.
    """
    if not isinstance(node, ast.Call):
        return False

    match node.func:
        case ast.Name(id=name):
            owner = scope.lookup(name)
            if owner is None:
                return name in set(operator_names)
            return name in owner.operators
        case ast.Attribute(value=ast.Name(id=receiver), attr=attr) if attr == OPERATOR_EXPORT:
            owner = scope.lookup(receiver)
            if owner is None:
                return receiver == PACKAGE_NAME
            return receiver in owner.modules
        case _:
            return False


class TemplateWalker:
    def __init__(
        self,
        spelling: PlaceholderSpelling,
        table: SlotTable,
        filename: str = "<template>",
        diagnostics: Optional[List[NestedTemplateWarning]] = None,
    ):
        self.spelling = spelling
        self.table = table
        self.filename = filename
        self.operator_names = spelling.config.operator_names
        self.diagnostics: List[NestedTemplateWarning] = [] if diagnostics is None else diagnostics

    def walk_body(self, body: Sequence[ast.expr], scope: ScopeContext) -> List[ast.expr]:
        return [self.visit(expr, scope) for expr in body]

    def visit(self, node: Any, scope: ScopeContext) -> Any:
        method = getattr(self, f"visit_{type(node).__name__}", self.generic_visit)
        return method(node, scope)

    def generic_visit(self, node: ast.AST, scope: ScopeContext) -> ast.AST:
        for field, value in ast.iter_fields(node):
            if isinstance(value, list):
                setattr(node, field, [self.visit(v, scope) if isinstance(v, ast.AST) else v for v in value])
            elif isinstance(value, ast.AST):
                setattr(node, field, self.visit(value, scope))
        return node

    # ---------- leaves ----------

    def visit_Constant(self, node: ast.Constant, scope: ScopeContext) -> ast.Constant:
        return node

    def visit_Name(self, node: ast.Name, scope: ScopeContext) -> ast.Name:
        tag = self.spelling.classify(node)

        if tag.kind is PK.ORDINARY or classify_name(node.id, scope) is Binding.BOUND:
            return node

        match tag:
            case Anonymous():
                param = self.table.allocate_next()
            case Numbered(index=index):
                param = self.table.ensure_slot(index)
            case Variadic():
                # outside a call/display the rest arguments are a tuple
                param = self.table.mark_variadic()
            case _:
                raise AssertionError(f"unhandled placeholder tag {tag!r}")

        return ast.copy_location(ast.Name(id=param, ctx=ast.Load()), node)

    # ---------- evaluation order ----------

    def visit_IfExp(self, node: ast.IfExp, scope: ScopeContext) -> ast.IfExp:
        node.test = self.visit(node.test, scope)
        node.body = self.visit(node.body, scope)
        node.orelse = self.visit(node.orelse, scope)
        return node

    def visit_Dict(self, node: ast.Dict, scope: ScopeContext) -> ast.Dict:
        keys: List[Optional[ast.expr]] = []
        values: List[ast.expr] = []

        for key, value in zip(node.keys, node.values):
            # `**mapping` entries have no key
            keys.append(None if key is None else self.visit(key, scope))
            values.append(self.visit(value, scope))

        node.keys = keys
        node.values = values
        return node

    def visit_NamedExpr(self, node: ast.NamedExpr, scope: ScopeContext) -> ast.NamedExpr:
        node.value = self.visit(node.value, scope)
        return node

    def visit_Lambda(self, node: ast.Lambda, scope: ScopeContext) -> ast.Lambda:
        args = node.args
        args.defaults = [self.visit(d, scope) for d in args.defaults]
        args.kw_defaults = [None if d is None else self.visit(d, scope) for d in args.kw_defaults]
        node.body = self.visit(node.body, scope.bind(function_params(args)))
        return node

    def _visit_generators(self, generators: List[ast.comprehension], scope: ScopeContext) -> ScopeContext:
        inner = scope

        for idx, gen in enumerate(generators):
            # the first iterable is evaluated in the enclosing scope
            gen.iter = self.visit(gen.iter, scope if idx == 0 else inner)
            inner = inner.bind(comprehension_targets([gen]))
            gen.ifs = [self.visit(cond, inner) for cond in gen.ifs]

        return inner

    def visit_ListComp(self, node: ast.ListComp, scope: ScopeContext) -> ast.ListComp:
        inner = self._visit_generators(node.generators, scope)
        node.elt = self.visit(node.elt, inner)
        return node

    visit_SetComp = visit_ListComp
    visit_GeneratorExp = visit_ListComp

    def visit_DictComp(self, node: ast.DictComp, scope: ScopeContext) -> ast.DictComp:
        inner = self._visit_generators(node.generators, scope)
        node.key = self.visit(node.key, inner)
        node.value = self.visit(node.value, inner)
        return node

    # ---------- calls and spreads ----------

    def visit_Call(self, node: ast.Call, scope: ScopeContext) -> ast.Call:
        if is_template_call(node, scope, self.operator_names):
            self._nested_template(node)
            return node

        node.func = self.visit(node.func, scope)
        node.args = self._visit_elements(node.args, scope)

        for kw in node.keywords:
            kw.value = self.visit(kw.value, scope)

        return node

    def visit_List(self, node: ast.List, scope: ScopeContext) -> ast.List:
        if not isinstance(node.ctx, ast.Load):
            return node
        node.elts = self._visit_elements(node.elts, scope)
        return node

    visit_Tuple = visit_List

    def visit_Set(self, node: ast.Set, scope: ScopeContext) -> ast.Set:
        node.elts = self._visit_elements(node.elts, scope)
        return node

    def _visit_elements(self, elements: List[ast.expr], scope: ScopeContext) -> List[ast.expr]:
        markers: Set[int] = set()
        visited: List[ast.expr] = []

        for elt in elements:
            if self._is_variadic_marker(elt, scope):
                self.table.mark_variadic()
                markers.add(id(elt))
                visited.append(elt)
            else:
                visited.append(self.visit(elt, scope))

        plan = plan_spread(visited, lambda e: id(e) in markers)
        if plan is None:
            return visited

        rest = self.table.variadic
        assert rest is not None
        return lower_spread(plan, rest)

    def _is_variadic_marker(self, node: ast.expr, scope: ScopeContext) -> bool:
        if self.spelling.classify(node).kind is not PK.VARIADIC:
            return False
        assert isinstance(node, ast.Name)
        return classify_name(node.id, scope) is Binding.FREE

    # ---------- diagnostics ----------

    def _nested_template(self, node: ast.Call) -> None:
        lineno = getattr(node, "lineno", 1)
        col = getattr(node, "col_offset", 0)
        warning = NestedTemplateWarning(
            f"nested placeholder template at line {lineno}, col {col}: "
            "its placeholders are not bound by the enclosing template"
        )
        self.diagnostics.append(warning)
        warnings.warn_explicit(warning, NestedTemplateWarning, self.filename, lineno)
