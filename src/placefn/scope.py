"""
Scope classifier.

Answers one question for the walker: is this identifier free at this point
of the tree (eligible to be a placeholder) or bound by some enclosing
scope (left untouched)? Scope contexts are immutable and threaded downward
through the walk; nothing here mutates shared state.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import FrozenSet, Iterable, List, Optional, Set

from .config import OPERATOR_EXPORT, PACKAGE_NAME, ScopeMode, TemplateConfig
from .errors import ScopeUnavailableError

logger = logging.getLogger(__name__)


class Binding(Enum):
    FREE = auto()
    BOUND = auto()


class ScopeContext:
    """Chain of frozensets of bound names, innermost first.

    A root created with ``known=False`` stands for an enclosing program we
    know nothing about; names bound inside the template itself are still
    tracked on top of it. ``operators`` and ``modules`` are the subsets of
    ``names`` this scope binds to the template operator and to the placefn
    package.
    """

    __slots__ = ("names", "parent", "known", "operators", "modules")

    def __init__(
        self,
        names: Iterable[str] = (),
        parent: Optional[ScopeContext] = None,
        known: bool = True,
        operators: Iterable[str] = (),
        modules: Iterable[str] = (),
    ):
        self.names = frozenset(names)
        self.parent = parent
        self.known = known if parent is None else parent.known
        self.operators = frozenset(operators)
        self.modules = frozenset(modules)

    @classmethod
    def unknown(cls) -> ScopeContext:
        return cls(known=False)

    def bind(self, names: Iterable[str], operators: Iterable[str] = (), modules: Iterable[str] = ()) -> ScopeContext:
        names = frozenset(names)
        if not names:
            return self
        return ScopeContext(names, parent=self, operators=operators, modules=modules)

    def lookup(self, name: str) -> Optional[ScopeContext]:
        """Innermost scope binding ``name``, or None when it is free."""
        scope: Optional[ScopeContext] = self

        while scope is not None:
            if name in scope.names:
                return scope
            scope = scope.parent

        return None

    def is_bound(self, name: str) -> bool:
        return self.lookup(name) is not None

    def all_names(self) -> Set[str]:
        out: Set[str] = set()
        scope: Optional[ScopeContext] = self

        while scope is not None:
            out |= scope.names
            scope = scope.parent

        return out

    def __repr__(self) -> str:
        return f"ScopeContext(known={self.known}, names={sorted(self.all_names())!r})"


def classify_name(name: str, scope: ScopeContext) -> Binding:
    return Binding.BOUND if scope.is_bound(name) else Binding.FREE


# ---------- binding collection ----------

def function_params(args: ast.arguments) -> List[str]:
    names = [a.arg for a in (*args.posonlyargs, *args.args, *args.kwonlyargs)]

    if args.vararg is not None:
        names.append(args.vararg.arg)
    if args.kwarg is not None:
        names.append(args.kwarg.arg)

    return names


def comprehension_targets(generators: Iterable[ast.comprehension]) -> List[str]:
    names: List[str] = []

    for gen in generators:
        names.extend(target_names(gen.target))

    return names


def target_names(target: ast.AST) -> List[str]:
    return [n.id for n in ast.walk(target) if isinstance(n, ast.Name)]


@dataclass(frozen=True)
class Bindings:
    names: FrozenSet[str]
    operators: FrozenSet[str] = frozenset()
    modules: FrozenSet[str] = frozenset()


def scan_bindings(body: Iterable[ast.AST]) -> Bindings:
    """Names a module or function body binds, not counting nested scopes.

    Imports of the template operator (``from placefn import fn as hole``) and
    of the package itself (``import placefn as pf``) are reported apart so
    the expander can tell them from any other binding of the same name.
    """
    collector = _BindingCollector()

    for stmt in body:
        collector.visit(stmt)

    return Bindings(frozenset(collector.names), frozenset(collector.operators), frozenset(collector.modules))


class _BindingCollector(ast.NodeVisitor):
    def __init__(self) -> None:
        self.names: Set[str] = set()
        self.operators: Set[str] = set()
        self.modules: Set[str] = set()

    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, (ast.Store, ast.Del)):
            self.names.add(node.id)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        self.names.add(node.name)
        # decorators and defaults run in this scope; the body does not
        for expr in (*node.decorator_list, *node.args.defaults, *node.args.kw_defaults):
            if expr is not None:
                self.visit(expr)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self.names.add(node.name)
        for expr in (*node.decorator_list, *node.bases, *(k.value for k in node.keywords)):
            self.visit(expr)

    def visit_Lambda(self, node: ast.Lambda) -> None:
        for expr in (*node.args.defaults, *node.args.kw_defaults):
            if expr is not None:
                self.visit(expr)

    def _visit_comprehension(self, node: ast.AST) -> None:
        # comprehension targets are local to the comprehension, but a walrus
        # inside one binds in the enclosing function
        for sub in ast.walk(node):
            if isinstance(sub, ast.NamedExpr):
                self.names.update(target_names(sub.target))

    visit_ListComp = _visit_comprehension
    visit_SetComp = _visit_comprehension
    visit_DictComp = _visit_comprehension
    visit_GeneratorExp = _visit_comprehension

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            bound = alias.asname or alias.name.split(".", 1)[0]
            self.names.add(bound)
            # `import placefn.runner` binds the package; `... as r` binds the submodule
            if alias.name == PACKAGE_NAME or (alias.asname is None and alias.name.startswith(f"{PACKAGE_NAME}.")):
                self.modules.add(bound)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        from_package = node.level == 0 and node.module in (PACKAGE_NAME, f"{PACKAGE_NAME}.runner")

        for alias in node.names:
            if alias.name == "*":
                continue
            bound = alias.asname or alias.name
            self.names.add(bound)
            if from_package and alias.name == OPERATOR_EXPORT:
                self.operators.add(bound)

    def visit_Global(self, node: ast.Global) -> None:
        self.names.update(node.names)

    def visit_Nonlocal(self, node: ast.Nonlocal) -> None:
        self.names.update(node.names)

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.name:
            self.names.add(node.name)
        self.generic_visit(node)

    def visit_MatchAs(self, node: ast.MatchAs) -> None:
        if node.name:
            self.names.add(node.name)
        self.generic_visit(node)

    def visit_MatchStar(self, node: ast.MatchStar) -> None:
        if node.name:
            self.names.add(node.name)

    def visit_MatchMapping(self, node: ast.MatchMapping) -> None:
        if node.rest:
            self.names.add(node.rest)
        self.generic_visit(node)


# ---------- scope resolution ----------

def resolve_scope(scope: Optional[ScopeContext], config: TemplateConfig) -> ScopeContext:
    """Pick the root scope a walk starts from.

    ScopeMode.IGNORE disregards whatever the enclosing program binds. A
    missing scope under ScopeMode.LEXICAL degrades the same way when
    ``scope_fallback`` is set and is an error otherwise.
    """
    if config.scope_mode is ScopeMode.IGNORE:
        return ScopeContext.unknown()

    if scope is not None:
        return scope

    if not config.scope_fallback:
        raise ScopeUnavailableError(
            "lexical scope information is unavailable and scope_fallback is disabled"
        )

    logger.debug("no lexical scope available; treating placeholder-shaped names as free")
    return ScopeContext.unknown()
