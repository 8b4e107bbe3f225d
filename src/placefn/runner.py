"""
Runtime string form: ``template("_ - _")``.

The template text is parsed, expanded and compiled when ``template`` is
called. The caller's frame plays the enclosing program: its locals and
globals are the bound names, its globals are the function's globals, and
the locals the body refers to are captured by value at compile time.
"""

from __future__ import annotations

import ast
import logging
import sys
from dataclasses import dataclass, field
from textwrap import dedent
from types import FrameType
from typing import Any, Callable, Dict, Iterable, List, Optional

from .config import DEFAULT_CONFIG, PACKAGE_NAME, TemplateConfig
from .errors import NestedTemplateWarning, TemplateNotExpandedError, TemplateSyntaxError
from .expander import TemplateExpander
from .scope import ScopeContext
from .synth import make_arguments
from .transform import transform

logger = logging.getLogger(__name__)

TEMPLATE_FILENAME = "<template>"


@dataclass
class CompiledTemplate:
    function: Callable[..., Any]
    params: List[str]
    variadic: Optional[str]
    source: str
    diagnostics: List[NestedTemplateWarning] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.params)

    def __call__(self, *args: Any) -> Any:
        return self.function(*args)


def parse_template(text: str, filename: str = TEMPLATE_FILENAME) -> List[ast.expr]:
    """Parse template text into its body expressions (possibly none)."""
    try:
        module = ast.parse(dedent(text).strip(), filename=filename, mode="exec")
    except SyntaxError as exc:
        raise TemplateSyntaxError(
            f"invalid template: {exc.msg}", lineno=exc.lineno, col_offset=exc.offset
        ) from exc

    body: List[ast.expr] = []

    for stmt in module.body:
        if not isinstance(stmt, ast.Expr):
            raise TemplateSyntaxError(
                f"templates hold expressions only, got {type(stmt).__name__.lower()} statement", stmt
            )
        body.append(stmt.value)

    return body


def compile_template(
    text: str,
    *,
    bound: Iterable[str] = (),
    config: Optional[TemplateConfig] = None,
) -> CompiledTemplate:
    return _compile(text, _caller_frame(), bound, config or DEFAULT_CONFIG)


def template(
    text: str,
    *,
    bound: Iterable[str] = (),
    config: Optional[TemplateConfig] = None,
) -> Callable[..., Any]:
    """Compile ``text`` into a function whose parameters are its placeholders."""
    return _compile(text, _caller_frame(), bound, config or DEFAULT_CONFIG).function


def fn(*body: Any) -> Any:
    """Template operator; only meaningful in source that placefn expands."""
    raise TemplateNotExpandedError("fn")


def _caller_frame() -> Optional[FrameType]:
    getframe = getattr(sys, "_getframe", None)
    if getframe is None:
        return None

    try:
        # 0: here, 1: template/compile_template, 2: their caller
        return getframe(2)
    except ValueError:
        return None


def _compile(text: str, frame: Optional[FrameType], bound: Iterable[str], config: TemplateConfig) -> CompiledTemplate:
    body = parse_template(text)

    if frame is None:
        scope: Optional[ScopeContext] = None
        globals_: Dict[str, Any] = {}
        locals_: Any = {}
    else:
        globals_ = frame.f_globals
        locals_ = frame.f_locals
        scope = _frame_scope({**globals_, **locals_}, bound)

    expansion = transform(body, scope=scope, config=config, filename=TEMPLATE_FILENAME)

    expander = TemplateExpander(config, TEMPLATE_FILENAME, scope=scope)
    node = expander.visit(expansion.node)
    diagnostics = list(expansion.diagnostics)
    for inner in expander.expansions:
        diagnostics.extend(inner.diagnostics)

    captured = _captured_locals(node, globals_, locals_)
    # `lambda <captured locals>: <template lambda>` called once with their values
    factory = ast.Lambda(args=make_arguments(captured), body=node)
    code = compile(ast.fix_missing_locations(ast.Expression(body=factory)), TEMPLATE_FILENAME, "eval")
    function = eval(code, globals_)(*(locals_[name] for name in captured))

    logger.debug("compiled template %r as %s", text, ast.unparse(node))

    return CompiledTemplate(
        function=function,
        params=expansion.params,
        variadic=expansion.variadic,
        source=ast.unparse(node),
        diagnostics=diagnostics,
    )


def _frame_scope(visible: Dict[str, Any], bound: Iterable[str]) -> ScopeContext:
    # a frame name is the operator (or the package) when its current value is
    package = sys.modules.get(PACKAGE_NAME)
    operators = [name for name, value in visible.items() if value is fn]
    modules = [name for name, value in visible.items() if package is not None and value is package]
    return ScopeContext([*visible, *bound], operators=operators, modules=modules)


def _captured_locals(node: ast.AST, globals_: Dict[str, Any], locals_: Any) -> List[str]:
    if locals_ is globals_:
        return []

    names: List[str] = []

    for sub in ast.walk(node):
        if isinstance(sub, ast.Name) and sub.id in locals_ and sub.id not in names:
            names.append(sub.id)

    return names
