"""placefn: functions from placeholder templates.

``fn(_ - _)`` in expanded source (or ``template("_ - _")`` at run time)
becomes ``lambda _hole1, _hole2: _hole1 - _hole2``. ``_`` takes the next
parameter, ``_1`` .. ``_50`` name one, ``__`` is the rest of the arguments.
"""

from __future__ import annotations

from .config import ScopeMode, TemplateConfig
from .errors import (
    ConfigError,
    NestedTemplateWarning,
    PlacefnError,
    ScopeUnavailableError,
    TemplateNotExpandedError,
    TemplateSyntaxError,
)
from .expander import TemplateExpander, compile_source, exec_source, expand, expand_source
from .importer import install_import_hook, uninstall_import_hook
from .runner import CompiledTemplate, compile_template, fn, template
from .scope import ScopeContext
from .transform import Expansion, transform

__version__ = "0.1.0"

__all__ = [
    "CompiledTemplate",
    "ConfigError",
    "Expansion",
    "NestedTemplateWarning",
    "PlacefnError",
    "ScopeContext",
    "ScopeMode",
    "ScopeUnavailableError",
    "TemplateConfig",
    "TemplateExpander",
    "TemplateNotExpandedError",
    "TemplateSyntaxError",
    "compile_source",
    "compile_template",
    "exec_source",
    "expand",
    "expand_source",
    "fn",
    "install_import_hook",
    "template",
    "transform",
    "uninstall_import_hook",
]
