"""
Import hook: expand templates in marked modules while they are imported.

A module opts in with a marker comment (``# placefn: expand`` by default)
on one of its first lines. Expanded modules bypass the bytecode cache so a
``.pyc`` written by a plain import is never mistaken for expanded code.
"""

from __future__ import annotations

import importlib.abc
import importlib.machinery
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from .config import DEFAULT_CONFIG, TemplateConfig
from .expander import compile_source

logger = logging.getLogger(__name__)

MARKER_SCAN_LINES = 5


def has_marker(path: str, marker: str) -> bool:
    try:
        with Path(path).open("r", encoding="utf-8") as fh:
            for _, line in zip(range(MARKER_SCAN_LINES), fh):
                if line.strip() == marker:
                    return True
    except (OSError, UnicodeDecodeError):
        return False
    return False


class ExpandingLoader(importlib.machinery.SourceFileLoader):
    def __init__(self, fullname: str, path: str, config: TemplateConfig):
        super().__init__(fullname, path)
        self.config = config

    def get_code(self, fullname: str) -> Any:
        path = self.get_filename(fullname)
        source = self.get_source(fullname)
        if source is None:
            raise ImportError(f"no source for {fullname}", name=fullname, path=path)

        logger.debug("expanding templates in %s (%s)", fullname, path)
        return compile_source(source, path, "exec", config=self.config)


class ExpandingFinder(importlib.abc.MetaPathFinder):
    def __init__(self, config: Optional[TemplateConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def find_spec(self, fullname: str, path: Optional[Sequence[str]], target: Any = None) -> Any:
        spec = importlib.machinery.PathFinder.find_spec(fullname, path)

        if spec is None or spec.origin is None:
            return None
        if not isinstance(spec.loader, importlib.machinery.SourceFileLoader):
            return None
        if not has_marker(spec.origin, self.config.marker):
            return None

        spec.loader = ExpandingLoader(fullname, spec.origin, self.config)
        return spec


def install_import_hook(config: Optional[TemplateConfig] = None) -> ExpandingFinder:
    finder = ExpandingFinder(config)
    sys.meta_path.insert(0, finder)
    return finder


def uninstall_import_hook(finder: ExpandingFinder) -> None:
    if finder in sys.meta_path:
        sys.meta_path.remove(finder)
