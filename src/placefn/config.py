"""Template configuration: placeholder spellings and scope behaviour."""

from __future__ import annotations

import keyword
import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Mapping, Optional, Tuple

from .errors import ConfigError

NUMBERED_LIMIT = 50

ENV_SCOPE_MODE = "PLACEFN_SCOPE_MODE"
ENV_SCOPE_FALLBACK = "PLACEFN_SCOPE_FALLBACK"

# `from placefn import fn` / `placefn.fn(...)`
PACKAGE_NAME = "placefn"
OPERATOR_EXPORT = "fn"

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


class ScopeMode(Enum):
    """How the scope classifier decides whether a placeholder name is free."""

    LEXICAL = "lexical"
    IGNORE = "ignore"


@dataclass(frozen=True)
class TemplateConfig:
    anonymous: str = "_"
    variadic: str = "__"
    numbered_prefix: str = "_"
    max_numbered: int = NUMBERED_LIMIT
    operator_names: Tuple[str, ...] = ("fn",)
    param_prefix: str = "_hole"
    scope_mode: ScopeMode = ScopeMode.LEXICAL
    # Degrade to "every placeholder-shaped name is free" when the host
    # cannot report lexical bindings; False turns that into an error.
    scope_fallback: bool = True
    marker: str = "# placefn: expand"

    def __post_init__(self) -> None:
        for label, name in (
            ("anonymous", self.anonymous),
            ("variadic", self.variadic),
            ("param_prefix", self.param_prefix),
        ):
            _check_identifier(label, name)

        if self.anonymous == self.variadic:
            raise ConfigError(
                f"anonymous and variadic placeholders must differ (both {self.anonymous!r})"
            )

        if not self.numbered_prefix.isidentifier():
            raise ConfigError(f"numbered_prefix {self.numbered_prefix!r} is not an identifier prefix")

        if not 1 <= self.max_numbered <= NUMBERED_LIMIT:
            raise ConfigError(f"max_numbered must be in 1..{NUMBERED_LIMIT}, got {self.max_numbered}")

        if not self.operator_names:
            raise ConfigError("at least one template operator name is required")

        for name in self.operator_names:
            _check_identifier("operator name", name)

    def with_scope(self, mode: ScopeMode, fallback: Optional[bool] = None) -> TemplateConfig:
        if fallback is None:
            return replace(self, scope_mode=mode)
        return replace(self, scope_mode=mode, scope_fallback=fallback)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> TemplateConfig:
        """Build a config, letting PLACEFN_SCOPE_MODE / PLACEFN_SCOPE_FALLBACK override defaults."""
        env = os.environ if environ is None else environ
        values = dict(overrides)

        raw_mode = env.get(ENV_SCOPE_MODE)
        if raw_mode is not None and "scope_mode" not in values:
            values["scope_mode"] = _parse_scope_mode(raw_mode)

        raw_fallback = env.get(ENV_SCOPE_FALLBACK)
        if raw_fallback is not None and "scope_fallback" not in values:
            values["scope_fallback"] = _parse_flag(ENV_SCOPE_FALLBACK, raw_fallback)

        return cls(**values)


def _check_identifier(label: str, name: str) -> None:
    if not name.isidentifier() or keyword.iskeyword(name):
        raise ConfigError(f"{label} {name!r} is not a valid identifier")


def _parse_scope_mode(raw: str) -> ScopeMode:
    value = raw.strip().lower()

    for mode in ScopeMode:
        if mode.value == value:
            return mode

    raise ConfigError(f"{ENV_SCOPE_MODE}={raw!r}; expected one of {[m.value for m in ScopeMode]}")


def _parse_flag(env_var: str, raw: str) -> bool:
    value = raw.strip().lower()

    if value in _TRUE_WORDS:
        return True
    if value in _FALSE_WORDS:
        return False

    raise ConfigError(f"{env_var}={raw!r} is not a boolean flag")


DEFAULT_CONFIG = TemplateConfig()
