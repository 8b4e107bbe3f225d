from __future__ import annotations

import pytest

from placefn.config import DEFAULT_CONFIG
from tests.support.harness import ConfigError, PlacefnError, ScopeMode, TemplateConfig


@pytest.mark.parametrize(
    "overrides",
    [
        pytest.param({"anonymous": "not valid"}, id="anonymous-not-identifier"),
        pytest.param({"variadic": "lambda"}, id="variadic-keyword"),
        pytest.param({"anonymous": "x", "variadic": "x"}, id="same-spelling"),
        pytest.param({"max_numbered": 0}, id="limit-zero"),
        pytest.param({"max_numbered": 51}, id="limit-too-high"),
        pytest.param({"operator_names": ()}, id="no-operator"),
        pytest.param({"numbered_prefix": "1"}, id="bad-prefix"),
        pytest.param({"param_prefix": ""}, id="empty-param-prefix"),
    ],
)
def test_invalid_config_is_rejected(overrides):
    with pytest.raises(ConfigError):
        TemplateConfig(**overrides)


def test_config_error_is_placefn_error():
    with pytest.raises(PlacefnError):
        TemplateConfig(max_numbered=100)


def test_with_scope_keeps_other_fields():
    base = TemplateConfig(operator_names=("hole",))
    changed = base.with_scope(ScopeMode.IGNORE, fallback=False)

    assert changed.scope_mode is ScopeMode.IGNORE
    assert changed.scope_fallback is False
    assert changed.operator_names == ("hole",)
    assert base.scope_mode is ScopeMode.LEXICAL


def test_from_env_reads_scope_settings():
    config = TemplateConfig.from_env({"PLACEFN_SCOPE_MODE": " Ignore ", "PLACEFN_SCOPE_FALLBACK": "off"})
    assert config.scope_mode is ScopeMode.IGNORE
    assert config.scope_fallback is False


def test_from_env_overrides_win():
    config = TemplateConfig.from_env({"PLACEFN_SCOPE_MODE": "ignore"}, scope_mode=ScopeMode.LEXICAL)
    assert config.scope_mode is ScopeMode.LEXICAL


def test_from_env_empty_gives_defaults():
    assert TemplateConfig.from_env({}) == TemplateConfig()


@pytest.mark.parametrize(
    "environ",
    [
        pytest.param({"PLACEFN_SCOPE_MODE": "dynamic"}, id="unknown-mode"),
        pytest.param({"PLACEFN_SCOPE_FALLBACK": "maybe"}, id="bad-flag"),
    ],
)
def test_from_env_rejects_bad_values(environ):
    with pytest.raises(ConfigError):
        TemplateConfig.from_env(environ)


def test_default_config_is_built_at_import():
    assert DEFAULT_CONFIG == TemplateConfig()
    assert DEFAULT_CONFIG.operator_names == ("fn",)
    assert DEFAULT_CONFIG.scope_mode is ScopeMode.LEXICAL
