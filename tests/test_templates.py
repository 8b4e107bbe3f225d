from __future__ import annotations

import operator

import pytest

from tests.support.harness import (
    TemplateSyntaxError,
    check_params,
    compile_template,
    run_template_case,
    template,
)

SCENARIOS = [
    pytest.param("_", (42,), ("value", 42), None, id="identity"),
    pytest.param("_ - _", (2, 10), ("value", -8), None, id="anonymous-left-to-right"),
    pytest.param("_2 - _1", (2, 10), ("value", 8), None, id="numbered-reversed"),
    pytest.param("_1 * _1", (7,), ("value", 49), None, id="numbered-reused"),
    pytest.param("(_1, _3)", (1, 2, 3), ("value", (1, 3)), None, id="numbered-gap"),
    pytest.param("_1 + _", (1, 10), ("value", 11), None, id="numbered-then-anonymous"),
    pytest.param("_ + _1", (5,), ("value", 10), None, id="anonymous-then-numbered"),
    pytest.param("[1, 2, 3]", (), ("value", [1, 2, 3]), None, id="no-placeholders"),
    pytest.param("", (), ("none", None), None, id="empty-body"),
    pytest.param("_ if _ else _", (True, "a", "b"), ("value", "a"), None, id="ifexp-test-first"),
    pytest.param("_ if _ else _", (False, "a", "b"), ("value", "b"), None, id="ifexp-orelse"),
    pytest.param("{_: _, _: _}", ("a", 1, "b", 2), ("value", {"a": 1, "b": 2}), None, id="dict-interleaved"),
    pytest.param("[x * _ for x in _]", ([1, 2], 3), ("value", [3, 6]), None, id="comprehension-iter-first"),
    pytest.param("[_ for _ in range(3)]", (), ("value", [0, 1, 2]), None, id="comprehension-target-bound"),
    pytest.param("list(map(lambda _: _ * 2, _))", ([1, 2],), ("value", [2, 4]), None, id="inner-lambda-bound"),
    pytest.param("(lambda k=_: k + 1)()", (4,), ("value", 5), None, id="lambda-default-outer-scope"),
    pytest.param("f'{_}-{_}'", ("a", "b"), ("value", "a-b"), None, id="fstring-fields"),
    pytest.param("'_ + _'", (), ("value", "_ + _"), None, id="string-literal-untouched"),
    pytest.param("_.upper()", ("abc",), ("value", "ABC"), None, id="attribute-receiver"),
    pytest.param("dict(_=_)", (1,), ("value", {"_": 1}), None, id="keyword-name-untouched"),
    pytest.param("_[_:_]", ("abcdef", 1, 3), ("value", "bc"), None, id="slice-order"),
    pytest.param("_51", (), None, NameError, id="numbered-out-of-range"),
    pytest.param("_0", (), None, NameError, id="numbered-zero"),
    pytest.param("_01", (), None, NameError, id="numbered-leading-zero"),
    pytest.param("_ - _", (1,), None, TypeError, id="arity-too-few"),
    pytest.param("_", (1, 2), None, TypeError, id="arity-too-many"),
]


@pytest.mark.parametrize("source, args, expectation, expected_exc", SCENARIOS)
def test_template_scenarios(source, args, expectation, expected_exc):
    run_template_case(source, args, expectation, expected_exc)


def test_identity_for_any_argument():
    ident = template("_")
    for value in (0, "x", None, [1], {"k": 2}):
        assert ident(value) is value


def test_zero_placeholders_has_arity_zero_and_reevaluates():
    compiled = compile_template("[1, 2]")
    assert compiled.arity == 0
    first = compiled()
    second = compiled()
    assert first == second == [1, 2]
    assert first is not second
    with pytest.raises(TypeError):
        compiled(1)


def test_numbered_gap_declares_unused_parameter():
    compiled = compile_template("(_1, _3)")
    assert compiled.arity == 3
    assert check_params(compiled, ["_hole1", "_hole2", "_hole3"], None) is None
    assert compiled("first", "ignored", "third") == ("first", "third")


def test_sequenced_body_returns_last_value():
    seen = []
    compiled = compile_template(
        """
        seen.append(_1)
        _1 * 2
        """
    )
    assert compiled.arity == 1
    assert compiled(5) == 10
    assert seen == [5]


def test_same_text_twice_gives_equal_behaviour_distinct_functions():
    first = compile_template("_ * 10 + _")
    second = compile_template("_ * 10 + _")
    assert first.function is not second.function
    assert first.arity == second.arity == 2
    assert first.source == second.source
    assert first(3, 4) == second(3, 4) == 34


def test_source_shows_synthesized_lambda():
    compiled = compile_template("_ - _")
    assert compiled.source == "lambda _hole1, _hole2: _hole1 - _hole2"


def test_generated_names_avoid_template_identifiers():
    _hole1 = 100
    compiled = compile_template("_ + _hole1")
    assert compiled.params == ["_hole1_"]
    assert compiled(1) == 101


def test_locals_captured_at_compile_time():
    offset = 10
    add_offset = template("_ + offset")
    offset = 20
    assert add_offset(1) == 11


def test_local_named_like_operator_is_called():
    fn = len
    compiled = compile_template("fn(_)")
    assert compiled.arity == 1
    assert compiled("abc") == 3
    assert compiled.diagnostics == []


def test_module_globals_resolve():
    compiled = template("operator.add(_, _)")
    assert compiled(2, 3) == 5


@pytest.mark.parametrize(
    "text",
    [
        pytest.param("x = _", id="assignment"),
        pytest.param("for i in _: pass", id="loop"),
        pytest.param("import os", id="import"),
    ],
)
def test_statements_are_rejected(text):
    with pytest.raises(TemplateSyntaxError):
        template(text)


def test_unparsable_template_reports_position():
    with pytest.raises(TemplateSyntaxError) as info:
        template("_ +")
    assert info.value.lineno == 1
    assert "invalid template" in str(info.value)


def test_operator_module_used_in_body():
    assert template("_(_, _)")(operator.mul, 6, 7) == 42
