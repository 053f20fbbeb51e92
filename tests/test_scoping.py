from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    State,
    TypeMismatch,
    UndefinedVariable,
    run_output_case,
    run_program,
    run_runtime_case,
    run_with_output,
    verify_result,
)

BINDING_SCENARIOS = [
    pytest.param("let x = 1\nx", ("int", 1), None, id="let-then-read"),
    pytest.param("let x = 1\nlet x = \"s\"\nx", ("string", "s"), None, id="let-rebinds-any-variant"),
    pytest.param("let x = 1\nx = 2\nx", ("int", 2), None, id="assign-same-variant"),
    pytest.param("let x = 1\nx = \"s\"", None, TypeMismatch, id="assign-variant-change"),
    pytest.param("let x = 1\nx = 1.0", None, TypeMismatch, id="assign-int-to-float"),
    pytest.param("z = 1", None, UndefinedVariable, id="assign-undeclared"),
    pytest.param("z += 1", None, UndefinedVariable, id="compound-undeclared"),
    pytest.param("nope", None, UndefinedVariable, id="read-undeclared"),
    pytest.param("let s = \"a\"\ns += \"b\"\ns", ("string", "ab"), None, id="compound-concat"),
    pytest.param("let n = 1.5\nn -= 1\nn", ("float", 0.5), None, id="compound-float-stays-float"),
    pytest.param("let n = 1\nn += 1.5", None, TypeMismatch, id="compound-promotes-variant"),
    pytest.param("let n = 1\nn += \"b\"", None, TypeMismatch, id="compound-int-to-string"),
    pytest.param("let x = 1\nlet y = x\nx = 5\ny", ("int", 1), None, id="copies-on-binding"),
    pytest.param("let a = 1\nlet b = a += 1", None, TypeMismatch, id="compound-as-value"),
    pytest.param("{ let y = 1 }\ny", None, UndefinedVariable, id="block-binding-dropped"),
    pytest.param("let x = 1\n{ x = 2 }\nx", ("int", 2), None, id="block-assigns-outer"),
    pytest.param("let x = 1\n{ let x = 2 }\nx", ("int", 1), None, id="block-shadow-dropped"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", BINDING_SCENARIOS)
def test_bindings(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


OUTPUT_SCENARIOS = [
    pytest.param(
        dedent(
            """\
            let x = 1
            {
                let x = 2
                print(x)
            }
            print(x)
            """
        ),
        "2\n1\n",
        None,
        id="shadowing",
    ),
    pytest.param(
        dedent(
            """\
            let x = 1
            {
                {
                    x = x + 10
                }
                print(x)
            }
            print(x)
            """
        ),
        "11\n11\n",
        None,
        id="nested-reassign-reaches-outer",
    ),
    pytest.param(
        dedent(
            """\
            let x = 1
            {
                let x = 2
                x = 3
                print(x)
            }
            print(x)
            """
        ),
        "3\n1\n",
        None,
        id="reassign-nearest-binding",
    ),
    pytest.param(
        dedent(
            """\
            fn show() { print(v) }
            let v = 1
            show()
            {
                let v = 2
                show()
            }
            """
        ),
        "1\n2\n",
        None,
        id="dynamic-lookup-from-call-site",
    ),
    pytest.param(
        dedent(
            """\
            fn get() { secret }
            fn outer() {
                let secret = 42
                get()
            }
            print(outer())
            """
        ),
        "42\n",
        None,
        id="callee-sees-caller-locals",
    ),
    pytest.param(
        dedent(
            """\
            let count = 0
            fn bump() { count = count + 1 }
            bump()
            bump()
            print(count)
            """
        ),
        "2\n",
        None,
        id="callee-assigns-caller-binding",
    ),
    pytest.param(
        dedent(
            """\
            let a = 5
            fn f(a, b) { a + b }
            print(f(1, a))
            print(a)
            """
        ),
        "2\n5\n",
        None,
        id="arguments-bound-in-callee-scope",
    ),
    pytest.param(
        "fn f(a) { a }\nf(1)\nprint(a)",
        None,
        UndefinedVariable,
        id="parameters-do-not-leak",
    ),
]


@pytest.mark.parametrize("source, expected_output, expected_exc", OUTPUT_SCENARIOS)
def test_scoping_output(source: str, expected_output, expected_exc) -> None:
    run_output_case(source, expected_output, expected_exc)


def test_top_level_runs_in_base_scope(state: State) -> None:
    run_program("let a = 1\n{ let b = 2 }", state)

    assert state.depth == 1
    assert "a" in state.scopes[0]
    assert "b" not in state.scopes[0]


def test_bindings_persist_across_runs(state: State) -> None:
    run_program("let total = 1", state)
    run_program("total += 2", state)

    verify_result(run_program("total", state), "int", 3)


def test_scope_stack_restored_after_break(state: State) -> None:
    run_program("while (true) { { { break } } }", state)

    assert state.depth == 1


def test_scope_stack_restored_after_error(state: State) -> None:
    with pytest.raises(UndefinedVariable):
        run_program("let a = 1\n{ let b = 2\n{ missing } }", state)

    assert state.depth == 1
    verify_result(run_program("a", state), "int", 1)


def test_failed_assignment_leaves_binding(state: State) -> None:
    run_program("let a = 1", state)

    with pytest.raises(TypeMismatch):
        run_program('a = "s"', state)

    verify_result(run_program("a", state), "int", 1)


def test_partial_effects_survive_error(state: State) -> None:
    with pytest.raises(UndefinedVariable):
        run_program("let a = 1\nprint(a)\nmissing\nlet b = 2", state)

    assert state.output.getvalue() == "1\n"
    assert "a" in state.scopes[0]
    assert "b" not in state.scopes[0]


def test_output_goes_to_state_stream() -> None:
    assert run_with_output('print("hi")\nprint(1.0)') == "hi\n1\n"
