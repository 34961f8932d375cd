from balena_cli.domain.diagnostics import Diagnostic, Severity
from balena_cli.domain.result import (
    EXIT_EXECUTION_FAILED,
    EXIT_INVALID_INPUT,
    EXIT_OK,
    Result,
)


def test_exit_code_precedence_exec_over_validation():
    r = Result(diagnostics=[
        Diagnostic(code="VAL", rule="r", severity=Severity.ERROR, message="v"),
        Diagnostic(code="EXEC", rule="r", severity=Severity.ERROR, message="e", is_execution=True),
    ])
    assert r.exit_code == EXIT_EXECUTION_FAILED


def test_validation_errors_exit_with_invalid_input():
    r = Result(diagnostics=[Diagnostic(code="VAL", rule="r", severity=Severity.ERROR, message="v")])
    assert r.exit_code == EXIT_INVALID_INPUT
    assert not r.ok


def test_warnings_do_not_fail_the_result():
    r = Result(value=3, diagnostics=[Diagnostic(code="W", rule="r", severity=Severity.WARN, message="w")])
    assert r.ok
    assert r.errors == []
    assert r.exit_code == EXIT_OK
