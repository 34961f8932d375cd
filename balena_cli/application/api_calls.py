from __future__ import annotations

from typing import Callable, TypeVar

from balena_cli.adapters.errors import (
    AdapterError,
    ApiRequestError,
    ApiResponseError,
    ResourceNotFound,
    SettingsError,
)
from balena_cli.domain.diagnostics import Diagnostic, Severity, Target
from balena_cli.domain.result import Result

T = TypeVar("T")

ERROR_CODES: dict[type[AdapterError], str] = {
    ResourceNotFound: "RESOURCE_NOT_FOUND",
    ApiResponseError: "API_RESPONSE_ERROR",
    ApiRequestError: "API_REQUEST_FAILED",
    SettingsError: "SETTINGS_INVALID",
}


def api_failure(e: AdapterError, rule: str, target: Target | None = None) -> Diagnostic:
    return Diagnostic(
        code=ERROR_CODES.get(type(e), "API_ERROR"),
        rule=rule,
        severity=Severity.ERROR,
        message=str(e),
        target=target,
        hint=e.hint,
        details=dict(e.details) if e.details else None,
        is_execution=True,
    )


def call_api(
    action: Callable[[], T],
    *,
    rule: str,
    target: Target | None = None,
) -> Result[T]:
    try:
        return Result(value=action())
    except AdapterError as e:
        return Result(diagnostics=[api_failure(e, rule, target)])
