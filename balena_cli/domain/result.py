from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from balena_cli.domain.diagnostics import Diagnostic, Severity

T = TypeVar("T")

EXIT_OK = 0
EXIT_EXECUTION_FAILED = 1
EXIT_INVALID_INPUT = 2


def _new_diagnostics() -> list[Diagnostic]:
    return []


@dataclass
class Result(Generic[T]):
    value: T | None = None
    diagnostics: list[Diagnostic] = field(default_factory=_new_diagnostics)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def exit_code(self) -> int:
        errors = self.errors
        if any(d.is_execution for d in errors):
            return EXIT_EXECUTION_FAILED
        if errors:
            return EXIT_INVALID_INPUT
        return EXIT_OK
