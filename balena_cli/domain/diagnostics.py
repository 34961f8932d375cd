from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import hashlib
from typing import Any


class Severity(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


@dataclass(frozen=True)
class Target:
    """The resource a diagnostic is about, e.g. ``Target("device", "7cf02a6")``."""

    kind: str
    value: str


@dataclass(frozen=True)
class Diagnostic:
    code: str
    rule: str
    severity: Severity
    message: str
    target: Target | None = None
    hint: str | None = None
    details: dict[str, Any] | None = None
    is_execution: bool = False
    id: str = field(init=False)

    def __post_init__(self) -> None:
        raw = f"{self.code}|{self.rule}|{self.severity}|{self.message}|{self.target}"
        object.__setattr__(self, "id", hashlib.sha256(raw.encode()).hexdigest()[:12])


def error(
    code: str,
    rule: str,
    message: str,
    *,
    target: Target | None = None,
    hint: str | None = None,
    is_execution: bool = False,
) -> Diagnostic:
    return Diagnostic(
        code=code,
        rule=rule,
        severity=Severity.ERROR,
        message=message,
        target=target,
        hint=hint,
        is_execution=is_execution,
    )
