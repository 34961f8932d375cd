from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from typing import TypeVar

from balena_cli.domain.diagnostics import Diagnostic
from balena_cli.domain.json_types import JsonDict, JsonValue, as_json_dict, coerce_json_value
from balena_cli.domain.result import Result

T = TypeVar("T")

RESULT_SCHEMA_VERSION = 1


def serialize_value(value: object) -> JsonValue:
    if is_dataclass(value) and not isinstance(value, type):
        return coerce_json_value(asdict(value))
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    return coerce_json_value(value)


def serialize_diagnostic(diag: Diagnostic) -> JsonDict:
    return as_json_dict(
        {
            "id": diag.id,
            "code": diag.code,
            "rule": diag.rule,
            "severity": diag.severity.value,
            "message": diag.message,
            "hint": diag.hint,
            "details": diag.details,
            "is_execution": diag.is_execution,
            "target": asdict(diag.target) if diag.target is not None else None,
        }
    )


def serialize_result(result: Result[T], command: str, args: list[str]) -> JsonDict:
    return as_json_dict(
        {
            "result_schema_version": RESULT_SCHEMA_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "command": command,
            "args": args,
            "exit_code": result.exit_code,
            "diagnostics": [serialize_diagnostic(d) for d in result.diagnostics],
            "value": serialize_value(result.value),
        }
    )
