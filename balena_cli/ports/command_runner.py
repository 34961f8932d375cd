from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class ExecutionResult:
    stderr: list[str] = field(default_factory=list)
    stdout: list[str] = field(default_factory=list)
    exit_code: int | None = None


class CommandRunnerPort(Protocol):
    def run(self, cmd: str) -> ExecutionResult: ...
