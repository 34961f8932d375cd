"""Run a ``balena`` invocation and capture its output.

Tests call :func:`run_command`; ``BALENA_CLI_TEST_TYPE=standalone`` selects the
packaged binary, anything else runs the CLI inside the test process.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
from collections.abc import Mapping
from pathlib import Path

from balena_cli.adapters.errors import CommandFailed, CommandNotFound
from balena_cli.entrypoints import cli
from balena_cli.ports.command_runner import CommandRunnerPort, ExecutionResult
from balena_cli.testing.intercept import intercept
from balena_cli.testing.output import filter_diagnostics
from balena_cli.testing.proxy import PROXY_HOST, get_or_create_proxy_server

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[2]
BIN_LAUNCHER = REPO_ROOT / "bin" / "balena"
STANDALONE_BINARY = REPO_ROOT / "build-bin" / "balena"
TEST_TYPE_ENV = "BALENA_CLI_TEST_TYPE"
STANDALONE = "standalone"

STANDALONE_API_URL = "http://api.balena-cloud.com"
STANDALONE_BUILDER_URL = "http://builder.balena-cloud.com"
# "nono" matches no host, so every request goes through the proxy
STANDALONE_NO_PROXY = "nono"

LINE_BREAK = re.compile(r"[\r\n]")


def split_command(cmd: str) -> list[str]:
    """Split on single spaces; no quoting rules, empty tokens are dropped."""
    return [token for token in cmd.split(" ") if token]


def _merge_env(overlay: Mapping[str, str]) -> dict[str, str]:
    merged = os.environ.copy()
    merged.update(overlay)
    return merged


def _split_lines(output: str) -> list[str]:
    return [f"{fragment}\n" for fragment in LINE_BREAK.split(output) if fragment]


class InProcessRunner:
    def run(self, cmd: str) -> ExecutionResult:
        argv = [sys.executable, str(BIN_LAUNCHER), *split_command(cmd)]
        stdout: list[str] = []
        stderr: list[str] = []
        unhook = intercept(stdout.append, stderr.append)
        try:
            exit_code = cli.run(argv, no_flush=True)
        finally:
            unhook()
        err, out = filter_diagnostics(stderr, stdout)
        return ExecutionResult(stderr=err, stdout=out, exit_code=exit_code)


class SubprocessRunner:
    def __init__(self, proxy_port: int, binary: Path | None = None) -> None:
        self.proxy_port = proxy_port
        self.binary = binary or STANDALONE_BINARY

    def environment(self) -> dict[str, str]:
        return _merge_env(
            {
                "BALENARC_API_URL": STANDALONE_API_URL,
                "BALENARC_BUILDER_URL": STANDALONE_BUILDER_URL,
                "BALENARC_PROXY": f"http://{PROXY_HOST}:{self.proxy_port}",
                "BALENARC_NO_PROXY": STANDALONE_NO_PROXY,
            }
        )

    def run(self, cmd: str) -> ExecutionResult:
        args = split_command(cmd)
        env = self.environment()
        try:
            completed = subprocess.run(
                [str(self.binary), *args],
                env=env,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise CommandNotFound(
                f"Cannot run standalone binary {self.binary}",
                hint="Build it first with: python scripts/build_standalone.py",
                cause=e,
            ) from e

        stdout = _split_lines(completed.stdout)
        stderr = _split_lines(completed.stderr)
        if completed.returncode != 0:
            logger.warning(
                "Standalone binary exited with code %s (%s)",
                completed.returncode,
                " ".join(args),
            )
            if os.environ.get("DEBUG"):
                logger.warning(
                    "binary: %s\nenv overlay: %s\nstdout:\n%sstderr:\n%s",
                    self.binary,
                    {k: v for k, v in env.items() if k.startswith("BALENARC_")},
                    "".join(stdout),
                    "".join(stderr),
                )
        err, out = filter_diagnostics(stderr, stdout)
        return ExecutionResult(stderr=err, stdout=out, exit_code=completed.returncode)


def select_runner(binary: Path | None = None) -> CommandRunnerPort:
    if os.environ.get(TEST_TYPE_ENV) == STANDALONE:
        return SubprocessRunner(get_or_create_proxy_server(), binary)
    return InProcessRunner()


def run_command(
    cmd: str, *, check: bool = False, binary: Path | None = None
) -> ExecutionResult:
    """Run ``balena <cmd>`` in the mode chosen by ``BALENA_CLI_TEST_TYPE``.

    A non-zero exit is returned as is unless ``check`` is set, in which case
    ``CommandFailed`` is raised with the captured output.
    """
    result = select_runner(binary).run(cmd)
    if check and result.exit_code:
        raise CommandFailed(
            f"balena {cmd} exited with code {result.exit_code}",
            details={"stdout": list(result.stdout), "stderr": list(result.stderr)},
        )
    return result
