#!/usr/bin/env python3
"""Package the CLI as a single executable archive at build-bin/balena.

The archive runs with the interpreter that built it, so the runtime
dependencies must be installed in that interpreter's environment.
"""

from __future__ import annotations

import argparse
import shutil
import sys
import tempfile
import zipapp
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parents[1]
PACKAGE = "balena_cli"
DEFAULT_TARGET = REPO_ROOT / "build-bin" / "balena"
ENTRY_POINT = "balena_cli.entrypoints.cli:main"


def _stage(staging: Path) -> None:
    shutil.copytree(
        REPO_ROOT / PACKAGE,
        staging / PACKAGE,
        ignore=shutil.ignore_patterns("__pycache__", "*.pyc", "testing"),
    )
    # the archive ships regular packages so zipimport resolves every module
    for directory in [staging / PACKAGE, *(staging / PACKAGE).rglob("*")]:
        if directory.is_dir():
            (directory / "__init__.py").touch()


def build(target: Path = DEFAULT_TARGET) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory() as tmp:
        staging = Path(tmp)
        _stage(staging)
        zipapp.create_archive(
            staging,
            target=target,
            interpreter=sys.executable,
            main=ENTRY_POINT,
            compressed=True,
        )
    return target


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output", type=Path, default=DEFAULT_TARGET)
    args = parser.parse_args(argv)
    print(f"Wrote {build(args.output)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
