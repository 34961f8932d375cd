from __future__ import annotations

import io
import sys
from typing import Callable

Hook = Callable[[str], None]


class InterceptedStream(io.TextIOBase):
    """Text stream that hands every written chunk to a hook.

    Bytes are refused with ``TypeError`` like any text stream, which is also
    how click tells text streams from binary ones.
    """

    def __init__(self, hook: Hook, name: str) -> None:
        super().__init__()
        self._hook = hook
        self._name = name

    @property
    def encoding(self) -> str:
        return "utf-8"

    @property
    def name(self) -> str:
        return self._name

    def writable(self) -> bool:
        return True

    def isatty(self) -> bool:
        return False

    def write(self, s: str) -> int:
        if not isinstance(s, str):
            raise TypeError(f"write() argument must be str, not {type(s).__name__}")
        if s:
            self._hook(s)
        return len(s)


def intercept(on_stdout: Hook, on_stderr: Hook) -> Callable[[], None]:
    """Redirect ``sys.stdout``/``sys.stderr`` writes to the hooks.

    Returns the function that restores the previous streams; calling it more
    than once is harmless.
    """
    saved_stdout, saved_stderr = sys.stdout, sys.stderr
    sys.stdout = InterceptedStream(on_stdout, "<stdout>")
    sys.stderr = InterceptedStream(on_stderr, "<stderr>")
    restored = False

    def unhook() -> None:
        nonlocal restored
        if restored:
            return
        sys.stdout, sys.stderr = saved_stdout, saved_stderr
        restored = True

    return unhook
