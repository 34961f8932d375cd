import sys

import pytest

from balena_cli.testing.intercept import intercept


def test_intercept_routes_writes_to_hooks():
    out, err = [], []
    saved = sys.stdout, sys.stderr
    unhook = intercept(out.append, err.append)
    try:
        print("to stdout")
        sys.stderr.write("to stderr\n")
    finally:
        unhook()
    assert (sys.stdout, sys.stderr) == saved
    assert "".join(out) == "to stdout\n"
    assert err == ["to stderr\n"]


def test_unhook_is_idempotent():
    saved = sys.stdout, sys.stderr
    unhook = intercept(lambda s: None, lambda s: None)
    unhook()
    unhook()
    assert (sys.stdout, sys.stderr) == saved


def test_intercepted_stream_refuses_bytes():
    unhook = intercept(lambda s: None, lambda s: None)
    try:
        with pytest.raises(TypeError):
            sys.stdout.write(b"raw")
        assert sys.stdout.encoding == "utf-8"
        assert not sys.stdout.isatty()
    finally:
        unhook()
