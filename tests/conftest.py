import os

import pytest

from balena_cli.adapters.api import pine_client
from balena_cli.testing.api_mock import balena_api_mock


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    home = tmp_path / "home"
    workdir = tmp_path / "work"
    home.mkdir()
    workdir.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(workdir)
    for key in list(os.environ):
        if key.startswith("BALENARC_"):
            monkeypatch.delenv(key)
    monkeypatch.delenv("DEBUG", raising=False)
    monkeypatch.setattr(pine_client, "_shared_client", None)


@pytest.fixture
def balena_api():
    router = balena_api_mock()
    try:
        yield router
    finally:
        router.stop()
