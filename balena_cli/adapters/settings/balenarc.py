from __future__ import annotations

from dataclasses import dataclass, field
import fnmatch
import json
import os
import pkgutil
from pathlib import Path
from typing import Mapping
from urllib.parse import urlsplit

import jsonschema
import yaml

from balena_cli.adapters.errors import SettingsError
from balena_cli.domain.json_types import JsonDict, as_json_dict

ENV_PREFIX = "BALENARC_"
SETTINGS_FILENAME = ".balenarc.yml"
SCHEMA_NAME = "balenarc.schema.json"

DEFAULT_BALENA_URL = "balena-cloud.com"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_NO_PROXY = (
    "localhost",
    "127.*",
    "::1",
    "10.*",
    "192.168.*",
    "172.1[6-9].*",
    "172.2[0-9].*",
    "172.3[0-1].*",
    "*.local",
)


@dataclass(frozen=True)
class Settings:
    balena_url: str = DEFAULT_BALENA_URL
    api_url: str = f"https://api.{DEFAULT_BALENA_URL}"
    builder_url: str = f"https://builder.{DEFAULT_BALENA_URL}"
    proxy: str | None = None
    no_proxy: tuple[str, ...] = field(default=DEFAULT_NO_PROXY)
    api_key: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def proxy_for(self, url: str) -> str | None:
        if not self.proxy:
            return None
        host = urlsplit(url).hostname or ""
        if any(fnmatch.fnmatch(host, pattern) for pattern in self.no_proxy):
            return None
        return self.proxy


def _env_key_to_setting(name: str) -> str:
    head, *rest = name.lower().split("_")
    return head + "".join(part.capitalize() for part in rest)


def env_settings(env: Mapping[str, str]) -> JsonDict:
    raw: JsonDict = {}
    for key, value in env.items():
        if key.startswith(ENV_PREFIX) and len(key) > len(ENV_PREFIX):
            raw[_env_key_to_setting(key[len(ENV_PREFIX) :])] = value
    return raw


def load_schema() -> JsonDict:
    data = pkgutil.get_data(__name__, SCHEMA_NAME)
    if data is None:
        raise SettingsError(f"Settings schema {SCHEMA_NAME} is not available")
    return as_json_dict(json.loads(data.decode("utf-8")))


def _validate(raw: JsonDict, source: str) -> None:
    schema = load_schema()
    try:
        jsonschema.validate(raw, schema)
    except jsonschema.ValidationError as e:
        raise SettingsError(
            f"Invalid setting in {source}: {e.message}",
            details={"path": [str(p) for p in e.absolute_path]},
            cause=e,
        )


def read_settings_file(path: Path) -> JsonDict:
    try:
        loaded: object = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Could not read {path}", cause=e)
    if not isinstance(loaded, dict):
        raise SettingsError(f"{path} must contain a mapping of settings")
    raw = as_json_dict(loaded)
    _validate(raw, str(path))
    return raw


def _normalize_proxy(value: object) -> str | None:
    if not value:
        return None
    if isinstance(value, str):
        return value
    proxy = as_json_dict(value)
    protocol = proxy.get("protocol") or "http"
    auth = f"{proxy['proxyAuth']}@" if proxy.get("proxyAuth") else ""
    port = f":{proxy['port']}" if proxy.get("port") else ""
    return f"{protocol}://{auth}{proxy['host']}{port}"


def _normalize_no_proxy(value: object) -> tuple[str, ...]:
    if value is None:
        return DEFAULT_NO_PROXY
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = [str(v) for v in value]
    else:
        items = [str(value)]
    return tuple(item.strip() for item in items if item.strip())


def _normalize_timeout(value: object) -> float:
    if value is None:
        return DEFAULT_REQUEST_TIMEOUT
    try:
        return float(str(value))
    except (TypeError, ValueError) as e:
        raise SettingsError(f"Invalid requestTimeout: {value}", cause=e)


def load_settings(
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    home: Path | None = None,
) -> Settings:
    env = os.environ if env is None else env
    raw: JsonDict = {}
    for directory in (home or Path.home(), cwd or Path.cwd()):
        path = directory / SETTINGS_FILENAME
        if path.is_file():
            raw.update(read_settings_file(path))
    overrides = env_settings(env)
    _validate(overrides, "environment")
    raw.update(overrides)

    balena_url = str(raw.get("balenaUrl") or DEFAULT_BALENA_URL)
    return Settings(
        balena_url=balena_url,
        api_url=str(raw.get("apiUrl") or f"https://api.{balena_url}").rstrip("/"),
        builder_url=str(raw.get("builderUrl") or f"https://builder.{balena_url}").rstrip("/"),
        proxy=_normalize_proxy(raw.get("proxy")),
        no_proxy=_normalize_no_proxy(raw.get("noProxy")),
        api_key=str(raw["apiKey"]) if raw.get("apiKey") else None,
        request_timeout=_normalize_timeout(raw.get("requestTimeout")),
    )
