from dataclasses import dataclass

from balena_cli.domain.json_types import JsonDict


@dataclass
class AdapterError(Exception):
    message: str
    details: JsonDict | None = None
    hint: str | None = None
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


class SettingsError(AdapterError):
    pass


class ApiRequestError(AdapterError):
    pass


class ApiResponseError(AdapterError):
    pass


class ResourceNotFound(AdapterError):
    pass


class CommandNotFound(AdapterError):
    pass


class CommandFailed(AdapterError):
    pass
