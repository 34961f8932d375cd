from __future__ import annotations

import secrets
from typing import Callable, TypeVar

from balena_cli.application.api_calls import call_api
from balena_cli.domain.diagnostics import Target, error
from balena_cli.domain.identifiers import (
    DeviceRef,
    parse_device,
    parse_fleet,
    validate_device_ref,
)
from balena_cli.domain.models import Device, Fleet
from balena_cli.domain.result import Result
from balena_cli.ports.balena_api import BalenaApiPort

T = TypeVar("T")

GENERATED_UUID_BYTES = 16
FULL_UUID_LENGTHS = {32, 62}


def generate_uuid() -> str:
    return secrets.token_hex(GENERATED_UUID_BYTES)


def _with_device(
    device: str, rule: str, action: Callable[[DeviceRef], T]
) -> Result[T]:
    ref = parse_device(device)
    diagnostics = validate_device_ref(ref)
    if diagnostics:
        return Result(diagnostics=diagnostics)
    return call_api(lambda: action(ref), rule=rule, target=Target("device", device))


def list_devices(api: BalenaApiPort, fleet: str | None = None) -> Result[list[Device]]:
    if fleet is None:
        return call_api(api.list_devices, rule="devices.list")
    ref = parse_fleet(fleet)
    return call_api(
        lambda: api.list_devices(ref), rule="devices.list", target=Target("fleet", fleet)
    )


def device_info(api: BalenaApiPort, device: str) -> Result[Device]:
    return _with_device(device, "devices.info", api.get_device)


def register_device(
    api: BalenaApiPort, fleet: str, uuid: str | None = None
) -> Result[Device]:
    if uuid is not None:
        candidate = uuid.lower()
        diagnostics = validate_device_ref(DeviceRef("uuid", candidate))
        if not diagnostics and len(candidate) not in FULL_UUID_LENGTHS:
            diagnostics = [
                error(
                    "DEVICE_UUID_LENGTH",
                    "devices.register.uuid",
                    f"A new device UUID must be 32 or 62 characters long: {uuid}",
                    target=Target("device", uuid),
                )
            ]
        if diagnostics:
            return Result(diagnostics=diagnostics)
    new_uuid = uuid.lower() if uuid else generate_uuid()
    ref = parse_fleet(fleet)
    return call_api(
        lambda: api.register_device(ref, new_uuid),
        rule="devices.register",
        target=Target("fleet", fleet),
    )


def remove_device(api: BalenaApiPort, device: str) -> Result[None]:
    return _with_device(device, "devices.remove", api.remove_device)


def identify_device(api: BalenaApiPort, device: str) -> Result[None]:
    return _with_device(device, "devices.identify", api.identify_device)


def rename_device(api: BalenaApiPort, device: str, new_name: str) -> Result[None]:
    name = new_name.strip()
    if not name:
        return Result(
            diagnostics=[
                error(
                    "DEVICE_NAME_EMPTY",
                    "devices.rename.name",
                    "The new device name must not be empty",
                    target=Target("device", device),
                )
            ]
        )
    return _with_device(
        device, "devices.rename", lambda ref: api.rename_device(ref, name)
    )


def move_device(api: BalenaApiPort, device: str, fleet: str) -> Result[Fleet]:
    fleet_ref = parse_fleet(fleet)
    return _with_device(
        device, "devices.move", lambda ref: api.move_device(ref, fleet_ref)
    )
