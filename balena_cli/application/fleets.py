from __future__ import annotations

import re

from balena_cli.application.api_calls import call_api
from balena_cli.domain.diagnostics import Diagnostic, Target, error
from balena_cli.domain.identifiers import parse_fleet
from balena_cli.domain.models import Fleet
from balena_cli.domain.result import Result
from balena_cli.ports.balena_api import BalenaApiPort

FLEET_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_. -]{3,99}$")
DEVICE_TYPE_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")


def validate_fleet_name(name: str) -> list[Diagnostic]:
    if FLEET_NAME_PATTERN.match(name):
        return []
    return [
        error(
            "FLEET_NAME_INVALID",
            "fleets.name.format",
            f"Invalid fleet name: {name!r}",
            target=Target("fleet", name),
            hint="Fleet names are 4 to 100 characters: letters, digits, spaces, '.', '_' or '-'.",
        )
    ]


def list_fleets(api: BalenaApiPort) -> Result[list[Fleet]]:
    return call_api(api.list_fleets, rule="fleets.list")


def fleet_info(api: BalenaApiPort, fleet: str) -> Result[Fleet]:
    ref = parse_fleet(fleet)
    return call_api(lambda: api.get_fleet(ref), rule="fleets.info", target=Target("fleet", fleet))


def create_fleet(api: BalenaApiPort, name: str, device_type: str) -> Result[Fleet]:
    diagnostics = validate_fleet_name(name)
    if not DEVICE_TYPE_PATTERN.match(device_type):
        diagnostics.append(
            error(
                "DEVICE_TYPE_INVALID",
                "fleets.create.device_type",
                f"Invalid device type slug: {device_type!r}",
                target=Target("device_type", device_type),
            )
        )
    if diagnostics:
        return Result(diagnostics=diagnostics)
    return call_api(
        lambda: api.create_fleet(name, device_type),
        rule="fleets.create",
        target=Target("fleet", name),
    )
