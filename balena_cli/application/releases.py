from __future__ import annotations

from balena_cli.application.api_calls import call_api
from balena_cli.domain.diagnostics import Target
from balena_cli.domain.identifiers import parse_fleet, parse_release, validate_release_ref
from balena_cli.domain.models import Release
from balena_cli.domain.result import Result
from balena_cli.ports.balena_api import BalenaApiPort


def list_releases(api: BalenaApiPort, fleet: str) -> Result[list[Release]]:
    ref = parse_fleet(fleet)
    return call_api(
        lambda: api.list_releases(ref), rule="releases.list", target=Target("fleet", fleet)
    )


def release_info(api: BalenaApiPort, release: str) -> Result[Release]:
    ref = parse_release(release)
    diagnostics = validate_release_ref(ref)
    if diagnostics:
        return Result(diagnostics=diagnostics)
    return call_api(
        lambda: api.get_release(ref), rule="releases.info", target=Target("release", release)
    )
