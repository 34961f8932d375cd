from __future__ import annotations

import textwrap

from balena_cli.application.api_calls import call_api
from balena_cli.domain.diagnostics import Diagnostic, Target, error
from balena_cli.domain.identifiers import (
    parse_device,
    parse_fleet,
    parse_release,
    validate_device_ref,
    validate_release_ref,
    validate_tag_key,
)
from balena_cli.domain.models import Tag, TagTarget
from balena_cli.domain.result import Result
from balena_cli.ports.balena_api import BalenaApiPort


def missing_target_message(command: str, verb: str) -> str:
    return textwrap.dedent(
        f"""\
        To {verb} a resource tag, you must provide exactly one of:

          * A fleet, with --fleet <fleetNameOrSlug>
          * A device, with --device <UUID>
          * A release, with --release <ID or commit>

        See the help page for examples:

          $ balena {command} --help"""
    )


def resolve_target(
    *,
    fleet: str | None,
    device: str | None,
    release: str | None,
    command: str,
    verb: str,
) -> Result[TagTarget]:
    given = [
        (kind, value)
        for kind, value in (("fleet", fleet), ("device", device), ("release", release))
        if value
    ]
    if len(given) != 1:
        code = "TAG_TARGET_MISSING" if not given else "TAG_TARGET_AMBIGUOUS"
        return Result(
            diagnostics=[
                error(code, "tags.target", missing_target_message(command, verb))
            ]
        )
    kind, raw = given[0]
    diagnostics: list[Diagnostic] = []
    if kind == "fleet":
        return Result(value=TagTarget("fleet", parse_fleet(raw)))
    if kind == "device":
        device_ref = parse_device(raw)
        diagnostics.extend(validate_device_ref(device_ref))
        target = TagTarget("device", device_ref)
    else:
        release_ref = parse_release(raw)
        diagnostics.extend(validate_release_ref(release_ref))
        target = TagTarget("release", release_ref)
    if diagnostics:
        return Result(diagnostics=diagnostics)
    return Result(value=target)


def _target_of(target: TagTarget) -> Target:
    return Target(target.kind, str(target.ref))


def list_tags(
    api: BalenaApiPort,
    *,
    fleet: str | None = None,
    device: str | None = None,
    release: str | None = None,
) -> Result[list[Tag]]:
    resolved = resolve_target(
        fleet=fleet, device=device, release=release, command="tags", verb="list"
    )
    if resolved.value is None:
        return Result(diagnostics=resolved.diagnostics)
    target = resolved.value
    return call_api(lambda: api.list_tags(target), rule="tags.list", target=_target_of(target))


def set_tag(
    api: BalenaApiPort,
    key: str,
    value: str = "",
    *,
    fleet: str | None = None,
    device: str | None = None,
    release: str | None = None,
) -> Result[None]:
    diagnostics = validate_tag_key(key)
    resolved = resolve_target(
        fleet=fleet, device=device, release=release, command="tag set", verb="set"
    )
    diagnostics.extend(resolved.diagnostics)
    if diagnostics or resolved.value is None:
        return Result(diagnostics=diagnostics)
    target = resolved.value
    return call_api(
        lambda: api.set_tag(target, key, value), rule="tags.set", target=_target_of(target)
    )


def remove_tag(
    api: BalenaApiPort,
    key: str,
    *,
    fleet: str | None = None,
    device: str | None = None,
    release: str | None = None,
) -> Result[None]:
    resolved = resolve_target(
        fleet=fleet, device=device, release=release, command="tag rm", verb="remove"
    )
    if resolved.value is None:
        return Result(diagnostics=resolved.diagnostics)
    target = resolved.value
    return call_api(
        lambda: api.remove_tag(target, key), rule="tags.remove", target=_target_of(target)
    )
