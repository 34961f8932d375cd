from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Literal

from balena_cli.domain.diagnostics import Diagnostic, Target, error

UUID_PATTERN = re.compile(r"^[0-9a-f]{7,62}$")
COMMIT_PATTERN = re.compile(r"^[0-9a-f]{7,40}$")
SLUG_PATTERN = re.compile(r"^[^/\s]+/[^/\s]+$")
INTEGER_PATTERN = re.compile(r"^\d+$")

# JavaScript's Number.MAX_SAFE_INTEGER; larger values are treated as strings by the API
MAX_SAFE_INTEGER = 2**53 - 1
SHORT_RELEASE_ID_DIGITS = 7

RESERVED_TAG_NAMESPACES = ("io.resin.", "io.balena.")

FleetKind = Literal["id", "slug", "name"]
DeviceKind = Literal["id", "uuid"]
ReleaseKind = Literal["id", "commit"]


@dataclass(frozen=True)
class FleetRef:
    kind: FleetKind
    value: int | str

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class DeviceRef:
    kind: DeviceKind
    value: int | str

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ReleaseRef:
    kind: ReleaseKind
    value: int | str

    def __str__(self) -> str:
        return str(self.value)


def try_as_integer(raw: str) -> int | str:
    if INTEGER_PATTERN.match(raw):
        number = int(raw)
        if number <= MAX_SAFE_INTEGER:
            return number
    return raw


def parse_fleet(raw: str) -> FleetRef:
    value = try_as_integer(raw)
    if isinstance(value, int):
        return FleetRef("id", value)
    if SLUG_PATTERN.match(raw):
        return FleetRef("slug", raw.lower())
    return FleetRef("name", raw)


def parse_device(raw: str) -> DeviceRef:
    value = try_as_integer(raw)
    if isinstance(value, int):
        return DeviceRef("id", value)
    return DeviceRef("uuid", raw.lower())


def parse_release(raw: str) -> ReleaseRef:
    # all-digit commits exist, so only short digit strings are taken as ids
    if INTEGER_PATTERN.match(raw) and len(raw) < SHORT_RELEASE_ID_DIGITS:
        return ReleaseRef("id", int(raw))
    return ReleaseRef("commit", raw.lower())


def validate_device_ref(ref: DeviceRef) -> list[Diagnostic]:
    if ref.kind == "id" or UUID_PATTERN.match(str(ref.value)):
        return []
    return [
        error(
            "DEVICE_UUID_INVALID",
            "identifiers.device.uuid",
            f"Invalid device UUID: {ref.value}",
            target=Target("device", str(ref.value)),
            hint="Device UUIDs are 7 to 62 hexadecimal characters.",
        )
    ]


def validate_release_ref(ref: ReleaseRef) -> list[Diagnostic]:
    if ref.kind == "id" or COMMIT_PATTERN.match(str(ref.value)):
        return []
    return [
        error(
            "RELEASE_COMMIT_INVALID",
            "identifiers.release.commit",
            f"Invalid release commit: {ref.value}",
            target=Target("release", str(ref.value)),
        )
    ]


def validate_tag_key(key: str) -> list[Diagnostic]:
    if not key or any(ch.isspace() for ch in key):
        return [
            error(
                "TAG_KEY_INVALID",
                "identifiers.tag.key",
                f"Invalid tag key: {key!r}",
                target=Target("tag", key),
                hint="Tag keys must be non-empty and must not contain whitespace.",
            )
        ]
    if key.startswith(RESERVED_TAG_NAMESPACES):
        return [
            error(
                "TAG_KEY_RESERVED",
                "identifiers.tag.reserved",
                f"Tag key uses a reserved namespace: {key}",
                target=Target("tag", key),
            )
        ]
    return []
