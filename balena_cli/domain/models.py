from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from balena_cli.domain.identifiers import DeviceRef, FleetRef, ReleaseRef

TagTargetKind = Literal["fleet", "device", "release"]


@dataclass(frozen=True)
class Fleet:
    id: int
    app_name: str
    slug: str
    device_type: str | None = None
    organization: str | None = None


@dataclass(frozen=True)
class Device:
    id: int
    uuid: str
    device_name: str
    device_type: str | None = None
    fleet: str | None = None
    status: str | None = None
    is_online: bool = False
    os_version: str | None = None
    ip_address: str | None = None
    last_seen: str | None = None
    commit: str | None = None
    supervisor_version: str | None = None
    note: str | None = None


@dataclass(frozen=True)
class Release:
    id: int
    commit: str
    status: str | None = None
    created_at: str | None = None
    semver: str | None = None
    is_final: bool = True


@dataclass(frozen=True)
class Tag:
    tag_key: str
    value: str


@dataclass(frozen=True)
class TagTarget:
    kind: TagTargetKind
    ref: FleetRef | DeviceRef | ReleaseRef

    @property
    def resource(self) -> str:
        """API resource name holding the tags for this kind of target."""
        return {
            "fleet": "application_tag",
            "device": "device_tag",
            "release": "release_tag",
        }[self.kind]

    @property
    def owner_field(self) -> str:
        return {"fleet": "application", "device": "device", "release": "release"}[
            self.kind
        ]
