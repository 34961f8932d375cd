from typing import Protocol

from balena_cli.domain.identifiers import DeviceRef, FleetRef, ReleaseRef
from balena_cli.domain.json_types import JsonDict
from balena_cli.domain.models import Device, Fleet, Release, Tag, TagTarget


class BalenaApiPort(Protocol):
    def get_config_vars(self) -> JsonDict: ...

    def list_fleets(self) -> list[Fleet]: ...
    def get_fleet(self, fleet: FleetRef) -> Fleet: ...
    def create_fleet(self, name: str, device_type: str) -> Fleet: ...

    def list_devices(self, fleet: FleetRef | None = None) -> list[Device]: ...
    def get_device(self, device: DeviceRef) -> Device: ...
    def register_device(self, fleet: FleetRef, uuid: str) -> Device: ...
    def remove_device(self, device: DeviceRef) -> None: ...
    def identify_device(self, device: DeviceRef) -> None: ...
    def rename_device(self, device: DeviceRef, new_name: str) -> None: ...
    def move_device(self, device: DeviceRef, fleet: FleetRef) -> Fleet: ...

    def list_releases(self, fleet: FleetRef) -> list[Release]: ...
    def get_release(self, release: ReleaseRef) -> Release: ...

    def list_tags(self, target: TagTarget) -> list[Tag]: ...
    def set_tag(self, target: TagTarget, key: str, value: str) -> None: ...
    def remove_tag(self, target: TagTarget, key: str) -> None: ...
