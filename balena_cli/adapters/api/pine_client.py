from __future__ import annotations

import logging

import httpx

from balena_cli.adapters.errors import ApiRequestError, ApiResponseError, ResourceNotFound
from balena_cli.adapters.settings.balenarc import Settings
from balena_cli.domain.identifiers import DeviceRef, FleetRef, ReleaseRef
from balena_cli.domain.json_types import (
    JsonDict,
    JsonValue,
    as_json_dict,
    as_json_list,
    nested_value,
)
from balena_cli.domain.models import Device, Fleet, Release, Tag, TagTarget

logger = logging.getLogger(__name__)

API_VERSION = "v6"
FULL_UUID_LENGTHS = {32, 62}

FLEET_SELECT = "id,app_name,slug"
FLEET_EXPAND = "is_for__device_type($select=id,slug),organization($select=handle)"
DEVICE_SELECT = (
    "id,uuid,device_name,status,is_online,os_version,ip_address,"
    "last_connectivity_event,supervisor_version,note"
)
DEVICE_EXPAND = (
    "belongs_to__application($select=app_name),"
    "is_of__device_type($select=slug),"
    "is_running__release($select=commit)"
)
RELEASE_SELECT = "id,commit,status,created_at,semver,is_final"


def odata_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _str(value: JsonValue) -> str | None:
    return None if value is None else str(value)


def _int(value: JsonValue) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return 0
    try:
        return int(value)
    except ValueError:
        return 0


def fleet_filter(ref: FleetRef) -> str:
    if ref.kind == "id":
        return f"id eq {ref.value}"
    if ref.kind == "slug":
        return f"slug eq {odata_string(str(ref.value))}"
    return f"app_name eq {odata_string(str(ref.value))}"


def device_filter(ref: DeviceRef) -> str:
    if ref.kind == "id":
        return f"id eq {ref.value}"
    uuid = str(ref.value)
    if len(uuid) in FULL_UUID_LENGTHS:
        return f"uuid eq {odata_string(uuid)}"
    return f"startswith(uuid,{odata_string(uuid)})"


def release_filter(ref: ReleaseRef) -> str:
    if ref.kind == "id":
        return f"id eq {ref.value}"
    return f"startswith(commit,{odata_string(str(ref.value))})"


def fleet_from_record(record: JsonDict) -> Fleet:
    return Fleet(
        id=_int(record.get("id")),
        app_name=str(record.get("app_name") or ""),
        slug=str(record.get("slug") or ""),
        device_type=_str(nested_value(record, "is_for__device_type", "slug")),
        organization=_str(nested_value(record, "organization", "handle")),
    )


def device_from_record(record: JsonDict) -> Device:
    return Device(
        id=_int(record.get("id")),
        uuid=str(record.get("uuid") or ""),
        device_name=str(record.get("device_name") or ""),
        device_type=_str(nested_value(record, "is_of__device_type", "slug")),
        fleet=_str(nested_value(record, "belongs_to__application", "app_name")),
        status=_str(record.get("status")),
        is_online=bool(record.get("is_online")),
        os_version=_str(record.get("os_version")),
        ip_address=_str(record.get("ip_address")),
        last_seen=_str(record.get("last_connectivity_event")),
        commit=_str(nested_value(record, "is_running__release", "commit")),
        supervisor_version=_str(record.get("supervisor_version")),
        note=_str(record.get("note")),
    )


def release_from_record(record: JsonDict) -> Release:
    return Release(
        id=_int(record.get("id")),
        commit=str(record.get("commit") or ""),
        status=_str(record.get("status")),
        created_at=_str(record.get("created_at")),
        semver=_str(record.get("semver")),
        is_final=record.get("is_final") is not False,
    )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    text = response.text.strip()
    return text or f"HTTP {response.status_code}"


class PineApiClient:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        headers = {"Accept": "application/json"}
        if settings.api_key:
            headers["Authorization"] = f"Bearer {settings.api_key}"
        proxy = settings.proxy_for(settings.api_url)
        if proxy:
            logger.debug("Routing API requests through proxy %s", proxy)
        self._client = httpx.Client(
            base_url=settings.api_url,
            headers=headers,
            timeout=settings.request_timeout,
            proxy=proxy,
            trust_env=False,
        )

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: JsonDict | None = None,
    ) -> httpx.Response:
        logger.debug("%s %s %s", method, path, params or "")
        try:
            response = self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            raise ApiRequestError(
                f"Request to {self.settings.api_url}{path} failed: {e}",
                details={"method": method, "path": path},
                cause=e,
            )
        if response.status_code >= 400:
            raise ApiResponseError(
                _error_message(response),
                details={"method": method, "path": path, "status": response.status_code},
            )
        return response

    def _json(self, response: httpx.Response) -> JsonDict:
        if not response.content:
            return {}
        try:
            return as_json_dict(response.json())
        except ValueError as e:
            raise ApiResponseError(
                "API returned a malformed JSON body",
                details={"path": response.request.url.path},
                cause=e,
            )

    def _get_all(
        self,
        resource: str,
        *,
        where: str | None = None,
        select: str | None = None,
        expand: str | None = None,
        orderby: str | None = None,
    ) -> list[JsonDict]:
        params: dict[str, str] = {}
        for key, value in (
            ("$filter", where),
            ("$select", select),
            ("$expand", expand),
            ("$orderby", orderby),
        ):
            if value:
                params[key] = value
        response = self._request("GET", f"/{API_VERSION}/{resource}", params=params)
        return [as_json_dict(item) for item in as_json_list(self._json(response).get("d"))]

    def _get_one(
        self,
        resource: str,
        label: str,
        identifier: object,
        *,
        where: str,
        select: str | None = None,
        expand: str | None = None,
    ) -> JsonDict:
        records = self._get_all(resource, where=where, select=select, expand=expand)
        if not records:
            raise ResourceNotFound(
                f"{label} not found: {identifier}",
                details={"resource": resource, "identifier": str(identifier)},
            )
        if len(records) > 1:
            raise ApiResponseError(
                f"More than one {label.lower()} matches: {identifier}",
                hint="Use a longer identifier.",
                details={"resource": resource, "matches": len(records)},
            )
        return records[0]

    def get_config_vars(self) -> JsonDict:
        return self._json(self._request("GET", "/config/vars"))

    def _fleet_record(self, fleet: FleetRef) -> JsonDict:
        return self._get_one(
            "application",
            "Fleet",
            fleet,
            where=fleet_filter(fleet),
            select=FLEET_SELECT,
            expand=FLEET_EXPAND,
        )

    def list_fleets(self) -> list[Fleet]:
        records = self._get_all(
            "application",
            where="is_directly_accessible_by__user/any(dau:1 eq 1)",
            select=FLEET_SELECT,
            expand=FLEET_EXPAND,
            orderby="app_name asc",
        )
        return [fleet_from_record(r) for r in records]

    def get_fleet(self, fleet: FleetRef) -> Fleet:
        return fleet_from_record(self._fleet_record(fleet))

    def create_fleet(self, name: str, device_type: str) -> Fleet:
        device_type_record = self._get_one(
            "device_type",
            "Device type",
            device_type,
            where=f"slug eq {odata_string(device_type)}",
            select="id,slug",
        )
        response = self._request(
            "POST",
            f"/{API_VERSION}/application",
            json={"app_name": name, "is_for__device_type": device_type_record.get("id")},
        )
        created = self._json(response)
        return Fleet(
            id=_int(created.get("id")),
            app_name=str(created.get("app_name") or name),
            slug=str(created.get("slug") or ""),
            device_type=device_type,
        )

    def list_devices(self, fleet: FleetRef | None = None) -> list[Device]:
        where = None
        if fleet is not None:
            where = f"belongs_to__application eq {self.get_fleet(fleet).id}"
        records = self._get_all(
            "device",
            where=where,
            select=DEVICE_SELECT,
            expand=DEVICE_EXPAND,
            orderby="device_name asc",
        )
        return [device_from_record(r) for r in records]

    def get_device(self, device: DeviceRef) -> Device:
        record = self._get_one(
            "device",
            "Device",
            device,
            where=device_filter(device),
            select=DEVICE_SELECT,
            expand=DEVICE_EXPAND,
        )
        return device_from_record(record)

    def register_device(self, fleet: FleetRef, uuid: str) -> Device:
        fleet_record = self._fleet_record(fleet)
        response = self._request(
            "POST",
            f"/{API_VERSION}/device",
            json={
                "belongs_to__application": fleet_record.get("id"),
                "is_of__device_type": nested_value(fleet_record, "is_for__device_type", "id"),
                "uuid": uuid,
            },
        )
        created = self._json(response)
        return Device(
            id=_int(created.get("id")),
            uuid=str(created.get("uuid") or uuid),
            device_name=str(created.get("device_name") or ""),
            device_type=_str(nested_value(fleet_record, "is_for__device_type", "slug")),
            fleet=_str(fleet_record.get("app_name")),
        )

    def remove_device(self, device: DeviceRef) -> None:
        target = self.get_device(device)
        self._request("DELETE", f"/{API_VERSION}/device({target.id})")

    def identify_device(self, device: DeviceRef) -> None:
        target = self.get_device(device)
        self._request("POST", "/supervisor/v1/blink", json={"uuid": target.uuid, "data": {}})

    def rename_device(self, device: DeviceRef, new_name: str) -> None:
        target = self.get_device(device)
        self._request(
            "PATCH", f"/{API_VERSION}/device({target.id})", json={"device_name": new_name}
        )

    def move_device(self, device: DeviceRef, fleet: FleetRef) -> Fleet:
        destination = self.get_fleet(fleet)
        target = self.get_device(device)
        self._request(
            "PATCH",
            f"/{API_VERSION}/device({target.id})",
            json={"belongs_to__application": destination.id},
        )
        return destination

    def list_releases(self, fleet: FleetRef) -> list[Release]:
        owner = self.get_fleet(fleet)
        records = self._get_all(
            "release",
            where=f"belongs_to__application eq {owner.id}",
            select=RELEASE_SELECT,
            orderby="created_at desc",
        )
        return [release_from_record(r) for r in records]

    def get_release(self, release: ReleaseRef) -> Release:
        record = self._get_one(
            "release",
            "Release",
            release,
            where=release_filter(release),
            select=RELEASE_SELECT,
        )
        return release_from_record(record)

    def _tag_owner_id(self, target: TagTarget) -> int:
        ref = target.ref
        if isinstance(ref, FleetRef):
            return self.get_fleet(ref).id
        if isinstance(ref, DeviceRef):
            return self.get_device(ref).id
        return self.get_release(ref).id

    def _tag_filter(self, target: TagTarget, owner_id: int, key: str | None = None) -> str:
        where = f"{target.owner_field} eq {owner_id}"
        if key is not None:
            where += f" and tag_key eq {odata_string(key)}"
        return where

    def list_tags(self, target: TagTarget) -> list[Tag]:
        owner_id = self._tag_owner_id(target)
        records = self._get_all(
            target.resource,
            where=self._tag_filter(target, owner_id),
            select="tag_key,value",
            orderby="tag_key asc",
        )
        return [
            Tag(tag_key=str(r.get("tag_key") or ""), value=str(r.get("value") or ""))
            for r in records
        ]

    def set_tag(self, target: TagTarget, key: str, value: str) -> None:
        owner_id = self._tag_owner_id(target)
        path = f"/{API_VERSION}/{target.resource}"
        where = self._tag_filter(target, owner_id, key)
        if self._get_all(target.resource, where=where, select="id"):
            self._request("PATCH", path, params={"$filter": where}, json={"value": value})
            return
        self._request(
            "POST",
            path,
            json={target.owner_field: owner_id, "tag_key": key, "value": value},
        )

    def remove_tag(self, target: TagTarget, key: str) -> None:
        owner_id = self._tag_owner_id(target)
        self._request(
            "DELETE",
            f"/{API_VERSION}/{target.resource}",
            params={"$filter": self._tag_filter(target, owner_id, key)},
        )


_shared_client: PineApiClient | None = None


def get_shared_client(settings: Settings) -> PineApiClient:
    """Return the process-wide API client, rebuilding it when settings change."""
    global _shared_client
    if _shared_client is not None and _shared_client.settings != settings:
        logger.warning("Shared SDK options changed; replacing the cached API client")
        _shared_client.close()
        _shared_client = None
    if _shared_client is None:
        _shared_client = PineApiClient(settings)
    return _shared_client
