from __future__ import annotations

from typing import TypeAlias

JsonScalar: TypeAlias = str | int | float | bool | None
JsonValue: TypeAlias = JsonScalar | dict[str, "JsonValue"] | list["JsonValue"]
JsonDict: TypeAlias = dict[str, JsonValue]
JsonList: TypeAlias = list[JsonValue]


def coerce_json_value(value: object) -> JsonValue:
    if isinstance(value, dict):
        return {str(k): coerce_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [coerce_json_value(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def as_json_dict(value: object) -> JsonDict:
    coerced = coerce_json_value(value) if isinstance(value, dict) else {}
    return coerced if isinstance(coerced, dict) else {}


def as_json_list(value: object) -> JsonList:
    if not isinstance(value, (list, tuple)):
        return []
    return [coerce_json_value(item) for item in value]


def nested_value(record: JsonDict, field_name: str, key: str) -> JsonValue:
    """Read ``key`` from an expanded navigation property.

    The API returns expanded relations as a one-element list
    (``{"belongs_to__application": [{"app_name": "x"}]}``) or, for some
    resources, as a plain object.
    """
    raw = record.get(field_name)
    if isinstance(raw, list):
        raw = raw[0] if raw else None
    if isinstance(raw, dict):
        return raw.get(key)
    return None
