from __future__ import annotations

from enum import Enum
from typing import Any

from .errors import SiteError

MERGED_KEYS = "mergedKeys"


class MergeStrategy(str, Enum):
    ARRAY = "array"
    STRING_ARRAY = "stringArray"
    OBJECT = "object"
    REPLACE = "replace"

    @classmethod
    def parse(cls, value: object) -> "MergeStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return cls.REPLACE


def _as_list(record: dict, key: str) -> list:
    if key not in record:
        return []
    value = record[key]
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _unique(items: list) -> list:
    seen = set()
    unhashable: list = []
    out = []
    for item in items:
        try:
            # True, 1 and 1.0 hash alike but are distinct values
            marker = (type(item), item)
            if marker in seen:
                continue
            seen.add(marker)
        except TypeError:
            if any(type(item) is type(other) and item == other for other in unhashable):
                continue
            unhashable.append(item)
        out.append(item)
    return out


def _as_mapping(record: dict, key: str) -> dict:
    value = record.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SiteError(
            f"The \"{key}\" key is merged as an object and must be a mapping, "
            f"got {type(value).__name__}",
            key=key,
            value=value,
        )
    return value


def merge_strategies(previous: dict, current: dict) -> dict[str, MergeStrategy]:
    table: dict[str, MergeStrategy] = {}
    for record in (previous, current):
        declared = record.get(MERGED_KEYS) or {}
        for key, strategy in declared.items():
            table[key] = MergeStrategy.parse(strategy)
    return table


def _merge_pair(previous: dict, current: dict) -> dict:
    data = {**previous, **current}
    strategies = merge_strategies(previous, current)
    if strategies:
        data[MERGED_KEYS] = {key: strategy.value for key, strategy in strategies.items()}

    for key, strategy in strategies.items():
        if strategy in (MergeStrategy.ARRAY, MergeStrategy.STRING_ARRAY):
            merged = _as_list(previous, key) + _as_list(current, key)
            if strategy is MergeStrategy.STRING_ARRAY:
                merged = [str(item) for item in merged]
            data[key] = _unique(merged)
        elif strategy is MergeStrategy.OBJECT:
            data[key] = {**_as_mapping(previous, key), **_as_mapping(current, key)}
    return data


def merge_data(*records: dict[str, Any]) -> dict[str, Any]:
    """Fold metadata records left to right into a new record.

    Later records win on plain keys. Keys listed in ``mergedKeys`` are combined
    with the previous value instead (see :class:`MergeStrategy`); the directive
    table itself is merged and carried along, so it cascades to descendants.
    """
    data: dict[str, Any] = {}
    for record in records:
        data = _merge_pair(data, record or {})
    return data
