"""Reading and editing the global TOML configuration file."""

from __future__ import annotations

import datetime
import json
import math
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.container import OutOfOrderTableProxy
from tomlkit.items import AoT, Date, DateTime, Item, Table, Time
from tomlkit.toml_document import TOMLDocument

_INT_RE = re.compile(r"[+-]?[0-9]+")
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class ConfigError(Exception):
    """Raised when a configuration operation is invalid."""


def _scalar(value: Any) -> Any:
    if isinstance(value, (Date, DateTime, Time)):
        return value.as_string().strip()
    if isinstance(value, Item):
        return value.unwrap()
    return value


def value_to_json(value: Any) -> Any:
    """Convert a TOML value into something ``json`` can serialise."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        return {str(key): value_to_json(item) for key, item in value.items()}
    if isinstance(value, list):
        return [value_to_json(item) for item in value]
    value = _scalar(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def _float_to_string(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def value_to_string(value: Any) -> str:
    """Render a TOML value as a plain line of text."""
    if value is None:
        return "?"
    if isinstance(value, Mapping):
        body = ", ".join(f"{key} = {value_to_string(item)}" for key, item in value.items())
        return "{" + body + "}"
    if isinstance(value, list):
        return "[" + ", ".join(value_to_string(item) for item in value) + "]"
    value = _scalar(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return _float_to_string(float(value))
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def get_value(doc: Mapping, key: str) -> Any:
    """Look up a dotted key; tables and missing keys yield ``None``."""
    ptr: Any = doc
    for piece in key.split("."):
        if not isinstance(ptr, Mapping) or piece not in ptr:
            return None
        ptr = ptr[piece]
    if isinstance(ptr, (Table, AoT, TOMLDocument, OutOfOrderTableProxy)):
        return None
    return ptr


def set_value(doc: Any, key: str, value: Any) -> None:
    """Set a dotted key, creating implicit tables along the way."""
    *parents, last = key.split(".")
    ptr = doc
    for piece in parents:
        if piece not in ptr:
            ptr[piece] = tomlkit.table(True)
        ptr = ptr[piece]
        if not isinstance(ptr, Mapping):
            raise ConfigError(f"cannot set {key}: '{piece}' is not a table")
    ptr[last] = value


def unset_value(doc: Any, key: str) -> None:
    """Remove a dotted key; missing keys are ignored."""
    parent, _, last = key.rpartition(".")
    if not parent:
        if key in doc:
            del doc[key]
        return

    trail: list[tuple[Any, str]] = []
    ptr = doc
    for piece in parent.split("."):
        if not isinstance(ptr, Mapping) or piece not in ptr:
            return
        trail.append((ptr, piece))
        ptr = ptr[piece]
    if not isinstance(ptr, Mapping):
        return
    if last in ptr:
        del ptr[last]
    # An emptied table is dropped so that no bare header is left behind.
    if isinstance(ptr, Table) and len(ptr) == 0:
        owner, name = trail[-1]
        del owner[name]


def _split(item: str, option: str) -> tuple[str, str]:
    key, sep, value = item.partition("=")
    if not sep:
        raise ConfigError(f"Invalid value for {option} ({item})")
    return key, value


def parse_updates(
    set_items: Iterable[str] = (),
    int_items: Iterable[str] = (),
    bool_items: Iterable[str] = (),
) -> list[tuple[str, Any]]:
    """Turn ``key=value`` options into typed updates."""
    updates: list[tuple[str, Any]] = []
    for item in set_items:
        updates.append(_split(item, "--set"))
    for item in int_items:
        key, text = _split(item, "--set-int")
        if not _INT_RE.fullmatch(text):
            raise ConfigError(f"Invalid value for --set-int ({item})")
        number = int(text)
        if not _I64_MIN <= number <= _I64_MAX:
            raise ConfigError(f"Invalid value for --set-int ({item})")
        updates.append((key, number))
    for item in bool_items:
        key, text = _split(item, "--set-bool")
        if text not in ("true", "false"):
            raise ConfigError(f"Invalid value for --set-bool ({item})")
        updates.append((key, text == "true"))
    return updates


def _load(path: Path) -> TOMLDocument:
    if path.is_file():
        return tomlkit.parse(path.read_text(encoding="utf-8"))
    return tomlkit.document()


def run_config(
    path: str | os.PathLike,
    get: Iterable[str] = (),
    set: Iterable[str] = (),
    set_int: Iterable[str] = (),
    set_bool: Iterable[str] = (),
    unset: Iterable[str] = (),
    format: str | None = None,
) -> str:
    """Read or modify the config file at ``path`` and return the text to print."""
    if format not in (None, "json"):
        raise ConfigError(f"unsupported format '{format}'")
    path = Path(path)
    doc = _load(path)
    get = list(get)
    unset = list(unset)

    as_json: dict[str, Any] = {}
    as_lines: list[str] = []
    for key in get:
        value = get_value(doc, key)
        if format == "json":
            as_json[key] = value_to_json(value)
        else:
            as_lines.append(value_to_string(value))

    updates = parse_updates(set, set_int, set_bool)
    modifies = bool(updates) or bool(unset)
    if modifies and get:
        raise ConfigError("cannot mix get and set operations")

    for key, value in updates:
        set_value(doc, key, value)
    for key in unset:
        unset_value(doc, key)

    if modifies:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(tomlkit.dumps(doc), encoding="utf-8")

    if format == "json":
        return json.dumps(as_json, indent=2, sort_keys=True)
    return "\n".join(as_lines)