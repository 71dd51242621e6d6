"""Registering, removing and listing Python toolchains."""

from __future__ import annotations

import json
import os
import re
import subprocess
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

INSPECT_SCRIPT = r"""
import json
import platform
import sysconfig
print(json.dumps({
    "python_implementation": platform.python_implementation(),
    "python_version": platform.python_version(),
    "python_debug": bool(sysconfig.get_config_var('Py_DEBUG')),
}))
"""

_VERSION_RE = re.compile(
    r"(?:(?P<kind>[A-Za-z0-9_.-]+)@)?"
    r"(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?P<suffix>[^@/\\\s]*)"
)


class ToolchainError(Exception):
    """Raised when a toolchain cannot be inspected, registered or removed."""


@dataclass(frozen=True)
class InspectInfo:
    """What an interpreter reports about itself."""

    python_implementation: str
    python_version: str
    python_debug: bool


@dataclass(frozen=True, order=True)
class ToolchainVersion:
    """A concrete toolchain such as ``cpython@3.11.4``."""

    kind: str
    major: int
    minor: int
    patch: int
    suffix: str = ""

    @classmethod
    def parse(cls, value: str) -> "ToolchainVersion":
        """Parse ``[kind@]major.minor.patch[suffix]``; the kind defaults to cpython."""
        match = _VERSION_RE.fullmatch(value.strip())
        if match is None:
            raise ValueError(f"invalid toolchain version '{value}'")
        return cls(
            kind=match["kind"] or "cpython",
            major=int(match["major"]),
            minor=int(match["minor"]),
            patch=int(match["patch"]),
            suffix=match["suffix"],
        )

    def __str__(self) -> str:
        return f"{self.kind}@{self.major}.{self.minor}.{self.patch}{self.suffix}"


def inspect_interpreter(path: str | os.PathLike) -> InspectInfo:
    """Run the interpreter at ``path`` and report what it is."""
    try:
        result = subprocess.run([str(path), "-c", INSPECT_SCRIPT], capture_output=True)
    except OSError as exc:
        raise ToolchainError("error executing interpreter to inspect version") from exc
    if result.returncode != 0:
        raise ToolchainError("passed path does not appear to be a valid Python installation")
    try:
        data = json.loads(result.stdout)
        return InspectInfo(
            python_implementation=str(data["python_implementation"]),
            python_version=str(data["python_version"]),
            python_debug=bool(data["python_debug"]),
        )
    except (ValueError, KeyError, TypeError) as exc:
        raise ToolchainError("could not parse interpreter output as json") from exc


def toolchain_name(info: InspectInfo, name: str | None = None) -> str:
    """Build the toolchain name for an inspected interpreter."""
    if name is not None:
        return f"{name}@{info.python_version}"
    debug = "-dbg" if info.python_debug else ""
    return f"{info.python_implementation.lower()}{debug}@{info.python_version}"


def register_toolchain(
    path: str | os.PathLike,
    toolchains_dir: str | os.PathLike,
    name: str | None = None,
    validate: Callable[[ToolchainVersion], None] | None = None,
) -> ToolchainVersion:
    """Link the interpreter at ``path`` into ``toolchains_dir`` and return its version."""
    path = Path(path)
    info = inspect_interpreter(path)
    try:
        version = ToolchainVersion.parse(toolchain_name(info, name))
    except ValueError as exc:
        raise ToolchainError(str(exc)) from exc
    if validate is not None:
        try:
            validate(version)
        except Exception as exc:
            raise ToolchainError(f"{version} is not a valid toolchain: {exc}") from exc

    target = Path(toolchains_dir) / str(version)
    if target.is_file() or target.is_dir():
        raise ToolchainError(f"target Python path {target} is already in use")
    target.parent.mkdir(parents=True, exist_ok=True)

    try:
        target.symlink_to(path)
    except OSError as exc:
        if os.name != "nt":
            raise ToolchainError("could not symlink interpreter") from exc
        # Without symlink privileges the interpreter path is stored as text.
        try:
            target.write_text(str(path), encoding="utf-8")
        except OSError as write_exc:
            raise ToolchainError("could not register interpreter") from write_exc
    return version


def remove_toolchain(toolchains_dir: str | os.PathLike, version: str) -> str:
    """Remove a registered or installed toolchain and describe what happened."""
    import shutil

    try:
        ver = ToolchainVersion.parse(version)
    except ValueError as exc:
        raise ToolchainError(str(exc)) from exc
    path = Path(toolchains_dir) / str(ver)
    if path.is_file():
        path.unlink()
        return f"Removed toolchain link {ver}"
    if path.is_dir():
        shutil.rmtree(path)
        return f"Removed installed toolchain {ver}"
    return "Toolchain is not installed"


def sort_toolchains(
    toolchains: Mapping[ToolchainVersion, str | os.PathLike | None],
) -> list[tuple[ToolchainVersion, str | os.PathLike | None]]:
    """Order installed before downloadable, then by kind, newest first."""
    items = sorted(toolchains.items(), key=lambda item: item[0], reverse=True)
    items.sort(key=lambda item: (item[1] is None, item[0].kind))
    return items


def toolchains_to_json(
    toolchains: Iterable[tuple[ToolchainVersion, str | os.PathLike | None]],
) -> str:
    """Render toolchains as the JSON list printed by ``--format json``."""
    entries = []
    for version, path in toolchains:
        entry: dict[str, object] = {"name": str(version)}
        if path is None:
            entry["downloadable"] = True
        else:
            entry["path"] = str(path)
        entries.append(entry)
    return json.dumps(entries, indent=2)