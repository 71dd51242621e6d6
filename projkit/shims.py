"""Detecting shim invocations and finding the executables they stand in for."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator, Sequence
from pathlib import Path

SHIMS_DIR_NAME = "shims"
_SELF_NAMES = frozenset({"rye", "rye.exe"})
_ASCII_LOWER = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


def _ascii_lower(value: str) -> str:
    return value.translate(_ASCII_LOWER)


def matches_shim(name: str, reference: str) -> bool:
    """Compare a shim name with ``reference``, ignoring ASCII case.

    On Windows a trailing ``.exe`` on ``name`` is ignored as well.
    """
    if sys.platform == "win32" and _ascii_lower(name[-4:]) == ".exe":
        name = name[:-4]
    return _ascii_lower(name) == _ascii_lower(reference)


def detect_shim(exe_path: str | os.PathLike, args: Sequence[str]) -> str | None:
    """Return the shim name if ``exe_path`` is a link placed in a ``shims`` folder."""
    if not args:
        return None
    path = Path(exe_path)
    shim_name = path.name
    # The main executable lives in the shims folder too and is not a shim.
    if not shim_name or shim_name in _SELF_NAMES:
        return None
    if path.parent.name != SHIMS_DIR_NAME:
        return None
    return shim_name


def _candidate_names(target: str) -> list[str]:
    if sys.platform != "win32" or Path(target).suffix:
        return [target]
    extensions = os.environ.get("PATHEXT", ".COM;.EXE;.BAT;.CMD").split(";")
    return [target] + [target + ext for ext in extensions if ext]


def _which_all(target: str) -> Iterator[Path]:
    path = os.environ.get("PATH")
    if not path:
        return
    for folder in path.split(os.pathsep):
        if not folder:
            continue
        for name in _candidate_names(target):
            candidate = Path(folder) / name
            if candidate.is_file() and os.access(candidate, os.X_OK):
                yield candidate


def _is_same_file(left: Path, right: Path) -> bool:
    try:
        return os.path.samefile(left, right)
    except OSError:
        return False


def find_shadowed_target(
    target: str,
    args: Sequence[str],
    exe_path: str | os.PathLike | None = None,
) -> list[str] | None:
    """Find the next executable named ``target`` on ``PATH`` that is not ``exe_path``.

    Returns ``args`` with the first element replaced by that executable,
    or ``None`` when nothing else on ``PATH`` provides ``target``.
    """
    exe = Path(exe_path) if exe_path is not None else Path(sys.argv[0])
    for candidate in _which_all(target):
        if _is_same_file(candidate, exe):
            continue
        return [str(candidate), *args[1:]]
    return None