"""Preparing credentials and the upload command for publishing packages."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterable, Mapping, MutableMapping
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

DEFAULT_REPOSITORY = "pypi"
DEFAULT_REPOSITORY_URL = "https://upload.pypi.org/legacy/"
PYPI_UPLOAD_DOMAIN = "upload.pypi.org"
DEFAULT_USERNAME = "__token__"


class PublishError(Exception):
    """Raised when publishing cannot be prepared or fails."""


def pad_hex(value: str) -> str:
    """Left-pad a hex string with ``0`` to an even length."""
    return f"0{value}" if len(value) % 2 == 1 else value


def maybe_encode(original: str, new_secret: bytes) -> str:
    """Hex-encode ``new_secret`` if it differs from ``original``, else return ``original``."""
    if original.encode("utf-8") != bytes(new_secret):
        return bytes(new_secret).hex()
    return original


def default_dist_files(workspace_path: str | os.PathLike) -> list[str]:
    """Return the default file pattern to upload from a workspace."""
    return [str(Path(workspace_path) / "dist" / "*")]


def _parse_url(value: str) -> str | None:
    parts = urlsplit(value.strip())
    if not parts.scheme or not parts.netloc:
        return None
    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc, path, parts.query, parts.fragment))


def _entry(credentials: Mapping[str, Any], repository: str, key: str) -> str | None:
    table = credentials.get(repository)
    if not isinstance(table, Mapping):
        return None
    value = table.get(key)
    return None if value is None else str(value)


def resolve_repository_url(
    credentials: Mapping[str, Any],
    repository: str = DEFAULT_REPOSITORY,
    url: str | None = None,
) -> str:
    """Pick the upload URL from the argument, the stored credentials or the default."""
    if url is not None:
        resolved = _parse_url(url)
        if resolved is None:
            raise PublishError(f"invalid repository url '{url}'")
    else:
        stored = _entry(credentials, repository, "repository-url")
        resolved = (_parse_url(stored) if stored is not None else None) or DEFAULT_REPOSITORY_URL

    if repository == DEFAULT_REPOSITORY and urlsplit(resolved).hostname != PYPI_UPLOAD_DOMAIN:
        raise PublishError(f"invalid pypi url {resolved} (use -h for help)")
    return resolved


def resolve_username(
    credentials: Mapping[str, Any],
    repository: str = DEFAULT_REPOSITORY,
    username: str | None = None,
) -> str:
    """Pick the username from the argument, the stored credentials or the token user."""
    if username is not None:
        return username
    stored = _entry(credentials, repository, "username")
    return stored if stored is not None else DEFAULT_USERNAME


def store_credentials(
    credentials: MutableMapping[str, Any],
    repository: str,
    repository_url: str,
    username: str,
    token: str | None = None,
) -> MutableMapping[str, Any]:
    """Record the repository settings, and the token if given, in ``credentials``."""
    table = credentials.get(repository)
    if not isinstance(table, MutableMapping):
        table = {}
        credentials[repository] = table
    if token is not None:
        table["token"] = token
    table["repository-url"] = repository_url
    table["username"] = username
    return credentials


def build_upload_command(
    python: str | os.PathLike,
    files: Iterable[str | os.PathLike],
    username: str,
    token: str,
    repository_url: str,
    sign: bool = False,
    identity: str | None = None,
    cert: str | os.PathLike | None = None,
) -> list[str]:
    """Build the command line that uploads ``files`` with twine."""
    command = [
        str(python),
        "-mtwine",
        "--no-color",
        "upload",
        *(str(path) for path in files),
        "--username",
        username,
        "--password",
        token,
        "--repository-url",
        repository_url,
    ]
    if sign:
        command.append("--sign")
    if identity is not None:
        command += ["--identity", identity]
    if cert is not None:
        command += ["--cert", str(cert)]
    return command


def upload(command: list[str], quiet: bool = False) -> None:
    """Run the upload command, raising if it does not succeed."""
    stream = subprocess.DEVNULL if quiet else None
    try:
        result = subprocess.run(command, stdout=stream, stderr=stream)
    except OSError as exc:
        raise PublishError("failed to publish files") from exc
    if result.returncode != 0:
        raise PublishError("failed to publish files")