"""Managing the tool's own installation: env file, releases and removal."""

from __future__ import annotations

import contextlib
import os
import shutil
from pathlib import Path, PurePosixPath, PureWindowsPath

import jinja2

UNIX_DEFAULT_HOME = "$HOME/.rye"
WINDOWS_DEFAULT_HOME = "%USERPROFILE%\\.rye"
RELEASES_BASE_URL = "https://releases.example.com/rye"

UNIX_ENV_FILE = """
# rye shell setup
{%- if custom_home %}
export RYE_HOME="{{ rye_home }}"
{%- endif %}
case ":${PATH}:" in
  *:"{{ rye_home }}/shims":*)
    ;;
  *)
    export PATH="{{ rye_home }}/shims:$PATH"
    ;;
esac

"""

_ENV = jinja2.Environment()


def render_env_file(rye_home: str, custom_home: bool = False) -> str:
    """Render the shell snippet that puts the shims folder on ``PATH``."""
    return _ENV.from_string(UNIX_ENV_FILE).render(rye_home=rye_home, custom_home=custom_home)


def release_url(version: str | None, arch: str, os_name: str) -> str:
    """Return the download URL of a release binary for a platform."""
    version = version or "latest"
    binary = f"rye-{arch}-{os_name}"
    ext = ".exe" if os_name == "windows" else ".gz"
    if version == "latest":
        return f"{RELEASES_BASE_URL}/releases/latest/download/{binary}{ext}"
    return f"{RELEASES_BASE_URL}/releases/download/{version}/{binary}{ext}"


def _remove_tree(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)


def remove_installation(app_dir: str | os.PathLike) -> None:
    """Remove shims, internal environments and toolchains from ``app_dir``.

    The configuration stays; the env file is emptied in case it is sourced.
    """
    app_dir = Path(app_dir)
    if not app_dir.is_dir():
        return

    shims = app_dir / "shims"
    if shims.is_dir():
        for entry in shims.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                continue
            with contextlib.suppress(OSError):
                entry.unlink()

    for name in ("self", "py", "pip-tools"):
        _remove_tree(app_dir / name)
    _remove_tree(shims)

    env_file = app_dir / "env"
    if env_file.is_file():
        env_file.write_text("", encoding="utf-8")


def uninstall_hint(rye_home: str | None = None, unix: bool = True) -> str:
    """Tell the user what to remove from their shell setup after uninstalling."""
    if rye_home is None:
        rye_home = os.environ.get("RYE_HOME") or (
            UNIX_DEFAULT_HOME if unix else WINDOWS_DEFAULT_HOME
        )
    if unix:
        return (
            "Don't forget to remove the sourcing of "
            f"{PurePosixPath(rye_home) / 'env'} from your shell config."
        )
    return f"Don't forget to remove {PureWindowsPath(rye_home) / 'shims'} from your PATH"