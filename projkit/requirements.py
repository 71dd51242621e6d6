"""Building, pinning and resolving PEP 508 requirements."""

from __future__ import annotations

import enum
import json
import os
import posixpath
import subprocess
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote, urlsplit

from packaging.requirements import InvalidRequirement, Requirement
from packaging.specifiers import SpecifierSet
from packaging.version import InvalidVersion, Version

PROJECT_ROOT_URL = "file:///${PROJECT_ROOT}"

PACKAGE_FINDER_SCRIPT = r"""
import sys
import json
from unearth.finder import PackageFinder
from unearth.session import PyPISession
from packaging.version import Version

py_ver = sys.argv[1]
package = sys.argv[2]
sources = json.loads(sys.argv[3])
pre = len(sys.argv) > 4 and sys.argv[4] == "--pre"

finder = PackageFinder(
    index_urls=sources["index_urls"],
    find_links=sources["find_links"],
    trusted_hosts=sources["trusted_hosts"],
)
if py_ver:
    finder.target_python.py_ver = tuple(map(int, py_ver.split('.')))
choices = iter(finder.find_matches(package))
if not pre:
    choices = (m for m in choices if not(m.version and Version(m.version).is_prerelease))

print(json.dumps([x.as_json() for x in choices]))
"""


class RequirementError(Exception):
    """Raised when a requirement cannot be built, parsed or resolved."""


class Pin(enum.Enum):
    """The operator used to pin a freshly added dependency."""

    EQUAL = "=="
    TILDE_EQUAL = "~="
    GREATER_THAN_EQUAL = ">="

    @classmethod
    def parse(cls, value: str) -> "Pin":
        """Parse a pin name or one of its aliases."""
        try:
            return _PIN_ALIASES[value.strip().lower()]
        except KeyError:
            raise ValueError(f"invalid pin operator '{value}'") from None


_PIN_ALIASES = {
    "equal": Pin.EQUAL,
    "exact": Pin.EQUAL,
    "==": Pin.EQUAL,
    "eq": Pin.EQUAL,
    "tilde-equal": Pin.TILDE_EQUAL,
    "tilde": Pin.TILDE_EQUAL,
    "compatible": Pin.TILDE_EQUAL,
    "~=": Pin.TILDE_EQUAL,
    "greater-than-equal": Pin.GREATER_THAN_EQUAL,
    ">=": Pin.GREATER_THAN_EQUAL,
    "ge": Pin.GREATER_THAN_EQUAL,
    "gte": Pin.GREATER_THAN_EQUAL,
}


def format_requirement(requirement: Requirement) -> str:
    """Render a requirement as a PEP 508 string."""
    return str(requirement)


def _has_version_or_url(requirement: Requirement) -> bool:
    return bool(requirement.url) or len(requirement.specifier) > 0


def _checked_url(text: str, message: str) -> str:
    parts = urlsplit(text)
    if not parts.scheme or ":" not in text:
        raise RequirementError(message)
    return text


@dataclass
class ReqExtras:
    """Where a requirement comes from and which extras it enables."""

    git: str | None = None
    url: str | None = None
    path: str | os.PathLike | None = None
    absolute: bool = False
    tag: str | None = None
    rev: str | None = None
    branch: str | None = None
    features: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        sources = [name for name in ("git", "url", "path") if getattr(self, name) is not None]
        if len(sources) > 1:
            raise RequirementError(f"--{sources[0]} cannot be used with --{sources[1]}")
        if self.absolute and self.path is None:
            raise RequirementError("--absolute requires --path")
        refs = [name for name in ("rev", "tag", "branch") if getattr(self, name) is not None]
        if refs and self.git is None:
            raise RequirementError(f"--{refs[0]} requires --git")
        if len(refs) > 1:
            raise RequirementError(f"--{refs[0]} cannot be used with --{refs[1]}")

    def has_specifiers(self) -> bool:
        """Tell whether anything specific to a single requirement is set."""
        return (
            self.path is not None
            or self.url is not None
            or self.git is not None
            or bool(self.features)
        )

    def force_absolute(self) -> None:
        """Always use absolute file URLs for local paths."""
        self.absolute = True

    def _file_url(self, hatchling: bool, cwd: Path) -> str:
        target = cwd / Path(self.path)
        if self.absolute or hatchling:
            return Path(os.path.normpath(target.absolute())).as_uri()
        try:
            rel = os.path.relpath(target, cwd)
        except ValueError:
            raise RequirementError(
                f"unable to create relative path from {cwd} to {self.path}"
            ) from None
        joined = posixpath.normpath(posixpath.join("/${PROJECT_ROOT}", Path(rel).as_posix()))
        return "file://" + quote(joined, safe="/${}")

    def _set_url(self, requirement: Requirement, url: str) -> None:
        if _has_version_or_url(requirement):
            raise RequirementError("requirement already has a version marker")
        requirement.url = url

    def apply_to_requirement(
        self,
        requirement: Requirement,
        hatchling: bool = False,
        cwd: str | os.PathLike | None = None,
    ) -> Requirement:
        """Apply the source and features to ``requirement`` in place and return it."""
        if self.git is not None:
            ref = self.rev or self.tag or self.branch
            suffix = f"@{ref}" if ref else ""
            url = _checked_url(
                f"git+{self.git}{suffix}",
                f"unable to interpret '{self.git}{suffix}' as git reference",
            )
            self._set_url(requirement, url)
        elif self.url is not None:
            url = _checked_url(self.url, f"unable to parse '{self.url}' as url")
            self._set_url(requirement, url)
        elif self.path is not None:
            base = Path.cwd() if cwd is None else Path(cwd)
            self._set_url(requirement, self._file_url(hatchling, base))

        for chunk in self.features:
            for feature in chunk.split(","):
                feature = feature.strip()
                if feature:
                    requirement.extras.add(feature)
        return requirement


@dataclass(frozen=True)
class PackageMatch:
    """A candidate distribution found by the package finder."""

    name: str
    version: str | None = None
    requires_python: str | None = None


def choose_operator(version: Version | str, default_operator: Pin | str) -> str:
    """Pick the pin operator that is valid for ``version``."""
    if isinstance(version, str):
        try:
            version = Version(version)
        except InvalidVersion as exc:
            raise RequirementError(f"invalid version: {exc}") from exc
    operator = default_operator.value if isinstance(default_operator, Pin) else default_operator
    # Local versions and single-component versions cannot use ~=.
    if version.local is not None:
        return "=="
    if operator == "~=" and len(version.release) < 2:
        return ">="
    return operator


def pin_requirement(
    requirement: Requirement,
    version: str | None,
    default_operator: Pin | str,
) -> Requirement:
    """Pin an unconstrained requirement to ``version`` and return it."""
    if version is None or _has_version_or_url(requirement):
        return requirement
    try:
        parsed = Version(version)
    except InvalidVersion as exc:
        raise RequirementError(f"invalid version: {exc}") from exc
    operator = choose_operator(parsed, default_operator)
    try:
        requirement.specifier = SpecifierSet(f"{operator}{parsed}")
    except ValueError as exc:
        raise RequirementError(f"invalid version specifier: {exc}") from exc
    return requirement


def parse_matches(data: str | bytes) -> list[PackageMatch]:
    """Decode the JSON list of matches printed by the package finder."""
    try:
        items = json.loads(data)
    except ValueError as exc:
        raise RequirementError("could not parse package finder output") from exc
    matches = []
    for item in items:
        link = item.get("link") or {}
        matches.append(
            PackageMatch(
                name=item["name"],
                version=item.get("version"),
                requires_python=link.get("requires_python"),
            )
        )
    return matches


def find_best_matches(
    python: str | os.PathLike,
    py_ver: str | None,
    requirement: Requirement,
    sources: dict,
    pre: bool = False,
) -> list[PackageMatch]:
    """Ask the finder running under ``python`` for matches of ``requirement``."""
    cmd = [
        str(python),
        "-c",
        PACKAGE_FINDER_SCRIPT,
        py_ver or "",
        format_requirement(requirement),
        json.dumps(sources),
    ]
    if pre:
        cmd.append("--pre")
    try:
        result = subprocess.run(cmd, capture_output=True)
    except OSError as exc:
        raise RequirementError(
            f"failed to resolve package {format_requirement(requirement)}"
        ) from exc
    if result.returncode != 0:
        log = result.stderr.decode("utf-8", errors="replace")
        raise RequirementError(
            f"failed to resolve package {format_requirement(requirement)}\n{log}"
        )
    return parse_matches(result.stdout)


def _parse(text: str, message: str) -> Requirement:
    try:
        return Requirement(text)
    except InvalidRequirement as exc:
        raise RequirementError(message) from exc


def make_requirements(
    requirements: Iterable[str],
    extras: ReqExtras | None = None,
) -> list[str]:
    """Build PEP 508 strings from requirement strings and their extras."""
    extras = ReqExtras() if extras is None else extras
    rendered = []
    for text in requirements:
        requirement = _parse(text, f"unable to parse requirement '{text}'")
        extras.apply_to_requirement(requirement)
        rendered.append(format_requirement(requirement))
    return rendered


def parse_tool_requirement(req: str, local_hint: bool = False) -> Requirement:
    """Parse the requirement of a global tool with a helpful error message."""
    if local_hint and "://" in req:
        message = (
            f"failed to parse requirement '{req}'. It looks like a URL, maybe "
            "you wanted to use --url or --git"
        )
    else:
        message = f"failed to parse requirement '{req}'"
    return _parse(req, message)


def check_single_requirement(extras: ReqExtras, requirements: Sequence[str]) -> None:
    """Raise if per-requirement options are combined with several requirements."""
    if extras.has_specifiers() and len(requirements) != 1:
        raise RequirementError(
            "path/url/git/features is not compatible with passing multiple "
            "requirements: expected one requirement."
        )