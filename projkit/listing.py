"""Formatting the list of installed global tools."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass
class ToolInfo:
    """The installed version of a tool and the scripts it provides."""

    version: str
    scripts: list[str] = field(default_factory=list)


def format_tools(
    tools: Mapping[str, ToolInfo],
    include_scripts: bool = False,
    show_version: bool = False,
) -> list[str]:
    """Return the lines listing ``tools`` sorted by name."""
    lines = []
    for name in sorted(tools):
        info = tools[name]
        lines.append(f"{name} {info.version}" if show_version else name)
        if include_scripts:
            lines.extend(f"  {script}" for script in sorted(info.scripts))
    return lines