# projkit

A library of building blocks for managing Python projects: building and
pinning PEP 508 requirements, editing a TOML configuration file,
registering Python interpreters as toolchains, locating the executables
that shims stand in for, and preparing uploads of distributions.

## Installation

```
pip install projkit
```

Python 3.10 or newer is required.

## Modules

- `projkit.requirements`: `ReqExtras` (git, URL or local path sources
  and extras for a requirement), `Pin`, `pin_requirement`,
  `choose_operator`, `make_requirements`, `parse_tool_requirement`,
  `find_best_matches` and `parse_matches` (run a package finder script
  under a given interpreter and decode its JSON output).
- `projkit.configedit`: `get_value`, `set_value` and `unset_value` on
  dotted keys of a TOML document, `parse_updates` for `key=value`
  options, and `run_config`, which reads or edits a config file and
  returns the text to print (plain lines or JSON).
- `projkit.toolchain`: `ToolchainVersion`, `inspect_interpreter`,
  `register_toolchain` (symlinks an interpreter into a toolchains
  folder), `remove_toolchain`, `sort_toolchains` and
  `toolchains_to_json`.
- `projkit.shims`: `matches_shim`, `detect_shim` and
  `find_shadowed_target`, which finds the next executable of a name on
  `PATH` that is not the shim itself.
- `projkit.publish`: resolving the repository URL and username from
  stored credentials, `store_credentials`, `build_upload_command` for a
  twine upload, and `upload`, which runs it.
- `projkit.listing`: `ToolInfo` and `format_tools` for listing
  installed tools and their scripts.
- `projkit.selfmanage`: `render_env_file` (the shell snippet that puts
  the shims folder on `PATH`), `release_url`, `remove_installation` and
  `uninstall_hint`.

## Examples

Build a requirement string with extras applied:

```python
from projkit.requirements import ReqExtras, make_requirements

print(make_requirements(["flask"], ReqExtras(features=["async"])))
# ['flask[async]']
```

Pin a requirement to a found version:

```python
from packaging.requirements import Requirement
from projkit.requirements import Pin, pin_requirement

req = pin_requirement(Requirement("flask"), "2.2.3", Pin.TILDE_EQUAL)
print(req)  # flask~=2.2.3
```

Edit a configuration file:

```python
from projkit.configedit import run_config

run_config("config.toml", set=["default.license=MIT"])
print(run_config("config.toml", get=["default.license"]))  # MIT
```

Parse a toolchain name:

```python
from projkit.toolchain import ToolchainVersion

print(ToolchainVersion.parse("3.11.4"))  # cpython@3.11.4
```

## What it does not do

projkit is a library only: it installs no command-line program. It does
not create new projects, download interpreters, create or sync
virtualenvs, run project scripts, spawn activated shells or bump project
versions; the functions above are the pieces such a tool would be built
from.

## Running the tests

```
pip install -e ".[test]"
pytest
```