[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "projkit"
version = "0.1.0"
description = "Building blocks for Python project management: requirements, configuration, toolchains, shims and publishing"
requires-python = ">=3.10"
keywords = ["packaging", "requirements", "toolchain", "configuration", "publishing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "packaging",
    "tomlkit",
    "jinja2",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["projkit"]

[tool.pytest.ini_options]
addopts = "-ra"
