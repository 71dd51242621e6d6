"""Requirements, configuration, toolchain, shim and publishing helpers for Python projects."""

__version__ = "0.1.0"