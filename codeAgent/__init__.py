"""Top-level package exports for codeAgent."""

from .runtime.app import Application, build_application

__all__ = ["Application", "build_application"]
