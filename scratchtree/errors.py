"""
errors.py

Responsibility: The error taxonomy shared by every scratchtree module.

Each error wraps the underlying I/O or rendering failure (chained with
`raise ... from exc`) and carries the path or template involved.
"""

from __future__ import annotations

from pathlib import Path


class WorkspaceError(RuntimeError):
    def __init__(self, message: str, *, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = None if path is None else str(path)


class DirectoryCreationError(WorkspaceError):
    pass


class ConfigurationMismatchError(WorkspaceError):
    pass


class FileOpenError(WorkspaceError):
    pass


class SourceOpenError(WorkspaceError):
    pass


class CopyError(WorkspaceError):
    pass


class TemplateRenderError(WorkspaceError):
    pass


class InvalidSourceFileError(WorkspaceError):
    pass


class ManifestError(WorkspaceError):
    pass
