"""
scratchtree package

This package provisions disposable toolchain-style source trees
(root/src, root/pkg, root/bin) and fills them with files for a build or test
step to run against.

Key responsibilities are split across modules:
- `workspace.py`: workspace lifecycle, file ingestion and teardown
- `search_path.py`: the process-wide search-path variable (GOPATH by default)
- `renderer.py`: Jinja2 rendering of single templates and template trees
- `manifest.py`: YAML manifests describing a workspace and its files
- `cli.py`: CLI entrypoint (create / run)
"""

from __future__ import annotations

from scratchtree.errors import (
    ConfigurationMismatchError,
    CopyError,
    DirectoryCreationError,
    FileOpenError,
    InvalidSourceFileError,
    ManifestError,
    SourceOpenError,
    TemplateRenderError,
    WorkspaceError,
)
from scratchtree.search_path import SearchPathVariable
from scratchtree.workspace import (
    SourceFile,
    Workspace,
    create_workspace,
    scratch_workspace,
    temporary_workspace,
)

__all__ = [
    "__version__",
    "ConfigurationMismatchError",
    "CopyError",
    "DirectoryCreationError",
    "FileOpenError",
    "InvalidSourceFileError",
    "ManifestError",
    "SearchPathVariable",
    "SourceFile",
    "SourceOpenError",
    "TemplateRenderError",
    "Workspace",
    "WorkspaceError",
    "create_workspace",
    "scratch_workspace",
    "temporary_workspace",
]

__version__ = "0.1.0"
