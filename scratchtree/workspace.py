"""
workspace.py

Responsibility: Provision a disposable source tree and put files into it.

A workspace is a root directory with the toolchain layout:

    root/
      src/   files written by this module land here
      pkg/
      bin/

Optionally the root is prepended to a process-wide search-path variable
(see `search_path.py`) for the lifetime of the workspace. `reset` undoes the
variable change and, when asked, deletes the tree.

Typical use:

    with scratch_workspace("demo-", [SourceFile("hello/hello.go", content=b"...")]) as ws:
        subprocess.run(["go", "test", "hello"], cwd=ws.src_dir, check=True)
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import tempfile
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import IO, Any

from jinja2 import Template

from scratchtree.errors import (
    CopyError,
    DirectoryCreationError,
    FileOpenError,
    InvalidSourceFileError,
    SourceOpenError,
)
from scratchtree.renderer import RenderResult, render_template, render_tree
from scratchtree.search_path import SearchPathVariable, default_search_path

logger = logging.getLogger(__name__)

DIR_MODE = 0o700
FILE_MODE = 0o600

Content = bytes | str | IO[bytes]


@dataclass(frozen=True)
class SourceFile:
    """One file to materialize under a workspace's src directory."""

    dest: str
    src: str | Path | None = None
    content: bytes | str | None = None


def _make_dirs(path: Path) -> None:
    """mkdir -p where every created directory gets DIR_MODE."""
    missing: list[Path] = []
    p = path
    try:
        while not p.exists():
            missing.append(p)
            p = p.parent
        for d in reversed(missing):
            try:
                d.mkdir(mode=DIR_MODE)
            except FileExistsError:
                pass
        if not path.is_dir():
            raise NotADirectoryError(f"{path} exists and is not a directory")
    except OSError as e:
        raise DirectoryCreationError(f"failed to create {path}: {e}", path=path) from e


def _logged_close(name: str | Path, closer: IO[Any]) -> None:
    try:
        closer.close()
    except OSError as e:
        logger.warning("failed to close %s: %s", name, e)


def _remove_tree(path: Path) -> list[OSError]:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return []
    except OSError as e:
        return [e]
    logger.debug("Removed workspace %s", path)
    return []


class Workspace:
    """A source tree rooted at `root` with src/, pkg/ and bin/ created eagerly."""

    def __init__(
        self,
        directory: str | Path,
        *,
        update_search_path: bool = False,
        search_path: SearchPathVariable | None = None,
    ) -> None:
        self.root = Path(directory).absolute()
        self.pkg_dir = self.root / "pkg"
        self.src_dir = self.root / "src"
        self.bin_dir = self.root / "bin"
        self.updates_search_path = update_search_path
        self.original_search_path: str | None = None
        self.delete_on_reset = False
        self.teardown_errors: list[OSError] = []
        self._search_path = search_path or default_search_path()
        self._torn_down = False

        for d in (self.src_dir, self.pkg_dir, self.bin_dir):
            _make_dirs(d)

        if update_search_path:
            self.original_search_path = self._search_path.prepend(str(self.root))
        logger.debug("Created workspace %s", self.root)

    @classmethod
    def temporary(
        cls,
        prefix: str = "scratchtree-",
        files: Iterable[SourceFile] = (),
        *,
        search_path: SearchPathVariable | None = None,
    ) -> Workspace:
        """
        Create a workspace in a new temporary directory and copy `files` into it.

        The search path is updated and the tree is deleted on reset. Nothing
        leaks on failure: the directory is removed and the search path restored
        before the error propagates.
        """
        directory = Path(tempfile.mkdtemp(prefix=prefix))
        try:
            ws = cls(directory, update_search_path=True, search_path=search_path)
        except Exception:
            for err in _remove_tree(directory):
                logger.warning("failed to remove %s: %s", directory, err)
            raise

        ws.delete_on_reset = True
        try:
            ws.copy_all(files)
        except Exception:
            ws.reset()
            raise
        return ws

    def __repr__(self) -> str:
        return f"Workspace({str(self.root)!r})"

    def __enter__(self) -> Workspace:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.reset()

    @property
    def search_path(self) -> SearchPathVariable:
        return self._search_path

    def src_path(self, relative_path: str | PurePath) -> Path:
        """Resolve `relative_path` under src/; absolute paths are re-rooted there."""
        rel = PurePath(relative_path)
        if rel.is_absolute():
            rel = rel.relative_to(rel.anchor)
        return self.src_dir / rel

    def write_file(self, relative_path: str | PurePath, content: Content) -> Path:
        """
        Write `content` to `relative_path` under src/, creating directories as needed.

        Existing files are truncated. Returns the absolute path written.
        """
        full_path = self.src_path(relative_path)
        _make_dirs(full_path.parent)

        if isinstance(content, str):
            content = content.encode("utf-8")
        if isinstance(content, (bytes, bytearray)):
            content = io.BytesIO(content)

        try:
            fd = os.open(full_path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, FILE_MODE)
        except OSError as e:
            raise FileOpenError(f"couldn't open {full_path} for writing: {e}", path=full_path) from e

        try:
            out = os.fdopen(fd, "wb")
        except OSError as e:
            os.close(fd)
            raise FileOpenError(f"couldn't open {full_path} for writing: {e}", path=full_path) from e

        try:
            shutil.copyfileobj(content, out)
            out.flush()
        except (OSError, TypeError, ValueError) as e:
            raise CopyError(f"copy to {full_path} failed: {e}", path=full_path) from e
        finally:
            _logged_close(full_path, out)
        return full_path

    def copy_file(self, dest: str | PurePath, src: str | Path) -> Path:
        """Equivalent to write_file with the contents of `src`."""
        try:
            source = open(src, "rb")
        except OSError as e:
            raise SourceOpenError(f"failed to open {src}: {e}", path=src) from e
        try:
            return self.write_file(dest, source)
        finally:
            _logged_close(src, source)

    def generate_file(
        self,
        relative_path: str | PurePath,
        template: Template | str,
        args: Mapping[str, Any] | None = None,
    ) -> Path:
        """Equivalent to write_file with the result of rendering `template` with `args`."""
        return self.write_file(relative_path, io.BytesIO(render_template(template, args)))

    def generate_tree(
        self,
        template_dir: str | Path,
        context: Mapping[str, Any] | None = None,
        dest: str | PurePath = "",
    ) -> RenderResult:
        """Render/copy every file of `template_dir` into src/`dest`."""
        rendered = 0
        copied = 0
        for rel, data, was_rendered in render_tree(template_dir, context):
            self.write_file(PurePath(dest) / rel, data)
            if was_rendered:
                rendered += 1
            else:
                copied += 1
        return RenderResult(rendered_files=rendered, copied_files=copied)

    def copy_all(self, files: Iterable[SourceFile]) -> None:
        """
        Write every entry in order, stopping at the first failure.

        Entries with `content` are written directly, otherwise `src` is copied.
        Files written before a failure are left in place.
        """
        for f in files:
            if f.content is not None:
                self.write_file(f.dest, f.content)
            elif f.src is not None:
                self.copy_file(f.dest, f.src)
            else:
                raise InvalidSourceFileError(f"{f.dest}: neither content nor src is set", path=f.dest)

    def keep_directory(self, keep: bool = True) -> None:
        self.delete_on_reset = not keep

    def reset(self) -> None:
        """
        Restore the search path and delete the tree if requested.

        Never raises; failures are logged and kept in `teardown_errors`.
        """
        self.teardown_errors = self._teardown()
        for err in self.teardown_errors:
            logger.warning("reset of workspace %s: %s", self.root, err)

    def _teardown(self) -> list[OSError]:
        if self._torn_down:
            return []
        self._torn_down = True

        if self.updates_search_path:
            self._search_path.restore(self.original_search_path)
        if self.delete_on_reset:
            return _remove_tree(self.root)
        return []


def create_workspace(
    directory: str | Path,
    *,
    update_search_path: bool = False,
    search_path: SearchPathVariable | None = None,
) -> Workspace:
    return Workspace(directory, update_search_path=update_search_path, search_path=search_path)


def temporary_workspace(
    prefix: str = "scratchtree-",
    files: Iterable[SourceFile] = (),
    *,
    search_path: SearchPathVariable | None = None,
) -> Workspace:
    return Workspace.temporary(prefix, files, search_path=search_path)


@contextmanager
def scratch_workspace(
    prefix: str = "scratchtree-",
    files: Iterable[SourceFile] = (),
    *,
    keep: bool = False,
    search_path: SearchPathVariable | None = None,
) -> Iterator[Workspace]:
    """Temporary workspace that is reset when the block exits, even on error."""
    ws = Workspace.temporary(prefix, files, search_path=search_path)
    ws.keep_directory(keep)
    try:
        yield ws
    finally:
        ws.reset()
