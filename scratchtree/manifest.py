"""
manifest.py

Responsibility: Load a workspace manifest into a typed configuration record.

A manifest is YAML, either a whole `.yaml` file or YAML frontmatter at the top
of a markdown file. Relative `src`, `template` and `template_dir` paths are
resolved against the manifest's own directory.

    prefix: demo-
    search_path_variable: GOPATH
    update_search_path: true
    keep: false
    variables: {name: demo}
    files:
      - {dest: a/b.txt, content: hello}
      - {dest: c.go, src: fixtures/c.go}
      - {dest: gen.go, template: tpl/gen.go.j2}
    template_dir: tpl/tree
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from scratchtree.errors import ManifestError
from scratchtree.search_path import DEFAULT_VARIABLE, SearchPathVariable, search_path_for
from scratchtree.workspace import SourceFile, Workspace

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "scratchtree-"


@dataclass(frozen=True)
class GeneratedFile:
    """A file rendered from a template file into the workspace."""

    dest: str
    template: Path


@dataclass(frozen=True)
class Manifest:
    """Parsed manifest contents used to provision and populate a workspace."""

    prefix: str = DEFAULT_PREFIX
    search_path_variable: str = DEFAULT_VARIABLE
    update_search_path: bool = True
    keep: bool = False
    variables: dict[str, Any] = field(default_factory=dict)
    files: tuple[SourceFile, ...] = ()
    generated: tuple[GeneratedFile, ...] = ()
    template_dir: Path | None = None

    def populate(self, workspace: Workspace) -> None:
        """Copy files, render generated files, then render the template tree."""
        workspace.copy_all(self.files)
        for g in self.generated:
            text = _read_template(g.template)
            workspace.generate_file(g.dest, text, self.variables)
        if self.template_dir is not None:
            result = workspace.generate_tree(self.template_dir, self.variables)
            logger.debug(
                "Rendered %d and copied %d files from %s",
                result.rendered_files,
                result.copied_files,
                self.template_dir,
            )

    def provision(
        self,
        directory: str | Path | None = None,
        *,
        search_path: SearchPathVariable | None = None,
    ) -> Workspace:
        """
        Build a populated workspace.

        Without `directory` a temporary workspace is created (search path
        always updated, deleted on reset unless `keep`). With `directory` the
        tree is created in place, the search path is updated only if
        `update_search_path`, and the tree is never deleted on reset. Any
        failure resets the workspace before propagating.
        """
        search_path = search_path or search_path_for(self.search_path_variable)
        if directory is None:
            ws = Workspace.temporary(self.prefix, search_path=search_path)
        else:
            ws = Workspace(directory, update_search_path=self.update_search_path, search_path=search_path)
        try:
            self.populate(ws)
        except Exception:
            ws.reset()
            raise
        if directory is None:
            ws.keep_directory(self.keep)
        return ws


def _read_template(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Cannot read template {path}: {e}", path=path) from e


def _frontmatter(text: str) -> dict[str, Any] | None:
    """The YAML block between leading '---' lines, or None if there is none."""
    if not text.startswith("---\n"):
        return None

    end = text.find("\n---\n", 4)
    if end == -1:
        raise ManifestError("YAML frontmatter starts with '---' but no closing '---' was found.")

    return _load_mapping(text[4:end])


def _load_mapping(text: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError("Manifest must be a mapping/object at the top level.")
    return data


def _as_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ManifestError(f"`{key}` must be true or false, got {value!r}")
    return value


def _parse_entry(raw: Any, index: int, base_dir: Path) -> SourceFile | GeneratedFile:
    if not isinstance(raw, dict):
        raise ManifestError(f"files[{index}] must be an object/mapping.")
    dest = str(raw.get("dest") or "").strip()
    if not dest:
        raise ManifestError(f"files[{index}] must define `dest`.")

    origins = [k for k in ("content", "src", "template") if raw.get(k) is not None]
    if len(origins) > 1:
        raise ManifestError(f"files[{index}] ({dest}) sets more than one of {', '.join(origins)}.")

    if "template" in origins:
        return GeneratedFile(dest=dest, template=base_dir / str(raw["template"]))
    if "src" in origins:
        return SourceFile(dest=dest, src=base_dir / str(raw["src"]))
    if "content" in origins:
        return SourceFile(dest=dest, content=str(raw["content"]))
    # Left for Workspace.copy_all to reject, in order, with InvalidSourceFileError.
    return SourceFile(dest=dest)


def parse_manifest_text(text: str, base_dir: str | Path = ".") -> Manifest:
    """Parse manifest text; relative paths resolve against `base_dir`."""
    frontmatter = _frontmatter(text)
    data = frontmatter if frontmatter is not None else _load_mapping(text)
    base = Path(base_dir)

    prefix = str(data.get("prefix") or DEFAULT_PREFIX)
    variable = str(data.get("search_path_variable") or DEFAULT_VARIABLE).strip()
    if not variable or "=" in variable:
        raise ManifestError(f"Invalid `search_path_variable`: {variable!r}")

    vars_raw = data.get("variables") or {}
    if not isinstance(vars_raw, dict):
        raise ManifestError("`variables` must be an object/mapping when provided.")
    variables = dict(sorted(vars_raw.items(), key=lambda kv: str(kv[0])))

    files_raw = data.get("files") or []
    if not isinstance(files_raw, list):
        raise ManifestError("`files` must be a list when provided.")
    files: list[SourceFile] = []
    generated: list[GeneratedFile] = []
    for i, raw in enumerate(files_raw):
        entry = _parse_entry(raw, i, base)
        if isinstance(entry, GeneratedFile):
            generated.append(entry)
        else:
            files.append(entry)

    template_dir = data.get("template_dir")

    return Manifest(
        prefix=prefix,
        search_path_variable=variable,
        update_search_path=_as_bool(data, "update_search_path", True),
        keep=_as_bool(data, "keep", False),
        variables=variables,
        files=tuple(files),
        generated=tuple(generated),
        template_dir=None if template_dir is None else base / str(template_dir),
    )


def load_manifest(manifest_path: str | Path) -> Manifest:
    path = Path(manifest_path)
    if not path.exists():
        raise ManifestError(f"Manifest file does not exist: {path}", path=path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}", path=path) from e
    return parse_manifest_text(text, base_dir=path.parent)
