"""
renderer.py

Responsibility: The templating contract used by workspaces.

Rules:
- `render_template(template, args)` renders one Jinja2 template to bytes.
- `iter_template_files(template_dir)` walks a template tree in sorted order so
  generated workspaces are deterministic.
- UTF-8 text files containing Jinja2 markers are rendered; other files
  (including binary ones) are passed through byte for byte.

This module does NOT write anything to disk; `Workspace` owns file placement.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from scratchtree.errors import TemplateRenderError

_MARKERS = ("{{", "{%", "{#")


@dataclass(frozen=True)
class RenderResult:
    rendered_files: int
    copied_files: int


def make_environment() -> Environment:
    return Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def render_template(
    template: Template | str,
    args: Mapping[str, Any] | None = None,
    *,
    name: str | None = None,
) -> bytes:
    """
    Render `template` (a compiled Template or template source) with `args`.

    Any Jinja2 failure, including undefined variables, becomes a
    TemplateRenderError naming the template.
    """
    label = name or getattr(template, "name", None) or "<string>"
    try:
        if isinstance(template, str):
            template = make_environment().from_string(template)
        out = template.render(**dict(args or {}))
    except TemplateError as e:
        raise TemplateRenderError(f"Failed rendering template {label}: {e}", path=label) from e
    return out.encode("utf-8")


def has_template_markers(text: str) -> bool:
    return any(marker in text for marker in _MARKERS)


def iter_template_files(template_dir: str | Path) -> list[Path]:
    """
    Return all files under template_dir, in deterministic lexicographic order
    (relative path ordering).
    """
    tpl_dir = Path(template_dir)
    if not tpl_dir.is_dir():
        raise TemplateRenderError(f"Template directory not found: {tpl_dir}", path=tpl_dir)

    files: list[Path] = []
    for root, _dirs, filenames in os.walk(tpl_dir):
        root_path = Path(root)
        for name in filenames:
            files.append(root_path / name)
    files.sort(key=lambda p: p.relative_to(tpl_dir).as_posix())
    return files


def render_tree(
    template_dir: str | Path,
    context: Mapping[str, Any] | None = None,
) -> Iterator[tuple[Path, bytes, bool]]:
    """
    Yield `(relative_path, content, rendered)` for every file in template_dir.

    `rendered` is False for files passed through unchanged.
    """
    tpl_dir = Path(template_dir)
    env = make_environment()
    for src_path in iter_template_files(tpl_dir):
        rel = src_path.relative_to(tpl_dir)
        raw = src_path.read_bytes()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            yield rel, raw, False
            continue

        if not has_template_markers(text):
            yield rel, raw, False
            continue

        try:
            template = env.from_string(text)
        except TemplateError as e:
            raise TemplateRenderError(f"Failed rendering template file: {rel}", path=src_path) from e
        yield rel, render_template(template, context, name=rel.as_posix()), True
