"""
cli.py

Responsibility: CLI entrypoint for scratchtree.

Commands:
- `create`: load a manifest, provision a workspace that is kept on disk,
  print its root (and optionally the updated search-path assignment).
- `run`: load a manifest, provision a temporary workspace, run a command in
  its src/ directory with the updated environment, then reset.

Manifest parsing lives in `manifest.py`; all filesystem work in `workspace.py`.
"""

from __future__ import annotations

import argparse
import logging
import os
import subprocess
import sys

from scratchtree.errors import WorkspaceError
from scratchtree.manifest import load_manifest

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    pass


def _run(cmd: list[str], *, cwd: str, env: dict[str, str]) -> int:
    """
    Run a subprocess command and return its exit status.
    """
    try:
        return subprocess.run(cmd, cwd=cwd, env=env).returncode
    except OSError as e:
        raise CLIError(f"Command failed to start: {' '.join(cmd)}: {e}") from e


def create_cmd(args: argparse.Namespace) -> int:
    manifest = load_manifest(args.manifest)
    ws = manifest.provision(args.dir)
    # The tree outlives this process; only the in-process variable is restored.
    ws.keep_directory()
    print(ws.root)
    if args.print_env:
        print(f"{ws.search_path.name}={ws.search_path.get()}")
    ws.reset()
    return 0


def run_cmd(args: argparse.Namespace) -> int:
    command = list(args.command)
    if not command:
        raise CLIError("run requires a command after the manifest (use `--` to separate it)")

    manifest = load_manifest(args.manifest)
    ws = manifest.provision()
    if args.keep:
        ws.keep_directory()
    try:
        logger.debug("Running %s in %s", command, ws.src_dir)
        status = _run(command, cwd=str(ws.src_dir), env=dict(os.environ))
    finally:
        ws.reset()
    if args.keep:
        print(ws.root, file=sys.stderr)
    return status


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="scratchtree", description="Disposable toolchain source-tree workspaces")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command_name", required=True)

    c = sub.add_parser("create", help="Provision a workspace from a manifest and keep it")
    c.add_argument("manifest", help="Path to the manifest (YAML, or markdown with YAML frontmatter)")
    c.add_argument("--dir", default=None, help="Workspace root (default: a new temporary directory)")
    c.add_argument("--print-env", action="store_true", help="Also print VAR=value for the updated search path")
    c.set_defaults(func=create_cmd)

    r = sub.add_parser("run", help="Run a command inside a temporary workspace, then clean up")
    r.add_argument("manifest", help="Path to the manifest (YAML, or markdown with YAML frontmatter)")
    r.add_argument("--keep", action="store_true", help="Keep the workspace directory after the command")
    r.add_argument("command", nargs="*", help="Command to run in the workspace src/ directory")
    r.set_defaults(func=run_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    # Everything after the first `--` is the command for `run`, taken verbatim.
    trailing: list[str] = []
    if "--" in argv:
        split = argv.index("--")
        argv, trailing = argv[:split], argv[split + 1 :]
    args = parser.parse_args(argv)
    if trailing:
        if args.command_name != "run":
            parser.error("unexpected arguments after --")
        args.command = [*args.command, *trailing]

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.WARNING,
    )
    if args.verbose:
        logging.getLogger("scratchtree").setLevel(logging.DEBUG)

    try:
        return int(args.func(args))
    except (WorkspaceError, CLIError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
