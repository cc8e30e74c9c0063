"""Command-line front door for starterview.

Captures generated project trees from disk, prints them as navigable trees
with change badges against a baseline, and renders highlighted file content.
The ``preview`` command runs the full coordinator pipeline over a template
directory.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .cache.highlight import HighlightCache
from .config import PreviewSettings, load_preview_settings, save_theme_name
from .errors import ConfigError, PreviewPipelineError
from .preview.request import ProjectConfig
from .preview.service import DirectoryGenerator
from .preview.session import PreviewSession
from .render import DEFAULT_PALETTE, PLAIN_PALETTE, format_diff_summary, render_file_preview, render_tree
from .snapshot.diff import compute_preview_diff
from .snapshot.fs import scan_snapshot_files
from .snapshot.tree import build_preview_tree, find_node
from .snapshot.types import SnapshotFile
from .source.engine import HighlightPolicy, build_file_preview

logger = logging.getLogger(__name__)


def _require_path(path: Path) -> Path:
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")
    return path


def _policy(settings: PreviewSettings) -> HighlightPolicy:
    return HighlightPolicy(max_bytes=settings.max_highlight_bytes, max_lines=settings.max_highlight_lines)


def _show_file(
    files: list[SnapshotFile] | tuple[SnapshotFile, ...],
    target: str,
    settings: PreviewSettings,
    theme: str,
    color: bool,
    cache: HighlightCache | None = None,
) -> list[str]:
    node = find_node(build_preview_tree(files), target)
    if node is None or node.file is None:
        raise ConfigError(f"File not in snapshot: {target}")
    if node.file.binary:
        return [f"{node.path}: binary file ({node.file.size} bytes)"]
    preview = build_file_preview(node.file, theme, cache or HighlightCache(), _policy(settings))
    return render_file_preview(preview, theme, color=color)


def _cmd_tree(args: argparse.Namespace, settings: PreviewSettings, theme: str, color: bool) -> list[str]:
    files = scan_snapshot_files(_require_path(args.path), show_hidden=not args.hide_hidden)
    palette = DEFAULT_PALETTE if color else PLAIN_PALETTE
    return render_tree(build_preview_tree(files), palette=palette)


def _cmd_diff(args: argparse.Namespace, settings: PreviewSettings, theme: str, color: bool) -> list[str]:
    baseline = scan_snapshot_files(_require_path(args.baseline), show_hidden=not args.hide_hidden)
    current = scan_snapshot_files(_require_path(args.current), show_hidden=not args.hide_hidden)
    diff = compute_preview_diff(baseline, current)
    if diff is None:
        return []
    # Removed files stay visible in the tree so their badges can be shown.
    removed = [file for file in baseline if diff.status_for(file.path) == "removed"]
    palette = DEFAULT_PALETTE if color else PLAIN_PALETTE
    rows = render_tree(build_preview_tree([*current, *removed]), diff=diff, palette=palette)
    rows.append(format_diff_summary(diff))
    return rows


def _cmd_show(args: argparse.Namespace, settings: PreviewSettings, theme: str, color: bool) -> list[str]:
    files = scan_snapshot_files(_require_path(args.path))
    return _show_file(files, args.file, settings, theme, color)


async def _run_preview(args: argparse.Namespace, settings: PreviewSettings, theme: str, color: bool) -> list[str]:
    generator = DirectoryGenerator(_require_path(args.template))
    config = ProjectConfig(build_tool=args.build_tool, language=args.language, name=args.name)
    # Diff against the same project without dependencies.
    session = PreviewSession.create(generator, settings=replace(settings, debounce_ms=0), baseline_config=config)
    coordinator = session.coordinator
    try:
        coordinator.update(config, args.dependency)
        await coordinator.drain()
        state = coordinator.state
        if state.error is not None:
            raise PreviewPipelineError(f"{state.error.code}: {state.error.message}")

        palette = DEFAULT_PALETTE if color else PLAIN_PALETTE
        rows = render_tree(state.tree, diff=state.diff, palette=palette)
        if state.diff is not None:
            rows.append(format_diff_summary(state.diff))
        if args.select:
            coordinator.select_file(args.select)
            selected = coordinator.selected_preview(theme)
            if selected is None or selected.file is None:
                raise ConfigError(f"File not in snapshot: {args.select}")
            rows.append("")
            rows.append(f"{selected.path} ({selected.status or 'unchanged'})")
            rows.extend(render_file_preview(selected.preview, theme, color=color))
        return rows
    finally:
        await session.close()


def _cmd_preview(args: argparse.Namespace, settings: PreviewSettings, theme: str, color: bool) -> list[str]:
    return asyncio.run(_run_preview(args, settings, theme, color))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="starterview",
        description="Preview generated project trees, dependency diffs, and highlighted files.",
    )
    parser.add_argument("--theme", default=None, help="Pygments style name for highlighting.")
    parser.add_argument("--save-theme", action="store_true", help="Persist --theme as the default.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    tree = subparsers.add_parser("tree", help="Print the snapshot tree of a directory.")
    tree.add_argument("path", type=Path)
    tree.add_argument("--hide-hidden", action="store_true", help="Skip dotfiles.")
    tree.set_defaults(handler=_cmd_tree)

    diff = subparsers.add_parser("diff", help="Print a tree with change badges against a baseline directory.")
    diff.add_argument("baseline", type=Path)
    diff.add_argument("current", type=Path)
    diff.add_argument("--hide-hidden", action="store_true", help="Skip dotfiles.")
    diff.set_defaults(handler=_cmd_diff)

    show = subparsers.add_parser("show", help="Print one file with syntax highlighting.")
    show.add_argument("path", type=Path)
    show.add_argument("file", help="Path of the file relative to PATH.")
    show.set_defaults(handler=_cmd_show)

    preview = subparsers.add_parser(
        "preview",
        help="Generate from a template directory (base/ + dependencies/<id>/) and diff against the baseline.",
    )
    preview.add_argument("template", type=Path)
    preview.add_argument("-d", "--dependency", action="append", default=[], help="Dependency id (repeatable).")
    preview.add_argument("--build-tool", default="maven-project")
    preview.add_argument("--language", default="java")
    preview.add_argument("--name", default="demo")
    preview.add_argument("--select", default=None, help="Also print this file's content.")
    preview.set_defaults(handler=_cmd_preview)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run the selected command."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = load_preview_settings()
    theme = args.theme or settings.theme
    if args.save_theme and args.theme:
        save_theme_name(args.theme)
    color = not args.no_color and sys.stdout.isatty()

    try:
        rows = args.handler(args, settings, theme, color)
    except PreviewPipelineError as exc:
        logger.debug("Command failed", exc_info=True)
        raise SystemExit(str(exc)) from exc

    for row in rows:
        sys.stdout.write(row)
        if color and "\033" in row:
            sys.stdout.write("\033[0m")
        sys.stdout.write("\n")


if __name__ == "__main__":
    main()
