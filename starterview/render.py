"""Plain-terminal rendering for snapshot trees, change badges, and file content."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .snapshot.diff import ChangeStatus, PreviewDiff
from .snapshot.tree import iter_tree
from .snapshot.types import TreeNode
from .source.engine import FilePreview
from .source.language import language_label
from .source.tokens import render_token_lines, sanitize_terminal_text

TREE_SIZE_LABEL_MIN_BYTES = 10 * 1024

STATUS_BADGES: dict[ChangeStatus, str] = {
    "added": "+",
    "removed": "-",
    "modified": "~",
}


@dataclass(frozen=True)
class TreePalette:
    """Semantic ANSI palette used by tree and status renderers."""

    reset: str
    tree_marker: str
    tree_dir: str
    tree_file: str
    tree_size: str
    line_number: str
    badge_added: str
    badge_removed: str
    badge_modified: str

    def badge_color(self, status: ChangeStatus) -> str:
        if status == "added":
            return self.badge_added
        if status == "removed":
            return self.badge_removed
        return self.badge_modified


DEFAULT_PALETTE = TreePalette(
    reset="\033[0m",
    tree_marker="\033[38;5;44m",
    tree_dir="\033[1;34m",
    tree_file="\033[38;5;252m",
    tree_size="\033[38;5;109m",
    line_number="\033[2;38;5;250m",
    badge_added="\033[38;5;42m",
    badge_removed="\033[38;5;203m",
    badge_modified="\033[38;5;214m",
)

PLAIN_PALETTE = TreePalette(
    reset="",
    tree_marker="",
    tree_dir="",
    tree_file="",
    tree_size="",
    line_number="",
    badge_added="",
    badge_removed="",
    badge_modified="",
)


def format_tree_row(
    depth: int,
    node: TreeNode,
    status: ChangeStatus | None = None,
    show_size_labels: bool = True,
    palette: TreePalette = DEFAULT_PALETTE,
) -> str:
    """Render one tree row with an optional change badge."""
    reset = palette.reset
    badge = ""
    if status in STATUS_BADGES:
        badge = f" {palette.badge_color(status)}{STATUS_BADGES[status]}{reset}"

    indent = "  " * depth
    if node.is_dir:
        return f"{indent}{palette.tree_marker}▾ {reset}{palette.tree_dir}{node.name}/{reset}{badge}"

    size_label = ""
    file = node.file
    if show_size_labels and file is not None and file.size >= TREE_SIZE_LABEL_MIN_BYTES:
        size_label = f"{palette.tree_size} [{file.size // 1024} KB]{reset}"
    return f"{indent}  {palette.tree_file}{node.name}{reset}{size_label}{badge}"


def _directory_status(node: TreeNode, diff: PreviewDiff) -> ChangeStatus | None:
    """A directory is ``added``/``removed`` when every file below shares that status."""
    statuses = {
        diff.status_for(child.path)
        for _depth, child in iter_tree(node.children or ())
        if child.kind == "file"
    }
    if len(statuses) == 1:
        only = next(iter(statuses))
        if only in ("added", "removed"):
            return only
    return None


def render_tree(
    nodes: Iterable[TreeNode],
    diff: PreviewDiff | None = None,
    show_size_labels: bool = True,
    palette: TreePalette = DEFAULT_PALETTE,
) -> list[str]:
    rows: list[str] = []
    for depth, node in iter_tree(nodes):
        status: ChangeStatus | None = None
        if diff is not None:
            status = _directory_status(node, diff) if node.is_dir else diff.status_for(node.path)
        rows.append(format_tree_row(depth, node, status, show_size_labels, palette))
    return rows


def format_diff_summary(diff: PreviewDiff) -> str:
    return (
        f"{len(diff.added)} added, {len(diff.removed)} removed, "
        f"{len(diff.modified)} modified, {len(diff.unchanged)} unchanged"
    )


def render_file_preview(
    preview: FilePreview,
    theme: str,
    color: bool = True,
    palette: TreePalette = DEFAULT_PALETTE,
) -> list[str]:
    """Render numbered content lines, highlighted when token lines exist."""
    if color and preview.token_lines is not None:
        body = render_token_lines(preview.token_lines, theme)
    else:
        body = [sanitize_terminal_text(line) for line in preview.lines]

    if not color:
        palette = PLAIN_PALETTE
    width = len(str(len(body))) if body else 1
    out = [f"{palette.line_number}{index:>{width}}{palette.reset} {line}" for index, line in enumerate(body, 1)]

    footer = f"[{language_label(preview.language)}]"
    if preview.message:
        footer = f"{footer} {preview.message}"
    out.append(footer)
    return out


__all__ = [
    "TREE_SIZE_LABEL_MIN_BYTES",
    "STATUS_BADGES",
    "TreePalette",
    "DEFAULT_PALETTE",
    "PLAIN_PALETTE",
    "format_tree_row",
    "render_tree",
    "format_diff_summary",
    "render_file_preview",
]
