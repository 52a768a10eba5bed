"""
Ignore pattern handling and path classification for s3upload.

Decides whether a path is ignored, a regular file or a directory, and lists
ignored paths for --show-ignored.
"""

import enum
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import click

from s3upload.errors import FilesystemError


class PathKind(enum.Enum):
    """Result of classifying a local path."""

    IGNORED = "ignored"
    FILE = "file"
    DIRECTORY = "directory"
    NOT_FOUND = "not_found"
    SPECIAL = "special"


@dataclass(frozen=True)
class IgnoreRules:
    """
    Ordered, immutable set of prefix patterns.

    A pattern matches a name when the name starts with it. A leading "^" is
    the anchor marker and is stripped, so "^." matches dotfiles.
    """

    patterns: Tuple[str, ...] = ()

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> "IgnoreRules":
        prefixes: List[str] = []
        for pattern in patterns:
            p = pattern.strip()
            if p.startswith("^"):
                p = p[1:]
            if p and p not in prefixes:
                prefixes.append(p)
        return cls(tuple(prefixes))

    def matches(self, name: str) -> bool:
        """Return True if name starts with any pattern."""
        return any(name.startswith(p) for p in self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)


def relative_form(path: Path, working_dir: Path) -> str:
    """Return path relative to working_dir using "/" separators."""
    return os.path.relpath(str(path), str(working_dir)).replace(os.sep, "/")


def is_ignored(path: Path, rules: IgnoreRules, working_dir: Path) -> bool:
    """
    Check if a path matches any ignore pattern.

    Both the basename and the form relative to working_dir are tested. The
    working directory itself is never ignored.

    Args:
        path: Absolute path to check.
        rules: Ignore rules to apply.
        working_dir: Directory the run was started from.

    Returns:
        True if path should be ignored, False otherwise.
    """
    rel = relative_form(path, working_dir)
    if rel == ".":
        return False
    if rules.matches(path.name):
        return True
    # Paths outside working_dir have no relative form to match
    return not rel.startswith("../") and rel != ".." and rules.matches(rel)


def classify_path(
    path: Path, rules: IgnoreRules, working_dir: Path
) -> Tuple[PathKind, Optional[os.stat_result]]:
    """
    Classify a path without touching the filesystem when it is ignored.

    Args:
        path: Absolute path to classify.
        rules: Ignore rules to apply.
        working_dir: Directory the run was started from.

    Returns:
        Tuple of (kind, stat result). The stat result is None unless the
        path was stat-ed successfully.

    Raises:
        FilesystemError: If the status query fails for a reason other than
            the path not existing.
    """
    if is_ignored(path, rules, working_dir):
        return (PathKind.IGNORED, None)

    try:
        st = os.stat(path)
    except FileNotFoundError:
        return (PathKind.NOT_FOUND, None)
    except OSError as e:
        raise FilesystemError(path, f"cannot stat: {e.strerror or e}") from e

    if stat.S_ISDIR(st.st_mode):
        return (PathKind.DIRECTORY, st)
    if stat.S_ISREG(st.st_mode):
        return (PathKind.FILE, st)
    return (PathKind.SPECIAL, st)


def show_ignored_files(
    sources: List[Path], rules: IgnoreRules, working_dir: Path
) -> None:
    """
    List all files and directories under sources that the ignore rules exclude.

    Args:
        sources: Absolute source paths to scan.
        rules: Ignore rules to apply.
        working_dir: Directory the run was started from.
    """
    click.echo(click.style("\n🚫 Ignored Files and Directories:", fg="cyan", bold=True))
    click.echo(f"Scanning from: {', '.join(str(s) for s in sources)}\n")

    if not rules:
        click.echo(click.style("No ignore patterns configured.", dim=True))
        return

    # Display active ignore patterns
    click.echo(click.style("Active ignore patterns:", fg="yellow"))
    for pattern in rules.patterns:
        click.echo(f"  • {click.style(pattern, fg='white')}")
    click.echo()

    ignored_items: List[Tuple[str, str, int]] = []
    scanned_count = 0

    def scan(path: Path, depth: int) -> None:
        nonlocal scanned_count
        scanned_count += 1

        # Check if this item is ignored
        if is_ignored(path, rules, working_dir):
            item_type = "📁" if path.is_dir() else "📄"
            ignored_items.append((relative_form(path, working_dir), item_type, depth))
            return  # Don't descend into ignored directories

        if path.is_dir():
            try:
                entries = sorted(path.iterdir())
            except OSError:
                return
            for entry in entries:
                scan(entry, depth + 1)

    for source in sources:
        scan(source, 0)

    # Display ignored items
    if ignored_items:
        click.echo(
            click.style(
                f"Found {len(ignored_items)} ignored items:", fg="red", bold=True
            )
        )
        click.echo()

        for rel_path, item_type, depth in ignored_items:
            indent = "  " * depth
            click.echo(f"{indent}{item_type} {click.style(rel_path, fg='bright_red')}")
    else:
        click.echo(click.style("No ignored files or directories found.", fg="green"))

    click.echo(f"\n{click.style('Total items scanned:', fg='cyan')} {scanned_count}")
