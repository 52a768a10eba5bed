"""
Utility functions for s3upload.

Contains helper functions for key calculation, elapsed-time formatting and
console output.
"""

import os
from pathlib import Path
from typing import List, Union

import click

from s3upload.errors import KeyMappingError


def echo_progress(message: str, quiet: bool = False) -> None:
    """Print a progress line unless quiet mode is on."""
    if not quiet:
        click.echo(message)


def echo_notice(message: str, verbose: bool = False) -> None:
    """Print a notice (ignored paths, duplicates) only in verbose mode."""
    if verbose:
        click.echo(click.style(f"ℹ️  {message}", fg="cyan", dim=True))


def echo_error(message: str) -> None:
    """Print an error to stderr with the error prefix."""
    click.echo(click.style(f"❌ Error: {message}", fg="red"), err=True)


def calculate_key(
    local_path: Union[str, Path], working_dir: Union[str, Path], prefix: str = ""
) -> str:
    """
    Calculate the object key for a local file.

    Args:
        local_path: Absolute local file path.
        working_dir: Directory the run was started from.
        prefix: Optional key prefix.

    Returns:
        Key string using "/" separators.

    Raises:
        KeyMappingError: If local_path is not within working_dir.
    """
    local_str = os.path.normpath(str(local_path))
    base_str = os.path.normpath(str(working_dir))
    base_with_sep = base_str if base_str.endswith(os.sep) else base_str + os.sep

    if not os.path.isabs(local_str) or not local_str.startswith(base_with_sep):
        raise KeyMappingError(
            f"File '{local_path}' is not within working directory '{working_dir}'."
        )

    rel_path_str = local_str[len(base_with_sep) :].replace(os.sep, "/")

    # Ensure prefix doesn't end with slash
    key_prefix = prefix.rstrip("/")
    if key_prefix:
        return f"{key_prefix}/{rel_path_str}"
    return rel_path_str


def split_patterns(value: str) -> List[str]:
    """Split a comma-separated pattern list, dropping empty entries."""
    return [p.strip() for p in value.split(",") if p.strip()]


def format_elapsed(elapsed: float) -> str:
    """Format a duration in seconds as e.g. '1h 2m 3.45s'."""
    days = int(elapsed // 86400)
    hours = int((elapsed % 86400) // 3600)
    minutes = int((elapsed % 3600) // 60)
    seconds = elapsed % 60

    time_parts = []
    if days > 0:
        time_parts.append(f"{days}d")
    if hours > 0 or days > 0:
        time_parts.append(f"{hours}h")
    if minutes > 0 or hours > 0 or days > 0:
        time_parts.append(f"{minutes}m")
    time_parts.append(f"{seconds:.2f}s")

    return " ".join(time_parts)
