"""
Configuration loading and merging for s3upload.

Handles optional hierarchical JSON configuration files, the immutable run
configuration and the credential check.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import click

from s3upload import (
    CANNED_ACLS,
    CREDENTIAL_ENV_VARS,
    DEFAULT_ACL,
    DEFAULT_IGNORE,
    DEFAULT_MAX_WORKERS,
)
from s3upload.errors import ConfigurationError
from s3upload.excludes import IgnoreRules
from s3upload.utils import split_patterns

CONFIG_FILENAME = ".s3upload.json"
SCALAR_KEYS = ("bucket", "prefix", "acl", "max_workers", "region", "endpoint_url")


@dataclass(frozen=True)
class RunConfig:
    """Settings shared read-only by every part of an upload run."""

    bucket: str
    working_dir: Path
    prefix: str = ""
    acl: str = DEFAULT_ACL
    ignore: IgnoreRules = field(
        default_factory=lambda: IgnoreRules.from_patterns([DEFAULT_IGNORE])
    )
    quiet: bool = False
    verbose: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS
    dry_run: bool = False
    region: Optional[str] = None
    endpoint_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.bucket:
            raise ConfigurationError("No destination bucket given.")
        if self.acl not in CANNED_ACLS:
            raise ConfigurationError(
                f"Invalid ACL '{self.acl}'. Use one of: {', '.join(CANNED_ACLS)}"
            )
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1.")
        if not self.working_dir.is_absolute():
            raise ConfigurationError(
                f"Working directory '{self.working_dir}' must be absolute."
            )


def global_config_locations() -> List[Path]:
    return [
        Path.home() / ".s3upload" / "s3upload.json",
        Path.home() / ".config" / "s3upload" / "s3upload.json",
    ]


def _read_config_file(path: Path) -> Optional[Dict[str, Any]]:
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        click.echo(f"Warning: Failed to parse '{path}': {e}", err=True)
        return None
    except OSError as e:
        click.echo(f"Warning: Failed to read '{path}': {e}", err=True)
        return None

    if not isinstance(data, dict):
        click.echo(f"Warning: Ignoring '{path}': expected a JSON object.", err=True)
        return None
    return data


def load_config_with_sources(
    start_dir: Optional[Path] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Load and merge configuration files with source tracking.

    Args:
        start_dir: Directory to start the upward search from (default: cwd).

    Returns:
        Tuple of (merged_config, source_map) where source_map tracks which file
        contributed each key.
    """
    configs_to_merge: List[Tuple[Path, Dict[str, Any]]] = []
    source_map: Dict[str, Any] = {
        "ignore": {},
        "keys": {},
        "config_files": [],
    }

    # First, try to load global config as base
    for loc in global_config_locations():
        if loc.exists():
            data = _read_config_file(loc)
            if data is not None:
                configs_to_merge.append((loc, data))
                source_map["config_files"].append(str(loc))
                break

    # Collect all .s3upload.json files from root down to start_dir
    project_configs: List[Path] = []
    current_dir = (start_dir or Path.cwd()).resolve()

    while True:
        candidate = current_dir / CONFIG_FILENAME
        if candidate.exists():
            project_configs.append(candidate)

        parent = current_dir.parent
        if parent == current_dir:
            # Reached filesystem root
            break
        current_dir = parent

    # Process from root to start_dir (shallowest to deepest)
    project_configs.reverse()

    for config_path in project_configs:
        data = _read_config_file(config_path)
        if data is not None:
            configs_to_merge.append((config_path, data))
            source_map["config_files"].append(str(config_path))

    merged_config: Dict[str, Any] = {}
    all_ignore: List[str] = []

    for config_path, config in configs_to_merge:
        config_path_str = str(config_path)

        # Ignore patterns are additive
        if "ignore" in config:
            patterns = config["ignore"]
            if isinstance(patterns, str):
                patterns = split_patterns(patterns)
            for pattern in patterns:
                source_map["ignore"].setdefault(pattern, []).append(config_path_str)
            all_ignore.extend(patterns)

        # Scalar keys: deeper configs override
        for key in SCALAR_KEYS:
            if key in config:
                merged_config[key] = config[key]
                source_map["keys"][key] = config_path_str

    if all_ignore:
        merged_config["ignore"] = all_ignore

    return merged_config, source_map


def load_config(start_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load and merge configuration files.

    Search order and merging:
    1. Global config from ~/.s3upload/s3upload.json or ~/.config/s3upload/s3upload.json (base)
    2. Every .s3upload.json from the filesystem root down to start_dir
    3. Deeper configs override scalar keys; ignore lists are combined

    Returns:
        Dictionary with the merged keys (empty if no file was found).
    """
    merged_config, _ = load_config_with_sources(start_dir)
    return merged_config


def show_config(merged_config: Dict[str, Any], source_map: Dict[str, Any]) -> None:
    """
    Display merged configuration with source annotations.

    Args:
        merged_config: The final merged configuration.
        source_map: Dictionary tracking sources for each config item.
    """
    click.echo(
        click.style("\n📋 Configuration Files (merge order):", fg="cyan", bold=True)
    )
    if not source_map["config_files"]:
        click.echo(click.style("  (none found, using defaults)", dim=True))
    for i, config_file in enumerate(source_map["config_files"], 1):
        click.echo(f"  {i}. {config_file}")

    click.echo(click.style("\n🔀 Merged Configuration:", fg="cyan", bold=True))
    formatted_json = json.dumps(merged_config, indent=2)
    click.echo(click.style(formatted_json, fg="green"))

    click.echo(click.style("\n📍 Source Annotations:", fg="cyan", bold=True))

    for key, source in source_map.get("keys", {}).items():
        click.echo(f"    • {click.style(key, fg='white')}")
        click.echo(f"      ↳ from: {click.style(source, fg='blue')}")

    if source_map.get("ignore"):
        click.echo(click.style("\n  ignore:", fg="yellow", bold=True))
        for pattern, sources in source_map["ignore"].items():
            sources_str = ", ".join(str(s) for s in sources)
            click.echo(f"    • {click.style(pattern, fg='white')}")
            click.echo(f"      ↳ from: {click.style(sources_str, fg='blue')}")


def build_run_config(
    file_config: Mapping[str, Any],
    working_dir: Path,
    bucket: Optional[str] = None,
    prefix: Optional[str] = None,
    acl: Optional[str] = None,
    ignore: Optional[str] = None,
    max_workers: Optional[int] = None,
    region: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    quiet: bool = False,
    verbose: bool = False,
    dry_run: bool = False,
) -> RunConfig:
    """
    Build the run configuration from CLI values and file configuration.

    Precedence: CLI value (when not None) > config file > default.

    Raises:
        ConfigurationError: If the resulting values are invalid.
    """

    def pick(cli_value: Any, key: str, default: Any) -> Any:
        if cli_value is not None:
            return cli_value
        return file_config.get(key, default)

    if ignore is not None:
        ignore_patterns = split_patterns(ignore)
    else:
        ignore_patterns = list(file_config.get("ignore", [DEFAULT_IGNORE]))

    try:
        workers = int(pick(max_workers, "max_workers", DEFAULT_MAX_WORKERS))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"max_workers must be an integer: {e}") from e

    return RunConfig(
        bucket=pick(bucket, "bucket", ""),
        working_dir=working_dir,
        prefix=pick(prefix, "prefix", ""),
        acl=pick(acl, "acl", DEFAULT_ACL),
        ignore=IgnoreRules.from_patterns(ignore_patterns),
        quiet=quiet,
        verbose=verbose,
        max_workers=workers,
        dry_run=dry_run,
        region=pick(region, "region", None),
        endpoint_url=pick(endpoint_url, "endpoint_url", None),
    )


def check_credentials(environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Verify that the credential environment variables are set.

    Raises:
        ConfigurationError: Naming every missing variable.
    """
    env = os.environ if environ is None else environ
    missing = [name for name in CREDENTIAL_ENV_VARS if not env.get(name)]
    if missing:
        raise ConfigurationError(
            f"Missing credentials: set the {' and '.join(missing)} environment "
            f"variable{'s' if len(missing) > 1 else ''}."
        )
