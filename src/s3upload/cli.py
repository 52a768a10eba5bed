"""
CLI entry point for s3upload.

Provides the command-line interface using Click.
"""

import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import click

from s3upload import CANNED_ACLS, DEFAULT_ACL, DEFAULT_IGNORE, __version__
from s3upload.config import (
    build_run_config,
    check_credentials,
    load_config,
    load_config_with_sources,
)
from s3upload.errors import ConfigurationError
from s3upload.excludes import show_ignored_files
from s3upload.protocols.s3 import create_client
from s3upload.sync import SyncEngine
from s3upload.utils import echo_error, format_elapsed


def version_callback(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Callback to display version and exit."""
    if value and not ctx.resilient_parsing:
        click.echo(f"s3upload version {__version__}")
        ctx.exit()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--version",
    "-V",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.option(
    "--prefix",
    default=None,
    help="Key prefix prepended to every uploaded object [default: none]",
)
@click.option(
    "--acl",
    type=click.Choice(CANNED_ACLS),
    default=None,
    help=f"Canned ACL applied to uploaded objects [default: {DEFAULT_ACL}]",
)
@click.option(
    "--ignore",
    default=None,
    help=f"Comma-separated list of prefix patterns to ignore [default: {DEFAULT_IGNORE}]",
)
@click.option("-q", "--quiet", is_flag=True, help="Suppress progress output.")
@click.option(
    "--verbose", is_flag=True, help="Show notices such as ignored files."
)
@click.option(
    "--max-workers",
    default=None,
    type=click.IntRange(min=1),
    help="Number of parallel workers (overrides config; default: 5)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Check which files are stale without uploading them.",
)
@click.option("--region", default=None, help="AWS region of the bucket.")
@click.option(
    "--endpoint-url",
    default=None,
    help="Custom endpoint for S3-compatible storage services.",
)
@click.option(
    "--show-config",
    is_flag=True,
    help="Display the merged configuration with source file annotations and exit.",
)
@click.option(
    "--show-ignored",
    is_flag=True,
    help="List all files and directories under the sources that are ignored and exit.",
)
@click.argument("args", nargs=-1, required=False)
def main(
    prefix: Optional[str],
    acl: Optional[str],
    ignore: Optional[str],
    quiet: bool,
    verbose: bool,
    max_workers: Optional[int],
    dry_run: bool,
    region: Optional[str],
    endpoint_url: Optional[str],
    show_config: bool,
    show_ignored: bool,
    args: Tuple[str, ...],
) -> None:
    """
    Upload files and directories to an S3 bucket.

    ARGS are one or more source files or directories followed by the
    destination bucket. Directories are uploaded recursively. A file is
    skipped when the remote object is at least as new as the local copy.
    Object keys are the paths relative to the current directory, with
    --prefix prepended.

    \b
    Examples:
      s3upload dist my-bucket                       # Upload dist/ recursively
      s3upload --prefix=v2 dist my-bucket           # Keys become v2/dist/...
      s3upload --acl=public-read index.html my-bucket
      s3upload --ignore="^.,node_modules" . my-bucket

    \b
    Credentials:
      AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY must be set.

    \b
    Configuration:
      Defaults for bucket, prefix, acl, ignore, max_workers, region and
      endpoint_url can be set in ~/.s3upload/s3upload.json,
      ~/.config/s3upload/s3upload.json or any .s3upload.json from the
      current directory upwards. Command-line options take precedence.
    """
    # Show help if no arguments provided
    if not args and not show_config:
        ctx = click.get_current_context()
        click.echo(ctx.get_help())
        ctx.exit()

    # Handle --show-config flag
    if show_config:
        from s3upload.config import show_config as display_config_fn

        merged_config, source_map = load_config_with_sources()
        display_config_fn(merged_config, source_map)
        sys.exit(0)

    file_config = load_config()

    # Last positional is the bucket unless one is configured and only sources were given
    if len(args) >= 2:
        sources = list(args[:-1])
        bucket: Optional[str] = args[-1]
    elif file_config.get("bucket"):
        sources = list(args)
        bucket = None
    else:
        raise click.UsageError(
            "Expected one or more source paths followed by a bucket name."
        )

    try:
        config = build_run_config(
            file_config,
            working_dir=Path.cwd(),
            bucket=bucket,
            prefix=prefix,
            acl=acl,
            ignore=ignore,
            max_workers=max_workers,
            region=region,
            endpoint_url=endpoint_url,
            quiet=quiet,
            verbose=verbose,
            dry_run=dry_run,
        )
    except ConfigurationError as e:
        echo_error(str(e))
        sys.exit(1)

    # Handle --show-ignored flag
    if show_ignored:
        show_ignored_files(
            [config.working_dir / s for s in sources], config.ignore, config.working_dir
        )
        sys.exit(0)

    try:
        check_credentials()
    except ConfigurationError as e:
        echo_error(str(e))
        sys.exit(1)

    if not quiet:
        mode = " (dry run)" if dry_run else ""
        click.echo(f"🪣 Uploading to s3://{config.bucket}/{config.prefix}{mode}")

    # Start timer
    start_time = time.time()

    client = create_client(region=config.region, endpoint_url=config.endpoint_url)
    result = SyncEngine(config, client).run(sources)

    if result.error is not None:
        echo_error(str(result.error))
        sys.exit(1)

    elapsed = time.time() - start_time

    if not quiet:
        if dry_run:
            sent = f"{result.would_upload} would be uploaded"
        else:
            sent = f"{result.uploaded} uploaded"
        click.echo()
        click.echo(
            f"📊 {sent}, {result.up_to_date} up to date, {result.ignored} ignored"
        )
        click.echo(f"⏱️  Upload completed in {format_elapsed(elapsed)}")


if __name__ == "__main__":
    main()
