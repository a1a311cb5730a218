"""CLI interface for PyPublish."""

import logging
from typing import Any, Optional

import click

from .api import PublishClient
from .auth import require_credentials
from .config import SITE_ENV_VARS, TOKEN_ENV_VARS, config
from .exceptions import PublishError
from .output import OutputFormatter, SecretMaskingFilter
from .sync import SyncEngine, SymlinkPolicy
from .utils import DEFAULT_TIMEOUT, pluralize

logger = logging.getLogger(__name__)

# The published tree is always the working directory
DEFAULT_ROOT = "."


def _configure_logging(verbose: bool, out: OutputFormatter) -> None:
    """Set up logging and make sure secrets never reach a log handler."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pypublish").setLevel(logging.DEBUG)
    else:
        # Set default logging level to WARNING to suppress debug/info messages
        logging.basicConfig(level=logging.WARNING)

    for handler in logging.getLogger().handlers:
        for old in [f for f in handler.filters if isinstance(f, SecretMaskingFilter)]:
            handler.removeFilter(old)
        handler.addFilter(SecretMaskingFilter(out.masker))


@click.group()
@click.option(
    "--site",
    "-s",
    envvar=list(SITE_ENV_VARS),
    help="Site identifier",
)
@click.option(
    "--token",
    "-t",
    envvar=list(TOKEN_ENV_VARS),
    help="Site access token",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="pypublish")
@click.pass_context
def main(
    ctx: Any,
    site: Optional[str],
    token: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """PyPublish - Publish a local directory to an Obsidian Publish site."""
    out = OutputFormatter(json_output=json, quiet=quiet)
    # Register before anything else can print it
    out.add_secret(token)

    ctx.ensure_object(dict)
    ctx.obj["site"] = site
    ctx.obj["token"] = token
    ctx.obj["out"] = out
    ctx.obj["verbose"] = verbose

    _configure_logging(verbose, out)


@main.command()
@click.option("--site", "-s", prompt="Site identifier", help="Site identifier")
@click.option(
    "--token",
    "-t",
    prompt="Access token",
    hide_input=True,
    help="Site access token",
)
@click.pass_context
def init(ctx: Any, site: str, token: str) -> None:
    """Initialize PyPublish configuration.

    Stores the site identifier and token in ~/.config/pypublish/config.
    """
    out: OutputFormatter = ctx.obj["out"]
    out.add_secret(token)

    try:
        out.info("Validating credentials...")
        with PublishClient(site_id=site, token=token) as client:
            remote_files = client.list_files()
        published = pluralize(len(remote_files), "file")
        out.success(f"Credentials are valid ({published} published)")
    except PublishError as e:
        out.error(f"Credential validation failed: {e}")
        if not click.confirm("Save credentials anyway?", default=False):
            out.warning("Configuration cancelled.")
            ctx.exit(1)

    config.save_credentials(site, token)
    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "Configuration saved successfully"),
            ("Config file", str(config.get_config_path())),
        ],
    )


@main.command()
@click.pass_context
def ls(ctx: Any) -> None:
    """List files currently published on the site."""
    out: OutputFormatter = ctx.obj["out"]
    site_id, token = require_credentials(ctx, out)

    try:
        with PublishClient(site_id=site_id, token=token) as client:
            remote_files = client.list_files()
    except PublishError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    if not remote_files and not out.json_output:
        out.info("No files published.")
        return
    out.print_files(remote_files)


def _run_publish(
    ctx: Any,
    dry_run: bool,
    workers: int,
    retries: int,
    timeout: float,
    symlinks: str,
) -> None:
    out: OutputFormatter = ctx.obj["out"]

    if workers < 1:
        out.error("Workers must be at least 1")
        ctx.exit(1)
    if retries < 0:
        out.error("Retries cannot be negative")
        ctx.exit(1)

    with out.group("Getting inputs"):
        site_id, token = require_credentials(ctx, out)
        out.info("Got inputs")

    try:
        client = PublishClient(
            site_id=site_id, token=token, max_retries=retries, timeout=timeout
        )
    except PublishError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    logger.debug(
        "Publishing %s to site %s (workers=%d, retries=%d)",
        DEFAULT_ROOT,
        site_id,
        workers,
        retries,
    )
    with client:
        engine = SyncEngine(client, out, symlink_policy=SymlinkPolicy(symlinks))
        result = engine.publish(DEFAULT_ROOT, dry_run=dry_run, max_workers=workers)

    if out.json_output:
        out.print_json(result.to_dict())

    if not result.success:
        ctx.exit(1)


@main.command()
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be published without uploading or removing anything",
)
@click.option(
    "--workers",
    type=int,
    default=1,
    help="Number of parallel uploads/removals per phase (default: 1)",
)
@click.option(
    "--retries",
    type=int,
    default=0,
    help="Retry transient network errors this many times (default: 0)",
)
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_TIMEOUT,
    help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT:g})",
)
@click.option(
    "--symlinks",
    type=click.Choice([p.value for p in SymlinkPolicy]),
    default=SymlinkPolicy.FOLLOW.value,
    help="How to treat symbolic links (default: follow)",
)
@click.pass_context
def publish(
    ctx: Any,
    dry_run: bool,
    workers: int,
    retries: int,
    timeout: float,
    symlinks: str,
) -> None:
    """Publish the current directory to the site.

    Files that only exist locally are added, files whose content changed
    are updated and files that only exist on the site are removed.
    Version control (.git*), editor (.obsidian) and dependency
    (node_modules) files are never published.

    Examples:
        pypublish publish                   # Publish the current directory
        pypublish publish --dry-run         # Preview changes
        pypublish -s SITE -t TOKEN publish  # Explicit credentials
    """
    _run_publish(ctx, dry_run, workers, retries, timeout, symlinks)


@main.command()
@click.pass_context
def status(ctx: Any) -> None:
    """Show what publish would change, without changing anything."""
    _run_publish(
        ctx,
        dry_run=True,
        workers=1,
        retries=0,
        timeout=DEFAULT_TIMEOUT,
        symlinks=SymlinkPolicy.FOLLOW.value,
    )


if __name__ == "__main__":
    main()
