"""Credential resolution for CLI commands."""

from typing import Any

from .config import config
from .output import OutputFormatter


def require_credentials(ctx: Any, out: OutputFormatter) -> tuple[str, str]:
    """Return the site id and token or exit with an error.

    Values given on the command line win over the environment and the
    config file.

    Args:
        ctx: Click context holding the global options
        out: Output formatter for error messages

    Returns:
        Tuple of (site_id, token)
    """
    site_id = ctx.obj.get("site") or config.site_id
    token = ctx.obj.get("token") or config.token
    out.add_secret(token)

    if not site_id or not token:
        missing = [
            name
            for name, value in (("site", site_id), ("token", token))
            if not value
        ]
        out.error(f"Missing required input: {', '.join(missing)}")
        out.info(
            "Pass --site/--token, set PUBLISH_SITE/PUBLISH_TOKEN, "
            "or run 'pypublish init'."
        )
        ctx.exit(1)

    return site_id, token
