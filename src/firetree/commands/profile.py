"""Profile commands -- manage stored store connections.

A profile records a host, where to read the auth token from, and request
settings. The default profile is used whenever ``--profile`` and
``FIRETREE_PROFILE`` are absent.
"""

from __future__ import annotations

from typing import Optional

import typer

from firetree.commands import cli_errors
from firetree.output import format_document, info, print_table, success, suggest

profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("add")
def profile_add(
    name: str = typer.Argument(help="Profile name."),
    host: str = typer.Option(..., "--host", help="Base URL of the store, with trailing slash."),
    token_source: Optional[str] = typer.Option(
        None, "--token-source", help="Token source: env:VAR, file:/path, prompt, or a literal."
    ),
    timeout: int = typer.Option(10, "--timeout", help="Timeout in seconds."),
    verify_ssl: bool = typer.Option(
        False, "--verify-ssl/--no-verify-ssl", help="Verify the server certificate."
    ),
    make_default: bool = typer.Option(False, "--default", help="Make this the default profile."),
) -> None:
    """Create or overwrite a profile.

    Example::

        firetree profile add prod --host https://db.example.com/ \\
            --token-source env:DB_TOKEN --verify-ssl --default
    """
    from firetree.config import load_global_config, save_global_config, save_profile
    from firetree.models import Profile, RequestConfig

    with cli_errors():
        profile = Profile(
            name=name,
            host=host,
            token_source=token_source,
            request=RequestConfig(timeout=timeout, verify_ssl=verify_ssl),
        )
        save_profile(profile)
        success(f"Saved profile '{name}'.")
        if not verify_ssl:
            suggest("Certificate verification is off; pass --verify-ssl to enable it.")

        if make_default:
            config = load_global_config()
            config.default_profile = name
            save_global_config(config)
            info(f"'{name}' is now the default profile.")


@profile_app.command("list")
def profile_list() -> None:
    """List stored profiles; the default is marked with ``*``."""
    from firetree.config import list_profiles, load_global_config, load_profile

    with cli_errors():
        default = load_global_config().default_profile
        rows = []
        for name in list_profiles():
            profile = load_profile(name)
            marker = "*" if name == default else ""
            rows.append([marker, name, profile.host])
        if not rows:
            info("No profiles configured.")
            suggest("Create one with: firetree profile add NAME --host URL")
            return
        print_table(["default", "name", "host"], rows, title="Profiles")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(help="Profile name.")) -> None:
    """Show a profile as JSON."""
    from firetree.config import load_profile

    with cli_errors():
        format_document(load_profile(name).model_dump(mode="json"))


@profile_app.command("remove")
def profile_remove(
    name: str = typer.Argument(help="Profile name."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete a profile, clearing it as default if needed."""
    from firetree.config import delete_profile, load_global_config, save_global_config

    with cli_errors():
        if not force and not typer.confirm(f"Remove profile '{name}'?"):
            info("Cancelled.")
            raise typer.Exit()
        delete_profile(name)
        config = load_global_config()
        if config.default_profile == name:
            config.default_profile = None
            save_global_config(config)
        success(f"Removed profile '{name}'.")


@profile_app.command("use")
def profile_use(name: str = typer.Argument(help="Profile name.")) -> None:
    """Make a profile the default."""
    from firetree.config import load_global_config, profile_exists, save_global_config
    from firetree.exceptions import ConfigError

    with cli_errors():
        if not profile_exists(name):
            raise ConfigError(f"Profile '{name}' does not exist")
        config = load_global_config()
        config.default_profile = name
        save_global_config(config)
        success(f"'{name}' is now the default profile.")
