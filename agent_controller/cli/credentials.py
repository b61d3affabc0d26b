"""CLI commands for the Jira integration credentials.

This module provides the ``agent-controller credentials`` command group for
storing, showing and clearing the three values the ticket lookup needs:
the Jira site URL, the account email and an API token.

The values are persisted under ``{store_name}/jira`` in one of two backends:
    - keyring: OS-level secure credential storage (macOS Keychain, GNOME
        Keyring, Windows Credential Manager). Default.
    - environment: Environment variables such as
        ``INTEGRATIONS_STORE_JIRA_API_TOKEN``. Intended for CI and containers
        where the values are injected before the process starts.

Example:
    Configure and inspect the integration::

        $ agent-controller credentials set --base-url https://acme.atlassian.net \\
              --email me@acme.io
        API token: ****
        $ agent-controller credentials show
        $ agent-controller credentials test
"""

import sys

import click

from agent_controller.config.settings import ControllerSettings
from agent_controller.credentials import (
    CredentialError,
    EnvironmentBackend,
    IntegrationCredentialStore,
    KeyringBackend,
    create_backend,
)


def _mask(value: str) -> str:
    if len(value) > 8:
        return value[:4] + "*" * (len(value) - 8) + value[-4:]
    return "*" * len(value)


def _fail(e: CredentialError) -> None:
    click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
    if e.suggestion:
        click.echo(click.style(f"Suggestion: {e.suggestion}", fg="yellow"), err=True)
    sys.exit(1)


def _open_store(ctx: click.Context) -> IntegrationCredentialStore:
    settings: ControllerSettings = (ctx.obj or {}).get("settings") or ControllerSettings()
    backend_name = ctx.obj.get("credential_backend") or settings.jira.credential_backend
    return IntegrationCredentialStore(create_backend(backend_name), settings.jira.store_name)


@click.group(name="credentials")
@click.option(
    "--backend",
    type=click.Choice(["keyring", "environment"]),
    default=None,
    help="Storage backend (defaults to jira.credential_backend from the config)",
)
@click.pass_context
def credentials_group(ctx: click.Context, backend: str | None) -> None:
    """Manage the Jira integration credentials.

    Examples:

        # Store all three values, prompting for each
        agent-controller credentials set

        # Update only the token
        agent-controller credentials set --api-token NEW_TOKEN

        # Remove everything
        agent-controller credentials clear
    """
    ctx.ensure_object(dict)
    ctx.obj["credential_backend"] = backend


@credentials_group.command(name="set")
@click.option("--base-url", help="Jira site URL (e.g., https://your-domain.atlassian.net)")
@click.option("--email", help="Account email")
@click.option("--api-token", help="API token")
@click.pass_context
def set_credentials(ctx: click.Context, base_url: str | None, email: str | None, api_token: str | None) -> None:
    """Store integration credentials.

    Only the values passed are changed. With no options, every value is
    prompted for. Passing an empty value removes it.
    """
    updates: dict[str, str] = {}
    if base_url is not None:
        updates["base_url"] = base_url
    if email is not None:
        updates["email"] = email
    if api_token is not None:
        updates["api_token"] = api_token

    if not updates:
        updates = {
            "base_url": click.prompt("Jira URL"),
            "email": click.prompt("Email"),
            "api_token": click.prompt("API token", hide_input=True),
        }

    try:
        credentials = _open_store(ctx).save(**updates)
    except CredentialError as e:
        _fail(e)
        return
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style("Credentials stored successfully", fg="green"))
    if not credentials.is_complete:
        click.echo(click.style("Jira URL, email and API token are all required for ticket lookup", fg="yellow"))


@credentials_group.command(name="show")
@click.option("--show-token", is_flag=True, help="Show full API token (default: masked)")
@click.pass_context
def show_credentials(ctx: click.Context, show_token: bool) -> None:
    """Display the stored credentials."""
    try:
        credentials = _open_store(ctx).load()
    except CredentialError as e:
        _fail(e)
        return

    not_set = click.style("(not set)", fg="yellow")
    click.echo(f"Jira URL:  {credentials.base_url or not_set}")
    click.echo(f"Email:     {credentials.email or not_set}")
    if credentials.api_token:
        token = credentials.api_token if show_token else _mask(credentials.api_token)
        click.echo(f"API token: {token}")
        if not show_token:
            click.echo(click.style("Use --show-token to display the full token", fg="yellow"))
    else:
        click.echo(f"API token: {not_set}")

    if credentials.is_complete:
        click.echo(click.style("Integration configured", fg="green"))
    else:
        click.echo(click.style("Integration not configured", fg="yellow"))


@credentials_group.command(name="clear")
@click.confirmation_option(prompt="Are you sure you want to remove the Jira credentials?")
@click.pass_context
def clear_credentials(ctx: click.Context) -> None:
    """Remove every stored credential value."""
    try:
        _open_store(ctx).reset()
    except CredentialError as e:
        _fail(e)
        return

    click.echo(click.style("Credentials cleared", fg="green"))


@credentials_group.command(name="test")
def test_credentials() -> None:
    """Check which credential backends are available."""
    click.echo(click.style("Testing credential backends...", bold=True))
    click.echo()

    click.echo("Keyring backend: ", nl=False)
    if KeyringBackend().available:
        click.echo(click.style("Available", fg="green"))
    else:
        click.echo(click.style("Not available", fg="yellow"))
        click.echo("  Configure a system keyring or use --backend environment")

    click.echo("Environment backend: ", nl=False)
    if EnvironmentBackend().available:
        click.echo(click.style("Available", fg="green"))
