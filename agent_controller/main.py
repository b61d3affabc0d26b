"""CLI entry point for agent-controller."""

import asyncio
import sys

import click
import structlog

from agent_controller.cli.credentials import credentials_group
from agent_controller.config.settings import ControllerSettings
from agent_controller.credentials import IntegrationCredentialStore, create_backend
from agent_controller.engine.session import WorkflowSession
from agent_controller.enums import InitializationState
from agent_controller.exceptions import AgentControllerError, ConfigurationError
from agent_controller.host import DirectoryPicker, LocalHost
from agent_controller.models.domain import PromptResult, StatusSnapshot, Ticket, TicketLookupFailure
from agent_controller.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--config",
    default=None,
    type=click.Path(dir_okay=False),
    help="Path to configuration file (default: ~/.config/agent-controller/config.yaml)",
)
@click.option("--log-level", default=None, help="Logging level (overrides the config file)")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """agent-controller: drive a coding agent from tickets to plans."""
    try:
        settings = ControllerSettings.load(config)
    except ConfigurationError as e:
        configure_logging(log_level or "INFO")
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    configure_logging(log_level or settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


cli.add_command(credentials_group)


def _prompt_for_directory() -> str | None:
    value = click.prompt("Project directory", default="", show_default=False)
    return value or None


def _build_session(settings: ControllerSettings, picker: DirectoryPicker | None = None) -> WorkflowSession:
    store = IntegrationCredentialStore(create_backend(settings.jira.credential_backend), settings.jira.store_name)
    host = LocalHost(settings, picker=picker)
    return WorkflowSession.from_settings(settings, host, store)


def _status_printer():
    last: list[tuple[str, str]] = []

    def echo(snapshot: StatusSnapshot) -> None:
        current = (str(snapshot.status), snapshot.detail)
        if last and last[-1] == current:
            return
        last.append(current)
        color = {"error": "red", "idle": "green", "completed": "green"}.get(current[0])
        click.echo(click.style(f"[{snapshot.status.label}] {snapshot.detail}", fg=color))

    return echo


def _echo_reply(result: PromptResult | None) -> None:
    if result is None:
        click.echo(click.style("Prompt failed", fg="red"), err=True)
        return
    click.echo()
    click.echo(result.text or "[no content received]")
    click.echo()
    click.echo(f"Stop reason: {result.stop_reason}")


def _echo_ticket(ticket: Ticket) -> None:
    click.echo(click.style(f"{ticket.key}: {ticket.title}", bold=True))
    click.echo(f"  Type:     {ticket.issue_type}")
    click.echo(f"  Priority: {ticket.priority}")
    click.echo(f"  Status:   {ticket.status}")
    click.echo(f"  Assignee: {ticket.assignee}")
    click.echo(f"  Created:  {ticket.created_date}")
    click.echo()
    click.echo(ticket.description)


async def _prepare_workspace(session: WorkflowSession, directory: str | None) -> None:
    """Run initialization to the ready state or raise."""
    if session.refresh() is InitializationState.CREDENTIAL_CHECK:
        raise ConfigurationError(
            "Configure Jira credentials in Integrations before starting: run 'agent-controller credentials set'"
        )

    if directory:
        session.set_directory(directory)
    elif await session.select_directory() is None:
        raise ConfigurationError("No working directory selected")

    await session.initialize()
    if not session.workflow_ready:
        raise AgentControllerError(session.status.detail)


async def _run_init(settings: ControllerSettings, directory: str | None, prompt_text: str | None) -> None:
    session = _build_session(settings, picker=_prompt_for_directory)
    unsubscribe = session.status.subscribe(_status_printer())
    try:
        await _prepare_workspace(session, directory)
        click.echo(click.style(f"Workspace ready: {session.directory}", fg="green"))
        if prompt_text:
            _echo_reply(await session.run_prompt(prompt_text))
    finally:
        unsubscribe()
        await session.close()


async def _run_ticket(settings: ControllerSettings, key: str, plan: bool, directory: str | None) -> None:
    session = _build_session(settings)
    unsubscribe = session.status.subscribe(_status_printer())
    try:
        result = await session.lookup_ticket(key)
        if result is None:
            raise click.UsageError("Ticket key cannot be blank")
        if isinstance(result, TicketLookupFailure):
            raise AgentControllerError(result.message)

        _echo_ticket(result)
        if plan:
            click.echo()
            await _prepare_workspace(session, directory)
            click.echo(click.style(f"Start planning for {result.key}", bold=True))
            _echo_reply(await session.start_planning(result))
    finally:
        unsubscribe()
        await session.close()


async def _run_search(settings: ControllerSettings, jql: str, max_results: int) -> None:
    session = _build_session(settings)
    try:
        result = await session.search_tickets(jql, max_results=max_results)
        if isinstance(result, TicketLookupFailure):
            raise AgentControllerError(result.message)

        if not result:
            click.echo("No tickets found")
            return
        for ticket in result:
            click.echo(f"{ticket.key:<12} {ticket.issue_type!s:<6} {ticket.priority!s:<9} {ticket.status:<14} {ticket.title}")
    finally:
        await session.close()


@cli.command()
@click.option(
    "--directory",
    "-d",
    type=click.Path(exists=True, file_okay=False),
    help="Project directory (prompted for when omitted)",
)
@click.option("--prompt", "prompt_text", help="Prompt to send once the workspace is ready")
@click.pass_context
def init(ctx: click.Context, directory: str | None, prompt_text: str | None) -> None:
    """Start the agent in a project directory and wait until it is ready."""
    try:
        settings = ctx.obj["settings"]
        asyncio.run(_run_init(settings, directory, prompt_text))
    except AgentControllerError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        log.debug("init_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)


@cli.command()
@click.argument("key")
@click.option("--plan", is_flag=True, help="Send the planning prompt for the ticket")
@click.option(
    "--directory",
    "-d",
    type=click.Path(exists=True, file_okay=False),
    help="Project directory the agent plans in (required with --plan)",
)
@click.pass_context
def ticket(ctx: click.Context, key: str, plan: bool, directory: str | None) -> None:
    """Look up a Jira ticket and optionally start planning it."""
    if plan and not directory:
        raise click.UsageError("--plan requires --directory")

    try:
        settings = ctx.obj["settings"]
        asyncio.run(_run_ticket(settings, key, plan, directory))
    except AgentControllerError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        log.debug("ticket_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)


@cli.command()
@click.argument("jql")
@click.option("--max-results", type=click.IntRange(min=1), default=50, show_default=True, help="Maximum tickets to list")
@click.pass_context
def search(ctx: click.Context, jql: str, max_results: int) -> None:
    """List Jira tickets matching a JQL query."""
    try:
        settings = ctx.obj["settings"]
        asyncio.run(_run_search(settings, jql, max_results))
    except AgentControllerError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        log.debug("search_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)


if __name__ == "__main__":
    cli()
