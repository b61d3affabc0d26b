"""Workflow session: the object that owns all shared workflow state.

A WorkflowSession wires the gates, the status channel and the initializer
to a host bridge and exposes the user actions (choose a directory, refresh
credentials, look up a ticket, send a prompt). Nothing here is global; two
sessions never share state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import structlog

from agent_controller.config.settings import ControllerSettings
from agent_controller.credentials.store import IntegrationCredentialStore
from agent_controller.engine.gates import CredentialGate, DirectoryGate
from agent_controller.engine.initializer import WorkflowInitializer
from agent_controller.engine.status import AgentStatusChannel
from agent_controller.enums import AgentStatus, FailureReason, InitializationState
from agent_controller.exceptions import AgentControllerError
from agent_controller.host import HostBridge
from agent_controller.models.domain import PromptResult, Ticket, TicketLookupFailure
from agent_controller.providers.normalizer import normalize_ticket

log = structlog.get_logger(__name__)

NOT_CONFIGURED_MESSAGE = "Configure Jira credentials in Integrations before searching."
PROMPT_PENDING_DETAIL = "Waiting for agent reply..."
NOT_READY_DETAIL = "Workspace is not ready. Select a working directory first."

PLANNING_TEMPLATE = """\
Plan the implementation of Jira ticket {key}.

Title: {title}
Type: {issue_type}
Priority: {priority}
Status: {status}

Description:
{description}

Inspect the project in the current working directory and produce a step-by-step
plan. Do not modify any files yet."""


class WorkflowSession:
    """Coordinator for one workspace.

    Attributes:
        host: Bridge to the agent runtime, the tracker and the user
        credential_gate: Reads the persisted integration credentials
        directory_gate: Holds the selected project directory
        status: The authoritative agent status channel
        initializer: The initialization state machine
    """

    def __init__(
        self,
        host: HostBridge,
        store: IntegrationCredentialStore,
        *,
        settle_interval: float = 1.5,
        use_cli_auth: bool = True,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.host = host
        self.credential_gate = CredentialGate(store)
        self.directory_gate = DirectoryGate()
        self.status = AgentStatusChannel()
        self.initializer = WorkflowInitializer(
            self.credential_gate,
            self.directory_gate,
            self.status,
            host,
            settle_interval=settle_interval,
            use_cli_auth=use_cli_auth,
            sleep=sleep,
        )

    @classmethod
    def from_settings(
        cls,
        settings: ControllerSettings,
        host: HostBridge,
        store: IntegrationCredentialStore,
    ) -> WorkflowSession:
        return cls(
            host,
            store,
            settle_interval=settings.workflow.settle_interval,
            use_cli_auth=settings.agent.use_cli_auth,
        )

    @property
    def state(self) -> InitializationState:
        return self.initializer.state

    @property
    def workflow_ready(self) -> bool:
        return self.initializer.workflow_ready

    @property
    def directory(self) -> str | None:
        return self.directory_gate.directory

    # === Initialization ===

    def refresh(self) -> InitializationState:
        """Re-check the gates, e.g. after credentials were edited."""
        while self.initializer.evaluate():
            pass
        return self.initializer.state

    async def select_directory(self) -> str | None:
        """Ask the host for a directory and apply it.

        Returns:
            The selected directory, or None if the user cancelled
        """
        chosen = await self.host.select_working_directory()
        if chosen is None:
            log.info("directory_selection_cancelled")
            return None
        return self.set_directory(chosen)

    def set_directory(self, directory: str | Path) -> str:
        """Apply a directory choice and start initialization for it."""
        selected = self.directory_gate.select(directory)
        self.initializer.on_directory_changed(selected)
        self.refresh()
        return selected

    async def initialize(self) -> InitializationState:
        """Drive initialization as far as it can go and wait for it to settle."""
        return await self.initializer.initialize()

    # === Tickets ===

    async def lookup_ticket(self, issue_key: str) -> Ticket | TicketLookupFailure | None:
        """Fetch and normalize one ticket.

        Returns:
            None for a blank key, a Ticket, or a TicketLookupFailure. Never raises.
        """
        issue_key = issue_key.strip()
        if not issue_key:
            return None

        credentials = self.credential_gate.credentials()
        if not credentials.is_complete:
            return TicketLookupFailure(FailureReason.NOT_CONFIGURED, NOT_CONFIGURED_MESSAGE)

        try:
            raw = await self.host.fetch_issue(
                base_url=credentials.base_url,
                email=credentials.email,
                api_token=credentials.api_token,
                issue_key=issue_key,
            )
        except Exception as e:
            log.warning("ticket_fetch_failed", issue_key=issue_key, error=str(e))
            return TicketLookupFailure(FailureReason.FETCH_FAILED, f"Failed to fetch ticket {issue_key}")

        result = normalize_ticket(raw, issue_key)
        if isinstance(result, Ticket):
            log.info("ticket_loaded", issue_key=result.key)
        else:
            log.info("ticket_not_found", issue_key=issue_key)
        return result

    async def search_tickets(self, jql: str, max_results: int | None = None) -> list[Ticket] | TicketLookupFailure:
        """Run a JQL search and normalize every returned issue.

        Records that do not normalize into a ticket are skipped.
        """
        credentials = self.credential_gate.credentials()
        if not credentials.is_complete:
            return TicketLookupFailure(FailureReason.NOT_CONFIGURED, NOT_CONFIGURED_MESSAGE)

        try:
            page = await self.host.search_issues(
                base_url=credentials.base_url,
                email=credentials.email,
                api_token=credentials.api_token,
                jql=jql,
                max_results=max_results,
            )
        except Exception as e:
            log.warning("ticket_search_failed", jql=jql, error=str(e))
            return TicketLookupFailure(FailureReason.FETCH_FAILED, f"Failed to search tickets: {e}")

        issues = page.get("issues") if isinstance(page, dict) else None
        tickets = [normalize_ticket(raw) for raw in issues or []]
        return [ticket for ticket in tickets if isinstance(ticket, Ticket)]

    # === Prompts ===

    async def run_prompt(self, text: str) -> PromptResult | None:
        """Send a prompt to the agent, reporting progress on the status channel.

        Returns:
            The agent's reply, or None if the prompt failed or the workflow
            is not ready
        """
        if not self.workflow_ready:
            log.warning("agent_prompt_refused", state=str(self.state))
            self.status.set(AgentStatus.ERROR, NOT_READY_DETAIL)
            return None

        self.status.set(AgentStatus.THINKING, PROMPT_PENDING_DETAIL)
        try:
            result = await self.host.agent_prompt(text=text)
        except Exception as e:
            detail = e.message if isinstance(e, AgentControllerError) else str(e)
            log.error("agent_prompt_failed", error=detail)
            self.status.set(AgentStatus.ERROR, detail)
            return None

        self.status.set(AgentStatus.COMPLETED, f"Stop reason: {result.stop_reason}")
        return result

    @staticmethod
    def planning_prompt(ticket: Ticket) -> str:
        """Build the prompt that starts planning for a ticket."""
        return PLANNING_TEMPLATE.format(
            key=ticket.key,
            title=ticket.title,
            issue_type=ticket.issue_type,
            priority=ticket.priority,
            status=ticket.status,
            description=ticket.description,
        )

    async def start_planning(self, ticket: Ticket) -> PromptResult | None:
        """Send the planning prompt for a ticket."""
        log.info("planning_started", issue_key=ticket.key)
        return await self.run_prompt(self.planning_prompt(ticket))

    async def close(self) -> None:
        await self.host.close()
