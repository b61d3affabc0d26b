"""Host bridge: the side-effecting operations the workflow engine depends on.

The engine only talks to the outside world through a HostBridge. LocalHost
is the in-process implementation used by the command line; tests pass
AsyncMock objects that satisfy the same protocol.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Protocol

import structlog

from agent_controller.agent.session import AgentSession
from agent_controller.config.settings import AgentConfig, ControllerSettings
from agent_controller.exceptions import AgentNotRunningError, AgentStartError
from agent_controller.models.domain import PromptResult
from agent_controller.providers.jira_rest import JiraRestClient

log = structlog.get_logger(__name__)

DirectoryPicker = Callable[[], str | None]
SessionFactory = Callable[[str, AgentConfig, bool], Awaitable[AgentSession]]


class HostBridge(Protocol):
    """Operations provided by the host environment."""

    async def select_working_directory(self) -> str | None:
        """Ask the user for a project directory; None if they cancelled."""
        ...

    async def agent_start(self, *, project_root: str, use_cli_auth: bool = True) -> None:
        """Start the agent runtime for project_root; raises on failure."""
        ...

    async def fetch_issue(self, *, base_url: str, email: str, api_token: str, issue_key: str) -> Any:
        """Fetch one raw issue record from the tracker."""
        ...

    async def search_issues(
        self,
        *,
        base_url: str,
        email: str,
        api_token: str,
        jql: str,
        max_results: int | None = None,
    ) -> dict[str, Any]:
        """Run a tracker search; returns ``{"issues": [...]}``."""
        ...

    async def agent_stop(self) -> None:
        """Stop the agent runtime, including a start that has not finished yet."""
        ...

    async def agent_prompt(self, *, text: str) -> PromptResult:
        """Send a prompt to the running agent."""
        ...

    async def close(self) -> None:
        """Release the agent runtime and any other resources."""
        ...


async def _start_session(project_root: str, config: AgentConfig, use_cli_auth: bool) -> AgentSession:
    return await AgentSession.start(project_root, config, use_cli_auth)


class LocalHost:
    """In-process host backed by a real agent subprocess and Jira client.

    Exactly one agent session is live at a time: a new start closes the
    previous session first, and a start that completes after a newer start
    or a stop was requested closes its own session and raises AgentStartError.

    Example:
        >>> host = LocalHost(ControllerSettings(), picker=lambda: "/work/project")
        >>> await host.agent_start(project_root="/work/project")
        >>> result = await host.agent_prompt(text="Hello")
        >>> await host.close()
    """

    def __init__(
        self,
        settings: ControllerSettings,
        picker: DirectoryPicker | None = None,
        session_factory: SessionFactory = _start_session,
        jira_factory: Callable[..., JiraRestClient] = JiraRestClient,
    ) -> None:
        self.settings = settings
        self._picker = picker
        self._session_factory = session_factory
        self._jira_factory = jira_factory
        self._session: AgentSession | None = None
        self._start_requests = 0

    @property
    def session(self) -> AgentSession | None:
        return self._session

    async def select_working_directory(self) -> str | None:
        if self._picker is None:
            return None

        choice = self._picker()
        if choice is None or not str(choice).strip():
            return None
        return str(Path(str(choice).strip()).expanduser().resolve())

    async def agent_start(self, *, project_root: str, use_cli_auth: bool = True) -> None:
        self._start_requests += 1
        request = self._start_requests

        previous, self._session = self._session, None
        if previous is not None:
            log.info("agent_replacing_session", previous_root=str(previous.project_root))
            await previous.close()

        session = await self._session_factory(project_root, self.settings.agent, use_cli_auth)

        if request != self._start_requests:
            log.info("agent_start_superseded", project_root=project_root)
            await session.close()
            raise AgentStartError("Agent start superseded by a newer request")

        self._session = session

    async def fetch_issue(self, *, base_url: str, email: str, api_token: str, issue_key: str) -> Any:
        async with self._jira(base_url, email, api_token) as jira:
            return await jira.get_issue(issue_key)

    async def search_issues(
        self,
        *,
        base_url: str,
        email: str,
        api_token: str,
        jql: str,
        max_results: int | None = None,
    ) -> dict[str, Any]:
        async with self._jira(base_url, email, api_token) as jira:
            return await jira.search(jql, max_results=max_results)

    async def agent_prompt(self, *, text: str) -> PromptResult:
        if self._session is None or not self._session.is_running:
            raise AgentNotRunningError("Agent runtime not available")
        return await self._session.prompt(text)

    async def agent_stop(self) -> None:
        self._start_requests += 1
        session, self._session = self._session, None
        if session is not None:
            log.info("agent_stop_requested", project_root=str(session.project_root))
            await session.close()

    async def close(self) -> None:
        await self.agent_stop()

    def _jira(self, base_url: str, email: str, api_token: str) -> JiraRestClient:
        config = self.settings.jira
        return self._jira_factory(
            base_url,
            email,
            api_token,
            timeout=config.timeout,
            page_size=config.search_page_size,
            default_retry_after=config.default_retry_after,
            max_rate_limit_retries=config.max_rate_limit_retries,
        )
