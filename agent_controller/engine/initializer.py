"""Workspace initialization state machine.

The initializer turns "credentials configured" and "directory selected"
into a running agent:

    credential-check -> directory-select -> starting-agent -> configuring -> ready

``evaluate()`` is called whenever one of the gates changes and advances at
most one step. Starting the agent and the settle wait run as an asyncio
task; every attempt carries a generation number so that an attempt
superseded by a directory change resolves without touching any state.

Example:
    Driving the machine to completion::

        initializer = WorkflowInitializer(credential_gate, directory_gate, channel, host)
        directory_gate.select("/work/project")
        state = await initializer.initialize()
        assert state is InitializationState.READY
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import TYPE_CHECKING, Any

import structlog

from agent_controller.engine.gates import CredentialGate, DirectoryGate
from agent_controller.engine.status import AgentStatusChannel
from agent_controller.enums import AgentStatus, InitializationState

if TYPE_CHECKING:
    from agent_controller.host import HostBridge

log = structlog.get_logger(__name__)

STARTING_DETAIL = "Starting agent subprocess..."
CONFIGURING_DETAIL = "Configuring workspace environment..."
READY_DETAIL = "Ready to begin workflow"
FAILURE_DETAIL = "Failed to initialize workspace. Please check your working directory."

_AGENT_STATES = (
    InitializationState.STARTING_AGENT,
    InitializationState.CONFIGURING,
    InitializationState.READY,
)


class WorkflowInitializer:
    """Moves a workspace from unconfigured to ready.

    Attributes:
        state: Current initialization step
        workflow_ready: True only while state is READY
    """

    def __init__(
        self,
        credentials: CredentialGate,
        directory: DirectoryGate,
        status: AgentStatusChannel,
        host: HostBridge,
        *,
        settle_interval: float = 1.5,
        use_cli_auth: bool = True,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._credentials = credentials
        self._directory = directory
        self._status = status
        self._host = host
        self.settle_interval = settle_interval
        self.use_cli_auth = use_cli_auth
        self._sleep = sleep

        self.state = InitializationState.CREDENTIAL_CHECK
        self.workflow_ready = False
        self._generation = 0
        self._attempted_revision = 0
        self._pending: set[asyncio.Task[None]] = set()

    def evaluate(self) -> bool:
        """Advance by at most one step if a precondition is newly met.

        Must be called from a running event loop, since leaving
        directory-select schedules the start attempt as a task.

        Returns:
            True if the state changed
        """
        if self.state is InitializationState.CREDENTIAL_CHECK:
            if self._credentials.is_configured():
                self._transition(InitializationState.DIRECTORY_SELECT)
                return True
            return False

        if self.state is InitializationState.DIRECTORY_SELECT:
            if not self._credentials.is_configured():
                self._transition(InitializationState.CREDENTIAL_CHECK)
                return True
            directory = self._directory.directory
            if directory is not None and self._directory.revision != self._attempted_revision:
                self._start_attempt(directory)
                return True

        return False

    def on_directory_changed(self, new_directory: str | None) -> None:
        """Reset after the user picked another directory.

        Any in-flight attempt keeps running but its result is discarded. If an
        agent was requested for the previous directory, the host is told to
        stop it, so no subprocess outlives the selection it was started for.
        """
        agent_requested = self.state in _AGENT_STATES
        self._generation += 1
        self.workflow_ready = False
        if self._credentials.is_configured():
            self._transition(InitializationState.DIRECTORY_SELECT)
        else:
            self._transition(InitializationState.CREDENTIAL_CHECK)
        log.info("workspace_directory_changed", directory=new_directory, generation=self._generation)
        if agent_requested:
            self._track(self._stop_agent(self._generation))

    async def initialize(self) -> InitializationState:
        """Evaluate until nothing advances, waiting for each attempt to finish.

        Returns:
            The state once no further progress is possible
        """
        while True:
            while self.evaluate():
                pass
            if not self._pending:
                return self.state
            await self.wait_settled()

    async def wait_settled(self) -> None:
        """Wait until every running start or stop has resolved."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _transition(self, new_state: InitializationState) -> None:
        if new_state is self.state:
            return
        log.info("initialization_state_changed", from_state=str(self.state), to_state=str(new_state))
        self.state = new_state

    def _start_attempt(self, directory: str) -> None:
        self._generation += 1
        self._attempted_revision = self._directory.revision
        generation = self._generation

        self._transition(InitializationState.STARTING_AGENT)
        self._status.set(AgentStatus.PROCESSING, STARTING_DETAIL)

        self._track(self._run_attempt(generation, directory))

    def _track(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _stop_agent(self, generation: int) -> None:
        try:
            await self._host.agent_stop()
        except Exception as e:
            log.warning("agent_stop_failed", generation=generation, error=str(e))

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    async def _run_attempt(self, generation: int, directory: str) -> None:
        log.info("agent_start_requested", directory=directory, generation=generation)

        try:
            await self._host.agent_start(project_root=directory, use_cli_auth=self.use_cli_auth)
        except Exception as e:
            if self._is_stale(generation):
                log.info("agent_start_failed_stale", directory=directory, generation=generation, error=str(e))
                return
            log.error("agent_start_failed", directory=directory, error=str(e), exc_info=True)
            self._status.set(AgentStatus.ERROR, FAILURE_DETAIL)
            self._status.set_agent_available(False)
            self._transition(InitializationState.DIRECTORY_SELECT)
            return

        if self._is_stale(generation):
            log.info("agent_start_stale", directory=directory, generation=generation)
            return

        self._transition(InitializationState.CONFIGURING)
        self._status.set_detail(CONFIGURING_DETAIL)

        await self._sleep(self.settle_interval)
        if self._is_stale(generation):
            log.info("agent_configure_stale", directory=directory, generation=generation)
            return

        self._transition(InitializationState.READY)
        self._status.set(AgentStatus.IDLE, READY_DETAIL)
        self._status.set_agent_available(True)
        self.workflow_ready = True
        log.info("workflow_ready", directory=directory)
