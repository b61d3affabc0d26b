"""Lifecycle of one agent subprocess bound to a project directory.

An AgentSession owns the launched process, the ACP connection on its
stdio pipes and the protocol session opened for the project root.

Example:
    Starting an agent and sending a prompt::

        session = await AgentSession.start(Path("/work/project"), settings.agent)
        try:
            result = await session.prompt("List the open TODOs")
        finally:
            await session.close()
"""

from __future__ import annotations

import asyncio
import os
import signal
from pathlib import Path

import structlog

from agent_controller.agent.acp_client import AcpClient
from agent_controller.config.settings import AgentConfig
from agent_controller.exceptions import AgentError, AgentStartError
from agent_controller.models.domain import PromptResult

log = structlog.get_logger(__name__)


class AgentSession:
    """A running agent subprocess with an open protocol session.

    Attributes:
        project_root: Directory the agent was started in.
        session_id: Protocol session id returned by session/new.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        client: AcpClient,
        project_root: Path,
        session_id: str,
        config: AgentConfig,
    ) -> None:
        self.project_root = project_root
        self.session_id = session_id
        self._process = process
        self._client = client
        self._config = config
        self._closed = False

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def is_running(self) -> bool:
        return not self._closed and self._client.is_running

    @classmethod
    async def start(
        cls,
        project_root: str | Path,
        config: AgentConfig,
        use_cli_auth: bool | None = None,
    ) -> AgentSession:
        """Spawn the agent and complete the protocol handshake.

        Args:
            project_root: Directory the agent works in
            config: Agent launch configuration
            use_cli_auth: Override config.use_cli_auth for this launch

        Returns:
            A session ready to accept prompts

        Raises:
            AgentStartError: If the process cannot be spawned or the handshake fails
        """
        root = Path(project_root).expanduser().resolve()
        if not root.is_dir():
            raise AgentStartError(f"Project root is not a directory: {root}")

        cli_auth = config.use_cli_auth if use_cli_auth is None else use_cli_auth
        cmd = config.launch_command(cli_auth)
        name = cmd[0]

        env = os.environ.copy()
        if cli_auth:
            env["ACP_PERMISSION_MODE"] = config.permission_mode

        log.info("agent_spawning", cmd=cmd, project_root=str(root), use_cli_auth=cli_auth)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                env=env,
                cwd=str(root),
                start_new_session=True,
            )
        except FileNotFoundError as e:
            raise AgentStartError(f"Command not found: {name}", agent=name) from e
        except OSError as e:
            raise AgentStartError(f"Failed to spawn agent: {e}", agent=name) from e

        client = AcpClient(name, process, root)
        session = cls(process, client, root, "", config)

        try:
            await client.initialize(timeout=config.handshake_timeout)
            session.session_id = await client.new_session(root, timeout=config.handshake_timeout)
        except AgentError as e:
            log.error("agent_handshake_failed", agent=name, error=e.message)
            await session.close()
            raise AgentStartError(f"Agent handshake failed: {e.message}", agent=name) from e
        except Exception as e:
            log.error("agent_handshake_failed", agent=name, error=str(e), exc_info=True)
            await session.close()
            raise AgentStartError(f"Agent handshake failed: {e}", agent=name) from e
        except asyncio.CancelledError:
            await session.close()
            raise

        log.info("agent_started", agent=name, pid=process.pid, session_id=session.session_id)
        return session

    async def prompt(self, text: str) -> PromptResult:
        """Send one prompt turn to the session.

        Raises:
            AgentError: If the agent is gone or the turn fails
        """
        log.info("agent_prompt_sent", session_id=self.session_id, length=len(text))
        result = await self._client.prompt(self.session_id, text, timeout=self._config.prompt_timeout)
        log.info("agent_prompt_completed", session_id=self.session_id, stop_reason=result.stop_reason)
        return result

    async def close(self) -> None:
        """Stop the agent process.

        Terminates the process group, then kills it if it has not exited
        within the configured shutdown timeout. Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True

        process = self._process
        if process.returncode is not None:
            return

        log.info("agent_stopping", agent=self._client.name, pid=process.pid)
        try:
            await self._client.close()
        except (BrokenPipeError, ConnectionResetError):
            pass

        self._signal(signal.SIGTERM)
        try:
            await asyncio.wait_for(process.wait(), timeout=self._config.shutdown_timeout)
        except TimeoutError:
            log.warning("agent_kill", agent=self._client.name, reason="timeout")
            self._signal(getattr(signal, "SIGKILL", signal.SIGTERM))
            await process.wait()

    def _signal(self, sig: int) -> None:
        process = self._process
        if hasattr(os, "killpg"):
            try:
                os.killpg(os.getpgid(process.pid), sig)
                return
            except (ProcessLookupError, PermissionError):
                pass

        try:
            if sig == signal.SIGTERM:
                process.terminate()
            else:
                process.kill()
        except ProcessLookupError:
            pass
