"""Stdio client for agent-client-protocol (ACP) communication.

This module implements the client side of ACP: JSON-RPC 2.0 messages, one
per line, exchanged with the agent subprocess over stdin/stdout. Unlike a
plain request/response server, the agent interleaves three kinds of
messages while a request is outstanding:

* the response to our request (matched by id);
* ``session/update`` notifications carrying streamed message chunks;
* requests of its own (``fs/read_text_file``, ``fs/write_text_file``,
  permission and terminal requests) that must be answered before it
  continues.

Example:
    Using the client with a running agent process::

        client = AcpClient("claude-code-acp", process, root=Path("/work/project"))
        await client.initialize()
        session_id = await client.new_session(Path("/work/project"))
        result = await client.prompt(session_id, "Summarise the README")
        print(result.text)
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, cast

import structlog

from agent_controller.exceptions import (
    AgentNotRunningError,
    AgentProtocolError,
    AgentTimeoutError,
)
from agent_controller.models.domain import PromptResult

log = structlog.get_logger(__name__)

PROTOCOL_VERSION = 1

METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603


class AcpClient:
    """Client for communicating with an ACP agent via stdio.

    Requests are serialized with an asyncio.Lock; agent-initiated requests
    and notifications are handled inline while a response is awaited.

    Attributes:
        name: The agent launcher name (for error messages).
        root: Project root that relative file paths resolve against.
    """

    def __init__(self, name: str, process: asyncio.subprocess.Process, root: Path) -> None:
        self.name = name
        self.root = root
        self._process = process
        self._request_id = 0
        self._lock = asyncio.Lock()
        self._chunks: dict[str, list[str]] = {}

    @property
    def is_running(self) -> bool:
        """Check if the agent process is still running."""
        return self._process.returncode is None

    # === Protocol methods ===

    async def initialize(self, *, timeout: float | None = 60.0) -> dict[str, Any]:
        """Negotiate the protocol version and advertise client capabilities."""
        return await self._send_request(
            "initialize",
            {
                "protocolVersion": PROTOCOL_VERSION,
                "clientCapabilities": {
                    "fs": {"readTextFile": True, "writeTextFile": True},
                    "terminal": False,
                },
            },
            timeout=timeout,
        )

    async def new_session(self, cwd: Path, *, timeout: float | None = 60.0) -> str:
        """Open a session rooted at cwd and return its id.

        Raises:
            AgentProtocolError: If the agent does not return a session id
        """
        result = await self._send_request(
            "session/new",
            {"cwd": str(cwd), "mcpServers": []},
            timeout=timeout,
        )
        session_id = result.get("sessionId")
        if not isinstance(session_id, str) or not session_id:
            raise AgentProtocolError("session/new returned no sessionId", agent=self.name)
        return session_id

    async def prompt(self, session_id: str, text: str, *, timeout: float | None = None) -> PromptResult:
        """Send one user turn and collect the agent's streamed reply.

        Args:
            session_id: Session returned by new_session
            text: Prompt text
            timeout: Seconds to wait for the turn to end (None waits forever)

        Returns:
            PromptResult with the stop reason and the concatenated reply text.
        """
        self._chunks[session_id] = []
        try:
            result = await self._send_request(
                "session/prompt",
                {"sessionId": session_id, "prompt": [{"type": "text", "text": text}]},
                timeout=timeout,
            )
            reply = "".join(self._chunks.get(session_id, []))
        finally:
            self._chunks.pop(session_id, None)

        meta = result.get("_meta")
        return PromptResult(
            stop_reason=str(result.get("stopReason", "end_turn")),
            text=reply,
            meta=meta if isinstance(meta, dict) else None,
        )

    # === Transport ===

    async def _send_request(
        self,
        method: str,
        params: dict[str, Any],
        *,
        timeout: float | None = 60.0,
    ) -> dict[str, Any]:
        """Send a JSON-RPC request and wait for its response.

        Raises:
            AgentNotRunningError: If the agent process is not running
            AgentTimeoutError: If the response does not arrive in time
            AgentProtocolError: If the agent answers with an error or garbage
        """
        if not self.is_running:
            raise AgentNotRunningError("Agent process has exited", agent=self.name)

        async with self._lock:
            self._request_id += 1
            request_id = self._request_id

            await self._write({"jsonrpc": "2.0", "id": request_id, "method": method, "params": params})

            try:
                return await asyncio.wait_for(self._read_until_response(request_id, method), timeout=timeout)
            except TimeoutError:
                raise AgentTimeoutError(f"Request {method} timed out after {timeout}s", agent=self.name)

    async def _read_until_response(self, request_id: int, method: str) -> dict[str, Any]:
        while True:
            message = await self._read_message()

            if "method" in message:
                if "id" in message:
                    await self._answer_agent_request(message)
                else:
                    self._handle_notification(message)
                continue

            if message.get("id") != request_id:
                log.debug("acp_unexpected_response", agent=self.name, expected=request_id, got=message.get("id"))
                continue

            if "error" in message:
                error = message["error"] if isinstance(message["error"], dict) else {}
                raise AgentProtocolError(
                    f"{method} failed: [{error.get('code', 'unknown')}] {error.get('message', 'Unknown error')}",
                    agent=self.name,
                    code=error.get("code"),
                    data=error.get("data"),
                )

            result = message.get("result")
            return cast(dict[str, Any], result) if isinstance(result, dict) else {}

    async def _read_message(self) -> dict[str, Any]:
        if self._process.stdout is None:
            raise AgentNotRunningError("No stdout available", agent=self.name)

        while True:
            try:
                line = await self._process.stdout.readline()
            except ValueError as e:
                raise AgentProtocolError(f"Agent message too long: {e}", agent=self.name) from e
            if not line:
                if self._process.returncode is not None:
                    raise AgentNotRunningError(
                        f"Agent exited with code {self._process.returncode}", agent=self.name
                    )
                raise AgentNotRunningError("Agent closed its output stream", agent=self.name)

            if not line.strip():
                continue

            try:
                message = json.loads(line.decode())
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise AgentProtocolError(f"Invalid JSON from agent: {e}", agent=self.name) from e

            if not isinstance(message, dict):
                raise AgentProtocolError("Agent message is not a JSON object", agent=self.name)
            return message

    async def _write(self, message: dict[str, Any]) -> None:
        if self._process.stdin is None:
            raise AgentNotRunningError("No stdin available", agent=self.name)

        try:
            self._process.stdin.write(json.dumps(message).encode() + b"\n")
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise AgentNotRunningError(f"Agent closed its input stream: {e}", agent=self.name) from e

    # === Agent-initiated traffic ===

    def _handle_notification(self, message: dict[str, Any]) -> None:
        if message.get("method") != "session/update":
            return

        params = message.get("params")
        if not isinstance(params, dict):
            return
        session_id = params.get("sessionId")
        if not isinstance(session_id, str) or session_id not in self._chunks:
            return

        update = params.get("update")
        if not isinstance(update, dict) or update.get("sessionUpdate") != "agent_message_chunk":
            return

        content = update.get("content")
        if isinstance(content, dict) and content.get("type") == "text" and isinstance(content.get("text"), str):
            self._chunks[session_id].append(content["text"])

    async def _answer_agent_request(self, message: dict[str, Any]) -> None:
        method = message.get("method")
        params = message.get("params")
        if not isinstance(params, dict):
            params = {}
        reply: dict[str, Any] = {"jsonrpc": "2.0", "id": message["id"]}

        try:
            if method == "fs/read_text_file":
                reply["result"] = {"content": await self._read_text_file(params)}
            elif method == "fs/write_text_file":
                await self._write_text_file(params)
                reply["result"] = None
            else:
                log.debug("acp_request_unsupported", agent=self.name, method=method)
                reply["error"] = {"code": METHOD_NOT_FOUND, "message": f"{method} not supported"}
        except (OSError, KeyError, TypeError, ValueError) as e:
            log.warning("acp_request_failed", agent=self.name, method=method, error=str(e))
            reply["error"] = {"code": INTERNAL_ERROR, "message": f"{method} failed: {e}"}

        await self._write(reply)

    def _resolve(self, path: str) -> Path:
        root = self.root.resolve()
        resolved = (root / path).resolve()
        if not resolved.is_relative_to(root):
            raise ValueError(f"{path} is outside the project root")
        return resolved

    async def _read_text_file(self, params: dict[str, Any]) -> str:
        path = self._resolve(params["path"])
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")

        line = params.get("line")
        limit = params.get("limit")
        if line is None and limit is None:
            return content

        lines = content.splitlines(keepends=True)
        start = max(int(line or 1) - 1, 0)
        end = start + int(limit) if limit is not None else None
        return "".join(lines[start:end])

    async def _write_text_file(self, params: dict[str, Any]) -> None:
        path = self._resolve(params["path"])
        content = params["content"]
        if not isinstance(content, str):
            raise TypeError("content must be a string")

        def write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        await asyncio.to_thread(write)
        log.info("acp_file_written", agent=self.name, path=str(path))

    async def close(self) -> None:
        """Close the agent's stdin (does not terminate the process)."""
        if self._process.stdin and not self._process.stdin.is_closing():
            self._process.stdin.close()
            await self._process.stdin.wait_closed()
