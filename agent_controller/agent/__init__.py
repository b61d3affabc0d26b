"""Agent subprocess management over agent-client-protocol (ACP).

Exports:
    AcpClient: JSON-RPC client for an agent's stdio pipes.
    AgentSession: A launched agent with an open protocol session.
"""

from agent_controller.agent.acp_client import AcpClient
from agent_controller.agent.session import AgentSession

__all__ = ["AcpClient", "AgentSession"]
