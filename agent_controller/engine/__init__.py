"""Workflow engine: workspace initialization and the agent status channel.

Key Components:
    - WorkflowSession: Coordinator owning every piece of workflow state
    - WorkflowInitializer: Initialization state machine
    - AgentStatusChannel: Shared status/detail slot
    - CredentialGate, DirectoryGate: Initialization inputs
"""

from agent_controller.engine.gates import CredentialGate, DirectoryGate
from agent_controller.engine.initializer import WorkflowInitializer
from agent_controller.engine.session import WorkflowSession
from agent_controller.engine.status import AgentStatusChannel

__all__ = [
    "AgentStatusChannel",
    "CredentialGate",
    "DirectoryGate",
    "WorkflowInitializer",
    "WorkflowSession",
]
