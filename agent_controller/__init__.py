"""agent-controller: drive an AI coding agent through a ticket, plan and execute workflow."""

__version__ = "0.1.0"
