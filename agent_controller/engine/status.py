"""The single shared agent status slot."""

from collections.abc import Callable

import structlog

from agent_controller.enums import AgentStatus
from agent_controller.models.domain import StatusSnapshot

log = structlog.get_logger(__name__)

INITIAL_DETAIL = "Waiting for instructions"

StatusListener = Callable[[StatusSnapshot], None]


class AgentStatusChannel:
    """Authoritative (status, detail) pair read by every status surface.

    Writes overwrite unconditionally (last writer wins). Listeners are
    called synchronously after each write with the new snapshot.
    """

    def __init__(self) -> None:
        self._snapshot = StatusSnapshot(AgentStatus.IDLE, INITIAL_DETAIL)
        self._listeners: list[StatusListener] = []

    @property
    def status(self) -> AgentStatus:
        return self._snapshot.status

    @property
    def detail(self) -> str:
        return self._snapshot.detail

    @property
    def agent_available(self) -> bool | None:
        return self._snapshot.agent_available

    def snapshot(self) -> StatusSnapshot:
        return self._snapshot

    def set(self, status: AgentStatus, detail: str) -> None:
        """Overwrite both status and detail."""
        self._publish(StatusSnapshot(status, detail, self._snapshot.agent_available))

    def set_detail(self, detail: str) -> None:
        """Overwrite the detail, keeping the current status."""
        self._publish(StatusSnapshot(self._snapshot.status, detail, self._snapshot.agent_available))

    def set_agent_available(self, available: bool | None) -> None:
        """Record whether the agent runtime is up (None means unknown)."""
        self._publish(StatusSnapshot(self._snapshot.status, self._snapshot.detail, available))

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: StatusSnapshot) -> None:
        self._snapshot = snapshot
        log.debug(
            "agent_status_changed",
            status=str(snapshot.status),
            detail=snapshot.detail,
            agent_available=snapshot.agent_available,
        )
        for listener in list(self._listeners):
            listener(snapshot)
