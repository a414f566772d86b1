"""Signal dispatcher for the supervisor.

Translates OS signals into SupervisorEvents and feeds them into the
supervisor's event stream, so that signal handling happens on the event
loop, one event at a time, rather than in interrupt context.
"""

import signal
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc
from anyio.streams.memory import MemoryObjectSendStream

from ._models import SupervisorEvent, SupervisorEventType

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

DEFAULT_SIGNAL_EVENTS: Mapping[int, SupervisorEventType] = MappingProxyType(
    {
        signal.SIGHUP: SupervisorEventType.RESTART,
        signal.SIGCHLD: SupervisorEventType.CHILD_EXITED,
        signal.SIGTERM: SupervisorEventType.TERMINATE,
        signal.SIGINT: SupervisorEventType.TERMINATE,
    }
)


@final
class SignalDispatcher:
    """Routes subscribed signals to supervisor events."""

    __slots__ = ("_logger", "_mapping")

    def __init__(
        self,
        logger: "FilteringBoundLogger",  # noqa: UP037
        mapping: Mapping[int, SupervisorEventType] = DEFAULT_SIGNAL_EVENTS,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            logger: Log sink.
            mapping: Signal number to event type routing table.
        """
        self._logger = logger
        self._mapping = mapping

    @property
    def signals(self) -> tuple[int, ...]:
        """Return the subscribed signal numbers."""
        return tuple(self._mapping)

    def to_event(self, signum: int) -> SupervisorEvent | None:
        """Translate a signal number into an event.

        Returns:
            The event, or None for a signal that is not routed.
        """
        event_type = self._mapping.get(signum)
        if event_type is None:
            return None
        return SupervisorEvent(event_type=event_type, signum=signum)

    async def run(
        self,
        events: MemoryObjectSendStream[SupervisorEvent],
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        """Forward signals to the event stream until cancelled.

        Reports started once the handlers are installed, so no signal
        arriving after task_group.start() returns is lost.

        Args:
            events: Stream the supervisor consumes events from.
            task_status: anyio task status used by TaskGroup.start().
        """
        with anyio.open_signal_receiver(*self.signals) as signals:
            task_status.started()
            async with events:
                async for signum in signals:
                    event = self.to_event(signum)
                    if event is None:
                        continue
                    self._logger.debug(
                        "signal_received",
                        signal=signal.Signals(signum).name,
                        event_type=event.event_type.value,
                    )
                    await events.send(event)
