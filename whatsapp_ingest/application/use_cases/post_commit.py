"""Post-commit fan-out of real-time notifications."""

import asyncio
import logging
from typing import Any, Callable, Iterable, Optional

from whatsapp_ingest.application.dtos.notifications import RealtimeNotification
from whatsapp_ingest.application.ports.realtime_publisher import RealtimePublisher


class PostCommitDispatcher:
    """
    Publishes notifications of a committed transaction on background tasks.

    Handlers collect the notifications of a transaction in a local list and hand
    them over only after ``commit()`` returned, so a rolled-back transaction never
    publishes anything. Each notification gets its own task; a failing publish is
    logged and never reaches the webhook response.
    """

    def __init__(
        self,
        publisher: RealtimePublisher,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize dispatcher.

        Args:
            publisher: Real-time publish primitive
            logger: Optional structured logger function (component, event, level, **kwargs)
        """
        self._publisher = publisher
        self._logger = logger
        self._tasks: set[asyncio.Task] = set()

    def _log(self, event: str, level: int = logging.INFO, **kwargs: Any) -> None:
        if self._logger:
            self._logger("post_commit", event, level, **kwargs)

    def dispatch(self, notifications: Iterable[RealtimeNotification]) -> int:
        """
        Start one publish task per notification.

        Args:
            notifications: Notifications of a committed transaction

        Returns:
            Number of tasks started
        """
        started = 0
        for notification in notifications:
            task = asyncio.create_task(self._publish(notification))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            started += 1
        return started

    async def _publish(self, notification: RealtimeNotification) -> None:
        try:
            await self._publisher.publish(notification.channel, notification.payload)
        except Exception as e:
            self._log(
                "publish_failed",
                logging.WARNING,
                channel=notification.channel,
                error=str(e),
            )

    async def drain(self) -> None:
        """Wait for every in-flight publish task."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
