"""
Outbound notification queue.

Handlers publish plain-data events; a single worker thread turns them into
emails. Nothing here can fail or slow down the request that published.
"""
import logging
import queue
import threading
from typing import Callable, Optional
from lupora.config import settings
from lupora.utils.email import EmailMessage, compose_order_emails, send_email

logger = logging.getLogger(__name__)

ORDER_PLACED = "order_placed"

_STOP = object()


class NotificationDispatcher:
    def __init__(self, sender: Callable[[EmailMessage], bool] = send_email, owner_email: Optional[str] = None):
        self._sender = sender
        self._owner_email = owner_email
        self._queue: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    @property
    def owner_email(self) -> str:
        return self._owner_email if self._owner_email is not None else settings.OWNER_EMAIL

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(target=self._run, name="notification-dispatcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        if not self.running:
            return
        self._queue.put(_STOP)
        self._thread.join(timeout)
        self._thread = None

    def publish(self, event: dict) -> None:
        """Queue an event; returns immediately"""
        self._queue.put_nowait(event)

    def join(self) -> None:
        """Block until every queued event has been handled"""
        self._queue.join()

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    return
                self.handle(event)
            except Exception:
                logger.exception("Notification handling failed")
            finally:
                self._queue.task_done()

    def handle(self, event: dict) -> None:
        if event.get("type") != ORDER_PLACED:
            logger.warning(f"Ignoring unknown notification type {event.get('type')!r}")
            return

        owner_email = self.owner_email
        if not owner_email:
            logger.debug(f"Owner email not configured, skipping notification for order {event.get('order_id')}")
            return

        for message in compose_order_emails(event, owner_email):
            try:
                if self._sender(message):
                    logger.info(f"Sent '{message.subject}' to {message.to_email}")
            except Exception:
                logger.exception(f"Failed to send '{message.subject}'")
