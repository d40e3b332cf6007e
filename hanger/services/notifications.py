"""
Notification outbox.

Append-only records addressed to one recipient. Only the recipient may
mark a record read or delete it; nothing else about a record changes
after it is pushed.

push() does not persist: it is always one step of a larger operation
(trade request, status change, report) whose service saves once at the
end. mark_read() and delete() are operations in their own right and save.
"""

from typing import List, Optional

from hanger.logging import get_logger, LogStream
from hanger.services.audit import rejections_logged
from hanger.state.entities import Notification, NotificationType
from hanger.state.errors import NotFoundError, UnauthorizedError
from hanger.state.store import EntityStore


class NotificationOutbox:
    """Per-recipient notification records backed by the entity store."""

    def __init__(self, store: EntityStore):
        self.store = store
        self.logger = get_logger(LogStream.NOTIFICATIONS)

    def push(
        self,
        recipient: str,
        type: NotificationType,
        message: str,
        trade_id: Optional[int] = None,
    ) -> Notification:
        notification = Notification(
            notification_id=self.store.next_notification_id(),
            recipient=recipient,
            type=type,
            message=message,
            created_at=self.store.clock.now(),
            trade_id=trade_id,
        )
        self.store.notifications[notification.notification_id] = notification

        self.logger.info("Notification queued", extra={
            "notification_id": notification.notification_id,
            "recipient": recipient,
            "type": type.value,
            "trade_id": trade_id,
        })
        return notification

    def get(self, notification_id: int) -> Notification:
        notification = self.store.notifications.get(notification_id)
        if notification is None:
            raise NotFoundError("notification", notification_id)
        return notification

    def for_recipient(self, handle: str, unread_only: bool = False) -> List[Notification]:
        """Recipient's notifications, oldest first."""
        return sorted(
            (
                n for n in self.store.notifications.values()
                if n.recipient == handle and not (unread_only and n.read)
            ),
            key=lambda n: n.notification_id,
        )

    def unread_count(self, handle: str) -> int:
        return sum(
            1 for n in self.store.notifications.values()
            if n.recipient == handle and not n.read
        )

    @rejections_logged(LogStream.NOTIFICATIONS)
    def mark_read(self, notification_id: int, actor: str) -> Notification:
        """
        Raises:
            NotFoundError: unknown notification
            UnauthorizedError: actor is not the recipient
        """
        notification = self._owned_by(notification_id, actor)
        if notification.read:
            return notification

        notification.mark_read()
        self.store.save()
        return notification

    @rejections_logged(LogStream.NOTIFICATIONS)
    def mark_all_read(self, actor: str) -> int:
        """Mark every unread notification of `actor` read; returns how many changed."""
        unread = self.for_recipient(actor, unread_only=True)
        for notification in unread:
            notification.mark_read()
        if unread:
            self.store.save()
        return len(unread)

    @rejections_logged(LogStream.NOTIFICATIONS)
    def delete(self, notification_id: int, actor: str) -> Notification:
        """
        Raises:
            NotFoundError: unknown notification
            UnauthorizedError: actor is not the recipient
        """
        notification = self._owned_by(notification_id, actor)
        del self.store.notifications[notification_id]
        self.store.save()

        self.logger.info("Notification deleted", extra={
            "notification_id": notification_id,
            "recipient": actor,
        })
        return notification

    def _owned_by(self, notification_id: int, actor: str) -> Notification:
        notification = self.get(notification_id)
        if notification.recipient != actor:
            raise UnauthorizedError(
                f"Notification {notification_id} is not addressed to {actor}",
                notification_id=notification_id,
                actor=actor,
            )
        return notification
