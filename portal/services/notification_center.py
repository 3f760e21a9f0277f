"""
Notification Center

Notifications are pulled, never pushed: a viewer loads a page (newest
first, capped at NOTIFICATION_PAGE_SIZE), reads it and marks entries read.

    Unread (read_status=0) --mark_as_read--> Read (read_status=1)

The transition is one-way and idempotent. A targeted notification carries
its own read_status. A broadcast (recipient "all_agents") is shared by
every agent, so each agent's read is stored as a NotificationRead receipt
and the shared record is left untouched.

The unread count is always recomputed from the loaded page.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Set

from portal.config import settings
from portal.core.session_context import SessionContext
from portal.models.notifications import NotificationPriority, ReadStatus
from portal.schemas.notifications import (
    NotificationView, NotificationStats, NotificationPresentation,
)
from portal.services.record_store import RecordStore, RecordStoreError, RecordNotFoundError, new_record_id


logger = logging.getLogger(__name__)


PRIORITY_COLORS = {
    NotificationPriority.URGENT.value: "red",
    NotificationPriority.HIGH.value: "yellow",
    NotificationPriority.NORMAL.value: "blue",
    NotificationPriority.LOW.value: "gray",
}

TYPE_ICONS = {
    "agent_registration": "users",
    "suspicious_activity": "alert-circle",
    "payment_alert": "dollar-sign",
    "system_maintenance": "clock",
    "performance_milestone": "award",
    "game_assignment": "gamepad",
}
DEFAULT_ICON = "bell"


class InvalidNotificationError(ValueError):
    """Raised when a notification cannot be created from the given fields."""
    pass


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def presentation_for(notification: NotificationView) -> NotificationPresentation:
    """Colour by priority and icon by type; unknown values use the defaults."""
    return NotificationPresentation(
        color=PRIORITY_COLORS.get(notification.priority, PRIORITY_COLORS[NotificationPriority.NORMAL.value]),
        icon=TYPE_ICONS.get(notification.type, DEFAULT_ICON),
    )


@dataclass
class NotificationPage:
    """A loaded page of notifications for one viewer."""
    viewer_id: Optional[str]
    items: List[NotificationView] = field(default_factory=list)

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self.items if item.read_status == ReadStatus.UNREAD.value)

    def get(self, notification_id: str) -> Optional[NotificationView]:
        for item in self.items:
            if item.id == notification_id:
                return item
        return None

    def mark_read(self, notification_id: str) -> None:
        self.items = [
            item.model_copy(update={"read_status": ReadStatus.READ.value}) if item.id == notification_id else item
            for item in self.items
        ]


def notification_stats(items: Iterable[NotificationView]) -> NotificationStats:
    items = list(items)
    return NotificationStats(
        total=len(items),
        unread=sum(1 for item in items if item.read_status == ReadStatus.UNREAD.value),
        by_type=dict(Counter(item.type for item in items)),
        by_priority=dict(Counter(item.priority for item in items)),
    )


class NotificationCenter:
    """Creates notifications, lists them per viewer and tracks read state."""

    def __init__(
        self,
        store: RecordStore,
        page_size: Optional[int] = None,
        broadcast_recipient: Optional[str] = None,
    ):
        self.store = store
        self.page_size = page_size or settings.NOTIFICATION_PAGE_SIZE
        self.broadcast_recipient = broadcast_recipient or settings.BROADCAST_RECIPIENT

    def is_broadcast(self, record: Mapping[str, Any]) -> bool:
        return record.get("recipient_id") == self.broadcast_recipient

    def _view(
        self,
        record: Mapping[str, Any],
        read_ids: Optional[Set[str]] = None,
        now: Optional[datetime] = None,
    ) -> NotificationView:
        now = now or datetime.now(timezone.utc)
        is_broadcast = self.is_broadcast(record)

        if is_broadcast and read_ids is not None:
            read_status = ReadStatus.READ.value if record["id"] in read_ids else ReadStatus.UNREAD.value
        else:
            read_status = ReadStatus.READ.value if record.get("read_status") else ReadStatus.UNREAD.value

        expires_at = _aware(record.get("expires_at"))
        return NotificationView.model_validate({
            **record,
            "created_at": _aware(record.get("created_at")),
            "expires_at": expires_at,
            "read_status": read_status,
            "is_broadcast": is_broadcast,
            "is_expired": expires_at is not None and expires_at <= now,
        })

    # ==================== Listing ====================

    async def list_for_agent(self, context: SessionContext, now: Optional[datetime] = None) -> NotificationPage:
        """Notifications addressed to the agent or broadcast, newest first."""
        rows = await self.store.list(
            "notifications",
            where={"OR": [
                {"recipient_id": context.user_id},
                {"recipient_id": self.broadcast_recipient},
            ]},
            order_by={"created_at": "desc"},
            limit=self.page_size,
        )

        broadcast_ids = [row["id"] for row in rows if self.is_broadcast(row)]
        read_ids: Set[str] = set()
        if broadcast_ids:
            receipts = await self.store.list(
                "notification_reads",
                where={"agent_id": context.user_id, "notification_id": {"in": broadcast_ids}},
            )
            read_ids = {receipt["notification_id"] for receipt in receipts}

        return NotificationPage(
            viewer_id=context.user_id,
            items=[self._view(row, read_ids, now) for row in rows],
        )

    async def list_sent(self, now: Optional[datetime] = None) -> NotificationPage:
        """Manager view: every notification as stored, newest first."""
        rows = await self.store.list(
            "notifications",
            order_by={"created_at": "desc"},
            limit=self.page_size,
        )
        return NotificationPage(viewer_id=None, items=[self._view(row, None, now) for row in rows])

    # ==================== Create ====================

    async def create(
        self,
        title: str,
        message: str,
        recipient_id: Optional[str] = None,
        notification_type: Optional[str] = None,
        priority: Optional[str] = None,
        action_url: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        sender: Optional[SessionContext] = None,
    ) -> NotificationView:
        """
        Create an unread notification.

        Args:
            title: Required, non-blank
            message: Required, non-blank
            recipient_id: Agent id; None broadcasts to all agents
            notification_type: Defaults to "general"
            priority: low, normal (default), high or urgent

        Raises:
            InvalidNotificationError: Missing title/message or unknown priority
        """
        title = (title or "").strip()
        message = (message or "").strip()
        if not title or not message:
            raise InvalidNotificationError("Notification title and message are required")

        try:
            priority_value = NotificationPriority(priority or NotificationPriority.NORMAL.value).value
        except ValueError:
            raise InvalidNotificationError(f"Unknown notification priority: {priority}")

        now = datetime.now(timezone.utc)
        record = {
            "id": new_record_id("notif"),
            "recipient_id": recipient_id or self.broadcast_recipient,
            "sender_id": sender.user_id if sender else None,
            "title": title,
            "message": message,
            "type": notification_type or "general",
            "priority": priority_value,
            "action_url": action_url,
            "read_status": ReadStatus.UNREAD.value,
            "created_at": now,
            "expires_at": expires_at,
        }
        created = await self.store.create("notifications", record)
        logger.info(
            "Notification %s (%s) sent to %s",
            created["id"], created["type"], created["recipient_id"],
        )
        return self._view(created, None, now)

    # ==================== Read state ====================

    async def mark_as_read(self, context: SessionContext, page: NotificationPage, notification_id: str) -> bool:
        """
        Mark one notification of the loaded page as read.

        Returns:
            True if the notification went from unread to read; False for an
            already-read notification or an id that is not in the page.
        """
        item = page.get(notification_id)
        if item is None:
            logger.warning("Notification %s is not in the page loaded for %s", notification_id, context.user_id)
            return False
        if item.read_status == ReadStatus.READ.value:
            return False

        if item.is_broadcast:
            receipt_where = {"notification_id": notification_id, "agent_id": context.user_id}
            existing = await self.store.list("notification_reads", where=receipt_where, limit=1)
            if not existing:
                try:
                    await self.store.create("notification_reads", {
                        "id": new_record_id("nread"),
                        "notification_id": notification_id,
                        "agent_id": context.user_id,
                        "read_at": datetime.now(timezone.utc),
                    })
                except RecordStoreError:
                    # A concurrent request may have written the receipt first
                    if not await self.store.list("notification_reads", where=receipt_where, limit=1):
                        raise
                    logger.info("Notification %s already read by %s", notification_id, context.user_id)
        else:
            try:
                await self.store.update("notifications", notification_id, {"read_status": ReadStatus.READ.value})
            except RecordNotFoundError:
                logger.warning("Notification %s no longer exists", notification_id)
                return False

        page.mark_read(notification_id)
        return True

    async def mark_all_as_read(self, context: SessionContext, page: NotificationPage) -> int:
        """Mark every unread notification of the page read. Returns transitions."""
        unread_ids = [item.id for item in page.items if item.read_status == ReadStatus.UNREAD.value]
        transitioned = 0
        for notification_id in unread_ids:
            if await self.mark_as_read(context, page, notification_id):
                transitioned += 1
        return transitioned
