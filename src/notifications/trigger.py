"""Notification trigger — the boundary the ordering workflow calls into.

The workflow only asks for a notification to be sent; composing and
delivering it is the trigger's job. Channel triggers validate the recipient
for their channel, hand the message to a channel adapter and keep a
``Notification`` record of every request. Any problem (invalid recipient,
oversized SMS, transport failure or exception) is reported as ``False``
rather than raised, so a notification can never fail the order operation
that requested it.
"""

import re
from abc import ABC, abstractmethod

import structlog

from notifications.channel.email_port import EmailPort
from notifications.channel.sms_port import SMSPort
from notifications.notification import (
    Notification,
    NotificationChannel,
    NotificationKind,
    NotificationStatus,
)

logger = structlog.get_logger(__name__)

SMS_CHARACTER_LIMIT = 160

_EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@(.+)$")
_PHONE_PATTERN = re.compile(r"^[+]?[0-9]{10,15}$")

__all__ = [
    "SMS_CHARACTER_LIMIT",
    "ChannelNotificationTrigger",
    "EmailNotificationTrigger",
    "NotificationKind",
    "NotificationStatus",
    "NotificationTrigger",
    "RoutingNotificationTrigger",
    "SMSNotificationTrigger",
    "is_valid_email",
    "is_valid_phone",
]


class NotificationTrigger(ABC):
    """Abstract notification sender."""

    @abstractmethod
    def notify(
        self,
        recipient: str,
        subject: str,
        body: str,
        kind: NotificationKind,
        attachments: list[str] | None = None,
    ) -> bool:
        """Send a notification. Returns True only if it was handed off successfully."""
        ...


def is_valid_email(address: str | None) -> bool:
    return bool(address) and _EMAIL_PATTERN.match(address) is not None


def is_valid_phone(number: str | None) -> bool:
    return bool(number) and _PHONE_PATTERN.match(number) is not None


class ChannelNotificationTrigger(NotificationTrigger):
    """Validate, dispatch and record a notification on a single channel.

    Subclasses set ``channel`` and implement ``_validate`` (returning an
    error message or None) and ``_dispatch`` (returning the adapter result).
    """

    channel: NotificationChannel

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    @abstractmethod
    def _validate(self, notification: Notification) -> str | None: ...

    @abstractmethod
    def _dispatch(self, notification: Notification) -> dict: ...

    def notify(
        self,
        recipient: str,
        subject: str,
        body: str,
        kind: NotificationKind,
        attachments: list[str] | None = None,
    ) -> bool:
        notification = Notification(
            recipient=recipient,
            kind=kind,
            channel=self.channel,
            subject=subject,
            body=body,
        )
        for path in attachments or []:
            notification.add_attachment(path)
        self.notifications.append(notification)

        log = logger.bind(
            notification_id=notification.notification_id,
            channel=self.channel.value,
            kind=kind.value,
        )

        error = self._validate(notification)
        if error:
            notification.mark_failed(error)
            log.warning("Notification rejected", recipient=recipient, error=error)
            return False

        try:
            result = self._dispatch(notification)
        except Exception as exc:
            notification.mark_failed(str(exc))
            log.error("Channel adapter raised", recipient=recipient, error=str(exc))
            return False

        if result.get("status") == "sent":
            notification.mark_sent(result.get("message_id"))
            log.info("Notification sent", message_id=notification.message_id)
            return True

        notification.mark_failed(result.get("error", "Unknown dispatch error"))
        log.warning("Notification dispatch failed", recipient=recipient, error=notification.failure_reason)
        return False


class EmailNotificationTrigger(ChannelNotificationTrigger):
    """Sends notifications by email, with optional attachments.

    The recipient must be an email address.
    """

    channel = NotificationChannel.EMAIL

    def __init__(self, adapter: EmailPort) -> None:
        super().__init__()
        self.adapter = adapter

    def _validate(self, notification: Notification) -> str | None:
        if not is_valid_email(notification.recipient):
            return f"Invalid email recipient: {notification.recipient}"
        return None

    def _dispatch(self, notification: Notification) -> dict:
        return self.adapter.send(
            to=notification.recipient,
            subject=notification.subject,
            body=notification.body,
            attachments=list(notification.attachments),
        )


class SMSNotificationTrigger(ChannelNotificationTrigger):
    """Sends notifications by SMS.

    The recipient must be a 10-15 digit phone number (optionally prefixed
    with ``+``) and the body must fit in a single message. The subject and
    any attachments are not transmitted.
    """

    channel = NotificationChannel.SMS

    def __init__(self, adapter: SMSPort, character_limit: int = SMS_CHARACTER_LIMIT) -> None:
        super().__init__()
        self.adapter = adapter
        self.character_limit = character_limit

    def _validate(self, notification: Notification) -> str | None:
        if not is_valid_phone(notification.recipient):
            return f"Invalid SMS recipient: {notification.recipient}"
        if len(notification.body) > self.character_limit:
            return f"SMS body has {len(notification.body)} characters, limit is {self.character_limit}"
        return None

    def _dispatch(self, notification: Notification) -> dict:
        return self.adapter.send(to=notification.recipient, body=notification.body)


class RoutingNotificationTrigger(NotificationTrigger):
    """Chooses email or SMS from the shape of the recipient."""

    def __init__(
        self,
        email: NotificationTrigger | None = None,
        sms: NotificationTrigger | None = None,
    ) -> None:
        self.email = email
        self.sms = sms

    def notify(
        self,
        recipient: str,
        subject: str,
        body: str,
        kind: NotificationKind,
        attachments: list[str] | None = None,
    ) -> bool:
        trigger = self.email if recipient and "@" in recipient else self.sms
        if trigger is None:
            logger.warning("No channel configured for recipient", recipient=recipient, kind=kind.value)
            return False
        return trigger.notify(recipient, subject, body, kind, attachments)
