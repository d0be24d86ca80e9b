"""Email channel port — transport behind the email notification trigger."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Hands a plain-text email to a transport (SMTP relay, SES, ...)."""

    @abstractmethod
    def send(self, to: str, subject: str, body: str, attachments: list[str] | None = None) -> dict:
        """Returns ``{"message_id", "status"}`` where status is "sent" or
        "failed"; failed results also carry ``error``.

        ``attachments`` are file paths or URLs the transport attaches.
        """
        ...
