"""In-memory email transport used in development and tests."""

from notifications.channel.email_port import EmailPort
from notifications.channel.fake import RecordingChannel


class FakeEmailAdapter(RecordingChannel, EmailPort):
    channel = "email"
    default_failure = "Email delivery failed"

    @property
    def sent_emails(self) -> list[dict]:
        return self.outbox

    def send(self, to: str, subject: str, body: str, attachments: list[str] | None = None) -> dict:
        return self._deliver(to=to, subject=subject, body=body, attachments=list(attachments or []))
