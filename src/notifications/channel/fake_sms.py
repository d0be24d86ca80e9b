"""In-memory SMS gateway used in development and tests."""

from notifications.channel.fake import RecordingChannel
from notifications.channel.sms_port import SMSPort


class FakeSMSAdapter(RecordingChannel, SMSPort):
    channel = "sms"
    default_failure = "SMS delivery failed"

    @property
    def sent_messages(self) -> list[dict]:
        return self.outbox

    def send(self, to: str, body: str) -> dict:
        return self._deliver(to=to, body=body)
