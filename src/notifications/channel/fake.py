"""Shared behaviour of the in-memory channel adapters."""

from uuid import uuid4


class RecordingChannel:
    """Keeps delivered messages in ``outbox`` and can be told to fail.

    Subclasses set ``channel`` (used as the message id prefix) and
    ``default_failure``.
    """

    channel = "message"
    default_failure = "Delivery failed"

    def __init__(self):
        self.outbox: list[dict] = []
        self.reset()

    def configure(self, should_succeed: bool = True, failure_reason: str | None = None):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason or self.default_failure

    def reset(self):
        self.outbox.clear()
        self.configure()

    def _deliver(self, **message) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"{self.channel}-{uuid4().hex[:12]}"
        self.outbox.append({"message_id": message_id, **message})
        return {"message_id": message_id, "status": "sent"}
