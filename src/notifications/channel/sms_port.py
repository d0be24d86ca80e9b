"""SMS channel port — transport behind the SMS notification trigger."""

from abc import ABC, abstractmethod


class SMSPort(ABC):
    """Hands a single text message to an SMS gateway."""

    @abstractmethod
    def send(self, to: str, body: str) -> dict:
        """Returns the same result shape as ``EmailPort.send``."""
        ...
