"""Channel adapters — transports used by the notification triggers.

Fake adapters record messages in memory; production deployments supply
their own ``EmailPort`` / ``SMSPort`` implementations.
"""

from notifications.channel.email_port import EmailPort
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.channel.fake_sms import FakeSMSAdapter
from notifications.channel.sms_port import SMSPort

__all__ = ["EmailPort", "FakeEmailAdapter", "FakeSMSAdapter", "SMSPort"]
