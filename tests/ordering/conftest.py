import pytest
from notifications.notification import NotificationKind
from notifications.trigger import NotificationTrigger
from ordering.order.order import Order
from ordering.order.workflow import OrderWorkflow
from protean.integrations.pytest import DomainFixture


class RecordingTrigger(NotificationTrigger):
    """Notification trigger that remembers every request."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.calls: list[dict] = []

    def notify(self, recipient, subject, body, kind: NotificationKind, attachments=None) -> bool:
        self.calls.append(
            {
                "recipient": recipient,
                "subject": subject,
                "body": body,
                "kind": kind,
                "attachments": attachments or [],
            }
        )
        return self.succeed

    @property
    def kinds(self):
        return [call["kind"] for call in self.calls]


class ExplodingTrigger(NotificationTrigger):
    def notify(self, recipient, subject, body, kind, attachments=None):
        raise RuntimeError("SMTP relay unreachable")


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture()
def notifier():
    return RecordingTrigger()


@pytest.fixture()
def declining_notifier():
    return RecordingTrigger(succeed=False)


@pytest.fixture()
def exploding_notifier():
    return ExplodingTrigger()


@pytest.fixture()
def workflow(notifier):
    return OrderWorkflow(notifier=notifier)


@pytest.fixture()
def delivery_address():
    return {
        "house_number": "42",
        "street": "Baker Street",
        "city": "Pune",
        "state": "MH",
        "postal_code": "411001",
        "country": "IN",
    }


@pytest.fixture()
def cart_items():
    return [
        {"product_id": "prod-001", "title": "Cotton Shirt", "quantity": 2, "unit_price": 100.0, "size": "M"},
    ]


@pytest.fixture()
def make_order(delivery_address):
    def _make(items=None, contact="buyer@example.com"):
        return Order.create(
            customer_id="cust-001",
            items_data=items or [{"product_id": "prod-001", "quantity": 2, "unit_price": 100.0}],
            delivery_address=delivery_address,
            contact=contact,
        )

    return _make
