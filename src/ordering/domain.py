"""Ordering bounded context — Order lifecycle, payment, invoicing and tracking.

Handles the order aggregate cluster (Order with its Payment, Invoice and
StatusTracker) and the workflow that turns a cart snapshot into a paid,
tracked and possibly cancelled order.
"""

import structlog
from protean.domain import Domain

from ordering.utils.logging import configure_logging

# Configure logging for the application
configure_logging()

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
