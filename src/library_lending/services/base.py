"""Shared plumbing for the catalog, registry and lending services."""

import logging

from sqlalchemy.orm import Session

from ..clock import Clock, utc_now
from ..events import DomainEvent, EventPublisher

logger = logging.getLogger(__name__)


class Service:
    """
    A service works on one caller-owned session.

    ``publisher`` is optional; without one, committed changes simply raise
    no events.
    """

    def __init__(
        self,
        session: Session,
        publisher: EventPublisher | None = None,
        clock: Clock = utc_now,
    ):
        self.session = session
        self.publisher = publisher
        self.clock = clock

    def _publish(self, event: DomainEvent) -> None:
        """Hand a committed event to the publisher; failures are only logged."""
        if self.publisher is None:
            return
        try:
            self.publisher.publish(event)
        except Exception:
            logger.exception("Failed to publish %s", type(event).__name__)
