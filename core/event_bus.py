"""
Synchronous in-process pub/sub for billing events.

Publishing happens after the triggering write and its audit entry, so a
failing handler cannot undo anything. Its error is logged and the remaining
handlers still run.
"""

import logging
from collections import defaultdict
from typing import Callable

from core.events import BillingEvent

logger = logging.getLogger(__name__)

Handler = Callable[[BillingEvent], None]


class EventBus:
    """Routes events to handlers by event class name, in subscription order."""

    def __init__(self):
        self._handlers: defaultdict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: Handler) -> None:
        """Call handler for every published event whose class is named event_type, e.g. 'ReceiptIssued'."""
        self._handlers[event_type].append(handler)

    def publish(self, event: BillingEvent) -> None:
        name = type(event).__name__
        handlers = self._handlers.get(name, ())
        if handlers:
            logger.debug(f"Dispatching {name} {event.event_id} to {len(handlers)} handler(s)")

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    f"Handler {getattr(handler, '__name__', repr(handler))} failed "
                    f"for {name} (event_id={event.event_id})"
                )
