"""In-process change hints for committed marketplace writes.

Crud modules publish to the process-wide ``change_notifier``; the service
itself registers no subscribers. Consumers, and any transport that carries
hints beyond this process, live outside the service.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from shared.core.config import settings

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], Any]
ChangePredicate = Callable[[Dict[str, Any]], bool]


class Subscription:
    """One consumer's interest in a table, filtered and debounced.

    Callbacks receive only the table name: a change is a hint to re-run the
    consumer's own query, never a payload to apply.
    """

    def __init__(self, notifier: "ChangeNotifier", table: str, callback: ChangeCallback,
                 predicate: Optional[ChangePredicate], debounce_seconds: float):
        self.notifier = notifier
        self.table = table
        self.callback = callback
        self.predicate = predicate
        self.debounce_seconds = debounce_seconds
        self.pending_events = 0
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self.active = True

    def matches(self, record: Dict[str, Any]) -> bool:
        if self.predicate is None:
            return True
        try:
            return bool(self.predicate(record))
        except Exception:
            logger.exception(
                "Change predicate failed for table %s", self.table)
            return False

    def schedule(self):
        with self._lock:
            if not self.active:
                return
            self.pending_events += 1
            if self.debounce_seconds <= 0:
                fire_now = True
            else:
                fire_now = False
                # coalesce: a burst inside the window shares one timer
                if self._timer is None:
                    self._timer = threading.Timer(
                        self.debounce_seconds, self.fire)
                    self._timer.daemon = True
                    self._timer.start()
        if fire_now:
            self.fire()

    def fire(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            coalesced = self.pending_events
            self.pending_events = 0
        if not coalesced or not self.active:
            return
        try:
            self.callback(self.table)
        except Exception:
            logger.exception(
                "Change subscriber for table %s failed", self.table)

    def has_pending(self) -> bool:
        return self.pending_events > 0

    def unsubscribe(self):
        with self._lock:
            self.active = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self.pending_events = 0
        self.notifier._remove(self)


class ChangeNotifier:
    def __init__(self, debounce_seconds: Optional[float] = None):
        self.debounce_seconds = (
            settings.CHANGE_NOTIFY_DEBOUNCE_SECONDS
            if debounce_seconds is None else debounce_seconds
        )
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, table: str, callback: ChangeCallback,
                  predicate: Optional[ChangePredicate] = None,
                  debounce_seconds: Optional[float] = None) -> Subscription:
        subscription = Subscription(
            self, table, callback, predicate,
            self.debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        with self._lock:
            self._subscriptions.setdefault(table, []).append(subscription)
        return subscription

    def publish(self, table: str, record: Optional[Dict[str, Any]] = None) -> int:
        """Announce a committed change; returns how many subscriptions matched."""
        record = record or {}
        with self._lock:
            candidates = list(self._subscriptions.get(table, []))

        matched = 0
        for subscription in candidates:
            if subscription.matches(record):
                matched += 1
                subscription.schedule()
        return matched

    def flush(self):
        """Deliver every pending coalesced notification immediately."""
        with self._lock:
            subscriptions = [s for subs in self._subscriptions.values()
                             for s in subs]
        for subscription in subscriptions:
            if subscription.has_pending():
                subscription.fire()

    def clear(self):
        with self._lock:
            subscriptions = [s for subs in self._subscriptions.values()
                             for s in subs]
        for subscription in subscriptions:
            subscription.unsubscribe()

    def _remove(self, subscription: Subscription):
        with self._lock:
            subs = self._subscriptions.get(subscription.table, [])
            if subscription in subs:
                subs.remove(subscription)


change_notifier = ChangeNotifier()
