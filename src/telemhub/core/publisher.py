
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol

from .history import HistoryStore
from .schemas import Reading

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, Reading], None]


class Transport(Protocol):
    def publish(self, topic: str, payload: str) -> None:
        ...


@dataclass
class Channel:
    id: str
    kind: str
    topic: str
    store: HistoryStore
    # reentrant so a subscriber may publish to its own channel
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)


class Publisher:
    """
    Appends readings to their channel's store and fans them out.

    Delivery is best effort: a failing subscriber or transport is logged and
    counted, the stored reading is kept and the caller never sees the error.
    """
    def __init__(self, transport: Optional[Transport] = None):
        self.transport = transport
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._sub_lock = threading.Lock()
        self.fanout_failures: Dict[str, int] = {}

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        with self._sub_lock:
            self._subscribers.setdefault(topic, []).append(callback)

        def unsubscribe():
            with self._sub_lock:
                subs = self._subscribers.get(topic, [])
                if callback in subs:
                    subs.remove(callback)

        return unsubscribe

    def subscriber_count(self, topic: str) -> int:
        with self._sub_lock:
            return len(self._subscribers.get(topic, []))

    def publish(self, channel: Channel, reading: Reading) -> None:
        # holding the channel lock keeps fan-out order equal to append order
        with channel.lock:
            channel.store.append(reading)
            self._fanout(channel, reading)

    def _fanout(self, channel: Channel, reading: Reading):
        with self._sub_lock:
            subscribers = list(self._subscribers.get(channel.topic, []))
        for callback in subscribers:
            try:
                callback(channel.topic, reading)
            except Exception:
                self._failed(channel, 'subscriber %r' % (callback,))
        if self.transport is not None:
            try:
                self.transport.publish(channel.topic, reading.model_dump_json())
            except Exception:
                self._failed(channel, 'transport')

    def _failed(self, channel: Channel, target: str):
        self.fanout_failures[channel.id] = self.fanout_failures.get(channel.id, 0) + 1
        logger.warning("fan-out of %s to %s failed", channel.id, target, exc_info=True)
