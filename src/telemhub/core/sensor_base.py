
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

Sink = Callable[[str, datetime, Mapping[str, float]], object]


class AbstractSensorAdapter(ABC):
    def __init__(self, channel_id: str, kind: str):
        self.channel_id = channel_id
        self.kind = kind
        self.sink: Optional[Sink] = None
        self.emitted = 0
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{channel_id}")
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def emit(self, values: Mapping[str, float]):
        if self.sink is None:
            return
        try:
            self.sink(self.channel_id, datetime.now(timezone.utc), values)
            self.emitted += 1
        except Exception:
            self.logger.exception("ingest failed for %s", self.channel_id)

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run_wrapper, name=f"{self.channel_id}-reader", daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=2.0)

    def _run_wrapper(self):
        try:
            self.run()
        except Exception:
            self.logger.exception("%s adapter crashed", self.channel_id)

    @abstractmethod
    def run(self):
        ...
