
import importlib
import logging
from datetime import datetime, tzinfo
from typing import Dict, List, Mapping, Optional

from ..config.settings import Settings
from .exceptions import UnknownChannelError
from .history import DEFAULT_CAPACITY, HistoryStore
from .publisher import Channel, Publisher, Transport
from .query import Query, execute, run_query
from .schemas import ChannelInfo, QueryResult, Reading
from .sensor_base import AbstractSensorAdapter

logger = logging.getLogger(__name__)


class ChannelManager:
    def __init__(self, publisher: Optional[Publisher] = None, tz: Optional[tzinfo] = None,
                 topic_prefix: str = 'telemhub'):
        self.publisher = publisher or Publisher()
        self.tz = tz
        self.topic_prefix = topic_prefix
        self.channels: Dict[str, Channel] = {}
        self.adapters: Dict[str, AbstractSensorAdapter] = {}

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[Transport] = None) -> 'ChannelManager':
        mgr = cls(Publisher(transport), tz=settings.tzinfo(), topic_prefix=settings.topic_prefix)
        for entry in settings.channels:
            mgr.add_channel(entry.id, capacity=entry.capacity, topic=entry.topic, kind=entry.kind)
            if entry.driver is not None:
                mod = importlib.import_module(entry.driver.module)
                cls_ = getattr(mod, entry.driver.class_name)
                params = dict(entry.driver.params)
                if entry.kind:
                    params.setdefault('kind', entry.kind)
                mgr.adapters[entry.id] = cls_(channel_id=entry.id, **params)
        return mgr

    def add_channel(self, channel_id: str, capacity: int = DEFAULT_CAPACITY,
                    topic: Optional[str] = None, kind: Optional[str] = None) -> Channel:
        if channel_id in self.channels:
            raise ValueError(f"channel {channel_id} already exists")
        channel = Channel(
            id=channel_id,
            kind=kind or channel_id,
            topic=topic or f"{self.topic_prefix}/{channel_id}",
            store=HistoryStore(capacity),
        )
        self.channels[channel_id] = channel
        logger.info("channel %s ready (capacity=%d, topic=%s)", channel_id, capacity, channel.topic)
        return channel

    def channel(self, channel_id: str) -> Channel:
        try:
            return self.channels[channel_id]
        except KeyError:
            raise UnknownChannelError(channel_id) from None

    def ingest(self, channel_id: str, timestamp: datetime, values: Mapping[str, float]) -> Reading:
        channel = self.channel(channel_id)
        reading = Reading(timestamp=timestamp, values=values)
        self.publisher.publish(channel, reading)
        return reading

    def query(self, channel_id: str, params: Mapping[str, str]) -> QueryResult:
        channel = self.channel(channel_id)
        return run_query(channel.store, params, self.tz, channel=channel_id)

    def run(self, channel_id: str, query: Query) -> QueryResult:
        return execute(self.channel(channel_id).store, query, channel=channel_id)

    def register(self, adapter: AbstractSensorAdapter):
        self.channel(adapter.channel_id)
        self.adapters[adapter.channel_id] = adapter
        adapter.sink = self.ingest
        adapter.start()

    def start(self):
        for adapter in self.adapters.values():
            self.register(adapter)

    def stop(self):
        for adapter in self.adapters.values():
            adapter.stop()

    def list(self) -> List[ChannelInfo]:
        return [ChannelInfo(id=c.id, kind=c.kind, topic=c.topic,
                            capacity=c.store.capacity, size=len(c.store))
                for c in self.channels.values()]

    def stats(self) -> List[dict]:
        return [{
            'id': c.id,
            'size': len(c.store),
            'capacity': c.store.capacity,
            'appended': c.store.appended,
            'evicted': c.store.evicted,
            'subscribers': self.publisher.subscriber_count(c.topic),
            'fanout_failures': self.publisher.fanout_failures.get(c.id, 0),
        } for c in self.channels.values()]
