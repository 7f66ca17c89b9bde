
import asyncio
import contextlib
import logging
from typing import Callable
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from ..core.channel_manager import ChannelManager
from ..core.schemas import Reading
from .deps import get_ws_manager

router = APIRouter()
logger = logging.getLogger(__name__)

OUTBOX_SIZE = 256

@router.websocket('/ws')
async def ws_endpoint(ws: WebSocket):
    manager: ChannelManager = get_ws_manager(ws)
    await ws.accept()
    loop = asyncio.get_running_loop()
    # every outgoing frame goes through the outbox so only one task sends
    outbox: asyncio.Queue = asyncio.Queue(maxsize=OUTBOX_SIZE)
    subscriptions: dict[str, Callable[[], None]] = {}

    def offer(msg: dict):
        try:
            outbox.put_nowait(msg)
        except asyncio.QueueFull:
            logger.warning("websocket client is too slow, dropping %s reading", msg.get('channel'))

    def deliver_to(channel_id: str):
        # runs on the ingesting thread
        def deliver(_topic: str, reading: Reading):
            msg = {'type': 'reading', 'channel': channel_id, 'reading': reading.model_dump(mode='json')}
            loop.call_soon_threadsafe(offer, msg)
        return deliver

    async def sender():
        while True:
            msg = await outbox.get()
            await ws.send_json(msg)

    sender_task = asyncio.create_task(sender())
    try:
        while True:
            msg = await ws.receive_json()
            action = msg.get('action') if isinstance(msg, dict) else None
            cid = msg.get('channel') if isinstance(msg, dict) else None

            if action in ('subscribe', 'unsubscribe'):
                if not isinstance(cid, str):
                    await outbox.put({'type': 'error', 'error': 'channel must be a string'})
                    continue
                if cid not in manager.channels:
                    await outbox.put({'type': 'error', 'error': f'unknown channel {cid}'})
                    continue

                if action == 'subscribe':
                    if cid not in subscriptions:
                        topic = manager.channels[cid].topic
                        subscriptions[cid] = manager.publisher.subscribe(topic, deliver_to(cid))
                    await outbox.put({'type': 'subscribed', 'channel': cid})
                else:
                    unsubscribe = subscriptions.pop(cid, None)
                    if unsubscribe:
                        unsubscribe()
                    await outbox.put({'type': 'unsubscribed', 'channel': cid})

            elif action == 'poll':
                out = {}
                for cid in list(subscriptions):
                    reading = manager.channels[cid].store.latest()
                    if reading:
                        out[cid] = reading
                await outbox.put({'type': 'poll-result', 'data': jsonable_encoder(out)})

            else:
                await outbox.put({'type': 'error', 'error': 'unknown action'})
    except WebSocketDisconnect:
        return
    finally:
        for unsubscribe in subscriptions.values():
            unsubscribe()
        sender_task.cancel()
        with contextlib.suppress(Exception, asyncio.CancelledError):
            await sender_task
