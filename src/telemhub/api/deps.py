
from fastapi import Request, WebSocket

from ..core.channel_manager import ChannelManager

def get_manager(request: Request) -> ChannelManager:
    return request.app.state.manager

def get_ws_manager(ws: WebSocket) -> ChannelManager:
    return ws.app.state.manager
