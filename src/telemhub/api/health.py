
from fastapi import APIRouter, Depends
from ..core.channel_manager import ChannelManager
from .deps import get_manager

router = APIRouter(prefix="", tags=["health"])

@router.get("/health")
async def health():
    return {"status": "ok"}

@router.get("/ready")
async def ready(manager: ChannelManager = Depends(get_manager)):
    ready_any = any(not c.store.is_empty() for c in manager.channels.values())
    return {"ready": ready_any}
