
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Request
from ..core.channel_manager import ChannelManager
from ..core.exceptions import QueryValidationError, UnknownChannelError
from ..core.query import parse_query
from ..core.schemas import ChannelInfo, EmptyResult, IngestRequest, Reading
from .deps import get_manager

router = APIRouter(prefix='/channels', tags=['channels'])

@router.get('', response_model=list[ChannelInfo])
async def list_channels(manager: ChannelManager = Depends(get_manager)):
    return manager.list()

@router.get('/{channel_id}')
async def query_channel(channel_id: str, request: Request, manager: ChannelManager = Depends(get_manager)):
    """Latest reading, last ``count`` readings, or readings between ``startDate`` and ``endDate``."""
    try:
        channel = manager.channel(channel_id)
    except UnknownChannelError as e:
        raise HTTPException(status_code=404, detail=str(e))
    # no data wins over parameter parsing
    if channel.store.is_empty():
        return EmptyResult(channel=channel_id)
    try:
        query = parse_query(dict(request.query_params), manager.tz)
    except QueryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return manager.run(channel_id, query)

@router.post('/{channel_id}/readings', response_model=Reading, status_code=201)
async def ingest_reading(channel_id: str, body: IngestRequest, manager: ChannelManager = Depends(get_manager)):
    ts = body.timestamp or datetime.now(timezone.utc)
    try:
        return manager.ingest(channel_id, ts, body.values)
    except UnknownChannelError as e:
        raise HTTPException(status_code=404, detail=str(e))
