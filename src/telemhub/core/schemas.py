
from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Reading(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    timestamp: datetime = Field(..., description="UTC timestamp when the reading was captured")
    values: Dict[str, float]

    @field_validator('timestamp')
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        try:
            return v.astimezone(timezone.utc)
        except OverflowError:
            raise ValueError('timestamp is out of range once converted to UTC') from None

    @field_validator('values', mode='before')
    @classmethod
    def _copy_values(cls, v):
        try:
            return dict(v)
        except (TypeError, ValueError):
            raise ValueError('values must be a mapping of names to numbers') from None


class ChannelInfo(BaseModel):
    id: str
    kind: str
    topic: str
    capacity: int
    size: int


class LatestResult(BaseModel):
    kind: Literal['latest'] = 'latest'
    channel: str
    reading: Reading


class ListResult(BaseModel):
    kind: Literal['list'] = 'list'
    channel: str
    readings: List[Reading]
    partial: bool = False
    note: Optional[str] = None


class EmptyResult(BaseModel):
    kind: Literal['empty'] = 'empty'
    channel: str
    message: str = 'no data yet'


class ValidationErrorResult(BaseModel):
    kind: Literal['validation_error'] = 'validation_error'
    message: str


QueryResult = Annotated[
    Union[LatestResult, ListResult, EmptyResult, ValidationErrorResult],
    Field(discriminator='kind'),
]


class IngestRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    timestamp: Optional[datetime] = None
    values: Dict[str, float]
