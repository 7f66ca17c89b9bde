
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.exceptions import ConfigError

DEFAULT_CONFIG = Path(__file__).parent / 'config.example.yaml'


class DriverConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    module: str
    class_name: str = Field(..., alias='class')
    params: Dict[str, Any] = Field(default_factory=dict)


class ChannelConfig(BaseModel):
    id: str
    kind: Optional[str] = None
    topic: Optional[str] = None
    capacity: int = Field(100_000, ge=1)
    driver: Optional[DriverConfig] = None


class TlsConfig(BaseModel):
    cafile: Optional[str] = None
    certfile: Optional[str] = None
    keyfile: Optional[str] = None


class MqttConfig(BaseModel):
    enabled: bool = False
    host: str = 'localhost'
    port: int = 1883
    client_id: str = ''
    keepalive: int = 60
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = Field(0, ge=0, le=2)
    tls: Optional[TlsConfig] = None


class ServerConfig(BaseModel):
    host: str = '0.0.0.0'
    port: int = 3000
    cors_origins: List[str] = Field(default_factory=lambda: ['*'])


class Settings(BaseModel):
    log_level: str = 'INFO'
    timezone: Optional[str] = None
    topic_prefix: str = 'telemhub'
    server: ServerConfig = Field(default_factory=ServerConfig)
    mqtt: MqttConfig = Field(default_factory=MqttConfig)
    channels: List[ChannelConfig] = Field(default_factory=list)

    @field_validator('timezone')
    @classmethod
    def _known_zone(cls, v):
        if v is not None:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"unknown time zone {v!r}")
        return v

    @field_validator('channels')
    @classmethod
    def _unique_ids(cls, v):
        ids = [c.id for c in v]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"duplicate channel ids: {', '.join(dupes)}")
        return v

    def tzinfo(self):
        return ZoneInfo(self.timezone) if self.timezone else None


def load_settings(cfg_path: Optional[Path] = None) -> Settings:
    if cfg_path is None:
        cfg_path = Path(os.getenv('TELEMHUB_CONFIG', str(DEFAULT_CONFIG)))
    try:
        raw = yaml.safe_load(Path(cfg_path).read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config {cfg_path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"config {cfg_path} must be a mapping")
    if os.getenv('LOG_LEVEL'):
        raw['log_level'] = os.environ['LOG_LEVEL']
    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid config {cfg_path}: {e}") from e
