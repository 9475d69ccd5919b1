from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CacheStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    NO_DATA = "no_data"


class CacheView(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    data: Any = Field(default=None, description="Last successfully fetched payload")
    last_fetch_time: Optional[datetime] = Field(
        default=None, alias="lastFetchTime", description="Time of the last successful fetch (UTC)"
    )
    error: Optional[str] = Field(default=None, description="Message of the latest failed attempt")
    error_kind: Optional[str] = Field(
        default=None, alias="errorKind", description="transport, timeout, decompression or parse"
    )
    status: CacheStatus


class HealthResponse(BaseModel):
    status: str = "ok"
    uptime: float = Field(description="Seconds since the application was built")
    timestamp: datetime
    codecs: Dict[str, bool]
    attempts: int
    failures: int
