from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Union


class FetchErrorKind(str, Enum):
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    DECOMPRESSION = "decompression"
    PARSE = "parse"


@dataclass(frozen=True)
class FetchSuccess:
    payload: Any
    fetched_at: datetime  # UTC


@dataclass(frozen=True)
class FetchFailure:
    kind: FetchErrorKind
    message: str


FetchOutcome = Union[FetchSuccess, FetchFailure]
