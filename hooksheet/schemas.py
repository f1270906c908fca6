# hooksheet/schemas.py
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr

# bool is listed first so True/False never collapse into 1/0
Primitive = Optional[Union[StrictBool, StrictInt, StrictFloat, StrictStr]]
FlatRecord = Dict[str, Primitive]


def now_iso() -> str:
    """UTC capture time with millisecond precision, e.g. 2025-01-01T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_row_id() -> str:
    return str(uuid.uuid4())


class ProcessedRow(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_row_id)
    timestamp: str = Field(default_factory=now_iso)
    original_payload: str = Field(alias="originalPayload")
    data: FlatRecord = Field(default_factory=dict)


class WebhookSubmission(BaseModel):
    payload: str
    instructions: str = ""


class WebhookSample(BaseModel):
    name: str
    description: str
    payload: str
    instructions: str


class RowsResponse(BaseModel):
    count: int
    columns: List[str]
    rows: List[ProcessedRow]
