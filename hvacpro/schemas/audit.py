from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: int
    entity_type: str
    entity_id: str
    action: str
    actor_id: Optional[int] = None
    changes_json: Optional[Any] = None
    timestamp_utc: datetime
    integrity_hash: Optional[str] = None

    class Config:
        from_attributes = True
