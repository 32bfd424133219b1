from datetime import datetime

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: int
    user_id: int | None
    user_name: str
    action: str
    details: str | None
    created_at: datetime

    class Config:
        from_attributes = True
