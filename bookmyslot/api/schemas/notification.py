from datetime import datetime

from bookmyslot.api.schemas.base import CamelModel


class NotificationPublic(CamelModel):
    id: int
    user_id: int
    message: str
    read: bool
    created_at: datetime | None = None
