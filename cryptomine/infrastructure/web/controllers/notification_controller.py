from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from cryptomine.infrastructure.notifications.log_notifier import RecordingNotifier
from cryptomine.infrastructure.web.dependencies import get_notifier


router = APIRouter(prefix="", tags=["notifications"])


class NotificationItem(BaseModel):
    message: str
    kind: str  # success | error
    created_at: str

@router.get("/notifications", response_model=List[NotificationItem])
def get_notifications(notifier: RecordingNotifier = Depends(get_notifier)):
    return [
        NotificationItem(message=n.message, kind=n.kind.value, created_at=n.created_at)
        for n in notifier.recent()
    ]
