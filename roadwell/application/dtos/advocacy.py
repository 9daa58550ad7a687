"""DTOs for advocacy messages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from roadwell.domain.enums import AdvocacyStatus
from roadwell.shared.utils.datetime import parse_timestamp


@dataclass(frozen=True)
class AdvocacyMessage:
    """Driver feedback routed to advocates. Tags keep submission order."""

    id: str
    user_id: str
    user_name: str
    user_email: str
    message: str
    tags: tuple[str, ...]
    status: AdvocacyStatus = AdvocacyStatus.PENDING
    is_voice_recording: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> AdvocacyMessage:
        raw_status = doc.get("status") or AdvocacyStatus.PENDING.value
        try:
            status = AdvocacyStatus(raw_status)
        except ValueError:
            status = AdvocacyStatus.PENDING
        return cls(
            id=doc["id"],
            user_id=doc.get("userId") or "",
            user_name=doc.get("userName") or "",
            user_email=doc.get("userEmail") or "",
            message=doc.get("message") or "",
            tags=tuple(doc.get("tags") or ()),
            status=status,
            is_voice_recording=bool(doc.get("isVoiceRecording", False)),
            created_at=parse_timestamp(doc.get("createdAt")),
            updated_at=parse_timestamp(doc.get("updatedAt")),
        )
