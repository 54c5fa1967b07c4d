from __future__ import annotations

from forum.schemas.base import APIModel


class TopicDTO(APIModel):
    """Topic payload as sent by clients: ``{"userId", "title", "content"}``."""

    user_id: str
    title: str
    content: str
