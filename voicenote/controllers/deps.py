from typing import Optional

from fastapi import Header, Request

from voicenote.persistence.audio_store import AudioStore
from voicenote.persistence.base import Repository
from voicenote.util.errors import AuthRequired


def get_repository(request: Request) -> Repository:
    return request.app.state.repository


def get_audio_store(request: Request) -> AudioStore:
    return request.app.state.audio_store


def require_principal(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    The caller's identity, taken from the ``x-user-id`` header.

    This is the only place the header is read; everything downstream receives
    the principal as an explicit argument.
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthRequired()
    return x_user_id.strip()
