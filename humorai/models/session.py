from __future__ import annotations

from pydantic import BaseModel, Field


class Session(BaseModel):
    """An authenticated session supplied by the identity provider."""
    user_id: str
    access_token: str = Field(repr=False)
