from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_validator


class Caption(BaseModel):
    """
    A caption as listed in the feed.

    `like_count` is maintained by the data store and only ever displayed. The joined
    `images(url)` relation arrives as an object, a list or null and is flattened to `image_url`.
    """
    id: str
    content: str
    created_datetime_utc: str
    like_count: int = 0
    image_url: str | None = None

    @model_validator(mode='before')
    @classmethod
    def flatten_image(cls, data: Any) -> Any:
        if not isinstance(data, dict) or 'images' not in data:
            return data
        data = dict(data)
        images = data.pop('images')
        if isinstance(images, list):
            images = images[0] if images else None
        if data.get('image_url') is None and isinstance(images, dict):
            data['image_url'] = images.get('url')
        return data


class Vote(BaseModel):
    caption_id: str
    profile_id: str
    vote_value: Literal[1, -1]
    created_datetime_utc: str | None = None
    modified_datetime_utc: str | None = None


class FeedItem(BaseModel):
    caption: Caption
    vote: int | None = None  # 1, -1, or None


class GeneratedCaption(BaseModel):
    """A caption returned by the generation step. Unknown fields are kept as-is."""
    model_config = ConfigDict(extra='allow')

    id: str | int
    content: str
