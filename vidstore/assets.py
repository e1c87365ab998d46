"""Naming of stored asset files."""

from __future__ import annotations

import uuid


def media_type_to_ext(media_type: str) -> str:
    """Map a media type such as image/png to a file extension."""
    parts = media_type.split("/")
    if len(parts) != 2:
        return ".bin"
    return "." + parts[1]


def get_asset_path(video_id: uuid.UUID, media_type: str) -> str:
    """Return the asset file name for a video and media type."""
    return f"{video_id}{media_type_to_ext(media_type)}"