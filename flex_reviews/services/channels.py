from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from flex_reviews.schemas.review import ReviewChannel

# Hostaway channelId -> booking platform. Unlisted ids map to "unknown".
DEFAULT_CHANNEL_MAP: Mapping[str, ReviewChannel] = MappingProxyType(
    {
        "1": "airbnb",
        "2": "booking",
        "3": "vrbo",
    }
)


def map_channel_id(
    channel_id: Any, mapping: Mapping[str, ReviewChannel] = DEFAULT_CHANNEL_MAP
) -> ReviewChannel:
    if channel_id is None:
        return "unknown"
    return mapping.get(str(channel_id), "unknown")
