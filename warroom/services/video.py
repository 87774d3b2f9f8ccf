from __future__ import annotations

import json
from typing import Dict, Optional
from urllib.parse import quote

from warroom.config.loader import get_video_settings


def session_name_for(room_id: str, settings: Optional[Dict[str, str]] = None) -> str:
    settings = settings or get_video_settings()
    return f"{settings['session_prefix']}{room_id}"


def build_video_session(
    room_id: str, display_name: str, settings: Optional[Dict[str, str]] = None
) -> Dict[str, object]:
    """
    Describe the external conference for a room. Media never passes through
    this service; clients embed ``join_url`` as an opaque resource.
    """
    settings = settings or get_video_settings()
    session_name = session_name_for(room_id, settings)
    fragment = "userInfo.displayName=" + quote(json.dumps(display_name))
    return {
        "session_name": session_name,
        "join_url": f"{settings['base_url']}/{session_name}#{fragment}",
        "display_name": display_name,
        "config": {
            "base_url": settings["base_url"],
            "display_name": display_name,
        },
    }
