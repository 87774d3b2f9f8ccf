import json
from datetime import datetime, timezone
from urllib.parse import unquote

from warroom.services.video import build_video_session, session_name_for
from warroom.utils.identifiers import build_user_id_prefix, generate_room_id


def test_user_id_prefix_normalises_names():
    assert build_user_id_prefix("Maya", "Chen") == "USR-CHENXXM"
    assert build_user_id_prefix(None, "O'Brien-Smith") == "USR-OBRIENX"
    assert build_user_id_prefix("", "") == "USR-XXXXXXX"


def test_generated_user_ids_increment(make_user):
    first = make_user("maya1", "Maya", "Chen")
    second = make_user("maya2", "Maya", "Chen")
    assert first.user_id == "USR-CHENXXM-001"
    assert second.user_id == "USR-CHENXXM-002"


def test_room_ids_are_daily_base36_sequences(db_session, make_user, make_room):
    host = make_user("hana", "Hana", "Host")
    day = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
    assert generate_room_id(db_session, day) == "WAR20260301-0001"

    room = make_room(host.user_id)
    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    assert room.room_id == f"WAR{today}-0001"
    assert generate_room_id(db_session) == f"WAR{today}-0002"


def test_video_session_descriptor():
    settings = {"base_url": "https://video.example.com", "session_prefix": "startup-warroom-"}
    assert session_name_for("WAR20260301-0001", settings) == "startup-warroom-WAR20260301-0001"

    session = build_video_session("WAR20260301-0001", "Mia \"M\" Lee", settings)
    url, fragment = session["join_url"].split("#", 1)
    assert url == "https://video.example.com/startup-warroom-WAR20260301-0001"
    key, value = fragment.split("=", 1)
    assert key == "userInfo.displayName"
    assert json.loads(unquote(value)) == 'Mia "M" Lee'
    assert session["config"]["display_name"] == 'Mia "M" Lee'
