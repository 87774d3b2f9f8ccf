from pathlib import Path

import warroom.config.loader as loader
from warroom.utils.logging_config import build_logging_config


def _write_config(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8")


def test_room_limits_defaults_when_missing(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    monkeypatch.setattr(loader, "_CONFIG_PATH", config_path)
    monkeypatch.delenv("WARROOM_CONFIG_PATH", raising=False)

    limits = loader.get_room_limits()

    assert limits["description_min_length"] == 100
    assert limits["message_max_length"] == 2000
    assert limits["default_max_participants"] == 50
    assert limits["min_max_participants"] == 5
    assert limits["list_default_limit"] == 20
    assert limits["list_max_limit"] == 100


def test_room_limits_coercion(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    _write_config(
        config_path,
        "\n".join(
            [
                "rooms:",
                "  description_min_length: \"40\"",
                "  message_max_length: -1",
                "  default_max_participants: 3",
                "  min_max_participants: 8",
                "  list_default_limit: 500",
                "  list_max_limit: abc",
            ]
        ),
    )
    monkeypatch.setattr(loader, "_CONFIG_PATH", config_path)

    limits = loader.get_room_limits()

    assert limits["description_min_length"] == 40
    assert limits["message_max_length"] == 2000
    assert limits["default_max_participants"] == 8
    assert limits["list_max_limit"] == 100
    assert limits["list_default_limit"] == 100


def test_room_sync_settings(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    _write_config(
        config_path,
        "room_sync:\n  interval_seconds: \"2.5\"\n  request_timeout_seconds: 0\n",
    )
    monkeypatch.setattr(loader, "_CONFIG_PATH", config_path)

    settings = loader.get_room_sync_settings()

    assert settings["interval_seconds"] == 2.5
    assert settings["request_timeout_seconds"] == 10


def test_video_settings_strip_trailing_slash(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    _write_config(
        config_path,
        "video:\n  base_url: \"https://video.example.com/\"\n  session_prefix: \"  \"\n",
    )
    monkeypatch.setattr(loader, "_CONFIG_PATH", config_path)

    settings = loader.get_video_settings()

    assert settings["base_url"] == "https://video.example.com"
    assert settings["session_prefix"] == "startup-warroom-"


def test_config_path_env_override(monkeypatch, tmp_path):
    config_path = tmp_path / "override.yaml"
    _write_config(config_path, "auth:\n  access_token_expire_minutes: 15\n")
    monkeypatch.setenv("WARROOM_CONFIG_PATH", str(config_path))

    assert loader.get_access_token_expire_minutes() == 15


def test_secure_cookie_env_wins(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    _write_config(config_path, "auth:\n  secure_cookies: true\n")
    monkeypatch.setattr(loader, "_CONFIG_PATH", config_path)

    monkeypatch.setenv("WARROOM_SECURE_COOKIES", "false")
    assert loader.get_secure_cookies_enabled() is False

    monkeypatch.delenv("WARROOM_SECURE_COOKIES")
    assert loader.get_secure_cookies_enabled() is True


def test_non_mapping_config_falls_back(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    _write_config(config_path, "- just\n- a list\n")
    monkeypatch.setattr(loader, "_CONFIG_PATH", config_path)

    assert loader.load_config() == {}
    assert loader.get_room_sync_settings()["interval_seconds"] == 5


def test_logging_config_routes_room_activity(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    config = build_logging_config(tmp_path)

    assert config["handlers"]["file_rooms"]["filename"] == str(tmp_path / "rooms.log")
    assert "file_rooms" in config["loggers"]["warroom.services"]["handlers"]
    assert "file_rooms" not in config["loggers"]["warroom"]["handlers"]
    assert config["loggers"]["warroom"]["level"] == "WARNING"
    assert config["loggers"]["auth_module"]["propagate"] is False
