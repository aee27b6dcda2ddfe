from __future__ import annotations

import pytest

from komaribot.config_manager import config_manager

_KEYS = ("komari_url", "komari_token", "enabled", "group_configs", "robot_qq")


@pytest.fixture(autouse=True)
def komari_config():
    """Point the bot at a fake panel and restore the previous values afterwards."""
    saved = {key: config_manager.get(key) for key in _KEYS}
    config_manager.set("komari_url", "https://status.example.com/")
    config_manager.set("komari_token", "")
    config_manager.set("enabled", True)
    config_manager.set("group_configs", {})
    config_manager.set("robot_qq", "")
    yield config_manager
    for key, value in saved.items():
        config_manager.set(key, value)
