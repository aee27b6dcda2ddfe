from __future__ import annotations

import json
from unittest.mock import patch

import pytest
import requests

from komaribot.utils import send_http_msg
from tests.helpers import make_response


@pytest.fixture
def napcat(komari_config):
    saved = komari_config.get("napcat_http_url")
    komari_config.set("napcat_http_url", "http://napcat.local:3000/")
    yield komari_config
    komari_config.set("napcat_http_url", saved)


def test_group_message_posts_to_group_endpoint(napcat):
    with patch("komaribot.utils.requests.post", return_value=make_response(200, {"retcode": 0})) as post:
        assert send_http_msg("123456", "你好", chat_type="group") is True

    url = post.call_args.args[0]
    payload = json.loads(post.call_args.kwargs["data"].decode("utf-8"))
    assert url == "http://napcat.local:3000/send_group_msg"
    assert payload == {"group_id": 123456, "message": "你好"}


def test_private_message_uses_user_id(napcat):
    with patch("komaribot.utils.requests.post", return_value=make_response(200, {"retcode": 0})) as post:
        assert send_http_msg("10001", "hi") is True

    assert post.call_args.args[0].endswith("/send_private_msg")


def test_nonzero_retcode_is_failure(napcat):
    with patch("komaribot.utils.requests.post", return_value=make_response(200, {"retcode": 100, "msg": "bad"})):
        assert send_http_msg("10001", "hi") is False


def test_connection_error_is_reported_not_raised(napcat):
    with patch("komaribot.utils.requests.post", side_effect=requests.exceptions.ConnectionError("down")):
        assert send_http_msg("10001", "hi") is False


def test_empty_target_skips_request(napcat):
    with patch("komaribot.utils.requests.post") as post:
        assert send_http_msg("", "hi") is False
    post.assert_not_called()
