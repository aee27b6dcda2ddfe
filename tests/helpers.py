from __future__ import annotations

import asyncio
from unittest.mock import MagicMock


def make_response(status_code=200, body=None, json_error=None):
    resp = MagicMock()
    resp.status_code = status_code
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = body
    return resp


class FakeWebSocket:
    """Async context manager standing in for a websockets client connection."""

    def __init__(self, message="{}", recv_delay=None):
        self.message = message
        self.recv_delay = recv_delay
        self.sent = []
        self.recv_calls = 0
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True
        return False

    async def send(self, message):
        self.sent.append(message)

    async def recv(self):
        self.recv_calls += 1
        if self.recv_delay:
            await asyncio.sleep(self.recv_delay)
        return self.message
