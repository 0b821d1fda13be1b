"""Shared fakes for the DevTools session tests"""
import asyncio
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer


class FakeProcess:
    """Stands in for asyncio.subprocess.Process"""

    def __init__(self, stderr_lines, exit_code=None):
        self.pid = 4242
        self.stderr = asyncio.StreamReader()
        for line in stderr_lines:
            self.stderr.feed_data(line)
        self.returncode = None
        self.terminated = False
        self.killed = False
        self._exited = asyncio.Event()
        if exit_code is not None:
            self.exit(exit_code)

    def exit(self, code):
        if self.returncode is None:
            self.returncode = code
        self.stderr.feed_eof()
        self._exited.set()

    def terminate(self):
        self.terminated = True
        self.exit(-15)

    def kill(self):
        self.killed = True
        self.exit(-9)

    async def wait(self):
        await self._exited.wait()
        return self.returncode


class FakeDevTools:
    """Minimal browser-level DevTools websocket endpoint"""

    def __init__(self):
        self.cookies = []
        self.errors = {}
        self.received = []
        self.events_per_reply = 5
        self.on_browser_close = None
        self.silent = False
        app = web.Application()
        app.router.add_get('/devtools/browser/{browser_id}', self.handle)
        self.server = TestServer(app)

    @property
    def ws_url(self) -> str:
        return f"ws://{self.server.host}:{self.server.port}/devtools/browser/fake-id"

    def banner(self) -> bytes:
        return f"\nDevTools listening on {self.ws_url}\n".encode()

    async def handle(self, request):
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        async for msg in ws:
            data = json.loads(msg.data)
            method = data['method']
            self.received.append(method)
            if self.silent:
                continue

            # Unsolicited events the client has to drain
            for i in range(self.events_per_reply):
                await ws.send_json({'method': 'Target.targetInfoChanged', 'params': {'seq': i}})
            await ws.send_json({'id': 99999, 'result': {}})

            if method in self.errors:
                await ws.send_json({'id': data['id'], 'error': {'code': -32000, 'message': self.errors[method]}})
            elif method == 'Storage.getCookies':
                await ws.send_json({'id': data['id'], 'result': {'cookies': self.cookies}})
            elif method == 'Browser.close':
                await ws.send_json({'id': data['id'], 'result': {}})
                if self.on_browser_close:
                    self.on_browser_close()
                await ws.close()
            else:
                await ws.send_json({'id': data['id'], 'result': {}})

        return ws


@pytest.fixture
async def devtools():
    fake = FakeDevTools()
    await fake.server.start_server()
    yield fake
    await fake.server.close()


@pytest.fixture
def fake_process():
    """Factory for FakeProcess objects"""
    return FakeProcess
