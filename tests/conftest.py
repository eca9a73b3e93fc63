"""Shared test fixtures for the apichain test suite."""

from __future__ import annotations

import asyncio
import socket
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# =============================================================================
# Test API handlers
# =============================================================================


_HITS = web.AppKey("hits", list)


@dataclass
class ApiServer:
    """Handle on a running test API.

    Attributes:
        url: Base URL, e.g. ``http://127.0.0.1:54321``.
        hits: ``"METHOD /path"`` for every request received, in order.
    """

    url: str
    hits: list[str] = field(default_factory=list)


@web.middleware
async def _record_hits(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    request.app[_HITS].append(f"{request.method} {request.path}")
    return await handler(request)


async def _create_user(request: web.Request) -> web.Response:
    """Create a user; always id 42."""
    data = await request.json()
    return web.json_response({"id": 42, "name": data.get("name", "")}, status=201)


async def _get_user(request: web.Request) -> web.Response:
    """Return user ``id`` if it is 42, 404 otherwise."""
    user_id = request.match_info["user_id"]
    if user_id != "42":
        return web.json_response({"error": "not found"}, status=404)
    return web.json_response({"id": 42, "name": "Ada", "status": "ok"})


async def _login(request: web.Request) -> web.Response:
    """Return a token for any login."""
    return web.json_response({"token": "test-token-12345", "expires": 3600})


async def _profile(request: web.Request) -> web.Response:
    """Require the bearer token handed out by ``_login``."""
    if request.headers.get("Authorization") != "Bearer test-token-12345":
        return web.json_response({"error": "unauthorized"}, status=401)
    return web.json_response({"user": {"id": 42, "roles": ["admin", "dev"]}, "active": True})


async def _echo(request: web.Request) -> web.Response:
    """Echo back request details as JSON."""
    body = await request.read()
    return web.json_response(
        {
            "method": request.method,
            "path": request.path,
            "query": dict(request.query),
            "headers": dict(request.headers),
            "content_type": request.headers.get("Content-Type", ""),
            "body": body.decode("utf-8", errors="replace"),
            "has_body": bool(body),
        }
    )


async def _upload(request: web.Request) -> web.Response:
    """Echo multipart form fields."""
    form = await request.post()
    return web.json_response(
        {
            "fields": {key: str(value) for key, value in form.items()},
            "content_type": request.content_type,
        }
    )


async def _status(request: web.Request) -> web.Response:
    """Return a configurable status (query param: ?code=500)."""
    code = int(request.query.get("code", "500"))
    return web.json_response({"error": True}, status=code)


async def _health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "id": 5})


async def _plain_text(request: web.Request) -> web.Response:
    return web.Response(text="just some text", content_type="text/plain")


async def _delay(request: web.Request) -> web.Response:
    """Respond after a configurable delay (query param: ?delay=0.5)."""
    delay = float(request.query.get("delay", "0.1"))
    await asyncio.sleep(delay)
    return web.json_response({"delayed_by": delay})


def _create_app(hits: list[str]) -> web.Application:
    app = web.Application(middlewares=[_record_hits])
    app[_HITS] = hits
    app.router.add_post("/users", _create_user)
    app.router.add_get("/users/{user_id}", _get_user)
    app.router.add_post("/auth/login", _login)
    app.router.add_get("/profile", _profile)
    app.router.add_route("*", "/echo{path:.*}", _echo)
    app.router.add_post("/upload", _upload)
    app.router.add_route("*", "/status", _status)
    app.router.add_get("/health", _health)
    app.router.add_get("/text", _plain_text)
    app.router.add_get("/delay", _delay)
    return app


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def api_server() -> AsyncIterator[ApiServer]:
    """Test API running on the test's event loop."""
    server = ApiServer(url="")
    runner = web.AppRunner(_create_app(server.hits))
    await runner.setup()
    port = _get_free_port()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    server.url = f"http://127.0.0.1:{port}"
    yield server
    await runner.cleanup()


@pytest.fixture
def sync_api_server() -> Iterator[ApiServer]:
    """Test API running in a background thread.

    For CLI tests, where ``asyncio.run`` inside the command needs the
    calling thread's event loop to be free.
    """
    port = _get_free_port()
    server = ApiServer(url=f"http://127.0.0.1:{port}")
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(_create_app(server.hits))
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    yield server

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)


@pytest.fixture
def closed_port_url() -> str:
    """URL of a port nothing listens on."""
    return f"http://127.0.0.1:{_get_free_port()}"
