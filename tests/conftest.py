import logging
import os
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer
from httpx import AsyncClient, ASGITransport


# Set test environment variables before imports
os.environ['SIM_API_KEY'] = 'test'
os.environ['INFURA_URL'] = 'http://localhost:8545'
os.environ.pop('ALCHEMY_URL', None)
os.environ['ENV_FILE'] = os.devnull

from core.environment.config import Settings  # noqa: E402
from core.http.providers import create_session  # noqa: E402
from holders.sim_service import SimHoldersService  # noqa: E402


class FakeSimApi:
    """
    In-process stand-in for the Sim token-holders endpoint.

    Responses are served in the order they were queued; every request's
    query string and API key header are recorded.
    """

    def __init__(self):
        self.responses: list[tuple[int, dict | str]] = []
        self.requests: list[dict] = []
        self.url = ""

    def add_page(self, holders: list[dict], next_offset: str | None = None) -> None:
        body = {"chain_id": 1, "holders": holders}
        if next_offset is not None:
            body["next_offset"] = next_offset
        self.responses.append((200, body))

    def add_response(self, status: int, body: dict | str = "") -> None:
        self.responses.append((status, body))

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append({
            "path": request.path,
            "query": dict(request.query),
            "api_key": request.headers.get("X-Sim-Api-Key"),
        })
        status, body = self.responses.pop(0)
        if isinstance(body, str):
            return web.Response(status=status, text=body)
        return web.json_response(body, status=status)


@pytest.fixture
def logger():
    """Application logger."""
    return logging.getLogger("token_holders.tests")


@pytest.fixture
def sleep_mock():
    """Records requested pauses instead of sleeping."""
    return AsyncMock(return_value=None)


@pytest.fixture
def settings():
    """
    Settings with fast, explicit values.

    Returns
    -------
    Settings
        Test settings
    """
    return Settings(
        sim_api_key="test",
        infura_url="http://localhost:8545",
        page_limit=5,
        max_attempts=3,
        base_delay=1.0,
        page_delay=0.5,
        classify_delay=0.2,
        request_timeout=5.0,
    )


@pytest_asyncio.fixture
async def sim_api():
    """
    Running fake Sim API server.

    Yields
    ------
    FakeSimApi
        Fake API with queued responses
    """
    api = FakeSimApi()
    app = web.Application()
    app.router.add_get("/v1/evm/token-holders/{chain_id}/{token_address}", api.handle)

    server = TestServer(app)
    await server.start_server()
    api.url = str(server.make_url("/")).rstrip("/")
    yield api
    await server.close()


@pytest_asyncio.fixture
async def sim_service(sim_api, settings, logger, sleep_mock):
    """
    Holder retriever wired to the fake Sim API.

    Yields
    ------
    SimHoldersService
        Service instance with recorded sleeps
    """
    settings = settings.model_copy(update={"sim_api_url": sim_api.url})
    async with create_session(settings) as session:
        yield SimHoldersService(
            session=session,
            settings=settings,
            logger=logger,
            sleep=sleep_mock
        )


@pytest_asyncio.fixture
async def client():
    """
    Fixture for async test client.

    Yields
    ------
    AsyncClient
        Async HTTP client for testing
    """
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
