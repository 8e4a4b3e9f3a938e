"""Shared fixtures for the pwnedcheck test suite."""

import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from pwnedcheck.accounts.base import AccountIdentity, AccountStore, normalize_username
from pwnedcheck.breach.models import RangeResponse

# SHA-1("password") = 5BAA61E4C9B93F3F0682250B6CF8331B7EE68FD8
PASSWORD_PREFIX = "5BAA6"
PASSWORD_SUFFIX = "1E4C9B93F3F0682250B6CF8331B7EE68FD8"

UNRELATED_RANGE = (
    "003D68EB55068C33ACE09247EE4C639306B:3\r\n"
    "012C192B2F16F82EA0EB9EF18D9D539B0DD:1\r\n"
    "01330C689E5D64F660D6947A93AD634EF8F:1"
)
BREACHED_RANGE = UNRELATED_RANGE + f"\r\n{PASSWORD_SUFFIX}:12345"


class FakeRangeService:
    """Stand-in for the range API, served by aiohttp's test server."""

    def __init__(self):
        self.bodies: dict[str, str] = {}
        self.status = 200
        self.delay = 0.0
        self.requests: list[web.Request] = []
        self.base_url = ""

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        body = self.bodies.get(request.match_info["prefix"], "")
        return web.Response(status=self.status, text=body)


@pytest_asyncio.fixture
async def range_service():
    service = FakeRangeService()
    app = web.Application()
    app.router.add_get("/range/{prefix}", service.handle)

    server = TestServer(app)
    await server.start_server()
    service.base_url = str(server.make_url("")).rstrip("/")
    yield service
    await server.close()


class StaticFetcher:
    """Range fetcher returning a fixed response and recording prefixes."""

    def __init__(self, response: RangeResponse | None, events: list[str] | None = None):
        self.response = response
        self.calls: list[tuple[str, float | None]] = []
        self.events = events if events is not None else []

    async def fetch_range(self, prefix: str, timeout: float | None = None) -> RangeResponse | None:
        self.calls.append((prefix, timeout))
        self.events.append("fetch")
        return self.response


class MemoryAccountStore(AccountStore):
    """In-memory account store recording every call."""

    def __init__(self, events: list[str] | None = None):
        self.users: dict[str, tuple[int, str | None]] = {}
        self.rotation_marked: list[int] = []
        self.update_result = True
        self.events = events if events is not None else []

    def add(self, username: str, user_id: int, password_hash: str | None) -> None:
        self.users[normalize_username(username)] = (user_id, password_hash)

    def _find_by_clean_username(self, username_clean: str) -> AccountIdentity | None:
        self.events.append("find")
        entry = self.users.get(username_clean)
        if entry is None:
            return None
        return AccountIdentity(user_id=entry[0], stored_credential_hash=entry[1])

    def get_password_hash(self, user_id: int) -> str | None:
        self.events.append("get_hash")
        for uid, password_hash in self.users.values():
            if uid == user_id:
                return password_hash
        return None

    def mark_rotation_required(self, user_id: int) -> bool:
        self.events.append("mark")
        self.rotation_marked.append(user_id)
        return self.update_result


@pytest.fixture
def events() -> list[str]:
    return []


@pytest.fixture
def memory_store(events) -> MemoryAccountStore:
    return MemoryAccountStore(events)
