"""Shared fixtures: a recording fake router client and a dashboard app wired to it."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.core import router_connection as router_connection_module
from app.core.security import create_access_token, encrypt_router_password
from app.db.database import get_db
from app.services.connection_pool import MikroTikConnectionPool
from app.services.mikrotik_api import RouterOSConnectionError


class FakeRouterClient:
    """Stands in for MikroTikAPI: replays canned replies and records every command."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, list[str]]] = []
        self.close_count = 0
        self.connected = True

    def write(self, command: str, args: list[str] | None = None) -> list[dict[str, str]]:
        self.calls.append((command, list(args or [])))
        reply = self.responses.get(command, [])
        if isinstance(reply, Exception):
            raise reply
        return [dict(row) for row in reply]

    def close(self) -> None:
        self.close_count += 1
        self.connected = False

    @property
    def commands(self) -> list[str]:
        return [command for command, _ in self.calls]


def make_token(role: str = "ADMIN", tenant_id: int | None = 1, user_id: int = 1) -> str:
    return create_access_token({
        "sub": str(user_id),
        "user_id": user_id,
        "role": role,
        "tenant_id": tenant_id,
    })


def auth_headers(role: str = "ADMIN", tenant_id: int | None = 1) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(role, tenant_id)}"}


class DashboardHarness:
    """Main app with the router store and the connector replaced by in-memory fakes."""

    def __init__(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from main import app

        self.app = app
        self.fake = FakeRouterClient()
        self.connect_error: Exception | None = None
        self.connect_attempts = 0
        self.lookups: list[tuple[int, int | None, bool]] = []
        self.routers = {
            1: SimpleNamespace(
                id=1,
                tenant_id=1,
                name="Core",
                ip_address="10.0.0.1",
                port=8728,
                username="api",
                password=encrypt_router_password("router-secret"),
                use_ssl=False,
            ),
        }

        async def fake_get_router_by_id(db, router_id, tenant_id=None, is_super_admin=False):
            self.lookups.append((router_id, tenant_id, is_super_admin))
            router = self.routers.get(router_id)
            if router is None:
                return None
            if not is_super_admin and router.tenant_id != tenant_id:
                return None
            return router

        async def fake_get_db():
            yield None

        def connector(credentials):
            self.connect_attempts += 1
            self.credentials = credentials
            if self.connect_error is not None:
                raise self.connect_error
            return self.fake

        self.pool = MikroTikConnectionPool(max_idle_per_router=0, connector=connector)
        monkeypatch.setattr(router_connection_module, "get_router_by_id", fake_get_router_by_id)
        monkeypatch.setattr(router_connection_module, "connection_pool", self.pool)
        app.dependency_overrides[get_db] = fake_get_db
        self.http = TestClient(app)

    def reply(self, command: str, rows: Any) -> None:
        self.fake.responses[command] = rows

    def fail_connect(self, message: str = "Connection refused") -> None:
        self.connect_error = RouterOSConnectionError(message)

    def close(self) -> None:
        self.app.dependency_overrides.clear()


@pytest.fixture
def fake_client() -> FakeRouterClient:
    return FakeRouterClient()


@pytest.fixture
def dashboard(monkeypatch: pytest.MonkeyPatch):
    harness = DashboardHarness(monkeypatch)
    yield harness
    harness.close()


@pytest.fixture
def headers():
    """Bearer headers for a role, e.g. headers("TECHNICIAN")."""
    return auth_headers
